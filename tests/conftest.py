"""Shared fixtures and fakes for Scout tests."""

from __future__ import annotations

import asyncio
import io
import json
from collections import defaultdict
from types import SimpleNamespace
from typing import Any

import pytest
from rich.console import Console

from scout.store import BaseStoreClient, ResourceExistsError, StoreConnectionError
from scout.store.models import BulkItemResult


# ── Store ───────────────────────────────────────────────────────────────────


class FakeStoreClient(BaseStoreClient):
    """
    In-memory store.

    ``fail_documents`` rejects that many documents (first come) with a
    mapping error; ``yield_on_checks`` suspends inside existence checks so
    concurrent bootstraps interleave.
    """

    def __init__(
        self,
        fail_documents: int = 0,
        throttle_documents: int = 0,
        unreachable: bool = False,
        yield_on_checks: bool = False,
    ):
        self.fail_documents = fail_documents
        self.throttle_documents = throttle_documents
        self.unreachable = unreachable
        self.yield_on_checks = yield_on_checks
        self.component_templates: dict[str, dict] = {}
        self.index_templates: dict[str, dict] = {}
        self.data_streams: dict[str, list[dict]] = {}
        self.calls: list[str] = []
        self.bulk_requests = 0
        self.connected = False

    async def _checkpoint(self) -> None:
        if self.yield_on_checks:
            await asyncio.sleep(0)

    async def connect(self) -> None:
        self.calls.append("connect")
        self.connected = True

    async def disconnect(self) -> None:
        self.calls.append("disconnect")
        self.connected = False

    async def info(self) -> dict[str, Any]:
        self.calls.append("info")
        if self.unreachable:
            raise StoreConnectionError("Connection failed: connection refused")
        return {"name": "fake-node"}

    async def exists_component_template(self, name: str) -> bool:
        self.calls.append(f"exists_component_template:{name}")
        await self._checkpoint()
        return name in self.component_templates

    async def put_component_template(self, name: str, body: dict[str, Any]) -> None:
        self.calls.append(f"put_component_template:{name}")
        self.component_templates[name] = body

    async def exists_index_template(self, name: str) -> bool:
        self.calls.append(f"exists_index_template:{name}")
        await self._checkpoint()
        return name in self.index_templates

    async def put_index_template(self, name: str, body: dict[str, Any]) -> None:
        self.calls.append(f"put_index_template:{name}")
        self.index_templates[name] = body

    async def exists_data_stream(self, name: str) -> bool:
        self.calls.append(f"exists_data_stream:{name}")
        await self._checkpoint()
        return name in self.data_streams

    async def create_data_stream(self, name: str) -> None:
        self.calls.append(f"create_data_stream:{name}")
        if name in self.data_streams:
            raise ResourceExistsError(
                "HTTP 400: Bad Request",
                status=400,
                data={"error": {"type": "resource_already_exists_exception"}},
            )
        self.data_streams[name] = []

    async def index(self, index: str, document: dict[str, Any]) -> None:
        self.calls.append(f"index:{index}")
        self.data_streams.setdefault(index, []).append(document)

    async def _send_bulk(self, body: str) -> list[BulkItemResult]:
        self.bulk_requests += 1
        lines = body.splitlines()
        results = []
        for action, doc in zip(lines[::2], lines[1::2]):
            index = json.loads(action)["create"]["_index"]
            if self.throttle_documents > 0:
                self.throttle_documents -= 1
                results.append(BulkItemResult(status=429, error={"type": "es_rejected_execution_exception"}))
            elif self.fail_documents > 0:
                self.fail_documents -= 1
                results.append(BulkItemResult(status=400, error={"type": "mapper_parsing_exception"}))
            else:
                self.data_streams.setdefault(index, []).append(json.loads(doc))
                results.append(BulkItemResult(status=201))
        return results


@pytest.fixture
def store():
    return FakeStoreClient()


# ── Runners ─────────────────────────────────────────────────────────────────


class FakeEmitterRunner:
    """Event-emitter runner: ``on(name, listener)`` plus aggregate stats."""

    def __init__(self):
        self.listeners: dict[str, list] = defaultdict(list)
        self.stats = SimpleNamespace(failures=0, duration=0)

    def on(self, name: str, listener) -> None:
        self.listeners[name].append(listener)

    def emit(self, name: str, *args) -> None:
        for listener in self.listeners[name]:
            listener(*args)


class FakeSuite:
    def __init__(self, title: str, parent: FakeSuite | None = None, root: bool = False):
        self.title = title
        self.parent = parent
        self.root = root

    def full_title(self) -> str:
        parts = []
        node = self
        while node is not None:
            if node.title:
                parts.append(node.title)
            node = node.parent
        return " ".join(reversed(parts))


class FakeTest:
    def __init__(self, title: str, parent: FakeSuite | None = None, passed: bool = True,
                 duration: float | None = None, err: Any = None):
        self.title = title
        self.parent = parent
        self.passed = passed
        self.duration = duration
        self.err = err

    def full_title(self) -> str:
        prefix = self.parent.full_title() if self.parent else ""
        return f"{prefix} {self.title}".strip()

    def is_passed(self) -> bool:
        return self.passed


class FakeHook:
    def __init__(self, title: str, parent: FakeSuite, ctx_test: FakeTest | None = None):
        self.title = title
        self.parent = parent
        self.ctx_test = ctx_test
        self.duration = 2
        self.err = None


class TitledNode:
    """Callback-runner payload exposing ``title_path()``."""

    def __init__(self, title: str, parent: TitledNode | None = None, **attrs):
        self.title = title
        self.parent = parent
        for key, value in attrs.items():
            setattr(self, key, value)

    def title_path(self) -> list[str]:
        prefix = self.parent.title_path() if self.parent is not None else []
        return prefix + [self.title]


@pytest.fixture
def emitter_runner():
    return FakeEmitterRunner()


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO())


def read_event_log(path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]
