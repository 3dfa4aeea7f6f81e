"""
Canonical test event model.

Every occurrence during a test run (run, suite, test, step and hook
boundaries, errors) is recorded as one ``Event``. Events serialize to
the flat document shape stored in the remote data stream:

    {
        "@timestamp": "...",
        "host": {...},            # environment metadata, merged at top level
        "test_run": {"id": ..., "status": ..., "duration": ...},
        "suite": {"title": ..., "type": ...},
        "test": {"id": ..., "title": ..., "step": {...}},
        "event": {"action": ..., "error": {...}},
    }
"""

from __future__ import annotations

import hashlib
import secrets
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

TEST_ID_LENGTH = 31
UNKNOWN_SUITE_TITLE = "unknown"

_RESERVED_KEYS = {"@timestamp", "test_run", "suite", "test", "event"}


class EventAction(str, Enum):
    """Kind of occurrence an event records."""
    RUN_BEGIN = "run_begin"
    RUN_END = "run_end"
    SUITE_BEGIN = "suite_begin"
    SUITE_END = "suite_end"
    TEST_BEGIN = "test_begin"
    TEST_END = "test_end"
    STEP_BEGIN = "step_begin"
    STEP_END = "step_end"
    HOOK_BEGIN = "hook_begin"
    HOOK_END = "hook_end"
    PENDING = "pending"
    RETRY = "retry"
    ERROR = "error"


# ─────────────────────────────────────────────────────────────────────────────
# Sub-records
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TestRunInfo:
    """Run-level fields. ``status`` and ``duration`` are only known at run end."""
    __test__ = False

    id: str
    status: str | None = None
    duration: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"id": self.id, "status": self.status, "duration": self.duration})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestRunInfo:
        return cls(id=data["id"], status=data.get("status"), duration=data.get("duration"))


@dataclass(frozen=True)
class SuiteInfo:
    title: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SuiteInfo:
        return cls(title=data.get("title") or UNKNOWN_SUITE_TITLE, type=data.get("type", "suite"))


@dataclass(frozen=True)
class StepInfo:
    title: str
    category: str | None = None
    duration: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"title": self.title, "category": self.category, "duration": self.duration})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StepInfo:
        return cls(
            title=data.get("title", ""),
            category=data.get("category"),
            duration=data.get("duration"),
        )


@dataclass(frozen=True)
class TestInfo:
    """
    Test-level fields.

    ``id`` is derived from the full hierarchical title, see
    ``get_test_id_for_title``. ``status`` and ``duration`` are set on
    end/pending events only; ``step`` is set on step and hook events.
    """
    __test__ = False

    id: str
    title: str
    tags: list[str] = field(default_factory=list)
    annotations: list[dict[str, Any]] = field(default_factory=list)
    expected_status: str | None = None
    status: str | None = None
    duration: float | None = None
    step: StepInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "id": self.id,
            "title": self.title,
            "tags": list(self.tags),
            "annotations": list(self.annotations),
            "expected_status": self.expected_status,
            "status": self.status,
            "duration": self.duration,
            "step": self.step.to_dict() if self.step else None,
        })

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestInfo:
        step = data.get("step")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            tags=list(data.get("tags", [])),
            annotations=list(data.get("annotations", [])),
            expected_status=data.get("expected_status"),
            status=data.get("status"),
            duration=data.get("duration"),
            step=StepInfo.from_dict(step) if step else None,
        )


@dataclass(frozen=True)
class ErrorInfo:
    message: str | None = None
    stack_trace: str | None = None

    @classmethod
    def from_exception(cls, err: Any) -> ErrorInfo | None:
        """
        Build an ErrorInfo from a runner error payload.

        Accepts Python exceptions as well as duck-typed objects exposing
        ``message`` and ``stack``. Returns None on the success path so the
        event carries no error field at all.
        """
        if err is None:
            return None

        if isinstance(err, BaseException):
            message = str(err) or type(err).__name__
            stack = "".join(traceback.format_exception(type(err), err, err.__traceback__))
        else:
            message = _str_or_none(getattr(err, "message", None))
            stack = _str_or_none(getattr(err, "stack", None))

        if message is None and stack is None:
            return None
        return cls(message=message, stack_trace=stack)

    def to_dict(self) -> dict[str, Any]:
        return _compact({"message": self.message, "stack_trace": self.stack_trace})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ErrorInfo:
        return cls(message=data.get("message"), stack_trace=data.get("stack_trace"))


# ─────────────────────────────────────────────────────────────────────────────
# Event
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Event:
    """A single recorded occurrence during a test run."""
    action: EventAction
    run: TestRunInfo
    environment: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    suite: SuiteInfo | None = None
    test: TestInfo | None = None
    error: ErrorInfo | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON document stored in the event log."""
        doc: dict[str, Any] = {"@timestamp": self.timestamp.isoformat()}
        doc.update(self.environment)
        doc["test_run"] = self.run.to_dict()
        if self.suite is not None:
            doc["suite"] = self.suite.to_dict()
        if self.test is not None:
            doc["test"] = self.test.to_dict()

        event: dict[str, Any] = {"action": self.action.value}
        if self.error is not None:
            event["error"] = self.error.to_dict()
        doc["event"] = event
        return doc

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Parse a document produced by ``to_dict``."""
        event = data["event"]
        suite = data.get("suite")
        test = data.get("test")
        error = event.get("error")
        return cls(
            action=EventAction(event["action"]),
            run=TestRunInfo.from_dict(data["test_run"]),
            environment={k: v for k, v in data.items() if k not in _RESERVED_KEYS},
            timestamp=_parse_timestamp(data.get("@timestamp")),
            suite=SuiteInfo.from_dict(suite) if suite else None,
            test=TestInfo.from_dict(test) if test else None,
            error=ErrorInfo.from_dict(error) if error else None,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Identity
# ─────────────────────────────────────────────────────────────────────────────

def get_test_id_for_title(title: str) -> str:
    """
    Derive a stable test ID from a test's full hierarchical title.

    The same title always produces the same ID, in any process, which is
    what lets results be aggregated across runs.

    Args:
        title: Ancestor suite titles and the test title, joined

    Returns:
        First 31 hex characters of the SHA-256 digest
    """
    return hashlib.sha256(title.encode("utf-8")).hexdigest()[:TEST_ID_LENGTH]


def generate_test_run_id() -> str:
    """Generate a run ID from the current time (ms, base 36) and random bits."""
    return f"{_base36(int(time.time() * 1000))}-{secrets.token_hex(4)}"


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while True:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
        if value == 0:
            return out


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.now(timezone.utc)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}
