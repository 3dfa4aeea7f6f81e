"""
Upload pipeline for saved Scout event logs.

``ReportDataStream`` bootstraps the data stream schema in the remote
store and streams newline-delimited event logs into it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterator

from ..config import DEFAULT_DATA_STREAM
from ..reporting.event import Event
from ..store.base import BaseStoreClient
from ..store.models import BulkStats, ResourceExistsError
from .templates import COMPONENT_TEMPLATES, build_index_template

logger = logging.getLogger(__name__)


class ReportDataStream:
    """
    Scout test event data stream.

    Example:
        async with create_store_client(config) as client:
            stream = ReportDataStream(client)
            await stream.create_if_missing()
            stats = await stream.add_events_from_file("reports/scout-abc/events.ndjson")
    """

    def __init__(
        self,
        client: BaseStoreClient,
        name: str = DEFAULT_DATA_STREAM,
        log: logging.Logger | None = None,
    ):
        self.client = client
        self.name = name
        self.log = log or logger
        self.index_template = build_index_template(name)

    async def exists(self) -> bool:
        return await self.client.exists_data_stream(self.name)

    async def ensure_schema(self) -> None:
        """
        Create component templates, the index template and the data stream if missing.

        Every step checks before creating, and a create that loses a race
        against another process is treated as success, so this is safe to
        call repeatedly and concurrently.
        """
        await self.setup_component_templates()
        await self.setup_index_template()

        if await self.exists():
            self.log.debug(f"Data stream '{self.name}' already exists")
            return

        self.log.info(f"Creating data stream '{self.name}'")
        await self._create_tolerating_race(
            f"data stream '{self.name}'",
            lambda: self.client.create_data_stream(self.name),
        )

    create_if_missing = ensure_schema

    async def setup_component_templates(self) -> None:
        for template in COMPONENT_TEMPLATES:
            if await self.client.exists_component_template(template.name):
                self.log.debug(f"Component template '{template.name}' already exists")
                continue

            self.log.info(f"Creating component template '{template.name}'")
            await self._create_tolerating_race(
                f"component template '{template.name}'",
                lambda t=template: self.client.put_component_template(t.name, t.body),
            )

    async def setup_index_template(self) -> None:
        template = self.index_template
        if await self.client.exists_index_template(template.name):
            self.log.debug(f"Index template '{template.name}' already exists")
            return

        self.log.info(f"Creating index template '{template.name}'")
        await self._create_tolerating_race(
            f"index template '{template.name}'",
            lambda: self.client.put_index_template(template.name, template.body),
        )

    async def _create_tolerating_race(
        self,
        description: str,
        create: Callable[[], Awaitable[None]],
    ) -> None:
        try:
            await create()
        except ResourceExistsError:
            self.log.info(f"The {description} was created by another process")

    async def add_event(self, event: Event | dict[str, Any]) -> None:
        document = event.to_dict() if isinstance(event, Event) else event
        await self.client.index(self.name, document)

    async def add_events_from_file(self, event_log_path: str | Path) -> BulkStats:
        """
        Upload every event in a newline-delimited event log.

        The file is streamed line by line and each line becomes one
        ``create`` operation against the data stream. Documents the store
        rejects are counted, not raised.

        Args:
            event_log_path: Path to the event log

        Returns:
            BulkStats for the upload

        Raises:
            FileNotFoundError: If the event log does not exist (before any store call)
        """
        path = Path(event_log_path).resolve()
        if not path.is_file():
            raise FileNotFoundError(f"Event log path '{path}' does not exist")

        self.log.info(f"Uploading events from file {path} to data stream '{self.name}'")

        stats = await self.client.bulk(
            _read_lines(path),
            on_document=lambda _: {"create": {"_index": self.name}},
        )

        self.log.info(f"Uploaded {stats.total} events in {stats.time:.3f}s.")
        if stats.failed > 0:
            self.log.warning(f"Failed to upload {stats.failed} events")
            for error in stats.errors[:5]:
                self.log.debug(f"Upload error: {error}")

        return stats


def _read_lines(path: Path) -> Iterator[str]:
    with open(path, encoding="utf-8") as f:
        for line in f:
            yield line
