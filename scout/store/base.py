"""
Base client interface for the remote document store.

This module defines the abstract base class that store client
implementations must follow, and the streaming bulk helper built on top
of it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, AsyncIterable, Callable, Iterable

from .models import BulkItemResult, BulkStats, StoreError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 1.0
MAX_RECORDED_ERRORS = 100


class BaseStoreClient(ABC):
    """
    Abstract base class for document store clients.

    Clients expose existence checks and creation for the schema objects
    the upload pipeline manages (component templates, index templates,
    data streams) plus single and bulk document writes.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying connection resources."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying connection resources."""
        pass

    @abstractmethod
    async def info(self) -> dict[str, Any]:
        """
        Fetch basic information about the store node.

        Raises:
            StoreConnectionError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def exists_component_template(self, name: str) -> bool:
        pass

    @abstractmethod
    async def put_component_template(self, name: str, body: dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def exists_index_template(self, name: str) -> bool:
        pass

    @abstractmethod
    async def put_index_template(self, name: str, body: dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def exists_data_stream(self, name: str) -> bool:
        pass

    @abstractmethod
    async def create_data_stream(self, name: str) -> None:
        """
        Create a data stream.

        Raises:
            ResourceExistsError: If the data stream already exists
        """
        pass

    @abstractmethod
    async def index(self, index: str, document: dict[str, Any]) -> None:
        """Write a single document (op_type ``create``)."""
        pass

    @abstractmethod
    async def _send_bulk(self, body: str) -> list[BulkItemResult]:
        """
        Send one NDJSON bulk request body.

        Returns:
            One result per document, in request order
        """
        pass

    async def bulk(
        self,
        datasource: Iterable[Any] | AsyncIterable[Any],
        on_document: Callable[[Any], dict[str, Any]],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    ) -> BulkStats:
        """
        Stream documents into the store in bulk requests.

        The datasource is consumed lazily, ``chunk_size`` documents at a
        time, so it may be arbitrarily large. Documents rejected by the
        store are counted in ``failed``; they never abort the stream.
        Documents rejected with HTTP 429 are retried with exponential
        back-off up to ``max_retries`` times.

        Args:
            datasource: Documents, as JSON strings or dicts (sync or async iterable)
            on_document: Returns the action metadata for a document,
                e.g. ``{"create": {"_index": "my-stream"}}``
            chunk_size: Documents per bulk request
            max_retries: Retries for documents rejected with HTTP 429
            initial_backoff: Seconds to wait before the first retry

        Returns:
            BulkStats with total, successful and failed counts and elapsed time
        """
        stats = BulkStats()
        started = time.monotonic()
        chunk: list[tuple[str, str]] = []

        async for document in _aiter(datasource):
            line = _serialize_document(document)
            if line is None:
                continue
            action = json.dumps(on_document(document))
            chunk.append((action, line))
            stats.total += 1

            if len(chunk) >= chunk_size:
                await self._flush_chunk(chunk, stats, max_retries, initial_backoff)
                chunk = []

        if chunk:
            await self._flush_chunk(chunk, stats, max_retries, initial_backoff)

        stats.time = time.monotonic() - started
        return stats

    async def _flush_chunk(
        self,
        chunk: list[tuple[str, str]],
        stats: BulkStats,
        max_retries: int,
        initial_backoff: float,
    ) -> None:
        pending = chunk
        attempt = 0

        while pending:
            body = "".join(f"{action}\n{line}\n" for action, line in pending)
            try:
                results = await self._send_bulk(body)
            except StoreError as e:
                logger.warning(f"Bulk request for {len(pending)} documents failed: {e}")
                stats.failed += len(pending)
                _record_error(stats, {"reason": str(e), "status": e.status})
                return

            if len(results) != len(pending):
                logger.warning(
                    f"Bulk response has {len(results)} items for {len(pending)} documents"
                )

            retry: list[tuple[str, str]] = []
            for item, result in zip(pending, results):
                if result.ok:
                    stats.successful += 1
                elif result.retryable and attempt < max_retries:
                    retry.append(item)
                else:
                    stats.failed += 1
                    _record_error(stats, {"status": result.status, "error": result.error})

            # Items the store did not answer for count as failed
            missing = len(pending) - len(results)
            if missing > 0:
                stats.failed += missing

            if retry:
                delay = initial_backoff * (2 ** attempt)
                logger.info(f"Retrying {len(retry)} rejected documents in {delay:.1f}s")
                stats.retried += len(retry)
                await asyncio.sleep(delay)
                attempt += 1
            pending = retry

    async def __aenter__(self) -> BaseStoreClient:
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()


async def _aiter(source: Iterable[Any] | AsyncIterable[Any]):
    if hasattr(source, "__aiter__"):
        async for item in source:
            yield item
    else:
        for item in source:
            yield item


def _serialize_document(document: Any) -> str | None:
    """JSON strings pass through untouched; blank lines are skipped."""
    if isinstance(document, (bytes, bytearray)):
        document = document.decode("utf-8")
    if isinstance(document, str):
        document = document.strip()
        return document or None
    return json.dumps(document, default=str)


def _record_error(stats: BulkStats, error: dict[str, Any]) -> None:
    if len(stats.errors) < MAX_RECORDED_ERRORS:
        stats.errors.append(error)
