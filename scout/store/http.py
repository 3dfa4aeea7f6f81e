"""
HTTP client for Elasticsearch-compatible document stores.

This module implements ``BaseStoreClient`` over the Elasticsearch REST
API using aiohttp:

- ``GET /`` for node info
- ``HEAD``/``PUT`` ``/_component_template/<name>`` and ``/_index_template/<name>``
- ``GET``/``PUT`` ``/_data_stream/<name>``
- ``POST /<index>/_doc`` and ``POST /_bulk``
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from ..config import StoreConfig
from .base import BaseStoreClient
from .models import (
    BulkItemResult,
    ResourceExistsError,
    StoreConnectionError,
    StoreError,
)

logger = logging.getLogger(__name__)

# Headers
CONTENT_TYPE = "Content-Type"
AUTHORIZATION = "Authorization"

# Content types
JSON_CONTENT_TYPE = "application/json"
NDJSON_CONTENT_TYPE = "application/x-ndjson"

RESOURCE_EXISTS = "resource_already_exists_exception"


class HTTPStoreClient(BaseStoreClient):
    """
    Elasticsearch REST client.

    Example:
        config = StoreConfig(url="https://localhost:9200", api_key="...")
        async with HTTPStoreClient(config) as client:
            info = await client.info()
    """

    def __init__(self, config: StoreConfig):
        self.config = config
        self.url = config.url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._session.closed

    def _build_headers(self, content_type: str = JSON_CONTENT_TYPE) -> dict[str, str]:
        headers = {
            CONTENT_TYPE: content_type,
            "Accept": JSON_CONTENT_TYPE,
        }
        if self.config.api_key:
            headers[AUTHORIZATION] = f"ApiKey {self.config.api_key}"
        return headers

    async def connect(self) -> None:
        """Create the HTTP session."""
        if self._session is None:
            if self.config.verify_certs:
                connector = aiohttp.TCPConnector()
            else:
                connector = aiohttp.TCPConnector(ssl=False)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_ms / 1000),
            )

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        data: bytes | None = None,
        params: dict[str, str] | None = None,
        content_type: str = JSON_CONTENT_TYPE,
        allow_404: bool = False,
    ) -> tuple[int, Any]:
        """
        Send a request and return ``(status, parsed body)``.

        Raises:
            StoreConnectionError: If the store cannot be reached or times out
            ResourceExistsError: If the store reports the resource already exists
            StoreError: For any other non-2xx response
        """
        if not self.is_connected:
            raise StoreConnectionError("Client not connected. Call connect() first.")

        url = f"{self.url}{path}"
        logger.debug(f"{method} {url}")
        if body is not None:
            data = json.dumps(body).encode("utf-8")

        try:
            async with self._session.request(
                method,
                url,
                data=data,
                params=params,
                headers=self._build_headers(content_type),
            ) as resp:
                text = await resp.text() if method != "HEAD" else ""
                payload = _parse_json(text)

                if resp.status == 404 and allow_404:
                    return resp.status, payload

                if resp.status >= 300:
                    raise _error_for_response(resp.status, resp.reason, payload, text)

                return resp.status, payload

        except asyncio.TimeoutError:
            raise StoreConnectionError(
                f"Request timed out after {self.config.timeout_ms}ms",
                data={"url": url, "method": method},
            )
        except aiohttp.ClientConnectorError as e:
            raise StoreConnectionError(f"Connection failed: {e}", data={"url": url})
        except aiohttp.ClientError as e:
            raise StoreConnectionError(f"HTTP error: {e}", data={"url": url})

    async def _exists(self, path: str) -> bool:
        status, _ = await self._request("HEAD", path, allow_404=True)
        return status != 404

    async def info(self) -> dict[str, Any]:
        _, payload = await self._request("GET", "/")
        return payload if isinstance(payload, dict) else {}

    async def exists_component_template(self, name: str) -> bool:
        return await self._exists(f"/_component_template/{quote(name)}")

    async def put_component_template(self, name: str, body: dict[str, Any]) -> None:
        await self._request("PUT", f"/_component_template/{quote(name)}", body=body)

    async def exists_index_template(self, name: str) -> bool:
        return await self._exists(f"/_index_template/{quote(name)}")

    async def put_index_template(self, name: str, body: dict[str, Any]) -> None:
        await self._request("PUT", f"/_index_template/{quote(name)}", body=body)

    async def exists_data_stream(self, name: str) -> bool:
        status, _ = await self._request("GET", f"/_data_stream/{quote(name)}", allow_404=True)
        return status != 404

    async def create_data_stream(self, name: str) -> None:
        await self._request("PUT", f"/_data_stream/{quote(name)}")

    async def index(self, index: str, document: dict[str, Any]) -> None:
        await self._request(
            "POST",
            f"/{quote(index)}/_doc",
            body=document,
            params={"op_type": "create"},
        )

    async def _send_bulk(self, body: str) -> list[BulkItemResult]:
        _, payload = await self._request(
            "POST",
            "/_bulk",
            data=body.encode("utf-8"),
            content_type=NDJSON_CONTENT_TYPE,
        )
        if not isinstance(payload, dict):
            raise StoreError("Bulk response is not a JSON object")

        results: list[BulkItemResult] = []
        for item in payload.get("items", []):
            # Each item is keyed by its operation, e.g. {"create": {...}}
            outcome = next(iter(item.values()), {}) if isinstance(item, dict) else {}
            results.append(BulkItemResult(
                status=int(outcome.get("status", 500)),
                error=outcome.get("error"),
            ))
        return results

    def __repr__(self) -> str:
        status = "connected" if self.is_connected else "disconnected"
        return f"HTTPStoreClient(url={self.url!r}, status={status})"


def _parse_json(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _error_for_response(status: int, reason: str | None, payload: Any, text: str) -> StoreError:
    data = payload if payload is not None else {"body": text[:500]}
    message = f"HTTP {status}: {reason}"
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        detail = payload["error"].get("reason")
        if detail:
            message = f"{message} ({detail})"
    error = StoreError(message, status=status, data=data)
    if error.error_type == RESOURCE_EXISTS:
        return ResourceExistsError(error.message, status=status, data=data)
    return error
