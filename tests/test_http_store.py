"""Tests for HTTPStoreClient against a local Elasticsearch stand-in."""

from __future__ import annotations

import json

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from scout.config import StoreConfig
from scout.store import (
    HTTPStoreClient,
    ResourceExistsError,
    StoreConnectionError,
    StoreError,
    create_store_client,
)


class FakeElasticsearch:
    """Just enough of the Elasticsearch REST API for the client."""

    def __init__(self):
        self.component_templates: dict[str, dict] = {}
        self.index_templates: dict[str, dict] = {}
        self.data_streams: dict[str, list[dict]] = {}
        self.requests: list[tuple[str, str]] = []
        self.auth_headers: list[str | None] = []

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append((request.method, request.path))
        self.auth_headers.append(request.headers.get("Authorization"))
        parts = [p for p in request.path.split("/") if p]

        if not parts:
            return web.json_response({"name": "node-1", "version": {"number": "8.13.0"}})
        if parts[0] == "_component_template":
            return await self._template(request, self.component_templates, parts[1])
        if parts[0] == "_index_template":
            return await self._template(request, self.index_templates, parts[1])
        if parts[0] == "_data_stream":
            return self._data_stream(request, parts[1])
        if parts[0] == "_bulk":
            return await self._bulk(request)
        if len(parts) == 2 and parts[1] == "_doc":
            self.data_streams.setdefault(parts[0], []).append(await request.json())
            return web.json_response({"result": "created"}, status=201)
        return _error(400, "illegal_argument_exception", f"no handler for {request.path}")

    async def _template(self, request, store, name):
        if request.method == "HEAD":
            return web.Response(status=200 if name in store else 404)
        store[name] = await request.json()
        return web.json_response({"acknowledged": True})

    def _data_stream(self, request, name):
        if request.method == "GET":
            if name not in self.data_streams:
                return _error(404, "index_not_found_exception", f"no such index [{name}]")
            return web.json_response({"data_streams": [{"name": name}]})
        if name in self.data_streams:
            return _error(400, "resource_already_exists_exception", f"data_stream [{name}] already exists")
        self.data_streams[name] = []
        return web.json_response({"acknowledged": True})

    async def _bulk(self, request):
        assert request.content_type == "application/x-ndjson"
        lines = (await request.text()).splitlines()
        items = []
        for action, doc in zip(lines[::2], lines[1::2]):
            document = json.loads(doc)
            if "bad" in document:
                items.append({"create": {"status": 400, "error": {"type": "mapper_parsing_exception"}}})
            else:
                index = json.loads(action)["create"]["_index"]
                self.data_streams.setdefault(index, []).append(document)
                items.append({"create": {"status": 201}})
        return web.json_response({"errors": any("error" in i["create"] for i in items), "items": items})


def _error(status: int, error_type: str, reason: str) -> web.Response:
    return web.json_response({"error": {"type": error_type, "reason": reason}, "status": status}, status=status)


@pytest_asyncio.fixture
async def es():
    fake = FakeElasticsearch()
    async with test_utils.TestServer(fake.app()) as server:
        fake.url = f"http://{server.host}:{server.port}"
        yield fake


@pytest_asyncio.fixture
async def client(es):
    async with HTTPStoreClient(StoreConfig(url=es.url, api_key="c2VjcmV0")) as client:
        yield client


@pytest.mark.asyncio
async def test_info_sends_api_key(es, client):
    info = await client.info()

    assert info["name"] == "node-1"
    assert es.auth_headers == ["ApiKey c2VjcmV0"]


@pytest.mark.asyncio
async def test_no_auth_header_without_key(es):
    async with HTTPStoreClient(StoreConfig(url=es.url)) as client:
        await client.info()

    assert es.auth_headers == [None]


@pytest.mark.asyncio
async def test_component_template_exists_and_put(es, client):
    assert await client.exists_component_template("mappings") is False

    await client.put_component_template("mappings", {"template": {"mappings": {}}})

    assert await client.exists_component_template("mappings") is True
    assert es.component_templates["mappings"] == {"template": {"mappings": {}}}


@pytest.mark.asyncio
async def test_index_template_exists_and_put(es, client):
    await client.put_index_template("events", {"index_patterns": ["events*"]})

    assert await client.exists_index_template("events") is True
    assert ("PUT", "/_index_template/events") in es.requests


@pytest.mark.asyncio
async def test_data_stream_lifecycle(es, client):
    assert await client.exists_data_stream("events") is False

    await client.create_data_stream("events")

    assert await client.exists_data_stream("events") is True


@pytest.mark.asyncio
async def test_create_existing_data_stream_raises(client):
    await client.create_data_stream("events")

    with pytest.raises(ResourceExistsError) as exc_info:
        await client.create_data_stream("events")

    assert exc_info.value.status == 400
    assert "already exists" in str(exc_info.value)


@pytest.mark.asyncio
async def test_other_errors_raise_store_error(client):
    with pytest.raises(StoreError) as exc_info:
        await client._request("GET", "/unknown/thing/here")

    assert not isinstance(exc_info.value, ResourceExistsError)
    assert exc_info.value.error_type == "illegal_argument_exception"


@pytest.mark.asyncio
async def test_index_single_document(es, client):
    await client.index("events", {"a": 1})

    assert es.data_streams["events"] == [{"a": 1}]


@pytest.mark.asyncio
async def test_bulk_reports_item_outcomes(es, client):
    stats = await client.bulk(
        ['{"a": 1}', '{"bad": true}', '{"a": 3}'],
        on_document=lambda doc: {"create": {"_index": "events"}},
    )

    assert (stats.total, stats.successful, stats.failed) == (3, 2, 1)
    assert es.data_streams["events"] == [{"a": 1}, {"a": 3}]


@pytest.mark.asyncio
async def test_request_before_connect_raises():
    client = HTTPStoreClient(StoreConfig(url="http://localhost:9200"))

    with pytest.raises(StoreConnectionError):
        await client.info()


@pytest.mark.asyncio
async def test_unreachable_store_raises_connection_error():
    async with create_store_client(StoreConfig(url="http://127.0.0.1:1", timeout_ms=2000)) as client:
        with pytest.raises(StoreConnectionError):
            await client.info()
