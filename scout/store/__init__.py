"""
Remote document store client.

This package provides a narrow async client for an Elasticsearch-
compatible store: schema object management (component templates, index
templates, data streams) and single/bulk document ingestion.

Usage:
    from scout.config import StoreConfig
    from scout.store import create_store_client

    config = StoreConfig(url="https://localhost:9200", api_key="...")

    async with create_store_client(config) as client:
        await client.info()
        stats = await client.bulk(
            ['{"a": 1}', '{"a": 2}'],
            on_document=lambda doc: {"create": {"_index": "my-stream"}},
        )
        print(stats.total, stats.failed)
"""

# Factory
from .factory import create_store_client

# Clients
from .base import BaseStoreClient
from .http import HTTPStoreClient

# Models
from .models import (
    BulkItemResult,
    BulkStats,
    ResourceExistsError,
    StoreConnectionError,
    StoreError,
)

__all__ = [
    # Factory
    "create_store_client",
    # Clients
    "BaseStoreClient",
    "HTTPStoreClient",
    # Models
    "BulkItemResult",
    "BulkStats",
    "ResourceExistsError",
    "StoreConnectionError",
    "StoreError",
]
