"""
Store client factory.
"""

from __future__ import annotations

from ..config import StoreConfig
from .base import BaseStoreClient
from .http import HTTPStoreClient


def create_store_client(config: StoreConfig) -> BaseStoreClient:
    """
    Create a store client from a StoreConfig.

    Example:
        config = StoreConfig.from_env(verify_certs=True)
        async with create_store_client(config) as client:
            await client.info()
    """
    return HTTPStoreClient(config)
