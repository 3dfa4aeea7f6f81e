"""
Event log persistence in the remote document store.

Usage:
    from scout.persistence import ReportDataStream
    from scout.store import create_store_client

    async with create_store_client(config) as client:
        stream = ReportDataStream(client)
        await stream.create_if_missing()
        stats = await stream.add_events_from_file("events.ndjson")
"""

from .data_stream import ReportDataStream
from .templates import (
    COMPONENT_TEMPLATES,
    ComponentTemplate,
    IndexTemplate,
    build_index_template,
)

__all__ = [
    "ReportDataStream",
    "COMPONENT_TEMPLATES",
    "ComponentTemplate",
    "IndexTemplate",
    "build_index_template",
]
