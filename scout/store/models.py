"""
Store client models: errors, bulk results and statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class StoreError(Exception):
    """A request to the document store failed."""

    def __init__(self, message: str, status: int | None = None, data: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @property
    def error_type(self) -> str | None:
        """The store's error type (e.g. ``resource_already_exists_exception``), if known."""
        if isinstance(self.data, dict):
            error = self.data.get("error")
            if isinstance(error, dict):
                return error.get("type")
        return None


class StoreConnectionError(StoreError):
    """The store could not be reached."""


class ResourceExistsError(StoreError):
    """A create request hit a resource that already exists."""


@dataclass
class BulkItemResult:
    """Outcome of one document in a bulk request."""
    status: int
    error: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300

    @property
    def retryable(self) -> bool:
        return self.status == 429


@dataclass
class BulkStats:
    """
    Summary of a bulk ingestion.

    ``failed`` counts documents the store rejected (ingestion outcome),
    not failed tests.
    """
    total: int = 0
    successful: int = 0
    failed: int = 0
    retried: int = 0
    time: float = 0.0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "retried": self.retried,
            "time": self.time,
        }
