"""
Configuration for Scout reporters and the upload pipeline.

Values come from CLI flags first and fall back to environment variables:

    ES_URL                     Elasticsearch URL
    ES_API_KEY                 Elasticsearch API key
    SCOUT_REPORT_OUTPUT_ROOT   Root directory for saved event logs
    SCOUT_DATA_STREAM          Target data stream name
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigError

DEFAULT_OUTPUT_ROOT = Path(".scout") / "reports"
DEFAULT_DATA_STREAM = "scout-test-events"
DEFAULT_TIMEOUT_MS = 30000

ENV_ES_URL = "ES_URL"
ENV_ES_API_KEY = "ES_API_KEY"
ENV_OUTPUT_ROOT = "SCOUT_REPORT_OUTPUT_ROOT"
ENV_DATA_STREAM = "SCOUT_DATA_STREAM"


def report_output_root() -> Path:
    """Root directory under which reporters save their event logs."""
    value = os.environ.get(ENV_OUTPUT_ROOT)
    return Path(value) if value else DEFAULT_OUTPUT_ROOT


@dataclass
class StoreConfig:
    """
    Connection settings for the remote document store.

    Attributes:
        url: Base URL of the Elasticsearch node
        api_key: Encoded API key sent as ``Authorization: ApiKey <key>``
        verify_certs: Verify TLS certificates of the node
        timeout_ms: Per-request timeout in milliseconds
    """
    url: str
    api_key: str | None = None
    verify_certs: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigError("Elasticsearch URL is required")
        if not self.url.startswith(("http://", "https://")):
            raise ConfigError(
                f"Elasticsearch URL must start with http:// or https://, got '{self.url}'"
            )
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {self.timeout_ms}")

    @classmethod
    def from_env(cls, **overrides) -> StoreConfig:
        """Build a config from ``ES_URL``/``ES_API_KEY``, with explicit overrides."""
        values = {
            "url": os.environ.get(ENV_ES_URL, ""),
            "api_key": os.environ.get(ENV_ES_API_KEY),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
