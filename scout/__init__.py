"""
Scout - Test Event Reporting and Upload

This package records structured events for test runs and ships them to
an Elasticsearch data stream.

Subpackages:
    - reporting: Event model, report buffer and test-runner reporters
    - store: Async client for the remote document store
    - persistence: Data stream schema bootstrap and event log upload

Usage:
    from scout import EmitterReporter, ReportDataStream, StoreConfig, create_store_client

    # While tests run
    reporter = EmitterReporter(runner)
    runner.run()  # events saved to .scout/reports/scout-<run id>/events.ndjson

    # Later, from CI
    async with create_store_client(StoreConfig.from_env()) as client:
        stream = ReportDataStream(client)
        await stream.create_if_missing()
        stats = await stream.add_events_from_file(reporter.last_saved_path)
"""

__version__ = "0.1.0"

from .config import StoreConfig
from .errors import ConfigError, ReportConcludedError, ScoutError

# Re-export reporting for convenience
from .reporting import (
    # Models
    Event,
    EventAction,
    ErrorInfo,
    StepInfo,
    SuiteInfo,
    TestInfo,
    TestRunInfo,
    generate_test_run_id,
    get_test_id_for_title,
    # Report buffer
    Report,
    load_events,
    # Reporters
    BaseReporter,
    CallbackReporter,
    EmitterReporter,
    RunnerEvent,
)

# Re-export store for convenience
from .store import (
    BaseStoreClient,
    BulkStats,
    HTTPStoreClient,
    ResourceExistsError,
    StoreConnectionError,
    StoreError,
    create_store_client,
)

# Re-export persistence for convenience
from .persistence import ReportDataStream

__all__ = [
    "__version__",
    # Config & errors
    "StoreConfig",
    "ConfigError",
    "ReportConcludedError",
    "ScoutError",
    # Reporting
    "Event",
    "EventAction",
    "ErrorInfo",
    "StepInfo",
    "SuiteInfo",
    "TestInfo",
    "TestRunInfo",
    "generate_test_run_id",
    "get_test_id_for_title",
    "Report",
    "load_events",
    "BaseReporter",
    "CallbackReporter",
    "EmitterReporter",
    "RunnerEvent",
    # Store
    "BaseStoreClient",
    "BulkStats",
    "HTTPStoreClient",
    "ResourceExistsError",
    "StoreConnectionError",
    "StoreError",
    "create_store_client",
    # Persistence
    "ReportDataStream",
]
