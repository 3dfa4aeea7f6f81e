"""
Test event reporting.

This package records structured events for test runs and saves them as
newline-delimited JSON event logs.

Features:
    - Canonical event model (run, suite, test, step, hook, error events)
    - Deterministic test IDs derived from full test titles
    - Per-run event buffer with NDJSON persistence
    - Adapters for event-emitter (mocha style) and callback (playwright
      style) test runners

Usage:
    from scout.reporting import EmitterReporter

    reporter = EmitterReporter(runner, output_path="reports")
    runner.run()

    # On 'end', events are saved to reports/scout-<run id>/events.ndjson
    print(reporter.last_saved_path)
"""

# Models
from .event import (
    ErrorInfo,
    Event,
    EventAction,
    StepInfo,
    SuiteInfo,
    TestInfo,
    TestRunInfo,
    generate_test_run_id,
    get_test_id_for_title,
)
from .environment import collect_environment_metadata, environment_metadata

# Report buffer
from .report import EVENT_LOG_FILENAME, Report, load_events

# Reporters
from .base import BaseReporter
from .callbacks import CallbackReporter
from .emitter import EmitterReporter, RunnerEvent

__all__ = [
    # Models
    "ErrorInfo",
    "Event",
    "EventAction",
    "StepInfo",
    "SuiteInfo",
    "TestInfo",
    "TestRunInfo",
    "generate_test_run_id",
    "get_test_id_for_title",
    "collect_environment_metadata",
    "environment_metadata",
    # Report buffer
    "EVENT_LOG_FILENAME",
    "Report",
    "load_events",
    # Reporters
    "BaseReporter",
    "CallbackReporter",
    "EmitterReporter",
    "RunnerEvent",
]
