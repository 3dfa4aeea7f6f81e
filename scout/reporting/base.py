"""
Base class for Scout reporters.

A reporter translates one test runner's lifecycle callbacks into
canonical events. This module holds what every runner adapter shares:
run identity, the report buffer, event construction and the
save-then-conclude step at run end.
"""

from __future__ import annotations

import logging
import re
from abc import ABC
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console

from ..config import report_output_root
from .environment import environment_metadata
from .event import (
    ErrorInfo,
    Event,
    EventAction,
    SuiteInfo,
    TestInfo,
    TestRunInfo,
    generate_test_run_id,
)
from .report import Report

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"(?<!\S)@[\w:.-]+")


class BaseReporter(ABC):
    """
    Shared behaviour for runner adapters.

    Args:
        output_path: Root directory for saved reports (defaults to
            ``SCOUT_REPORT_OUTPUT_ROOT`` or ``.scout/reports``)
        log: Logger for reporter diagnostics
        console: Console the run ID is announced on
    """

    def __init__(
        self,
        output_path: str | Path | None = None,
        log: logging.Logger | None = None,
        console: Console | None = None,
    ):
        self.log = log or logger
        self.console = console or Console()
        self._output_path = Path(output_path) if output_path else None
        self.run_id = generate_test_run_id()
        self.console.print(f"Scout test run ID: {self.run_id}")
        self.report = Report(self.log)
        self.last_saved_path: Path | None = None

    @property
    def report_root_path(self) -> Path:
        """Root path of this reporter's output."""
        root = self._output_path or report_output_root()
        return root / f"scout-{self.run_id}"

    def _emit(
        self,
        action: EventAction,
        *,
        suite: SuiteInfo | None = None,
        test: TestInfo | None = None,
        error: ErrorInfo | None = None,
        run_status: str | None = None,
        run_duration: float | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """Build an event for this run and append it to the report."""
        kwargs: dict[str, Any] = {}
        if timestamp is not None:
            kwargs["timestamp"] = timestamp
        self.report.log_event(Event(
            action=action,
            run=TestRunInfo(id=self.run_id, status=run_status, duration=run_duration),
            environment=environment_metadata(),
            suite=suite,
            test=test,
            error=error,
            **kwargs,
        ))

    def _finish(self) -> None:
        """Save the report and release it, whatever happens while saving."""
        try:
            self.last_saved_path = self.report.save(self.report_root_path)
        except OSError as e:
            self.log.error(f"Failed to save Scout report to {self.report_root_path}: {e}")
        finally:
            self.report.conclude()

    def _safely(self, handler_name: str, fn, *args, **kwargs) -> None:
        """Run a translation step; instrumentation errors are logged, never raised."""
        try:
            fn(*args, **kwargs)
        except Exception as e:
            self.log.warning(
                f"Scout reporter failed to handle '{handler_name}': {type(e).__name__}: {e}"
            )


def extract_tags(title: str) -> list[str]:
    """Collect ``@tag`` tokens from a test title, in order of appearance."""
    return _TAG_PATTERN.findall(title or "")
