"""
Reporter for event-emitter style test runners.

The runner exposes ``on(event_name, listener)`` and aggregate ``stats``
(``failures``, ``duration``), and emits named lifecycle events with the
suite/test/hook object as payload, mocha style:

    start, suite, hook, hook end, test, test end, pending, retry,
    suite end, end
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from rich.console import Console

from .base import BaseReporter, extract_tags
from .event import (
    UNKNOWN_SUITE_TITLE,
    ErrorInfo,
    EventAction,
    StepInfo,
    SuiteInfo,
    TestInfo,
    get_test_id_for_title,
)


class RunnerEvent(str, Enum):
    """Lifecycle events the reporter subscribes to."""
    START = "start"
    END = "end"
    SUITE = "suite"
    SUITE_END = "suite end"
    TEST = "test"
    TEST_END = "test end"
    HOOK = "hook"
    HOOK_END = "hook end"
    PENDING = "pending"
    RETRY = "retry"


class EmitterReporter(BaseReporter):
    """
    Scout reporter for event-emitter runners.

    Subscribes to every ``RunnerEvent`` at construction; the run is saved
    and the report concluded when the runner emits ``end``.

    Example:
        reporter = EmitterReporter(runner, output_path="reports")
        runner.run()
        print(reporter.last_saved_path)
    """

    def __init__(
        self,
        runner: Any,
        output_path: str | Path | None = None,
        log: logging.Logger | None = None,
        console: Console | None = None,
    ):
        super().__init__(output_path=output_path, log=log, console=console)
        self.runner = runner

        self.handlers: dict[RunnerEvent, Callable[..., None]] = {
            RunnerEvent.START: self.on_run_start,
            RunnerEvent.END: self.on_run_end,
            RunnerEvent.SUITE: self.on_suite_start,
            RunnerEvent.SUITE_END: self.on_suite_end,
            RunnerEvent.TEST: self.on_test_start,
            RunnerEvent.TEST_END: self.on_test_end,
            RunnerEvent.HOOK: self.on_hook_start,
            RunnerEvent.HOOK_END: self.on_hook_end,
            RunnerEvent.PENDING: self.on_test_pending,
            RunnerEvent.RETRY: self.on_test_retry,
        }
        for event_name, handler in self.handlers.items():
            runner.on(event_name.value, self._listener(event_name, handler))

    def _listener(self, event_name: RunnerEvent, handler: Callable[..., None]) -> Callable[..., None]:
        def listener(*args: Any) -> None:
            self._safely(event_name.value, handler, *args)
        return listener

    # ── Run ────────────────────────────────────────────────────────────────

    def on_run_start(self, *_: Any) -> None:
        """Root suite execution began."""
        self._emit(EventAction.RUN_BEGIN)

    def on_run_end(self, *_: Any) -> None:
        """Root suite execution ended: record the outcome, then save and conclude."""
        stats = getattr(self.runner, "stats", None)
        failures = getattr(stats, "failures", None)
        try:
            self._emit(
                EventAction.RUN_END,
                run_status="passed" if failures == 0 else "failed",
                run_duration=getattr(stats, "duration", None) or 0,
            )
        finally:
            self._finish()

    # ── Suites ─────────────────────────────────────────────────────────────

    def on_suite_start(self, suite: Any) -> None:
        self._emit(EventAction.SUITE_BEGIN, suite=_suite_info(suite))

    def on_suite_end(self, suite: Any) -> None:
        self._emit(EventAction.SUITE_END, suite=_suite_info(suite))

    # ── Tests ──────────────────────────────────────────────────────────────

    def on_test_start(self, test: Any) -> None:
        self._emit(
            EventAction.TEST_BEGIN,
            suite=_suite_info(getattr(test, "parent", None)),
            test=_test_info(test),
        )

    def on_test_end(self, test: Any) -> None:
        self._emit(
            EventAction.TEST_END,
            suite=_suite_info(getattr(test, "parent", None)),
            test=_test_info(
                test,
                status=_test_status(test),
                duration=getattr(test, "duration", None),
            ),
            error=ErrorInfo.from_exception(getattr(test, "err", None)),
        )

    def on_test_pending(self, test: Any) -> None:
        self._emit(
            EventAction.PENDING,
            suite=_suite_info(getattr(test, "parent", None)),
            test=_test_info(test, status="pending"),
        )

    def on_test_retry(self, test: Any, err: Any = None) -> None:
        self._emit(
            EventAction.RETRY,
            suite=_suite_info(getattr(test, "parent", None)),
            test=_test_info(test, duration=getattr(test, "duration", None)),
            error=ErrorInfo.from_exception(err if err is not None else getattr(test, "err", None)),
        )

    # ── Hooks ──────────────────────────────────────────────────────────────

    def on_hook_start(self, hook: Any) -> None:
        self._emit(
            EventAction.HOOK_BEGIN,
            suite=_suite_info(getattr(hook, "parent", None)),
            test=_hook_info(hook),
        )

    def on_hook_end(self, hook: Any) -> None:
        self._emit(
            EventAction.HOOK_END,
            suite=_suite_info(getattr(hook, "parent", None)),
            test=_hook_info(hook, duration=getattr(hook, "duration", None)),
            error=ErrorInfo.from_exception(getattr(hook, "err", None)),
        )


def _test_status(test: Any) -> str:
    is_passed = getattr(test, "is_passed", None)
    if callable(is_passed):
        return "passed" if is_passed() else "failed"
    return "passed" if getattr(test, "state", None) == "passed" else "failed"


def _suite_info(suite: Any) -> SuiteInfo:
    if suite is None:
        return SuiteInfo(title=UNKNOWN_SUITE_TITLE, type="suite")
    title = _full_title(suite) or UNKNOWN_SUITE_TITLE
    return SuiteInfo(title=title, type="root" if getattr(suite, "root", False) else "suite")


def _test_info(test: Any, status: str | None = None, duration: float | None = None) -> TestInfo:
    title = str(getattr(test, "title", ""))
    return TestInfo(
        id=get_test_id_for_title(_full_title(test) or title),
        title=title,
        tags=extract_tags(title),
        status=status,
        duration=duration,
    )


def _hook_info(hook: Any, duration: float | None = None) -> TestInfo:
    """Hooks are recorded as a step of the test (or suite) they run for."""
    current = getattr(hook, "ctx_test", None) or getattr(hook, "parent", None)
    owner_title = _full_title(current) or UNKNOWN_SUITE_TITLE
    return TestInfo(
        id=get_test_id_for_title(owner_title),
        title=str(getattr(current, "title", "") or owner_title),
        step=StepInfo(
            title=str(getattr(hook, "title", "")),
            category="hook",
            duration=duration,
        ),
    )


def _full_title(node: Any) -> str:
    if node is None:
        return ""
    full_title = getattr(node, "full_title", None)
    if callable(full_title):
        return str(full_title() or "")
    return str(getattr(node, "title", "") or "")
