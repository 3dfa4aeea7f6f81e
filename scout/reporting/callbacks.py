"""
Reporter for callback-style test runners.

The runner calls reporter methods directly, playwright style:

    on_begin(config, suite)
    on_test_begin(test, result)
    on_step_begin(test, result, step)
    on_step_end(test, result, step)
    on_test_end(test, result)
    on_error(error)
    on_end(result)

Payloads are duck-typed. Tests expose ``title``, ``title_path()``,
``parent`` (with ``title_path()`` and ``type``), ``tags``,
``annotations`` and ``expected_status``; results expose ``status``,
``duration``, ``start_time`` and ``error``; steps expose ``title_path()``,
``category``, ``duration``, ``start_time`` and ``error``.
"""

from __future__ import annotations

import functools
from datetime import datetime, timezone
from typing import Any

from .base import BaseReporter
from .event import (
    UNKNOWN_SUITE_TITLE,
    ErrorInfo,
    EventAction,
    StepInfo,
    SuiteInfo,
    TestInfo,
    get_test_id_for_title,
)


def _guarded(method):
    """Keep reporter failures out of the runner."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        self._safely(method.__name__, method, self, *args, **kwargs)
    return wrapper


class CallbackReporter(BaseReporter):
    """
    Scout reporter for callback-style runners.

    Example:
        reporter = CallbackReporter(output_path="reports")
        reporter.on_begin(config, root_suite)
        ...
        reporter.on_end(full_result)  # saves and concludes the report
    """

    def prints_to_stdio(self) -> bool:
        return True

    @_guarded
    def on_begin(self, config: Any = None, suite: Any = None) -> None:
        self._emit(EventAction.RUN_BEGIN)

    @_guarded
    def on_test_begin(self, test: Any, result: Any = None) -> None:
        self._emit(
            EventAction.TEST_BEGIN,
            suite=_suite_info(test),
            test=_test_info(test),
            timestamp=_timestamp(getattr(result, "start_time", None)),
        )

    @_guarded
    def on_step_begin(self, test: Any, result: Any, step: Any) -> None:
        self._emit(
            EventAction.STEP_BEGIN,
            suite=_suite_info(test),
            test=_test_info(test, step=_step_info(step)),
            timestamp=_timestamp(getattr(step, "start_time", None)),
        )

    @_guarded
    def on_step_end(self, test: Any, result: Any, step: Any) -> None:
        self._emit(
            EventAction.STEP_END,
            suite=_suite_info(test),
            test=_test_info(test, step=_step_info(step, duration=getattr(step, "duration", None))),
            error=ErrorInfo.from_exception(getattr(step, "error", None)),
        )

    @_guarded
    def on_test_end(self, test: Any, result: Any) -> None:
        self._emit(
            EventAction.TEST_END,
            suite=_suite_info(test),
            test=_test_info(
                test,
                status=_str_or_none(getattr(result, "status", None)),
                duration=getattr(result, "duration", None),
            ),
            error=ErrorInfo.from_exception(getattr(result, "error", None)),
        )

    @_guarded
    def on_error(self, error: Any) -> None:
        self._emit(EventAction.ERROR, error=ErrorInfo.from_exception(error))

    @_guarded
    def on_end(self, result: Any) -> None:
        try:
            self._emit(
                EventAction.RUN_END,
                run_status=_str_or_none(getattr(result, "status", None)),
                run_duration=getattr(result, "duration", None),
            )
        finally:
            self._finish()

    async def on_exit(self) -> None:
        pass


def _suite_info(test: Any) -> SuiteInfo:
    parent = getattr(test, "parent", None)
    if parent is None:
        return SuiteInfo(title=UNKNOWN_SUITE_TITLE, type="suite")
    title = _join_title_path(parent) or UNKNOWN_SUITE_TITLE
    return SuiteInfo(title=title, type=str(getattr(parent, "type", None) or "suite"))


def _test_info(
    test: Any,
    step: StepInfo | None = None,
    status: str | None = None,
    duration: float | None = None,
) -> TestInfo:
    title = str(getattr(test, "title", ""))
    return TestInfo(
        id=get_test_id_for_title(_join_title_path(test) or title),
        title=title,
        tags=[str(tag) for tag in getattr(test, "tags", None) or []],
        annotations=[_annotation(a) for a in getattr(test, "annotations", None) or []],
        expected_status=_str_or_none(getattr(test, "expected_status", None)),
        status=status,
        duration=duration,
        step=step,
    )


def _step_info(step: Any, duration: float | None = None) -> StepInfo:
    return StepInfo(
        title=_join_title_path(step) or str(getattr(step, "title", "")),
        category=_str_or_none(getattr(step, "category", None)),
        duration=duration,
    )


def _annotation(annotation: Any) -> dict[str, Any]:
    if isinstance(annotation, dict):
        return dict(annotation)
    result: dict[str, Any] = {}
    for key in ("type", "description"):
        value = getattr(annotation, key, None)
        if value is not None:
            result[key] = str(value)
    return result


def _join_title_path(node: Any) -> str:
    """Join a title path with spaces, keeping empty segments (a root suite yields a leading space)."""
    title_path = getattr(node, "title_path", None)
    if not callable(title_path):
        return ""
    return " ".join(str(part) for part in title_path())


def _timestamp(value: Any) -> datetime | None:
    """Accept runner timestamps as datetimes or epoch seconds."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)
