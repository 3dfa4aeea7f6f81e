"""
In-memory event buffer for a single test run.

The Report collects events in emission order, saves them as
newline-delimited JSON and releases them once concluded.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator

from ..errors import ReportConcludedError
from .event import Event

logger = logging.getLogger(__name__)

EVENT_LOG_FILENAME = "events.ndjson"


class Report:
    """
    Append-only log of events for one run.

    Example:
        report = Report()
        report.log_event(event)

        try:
            report.save("reports/scout-abc123")
        finally:
            report.conclude()
    """

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger
        self._events: list[Event] = []
        self._concluded = False

    @property
    def events(self) -> tuple[Event, ...]:
        """Buffered events, in emission order."""
        return tuple(self._events)

    @property
    def concluded(self) -> bool:
        return self._concluded

    def log_event(self, event: Event) -> None:
        """
        Append an event to the buffer.

        Never raises: the report instruments a test run and must not
        break it.
        """
        if self._concluded:
            self.log.warning(f"Dropping '{event.action.value}' event logged after report was concluded")
            return
        self._events.append(event)

    def save(self, root_path: str | Path) -> Path:
        """
        Write all buffered events to ``<root_path>/events.ndjson``.

        Args:
            root_path: Directory for this run's output (created if missing)

        Returns:
            Path of the written event log

        Raises:
            ReportConcludedError: If the report was already concluded
            OSError: If the destination is not writable
        """
        if self._concluded:
            raise ReportConcludedError("Report has been concluded, its events were released")

        root = Path(root_path)
        root.mkdir(parents=True, exist_ok=True)
        path = root / EVENT_LOG_FILENAME

        written = 0
        with open(path, "w", encoding="utf-8") as f:
            for event in self._events:
                line = self._serialize(event)
                if line is None:
                    continue
                f.write(line)
                f.write("\n")
                written += 1

        self.log.info(f"Saved {written} events to {path}")
        return path

    def conclude(self) -> None:
        """Release buffered events. Safe to call more than once."""
        if self._concluded:
            return
        self.log.debug(f"Concluding report with {len(self._events)} events")
        self._events.clear()
        self._concluded = True

    def _serialize(self, event: Event) -> str | None:
        """Serialize one event, degrading to stringified fields, or None to drop it."""
        try:
            return json.dumps(event.to_dict(), default=_safe_default, ensure_ascii=False)
        except (TypeError, ValueError, RecursionError) as e:
            self.log.warning(f"Dropping unserializable '{event.action.value}' event: {e}")
            return None

    def __len__(self) -> int:
        return len(self._events)

    def __enter__(self) -> Report:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.conclude()


def load_events(path: str | Path) -> Iterator[Event]:
    """
    Read events back from a saved event log, one line at a time.

    Args:
        path: Path to a newline-delimited JSON event log

    Yields:
        Events in file order (blank lines are skipped)
    """
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield Event.from_dict(json.loads(line))


def _safe_default(value: Any) -> Any:
    """JSON fallback for values the encoder doesn't know: stringify them."""
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)
