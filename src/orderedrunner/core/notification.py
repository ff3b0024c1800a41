"""Notification sinks receiving unit lifecycle events.

Units running in parallel report to the same notifier, so every
implementation must be safe to call from several threads at once.
"""

import itertools
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.markup import escape

from orderedrunner.core.models import RunSummary
from orderedrunner.exceptions import ConfigurationError, UnitFailure


class EventKind(str, Enum):
    """Kinds of events a notifier receives."""

    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERRORED = "errored"
    IGNORED = "ignored"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class NotificationEvent:
    """A single recorded event."""

    kind: EventKind
    unit_id: str
    sequence: int
    timestamp_ns: int
    cause: Optional[BaseException] = None
    message: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "kind": self.kind.value,
            "unit_id": self.unit_id,
            "sequence": self.sequence,
            "timestamp_ns": self.timestamp_ns,
            "cause": repr(self.cause) if self.cause is not None else None,
            "message": self.message,
        }


class RunNotifier(ABC):
    """Abstract sink for unit lifecycle events."""

    @abstractmethod
    def unit_started(self, unit_id: str) -> None:
        pass

    @abstractmethod
    def unit_succeeded(self, unit_id: str) -> None:
        pass

    @abstractmethod
    def unit_failed(self, unit_id: str, cause: BaseException) -> None:
        """An assertion in the test body failed."""
        pass

    @abstractmethod
    def unit_errored(self, unit_id: str, cause: BaseException) -> None:
        """The test body raised something other than an assertion error."""
        pass

    @abstractmethod
    def unit_ignored(self, unit_id: str, reason: str = "") -> None:
        pass

    @abstractmethod
    def configuration_error(self, method_name: str, error: ConfigurationError) -> None:
        """A method could not be run because it is declared incorrectly."""
        pass


class RecordingNotifier(RunNotifier):
    """Records every event in arrival order.

    Each event gets a sequence number from a counter shared by all threads,
    so ``sequence`` totally orders the events of one run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counter = itertools.count()
        self.events: list[NotificationEvent] = []

    def _record(
        self,
        kind: EventKind,
        unit_id: str,
        cause: Optional[BaseException] = None,
        message: str = "",
    ) -> NotificationEvent:
        with self._lock:
            event = NotificationEvent(
                kind=kind,
                unit_id=unit_id,
                sequence=next(self._counter),
                timestamp_ns=time.monotonic_ns(),
                cause=cause,
                message=message,
            )
            self.events.append(event)
        return event

    def unit_started(self, unit_id: str) -> None:
        self._record(EventKind.STARTED, unit_id)

    def unit_succeeded(self, unit_id: str) -> None:
        self._record(EventKind.SUCCEEDED, unit_id)

    def unit_failed(self, unit_id: str, cause: BaseException) -> None:
        self._record(EventKind.FAILED, unit_id, cause=cause)

    def unit_errored(self, unit_id: str, cause: BaseException) -> None:
        self._record(EventKind.ERRORED, unit_id, cause=cause)

    def unit_ignored(self, unit_id: str, reason: str = "") -> None:
        self._record(EventKind.IGNORED, unit_id, message=reason)

    def configuration_error(self, method_name: str, error: ConfigurationError) -> None:
        self._record(EventKind.CONFIGURATION_ERROR, method_name, cause=error, message=str(error))

    def snapshot(self) -> list[NotificationEvent]:
        """A copy of the events recorded so far."""
        with self._lock:
            return list(self.events)

    def of_kind(self, kind: EventKind) -> list[NotificationEvent]:
        return [e for e in self.snapshot() if e.kind == kind]

    def for_unit(self, unit_id: str) -> list[NotificationEvent]:
        return [e for e in self.snapshot() if e.unit_id == unit_id]

    @property
    def failures(self) -> list[UnitFailure]:
        """Failed and errored units with their original causes."""
        return [
            UnitFailure(e.unit_id, e.cause)
            for e in self.snapshot()
            if e.kind in (EventKind.FAILED, EventKind.ERRORED)
        ]

    def summary(self, duration_ms: int = 0) -> RunSummary:
        """Aggregate the recorded events."""
        summary = RunSummary(duration_ms=duration_ms)
        for event in self.snapshot():
            if event.kind == EventKind.SUCCEEDED:
                summary.passed += 1
            elif event.kind == EventKind.FAILED:
                summary.failed += 1
            elif event.kind == EventKind.ERRORED:
                summary.errors += 1
            elif event.kind == EventKind.IGNORED:
                summary.ignored += 1
            elif event.kind == EventKind.CONFIGURATION_ERROR:
                summary.configuration_errors.append(event.message)
        return summary


class ConsoleNotifier(RecordingNotifier):
    """Records events and prints them to a rich console."""

    STYLES = {
        EventKind.STARTED: ("dim", "RUN "),
        EventKind.SUCCEEDED: ("green", "PASS"),
        EventKind.FAILED: ("red", "FAIL"),
        EventKind.ERRORED: ("red", "ERR "),
        EventKind.IGNORED: ("yellow", "SKIP"),
        EventKind.CONFIGURATION_ERROR: ("bold red", "CONF"),
    }

    def __init__(self, console: Optional[Console] = None, show_started: bool = False):
        super().__init__()
        self.console = console or Console()
        self.show_started = show_started
        self._print_lock = threading.Lock()

    def _record(
        self,
        kind: EventKind,
        unit_id: str,
        cause: Optional[BaseException] = None,
        message: str = "",
    ) -> NotificationEvent:
        event = super()._record(kind, unit_id, cause=cause, message=message)
        if kind == EventKind.STARTED and not self.show_started:
            return event

        style, label = self.STYLES[kind]
        line = f"[{style}]{label}[/{style}] {escape(unit_id)}"
        if kind in (EventKind.FAILED, EventKind.ERRORED) and cause is not None:
            line += f" [dim]{type(cause).__name__}: {escape(str(cause))}[/dim]"
        elif kind == EventKind.CONFIGURATION_ERROR:
            line += f" [dim]{escape(message)}[/dim]"
        elif kind == EventKind.IGNORED and message:
            line += f" [dim]({escape(message)})[/dim]"

        with self._print_lock:
            self.console.print(line, highlight=False)
        return event
