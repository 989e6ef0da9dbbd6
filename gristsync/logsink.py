"""Structured log events emitted by a sync run, and ready-made sinks."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class LogEvent:
    """One step of a sync run as seen by the caller."""
    message: str
    severity: Severity = Severity.INFO
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "severity": self.severity.value,
        }


Sink = Callable[[LogEvent], None]

_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


def logging_sink(target: Optional[logging.Logger] = None) -> Sink:
    """Sink that forwards events to a standard logger."""
    target = target or logging.getLogger("gristsync.sync")

    def sink(event: LogEvent) -> None:
        target.log(_LEVELS[event.severity], event.message)

    return sink


def collecting_sink() -> Tuple[Sink, List[LogEvent]]:
    """Sink that keeps every event in a list. Returns (sink, events)."""
    events: List[LogEvent] = []
    return events.append, events


class EventEmitter:
    """Wraps an optional sink so callers can emit unconditionally."""

    def __init__(self, sink: Optional[Sink] = None):
        self.sink = sink

    def emit(self, message: str, severity: Severity = Severity.INFO) -> None:
        if self.sink is None:
            return
        self.sink(LogEvent(message=message, severity=severity))

    def info(self, message: str) -> None:
        self.emit(message, Severity.INFO)

    def success(self, message: str) -> None:
        self.emit(message, Severity.SUCCESS)

    def warning(self, message: str) -> None:
        self.emit(message, Severity.WARNING)

    def error(self, message: str) -> None:
        self.emit(message, Severity.ERROR)
