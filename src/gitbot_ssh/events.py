"""
Structured resolution events.

Every lookup can report what it did as an Event. Events go to any
number of sinks: an in-memory EventCollector, used by tests and by the
CLI's ``--events`` flag, and a JSONL file, used by ``--events-file``.

Event types:
- RESOLVE: ssh_config settings merged for a host
- CREDENTIAL: Credential chosen for a user and host
- ERROR: Resolution failed; data is the error's to_dict()

Each JSONL line is ``{"event_type": ..., "timestamp": ..., "data": {...}}``
with the timestamp in Unix milliseconds.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any, Iterator, Protocol


class EventType(str, Enum):
    """Kinds of resolution event."""
    RESOLVE = "RESOLVE"
    CREDENTIAL = "CREDENTIAL"
    ERROR = "ERROR"


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class Event:
    """One resolution event. ``event_type`` is stored as the plain string."""
    event_type: str
    timestamp: float = field(default_factory=_now_ms)
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Raises ValueError for unknown types
        object.__setattr__(self, "event_type", EventType(self.event_type).value)
        if self.timestamp <= 0:
            raise ValueError(f"Event timestamp must be positive, got {self.timestamp}")

    @property
    def type(self) -> EventType:
        return EventType(self.event_type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }

    def to_json(self) -> str:
        # Paths and other non-JSON values are written as strings
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Event":
        try:
            event_type, timestamp = raw["event_type"], raw["timestamp"]
        except KeyError as e:
            raise ValueError(f"Event is missing field {e}") from e
        return cls(event_type=event_type, timestamp=timestamp, data=raw.get("data") or {})

    @classmethod
    def from_json(cls, line: str) -> "Event":
        return cls.from_dict(json.loads(line))


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class EventCollector:
    """Keeps events in memory."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def emit(self, event: Event) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[Event]:
        """Return a copy of the collected events."""
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()

    def get_by_type(self, event_type: str | EventType) -> list[Event]:
        """Get all events of a specific type."""
        wanted = EventType(event_type).value
        return [e for e in self._events if e.event_type == wanted]


class JSONLEventSink:
    """
    Appends events to a JSONL file.

    The file (and its parent directory) is created when the sink is
    constructed, so an empty run still leaves an empty file behind.
    Each line is flushed as soon as it is written.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file: IO[str] | None = open(self.path, "a", encoding="utf-8")

    @property
    def closed(self) -> bool:
        return self._file is None

    def emit(self, event: Event) -> None:
        if self._file is None:
            raise ValueError(f"Event file {self.path} is closed")
        self._file.write(event.to_json() + "\n")
        self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


class EventEmitter:
    """
    Builds events and hands them to every configured sink.

    Usage:
        collector = EventCollector()
        with EventEmitter(collector=collector, jsonl_path="events.jsonl") as emitter:
            resolver = CredentialResolver(emitter=emitter)
            resolver.find_for_user_and_host("git", "github.com")
    """

    def __init__(
        self,
        collector: EventCollector | None = None,
        jsonl_path: Path | str | None = None,
    ) -> None:
        self._sinks: list[EventSink] = []
        self._jsonl: JSONLEventSink | None = None

        if collector is not None:
            self._sinks.append(collector)
        if jsonl_path:
            self._jsonl = JSONLEventSink(jsonl_path)
            self._sinks.append(self._jsonl)

    def emit(self, event_type: str | EventType, **data: Any) -> Event:
        """Create an event from ``data`` and send it to every sink."""
        event = Event(event_type=EventType(event_type).value, data=data)
        for sink in self._sinks:
            sink.emit(event)
        return event

    def close(self) -> None:
        """Close the JSONL file, if any. Collected events stay available."""
        if self._jsonl is not None:
            self._jsonl.close()

    def __enter__(self) -> "EventEmitter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def iter_jsonl_events(path: Path | str) -> Iterator[Event]:
    """Yield events from a JSONL file, skipping blank lines."""
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            if line.strip():
                yield Event.from_json(line)


def read_jsonl_events(path: Path | str) -> list[Event]:
    """
    Read all events from a JSONL file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If a line is not a valid event
    """
    return list(iter_jsonl_events(path))
