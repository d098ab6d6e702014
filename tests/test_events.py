"""
Tests for the event system.

Tests cover:
- Event validation and JSON serialisation
- EventCollector filtering
- JSONL output via EventEmitter and reading it back
"""
from __future__ import annotations

from pathlib import Path

import pytest

from gitbot_ssh.events import (
    Event,
    EventCollector,
    EventEmitter,
    EventType,
    JSONLEventSink,
    iter_jsonl_events,
    read_jsonl_events,
)


class TestEvent:
    """Test Event records."""

    def test_invalid_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            Event(event_type="CONNECT")

    def test_enum_type_stored_as_string(self) -> None:
        event = Event(event_type=EventType.ERROR)
        assert event.event_type == "ERROR"
        assert event.type is EventType.ERROR

    def test_non_positive_timestamp_rejected(self) -> None:
        with pytest.raises(ValueError, match="timestamp"):
            Event(event_type="RESOLVE", timestamp=0)

    def test_json_round_trip(self) -> None:
        event = Event(event_type="RESOLVE", data={"host": "github.com", "keys": ["user"]})
        restored = Event.from_json(event.to_json())

        assert restored == event

    def test_non_json_values_are_stringified(self) -> None:
        event = Event(event_type="CREDENTIAL", data={"path": Path("/keys/id")})
        assert '"/keys/id"' in event.to_json()

    def test_from_json_missing_field(self) -> None:
        with pytest.raises(ValueError, match="timestamp"):
            Event.from_json('{"event_type": "RESOLVE"}')


class TestEventCollector:
    """Test in-memory collection."""

    def test_get_by_type(self) -> None:
        collector = EventCollector()
        emitter = EventEmitter(collector=collector)

        emitter.emit(EventType.RESOLVE, host="a")
        emitter.emit(EventType.CREDENTIAL, host="a")
        emitter.emit("RESOLVE", host="b")

        assert [e.data["host"] for e in collector.get_by_type("RESOLVE")] == ["a", "b"]
        assert len(collector.get_by_type(EventType.ERROR)) == 0

    def test_events_is_a_copy(self) -> None:
        collector = EventCollector()
        EventEmitter(collector=collector).emit(EventType.ERROR, message="x")

        collector.events.clear()
        assert len(collector.events) == 1

    def test_clear(self) -> None:
        collector = EventCollector()
        EventEmitter(collector=collector).emit(EventType.ERROR, message="x")

        collector.clear()
        assert collector.events == []

    def test_emitter_without_sinks_still_returns_event(self) -> None:
        event = EventEmitter().emit(EventType.RESOLVE, host="a")
        assert event.data == {"host": "a"}


class TestJSONLOutput:
    """Test JSONL file output."""

    def test_emitter_writes_jsonl(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "events.jsonl"
        with EventEmitter(jsonl_path=path) as emitter:
            emitter.emit(EventType.RESOLVE, host="github.com", files=[], keys=[])
            emitter.emit(EventType.CREDENTIAL, host="github.com", credential={"source": "agent"})

        events = read_jsonl_events(path)
        assert [e.event_type for e in events] == ["RESOLVE", "CREDENTIAL"]
        assert events[1].data["credential"] == {"source": "agent"}

    def test_collector_and_file_see_same_events(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        collector = EventCollector()
        with EventEmitter(collector=collector, jsonl_path=path) as emitter:
            emitter.emit(EventType.RESOLVE, host="a")

        assert read_jsonl_events(path) == collector.events

    def test_file_created_before_any_event(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventEmitter(jsonl_path=path).close()

        assert path.exists()
        assert read_jsonl_events(path) == []

    def test_emitter_appends(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        for host in ("a", "b"):
            with EventEmitter(jsonl_path=path) as emitter:
                emitter.emit(EventType.RESOLVE, host=host)

        assert [e.data["host"] for e in iter_jsonl_events(path)] == ["a", "b"]

    def test_blank_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        line = Event(event_type="ERROR", data={"message": "x"}).to_json()
        path.write_text(f"\n{line}\n\n")

        assert len(read_jsonl_events(path)) == 1

    def test_closed_sink_rejects_events(self, tmp_path: Path) -> None:
        sink = JSONLEventSink(tmp_path / "events.jsonl")
        sink.close()

        assert sink.closed
        with pytest.raises(ValueError, match="closed"):
            sink.emit(Event(event_type="RESOLVE"))

    def test_read_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_jsonl_events(tmp_path / "missing.jsonl")
