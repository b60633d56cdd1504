"""Tests for EventBus."""

import json
import threading

import pytest

from jat_monitor.services.event_bus import Event, EventBus


@pytest.fixture
def event_bus():
    """Create an EventBus instance."""
    return EventBus(buffer_size=10)


def parse_data(sse: str) -> dict:
    line = next(line for line in sse.split("\n") if line.startswith("data: "))
    return json.loads(line[len("data: ") :])


class TestEvent:
    """Tests for Event dataclass."""

    def test_to_sse_basic(self):
        """SSE message carries type, data, id and a blank-line terminator."""
        event = Event(event_type="session-state", data={"sessionName": "jat-A"}, id="7")
        sse = event.to_sse()

        assert "event: session-state" in sse
        assert "id: 7" in sse
        assert sse.endswith("\n\n")
        data = parse_data(sse)
        assert data["type"] == "session-state"
        assert data["sessionName"] == "jat-A"
        assert isinstance(data["timestamp"], int)

    def test_to_sse_without_id(self):
        sse = Event(event_type="test", data={}).to_sse()
        assert "id:" not in sse


class TestEmit:
    """Tests for EventBus.emit()."""

    def test_ids_increase(self, event_bus):
        first = event_bus.emit("a", {})
        second = event_bus.emit("a", {})
        assert int(second.id) == int(first.id) + 1

    def test_slow_client_dropped(self):
        """A client whose queue fills up is disconnected."""
        bus = EventBus(queue_size=1)
        stream = bus.get_sse_stream()
        next(stream)
        bus.emit("a", {})
        bus.emit("a", {})
        assert bus.subscriber_count == 0
        stream.close()


class TestEventBuffer:
    """Tests for buffered events."""

    def test_buffer_limited(self, event_bus):
        for i in range(15):
            event_bus.emit("a", {"i": i})
        events = event_bus.get_buffered_events()
        assert len(events) == 10
        assert events[0].data["i"] == 5

    def test_since_id_and_type(self, event_bus):
        first = event_bus.emit("a", {})
        event_bus.emit("b", {})
        event_bus.emit("a", {})
        events = event_bus.get_buffered_events(since_id=first.id, event_type="a")
        assert len(events) == 1


class TestSSEStream:
    """Tests for the SSE generator."""

    def test_connected_first(self, event_bus):
        stream = event_bus.get_sse_stream()
        assert "event: connected" in next(stream)
        assert event_bus.subscriber_count == 1
        stream.close()
        assert event_bus.subscriber_count == 0

    def test_receives_emitted_events(self, event_bus):
        stream = event_bus.get_sse_stream(timeout=1.0)
        next(stream)
        threading.Timer(0.05, lambda: event_bus.emit("session-state", {"state": "idle"})).start()

        message = next(stream)
        assert "event: session-state" in message
        stream.close()

    def test_replay_buffer(self, event_bus):
        event_bus.emit("session-output", {"sessionName": "jat-A"})
        stream = event_bus.get_sse_stream(include_buffer=True)
        next(stream)
        assert "event: session-output" in next(stream)
        stream.close()

    def test_resume_after_id(self, event_bus):
        """Only events after since_id are replayed."""
        first = event_bus.emit("a", {"n": 1})
        event_bus.emit("a", {"n": 2})
        stream = event_bus.get_sse_stream(since_id=first.id)
        next(stream)
        assert parse_data(next(stream))["n"] == 2
        stream.close()

    def test_no_replay_by_default(self, event_bus):
        event_bus.emit("a", {})
        stream = event_bus.get_sse_stream(timeout=0.01)
        next(stream)
        assert next(stream) == ": keep-alive\n\n"
        stream.close()

    def test_keep_alive(self, event_bus):
        stream = event_bus.get_sse_stream(timeout=0.01)
        next(stream)
        assert next(stream) == ": keep-alive\n\n"
        stream.close()
