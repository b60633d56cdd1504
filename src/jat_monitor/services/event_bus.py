"""EventBus for Server-Sent Events broadcasting.

Carries the session watcher's events to dashboard clients:
session-created, session-destroyed, session-output, session-state and
session-question.
"""

import json
import logging
import queue
import threading
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """An event to be broadcast via SSE."""

    event_type: str
    data: dict
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str | None = None

    def to_sse(self) -> str:
        """Format the event as an SSE message.

        The payload repeats the type and carries a millisecond timestamp so
        clients listening on the default ``message`` channel can dispatch.
        """
        payload = {
            "type": self.event_type,
            **self.data,
            "timestamp": int(self.timestamp.timestamp() * 1000),
        }
        lines = []
        if self.event_type:
            lines.append(f"event: {self.event_type}")
        lines.append(f"data: {json.dumps(payload, default=str)}")
        if self.id:
            lines.append(f"id: {self.id}")
        lines.append("")
        return "\n".join(lines) + "\n"


class EventBus:
    """Central event bus for broadcasting events to SSE clients.

    Features:
    - SSE stream generator for Flask routes
    - Event buffering so reconnecting clients can resume
    - Thread-safe operation
    """

    def __init__(self, buffer_size: int = 100, queue_size: int = 100):
        """Initialize the EventBus.

        Args:
            buffer_size: Number of recent events replayed to new SSE clients.
            queue_size: Pending events per SSE client before it is dropped.
        """
        self._buffer_size = buffer_size
        self._queue_size = queue_size
        self._event_buffer: list[Event] = []
        self._sse_queues: list[queue.Queue] = []
        self._lock = threading.Lock()
        self._event_counter = 0

    def emit(self, event_type: str, data: dict) -> Event:
        """Emit an event to all connected SSE clients.

        Args:
            event_type: The type of event (e.g., "session-state").
            data: The event data.

        Returns:
            The created Event object.
        """
        with self._lock:
            self._event_counter += 1
            event = Event(event_type=event_type, data=data, id=str(self._event_counter))

            self._event_buffer.append(event)
            if len(self._event_buffer) > self._buffer_size:
                self._event_buffer = self._event_buffer[-self._buffer_size :]

            dead_queues = []
            for q in self._sse_queues:
                try:
                    q.put_nowait(event)
                except queue.Full:
                    dead_queues.append(q)
            for q in dead_queues:
                self._sse_queues.remove(q)
                logger.warning("Dropped SSE client that stopped reading")

        return event

    def get_sse_stream(
        self,
        include_buffer: bool = False,
        timeout: float = 30.0,
        since_id: str | None = None,
    ) -> Generator[str, None, None]:
        """Get an SSE event stream generator.

        Starts with a ``connected`` message, then yields events as they are
        emitted, with keep-alive comments while idle.

        Args:
            include_buffer: Whether to replay buffered events first.
            timeout: Seconds to wait for events before sending a keep-alive.
            since_id: Replay only buffered events after this ID. Implies
                include_buffer.

        Yields:
            SSE-formatted event strings.
        """
        event_queue: queue.Queue = queue.Queue(maxsize=self._queue_size)

        with self._lock:
            self._sse_queues.append(event_queue)
            if include_buffer or since_id:
                backlog = _filter_events(self._event_buffer, since_id)
            else:
                backlog = []

        try:
            yield Event(event_type="connected", data={}).to_sse()
            for event in backlog:
                yield event.to_sse()
            while True:
                try:
                    event = event_queue.get(timeout=timeout)
                    yield event.to_sse()
                except queue.Empty:
                    yield ": keep-alive\n\n"
        finally:
            with self._lock:
                if event_queue in self._sse_queues:
                    self._sse_queues.remove(event_queue)

    def get_buffered_events(
        self, since_id: str | None = None, event_type: str | None = None
    ) -> list[Event]:
        """Get buffered events, optionally filtered.

        Args:
            since_id: Only return events after this ID.
            event_type: Only return events of this type.
        """
        with self._lock:
            return _filter_events(self._event_buffer, since_id, event_type)

    @property
    def subscriber_count(self) -> int:
        """Number of connected SSE clients."""
        with self._lock:
            return len(self._sse_queues)


def _filter_events(
    events: list[Event], since_id: str | None = None, event_type: str | None = None
) -> list[Event]:
    if since_id and since_id.isdigit():
        since_num = int(since_id)
        events = [e for e in events if e.id and int(e.id) > since_num]
    if event_type:
        events = [e for e in events if e.event_type == event_type]
    return list(events)
