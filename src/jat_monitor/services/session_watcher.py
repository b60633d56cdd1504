"""SessionWatcher polls agent sessions and publishes changes to the EventBus.

Events emitted:
- session-created:   {sessionName, agentName, task}
- session-destroyed: {sessionName}
- session-output:    {sessionName, output, lineCount}
- session-state:     {sessionName, state, previousState}
- session-question:  {sessionName, question}

Polling only does work while at least one SSE client is connected.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass

from jat_monitor.backends.base import TerminalBackend
from jat_monitor.models.session import ActivityState
from jat_monitor.services.event_bus import EventBus
from jat_monitor.services.sidecar_store import SidecarStore
from jat_monitor.services.state_resolver import detect_session_state
from jat_monitor.services.work_service import WorkService

logger = logging.getLogger(__name__)


@dataclass
class WatchedSession:
    """Last observed values of a session, kept for change detection only."""

    output_hash: str
    state: ActivityState
    has_question: bool


class SessionWatcher:
    """Background poller that turns session changes into events."""

    def __init__(
        self,
        backend: TerminalBackend,
        work_service: WorkService,
        sidecars: SidecarStore,
        event_bus: EventBus,
        output_lines: int = 100,
        interval: float = 1.0,
    ):
        """Initialize the watcher.

        Args:
            backend: Terminal backend to list and capture sessions.
            work_service: Provides agent names and task maps.
            sidecars: Question sidecar reader.
            event_bus: Destination of the events.
            output_lines: Scrollback lines captured per poll.
            interval: Seconds between polls.
        """
        self._backend = backend
        self._work = work_service
        self._sidecars = sidecars
        self._event_bus = event_bus
        self.output_lines = output_lines
        self.interval = interval

        self._sessions: dict[str, WatchedSession] = {}
        self._known: set[str] | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the polling thread."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._poll_loop, daemon=True)
            self._thread.start()
            logger.info(f"Session watcher started (interval: {self.interval}s)")

    def stop(self) -> None:
        """Stop the polling thread."""
        with self._lock:
            self._stop_event.set()
            if self._thread is not None:
                self._thread.join(timeout=5.0)
                self._thread = None
            self.reset()
            logger.info("Session watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def reset(self) -> None:
        """Forget observed sessions so the next poll starts fresh."""
        self._sessions.clear()
        self._known = None

    def poll_once(self) -> int:
        """Poll all agent sessions and emit events for changes.

        The first poll only records the existing sessions; it does not
        announce them as created.

        Returns:
            Number of events emitted.
        """
        emitted = 0
        infos = self._backend.get_agent_sessions(self._work.session_prefix)
        current = {info.name for info in infos}
        current_tasks, completed_tasks, _ = self._work.task_maps()

        if self._known is not None:
            for info in infos:
                if info.name in self._known:
                    continue
                task = current_tasks.get(self._work.agent_name(info.name))
                self._event_bus.emit(
                    "session-created",
                    {
                        "sessionName": info.name,
                        "agentName": self._work.agent_name(info.name),
                        "task": task.to_summary() if task else None,
                    },
                )
                emitted += 1

            for name in sorted(self._known - current):
                self._event_bus.emit("session-destroyed", {"sessionName": name})
                self._sessions.pop(name, None)
                emitted += 1

        self._known = current

        for info in infos:
            agent = self._work.agent_name(info.name)
            capture = self._backend.capture(info.name, self.output_lines)
            output = capture.output
            state = detect_session_state(
                output, current_tasks.get(agent), completed_tasks.get(agent)
            )
            question = self._sidecars.read_question(info.name)
            has_question = question.active

            observed = WatchedSession(
                output_hash=hashlib.sha1(output.encode("utf-8", "replace")).hexdigest(),
                state=state,
                has_question=has_question,
            )
            previous = self._sessions.get(info.name)
            self._sessions[info.name] = observed

            if previous is None or previous.output_hash != observed.output_hash:
                self._event_bus.emit(
                    "session-output",
                    {
                        "sessionName": info.name,
                        "output": output,
                        "lineCount": len(output.split("\n")),
                    },
                )
                emitted += 1

            if previous is None or previous.state != state:
                self._event_bus.emit(
                    "session-state",
                    {
                        "sessionName": info.name,
                        "state": state.value,
                        "previousState": previous.state.value if previous else None,
                    },
                )
                emitted += 1

            if has_question and (previous is None or not previous.has_question):
                self._event_bus.emit(
                    "session-question",
                    {"sessionName": info.name, "question": question.to_dict()},
                )
                emitted += 1

        return emitted

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            if self._event_bus.subscriber_count > 0:
                try:
                    self.poll_once()
                except Exception:
                    logger.exception("Error in session watcher poll")
            elif self._known is not None:
                # Nobody is listening; start over when a client connects
                self.reset()
            self._stop_event.wait(self.interval)
