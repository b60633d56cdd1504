"""WorkService builds the list of supervised agent sessions.

For every agent tmux session it joins the tracker's task data, the captured
output and the resolved ActivityState.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from jat_monitor.backends.base import SessionInfo, TerminalBackend
from jat_monitor.models.session import ActivityState, Task, WorkSession
from jat_monitor.services.marker_scanner import ANSI_ESCAPE
from jat_monitor.services.sidecar_store import SidecarStore
from jat_monitor.services.state_resolver import detect_session_state
from jat_monitor.services.task_tracker import TaskTracker

logger = logging.getLogger(__name__)

MAX_WORK_LINES = 500

AUTO_COMPACT_PATTERN = re.compile(r"Context left until auto-compact:\s*(\d+)%", re.IGNORECASE)
# Statusline indicator: filled squares are context remaining
CONTEXT_BAR_PATTERN = re.compile(r"[▪▫]{5,15}")
CONTEXT_LABEL_PATTERN = re.compile(r"Context:\s*(\d+)%", re.IGNORECASE)

STATE_COUNT_KEYS = {
    ActivityState.NEEDS_INPUT: "needsInput",
    ActivityState.WORKING: "working",
    ActivityState.READY_FOR_REVIEW: "review",
    ActivityState.COMPLETING: "completing",
    ActivityState.COMPLETED: "completed",
    ActivityState.STARTING: "starting",
    ActivityState.IDLE: "idle",
}


def extract_context_percent(output: str) -> int | None:
    """Context remaining percentage shown in Claude's output, if any."""
    if not output:
        return None

    clean = ANSI_ESCAPE.sub("", output)

    match = AUTO_COMPACT_PATTERN.search(clean)
    if match:
        return int(match.group(1))

    bars = CONTEXT_BAR_PATTERN.findall(clean)
    if bars:
        indicator = bars[-1]
        filled = indicator.count("▪")
        return round(filled / len(indicator) * 100)

    match = CONTEXT_LABEL_PATTERN.search(clean)
    if match:
        return int(match.group(1))

    return None


def count_states(sessions: list[WorkSession]) -> dict[str, int]:
    """Number of sessions in each state."""
    counts = dict.fromkeys(STATE_COUNT_KEYS.values(), 0)
    for session in sessions:
        counts[STATE_COUNT_KEYS[session.session_state]] += 1
    return counts


@dataclass
class WorkSnapshot:
    """All work sessions at one point in time."""

    sessions: list[WorkSession] = field(default_factory=list)
    task_error: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        result = {
            "success": True,
            "sessions": [s.to_dict() for s in self.sessions],
            "count": len(self.sessions),
            "stateCounts": count_states(self.sessions),
            "timestamp": self.timestamp.isoformat(),
        }
        if self.task_error:
            result["taskError"] = self.task_error
        return result


class WorkService:
    """Assembles WorkSession objects from tmux, the tracker and sidecars."""

    def __init__(
        self,
        backend: TerminalBackend,
        task_tracker: TaskTracker,
        sidecars: SidecarStore,
        session_prefix: str = "jat-",
    ):
        self._backend = backend
        self._tracker = task_tracker
        self._sidecars = sidecars
        self.session_prefix = session_prefix

    def agent_name(self, session_name: str) -> str:
        """Agent name for a session (``jat-WisePrairie`` -> ``WisePrairie``)."""
        if session_name.startswith(self.session_prefix):
            return session_name[len(self.session_prefix) :]
        return session_name

    def task_maps(self, bust: bool = False) -> tuple[dict[str, Task], dict[str, Task], str | None]:
        """Agent -> current task, agent -> last completed task, tracker error."""
        tasks, error = self._tracker.load_tasks(bust=bust)
        return (
            TaskTracker.current_tasks(tasks),
            TaskTracker.last_completed_tasks(tasks),
            error,
        )

    def build_session(
        self,
        info: SessionInfo,
        output: str,
        task: Task | None,
        last_completed_task: Task | None,
    ) -> WorkSession:
        """Resolve one session from already-fetched data."""
        return WorkSession(
            session_name=info.name,
            agent_name=self.agent_name(info.name),
            task=task,
            last_completed_task=last_completed_task,
            output=output,
            line_count=len(output.split("\n")) if output else 0,
            context_percent=extract_context_percent(output),
            created=info.created,
            attached=info.attached,
            session_state=detect_session_state(output, task, last_completed_task),
            signal_state=self._sidecars.read_signal_state(info.name),
        )

    def list_work_sessions(self, lines: int = 50, bust: bool = False) -> WorkSnapshot:
        """Build a WorkSession for every agent tmux session.

        Args:
            lines: Scrollback lines captured per session (1..500).
            bust: Refresh the task listing instead of using the cache.

        Returns:
            WorkSnapshot with the sessions and any tracker error.
        """
        lines = min(max(lines, 1), MAX_WORK_LINES)
        infos = self._backend.get_agent_sessions(self.session_prefix)
        if not infos:
            return WorkSnapshot()

        current, completed, error = self.task_maps(bust=bust)

        sessions = []
        for info in infos:
            capture = self._backend.capture(info.name, lines)
            if not capture.success:
                # The session may have closed since it was listed
                logger.debug(f"Capture of {info.name} failed: {capture.error}")
            agent = self.agent_name(info.name)
            sessions.append(
                self.build_session(info, capture.output, current.get(agent), completed.get(agent))
            )

        logger.debug(f"Built {len(sessions)} work sessions")
        return WorkSnapshot(sessions=sessions, task_error=error)

    def get_session_state(self, session_name: str, lines: int = 100) -> dict:
        """Resolved state of a single session.

        Returns:
            Dict with the state and task references, or an ``error`` key when
            the session cannot be captured.
        """
        capture = self._backend.capture(session_name, lines)
        if not capture.success:
            return {
                "sessionName": session_name,
                "error": "Session not found" if capture.session_missing else "Capture failed",
                "message": capture.error,
                "notFound": capture.session_missing,
            }

        current, completed, error = self.task_maps()
        agent = self.agent_name(session_name)
        task = current.get(agent)
        last_completed = completed.get(agent)
        result = {
            "sessionName": session_name,
            "agentName": agent,
            "state": detect_session_state(capture.output, task, last_completed).value,
            "task": task.to_summary() if task else None,
            "lastCompletedTask": last_completed.to_completed_summary() if last_completed else None,
        }
        if error:
            result["taskError"] = error
        return result
