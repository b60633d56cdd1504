"""Abstract base class for terminal backend implementations.

Defines the interface for terminal multiplexer integrations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass
class SessionInfo:
    """Information about a terminal session."""

    name: str  # e.g. "jat-WisePrairie"
    created: datetime | None = None
    attached: bool = False


@dataclass
class CaptureResult:
    """Captured pane text, or why it could not be captured."""

    output: str = ""
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def session_missing(self) -> bool:
        """Whether the failure means the session does not exist."""
        if self.error is None:
            return False
        return "can't find session" in self.error or "no server running" in self.error


class TerminalBackend(ABC):
    """Abstract interface for terminal backends.

    Terminal backends provide the ability to:
    - Discover running sessions
    - Capture terminal content
    - Send text to sessions
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier (e.g., 'tmux')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is installed and running."""

    @abstractmethod
    def list_sessions(self) -> list[SessionInfo]:
        """List all active sessions."""

    @abstractmethod
    def capture(
        self,
        session_name: str,
        lines: int = 100,
        history: bool = True,
        escapes: bool = True,
    ) -> CaptureResult:
        """Capture terminal content from a session.

        Args:
            session_name: The session name.
            lines: Number of scrollback lines to include.
            history: Include scrollback; otherwise only the visible pane.
            escapes: Keep color escape sequences.

        Returns:
            CaptureResult with the text or the failure reason.
        """

    @abstractmethod
    def send_text(self, session_name: str, text: str, enter: bool = True) -> bool:
        """Send text to a session.

        Returns:
            True if send successful, False otherwise.
        """

    def get_agent_sessions(self, prefix: str = "jat-") -> list[SessionInfo]:
        """Get sessions that belong to supervised agents.

        Sessions still being set up (``<prefix>pending-``) are excluded.

        Returns:
            List of SessionInfo for agent sessions.
        """
        pending = f"{prefix}pending-"
        return [
            s
            for s in self.list_sessions()
            if s.name.startswith(prefix) and not s.name.startswith(pending)
        ]
