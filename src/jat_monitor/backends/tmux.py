"""tmux terminal backend.

Agent sessions are plain tmux sessions; everything here shells out to the
tmux CLI.
"""

import logging
import shutil
import subprocess
from datetime import datetime, timezone

from jat_monitor.backends.base import CaptureResult, SessionInfo, TerminalBackend

logger = logging.getLogger(__name__)

# Cache the tmux binary lookup
_tmux_installed: bool | None = None


def _run_tmux(*args: str, timeout: int = 10) -> tuple[int, str, str]:
    """Run a tmux command.

    Args:
        *args: Command arguments to pass to tmux.
        timeout: Command timeout in seconds.

    Returns:
        Tuple of (return_code, stdout, stderr).
    """
    cmd = ["tmux", *args]
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return (result.returncode, result.stdout or "", result.stderr or "")
    except subprocess.TimeoutExpired:
        return (1, "", "Command timed out")
    except FileNotFoundError:
        return (1, "", "tmux not found")


def _parse_created(value: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


class TmuxBackend(TerminalBackend):
    """tmux-based terminal backend."""

    SESSION_FORMAT = "#{session_name}:#{session_created}:#{session_attached}"

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "tmux"

    def is_available(self) -> bool:
        """Check if tmux is installed.

        A missing server is not an error: it just means there are no
        sessions yet.
        """
        global _tmux_installed
        if _tmux_installed is None:
            _tmux_installed = shutil.which("tmux") is not None
        return _tmux_installed

    def list_sessions(self) -> list[SessionInfo]:
        """List all tmux sessions.

        Returns:
            List of SessionInfo, empty when tmux is missing or no server runs.
        """
        if not self.is_available():
            return []

        returncode, stdout, stderr = _run_tmux("list-sessions", "-F", self.SESSION_FORMAT)
        if returncode != 0:
            logger.debug(f"tmux list-sessions failed: {stderr.strip()}")
            return []

        sessions = []
        for line in stdout.strip().split("\n"):
            if not line:
                continue

            # Session names cannot contain ':' so the split is unambiguous
            parts = line.split(":")
            if len(parts) < 3:
                continue

            name, created, attached = parts[:3]
            sessions.append(
                SessionInfo(
                    name=name,
                    created=_parse_created(created),
                    attached=attached == "1",
                )
            )

        return sessions

    def capture(
        self,
        session_name: str,
        lines: int = 100,
        history: bool = True,
        escapes: bool = True,
    ) -> CaptureResult:
        """Capture content from a tmux pane.

        Args:
            session_name: Target session.
            lines: Scrollback lines to include when ``history`` is set.
            history: Include scrollback, otherwise only the visible pane.
            escapes: Keep color escape sequences (-e).

        Returns:
            CaptureResult with the text or tmux's error message.
        """
        if not self.is_available():
            return CaptureResult(error="tmux not found")

        args = ["capture-pane", "-p"]
        if escapes:
            args.append("-e")
        args.extend(["-t", session_name])
        if history:
            args.extend(["-S", str(-lines)])

        returncode, stdout, stderr = _run_tmux(*args)
        if returncode != 0:
            return CaptureResult(error=stderr.strip() or f"exit code {returncode}")

        return CaptureResult(output=stdout)

    def send_text(self, session_name: str, text: str, enter: bool = True) -> bool:
        """Send text to a tmux session.

        Args:
            session_name: Target session.
            text: Text to send, typed literally.
            enter: If True, append Enter key.

        Returns:
            True if successful, False otherwise.
        """
        if not self.is_available():
            return False

        returncode, _, stderr = _run_tmux("send-keys", "-t", session_name, "-l", text)
        if returncode != 0:
            logger.warning(f"tmux send-keys to {session_name} failed: {stderr.strip()}")
            return False

        if enter:
            returncode, _, _ = _run_tmux("send-keys", "-t", session_name, "Enter")
        return returncode == 0


# Singleton instance
_backend_instance: TmuxBackend | None = None


def get_tmux_backend() -> TmuxBackend:
    """Get the singleton tmux backend instance."""
    global _backend_instance
    if _backend_instance is None:
        _backend_instance = TmuxBackend()
    return _backend_instance


def reset_tmux_backend() -> None:
    """Reset the singleton instance (for testing)."""
    global _backend_instance, _tmux_installed
    _backend_instance = None
    _tmux_installed = None
