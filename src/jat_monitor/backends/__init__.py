"""Terminal backend implementations."""

from jat_monitor.backends.base import CaptureResult, SessionInfo, TerminalBackend
from jat_monitor.backends.tmux import TmuxBackend, get_tmux_backend, reset_tmux_backend

__all__ = [
    "CaptureResult",
    "SessionInfo",
    "TerminalBackend",
    "TmuxBackend",
    "get_tmux_backend",
    "reset_tmux_backend",
]
