"""Pytest configuration and shared fixtures for JAT Monitor tests."""

import json
import tempfile
from pathlib import Path

import pytest

from jat_monitor.backends.base import CaptureResult, SessionInfo, TerminalBackend
from jat_monitor.backends.tmux import reset_tmux_backend
from jat_monitor.models.session import Task
from jat_monitor.services.config_service import reset_config_service
from jat_monitor.services.sidecar_store import SidecarStore


class FakeBackend(TerminalBackend):
    """In-memory terminal backend.

    ``outputs`` maps session name to captured text; a session without an
    output entry fails to capture like a closed tmux session.
    """

    def __init__(self, outputs: dict[str, str] | None = None):
        self.outputs = dict(outputs or {})
        self.sent: list[tuple[str, str, bool]] = []
        self.captures: list[tuple[str, int, bool, bool]] = []

    @property
    def backend_name(self) -> str:
        return "fake"

    def is_available(self) -> bool:
        return True

    def list_sessions(self) -> list[SessionInfo]:
        return [SessionInfo(name=name) for name in self.outputs]

    def capture(self, session_name, lines=100, history=True, escapes=True) -> CaptureResult:
        self.captures.append((session_name, lines, history, escapes))
        if session_name not in self.outputs:
            return CaptureResult(error=f"can't find session: {session_name}")
        return CaptureResult(output=self.outputs[session_name])

    def send_text(self, session_name, text, enter=True) -> bool:
        if session_name not in self.outputs:
            return False
        self.sent.append((session_name, text, enter))
        return True


class FakeTracker:
    """Stands in for TaskTracker with a fixed listing."""

    def __init__(self, tasks: list[Task] | None = None, error: str | None = None):
        self.tasks = tasks or []
        self.error = error
        self.calls: list[bool] = []

    def load_tasks(self, bust: bool = False):
        self.calls.append(bust)
        return list(self.tasks), self.error


def _write_json(path: Path, data) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def write_json():
    """Helper that writes data as JSON to a path and returns the path."""
    return _write_json


@pytest.fixture
def temp_dir():
    """Create a temporary directory for sidecar files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sidecars(temp_dir):
    """SidecarStore reading from the temporary directory."""
    return SidecarStore(base_dir=temp_dir)


@pytest.fixture
def backend():
    """FakeBackend with no sessions."""
    return FakeBackend()


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def make_tracker():
    """Factory for FakeTracker instances."""
    return FakeTracker


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons before and after each test."""
    reset_config_service()
    reset_tmux_backend()
    yield
    reset_config_service()
    reset_tmux_backend()
