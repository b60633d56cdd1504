"""Readers for the sidecar JSON files written by agent hook scripts.

Three file families live in a shared temporary directory, keyed by the tmux
session name:

- activity: jat-activity-<name>.json  -> {state, since, tmux_session}
- signal:   jat-signal-tmux-<name>.json, then jat-signal-<name>.json
- question: claude-question-tmux-<name>.json

Every reader turns its outcome into a result value. A missing file resolves
to a default, an unparsable file to a failure result that callers can tell
apart from "no data".
"""

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)

# Seconds after which a question record is discarded
QUESTION_MAX_AGE = 5 * 60

# Short signal state names mapped to session states
SIGNAL_STATE_MAP = {
    "working": "working",
    "review": "ready-for-review",
    "needs_input": "needs-input",
    "idle": "idle",
    "completed": "completed",
    "starting": "starting",
    "completing": "completing",
}


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass
class ActivityReading:
    """Outcome of reading a session's activity file."""

    session_name: str
    activity: dict | None = None
    file_modified_at: str | None = None
    error: str | None = None
    message: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        if self.failed:
            return {
                "hasActivity": False,
                "sessionName": self.session_name,
                "error": self.error,
                "message": self.message,
            }
        return {
            "hasActivity": True,
            "sessionName": self.session_name,
            "activity": self.activity,
            # mtime moves on every hook write, `since` only on state changes
            "fileModifiedAt": self.file_modified_at,
        }


@dataclass
class SignalReading:
    """Outcome of reading a session's signal file."""

    session_name: str
    signal: dict | None = None
    file: str | None = None
    error: str | None = None
    message: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def has_signal(self) -> bool:
        return not self.failed and self.signal is not None

    def to_dict(self) -> dict:
        if self.failed:
            return {
                "hasSignal": False,
                "sessionName": self.session_name,
                "error": self.error,
                "message": self.message,
            }
        if self.signal is None:
            return {
                "hasSignal": False,
                "sessionName": self.session_name,
                "message": "No signal file found",
            }
        return {
            "hasSignal": True,
            "sessionName": self.session_name,
            "signal": self.signal,
            "file": self.file,
        }


@dataclass
class SignalClearResult:
    """Which signal files a clear request actually removed."""

    session_name: str
    deleted_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "deleted": bool(self.deleted_files),
            "deletedFiles": self.deleted_files,
            "sessionName": self.session_name,
        }


@dataclass
class QuestionReading:
    """Outcome of reading a session's pending question."""

    active: bool = False
    stale: bool = False
    record: dict | None = None
    error: str | None = None
    message: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        if self.failed:
            return {"active": False, "error": self.error, "message": self.message}
        if self.stale:
            return {"active": False, "stale": True}
        if not self.active or self.record is None:
            return {"active": False}
        return {
            "active": True,
            "session_id": self.record.get("session_id"),
            "tmux_session": self.record.get("tmux_session"),
            "timestamp": self.record.get("timestamp"),
            "questions": self.record.get("questions") or [],
        }


class SidecarStore:
    """Reads and clears the sidecar files of supervised sessions.

    No state is kept between calls; every read goes to the filesystem.
    """

    ACTIVITY_FILE = "jat-activity-{name}.json"
    SIGNAL_FILES = ("jat-signal-tmux-{name}.json", "jat-signal-{name}.json")
    QUESTION_FILE = "claude-question-tmux-{name}.json"

    def __init__(
        self,
        base_dir: str | Path = "/tmp",
        question_max_age: float = QUESTION_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the store.

        Args:
            base_dir: Directory the hook scripts write into.
            question_max_age: Seconds after which a question record is stale.
            clock: Source of the current Unix time.
        """
        self.base_dir = Path(base_dir)
        self.question_max_age = question_max_age
        self._clock = clock

    def activity_path(self, session_name: str) -> Path:
        return self.base_dir / self.ACTIVITY_FILE.format(name=session_name)

    def signal_paths(self, session_name: str) -> list[Path]:
        """Candidate signal files, in lookup order."""
        return [self.base_dir / pattern.format(name=session_name) for pattern in self.SIGNAL_FILES]

    def question_path(self, session_name: str) -> Path:
        return self.base_dir / self.QUESTION_FILE.format(name=session_name)

    def _load_object(self, path: Path) -> dict:
        """Parse a JSON object from a file.

        Raises:
            OSError: The file could not be read.
            ValueError: The content is not a JSON object.
        """
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object in {path.name}")
        return data

    def read_activity(self, session_name: str) -> ActivityReading:
        """Read the output activity state of a session.

        A missing file means no monitor is running, which is reported as idle
        since now.
        """
        path = self.activity_path(session_name)
        if not path.exists():
            now = _iso(self._clock())
            return ActivityReading(
                session_name=session_name,
                activity={"state": "idle", "since": now, "tmux_session": session_name},
                file_modified_at=now,
            )

        try:
            activity = self._load_object(path)
            modified_at = _iso(path.stat().st_mtime)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read activity file {path}: {e}")
            return ActivityReading(
                session_name=session_name,
                error="Failed to read activity file",
                message=str(e),
            )

        return ActivityReading(
            session_name=session_name,
            activity=activity,
            file_modified_at=modified_at,
        )

    def read_signal(self, session_name: str) -> SignalReading:
        """Read the most recent signal for a session.

        The tmux-name file is preferred over the legacy session-id file.
        """
        path = next((p for p in self.signal_paths(session_name) if p.exists()), None)
        if path is None:
            return SignalReading(session_name=session_name)

        try:
            signal = self._load_object(path)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read signal file {path}: {e}")
            return SignalReading(
                session_name=session_name,
                error="Failed to read signal file",
                message=str(e),
            )

        return SignalReading(session_name=session_name, signal=signal, file=str(path))

    def read_signal_state(self, session_name: str) -> str | None:
        """Session state announced by the current signal, if any."""
        reading = self.read_signal(session_name)
        if not reading.has_signal:
            return None

        signal = reading.signal
        if signal.get("type") == "state" and signal.get("state"):
            state = signal["state"]
            return SIGNAL_STATE_MAP.get(state)
        if signal.get("type") == "complete":
            return "completed"
        return None

    def clear_signal(self, session_name: str) -> SignalClearResult:
        """Delete both candidate signal files."""
        result = SignalClearResult(session_name=session_name)
        for path in self.signal_paths(session_name):
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not delete signal file {path}: {e}")
                continue
            result.deleted_files.append(str(path))
        return result

    def read_question(self, session_name: str) -> QuestionReading:
        """Read the pending question of a session.

        A record older than ``question_max_age`` is deleted as part of the
        read and reported as stale.
        """
        path = self.question_path(session_name)
        try:
            modified = path.stat().st_mtime
        except FileNotFoundError:
            return QuestionReading()
        except OSError as e:
            logger.warning(f"Failed to stat question file {path}: {e}")
            return QuestionReading(error="Failed to read question file", message=str(e))

        if self._clock() - modified > self.question_max_age:
            try:
                self._remove_question(path)
            except OSError as e:
                logger.warning(f"Could not delete stale question file {path}: {e}")
            return QuestionReading(stale=True)

        try:
            record = self._load_object(path)
        except FileNotFoundError:
            # Answered between stat and read
            return QuestionReading()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read question file {path}: {e}")
            return QuestionReading(error="Failed to read question file", message=str(e))

        return QuestionReading(active=True, record=record)

    def clear_question(self, session_name: str) -> bool:
        """Delete the question file after it was answered.

        Returns:
            True if a file was removed.

        Raises:
            OSError: The file exists but could not be removed.
        """
        return self._remove_question(self.question_path(session_name))

    def _remove_question(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Removed question file {path}")
        return True
