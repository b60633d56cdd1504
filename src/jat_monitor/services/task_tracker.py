"""Task tracker client.

Shells out to the `bd` CLI in every configured project and maps agents to
their current and most recently completed tasks.
"""

import json
import logging
import subprocess
from datetime import timezone

from pydantic import ValidationError

from jat_monitor.models.config import ProjectConfig, TaskTrackerConfig
from jat_monitor.models.session import Task
from jat_monitor.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

TASKS_CACHE_KEY = "tasks:all"


class TaskTrackerError(Exception):
    """The task tracker could not be queried."""


def _run_tracker(command: list[str], cwd: str | None = None, timeout: int = 10) -> tuple[int, str, str]:
    """Run a task tracker command.

    Args:
        command: Command and arguments.
        cwd: Directory to run in.
        timeout: Command timeout in seconds.

    Returns:
        Tuple of (return_code, stdout, stderr).
    """
    try:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
        )
        return (result.returncode, result.stdout or "", result.stderr or "")
    except subprocess.TimeoutExpired:
        return (1, "", "Command timed out")
    except FileNotFoundError:
        return (127, "", f"{command[0]} not found")
    except NotADirectoryError:
        return (1, "", f"Not a directory: {cwd}")


def _sort_key(task: Task) -> float:
    if task.updated_at is None:
        return 0.0
    updated = task.updated_at
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return updated.timestamp()


class TaskTracker:
    """Reads tasks from the tracker, caching the listing briefly.

    Listing every task is expensive, so the result is reused for
    ``cache_ttl`` seconds. When a refresh fails, the last good listing is
    still available to callers alongside the error.
    """

    def __init__(
        self,
        config: TaskTrackerConfig | None = None,
        projects: list[ProjectConfig] | None = None,
        cache_ttl: float = 5,
        cache: TTLCache | None = None,
    ):
        """Initialize the tracker client.

        Args:
            config: Command and timeout settings.
            projects: Project directories to query. Uses the current
                directory when empty.
            cache_ttl: Seconds a listing is reused.
            cache: Cache to store listings in.
        """
        self.config = config or TaskTrackerConfig()
        self.projects = projects or []
        self.cache_ttl = cache_ttl
        self._cache = cache or TTLCache()
        self._last_tasks: list[Task] = []

    def _query_project(self, cwd: str | None) -> list[Task]:
        returncode, stdout, stderr = _run_tracker(
            self.config.command, cwd=cwd, timeout=self.config.timeout
        )
        if returncode != 0:
            raise TaskTrackerError(stderr.strip() or f"exit code {returncode}")

        try:
            raw = json.loads(stdout) if stdout.strip() else []
        except json.JSONDecodeError as e:
            raise TaskTrackerError(f"Invalid tracker output: {e}") from e
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise TaskTrackerError("Tracker output is not a JSON array")

        tasks = []
        for item in raw:
            try:
                tasks.append(Task.model_validate(item))
            except ValidationError as e:
                logger.debug(f"Skipping malformed task entry: {e}")
        return tasks

    def list_tasks(self, bust: bool = False) -> list[Task]:
        """List tasks from every configured project.

        Args:
            bust: Ignore any cached listing.

        Raises:
            TaskTrackerError: A project could not be queried.
        """
        if bust:
            self._cache.delete(TASKS_CACHE_KEY)
        else:
            cached = self._cache.get(TASKS_CACHE_KEY)
            if cached is not None:
                return cached

        directories = [p.path for p in self.projects] or [None]
        tasks: list[Task] = []
        for cwd in directories:
            tasks.extend(self._query_project(cwd))

        self._cache.set(TASKS_CACHE_KEY, tasks, self.cache_ttl)
        self._last_tasks = tasks
        logger.debug(f"Loaded {len(tasks)} tasks from {len(directories)} project(s)")
        return tasks

    def load_tasks(self, bust: bool = False) -> tuple[list[Task], str | None]:
        """List tasks, falling back to the last good listing on failure.

        Returns:
            Tuple of (tasks, error message or None).
        """
        try:
            return self.list_tasks(bust=bust), None
        except TaskTrackerError as e:
            logger.warning(f"Task tracker query failed: {e}")
            return list(self._last_tasks), str(e)

    @staticmethod
    def current_tasks(tasks: list[Task]) -> dict[str, Task]:
        """Map agent name to its in-progress task."""
        return {t.assignee: t for t in tasks if t.status == "in_progress" and t.assignee}

    @staticmethod
    def last_completed_tasks(tasks: list[Task]) -> dict[str, Task]:
        """Map agent name to its most recently updated closed task."""
        result: dict[str, Task] = {}
        closed = [t for t in tasks if t.status == "closed" and t.assignee]
        for task in sorted(closed, key=_sort_key, reverse=True):
            result.setdefault(task.assignee, task)
        return result
