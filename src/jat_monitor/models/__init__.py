"""Domain models for JAT Monitor."""

from jat_monitor.models.config import AppConfig, ProjectConfig, TaskTrackerConfig
from jat_monitor.models.session import ActivityState, Task, WorkSession

__all__ = [
    # Session
    "ActivityState",
    "Task",
    "WorkSession",
    # Config
    "AppConfig",
    "ProjectConfig",
    "TaskTrackerConfig",
]
