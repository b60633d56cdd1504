"""Application configuration models with Pydantic validation."""

import tempfile

from pydantic import BaseModel, Field


class ProjectConfig(BaseModel):
    """A project whose task tracker is consulted for agent assignments."""

    name: str = Field(..., description="Project name (used as identifier)")
    path: str = Field(..., description="Absolute path to project directory")


class TaskTrackerConfig(BaseModel):
    """How the task tracker CLI is invoked."""

    command: list[str] = Field(
        default_factory=lambda: ["bd", "list", "--json"],
        min_length=1,
        description="Command that prints all tasks as a JSON array",
    )
    timeout: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Seconds before a tracker call is abandoned",
    )


class AppConfig(BaseModel):
    """Root application configuration.

    Loaded from config.yaml and validated with Pydantic.
    """

    projects: list[ProjectConfig] = Field(
        default_factory=list,
        description="Projects to read tasks from (current directory when empty)",
    )
    sidecar_dir: str = Field(
        default_factory=tempfile.gettempdir,
        description="Directory the hook scripts write sidecar JSON files into",
    )
    session_prefix: str = Field(
        default="jat-",
        min_length=1,
        description="tmux session name prefix of supervised agents",
    )
    output_lines: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Scrollback lines captured per session by the watcher",
    )
    scan_interval: int = Field(
        default=1,
        ge=1,
        le=60,
        description="Seconds between session watcher polls",
    )
    task_cache_ttl: int = Field(
        default=5,
        ge=0,
        le=300,
        description="Seconds a task tracker listing is reused",
    )
    question_max_age: int = Field(
        default=300,
        ge=10,
        le=3600,
        description="Seconds after which a question sidecar is discarded",
    )
    task_tracker: TaskTrackerConfig = Field(
        default_factory=TaskTrackerConfig,
        description="Task tracker CLI settings",
    )
    signal_command: str = Field(
        default="jat-signal",
        description="Executable used to emit agent signals",
    )
    watcher_enabled: bool = Field(
        default=True,
        description="Run the background session watcher that feeds /api/events",
    )
    port: int = Field(
        default=5050,
        ge=1024,
        le=65535,
        description="Port for the Flask server",
    )
    debug: bool = Field(
        default=False,
        description="Enable Flask debug mode",
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Root logging level",
    )
