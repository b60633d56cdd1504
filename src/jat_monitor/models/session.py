"""Session and task models with the derived activity states."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActivityState(str, Enum):
    """Lifecycle state of a supervised agent session.

    Always derived from the trailing terminal output and the session's task
    fields; never stored.
    """

    STARTING = "starting"
    """Task assigned, no lifecycle marker emitted yet."""

    WORKING = "working"
    """Agent announced it is working on its task."""

    NEEDS_INPUT = "needs-input"
    """Agent is blocked on a question or an interactive prompt."""

    READY_FOR_REVIEW = "ready-for-review"
    """Agent finished and waits for a human to review."""

    COMPLETING = "completing"
    """Completion command is running."""

    COMPLETED = "completed"
    """No task assigned, and the last one was finished."""

    IDLE = "idle"
    """No task assigned, nothing completed."""


class Task(BaseModel):
    """An issue from the task tracker.

    Only the fields the monitor uses are declared; anything else the tracker
    returns is ignored.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Tracker issue identifier")
    title: str | None = None
    description: str | None = None
    status: str | None = Field(default=None, description="open, in_progress, closed, ...")
    priority: int | None = Field(default=None, description="0 (critical) to 4 (lowest)")
    issue_type: str | None = None
    assignee: str | None = Field(default=None, description="Agent name the task is assigned to")
    updated_at: datetime | None = None
    depends_on: list = Field(default_factory=list)

    @field_validator("depends_on", mode="before")
    @classmethod
    def _null_depends_on(cls, v):
        return [] if v is None else v

    def to_summary(self) -> dict:
        """Shape used for a session's current task."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "issue_type": self.issue_type,
            "depends_on": self.depends_on,
        }

    def to_completed_summary(self) -> dict:
        """Shape used for a session's last completed task."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "issue_type": self.issue_type,
            "closedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class WorkSession(BaseModel):
    """A supervised tmux session enriched with task data and resolved state."""

    session_name: str
    agent_name: str
    task: Task | None = None
    last_completed_task: Task | None = None
    output: str = ""
    line_count: int = 0
    context_percent: int | None = None
    created: datetime | None = None
    attached: bool = False
    session_state: ActivityState = ActivityState.IDLE
    signal_state: str | None = None

    def to_dict(self) -> dict:
        """Serialize with the camelCase keys the dashboard consumes."""
        return {
            "sessionName": self.session_name,
            "agentName": self.agent_name,
            "task": self.task.to_summary() if self.task else None,
            "lastCompletedTask": self.last_completed_task.to_completed_summary()
            if self.last_completed_task
            else None,
            "output": self.output,
            "lineCount": self.line_count,
            "contextPercent": self.context_percent,
            "created": self.created.isoformat() if self.created else None,
            "attached": self.attached,
            "sessionState": self.session_state.value,
            "signalState": self.signal_state,
        }
