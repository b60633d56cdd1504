"""Resolves a session's ActivityState from marker positions and task flags.

Priority between in-progress markers is decided by recency in the text: the
marker printed last wins. Nothing is cached, so the same inputs always give
the same state.
"""

from jat_monitor.models.session import ActivityState
from jat_monitor.services.marker_scanner import MarkerGroup, MarkerPositions, scan_markers

# Groups considered while a task is assigned. Earlier entries win ties.
IN_PROGRESS_GROUPS: tuple[tuple[MarkerGroup, ActivityState], ...] = (
    (MarkerGroup.NEEDS_INPUT, ActivityState.NEEDS_INPUT),
    (MarkerGroup.READY_FOR_REVIEW, ActivityState.READY_FOR_REVIEW),
    (MarkerGroup.COMPLETING, ActivityState.COMPLETING),
    (MarkerGroup.WORKING, ActivityState.WORKING),
)


def resolve_state(
    positions: MarkerPositions,
    has_task: bool,
    has_last_completed_task: bool = False,
) -> ActivityState:
    """Combine marker positions and task flags into one state.

    Args:
        positions: Result of scan_markers() for the session output.
        has_task: Whether the session currently has an assigned task.
        has_last_completed_task: Whether the agent has a recorded completed task.

    Returns:
        The resolved ActivityState.
    """
    if has_task:
        best_state = ActivityState.STARTING
        best_position = -1
        for group, state in IN_PROGRESS_GROUPS:
            position = positions.get(group)
            if position > best_position:
                best_state = state
                best_position = position
        return best_state

    if positions.completed >= 0 or has_last_completed_task:
        return ActivityState.COMPLETED
    return ActivityState.IDLE


def detect_session_state(
    output: object,
    task: object | None,
    last_completed_task: object | None = None,
) -> ActivityState:
    """Scan an output buffer and resolve its state.

    Args:
        output: Raw terminal output; non-strings count as empty.
        task: The session's current task, or None.
        last_completed_task: The agent's last completed task, or None.

    Returns:
        The resolved ActivityState.
    """
    return resolve_state(
        scan_markers(output),
        has_task=task is not None,
        has_last_completed_task=last_completed_task is not None,
    )
