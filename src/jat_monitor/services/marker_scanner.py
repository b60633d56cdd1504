"""Marker scanning over the trailing window of a session's terminal output.

Agents announce lifecycle transitions by printing marker strings such as
``[JAT:WORKING task=abc-1]`` or ``[JAT:NEEDS_REVIEW]``. Claude's own
interactive question UI is recognized as a needs-input marker as well.

Only the last ``OUTPUT_WINDOW`` characters of the output are considered, so
the cost of a scan does not grow with the scrollback size.
"""

import re
from dataclasses import dataclass
from enum import Enum

# Characters (code points, not bytes) of trailing output that are scanned
OUTPUT_WINDOW = 3000

# SGR sequences captured with `tmux capture-pane -e`; they can split a marker
ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


class MarkerGroup(str, Enum):
    """A family of markers that all signal the same state."""

    NEEDS_INPUT = "needs-input"
    WORKING = "working"
    READY_FOR_REVIEW = "ready-for-review"
    COMPLETING = "completing"
    COMPLETED = "completed"


MARKER_PATTERNS: dict[MarkerGroup, list[re.Pattern]] = {
    MarkerGroup.NEEDS_INPUT: [
        re.compile(re.escape("[JAT:NEEDS_INPUT]")),
        re.compile(r"❓\ufe0f?\s*NEED CLARIFICATION"),
        # Claude's AskUserQuestion footer
        re.compile(
            r"Enter to select[\s\S]{0,200}?Tab/Arrow keys to navigate[\s\S]{0,200}?Esc to cancel"
        ),
        # Two or more consecutive unchecked options
        re.compile(r"^[^\n\[]{0,10}\[ \][^\n]*\n[^\n\[]{0,10}\[ \]", re.MULTILINE),
        # Free-form answer option followed by the Next button
        re.compile(r"Type something[\s\S]{0,200}?\bNext\b"),
    ],
    MarkerGroup.WORKING: [
        re.compile(r"\[JAT:WORKING task=[^\]]*\]"),
    ],
    MarkerGroup.READY_FOR_REVIEW: [
        re.compile(re.escape("[JAT:NEEDS_REVIEW]")),
        re.compile(r"\[JAT:READY actions=[^\]]*\]"),
        re.compile(r"🔍\ufe0f?\s*READY FOR REVIEW"),
    ],
    MarkerGroup.COMPLETING: [
        re.compile(re.escape("jat:complete is running")),
        re.compile(re.escape("Marking task complete")),
    ],
    MarkerGroup.COMPLETED: [
        re.compile(re.escape("[JAT:COMPLETED]")),
        re.compile(re.escape("[JAT:IDLE]")),
        re.compile(r"✅\ufe0f?\s*TASK COMPLETE"),
    ],
}


@dataclass(frozen=True)
class MarkerPositions:
    """Offset of the most recent match of each group, -1 when absent.

    Offsets index into the cleaned trailing window, not the full buffer.
    """

    needs_input: int = -1
    working: int = -1
    ready_for_review: int = -1
    completing: int = -1
    completed: int = -1

    def get(self, group: MarkerGroup) -> int:
        """Position for a group."""
        return getattr(self, group.name.lower())

    def found(self) -> dict[MarkerGroup, int]:
        """Groups that matched, with their positions."""
        return {group: self.get(group) for group in MarkerGroup if self.get(group) >= 0}


def trailing_window(output: object) -> str:
    """Return the cleaned trailing window of an output buffer.

    Anything that is not a string is treated as an empty buffer.
    """
    if not isinstance(output, str) or not output:
        return ""
    return ANSI_ESCAPE.sub("", output[-OUTPUT_WINDOW:])


def last_match_position(text: str, pattern: re.Pattern) -> int:
    """Start offset of the rightmost match of ``pattern`` in ``text``.

    Searches restart one character after each hit, so overlapping matches
    are considered too.
    """
    position = -1
    match = pattern.search(text)
    while match:
        position = match.start()
        match = pattern.search(text, position + 1)
    return position


def scan_markers(output: object) -> MarkerPositions:
    """Locate the most recent marker of every group in the trailing window.

    Args:
        output: Raw terminal output (may contain ANSI escapes).

    Returns:
        MarkerPositions for the window.
    """
    window = trailing_window(output)
    if not window:
        return MarkerPositions()

    positions = {}
    for group, patterns in MARKER_PATTERNS.items():
        positions[group.name.lower()] = max(
            last_match_position(window, pattern) for pattern in patterns
        )
    return MarkerPositions(**positions)
