"""Tests for marker scanning over the trailing output window."""

import re

import pytest

from jat_monitor.services.marker_scanner import (
    OUTPUT_WINDOW,
    MarkerGroup,
    MarkerPositions,
    last_match_position,
    scan_markers,
    trailing_window,
)

MARKERS = {
    MarkerGroup.NEEDS_INPUT: "[JAT:NEEDS_INPUT]",
    MarkerGroup.WORKING: "[JAT:WORKING task=abc-1]",
    MarkerGroup.READY_FOR_REVIEW: "[JAT:NEEDS_REVIEW]",
    MarkerGroup.COMPLETING: "jat:complete is running",
    MarkerGroup.COMPLETED: "[JAT:COMPLETED]",
}


class TestTrailingWindow:
    """Tests for trailing_window()."""

    def test_non_string_is_empty(self):
        """None and other non-strings become an empty window."""
        assert trailing_window(None) == ""
        assert trailing_window(42) == ""
        assert trailing_window(b"[JAT:COMPLETED]") == ""

    def test_short_output_kept_whole(self):
        """Output shorter than the window is returned unchanged."""
        assert trailing_window("hello") == "hello"

    def test_long_output_truncated_to_window(self):
        """Only the last OUTPUT_WINDOW characters are kept."""
        output = "a" * 100 + "b" * OUTPUT_WINDOW
        window = trailing_window(output)
        assert len(window) == OUTPUT_WINDOW
        assert set(window) == {"b"}

    def test_window_counts_characters_not_bytes(self):
        """Multi-byte characters count once each."""
        output = "é" * (OUTPUT_WINDOW + 10)
        assert len(trailing_window(output)) == OUTPUT_WINDOW

    def test_ansi_codes_removed(self):
        """Color codes splitting a marker are stripped."""
        output = "\x1b[1m[JAT:\x1b[0mCOMPLETED]"
        assert trailing_window(output) == "[JAT:COMPLETED]"


class TestLastMatchPosition:
    """Tests for last_match_position()."""

    def test_no_match(self):
        assert last_match_position("nothing here", re.compile("marker")) == -1

    def test_rightmost_match(self):
        """The offset of the last occurrence is returned."""
        text = "x [A] y [A] z"
        assert last_match_position(text, re.compile(re.escape("[A]"))) == 8

    def test_overlapping_matches(self):
        """A match starting inside a previous match is still found."""
        assert last_match_position("aaaa", re.compile("aa")) == 2


class TestScanMarkers:
    """Tests for scan_markers()."""

    def test_empty_output(self):
        """No output means no markers."""
        assert scan_markers("") == MarkerPositions()
        assert scan_markers(None).found() == {}

    @pytest.mark.parametrize("group,marker", list(MARKERS.items()))
    def test_each_group_detected(self, group, marker):
        """Every group's primary marker is located."""
        positions = scan_markers(f"some output\n{marker}\n")
        assert positions.get(group) == len("some output\n")

    @pytest.mark.parametrize("group,marker", list(MARKERS.items()))
    def test_marker_outside_window_ignored(self, group, marker):
        """A marker only before the last 3000 characters is not detected."""
        output = marker + "x" * OUTPUT_WINDOW
        assert scan_markers(output).get(group) == -1

    def test_marker_straddling_window_edge_ignored(self):
        """A marker cut by the window boundary does not match."""
        marker = "[JAT:COMPLETED]"
        output = marker + "x" * (OUTPUT_WINDOW - len(marker) + 3)
        assert scan_markers(output).completed == -1

    def test_most_recent_occurrence_reported(self):
        """Repeated markers report the last occurrence."""
        output = "[JAT:IDLE] middle [JAT:COMPLETED] end"
        assert scan_markers(output).completed == output.index("[JAT:COMPLETED]")

    def test_positions_relative_to_window(self):
        """Offsets index into the window, not the full buffer."""
        output = "x" * 5000 + "[JAT:NEEDS_REVIEW]"
        assert scan_markers(output).ready_for_review == OUTPUT_WINDOW - len("[JAT:NEEDS_REVIEW]")

    def test_ready_with_actions(self):
        """The READY actions marker counts as review."""
        positions = scan_markers("[JAT:READY actions=commit,close]")
        assert positions.ready_for_review == 0

    def test_emoji_markers(self):
        """Emoji banners are recognized with or without variation selector."""
        assert scan_markers("\u2705 TASK COMPLETE").completed == 0
        assert scan_markers("\U0001f50d\ufe0f READY FOR REVIEW").ready_for_review == 0
        assert scan_markers("\u2753\ufe0f NEED CLARIFICATION").needs_input == 0

    def test_question_ui_footer(self):
        """Claude's question footer counts as needs-input."""
        output = "Pick one\nEnter to select · Tab/Arrow keys to navigate · Esc to cancel"
        assert scan_markers(output).needs_input >= 0

    def test_unchecked_option_list(self):
        """Two consecutive unchecked options count as needs-input."""
        output = "Which files?\n  [ ] src/a.py\n  [ ] src/b.py\n"
        assert scan_markers(output).needs_input == output.index("  [ ] src/a.py")

    def test_single_checkbox_not_a_question(self):
        """A lone checkbox line is not a question."""
        assert scan_markers("- [ ] write docs\n").needs_input == -1

    def test_marking_task_complete(self):
        """The completion progress phrase counts as completing."""
        assert scan_markers("Marking task complete...").completing == 0

    def test_found_lists_matched_groups(self):
        positions = scan_markers("[JAT:WORKING task=t-1] then [JAT:NEEDS_INPUT]")
        assert set(positions.found()) == {MarkerGroup.WORKING, MarkerGroup.NEEDS_INPUT}

    def test_type_something_with_next(self):
        """The free-form answer option followed by Next counts as needs-input."""
        output = "Which database?\n  1. Postgres\n  2. Type something.\n\n  Next\n"
        assert scan_markers(output).needs_input == output.index("Type something")

    def test_type_something_without_next(self):
        """Free-form prompt text with no Next button is not a question."""
        assert scan_markers("Type something to search\n$ ").needs_input == -1

    def test_type_something_next_too_far(self):
        """A Next more than 200 characters away does not pair up."""
        output = "Type something" + "x" * 250 + " Next"
        assert scan_markers(output).needs_input == -1
