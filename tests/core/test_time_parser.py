# tests/core/test_time_parser.py
import pytest

from chess_sync.core.time_parser import (
    SideClockTracker,
    clock_tag_from_comment,
    clock_to_seconds,
    scan_clock_comments,
)
from chess_sync.types import Side


@pytest.mark.parametrize("clock, expected", [
    ("0:15:00", 900.0),
    ("1:00:00.5", 3600.5),
    ("0:00:09.9", 9.9),
    ("5:07", 307.0),
    ("0:75:00", 4500.0),  # out-of-range minutes are accepted arithmetically
])
def test_clock_to_seconds(clock, expected):
    assert clock_to_seconds(clock) == pytest.approx(expected)


def test_clock_to_seconds_empty_is_zero():
    assert clock_to_seconds("") == 0.0


@pytest.mark.parametrize("clock", ["abc", "1:2:3:4", "0:1x:00", ":"])
def test_clock_to_seconds_malformed_returns_none(clock):
    assert clock_to_seconds(clock) is None


def test_clock_tag_from_comment_finds_tag_among_other_annotations():
    assert clock_tag_from_comment(" [%eval 0.31] [%clk 0:02:58.4] ") == "0:02:58.4"
    assert clock_tag_from_comment("a nice move") == ""
    assert clock_tag_from_comment(None) == ""


def test_scan_clock_comments_is_positional():
    text = "1. e4 {[%clk 0:03:00]} e5 {book move} 2. Nf3 {[%eval 0.2] [%clk 0:02:55]}"
    assert scan_clock_comments(text) == ["0:03:00", "", "0:02:55"]


def test_scan_clock_comments_without_comments():
    assert scan_clock_comments("1. e4 e5 2. Nf3 *") == []


class TestSideClockTracker:
    def test_first_reading_per_side_has_no_time_spent(self):
        tracker = SideClockTracker()
        assert tracker.time_spent(Side.WHITE, "0:10:00") is None
        assert tracker.time_spent(Side.BLACK, "0:10:00") is None

    def test_sides_are_tracked_independently(self):
        tracker = SideClockTracker()
        tracker.time_spent(Side.WHITE, "0:10:00")
        tracker.time_spent(Side.BLACK, "0:09:30")
        assert tracker.time_spent(Side.WHITE, "0:09:52") == pytest.approx(8.0)
        assert tracker.time_spent(Side.BLACK, "0:09:00") == pytest.approx(30.0)

    def test_clock_increase_yields_negative_time_spent(self):
        tracker = SideClockTracker()
        tracker.time_spent(Side.WHITE, "0:03:00")
        assert tracker.time_spent(Side.WHITE, "0:03:01") == pytest.approx(-1.0)

    def test_empty_and_unparseable_clocks_are_not_readings(self):
        tracker = SideClockTracker()
        tracker.time_spent(Side.WHITE, "0:10:00")
        assert tracker.time_spent(Side.WHITE, "") is None
        assert tracker.time_spent(Side.WHITE, "garbage") is None
        # The last valid reading is still the reference point.
        assert tracker.time_spent(Side.WHITE, "0:09:40") == pytest.approx(20.0)

    def test_stamp_builds_timed_half_move(self):
        tracker = SideClockTracker()
        tracker.stamp("e4", Side.WHITE, 1, "0:05:00")
        move = tracker.stamp("Nf3", Side.WHITE, 2, "0:04:57")
        assert move.algebraic == "Nf3"
        assert move.side is Side.WHITE
        assert move.move_number == 2
        assert move.clock_remaining == "0:04:57"
        assert move.time_spent == pytest.approx(3.0)
