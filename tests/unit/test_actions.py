"""Unit tests for robot actions and the action schedule."""

import dataclasses

import pytest

from kbspline.spline.actions import ActionSchedule, HaltAndRun, ScheduleParallel

pytestmark = pytest.mark.unit


class TestHaltAndRun:
    """Tests for the HaltAndRun action."""

    def test_defaults(self):
        """approx_duration defaults to zero."""
        action = HaltAndRun("shoot")
        assert action.command == "shoot"
        assert action.approx_duration == 0.0

    def test_frozen(self):
        """HaltAndRun is immutable."""
        action = HaltAndRun("shoot", 1.5)
        with pytest.raises(dataclasses.FrozenInstanceError):
            action.command = "intake"  # type: ignore[misc]


class TestActionSchedule:
    """Tests for ActionSchedule ordering and editing."""

    def test_schedule_keeps_path_time_order(self):
        """Actions are kept sorted by path time regardless of insertion order."""
        schedule = ActionSchedule()
        schedule.schedule(2.0, "c")
        schedule.schedule(0.5, "a")
        schedule.schedule(1.0, "b")

        assert [a.command for a in schedule] == ["a", "b", "c"]
        assert [a.path_time for a in schedule] == [0.5, 1.0, 2.0]

    def test_equal_times_keep_insertion_order(self):
        """An action scheduled at an existing time goes after it."""
        schedule = ActionSchedule()
        schedule.schedule(1.0, "first")
        schedule.schedule(1.0, "second")
        schedule.schedule(0.0, "zero")

        assert [a.command for a in schedule] == ["zero", "first", "second"]

    def test_schedule_returns_action(self):
        """schedule() returns the stored ScheduleParallel."""
        schedule = ActionSchedule()
        action = schedule.schedule(1.25, "spin")

        assert isinstance(action, ScheduleParallel)
        assert schedule[0] is action
        assert len(schedule) == 1

    def test_remove_by_identity(self):
        """remove() deletes the exact action object."""
        schedule = ActionSchedule()
        a = schedule.schedule(1.0, "same")
        b = schedule.schedule(1.0, "same")

        assert schedule.remove(b)
        assert len(schedule) == 1
        assert schedule[0] is a

    def test_remove_by_value(self):
        """remove() falls back to matching command and path time."""
        schedule = ActionSchedule()
        schedule.schedule(1.0, "spin")

        assert schedule.remove(ScheduleParallel(command="spin", path_time=1.0))
        assert len(schedule) == 0

    def test_remove_missing_returns_false(self):
        """Removing an unscheduled action reports False and changes nothing."""
        schedule = ActionSchedule()
        schedule.schedule(1.0, "spin")

        assert not schedule.remove(ScheduleParallel(command="spin", path_time=2.0))
        assert len(schedule) == 1

    def test_shift_after_moves_only_later_actions(self):
        """shift_after() leaves actions at or before the cutoff alone."""
        schedule = ActionSchedule()
        schedule.schedule(0.5, "early")
        schedule.schedule(1.0, "at")
        schedule.schedule(2.0, "late")

        schedule.shift_after(1.0, 0.25)

        assert [a.path_time for a in schedule] == pytest.approx([0.5, 1.0, 2.25])

    def test_negative_shift_keeps_order(self):
        """A negative shift re-sorts actions that move past unshifted ones."""
        schedule = ActionSchedule()
        schedule.schedule(1.0, "at")
        schedule.schedule(1.1, "late")

        schedule.shift_after(1.0, -0.5)

        assert [a.command for a in schedule] == ["late", "at"]
        assert [a.path_time for a in schedule] == pytest.approx([0.6, 1.0])

    def test_clear(self):
        """clear() empties the schedule."""
        schedule = ActionSchedule()
        schedule.schedule(1.0, "spin")
        schedule.clear()

        assert len(schedule) == 0
        assert list(schedule) == []
