"""
Robot actions along a path.

A robot action is either:
- HaltAndRun: stop at a control point, hand the drive over to a blocking
  command, then resume the path. Owned by the control point.
- ScheduleParallel: start a command at a path time without stopping. Owned
  by the spline's ActionSchedule, kept in path-time order.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TypeAlias

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HaltAndRun:
    """Stop at a control point and run a blocking command.

    Attributes:
        command: Name of the command to run.
        approx_duration: Rough run time of the command in seconds. Used for
            planning only; path following ignores it.
    """

    command: str
    approx_duration: float = 0.0


@dataclass(slots=True)
class ScheduleParallel:
    """Start a command at ``path_time`` while path following continues.

    ``path_time`` is owned by the ActionSchedule; it moves when control point
    times are propagated downstream.
    """

    command: str
    path_time: float


RobotAction: TypeAlias = HaltAndRun | ScheduleParallel


class ActionSchedule:
    """Path-time ordered list of ScheduleParallel actions."""

    __slots__ = ("_actions",)

    def __init__(self) -> None:
        self._actions: list[ScheduleParallel] = []

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[ScheduleParallel]:
        return iter(self._actions)

    def __getitem__(self, idx: int) -> ScheduleParallel:
        return self._actions[idx]

    def schedule(self, path_time: float, command: str) -> ScheduleParallel:
        """Add a command at ``path_time``; equal times keep insertion order."""
        action = ScheduleParallel(command=command, path_time=float(path_time))
        bisect.insort_right(self._actions, action, key=lambda a: a.path_time)
        logger.debug("Scheduled '%s' at path time %.3f", command, action.path_time)
        return action

    def remove(self, action: ScheduleParallel) -> bool:
        """Remove ``action``, matched by identity first, then by value.

        Returns:
            True if an action was removed, False if none matched.
        """
        for i, scheduled in enumerate(self._actions):
            if scheduled is action:
                del self._actions[i]
                return True
        for i, scheduled in enumerate(self._actions):
            if scheduled == action:
                del self._actions[i]
                return True
        return False

    def shift_after(self, after_time: float, delta: float) -> None:
        """Add ``delta`` to every action scheduled later than ``after_time``."""
        for action in self._actions:
            if action.path_time > after_time:
                action.path_time += delta
        # a negative delta can move part of the tail ahead of unshifted actions
        if delta < 0.0:
            self._actions.sort(key=lambda a: a.path_time)

    def clear(self) -> None:
        self._actions.clear()
