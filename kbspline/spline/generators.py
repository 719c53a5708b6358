"""
Path generators: stateful cursors that sample a PathSpline.

PathIterator steps query time by a fixed delta (drawing, planning previews).
PathFollower samples at caller-supplied, monotonically increasing times (the
robot control loop). Both walk segments forward only, surface halt-and-run
actions once as they pass the control point that carries them, and surface
scheduled parallel actions in path-time order.

Generators never mutate the spline. A structural edit (insert, delete, clear,
load, schedule change) made after a generator was created makes that generator
raise StalePathError on its next call; discard it and request a new one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from typing import TYPE_CHECKING

from kbspline.config import DEFAULT_PATH_DELTA, TRACE_ENABLED
from kbspline.spline.segment import PathPoint, SegmentSampler, halted_point
from kbspline.utils.errors import StalePathError

if TYPE_CHECKING:
    from kbspline.spline.path import PathSpline

logger = logging.getLogger(__name__)


class GeneratorState(Enum):
    """Where a generator's cursor is on the path."""

    BEFORE_FIRST_POINT = "before_first_point"
    IN_SEGMENT = "in_segment"
    AFTER_LAST_POINT = "after_last_point"  # terminal


class _PathGenerator:
    """Segment cursor shared by PathIterator and PathFollower."""

    def __init__(self, spline: PathSpline, speed_multiplier: float) -> None:
        speed_multiplier = float(speed_multiplier)
        if not speed_multiplier > 0.0:
            raise ValueError(f"speed_multiplier must be positive, got {speed_multiplier}")
        self._spline = spline
        self._revision = spline.revision
        self.speed_multiplier = speed_multiplier
        self._sampler = SegmentSampler()
        self._first_call = True
        self._action_index = 0
        first = spline.first
        if first is None:
            self._state = GeneratorState.AFTER_LAST_POINT
        else:
            self._sampler.load(first, first.next)
            self._state = GeneratorState.BEFORE_FIRST_POINT

    @property
    def state(self) -> GeneratorState:
        return self._state

    @property
    def segment(self):
        """(start, end) control points of the current segment."""
        return self._sampler.start, self._sampler.end

    def _check_revision(self) -> None:
        if self._spline.revision != self._revision:
            raise StalePathError(
                "The path was structurally edited after this generator was created; "
                "request a new generator."
            )

    def _finish(self) -> None:
        if self._state is not GeneratorState.AFTER_LAST_POINT:
            logger.debug("Generator reached the end of the path")
        self._state = GeneratorState.AFTER_LAST_POINT

    def _point_at(self, time: float) -> PathPoint | None:
        """Sample the path at query ``time``; None once past the last point."""
        self._check_revision()
        sampler = self._sampler
        if sampler.end is None:
            self._finish()
            return None

        if self._first_call:
            self._first_call = False
            self._state = GeneratorState.IN_SEGMENT
            start = sampler.start
            assert start is not None
            if start.action is not None:
                return halted_point(start)

        path_time = time * self.speed_multiplier
        while path_time > sampler.end.time:
            new_start = sampler.end
            sampler.load(new_start, new_start.next)
            if TRACE_ENABLED:
                logger.trace(  # type: ignore[attr-defined]
                    "Advanced to segment starting at t=%.3f", new_start.time
                )
            if new_start.action is not None:
                # a halt at the last point is still emitted before the path ends
                return halted_point(new_start)
            if sampler.end is None:
                self._finish()
                return None

        action = None
        schedule = self._spline.schedule
        if self._action_index < len(schedule):
            pending = schedule[self._action_index]
            if pending.path_time <= path_time:
                action = pending
                self._action_index += 1

        point = sampler.sample(time, path_time, self.speed_multiplier, action)
        if TRACE_ENABLED:
            logger.trace(  # type: ignore[attr-defined]
                "t=%.4f path_t=%.4f pos=(%.4f, %.4f) fwd=%.4f strafe=%.4f",
                time,
                path_time,
                point.x,
                point.y,
                point.speed_forward,
                point.speed_strafe,
            )
        return point


class PathIterator(_PathGenerator):
    """Iterate over PathPoints spaced ``delta`` seconds of query time apart.

    Sampling starts at time 0 and continues while the speed-scaled time has
    not passed the last control point. A halt is yielded in addition to the
    regular samples, and a halt at the last control point is yielded after
    them. Usable directly in a for loop::

        for point in spline.curve_segments(delta=0.02):
            draw(point.x, point.y)
    """

    def __init__(
        self,
        spline: PathSpline,
        delta: float = DEFAULT_PATH_DELTA,
        speed_multiplier: float = 1.0,
    ) -> None:
        delta = float(delta)
        if not delta > 0.0:
            raise ValueError(f"delta must be positive, got {delta}")
        super().__init__(spline, speed_multiplier)
        self.delta = delta
        self._time = 0.0

    @property
    def time(self) -> float:
        """Query time of the next sample."""
        return self._time

    def has_next(self) -> bool:
        last = self._spline.last
        return (
            self._sampler.end is not None
            and last is not None
            and self._time * self.speed_multiplier <= last.time
        )

    def __iter__(self) -> Iterator[PathPoint]:
        return self

    def __next__(self) -> PathPoint:
        self._check_revision()
        if not self.has_next():
            last = self._spline.last
            pending_halt = (
                self._state is not GeneratorState.AFTER_LAST_POINT
                and self._sampler.end is not None
                and last is not None
                and last.action is not None
            )
            self._finish()
            if pending_halt:
                # sampling stops at the last point, so its halt is never passed
                return halted_point(last)
            raise StopIteration
        point = self._point_at(self._time)
        if point is None:
            raise StopIteration
        # a halt does not consume the step; the same time is sampled next
        if not point.is_halt:
            self._time += self.delta
        return point


class PathFollower(_PathGenerator):
    """Sample the path at caller-controlled times.

    Times passed to ``point_at`` must not decrease between calls; the cursor
    only moves forward and earlier times give extrapolated, meaningless
    results rather than an error.
    """

    def point_at(self, time: float) -> PathPoint | None:
        """PathPoint for query ``time``, or None past the last control point."""
        return self._point_at(float(time))
