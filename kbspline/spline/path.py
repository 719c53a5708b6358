"""
PathSpline: the editable path and factory for path generators.

The spline owns every ControlPoint in an arena keyed by integer handle; the
points link to each other by handle. Callers change the sequence only through
the methods here, and each edit refreshes exactly the tangents it can affect.
"""

from __future__ import annotations

import itertools
import logging
import os
from collections.abc import Iterator

from kbspline.config import (
    DEFAULT_DESCRIPTION,
    DEFAULT_PATH_DELTA,
    DEFAULT_SEGMENT_DURATION,
    DEFAULT_SPEED_MULTIPLIER,
    DEFAULT_TITLE,
    START_TIME,
)
from kbspline.protocol.path_file import (
    ControlPointRecord,
    PathDocument,
    ScheduledActionRecord,
    read_path_file,
    write_path_file,
)
from kbspline.spline.actions import ActionSchedule, HaltAndRun, ScheduleParallel
from kbspline.spline.control_point import (
    ControlPoint,
    TangentMode,
    refresh_heading_tangents,
    refresh_tangents,
)
from kbspline.spline.generators import PathFollower, PathIterator
from kbspline.spline.segment import PathPoint, SegmentSampler
from kbspline.utils.errors import InvalidEditError, TimeOrderError

logger = logging.getLogger(__name__)


def _validate_speed_multiplier(value: float) -> float:
    value = float(value)
    if not value > 0.0:
        raise ValueError(f"speed_multiplier must be positive, got {value}")
    return value


class PathSpline:
    """A time-parameterized Kochanek-Bartels path through control points.

    Example::

        spline = PathSpline(title="two ball auto")
        spline.add_control_point(0.0, 0.0)
        spline.add_control_point(1.0, 2.0, heading=math.pi / 2)
        follower = spline.path_follower()
        point = follower.point_at(0.5)
    """

    def __init__(
        self,
        title: str = DEFAULT_TITLE,
        description: str = DEFAULT_DESCRIPTION,
        speed_multiplier: float = DEFAULT_SPEED_MULTIPLIER,
    ) -> None:
        self.title = title
        self.description = description
        self._speed_multiplier = _validate_speed_multiplier(speed_multiplier)
        self._points: dict[int, ControlPoint] = {}
        self._handles = itertools.count()
        self._first_handle: int | None = None
        self._last_handle: int | None = None
        self._schedule = ActionSchedule()
        self._revision = 0

    def __repr__(self) -> str:
        return (
            f"PathSpline(title={self.title!r}, points={len(self._points)}, "
            f"duration={self.duration:.3f}, speed_multiplier={self._speed_multiplier})"
        )

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def _resolve(self, handle: int) -> ControlPoint:
        return self._points[handle]

    def _new_point(self, time: float) -> ControlPoint:
        handle = next(self._handles)
        point = ControlPoint(self, handle, time)
        self._points[handle] = point
        return point

    def _owns(self, point: ControlPoint) -> bool:
        return self._points.get(point.handle) is point

    def _bump_revision(self) -> None:
        self._revision += 1

    @property
    def revision(self) -> int:
        """Counter of structural edits; generators compare it to detect staleness."""
        return self._revision

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def speed_multiplier(self) -> float:
        """Default multiplier for new generators; > 0."""
        return self._speed_multiplier

    @speed_multiplier.setter
    def speed_multiplier(self, value: float) -> None:
        self._speed_multiplier = _validate_speed_multiplier(value)

    @property
    def schedule(self) -> ActionSchedule:
        """Scheduled parallel actions. Edit through schedule_command/delete_scheduled_command."""
        return self._schedule

    @property
    def first(self) -> ControlPoint | None:
        return None if self._first_handle is None else self._points[self._first_handle]

    @property
    def last(self) -> ControlPoint | None:
        return None if self._last_handle is None else self._points[self._last_handle]

    @property
    def duration(self) -> float:
        """Path time from the first to the last control point."""
        first = self.first
        last = self.last
        if first is None or last is None:
            return 0.0
        return last.time - first.time

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[ControlPoint]:
        point = self.first
        while point is not None:
            yield point
            point = point.next

    def get_control_point(self, handle: int) -> ControlPoint:
        """Look up a control point of this spline by handle.

        Raises:
            KeyError: No control point with that handle is part of the path.
        """
        return self._points[handle]

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_control_point(
        self,
        x: float,
        y: float,
        heading: float = 0.0,
        time: float | None = None,
    ) -> ControlPoint:
        """Append a control point to the end of the path.

        The first control point is always placed at the start time. Later
        points use ``time`` when it is after the current last point, and
        otherwise one default segment duration after it. The heading is kept
        within pi of the previous point's heading.
        """
        last = self.last
        if last is None:
            point_time = START_TIME
        elif time is not None and time > last.time:
            point_time = float(time)
        else:
            point_time = last.time + DEFAULT_SEGMENT_DURATION
            if time is not None:
                logger.warning(
                    "Requested time %.3f is not after the last control point (%.3f); "
                    "appending at %.3f",
                    time,
                    last.time,
                    point_time,
                )

        point = self._new_point(point_time)
        if last is None:
            self._first_handle = point.handle
        else:
            point._prev_handle = last.handle
            last._next_handle = point.handle
            point._heading = last.heading
        self._last_handle = point.handle

        point.set_position(x, y)
        point.set_heading(heading)
        logger.debug("Appended %r", point)
        return point

    def insert_control_point(self, time: float) -> ControlPoint:
        """Insert a control point at path ``time`` without changing the curve.

        Raises:
            InvalidEditError: The path has fewer than two control points.
            TimeOrderError: ``time`` is not strictly inside the path or falls
                on an existing control point.
        """
        first = self.first
        last = self.last
        if first is None or last is None or first is last:
            raise InvalidEditError("There is no path to insert control points into.")
        time = float(time)
        if not first.time < time < last.time:
            raise TimeOrderError(
                f"The time for an inserted control point ({time}) must be between "
                f"{first.time} and {last.time}."
            )
        for point in self:
            if point.time == time:
                raise TimeOrderError(f"There is already a control point at time {time}.")
        path_point = self.evaluate(time)
        assert path_point is not None
        return self.insert_at(path_point)

    def insert_at(self, path_point: PathPoint) -> ControlPoint:
        """Insert a control point carrying the position, heading and velocity of
        ``path_point``.

        The sample must have been generated from this path with a speed
        multiplier of 1.0, so that its time is a path time.

        Raises:
            InvalidEditError: The sample's segment is no longer part of this path.
            TimeOrderError: The sample does not lie strictly inside its segment.
        """
        start = path_point.segment_start
        end = path_point.segment_end
        if end is None or not self._owns(start) or not self._owns(end) or start.next is not end:
            raise InvalidEditError("The path point does not belong to a segment of this path.")
        time = float(path_point.time)
        if not start.time < time < end.time:
            raise TimeOrderError(
                f"The time for an inserted control point ({time}) must be between "
                f"{start.time} and {end.time}."
            )

        point = self._new_point(time)
        point._prev_handle = start.handle
        point._next_handle = end.handle
        start._next_handle = point.handle
        end._prev_handle = point.handle
        self._bump_revision()

        point.set_position(path_point.x, path_point.y)
        point._assign_heading(path_point.heading)
        point.set_tangent(path_point.field_dx, path_point.field_dy)
        logger.debug("Inserted %r", point)
        return point

    def delete_control_point(self, point: ControlPoint) -> None:
        """Remove ``point`` from the path.

        Other control point times are unchanged; the auto tangents of the
        former neighbors (and of a path endpoint that leans on them) are
        recomputed.

        Raises:
            InvalidEditError: ``point`` is the first (or only) control point,
                or is not part of this path.
        """
        if not self._owns(point):
            raise InvalidEditError("The control point is not part of this path.")
        prev_pt = point.prev
        if prev_pt is None:
            raise InvalidEditError("The initial point of a path cannot be deleted.")
        next_pt = point.next

        prev_pt._next_handle = point._next_handle
        if next_pt is not None:
            next_pt._prev_handle = prev_pt.handle
        else:
            self._last_handle = prev_pt.handle
        del self._points[point.handle]
        point._prev_handle = None
        point._next_handle = None
        point._owner = None
        self._bump_revision()

        affected: list[ControlPoint | None] = [prev_pt, next_pt]
        second = prev_pt.prev
        if second is not None and second.prev is None:
            affected.append(second)
        if next_pt is not None:
            second = next_pt.next
            if second is not None and second.next is None:
                affected.append(second)
        refresh_tangents(affected)
        refresh_heading_tangents([prev_pt, next_pt])
        logger.debug("Deleted control point %d at t=%.3f", point.handle, point.time)

    def clear(self) -> None:
        """Empty the path and reset metadata, schedule and speed multiplier."""
        for point in self._points.values():
            point._prev_handle = None
            point._next_handle = None
            point._owner = None
        self._points = {}
        self._first_handle = None
        self._last_handle = None
        self._schedule.clear()
        self.title = DEFAULT_TITLE
        self.description = DEFAULT_DESCRIPTION
        self._speed_multiplier = DEFAULT_SPEED_MULTIPLIER
        self._bump_revision()

    def recompute_derivatives(self) -> None:
        """Recompute every auto tangent and every heading tangent."""
        points = list(self)
        refresh_tangents(points)
        refresh_heading_tangents(points)

    # ------------------------------------------------------------------
    # Scheduled actions
    # ------------------------------------------------------------------

    def schedule_command(self, path_time: float, command: str) -> ScheduleParallel:
        """Start ``command`` at ``path_time`` while the path continues."""
        action = self._schedule.schedule(path_time, command)
        self._bump_revision()
        return action

    def delete_scheduled_command(self, action: ScheduleParallel) -> bool:
        """Remove a scheduled command; False if it was not scheduled."""
        removed = self._schedule.remove(action)
        if removed:
            self._bump_revision()
        return removed

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def curve_segments(
        self, delta: float | None = None, speed_multiplier: float | None = None
    ) -> PathIterator:
        """PathIterator over the path, ``delta`` seconds between samples."""
        return PathIterator(
            self,
            DEFAULT_PATH_DELTA if delta is None else delta,
            self._speed_multiplier if speed_multiplier is None else speed_multiplier,
        )

    def path_follower(self, speed_multiplier: float | None = None) -> PathFollower:
        """PathFollower for sampling at control-loop times."""
        return PathFollower(
            self,
            self._speed_multiplier if speed_multiplier is None else speed_multiplier,
        )

    def evaluate(self, time: float, speed_multiplier: float = 1.0) -> PathPoint | None:
        """Sample the path at query ``time`` without generator state.

        No actions are surfaced. Returns None when the path has fewer than two
        points or the scaled time lies outside the path.
        """
        speed_multiplier = _validate_speed_multiplier(speed_multiplier)
        first = self.first
        last = self.last
        if first is None or last is None or first is last:
            return None
        path_time = time * speed_multiplier
        if not first.time <= path_time <= last.time:
            return None
        start = first
        end = first.next
        assert end is not None
        while path_time > end.time:
            start = end
            end = end.next
            assert end is not None
        sampler = SegmentSampler()
        sampler.load(start, end)
        return sampler.sample(time, path_time, speed_multiplier)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_document(self) -> PathDocument:
        """Snapshot the path as a PathDocument."""
        records = []
        for point in self:
            dx, dy = point.tangent
            record = ControlPointRecord(
                x=point.x,
                y=point.y,
                heading=point.heading,
                time=point.time,
                derivatives_edited=point.derivatives_edited,
                dx=dx,
                dy=dy,
                dheading=point.heading_tangent,
            )
            if point.action is not None:
                record.action_command = point.action.command
                record.action_duration = point.action.approx_duration
            records.append(record)
        return PathDocument(
            title=self.title,
            description=self.description,
            speed_multiplier=self._speed_multiplier,
            control_points=records,
            scheduled_actions=[
                ScheduledActionRecord(path_time=a.path_time, command=a.command)
                for a in self._schedule
            ],
        )

    @classmethod
    def from_document(cls, document: PathDocument) -> PathSpline:
        """Build a new spline from a decoded PathDocument."""
        spline = cls(
            title=document.title,
            description=document.description,
            speed_multiplier=document.speed_multiplier,
        )
        prev: ControlPoint | None = None
        for record in document.control_points:
            point = spline._new_point(record.time)
            point._x = record.x
            point._y = record.y
            point._heading = record.heading
            point._dheading = record.dheading
            command = record.command
            if command is not None:
                # halted points keep a manual zero tangent
                point._action = HaltAndRun(command=command, approx_duration=record.duration)
                point._mode = TangentMode.MANUAL
            elif record.derivatives_edited:
                point._mode = TangentMode.MANUAL
                point._dx = record.dx
                point._dy = record.dy
            if prev is None:
                spline._first_handle = point.handle
            else:
                point._prev_handle = prev.handle
                prev._next_handle = point.handle
            prev = point
        if prev is not None:
            spline._last_handle = prev.handle
        for record in document.scheduled_actions:
            spline._schedule.schedule(record.path_time, record.command)
        spline.recompute_derivatives()
        return spline

    def load(self, path: str | os.PathLike[str]) -> None:
        """Replace this path with the contents of a path file.

        The replacement is all-or-nothing: on error the path is unchanged.

        Raises:
            PathLoadError: The file cannot be read or is not a valid path.
        """
        loaded = PathSpline.from_document(read_path_file(path))
        self._adopt(loaded)
        logger.info("Loaded path '%s' (%d control points)", self.title, len(self))

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write this path to a path file.

        Raises:
            PathSaveError: The file cannot be written.
        """
        write_path_file(path, self.to_document())

    def _adopt(self, other: PathSpline) -> None:
        """Take over the points, schedule and metadata of ``other``."""
        for point in self._points.values():
            point._prev_handle = None
            point._next_handle = None
            point._owner = None
        for point in other._points.values():
            point._owner = self
        self.title = other.title
        self.description = other.description
        self._speed_multiplier = other._speed_multiplier
        self._points = other._points
        self._handles = other._handles
        self._first_handle = other._first_handle
        self._last_handle = other._last_handle
        self._schedule = other._schedule
        other._points = {}
        other._first_handle = None
        other._last_handle = None
        self._bump_revision()
