"""
Control points of a path spline.

Control points live in an arena owned by their PathSpline and are linked by
integer handles rather than object references, so the spline alone decides
which points exist. Each mutation below names the points whose tangents it
can change and refreshes exactly those (see ``refresh_tangents``).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from kbspline.config import DERIVATIVE_UI_SCALE, HEADING_HANDLE_LENGTH
from kbspline.spline.actions import HaltAndRun
from kbspline.spline.derivatives import auto_heading_tangent, auto_tangent
from kbspline.utils.angles import heading_from_vector, unwrap_near
from kbspline.utils.errors import InvalidEditError, TimeOrderError

if TYPE_CHECKING:
    from kbspline.spline.path import PathSpline

logger = logging.getLogger(__name__)


class TangentMode(Enum):
    """How a control point's position tangent is maintained."""

    AUTO = "auto"  # recomputed from neighbors on every relevant edit
    MANUAL = "manual"  # fixed by explicit user input


def refresh_tangents(points: Iterable[ControlPoint | None]) -> None:
    """Recompute the auto position tangents of ``points``.

    Interior points are refreshed before path endpoints: an endpoint's tangent
    is built from its neighbor's tangent, an interior tangent only from
    neighbor positions, so this order never leaves a stale value behind.
    """
    interior: list[ControlPoint] = []
    endpoints: list[ControlPoint] = []
    seen: set[int] = set()
    for point in points:
        if point is None or id(point) in seen:
            continue
        seen.add(id(point))
        if point.prev is None or point.next is None:
            endpoints.append(point)
        else:
            interior.append(point)
    for point in interior:
        point._refresh_tangent()
    for point in endpoints:
        point._refresh_tangent()


def refresh_heading_tangents(points: Iterable[ControlPoint | None]) -> None:
    """Recompute the heading tangents of ``points``."""
    for point in points:
        if point is not None:
            point._refresh_heading_tangent()


class ControlPoint:
    """A node of the path: field position, heading, time and tangents.

    Instances are created by PathSpline; use its add/insert/delete methods to
    change the sequence. Positions are field meters, headings radians (0 faces
    field +Y), times seconds along the path, tangents per path second.
    """

    __slots__ = (
        "_owner",
        "handle",
        "_prev_handle",
        "_next_handle",
        "_x",
        "_y",
        "_heading",
        "_time",
        "_mode",
        "_dx",
        "_dy",
        "_dheading",
        "_action",
    )

    def __init__(self, owner: PathSpline, handle: int, time: float) -> None:
        self._owner: PathSpline | None = owner
        self.handle = handle
        self._prev_handle: int | None = None
        self._next_handle: int | None = None
        self._x = 0.0
        self._y = 0.0
        self._heading = 0.0
        self._time = float(time)
        self._mode = TangentMode.AUTO
        self._dx = 0.0
        self._dy = 0.0
        self._dheading = 0.0
        self._action: HaltAndRun | None = None

    def __repr__(self) -> str:
        return (
            f"ControlPoint(handle={self.handle}, t={self._time:.3f}, "
            f"x={self._x:.3f}, y={self._y:.3f}, heading={self._heading:.3f}, "
            f"mode={self._mode.value})"
        )

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    @property
    def prev(self) -> ControlPoint | None:
        """The previous control point, None for the first point."""
        if self._prev_handle is None or self._owner is None:
            return None
        return self._owner._resolve(self._prev_handle)

    @property
    def next(self) -> ControlPoint | None:
        """The next control point, None for the last point."""
        if self._next_handle is None or self._owner is None:
            return None
        return self._owner._resolve(self._next_handle)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def x(self) -> float:
        return self._x

    @property
    def y(self) -> float:
        return self._y

    @property
    def position(self) -> tuple[float, float]:
        return self._x, self._y

    @property
    def heading(self) -> float:
        return self._heading

    @property
    def time(self) -> float:
        return self._time

    @property
    def tangent(self) -> tuple[float, float]:
        return self._dx, self._dy

    @property
    def heading_tangent(self) -> float:
        return self._dheading

    @property
    def tangent_mode(self) -> TangentMode:
        return self._mode

    @property
    def derivatives_edited(self) -> bool:
        """True if the position tangent was set explicitly."""
        return self._mode is TangentMode.MANUAL

    @property
    def action(self) -> HaltAndRun | None:
        return self._action

    @property
    def in_tangent(self) -> tuple[float, float, float]:
        """(dx, dy, dheading) scaled by the duration of the incoming segment.

        The Hermite basis is defined over a unit parameter interval; scaling
        by the segment duration corrects it for segments of any length.
        """
        prev_pt = self.prev
        if prev_pt is None:
            return 0.0, 0.0, 0.0
        scale = self._time - prev_pt._time
        return self._dx * scale, self._dy * scale, self._dheading * scale

    @property
    def out_tangent(self) -> tuple[float, float, float]:
        """(dx, dy, dheading) scaled by the duration of the outgoing segment."""
        next_pt = self.next
        if next_pt is None:
            return 0.0, 0.0, 0.0
        scale = next_pt._time - self._time
        return self._dx * scale, self._dy * scale, self._dheading * scale

    # ------------------------------------------------------------------
    # Position and tangent editing
    # ------------------------------------------------------------------

    def set_position(self, x: float, y: float) -> None:
        """Move the point and refresh every auto tangent the move can change.

        That is this point, both neighbors, and a path endpoint two hops away
        (an endpoint's tangent is derived from its neighbor's tangent).
        Manually set tangents are preserved.
        """
        self._x = float(x)
        self._y = float(y)
        affected: list[ControlPoint | None] = [self]
        prev_pt = self.prev
        if prev_pt is not None:
            affected.append(prev_pt)
            second = prev_pt.prev
            if second is not None and second.prev is None:
                affected.append(second)
        next_pt = self.next
        if next_pt is not None:
            affected.append(next_pt)
            second = next_pt.next
            if second is not None and second.next is None:
                affected.append(second)
        refresh_tangents(affected)

    def set_tangent(self, dx: float, dy: float) -> None:
        """Set the position tangent explicitly; it is kept until reset."""
        dx = float(dx)
        dy = float(dy)
        if self._action is not None and (dx != 0.0 or dy != 0.0):
            logger.warning(
                "Control point at t=%.3f halts for '%s'; keeping a zero tangent",
                self._time,
                self._action.command,
            )
            dx = dy = 0.0
        self._dx = dx
        self._dy = dy
        self._mode = TangentMode.MANUAL
        refresh_tangents([self.prev, self.next])

    def reset_tangent(self) -> None:
        """Return a manually set tangent to automatic computation."""
        if self._mode is not TangentMode.MANUAL:
            return
        if self._action is not None:
            logger.debug(
                "Control point at t=%.3f halts for '%s'; tangent stays manual",
                self._time,
                self._action.command,
            )
            return
        self._mode = TangentMode.AUTO
        refresh_tangents([self, self.prev, self.next])
        self._refresh_heading_tangent()

    def _refresh_tangent(self) -> None:
        if self._mode is TangentMode.AUTO:
            self._dx, self._dy = auto_tangent(self)

    # ------------------------------------------------------------------
    # Heading
    # ------------------------------------------------------------------

    def set_heading(self, heading: float) -> None:
        """Set the heading, keeping it within pi of the current heading."""
        self._heading = unwrap_near(float(heading), self._heading)
        refresh_heading_tangents([self, self.prev, self.next])

    def _assign_heading(self, heading: float) -> None:
        """Set an already continuous heading (no seam normalization)."""
        self._heading = float(heading)
        refresh_heading_tangents([self, self.prev, self.next])

    def _refresh_heading_tangent(self) -> None:
        self._dheading = auto_heading_tangent(self)

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def set_time(self, time: float, propagate: bool = False) -> None:
        """Re-time this control point.

        Args:
            time: New time in seconds; must lie strictly between the times of
                the previous and next control points.
            propagate: If False only this point moves in time. If True the
                change is added to every later control point and to every
                scheduled action after this point's old time. For points at
                (0.0, 1.0, 2.0, 3.0), setting the second to 1.1 gives
                (0.0, 1.1, 2.0, 3.0) without propagation and
                (0.0, 1.1, 2.1, 3.1) with it.

        Raises:
            InvalidEditError: This is the first point (its time is fixed) or
                the point is no longer part of a path.
            TimeOrderError: ``time`` is not after the previous point or not
                before the next point.
        """
        if self._owner is None:
            raise InvalidEditError("The control point is no longer part of a path.")
        prev_pt = self.prev
        if prev_pt is None:
            raise InvalidEditError("The time of the first control point cannot be reset.")
        time = float(time)
        if time <= prev_pt._time:
            raise TimeOrderError(
                f"The time ({time}) must be greater than the time of the "
                f"previous control point ({prev_pt._time})."
            )
        next_pt = self.next
        if next_pt is not None and time >= next_pt._time:
            raise TimeOrderError(
                f"The time ({time}) must be less than the time of the "
                f"next control point ({next_pt._time})."
            )

        old_time = self._time
        delta = time - old_time
        self._time = time
        if propagate:
            point = next_pt
            while point is not None:
                point._time += delta
                point = point.next
            self._owner.schedule.shift_after(old_time, delta)
        logger.debug(
            "Control point %d re-timed %.3f -> %.3f (propagate=%s)",
            self.handle,
            old_time,
            time,
            propagate,
        )

    # ------------------------------------------------------------------
    # Robot action
    # ------------------------------------------------------------------

    def set_robot_action(self, command: str | None, approx_duration: float = 0.0) -> None:
        """Set or clear a halt-and-run action at this control point.

        Setting an action stops the vehicle here (zero tangent). Clearing it
        returns the tangent to automatic computation.
        """
        if command is not None:
            self._action = HaltAndRun(command=command, approx_duration=float(approx_duration))
            self.set_tangent(0.0, 0.0)
            logger.debug("Halt action '%s' set at t=%.3f", command, self._time)
        elif self._action is not None:
            self._action = None
            self.reset_tangent()
            logger.debug("Halt action cleared at t=%.3f", self._time)

    # ------------------------------------------------------------------
    # Editing handles
    # ------------------------------------------------------------------

    @property
    def tangent_handle(self) -> tuple[float, float]:
        """Field location of the handle used to edit the tangent."""
        return (
            self._x + DERIVATIVE_UI_SCALE * self._dx,
            self._y + DERIVATIVE_UI_SCALE * self._dy,
        )

    def set_tangent_handle(self, x: float, y: float) -> None:
        """Move the tangent handle to (x, y); the tangent becomes manual."""
        self.set_tangent(
            (x - self._x) / DERIVATIVE_UI_SCALE, (y - self._y) / DERIVATIVE_UI_SCALE
        )

    @property
    def heading_handle(self) -> tuple[float, float]:
        """Field location of the handle used to edit the heading."""
        return (
            self._x + HEADING_HANDLE_LENGTH * math.sin(self._heading),
            self._y + HEADING_HANDLE_LENGTH * math.cos(self._heading),
        )

    def set_heading_handle(self, x: float, y: float) -> None:
        """Point the heading through field location (x, y)."""
        self.set_heading(heading_from_vector(x - self._x, y - self._y))
