"""
Cubic Hermite segment evaluation.

A segment is the stretch of path between two adjacent control points. Its
coefficients are packed into a 4x3 matrix (rows: start value, end value,
start out-tangent, end in-tangent; columns: x, y, heading) and blended by the
Hermite basis at the normalized parameter ``s`` in [0, 1]. The numba kernels
write into preallocated arrays so generators can sample without allocating.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from kbspline.spline.actions import HaltAndRun, RobotAction

if TYPE_CHECKING:
    from kbspline.spline.control_point import ControlPoint

# Rows weight [s^3, s^2, s, 1]; columns select the segment coefficient
# [start value, end value, start out-tangent, end in-tangent].
HERMITE_BASIS = np.array(
    [
        [2.0, -2.0, 1.0, 1.0],
        [-3.0, 3.0, -2.0, -1.0],
        [0.0, 0.0, 1.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
    ],
    dtype=np.float64,
)


@njit(cache=True)
def hermite_blend(
    s: float,
    duration: float,
    basis: np.ndarray,
    coeffs: np.ndarray,
    out_value: np.ndarray,
    out_deriv: np.ndarray,
) -> None:
    """Blend a 4x3 segment matrix at parameter s.

    out_value receives (x, y, heading); out_deriv receives their rates per
    second, i.e. the per-parameter derivative divided by the segment duration.
    """
    s2 = s * s
    s3 = s2 * s
    for k in range(3):
        out_value[k] = 0.0
        out_deriv[k] = 0.0
    for j in range(4):
        w = s3 * basis[0, j] + s2 * basis[1, j] + s * basis[2, j] + basis[3, j]
        dw = 3.0 * s2 * basis[0, j] + 2.0 * s * basis[1, j] + basis[2, j]
        for k in range(3):
            out_value[k] += w * coeffs[j, k]
            out_deriv[k] += dw * coeffs[j, k]
    for k in range(3):
        out_deriv[k] /= duration


@njit(cache=True)
def field_to_body(
    dx: float,
    dy: float,
    dheading: float,
    heading: float,
    speed_multiplier: float,
    out: np.ndarray,
) -> None:
    """Rotate a field velocity into (forward, strafe, rotation), scaled."""
    sin_h = math.sin(heading)
    cos_h = math.cos(heading)
    out[0] = (dx * sin_h + dy * cos_h) * speed_multiplier
    out[1] = (dx * cos_h - dy * sin_h) * speed_multiplier
    out[2] = dheading * speed_multiplier


@dataclass(slots=True, frozen=True)
class PathPoint:
    """An evaluated sample of the path.

    ``time`` is the caller's query time (not the speed-scaled path time). The
    field rates are per path second; the body speeds include the speed
    multiplier. ``segment_end`` is None only for a halt at the last point.
    """

    time: float
    x: float
    y: float
    heading: float
    field_dx: float
    field_dy: float
    field_dheading: float
    speed_forward: float
    speed_strafe: float
    speed_rotation: float
    action: RobotAction | None
    segment_start: ControlPoint
    segment_end: ControlPoint | None

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    @property
    def velocity(self) -> tuple[float, float, float]:
        return self.field_dx, self.field_dy, self.field_dheading

    @property
    def is_halt(self) -> bool:
        """True for the stationary sample emitted at a halt-and-run point."""
        return isinstance(self.action, HaltAndRun)


def halted_point(point: ControlPoint) -> PathPoint:
    """Stationary sample at a control point carrying a halt-and-run action."""
    return PathPoint(
        time=point.time,
        x=point.x,
        y=point.y,
        heading=point.heading,
        field_dx=0.0,
        field_dy=0.0,
        field_dheading=0.0,
        speed_forward=0.0,
        speed_strafe=0.0,
        speed_rotation=0.0,
        action=point.action,
        segment_start=point,
        segment_end=point.next,
    )


class SegmentSampler:
    """Coefficient cache and scratch buffers for sampling one segment at a time."""

    __slots__ = ("start", "end", "_coeffs", "_value", "_deriv", "_body")

    def __init__(self) -> None:
        self.start: ControlPoint | None = None
        self.end: ControlPoint | None = None
        self._coeffs = np.zeros((4, 3), dtype=np.float64)
        self._value = np.zeros(3, dtype=np.float64)
        self._deriv = np.zeros(3, dtype=np.float64)
        self._body = np.zeros(3, dtype=np.float64)

    def load(self, start: ControlPoint, end: ControlPoint | None) -> None:
        """Cache the coefficients of the segment start -> end.

        Tangents are read at load time; edits to the two points after this
        call are not seen until the segment is loaded again.
        """
        self.start = start
        self.end = end
        if end is None:
            return
        sx, sy, sh = start.out_tangent
        ex, ey, eh = end.in_tangent
        c = self._coeffs
        c[0, 0] = start.x
        c[0, 1] = start.y
        c[0, 2] = start.heading
        c[1, 0] = end.x
        c[1, 1] = end.y
        c[1, 2] = end.heading
        c[2, 0] = sx
        c[2, 1] = sy
        c[2, 2] = sh
        c[3, 0] = ex
        c[3, 1] = ey
        c[3, 2] = eh

    def sample(
        self,
        time: float,
        path_time: float,
        speed_multiplier: float,
        action: RobotAction | None = None,
    ) -> PathPoint:
        """Evaluate the loaded segment at ``path_time``.

        ``path_time`` must lie within [start.time, end.time] of the loaded
        segment; ``time`` is reported back unchanged in the PathPoint.
        """
        start = self.start
        end = self.end
        assert start is not None and end is not None
        duration = end.time - start.time
        s = (path_time - start.time) / duration
        hermite_blend(s, duration, HERMITE_BASIS, self._coeffs, self._value, self._deriv)
        value = self._value
        deriv = self._deriv
        field_to_body(
            deriv[0], deriv[1], deriv[2], value[2], speed_multiplier, self._body
        )
        body = self._body
        return PathPoint(
            time=time,
            x=float(value[0]),
            y=float(value[1]),
            heading=float(value[2]),
            field_dx=float(deriv[0]),
            field_dy=float(deriv[1]),
            field_dheading=float(deriv[2]),
            speed_forward=float(body[0]),
            speed_strafe=float(body[1]),
            speed_rotation=float(body[2]),
            action=action,
            segment_start=start,
            segment_end=end,
        )
