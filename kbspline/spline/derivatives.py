"""
Automatic tangent computation for control points.

These are pure functions of a control point and its neighbors: they read
positions, headings and neighbor tangents and return the tangent the point
should carry in auto mode. Callers decide which points to refresh after an
edit (see ControlPoint).

Position tangents follow the cardinal-spline rule
``tension * (next.position - prev.position)``. An endpoint of a path with at
least three points has only one real neighbor; its tangent is manufactured by
reflecting that neighbor's tangent across the chord joining the two, so the
curve leaves (or enters) the path end as symmetrically as it passes through
the neighbor.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from kbspline.config import DEFAULT_HEADING_TENSION, DEFAULT_TENSION, ZERO_TOLERANCE

if TYPE_CHECKING:
    from kbspline.spline.control_point import ControlPoint

logger = logging.getLogger(__name__)


def reflect_across_chord(
    chord_x: float,
    chord_y: float,
    tangent_x: float,
    tangent_y: float,
    tolerance: float = ZERO_TOLERANCE,
) -> tuple[float, float] | None:
    """Reflect a neighbor tangent across the chord to that neighbor.

    Args:
        chord_x, chord_y: Chord from the endpoint toward its neighbor (or
            from the neighbor toward the endpoint, the line is what matters).
        tangent_x, tangent_y: The neighbor's tangent.
        tolerance: Lengths at or below this are treated as zero.

    Returns:
        The reflected tangent, ``(0.0, 0.0)`` if the neighbor is stopped, or
        None if the chord is degenerate and the caller should fall back to
        the cardinal rule.
    """
    chord_len = math.hypot(chord_x, chord_y)
    if chord_len <= tolerance:
        return None
    cx = chord_x / chord_len
    cy = chord_y / chord_len
    speed = math.hypot(tangent_x, tangent_y)
    if speed <= tolerance:
        # neighbor stops here: a stopped virtual neighbor yields no velocity
        return 0.0, 0.0
    ux = tangent_x / speed
    uy = tangent_y / speed
    dot = cx * ux + cy * uy
    return (2.0 * dot * cx - ux) * speed, (2.0 * dot * cy - uy) * speed


def auto_tangent(point: ControlPoint) -> tuple[float, float]:
    """Position tangent for ``point`` computed from its neighbors."""
    prev_pt = point.prev
    next_pt = point.next

    if prev_pt is None and next_pt is not None and next_pt.next is not None:
        nx, ny = next_pt.tangent
        reflected = reflect_across_chord(
            next_pt.x - point.x, next_pt.y - point.y, nx, ny
        )
        if reflected is not None:
            return reflected
        logger.debug("Degenerate start chord at t=%.3f, using cardinal rule", point.time)
    elif next_pt is None and prev_pt is not None and prev_pt.prev is not None:
        px, py = prev_pt.tangent
        reflected = reflect_across_chord(
            point.x - prev_pt.x, point.y - prev_pt.y, px, py
        )
        if reflected is not None:
            return reflected
        logger.debug("Degenerate end chord at t=%.3f, using cardinal rule", point.time)

    x_prev, y_prev = (prev_pt.x, prev_pt.y) if prev_pt is not None else (point.x, point.y)
    x_next, y_next = (next_pt.x, next_pt.y) if next_pt is not None else (point.x, point.y)
    return DEFAULT_TENSION * (x_next - x_prev), DEFAULT_TENSION * (y_next - y_prev)


def auto_heading_tangent(point: ControlPoint) -> float:
    """Heading tangent for ``point``.

    A missing neighbor is replaced by a virtual heading extrapolated linearly
    through the one real neighbor. An isolated point has no heading tangent.
    """
    prev_pt = point.prev
    next_pt = point.next
    if prev_pt is None and next_pt is None:
        return 0.0
    heading = point.heading
    if prev_pt is not None:
        prev_heading = prev_pt.heading
    else:
        prev_heading = heading - (next_pt.heading - heading)  # type: ignore[union-attr]
    if next_pt is not None:
        next_heading = next_pt.heading
    else:
        next_heading = heading + (heading - prev_pt.heading)  # type: ignore[union-attr]
    return DEFAULT_HEADING_TENSION * (next_heading - prev_heading)
