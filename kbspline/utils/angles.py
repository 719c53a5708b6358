"""Scalar angle helpers (radians).

Headings are measured from field +Y toward +X, so a heading of 0 faces +Y and
a heading of pi/2 faces +X.
"""

import math

TWO_PI = 2.0 * math.pi


def unwrap_near(angle: float, reference: float) -> float:
    """Shift ``angle`` by whole turns so it lies within pi of ``reference``.

    Keeps headings continuous across the -180/180 degree seam.
    """
    while angle - reference > math.pi:
        angle -= TWO_PI
    while angle - reference < -math.pi:
        angle += TWO_PI
    return angle


def heading_from_vector(dx: float, dy: float) -> float:
    """Heading of the field vector (dx, dy)."""
    return math.atan2(dx, dy)
