"""Shared spline fixtures for unit tests."""

import math

import pytest

from kbspline import PathSpline


@pytest.fixture
def linear_spline() -> PathSpline:
    """Straight path along +X at a constant 10 m/s, facing +X.

    Control points at x = 0, 5, 15, 30 m reached at t = 0, 0.5, 1.5, 3.0 s,
    every tangent set manually to (10, 0) so the curve is exactly x = 10 t.
    """
    spline = PathSpline(title="linear")
    for x, t in ((0.0, 0.0), (5.0, 0.5), (15.0, 1.5), (30.0, 3.0)):
        point = spline.add_control_point(x, 0.0, heading=math.pi / 2, time=t)
        point.set_tangent(10.0, 0.0)
    return spline


@pytest.fixture
def speed_spline() -> PathSpline:
    """Two-point path (0, 0) -> (10, 0) over one second at 10 m/s, heading 0."""
    spline = PathSpline(title="speed")
    for x in (0.0, 10.0):
        point = spline.add_control_point(x, 0.0)
        point.set_tangent(10.0, 0.0)
    return spline


@pytest.fixture
def bent_spline() -> PathSpline:
    """Four auto-tangent points with a bend, one second apart."""
    spline = PathSpline(title="bent")
    for x, y in ((0.0, 0.0), (10.0, 0.0), (20.0, 10.0), (20.0, 20.0)):
        spline.add_control_point(x, y)
    return spline
