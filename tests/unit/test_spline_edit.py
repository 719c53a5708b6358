"""Unit tests for PathSpline sequence editing."""

import numpy as np
import pytest

from kbspline import InvalidEditError, PathSpline, TangentMode, TimeOrderError
from kbspline.config import DEFAULT_DESCRIPTION, DEFAULT_TITLE

pytestmark = pytest.mark.unit


def _follow(spline: PathSpline, times) -> np.ndarray:
    follower = spline.path_follower(speed_multiplier=1.0)
    samples = []
    for t in times:
        point = follower.point_at(t)
        samples.append((point.x, point.y, point.speed_forward, point.speed_strafe))
    return np.array(samples)


class TestAddControlPoint:
    """Tests for appending control points."""

    def test_first_point_at_start_time(self):
        """The first point is placed at t=0 whatever time is requested."""
        spline = PathSpline()
        point = spline.add_control_point(1.0, 2.0, time=5.0)

        assert point.time == 0.0
        assert spline.first is point
        assert spline.last is point
        assert point.position == (1.0, 2.0)

    def test_requested_time_used_when_later(self):
        """A time after the last point is used as given."""
        spline = PathSpline()
        spline.add_control_point(0.0, 0.0)
        point = spline.add_control_point(1.0, 0.0, time=2.5)

        assert point.time == 2.5

    def test_default_gap(self):
        """Without a time, points are appended one second apart."""
        spline = PathSpline()
        for i in range(3):
            spline.add_control_point(float(i), 0.0)

        assert [p.time for p in spline] == [0.0, 1.0, 2.0]

    def test_early_time_is_adjusted(self, caplog):
        """A time not after the last point falls back to last + 1 s with a warning."""
        spline = PathSpline()
        spline.add_control_point(0.0, 0.0)
        spline.add_control_point(1.0, 0.0, time=2.0)
        point = spline.add_control_point(2.0, 0.0, time=1.0)

        assert point.time == 3.0
        assert "not after the last control point" in caplog.text

    def test_links_and_iteration(self):
        """Appended points are linked in order and iterable."""
        spline = PathSpline()
        a = spline.add_control_point(0.0, 0.0)
        b = spline.add_control_point(1.0, 0.0)
        c = spline.add_control_point(2.0, 0.0)

        assert list(spline) == [a, b, c]
        assert len(spline) == 3
        assert a.prev is None and a.next is b
        assert b.prev is a and b.next is c
        assert c.prev is b and c.next is None
        assert spline.get_control_point(b.handle) is b


class TestDeleteControlPoint:
    """Tests for deleting control points."""

    def test_sole_point_rejected(self):
        """Deleting the only point is rejected and leaves it in place."""
        spline = PathSpline()
        point = spline.add_control_point(0.0, 0.0)

        with pytest.raises(InvalidEditError):
            spline.delete_control_point(point)
        assert list(spline) == [point]

    def test_first_point_rejected(self, linear_spline):
        """Deleting the first point of a longer path is rejected."""
        before = list(linear_spline)
        with pytest.raises(InvalidEditError):
            linear_spline.delete_control_point(linear_spline.first)

        assert list(linear_spline) == before
        assert [p.time for p in linear_spline] == [0.0, 0.5, 1.5, 3.0]

    def test_foreign_point_rejected(self, linear_spline, speed_spline):
        """A point from another spline cannot be deleted."""
        with pytest.raises(InvalidEditError):
            linear_spline.delete_control_point(speed_spline.last)

    def test_delete_interior_preserves_linear_motion(self, linear_spline):
        """Removing an interior point keeps x = 10 t at 10 m/s."""
        linear_spline.delete_control_point(list(linear_spline)[1])

        times = np.linspace(0.0, 3.0, 31)
        samples = _follow(linear_spline, times)
        assert np.allclose(samples[:, 0], 10.0 * times, atol=1e-5)
        assert np.allclose(samples[:, 1], 0.0, atol=1e-5)
        assert np.allclose(samples[:, 2], 10.0, atol=1e-5)
        assert [p.time for p in linear_spline] == [0.0, 1.5, 3.0]

    def test_delete_last(self, linear_spline):
        """Deleting the last point makes its predecessor the last point."""
        points = list(linear_spline)
        linear_spline.delete_control_point(points[3])

        assert linear_spline.last is points[2]
        assert points[2].next is None
        assert len(linear_spline) == 3

    def test_delete_refreshes_auto_tangents(self, bent_spline):
        """Neighbors of a deleted point get fresh auto tangents."""
        bent_spline.delete_control_point(list(bent_spline)[2])
        before = np.array([p.tangent for p in bent_spline])
        bent_spline.recompute_derivatives()

        assert np.allclose(before, [p.tangent for p in bent_spline])

    def test_deleted_point_is_detached(self, linear_spline):
        """A deleted point has no links and cannot be looked up."""
        point = list(linear_spline)[2]
        linear_spline.delete_control_point(point)

        assert point.prev is None and point.next is None
        with pytest.raises(KeyError):
            linear_spline.get_control_point(point.handle)
        with pytest.raises(InvalidEditError):
            linear_spline.delete_control_point(point)


class TestInsertControlPoint:
    """Tests for inserting control points."""

    def test_requires_two_points(self):
        """Inserting into a path with fewer than two points is rejected."""
        spline = PathSpline()
        with pytest.raises(InvalidEditError):
            spline.insert_control_point(0.5)
        spline.add_control_point(0.0, 0.0)
        with pytest.raises(InvalidEditError):
            spline.insert_control_point(0.5)

    @pytest.mark.parametrize("time", [0.0, -0.5, 3.0, 4.0, 0.5, 1.5])
    def test_bad_times_rejected(self, linear_spline, time):
        """Times at or outside the ends, or on an existing point, are rejected."""
        with pytest.raises(TimeOrderError):
            linear_spline.insert_control_point(time)
        assert len(linear_spline) == 4

    def test_insert_carries_curve_state(self, linear_spline):
        """The new point takes the curve's position, heading and velocity."""
        point = linear_spline.insert_control_point(1.0)

        assert point.time == 1.0
        assert point.position == pytest.approx((10.0, 0.0))
        assert point.heading == pytest.approx(np.pi / 2)
        assert point.tangent == pytest.approx((10.0, 0.0))
        assert point.tangent_mode is TangentMode.MANUAL
        assert [p.time for p in linear_spline] == [0.0, 0.5, 1.0, 1.5, 3.0]

    def test_insert_preserves_shape(self, linear_spline):
        """Follower positions and speeds are unchanged by an insertion."""
        times = np.linspace(0.0, 3.0, 61)
        before = _follow(linear_spline, times)

        linear_spline.insert_control_point(2.2)
        after = _follow(linear_spline, times)

        assert np.allclose(before, after, atol=1e-5)

    def test_insert_preserves_curved_position(self):
        """Splitting a curved segment at its own velocity keeps the positions."""
        spline = PathSpline()
        for x, y, dx, dy in ((0.0, 0.0, 5.0, 0.0), (10.0, 5.0, 0.0, 8.0), (12.0, 15.0, 4.0, 4.0)):
            spline.add_control_point(x, y).set_tangent(dx, dy)
        times = np.linspace(0.0, 2.0, 41)
        before = _follow(spline, times)[:, :2]

        spline.insert_control_point(0.37)
        after = _follow(spline, times)[:, :2]

        assert np.allclose(before, after, atol=1e-9)

    def test_insert_at_path_point(self, linear_spline):
        """insert_at splices in a point at a generated sample."""
        sample = linear_spline.evaluate(2.0)
        point = linear_spline.insert_at(sample)

        assert point.prev is sample.segment_start
        assert point.next is sample.segment_end
        assert point.position == pytest.approx((20.0, 0.0))

    def test_insert_at_stale_sample_rejected(self, linear_spline):
        """A sample whose segment has since been split cannot be inserted."""
        sample = linear_spline.evaluate(2.0)
        linear_spline.insert_control_point(2.5)

        with pytest.raises(InvalidEditError):
            linear_spline.insert_at(sample)


class TestSplineState:
    """Tests for metadata, clearing and evaluation bounds."""

    def test_defaults(self):
        """A new spline is empty with default metadata."""
        spline = PathSpline()

        assert spline.title == DEFAULT_TITLE
        assert spline.description == DEFAULT_DESCRIPTION
        assert spline.speed_multiplier == 1.0
        assert len(spline) == 0
        assert spline.first is None and spline.last is None
        assert spline.duration == 0.0

    def test_speed_multiplier_must_be_positive(self):
        """Zero or negative speed multipliers are rejected."""
        spline = PathSpline()
        with pytest.raises(ValueError):
            spline.speed_multiplier = 0.0
        with pytest.raises(ValueError):
            PathSpline(speed_multiplier=-1.0)
        spline.speed_multiplier = 1.5
        assert spline.speed_multiplier == 1.5

    def test_clear(self, linear_spline):
        """clear() empties points and schedule and resets metadata."""
        linear_spline.schedule_command(1.0, "spin")
        linear_spline.speed_multiplier = 2.0
        linear_spline.clear()

        assert len(linear_spline) == 0
        assert len(linear_spline.schedule) == 0
        assert linear_spline.title == DEFAULT_TITLE
        assert linear_spline.speed_multiplier == 1.0

    def test_evaluate_bounds(self, linear_spline):
        """evaluate() returns None outside the path."""
        assert linear_spline.evaluate(-0.1) is None
        assert linear_spline.evaluate(3.1) is None
        assert linear_spline.evaluate(3.0).x == pytest.approx(30.0)
        assert linear_spline.evaluate(1.0, speed_multiplier=2.0).x == pytest.approx(20.0)

    def test_revision_counts_structural_edits(self, linear_spline):
        """Inserts, deletes and schedule edits bump the revision; moves do not."""
        start = linear_spline.revision
        list(linear_spline)[1].set_position(6.0, 0.0)
        linear_spline.add_control_point(40.0, 0.0)
        assert linear_spline.revision == start

        linear_spline.insert_control_point(1.0)
        action = linear_spline.schedule_command(1.0, "spin")
        linear_spline.delete_scheduled_command(action)
        linear_spline.delete_control_point(linear_spline.last)
        assert linear_spline.revision == start + 4
