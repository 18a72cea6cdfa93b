from __future__ import annotations

import dataclasses

import numpy as np
import pytest


class TestSphere:

    def test_negative_radius_rejected(self):
        from mountscan.geometry.primitives import Sphere

        with pytest.raises(ValueError):
            Sphere([0.0, 0.0, 0.0], -1.0)

    def test_center_must_be_3d(self):
        from mountscan.geometry.primitives import Sphere

        with pytest.raises(ValueError):
            Sphere([0.0, 0.0], 1.0)

    def test_point_at_surface_normalises_direction(self):
        from mountscan.geometry.primitives import Sphere

        s = Sphere([1.0, 1.0, 1.0], 2.0)
        p = s.point_at_surface([0.0, 0.0, 10.0])
        assert np.allclose(p, [1.0, 1.0, 3.0])
        assert s.is_on_surface(p)

    def test_sphere_is_immutable(self):
        from mountscan.geometry.primitives import Sphere

        s = Sphere([0.0, 0.0, 0.0], 1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.radius = 2.0
        with pytest.raises(ValueError):
            s.center[0] = 5.0

    def test_input_array_not_aliased(self):
        from mountscan.geometry.primitives import Sphere

        center = np.array([0.0, 0.0, 0.0])
        s = Sphere(center, 1.0)
        center[0] = 9.0
        assert s.center[0] == 0.0


class TestCircle:

    def test_zero_normal_rejected(self):
        from mountscan.geometry.primitives import Circle, DegenerateGeometryError

        with pytest.raises(DegenerateGeometryError):
            Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 0.0])

    def test_normal_is_normalised(self):
        from mountscan.geometry.primitives import Circle

        c = Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 5.0])
        assert np.allclose(c.normal, [0.0, 0.0, 1.0])

    def test_is_on_circle(self):
        from mountscan.geometry.primitives import Circle

        c = Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 1.0])
        assert c.is_on_circle([0.0, 1.0, 0.0])
        assert c.is_on_circle([np.sqrt(0.5), np.sqrt(0.5), 0.0])
        assert not c.is_on_circle([0.0, 1.0, 0.1])      # off the plane
        assert not c.is_on_circle([0.0, 0.5, 0.0])      # inside

    def test_distances_from_axis_point_are_equal(self):
        """A point on the circle axis is equidistant from every circle point."""
        from mountscan.geometry.primitives import Circle

        c = Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 1.0])
        closest, farthest = c.point_to_circle_distances([0.0, 0.0, 1.0])
        assert closest == pytest.approx(np.sqrt(2.0))
        assert farthest == pytest.approx(np.sqrt(2.0))

    def test_distances_in_plane(self):
        from mountscan.geometry.primitives import Circle

        c = Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 1.0])
        closest, farthest = c.point_to_circle_distances([3.0, 0.0, 0.0])
        assert closest == pytest.approx(2.0)
        assert farthest == pytest.approx(4.0)

    def test_distances_off_plane(self):
        from mountscan.geometry.primitives import Circle

        c = Circle([0.0, 0.0, 0.0], 1.0, [0.0, 0.0, 1.0])
        closest, farthest = c.point_to_circle_distances([2.0, 0.0, 1.0])
        assert closest == pytest.approx(np.sqrt(2.0))
        assert farthest == pytest.approx(np.sqrt(10.0))

    def test_plane_contains_circle(self):
        from mountscan.geometry.primitives import Circle

        c = Circle([1.0, 2.0, 3.0], 0.5, [1.0, 1.0, 0.0])
        plane = c.plane()
        assert plane.contains(c.center)
        assert np.allclose(plane.normal, c.normal)


class TestPlane:

    def test_from_points(self):
        from mountscan.geometry.primitives import Plane

        plane = Plane.from_points([0, 0, 1], [1, 0, 1], [0, 1, 1])
        assert plane.contains([5.0, -3.0, 1.0])
        assert not plane.contains([0.0, 0.0, 0.0])
        assert abs(plane.signed_distance([0.0, 0.0, 3.0])) == pytest.approx(2.0)

    def test_collinear_points_rejected(self):
        from mountscan.geometry.primitives import DegenerateGeometryError, Plane

        with pytest.raises(DegenerateGeometryError, match="cannot construct plane"):
            Plane.from_points([0, 0, 0], [1, 1, 1], [2, 2, 2])

    def test_non_unit_normal_scales_offset(self):
        """(n, d) and (2n, 2d) are the same plane."""
        from mountscan.geometry.primitives import Plane

        a = Plane([0.0, 0.0, 1.0], 3.0)
        b = Plane([0.0, 0.0, 2.0], 6.0)
        assert np.allclose(a.normal, b.normal)
        assert a.d == pytest.approx(b.d)
        assert b.contains([1.0, 1.0, 3.0])

    def test_signed_distance_sign(self):
        from mountscan.geometry.primitives import Plane

        plane = Plane.from_point_normal([0.0, 0.0, 0.0], [0.0, 0.0, 1.0])
        assert plane.signed_distance([0.0, 0.0, 2.0]) == pytest.approx(2.0)
        assert plane.signed_distance([0.0, 0.0, -2.0]) == pytest.approx(-2.0)


class TestLine:

    def test_coincident_points_rejected(self):
        from mountscan.geometry.primitives import DegenerateGeometryError, Line

        with pytest.raises(DegenerateGeometryError):
            Line.from_two_points([1.0, 1.0, 1.0], [1.0, 1.0, 1.0])

    def test_project_and_point_at(self):
        from mountscan.geometry.primitives import Line

        line = Line.from_two_points([0.0, 0.0, 0.0], [2.0, 0.0, 0.0])
        t = line.project([3.0, 4.0, 0.0])
        assert t == pytest.approx(3.0)
        assert np.allclose(line.point_at(t), [3.0, 0.0, 0.0])
        assert line.distance_to([3.0, 4.0, 0.0]) == pytest.approx(4.0)
