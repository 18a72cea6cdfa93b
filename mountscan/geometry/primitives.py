"""
mountscan/geometry/primitives.py

Immutable 3-D value types used by the intersection engine.

All coordinates are stored as read-only float64 numpy arrays of shape (3,),
so a primitive handed to a later search stage can never be mutated through
an alias kept by an earlier one.

Types
-----
Sphere   centre + radius
Circle   centre + radius + unit normal of the circle's plane
Plane    unit normal + offset d, with  normal·p == d  for points on the plane
Line     origin + unit direction, parametrised as  origin + t*direction

Usage
-----
    from mountscan.geometry.primitives import Sphere, Plane

    s = Sphere([0.0, 0.0, 0.0], 1.2)
    top = s.point_at_surface([0.0, 0.0, 1.0])     # array([0. , 0. , 1.2])

    plane = Plane.from_points([0, 0, 0], [1, 0, 0], [0, 1, 0])
    plane.contains([3.0, -2.0, 0.0])              # True
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from mountscan.geometry.tolerances import GEOMETRIC_TOL


class DegenerateGeometryError(ValueError):
    """Raised when the inputs cannot define the requested primitive."""


# ---------------------------------------------------------------------------
# Vector helpers
# ---------------------------------------------------------------------------

def as_point(value) -> np.ndarray:
    """Return `value` as a read-only float64 array of shape (3,)."""
    arr = np.array(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {arr.shape}.")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"Vector components must be finite, got {arr}.")
    arr.flags.writeable = False
    return arr


def unit_vector(value, what: str = "vector") -> np.ndarray:
    """
    Normalise `value` to unit length.

    Raises
    ------
    DegenerateGeometryError
        If the vector has (near) zero length.
    """
    arr = np.array(value, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm < GEOMETRIC_TOL:
        raise DegenerateGeometryError(f"Cannot normalise a zero-length {what}.")
    return as_point(arr / norm)


def _check_radius(radius: float) -> float:
    radius = float(radius)
    if not np.isfinite(radius) or radius < 0:
        raise ValueError(f"radius must be a finite value >= 0, got {radius}.")
    return radius


# ---------------------------------------------------------------------------
# Sphere
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Sphere:
    """A sphere defined by a centre and a non-negative radius."""

    center: np.ndarray
    radius: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_point(self.center))
        object.__setattr__(self, "radius", _check_radius(self.radius))

    def point_at_surface(self, direction) -> np.ndarray:
        """Point on the surface reached from the centre along `direction`."""
        return as_point(self.center + unit_vector(direction, "direction") * self.radius)

    def is_on_surface(self, point, tol: float = GEOMETRIC_TOL) -> bool:
        distance = float(np.linalg.norm(as_point(point) - self.center))
        return abs(distance - self.radius) < tol

    def isclose(self, other: "Sphere", tol: float = GEOMETRIC_TOL) -> bool:
        return (
            abs(self.radius - other.radius) < tol
            and bool(np.allclose(self.center, other.center, atol=tol, rtol=0.0))
        )

    def intersects(self, other: "Sphere"):
        """Shortcut for mountscan.geometry.intersections.sphere_intersection."""
        from mountscan.geometry.intersections import sphere_intersection
        return sphere_intersection(self, other)

    def __repr__(self) -> str:
        return f"Sphere(center={self.center.tolist()}, radius={self.radius:.6g})"


# ---------------------------------------------------------------------------
# Circle
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Circle:
    """
    A circle embedded in 3-D space.

    The normal is normalised on construction and fixes the plane of the
    circle; its sign carries no meaning for intersection tests.
    """

    center: np.ndarray
    radius: float
    normal: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_point(self.center))
        object.__setattr__(self, "radius", _check_radius(self.radius))
        object.__setattr__(self, "normal", unit_vector(self.normal, "circle normal"))

    def plane(self) -> "Plane":
        """The plane the circle lies in."""
        return Plane.from_point_normal(self.center, self.normal)

    def is_on_circle(self, point, tol: float = GEOMETRIC_TOL) -> bool:
        offset = as_point(point) - self.center
        if abs(float(offset @ self.normal)) >= tol:
            return False
        return abs(float(np.linalg.norm(offset)) - self.radius) < tol

    def point_to_circle_distances(self, point) -> tuple[float, float]:
        """
        Return (closest, farthest) distance from `point` to any point of the circle.

        The point is projected onto the circle plane; the closest and farthest
        circle points lie on the ray from the centre through that projection.
        When the projection falls on the centre every circle point is
        equidistant and both values are equal.
        """
        point = as_point(point)
        center_to_point = point - self.center
        height = float(center_to_point @ self.normal)
        in_plane = center_to_point - height * self.normal
        in_plane_dist = float(np.linalg.norm(in_plane))

        if in_plane_dist < GEOMETRIC_TOL:
            dist = float(np.hypot(height, self.radius))
            return dist, dist

        closest = float(np.hypot(height, in_plane_dist - self.radius))
        farthest = float(np.hypot(height, in_plane_dist + self.radius))
        return closest, farthest

    def isclose(self, other: "Circle", tol: float = GEOMETRIC_TOL) -> bool:
        """Same centre and radius, normals parallel or anti-parallel."""
        return (
            abs(self.radius - other.radius) < tol
            and bool(np.allclose(self.center, other.center, atol=tol, rtol=0.0))
            and float(np.linalg.norm(np.cross(self.normal, other.normal))) < tol
        )

    def __repr__(self) -> str:
        return (
            f"Circle(center={self.center.tolist()}, radius={self.radius:.6g}, "
            f"normal={self.normal.tolist()})"
        )


# ---------------------------------------------------------------------------
# Plane
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Plane:
    """
    A plane  normal·p == d  with a unit normal.

    A non-unit normal is normalised together with d, so (n, d) and
    (2n, 2d) describe the same plane.
    """

    normal: np.ndarray
    d: float

    def __post_init__(self) -> None:
        raw = np.array(self.normal, dtype=np.float64)
        unit = unit_vector(raw, "plane normal")
        object.__setattr__(self, "normal", unit)
        object.__setattr__(self, "d", float(self.d) / float(np.linalg.norm(raw)))

    @classmethod
    def from_point_normal(cls, point, normal) -> "Plane":
        n = unit_vector(normal, "plane normal")
        return cls(n, float(n @ as_point(point)))

    @classmethod
    def from_points(cls, a, b, c) -> "Plane":
        """
        Plane through three points.

        Raises
        ------
        DegenerateGeometryError
            If the points are collinear (or coincide), so no unique plane exists.
        """
        a, b, c = as_point(a), as_point(b), as_point(c)
        n = np.cross(b - a, c - a)
        if float(np.linalg.norm(n)) < GEOMETRIC_TOL:
            raise DegenerateGeometryError(
                f"cannot construct plane: points {a.tolist()}, {b.tolist()}, "
                f"{c.tolist()} are collinear."
            )
        return cls.from_point_normal(a, n)

    def signed_distance(self, point) -> float:
        return float(self.normal @ as_point(point)) - self.d

    def contains(self, point, tol: float = GEOMETRIC_TOL) -> bool:
        return abs(self.signed_distance(point)) < tol

    def intersects(self, other: "Plane"):
        """Shortcut for mountscan.geometry.intersections.plane_intersection."""
        from mountscan.geometry.intersections import plane_intersection
        return plane_intersection(self, other)

    def __repr__(self) -> str:
        return f"Plane(normal={self.normal.tolist()}, d={self.d:.6g})"


# ---------------------------------------------------------------------------
# Line
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Line:
    """An infinite line  origin + t*direction  with a unit direction."""

    origin: np.ndarray
    direction: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", as_point(self.origin))
        object.__setattr__(self, "direction", unit_vector(self.direction, "line direction"))

    @classmethod
    def from_two_points(cls, origin, dest) -> "Line":
        origin, dest = as_point(origin), as_point(dest)
        return cls(origin, unit_vector(dest - origin, "line direction"))

    def point_at(self, t: float) -> np.ndarray:
        return as_point(self.origin + t * self.direction)

    def project(self, point) -> float:
        """Line parameter t of the foot of the perpendicular from `point`."""
        return float((as_point(point) - self.origin) @ self.direction)

    def distance_to(self, point) -> float:
        point = as_point(point)
        foot = self.origin + self.project(point) * self.direction
        return float(np.linalg.norm(point - foot))

    def __repr__(self) -> str:
        return f"Line(origin={self.origin.tolist()}, direction={self.direction.tolist()})"
