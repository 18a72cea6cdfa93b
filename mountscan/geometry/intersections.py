"""
mountscan/geometry/intersections.py

Pairwise intersections between geometry primitives.

Every outcome, including "no intersection", is returned as a small result
object rather than raised, so callers can branch on the variant:

    NoIntersection      nothing in common (circles also record coplanarity)
    SinglePoint         tangency, one shared point
    DoublePoint         two shared points (circles only)
    CircleIntersection  two spheres crossing in a circle
    Whole               the two shapes coincide

Functions
---------
sphere_intersection(a, b)        -> NoIntersection | SinglePoint | CircleIntersection | Whole
plane_intersection(p, q)         -> Line | None            (None for parallel planes)
circle_line_intersection(c, l)   -> NoIntersection | SinglePoint | DoublePoint
circle_intersection(c1, c2)      -> NoIntersection | SinglePoint | DoublePoint | Whole

Non-coplanar circles
--------------------
Two circles in different planes can only meet on the line where their planes
cross.  Each circle is intersected with that line independently; only the
points both circles put on the line (equal within GEOMETRIC_TOL per axis) are
shared.  Both point sets are ordered by their parameter along the line, and
the comparison is order-free, so a pair reported in opposite orders by the
two circles still matches.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from mountscan.geometry.primitives import Circle, Line, Plane, Sphere, as_point
from mountscan.geometry.tolerances import GEOMETRIC_TOL


# ---------------------------------------------------------------------------
# Result variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class NoIntersection:
    """
    No common point.

    coplanar is only set by circle_intersection: True when both circles lie
    in the same plane, False when they do not.
    """

    coplanar: bool | None = None

    @property
    def points(self) -> tuple[np.ndarray, ...]:
        return ()


@dataclass(frozen=True, eq=False)
class SinglePoint:
    point: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "point", as_point(self.point))

    @property
    def points(self) -> tuple[np.ndarray, ...]:
        return (self.point,)


@dataclass(frozen=True, eq=False)
class DoublePoint:
    first: np.ndarray
    second: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "first", as_point(self.first))
        object.__setattr__(self, "second", as_point(self.second))

    @property
    def points(self) -> tuple[np.ndarray, ...]:
        return (self.first, self.second)


@dataclass(frozen=True, eq=False)
class CircleIntersection:
    circle: Circle

    @property
    def points(self) -> tuple[np.ndarray, ...]:
        return ()


@dataclass(frozen=True, eq=False)
class Whole:
    """Both shapes coincide; `shape` is the first argument."""

    shape: Sphere | Circle

    @property
    def points(self) -> tuple[np.ndarray, ...]:
        return ()


SphereIntersectResult = NoIntersection | SinglePoint | CircleIntersection | Whole
CircleIntersectResult = NoIntersection | SinglePoint | DoublePoint | Whole


def same_point(p, q, tol: float = GEOMETRIC_TOL) -> bool:
    """True if every coordinate of p and q agrees within tol."""
    return bool(np.all(np.abs(np.asarray(p) - np.asarray(q)) < tol))


def _ordered(p: np.ndarray, q: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Lexicographic (x, y, z) order so results do not depend on argument order."""
    return (p, q) if tuple(p) <= tuple(q) else (q, p)


# ---------------------------------------------------------------------------
# Sphere - sphere
# ---------------------------------------------------------------------------

def sphere_intersection(a: Sphere, b: Sphere) -> SphereIntersectResult:
    """
    Intersect two spheres.

    With d the distance between centres:
      - d ~ 0 and equal radii              → Whole
      - d ~ r_a + r_b                      → SinglePoint (external tangency)
      - d ~ |r_a - r_b|                    → SinglePoint on the larger sphere
      - |r_a - r_b| < d < r_a + r_b        → CircleIntersection
      - anything else                      → NoIntersection

    The circle normal points from a towards b; swapping the arguments flips
    it and leaves centre and radius unchanged.
    """
    offset = a.center - b.center
    d = float(np.linalg.norm(offset))
    radius_sum = a.radius + b.radius
    radius_diff = a.radius - b.radius

    if d < GEOMETRIC_TOL:
        if abs(radius_diff) < GEOMETRIC_TOL:
            return Whole(a)
        return NoIntersection()

    if abs(d - radius_sum) < GEOMETRIC_TOL:
        return SinglePoint(b.center + offset / d * b.radius)

    if abs(d - abs(radius_diff)) < GEOMETRIC_TOL:
        larger, smaller = (a, b) if radius_diff > 0 else (b, a)
        direction = (smaller.center - larger.center) / d
        return SinglePoint(larger.center + direction * larger.radius)

    if abs(radius_diff) < d < radius_sum:
        return CircleIntersection(_two_spheres_circle(a, b, d))

    return NoIntersection()


def _two_spheres_circle(a: Sphere, b: Sphere, d: float) -> Circle:
    # Reduce to the 2-D circle-circle problem along the line of centres
    n = (b.center - a.center) / d
    det = d ** 2 - b.radius ** 2 + a.radius ** 2
    x = det / (2.0 * d)
    radius = np.sqrt(max(4.0 * d ** 2 * a.radius ** 2 - det ** 2, 0.0)) / (2.0 * d)
    return Circle(a.center + n * x, radius, n)


# ---------------------------------------------------------------------------
# Plane - plane
# ---------------------------------------------------------------------------

# z first, then x, then y
_AXIS_ORDER = (2, 0, 1)


def plane_intersection(p: Plane, q: Plane) -> Line | None:
    """
    Line along which two planes meet, or None if they are parallel.

    The direction is n_p × n_q.  A point on the line is found by fixing one
    coordinate at zero and solving the remaining 2×2 system.  The 2×2
    determinant for a fixed axis equals that component of the direction, so
    fixing z fails exactly when the line lies in a z = const plane (e.g. when
    one of the normals is the z axis); the x and y axes are then used.  The
    axis with the best-conditioned system wins, z on ties.
    """
    direction = np.cross(p.normal, q.normal)
    if float(np.linalg.norm(direction)) < GEOMETRIC_TOL:
        return None

    fixed = max(_AXIS_ORDER, key=lambda k: abs(direction[k]))
    free = [k for k in range(3) if k != fixed]

    m_a = np.array([
        [p.normal[free[0]], p.normal[free[1]]],
        [q.normal[free[0]], q.normal[free[1]]],
    ])
    solution = np.linalg.solve(m_a, np.array([p.d, q.d]))

    origin = np.zeros(3)
    origin[free[0]], origin[free[1]] = solution
    return Line(origin, direction)


# ---------------------------------------------------------------------------
# Circle - line
# ---------------------------------------------------------------------------

def circle_line_intersection(circle: Circle, line: Line) -> CircleIntersectResult:
    """
    Intersect a circle with a line.

    A line lying in the circle's plane meets the circle in two points, one
    tangent point or none, decided by the perpendicular distance from the
    centre to the line.  Two points are returned in increasing order of their
    line parameter.  A line crossing the plane can only meet the circle at the
    crossing point.
    """
    along_normal = float(line.direction @ circle.normal)

    if abs(along_normal) >= GEOMETRIC_TOL:
        t = (circle.plane().d - float(circle.normal @ line.origin)) / along_normal
        crossing = line.point_at(t)
        if circle.is_on_circle(crossing):
            return SinglePoint(crossing)
        return NoIntersection()

    if not circle.plane().contains(line.origin):
        return NoIntersection()

    t0 = line.project(circle.center)
    distance = line.distance_to(circle.center)

    if abs(distance - circle.radius) < GEOMETRIC_TOL:
        return SinglePoint(line.point_at(t0))
    if distance > circle.radius:
        return NoIntersection()

    delta = float(np.sqrt(circle.radius ** 2 - distance ** 2))
    return DoublePoint(line.point_at(t0 - delta), line.point_at(t0 + delta))


# ---------------------------------------------------------------------------
# Circle - circle
# ---------------------------------------------------------------------------

def circle_intersection(c1: Circle, c2: Circle) -> CircleIntersectResult:
    """
    Intersect two circles in 3-D.

    Parallel normals with an out-of-plane centre offset mean parallel planes
    and no intersection.  Coplanar circles are a 2-D problem; the rest is
    handled through the line where the two circle planes meet.
    """
    cross = np.cross(c1.normal, c2.normal)
    if float(np.linalg.norm(cross)) < GEOMETRIC_TOL:
        offset = c2.center - c1.center
        if abs(float(offset @ c1.normal)) >= GEOMETRIC_TOL:
            return NoIntersection(coplanar=False)
        return _coplanar_intersection(c1, c2)
    return _noncoplanar_intersection(c1, c2)


def _coplanar_intersection(c1: Circle, c2: Circle) -> CircleIntersectResult:
    offset = c2.center - c1.center
    d = float(np.linalg.norm(offset))
    radius_sum = c1.radius + c2.radius
    radius_diff = c1.radius - c2.radius

    if d < GEOMETRIC_TOL:
        if abs(radius_diff) < GEOMETRIC_TOL:
            return Whole(c1)
        # Concentric, different radii
        return NoIntersection(coplanar=True)

    u = offset / d

    if abs(d - radius_sum) < GEOMETRIC_TOL:
        return SinglePoint(c1.center + u * c1.radius)

    if abs(d - abs(radius_diff)) < GEOMETRIC_TOL:
        if radius_diff > 0:
            # c1 contains c2, touching on the far side of c2
            return SinglePoint(c1.center + u * c1.radius)
        return SinglePoint(c2.center - u * c2.radius)

    if abs(radius_diff) < d < radius_sum:
        # https://mathworld.wolfram.com/Circle-CircleIntersection.html
        x = (d ** 2 - c2.radius ** 2 + c1.radius ** 2) / (2.0 * d)
        half_chord = float(np.sqrt(max(c1.radius ** 2 - x ** 2, 0.0)))
        chord_dir = np.cross(c1.normal, u)
        chord_dir /= np.linalg.norm(chord_dir)
        foot = c1.center + u * x
        return DoublePoint(*_ordered(foot + chord_dir * half_chord, foot - chord_dir * half_chord))

    return NoIntersection(coplanar=True)


def _noncoplanar_intersection(c1: Circle, c2: Circle) -> CircleIntersectResult:
    line = plane_intersection(c1.plane(), c2.plane())
    if line is None:
        return NoIntersection(coplanar=False)

    on_first = circle_line_intersection(c1, line).points
    on_second = circle_line_intersection(c2, line).points

    common = [p for p in on_first if any(same_point(p, q) for q in on_second)]

    if len(common) == 1:
        return SinglePoint(common[0])
    if len(common) == 2:
        return DoublePoint(*_ordered(common[0], common[1]))
    return NoIntersection(coplanar=False)
