"""
mountscan.geometry

Analytic 3-D geometry used by the mounting-site search.

Submodules
----------
tolerances      Named tolerance constants (algebraic vs. numerical noise)
primitives      Sphere, Circle, Plane, Line value types
intersections   Sphere/sphere, plane/plane, circle/line and circle/circle intersections
"""

from mountscan.geometry.intersections import (
    CircleIntersection,
    DoublePoint,
    NoIntersection,
    SinglePoint,
    Whole,
    circle_intersection,
    circle_line_intersection,
    plane_intersection,
    sphere_intersection,
)
from mountscan.geometry.primitives import (
    Circle,
    DegenerateGeometryError,
    Line,
    Plane,
    Sphere,
)

__all__ = [
    "Circle",
    "CircleIntersection",
    "DegenerateGeometryError",
    "DoublePoint",
    "Line",
    "NoIntersection",
    "Plane",
    "SinglePoint",
    "Sphere",
    "Whole",
    "circle_intersection",
    "circle_line_intersection",
    "plane_intersection",
    "sphere_intersection",
]
