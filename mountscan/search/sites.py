"""
mountscan/search/sites.py

Mounting-site types produced by the staged search.

A site is one of three kinds, a closed set:

    BondingSphere      one atom; every point of its sphere is a candidate
    BondingCircle      two atoms; every point of their intersection circle
    CoordinationPoint  a single point bonding two or more atoms

Atom ids are indices into the coordinate list handed to the search.

The helpers site_kind(), site_position() and site_label() dispatch over the
three kinds so exporters and reports never need their own isinstance chains.

Usage
-----
    from mountscan.search.sites import CoordinationPoint

    p = CoordinationPoint([0.0, 0.0, 1.0], [3, 1, 3])
    p.connecting_atom_ids     # (3, 1)
    p.cn                      # 2
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from mountscan.geometry.intersections import same_point
from mountscan.geometry.primitives import Circle, Sphere, as_point
from mountscan.geometry.tolerances import GEOMETRIC_TOL


class SITE_KIND:
    """Namespace of site kind strings used in reports and exported file names."""
    SPHERE      = "sphere"
    CIRCLE      = "circle"
    CUT_POINT   = "cut_point"
    MULTI_POINT = "multi_point"

    @classmethod
    def all(cls) -> tuple[str, ...]:
        return (cls.SPHERE, cls.CIRCLE, cls.CUT_POINT, cls.MULTI_POINT)


def _unique_ids(ids: Iterable[int]) -> tuple[int, ...]:
    # dict keeps first-seen order
    return tuple(dict.fromkeys(int(i) for i in ids))


# ---------------------------------------------------------------------------
# Site types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class BondingSphere:
    """The sphere around a single atom that meets no neighbouring sphere."""

    sphere: Sphere
    atom_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "atom_id", int(self.atom_id))

    @property
    def connecting_atom_ids(self) -> tuple[int, ...]:
        return (self.atom_id,)

    @property
    def cn(self) -> int:
        return 1

    def remapped(self, mapping: Sequence[int]) -> "BondingSphere":
        return BondingSphere(self.sphere, mapping[self.atom_id])


@dataclass(frozen=True, eq=False)
class BondingCircle:
    """The intersection circle of two atom spheres."""

    circle: Circle
    atom_ids: tuple[int, int]

    def __post_init__(self) -> None:
        ids = tuple(int(i) for i in self.atom_ids)
        if len(ids) != 2 or ids[0] == ids[1]:
            raise ValueError(f"A bonding circle joins exactly two atoms, got {ids}.")
        object.__setattr__(self, "atom_ids", ids)

    @property
    def connecting_atom_ids(self) -> tuple[int, ...]:
        return self.atom_ids

    @property
    def cn(self) -> int:
        return 2

    def remapped(self, mapping: Sequence[int]) -> "BondingCircle":
        return BondingCircle(self.circle, (mapping[self.atom_ids[0]], mapping[self.atom_ids[1]]))


@dataclass(frozen=True, eq=False)
class CoordinationPoint:
    """
    A point bonding every atom in connecting_atom_ids at the search radius.

    The ids are deduplicated on construction (first occurrence wins) and cn
    is derived from them, so cn == len(connecting_atom_ids) always holds.
    """

    coord: np.ndarray
    connecting_atom_ids: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "coord", as_point(self.coord))
        object.__setattr__(self, "connecting_atom_ids", _unique_ids(self.connecting_atom_ids))

    @property
    def cn(self) -> int:
        return len(self.connecting_atom_ids)

    def with_coord(self, coord) -> "CoordinationPoint":
        return CoordinationPoint(coord, self.connecting_atom_ids)

    def merge_with(
        self,
        other: "CoordinationPoint",
        tol: float = GEOMETRIC_TOL,
    ) -> "CoordinationPoint | None":
        """
        Union the connecting atoms of two coincident points.

        Returns None when the coordinates differ by tol or more on any axis.
        The merged ids are sorted.
        """
        if not same_point(self.coord, other.coord, tol):
            return None
        ids = sorted(set(self.connecting_atom_ids) | set(other.connecting_atom_ids))
        return CoordinationPoint(self.coord, ids)

    def remapped(self, mapping: Sequence[int]) -> "CoordinationPoint":
        return CoordinationPoint(self.coord, [mapping[i] for i in self.connecting_atom_ids])

    def __repr__(self) -> str:
        xyz = ", ".join(f"{v:.5f}" for v in self.coord)
        return f"CoordinationPoint(coord=[{xyz}], atoms={list(self.connecting_atom_ids)}, cn={self.cn})"


Site = BondingSphere | BondingCircle | CoordinationPoint


# ---------------------------------------------------------------------------
# Dispatch helpers
# ---------------------------------------------------------------------------

_Z_AXIS = np.array([0.0, 0.0, 1.0])
_X_AXIS = np.array([1.0, 0.0, 0.0])


def site_kind(site: Site) -> str:
    """
    Kind string of a site.

    Points are reported as cut points when they join exactly two atoms and
    as multi points otherwise; the final report keeps the two lists apart
    on its own.
    """
    if isinstance(site, BondingSphere):
        return SITE_KIND.SPHERE
    if isinstance(site, BondingCircle):
        return SITE_KIND.CIRCLE
    if isinstance(site, CoordinationPoint):
        return SITE_KIND.CUT_POINT if site.cn == 2 else SITE_KIND.MULTI_POINT
    raise TypeError(f"Not a mounting site: {site!r}")


def site_position(site: Site) -> np.ndarray:
    """
    One representative Cartesian position for placing a new atom on a site.

    sphere  top of the sphere (centre + radius * z)
    circle  the point of the circle with the largest z; for a circle lying
            flat in an xy plane, the point along +x
    point   the point itself
    """
    if isinstance(site, BondingSphere):
        return as_point(site.sphere.center + site.sphere.radius * _Z_AXIS)
    if isinstance(site, BondingCircle):
        c = site.circle
        in_plane = _Z_AXIS - (_Z_AXIS @ c.normal) * c.normal
        if np.linalg.norm(in_plane) < GEOMETRIC_TOL:
            in_plane = _X_AXIS - (_X_AXIS @ c.normal) * c.normal
        in_plane = in_plane / np.linalg.norm(in_plane)
        return as_point(c.center + c.radius * in_plane)
    if isinstance(site, CoordinationPoint):
        return site.coord
    raise TypeError(f"Not a mounting site: {site!r}")


def site_label(site: Site) -> str:
    """1-based atom ids joined by '-', e.g. '3-7-12'."""
    if not isinstance(site, (BondingSphere, BondingCircle, CoordinationPoint)):
        raise TypeError(f"Not a mounting site: {site!r}")
    return "-".join(str(i + 1) for i in site.connecting_atom_ids)
