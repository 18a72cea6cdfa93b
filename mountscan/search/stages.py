"""
mountscan/search/stages.py

The staged intersection search.

Every atom is modelled as a sphere of the bond radius.  Candidate mounting
sites are where those spheres meet:

    IntersectChecker (ready)
        └─ start_with_radius(r)          → SphereStage
             └─ check_spheres()           → CircleStage
                  └─ analyze_circle_intersects() → PointStage
                       └─ analyze_points()        → FinalReport

Each transition consumes its stage: calling it a second time raises
RuntimeError.  The returned stage owns its own lists of sites; the only thing
shared along the chain is the read-only coordinate array and its KD-tree.

Stage details
-------------
SphereStage.check_spheres
    For each scanned atom, the KD-tree returns the neighbours within 2r.
    Every unordered pair is intersected once.  Tangent spheres give a cut
    point, crossing spheres give a circle.  A scanned atom whose sphere meets
    no other sphere is kept as a single-atom sphere site.

CircleStage.analyze_circle_intersects
    A KD-tree over circle centres limits the work to circles close enough to
    meet.  Intersection points become candidate multi-atom points.  Circles
    that meet no other circle are "pure"; analyze_pure_circles then drops the
    ones lying (partly) inside the sphere of some third atom.

PointStage.analyze_points
    Candidate points are merged (mountscan.search.merge).  Every point, merged
    or cut, is then re-checked against all atoms: it survives only if the
    atoms within the bond radius are exactly its connecting atoms.

Usage
-----
    from mountscan.search.stages import IntersectChecker

    report = IntersectChecker(coords).search(radius=1.9)
    print(report.summary())

    # or step by step
    stage = IntersectChecker(coords, atoms_to_check=surface_coords).start_with_radius(1.9)
    report = stage.check_spheres().analyze_circle_intersects().analyze_points()
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.spatial import cKDTree

from mountscan.geometry.intersections import (
    CircleIntersection,
    NoIntersection,
    SinglePoint,
    Whole,
    circle_intersection,
    sphere_intersection,
)
from mountscan.geometry.primitives import Sphere
from mountscan.geometry.tolerances import GEOMETRIC_TOL, SITE_MEMBERSHIP_TOL
from mountscan.search.merge import merge_points
from mountscan.search.sites import (
    SITE_KIND,
    BondingCircle,
    BondingSphere,
    CoordinationPoint,
    Site,
    site_label,
    site_position,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared context and stage base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _SearchContext:
    """Read-only inputs every stage after `ready` needs."""

    coords: np.ndarray
    tree: cKDTree
    scan_ids: tuple[int, ...]
    radius: float


class _Stage:
    """Guards against re-entering a transition."""

    def __init__(self) -> None:
        self._consumed = False

    def _consume(self, transition: str) -> None:
        if self._consumed:
            raise RuntimeError(
                f"{type(self).__name__} has already been consumed; "
                f"{transition}() cannot be called twice.  Start a new search instead."
            )
        self._consumed = True


# ---------------------------------------------------------------------------
# Ready
# ---------------------------------------------------------------------------

class IntersectChecker(_Stage):
    """
    Entry point of the search: holds the coordinates and the scan subset.

    Parameters
    ----------
    coords:
        (n, 3) Cartesian coordinates; the row index is the atom id used in
        every reported site.
    atoms_to_check:
        Optional coordinates of the atoms to scan from (e.g. surface atoms
        only).  Each must match one row of `coords` within GEOMETRIC_TOL.
        All atoms still take part as neighbours and in the final check.

    Raises
    ------
    ValueError
        If coords is empty or not (n, 3), or if a coordinate in
        atoms_to_check is not one of `coords`.
    """

    def __init__(self, coords, atoms_to_check=None) -> None:
        super().__init__()
        coords = np.array(coords, dtype=np.float64)
        if coords.ndim != 2 or coords.shape[1] != 3:
            raise ValueError(f"coords must have shape (n, 3), got {coords.shape}.")
        if len(coords) < 1:
            raise ValueError("At least one coordinate is required for a search.")
        if not np.all(np.isfinite(coords)):
            raise ValueError("coords contains non-finite values.")
        coords.flags.writeable = False

        self.coords = coords
        self.tree = cKDTree(coords)
        self.scan_ids = self._locate(atoms_to_check)

    def _locate(self, atoms_to_check) -> tuple[int, ...]:
        if atoms_to_check is None:
            return tuple(range(len(self.coords)))

        subset = np.array(atoms_to_check, dtype=np.float64).reshape(-1, 3)
        distances, indices = self.tree.query(subset, k=1)
        missing = [
            subset[k].tolist() for k, dist in enumerate(distances) if dist > GEOMETRIC_TOL
        ]
        if missing:
            raise ValueError(
                f"{len(missing)} coordinate(s) in atoms_to_check are not part of the "
                f"structure, e.g. {missing[0]}."
            )
        # Keep the caller's order, drop repeats
        return tuple(dict.fromkeys(int(i) for i in indices))

    def start_with_radius(self, radius: float) -> "SphereStage":
        """Build one sphere of `radius` per atom."""
        radius = float(radius)
        if not np.isfinite(radius) or radius <= 0:
            raise ValueError(f"radius must be > 0, got {radius}.")
        self._consume("start_with_radius")
        return SphereStage(_SearchContext(self.coords, self.tree, self.scan_ids, radius))

    def search(self, radius: float) -> "FinalReport":
        """Run every stage and return the final report."""
        return (
            self.start_with_radius(radius)
            .check_spheres()
            .analyze_circle_intersects()
            .analyze_points()
        )


# ---------------------------------------------------------------------------
# SphereStage
# ---------------------------------------------------------------------------

class SphereStage(_Stage):
    """One sphere of the search radius around every atom."""

    def __init__(self, context: _SearchContext) -> None:
        super().__init__()
        self.context = context
        self.spheres = tuple(Sphere(c, context.radius) for c in context.coords)

    @property
    def radius(self) -> float:
        return self.context.radius

    def get_sphere(self, atom_id: int) -> Sphere:
        return self.spheres[atom_id]

    def check_spheres(self) -> "CircleStage":
        """
        Intersect each scanned atom's sphere with its neighbours' spheres.

        Returns
        -------
        CircleStage
            Pure spheres, tangent cut points and pair circles.
        """
        self._consume("check_spheres")
        ctx = self.context
        cutoff = 2.0 * ctx.radius + GEOMETRIC_TOL

        sphere_sites: list[BondingSphere] = []
        cut_points: list[CoordinationPoint] = []
        circles: list[BondingCircle] = []
        checked_pairs: set[tuple[int, int]] = set()
        touched: set[int] = set()

        for i in ctx.scan_ids:
            for j in sorted(ctx.tree.query_ball_point(ctx.coords[i], cutoff)):
                if j == i:
                    continue
                pair = (min(i, j), max(i, j))
                if pair in checked_pairs:
                    continue
                checked_pairs.add(pair)

                result = sphere_intersection(self.spheres[i], self.spheres[j])
                if isinstance(result, SinglePoint):
                    cut_points.append(CoordinationPoint(result.point, (i, j)))
                    touched.update(pair)
                elif isinstance(result, CircleIntersection):
                    circles.append(BondingCircle(result.circle, (i, j)))
                    touched.update(pair)
                elif isinstance(result, Whole):
                    log.warning(f"Atoms {i} and {j} share the same position; pair skipped")
                    # The shared sphere is reported once, under the lower id
                    touched.add(pair[1])

        for i in ctx.scan_ids:
            if i not in touched:
                sphere_sites.append(BondingSphere(self.spheres[i], i))

        log.debug(
            f"Sphere stage (r = {ctx.radius:.4f}): {len(checked_pairs)} pairs checked, "
            f"{len(sphere_sites)} spheres, {len(cut_points)} cut points, "
            f"{len(circles)} circles"
        )
        return CircleStage(ctx, sphere_sites, cut_points, circles)


# ---------------------------------------------------------------------------
# CircleStage
# ---------------------------------------------------------------------------

class CircleStage(_Stage):
    """Results of the sphere pass: spheres, tangent points and pair circles."""

    def __init__(
        self,
        context: _SearchContext,
        sphere_sites: Sequence[BondingSphere],
        sphere_cut_points: Sequence[CoordinationPoint],
        circles: Sequence[BondingCircle],
    ) -> None:
        super().__init__()
        self.context = context
        self.sphere_sites = list(sphere_sites)
        self.sphere_cut_points = list(sphere_cut_points)
        self.circles = list(circles)

    def get_circle(self, index: int) -> BondingCircle:
        return self.circles[index]

    def analyze_circle_intersects(self) -> "PointStage":
        """
        Intersect every nearby pair of circles.

        Returns
        -------
        PointStage
            Spheres and cut points carried over, the pure circles that
            survive analyze_pure_circles, and the raw multi-atom points.
        """
        self._consume("analyze_circle_intersects")
        ctx = self.context
        circles = self.circles
        intersected = [False] * len(circles)
        candidates: list[CoordinationPoint] = []

        if circles:
            centers = np.array([bc.circle.center for bc in circles])
            circle_tree = cKDTree(centers)
            # Circle radii never exceed the bond radius
            cutoff = 2.0 * ctx.radius + GEOMETRIC_TOL
            checked_pairs: set[tuple[int, int]] = set()

            for a, this_circle in enumerate(circles):
                for b in sorted(circle_tree.query_ball_point(centers[a], cutoff)):
                    if b == a:
                        continue
                    pair = (min(a, b), max(a, b))
                    if pair in checked_pairs:
                        continue
                    checked_pairs.add(pair)

                    other = circles[b]
                    result = circle_intersection(this_circle.circle, other.circle)
                    if isinstance(result, NoIntersection):
                        continue

                    intersected[a] = intersected[b] = True
                    if isinstance(result, Whole):
                        log.debug(f"Circles of atoms {this_circle.atom_ids} and {other.atom_ids} coincide")
                        continue
                    for point in result.points:
                        candidates.append(
                            CoordinationPoint(point, this_circle.atom_ids + other.atom_ids)
                        )

        pure = [bc for bc, hit in zip(circles, intersected) if not hit]
        kept = self.analyze_pure_circles(pure)

        log.debug(
            f"Circle stage: {len(circles)} circles, {len(pure)} pure, "
            f"{len(kept)} kept, {len(candidates)} candidate points"
        )
        return PointStage(ctx, self.sphere_sites, kept, self.sphere_cut_points, candidates)

    def analyze_pure_circles(self, circles: Sequence[BondingCircle]) -> list[BondingCircle]:
        """
        Drop circles that some third atom sits too close to.

        Any atom within circle.radius + r of the circle centre is a
        candidate.  If its closest distance to the circle is below r, part of
        the circle (for a pure circle: all of it) is nearer to that atom than
        the bond length, so the circle is not a two-atom site.
        """
        ctx = self.context
        kept: list[BondingCircle] = []
        for bc in circles:
            circle = bc.circle
            nearby = ctx.tree.query_ball_point(circle.center, circle.radius + ctx.radius + GEOMETRIC_TOL)
            blocker = None
            for k in nearby:
                if k in bc.atom_ids:
                    continue
                closest, _ = circle.point_to_circle_distances(ctx.coords[k])
                if closest < ctx.radius - GEOMETRIC_TOL:
                    blocker = k
                    break
            if blocker is None:
                kept.append(bc)
            else:
                log.debug(f"Circle of atoms {bc.atom_ids} rejected: atom {blocker} is too close")
        return kept


# ---------------------------------------------------------------------------
# PointStage
# ---------------------------------------------------------------------------

class PointStage(_Stage):
    """Resolved spheres and circles plus the raw (unmerged) point candidates."""

    def __init__(
        self,
        context: _SearchContext,
        sphere_sites: Sequence[BondingSphere],
        circles: Sequence[BondingCircle],
        cut_points: Sequence[CoordinationPoint],
        multi_point_candidates: Sequence[CoordinationPoint],
    ) -> None:
        super().__init__()
        self.context = context
        self.sphere_sites = list(sphere_sites)
        self.circles = list(circles)
        self.cut_points = list(cut_points)
        self.multi_point_candidates = list(multi_point_candidates)

    def is_exact_site(self, point: CoordinationPoint) -> bool:
        """True if the atoms within the bond radius of `point` are exactly its connecting atoms."""
        ctx = self.context
        found = ctx.tree.query_ball_point(point.coord, ctx.radius + SITE_MEMBERSHIP_TOL)
        return len(found) == point.cn and set(found) == set(point.connecting_atom_ids)

    def analyze_points(self) -> "FinalReport":
        """Merge the candidate points and keep only exact sites."""
        self._consume("analyze_points")
        merged = merge_points(self.multi_point_candidates)
        multi_points = [p for p in merged if self.is_exact_site(p)]
        cut_points = [p for p in self.cut_points if self.is_exact_site(p)]

        log.debug(
            f"Point stage: {len(self.multi_point_candidates)} candidates → {len(merged)} merged "
            f"→ {len(multi_points)} exact; {len(cut_points)}/{len(self.cut_points)} cut points kept"
        )
        return FinalReport(
            radius=self.context.radius,
            sphere_sites=tuple(self.sphere_sites),
            circles=tuple(self.circles),
            cut_points=tuple(cut_points),
            multi_cn_points=tuple(multi_points),
        )


# ---------------------------------------------------------------------------
# FinalReport
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class FinalReport:
    """
    Classified mounting sites found at one bond radius.

    Attributes
    ----------
    radius:
        The bond radius of the search (Å).
    sphere_sites:
        Single-atom sphere sites.
    circles:
        Two-atom circle sites that met no other circle.
    cut_points:
        Two-atom points where two spheres just touch.
    multi_cn_points:
        Merged points bonding two or more (usually three or more) atoms,
        in (x, y, z) order.
    """

    radius: float
    sphere_sites: tuple[BondingSphere, ...] = ()
    circles: tuple[BondingCircle, ...] = ()
    cut_points: tuple[CoordinationPoint, ...] = ()
    multi_cn_points: tuple[CoordinationPoint, ...] = ()

    def __len__(self) -> int:
        return (
            len(self.sphere_sites) + len(self.circles)
            + len(self.cut_points) + len(self.multi_cn_points)
        )

    def sites(self) -> Iterator[tuple[str, Site]]:
        """Yield (kind, site) for every site: spheres, circles, cut points, multi points."""
        for site in self.sphere_sites:
            yield SITE_KIND.SPHERE, site
        for site in self.circles:
            yield SITE_KIND.CIRCLE, site
        for site in self.cut_points:
            yield SITE_KIND.CUT_POINT, site
        for site in self.multi_cn_points:
            yield SITE_KIND.MULTI_POINT, site

    def labelled_sites(self) -> Iterator[tuple[str, str, Site]]:
        """
        Yield (label, kind, site) with labels unique within the report.

        Labels look like "multi_point_002_1-4-5": kind, running number per
        kind, then the 1-based connecting atom ids.
        """
        counters = dict.fromkeys(SITE_KIND.all(), 0)
        for kind, site in self.sites():
            counters[kind] += 1
            yield f"{kind}_{counters[kind]:03d}_{site_label(site)}", kind, site

    def summary(self) -> dict[str, int]:
        """Number of sites per kind."""
        return {
            SITE_KIND.SPHERE: len(self.sphere_sites),
            SITE_KIND.CIRCLE: len(self.circles),
            SITE_KIND.CUT_POINT: len(self.cut_points),
            SITE_KIND.MULTI_POINT: len(self.multi_cn_points),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """
        One row per site.

        Columns: label, kind, cn, atoms (1-based ids joined by '-'), x, y, z
        (representative position, see site_position) and locus_radius (the
        sphere or circle radius, NaN for points).
        """
        rows = []
        for label, kind, site in self.labelled_sites():
            x, y, z = site_position(site)
            if isinstance(site, BondingSphere):
                locus_radius = site.sphere.radius
            elif isinstance(site, BondingCircle):
                locus_radius = site.circle.radius
            else:
                locus_radius = float("nan")
            rows.append({
                "label": label,
                "kind": kind,
                "cn": site.cn,
                "atoms": site_label(site),
                "x": float(x),
                "y": float(y),
                "z": float(z),
                "locus_radius": locus_radius,
            })
        columns = ["label", "kind", "cn", "atoms", "x", "y", "z", "locus_radius"]
        return pd.DataFrame(rows, columns=columns)

    def remap_atom_ids(self, mapping: Sequence[int]) -> "FinalReport":
        """
        Return a copy whose atom ids are rewritten through `mapping`.

        mapping[i] is the new id of atom i; used when the search ran on a
        filtered subset of a larger structure.
        """
        mapping = [int(m) for m in mapping]
        return FinalReport(
            radius=self.radius,
            sphere_sites=tuple(s.remapped(mapping) for s in self.sphere_sites),
            circles=tuple(c.remapped(mapping) for c in self.circles),
            cut_points=tuple(p.remapped(mapping) for p in self.cut_points),
            multi_cn_points=tuple(p.remapped(mapping) for p in self.multi_cn_points),
        )
