"""
mountscan/search/merge.py

Merge near-duplicate coordination points.

Different atom pairs and triples often produce the same geometric point, each
copy carrying its own floating-point error and its own subset of connecting
atoms.  merge_points() collapses them:

1. Floor-round every coordinate to POINT_ROUND_DECIMALS.
2. Sort by (x, y, z) and join neighbours in the sorted order whose
   coordinates agree within POINT_AXIS_TOL on every axis.
3. Query a KD-tree of the rounded points for every pair closer than
   POINT_MERGE_RADIUS; such pairs join the same cluster too.  This catches
   copies that rounding pushed across a decimal boundary and sorting then
   separated.

Each cluster becomes one point at the rounded coordinate of its first
member in sorted order, connecting the sorted union of all members' atoms.
A single-member cluster keeps its atom order.

The result is ordered by the coordinate sort and does not depend on the
input order; merging an already merged list returns it unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from scipy.spatial import cKDTree

from mountscan.geometry.tolerances import (
    POINT_AXIS_TOL,
    POINT_MERGE_RADIUS,
    POINT_ROUND_DECIMALS,
)
from mountscan.search.sites import CoordinationPoint

log = logging.getLogger(__name__)

# Fraction of the last kept decimal added before flooring, so that values
# which are already rounded (k / 10**decimals) floor back onto themselves.
_FLOOR_GUARD = 1e-6


def floor_round(coords: np.ndarray, decimals: int = POINT_ROUND_DECIMALS) -> np.ndarray:
    """Floor every value to `decimals` decimal places."""
    scale = 10.0 ** decimals
    return np.floor(np.asarray(coords, dtype=np.float64) * scale + _FLOOR_GUARD) / scale


class _DisjointSet:
    def __init__(self, n: int) -> None:
        self.parent = list(range(n))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, i: int, j: int) -> None:
        ri, rj = self.find(i), self.find(j)
        if ri != rj:
            # Keep the smaller sorted index as root
            self.parent[max(ri, rj)] = min(ri, rj)


def merge_points(points: Sequence[CoordinationPoint]) -> list[CoordinationPoint]:
    """
    Merge coincident coordination points and union their connecting atoms.

    Parameters
    ----------
    points:
        Raw candidate points, in any order.

    Returns
    -------
    list[CoordinationPoint]
        One point per cluster of near-duplicates, in (x, y, z) order.
    """
    if len(points) == 0:
        return []

    rounded = floor_round(np.array([p.coord for p in points]))
    # np.lexsort sorts by the last key first
    order = np.lexsort((rounded[:, 2], rounded[:, 1], rounded[:, 0]))
    coords = rounded[order]
    atom_ids = [points[i].connecting_atom_ids for i in order]

    clusters = _DisjointSet(len(coords))

    # Step 2: run-length grouping along the sorted order
    for k in range(1, len(coords)):
        if np.all(np.abs(coords[k] - coords[k - 1]) < POINT_AXIS_TOL):
            clusters.union(k - 1, k)

    # Step 3: near neighbours that the sort separated
    tree = cKDTree(coords)
    for i, j in tree.query_pairs(POINT_MERGE_RADIUS):
        clusters.union(i, j)

    members: dict[int, list[int]] = {}
    for k in range(len(coords)):
        members.setdefault(clusters.find(k), []).append(k)

    merged: list[CoordinationPoint] = []
    for group in members.values():
        first = group[0]
        if len(group) == 1:
            ids = atom_ids[first]
        else:
            ids = sorted({i for k in group for i in atom_ids[k]})
        merged.append(CoordinationPoint(coords[first], ids))

    log.debug(f"Merged {len(points)} candidate points into {len(merged)}")
    return merged
