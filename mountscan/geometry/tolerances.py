"""
mountscan/geometry/tolerances.py

Tolerance constants shared by the geometry engine and the site search.

Two tiers are used
------------------
Algebraic coincidence
    GEOMETRIC_TOL decides whether two analytic quantities are "the same":
    tangency (distance == radius sum), parallel normals, coplanarity and the
    pointwise agreement of two independently computed intersection points.

Numerical noise
    Candidate points reach the merge step from different atom pairs and
    triples, each carrying its own rounding error.  They are floor-rounded to
    POINT_ROUND_DECIMALS, grouped per axis within POINT_AXIS_TOL and finally
    clustered within POINT_MERGE_RADIUS.  SITE_MEMBERSHIP_TOL is the slack on
    the bond radius when a merged point is re-checked against every atom.
"""

from __future__ import annotations


GEOMETRIC_TOL = 1e-6

POINT_ROUND_DECIMALS = 5
POINT_AXIS_TOL = 1e-5
POINT_MERGE_RADIUS = 1e-4

# Points are rounded to 1e-5, so membership must tolerate a few rounding steps
SITE_MEMBERSHIP_TOL = 1e-3
