"""
tests/conftest.py

Shared pytest fixtures for the mountscan test suite.

Every fixture is hand-placed geometry whose sites can be worked out on paper,
plus one small ASE-built Pt(111) slab.  No file from outside the temp
directory is read.

Fixture overview
----------------
Coordinate sets (bond radius in brackets)
    square_coords       Square of side 2 in the xy plane        (r = 1)
    colinear_coords     Three atoms on x, spaced 2 apart        (r = 1)
    triangle_coords     Equilateral triangle of side 2          (r = 1.5)
    pruned_coords       Three atoms on x, spaced 0.5 apart      (r = 1)
    triangle_height     Height of the triangle's sites above its plane

Structures
    pt_slab             Pt(111) 2x2, three layers, 10 Å vacuum
    pt_pair_with_he     He far away plus two Pt atoms 4.1 Å apart

Config
    scan_yaml           A scan.yaml written next to a slab file in tmp_path
"""

from __future__ import annotations

import textwrap

import pytest

# ---------------------------------------------------------------------------
# ASE import guard: ASE is a hard dependency, fail loudly if missing
# ---------------------------------------------------------------------------
try:
    import numpy as np
    from ase import Atoms
    from ase.build import fcc111
except ImportError as exc:
    pytest.exit(f"ASE is required to run the test suite: {exc}", returncode=1)


# ---------------------------------------------------------------------------
# Coordinate sets
# ---------------------------------------------------------------------------

@pytest.fixture
def square_coords() -> np.ndarray:
    """Neighbouring corners are exactly 2r apart; diagonals are out of reach."""
    return np.array([
        [0.0, 0.0, 0.0],
        [2.0, 0.0, 0.0],
        [2.0, 2.0, 0.0],
        [0.0, 2.0, 0.0],
    ])


@pytest.fixture
def colinear_coords() -> np.ndarray:
    return np.array([
        [0.0, 0.0, 0.0],
        [2.0, 0.0, 0.0],
        [4.0, 0.0, 0.0],
    ])


@pytest.fixture
def triangle_coords() -> np.ndarray:
    return np.array([
        [0.0, 0.0, 0.0],
        [2.0, 0.0, 0.0],
        [1.0, np.sqrt(3.0), 0.0],
    ])


@pytest.fixture
def triangle_height() -> float:
    """Height above the centroid where all three r = 1.5 spheres meet."""
    circumradius = 2.0 / np.sqrt(3.0)
    return float(np.sqrt(1.5 ** 2 - circumradius ** 2))


@pytest.fixture
def pruned_coords() -> np.ndarray:
    """
    The circle of atoms 0 and 1 runs 0.866 from atom 2 everywhere, closer
    than r = 1, so only the circles of (0, 2) and (1, 2) are sites.
    """
    return np.array([
        [-0.5, 0.0, 0.0],
        [0.5, 0.0, 0.0],
        [0.0, 0.0, 0.0],
    ])


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def pt_slab() -> Atoms:
    """
    A 2x2 Pt(111) 3-layer slab.  ASE tags the top layer 1.
    Session-scoped: built once and shared across all tests.
    """
    return fcc111("Pt", size=(2, 2, 3), vacuum=10.0)


@pytest.fixture
def pt_pair_with_he() -> Atoms:
    """
    He cannot bond to O at 2.05 Å; the two Pt atoms touch at (2.05, 0, 0).
    """
    return Atoms(
        "HePt2",
        positions=[
            [10.0, 10.0, 10.0],
            [0.0, 0.0, 0.0],
            [4.1, 0.0, 0.0],
        ],
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scan_yaml(tmp_path, pt_slab):
    """
    A scan.yaml in tmp_path pointing at slab.vasp (relative path) in the
    same directory.  Exports go to tmp_path / "sites" as xyz.
    """
    from ase.io import write

    write(str(tmp_path / "slab.vasp"), pt_slab, format="vasp")
    config_path = tmp_path / "scan.yaml"
    config_path.write_text(textwrap.dedent("""\
        structure:
          path: slab.vasp
          x_range: [-0.1, 1.1]
          y_range: [-0.1, 1.1]
          z_range: [0.55, 1.0]
        mount:
          element: O
          bond_length: 2.05
        export:
          directory: sites
          format: xyz
    """))
    return config_path
