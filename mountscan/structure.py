"""
mountscan/structure.py

ASE helpers around a mount search: loading the input structure, choosing
which atoms to scan from, and turning reported sites into new structures.

The input structure is never modified in place.  All returned structures are
copies with the mounted atom(s) appended at the end.

Usage
-----
    from mountscan.structure import load_structure, indices_in_fractional_range

    atoms = load_structure("slab.cell")
    top = indices_in_fractional_range(atoms, z_range=(0.45, 1.0))
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from ase import Atoms
from ase.io import read

from mountscan.search.sites import Site, site_position
from mountscan.search.stages import FinalReport


def load_structure(path: str | Path) -> Atoms:
    """
    Read a structure file in any format ASE understands.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Structure file not found: {path}")
    return read(str(path))


def indices_in_fractional_range(
    atoms: Atoms,
    x_range: tuple[float, float] = (0.0, 1.0),
    y_range: tuple[float, float] = (0.0, 1.0),
    z_range: tuple[float, float] = (0.0, 1.0),
) -> list[int]:
    """
    Indices of atoms whose fractional coordinates fall inside all three ranges.

    Bounds are inclusive.  Positions are not wrapped into the cell, so an
    atom just outside the cell stays outside every [0, 1] range.
    """
    scaled = atoms.get_scaled_positions(wrap=False)
    lows = np.array([x_range[0], y_range[0], z_range[0]])
    highs = np.array([x_range[1], y_range[1], z_range[1]])
    inside = np.all((scaled >= lows) & (scaled <= highs), axis=1)
    return [int(i) for i in np.flatnonzero(inside)]


def site_model(atoms: Atoms, site: Site, element: str) -> Atoms:
    """A copy of `atoms` with one `element` atom placed on `site`."""
    combined = atoms.copy()
    combined += Atoms(element, positions=[site_position(site)])
    return combined


def report_models(atoms: Atoms, report: FinalReport, element: str) -> dict[str, Atoms]:
    """One model per reported site, keyed by site label."""
    return {
        label: site_model(atoms, site, element)
        for label, _, site in report.labelled_sites()
    }


def combined_model(atoms: Atoms, report: FinalReport, element: str) -> Atoms:
    """A copy of `atoms` with an `element` atom on every reported site at once."""
    combined = atoms.copy()
    positions = [site_position(site) for _, site in report.sites()]
    if positions:
        combined += Atoms([element] * len(positions), positions=positions)
    return combined
