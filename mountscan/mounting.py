"""
mountscan/mounting.py

Element-aware front end to the staged search.

The geometric engine only sees coordinates and a radius.  MountingChecker
adds the chemistry that decides which atoms of a structure take part: an atom
is available for mounting when the requested bond length falls inside its
bonding window with the mount element,

    LOWER_FAC * ideal  <=  bond_length  <=  UPPER_FAC * ideal

where `ideal` is the sum of the two ASE covalent radii.  The search then runs
on the available atoms only, and every atom id in the returned report is
mapped back onto the index of the caller's Atoms object.

Usage
-----
    from ase.build import fcc111
    from mountscan.mounting import MountingChecker

    slab = fcc111("Pt", size=(3, 3, 2), vacuum=10.0)
    checker = MountingChecker(element="O", bond_length=2.05)
    report = checker.mount_search(slab)
    print(report.summary())
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ase import Atoms
from ase.data import atomic_numbers, chemical_symbols, covalent_radii

from mountscan.search.stages import FinalReport, IntersectChecker

log = logging.getLogger(__name__)

LOWER_FAC = 0.6
UPPER_FAC = 1.15


# ---------------------------------------------------------------------------
# Bonding scheme
# ---------------------------------------------------------------------------

def ideal_bondlength(atomic_number_1: int, atomic_number_2: int) -> float:
    """Sum of the covalent radii of two elements (Å)."""
    return float(covalent_radii[atomic_number_1] + covalent_radii[atomic_number_2])


def is_bonded(
    distance: float,
    ideal: float,
    lower_factor: float = LOWER_FAC,
    upper_factor: float = UPPER_FAC,
) -> bool:
    """True if `distance` lies in [lower_factor * ideal, upper_factor * ideal]."""
    return lower_factor * ideal <= distance <= upper_factor * ideal


def element_number(symbol: str) -> int:
    """
    Atomic number of a chemical symbol.

    Raises
    ------
    ValueError
        If the symbol is not a real element (the ASE dummy 'X' included).
    """
    if symbol not in atomic_numbers or symbol == chemical_symbols[0]:
        raise ValueError(f"Unknown element symbol: '{symbol}'.")
    return atomic_numbers[symbol]


# ---------------------------------------------------------------------------
# MountingChecker
# ---------------------------------------------------------------------------

class MountingChecker:
    """
    Find mounting sites for one element at a fixed bond length.

    Parameters
    ----------
    element:
        Symbol of the atom to mount.  Defaults to hydrogen.
    bond_length:
        Distance (Å) between the mounted atom and every atom it bonds to;
        this is the radius of the search.
    lower_factor, upper_factor:
        Bonding window relative to the ideal (covalent) bond length, used to
        decide which atoms can bond to the mount element at all.
    """

    def __init__(
        self,
        element: str = "H",
        bond_length: float = 1.0,
        lower_factor: float = LOWER_FAC,
        upper_factor: float = UPPER_FAC,
    ) -> None:
        self.element = element
        self.atomic_number = element_number(element)
        bond_length = float(bond_length)
        if not bond_length > 0:
            raise ValueError(f"bond_length must be > 0, got {bond_length}.")
        if not 0 < lower_factor < upper_factor:
            raise ValueError(
                f"Bonding factors must satisfy 0 < lower ({lower_factor}) "
                f"< upper ({upper_factor})."
            )
        self.bond_length = bond_length
        self.lower_factor = lower_factor
        self.upper_factor = upper_factor

    def __repr__(self) -> str:
        return (
            f"MountingChecker(element='{self.element}', bond_length={self.bond_length}, "
            f"window=[{self.lower_factor}, {self.upper_factor}])"
        )

    def can_bond(self, atomic_number: int) -> bool:
        ideal = ideal_bondlength(atomic_number, self.atomic_number)
        return is_bonded(self.bond_length, ideal, self.lower_factor, self.upper_factor)

    def available_atoms(self, atoms: Atoms) -> list[int]:
        """Indices of atoms the mount element can bond to at bond_length."""
        return [i for i, z in enumerate(atoms.numbers) if self.can_bond(int(z))]

    def available_elements(self, atoms: Atoms) -> list[str]:
        """Sorted symbols of the elements present in atoms that pass the bonding window."""
        present = sorted(set(int(z) for z in atoms.numbers))
        return sorted(chemical_symbols[z] for z in present if self.can_bond(z))

    def mount_search(
        self,
        atoms: Atoms,
        atoms_to_check: Sequence[int] | None = None,
        filter_available: bool = True,
    ) -> FinalReport:
        """
        Run the staged search on a structure.

        Parameters
        ----------
        atoms:
            The structure.  Positions are used as Cartesian coordinates;
            periodic images are not considered.
        atoms_to_check:
            Optional atom indices to scan from (e.g. the top layer).  Indices
            removed by the bonding filter are dropped.
        filter_available:
            If False, every atom takes part regardless of element.

        Returns
        -------
        FinalReport
            Sites whose atom ids are indices into `atoms`.

        Raises
        ------
        ValueError
            If no atom (or no atom of atoms_to_check) is left after filtering.
        """
        if filter_available:
            available = self.available_atoms(atoms)
        else:
            available = list(range(len(atoms)))
        if not available:
            raise ValueError(
                f"No atom in {atoms.get_chemical_formula()} can bond to "
                f"{self.element} at {self.bond_length} Å."
            )

        positions = atoms.get_positions()
        subset = None
        if atoms_to_check is not None:
            kept = set(available)
            scan = [int(i) for i in atoms_to_check if int(i) in kept]
            if not scan:
                raise ValueError(
                    "None of the atoms to check can bond to "
                    f"{self.element} at {self.bond_length} Å."
                )
            subset = positions[scan]

        log.info(
            f"Mount search: {self.element} at {self.bond_length:.3f} Å, "
            f"{len(available)}/{len(atoms)} atoms available"
        )
        report = IntersectChecker(positions[available], subset).search(self.bond_length)
        log.info(f"Found {len(report)} site(s): {report.summary()}")
        return report.remap_atom_ids(available)
