from __future__ import annotations

import numpy as np
import pytest


class TestBondingScheme:

    def test_ideal_bondlength_is_sum_of_covalent_radii(self):
        from ase.data import atomic_numbers, covalent_radii
        from mountscan.mounting import ideal_bondlength

        pt, o = atomic_numbers["Pt"], atomic_numbers["O"]
        assert ideal_bondlength(pt, o) == pytest.approx(covalent_radii[pt] + covalent_radii[o])
        assert ideal_bondlength(pt, o) == ideal_bondlength(o, pt)

    def test_is_bonded_window_inclusive(self):
        from mountscan.mounting import is_bonded

        assert is_bonded(1.0, 1.0)
        assert is_bonded(0.6, 1.0, 0.6, 1.15)
        assert is_bonded(1.15, 1.0, 0.6, 1.15)
        assert not is_bonded(0.59, 1.0)
        assert not is_bonded(1.16, 1.0)


class TestMountingCheckerSetup:

    @pytest.mark.parametrize("symbol", ["Xx", "X", ""])
    def test_unknown_element_rejected(self, symbol):
        from mountscan.mounting import MountingChecker

        with pytest.raises(ValueError):
            MountingChecker(element=symbol, bond_length=1.0)

    @pytest.mark.parametrize("bond_length", [0.0, -2.0])
    def test_non_positive_bond_length_rejected(self, bond_length):
        from mountscan.mounting import MountingChecker

        with pytest.raises(ValueError):
            MountingChecker(element="O", bond_length=bond_length)

    def test_factors_must_be_ordered(self):
        from mountscan.mounting import MountingChecker

        with pytest.raises(ValueError):
            MountingChecker(element="O", bond_length=2.0, lower_factor=1.2, upper_factor=1.1)

    def test_default_element_is_hydrogen(self):
        from mountscan.mounting import MountingChecker

        assert MountingChecker(bond_length=1.0).element == "H"


class TestAvailability:

    def test_available_atoms(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        checker = MountingChecker(element="O", bond_length=2.05)
        assert checker.available_atoms(pt_pair_with_he) == [1, 2]
        assert checker.available_elements(pt_pair_with_he) == ["Pt"]

    def test_nothing_available(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        checker = MountingChecker(element="H", bond_length=2.05)
        assert checker.available_atoms(pt_pair_with_he) == []
        with pytest.raises(ValueError, match="can bond"):
            checker.mount_search(pt_pair_with_he)


class TestMountSearch:

    def test_ids_refer_to_caller_atoms(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        report = MountingChecker(element="O", bond_length=2.05).mount_search(pt_pair_with_he)
        assert report.summary() == {"sphere": 0, "circle": 0, "cut_point": 1, "multi_point": 0}
        point = report.cut_points[0]
        assert sorted(point.connecting_atom_ids) == [1, 2]
        assert np.allclose(point.coord, [2.05, 0.0, 0.0])

    def test_without_filter_every_atom_counts(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        checker = MountingChecker(element="O", bond_length=2.05)
        report = checker.mount_search(pt_pair_with_he, filter_available=False)
        assert [s.atom_id for s in report.sphere_sites] == [0]
        assert len(report.cut_points) == 1

    def test_filtered_subset_rejected(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        checker = MountingChecker(element="O", bond_length=2.05)
        with pytest.raises(ValueError, match="atoms to check"):
            checker.mount_search(pt_pair_with_he, atoms_to_check=[0])

    def test_subset_restricts_scan(self, pt_pair_with_he):
        from mountscan.mounting import MountingChecker

        checker = MountingChecker(element="O", bond_length=2.05)
        report = checker.mount_search(pt_pair_with_he, atoms_to_check=[0, 2])
        assert len(report.cut_points) == 1
        assert sorted(report.cut_points[0].connecting_atom_ids) == [1, 2]

    def test_pt111_sites_sit_at_bond_length(self, pt_slab):
        from mountscan.mounting import MountingChecker

        bond = 2.05
        top = [a.index for a in pt_slab if a.tag == 1]
        report = MountingChecker(element="O", bond_length=bond).mount_search(
            pt_slab, atoms_to_check=top,
        )
        assert len(report.multi_cn_points) > 0

        positions = pt_slab.get_positions()
        for p in report.multi_cn_points + report.cut_points:
            assert p.cn >= 2
            bonded = positions[list(p.connecting_atom_ids)]
            assert np.allclose(np.linalg.norm(bonded - p.coord, axis=1), bond, atol=1e-3)
            assert np.linalg.norm(positions - p.coord, axis=1).min() > bond - 1e-3
            # Every site touches at least one scanned atom
            assert set(p.connecting_atom_ids) & set(top)
