from ase.build import fcc111
from ase.io import write

from mountscan.export import export_report
from mountscan.mounting import MountingChecker
from mountscan.structure import indices_in_fractional_range

# ------------------------------------------------------------------
# Pt(111): 3-layer 3×3 supercell with vacuum above and below
# ------------------------------------------------------------------

slab = fcc111("Pt", size=(3, 3, 3), vacuum=10.0)
write("Pt111.vasp", slab, format="vasp")

# Scan from the top layer only; lower layers still count as neighbours
top_layer = indices_in_fractional_range(slab, z_range=(0.5, 1.0))

# ------------------------------------------------------------------
# O on Pt: Pt-O ≈ 2.05 Å
# ------------------------------------------------------------------

checker = MountingChecker(element="O", bond_length=2.05)
print(checker)
print("Elements O can bond to:", checker.available_elements(slab))

report = checker.mount_search(slab, atoms_to_check=top_layer)
print(report.summary())
print(report.to_dataframe().to_string(index=False))

written = export_report(report, slab, "O", "Pt111_O_sites", fmt="vasp")
print(f"{len(written)} files written to Pt111_O_sites/")
