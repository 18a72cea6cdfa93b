"""
mountscan/export.py

Write the results of a mount search to disk.

Layout of the output directory
------------------------------
    <directory>/
        <stem>_<label>.<ext>        one model per site    (per_site)
        <stem>_all_sites.<ext>      every site at once    (combined)
        sites.csv                   FinalReport.to_dataframe()  (summary)

Labels come from FinalReport.labelled_sites(), e.g.
"model_multi_point_001_4-5-13.vasp".  Structures are written with
ase.io.write, so any ASE format name is accepted.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ase import Atoms
from ase.io import write

from mountscan.search.stages import FinalReport
from mountscan.structure import combined_model, report_models

log = logging.getLogger(__name__)

# ASE format name → file extension, where the two differ
_EXTENSIONS = {
    "vasp": ".vasp",
    "castep-cell": ".cell",
    "espresso-in": ".pwi",
    "proteindatabank": ".pdb",
}


def extension_for(fmt: str) -> str:
    return _EXTENSIONS.get(fmt, f".{fmt}")


def export_report(
    report: FinalReport,
    atoms: Atoms,
    element: str,
    directory: str | Path,
    stem: str = "model",
    fmt: str = "vasp",
    per_site: bool = True,
    combined: bool = True,
    summary: bool = True,
) -> list[Path]:
    """
    Write site models and a CSV summary for a finished search.

    Parameters
    ----------
    report:
        Search result whose atom ids index into `atoms`.
    atoms:
        The structure the search ran on.  Not modified.
    element:
        Symbol of the mounted atom.
    directory:
        Output directory; created if missing.
    stem:
        Prefix for structure file names.
    fmt:
        ASE output format name.

    Returns
    -------
    list[Path]
        Every file written, in writing order.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    ext = extension_for(fmt)
    written: list[Path] = []

    if per_site:
        for label, model in report_models(atoms, report, element).items():
            path = out_dir / f"{stem}_{label}{ext}"
            write(str(path), model, format=fmt)
            written.append(path)

    if combined and len(report) > 0:
        path = out_dir / f"{stem}_all_sites{ext}"
        write(str(path), combined_model(atoms, report, element), format=fmt)
        written.append(path)

    if summary:
        path = out_dir / "sites.csv"
        report.to_dataframe().to_csv(path, index=False)
        written.append(path)

    log.info(f"Wrote {len(written)} file(s) to {out_dir}")
    return written
