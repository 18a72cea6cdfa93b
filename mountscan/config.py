"""
mountscan/config.py

Load and validate a scan.yaml file into typed configuration models.

Usage
-----
    from mountscan.config import load_config

    cfg = load_config("scan.yaml")
    print(cfg.mount.element, cfg.mount.bond_length)
    print(cfg.structure.z_range)

All models use pydantic v2.  Ranges may be written as YAML lists
([0.5, 1.0]); they are coerced to tuples.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, field_validator, model_validator

from mountscan.mounting import LOWER_FAC, UPPER_FAC, element_number


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class StructureConfig(BaseModel):
    """
    The structure to scan and the part of it to scan from.

    The ranges are fractional coordinates of the cell.  Only atoms inside all
    three ranges are scanned; every atom still counts as a neighbour.  With
    the default full ranges the whole structure is scanned.
    """

    path: str                                   # any ASE-readable file
    x_range: tuple[float, float] = (0.0, 1.0)
    y_range: tuple[float, float] = (0.0, 1.0)
    z_range: tuple[float, float] = (0.0, 1.0)

    @field_validator("x_range", "y_range", "z_range")
    @classmethod
    def _ordered_range(cls, v: tuple[float, float]) -> tuple[float, float]:
        if v[0] > v[1]:
            raise ValueError(f"range lower bound {v[0]} is above upper bound {v[1]}.")
        return v

    @property
    def is_full_cell(self) -> bool:
        full = (0.0, 1.0)
        return self.x_range == full and self.y_range == full and self.z_range == full


class MountConfig(BaseModel):
    """
    The atom to mount and its bond length.

    lower_factor / upper_factor define the bonding window relative to the sum
    of covalent radii; atoms of elements outside the window are left out of
    the search when filter_by_bonding is true.
    """

    element: str = "H"
    bond_length: float                          # Å, the search radius
    lower_factor: float = LOWER_FAC
    upper_factor: float = UPPER_FAC
    filter_by_bonding: bool = True

    @field_validator("element")
    @classmethod
    def _known_element(cls, v: str) -> str:
        element_number(v)
        return v

    @field_validator("bond_length")
    @classmethod
    def _positive_bond_length(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"bond_length must be > 0, got {v}.")
        return v

    @model_validator(mode="after")
    def _factors_ordered(self) -> "MountConfig":
        if not 0 < self.lower_factor < self.upper_factor:
            raise ValueError(
                f"Bonding factors must satisfy 0 < lower_factor ({self.lower_factor}) "
                f"< upper_factor ({self.upper_factor})."
            )
        return self


class ExportConfig(BaseModel):
    """Where and how to write the site models."""

    directory: str = "mount_sites"
    format: str = "vasp"                        # ASE format name
    stem: str = "model"
    per_site: bool = True
    combined: bool = True
    summary: bool = True


class ScanConfig(BaseModel):
    """Top-level scan.yaml model."""

    structure: StructureConfig
    mount: MountConfig
    export: ExportConfig = ExportConfig()


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> ScanConfig:
    """
    Load and validate a scan.yaml file.

    Parameters
    ----------
    path:
        Path to the YAML configuration file.

    Returns
    -------
    ScanConfig
        Fully validated configuration object.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the file is empty or its top level is not a mapping.
    pydantic.ValidationError
        If the YAML content fails validation.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    if path.stat().st_size == 0:
        raise ValueError(
            f"Configuration file is empty: {path}\n"
            "Generate a template with: mountscan init > scan.yaml"
        )

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        raise ValueError(
            f"{path} contains only comments or whitespace, no YAML keys found.\n"
            "Generate a template with: mountscan init > scan.yaml"
        )
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping at the top level, got {type(raw).__name__}.  "
            "Make sure scan.yaml starts with a key like 'structure:' at column 0."
        )

    return ScanConfig.model_validate(raw)
