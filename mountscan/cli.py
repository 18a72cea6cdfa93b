"""
mountscan/cli.py

Command-line interface for mountscan.

Commands
--------
  mountscan init      Validate scan.yaml.  Prints a template config if none exists.
  mountscan search    Run the mount search described by scan.yaml, print the
                      site table and write the site models.

Usage
-----
    mountscan init   [--config scan.yaml]
    mountscan search [--config scan.yaml] [--verbose] [--no-export] [--output file.csv]
"""

from __future__ import annotations

import sys
import logging
import shutil
from pathlib import Path

import click

# ---------------------------------------------------------------------------
# Logging setup, configured once at CLI entry and not at import time
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_config_option = click.option(
    "--config", "-c",
    default="scan.yaml",
    show_default=True,
    type=click.Path(exists=False, dir_okay=False),
    help="Path to the scan.yaml configuration file.",
)

_verbose_option = click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)


def _resolve(path: str, config_path: Path) -> Path:
    # Relative paths in scan.yaml are relative to the config file
    p = Path(path)
    return p if p.is_absolute() else config_path.parent / p


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="mountscan")
def cli() -> None:
    """
    mountscan: find sites where a new atom can bond to a structure.

    Start with `mountscan init > scan.yaml`, edit the file, then run
    `mountscan search`.
    """


# ---------------------------------------------------------------------------
# mountscan init
# ---------------------------------------------------------------------------

@cli.command("init")
@_config_option
@_verbose_option
def cmd_init(config: str, verbose: bool) -> None:
    """
    Validate scan.yaml and check that the structure file can be found.

    If no config file is found, prints a commented template to stdout and
    exits with code 1.  Capture it to create your config:

        mountscan init > scan.yaml
        # then edit scan.yaml and run:
        mountscan init
    """
    _setup_logging(verbose)
    config_path = Path(config)

    # `mountscan init > scan.yaml` creates an empty scan.yaml before this
    # process runs, so a zero-byte file counts as missing.
    if not config_path.exists() or config_path.stat().st_size == 0:
        click.echo(_CONFIG_TEMPLATE, nl=False)
        raise SystemExit(1)

    try:
        from mountscan.config import load_config
        cfg = load_config(str(config_path))
    except Exception as exc:
        click.echo(f"Error: config validation failed:\n  {exc}", err=True)
        raise SystemExit(1)

    structure_path = _resolve(cfg.structure.path, config_path)
    if not structure_path.exists():
        click.echo(f"Error: structure file not found: {structure_path}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ Config valid: {config_path}")
    click.echo(f"✓ Structure found: {structure_path}")
    click.echo()
    click.echo("Next step:")
    click.echo(f"  mountscan search --config {config_path}")


# ---------------------------------------------------------------------------
# mountscan search
# ---------------------------------------------------------------------------

@cli.command("search")
@_config_option
@_verbose_option
@click.option("--no-export", "no_export", is_flag=True, default=False,
              help="Print the site table only; do not write structure files.")
@click.option("--output", type=click.Path(dir_okay=False), default=None,
              help="Also save the site table to this CSV file.")
def cmd_search(config: str, verbose: bool, no_export: bool, output: str | None) -> None:
    """
    Run the mount search described by scan.yaml.

    Examples:

    \b
        mountscan search
        mountscan search -c Pt111_O.yaml --no-export -v
        mountscan search --output sites.csv
    """
    _setup_logging(verbose)
    log = logging.getLogger(__name__)
    config_path = Path(config)

    if not config_path.exists():
        click.echo(f"Error: config file not found: {config_path}", err=True)
        raise SystemExit(1)

    try:
        from mountscan.config import load_config
        cfg = load_config(str(config_path))
    except Exception as exc:
        click.echo(f"Error: config validation failed:\n  {exc}", err=True)
        raise SystemExit(1)

    from mountscan.mounting import MountingChecker
    from mountscan.structure import indices_in_fractional_range, load_structure

    try:
        atoms = load_structure(_resolve(cfg.structure.path, config_path))
    except Exception as exc:
        click.echo(f"Error: could not read structure: {exc}", err=True)
        raise SystemExit(1)

    atoms_to_check = None
    if not cfg.structure.is_full_cell:
        atoms_to_check = indices_in_fractional_range(
            atoms,
            x_range=cfg.structure.x_range,
            y_range=cfg.structure.y_range,
            z_range=cfg.structure.z_range,
        )
        log.info(f"{len(atoms_to_check)} atom(s) inside the scan ranges")

    checker = MountingChecker(
        element=cfg.mount.element,
        bond_length=cfg.mount.bond_length,
        lower_factor=cfg.mount.lower_factor,
        upper_factor=cfg.mount.upper_factor,
    )
    try:
        report = checker.mount_search(
            atoms,
            atoms_to_check=atoms_to_check,
            filter_available=cfg.mount.filter_by_bonding,
        )
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)

    import pandas as pd

    df = report.to_dataframe()
    if df.empty:
        click.echo("No mounting sites found.")
    else:
        term_width = shutil.get_terminal_size((160, 40)).columns
        with pd.option_context(
            "display.max_rows", 200,
            "display.max_columns", 30,
            "display.width", term_width,
            "display.float_format", "{:.4f}".format,
        ):
            click.echo(df.to_string(index=False))
        counts = ", ".join(f"{kind}: {n}" for kind, n in report.summary().items())
        click.echo(f"\n{len(df)} site(s) found ({counts}).")

    if output:
        df.to_csv(output, index=False)
        click.echo(f"Saved {len(df)} rows to {output}")

    if not no_export:
        from mountscan.export import export_report
        written = export_report(
            report,
            atoms,
            cfg.mount.element,
            _resolve(cfg.export.directory, config_path),
            stem=cfg.export.stem,
            fmt=cfg.export.format,
            per_site=cfg.export.per_site,
            combined=cfg.export.combined,
            summary=cfg.export.summary,
        )
        click.echo(f"✓ {len(written)} file(s) written to {_resolve(cfg.export.directory, config_path)}")


# ---------------------------------------------------------------------------
# Config template
# ---------------------------------------------------------------------------

_CONFIG_TEMPLATE = """\
# scan.yaml: mountscan configuration file
# Generated by `mountscan init`.  Edit before running `mountscan search`.
#
# Paths are relative to this file unless absolute.

# ---------------------------------------------------------------------------
# Structure (required)
# ---------------------------------------------------------------------------
structure:
  path: slab.vasp              # any ASE-readable file (POSCAR, .cell, .xyz, ...)
  # Fractional ranges of the atoms to scan from; every atom still counts
  # as a neighbour.  Leave at [0, 1] to scan the whole structure.
  x_range: [0.0, 1.0]
  y_range: [0.0, 1.0]
  z_range: [0.0, 1.0]

# ---------------------------------------------------------------------------
# Mounted atom (required)
# ---------------------------------------------------------------------------
mount:
  element: O
  bond_length: 2.05            # Å, distance to every bonded atom
  lower_factor: 0.6            # bonding window relative to the sum of
  upper_factor: 1.15           #   covalent radii
  filter_by_bonding: true      # drop atoms the element cannot bond to

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------
export:
  directory: mount_sites
  format: vasp                 # ASE format name
  stem: model
  per_site: true               # one structure per site
  combined: true               # one structure with every site filled
  summary: true                # sites.csv
"""
