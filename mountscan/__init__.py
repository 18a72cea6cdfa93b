"""
mountscan

Find positions where a new atom can sit at a fixed bond length from one,
two, three or more atoms of a structure.

Subpackages and modules
-----------------------
geometry    Spheres, circles, planes, lines and their intersections
search      Site types, point merging and the staged intersection search
mounting    Element-aware front end (MountingChecker)
structure   ASE helpers: scan ranges, site models
export      Write site models and the site table
config      scan.yaml models
cli         `mountscan` command
"""

from mountscan.mounting import MountingChecker
from mountscan.search.stages import FinalReport, IntersectChecker

__version__ = "0.1.0"

__all__ = ["FinalReport", "IntersectChecker", "MountingChecker", "__version__"]
