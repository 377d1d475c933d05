"""
Analysis layer: derived quantities for reporting.

IMPORTANT: This is NOT seen by the engines. One-way derivation only.

- frontier_growth_delta: producer vs cheater growth on the frontier
- radial_distribution: pair-distance histogram of one cell type
"""

from coopsim.analysis.frontier import FrontierDelta, frontier_growth_delta
from coopsim.analysis.rdf import periodic_distances, radial_distribution

__all__ = [
    "FrontierDelta",
    "frontier_growth_delta",
    "periodic_distances",
    "radial_distribution",
]
