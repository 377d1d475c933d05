"""
Core data model.

This layer knows NOTHING about diffusion or how the field is solved.
It only knows:
- Cells with a kind, a position and biomass
- The periodic lattice arena and its occupancy invariant
- Weighted event sampling
- The outcomes a step can end with

The step driver lives in coopsim.core.simulator; it is not re-exported
here because it depends on the field and processes packages.
"""

from coopsim.core.config import EPSILON, SimulationConfig
from coopsim.core.cells import Cell, CellTraits, CellType, COMPETITORS, TRAITS, make_cell
from coopsim.core.errors import (
    CoopSimError,
    EmptyDistributionError,
    ModelInconsistencyError,
    SolverNotConvergedError,
)
from coopsim.core.lattice import CellLattice, DIRECTIONS_VON_NEUMANN
from coopsim.core.outcomes import (
    STILL_RUNNING,
    Equilibrium,
    Fixation,
    HaltedForHistogram,
    Outcome,
    StillRunning,
    is_terminal,
)
from coopsim.core.sampler import WeightedSampler
from coopsim.core.initial_conditions import build_initial_condition

__all__ = [
    "EPSILON",
    "SimulationConfig",
    "Cell",
    "CellTraits",
    "CellType",
    "COMPETITORS",
    "TRAITS",
    "make_cell",
    "CoopSimError",
    "EmptyDistributionError",
    "ModelInconsistencyError",
    "SolverNotConvergedError",
    "CellLattice",
    "DIRECTIONS_VON_NEUMANN",
    "STILL_RUNNING",
    "Equilibrium",
    "Fixation",
    "HaltedForHistogram",
    "Outcome",
    "StillRunning",
    "is_terminal",
    "WeightedSampler",
    "build_initial_condition",
]
