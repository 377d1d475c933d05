"""
Lattice engines: one mutation step per call, given a concentration field.

- ContinuousReplacement / ZeroBaselineReplacement (Gillespie, space-filling)
- ContinuousDivision (Gillespie, growth into empty space)
- ThresholdReplacement / ThresholdDivision (deterministic threshold jumps)
"""

from __future__ import annotations
from typing import TYPE_CHECKING

import numpy as np

from coopsim.core.config import SimulationConfig
from coopsim.core.lattice import CellLattice
from coopsim.processes.base import LifeCycle
from coopsim.processes.continuous import (
    ContinuousDivision,
    ContinuousReplacement,
    ZeroBaselineReplacement,
)
from coopsim.processes.helpers import DivisionHelper, ReplacementHelper, fission
from coopsim.processes.threshold import ThresholdDivision, ThresholdProcess, ThresholdReplacement

if TYPE_CHECKING:
    from coopsim.field.point_source import PointSourceField

_ENGINES = {
    "continuous_replacement": ContinuousReplacement,
    "continuous_division": ContinuousDivision,
    "threshold_replacement": ThresholdReplacement,
    "threshold_division": ThresholdDivision,
}


def create_engine(
    config: SimulationConfig,
    lattice: CellLattice,
    rng: np.random.Generator,
    field: "PointSourceField | None" = None,
) -> LifeCycle:
    """
    Build the engine selected by config.cell_operator.

    The zero-baseline engine needs the point-source field for its baseline.
    """
    if config.cell_operator == "zero_baseline_replacement":
        if field is None:
            raise ValueError("zero_baseline_replacement requires a PointSourceField")
        return ZeroBaselineReplacement(config, lattice, rng, field.source_concentration)

    try:
        engine_cls = _ENGINES[config.cell_operator]
    except KeyError:
        raise ValueError(f"Unknown cell operator '{config.cell_operator}'") from None
    return engine_cls(config, lattice, rng)


__all__ = [
    "LifeCycle",
    "ContinuousReplacement",
    "ZeroBaselineReplacement",
    "ContinuousDivision",
    "ThresholdProcess",
    "ThresholdReplacement",
    "ThresholdDivision",
    "ReplacementHelper",
    "DivisionHelper",
    "fission",
    "create_engine",
]
