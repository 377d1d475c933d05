"""
Simulation configuration.

All rates are assumed to be already scaled to the simulation time step.
The core never parses files or strings: callers build a SimulationConfig
directly (or via dataclasses.replace) and hand it to the Simulator.
"""

from __future__ import annotations
from dataclasses import dataclass, replace as _replace
from typing import Literal, get_args

import numpy as np


CellOperator = Literal[
    "continuous_replacement",
    "continuous_division",
    "threshold_replacement",
    "threshold_division",
    "zero_baseline_replacement",
]

SolverName = Literal["incremental", "smart", "positive", "negative", "direct"]

InitialConditionName = Literal[
    "well_mixed",
    "single_cheater",
    "cheater_disc",
    "producer_disc",
    "producer_cheater",
    "two_cities",
]

# Machine epsilon for float64; every "is this zero?" branch uses it.
EPSILON = float(np.finfo(np.float64).eps)

# Initial conditions that take ic_argument (cheater count or disc radius)
_IC_WITH_ARGUMENT = {"well_mixed", "cheater_disc", "producer_disc"}


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable parameter set for one simulation (shared by its replicates)."""

    width: int  # Lattice is width x width, periodic in both axes

    # Resource field
    diffusion: float = 0.1
    decay: float = 0.05
    production: float = 0.0  # Resource released per producer (also its growth cost)

    # Growth
    growth: float = 1.0     # Baseline growth rate
    benefit: float = 0.0    # Growth gained per unit concentration
    threshold: float = 1.0  # Biomass at which threshold processes divide
    infinite_benefit: bool = False  # Growth rate = concentration

    # Run control
    max_steps: int = 1000
    halt_count: int | None = None  # Cheater count that halts for a histogram
    seed: int | None = None

    # Strategy selection
    cell_operator: CellOperator = "continuous_replacement"
    solver: SolverName = "incremental"
    initial_condition: InitialConditionName = "single_cheater"
    ic_argument: int | None = None

    randomize_producers: bool = False
    randomize_cheaters: bool = False

    def __post_init__(self):
        if self.width < 1:
            raise ValueError(f"width must be positive, got {self.width}")

        for name in ("diffusion", "decay", "production", "growth", "benefit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

        if self.threshold <= 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}")

        if self.max_steps < 0:
            raise ValueError(f"max_steps must be non-negative, got {self.max_steps}")

        if self.halt_count is not None and self.halt_count < 0:
            raise ValueError(f"halt_count must be non-negative, got {self.halt_count}")

        _check_choice("cell_operator", self.cell_operator, CellOperator)
        _check_choice("solver", self.solver, SolverName)
        _check_choice("initial_condition", self.initial_condition, InitialConditionName)

        if self.initial_condition in _IC_WITH_ARGUMENT:
            if self.ic_argument is None or self.ic_argument < 0:
                raise ValueError(
                    f"Initial condition '{self.initial_condition}' requires a "
                    "non-negative ic_argument"
                )
        elif self.ic_argument is not None:
            raise ValueError(
                f"Initial condition '{self.initial_condition}' does not take an "
                "ic_argument; leave it as None"
            )

        if self.initial_condition == "well_mixed" and self.ic_argument > self.n_sites:
            raise ValueError(
                f"Cannot place {self.ic_argument} cheaters on {self.n_sites} sites"
            )

        if self.infinite_benefit and (self.growth != 0 or self.benefit != 0):
            raise ValueError(
                "With infinite_benefit, growth and benefit must both be 0"
            )

    @property
    def n_sites(self) -> int:
        """Number of lattice sites N = W²."""
        return self.width * self.width

    @property
    def epsilon(self) -> float:
        return EPSILON

    @property
    def no_production(self) -> bool:
        """True when the resource never matters (production below epsilon)."""
        return self.production < EPSILON

    def epsilon_equals(self, a: float, b: float) -> bool:
        """Equality up to machine epsilon."""
        return abs(a - b) < EPSILON

    def replace(self, **changes) -> SimulationConfig:
        """Return a validated copy with some fields changed."""
        return _replace(self, **changes)


def _check_choice(name: str, value: str, choices) -> None:
    allowed = get_args(choices)
    if value not in allowed:
        raise ValueError(f"Unknown {name} '{value}'. Expected one of {allowed}")
