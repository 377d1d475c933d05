"""
Cell variants living on the lattice.

The variant set is closed: Empty, Dead, Producer and Cheater. Rather than a
class per variant, every cell is one Cell record whose behaviour is looked
up in a trait table keyed by its CellType.

The CellType values double as the type byte exported to state writers.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from coopsim.core.config import SimulationConfig


class CellType(IntEnum):
    """Phenotype tag (and exported type byte) of a lattice site."""

    EMPTY = 0
    CHEATER = 1
    PRODUCER = 2
    DEAD = 3


# Number of cell types, i.e. the length of a counts vector
N_CELL_TYPES = len(CellType)

# The two phenotypes that take part in birth-death competition
COMPETITORS = (CellType.PRODUCER, CellType.CHEATER)


@dataclass(frozen=True)
class CellTraits:
    """Capabilities of a cell variant."""

    produces: bool     # Releases resource at the configured production rate
    metabolizes: bool  # Has a non-zero growth rate


TRAITS: dict[CellType, CellTraits] = {
    CellType.EMPTY: CellTraits(produces=False, metabolizes=False),
    CellType.DEAD: CellTraits(produces=False, metabolizes=False),
    CellType.PRODUCER: CellTraits(produces=True, metabolizes=True),
    CellType.CHEATER: CellTraits(produces=False, metabolizes=True),
}


@dataclass(eq=False)
class Cell:
    """
    A single cell.

    Identity matters: the lattice checks that no cell object sits on two
    sites, so cells compare by identity rather than by value.
    """

    kind: CellType
    x: int
    y: int
    biomass: float = 0.0
    derivative: float = 0.0  # Last computed growth rate (informational)

    @property
    def traits(self) -> CellTraits:
        return TRAITS[self.kind]

    def production(self, config: "SimulationConfig") -> float:
        """Resource released by this cell per unit time."""
        return config.production if self.traits.produces else 0.0

    def change_rate(
        self,
        concentration: float,
        config: "SimulationConfig",
        record: bool = True,
    ) -> float:
        """
        Growth rate given the local steady-state concentration.

        rate = growth + benefit·c - own production, or rate = c in the
        infinite-benefit configuration. Non-metabolizing cells have rate 0.

        Args:
            concentration: Local resource concentration
            config: Simulation parameters
            record: Store the rate in `derivative` (for reporting)
        """
        if not self.traits.metabolizes:
            rate = 0.0
        elif config.infinite_benefit:
            rate = concentration
        else:
            rate = config.growth + config.benefit * concentration - self.production(config)

        if record:
            self.derivative = rate

        return rate

    def critical_time(self, concentration: float, config: "SimulationConfig") -> float:
        """
        Time until this cell divides (growing) or dies (starving).

        Returns inf when nothing will ever happen to the cell.
        """
        if not self.traits.metabolizes:
            return float("inf")

        rate = self.change_rate(concentration, config, record=False)
        if rate > 0:
            return (config.threshold - self.biomass) / rate
        elif rate < 0:
            return self.biomass / -rate
        return float("inf")

    def metabolize(
        self,
        concentration: float,
        interval: float,
        config: "SimulationConfig",
    ) -> int:
        """
        Advance biomass by `interval` time units.

        Returns:
            1 if the cell should divide, -1 if it should die, 0 otherwise
        """
        if not self.traits.metabolizes:
            return 0

        rate = self.change_rate(concentration, config, record=True)
        self.biomass += rate * interval

        if self.biomass >= config.threshold - config.epsilon:
            return 1
        elif self.biomass <= config.epsilon:
            return -1
        return 0

    def duplicate(self, x: int, y: int) -> Cell:
        """By-value copy of this cell (including state) placed at (x, y)."""
        return Cell(self.kind, x, y, biomass=self.biomass, derivative=self.derivative)

    def halve_biomass(self) -> None:
        self.biomass /= 2.0


def initial_biomass(
    kind: CellType,
    config: "SimulationConfig",
    rng: np.random.Generator | None = None,
) -> float:
    """Starting biomass for a freshly placed cell."""
    if kind == CellType.EMPTY:
        return 0.0

    randomize = (
        (kind == CellType.PRODUCER and config.randomize_producers)
        or (kind == CellType.CHEATER and config.randomize_cheaters)
    )
    if randomize:
        if rng is None:
            raise ValueError("Randomized initial biomass requires a random generator")
        return float(rng.random()) * config.threshold

    return config.threshold / 2.0


def make_cell(
    kind: CellType,
    x: int,
    y: int,
    config: "SimulationConfig",
    rng: np.random.Generator | None = None,
) -> Cell:
    """Factory for a new cell of the given kind."""
    return Cell(kind, x, y, biomass=initial_biomass(kind, config, rng))
