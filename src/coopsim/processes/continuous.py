"""
Continuous-time (Gillespie) engines.

Each step samples exactly one event with probability proportional to its
rate and advances the clock by an exponential waiting time.

- ContinuousReplacement: a cell on the producer/cheater frontier replaces
  a competing neighbor; weight = growth rate × competitor count
- ZeroBaselineReplacement: same, with every rate lowered by the growth a
  lone producer gets from its own resource
- ContinuousDivision: any growing cell divides into the nearest empty site
"""

from __future__ import annotations
import logging

import numpy as np

from coopsim.core.cells import COMPETITORS, Cell, CellType
from coopsim.core.config import EPSILON, SimulationConfig
from coopsim.core.errors import EmptyDistributionError, ModelInconsistencyError
from coopsim.core.lattice import CellLattice
from coopsim.core.outcomes import STILL_RUNNING, Equilibrium, Fixation, Outcome
from coopsim.core.sampler import WeightedSampler
from coopsim.processes.base import LifeCycle
from coopsim.processes.helpers import (
    DivisionHelper,
    ReplacementHelper,
    count_competitors,
    exponential_waiting_time,
)

logger = logging.getLogger(__name__)


class ContinuousReplacement(LifeCycle):
    """
    Space-filling birth-death process between producers and cheaters.

    Only cells with at least one competing neighbor can act, and they
    always overwrite a competitor, so the step changes the type of exactly
    one site.
    """

    def __init__(self, config: SimulationConfig, lattice: CellLattice, rng: np.random.Generator):
        super().__init__(config, lattice, rng)
        self.replacement = ReplacementHelper(lattice, rng)

    def turnover(self, concentration: np.ndarray) -> Outcome:
        types = self.lattice.types()
        stray = ~np.isin(types, COMPETITORS)
        if np.any(stray):
            i = int(np.flatnonzero(stray)[0])
            x, y = self.lattice.coords(i)
            raise ModelInconsistencyError(
                f"{CellType(int(types[i])).name} cell at ({x}, {y}) in a producer/cheater "
                "replacement process"
            )

        halted = self.halt_outcome()
        if halted is not None:
            return halted

        rates = self.growth_rates(concentration)
        competitors = count_competitors(types.reshape(self.lattice.shape)).ravel()
        weights = rates * competitors

        is_cheater = types == CellType.CHEATER
        cheat_weight = float(weights[is_cheater].sum())
        total = float(weights.sum())
        self.cheater_probability = cheat_weight / total if total > EPSILON else float("nan")
        self.frontier_size = int(competitors.sum())

        sampler = WeightedSampler()
        for i in np.flatnonzero(competitors):
            sampler.add(int(i), float(weights[i]))

        try:
            sampler.seal()
        except EmptyDistributionError:
            return self._no_event_outcome(int(is_cheater.sum()))

        self.elapsed_time += exponential_waiting_time(self.rng, sampler.total_weight)

        target = sampler.sample(self.rng)
        self.replacement.process(self.lattice.at(target), require_competitor=True)

        halted = self.halt_outcome()
        if halted is not None:
            return halted
        return STILL_RUNNING

    def _no_event_outcome(self, n_cheaters: int) -> Outcome:
        """Outcome when no frontier cell can grow."""
        n = self.lattice.n_sites
        if n_cheaters == n:
            return Fixation(CellType.CHEATER, self.elapsed_time)
        if n_cheaters == 0:
            return Fixation(CellType.PRODUCER, self.elapsed_time)

        raise ModelInconsistencyError(
            f"No frontier cell can grow but the lattice is mixed "
            f"({n_cheaters} cheaters, {n - n_cheaters} producers)"
        )


class ZeroBaselineReplacement(ContinuousReplacement):
    """
    Replacement with rates measured relative to a lone producer's growth.

    The baseline is the growth a producer gains from its own resource,
    source_concentration · benefit. Shifted rates are clamped at zero.
    """

    def __init__(
        self,
        config: SimulationConfig,
        lattice: CellLattice,
        rng: np.random.Generator,
        source_concentration: float,
    ):
        super().__init__(config, lattice, rng)
        self.baseline = source_concentration * config.benefit

        if self.baseline >= config.growth:
            raise ValueError(
                f"Zero-baseline replacement needs baseline ({self.baseline:.4g}) "
                f"below the growth rate ({config.growth:.4g})"
            )
        logger.info("Zero-baseline replacement with baseline %.4g", self.baseline)

    def change_rate(self, cell: Cell, concentration: float) -> float:
        rate = super().change_rate(cell, concentration) - self.baseline
        return max(rate, 0.0)


class ContinuousDivision(LifeCycle):
    """
    Growth into empty space.

    Every growing cell is an event with weight equal to its growth rate.
    The chosen cell divides toward the nearest empty site.
    """

    def __init__(self, config: SimulationConfig, lattice: CellLattice, rng: np.random.Generator):
        super().__init__(config, lattice, rng)
        self.division = DivisionHelper(lattice, rng)

    def turnover(self, concentration: np.ndarray) -> Outcome:
        rates = self.growth_rates(concentration)
        types = self.lattice.types()

        inert = np.isin(types, (CellType.EMPTY, CellType.DEAD))
        if np.any(rates[inert] != 0):
            raise ModelInconsistencyError("An empty or dead site has a non-zero growth rate")

        cheat_weight = float(rates[types == CellType.CHEATER].sum())
        total = float(rates.sum())
        self.cheater_probability = cheat_weight / total if total > EPSILON else float("nan")
        self.frontier_size = self.count_frontier()

        sampler = WeightedSampler()
        for i in np.flatnonzero(rates):
            sampler.add(int(i), float(rates[i]))

        try:
            sampler.seal()
        except EmptyDistributionError:
            return Equilibrium("no cell is growing")

        self.elapsed_time += exponential_waiting_time(self.rng, sampler.total_weight)

        cell = self.lattice.at(sampler.sample(self.rng))
        if not self.division.process(cell):
            return Equilibrium("no empty site left to divide into")

        halted = self.halt_outcome()
        if halted is not None:
            return halted
        return STILL_RUNNING
