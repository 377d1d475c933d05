"""
Base class for lattice engines.

A LifeCycle owns the lattice (exclusively, for one replicate) and turns a
concentration field into exactly one mutation step per turnover() call.
Concrete engines differ in how they choose WHICH cell grows and WHAT that
growth does to its neighbors.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod

import numpy as np

from coopsim.core.cells import Cell, CellType
from coopsim.core.config import EPSILON, SimulationConfig
from coopsim.core.lattice import CellLattice
from coopsim.core.outcomes import HaltedForHistogram, Outcome
from coopsim.processes.helpers import count_competitors

logger = logging.getLogger(__name__)


class LifeCycle(ABC):
    """
    One replicate's lattice engine.

    Attributes:
        elapsed_time: Simulated time since the start of the replicate
        last_concentration: Field passed to the latest turnover()
        last_growth_rates: Per-site growth rates from the latest turnover()
        cheater_probability: Chance the latest continuous event picked a
            cheater (nan if the engine has no such notion)
        frontier_size: Competitor-neighbor pairs seen by the latest step
    """

    def __init__(self, config: SimulationConfig, lattice: CellLattice, rng: np.random.Generator):
        if lattice.width != config.width:
            raise ValueError(
                f"Lattice width {lattice.width} does not match config width {config.width}"
            )
        self.config = config
        self.lattice = lattice
        self.rng = rng
        self.seed = config.seed  # Reported in warnings; the simulator may relabel it

        self.elapsed_time = 0.0
        self.last_concentration: np.ndarray | None = None
        self.last_growth_rates: np.ndarray = np.zeros(lattice.n_sites)
        self.cheater_probability = float("nan")
        self.frontier_size = 0

    @abstractmethod
    def turnover(self, concentration: np.ndarray) -> Outcome:
        """
        Perform one mutation step.

        Args:
            concentration: Steady-state field for the current lattice, shape [N]

        Returns:
            STILL_RUNNING, or the terminal outcome of the replicate
        """
        ...

    # ═══════════════════════════════════════════════════════════════════════
    # Views
    # ═══════════════════════════════════════════════════════════════════════

    def production(self) -> np.ndarray:
        """Per-site production vector of the current lattice."""
        return self.lattice.production(self.config)

    def competitor_counts(self) -> np.ndarray:
        """Competitor neighbors per site, as a flat N-vector."""
        return count_competitors(self.lattice.type_grid()).ravel()

    def count_frontier(self) -> int:
        """Number of (site, neighbor) pairs of different type."""
        return int(self.competitor_counts().sum())

    # ═══════════════════════════════════════════════════════════════════════
    # Shared step machinery
    # ═══════════════════════════════════════════════════════════════════════

    def change_rate(self, cell: Cell, concentration: float) -> float:
        """Growth rate of one cell; engines may shift it."""
        return cell.change_rate(concentration, self.config)

    def accept_concentration(self, concentration: np.ndarray) -> np.ndarray:
        """Check the field's shape and keep it as last_concentration."""
        concentration = np.asarray(concentration, dtype=np.float64)
        if concentration.shape != (self.lattice.n_sites,):
            raise ValueError(
                f"Concentration must have shape ({self.lattice.n_sites},), got {concentration.shape}"
            )
        self.last_concentration = concentration
        return concentration

    def growth_rates(self, concentration: np.ndarray) -> np.ndarray:
        """
        Growth rate of every cell, with negative rates clamped to zero.

        Each cell's unclamped rate is recorded in its `derivative`.
        """
        concentration = self.accept_concentration(concentration)

        rates = np.fromiter(
            (self.change_rate(cell, c) for cell, c in zip(self.lattice, concentration)),
            dtype=np.float64,
            count=self.lattice.n_sites,
        )

        negative = rates < 0
        if np.any(negative):
            i = int(np.argmin(rates))
            if rates[i] < -EPSILON:
                cell = self.lattice.at(i)
                logger.warning(
                    "Negative growth rate %.3e for %s at (%d, %d) with %d competitor(s) "
                    "clamped to zero (%d site(s) affected, seed=%s)",
                    rates[i],
                    cell.kind.name,
                    cell.x,
                    cell.y,
                    int(self.competitor_counts()[i]),
                    int(negative.sum()),
                    self.seed,
                )
            rates[negative] = 0.0

        self.last_growth_rates = rates
        return rates

    def halt_outcome(self) -> HaltedForHistogram | None:
        """HaltedForHistogram if the cheater count equals the configured halt count."""
        halt = self.config.halt_count
        if halt is None:
            return None

        n_cheaters = self.lattice.count(CellType.CHEATER)
        if n_cheaters == halt:
            logger.info("Halt count reached: %d cheaters", n_cheaters)
            return HaltedForHistogram(n_cheaters)
        return None
