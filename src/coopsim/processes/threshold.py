"""
Deterministic threshold engines.

Each step jumps the clock to the earliest moment any cell reaches its
division threshold (or starves), metabolizes EVERY cell over that interval,
and then applies the resulting deaths and divisions.

Flagging and applying are separate phases: no cell is moved or replaced
until every cell has been metabolized.
"""

from __future__ import annotations
import logging
from abc import abstractmethod

import numpy as np

from coopsim.core.cells import Cell, CellType, make_cell
from coopsim.core.config import SimulationConfig
from coopsim.core.lattice import CellLattice
from coopsim.core.outcomes import STILL_RUNNING, Equilibrium, Outcome
from coopsim.processes.base import LifeCycle
from coopsim.processes.helpers import DivisionHelper, ReplacementHelper

logger = logging.getLogger(__name__)


class ThresholdProcess(LifeCycle):
    """Shared metabolize-then-apply cycle."""

    def turnover(self, concentration: np.ndarray) -> Outcome:
        concentration = self.accept_concentration(concentration)

        interval = self.next_interval(concentration)
        if np.isinf(interval):
            return Equilibrium("no cell will ever reach its threshold")

        # Phase 1: metabolize everybody, flag who divides and who dies
        dividers: list[Cell] = []
        dying: list[Cell] = []
        for cell, c in zip(self.lattice, concentration):
            flag = cell.metabolize(float(c), interval, self.config)
            if flag > 0:
                dividers.append(cell)
            elif flag < 0:
                dying.append(cell)

        self.elapsed_time += interval
        self.last_growth_rates = self.lattice.derivatives()
        self.frontier_size = self.count_frontier()

        # Phase 2: apply
        for cell in dying:
            self.kill(cell)

        order = self.rng.permutation(len(dividers))
        outcome = self.divide([dividers[k] for k in order])
        if outcome is not None:
            return outcome

        halted = self.halt_outcome()
        if halted is not None:
            return halted
        return STILL_RUNNING

    def next_interval(self, concentration: np.ndarray) -> float:
        """Time until the first cell reaches its threshold (inf if never)."""
        times = [cell.critical_time(float(c), self.config) for cell, c in zip(self.lattice, concentration)]
        return max(min(times, default=float("inf")), 0.0)

    def kill(self, cell: Cell) -> None:
        logger.debug("Cell at (%d, %d) starved", cell.x, cell.y)
        self.lattice.set(cell.x, cell.y, make_cell(CellType.DEAD, cell.x, cell.y, self.config))

    @abstractmethod
    def divide(self, cells: list[Cell]) -> Outcome | None:
        """
        Apply divisions for the flagged cells, in the given order.

        Returns:
            A terminal outcome, or None to continue
        """
        ...


class ThresholdReplacement(ThresholdProcess):
    """Dividing cells overwrite a uniformly random neighbor."""

    def __init__(self, config: SimulationConfig, lattice: CellLattice, rng: np.random.Generator):
        super().__init__(config, lattice, rng)
        self.replacement = ReplacementHelper(lattice, rng)

    def divide(self, cells: list[Cell]) -> Outcome | None:
        for cell in cells:
            # Skip cells already overwritten by an earlier division this step
            if self.lattice.get(cell.x, cell.y) is not cell:
                continue
            self.replacement.process(cell, require_competitor=False)
        return None


class ThresholdDivision(ThresholdProcess):
    """Dividing cells shove their neighbors toward the nearest empty site."""

    def __init__(self, config: SimulationConfig, lattice: CellLattice, rng: np.random.Generator):
        super().__init__(config, lattice, rng)
        self.division = DivisionHelper(lattice, rng)

    def divide(self, cells: list[Cell]) -> Outcome | None:
        for cell in cells:
            if not self.division.process(cell):
                return Equilibrium("no empty site left to divide into")
        return None
