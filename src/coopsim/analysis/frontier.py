"""
Growth advantage at the producer/cheater frontier.

IMPORTANT: This is a DERIVED quantity for reporting only. The engines never
read it.

Each competitor cell is weighted by the probability that a replacement it
makes hits a competitor: 0.25 per differing von Neumann neighbor. The
delta is producer growth minus cheater growth under that weighting.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

import numpy as np

from coopsim.core.cells import CellType
from coopsim.core.config import EPSILON, SimulationConfig
from coopsim.core.lattice import CellLattice
from coopsim.processes.helpers import count_competitors

logger = logging.getLogger(__name__)

# Weight per differing neighbor (1 / number of neighbors)
NEIGHBOR_WEIGHT = 0.25


@dataclass(frozen=True)
class FrontierDelta:
    """Producer-minus-cheater frontier growth."""

    global_delta: float    # Total weighted growth difference
    per_cell_delta: float  # Difference of per-frontier-cell means (nan if a side is absent)
    n_producers: int       # Producers on the frontier
    n_cheaters: int        # Cheaters on the frontier


def frontier_growth_delta(lattice: CellLattice, config: SimulationConfig) -> FrontierDelta:
    """
    Compare frontier growth of producers and cheaters.

    Uses each cell's last recorded growth rate (`derivative`), so call it
    after a step. In the neutral case (no production) both sides grow
    alike and a non-zero global delta is logged as a failed consistency
    check.

    Args:
        lattice: Current lattice
        config: Simulation parameters

    Returns:
        FrontierDelta, with magnitudes below epsilon snapped to zero
    """
    types = lattice.types()
    coef = NEIGHBOR_WEIGHT * count_competitors(types.reshape(lattice.shape)).ravel()
    weighted = lattice.derivatives() * coef

    growing = weighted > EPSILON
    is_producer = types == CellType.PRODUCER
    is_cheater = types == CellType.CHEATER

    producer_growth = float(weighted[growing & is_producer].sum())
    cheater_growth = float(weighted[growing & is_cheater].sum())

    on_frontier = coef > 0
    n_producers = int((on_frontier & is_producer).sum())
    n_cheaters = int((on_frontier & is_cheater).sum())

    global_delta = producer_growth - cheater_growth
    if n_producers and n_cheaters:
        per_cell_delta = producer_growth / n_producers - cheater_growth / n_cheaters
    else:
        per_cell_delta = float("nan")

    # Rounding noise would otherwise show up as a tiny spurious advantage
    if abs(global_delta) < EPSILON:
        global_delta = 0.0
    if abs(per_cell_delta) < EPSILON:
        per_cell_delta = 0.0

    if config.no_production and global_delta > EPSILON:
        logger.warning(
            "Failed consistency check: non-zero frontier delta %.3e in the neutral case (seed=%s)",
            global_delta,
            config.seed,
        )

    return FrontierDelta(global_delta, per_cell_delta, n_producers, n_cheaters)
