"""
Initial lattice configurations.

Each builder returns a fully populated CellLattice. Builders that place
cells at random draw from the replicate's own generator.
"""

from __future__ import annotations

import numpy as np

from coopsim.core.cells import CellType, make_cell
from coopsim.core.config import SimulationConfig
from coopsim.core.lattice import CellLattice


def uniform(config: SimulationConfig, kind: CellType, rng: np.random.Generator | None = None) -> CellLattice:
    """Every site holds a cell of the same kind."""
    return CellLattice.filled(config.width, lambda x, y: make_cell(kind, x, y, config, rng))


def well_mixed(config: SimulationConfig, n_cheaters: int, rng: np.random.Generator) -> CellLattice:
    """
    Space-filling population with n_cheaters cheaters at random sites.

    The majority type is placed everywhere first and the minority is then
    sprinkled, so the rejection loop never has to search a crowded lattice.
    """
    n = config.n_sites
    more_cheaters = n_cheaters > n // 2

    if more_cheaters:
        majority, minority, n_minority = CellType.CHEATER, CellType.PRODUCER, n - n_cheaters
    else:
        majority, minority, n_minority = CellType.PRODUCER, CellType.CHEATER, n_cheaters

    lattice = uniform(config, majority, rng)
    _sprinkle(lattice, config, minority, n_minority, rng)
    return lattice


def _sprinkle(
    lattice: CellLattice,
    config: SimulationConfig,
    kind: CellType,
    n_cells: int,
    rng: np.random.Generator,
) -> None:
    """Place n_cells of `kind` at distinct random sites not already of that kind."""
    w = config.width
    for _ in range(n_cells):
        x, y = (int(v) for v in rng.integers(w, size=2))
        while lattice.get(x, y).kind == kind:
            x, y = (int(v) for v in rng.integers(w, size=2))
        lattice.set(x, y, make_cell(kind, x, y, config, rng))


def single_cheater(config: SimulationConfig, rng: np.random.Generator | None = None) -> CellLattice:
    """All producers except one cheater at the center."""
    lattice = uniform(config, CellType.PRODUCER, rng)
    c = config.width // 2
    lattice.set(c, c, make_cell(CellType.CHEATER, c, c, config, rng))
    return lattice


def _disc(
    config: SimulationConfig,
    radius: int,
    background: CellType,
    inner: CellType,
    rng: np.random.Generator | None,
) -> CellLattice:
    """Diamond (Manhattan) disc of `inner` cells, radius exclusive, in a field of `background`."""
    lattice = uniform(config, background, rng)
    x0 = y0 = config.width // 2

    for r in range(radius):
        for dx in range(r + 1):
            dy = r - dx
            for sx, sy in ((1, 1), (1, -1), (-1, 1), (-1, -1)):
                x, y = lattice.wrap(x0 + sx * dx), lattice.wrap(y0 + sy * dy)
                if lattice.get(x, y).kind != inner:
                    lattice.set(x, y, make_cell(inner, x, y, config, rng))
    return lattice


def cheater_disc(config: SimulationConfig, radius: int, rng: np.random.Generator | None = None) -> CellLattice:
    """A disc of cheaters in a field of producers."""
    return _disc(config, radius, CellType.PRODUCER, CellType.CHEATER, rng)


def producer_disc(config: SimulationConfig, radius: int, rng: np.random.Generator | None = None) -> CellLattice:
    """A disc of producers in a field of cheaters."""
    return _disc(config, radius, CellType.CHEATER, CellType.PRODUCER, rng)


def producer_cheater(config: SimulationConfig, rng: np.random.Generator | None = None) -> CellLattice:
    """A 5x5 block of producers around one cheater; the rest is empty."""
    lattice = uniform(config, CellType.EMPTY, rng)
    c = config.width // 2

    for x in range(c - 2, c + 3):
        for y in range(c - 2, c + 3):
            lattice.set(x, y, make_cell(CellType.PRODUCER, x, y, config, rng))

    lattice.set(c, c, make_cell(CellType.CHEATER, c, c, config, rng))
    return lattice


def two_cities(config: SimulationConfig, rng: np.random.Generator | None = None) -> CellLattice:
    """One producer and one cheater half the lattice apart; the rest is empty."""
    lattice = uniform(config, CellType.EMPTY, rng)
    w = config.width
    y = w // 2

    lattice.set(w // 4, y, make_cell(CellType.PRODUCER, w // 4, y, config, rng))
    lattice.set(w - w // 4, y, make_cell(CellType.CHEATER, w - w // 4, y, config, rng))
    return lattice


def build_initial_condition(config: SimulationConfig, rng: np.random.Generator) -> CellLattice:
    """Build the lattice selected by config.initial_condition."""
    ic = config.initial_condition

    if ic == "well_mixed":
        return well_mixed(config, config.ic_argument, rng)
    elif ic == "single_cheater":
        return single_cheater(config, rng)
    elif ic == "cheater_disc":
        return cheater_disc(config, config.ic_argument, rng)
    elif ic == "producer_disc":
        return producer_disc(config, config.ic_argument, rng)
    elif ic == "producer_cheater":
        return producer_cheater(config, rng)
    elif ic == "two_cities":
        return two_cities(config, rng)
    else:
        raise ValueError(f"Unknown initial condition: {ic}")
