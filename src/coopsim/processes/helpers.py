"""
Lattice mutation protocols shared by the engine strategies.

- fission: split a cell's biomass with a duplicate placed at a target site
- ReplacementHelper: a cell overwrites one of its neighbors
- DivisionHelper: a cell divides into the nearest empty site, shoving the
  cells in between one step outward

Every operation leaves the lattice invariant intact when it returns: one
cell per site, each cell's coordinate equal to its site.
"""

from __future__ import annotations
import logging

import numpy as np

from coopsim.core.cells import Cell, CellType
from coopsim.core.errors import ModelInconsistencyError
from coopsim.core.lattice import CellLattice

logger = logging.getLogger(__name__)

# Neighbor order used when choosing a target: +x, -x, +y, -y
NEIGHBOR_ORDER = ("E", "W", "S", "N")


def fission(lattice: CellLattice, cell: Cell, x: int, y: int) -> Cell:
    """
    Halve the cell's biomass and install a duplicate at (x, y).

    Whatever occupied (x, y) is discarded. Total biomass of the two
    participating cells equals the parent's biomass before the split.

    Returns:
        The new cell placed at (x, y)
    """
    cell.halve_biomass()
    child = cell.duplicate(x, y)
    lattice.set(x, y, child)
    return child


def exponential_waiting_time(rng: np.random.Generator, rate: float) -> float:
    """Exponentially distributed waiting time (inverse-CDF on one uniform draw)."""
    u = rng.random()
    return float(-np.log1p(-u) / rate)


def count_competitors(type_grid: np.ndarray) -> np.ndarray:
    """
    Number of von Neumann neighbors of a different type, per site.

    Args:
        type_grid: Type bytes, shape [W, W] indexed [y, x]

    Returns:
        Competitor counts, same shape
    """
    counts = np.zeros(type_grid.shape, dtype=np.int64)
    for axis in (0, 1):
        for shift in (1, -1):
            counts += np.roll(type_grid, shift, axis=axis) != type_grid
    return counts


def _sign(v: int) -> int:
    return (v > 0) - (v < 0)


class ReplacementHelper:
    """A cell replaces one of its four neighbors with a copy of itself."""

    def __init__(self, lattice: CellLattice, rng: np.random.Generator):
        self.lattice = lattice
        self.rng = rng

    def process(self, cell: Cell, require_competitor: bool) -> Cell:
        """
        Replace a neighbor of `cell` with its daughter.

        Args:
            cell: The dividing cell
            require_competitor: Only target neighbors of a different type

        Returns:
            The daughter cell
        """
        if require_competitor:
            tx, ty = self.choose_competitor_neighbor(cell)
        else:
            tx, ty = self.choose_torus_neighbor(cell)

        return fission(self.lattice, cell, tx, ty)

    def choose_competitor_neighbor(self, cell: Cell) -> tuple[int, int]:
        targets = []
        for direction in NEIGHBOR_ORDER:
            nx, ny = self.lattice.get_neighbor_coords(cell.x, cell.y, direction)
            if self.lattice.get(nx, ny).kind != cell.kind:
                targets.append((nx, ny))

        if not targets:
            raise ModelInconsistencyError(
                f"Cell at ({cell.x}, {cell.y}) was chosen to replace a competitor but has none"
            )

        return targets[int(self.rng.integers(len(targets)))]

    def choose_torus_neighbor(self, cell: Cell) -> tuple[int, int]:
        direction = NEIGHBOR_ORDER[int(self.rng.integers(len(NEIGHBOR_ORDER)))]
        return self.lattice.get_neighbor_coords(cell.x, cell.y, direction)


class DivisionHelper:
    """
    Division with displacement.

    The daughter goes to the nearest empty site (Manhattan distance on the
    torus). Cells on a random monotone path from the parent to that site
    are each pushed one step along the path.
    """

    def __init__(self, lattice: CellLattice, rng: np.random.Generator):
        self.lattice = lattice
        self.rng = rng

    def process(self, cell: Cell) -> bool:
        """
        Divide `cell` into the nearest empty site.

        Returns:
            False if there is no empty site left (the lattice is full)
        """
        x0, y0 = cell.x, cell.y
        candidates = self.find_candidates(x0, y0)

        if not candidates:
            logger.info("Cell at (%d, %d) has no empty site to divide into", x0, y0)
            return False

        offsets = list(candidates.values())
        dx, dy = offsets[int(self.rng.integers(len(offsets)))]

        self.shove(x0, y0, dx, dy)

        # The parent now sits one step along the path AND at the origin;
        # the daughter takes over the origin.
        fission(self.lattice, cell, x0, y0)
        return True

    def find_candidates(self, x: int, y: int) -> dict[int, tuple[int, int]]:
        """
        Empty sites at the smallest Manhattan distance from (x, y).

        Searches outward in diamonds:

            distance=1        distance=2
                                  x
                 x               x x
                xOx             x O x
                 x               x x
                                  x

        All candidates of one ring are collected before moving to the next.
        Candidates are keyed by site index (so a site reachable by two wrap
        directions counts once) and map to the offset used to reach it.

        Returns:
            {site index: (dx, dy)}, empty if no empty site exists
        """
        lattice = self.lattice
        reach = lattice.width // 2  # Longest shortest-offset along one axis

        for n in range(1, 2 * reach + 1):
            candidates: dict[int, tuple[int, int]] = {}

            for dx in range(n + 1):
                dy = n - dx
                if dx > reach or dy > reach:
                    continue

                for ox, oy in ((dx, dy), (-dx, dy), (dx, -dy), (-dx, -dy)):
                    i = lattice.index(x + ox, y + oy)
                    if i not in candidates and lattice.at(i).kind == CellType.EMPTY:
                        candidates[i] = (ox, oy)

            if candidates:
                return candidates

        return {}

    def shove(self, x0: int, y0: int, dx: int, dy: int) -> None:
        """
        Push cells one step along a random monotone path of length |dx|+|dy|.

        At each step the axis is chosen with probability proportional to the
        displacement remaining along it. The cell at the end of the path is
        overwritten; the cell at the origin ends up on BOTH the origin and
        the first path site, and the caller must fill the origin.
        """
        path = [(x0, y0)]
        x, y = x0, y0

        while dx != 0 or dy != 0:
            d = abs(dx) + abs(dy)
            if int(self.rng.integers(d)) < abs(dx):
                step = _sign(dx)
                x += step
                dx -= step
            else:
                step = _sign(dy)
                y += step
                dy -= step
            path.append((x, y))

        # Move from the far end back so nothing is overwritten before it moves
        for (fx, fy), (tx, ty) in zip(reversed(path[:-1]), reversed(path[1:])):
            self.lattice.set(tx, ty, self.lattice.get(fx, fy))
