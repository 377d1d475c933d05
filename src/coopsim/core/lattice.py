"""
CellLattice: the W x W periodic arena of cells.

The lattice stores ONLY cells. It is owned by exactly one engine; nothing
outside that engine holds references to its cells.

Coordinate convention (shared with every field vector):
    index = y * W + x

All positional arithmetic wraps modulo W on both axes.
"""

from __future__ import annotations
from typing import Callable, Iterator, TYPE_CHECKING

import numpy as np

from coopsim.core.cells import Cell, CellType, N_CELL_TYPES
from coopsim.core.errors import ModelInconsistencyError

if TYPE_CHECKING:
    from coopsim.core.config import SimulationConfig


# Direction vectors for neighbor lookup (von Neumann neighborhood)
DIRECTIONS_VON_NEUMANN = {
    "N": (0, -1),   # North: y decreases
    "S": (0, 1),    # South: y increases
    "E": (1, 0),    # East: x increases
    "W": (-1, 0),   # West: x decreases
}


class CellLattice:
    """
    Periodic 2D array of cells, stored as a flat row-major arena.

    Invariant (checked by check_invariants): every site holds exactly one
    cell, and that cell's stored coordinate equals the site.
    """

    def __init__(self, width: int):
        if width < 1:
            raise ValueError(f"width must be positive, got {width}")
        self.width = width
        self._cells: list[Cell | None] = [None] * (width * width)

    @classmethod
    def filled(cls, width: int, factory: Callable[[int, int], Cell]) -> CellLattice:
        """Create a lattice with factory(x, y) at every site."""
        lattice = cls(width)
        lattice.fill(factory)
        return lattice

    @property
    def n_sites(self) -> int:
        return self.width * self.width

    @property
    def shape(self) -> tuple[int, int]:
        """Return (W, W) grid dimensions (rows = y, columns = x)."""
        return self.width, self.width

    @property
    def directions(self) -> list[str]:
        return list(DIRECTIONS_VON_NEUMANN.keys())

    # ───────────────────────────────────────────────────────────────
    # Coordinates
    # ───────────────────────────────────────────────────────────────

    def wrap(self, v: int) -> int:
        """Wrap a coordinate onto [0, W)."""
        return v % self.width

    def index(self, x: int, y: int) -> int:
        """Row-major index of (x, y), honoring periodic boundaries."""
        return self.wrap(y) * self.width + self.wrap(x)

    def coords(self, index: int) -> tuple[int, int]:
        """(x, y) of a row-major index."""
        y, x = divmod(index, self.width)
        return x, y

    def get_neighbor_coords(self, x: int, y: int, direction: str) -> tuple[int, int]:
        """Coordinates of the neighbor in the given direction (wrapped)."""
        dx, dy = DIRECTIONS_VON_NEUMANN[direction]
        return self.wrap(x + dx), self.wrap(y + dy)

    def get_all_neighbors(self, x: int, y: int) -> dict[str, tuple[int, int]]:
        """All neighbor coordinates for a site, keyed by direction."""
        return {
            direction: self.get_neighbor_coords(x, y, direction)
            for direction in DIRECTIONS_VON_NEUMANN
        }

    def iter_sites(self) -> Iterator[tuple[int, int]]:
        """Iterate over all (x, y) coordinates in row-major order."""
        for y in range(self.width):
            for x in range(self.width):
                yield x, y

    # ───────────────────────────────────────────────────────────────
    # Cell access
    # ───────────────────────────────────────────────────────────────

    def get(self, x: int, y: int) -> Cell:
        """Cell at (x, y), honoring periodic boundaries."""
        return self._cells[self.index(x, y)]

    def at(self, index: int) -> Cell:
        return self._cells[index]

    def set(self, x: int, y: int, cell: Cell) -> None:
        """
        Place a cell at (x, y) and update its stored coordinate.

        If the cell was already somewhere else, it now sits on BOTH sites;
        the caller must overwrite the old site before handing the lattice
        back to anyone else.
        """
        x, y = self.wrap(x), self.wrap(y)
        cell.x, cell.y = x, y
        self._cells[y * self.width + x] = cell

    def fill(self, factory: Callable[[int, int], Cell]) -> None:
        for x, y in self.iter_sites():
            self.set(x, y, factory(x, y))

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __len__(self) -> int:
        return self.n_sites

    # ───────────────────────────────────────────────────────────────
    # Read-only vectors (index = y * W + x)
    # ───────────────────────────────────────────────────────────────

    def types(self) -> np.ndarray:
        """Type byte per site."""
        return np.fromiter((int(c.kind) for c in self._cells), dtype=np.int8, count=self.n_sites)

    def type_grid(self) -> np.ndarray:
        """Type byte per site, shaped [y, x]."""
        return self.types().reshape(self.shape)

    def biomass(self) -> np.ndarray:
        return np.fromiter((c.biomass for c in self._cells), dtype=np.float64, count=self.n_sites)

    def derivatives(self) -> np.ndarray:
        """Last recorded growth rate per site."""
        return np.fromiter((c.derivative for c in self._cells), dtype=np.float64, count=self.n_sites)

    def production(self, config: "SimulationConfig") -> np.ndarray:
        """Resource production per site (the source vector for field solvers)."""
        return np.fromiter(
            (c.production(config) for c in self._cells), dtype=np.float64, count=self.n_sites
        )

    def counts(self) -> np.ndarray:
        """Number of cells of each type, indexed by CellType."""
        return np.bincount(self.types(), minlength=N_CELL_TYPES)

    def count(self, kind: CellType) -> int:
        return int(self.counts()[kind])

    # ───────────────────────────────────────────────────────────────
    # Invariants
    # ───────────────────────────────────────────────────────────────

    def check_invariants(self) -> None:
        """
        Raise ModelInconsistencyError unless every site holds exactly one
        cell whose coordinate matches the site, with no cell on two sites.
        """
        seen: set[int] = set()
        for i, cell in enumerate(self._cells):
            x, y = self.coords(i)
            if cell is None:
                raise ModelInconsistencyError(f"Site ({x}, {y}) is unoccupied")
            if (cell.x, cell.y) != (x, y):
                raise ModelInconsistencyError(
                    f"Misplaced cell: site ({x}, {y}) holds a cell at ({cell.x}, {cell.y})"
                )
            if id(cell) in seen:
                raise ModelInconsistencyError(f"Cell at ({x}, {y}) appears on two sites")
            seen.add(id(cell))
