"""
Steady-state response to a single unit point source.

Solves, once per simulation,

    (decay·I - diffusion·L) c = production · e_origin

where L is the periodic 5-point discrete Laplacian. Because the operator is
translation invariant and symmetric on the torus, this one solution gives
the contribution of ANY producer to ANY site: it only depends on the
(|dx|, |dy|) offset between them. Every field solver superposes it.
"""

from __future__ import annotations
import logging

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import cgs

from coopsim.core.config import EPSILON, SimulationConfig
from coopsim.core.errors import SolverNotConvergedError

logger = logging.getLogger(__name__)


def build_periodic_laplacian(width: int) -> sparse.csr_matrix:
    """
    Build the periodic 2D discrete Laplacian on a width x width torus.

    Uses the 5-point stencil: (Lc)_i = c_E + c_W + c_N + c_S - 4c_i.
    Wrap-around entries that land on the same column are summed, so tiny
    lattices (W = 1, 2) are still exact.
    """
    n = width * width
    idx = np.arange(n)
    y, x = np.divmod(idx, width)

    # Neighbor indices in the four directions, wrapped
    east = y * width + (x + 1) % width
    west = y * width + (x - 1) % width
    south = ((y + 1) % width) * width + x
    north = ((y - 1) % width) * width + x

    rows = np.concatenate([idx, idx, idx, idx, idx])
    cols = np.concatenate([idx, east, west, south, north])
    data = np.concatenate([np.full(n, -4.0), np.ones(4 * n)])

    # COO sums duplicate (row, col) pairs on conversion
    return sparse.coo_matrix((data, (rows, cols)), shape=(n, n)).tocsr()


def build_decay_diffusion_operator(width: int, diffusion: float, decay: float) -> sparse.csr_matrix:
    """Operator decay·I - diffusion·L for a width x width torus."""
    n = width * width
    laplacian = build_periodic_laplacian(width)
    return (decay * sparse.identity(n, format="csr") - diffusion * laplacian).tocsr()


class PointSourceField:
    """
    Precomputed single-producer response, shared by all field solvers.

    Immutable after construction. Lookups canonicalize offsets to the
    shortest periodic displacement, so

        contribution(dx, dy) == contribution(dx mod W, dy mod W)
                             == contribution(-dx, -dy)

    hold exactly.
    """

    def __init__(
        self,
        width: int,
        diffusion: float,
        decay: float,
        production: float,
        rtol: float = 1e-12,
        maxiter: int | None = None,
    ):
        self.width = width
        self.diffusion = diffusion
        self.decay = decay
        self.production = production

        n = width * width

        # In the special case of zero production, skip the solve entirely
        if production < EPSILON:
            logger.info("No production: using trivial point-source field")
            self.solution = np.zeros(n, dtype=np.float64)
        else:
            self.solution = self._solve(rtol, maxiter)

        self._response = self._canonical_response()
        self._response.setflags(write=False)

    @classmethod
    def from_config(cls, config: SimulationConfig, **kwargs) -> PointSourceField:
        return cls(
            width=config.width,
            diffusion=config.diffusion,
            decay=config.decay,
            production=config.production,
            **kwargs,
        )

    def _solve(self, rtol: float, maxiter: int | None) -> np.ndarray:
        n = self.width * self.width
        operator = build_decay_diffusion_operator(self.width, self.diffusion, self.decay)

        # Source vector is the production rate at the origin
        source = np.zeros(n, dtype=np.float64)
        source[0] = self.production

        # Diagonal (Jacobi) preconditioner
        diag = operator.diagonal()
        if np.any(np.abs(diag) < EPSILON):
            raise ValueError(
                "Decay-diffusion operator has a zero diagonal; decay and diffusion "
                "cannot both be zero"
            )
        preconditioner = sparse.diags(1.0 / diag)

        logger.info("Solving point-source field on a %dx%d lattice", self.width, self.width)
        solution, info = cgs(
            operator, source, rtol=rtol, atol=0.0, maxiter=maxiter, M=preconditioner
        )

        residual = float(np.linalg.norm(operator @ solution - source))
        if info != 0:
            raise SolverNotConvergedError(info, residual)

        logger.info("Point-source field solved (residual %.3e)", residual)
        return solution

    def _canonical_response(self) -> np.ndarray:
        """Response grid [dy, dx] looked up at the shortest periodic offsets."""
        w = self.width
        offsets = np.arange(w)
        shortest = np.minimum(offsets, w - offsets)
        sy, sx = np.meshgrid(shortest, shortest, indexing="ij")
        return self.solution[sx + w * sy].reshape(w, w)

    @property
    def kernel(self) -> np.ndarray:
        """Response to a unit producer at the origin, as a row-major N-vector."""
        return self._response.ravel()

    @property
    def response(self) -> np.ndarray:
        """Response grid, shape [W, W] indexed [dy, dx]."""
        return self._response

    def contribution(self, dx: int, dy: int) -> float:
        """Concentration at offset (dx, dy) from one producer."""
        return float(self._response[dy % self.width, dx % self.width])

    def response_from(self, index: int) -> np.ndarray:
        """N-vector of contributions of a producer at `index` to every site."""
        sy, sx = divmod(index, self.width)
        return np.roll(self._response, (sy, sx), axis=(0, 1)).ravel()

    @property
    def source_concentration(self) -> float:
        """Concentration a lone producer sees at its own site, C(0, 0)."""
        return self.contribution(0, 0)

    @property
    def ceiling(self) -> float:
        """Concentration everywhere when every site is a producer."""
        return float(self._response.sum())
