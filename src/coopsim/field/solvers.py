"""
Field solvers: producer layout → steady-state resource concentration.

All solvers take the per-site production vector (non-zero = producer) and
return a dense N-vector of concentrations, index = y * W + x. They must
agree up to floating-point tolerance; they differ only in cost.

- PositiveSuperpositionSolver: sum the point-source response of every
  producer. O(P·N).
- NegativeSuperpositionSolver: start from the all-producer ceiling and
  subtract every non-producer. O((N-P)·N).
- SmartSuperpositionSolver: whichever of the two has the smaller set.
- IncrementalSolver: keep last step's field and only add/subtract the
  sites whose producer status flipped. O(ΔN·N).
- DirectSolver: solve the full sparse system every call (reference).
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from scipy.sparse.linalg import spsolve

from coopsim.core.config import EPSILON
from coopsim.field.point_source import PointSourceField, build_decay_diffusion_operator

if TYPE_CHECKING:
    from coopsim.core.config import SimulationConfig

logger = logging.getLogger(__name__)


class FieldSolver(ABC):
    """Base class for all resource-field solvers."""

    def __init__(self, field: PointSourceField):
        self.field = field
        self.n_sites = field.width * field.width

    @abstractmethod
    def solve(self, production: np.ndarray) -> np.ndarray:
        """
        Compute the steady-state concentration at every site.

        Args:
            production: Per-site production rates, shape [N]

        Returns:
            Concentration per site, shape [N]
        """
        ...

    def reset(self) -> None:
        """Forget any state carried between steps (start of a new replicate)."""

    @property
    def source_concentration(self) -> float:
        return self.field.source_concentration

    @property
    def trivial(self) -> bool:
        """True if producers release (effectively) nothing."""
        return self.field.production < EPSILON

    def _zeros(self) -> np.ndarray:
        return np.zeros(self.n_sites, dtype=np.float64)


def find_producers(production: np.ndarray) -> np.ndarray:
    """Indices of sites that produce."""
    return np.flatnonzero(production != 0)


def find_non_producers(production: np.ndarray) -> np.ndarray:
    """Indices of sites that do not produce (cheaters, dead, empty)."""
    return np.flatnonzero(production == 0)


class PositiveSuperpositionSolver(FieldSolver):
    """Sum the contribution of every producer."""

    def solve(self, production: np.ndarray) -> np.ndarray:
        return self.solve_indices(find_producers(production))

    def solve_indices(self, producers: np.ndarray) -> np.ndarray:
        result = self._zeros()
        for i in producers:
            result += self.field.response_from(int(i))
        return result


class NegativeSuperpositionSolver(FieldSolver):
    """
    Start at the all-producer ceiling and subtract every non-producer.

    Equivalent to the positive solver by linearity.
    """

    def __init__(self, field: PointSourceField):
        super().__init__(field)
        # Highest possible concentration: every site is a producer
        self.ceiling = field.ceiling

    def solve(self, production: np.ndarray) -> np.ndarray:
        return self.solve_indices(find_non_producers(production))

    def solve_indices(self, non_producers: np.ndarray) -> np.ndarray:
        result = np.full(self.n_sites, self.ceiling, dtype=np.float64)
        for i in non_producers:
            result -= self.field.response_from(int(i))
        return result


class SmartSuperpositionSolver(FieldSolver):
    """Use whichever superposition touches fewer sites."""

    def __init__(self, field: PointSourceField):
        super().__init__(field)
        self.positive = PositiveSuperpositionSolver(field)
        self.negative = NegativeSuperpositionSolver(field)

    def solve(self, production: np.ndarray) -> np.ndarray:
        if self.trivial:
            return self._zeros()

        producers = find_producers(production)
        non_producers = find_non_producers(production)

        if len(non_producers) > len(producers):
            logger.debug("Positive superposition over %d producers", len(producers))
            return self.positive.solve_indices(producers)

        logger.debug("Negative superposition over %d non-producers", len(non_producers))
        return self.negative.solve_indices(non_producers)


class IncrementalSolver(SmartSuperpositionSolver):
    """
    Reuse the previous field and apply only the changes since last step.

    A continuous process flips at most one site per step, so each solve
    costs O(N) instead of O(N²). The first call (and the first call after
    reset()) falls back to a full smart solve.

    Repeated add/subtract accumulates rounding error, so change detection
    uses epsilon-aware equality rather than exact comparison.
    """

    def __init__(self, field: PointSourceField):
        super().__init__(field)
        self._prev_production: np.ndarray | None = None
        self._prev_solution: np.ndarray | None = None

    def reset(self) -> None:
        self._prev_production = None
        self._prev_solution = None

    def solve(self, production: np.ndarray) -> np.ndarray:
        if self._prev_solution is None:
            solution = super().solve(production)
        else:
            solution = self._incremental_solve(production)

        self._prev_solution = solution.copy()
        self._prev_production = np.array(production, dtype=np.float64, copy=True)
        return solution

    def _incremental_solve(self, production: np.ndarray) -> np.ndarray:
        if self.trivial:
            return self._zeros()

        solution = self._prev_solution.copy()
        delta = production - self._prev_production

        changed = np.flatnonzero(np.abs(delta) >= EPSILON)
        for i in changed:
            if delta[i] > 0:
                # Became a producer: add its effect
                solution += self.field.response_from(int(i))
            else:
                # Stopped producing: remove its effect
                solution -= self.field.response_from(int(i))

        logger.debug("Incremental solve applied %d changes", len(changed))
        return solution


class DirectSolver(FieldSolver):
    """
    Solve (decay·I - diffusion·L) c = s from scratch on every call.

    Needed only if sources stop being independent of one another; kept as
    the reference the superposition solvers are checked against.
    """

    def __init__(self, field: PointSourceField):
        super().__init__(field)
        self.operator = build_decay_diffusion_operator(
            field.width, field.diffusion, field.decay
        ).tocsc()

    def solve(self, production: np.ndarray) -> np.ndarray:
        if self.trivial:
            return self._zeros()
        return np.asarray(spsolve(self.operator, np.asarray(production, dtype=np.float64)))


_SOLVERS = {
    "positive": PositiveSuperpositionSolver,
    "negative": NegativeSuperpositionSolver,
    "smart": SmartSuperpositionSolver,
    "incremental": IncrementalSolver,
    "direct": DirectSolver,
}


def create_solver(name: str, field: PointSourceField) -> FieldSolver:
    """Factory for a solver by name (see SimulationConfig.solver)."""
    try:
        solver_cls = _SOLVERS[name]
    except KeyError:
        raise ValueError(f"Unknown solver '{name}'. Expected one of {sorted(_SOLVERS)}") from None
    return solver_cls(field)


def solver_from_config(config: "SimulationConfig", field: PointSourceField) -> FieldSolver:
    return create_solver(config.solver, field)
