"""
Step driver and replicate loop.

One Simulator is one replicate: it owns the lattice, the random generator,
the field solver (with its cross-step state) and the engine. Each step:

    production vector → FieldSolver → concentration → engine.turnover()

Observers receive a read-only StepReport after every step. They are a
reporting sink only: a failing observer is logged and never stops the run.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field as dataclass_field
from typing import Callable, Iterable, Optional

import numpy as np

from coopsim.core.cells import CellType
from coopsim.core.config import SimulationConfig
from coopsim.core.errors import CoopSimError
from coopsim.core.initial_conditions import build_initial_condition
from coopsim.core.outcomes import STILL_RUNNING, Fixation, Outcome, is_terminal
from coopsim.field.point_source import PointSourceField
from coopsim.field.solvers import solver_from_config
from coopsim.processes import create_engine

logger = logging.getLogger(__name__)


def _frozen(array: np.ndarray) -> np.ndarray:
    out = np.array(array, copy=True)
    out.setflags(write=False)
    return out


@dataclass(frozen=True)
class StepReport:
    """Snapshot of one replicate after a step (arrays are read-only copies)."""

    step: int
    outcome: Outcome
    elapsed_time: float
    concentration: np.ndarray  # [N]
    biomass: np.ndarray        # [N]
    growth_rates: np.ndarray   # [N]
    types: np.ndarray          # [N], int8 type bytes
    counts: np.ndarray         # [4], indexed by CellType
    cheater_probability: float
    frontier_size: int

    def count(self, kind: CellType) -> int:
        return int(self.counts[kind])


@dataclass
class RunResult:
    """How one replicate ended."""

    outcome: Optional[Outcome]  # None if the replicate failed
    steps: int
    elapsed_time: float
    counts: np.ndarray
    seed: Optional[int] = None
    replicate: int = 0
    error: Optional[Exception] = dataclass_field(default=None, compare=False)

    @property
    def completed(self) -> bool:
        """True if the step budget ran out without a terminal outcome."""
        return self.error is None and not is_terminal(self.outcome)

    @property
    def fixated(self) -> bool:
        return isinstance(self.outcome, Fixation)


Observer = Callable[[StepReport], None]


class Simulator:
    """
    Drives one replicate.

    Args:
        config: Simulation parameters
        field: Precomputed point-source field (solved here if None);
            may be shared between replicates since it is immutable
        rng: Random generator (default: seeded from config.seed)
        observers: Callables receiving a StepReport after every step
    """

    def __init__(
        self,
        config: SimulationConfig,
        field: PointSourceField | None = None,
        rng: np.random.Generator | None = None,
        observers: Iterable[Observer] = (),
    ):
        self.config = config
        self.field = field if field is not None else PointSourceField.from_config(config)
        if self.field.width != config.width:
            raise ValueError(
                f"Field width {self.field.width} does not match config width {config.width}"
            )

        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.observers: list[Observer] = list(observers)

        self.solver = solver_from_config(config, self.field)
        self.lattice = build_initial_condition(config, self.rng)
        self.engine = create_engine(config, self.lattice, self.rng, self.field)

        self.steps = 0
        self.outcome: Outcome = STILL_RUNNING

    def add_observer(self, observer: Observer) -> None:
        self.observers.append(observer)

    @property
    def elapsed_time(self) -> float:
        return self.engine.elapsed_time

    @property
    def finished(self) -> bool:
        return is_terminal(self.outcome)

    def solve_field(self) -> np.ndarray:
        """Concentration field for the current lattice."""
        return self.solver.solve(self.lattice.production(self.config))

    def step(self) -> Outcome:
        """Solve the field, run one engine turnover and notify observers."""
        if self.finished:
            raise RuntimeError(f"Replicate already ended with {self.outcome}")

        concentration = self.solve_field()
        outcome = self.engine.turnover(concentration)

        self.steps += 1
        self.outcome = outcome
        if is_terminal(outcome):
            logger.info("Step %d: %s (t=%.4g)", self.steps, outcome, self.elapsed_time)

        if self.observers:
            self._notify(self.report())
        return outcome

    def report(self) -> StepReport:
        engine = self.engine
        concentration = engine.last_concentration
        if concentration is None:
            concentration = np.zeros(self.lattice.n_sites)

        return StepReport(
            step=self.steps,
            outcome=self.outcome,
            elapsed_time=engine.elapsed_time,
            concentration=_frozen(concentration),
            biomass=_frozen(self.lattice.biomass()),
            growth_rates=_frozen(engine.last_growth_rates),
            types=_frozen(self.lattice.types()),
            counts=_frozen(self.lattice.counts()),
            cheater_probability=engine.cheater_probability,
            frontier_size=engine.frontier_size,
        )

    def _notify(self, report: StepReport) -> None:
        for observer in self.observers:
            try:
                observer(report)
            except Exception:
                logger.exception("Observer %r failed at step %d", observer, report.step)

    def run(self) -> RunResult:
        """Step until a terminal outcome or config.max_steps."""
        logger.info(
            "Starting %s on a %dx%d lattice (seed=%s)",
            self.config.cell_operator,
            self.config.width,
            self.config.width,
            self.config.seed,
        )

        while not self.finished and self.steps < self.config.max_steps:
            self.step()

        if not self.finished:
            logger.info("Step budget of %d exhausted", self.config.max_steps)

        return self.result()

    def result(self, error: Exception | None = None) -> RunResult:
        return RunResult(
            outcome=None if error is not None else self.outcome,
            steps=self.steps,
            elapsed_time=self.elapsed_time,
            counts=self.lattice.counts(),
            seed=self.config.seed,
            error=error,
        )


def run_replicates(
    config: SimulationConfig,
    n_replicates: int,
    stop_on_error: bool = True,
    observers: Iterable[Observer] = (),
) -> list[RunResult]:
    """
    Run independent replicates of one configuration.

    The point-source field is solved once and shared. Each replicate gets
    its own generator, spawned from SeedSequence(config.seed), and its own
    solver, so no incremental state leaks between replicates.

    Args:
        config: Simulation parameters
        n_replicates: Number of replicates
        stop_on_error: Re-raise a replicate's CoopSimError; if False, record
            it in that replicate's RunResult and go on with the next one
        observers: Attached to every replicate

    Returns:
        One RunResult per replicate, in order
    """
    if n_replicates < 0:
        raise ValueError(f"n_replicates must be non-negative, got {n_replicates}")

    field = PointSourceField.from_config(config)
    sequences = np.random.SeedSequence(config.seed).spawn(n_replicates)
    observers = list(observers)

    results = []
    for k, sequence in enumerate(sequences):
        logger.info("Replicate %d/%d", k + 1, n_replicates)
        rng = np.random.default_rng(sequence)

        simulator = None
        try:
            simulator = Simulator(config, field=field, rng=rng, observers=observers)
            simulator.engine.seed = f"{config.seed}/{k}"
            result = simulator.run()
        except CoopSimError as exc:
            if stop_on_error:
                raise
            logger.exception("Replicate %d failed", k + 1)
            if simulator is not None:
                result = simulator.result(error=exc)
            else:
                result = RunResult(
                    outcome=None,
                    steps=0,
                    elapsed_time=0.0,
                    counts=np.zeros(len(CellType), dtype=np.int64),
                    seed=config.seed,
                    error=exc,
                )

        result.replicate = k
        results.append(result)

    return results
