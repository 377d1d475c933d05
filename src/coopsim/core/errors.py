"""
Fatal conditions raised by the simulation core.

Terminal outcomes (fixation, halt, equilibrium) are NOT errors: they are
returned from a step as values (see outcomes.py). Everything here means the
replicate cannot continue.
"""


class CoopSimError(Exception):
    """Base class for coopsim errors."""


class SolverNotConvergedError(CoopSimError):
    """The point-source linear solve did not converge within its budget."""

    def __init__(self, info: int, residual: float):
        super().__init__(
            f"Point-source solve did not converge (info={info}, residual={residual:.3e})"
        )
        self.info = info
        self.residual = residual


class ModelInconsistencyError(CoopSimError):
    """A lattice or process invariant was broken."""


class EmptyDistributionError(CoopSimError):
    """A weighted sampler was sealed without any tokens."""
