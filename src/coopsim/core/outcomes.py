"""
Terminal signals returned by one engine step.

These are values, not exceptions: a step either keeps running or reports
why the replicate is over. None of them is persisted by the core.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from coopsim.core.cells import CellType


@dataclass(frozen=True)
class StillRunning:
    """The step completed and the replicate may continue."""


@dataclass(frozen=True)
class Fixation:
    """One phenotype occupies every site."""

    winner: CellType
    elapsed_time: float  # Gillespie time at fixation


@dataclass(frozen=True)
class HaltedForHistogram:
    """The configured halt count was reached (deliberate early stop)."""

    count: int


@dataclass(frozen=True)
class Equilibrium:
    """Nothing can happen any more (no division site, no growing cell)."""

    reason: str = ""


STILL_RUNNING = StillRunning()

Outcome = Union[StillRunning, Fixation, HaltedForHistogram, Equilibrium]


def is_terminal(outcome: Outcome) -> bool:
    return not isinstance(outcome, StillRunning)
