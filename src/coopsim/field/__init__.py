"""
Resource field layer.

- PointSourceField: one sparse solve for a single unit producer (CGS +
  diagonal preconditioner), then O(1) offset lookups
- Superposition solvers turn a producer layout into a concentration field
- IncrementalSolver (default) only applies the sites that changed type
"""

from coopsim.field.point_source import (
    PointSourceField,
    build_periodic_laplacian,
    build_decay_diffusion_operator,
)
from coopsim.field.solvers import (
    FieldSolver,
    PositiveSuperpositionSolver,
    NegativeSuperpositionSolver,
    SmartSuperpositionSolver,
    IncrementalSolver,
    DirectSolver,
    create_solver,
    solver_from_config,
)

__all__ = [
    "PointSourceField",
    "build_periodic_laplacian",
    "build_decay_diffusion_operator",
    "FieldSolver",
    "PositiveSuperpositionSolver",
    "NegativeSuperpositionSolver",
    "SmartSuperpositionSolver",
    "IncrementalSolver",
    "DirectSolver",
    "create_solver",
    "solver_from_config",
]
