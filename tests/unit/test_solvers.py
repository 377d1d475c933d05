"""Unit tests for the superposition field solvers."""

import numpy as np
import pytest

from coopsim.field.point_source import PointSourceField
from coopsim.field.solvers import (
    DirectSolver,
    IncrementalSolver,
    NegativeSuperpositionSolver,
    PositiveSuperpositionSolver,
    SmartSuperpositionSolver,
    create_solver,
    find_non_producers,
    find_producers,
    solver_from_config,
)

PRODUCTION = 0.3


@pytest.fixture
def field():
    return PointSourceField(width=6, diffusion=0.15, decay=0.05, production=PRODUCTION)


def random_production(rng, n, fraction):
    return np.where(rng.random(n) < fraction, PRODUCTION, 0.0)


def assert_fields_match(actual, expected):
    np.testing.assert_allclose(actual, expected, rtol=1e-9, atol=1e-12)


class TestMembership:
    def test_partition(self):
        production = np.array([0.0, 0.3, 0.0, 0.3])
        assert list(find_producers(production)) == [1, 3]
        assert list(find_non_producers(production)) == [0, 2]


class TestSuperpositionEquivalence:
    """Every strategy must agree with a direct sparse solve."""

    @pytest.mark.parametrize("fraction", [0.0, 0.1, 0.5, 0.9, 1.0])
    @pytest.mark.parametrize(
        "solver_cls",
        [
            PositiveSuperpositionSolver,
            NegativeSuperpositionSolver,
            SmartSuperpositionSolver,
            IncrementalSolver,
        ],
    )
    def test_matches_direct(self, field, rng, solver_cls, fraction):
        production = random_production(rng, 36, fraction)
        expected = DirectSolver(field).solve(production)
        assert_fields_match(solver_cls(field).solve(production), expected)

    def test_single_producer_is_kernel(self, field):
        production = np.zeros(36)
        production[0] = PRODUCTION
        result = PositiveSuperpositionSolver(field).solve(production)
        assert np.array_equal(result, field.kernel)

    def test_single_producer_elsewhere(self, field):
        production = np.zeros(36)
        production[14] = PRODUCTION
        result = PositiveSuperpositionSolver(field).solve(production)
        assert np.array_equal(result, field.response_from(14))

    def test_all_producers_is_ceiling(self, field):
        production = np.full(36, PRODUCTION)
        result = NegativeSuperpositionSolver(field).solve(production)
        assert np.all(result == field.ceiling)

    def test_trivial_field(self):
        field = PointSourceField(width=5, diffusion=0.1, decay=0.05, production=0.0)
        production = np.zeros(25)
        for solver in (SmartSuperpositionSolver(field), IncrementalSolver(field), DirectSolver(field)):
            assert np.all(solver.solve(production) == 0.0)


class TestIncrementalSolver:
    def test_first_call_is_full_solve(self, field, rng):
        production = random_production(rng, 36, 0.4)
        assert_fields_match(
            IncrementalSolver(field).solve(production),
            SmartSuperpositionSolver(field).solve(production),
        )

    @pytest.mark.parametrize("site", [0, 7, 35])
    def test_single_flip(self, field, rng, site):
        production = random_production(rng, 36, 0.5)
        solver = IncrementalSolver(field)
        solver.solve(production)

        flipped = production.copy()
        flipped[site] = PRODUCTION - flipped[site]

        assert_fields_match(solver.solve(flipped), PositiveSuperpositionSolver(field).solve(flipped))

    def test_long_walk_does_not_drift(self, field, rng):
        solver = IncrementalSolver(field)
        reference = PositiveSuperpositionSolver(field)
        production = random_production(rng, 36, 0.5)
        solver.solve(production)

        for _ in range(200):
            site = int(rng.integers(36))
            production[site] = PRODUCTION - production[site]
            result = solver.solve(production)

        assert_fields_match(result, reference.solve(production))

    def test_unchanged_layout(self, field, rng):
        production = random_production(rng, 36, 0.5)
        solver = IncrementalSolver(field)
        first = solver.solve(production)
        assert np.array_equal(solver.solve(production), first)

    def test_returned_field_is_not_retained(self, field, rng):
        production = random_production(rng, 36, 0.5)
        solver = IncrementalSolver(field)
        first = solver.solve(production)
        expected = first.copy()

        first[:] = -1.0
        assert np.array_equal(solver.solve(production), expected)

    def test_caller_mutating_production_is_harmless(self, field, rng):
        production = random_production(rng, 36, 0.5)
        solver = IncrementalSolver(field)
        solver.solve(production)

        # In-place edits of the caller's vector are still seen as changes
        production[3] = PRODUCTION - production[3]
        assert_fields_match(solver.solve(production), PositiveSuperpositionSolver(field).solve(production))

    def test_reset(self, field, rng):
        solver = IncrementalSolver(field)
        solver.solve(random_production(rng, 36, 0.5))
        solver.reset()

        production = random_production(rng, 36, 0.2)
        assert_fields_match(solver.solve(production), PositiveSuperpositionSolver(field).solve(production))


class TestFactory:
    @pytest.mark.parametrize(
        "name, cls",
        [
            ("positive", PositiveSuperpositionSolver),
            ("negative", NegativeSuperpositionSolver),
            ("smart", SmartSuperpositionSolver),
            ("incremental", IncrementalSolver),
            ("direct", DirectSolver),
        ],
    )
    def test_create_solver(self, field, name, cls):
        solver = create_solver(name, field)
        assert type(solver) is cls
        assert solver.source_concentration == field.source_concentration

    def test_unknown_solver(self, field):
        with pytest.raises(ValueError, match="Unknown solver"):
            create_solver("fft", field)

    def test_from_config(self, small_config, small_field):
        solver = solver_from_config(small_config, small_field)
        assert isinstance(solver, IncrementalSolver)
