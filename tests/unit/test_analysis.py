"""Unit tests for derived analysis quantities."""

import logging
import math

import numpy as np
import pytest

from coopsim.analysis import frontier_growth_delta, periodic_distances, radial_distribution
from coopsim.core.cells import CellType, make_cell
from coopsim.core.config import SimulationConfig
from coopsim.core.initial_conditions import single_cheater, uniform, well_mixed
from coopsim.processes.continuous import ContinuousReplacement


def record_rates(config, lattice, rng, concentration=None):
    engine = ContinuousReplacement(config, lattice, rng)
    if concentration is None:
        concentration = np.zeros(lattice.n_sites)
    engine.growth_rates(concentration)
    return lattice


class TestFrontierGrowthDelta:
    def test_neutral_case_is_balanced(self, neutral_config, rng, caplog):
        lattice = record_rates(neutral_config, well_mixed(neutral_config, 25, rng), rng)

        with caplog.at_level(logging.WARNING, logger="coopsim.analysis.frontier"):
            delta = frontier_growth_delta(lattice, neutral_config)

        assert delta.global_delta == 0.0
        assert "consistency" not in caplog.text

    def test_single_cheater(self, neutral_config, rng):
        lattice = record_rates(neutral_config, single_cheater(neutral_config), rng)
        delta = frontier_growth_delta(lattice, neutral_config)

        # Four producers with one competitor each, one cheater with four
        assert delta.n_producers == 4
        assert delta.n_cheaters == 1
        assert delta.global_delta == 0.0
        assert delta.per_cell_delta == pytest.approx(0.25 - 1.0)

    def test_costly_production_favors_cheaters(self, rng):
        config = SimulationConfig(width=8, production=0.5, growth=1.0, benefit=0.0)
        lattice = record_rates(config, single_cheater(config), rng)
        delta = frontier_growth_delta(lattice, config)

        # Producers grow at 0.5, the cheater at 1.0
        assert delta.global_delta == pytest.approx(4 * 0.25 * 0.5 - 1.0)

    def test_no_frontier(self, neutral_config, rng):
        lattice = record_rates(neutral_config, uniform(neutral_config, CellType.PRODUCER), rng)
        delta = frontier_growth_delta(lattice, neutral_config)

        assert delta.global_delta == 0.0
        assert math.isnan(delta.per_cell_delta)

    def test_inconsistent_neutral_case_is_logged(self, neutral_config, rng, caplog):
        lattice = single_cheater(neutral_config)
        for cell in lattice:
            cell.derivative = 2.0 if cell.kind == CellType.PRODUCER else 1.0

        with caplog.at_level(logging.WARNING, logger="coopsim.analysis.frontier"):
            delta = frontier_growth_delta(lattice, neutral_config)

        assert delta.global_delta == pytest.approx(1.0)
        assert "Failed consistency check" in caplog.text


class TestRadialDistribution:
    def test_periodic_distances(self):
        assert periodic_distances(np.array([9]), np.array([0]), 10)[0] == 1.0
        assert periodic_distances(np.array([3]), np.array([4]), 10)[0] == 5.0
        assert periodic_distances(np.array([-7]), np.array([6]), 10)[0] == pytest.approx(5.0)

    def test_single_pair(self):
        types = np.zeros(100, dtype=np.int8)
        types[[0, 3]] = CellType.CHEATER  # (0, 0) and (3, 0)
        radii, counts = radial_distribution(types, 10)

        assert len(radii) == len(counts) == 8
        assert counts[3] == 1
        assert counts.sum() == 1

    def test_pair_across_boundary(self):
        types = np.zeros((10, 10), dtype=np.int8)
        types[0, 0] = types[0, 9] = CellType.CHEATER
        _, counts = radial_distribution(types, 10)
        assert counts[1] == 1

    def test_counts_all_pairs(self):
        types = np.zeros(36, dtype=np.int8)
        types[[0, 7, 14, 21]] = CellType.PRODUCER
        _, counts = radial_distribution(types, 6, CellType.PRODUCER)
        assert counts.sum() == 6

    def test_normalized_full_lattice_is_flat(self):
        types = np.full(36, CellType.CHEATER, dtype=np.int8)
        _, g = radial_distribution(types, 6, normalize=True)
        assert g[0] == 0.0
        np.testing.assert_allclose(g[1:], 1.0)

    def test_size_mismatch(self):
        with pytest.raises(ValueError):
            radial_distribution(np.zeros(10, dtype=np.int8), 4)

    def test_on_a_lattice(self, small_config):
        lattice = single_cheater(small_config)
        lattice.set(4, 6, make_cell(CellType.CHEATER, 4, 6, small_config))
        _, counts = radial_distribution(lattice.types(), small_config.width)
        assert counts[2] == 1
