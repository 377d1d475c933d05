"""Unit tests for initial lattice configurations."""

import numpy as np
import pytest

from coopsim.core.cells import CellType
from coopsim.core.config import SimulationConfig
from coopsim.core import initial_conditions as ic


@pytest.fixture
def config():
    return SimulationConfig(width=16)


def n_disc_sites(radius):
    """Sites at Manhattan distance < radius."""
    return 0 if radius == 0 else 1 + 2 * radius * (radius - 1)


class TestSpaceFilling:
    def test_uniform(self, config):
        lattice = ic.uniform(config, CellType.CHEATER)
        assert lattice.count(CellType.CHEATER) == 256
        lattice.check_invariants()

    def test_single_cheater(self, config):
        lattice = ic.single_cheater(config)
        assert lattice.count(CellType.CHEATER) == 1
        assert lattice.count(CellType.PRODUCER) == 255
        assert lattice.get(8, 8).kind == CellType.CHEATER
        lattice.check_invariants()

    @pytest.mark.parametrize("n_cheaters", [0, 1, 10, 128, 200, 256])
    def test_well_mixed(self, config, rng, n_cheaters):
        lattice = ic.well_mixed(config, n_cheaters, rng)
        assert lattice.count(CellType.CHEATER) == n_cheaters
        assert lattice.count(CellType.PRODUCER) == 256 - n_cheaters
        lattice.check_invariants()

    def test_well_mixed_is_reproducible(self, config):
        a = ic.well_mixed(config, 20, np.random.default_rng(1)).types()
        b = ic.well_mixed(config, 20, np.random.default_rng(1)).types()
        assert np.array_equal(a, b)

    @pytest.mark.parametrize("radius", [0, 1, 3, 5])
    def test_cheater_disc(self, config, radius):
        lattice = ic.cheater_disc(config, radius)
        assert lattice.count(CellType.CHEATER) == n_disc_sites(radius)
        lattice.check_invariants()

    def test_disc_shape(self, config):
        lattice = ic.cheater_disc(config, 3)
        assert lattice.get(8, 8).kind == CellType.CHEATER
        assert lattice.get(10, 8).kind == CellType.CHEATER
        assert lattice.get(9, 9).kind == CellType.CHEATER
        assert lattice.get(11, 8).kind == CellType.PRODUCER
        assert lattice.get(10, 9).kind == CellType.PRODUCER

    def test_producer_disc(self, config):
        lattice = ic.producer_disc(config, 4)
        assert lattice.count(CellType.PRODUCER) == n_disc_sites(4)
        assert lattice.count(CellType.CHEATER) == 256 - n_disc_sites(4)


class TestSparse:
    def test_producer_cheater(self):
        lattice = ic.producer_cheater(SimulationConfig(width=10))
        assert lattice.count(CellType.PRODUCER) == 24
        assert lattice.count(CellType.CHEATER) == 1
        assert lattice.count(CellType.EMPTY) == 75
        assert lattice.get(5, 5).kind == CellType.CHEATER
        lattice.check_invariants()

    def test_two_cities(self, config):
        lattice = ic.two_cities(config)
        assert lattice.get(4, 8).kind == CellType.PRODUCER
        assert lattice.get(12, 8).kind == CellType.CHEATER
        assert lattice.count(CellType.EMPTY) == 254

    def test_empty_sites_have_no_biomass(self, config):
        lattice = ic.two_cities(config)
        assert lattice.biomass().sum() == pytest.approx(2 * config.threshold / 2)


class TestBuild:
    @pytest.mark.parametrize(
        "name, argument",
        [
            ("well_mixed", 12),
            ("single_cheater", None),
            ("cheater_disc", 2),
            ("producer_disc", 2),
            ("producer_cheater", None),
            ("two_cities", None),
        ],
    )
    def test_dispatch(self, rng, name, argument):
        config = SimulationConfig(width=12, initial_condition=name, ic_argument=argument)
        lattice = ic.build_initial_condition(config, rng)
        assert lattice.width == 12
        lattice.check_invariants()

    def test_randomized_biomass(self, rng):
        config = SimulationConfig(width=8, randomize_producers=True, randomize_cheaters=True)
        lattice = ic.build_initial_condition(config, rng)
        biomass = lattice.biomass()
        assert np.all((biomass >= 0.0) & (biomass < config.threshold))
        assert len(np.unique(biomass)) > 1
