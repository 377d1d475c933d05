"""Unit tests for cell variants."""

import math

import numpy as np
import pytest

from coopsim.core.cells import COMPETITORS, Cell, CellType, TRAITS, initial_biomass, make_cell
from coopsim.core.config import SimulationConfig


@pytest.fixture
def config():
    return SimulationConfig(width=4, production=0.2, growth=1.0, benefit=0.5, threshold=1.0)


class TestTraits:
    def test_trait_table_is_complete(self):
        assert set(TRAITS) == set(CellType)

    def test_only_producers_produce(self):
        assert [k for k in CellType if TRAITS[k].produces] == [CellType.PRODUCER]

    def test_competitors(self):
        assert set(COMPETITORS) == {CellType.PRODUCER, CellType.CHEATER}

    def test_type_bytes(self):
        assert int(CellType.EMPTY) == 0
        assert int(CellType.CHEATER) == 1
        assert int(CellType.PRODUCER) == 2
        assert int(CellType.DEAD) == 3


class TestChangeRate:
    def test_producer_pays_production(self, config):
        cell = Cell(CellType.PRODUCER, 0, 0)
        assert cell.production(config) == 0.2
        assert cell.change_rate(2.0, config) == pytest.approx(1.0 + 0.5 * 2.0 - 0.2)

    def test_cheater_free_rides(self, config):
        cell = Cell(CellType.CHEATER, 0, 0)
        assert cell.production(config) == 0.0
        assert cell.change_rate(2.0, config) == pytest.approx(2.0)

    @pytest.mark.parametrize("kind", [CellType.EMPTY, CellType.DEAD])
    def test_inert_cells(self, config, kind):
        cell = Cell(kind, 0, 0)
        assert cell.change_rate(5.0, config) == 0.0
        assert cell.production(config) == 0.0

    def test_records_derivative(self, config):
        cell = Cell(CellType.CHEATER, 0, 0)
        rate = cell.change_rate(1.0, config)
        assert cell.derivative == rate

        cell.change_rate(3.0, config, record=False)
        assert cell.derivative == rate

    def test_infinite_benefit(self):
        cfg = SimulationConfig(width=4, infinite_benefit=True, growth=0.0, benefit=0.0, production=0.3)
        assert Cell(CellType.PRODUCER, 0, 0).change_rate(0.7, cfg) == 0.7
        assert Cell(CellType.CHEATER, 0, 0).change_rate(0.7, cfg) == 0.7


class TestCriticalTime:
    def test_growing(self, config):
        cell = Cell(CellType.CHEATER, 0, 0, biomass=0.25)
        # rate = 1 + 0.5 * 1 = 1.5
        assert cell.critical_time(1.0, config) == pytest.approx(0.75 / 1.5)

    def test_starving(self):
        cfg = SimulationConfig(width=4, growth=0.0, production=0.5)
        cell = Cell(CellType.PRODUCER, 0, 0, biomass=0.5)
        assert cell.critical_time(0.0, cfg) == pytest.approx(1.0)

    def test_zero_rate(self):
        cfg = SimulationConfig(width=4, growth=0.0)
        assert math.isinf(Cell(CellType.CHEATER, 0, 0, biomass=0.5).critical_time(0.0, cfg))

    def test_inert(self, config):
        assert math.isinf(Cell(CellType.DEAD, 0, 0, biomass=0.5).critical_time(1.0, config))


class TestMetabolize:
    def test_divides_at_threshold(self):
        cfg = SimulationConfig(width=4, growth=1.0)
        cell = Cell(CellType.CHEATER, 0, 0, biomass=0.5)
        assert cell.metabolize(0.0, 0.5, cfg) == 1
        assert cell.biomass == pytest.approx(1.0)

    def test_dies_at_zero(self):
        cfg = SimulationConfig(width=4, growth=0.0, production=0.5)
        cell = Cell(CellType.PRODUCER, 0, 0, biomass=0.5)
        assert cell.metabolize(0.0, 1.0, cfg) == -1

    def test_keeps_going(self):
        cfg = SimulationConfig(width=4, growth=1.0)
        cell = Cell(CellType.CHEATER, 0, 0, biomass=0.5)
        assert cell.metabolize(0.0, 0.1, cfg) == 0
        assert cell.biomass == pytest.approx(0.6)

    def test_inert_cells_do_nothing(self, config):
        cell = Cell(CellType.EMPTY, 0, 0)
        assert cell.metabolize(1.0, 10.0, config) == 0
        assert cell.biomass == 0.0


class TestDuplicate:
    def test_duplicate_copies_state(self):
        cell = Cell(CellType.PRODUCER, 1, 2, biomass=0.6, derivative=0.3)
        copy = cell.duplicate(3, 0)

        assert copy is not cell
        assert copy.kind == CellType.PRODUCER
        assert (copy.x, copy.y) == (3, 0)
        assert copy.biomass == 0.6
        assert copy.derivative == 0.3

    def test_cells_compare_by_identity(self):
        a = Cell(CellType.CHEATER, 0, 0, biomass=0.5)
        b = Cell(CellType.CHEATER, 0, 0, biomass=0.5)
        assert a != b

    def test_halve_biomass(self):
        cell = Cell(CellType.CHEATER, 0, 0, biomass=0.8)
        cell.halve_biomass()
        assert cell.biomass == pytest.approx(0.4)


class TestMakeCell:
    def test_initial_biomass(self, config):
        assert make_cell(CellType.EMPTY, 0, 0, config).biomass == 0.0
        assert make_cell(CellType.PRODUCER, 0, 0, config).biomass == 0.5
        assert make_cell(CellType.CHEATER, 0, 0, config).biomass == 0.5
        assert make_cell(CellType.DEAD, 0, 0, config).biomass == 0.5

    def test_randomized_biomass(self, rng):
        cfg = SimulationConfig(width=4, randomize_cheaters=True, threshold=2.0)
        values = np.array([initial_biomass(CellType.CHEATER, cfg, rng) for _ in range(200)])

        assert np.all(values >= 0.0)
        assert np.all(values < 2.0)
        assert len(np.unique(values)) > 1

        # Producers are not randomized in this config
        assert initial_biomass(CellType.PRODUCER, cfg, rng) == 1.0

    def test_randomized_needs_generator(self):
        cfg = SimulationConfig(width=4, randomize_producers=True)
        with pytest.raises(ValueError, match="random generator"):
            make_cell(CellType.PRODUCER, 0, 0, cfg)
