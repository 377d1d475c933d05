"""
Pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def small_config():
    """8x8 lattice with a resource that matters."""
    from coopsim.core.config import SimulationConfig
    return SimulationConfig(
        width=8,
        diffusion=0.1,
        decay=0.05,
        production=0.1,
        growth=1.0,
        benefit=0.5,
        max_steps=500,
        seed=3,
    )


@pytest.fixture
def neutral_config():
    """8x8 lattice where producers pay nothing and nobody benefits."""
    from coopsim.core.config import SimulationConfig
    return SimulationConfig(width=8, production=0.0, growth=1.0, benefit=0.0, seed=5)


@pytest.fixture
def small_field(small_config):
    """Point-source field solved for small_config."""
    from coopsim.field.point_source import PointSourceField
    return PointSourceField.from_config(small_config)


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)


@pytest.fixture
def mixed_config(small_config):
    """small_config with half the lattice cheaters, far from fixation."""
    return small_config.replace(initial_condition="well_mixed", ic_argument=32)
