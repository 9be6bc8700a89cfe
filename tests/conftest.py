"""Shared fixtures for the Quarry test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from quarry.simulation.config import SimulationConfig
from quarry.world.grid import Grid


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def open_grid() -> Grid:
    """A 5x5 all-flat grid."""
    return Grid.from_codes(np.zeros((5, 5), dtype=int))


@pytest.fixture
def walled_grid() -> Grid:
    """A 5x5 grid with a blocked column at x=2, open only at y=4.

    ::

        . . # . .
        . . # . .
        . . # . .
        . . # . .
        . . . . .
    """
    codes = np.zeros((5, 5), dtype=int)
    codes[0:4, 2] = 3
    return Grid.from_codes(codes)


@pytest.fixture
def small_config() -> SimulationConfig:
    """A fast config: 10x10 grid, three trials."""
    return SimulationConfig(seed=7, grid_width=10, grid_height=10, trials=3)
