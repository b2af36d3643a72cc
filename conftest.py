"""Pytest configuration shared by unit and integration tests."""
import os
import sys
from pathlib import Path

import numpy as np
import pytest

from parameters import Grid, SimulationParameters


def pytest_configure(config):
    """Make the flat modules importable and keep matplotlib headless."""
    root = Path(__file__).parent
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    os.environ['MPLBACKEND'] = 'Agg'


@pytest.fixture(params=[(10, 10), (24, 16)])
def grid(request):
    """Square and non-square grids."""
    width, height = request.param
    return Grid(width, height)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def pure_diffusion():
    """D=100, dx=1 at the CFL limit, no reaction."""
    return SimulationParameters.at_cfl_limit(100.0, 1.0, time_span=1.0, source_sink_scale=0.0)

