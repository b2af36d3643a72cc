"""Unit tests for scenario seeding"""

import numpy as np
import pytest

from parameters import Grid
from scenarios import (
    CENTER_WEIGHT,
    INITIAL_CONCENTRATION,
    SINK_VALUE,
    SOURCE_VALUE,
    get_scenario_names,
    random_positions,
    setup_scenario,
)
from simulation_context import SimulationContext


def _border(field, grid):
    phi = field.reshape(grid.shape)
    return np.concatenate([phi[0, :], phi[-1, :], phi[:, 0], phi[:, -1]])


def test_scenario_names():
    assert set(get_scenario_names()) == {'random', 'diffused', 'point', 'empty'}


def test_random_scenario_layout():
    grid = Grid(40, 30)
    context = SimulationContext(grid, seed=5)

    setup_scenario('random', context)

    assert np.all(context.field == INITIAL_CONCENTRATION)
    assert np.array_equal(context.last_field, context.field)
    assert context.last_field is not context.field
    assert context.sources.max() == pytest.approx(SOURCE_VALUE * CENTER_WEIGHT)
    assert context.sinks.max() == pytest.approx(SINK_VALUE * CENTER_WEIGHT)
    assert np.all(_border(context.sources, grid) == 0.0)
    assert np.all(_border(context.sinks, grid) == 0.0)
    assert context.sources.dtype == np.float32


def test_default_scenario_is_random():
    grid = Grid(20, 20)
    context = SimulationContext(grid, seed=1)
    setup_scenario(None, context)
    assert np.any(context.sources > 0)
    assert np.all(context.field == INITIAL_CONCENTRATION)


def test_same_seed_same_layout():
    grid = Grid(30, 20)
    a = SimulationContext(grid, seed=42)
    b = SimulationContext(grid, seed=42)
    setup_scenario('random', a)
    setup_scenario('random', b)
    assert np.array_equal(a.sources, b.sources)
    assert np.array_equal(a.sinks, b.sinks)


def test_diffused_scenario_peaks():
    grid = Grid(30, 30)
    context = SimulationContext(grid, seed=3)

    setup_scenario('diffused', context)

    assert context.sources.max() == pytest.approx(SOURCE_VALUE, rel=1e-5)
    assert context.sinks.max() == pytest.approx(SINK_VALUE, rel=1e-5)
    assert np.all(context.sources >= 0.0)
    assert np.all(_border(context.sinks, grid) == 0.0)
    # Blobs spread beyond the stamped five-point footprint
    assert np.count_nonzero(context.sources) > 10 * 5


def test_point_seed():
    grid = Grid(10, 10)
    context = SimulationContext(grid)
    setup_scenario('point', context)
    assert context.field.sum() == pytest.approx(10.0)
    assert context.field[grid.index(5, 5)] == 10.0
    assert not context.sources.any()
    assert not context.sinks.any()


def test_random_positions_respect_margin():
    grid = Grid(20, 12)
    rng = np.random.default_rng(0)
    positions = random_positions(grid, 10, rng, margin=3)

    assert len(positions) == 10
    for pos in positions:
        y, x = divmod(pos, grid.width)
        assert 3 <= x < grid.width - 3
        assert 3 <= y < grid.height - 3


def test_random_positions_on_tiny_grid():
    """The margin shrinks and the count is capped to what fits"""
    grid = Grid(5, 5)
    positions = random_positions(grid, 10, np.random.default_rng(0))
    assert positions == {grid.index(2, 2)}
