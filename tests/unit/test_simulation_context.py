"""Unit tests for SimulationContext"""

import numpy as np

from parameters import Grid, SimulationParameters
from simulation_context import SimulationContext


def test_initial_state():
    grid = Grid(12, 8)
    context = SimulationContext(grid, max_runs=3)

    assert context.field.shape == (96,)
    assert context.field.dtype == np.float32
    assert context.field_2d().shape == (8, 12)
    assert context.params == SimulationParameters()
    assert context.current_step == 0
    assert not context.finished


def test_accept_rotates_fields():
    grid = Grid(4, 4)
    context = SimulationContext(grid)
    previous = context.field
    new = np.ones(grid.size, dtype=np.float32)

    context.accept(new, steady=True)

    assert context.last_field is previous
    assert np.array_equal(context.field, new)
    assert context.steady
    assert context.current_step == 1

    context.reset_counters()
    assert context.current_step == 0
    assert not context.steady


def test_finished_counts_abandoned_runs():
    context = SimulationContext(Grid(4, 4), max_runs=2)
    context.run_count = 1
    assert not context.finished
    context.abandoned_runs = 1
    assert context.finished


def test_loggers_are_per_context():
    a = SimulationContext(Grid(4, 4), log_level="DEBUG")
    b = SimulationContext(Grid(4, 4), log_level="WARNING")
    assert a.logger is not b.logger
    assert a.logger.level < b.logger.level
    assert len(a.logger.handlers) == 1
