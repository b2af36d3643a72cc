"""
Integration tests: full engine calls on small scenarios.

Covers the seeded-point reference case and agreement between the explicit
and implicit schemes on a smooth problem.
"""

import numpy as np
import pytest

from boundary_conditions import apply_reflective
from diffusion_engine import DiffusionEngine
from parameters import DiffusionMethod, Grid, SimulationParameters


@pytest.fixture
def seeded():
    """10x10 grid, a seed of 10 at (5, 5), no sources or sinks"""
    grid = Grid(10, 10)
    field = np.zeros(grid.size, dtype=np.float32)
    field[grid.index(5, 5)] = 10.0
    quiet = np.zeros(grid.size, dtype=np.float32)
    params = SimulationParameters.at_cfl_limit(100.0, 1.0, time_span=1.0)
    return grid, field, quiet, params


def test_point_seed_spreads(seeded):
    grid, field, quiet, params = seeded
    engine = DiffusionEngine(grid)

    result = engine.simulate(field, quiet, quiet, params)
    phi = result.field.reshape(grid.shape)

    print(f"Seed cell after 1 s: {phi[5, 5]:.4f}")
    assert phi[5, 5] < 10.0, "Seed should lose concentration"
    for y, x in [(4, 5), (6, 5), (5, 4), (5, 6)]:
        assert phi[y, x] > 0.0, f"Neighbour ({x}, {y}) should receive concentration"
    assert np.all(result.field >= 0.0)
    assert result.diagnostics.negative_clamps == 0

    # Zero-gradient edges
    assert np.array_equal(phi[0, :], phi[1, :])
    assert np.array_equal(phi[-1, :], phi[-2, :])
    assert np.array_equal(phi[:, 0], phi[:, 1])
    assert np.array_equal(phi[:, -1], phi[:, -2])

    # No flux leaves through the reflective edges
    assert np.sum(phi[1:-1, 1:-1], dtype=np.float64) == pytest.approx(10.0, rel=1e-3)
    assert not result.steady


def test_point_seed_reaches_steady_state(seeded):
    """400 steps flatten an 8x8 interior; the next call changes nothing measurable"""
    grid, field, quiet, params = seeded
    engine = DiffusionEngine(grid)

    first = engine.simulate(field, quiet, quiet, params)
    second = engine.simulate(first.field, quiet, quiet, params)

    assert not first.steady
    assert second.steady
    assert np.allclose(second.field.reshape(grid.shape)[1:-1, 1:-1], 10.0 / 64.0, rtol=1e-3)


def test_point_seed_implicit_keeps_invariants(seeded):
    grid, field, quiet, params = seeded

    result = DiffusionEngine(grid).simulate(
        field, quiet, quiet, params.with_method(DiffusionMethod.IMPLICIT),
    )
    phi = result.field.reshape(grid.shape)

    assert result.is_finite
    assert np.all(result.field >= 0.0)
    assert np.array_equal(phi[0, :], phi[1, :])
    assert np.array_equal(phi[:, 0], phi[:, 1])

    interior_before = field.reshape(grid.shape)[1:-1, 1:-1]
    interior_after = phi[1:-1, 1:-1]
    print(f"ADI seed: mass 10 -> {interior_after.sum():.3f}")
    assert np.var(interior_after, dtype=np.float64) <= np.var(interior_before, dtype=np.float64)
    assert interior_after.sum() < 100.0, "Flooring the overshoot must not multiply the seed"


def test_explicit_and_implicit_agree():
    """Both schemes discretise the same operator; on a smooth field they converge together"""
    grid = Grid(20, 20)
    y, x = np.mgrid[0:grid.height, 0:grid.width]
    bump = 1.0 + 10.0 * np.exp(-((x - 10.0) ** 2 + (y - 10.0) ** 2) / (2.0 * 3.0 ** 2))
    field = bump.astype(np.float32).reshape(grid.size)
    apply_reflective(field, grid.width, grid.height)
    quiet = np.zeros(grid.size, dtype=np.float32)

    common = dict(diffusion_rate=1.0, cell_spacing=1.0, time_span=1.0, source_sink_scale=0.0)
    explicit = SimulationParameters(time_step=0.01, method=DiffusionMethod.EXPLICIT, **common)
    implicit = SimulationParameters(unit_time_step=0.1, method=DiffusionMethod.IMPLICIT, **common)

    engine = DiffusionEngine(grid)
    a = engine.simulate(field, quiet, quiet, explicit).field.astype(np.float64)
    b = engine.simulate(field, quiet, quiet, implicit).field.astype(np.float64)

    relative = np.linalg.norm(a - b) / np.linalg.norm(a)
    change = np.linalg.norm((a - field) - (b - field)) / np.linalg.norm(a - field)
    print(f"Relative L2 difference: {relative:.2e}, of the change: {change:.2e}")
    assert relative < 0.05
    assert change < 0.05
