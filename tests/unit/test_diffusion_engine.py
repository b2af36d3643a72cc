"""Unit tests for the DiffusionEngine facade"""

import numpy as np
import pytest

from diffusion_engine import DiffusionEngine, UnsupportedMethodError
from explicit_stepper import ExplicitStepper
from implicit_stepper import ImplicitStepper
from parameters import DiffusionMethod, SimulationParameters


def _inputs(grid, rng):
    field = rng.uniform(0.0, 10.0, grid.size).astype(np.float32)
    sources = np.zeros(grid.size, dtype=np.float32)
    sinks = np.zeros(grid.size, dtype=np.float32)
    return field, sources, sinks


def test_default_steppers(grid):
    engine = DiffusionEngine(grid)
    assert isinstance(engine.stepper_for("FTCS"), ExplicitStepper)
    assert isinstance(engine.stepper_for(DiffusionMethod.IMPLICIT), ImplicitStepper)


@pytest.mark.parametrize("method", list(DiffusionMethod))
def test_dispatch_matches_stepper(grid, rng, method):
    """The facade adds nothing to the stepper's numbers"""
    field, sources, sinks = _inputs(grid, rng)
    params = SimulationParameters(time_span=2.0, method=method)

    engine = DiffusionEngine(grid)
    via_engine = engine.simulate(field, sources, sinks, params)
    direct = engine.stepper_for(method).integrate(field, sources, sinks, params)

    assert np.array_equal(via_engine.field, direct.field)
    assert via_engine.steady == direct.steady


def test_unknown_method_raises(grid, rng):
    field, sources, sinks = _inputs(grid, rng)
    engine = DiffusionEngine(grid)

    with pytest.raises(UnsupportedMethodError):
        engine.simulate(field, sources, sinks, SimulationParameters(method="RK4"))


def test_unregistered_method_raises(grid):
    engine = DiffusionEngine(grid, steppers={DiffusionMethod.EXPLICIT: ExplicitStepper(grid)})
    with pytest.raises(UnsupportedMethodError):
        engine.stepper_for("ADI")


@pytest.mark.parametrize("method", list(DiffusionMethod))
def test_zero_spacing_surfaces_as_non_finite(grid, rng, method):
    """Malformed parameters are not rejected by the engine; the field carries NaN/Inf"""
    field, sources, sinks = _inputs(grid, rng)
    params = SimulationParameters(cell_spacing=0.0, time_span=1.0, method=method)

    with np.errstate(all="ignore"):
        result = DiffusionEngine(grid).simulate(field, sources, sinks, params)

    assert not result.is_finite
    assert not result.steady
    assert np.all(np.isfinite(field)), "Input must stay untouched"
