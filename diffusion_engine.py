"""
Facade that advances a concentration field with the selected scheme.

Typical use::

    engine = DiffusionEngine(Grid(100, 60))
    result = engine.simulate(field, sources, sinks, SimulationParameters())
    field, steady = result.field, result.steady
"""

import logging
from typing import Dict, Optional

import numpy as np

from explicit_stepper import ExplicitStepper
from implicit_stepper import ImplicitStepper
from parameters import DiffusionMethod, Grid, SimulationParameters, UnsupportedMethodError
from stepper import SimulationResult, Stepper

logger = logging.getLogger(__name__)

__all__ = ["DiffusionEngine", "SimulationResult", "UnsupportedMethodError"]


class DiffusionEngine:
    """
    Single-threaded engine; one ``simulate`` call runs to completion.

    Calls are not re-entrant: a second call must not start before the
    previous one has returned.
    """

    def __init__(self, grid: Grid, steppers: Optional[Dict[DiffusionMethod, Stepper]] = None):
        self.grid = grid
        if steppers is None:
            steppers = {
                DiffusionMethod.EXPLICIT: ExplicitStepper(grid),
                DiffusionMethod.IMPLICIT: ImplicitStepper(grid),
            }
        self.steppers = steppers

    def stepper_for(self, method) -> Stepper:
        """Resolve a method tag to its stepper or raise UnsupportedMethodError."""
        resolved = DiffusionMethod.parse(method)
        try:
            return self.steppers[resolved]
        except KeyError:
            raise UnsupportedMethodError(f"No stepper registered for {resolved.value}") from None

    def simulate(
        self,
        field: np.ndarray,
        sources: np.ndarray,
        sinks: np.ndarray,
        params: SimulationParameters,
    ) -> SimulationResult:
        """
        Advance ``field`` by ``params.time_span`` of simulated time.

        Args:
            field: Concentration field, width*height values (not modified)
            sources: Source intensities, same size
            sinks: Sink intensities, same size
            params: Run parameters; only ``method`` is checked here

        Returns:
            SimulationResult with a new field and the steady-state flag

        Raises:
            UnsupportedMethodError: ``params.method`` names no known scheme
        """
        stepper = self.stepper_for(params.method)
        result = stepper.integrate(field, sources, sinks, params)

        # Malformed parameters are not rejected; they surface here as NaN/Inf
        if not result.is_finite:
            logger.warning(
                f"{stepper.name}: result contains non-finite values; "
                f"check D={params.diffusion_rate}, dx={params.cell_spacing}, dt={params.time_step}"
            )
        return result
