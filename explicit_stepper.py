"""
Forward-Time Centered-Space (FTCS) integration of

    ∂C/∂t = D ∇²C + S − K·C/(Km + C)

The scheme is explicit and only stable while r = D·Δt/Δx² stays at or below
0.25 in 2D. Callers pick Δt from the CFL relation; nothing here corrects it.
"""

import logging

import numpy as np

from boundary_conditions import enforce_boundaries
from diagnostics import SolverDiagnostics
from kinetics import reaction_term
from parameters import SimulationParameters
from stepper import FIELD_DTYPE, PingPongBuffers, SimulationResult, Stepper, sub_step_count

logger = logging.getLogger(__name__)


class ExplicitStepper(Stepper):
    """FTCS stepper with a 5-point Laplacian."""

    name = "FTCS"

    def integrate(
        self,
        field: np.ndarray,
        sources: np.ndarray,
        sinks: np.ndarray,
        params: SimulationParameters,
    ) -> SimulationResult:
        width, height = self.grid.width, self.grid.height
        original, sources, sinks = self._prepare(field, sources, sinks)
        diagnostics = SolverDiagnostics()

        steps = sub_step_count(params.time_span, params.time_step)
        buffers = PingPongBuffers(original)

        # r = D·Δt/Δx²
        r = FIELD_DTYPE(params.diffusion_number)
        k_half = FIELD_DTYPE(params.half_saturation_constant)
        if steps:
            # Whole-span source/sink strength spread evenly over the sub-steps
            per_step = FIELD_DTYPE(params.source_sink_scale * params.time_span / steps)
        else:
            per_step = FIELD_DTYPE(0.0)

        source_in = sources.reshape(height, width)[1:-1, 1:-1]
        sink_in = sinks.reshape(height, width)[1:-1, 1:-1]

        logger.debug(f"FTCS: {steps} sub-steps, r={float(r):.4f}")

        for _ in range(steps):
            c = buffers.current.reshape(height, width)
            out = buffers.next.reshape(height, width)

            center = c[1:-1, 1:-1]
            laplacian = c[:-2, 1:-1] + c[2:, 1:-1] + c[1:-1, :-2] + c[1:-1, 2:] - 4 * center
            out[1:-1, 1:-1] = (
                center
                + r * laplacian
                + reaction_term(source_in, sink_in, center, k_half) * per_step
            )

            enforce_boundaries(buffers.next, width, height, diagnostics)
            buffers.swap()

        diagnostics.sub_steps = steps
        return self._finish(original, buffers.current, params, diagnostics)
