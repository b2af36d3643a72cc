"""
Run bookkeeping around the engine.

A run starts from a freshly seeded scenario and calls the engine until it
reports steady state. The controller then records the wall-clock time and
the number of engine calls it took, reseeds, and starts the next run.
"""

import time
from dataclasses import dataclass
from typing import Optional

import numpy as np

from diffusion_engine import DiffusionEngine
from diffusion_worker import DiffusionDispatcher
from parameters import DiffusionError, DiffusionMethod
from scenarios import setup_scenario
from simulation_context import SimulationContext


@dataclass(frozen=True)
class RunStatistics:
    """Summary of the completed runs."""
    runs: int
    mean_time: float
    std_time: float
    mean_steps: float
    std_steps: float

    @classmethod
    def from_context(cls, context: SimulationContext) -> "RunStatistics":
        times = np.asarray(context.steady_state_times, dtype=np.float64)
        steps = np.asarray(context.steady_state_steps, dtype=np.float64)
        if times.size == 0:
            return cls(0, 0.0, 0.0, 0.0, 0.0)
        return cls(
            runs=int(times.size),
            mean_time=float(times.mean()),
            std_time=float(times.std()),
            mean_steps=float(steps.mean()),
            std_steps=float(steps.std()),
        )

    def format(self) -> str:
        return (
            f"{self.runs} runs: {self.mean_time * 1000:.1f} ± {self.std_time * 1000:.1f} ms, "
            f"{self.mean_steps:.1f} ± {self.std_steps:.1f} steps to steady state"
        )


class RunController:
    """Drives repeated runs of one scenario until each reaches steady state."""

    def __init__(
        self,
        context: SimulationContext,
        engine: Optional[DiffusionEngine] = None,
        scenario: Optional[str] = None,
        dispatcher: Optional[DiffusionDispatcher] = None,
    ):
        """
        Args:
            context: Shared simulation state
            engine: Engine to call; built from ``context.grid`` if omitted
            scenario: Scenario used to (re)seed each run
            dispatcher: When given, engine calls go through this background worker
        """
        self.context = context
        self.engine = engine if engine is not None else DiffusionEngine(context.grid)
        self.scenario = scenario
        self.dispatcher = dispatcher
        self.max_worker_errors = 3
        self._worker_errors = 0

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------
    def start_run(self) -> None:
        """Seed a new scenario and reset the per-run counters."""
        ctx = self.context
        setup_scenario(self.scenario, ctx)
        ctx.reset_counters()
        ctx.run_started_at = time.perf_counter()

    def handle_steady_state(self) -> float:
        """Record the finished run and start the next one; returns elapsed seconds."""
        ctx = self.context
        elapsed = time.perf_counter() - ctx.run_started_at
        ctx.steady_state_times.append(elapsed)
        ctx.steady_state_steps.append(ctx.current_step)
        ctx.steady_field = ctx.field.copy()

        ctx.logger.info(
            f"Run {ctx.run_count + 1}: It took {elapsed * 1000:.1f} ms "
            f"({ctx.current_step} steps) to reach steady state."
        )

        ctx.run_count += 1
        if not ctx.finished:
            self.start_run()
        return elapsed

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def advance(self) -> bool:
        """
        Make one engine call (or one poll of the background worker).

        Returns:
            True when the call finished a run

        Raises:
            UnsupportedMethodError: the run names no known scheme; it is
                never dispatched, so it is not retried as a worker error
        """
        ctx = self.context
        DiffusionMethod.parse(ctx.params.method)
        if self.dispatcher is None:
            result = self.engine.simulate(ctx.field, ctx.sources, ctx.sinks, ctx.params)
            ctx.accept(result.field, result.steady)
        else:
            response = self.dispatcher.poll()
            if response is None:
                self.dispatcher.submit(ctx.field, ctx.sources, ctx.sinks, ctx.params)
                return False
            if not response.ok:
                # Nothing to accept; the next advance re-dispatches the same input
                self._worker_errors += 1
                ctx.logger.error(f"Diffusion worker error: {response.error}")
                if self._worker_errors >= self.max_worker_errors:
                    raise DiffusionError(f"Diffusion worker failed {self._worker_errors} times: {response.error}")
                return False
            self._worker_errors = 0
            ctx.accept(response.field, response.steady)

        if ctx.steady:
            self.handle_steady_state()
            return True
        return False

    def run(self, max_steps_per_run: int = 10_000, poll_interval: float = 0.001) -> RunStatistics:
        """
        Run until ``context.max_runs`` runs reached steady state.

        A run that does not settle within ``max_steps_per_run`` engine calls
        is abandoned and reseeded without being recorded; it still counts
        towards ``max_runs``.
        """
        ctx = self.context
        ctx.params.validate()
        self.start_run()
        while not ctx.finished:
            finished_run = self.advance()
            if finished_run:
                continue
            if ctx.current_step >= max_steps_per_run:
                ctx.logger.warning(
                    f"Run {ctx.run_count + 1} did not reach steady state in {max_steps_per_run} steps; reseeding"
                )
                ctx.abandoned_runs += 1
                self._drain()
                if not ctx.finished:
                    self.start_run()
            elif self.dispatcher is not None and self.dispatcher.busy:
                time.sleep(poll_interval)

        self._drain()
        stats = RunStatistics.from_context(ctx)
        ctx.logger.info(stats.format())
        return stats

    def _drain(self) -> None:
        """Discard any in-flight background result."""
        if self.dispatcher is not None:
            self.dispatcher.wait()
