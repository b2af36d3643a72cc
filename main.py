#!/usr/bin/env python3
"""
Reaction-diffusion simulation - Main entry point.

Runs repeated simulations of a scenario until each reaches steady state and
reports how long that took. The engine can run inline or on a background
worker thread.
"""

import argparse
import logging
import sys
from typing import Optional

from convergence import ConvergenceMetric
from diffusion_engine import DiffusionEngine
from diffusion_worker import DiffusionDispatcher
from parameters import (
    DEFAULT_CELL_SPACING,
    DEFAULT_DIFFUSION_RATE,
    DEFAULT_HEIGHT,
    DEFAULT_SOURCE_SINK_SCALE,
    DEFAULT_STEADY_THRESHOLD,
    DEFAULT_TIME_SPAN,
    DEFAULT_WIDTH,
    DiffusionError,
    DiffusionMethod,
    Grid,
    SimulationParameters,
)
from run_controller import RunController
from scenarios import get_scenario_names
from simulation_context import SimulationContext
from visualizer import save_snapshot


class DiffusionApp:
    """Command-line application running batches of steady-state runs."""

    def __init__(
        self,
        grid: Grid,
        params: SimulationParameters,
        scenario: str,
        runs: int,
        seed: Optional[int] = None,
        background: bool = False,
        log_level: str = "INFO",
    ):
        """Initialize the app."""
        self.context = SimulationContext(grid, params, max_runs=runs, seed=seed, log_level=log_level)
        self.engine = DiffusionEngine(grid)
        self.dispatcher = DiffusionDispatcher(self.engine) if background else None
        self.controller = RunController(
            self.context, engine=self.engine, scenario=scenario, dispatcher=self.dispatcher,
        )

    def run(self, max_steps: int, snapshot: Optional[str] = None):
        """Run all batches, optionally saving the last field."""
        ctx = self.context
        ctx.logger.info(f"Grid: {ctx.grid.width}x{ctx.grid.height} cells")
        ctx.logger.info(
            f"Method: {ctx.params.method.value}, D={ctx.params.diffusion_rate}, "
            f"dx={ctx.params.cell_spacing}, dt={ctx.params.time_step:.4g}, span={ctx.params.time_span}"
        )
        try:
            stats = self.controller.run(max_steps_per_run=max_steps)
        finally:
            if self.dispatcher is not None:
                self.dispatcher.shutdown()

        if snapshot:
            field = ctx.steady_field if ctx.steady_field is not None else ctx.field
            path = save_snapshot(
                field, ctx.grid, snapshot,
                title=f"{ctx.params.method.value} after {stats.runs} runs",
            )
            ctx.logger.info(f"Saved snapshot to {path}")
        return stats


def main():
    """Main entry point."""
    scenarios = get_scenario_names()

    parser = argparse.ArgumentParser(
        description="2D reaction-diffusion steady-state runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Scenarios:
  random    - Uniform field, randomly placed stamped sources and sinks
  diffused  - Uniform field, sources and sinks smoothed by pre-diffusion
  point     - Single seed in the middle, no sources or sinks
  empty     - All zeros (steady immediately)

Examples:
  python main.py                              # FTCS, 5 runs
  python main.py --method ADI --runs 20
  python main.py --background --snapshot out/final.png
        """
    )

    parser.add_argument('--method', '-m', choices=[m.value for m in DiffusionMethod],
                        default=DiffusionMethod.EXPLICIT.value,
                        help='Integration scheme (default: FTCS)')
    parser.add_argument('--scenario', '-s', choices=scenarios, default='random',
                        help='Scenario used to seed each run (default: random)')
    parser.add_argument('--width', type=int, default=DEFAULT_WIDTH, help=f'Grid width (default: {DEFAULT_WIDTH})')
    parser.add_argument('--height', type=int, default=DEFAULT_HEIGHT, help=f'Grid height (default: {DEFAULT_HEIGHT})')
    parser.add_argument('--diffusion-rate', type=float, default=DEFAULT_DIFFUSION_RATE,
                        help=f'Diffusion coefficient D (default: {DEFAULT_DIFFUSION_RATE})')
    parser.add_argument('--spacing', type=float, default=DEFAULT_CELL_SPACING,
                        help=f'Cell spacing dx (default: {DEFAULT_CELL_SPACING})')
    parser.add_argument('--time-span', type=float, default=DEFAULT_TIME_SPAN,
                        help=f'Simulated time per engine call (default: {DEFAULT_TIME_SPAN})')
    parser.add_argument('--scale', type=float, default=DEFAULT_SOURCE_SINK_SCALE,
                        help=f'Source/sink amplification (default: {DEFAULT_SOURCE_SINK_SCALE})')
    parser.add_argument('--threshold', type=float, default=DEFAULT_STEADY_THRESHOLD,
                        help=f'Steady-state threshold (default: {DEFAULT_STEADY_THRESHOLD})')
    parser.add_argument('--metric', choices=[m.value for m in ConvergenceMetric],
                        default=ConvergenceMetric.MEAN_ABSOLUTE.value,
                        help='Steady-state metric (default: mean_abs)')
    parser.add_argument('--runs', type=int, default=5, help='Number of runs (default: 5)')
    parser.add_argument('--max-steps', type=int, default=10_000,
                        help='Engine calls before a run is abandoned (default: 10000)')
    parser.add_argument('--seed', type=int, help='Random seed for source/sink placement')
    parser.add_argument('--background', action='store_true', help='Run the engine on a worker thread')
    parser.add_argument('--snapshot', help='Save an image of the final field to this path')
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')

    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(levelname)s %(name)s: %(message)s")

    params = SimulationParameters.at_cfl_limit(
        args.diffusion_rate,
        args.spacing,
        time_span=args.time_span,
        source_sink_scale=args.scale,
        method=DiffusionMethod.parse(args.method),
        steady_threshold=args.threshold,
        convergence_metric=ConvergenceMetric(args.metric),
    )

    try:
        app = DiffusionApp(
            Grid(args.width, args.height), params, args.scenario, args.runs,
            seed=args.seed, background=args.background, log_level=args.log_level,
        )
        app.run(max_steps=args.max_steps, snapshot=args.snapshot)
    except KeyboardInterrupt:
        print("\nSimulation terminated by user")
        return 0
    except (DiffusionError, ValueError) as e:
        print(f"\nError: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
