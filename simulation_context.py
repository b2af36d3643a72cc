"""SimulationContext – explicit container for everything one run needs.

Holds the grid, the immutable parameters, the current/last concentration
fields, the source/sink fields, the step and run counters and the random
generator used for seeding. It is passed by reference to the run controller
and scenario setup; nothing in the package keeps simulation state in module
globals.
"""

from __future__ import annotations

from typing import List, Optional
import logging

import numpy as np

from parameters import Grid, SimulationParameters


class SimulationContext:
    """Shared state of a sequence of runs."""

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def __init__(
        self,
        grid: Grid,
        params: Optional[SimulationParameters] = None,
        *,
        max_runs: int = 500,
        seed: Optional[int] = None,
        log_level: str | int = "INFO",
    ) -> None:
        self.grid = grid
        self.params = params if params is not None else SimulationParameters()

        # ---------- logger -------------------------------------------------
        self.logger = logging.getLogger(f"ReactionDiffusion_{id(self)}")
        self.logger.setLevel(getattr(logging, str(log_level).upper(), logging.INFO))
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
        self.logger.propagate = False

        # ---------- fields -------------------------------------------------
        self.field = np.zeros(grid.size, dtype=np.float32)
        self.last_field = np.zeros(grid.size, dtype=np.float32)
        self.sources = np.zeros(grid.size, dtype=np.float32)
        self.sinks = np.zeros(grid.size, dtype=np.float32)

        # ---------- run book-keeping --------------------------------------
        self.current_step = 0
        self.steady = False
        self.run_count = 0
        self.abandoned_runs = 0
        self.max_runs = max_runs
        self.steady_state_times: List[float] = []
        self.steady_state_steps: List[int] = []
        self.run_started_at = 0.0
        self.steady_field: Optional[np.ndarray] = None

        self.rng = np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def field_2d(self) -> np.ndarray:
        """View of the current field as (height, width)."""
        return self.field.reshape(self.grid.shape)

    def accept(self, field: np.ndarray, steady: bool) -> None:
        """Take ownership of a field returned by the engine."""
        self.last_field = self.field
        self.field = np.asarray(field, dtype=np.float32).reshape(self.grid.size)
        self.steady = bool(steady)
        self.current_step += 1

    def reset_counters(self) -> None:
        self.current_step = 0
        self.steady = False

    @property
    def finished(self) -> bool:
        return self.run_count + self.abandoned_runs >= self.max_runs
