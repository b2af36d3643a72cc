"""
Shared pieces of the time integrators: the stepper interface, the result
record and the ping-pong buffer pair.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from convergence import ConvergenceDetector
from diagnostics import SolverDiagnostics
from parameters import Grid, SimulationParameters

FIELD_DTYPE = np.float32


@dataclass
class SimulationResult:
    """Outcome of advancing a field over one time span."""
    field: np.ndarray
    steady: bool
    error: float = 0.0
    diagnostics: SolverDiagnostics = field(default_factory=SolverDiagnostics)

    @property
    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.field)))


class PingPongBuffers:
    """Two equally sized buffers; ``swap`` flips which one is current."""

    def __init__(self, initial: np.ndarray):
        self._buffers = (initial.copy(), initial.copy())
        self._current = 0

    @property
    def current(self) -> np.ndarray:
        return self._buffers[self._current]

    @property
    def next(self) -> np.ndarray:
        return self._buffers[1 - self._current]

    def swap(self) -> None:
        self._current = 1 - self._current


class Stepper(ABC):
    """Advances a concentration field over a span of simulated time."""

    name = "stepper"

    def __init__(self, grid: Grid):
        self.grid = grid

    @abstractmethod
    def integrate(
        self,
        field: np.ndarray,
        sources: np.ndarray,
        sinks: np.ndarray,
        params: SimulationParameters,
    ) -> SimulationResult:
        """
        Advance ``field`` by ``params.time_span``.

        The input arrays are never modified; the returned field is a new array.
        """

    def _prepare(
        self,
        field: np.ndarray,
        sources: np.ndarray,
        sinks: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Flat float32 copies of the inputs."""
        size = self.grid.size
        return (
            np.array(field, dtype=FIELD_DTYPE).reshape(size),
            np.asarray(sources, dtype=FIELD_DTYPE).reshape(size),
            np.asarray(sinks, dtype=FIELD_DTYPE).reshape(size),
        )

    def _finish(
        self,
        original: np.ndarray,
        final: np.ndarray,
        params: SimulationParameters,
        diagnostics: SolverDiagnostics,
    ) -> SimulationResult:
        detector = ConvergenceDetector(params.steady_threshold, params.convergence_metric)
        convergence = detector.check(original, final)
        diagnostics.report(self.name)
        return SimulationResult(
            field=final,
            steady=convergence.steady,
            error=convergence.error,
            diagnostics=diagnostics,
        )


def sub_step_count(time_span: float, step: float) -> int:
    """Number of sub-steps covering ``time_span``, rounded half up."""
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.float64(time_span) / np.float64(step)
    # A zero, negative or NaN step cannot be counted; nothing is integrated
    if not np.isfinite(ratio) or ratio < 0:
        return 0
    return int(np.floor(ratio + 0.5))
