"""
Steady-state detection by comparing two concentration snapshots.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class ConvergenceMetric(Enum):
    """Aggregate difference between two snapshots."""
    MEAN_ABSOLUTE = "mean_abs"
    MAX_ABSOLUTE = "max_abs"
    MEAN_SQUARED = "mean_squared"


@dataclass(frozen=True)
class ConvergenceResult:
    steady: bool
    error: float

    def __bool__(self) -> bool:
        return self.steady


class ConvergenceDetector:
    """Reports steady state when the snapshot difference drops to the threshold."""

    def __init__(
        self,
        threshold: float = 1e-3,
        metric: ConvergenceMetric = ConvergenceMetric.MEAN_ABSOLUTE,
    ):
        self.threshold = float(threshold)
        self.metric = ConvergenceMetric(metric)

    def difference(self, previous: np.ndarray, current: np.ndarray) -> float:
        """Metric value between two snapshots of equal size."""
        # float64 accumulation keeps the mean exact enough on float32 fields
        delta = np.asarray(current, dtype=np.float64) - np.asarray(previous, dtype=np.float64)
        if delta.size == 0:
            return 0.0
        if self.metric is ConvergenceMetric.MEAN_ABSOLUTE:
            return float(np.mean(np.abs(delta)))
        if self.metric is ConvergenceMetric.MAX_ABSOLUTE:
            return float(np.max(np.abs(delta)))
        return float(np.mean(delta * delta))

    def check(
        self,
        previous: np.ndarray,
        current: np.ndarray,
        threshold: Optional[float] = None,
    ) -> ConvergenceResult:
        """
        Compare two snapshots.

        Steady means the metric is at or below the threshold, so identical
        snapshots are steady even for a threshold of zero.
        """
        limit = self.threshold if threshold is None else float(threshold)
        error = self.difference(previous, current)
        # NaN compares false, so a corrupted field never reads as steady
        return ConvergenceResult(steady=bool(error <= limit), error=error)

    def is_steady(
        self,
        previous: np.ndarray,
        current: np.ndarray,
        threshold: Optional[float] = None,
    ) -> bool:
        return self.check(previous, current, threshold).steady


def is_steady(
    previous: np.ndarray,
    current: np.ndarray,
    threshold: float = 1e-3,
    metric: ConvergenceMetric = ConvergenceMetric.MEAN_ABSOLUTE,
) -> bool:
    """Functional shortcut for a one-off comparison."""
    return ConvergenceDetector(threshold, metric).is_steady(previous, current)
