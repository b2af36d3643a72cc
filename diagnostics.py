"""
Counters for the silent numerical corrections made by the steppers.

Negative concentrations are floored at zero and near-zero pivots are floored
at 1e-10. Neither raises; both are counted here so callers and tests can see
whether a configuration ran clean.
"""

import logging
import warnings
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class NumericalInstabilityWarning(RuntimeWarning):
    """Negative concentrations were clamped; Δt, Δx or D likely violate stability."""


@dataclass
class SolverDiagnostics:
    negative_clamps: int = 0
    pivot_clamps: int = 0
    sub_steps: int = 0

    @property
    def clean(self) -> bool:
        return self.negative_clamps == 0 and self.pivot_clamps == 0

    def merge(self, other: "SolverDiagnostics") -> None:
        self.negative_clamps += other.negative_clamps
        self.pivot_clamps += other.pivot_clamps
        self.sub_steps += other.sub_steps

    def report(self, scheme: str) -> None:
        """Log and warn once about the clamps collected during one call."""
        if self.pivot_clamps:
            logger.warning(f"{scheme}: {self.pivot_clamps} near-zero pivots floored at 1e-10")
        if self.negative_clamps:
            message = (
                f"{scheme}: {self.negative_clamps} negative concentrations clamped to zero "
                f"over {self.sub_steps} sub-steps; the time step is marginally unstable"
            )
            logger.warning(message)
            warnings.warn(message, NumericalInstabilityWarning, stacklevel=3)
