"""
Boundary treatment for flat row-major concentration fields.
"""

import logging
from typing import Optional

import numpy as np

from diagnostics import SolverDiagnostics

logger = logging.getLogger(__name__)


def apply_reflective(field: np.ndarray, width: int, height: int) -> None:
    """
    Zero-gradient (Neumann) boundary, in place.

    Top and bottom rows copy rows 1 and height-2, then the left and right
    columns copy columns 1 and width-2, so each corner ends up equal to its
    diagonal interior neighbour.
    """
    phi = field.reshape(height, width)
    phi[0, :] = phi[1, :]
    phi[-1, :] = phi[-2, :]
    phi[:, 0] = phi[:, 1]
    phi[:, -1] = phi[:, -2]


def clamp_non_negative(field: np.ndarray, diagnostics: Optional[SolverDiagnostics] = None) -> int:
    """
    Zero every negative entry in place.

    Returns:
        Number of entries that were clamped
    """
    negative = field < 0
    count = int(np.count_nonzero(negative))
    if count:
        logger.debug(f"Concentration went negative in {count} cells (min {field[negative].min():.3e})")
        field[negative] = 0.0
        if diagnostics is not None:
            diagnostics.negative_clamps += count
    return count


def enforce_boundaries(
    field: np.ndarray,
    width: int,
    height: int,
    diagnostics: Optional[SolverDiagnostics] = None,
) -> None:
    """Reflective boundary followed by the non-negative floor."""
    apply_reflective(field, width, height)
    clamp_non_negative(field, diagnostics)
