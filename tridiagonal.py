"""
Thomas algorithm for tridiagonal systems.

Solves systems of the form::

    b0 x0 + c0 x1                    = d0
    a1 x0 + b1 x1 + c1 x2            = d1
    ...
    a(n-1) x(n-2) + b(n-1) x(n-1)    = d(n-1)

in O(n) by forward elimination followed by back substitution. Pivots with
magnitude below ``PIVOT_FLOOR`` are replaced by ``±PIVOT_FLOOR`` instead of
raising, and the number of such replacements is returned by the kernel.
"""

from typing import Optional

import numba
import numpy as np

from diagnostics import SolverDiagnostics

PIVOT_FLOOR = 1e-10


@numba.njit(cache=True)
def _floor_pivot(value):
    pivot = float(value)
    if abs(pivot) < PIVOT_FLOOR:
        if pivot < 0.0:
            return -PIVOT_FLOOR, 1
        return PIVOT_FLOOR, 1
    return pivot, 0


@numba.njit(cache=True)
def thomas_solve(lower, main, upper, rhs, n, solution, scratch_upper, scratch_rhs):
    """
    Numba-compiled Thomas algorithm.

    Args:
        lower, main, upper: Diagonals (lower[0] and upper[n-1] are ignored)
        rhs: Right-hand side
        n: System size; only the first n entries of every array are used
        solution: Output array, written in place
        scratch_upper, scratch_rhs: Work arrays for the modified coefficients

    Returns:
        Number of pivots that had to be floored
    """
    pivot, clamps = _floor_pivot(main[0])
    scratch_upper[0] = upper[0] / pivot
    scratch_rhs[0] = rhs[0] / pivot

    # Forward elimination
    for i in range(1, n):
        denominator, clamped = _floor_pivot(main[i] - lower[i] * scratch_upper[i - 1])
        clamps += clamped
        scratch_upper[i] = upper[i] / denominator
        scratch_rhs[i] = (rhs[i] - lower[i] * scratch_rhs[i - 1]) / denominator

    # Back substitution
    solution[n - 1] = scratch_rhs[n - 1]
    for i in range(n - 2, -1, -1):
        solution[i] = scratch_rhs[i] - scratch_upper[i] * solution[i + 1]

    return clamps


def solve_tridiagonal(
    lower: np.ndarray,
    main: np.ndarray,
    upper: np.ndarray,
    rhs: np.ndarray,
    n: Optional[int] = None,
    diagnostics: Optional[SolverDiagnostics] = None,
) -> np.ndarray:
    """
    Solve a tridiagonal system without touching the inputs.

    Args:
        lower: Sub-diagonal, lower[i] multiplies x[i-1]
        main: Main diagonal
        upper: Super-diagonal, upper[i] multiplies x[i+1]
        rhs: Right-hand side
        n: System size (defaults to len(main))
        diagnostics: Optional counter receiving the number of floored pivots

    Returns:
        Solution vector of length n (float64)
    """
    n = len(main) if n is None else int(n)
    if n <= 0:
        return np.zeros(0, dtype=np.float64)

    a = np.ascontiguousarray(lower, dtype=np.float64)
    b = np.ascontiguousarray(main, dtype=np.float64)
    c = np.ascontiguousarray(upper, dtype=np.float64)
    d = np.ascontiguousarray(rhs, dtype=np.float64)

    solution = np.zeros(n, dtype=np.float64)
    clamps = thomas_solve(a, b, c, d, n, solution, np.empty(n), np.empty(n))
    if diagnostics is not None:
        diagnostics.pivot_clamps += clamps
    return solution


class TridiagonalSystem:
    """
    Reusable work arrays for one sweep of line solves.

    Capacity is the longest line on the grid; each sweep resets the
    coefficients for its own line length.
    """

    def __init__(self, capacity: int, dtype=np.float32):
        self.capacity = capacity
        self.lower = np.zeros(capacity, dtype=dtype)
        self.main = np.zeros(capacity, dtype=dtype)
        self.upper = np.zeros(capacity, dtype=dtype)
        self.rhs = np.zeros(capacity, dtype=dtype)
        self.solution = np.zeros(capacity, dtype=dtype)
        self._scratch_upper = np.zeros(capacity, dtype=np.float64)
        self._scratch_rhs = np.zeros(capacity, dtype=np.float64)

    def reset_reflective(self, alpha: float, size: int) -> None:
        """
        Load the implicit diffusion operator for a line of ``size`` unknowns.

        Off-diagonals are -alpha and the main diagonal 1 + 2·alpha. Index 0 is
        the boundary placeholder; the zero-gradient ghost coefficients are
        folded into the main diagonal of the first (index 1) and last
        (index size-1) interior unknowns, which decouples the placeholder.
        """
        self.lower[:size] = -alpha
        self.main[:size] = 1.0 + 2.0 * alpha
        self.upper[:size] = -alpha

        self.main[1] += self.lower[1]
        self.lower[1] = 0.0

        last = size - 1
        self.main[last] += self.upper[last]
        self.upper[last] = 0.0

        self.rhs[:size] = 0.0
        self.solution[:size] = 0.0

    def solve(self, size: int) -> int:
        """Solve in place into ``self.solution``; returns floored pivot count."""
        return thomas_solve(
            self.lower, self.main, self.upper, self.rhs, size,
            self.solution, self._scratch_upper, self._scratch_rhs,
        )
