"""Michaelis-Menten sink kinetics."""

import numpy as np


def michaelis_menten(concentration, half_saturation_constant: float):
    """
    Saturation term C / (K + C).

    Lies in [0, 1) for C >= 0 and reaches 0.5 at C == K, so sink removal
    levels off instead of growing with concentration.
    """
    return concentration / (half_saturation_constant + concentration)


def reaction_term(
    sources: np.ndarray,
    sinks: np.ndarray,
    concentration: np.ndarray,
    half_saturation_constant: float,
) -> np.ndarray:
    """Net production rate: sources minus saturated sink removal."""
    return sources - sinks * michaelis_menten(concentration, half_saturation_constant)
