"""Concentration to colour mapping used for display."""

import numpy as np

# Phase shifts of the red, green and blue channels
CHANNEL_SHIFTS = np.array([0.0, 4.0 * np.pi / 3.0, 2.0 * np.pi / 3.0])


def concentration_to_rgb(concentration, max_concentration: float = 10.0) -> np.ndarray:
    """
    Map concentrations to RGB in [0, 1] with phase-shifted sinusoids.

    The value is normalised to [0, 1] (saturating at ``max_concentration``),
    turned into a phase ``v·2π`` and each channel is ``sin(phase − shift)·0.5 + 0.5``.

    Returns:
        Array with a trailing axis of length 3
    """
    value = np.minimum(1.0, np.asarray(concentration, dtype=np.float64) / max_concentration)
    phase = value * 2.0 * np.pi
    return np.sin(phase[..., np.newaxis] - CHANNEL_SHIFTS) * 0.5 + 0.5
