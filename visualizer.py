"""
Headless snapshots of a concentration field.

Renders the field with the phase-shifted sinusoid colour mapping next to a
plain intensity map and writes the figure to disk.
"""

from pathlib import Path
from typing import Optional, Union

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from colormap import concentration_to_rgb
from parameters import Grid


def save_snapshot(
    field: np.ndarray,
    grid: Grid,
    path: Union[str, Path],
    title: Optional[str] = None,
    max_concentration: float = 10.0,
) -> Path:
    """
    Save a two-panel image of ``field``.

    Args:
        field: Flat concentration field of grid.size values
        grid: Grid the field lives on
        path: Output file; the format follows the suffix
        title: Figure title
        max_concentration: Value at which the colour mapping saturates

    Returns:
        The path written
    """
    path = Path(path)
    data = np.asarray(field, dtype=np.float64).reshape(grid.shape)

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    if title:
        fig.suptitle(title)

    ax = axes[0]
    ax.imshow(concentration_to_rgb(data, max_concentration), origin='lower', interpolation='nearest')
    ax.set_title('Concentration (phase colour)')
    ax.axis('off')

    ax = axes[1]
    if np.all(np.isfinite(data)):
        im = ax.imshow(data, cmap='viridis', origin='lower', interpolation='nearest')
        ax.set_title(f'Concentration\nmin={data.min():.3g}, max={data.max():.3g}')
        plt.colorbar(im, ax=ax)
    else:
        ax.text(0.5, 0.5, f'NaN concentration!\ncount={np.sum(~np.isfinite(data))}',
                ha='center', va='center', transform=ax.transAxes)
        ax.set_title('Concentration - NaN')
    ax.axis('off')

    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=100, bbox_inches='tight')
    plt.close(fig)
    return path
