"""
Scenario definitions for the reaction-diffusion engine.

Each scenario is a function that seeds the initial concentration field and
the source/sink fields of a SimulationContext. Random placements draw from
``context.rng`` so a seeded context reproduces the same layout.
"""

from typing import TYPE_CHECKING, Optional, Set

import numpy as np

from explicit_stepper import ExplicitStepper
from parameters import Grid, SimulationParameters

if TYPE_CHECKING:
    from simulation_context import SimulationContext


INITIAL_CONCENTRATION = 11.0
POINT_COUNT = 10
BOUNDARY_MARGIN = 3
SOURCE_VALUE = 0.95
SINK_VALUE = 1.0
# Share of a point's strength on the centre cell and on each 4-neighbour
CENTER_WEIGHT = 0.6
NEIGHBOUR_WEIGHT = 0.1


def random_positions(
    grid: Grid,
    count: int,
    rng: np.random.Generator,
    margin: int = BOUNDARY_MARGIN,
) -> Set[int]:
    """
    Draw ``count`` distinct cell indices at least ``margin`` cells from the edge.

    The margin shrinks on small grids so every position keeps its four
    neighbours inside the interior.
    """
    margin = max(1, min(margin, (min(grid.width, grid.height) - 1) // 2))
    rows = grid.height - 2 * margin
    cols = grid.width - 2 * margin
    count = min(count, rows * cols)

    positions: Set[int] = set()
    while len(positions) < count:
        row = int(rng.integers(rows)) + margin
        col = int(rng.integers(cols)) + margin
        positions.add(grid.index(col, row))
    return positions


def stamp_points(field: np.ndarray, grid: Grid, positions: Set[int], value: float) -> None:
    """Spread ``value`` over each position and its 4-neighbours."""
    for pos in positions:
        field[pos] = value * CENTER_WEIGHT
        for offset in (-1, 1, -grid.width, grid.width):
            field[pos + offset] = value * NEIGHBOUR_WEIGHT


def zero_border(field: np.ndarray, grid: Grid) -> None:
    phi = field.reshape(grid.shape)
    phi[0, :] = 0.0
    phi[-1, :] = 0.0
    phi[:, 0] = 0.0
    phi[:, -1] = 0.0


def diffuse_impulses(
    grid: Grid,
    positions: Set[int],
    value: float,
    params: SimulationParameters,
    time_span: float,
) -> np.ndarray:
    """
    Smooth point impulses into blobs with the explicit stepper itself.

    The impulses diffuse without reaction for ``time_span`` and are then
    rescaled so the strongest cell equals ``value``.
    """
    impulses = np.zeros(grid.size, dtype=np.float32)
    for pos in positions:
        impulses[pos] = value
    quiet = np.zeros(grid.size, dtype=np.float32)
    smoothing = SimulationParameters.at_cfl_limit(
        params.diffusion_rate, params.cell_spacing, time_span=time_span,
    )
    blobs = ExplicitStepper(grid).integrate(impulses, quiet, quiet, smoothing).field
    peak = float(blobs.max())
    if peak > 0:
        blobs *= value / peak
    zero_border(blobs, grid)
    return blobs


def setup_random_sources(context: 'SimulationContext', bootstrap_span: Optional[float] = None):
    """Uniform field with randomly placed sources and sinks."""
    grid = context.grid
    context.field = np.full(grid.size, INITIAL_CONCENTRATION, dtype=np.float32)

    source_positions = random_positions(grid, POINT_COUNT, context.rng)
    sink_positions = random_positions(grid, POINT_COUNT, context.rng)

    if bootstrap_span:
        context.sources = diffuse_impulses(grid, source_positions, SOURCE_VALUE, context.params, bootstrap_span)
        context.sinks = diffuse_impulses(grid, sink_positions, SINK_VALUE, context.params, bootstrap_span)
    else:
        context.sources = np.zeros(grid.size, dtype=np.float32)
        context.sinks = np.zeros(grid.size, dtype=np.float32)
        stamp_points(context.sources, grid, source_positions, SOURCE_VALUE)
        stamp_points(context.sinks, grid, sink_positions, SINK_VALUE)
        zero_border(context.sources, grid)
        zero_border(context.sinks, grid)


def setup_diffused_sources(context: 'SimulationContext'):
    """Like ``random`` but sources and sinks are smooth blobs instead of stamps."""
    setup_random_sources(context, bootstrap_span=0.05)


def setup_point_seed(context: 'SimulationContext'):
    """Empty field with one seed of 10 in the middle; no sources or sinks."""
    grid = context.grid
    context.field = np.zeros(grid.size, dtype=np.float32)
    context.field[grid.index(grid.width // 2, grid.height // 2)] = 10.0
    context.sources = np.zeros(grid.size, dtype=np.float32)
    context.sinks = np.zeros(grid.size, dtype=np.float32)


def setup_empty(context: 'SimulationContext'):
    """All zeros; steady from the first call."""
    grid = context.grid
    context.field = np.zeros(grid.size, dtype=np.float32)
    context.sources = np.zeros(grid.size, dtype=np.float32)
    context.sinks = np.zeros(grid.size, dtype=np.float32)


SCENARIOS = {
    'random': setup_random_sources,
    'diffused': setup_diffused_sources,
    'point': setup_point_seed,
    'empty': setup_empty,
}


def get_scenario_names():
    """Return list of available scenario names."""
    return list(SCENARIOS.keys())


def setup_scenario(name: Optional[str], context: 'SimulationContext'):
    """
    Setup a named scenario.

    Args:
        name: Scenario name (or None for default)
        context: SimulationContext to seed
    """
    if name is None or name not in SCENARIOS:
        name = 'random'  # Default scenario

    SCENARIOS[name](context)
    context.last_field = context.field.copy()
