"""
Grid and parameter definitions for the reaction-diffusion engine.

Defaults: a 100x60 grid, D = 100 µm²/s, Δx = 1 µm and an explicit time step
sitting exactly on the CFL limit.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Tuple, Union

import numpy as np

from convergence import ConvergenceMetric


class DiffusionError(Exception):
    """Base class for engine errors."""


class UnsupportedMethodError(DiffusionError, ValueError):
    """Raised when a method tag does not name a known integration scheme."""


class InvalidParameterError(DiffusionError, ValueError):
    """Raised by :meth:`SimulationParameters.validate` for unusable parameters."""


class DiffusionMethod(Enum):
    """Available time integration schemes."""
    EXPLICIT = "FTCS"   # Forward-time centered-space
    IMPLICIT = "ADI"    # Alternating-direction implicit

    @classmethod
    def parse(cls, tag: Union["DiffusionMethod", str]) -> "DiffusionMethod":
        """
        Resolve a method tag.

        Accepts enum members, the scheme tags ``"FTCS"``/``"ADI"`` and the
        names ``"explicit"``/``"implicit"``, case-insensitively.
        """
        if isinstance(tag, cls):
            return tag
        if isinstance(tag, str):
            key = tag.strip().upper()
            for method in cls:
                if key == method.value or key == method.name:
                    return method
        raise UnsupportedMethodError(
            f"Unknown diffusion method: {tag!r}. Supported methods are \"FTCS\" and \"ADI\"."
        )


@dataclass(frozen=True)
class Grid:
    """Rectangular grid stored row-major: ``index = y * width + x``."""
    width: int
    height: int

    def __post_init__(self):
        if self.width < 3 or self.height < 3:
            raise ValueError(
                f"Grid must be at least 3x3 to hold an interior ring, got {self.width}x{self.height}"
            )

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """Array shape as (rows, columns)."""
        return (self.height, self.width)

    def index(self, x: int, y: int) -> int:
        return y * self.width + x


def cfl_time_step(cell_spacing: float, diffusion_rate: float, dimensions: int = 2) -> float:
    """
    Largest stable explicit time step for the diffusion equation.

    Args:
        cell_spacing: Grid spacing Δx
        diffusion_rate: Diffusion coefficient D
        dimensions: Number of spatial dimensions

    Returns:
        Δx² / (2·D·dimensions)
    """
    return cell_spacing * cell_spacing / (2.0 * diffusion_rate * dimensions)


DEFAULT_WIDTH = 100
DEFAULT_HEIGHT = 60
DEFAULT_DIFFUSION_RATE = 100.0     # µm²/s
DEFAULT_CELL_SPACING = 1.0         # µm
DEFAULT_TIME_SPAN = 5.0            # s of simulated time per engine call
DEFAULT_SOURCE_SINK_SCALE = 200.0
DEFAULT_HALF_SATURATION = 0.5
DEFAULT_STEADY_THRESHOLD = 1e-3


@dataclass(frozen=True)
class SimulationParameters:
    """Scalar parameters of one run. Immutable for the lifetime of the run."""
    diffusion_rate: float = DEFAULT_DIFFUSION_RATE
    cell_spacing: float = DEFAULT_CELL_SPACING
    time_step: float = field(
        default_factory=lambda: cfl_time_step(DEFAULT_CELL_SPACING, DEFAULT_DIFFUSION_RATE)
    )
    time_span: float = DEFAULT_TIME_SPAN
    half_saturation_constant: float = DEFAULT_HALF_SATURATION
    source_sink_scale: float = DEFAULT_SOURCE_SINK_SCALE
    method: DiffusionMethod = DiffusionMethod.EXPLICIT
    unit_time_step: float = 1.0    # ADI sub-step
    steady_threshold: float = DEFAULT_STEADY_THRESHOLD
    convergence_metric: ConvergenceMetric = ConvergenceMetric.MEAN_ABSOLUTE

    @classmethod
    def at_cfl_limit(cls, diffusion_rate: float, cell_spacing: float, **kwargs) -> "SimulationParameters":
        """Build parameters whose explicit time step sits on the CFL limit."""
        return cls(
            diffusion_rate=diffusion_rate,
            cell_spacing=cell_spacing,
            time_step=cfl_time_step(cell_spacing, diffusion_rate),
            **kwargs,
        )

    @property
    def diffusion_number(self) -> float:
        """Explicit diffusion number r = D·Δt/Δx² (inf for a zero spacing)."""
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.float64(self.diffusion_rate * self.time_step) / np.float64(self.cell_spacing) ** 2)

    def with_method(self, method: Union[DiffusionMethod, str]) -> "SimulationParameters":
        return replace(self, method=DiffusionMethod.parse(method))

    def validate(self) -> None:
        """
        Reject parameters that would make the schemes blow up.

        The engine never calls this; drivers do before starting a run.
        """
        positive = {
            "diffusion_rate": self.diffusion_rate,
            "cell_spacing": self.cell_spacing,
            "time_span": self.time_span,
            "half_saturation_constant": self.half_saturation_constant,
            "unit_time_step": self.unit_time_step,
        }
        for name, value in positive.items():
            if not value > 0:
                raise InvalidParameterError(f"{name} must be > 0, got {value}")
        if self.steady_threshold < 0:
            raise InvalidParameterError(f"steady_threshold must be >= 0, got {self.steady_threshold}")

        method = DiffusionMethod.parse(self.method)
        if method is DiffusionMethod.EXPLICIT:
            if not self.time_step > 0:
                raise InvalidParameterError(f"time_step must be > 0, got {self.time_step}")
            limit = cfl_time_step(self.cell_spacing, self.diffusion_rate)
            # Small relative slack so a step computed from the limit itself passes
            if self.time_step > limit * (1.0 + 1e-9):
                raise InvalidParameterError(
                    f"time_step {self.time_step:.6g} exceeds the CFL limit {limit:.6g}"
                )
