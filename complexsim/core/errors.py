"""
Exception types shared by the simulation core.

Only a few conditions ever reach the host:
- NumericalInstability is raised by the integrator and recovered by the
  simulation that owns the state (reset to defaults, logged).
- DimensionError is raised before any oversized buffer is allocated.
- UnknownParameter is raised when a name is not in a parameter schema.

Out-of-range parameter values are clamped and never raise.
"""

from __future__ import annotations
from typing import Optional
import numpy as np


class SimulationError(Exception):
    """Base class for all simulation core errors."""


class NumericalInstability(SimulationError):
    """
    A step produced a NaN or infinite state component.

    Attributes:
        state: The offending (non-finite) state vector, if available
    """

    def __init__(self, message: str, state: Optional[np.ndarray] = None):
        super().__init__(message)
        self.state = state


class PrecisionLimit(SimulationError):
    """
    Viewport resolution is finer than float64 can represent.

    Never raised to the host; used to tag the warning that is logged
    when the fractal kernel detects blocky output.
    """


class DimensionError(SimulationError, ValueError):
    """Requested buffer or grid dimensions exceed the configured limits."""


class UnknownParameter(SimulationError, KeyError):
    """Parameter name is not part of the simulation's schema."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown parameter"
