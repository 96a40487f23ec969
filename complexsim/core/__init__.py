"""
Core abstractions for complexsim.

Contains:
- ParameterSet: Ordered, bounded, clamping parameter schema
- Parameterized / Steppable2D / Steppable3D: Capability interfaces
- Viewport, VectorFrame, Scene3D: Values exchanged with the host
- Trail: Bounded ring buffer of past states
- Error types (NumericalInstability, DimensionError, ...)
"""

from .errors import (
    SimulationError, NumericalInstability, PrecisionLimit,
    DimensionError, UnknownParameter,
)
from .parameters import (
    ParameterKind, Parameter, ParameterInfo, ParameterSet,
    float_param, int_param, bool_param, choice_param,
)
from .frames import (
    Viewport, VectorFrame, Scene3D,
    polyline_segments, check_render_shape, check_grid_shape,
)
from .trail import Trail
from .simulation import Parameterized, Steppable2D, Steppable3D, DEFAULT_SEED

__all__ = [
    # Errors
    "SimulationError",
    "NumericalInstability",
    "PrecisionLimit",
    "DimensionError",
    "UnknownParameter",
    # Parameters
    "ParameterKind",
    "Parameter",
    "ParameterInfo",
    "ParameterSet",
    "float_param",
    "int_param",
    "bool_param",
    "choice_param",
    # Frames
    "Viewport",
    "VectorFrame",
    "Scene3D",
    "polyline_segments",
    "check_render_shape",
    "check_grid_shape",
    # State
    "Trail",
    # Interfaces
    "Parameterized",
    "Steppable2D",
    "Steppable3D",
    "DEFAULT_SEED",
]
