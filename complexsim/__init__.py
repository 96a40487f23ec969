"""
complexsim: interactive complex-systems simulation core.

A host loop drives any simulation through three calls:

    sim = create_simulation("lorenz", seed=0)
    sim.set("rho", 24.0)
    sim.step(1 / 60)
    scene = sim.render()

Subpackages:
- core: parameter schemas, capability interfaces, frames, errors
- color: gradient catalog and scalar-to-RGB pipeline
- fractal: parallel escape-time kernel
- ode: RK4 integrator and system derivatives
- grid: synchronous grid automata
- systems: concrete simulations and registry
"""

__version__ = "0.1.0"

from .config import CoreConfig, get_config, set_config
from .core import (
    Parameterized, Steppable2D, Steppable3D,
    ParameterSet, ParameterKind, ParameterInfo,
    Viewport, VectorFrame, Scene3D, Trail,
    SimulationError, NumericalInstability, DimensionError, UnknownParameter,
)
from .color import ColorScheme, ColorPipeline, resolve
from .systems import SIMULATIONS, create_simulation, list_simulations
from .presets import PRESETS, apply_preset, preset_names

__all__ = [
    "CoreConfig",
    "get_config",
    "set_config",
    "Parameterized",
    "Steppable2D",
    "Steppable3D",
    "ParameterSet",
    "ParameterKind",
    "ParameterInfo",
    "Viewport",
    "VectorFrame",
    "Scene3D",
    "Trail",
    "SimulationError",
    "NumericalInstability",
    "DimensionError",
    "UnknownParameter",
    "ColorScheme",
    "ColorPipeline",
    "resolve",
    "SIMULATIONS",
    "create_simulation",
    "list_simulations",
    "PRESETS",
    "apply_preset",
    "preset_names",
]
