"""
Escape-time fractal simulations.

The view (center, zoom, rotation) lives in the parameter set so presets
and hosts can move it with set(). step(dt) only advances the color
cycle and, for Julia sets, the optional orbit of c.
"""

from __future__ import annotations
import math
from typing import List, Optional, Tuple
import numpy as np

from ..core.frames import Viewport
from ..core.parameters import (
    Parameter, ParameterSet, float_param, int_param, bool_param, choice_param,
)
from ..core.simulation import Steppable2D
from ..color.pipeline import ColorPipeline
from ..color.schemes import SCHEME_NAMES
from ..fractal.kernel import FractalKernel, FractalParams, FractalVariant, FractalSamples


def fractal_parameters(center: Tuple[float, float], zoom: float, scheme: str) -> List[Parameter]:
    return [
        float_param("center_x", center[0], -3.0, 3.0, "Center X"),
        float_param("center_y", center[1], -3.0, 3.0, "Center Y"),
        float_param("zoom", zoom, 0.1, 10000.0, "Zoom"),
        float_param("rotation", 0.0, -math.pi, math.pi, "Rotation"),
        int_param("max_iterations", 100, 10, 1000, "Max iterations"),
        int_param("power", 2, 2, 8, "Power"),
        float_param("escape_radius", 2.0, 2.0, 10.0, "Escape radius"),
        bool_param("smooth", True, "Smooth coloring"),
        choice_param("color_scheme", scheme, SCHEME_NAMES, "Color scheme"),
        float_param("color_offset", 0.0, 0.0, 1.0, "Color offset"),
        bool_param("invert", False, "Invert colors"),
        bool_param("color_cycling", False, "Cycle colors"),
        float_param("cycle_speed", 0.1, 0.0, 2.0, "Cycle speed"),
    ]


class FractalSimulation(Steppable2D):
    """
    Base for Mandelbrot-family views.

    Subclasses set `variant`, `default_center`, `default_zoom` and
    `default_scheme`.
    """

    variant = FractalVariant.MANDELBROT
    default_center: Tuple[float, float] = (0.0, 0.0)
    default_zoom = 1.0
    default_scheme = "classic"

    def __init__(self, seed: Optional[int] = None, extra: Optional[List[Parameter]] = None):
        params = fractal_parameters(self.default_center, self.default_zoom, self.default_scheme)
        super().__init__(ParameterSet(params + list(extra or [])), seed)
        self.kernel = FractalKernel()
        self._reset_state()

    def _reset_state(self) -> None:
        self.time = 0.0
        self.cycle_phase = 0.0

    def viewport(self) -> Viewport:
        return Viewport(self.get("center_x"), self.get("center_y"),
                        self.get("zoom"), self.get("rotation"))

    def fractal_params(self) -> FractalParams:
        return FractalParams(
            variant=self.variant,
            power=int(self.get("power")),
            escape_radius=float(self.get("escape_radius")),
            max_iterations=int(self.get("max_iterations")),
            smooth=bool(self.get("smooth")),
        )

    def pipeline(self) -> ColorPipeline:
        return ColorPipeline(self.get("color_scheme"), self.get("color_offset"), self.get("invert"))

    def step(self, amount: float = 1.0) -> None:
        dt = float(amount)
        self.time += dt
        if self.get("color_cycling"):
            self.cycle_phase = (self.cycle_phase + dt * self.get("cycle_speed")) % 1.0

    def sample(self, viewport: Optional[Viewport] = None,
               shape: Tuple[int, int] = (480, 640)) -> FractalSamples:
        return self.kernel.sample(shape, viewport or self.viewport(), self.fractal_params())

    def render(self, viewport: Optional[Viewport] = None,
               shape: Tuple[int, int] = (480, 640)) -> np.ndarray:
        phase = self.cycle_phase if self.get("color_cycling") else 0.0
        return self.kernel.render(shape, viewport or self.viewport(), self.fractal_params(),
                                  self.pipeline(), phase)

    def zoom_at(self, x: float, y: float, factor: float) -> None:
        """Recenter on (x, y) and multiply zoom by factor (both clamped)."""
        self.set("center_x", x)
        self.set("center_y", y)
        self.set("zoom", self.get("zoom") * factor)


class Mandelbrot(FractalSimulation):
    key = "mandelbrot"
    title = "Mandelbrot Set"
    variant = FractalVariant.MANDELBROT
    default_center = (-0.5, 0.0)
    default_scheme = "classic"


class BurningShip(FractalSimulation):
    key = "burning_ship"
    title = "Burning Ship"
    variant = FractalVariant.BURNING_SHIP
    default_center = (-0.5, -0.6)
    default_zoom = 0.7
    default_scheme = "fire"


class Julia(FractalSimulation):
    """
    Julia set for a fixed c; with `animate` on, c travels a circle of
    radius animation_radius at animation_speed radians per time unit.
    """

    key = "julia"
    title = "Julia Set"
    variant = FractalVariant.JULIA
    default_center = (0.0, 0.0)
    default_scheme = "ultra"

    def __init__(self, seed: Optional[int] = None):
        super().__init__(seed, extra=[
            float_param("c_real", -0.7, -2.0, 2.0, "c (real)"),
            float_param("c_imag", 0.27015, -2.0, 2.0, "c (imaginary)"),
            bool_param("animate", False, "Animate c"),
            float_param("animation_speed", 0.3, 0.0, 2.0, "Animation speed"),
            float_param("animation_radius", 0.7885, 0.1, 1.5, "Animation radius"),
        ])

    def _reset_state(self) -> None:
        super()._reset_state()
        self.animation_angle = 0.0

    def fractal_params(self) -> FractalParams:
        params = super().fractal_params()
        params.julia_c = complex(self.get("c_real"), self.get("c_imag"))
        return params

    def step(self, amount: float = 1.0) -> None:
        super().step(amount)
        if self.get("animate"):
            self.animation_angle += float(amount) * self.get("animation_speed")
            radius = self.get("animation_radius")
            self.set("c_real", radius * math.cos(self.animation_angle))
            self.set("c_imag", radius * math.sin(self.animation_angle))
