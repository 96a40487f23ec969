"""
Chaotic attractor simulations.

Each attractor integrates its OdeSystem with RK4 and keeps the visited
points in a Trail. step(dt) runs `substeps` RK4 steps of size

    h = step_size * speed * dt * REFERENCE_FPS

so that one 60 fps frame advances each substep by the system's nominal
step size. A non-finite state is logged and the trajectory restarts
from the initial point.
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple
import numpy as np

from ..config import get_config
from ..core.errors import NumericalInstability
from ..core.frames import Scene3D, polyline_segments
from ..core.parameters import ParameterSet, float_param, int_param, choice_param
from ..core.simulation import Steppable3D
from ..core.trail import Trail
from ..color.pipeline import resolve_array
from ..color.schemes import SCHEME_NAMES
from ..ode.integrator import rk4_step
from ..ode.systems import ATTRACTORS, OdeSystem

logger = logging.getLogger(__name__)

REFERENCE_FPS = 60.0


class AttractorSimulation(Steppable3D):
    """
    Trajectory of one attractor.

    Example:
        sim = LorenzAttractor(seed=0)
        sim.set("rho", 1000)      # clamped to 50
        for _ in range(120):
            sim.step(1 / 60)
        scene = sim.render()
    """

    system: OdeSystem = None

    def __init__(self, seed: Optional[int] = None):
        system = self.system
        scale_default, scale_min, scale_max = system.scale
        super().__init__(ParameterSet([
            *system.parameters,
            float_param("speed", 1.0, 0.1, 5.0, "Speed"),
            int_param("substeps", 10, 1, 50, "Substeps per frame"),
            int_param("trail_length", 5000, 100, 10000, "Trail length"),
            float_param("scale", scale_default, scale_min, scale_max, "Scale"),
            choice_param("color_scheme", system.color_scheme, SCHEME_NAMES, "Color scheme"),
        ]), seed)
        self.point = np.array(system.initial_state, dtype=np.float64)
        self.trail = Trail(self._trail_capacity(), dim=3)
        self._reset_state()

    @property
    def key(self) -> str:
        return self.system.key

    @property
    def title(self) -> str:
        return self.system.name

    def _trail_capacity(self) -> int:
        return min(int(self.get("trail_length")), get_config().limits.max_trail_capacity)

    def _reset_state(self) -> None:
        self.point = np.array(self.system.initial_state, dtype=np.float64)
        self.trail.set_capacity(self._trail_capacity())
        self.trail.clear()
        self.trail.append(self.point)
        self.time = 0.0

    def coefficients(self) -> Tuple[float, ...]:
        return self.system.coefficients(self.params.as_dict())

    def step_size(self, dt: float) -> float:
        return self.system.step_size * float(self.get("speed")) * dt * REFERENCE_FPS

    def step(self, dt: float) -> None:
        capacity = self._trail_capacity()
        if capacity != self.trail.capacity:
            self.trail.set_capacity(capacity)

        h = self.step_size(dt)
        coeffs = self.coefficients()
        try:
            for _ in range(int(self.get("substeps"))):
                self.point = rk4_step(self.system.derivative, self.point, coeffs, h)
                self.trail.append(self.point)
        except NumericalInstability as exc:
            logger.warning(f"{self.key}: {exc}; restarting from the initial point")
            self._reset_state()
            return
        self.time += dt

    def render(self) -> Scene3D:
        points = self.trail.to_array() * float(self.get("scale"))
        n = len(points)
        t = np.linspace(0.0, 0.999, n) if n else np.zeros(0)
        colors = resolve_array(t, self.get("color_scheme"))
        segments = polyline_segments(points)
        return Scene3D(points=points, segments=segments, colors=colors,
                       segment_colors=colors[1:] if n > 1 else colors[:0])


class LorenzAttractor(AttractorSimulation):
    system = ATTRACTORS["lorenz"]


class RosslerAttractor(AttractorSimulation):
    system = ATTRACTORS["rossler"]


class ChenAttractor(AttractorSimulation):
    system = ATTRACTORS["chen"]


class AizawaAttractor(AttractorSimulation):
    system = ATTRACTORS["aizawa"]


class HalvorsenAttractor(AttractorSimulation):
    system = ATTRACTORS["halvorsen"]


class DadrasAttractor(AttractorSimulation):
    system = ATTRACTORS["dadras"]


class ThomasAttractor(AttractorSimulation):
    system = ATTRACTORS["thomas"]
