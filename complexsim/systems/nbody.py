"""
N-body gravity with softened pairwise attraction.

The whole system is one 6N state vector integrated with RK4. In the
solar mode body 0 is a heavy central mass held in place; binary and
cloud modes have no fixed body. Initial conditions are drawn from the
simulation's seeded generator.
"""

from __future__ import annotations
import logging
from typing import List, Optional
import numpy as np

from ..config import get_config
from ..core.errors import DimensionError, NumericalInstability
from ..core.frames import Scene3D
from ..core.parameters import (
    ParameterSet, float_param, int_param, bool_param, choice_param,
)
from ..core.simulation import Steppable3D
from ..core.trail import Trail
from ..color.pipeline import resolve_array
from ..color.schemes import SCHEME_NAMES
from ..ode.integrator import rk4_step
from ..ode.systems import GravityParams, pack_bodies, unpack_bodies, nbody

logger = logging.getLogger(__name__)

CENTRAL_COLOR = (255, 220, 100)


class NBodyGravity(Steppable3D):
    """
    Gravitating bodies with per-body trails.

    Example:
        sim = NBodyGravity(seed=1)
        sim.set("mode", "binary")
        sim.step(1 / 60)          # mode change takes effect here
    """

    key = "nbody"
    title = "N-Body Gravity"
    structural = frozenset({"mode", "body_count", "central_mass",
                            "spawn_radius", "initial_velocity"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            choice_param("mode", "solar", ("solar", "binary", "cloud"), "Mode"),
            int_param("body_count", 100, 10, 200, "Bodies"),
            float_param("G", 1.0, 0.1, 5.0, "Gravitational constant"),
            float_param("softening", 0.5, 0.1, 2.0, "Softening"),
            float_param("central_mass", 100.0, 10.0, 500.0, "Central mass"),
            float_param("spawn_radius", 30.0, 10.0, 80.0, "Spawn radius"),
            float_param("initial_velocity", 2.0, 0.5, 5.0, "Initial velocity"),
            float_param("speed", 1.0, 0.1, 5.0, "Speed"),
            int_param("substeps", 2, 1, 10, "Substeps per frame"),
            int_param("trail_length", 50, 10, 200, "Trail length"),
            bool_param("show_trails", True, "Show trails"),
            choice_param("color_scheme", "plasma", SCHEME_NAMES, "Color scheme"),
        ]), seed)
        self._reset_state()

    # ----- initial conditions -----

    def _solar(self):
        n = int(self.get("body_count"))
        m_c = float(self.get("central_mass"))
        r_max = float(self.get("spawn_radius"))
        v0 = float(self.get("initial_velocity"))

        theta = self.rng.uniform(0.0, 2 * np.pi, n)
        phi = self.rng.uniform(-np.pi / 4, np.pi / 4, n)
        radius = self.rng.uniform(0.5 * r_max, r_max, n)
        pos = np.stack([radius * np.cos(phi) * np.cos(theta),
                        radius * np.sin(phi),
                        radius * np.cos(phi) * np.sin(theta)], axis=1)
        orbital = v0 * np.sqrt(m_c / radius)
        vel = np.stack([-orbital * np.sin(theta),
                        self.rng.uniform(-0.5, 0.5, n),
                        orbital * np.cos(theta)], axis=1)
        masses = self.rng.uniform(0.1, 1.0, n)

        pos = np.vstack([np.zeros((1, 3)), pos])
        vel = np.vstack([np.zeros((1, 3)), vel])
        masses = np.concatenate([[m_c], masses])
        fixed = np.zeros(n + 1, dtype=bool)
        fixed[0] = True
        return pos, vel, masses, fixed

    def _binary(self):
        n = int(self.get("body_count"))
        r_max = float(self.get("spawn_radius"))
        stars_pos = np.array([[-10.0, 0.0, 0.0], [10.0, 0.0, 0.0]])
        stars_vel = np.array([[0.0, 2.0, 0.0], [0.0, -2.0, 0.0]])

        theta = self.rng.uniform(0.0, 2 * np.pi, n)
        radius = self.rng.uniform(r_max, 2.0 * r_max, n)
        pos = np.stack([radius * np.cos(theta), radius * np.sin(theta),
                        self.rng.uniform(-1.0, 1.0, n)], axis=1)
        speed = np.sqrt(100.0 / radius)
        vel = np.stack([-speed * np.sin(theta), speed * np.cos(theta), np.zeros(n)], axis=1)

        masses = np.concatenate([[50.0, 50.0], self.rng.uniform(0.1, 0.5, n)])
        return (np.vstack([stars_pos, pos]), np.vstack([stars_vel, vel]),
                masses, np.zeros(n + 2, dtype=bool))

    def _cloud(self):
        n = int(self.get("body_count"))
        r = float(self.get("spawn_radius"))
        pos = self.rng.uniform(-r, r, (n, 3))
        vel = self.rng.uniform(-0.5, 0.5, (n, 3))
        masses = self.rng.uniform(0.5, 2.0, n)
        return pos, vel, masses, np.zeros(n, dtype=bool)

    def _reset_state(self) -> None:
        mode = self.get("mode")
        pos, vel, masses, fixed = {"solar": self._solar, "binary": self._binary,
                                   "cloud": self._cloud}[mode]()
        limit = get_config().limits.max_bodies
        if len(masses) > limit:
            raise DimensionError(f"{len(masses)} bodies exceed limit {limit}")

        self.masses = masses
        self.fixed = fixed
        self.state = pack_bodies(pos, vel)
        capacity = int(self.get("trail_length"))
        self.trails: List[Trail] = [Trail(capacity, dim=3) for _ in range(len(masses))]
        self._restart = False

    def _on_change(self, name: str, value) -> None:
        if name in self.structural:
            self._restart = True
        elif name == "trail_length":
            for trail in self.trails:
                trail.set_capacity(int(value))

    # ----- Steppable3D -----

    @property
    def num_bodies(self) -> int:
        return len(self.masses)

    def positions(self) -> np.ndarray:
        return unpack_bodies(self.state)[0].copy()

    def velocities(self) -> np.ndarray:
        return unpack_bodies(self.state)[1].copy()

    def gravity_params(self) -> GravityParams:
        return GravityParams(self.masses, float(self.get("G")),
                             float(self.get("softening")), self.fixed)

    def step(self, dt: float) -> None:
        if self._restart:
            self._reset_state()
        substeps = int(self.get("substeps"))
        h = float(dt) * self.get("speed") / substeps
        params = self.gravity_params()
        try:
            for _ in range(substeps):
                self.state = rk4_step(nbody, self.state, params, h)
        except NumericalInstability as exc:
            logger.warning(f"{self.key}: {exc}; respawning bodies")
            self._reset_state()
            return

        if self.get("show_trails"):
            for trail, p, fixed in zip(self.trails, self.positions(), self.fixed):
                if not fixed:
                    trail.append(p)

    def render(self) -> Scene3D:
        pos = self.positions()
        mass_norm = self.masses / self.masses.max()
        colors = resolve_array(0.2 + 0.79 * mass_norm, self.get("color_scheme"))
        colors[self.fixed] = CENTRAL_COLOR

        segments = np.zeros((0, 2, 3))
        segment_colors = np.zeros((0, 3), dtype=np.uint8)
        if self.get("show_trails"):
            pieces, piece_colors = [], []
            for trail, color in zip(self.trails, colors):
                pts = trail.to_array()
                if len(pts) > 1:
                    pieces.append(np.stack([pts[:-1], pts[1:]], axis=1))
                    piece_colors.append(np.repeat(color[None, :], len(pts) - 1, axis=0))
            if pieces:
                segments = np.concatenate(pieces)
                segment_colors = np.concatenate(piece_colors)

        return Scene3D(points=pos, segments=segments, colors=colors,
                       segment_colors=segment_colors)
