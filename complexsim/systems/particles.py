"""
Particle swarm flowing through a chaotic attractor.

Particles spawn on a small ring at a steady rate, follow the attractor's
vector field for a limited lifetime and then disappear. All live
particles are integrated together: positions are held as an (N, 3)
array and handed to rk4_step transposed, so the same derivative that
drives a single trajectory moves the whole swarm in one call.

Trails share one ring-buffer cursor. Every live particle is written at
every substep, so particle i's history is the `filled[i]` slots before
the cursor.
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple
import numpy as np

from ..config import get_config
from ..core.errors import DimensionError, NumericalInstability
from ..core.frames import Scene3D
from ..core.parameters import (
    ParameterSet, float_param, int_param, bool_param, choice_param,
)
from ..core.simulation import Steppable3D
from ..color.pipeline import resolve_array
from ..color.schemes import SCHEME_NAMES
from ..ode.integrator import rk4_step
from ..ode.systems import ATTRACTORS, OdeSystem
from .attractors import REFERENCE_FPS

logger = logging.getLogger(__name__)

COLOR_MODES = ("depth", "velocity", "age")


class ParticleSwarm(Steppable3D):
    """
    Short-lived particles tracing an attractor.

    Example:
        sim = ParticleLorenz(seed=3)
        for _ in range(120):
            sim.step(1 / 60)
        scene = sim.render()      # particles plus trail segments
    """

    system: OdeSystem = None
    spawn_center: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    spawn_radius: float = 1.0

    structural = frozenset({"num_particles", "trail_length"})

    def __init__(self, seed: Optional[int] = None):
        system = self.system
        scale_default, scale_min, scale_max = system.scale
        super().__init__(ParameterSet([
            *system.parameters,
            int_param("num_particles", 500, 10, 5000, "Max particles"),
            float_param("spawn_rate", 5.0, 0.1, 20.0, "Spawn rate (per frame)"),
            float_param("particle_lifetime", 10.0, 1.0, 30.0, "Particle lifetime"),
            float_param("speed", 1.0, 0.1, 5.0, "Speed"),
            int_param("substeps", 2, 1, 10, "Substeps per frame"),
            bool_param("particle_trails", True, "Show trails"),
            int_param("trail_length", 100, 10, 200, "Trail length"),
            choice_param("color_by", "depth", COLOR_MODES, "Color by"),
            float_param("scale", scale_default, scale_min, scale_max, "Scale"),
            choice_param("color_scheme", system.color_scheme, SCHEME_NAMES, "Color scheme"),
        ]), seed)
        self._reset_state()

    @property
    def key(self) -> str:
        return f"particle_{self.system.key}"

    @property
    def title(self) -> str:
        return f"Particle {self.system.name}"

    # ----- lifecycle -----

    def _reset_state(self) -> None:
        capacity = int(self.get("num_particles"))
        limit = get_config().limits.max_particles
        if capacity > limit:
            raise DimensionError(f"{capacity} particles exceed limit {limit}")
        self.capacity = capacity
        self.trail_capacity = min(int(self.get("trail_length")),
                                  get_config().limits.max_trail_capacity)

        self.positions = np.zeros((0, 3), dtype=np.float64)
        self.ages = np.zeros(0, dtype=np.float64)
        self.color_offsets = np.zeros(0, dtype=np.float64)
        self.history = np.zeros((0, self.trail_capacity, 3), dtype=np.float64)
        self.filled = np.zeros(0, dtype=np.int64)
        self._cursor = 0
        self._spawn_budget = 0.0
        self._restart = False
        self.time = 0.0

    def _on_change(self, name: str, value) -> None:
        if name in self.structural:
            self._restart = True
        elif name == "particle_trails":
            self.filled[:] = 0

    @property
    def num_particles(self) -> int:
        return len(self.positions)

    def coefficients(self) -> Tuple[float, ...]:
        return self.system.coefficients(self.params.as_dict())

    def step_size(self, dt: float) -> float:
        return self.system.step_size * float(self.get("speed")) * dt * REFERENCE_FPS

    # ----- particles -----

    def _spawn(self, count: int) -> None:
        offsets = self.rng.random(count)
        angle = offsets * 2 * np.pi
        center = np.asarray(self.spawn_center, dtype=np.float64)
        ring = np.stack([np.cos(angle), np.sin(angle), np.zeros(count)], axis=1)
        self.positions = np.vstack([self.positions, center + self.spawn_radius * ring])
        self.ages = np.concatenate([self.ages, np.zeros(count)])
        self.color_offsets = np.concatenate([self.color_offsets, offsets])
        self.history = np.concatenate(
            [self.history, np.zeros((count, self.trail_capacity, 3))])
        self.filled = np.concatenate([self.filled, np.zeros(count, dtype=np.int64)])

    def _keep(self, alive: np.ndarray) -> None:
        self.positions = self.positions[alive]
        self.ages = self.ages[alive]
        self.color_offsets = self.color_offsets[alive]
        self.history = self.history[alive]
        self.filled = self.filled[alive]

    def _record(self) -> None:
        self.history[:, self._cursor] = self.positions
        self.filled = np.minimum(self.filled + 1, self.trail_capacity)
        self._cursor = (self._cursor + 1) % self.trail_capacity

    def step(self, dt: float) -> None:
        if self._restart:
            self._reset_state()

        self._spawn_budget += float(self.get("spawn_rate")) * dt * REFERENCE_FPS
        count = min(int(self._spawn_budget), self.capacity - self.num_particles)
        if count > 0:
            self._spawn(count)
        self._spawn_budget = min(self._spawn_budget - max(count, 0), 1.0)

        h = self.step_size(dt)
        lifetime = float(self.get("particle_lifetime"))
        trails = bool(self.get("particle_trails"))
        coeffs = self.coefficients()
        try:
            for _ in range(int(self.get("substeps"))):
                self.ages += h
                alive = self.ages <= lifetime
                if not alive.all():
                    self._keep(alive)
                if self.num_particles == 0:
                    break
                self.positions = rk4_step(self.system.derivative, self.positions.T, coeffs, h).T
                if trails:
                    self._record()
        except NumericalInstability as exc:
            logger.warning(f"{self.key}: {exc}; clearing the swarm")
            self._reset_state()
            return
        self.time += dt

    # ----- rendering -----

    def color_values(self) -> np.ndarray:
        """Per-particle gradient position in [0, 1)."""
        mode = self.get("color_by")
        if self.num_particles == 0:
            return np.zeros(0)
        if mode == "age":
            base = self.ages / float(self.get("particle_lifetime"))
        elif mode == "velocity":
            v = self.system.derivative(self.positions.T, self.coefficients())
            speed = np.linalg.norm(v, axis=0)
            top = speed.max()
            base = speed / top if top > 0 else np.zeros_like(speed)
        else:
            z = self.positions[:, 2]
            span = z.max() - z.min()
            base = (z - z.min()) / span if span > 0 else np.full_like(z, 0.5)
        return np.clip(0.85 * base + 0.15 * self.color_offsets, 0.0, 0.999)

    def ordered_history(self) -> np.ndarray:
        """(N, L, 3) trail points per particle, oldest first; unused slots trail the valid ones."""
        length = self.trail_capacity
        slots = (self._cursor - self.filled[:, None] + np.arange(length)[None, :]) % length
        return self.history[np.arange(self.num_particles)[:, None], slots]

    def render(self) -> Scene3D:
        scale = float(self.get("scale"))
        colors = resolve_array(self.color_values(), self.get("color_scheme"))
        points = self.positions * scale

        segments = np.zeros((0, 2, 3))
        segment_colors = np.zeros((0, 3), dtype=np.uint8)
        if self.get("particle_trails") and self.num_particles:
            ordered = self.ordered_history() * scale
            valid = np.arange(1, self.trail_capacity)[None, :] < self.filled[:, None]
            pairs = np.stack([ordered[:, :-1], ordered[:, 1:]], axis=2)
            segments = pairs[valid]
            segment_colors = np.repeat(colors[:, None, :], self.trail_capacity - 1, axis=1)[valid]

        return Scene3D(points=points, segments=segments, colors=colors,
                       segment_colors=segment_colors)


class ParticleLorenz(ParticleSwarm):
    system = ATTRACTORS["lorenz"]
    spawn_center = (0.0, 0.0, 20.0)
    spawn_radius = 5.0

    @property
    def key(self) -> str:
        return "particle_attractor"
