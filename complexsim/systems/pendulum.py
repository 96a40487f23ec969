"""
Double pendulum rendered as vectors.

Lengths are fractions of the canvas' shorter side; the dynamics run in
those units, so the motion looks the same at every output size.
"""

from __future__ import annotations
import logging
import math
from typing import Optional, Tuple
import numpy as np

from ..core.errors import NumericalInstability
from ..core.frames import Viewport, VectorFrame, check_render_shape
from ..core.parameters import (
    ParameterSet, float_param, int_param, bool_param, choice_param,
)
from ..core.simulation import Steppable2D
from ..core.trail import Trail
from ..color.pipeline import resolve_array
from ..color.schemes import SCHEME_NAMES
from ..ode.integrator import rk4_step
from ..ode.systems import double_pendulum

logger = logging.getLogger(__name__)

ROD_COLOR = (255, 255, 255)
PIVOT_COLOR = (100, 100, 100)
BOB1_COLOR = (255, 100, 100)
BOB2_COLOR = (100, 100, 255)


class DoublePendulum(Steppable2D):
    """
    Two rigid rods with point masses, integrated with RK4.

    After every substep both angular velocities are multiplied by
    `damping`. The trace records the second bob's position.
    """

    key = "double_pendulum"
    title = "Double Pendulum"
    structural = frozenset({"initial_angle1", "initial_angle2",
                            "initial_velocity1", "initial_velocity2"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            float_param("length1", 0.2, 0.05, 0.4, "Length 1"),
            float_param("length2", 0.2, 0.05, 0.4, "Length 2"),
            float_param("mass1", 10.0, 1.0, 50.0, "Mass 1"),
            float_param("mass2", 10.0, 1.0, 50.0, "Mass 2"),
            float_param("gravity", 1.0, 0.1, 3.0, "Gravity"),
            float_param("damping", 0.9999, 0.99, 1.0, "Damping"),
            float_param("initial_angle1", math.pi / 2, -math.pi, math.pi, "Initial angle 1"),
            float_param("initial_angle2", math.pi / 2, -math.pi, math.pi, "Initial angle 2"),
            float_param("initial_velocity1", 0.0, -2.0, 2.0, "Initial velocity 1"),
            float_param("initial_velocity2", 0.0, -2.0, 2.0, "Initial velocity 2"),
            float_param("speed", 1.0, 0.1, 5.0, "Speed"),
            int_param("substeps", 3, 1, 20, "Substeps per frame"),
            int_param("trace_length", 500, 10, 2000, "Trace length"),
            bool_param("show_trace", True, "Show trace"),
            choice_param("color_scheme", "rainbow", SCHEME_NAMES, "Color scheme"),
        ]), seed)
        self.trace = Trail(int(self.get("trace_length")), dim=2)
        self._reset_state()

    def _reset_state(self) -> None:
        self.state = np.array([
            self.get("initial_angle1"), self.get("initial_angle2"),
            self.get("initial_velocity1"), self.get("initial_velocity2"),
        ], dtype=np.float64)
        self.trace.set_capacity(int(self.get("trace_length")))
        self.trace.clear()
        self._restart = False

    def _on_change(self, name: str, value) -> None:
        if name in self.structural:
            self._restart = True
        elif name == "trace_length":
            self.trace.set_capacity(int(value))

    def physical_params(self) -> Tuple[float, float, float, float, float]:
        return (self.get("length1"), self.get("length2"),
                self.get("mass1"), self.get("mass2"), self.get("gravity"))

    def bob_positions(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Bob positions relative to the pivot, y pointing down."""
        l1, l2 = self.get("length1"), self.get("length2")
        a1, a2 = self.state[0], self.state[1]
        x1, y1 = l1 * math.sin(a1), l1 * math.cos(a1)
        return (x1, y1), (x1 + l2 * math.sin(a2), y1 + l2 * math.cos(a2))

    def energy(self) -> float:
        """Total mechanical energy (kinetic + potential, pivot at zero height)."""
        l1, l2, m1, m2, g = self.physical_params()
        a1, a2, w1, w2 = self.state
        kinetic = (0.5 * (m1 + m2) * (l1 * w1) ** 2 + 0.5 * m2 * (l2 * w2) ** 2
                   + m2 * l1 * l2 * w1 * w2 * math.cos(a1 - a2))
        potential = -(m1 + m2) * g * l1 * math.cos(a1) - m2 * g * l2 * math.cos(a2)
        return kinetic + potential

    def step(self, amount: float = 1.0) -> None:
        if self._restart:
            self._reset_state()
        substeps = int(self.get("substeps"))
        h = float(amount) * self.get("speed") / substeps
        params = self.physical_params()
        damping = self.get("damping")
        try:
            for _ in range(substeps):
                self.state = rk4_step(double_pendulum, self.state, params, h)
                self.state[2:] *= damping
                self.trace.append(self.bob_positions()[1])
        except NumericalInstability as exc:
            logger.warning(f"{self.key}: {exc}; resetting pendulum")
            self._reset_state()

    def render(self, viewport: Optional[Viewport] = None,
               shape: Tuple[int, int] = (480, 640)) -> VectorFrame:
        height, width = check_render_shape(shape)
        unit = min(width, height)
        if viewport is not None:
            unit *= viewport.zoom
        pivot = np.array([width / 2.0, height / 4.0])
        if viewport is not None:
            pivot += np.array([viewport.center_x, viewport.center_y]) * unit

        (x1, y1), (x2, y2) = self.bob_positions()
        bob1 = pivot + np.array([x1, y1]) * unit
        bob2 = pivot + np.array([x2, y2]) * unit

        segments = [np.array([pivot, bob1]), np.array([bob1, bob2])]
        segment_colors = [ROD_COLOR, ROD_COLOR]
        if self.get("show_trace") and len(self.trace) > 1:
            trace = pivot + self.trace.to_array() * unit
            t = np.linspace(0.0, 0.999, len(trace) - 1)
            trace_colors = resolve_array(t, self.get("color_scheme"))
            segments = [np.stack([trace[:-1], trace[1:]], axis=1), np.stack(segments)]
            segment_colors = np.concatenate([trace_colors, np.array(segment_colors, dtype=np.uint8)])
            segments = np.concatenate(segments)
        else:
            segments = np.stack(segments)
            segment_colors = np.array(segment_colors, dtype=np.uint8)

        return VectorFrame(
            points=np.stack([pivot, bob1, bob2]),
            segments=segments,
            colors=np.array([PIVOT_COLOR, BOB1_COLOR, BOB2_COLOR], dtype=np.uint8),
            segment_colors=segment_colors,
            radii=np.array([5.0, math.sqrt(self.get("mass1") * 2.0),
                            math.sqrt(self.get("mass2") * 2.0)]),
        )
