"""
Capability interfaces shared by every simulation.

A host loop only needs three things from a simulation:
- Parameterized: enumerate / set / reset over an ordered ParameterSet
- Steppable2D: step(amount) and render(viewport, shape) -> pixels or vectors
- Steppable3D: step(dt) and render() -> Scene3D

Concrete systems implement one of the Steppable interfaces; there is
no deeper hierarchy than that.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union
import logging
import numpy as np

from .parameters import ParameterInfo, ParameterSet
from .frames import Viewport, VectorFrame, Scene3D

logger = logging.getLogger(__name__)

Frame2D = Union[np.ndarray, VectorFrame]

# Seed used when the host passes none
DEFAULT_SEED = 0


class Parameterized(ABC):
    """
    Object with a bounded, ordered parameter schema and a resettable state.

    Subclasses declare their schema by passing a ParameterSet and
    implement _reset_state(). Writes that change a value are forwarded
    to _on_change() so structural parameters can flag a rebuild.

    Args:
        parameters: Schema with defaults
        seed: Seed for the simulation's random generator (None = DEFAULT_SEED)
    """

    key: str = ""
    title: str = ""

    def __init__(self, parameters: ParameterSet, seed: Optional[int] = None):
        self.params = parameters
        self.seed = DEFAULT_SEED if seed is None else int(seed)
        self.rng = np.random.default_rng(self.seed)

    def enumerate(self) -> List[ParameterInfo]:
        """Ordered schema with current values."""
        return self.params.enumerate()

    def get(self, name: str) -> Any:
        return self.params.get(name)

    def set(self, name: str, value: Any) -> Any:
        """
        Write a parameter; out-of-range values are clamped.

        Returns:
            The value actually stored
        """
        old = self.params.get(name)
        new = self.params.set(name, value)
        if new != old:
            self._on_change(name, new)
        return new

    def values(self) -> Dict[str, Any]:
        return self.params.as_dict()

    def reset(self) -> None:
        """Restore defaults and clear all dynamic state, including the RNG."""
        self.params.reset()
        self.rng = np.random.default_rng(self.seed)
        self._reset_state()

    def _on_change(self, name: str, value: Any) -> None:
        """Hook called after a write changed a value."""

    @abstractmethod
    def _reset_state(self) -> None:
        """Rebuild dynamic state from the current parameter values."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"


class Steppable2D(Parameterized):
    """Simulation rendered onto a 2-D canvas."""

    @abstractmethod
    def step(self, amount: float = 1.0) -> None:
        """
        Advance the simulation.

        Args:
            amount: Time delta for continuous systems, generation count
                for discrete ones
        """

    @abstractmethod
    def render(self, viewport: Optional[Viewport] = None,
               shape: Tuple[int, int] = (480, 640)) -> Frame2D:
        """
        Produce the current frame.

        Args:
            viewport: View to render; systems with their own view
                parameters use those when None
            shape: Output (height, width) in pixels

        Returns:
            (height, width, 3) uint8 array or a VectorFrame
        """


class Steppable3D(Parameterized):
    """Simulation producing 3-D geometry for an external projector."""

    @abstractmethod
    def step(self, dt: float) -> None:
        """Advance by dt (scaled internally by the system's speed)."""

    @abstractmethod
    def render(self) -> Scene3D:
        """Current points and trail segments."""
