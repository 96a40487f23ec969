"""
Shared machinery for raster grid simulations.

GridSimulation owns a GridState and a GridAutomaton holding the rule
built from its parameters and the threaded rng state. Subclasses provide:
- build_rule(): rule for the current parameter values
- initial_state(height, width): seed snapshot
- colorize(): (H, W, 3) uint8 image of the grid

Parameters listed in `structural` (dimensions, seed patterns) rebuild
the grid at the next step; all others only rebuild the rule.
"""

from __future__ import annotations
from abc import abstractmethod
from typing import Any, FrozenSet, Optional, Tuple
import logging
import math
import numpy as np

from ..core.frames import Viewport, check_grid_shape, check_render_shape
from ..core.parameters import ParameterSet
from ..core.simulation import Steppable2D
from ..color.pipeline import ColorPipeline
from ..grid.automaton import GridAutomaton, RNG_STATE_BOUND
from ..grid.rules import GridRule
from ..grid.state import GridState

logger = logging.getLogger(__name__)


def grid_pixel_indices(grid_shape: Tuple[int, int], shape: Tuple[int, int],
                       viewport: Optional[Viewport] = None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Nearest-neighbor cell index for every output row and column.

    The viewport is read in cell units: center offsets from the grid
    center, zoom magnifies. Indices wrap around the grid.
    """
    gh, gw = grid_shape
    h, w = shape
    zoom = viewport.zoom if viewport is not None else 1.0
    cx = viewport.center_x if viewport is not None else 0.0
    cy = viewport.center_y if viewport is not None else 0.0
    cols = np.floor(((np.arange(w) + 0.5) / w - 0.5) * gw / zoom + gw / 2.0 + cx).astype(np.int64) % gw
    rows = np.floor(((np.arange(h) + 0.5) / h - 0.5) * gh / zoom + gh / 2.0 + cy).astype(np.int64) % gh
    return rows, cols


def upscale(image: np.ndarray, shape: Tuple[int, int],
            viewport: Optional[Viewport] = None) -> np.ndarray:
    """Resample a (gh, gw, 3) image to shape with nearest-neighbor lookup."""
    rows, cols = grid_pixel_indices(image.shape[:2], shape, viewport)
    return image[rows[:, None], cols[None, :]]


class GridSimulation(Steppable2D):
    """
    Base for simulations driven by a grid rule.

    step(amount) runs round(amount * speed) generations, carrying any
    fractional remainder to the next call.
    """

    structural: FrozenSet[str] = frozenset({"grid_width", "grid_height"})

    def __init__(self, parameters: ParameterSet, seed: Optional[int] = None):
        super().__init__(parameters, seed)
        self.state: GridState = None
        self.automaton: GridAutomaton = None
        self._rebuild = False
        self._pending = 0.0
        self._reset_state()

    # ----- hooks -----

    @abstractmethod
    def build_rule(self) -> GridRule:
        """Rule for the current parameter values."""

    @abstractmethod
    def initial_state(self, height: int, width: int) -> GridState:
        """Seed snapshot; may draw from self.rng."""

    @abstractmethod
    def colorize(self) -> np.ndarray:
        """(H, W, 3) uint8 image of the current grid."""

    # ----- lifecycle -----

    def _reset_state(self) -> None:
        height, width = check_grid_shape(int(self.get("grid_height")), int(self.get("grid_width")))
        self.automaton = GridAutomaton(self.build_rule(), int(self.rng.integers(0, RNG_STATE_BOUND)))
        self.state = self.initial_state(height, width)
        self._rebuild = False
        self._pending = 0.0

    def _on_change(self, name: str, value: Any) -> None:
        if name in self.structural:
            self._rebuild = True
        else:
            self.automaton.rule = self.build_rule()

    def pipeline(self) -> ColorPipeline:
        params = self.params
        return ColorPipeline(
            params["color_scheme"] if "color_scheme" in params else "grayscale",
            params["color_offset"] if "color_offset" in params else 0.0,
            params["invert"] if "invert" in params else False,
        )

    # ----- Steppable2D -----

    @property
    def generation(self) -> int:
        return self.state.generation

    @property
    def rule(self) -> GridRule:
        return self.automaton.rule

    @property
    def rng_state(self) -> int:
        return self.automaton.rng_state

    def generations_for(self, amount: float) -> int:
        speed = float(self.get("speed")) if "speed" in self.params else 1.0
        self._pending += max(float(amount), 0.0) * speed
        count = int(math.floor(self._pending + 1e-9))
        self._pending = max(self._pending - count, 0.0)
        return count

    def step(self, amount: float = 1.0) -> None:
        if self._rebuild:
            logger.info(f"{self.key}: rebuilding grid "
                        f"{self.get('grid_width')}x{self.get('grid_height')}")
            self._reset_state()
        self.state = self.automaton.advance(self.state, self.generations_for(amount))

    def render(self, viewport: Optional[Viewport] = None,
               shape: Optional[Tuple[int, int]] = (480, 640)) -> np.ndarray:
        image = self.colorize()
        if shape is None:
            return image
        return upscale(image, check_render_shape(shape), viewport)
