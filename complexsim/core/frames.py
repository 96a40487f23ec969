"""
Value types exchanged between simulations and the host.

- Viewport: where a 2-D view is looking
- VectorFrame: point/segment output of 2-D vector systems
- Scene3D: point/segment output of 3-D systems
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple
import math
import numpy as np

from ..config import get_config
from .errors import DimensionError


@dataclass(frozen=True)
class Viewport:
    """
    Center, zoom and rotation of a 2-D view.

    Attributes:
        center_x: Real-axis center
        center_y: Imaginary-axis center
        zoom: Magnification (> 0); the visible height spans 4 / zoom
        rotation: Rotation about the center in radians
    """
    center_x: float = 0.0
    center_y: float = 0.0
    zoom: float = 1.0
    rotation: float = 0.0

    def __post_init__(self):
        if not (self.zoom > 0) or math.isinf(self.zoom):
            raise ValueError(f"Viewport zoom must be a finite positive number, got {self.zoom}")

    @property
    def span(self) -> float:
        """Height of the visible region in world units."""
        return 4.0 / self.zoom


def _empty(shape: Tuple[int, ...], dtype) -> np.ndarray:
    return np.zeros(shape, dtype=dtype)


@dataclass
class VectorFrame:
    """
    2-D vector output in pixel coordinates.

    Attributes:
        points: (N, 2) float positions
        segments: (M, 2, 2) line segments
        colors: (N, 3) uint8 point colors
        segment_colors: (M, 3) uint8 segment colors
        radii: (N,) point radii in pixels
    """
    points: np.ndarray = field(default_factory=lambda: _empty((0, 2), np.float64))
    segments: np.ndarray = field(default_factory=lambda: _empty((0, 2, 2), np.float64))
    colors: np.ndarray = field(default_factory=lambda: _empty((0, 3), np.uint8))
    segment_colors: np.ndarray = field(default_factory=lambda: _empty((0, 3), np.uint8))
    radii: np.ndarray = field(default_factory=lambda: _empty((0,), np.float64))


@dataclass
class Scene3D:
    """
    3-D output handed to the host's projection renderer.

    Attributes:
        points: (N, 3) positions
        segments: (M, 2, 3) polyline pieces
        colors: (N, 3) uint8 point colors
        segment_colors: (M, 3) uint8 segment colors
    """
    points: np.ndarray = field(default_factory=lambda: _empty((0, 3), np.float64))
    segments: np.ndarray = field(default_factory=lambda: _empty((0, 2, 3), np.float64))
    colors: np.ndarray = field(default_factory=lambda: _empty((0, 3), np.uint8))
    segment_colors: np.ndarray = field(default_factory=lambda: _empty((0, 3), np.uint8))

    @property
    def num_points(self) -> int:
        return len(self.points)


def polyline_segments(points: np.ndarray) -> np.ndarray:
    """Consecutive point pairs as (N-1, 2, D) segments."""
    if len(points) < 2:
        return np.zeros((0, 2, points.shape[1] if points.ndim == 2 else 3), dtype=np.float64)
    return np.stack([points[:-1], points[1:]], axis=1)


def check_render_shape(shape: Tuple[int, int]) -> Tuple[int, int]:
    """
    Validate an output (height, width) against the active limits.

    Raises:
        DimensionError: If either side is < 1 or above the configured maximum
    """
    height, width = int(shape[0]), int(shape[1])
    limits = get_config().limits
    if height < 1 or width < 1:
        raise DimensionError(f"Render shape must be positive, got {height}x{width}")
    if height > limits.max_render_height or width > limits.max_render_width:
        raise DimensionError(
            f"Render shape {height}x{width} exceeds limit "
            f"{limits.max_render_height}x{limits.max_render_width}"
        )
    return height, width


def check_grid_shape(height: int, width: int) -> Tuple[int, int]:
    """Validate grid dimensions against the active limits."""
    limits = get_config().limits
    if height < 1 or width < 1:
        raise DimensionError(f"Grid shape must be positive, got {height}x{width}")
    if height > limits.max_grid_height or width > limits.max_grid_width:
        raise DimensionError(
            f"Grid {height}x{width} exceeds limit "
            f"{limits.max_grid_height}x{limits.max_grid_width}"
        )
    return height, width
