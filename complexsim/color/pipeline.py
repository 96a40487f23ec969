"""
Scalar-to-RGB mapping shared by every visual kernel.

    t   = (value + offset + cycle_phase) mod 1
    rgb = lerp between the two stops enclosing t
    c8  = floor(c * 255 + 0.5)
    inverted: c8 -> 255 - c8

The pipeline is stateless: cycling is driven entirely by the caller's
phase, so two calls with the same arguments always agree.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np

from .schemes import ColorScheme, scheme_stops

RGB = Tuple[int, int, int]
SchemeLike = Union[ColorScheme, str]

# Values converted per pass; bounds the float64 temporaries of a large frame
CHUNK_SIZE = 1 << 18


def _resolve_chunk(values: np.ndarray, stops: np.ndarray, shift: float) -> np.ndarray:
    values = np.nan_to_num(values, nan=0.0, posinf=0.0, neginf=0.0)
    t = np.mod(values + shift, 1.0)

    n_seg = len(stops) - 1
    pos = t * n_seg
    idx = np.minimum(pos.astype(np.int64), n_seg - 1)
    frac = (pos - idx)[:, None]
    rgb = stops[idx] * (1.0 - frac) + stops[idx + 1] * frac
    return np.clip(np.floor(rgb * 255.0 + 0.5), 0, 255).astype(np.uint8)


def resolve_array(
    values: np.ndarray,
    scheme: SchemeLike,
    offset: float = 0.0,
    invert: bool = False,
    cycle_phase: float = 0.0,
) -> np.ndarray:
    """
    Map an array of scalars to RGB.

    Args:
        values: Array of any shape; NaN is treated as 0
        scheme: Gradient to sample
        offset: Constant shift added before wrapping
        invert: Complement each channel
        cycle_phase: Time-driven shift added before wrapping

    Returns:
        uint8 array of shape values.shape + (3,)
    """
    stops = scheme_stops(scheme)
    values = np.asarray(values, dtype=np.float64)
    out = np.empty(values.shape + (3,), dtype=np.uint8)
    flat_values = values.reshape(-1)
    flat_out = out.reshape(-1, 3)
    shift = offset + cycle_phase
    for start in range(0, flat_values.size, CHUNK_SIZE):
        stop = start + CHUNK_SIZE
        flat_out[start:stop] = _resolve_chunk(flat_values[start:stop], stops, shift)
    if invert:
        np.subtract(255, out, out=out)
    return out


def resolve(
    value: float,
    scheme: SchemeLike,
    offset: float = 0.0,
    invert: bool = False,
    cycle_phase: float = 0.0,
) -> RGB:
    """
    Map one scalar to an RGB triple.

    Example:
        >>> resolve(0.5, ColorScheme.GRAYSCALE)
        (128, 128, 128)
    """
    r, g, b = resolve_array(np.array([value]), scheme, offset, invert, cycle_phase)[0]
    return int(r), int(g), int(b)


def resolve_index(
    index: np.ndarray,
    count: int,
    scheme: SchemeLike,
    offset: float = 0.0,
    invert: bool = False,
    cycle_phase: float = 0.0,
) -> np.ndarray:
    """Color discrete states 0..count-1 by spreading them over the gradient."""
    count = max(int(count), 1)
    return resolve_array(np.asarray(index, dtype=np.float64) / count,
                         scheme, offset, invert, cycle_phase)


def interior_color(scheme: SchemeLike, invert: bool = False) -> RGB:
    """Color for points that never escape: the scheme's first stop."""
    first = scheme_stops(scheme)[0]
    c = np.clip(np.floor(first * 255.0 + 0.5), 0, 255).astype(np.uint8)
    if invert:
        c = 255 - c
    return int(c[0]), int(c[1]), int(c[2])


@dataclass
class ColorPipeline:
    """
    Scheme, offset and invert bundled for repeated use by one kernel.

    Example:
        pipeline = ColorPipeline(ColorScheme.FIRE, offset=0.25)
        rgb = pipeline.apply(values, cycle_phase=0.1)
    """
    scheme: ColorScheme = ColorScheme.CLASSIC
    offset: float = 0.0
    invert: bool = False

    def __post_init__(self):
        self.scheme = ColorScheme.parse(self.scheme)

    def resolve(self, value: float, cycle_phase: float = 0.0) -> RGB:
        return resolve(value, self.scheme, self.offset, self.invert, cycle_phase)

    def apply(self, values: np.ndarray, cycle_phase: float = 0.0) -> np.ndarray:
        return resolve_array(values, self.scheme, self.offset, self.invert, cycle_phase)

    def apply_states(self, states: np.ndarray, count: int, cycle_phase: float = 0.0) -> np.ndarray:
        return resolve_index(states, count, self.scheme, self.offset, self.invert, cycle_phase)

    @property
    def interior(self) -> RGB:
        return interior_color(self.scheme, self.invert)
