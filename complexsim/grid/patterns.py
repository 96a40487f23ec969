"""
Seed patterns for grid automata.

Life patterns are (x, y) offsets from the pattern's top-left corner.
Seeders for the other rule families return fresh cell arrays.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import math
import numpy as np

Coords = List[Tuple[int, int]]


GLIDER: Coords = [(1, 0), (2, 1), (0, 2), (1, 2), (2, 2)]

LWSS: Coords = [(1, 0), (4, 0), (0, 1), (0, 2), (4, 2), (0, 3), (1, 3), (2, 3), (3, 3)]

ACORN: Coords = [(1, 0), (3, 1), (0, 2), (1, 2), (4, 2), (5, 2), (6, 2)]

GLIDER_GUN: Coords = [
    (1, 5), (1, 6), (2, 5), (2, 6),
    (11, 5), (11, 6), (11, 7), (12, 4), (12, 8), (13, 3), (13, 9), (14, 3), (14, 9),
    (15, 6), (16, 4), (16, 8), (17, 5), (17, 6), (17, 7), (18, 6),
    (21, 3), (21, 4), (21, 5), (22, 3), (22, 4), (22, 5), (23, 2), (23, 6),
    (25, 1), (25, 2), (25, 6), (25, 7),
    (35, 3), (35, 4), (36, 3), (36, 4),
]

PENTADECATHLON: Coords = [
    (2, 0), (7, 0),
    (0, 1), (1, 1), (3, 1), (4, 1), (5, 1), (6, 1), (8, 1), (9, 1),
    (2, 2), (7, 2),
]


def _pulsar() -> Coords:
    # One quadrant mirrored four ways
    quadrant = [(2, 0), (3, 0), (4, 0), (0, 2), (0, 3), (0, 4), (5, 2), (5, 3), (5, 4), (2, 5), (3, 5), (4, 5)]
    cells = set()
    for x, y in quadrant:
        for mx, my in ((x, y), (12 - x, y), (x, 12 - y), (12 - x, 12 - y)):
            cells.add((mx, my))
    return sorted(cells)


PULSAR: Coords = _pulsar()

LIFE_PATTERNS: Dict[str, Coords] = {
    "glider": GLIDER,
    "glider_gun": GLIDER_GUN,
    "pulsar": PULSAR,
    "pentadecathlon": PENTADECATHLON,
    "lwss": LWSS,
    "acorn": ACORN,
}


def pattern_size(coords: Sequence[Tuple[int, int]]) -> Tuple[int, int]:
    """(width, height) of a pattern's bounding box."""
    if not coords:
        return 0, 0
    xs, ys = zip(*coords)
    return max(xs) + 1, max(ys) + 1


def place_pattern(cells: np.ndarray, coords: Sequence[Tuple[int, int]],
                  x0: int, y0: int, value: int = 1) -> np.ndarray:
    """
    Copy of cells with the pattern stamped at (x0, y0), wrapping at the edges.
    """
    out = np.array(cells, dtype=np.int32)
    h, w = out.shape
    for dx, dy in coords:
        out[(y0 + dy) % h, (x0 + dx) % w] = value
    return out


def centered_pattern(shape: Tuple[int, int], name: str) -> np.ndarray:
    """Fresh grid with a named Life pattern in the middle (the gun sits near the top-left)."""
    try:
        coords = LIFE_PATTERNS[name]
    except KeyError:
        raise ValueError(f"Unknown pattern: {name}") from None
    h, w = shape
    if name == "glider_gun":
        x0, y0 = min(10, w // 8), min(10, h // 8)
    else:
        pw, ph = pattern_size(coords)
        x0, y0 = (w - pw) // 2, (h - ph) // 2
    return place_pattern(np.zeros(shape, dtype=np.int32), coords, x0, y0)


def random_soup(shape: Tuple[int, int], rng: np.random.Generator,
                density: float = 1.0 / 3.0) -> np.ndarray:
    return (rng.random(shape) < density).astype(np.int32)


# ===== Elementary automata =====

def elementary_seed(width: int, height: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Grid with only the first row set: one center cell, or random when rng is given."""
    cells = np.zeros((height, width), dtype=np.int32)
    if rng is None:
        cells[0, width // 2] = 1
    else:
        cells[0] = rng.integers(0, 2, size=width)
    return cells


# ===== Cyclic automata =====

def cyclic_seed(shape: Tuple[int, int], num_states: int, mode: str,
                rng: np.random.Generator) -> np.ndarray:
    """
    Initial states for a cyclic automaton.

    Modes: "random", "spiral", "stripes", "corners".
    """
    h, w = shape
    yy, xx = np.mgrid[0:h, 0:w]
    if mode == "random":
        return rng.integers(0, num_states, size=shape).astype(np.int32)
    if mode == "spiral":
        angle = np.arctan2(yy - h / 2.0, xx - w / 2.0)
        radius = np.hypot(yy - h / 2.0, xx - w / 2.0)
        phase = (angle / (2 * math.pi) + radius / 20.0) % 1.0
        return (phase * num_states).astype(np.int32) % num_states
    if mode == "stripes":
        return ((xx + yy) // 4 % num_states).astype(np.int32)
    if mode == "corners":
        cells = rng.integers(0, num_states, size=shape).astype(np.int32)
        qh, qw = max(h // 4, 1), max(w // 4, 1)
        cells[:qh, :qw] = 0
        cells[:qh, -qw:] = num_states // 4
        cells[-qh:, :qw] = num_states // 2
        cells[-qh:, -qw:] = (3 * num_states) // 4
        return cells
    raise ValueError(f"Unknown cyclic seed mode: {mode}")


# ===== Aggregation =====

def aggregation_seed(shape: Tuple[int, int], mode: str) -> np.ndarray:
    """
    Initial cluster for diffusion-limited aggregation.

    Modes: "point", "line", "cross", "circle".
    """
    h, w = shape
    cells = np.zeros(shape, dtype=np.int32)
    cx, cy = w // 2, h // 2
    if mode == "point":
        cells[cy, cx] = 1
    elif mode == "line":
        half = min(20, w // 2 - 1)
        cells[cy, cx - half:cx + half] = 1
    elif mode == "cross":
        arm = min(10, cx - 1, cy - 1)
        cells[cy, cx - arm:cx + arm + 1] = 1
        cells[cy - arm:cy + arm + 1, cx] = 1
    elif mode == "circle":
        radius = min(15.0, min(h, w) / 2.0 - 1)
        angles = np.radians(np.arange(360))
        xs = (w / 2.0 + radius * np.cos(angles)).astype(int)
        ys = (h / 2.0 + radius * np.sin(angles)).astype(int)
        ok = (xs >= 0) & (xs < w) & (ys >= 0) & (ys < h)
        cells[ys[ok], xs[ok]] = 1
    else:
        raise ValueError(f"Unknown aggregation seed: {mode}")
    return cells
