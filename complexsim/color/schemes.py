"""
Catalog of named gradients.

Each scheme is a list of evenly spaced RGB stops. Hand-tuned palettes
are stored as 0-255 triples; the perceptual maps are sampled from
matplotlib's colormap registry the first time they are used.
"""

from __future__ import annotations
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Tuple, Union
import numpy as np


class ColorScheme(Enum):
    """Named gradients available to every visual kernel."""
    CLASSIC = "classic"
    GRAYSCALE = "grayscale"
    FIRE = "fire"
    ICE = "ice"
    OCEAN = "ocean"
    RAINBOW = "rainbow"
    ULTRA = "ultra"
    ELECTRIC = "electric"
    SUNSET = "sunset"
    FOREST = "forest"
    NEON = "neon"
    PASTEL = "pastel"
    LAVA = "lava"
    AURORA = "aurora"
    TOXIC = "toxic"
    ROSE = "rose"
    MIDNIGHT = "midnight"
    # Sampled from matplotlib
    VIRIDIS = "viridis"
    PLASMA = "plasma"
    INFERNO = "inferno"
    MAGMA = "magma"
    CIVIDIS = "cividis"
    TWILIGHT = "twilight"
    TURBO = "turbo"
    CUBEHELIX = "cubehelix"
    COOLWARM = "coolwarm"
    SPECTRAL = "Spectral"
    COPPER = "copper"

    @classmethod
    def parse(cls, value: Union["ColorScheme", str]) -> "ColorScheme":
        """Accept a member, its value or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        lowered = str(value).lower()
        for member in cls:
            if member.value.lower() == lowered or member.name.lower() == lowered:
                return member
        raise ValueError(f"Unknown color scheme: {value}")


SCHEME_NAMES: Tuple[str, ...] = tuple(s.value for s in ColorScheme)


_HAND_STOPS: Dict[ColorScheme, List[Tuple[int, int, int]]] = {
    ColorScheme.CLASSIC: [
        (0, 0, 0), (0, 0, 128), (0, 96, 255), (255, 255, 255), (255, 200, 0), (128, 0, 0),
    ],
    ColorScheme.GRAYSCALE: [(0, 0, 0), (255, 255, 255)],
    ColorScheme.FIRE: [
        (0, 0, 0), (128, 0, 0), (255, 64, 0), (255, 192, 0), (255, 255, 160),
    ],
    ColorScheme.ICE: [
        (0, 0, 32), (0, 64, 128), (64, 160, 224), (192, 240, 255), (255, 255, 255),
    ],
    ColorScheme.OCEAN: [
        (0, 8, 32), (0, 48, 96), (0, 128, 160), (64, 208, 192), (224, 255, 240),
    ],
    ColorScheme.RAINBOW: [
        (255, 0, 0), (255, 128, 0), (255, 255, 0), (0, 255, 0),
        (0, 255, 255), (0, 0, 255), (128, 0, 255), (255, 0, 0),
    ],
    ColorScheme.ULTRA: [
        (0, 7, 100), (32, 107, 203), (237, 255, 255), (255, 170, 0), (0, 2, 0),
    ],
    ColorScheme.ELECTRIC: [
        (0, 0, 0), (48, 0, 128), (0, 128, 255), (0, 255, 255), (255, 255, 255),
    ],
    ColorScheme.SUNSET: [
        (32, 0, 64), (128, 0, 96), (224, 64, 64), (255, 160, 32), (255, 232, 128),
    ],
    ColorScheme.FOREST: [
        (8, 24, 8), (16, 72, 24), (48, 128, 40), (144, 192, 64), (232, 240, 176),
    ],
    ColorScheme.NEON: [
        (16, 0, 32), (255, 0, 160), (0, 255, 200), (255, 255, 0), (16, 0, 32),
    ],
    ColorScheme.PASTEL: [
        (255, 209, 220), (255, 236, 179), (200, 240, 200), (180, 220, 255), (230, 200, 255),
    ],
    ColorScheme.LAVA: [
        (16, 0, 0), (96, 8, 0), (200, 40, 0), (255, 120, 16), (255, 224, 96),
    ],
    ColorScheme.AURORA: [
        (4, 8, 32), (0, 96, 96), (32, 224, 128), (128, 64, 224), (240, 200, 255),
    ],
    ColorScheme.TOXIC: [
        (0, 16, 0), (32, 96, 0), (128, 224, 0), (224, 255, 64), (255, 255, 224),
    ],
    ColorScheme.ROSE: [
        (32, 0, 16), (128, 16, 64), (224, 64, 128), (255, 160, 192), (255, 232, 240),
    ],
    ColorScheme.MIDNIGHT: [
        (0, 0, 0), (8, 8, 48), (32, 32, 112), (96, 96, 192), (200, 200, 255),
    ],
}

# Stop count when sampling a matplotlib colormap
MPL_SAMPLES = 16


@lru_cache(maxsize=None)
def _sampled_stops(name: str) -> np.ndarray:
    import matplotlib
    cmap = matplotlib.colormaps[name]
    return np.asarray(cmap(np.linspace(0.0, 1.0, MPL_SAMPLES))[:, :3], dtype=np.float64)


def scheme_stops(scheme: Union[ColorScheme, str]) -> np.ndarray:
    """
    Gradient stops of a scheme as an (n, 3) float array in [0, 1].

    Args:
        scheme: ColorScheme member or name

    Returns:
        Read-only array of evenly spaced stops
    """
    return _stops_for(ColorScheme.parse(scheme))


@lru_cache(maxsize=None)
def _stops_for(scheme: ColorScheme) -> np.ndarray:
    if scheme in _HAND_STOPS:
        stops = np.array(_HAND_STOPS[scheme], dtype=np.float64) / 255.0
    else:
        stops = _sampled_stops(scheme.value).copy()
    stops.flags.writeable = False
    return stops
