"""
Escape-time fractals for complexsim.

Contains:
- FractalKernel: Parallel escape-time renderer with precision-ceiling detection
- FractalParams / FractalVariant: Iteration settings
- FractalSamples: Per-pixel escape data
"""

from .kernel import (
    FractalVariant, FractalParams, FractalSamples, FractalKernel,
    compute_samples, sample_point, colorize, pixel_coordinates, precision_exceeded,
)

__all__ = [
    "FractalVariant",
    "FractalParams",
    "FractalSamples",
    "FractalKernel",
    "compute_samples",
    "sample_point",
    "colorize",
    "pixel_coordinates",
    "precision_exceeded",
]
