"""
Escape-time fractal kernel.

Iterates z_{n+1} = f(z_n)^p + c per pixel:
- Mandelbrot: z_0 = 0, c = pixel
- Julia: z_0 = pixel, c fixed
- Burning Ship: Mandelbrot seeding, f(z) = |Re z| + i|Im z|

The escape test runs before each iteration, so a pixel whose seed is
already outside the escape radius reports n = 0. Non-finite magnitudes
count as escaped. Rows are independent and computed with numba's prange;
the serial and parallel builds share one implementation, so partitioning
never changes the result.

Pixel mapping:
    span = 4 / zoom
    re = cx + (x / w - 0.5) * span * (w / h)
    im = cy + (y / h - 0.5) * span
rotated about (cx, cy) by the viewport rotation.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple
import logging
import math
import numpy as np
from numba import njit, prange

from ..config import get_config
from ..core.errors import PrecisionLimit
from ..core.frames import Viewport, check_render_shape
from ..color.pipeline import ColorPipeline

logger = logging.getLogger(__name__)


class FractalVariant(IntEnum):
    """Iteration family; values are the codes passed to the compiled kernel."""
    MANDELBROT = 0
    JULIA = 1
    BURNING_SHIP = 2


@dataclass
class FractalParams:
    """
    Iteration settings for one render.

    Attributes:
        variant: Iteration family
        power: Integer exponent p (>= 2 in practice; 1 is accepted)
        escape_radius: Bailout radius R
        max_iterations: Iteration cap (0 marks every pixel escaped)
        julia_c: Fixed parameter for the Julia family
        smooth: Continuous coloring value instead of raw counts
    """
    variant: FractalVariant = FractalVariant.MANDELBROT
    power: int = 2
    escape_radius: float = 2.0
    max_iterations: int = 100
    julia_c: complex = complex(-0.7, 0.27015)
    smooth: bool = True

    def validate(self) -> None:
        """
        Raises:
            ValueError: For settings the kernel cannot evaluate
        """
        if int(self.power) != self.power or self.power < 1:
            raise ValueError(f"power must be a positive integer, got {self.power}")
        if not self.escape_radius > 0:
            raise ValueError(f"escape_radius must be positive, got {self.escape_radius}")
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative")
        limit = get_config().limits.max_iterations
        if self.max_iterations > limit:
            raise ValueError(f"max_iterations {self.max_iterations} exceeds limit {limit}")


@dataclass
class FractalSamples:
    """
    Per-pixel escape data.

    Attributes:
        escaped: (H, W) bool
        iterations: (H, W) int32, at most the cap
        smooth: (H, W) float64 continuous value (equals iterations
            for interior pixels or when smoothing is off)
    """
    escaped: np.ndarray
    iterations: np.ndarray
    smooth: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.escaped.shape

    def escaped_fraction(self) -> float:
        return float(self.escaped.mean()) if self.escaped.size else 0.0


# ===== Compiled kernels =====

@njit(cache=True)
def _escape_point(zr, zi, cr, ci, burning, power, r2, max_iter, smooth, log_p):
    if max_iter == 0:
        return True, 0, 0.0

    n = 0
    escaped = False
    nsq = zr * zr + zi * zi
    while True:
        nsq = zr * zr + zi * zi
        if not (nsq <= r2):
            escaped = True
            break
        if n >= max_iter:
            break
        if burning:
            zr = abs(zr)
            zi = abs(zi)
        pr = zr
        pi = zi
        for _ in range(power - 1):
            tr = pr * zr - pi * zi
            pi = pr * zi + pi * zr
            pr = tr
        zr = pr + cr
        zi = pi + ci
        n += 1

    mu = float(n)
    if escaped and smooth and log_p > 0.0:
        mag = math.sqrt(nsq)
        if not (math.isinf(mag) or math.isnan(mag)) and mag > 1.0:
            ll = math.log(mag)
            if ll > 0.0:
                mu = n + 1.0 - math.log(ll) / log_p
    return escaped, n, mu


def _escape_rows(height, width, cx, cy, span, cos_r, sin_r, variant,
                 jr, ji, power, r2, max_iter, smooth,
                 out_escaped, out_iter, out_mu):
    aspect = width / height
    log_p = math.log(power) if power > 1 else 0.0
    burning = variant == 2
    for y in prange(height):
        dy = (y / height - 0.5) * span
        for x in range(width):
            dx = (x / width - 0.5) * span * aspect
            pr = cx + dx * cos_r - dy * sin_r
            pi = cy + dx * sin_r + dy * cos_r
            if variant == 1:
                zr, zi, cr, ci = pr, pi, jr, ji
            else:
                zr, zi, cr, ci = 0.0, 0.0, pr, pi
            esc, n, mu = _escape_point(zr, zi, cr, ci, burning, power,
                                       r2, max_iter, smooth, log_p)
            out_escaped[y, x] = esc
            out_iter[y, x] = n
            out_mu[y, x] = mu


_escape_rows_parallel = njit(parallel=True, cache=True)(_escape_rows)
# Separate dispatcher over the same source; not cached to keep one cache entry per function
_escape_rows_serial = njit(_escape_rows)


# ===== Host-side API =====

def pixel_coordinates(shape: Tuple[int, int], viewport: Viewport) -> Tuple[np.ndarray, np.ndarray]:
    """
    World coordinates of every pixel, matching the compiled mapping.

    Returns:
        (re, im) arrays of shape (H, W)
    """
    height, width = shape
    span = viewport.span
    ys = (np.arange(height) / height - 0.5) * span
    xs = (np.arange(width) / width - 0.5) * span * (width / height)
    dx, dy = np.meshgrid(xs, ys)
    c, s = math.cos(viewport.rotation), math.sin(viewport.rotation)
    return viewport.center_x + dx * c - dy * s, viewport.center_y + dx * s + dy * c


def precision_exceeded(shape: Tuple[int, int], viewport: Viewport,
                       epsilon: Optional[float] = None) -> bool:
    """True when pixel spacing is below what float64 resolves around the center."""
    if epsilon is None:
        epsilon = get_config().kernel.precision_epsilon
    spacing = viewport.span / shape[0]
    scale = max(1.0, abs(viewport.center_x), abs(viewport.center_y))
    return spacing < epsilon * scale


def compute_samples(shape: Tuple[int, int], viewport: Viewport, params: FractalParams,
                    parallel: Optional[bool] = None) -> FractalSamples:
    """
    Evaluate the escape-time map over a pixel grid.

    Args:
        shape: Output (height, width)
        viewport: View to sample
        params: Iteration settings
        parallel: Override the configured prange switch

    Returns:
        FractalSamples for every pixel

    Raises:
        DimensionError: If shape exceeds the configured render limits
        ValueError: If params are invalid
    """
    height, width = check_render_shape(shape)
    params.validate()
    if parallel is None:
        parallel = get_config().kernel.parallel

    escaped = np.zeros((height, width), dtype=np.bool_)
    iterations = np.zeros((height, width), dtype=np.int32)
    smooth = np.zeros((height, width), dtype=np.float64)

    kernel = _escape_rows_parallel if parallel else _escape_rows_serial
    kernel(height, width,
           float(viewport.center_x), float(viewport.center_y), float(viewport.span),
           math.cos(viewport.rotation), math.sin(viewport.rotation),
           int(params.variant),
           float(params.julia_c.real), float(params.julia_c.imag),
           int(params.power), float(params.escape_radius) ** 2,
           int(params.max_iterations), bool(params.smooth),
           escaped, iterations, smooth)
    return FractalSamples(escaped, iterations, smooth)


def sample_point(x: float, y: float, params: FractalParams) -> Tuple[bool, int, float]:
    """
    Escape data for a single point of the plane.

    Returns:
        (escaped, iterations, smooth value)
    """
    params.validate()
    if params.variant == FractalVariant.JULIA:
        zr, zi, cr, ci = x, y, params.julia_c.real, params.julia_c.imag
    else:
        zr, zi, cr, ci = 0.0, 0.0, x, y
    log_p = math.log(params.power) if params.power > 1 else 0.0
    esc, n, mu = _escape_point(float(zr), float(zi), float(cr), float(ci),
                               params.variant == FractalVariant.BURNING_SHIP,
                               int(params.power), float(params.escape_radius) ** 2,
                               int(params.max_iterations), bool(params.smooth), log_p)
    return bool(esc), int(n), float(mu)


def colorize(samples: FractalSamples, max_iterations: int, pipeline: ColorPipeline,
             cycle_phase: float = 0.0) -> np.ndarray:
    """
    Turn samples into an RGB buffer.

    Escaped pixels map mu / max_iterations (clamped into [0, 1)) through
    the pipeline; interior pixels get the pipeline's interior color.
    """
    t = samples.smooth / max(int(max_iterations), 1)
    t = np.clip(t, 0.0, np.nextafter(1.0, 0.0))
    rgb = pipeline.apply(t, cycle_phase)
    rgb[~samples.escaped] = pipeline.interior
    return rgb


class FractalKernel:
    """
    Renderer that remembers whether the precision ceiling was reported.

    Example:
        kernel = FractalKernel()
        rgb = kernel.render((480, 640), Viewport(-0.5, 0.0, 1.0),
                            FractalParams(), ColorPipeline())
    """

    def __init__(self, parallel: Optional[bool] = None):
        self.parallel = parallel
        self._precision_warned = False

    def sample(self, shape: Tuple[int, int], viewport: Viewport,
               params: FractalParams) -> FractalSamples:
        self._check_precision(shape, viewport)
        return compute_samples(shape, viewport, params, self.parallel)

    def render(self, shape: Tuple[int, int], viewport: Viewport, params: FractalParams,
               pipeline: ColorPipeline, cycle_phase: float = 0.0) -> np.ndarray:
        samples = self.sample(shape, viewport, params)
        return colorize(samples, params.max_iterations, pipeline, cycle_phase)

    def _check_precision(self, shape: Tuple[int, int], viewport: Viewport) -> None:
        if precision_exceeded(shape, viewport):
            if not self._precision_warned:
                logger.warning(
                    f"{PrecisionLimit.__name__}: zoom {viewport.zoom:.3g} at "
                    f"({viewport.center_x:.6g}, {viewport.center_y:.6g}) is beyond "
                    f"float64 resolution, output will be blocky"
                )
                self._precision_warned = True
        else:
            self._precision_warned = False
