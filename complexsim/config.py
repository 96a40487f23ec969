"""
Configuration module for the complexsim core.

Holds the upper bounds that every kernel checks before allocating a
buffer, plus a few switches for the numerical kernels. The active
configuration is module-level state read at call time, so a host can
swap it between frames with set_config().
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class RenderLimits:
    """Upper bounds validated before any allocation."""
    max_render_width: int = 4096
    max_render_height: int = 4096

    # Grid automata
    max_grid_width: int = 400
    max_grid_height: int = 300

    # Fractal kernel
    max_iterations: int = 1000

    # Trails and particle systems
    max_trail_capacity: int = 10000
    max_bodies: int = 500
    max_particles: int = 10000


@dataclass
class KernelParams:
    """Switches for the numerical kernels."""
    parallel: bool = True               # prange over rows / walkers
    precision_epsilon: float = 1e-15    # Relative pixel spacing considered degenerate


@dataclass
class CoreConfig:
    """
    Main configuration container for the simulation core.

    Example:
        config = CoreConfig()
        config.limits.max_grid_width = 200
        set_config(config)
    """
    limits: RenderLimits = field(default_factory=RenderLimits)
    kernel: KernelParams = field(default_factory=KernelParams)

    def validate(self) -> List[str]:
        """Validate configuration, return list of warnings/errors."""
        issues = []
        lim = self.limits

        if lim.max_render_width < 1 or lim.max_render_height < 1:
            issues.append("render limits must be at least 1x1")
        if lim.max_render_width * lim.max_render_height > 2**24:
            issues.append("render limits above 2^24 pixels may cause memory issues")

        if lim.max_grid_width < 3 or lim.max_grid_height < 3:
            issues.append("grid limits must be at least 3x3")

        if lim.max_iterations < 0:
            issues.append("max_iterations must be non-negative")
        if lim.max_trail_capacity < 1:
            issues.append("max_trail_capacity must be at least 1")
        if lim.max_bodies < 1:
            issues.append("max_bodies must be at least 1")
        if lim.max_particles < 1:
            issues.append("max_particles must be at least 1")

        if not 0 < self.kernel.precision_epsilon < 1e-6:
            issues.append("precision_epsilon should be in (0, 1e-6)")

        return issues


# Preset configurations
def default_config() -> CoreConfig:
    """Configuration matching the interactive application limits."""
    return CoreConfig()


def test_config() -> CoreConfig:
    """Serial kernels and small limits for quick testing."""
    return CoreConfig(
        limits=RenderLimits(
            max_render_width=512,
            max_render_height=512,
            max_grid_width=128,
            max_grid_height=128,
            max_trail_capacity=2000,
            max_bodies=64,
            max_particles=2000,
        ),
        kernel=KernelParams(parallel=False),
    )


_active = default_config()


def get_config() -> CoreConfig:
    """Return the active configuration."""
    return _active


def set_config(config: CoreConfig) -> None:
    """
    Replace the active configuration.

    Raises:
        ValueError: If the configuration does not validate
    """
    global _active
    issues = config.validate()
    if issues:
        raise ValueError("; ".join(issues))
    _active = config
