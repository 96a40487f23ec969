"""
Concrete simulations for complexsim.

Contains:
- Fractals: Mandelbrot, Julia, BurningShip
- Automata: GameOfLife, ElementaryCA, LangtonsAnt, CyclicCA, Sandpile,
  DiffusionLimitedAggregation
- Attractors: Lorenz, Rössler, Chen, Aizawa, Halvorsen, Dadras, Thomas
- Particles: ParticleLorenz (swarm of short-lived particles)
- Mechanics: DoublePendulum, NBodyGravity
- SIMULATIONS / create_simulation: Registry by key
"""

from typing import Any, Dict, List, Optional, Type

from ..core.simulation import Parameterized
from .base import GridSimulation, upscale, grid_pixel_indices
from .fractals import FractalSimulation, Mandelbrot, Julia, BurningShip
from .automata import (
    GameOfLife, ElementaryCA, LangtonsAnt, CyclicCA, Sandpile,
    DiffusionLimitedAggregation,
)
from .attractors import (
    AttractorSimulation, LorenzAttractor, RosslerAttractor, ChenAttractor,
    AizawaAttractor, HalvorsenAttractor, DadrasAttractor, ThomasAttractor,
)
from .pendulum import DoublePendulum
from .nbody import NBodyGravity
from .particles import ParticleSwarm, ParticleLorenz

SIMULATIONS: Dict[str, Type[Parameterized]] = {
    # 2-D raster
    "mandelbrot": Mandelbrot,
    "julia": Julia,
    "burning_ship": BurningShip,
    "game_of_life": GameOfLife,
    "elementary": ElementaryCA,
    "langtons_ant": LangtonsAnt,
    "cyclic": CyclicCA,
    "sandpile": Sandpile,
    "dla": DiffusionLimitedAggregation,
    # 2-D vector
    "double_pendulum": DoublePendulum,
    # 3-D
    "lorenz": LorenzAttractor,
    "rossler": RosslerAttractor,
    "chen": ChenAttractor,
    "aizawa": AizawaAttractor,
    "halvorsen": HalvorsenAttractor,
    "dadras": DadrasAttractor,
    "thomas": ThomasAttractor,
    "particle_attractor": ParticleLorenz,
    "nbody": NBodyGravity,
}


def list_simulations() -> List[str]:
    return list(SIMULATIONS)


def create_simulation(key: str, seed: Optional[int] = None, **overrides: Any) -> Parameterized:
    """
    Instantiate a simulation by key.

    Args:
        key: Registry key (see SIMULATIONS)
        seed: Seed for the simulation's random generator (None = DEFAULT_SEED)
        **overrides: Parameter values applied with set() after construction

    Raises:
        KeyError: If key is unknown
    """
    try:
        cls = SIMULATIONS[key]
    except KeyError:
        raise KeyError(f"Unknown simulation: {key}. Available: {', '.join(SIMULATIONS)}") from None
    sim = cls(seed=seed)
    for name, value in overrides.items():
        sim.set(name, value)
    return sim


__all__ = [
    "SIMULATIONS",
    "list_simulations",
    "create_simulation",
    "GridSimulation",
    "upscale",
    "grid_pixel_indices",
    "FractalSimulation",
    "Mandelbrot",
    "Julia",
    "BurningShip",
    "GameOfLife",
    "ElementaryCA",
    "LangtonsAnt",
    "CyclicCA",
    "Sandpile",
    "DiffusionLimitedAggregation",
    "AttractorSimulation",
    "LorenzAttractor",
    "RosslerAttractor",
    "ChenAttractor",
    "AizawaAttractor",
    "HalvorsenAttractor",
    "DadrasAttractor",
    "ThomasAttractor",
    "DoublePendulum",
    "NBodyGravity",
    "ParticleSwarm",
    "ParticleLorenz",
]
