"""
Continuous-state integration for complexsim.

Contains:
- rk4_step / integrate / RK4Integrator: Generic fixed-step RK4
- ATTRACTORS: Descriptors of the 3-D chaotic attractors
- double_pendulum, nbody: Mechanical derivatives
"""

from .integrator import Derivative, rk4_step, integrate, RK4Integrator
from .systems import (
    OdeSystem, ATTRACTORS,
    lorenz, rossler, chen, aizawa, halvorsen, dadras, thomas,
    double_pendulum,
    GravityParams, gravity_accelerations, nbody, pack_bodies, unpack_bodies,
)

__all__ = [
    "Derivative",
    "rk4_step",
    "integrate",
    "RK4Integrator",
    "OdeSystem",
    "ATTRACTORS",
    "lorenz",
    "rossler",
    "chen",
    "aizawa",
    "halvorsen",
    "dadras",
    "thomas",
    "double_pendulum",
    "GravityParams",
    "gravity_accelerations",
    "nbody",
    "pack_bodies",
    "unpack_bodies",
]
