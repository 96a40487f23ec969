"""
Derivative functions and descriptors for continuous-state systems.

Every derivative has the signature f(state, params) -> np.ndarray and is
pure, so it can be handed to rk4_step directly. The attractor derivatives
only unpack rows and combine them elementwise, so a (3, N) array of N
points integrates the whole batch in one call.

Chaotic attractors (3-D state):
    lorenz     dx = s(y - x)           dy = x(r - z) - y         dz = xy - bz
    rossler    dx = -y - z             dy = x + ay               dz = b + z(x - c)
    chen       dx = ax - yz            dy = by + xz              dz = cz + xy/3
    aizawa     dx = (z - b)x - dy      dy = dx + (z - b)y        dz = c + az - z^3/3 - (x^2 + y^2)(1 + ez) + fzx^3
    halvorsen  dx = -ax - 4y - 4z - y^2 (cyclic in x, y, z)
    dadras     dx = y - ax + byz       dy = cy - xz + z          dz = dxy - ez
    thomas     dx = -bx + sin y        (cyclic in x, y, z)

Mechanical systems:
    double_pendulum  4-D (angle1, angle2, omega1, omega2)
    nbody            6N-D (positions, velocities), softened gravity
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, NamedTuple, Tuple
import numpy as np

from ..core.parameters import Parameter, float_param


# ===== Attractors =====

def lorenz(s: np.ndarray, p) -> np.ndarray:
    sigma, rho, beta = p
    x, y, z = s
    return np.array([sigma * (y - x), x * (rho - z) - y, x * y - beta * z])


def rossler(s: np.ndarray, p) -> np.ndarray:
    a, b, c = p
    x, y, z = s
    return np.array([-y - z, x + a * y, b + z * (x - c)])


def chen(s: np.ndarray, p) -> np.ndarray:
    a, b, c = p
    x, y, z = s
    return np.array([a * x - y * z, b * y + x * z, c * z + x * y / 3.0])


def aizawa(s: np.ndarray, p) -> np.ndarray:
    a, b, c, d, e, f = p
    x, y, z = s
    return np.array([
        (z - b) * x - d * y,
        d * x + (z - b) * y,
        c + a * z - z ** 3 / 3.0 - (x * x + y * y) * (1.0 + e * z) + f * z * x ** 3,
    ])


def halvorsen(s: np.ndarray, p) -> np.ndarray:
    (a,) = p
    x, y, z = s
    return np.array([
        -a * x - 4.0 * y - 4.0 * z - y * y,
        -a * y - 4.0 * z - 4.0 * x - z * z,
        -a * z - 4.0 * x - 4.0 * y - x * x,
    ])


def dadras(s: np.ndarray, p) -> np.ndarray:
    a, b, c, d, e = p
    x, y, z = s
    return np.array([y - a * x + b * y * z, c * y - x * z + z, d * x * y - e * z])


def thomas(s: np.ndarray, p) -> np.ndarray:
    (b,) = p
    x, y, z = s
    return np.array([-b * x + np.sin(y), -b * y + np.sin(z), -b * z + np.sin(x)])


@dataclass(frozen=True)
class OdeSystem:
    """
    Descriptor of a 3-D chaotic attractor.

    Attributes:
        key: Registry key
        name: Display name
        derivative: f(state, params)
        parameters: Declarations of the coefficients, in the order f unpacks them
        initial_state: Default starting point
        step_size: RK4 step per substep at speed 1 and a 60 fps frame
        scale: (default, min, max) display scale
        color_scheme: Default gradient name
    """
    key: str
    name: str
    derivative: object
    parameters: Tuple[Parameter, ...]
    initial_state: Tuple[float, float, float]
    step_size: float
    scale: Tuple[float, float, float] = (1.0, 0.1, 10.0)
    color_scheme: str = "rainbow"

    @property
    def coefficient_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    def coefficients(self, values: Dict[str, float]) -> Tuple[float, ...]:
        """Pick this system's coefficients out of a parameter mapping."""
        return tuple(float(values[name]) for name in self.coefficient_names)


ATTRACTORS: Dict[str, OdeSystem] = {
    "lorenz": OdeSystem(
        key="lorenz", name="Lorenz Attractor", derivative=lorenz,
        parameters=(
            float_param("sigma", 10.0, 0.0, 20.0, "σ (sigma)"),
            float_param("rho", 28.0, 0.0, 50.0, "ρ (rho)"),
            float_param("beta", 8.0 / 3.0, 0.0, 10.0, "β (beta)"),
        ),
        initial_state=(0.1, 0.0, 0.0), step_size=0.005,
        scale=(5.0, 1.0, 20.0), color_scheme="plasma",
    ),
    "rossler": OdeSystem(
        key="rossler", name="Rössler Attractor", derivative=rossler,
        parameters=(
            float_param("a", 0.2, 0.0, 0.5),
            float_param("b", 0.2, 0.0, 2.0),
            float_param("c", 5.7, 0.0, 15.0),
        ),
        initial_state=(0.1, 0.0, 0.0), step_size=0.02,
        scale=(10.0, 1.0, 30.0), color_scheme="ocean",
    ),
    "chen": OdeSystem(
        key="chen", name="Chen Attractor", derivative=chen,
        parameters=(
            float_param("a", 5.0, 1.0, 10.0),
            float_param("b", -10.0, -20.0, -5.0),
            float_param("c", -0.38, -1.0, 0.0),
        ),
        initial_state=(0.1, 0.0, 0.0), step_size=0.003,
        scale=(8.0, 3.0, 20.0), color_scheme="magma",
    ),
    "aizawa": OdeSystem(
        key="aizawa", name="Aizawa Attractor", derivative=aizawa,
        parameters=(
            float_param("a", 0.95, 0.0, 2.0),
            float_param("b", 0.7, 0.0, 2.0),
            float_param("c", 0.6, 0.0, 2.0),
            float_param("d", 3.5, 0.0, 5.0),
            float_param("e", 0.25, 0.0, 1.0),
            float_param("f", 0.1, 0.0, 1.0),
        ),
        initial_state=(0.1, 0.0, 0.0), step_size=0.01,
        scale=(50.0, 10.0, 100.0), color_scheme="rainbow",
    ),
    "halvorsen": OdeSystem(
        key="halvorsen", name="Halvorsen Attractor", derivative=halvorsen,
        parameters=(float_param("a", 1.89, 0.5, 3.0),),
        initial_state=(-1.0, 0.0, 0.0), step_size=0.005,
        scale=(20.0, 5.0, 50.0), color_scheme="electric",
    ),
    "dadras": OdeSystem(
        key="dadras", name="Dadras Attractor", derivative=dadras,
        parameters=(
            float_param("a", 3.0, 1.0, 5.0),
            float_param("b", 2.7, 1.0, 5.0),
            float_param("c", 1.7, 0.5, 3.0),
            float_param("d", 2.0, 0.5, 4.0),
            float_param("e", 9.0, 5.0, 12.0),
        ),
        initial_state=(0.1, 0.1, 0.1), step_size=0.005,
        scale=(15.0, 5.0, 30.0), color_scheme="sunset",
    ),
    "thomas": OdeSystem(
        key="thomas", name="Thomas Attractor", derivative=thomas,
        parameters=(float_param("b", 0.208186, 0.1, 0.4),),
        initial_state=(0.1, 0.0, 0.0), step_size=0.1,
        scale=(80.0, 20.0, 150.0), color_scheme="aurora",
    ),
}


# ===== Double pendulum =====

def double_pendulum(s: np.ndarray, p) -> np.ndarray:
    """
    Lagrangian double pendulum; angles measured from the downward vertical.

    Args:
        s: (angle1, angle2, omega1, omega2)
        p: (length1, length2, mass1, mass2, gravity)
    """
    l1, l2, m1, m2, g = p
    a1, a2, w1, w2 = s
    delta = a1 - a2
    den = 2.0 * m1 + m2 - m2 * np.cos(2.0 * a1 - 2.0 * a2)

    num1 = (-g * (2.0 * m1 + m2) * np.sin(a1)
            - m2 * g * np.sin(a1 - 2.0 * a2)
            - 2.0 * np.sin(delta) * m2 * (w2 * w2 * l2 + w1 * w1 * l1 * np.cos(delta)))
    num2 = (2.0 * np.sin(delta)
            * (w1 * w1 * l1 * (m1 + m2) + g * (m1 + m2) * np.cos(a1)
               + w2 * w2 * l2 * m2 * np.cos(delta)))
    return np.array([w1, w2, num1 / (l1 * den), num2 / (l2 * den)])


# ===== N-body gravity =====

class GravityParams(NamedTuple):
    """Arguments of the n-body derivative."""
    masses: np.ndarray      # (N,)
    G: float
    softening: float
    fixed: np.ndarray       # (N,) bool; fixed bodies never move


def gravity_accelerations(positions: np.ndarray, masses: np.ndarray,
                          G: float, softening: float) -> np.ndarray:
    """
    Softened pairwise accelerations.

        a_i = G * sum_j m_j (r_j - r_i) / (|r_j - r_i|^2 + eps^2)^(3/2)

    Args:
        positions: (N, 3)
        masses: (N,)

    Returns:
        (N, 3) accelerations
    """
    d = positions[None, :, :] - positions[:, None, :]
    dist_sq = np.einsum("ijk,ijk->ij", d, d) + softening * softening
    inv = dist_sq ** -1.5
    np.fill_diagonal(inv, 0.0)
    return G * np.einsum("ij,j,ijk->ik", inv, masses, d)


def nbody(s: np.ndarray, p: GravityParams) -> np.ndarray:
    """Derivative of the flat (positions, velocities) state."""
    n = len(p.masses)
    pos = s[:3 * n].reshape(n, 3)
    vel = s[3 * n:].reshape(n, 3)
    acc = gravity_accelerations(pos, p.masses, p.G, p.softening)
    vel = np.where(p.fixed[:, None], 0.0, vel)
    acc[p.fixed] = 0.0
    return np.concatenate([vel.reshape(-1), acc.reshape(-1)])


def pack_bodies(positions: np.ndarray, velocities: np.ndarray) -> np.ndarray:
    return np.concatenate([np.asarray(positions, float).reshape(-1),
                           np.asarray(velocities, float).reshape(-1)])


def unpack_bodies(state: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n = len(state) // 6
    return state[:3 * n].reshape(n, 3), state[3 * n:].reshape(n, 3)
