"""
Fixed-step fourth-order Runge-Kutta integration.

For a pure derivative f(state, params):

    k1 = f(s)
    k2 = f(s + dt/2 * k1)
    k3 = f(s + dt/2 * k2)
    k4 = f(s + dt * k3)
    s' = s + dt/6 * (k1 + 2 k2 + 2 k3 + k4)

The integrator is generic over the state dimension. A step whose result
contains NaN or infinity raises NumericalInstability; the owning
simulation decides how to recover.
"""

from __future__ import annotations
from typing import Any, Callable, Optional
import numpy as np

from ..core.errors import NumericalInstability
from ..core.trail import Trail

Derivative = Callable[[np.ndarray, Any], np.ndarray]


def rk4_step(f: Derivative, state: np.ndarray, params: Any, dt: float) -> np.ndarray:
    """
    One RK4 step.

    Args:
        f: Derivative function f(state, params) -> d(state)/dt
        state: Current state vector (not modified)
        params: Passed through to f unchanged
        dt: Step size supplied by the caller

    Returns:
        New state vector

    Raises:
        NumericalInstability: If any component of the result is not finite
    """
    s = np.asarray(state, dtype=np.float64)
    with np.errstate(over="ignore", invalid="ignore"):
        k1 = f(s, params)
        k2 = f(s + 0.5 * dt * k1, params)
        k3 = f(s + 0.5 * dt * k2, params)
        k4 = f(s + dt * k3, params)
        new = s + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)

    if not np.all(np.isfinite(new)):
        raise NumericalInstability(
            f"Non-finite state after RK4 step (dt={dt})", state=new
        )
    return new


def integrate(f: Derivative, state: np.ndarray, params: Any, dt: float, steps: int,
              trail: Optional[Trail] = None) -> np.ndarray:
    """
    Run several RK4 steps, optionally recording each new state.

    Returns:
        State after the last step
    """
    s = np.asarray(state, dtype=np.float64)
    for _ in range(steps):
        s = rk4_step(f, s, params, dt)
        if trail is not None:
            trail.append(s)
    return s


class RK4Integrator:
    """
    RK4 bound to one derivative function.

    Args:
        f: Derivative function
        params: Default params passed to f
        trail: Optional trail receiving every new state

    Example:
        integrator = RK4Integrator(lorenz, params=(10.0, 28.0, 8.0 / 3.0))
        state = integrator.run(np.array([1.0, 1.0, 1.0]), dt=0.01, steps=1000)
    """

    def __init__(self, f: Derivative, params: Any = None, trail: Optional[Trail] = None):
        self.f = f
        self.params = params
        self.trail = trail
        self.steps_taken = 0

    def step(self, state: np.ndarray, dt: float, params: Any = None) -> np.ndarray:
        new = rk4_step(self.f, state, self.params if params is None else params, dt)
        self.steps_taken += 1
        if self.trail is not None:
            self.trail.append(new)
        return new

    def run(self, state: np.ndarray, dt: float, steps: int, params: Any = None) -> np.ndarray:
        s = np.asarray(state, dtype=np.float64)
        for _ in range(steps):
            s = self.step(s, dt, params)
        return s
