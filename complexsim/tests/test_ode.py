"""
Tests for the RK4 integrator and system derivatives.
"""

import math
import pytest
import numpy as np
from complexsim.core import NumericalInstability, Trail
from complexsim.ode import (
    RK4Integrator, rk4_step, integrate,
    ATTRACTORS, lorenz, nbody, gravity_accelerations,
    GravityParams, pack_bodies, unpack_bodies,
)


def reference_lorenz(state, sigma, rho, beta, dt, steps):
    """Scalar RK4 written out term by term."""
    def f(x, y, z):
        return sigma * (y - x), x * (rho - z) - y, x * y - beta * z

    x, y, z = state
    for _ in range(steps):
        a1, b1, c1 = f(x, y, z)
        a2, b2, c2 = f(x + 0.5 * dt * a1, y + 0.5 * dt * b1, z + 0.5 * dt * c1)
        a3, b3, c3 = f(x + 0.5 * dt * a2, y + 0.5 * dt * b2, z + 0.5 * dt * c2)
        a4, b4, c4 = f(x + dt * a3, y + dt * b3, z + dt * c3)
        x += dt / 6.0 * (a1 + 2 * a2 + 2 * a3 + a4)
        y += dt / 6.0 * (b1 + 2 * b2 + 2 * b3 + b4)
        z += dt / 6.0 * (c1 + 2 * c2 + 2 * c3 + c4)
    return np.array([x, y, z])


# Lorenz (10, 28, 8/3) from (1, 1, 1) after 1000 RK4 steps of 0.01
LORENZ_T10 = np.array([-4.902819483749, -3.743407675272, 24.691885987964])


class TestRK4:
    """Tests for the RK4 step."""

    def test_lorenz_reference_trajectory(self):
        """Test 1000 Lorenz steps land on the recorded reference point."""
        params = (10.0, 28.0, 8.0 / 3.0)
        result = integrate(lorenz, np.array([1.0, 1.0, 1.0]), params, 0.01, 1000)
        np.testing.assert_allclose(result, LORENZ_T10, rtol=0, atol=1e-6)

    def test_lorenz_matches_scalar_form(self):
        """Test 1000 Lorenz steps agree with an independent scalar RK4."""
        params = (10.0, 28.0, 8.0 / 3.0)
        start = np.array([1.0, 1.0, 1.0])
        result = integrate(lorenz, start, params, 0.01, 1000)
        expected = reference_lorenz((1.0, 1.0, 1.0), 10.0, 28.0, 8.0 / 3.0, 0.01, 1000)
        np.testing.assert_allclose(result, expected, rtol=0, atol=1e-6)

    def test_linear_decay_single_step(self):
        """Test one step of s' = -s matches the fourth-order Taylor polynomial."""
        h = 0.1
        result = rk4_step(lambda s, p: -s, np.array([1.0]), None, h)
        expected = 1 - h + h ** 2 / 2 - h ** 3 / 6 + h ** 4 / 24
        assert result[0] == pytest.approx(expected, abs=1e-14)

    def test_fourth_order_accuracy(self):
        """Test harmonic oscillator error shrinks by about 16x when dt halves."""
        def oscillator(s, p):
            return np.array([s[1], -s[0]])

        errors = []
        for steps in (50, 100):
            dt = 2 * math.pi / steps
            end = integrate(oscillator, np.array([1.0, 0.0]), None, dt, steps)
            errors.append(np.abs(end - np.array([1.0, 0.0])).max())
        assert 12.0 < errors[0] / errors[1] < 20.0

    def test_input_not_modified(self):
        """Test the caller's state array is left untouched."""
        state = np.array([1.0, 2.0, 3.0])
        rk4_step(lorenz, state, (10.0, 28.0, 8.0 / 3.0), 0.01)
        np.testing.assert_array_equal(state, [1.0, 2.0, 3.0])

    def test_deterministic(self):
        """Test identical inputs give bit-identical output."""
        params = (10.0, 28.0, 8.0 / 3.0)
        a = integrate(lorenz, np.array([0.1, 0.0, 0.0]), params, 0.005, 500)
        b = integrate(lorenz, np.array([0.1, 0.0, 0.0]), params, 0.005, 500)
        np.testing.assert_array_equal(a, b)

    def test_non_finite_raises(self):
        """Test overflow is reported as NumericalInstability."""
        with pytest.raises(NumericalInstability) as info:
            rk4_step(lambda s, p: s * s, np.array([1e200]), None, 1.0)
        assert info.value.state is not None
        assert not np.isfinite(info.value.state).all()


class TestRK4Integrator:
    """Tests for the bound integrator."""

    def test_run_records_trail(self):
        """Test every new state is pushed onto the trail."""
        trail = Trail(capacity=5, dim=3)
        integrator = RK4Integrator(lorenz, params=(10.0, 28.0, 8.0 / 3.0), trail=trail)
        end = integrator.run(np.array([0.1, 0.0, 0.0]), dt=0.01, steps=8)
        assert integrator.steps_taken == 8
        assert len(trail) == 5
        np.testing.assert_array_equal(trail.last(), end)

    def test_params_override(self):
        """Test per-call params replace the defaults."""
        integrator = RK4Integrator(lambda s, p: p * np.ones_like(s), params=1.0)
        assert integrator.step(np.zeros(1), 1.0)[0] == pytest.approx(1.0)
        assert integrator.step(np.zeros(1), 1.0, params=3.0)[0] == pytest.approx(3.0)


class TestTrail:
    """Tests for Trail ring buffer."""

    def test_evicts_oldest(self):
        """Test capacity bounds the buffer and keeps the newest entries."""
        trail = Trail(3, dim=2)
        for i in range(5):
            trail.append((i, -i))
        np.testing.assert_array_equal(trail.to_array(), [[2, -2], [3, -3], [4, -4]])

    def test_set_capacity_keeps_newest(self):
        """Test shrinking keeps the most recent points."""
        trail = Trail(10, dim=1)
        for i in range(6):
            trail.append([i])
        trail.set_capacity(2)
        assert trail.capacity == 2
        np.testing.assert_array_equal(trail.to_array().ravel(), [4, 5])

    def test_empty(self):
        """Test empty trails export an (0, dim) array."""
        trail = Trail(4, dim=3)
        assert trail.to_array().shape == (0, 3)
        assert trail.last() is None

    def test_dimension_checked(self):
        """Test points of the wrong dimension are rejected."""
        trail = Trail(4, dim=3)
        with pytest.raises(ValueError):
            trail.append([1.0, 2.0])
        with pytest.raises(ValueError):
            Trail(0)


class TestSystems:
    """Tests for attractor and mechanics derivatives."""

    @pytest.mark.parametrize("key", list(ATTRACTORS))
    def test_attractor_runs_finite(self, key):
        """Test every attractor stays finite from its initial point at default settings."""
        system = ATTRACTORS[key]
        coeffs = tuple(p.default for p in system.parameters)
        end = integrate(system.derivative, np.array(system.initial_state), coeffs,
                        system.step_size, 2000)
        assert np.isfinite(end).all()

    def test_coefficients_in_declaration_order(self):
        """Test coefficients are read by parameter name."""
        system = ATTRACTORS["lorenz"]
        assert system.coefficient_names == ("sigma", "rho", "beta")
        assert system.coefficients({"beta": 1.0, "rho": 2.0, "sigma": 3.0, "speed": 9}) == (3.0, 2.0, 1.0)

    def test_two_body_acceleration(self):
        """Test unit separation gives acceleration G * m toward the other body."""
        pos = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        acc = gravity_accelerations(pos, np.array([1.0, 2.0]), 1.0, 1e-9)
        np.testing.assert_allclose(acc[0], [2.0, 0.0, 0.0], rtol=1e-9)
        np.testing.assert_allclose(acc[1], [-1.0, 0.0, 0.0], rtol=1e-9)

    def test_momentum_conserved(self):
        """Test total momentum of a free system is preserved."""
        rng = np.random.default_rng(3)
        n = 6
        masses = rng.uniform(0.5, 2.0, n)
        params = GravityParams(masses, 1.0, 0.5, np.zeros(n, dtype=bool))
        state = pack_bodies(rng.uniform(-5, 5, (n, 3)), rng.uniform(-0.5, 0.5, (n, 3)))
        p0 = (unpack_bodies(state)[1] * masses[:, None]).sum(axis=0)
        end = integrate(nbody, state, params, 0.01, 200)
        p1 = (unpack_bodies(end)[1] * masses[:, None]).sum(axis=0)
        np.testing.assert_allclose(p1, p0, atol=1e-9)

    def test_fixed_body_stays(self):
        """Test fixed bodies never move."""
        pos = np.array([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        vel = np.array([[1.0, 1.0, 1.0], [0.0, 1.0, 0.0]])
        params = GravityParams(np.array([100.0, 1.0]), 1.0, 0.5, np.array([True, False]))
        end = integrate(nbody, pack_bodies(pos, vel), params, 0.01, 100)
        np.testing.assert_array_equal(unpack_bodies(end)[0][0], [0.0, 0.0, 0.0])
