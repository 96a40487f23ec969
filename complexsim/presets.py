"""
Named parameter presets.

A preset is a plain mapping of parameter values. apply_preset() writes
it with ordinary set() calls, so values are clamped like any other
write and structural parameters take effect at the next step.
"""

from __future__ import annotations
import math
from typing import Any, Dict, List

from .core.simulation import Parameterized

PRESETS: Dict[str, Dict[str, Dict[str, Any]]] = {
    "mandelbrot": {
        "Full Set": {"center_x": -0.5, "center_y": 0.0, "zoom": 1.0},
        "Seahorse Valley": {"center_x": -0.75, "center_y": 0.1, "zoom": 100.0},
        "Elephant Valley": {"center_x": 0.3, "center_y": 0.0, "zoom": 50.0},
        "Spiral": {"center_x": -0.7269, "center_y": 0.1889, "zoom": 500.0},
        "Triple Spiral": {"center_x": -0.1011, "center_y": 0.9563, "zoom": 1000.0},
        "Mini Mandelbrot": {"center_x": -0.7453, "center_y": 0.1127, "zoom": 5000.0,
                            "max_iterations": 500},
    },
    "julia": {
        "Classic": {"c_real": -0.7, "c_imag": 0.27015},
        "Dendrite": {"c_real": -0.4, "c_imag": 0.6},
        "San Marco Dragon": {"c_real": -0.75, "c_imag": 0.0},
        "Siegel Disk": {"c_real": -0.391, "c_imag": -0.587},
        "Douady's Rabbit": {"c_real": -0.123, "c_imag": 0.745},
        "Galaxy": {"c_real": 0.285, "c_imag": 0.01},
    },
    "burning_ship": {
        "Main Ship": {"center_x": -0.5, "center_y": -0.6, "zoom": 0.7},
        "Antenna Detail": {"center_x": -1.75, "center_y": -0.03, "zoom": 100.0},
        "Mast Detail": {"center_x": -1.762, "center_y": 0.028, "zoom": 500.0},
    },
    "game_of_life": {
        "Gosper Glider Gun": {"rule": "conway", "pattern": "glider_gun"},
        "Random Soup": {"rule": "conway", "pattern": "random"},
        "HighLife Soup": {"rule": "highlife", "pattern": "random"},
        "Day & Night": {"rule": "day_and_night", "pattern": "random"},
        "Maze": {"rule": "maze", "pattern": "random"},
    },
    "elementary": {
        "Rule 30": {"rule": 30},
        "Rule 110": {"rule": 110},
        "Rule 90": {"rule": 90},
        "Rule 184": {"rule": 184, "random_start": True},
    },
    "langtons_ant": {
        "Classic": {"turns": "RL"},
        "Symmetric": {"turns": "LLRR"},
        "Square Builder": {"turns": "LRRRRRLLR"},
    },
    "cyclic": {
        "Classic Demons": {"states": 14, "threshold": 1, "neighborhood": "von_neumann"},
        "Moore Spirals": {"states": 8, "threshold": 3, "neighborhood": "moore"},
        "Extended Waves": {"states": 16, "threshold": 5, "neighborhood": "extended"},
    },
    "sandpile": {
        "Center Drop": {"drop_mode": "center", "critical_mass": 4},
        "Rain": {"drop_mode": "random", "critical_mass": 4},
        "Spiral Feed": {"drop_mode": "pattern", "critical_mass": 5},
    },
    "dla": {
        "Point Seed": {"seed_mode": "point", "stickiness": 1.0},
        "Sparse Coral": {"seed_mode": "point", "stickiness": 0.3},
        "Line Seed": {"seed_mode": "line"},
        "Ring Seed": {"seed_mode": "circle"},
    },
    "double_pendulum": {
        "Classic": {"initial_angle1": math.pi / 2, "initial_angle2": math.pi / 2,
                    "initial_velocity1": 0.0, "initial_velocity2": 0.0},
        "Chaotic Start": {"initial_angle1": math.pi / 2 + 0.1, "initial_angle2": math.pi / 2,
                          "initial_velocity1": 0.0, "initial_velocity2": 0.0},
        "High Energy": {"initial_angle1": math.pi, "initial_angle2": 0.0,
                        "initial_velocity1": 0.2, "initial_velocity2": 0.1},
    },
    "lorenz": {
        "Classic Butterfly": {"sigma": 10.0, "rho": 28.0, "beta": 8.0 / 3.0},
        "Transient Chaos": {"sigma": 10.0, "rho": 22.0, "beta": 8.0 / 3.0},
    },
    "rossler": {
        "Classic": {"a": 0.2, "b": 0.2, "c": 5.7},
        "Chaotic Spiral": {"a": 0.1, "b": 0.1, "c": 14.0},
        "Banded Chaos": {"a": 0.2, "b": 0.2, "c": 9.0},
    },
    "chen": {
        "Classic": {"a": 5.0, "b": -10.0, "c": -0.38},
        "Butterfly Wings": {"a": 7.0, "b": -12.0, "c": -0.5},
        "Twisted Ribbon": {"a": 3.0, "b": -8.0, "c": -0.2},
    },
    "aizawa": {
        "Classic": {"a": 0.95, "b": 0.7, "c": 0.6, "d": 3.5},
        "Chaotic": {"a": 0.85, "b": 0.9, "c": 0.6, "d": 4.0},
        "Stable": {"a": 1.0, "b": 0.5, "c": 0.8, "d": 3.0},
    },
    "halvorsen": {
        "Classic": {"a": 1.89, "speed": 1.0},
        "Fast Chaos": {"a": 2.5, "speed": 1.6},
        "Slow Flow": {"a": 1.2, "speed": 0.6},
    },
    "dadras": {
        "Classic": {"a": 3.0, "b": 2.7, "e": 9.0},
        "Wide Orbit": {"a": 4.0, "b": 2.0, "e": 7.0},
        "Tight Spiral": {"a": 2.5, "b": 3.5, "e": 10.0},
    },
    "thomas": {
        "Classic": {"b": 0.208186, "speed": 1.0},
        "Dense Loops": {"b": 0.15, "speed": 1.5},
        "Sparse Flow": {"b": 0.3, "speed": 0.8},
    },
    "particle_attractor": {
        "Gentle Stream": {"spawn_rate": 2.0, "particle_lifetime": 15.0, "trail_length": 150},
        "Dense Swarm": {"num_particles": 2000, "spawn_rate": 20.0, "particle_lifetime": 8.0,
                        "trail_length": 40, "color_by": "velocity"},
        "Fading Sparks": {"particle_trails": False, "particle_lifetime": 4.0, "color_by": "age"},
    },
    "nbody": {
        "Solar System": {"mode": "solar", "central_mass": 200.0, "body_count": 50,
                         "spawn_radius": 50.0, "initial_velocity": 2.5},
        "Binary Stars": {"mode": "binary", "body_count": 20},
        "Chaotic Cloud": {"mode": "cloud", "body_count": 100},
    },
}


def preset_names(key: str) -> List[str]:
    return list(PRESETS.get(key, {}))


def apply_preset(sim: Parameterized, name: str) -> Dict[str, Any]:
    """
    Apply a named preset to a simulation.

    Returns:
        The values actually stored, by parameter name

    Raises:
        KeyError: If the simulation has no preset with that name
    """
    presets = PRESETS.get(sim.key, {})
    if name not in presets:
        raise KeyError(f"No preset '{name}' for {sim.key}")
    return {param: sim.set(param, value) for param, value in presets[name].items()}
