"""
Cellular automaton simulations.

- GameOfLife: Life-like rules with a pattern library and age coloring
- ElementaryCA: Wolfram 1-D rules drawn as a scrolling space-time diagram
- LangtonsAnt: generalized turmite
- CyclicCA: cyclic automaton with selectable neighborhood
- Sandpile: abelian sandpile with avalanche overlay
- DiffusionLimitedAggregation: DLA cluster growth
"""

from __future__ import annotations
from typing import Optional
import numpy as np

from ..core.parameters import (
    ParameterSet, int_param, float_param, bool_param, choice_param,
)
from ..color.schemes import SCHEME_NAMES
from ..grid.patterns import (
    LIFE_PATTERNS, centered_pattern, random_soup,
    elementary_seed, cyclic_seed, aggregation_seed,
)
from ..grid.rules import (
    LIFE_RULES, LifeRule, ElementaryRule, AntRule, CyclicRule,
    SandpileRule, AggregationRule, Neighborhood, DropMode,
)
from ..grid.state import Agent, GridState, UP
from .base import GridSimulation

# Scalar used for "fully on" cells; stays below the wrap point of 1.0
ON = 0.999
BACKGROUND = (0, 0, 0)


def _grid_params(width: int, height: int, max_width: int = 400, max_height: int = 300,
                 min_side: int = 20):
    return [
        int_param("grid_width", width, min_side, max_width, "Grid width"),
        int_param("grid_height", height, min_side, max_height, "Grid height"),
    ]


def _color_params(scheme: str):
    return [
        choice_param("color_scheme", scheme, SCHEME_NAMES, "Color scheme"),
        float_param("color_offset", 0.0, 0.0, 1.0, "Color offset"),
        bool_param("invert", False, "Invert colors"),
    ]


class GameOfLife(GridSimulation):
    """Life-like automaton on a torus."""

    key = "game_of_life"
    title = "Game of Life"
    structural = frozenset({"grid_width", "grid_height", "pattern"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            *_grid_params(120, 120),
            choice_param("rule", "conway", LIFE_RULES.keys(), "Rule"),
            choice_param("pattern", "glider_gun", [*LIFE_PATTERNS.keys(), "random"], "Pattern"),
            int_param("speed", 1, 1, 20, "Generations per step"),
            bool_param("show_age", False, "Color by age"),
            *_color_params("electric"),
        ]), seed)

    def build_rule(self) -> LifeRule:
        return LIFE_RULES[self.get("rule")]

    def initial_state(self, height: int, width: int) -> GridState:
        pattern = self.get("pattern")
        if pattern == "random":
            cells = random_soup((height, width), self.rng)
        else:
            cells = centered_pattern((height, width), pattern)
        return GridState(cells, age=(cells != 0).astype(np.uint32))

    def colorize(self) -> np.ndarray:
        alive = self.state.cells != 0
        if self.get("show_age"):
            values = 0.2 + 0.79 * np.minimum(self.state.age / 50.0, 1.0)
        else:
            values = np.full(alive.shape, ON)
        rgb = self.pipeline().apply(values)
        rgb[~alive] = BACKGROUND
        return rgb


class ElementaryCA(GridSimulation):
    """Elementary automaton; each generation fills the next row."""

    key = "elementary"
    title = "Elementary Cellular Automaton"
    structural = frozenset({"grid_width", "grid_height", "random_start"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            int_param("rule", 30, 0, 255, "Rule number"),
            *_grid_params(200, 150),
            bool_param("random_start", False, "Random first row"),
            int_param("speed", 1, 1, 50, "Rows per step"),
            *_color_params("grayscale"),
        ]), seed)

    def build_rule(self) -> ElementaryRule:
        return ElementaryRule(int(self.get("rule")))

    def initial_state(self, height: int, width: int) -> GridState:
        rng = self.rng if self.get("random_start") else None
        return GridState(elementary_seed(width, height, rng), cursor=1)

    def colorize(self) -> np.ndarray:
        on = self.state.cells != 0
        rgb = self.pipeline().apply(np.full(on.shape, ON))
        rgb[~on] = BACKGROUND
        return rgb


ANT_TURNS = ("RL", "LR", "RLR", "LLRR", "RRLL", "LRRRRRLLR", "RRLLLRLLLRRR")


class LangtonsAnt(GridSimulation):
    """Turmite walking on a grid of cycling cell colors."""

    key = "langtons_ant"
    title = "Langton's Ant"
    structural = frozenset({"grid_width", "grid_height"})

    ANT_COLOR = (255, 0, 0)

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            *_grid_params(200, 150),
            choice_param("turns", "RL", ANT_TURNS, "Turn sequence"),
            int_param("speed", 100, 1, 1000, "Moves per step"),
            bool_param("wrap_edges", True, "Wrap at edges"),
            *_color_params("rainbow"),
        ]), seed)

    def build_rule(self) -> AntRule:
        return AntRule(self.get("turns"), wrap=bool(self.get("wrap_edges")))

    def initial_state(self, height: int, width: int) -> GridState:
        return GridState(np.zeros((height, width), dtype=np.int32),
                         age=np.zeros((height, width), dtype=np.uint32),
                         agent=Agent(width // 2, height // 2, UP))

    def colorize(self) -> np.ndarray:
        cells = self.state.cells
        n = self.rule.num_states()
        rgb = self.pipeline().apply_states(cells, n)
        rgb[cells == 0] = BACKGROUND
        ant = self.state.agent
        rgb[ant.y, ant.x] = self.ANT_COLOR
        return rgb


class CyclicCA(GridSimulation):
    """Cyclic automaton forming spirals out of noise."""

    key = "cyclic"
    title = "Cyclic Cellular Automaton"
    structural = frozenset({"grid_width", "grid_height", "states", "seed_mode"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            *_grid_params(200, 150, min_side=50),
            int_param("states", 14, 3, 24, "States"),
            int_param("threshold", 3, 1, 8, "Threshold"),
            choice_param("neighborhood", "moore", [n.value for n in Neighborhood], "Neighborhood"),
            choice_param("seed_mode", "random", ("random", "spiral", "stripes", "corners"), "Seed"),
            int_param("speed", 1, 1, 10, "Generations per step"),
            *_color_params("rainbow"),
        ]), seed)

    def build_rule(self) -> CyclicRule:
        neighborhood = Neighborhood(self.get("neighborhood"))
        threshold = min(int(self.get("threshold")), len(neighborhood.offsets))
        return CyclicRule(int(self.get("states")), threshold, neighborhood)

    def initial_state(self, height: int, width: int) -> GridState:
        cells = cyclic_seed((height, width), int(self.get("states")), self.get("seed_mode"), self.rng)
        return GridState(cells)

    def colorize(self) -> np.ndarray:
        return self.pipeline().apply_states(self.state.cells, self.rule.num_states())


class Sandpile(GridSimulation):
    """Abelian sandpile; toppled cells of the last step can be highlighted."""

    key = "sandpile"
    title = "Sandpile"
    structural = frozenset({"grid_width", "grid_height"})

    AVALANCHE_COLOR = (255, 255, 255)

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            *_grid_params(150, 150, max_width=250, max_height=250, min_side=50),
            int_param("critical_mass", 4, 4, 8, "Critical mass"),
            choice_param("drop_mode", "center", [m.value for m in DropMode], "Drop mode"),
            int_param("drops", 10, 1, 100, "Grains per generation"),
            int_param("speed", 1, 1, 20, "Generations per step"),
            bool_param("show_avalanches", True, "Highlight avalanches"),
            *_color_params("fire"),
        ]), seed)

    def build_rule(self) -> SandpileRule:
        return SandpileRule(int(self.get("critical_mass")), DropMode(self.get("drop_mode")),
                            int(self.get("drops")))

    def initial_state(self, height: int, width: int) -> GridState:
        return GridState(np.zeros((height, width), dtype=np.int32),
                         age=np.zeros((height, width), dtype=np.uint32))

    def colorize(self) -> np.ndarray:
        cm = self.rule.critical_mass
        grains = self.state.cells
        values = np.clip(grains / cm, 0.0, ON)
        rgb = self.pipeline().apply(values)
        rgb[grains == 0] = BACKGROUND
        if self.get("show_avalanches"):
            rgb[self.state.age > 0] = self.AVALANCHE_COLOR
        return rgb

    def total_grains(self) -> int:
        return int(self.state.cells.sum())


class DiffusionLimitedAggregation(GridSimulation):
    """DLA cluster; particles are colored by attach order."""

    key = "dla"
    title = "Diffusion-Limited Aggregation"
    structural = frozenset({"grid_width", "grid_height", "seed_mode"})

    def __init__(self, seed: Optional[int] = None):
        super().__init__(ParameterSet([
            *_grid_params(256, 256, max_width=400, max_height=300, min_side=50),
            int_param("num_particles", 5000, 100, 10000, "Particles"),
            float_param("stickiness", 1.0, 0.1, 1.0, "Stickiness"),
            int_param("walkers", 8, 1, 64, "Walkers per generation"),
            choice_param("seed_mode", "point", ("point", "line", "cross", "circle"), "Seed"),
            int_param("speed", 1, 1, 20, "Generations per step"),
            *_color_params("ice"),
        ]), seed)

    def build_rule(self) -> AggregationRule:
        return AggregationRule(
            stickiness=float(self.get("stickiness")),
            walkers=int(self.get("walkers")),
            max_particles=int(self.get("num_particles")),
        )

    def initial_state(self, height: int, width: int) -> GridState:
        cells = aggregation_seed((height, width), self.get("seed_mode"))
        return GridState(cells, age=np.zeros((height, width), dtype=np.uint32))

    def colorize(self) -> np.ndarray:
        cells = self.state.cells
        order = self.state.age.astype(np.float64)
        top = max(float(order.max()), 1.0)
        values = 0.1 + 0.89 * order / top
        rgb = self.pipeline().apply(values)
        rgb[cells == 0] = BACKGROUND
        return rgb

    @property
    def particles(self) -> int:
        return self.state.population()
