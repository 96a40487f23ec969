"""
Transition rules for grid automata.

Each rule is a frozen value object with an apply(state, rng) method that
computes the successor snapshot from the prior snapshot only. Rules that
consume randomness declare uses_rng; they receive a numpy Generator
built from the threaded rng state.

Families:
- LifeRule: outer-totalistic birth/survival sets over the Moore neighborhood
- ElementaryRule: Wolfram 1-D rules 0-255, filling the grid row by row
- AntRule: generalized Langton's ant with a per-state turn table
- CyclicRule: advance to (s + 1) mod N when enough neighbors hold it
- SandpileRule: abelian sandpile with grain drops and toppling sweeps
- AggregationRule: diffusion-limited aggregation of random walkers
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple
import logging
import math
import re
import numpy as np
from numba import njit, prange
from scipy import ndimage

from ..config import get_config
from .state import GridState, Agent, HEADING_DELTAS

logger = logging.getLogger(__name__)


class Neighborhood(Enum):
    """Neighbor offsets used by the cyclic automaton."""
    VON_NEUMANN = "von_neumann"   # 4 orthogonal
    MOORE = "moore"               # 8 surrounding
    EXTENDED = "extended"         # Moore plus distance-2 orthogonal

    @property
    def offsets(self) -> Tuple[Tuple[int, int], ...]:
        orth = ((0, -1), (1, 0), (0, 1), (-1, 0))
        diag = ((-1, -1), (1, -1), (-1, 1), (1, 1))
        if self is Neighborhood.VON_NEUMANN:
            return orth
        if self is Neighborhood.MOORE:
            return orth + diag
        return orth + diag + ((0, -2), (2, 0), (0, 2), (-2, 0))


class DropMode(Enum):
    """Where sandpile grains are added."""
    CENTER = "center"
    RANDOM = "random"
    PATTERN = "pattern"   # Outward spiral


class GridRule(ABC):
    """Base class of all grid transition rules."""

    uses_rng: bool = False

    @abstractmethod
    def apply(self, state: GridState, rng: Optional[np.random.Generator]) -> GridState:
        """Successor of state; state itself is never modified."""

    def num_states(self) -> int:
        """Number of distinct cell states, used for coloring."""
        return 2


# ===== Life-like =====

MOORE_KERNEL = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int32)

_RULE_PATTERN = re.compile(r"^B([0-8]*)/S([0-8]*)$", re.IGNORECASE)


def moore_counts(alive: np.ndarray) -> np.ndarray:
    """Live-neighbor counts on a torus."""
    return ndimage.convolve(alive.astype(np.int32), MOORE_KERNEL, mode="wrap")


@dataclass(frozen=True)
class LifeRule(GridRule):
    """
    Outer-totalistic rule in B/S notation.

    Attributes:
        birth: Neighbor counts that turn a dead cell alive
        survival: Neighbor counts that keep a live cell alive

    Example:
        conway = LifeRule.from_string("B3/S23")
    """
    birth: Tuple[int, ...] = (3,)
    survival: Tuple[int, ...] = (2, 3)

    def __post_init__(self):
        for n in self.birth + self.survival:
            if not 0 <= n <= 8:
                raise ValueError(f"Neighbor count out of range: {n}")
        object.__setattr__(self, "birth", tuple(sorted(set(self.birth))))
        object.__setattr__(self, "survival", tuple(sorted(set(self.survival))))

    @classmethod
    def from_string(cls, notation: str) -> "LifeRule":
        """Parse "B36/S23" style notation."""
        match = _RULE_PATTERN.match(notation.strip())
        if match is None:
            raise ValueError(f"Invalid rule notation: {notation}")
        return cls(tuple(int(c) for c in match.group(1)),
                   tuple(int(c) for c in match.group(2)))

    def __str__(self) -> str:
        return "B" + "".join(map(str, self.birth)) + "/S" + "".join(map(str, self.survival))

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        alive = state.cells != 0
        counts = moore_counts(alive)
        born = ~alive & np.isin(counts, list(self.birth))
        survived = alive & np.isin(counts, list(self.survival))
        cells = (born | survived).astype(np.int32)

        age = None
        if state.age is not None:
            age = np.where(survived, state.age + 1, np.where(born, 1, 0)).astype(np.uint32)
        return state.evolve(cells, age)


LIFE_RULES: Dict[str, LifeRule] = {
    "conway": LifeRule.from_string("B3/S23"),
    "highlife": LifeRule.from_string("B36/S23"),
    "seeds": LifeRule.from_string("B2/S"),
    "life_without_death": LifeRule.from_string("B3/S012345678"),
    "day_and_night": LifeRule.from_string("B3678/S34678"),
    "maze": LifeRule.from_string("B3/S12345"),
}


# ===== Elementary =====

@dataclass(frozen=True)
class ElementaryRule(GridRule):
    """
    Wolfram elementary automaton.

    Row `cursor - 1` is the current generation; its successor is written
    at `cursor`. Once the grid is full, rows scroll up by one.
    """
    number: int = 30

    def __post_init__(self):
        if not 0 <= self.number <= 255:
            raise ValueError(f"Elementary rule must be in 0..255, got {self.number}")

    def next_row(self, row: np.ndarray) -> np.ndarray:
        c = (np.asarray(row) != 0).astype(np.int32)
        left = np.roll(c, 1)
        right = np.roll(c, -1)
        index = (left << 2) | (c << 1) | right
        return ((self.number >> index) & 1).astype(np.int32)

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        h = state.height
        cursor = max(state.cursor, 1)
        new_row = self.next_row(state.cells[min(cursor, h) - 1])
        if cursor < h:
            cells = state.cells.copy()
            cells[cursor] = new_row
            cursor += 1
        else:
            cells = np.empty_like(state.cells)
            cells[:-1] = state.cells[1:]
            cells[-1] = new_row
            cursor = h
        return state.evolve(cells, cursor=cursor)


# ===== Ant =====

_TURNS = {"R": 1, "L": -1, "N": 0, "U": 2}


@dataclass(frozen=True)
class AntRule(GridRule):
    """
    Generalized Langton's ant.

    On a cell in state s the ant turns by turns[s] (R, L, N=none, U=u-turn),
    advances the cell to (s + 1) mod len(turns) and moves forward one cell.
    With wrap=False the ant reverses when it would leave the grid.
    The age array, when present, counts visits per cell.
    """
    turns: str = "RL"
    wrap: bool = True

    def __post_init__(self):
        turns = self.turns.upper()
        if len(turns) < 2 or any(t not in _TURNS for t in turns):
            raise ValueError(f"Invalid turn string: {self.turns}")
        object.__setattr__(self, "turns", turns)

    def num_states(self) -> int:
        return len(self.turns)

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        if state.agent is None:
            raise ValueError("AntRule needs a grid state with an agent")
        h, w = state.shape
        n = len(self.turns)
        ant = state.agent
        s = int(state.cells[ant.y, ant.x]) % n

        ant = ant.turned(_TURNS[self.turns[s]])
        cells = state.cells.copy()
        cells[ant.y, ant.x] = (s + 1) % n

        age = None
        if state.age is not None:
            age = state.age.copy()
            age[ant.y, ant.x] += 1

        dx, dy = HEADING_DELTAS[ant.heading]
        nx, ny = ant.x + dx, ant.y + dy
        if self.wrap:
            nx, ny = nx % w, ny % h
        elif not (0 <= nx < w and 0 <= ny < h):
            ant = ant.turned(2)
            dx, dy = HEADING_DELTAS[ant.heading]
            nx, ny = ant.x + dx, ant.y + dy
            if not (0 <= nx < w and 0 <= ny < h):
                nx, ny = ant.x, ant.y

        return state.evolve(cells, age, agent=Agent(nx, ny, ant.heading))


# ===== Cyclic =====

@dataclass(frozen=True)
class CyclicRule(GridRule):
    """
    Cyclic cellular automaton.

    A cell in state s advances to (s + 1) mod num_states when at least
    `threshold` neighbors already hold that successor state.
    """
    states: int = 14
    threshold: int = 3
    neighborhood: Neighborhood = Neighborhood.MOORE

    def __post_init__(self):
        if self.states < 2:
            raise ValueError("Cyclic automaton needs at least 2 states")
        if not 1 <= self.threshold <= len(self.neighborhood.offsets):
            raise ValueError(
                f"threshold must be in 1..{len(self.neighborhood.offsets)}, got {self.threshold}"
            )

    def num_states(self) -> int:
        return self.states

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        cells = np.mod(state.cells, self.states)
        successor = (cells + 1) % self.states
        count = np.zeros(cells.shape, dtype=np.int32)
        for dx, dy in self.neighborhood.offsets:
            count += np.roll(cells, (-dy, -dx), axis=(0, 1)) == successor
        return state.evolve(np.where(count >= self.threshold, successor, cells))


# ===== Sandpile =====

@dataclass(frozen=True)
class SandpileRule(GridRule):
    """
    Abelian sandpile on a grid with open edges.

    Each step drops `drops` grains, then runs synchronous toppling sweeps
    until no cell holds critical_mass grains or more: every such cell
    loses critical_mass and gives one grain to each orthogonal neighbor.
    Grains pushed past the edge are lost, so relaxation always ends.
    `max_sweeps` only guards against runaway loops; hitting it is logged.
    The age array records how often each cell toppled during the step.
    """
    critical_mass: int = 4
    drop_mode: DropMode = DropMode.CENTER
    drops: int = 1
    max_sweeps: int = 100_000

    def __post_init__(self):
        if self.critical_mass < 4:
            raise ValueError(f"critical_mass must be at least 4, got {self.critical_mass}")
        if self.drops < 0 or self.max_sweeps < 1:
            raise ValueError("drops must be >= 0 and max_sweeps >= 1")

    @property
    def uses_rng(self) -> bool:
        return self.drop_mode is DropMode.RANDOM

    def num_states(self) -> int:
        return self.critical_mass

    def drop_position(self, shape: Tuple[int, int], drop_index: int,
                      rng: Optional[np.random.Generator]) -> Tuple[int, int]:
        """(x, y) of the drop_index-th grain, kept one cell away from the edge."""
        h, w = shape
        lo_x, hi_x = min(1, w - 1), max(w - 2, 0)
        lo_y, hi_y = min(1, h - 1), max(h - 2, 0)
        if self.drop_mode is DropMode.RANDOM:
            return int(rng.integers(lo_x, hi_x + 1)), int(rng.integers(lo_y, hi_y + 1))
        if self.drop_mode is DropMode.PATTERN:
            t = drop_index * 0.1
            radius = min(t * 0.1, w / 3.0)
            angle = t * 0.5
            x = int(w // 2 + radius * math.cos(angle))
            y = int(h // 2 + radius * math.sin(angle))
            return min(max(x, lo_x), hi_x), min(max(y, lo_y), hi_y)
        return w // 2, h // 2

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        grains = state.cells.astype(np.int64)
        first_drop = state.generation * self.drops
        for k in range(self.drops):
            x, y = self.drop_position(state.shape, first_drop + k, rng)
            grains[y, x] += 1

        topples = np.zeros(grains.shape, dtype=np.int64)
        sweeps = 0
        while True:
            unstable = grains >= self.critical_mass
            if not unstable.any():
                break
            if sweeps == self.max_sweeps:
                logger.warning(f"Sandpile still unstable after {sweeps} sweeps; "
                               f"{int(unstable.sum())} cells left to topple")
                break
            sweeps += 1
            t = unstable.astype(np.int64)
            topples += t
            grains -= self.critical_mass * t
            grains[1:, :] += t[:-1, :]
            grains[:-1, :] += t[1:, :]
            grains[:, 1:] += t[:, :-1]
            grains[:, :-1] += t[:, 1:]

        return state.evolve(grains.astype(np.int32), topples.astype(np.uint32))


# ===== Aggregation =====

def _walk_walkers(occupied, cx, cy, spawn_radius, spawn_angles, step_angles,
                  stick_u, stickiness, out_x, out_y):
    h, w = occupied.shape
    n = spawn_angles.shape[0]
    max_walk = step_angles.shape[1]
    escape_sq = 4.0 * spawn_radius * spawn_radius
    for i in prange(n):
        x = cx + spawn_radius * math.cos(spawn_angles[i])
        y = cy + spawn_radius * math.sin(spawn_angles[i])
        x = min(max(x, 1.0), w - 2.0)
        y = min(max(y, 1.0), h - 2.0)
        out_x[i] = -1
        out_y[i] = -1
        for k in range(max_walk):
            dx = x - cx
            dy = y - cy
            if dx * dx + dy * dy > escape_sq:
                break
            ix = int(x)
            iy = int(y)
            if ix > 0 and ix < w - 1 and iy > 0 and iy < h - 1 and not occupied[iy, ix]:
                touching = False
                for oy in range(-1, 2):
                    for ox in range(-1, 2):
                        if (ox != 0 or oy != 0) and occupied[iy + oy, ix + ox]:
                            touching = True
                if touching and stick_u[i, k] < stickiness:
                    out_x[i] = ix
                    out_y[i] = iy
                    break
            a = step_angles[i, k]
            x = min(max(x + 2.0 * math.cos(a), 1.0), w - 2.0)
            y = min(max(y + 2.0 * math.sin(a), 1.0), h - 2.0)


_walk_walkers_parallel = njit(parallel=True, cache=True)(_walk_walkers)
_walk_walkers_serial = njit(_walk_walkers)


@dataclass(frozen=True)
class AggregationRule(GridRule):
    """
    Diffusion-limited aggregation.

    Each step launches `walkers` particles on a circle around the
    cluster; they random-walk with step length 2 and attach when next to
    an occupied cell (with probability `stickiness`). All walkers of a
    step see the same prior grid, so they run in parallel; attachments
    are then applied in walker order, a later walker landing on a cell
    taken earlier in the same step is discarded. The age array stores
    attach order (1-based, 0 = empty). Growth stops at max_particles.
    """
    stickiness: float = 1.0
    walkers: int = 8
    max_walk: int = 4000
    max_particles: int = 5000

    uses_rng = True

    def __post_init__(self):
        if not 0.0 < self.stickiness <= 1.0:
            raise ValueError("stickiness must be in (0, 1]")
        if self.walkers < 1 or self.max_walk < 1:
            raise ValueError("walkers and max_walk must be positive")

    def spawn_radius(self, state: GridState) -> float:
        h, w = state.shape
        ys, xs = np.nonzero(state.cells)
        max_r = float(np.hypot(xs - w / 2.0, ys - h / 2.0).max()) if len(xs) else 0.0
        return min(max(max_r + 10.0, 50.0), 0.5 * max(h, w))

    def apply(self, state: GridState, rng: Optional[np.random.Generator] = None) -> GridState:
        h, w = state.shape
        population = state.population()
        if population >= self.max_particles or h < 3 or w < 3:
            return state.evolve(state.cells)

        spawn_angles = rng.uniform(0.0, 2 * math.pi, self.walkers)
        step_angles = rng.uniform(0.0, 2 * math.pi, (self.walkers, self.max_walk))
        stick_u = rng.random((self.walkers, self.max_walk))
        out_x = np.empty(self.walkers, dtype=np.int64)
        out_y = np.empty(self.walkers, dtype=np.int64)

        walk = _walk_walkers_parallel if get_config().kernel.parallel else _walk_walkers_serial
        walk(state.cells != 0, w / 2.0, h / 2.0, self.spawn_radius(state),
             spawn_angles, step_angles, stick_u, float(self.stickiness), out_x, out_y)

        cells = state.cells.copy()
        age = state.age.copy() if state.age is not None else np.zeros(state.shape, dtype=np.uint32)
        order = int(age.max()) if population else 0
        for x, y in zip(out_x, out_y):
            if x < 0 or cells[y, x] != 0 or population >= self.max_particles:
                continue
            order += 1
            population += 1
            cells[y, x] = 1
            age[y, x] = order
        return state.evolve(cells, age)
