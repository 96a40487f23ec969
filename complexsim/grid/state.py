"""
Immutable grid snapshots.

A GridState is a 2-D int32 array of small cell states plus optional
per-cell counters (age, topple counts, attach order), the generation
number, an optional mobile agent and the write cursor used by 1-D
automata that fill the grid row by row.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple
import numpy as np


# Headings, clockwise from up
UP, RIGHT, DOWN, LEFT = 0, 1, 2, 3
HEADING_DELTAS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))


@dataclass(frozen=True)
class Agent:
    """
    Mobile walker on the grid.

    Attributes:
        x: Column
        y: Row
        heading: 0=up, 1=right, 2=down, 3=left
    """
    x: int
    y: int
    heading: int = UP

    def __post_init__(self):
        if self.heading not in (UP, RIGHT, DOWN, LEFT):
            raise ValueError(f"Invalid heading: {self.heading}")

    def turned(self, quarter_turns: int) -> "Agent":
        return Agent(self.x, self.y, (self.heading + quarter_turns) % 4)


@dataclass(eq=False)
class GridState:
    """
    Immutable snapshot of a grid automaton.

    Attributes:
        cells: (H, W) int32 cell states
        age: Optional (H, W) uint32 per-cell counter
        generation: Number of steps taken to reach this state
        agent: Optional walker
        cursor: Next row to write for row-filling automata
    """
    cells: np.ndarray
    age: Optional[np.ndarray] = None
    generation: int = 0
    agent: Optional[Agent] = None
    cursor: int = 0

    def __post_init__(self):
        cells = np.array(self.cells, dtype=np.int32)
        if cells.ndim != 2:
            raise ValueError(f"cells must be 2-D, got shape {cells.shape}")
        cells.flags.writeable = False
        self.cells = cells

        if self.age is not None:
            age = np.array(self.age, dtype=np.uint32)
            if age.shape != cells.shape:
                raise ValueError(f"age shape {age.shape} does not match cells {cells.shape}")
            age.flags.writeable = False
            self.age = age

        if self.agent is not None:
            h, w = cells.shape
            if not (0 <= self.agent.x < w and 0 <= self.agent.y < h):
                raise ValueError(f"Agent at ({self.agent.x}, {self.agent.y}) is outside {w}x{h}")

    @classmethod
    def empty(cls, height: int, width: int, with_age: bool = False) -> "GridState":
        return cls(
            cells=np.zeros((height, width), dtype=np.int32),
            age=np.zeros((height, width), dtype=np.uint32) if with_age else None,
        )

    @property
    def shape(self) -> Tuple[int, int]:
        return self.cells.shape

    @property
    def height(self) -> int:
        return self.cells.shape[0]

    @property
    def width(self) -> int:
        return self.cells.shape[1]

    def population(self) -> int:
        """Number of non-zero cells."""
        return int(np.count_nonzero(self.cells))

    def evolve(self, cells: np.ndarray, age: Optional[np.ndarray] = None, **changes) -> "GridState":
        """Successor snapshot with generation + 1."""
        return replace(self, cells=cells, age=age if age is not None else self.age,
                       generation=self.generation + 1, **changes)

    def with_cells(self, cells: np.ndarray) -> "GridState":
        """Same metadata, new cell array (used when seeding)."""
        return replace(self, cells=cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridState):
            return False
        if self.age is None and other.age is not None or self.age is not None and other.age is None:
            return False
        return (
            self.generation == other.generation
            and self.agent == other.agent
            and self.cursor == other.cursor
            and np.array_equal(self.cells, other.cells)
            and (self.age is None or np.array_equal(self.age, other.age))
        )

    def configuration_hash(self) -> int:
        """Hash of the spatial configuration, ignoring generation and age."""
        return hash((self.cells.tobytes(), self.cells.shape, self.agent, self.cursor))

    def __hash__(self) -> int:
        return hash((self.configuration_hash(), self.generation))

    def __repr__(self) -> str:
        h, w = self.shape
        return f"GridState({w}x{h}, generation={self.generation}, population={self.population()})"
