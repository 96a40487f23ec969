"""
Synchronous stepping of grid automata.

    (grid, rule, rng_state) -> (grid', rng_state')

grid' is computed from grid alone; snapshots are immutable, so the old
buffer can never be observed half-updated. Randomness is threaded
explicitly: a rule that draws random numbers receives a Generator seeded
from rng_state, and the returned rng_state is drawn from that same
Generator afterwards. Rules that draw nothing return rng_state unchanged.
Equal inputs therefore always give equal outputs.
"""

from __future__ import annotations
from typing import Tuple
import logging
import numpy as np

from .state import GridState
from .rules import GridRule

logger = logging.getLogger(__name__)

RNG_STATE_BOUND = 2**63 - 1


def step_grid(grid: GridState, rule: GridRule, rng_state: int) -> Tuple[GridState, int]:
    """
    Advance one generation.

    Args:
        grid: Current snapshot
        rule: Transition rule
        rng_state: Threaded random state

    Returns:
        (successor snapshot, next rng state)
    """
    if not rule.uses_rng:
        return rule.apply(grid, None), rng_state
    rng = np.random.default_rng(rng_state)
    successor = rule.apply(grid, rng)
    return successor, int(rng.integers(0, RNG_STATE_BOUND))


class GridAutomaton:
    """
    Rule plus threaded rng state, stepped together.

    Lets a simulation advance one or many generations without carrying
    the rng state around itself. The rule may be swapped between steps;
    the rng state carries over.

    Example:
        automaton = GridAutomaton(LIFE_RULES["conway"], rng_state=42)
        state = GridState(centered_pattern((32, 32), "glider"))
        state = automaton.advance(state, 4)
    """

    def __init__(self, rule: GridRule, rng_state: int = 0):
        self.rule = rule
        self.rng_state = int(rng_state)

    def step(self, state: GridState) -> GridState:
        successor, self.rng_state = step_grid(state, self.rule, self.rng_state)
        return successor

    def advance(self, state: GridState, generations: int) -> GridState:
        """Run `generations` steps and return the last snapshot."""
        for _ in range(max(int(generations), 0)):
            state = self.step(state)
        return state
