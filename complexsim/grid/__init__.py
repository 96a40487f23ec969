"""
Grid automata for complexsim.

Contains:
- GridState / Agent: Immutable snapshots
- Rule families: LifeRule, ElementaryRule, AntRule, CyclicRule,
  SandpileRule, AggregationRule
- step_grid / GridAutomaton: Deterministic synchronous stepping
- Seed patterns (glider, glider gun, pulsar, ...)
"""

from .state import Agent, GridState, UP, RIGHT, DOWN, LEFT, HEADING_DELTAS
from .rules import (
    Neighborhood, DropMode, GridRule,
    LifeRule, LIFE_RULES, ElementaryRule, AntRule, CyclicRule,
    SandpileRule, AggregationRule, moore_counts,
)
from .automaton import (
    step_grid, GridAutomaton, RNG_STATE_BOUND,
)
from .patterns import (
    LIFE_PATTERNS, GLIDER, GLIDER_GUN, PULSAR, PENTADECATHLON, LWSS, ACORN,
    place_pattern, centered_pattern, random_soup,
    elementary_seed, cyclic_seed, aggregation_seed,
)

__all__ = [
    # State
    "Agent",
    "GridState",
    "UP",
    "RIGHT",
    "DOWN",
    "LEFT",
    "HEADING_DELTAS",
    # Rules
    "Neighborhood",
    "DropMode",
    "GridRule",
    "LifeRule",
    "LIFE_RULES",
    "ElementaryRule",
    "AntRule",
    "CyclicRule",
    "SandpileRule",
    "AggregationRule",
    "moore_counts",
    # Stepping
    "step_grid",
    "RNG_STATE_BOUND",
    "GridAutomaton",
    # Patterns
    "LIFE_PATTERNS",
    "GLIDER",
    "GLIDER_GUN",
    "PULSAR",
    "PENTADECATHLON",
    "LWSS",
    "ACORN",
    "place_pattern",
    "centered_pattern",
    "random_soup",
    "elementary_seed",
    "cyclic_seed",
    "aggregation_seed",
]
