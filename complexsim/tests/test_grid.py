"""
Tests for grid automata.
"""

import logging
import pytest
import numpy as np
from complexsim import config
from complexsim.config import get_config, set_config
from complexsim.grid import (
    GridState, Agent, UP, RIGHT, DOWN, LEFT,
    LifeRule, LIFE_RULES, ElementaryRule, AntRule, CyclicRule,
    SandpileRule, AggregationRule, Neighborhood, DropMode,
    step_grid, GridAutomaton,
    GLIDER, PULSAR, GLIDER_GUN, LIFE_PATTERNS,
    place_pattern, centered_pattern, aggregation_seed, cyclic_seed,
)


@pytest.fixture
def small_limits():
    previous = get_config()
    set_config(config.test_config())
    yield
    set_config(previous)


def blinker(size=5):
    cells = np.zeros((size, size), dtype=np.int32)
    cells[2, 1:4] = 1
    return cells


class TestGridState:
    """Tests for GridState snapshots."""

    def test_cells_are_read_only_copies(self):
        """Test the snapshot owns an immutable copy of the input."""
        source = np.zeros((3, 3), dtype=np.int32)
        state = GridState(source)
        source[0, 0] = 1
        assert state.cells[0, 0] == 0
        with pytest.raises(ValueError):
            state.cells[0, 0] = 1

    def test_validation(self):
        """Test shape mismatches and out-of-bounds agents are rejected."""
        with pytest.raises(ValueError):
            GridState(np.zeros(5))
        with pytest.raises(ValueError):
            GridState(np.zeros((3, 3)), age=np.zeros((2, 2)))
        with pytest.raises(ValueError):
            GridState(np.zeros((3, 3)), agent=Agent(3, 0))
        with pytest.raises(ValueError):
            Agent(0, 0, heading=7)

    def test_evolve_increments_generation(self):
        """Test successors count generations and keep age when not given."""
        state = GridState.empty(4, 4, with_age=True)
        nxt = state.evolve(np.ones((4, 4)))
        assert nxt.generation == 1
        np.testing.assert_array_equal(nxt.age, state.age)
        assert nxt.population() == 16
        assert state.population() == 0

    def test_equality_and_configuration_hash(self):
        """Test equality includes generation; configuration hash does not."""
        a = GridState(blinker())
        b = GridState(blinker(), generation=4)
        assert a != b
        assert a.configuration_hash() == b.configuration_hash()
        assert a == GridState(blinker())

    def test_agent_turns(self):
        """Test headings rotate clockwise modulo 4."""
        assert Agent(0, 0, UP).turned(1).heading == RIGHT
        assert Agent(0, 0, UP).turned(-1).heading == LEFT
        assert Agent(0, 0, LEFT).turned(2).heading == RIGHT


class TestLifeRule:
    """Tests for Life-like rules."""

    def test_glider_translates(self):
        """Test a glider moves one cell diagonally every four generations."""
        cells = place_pattern(np.zeros((16, 16)), GLIDER, 1, 1)
        state = GridState(cells)
        rule = LIFE_RULES["conway"]
        rng_state = 99
        for _ in range(4):
            state, rng_state = step_grid(state, rule, rng_state)
        np.testing.assert_array_equal(state.cells, np.roll(cells, (1, 1), axis=(0, 1)))
        assert state.generation == 4
        assert rng_state == 99

    def test_glider_wraps_around_torus(self):
        """Test a glider returns to its start after crossing a torus."""
        cells = place_pattern(np.zeros((8, 8)), GLIDER, 0, 0)
        state = GridState(cells)
        rule = LifeRule()
        for _ in range(32):
            state, _ = step_grid(state, rule, 0)
        np.testing.assert_array_equal(state.cells, cells)

    def test_blinker_oscillates(self):
        """Test a blinker flips between horizontal and vertical."""
        state = GridState(blinker())
        nxt, _ = step_grid(state, LifeRule(), 0)
        expected = np.zeros((5, 5), dtype=np.int32)
        expected[1:4, 2] = 1
        np.testing.assert_array_equal(nxt.cells, expected)

    def test_prior_state_untouched(self):
        """Test stepping never modifies the source snapshot."""
        state = GridState(blinker())
        before = state.cells.copy()
        step_grid(state, LifeRule(), 0)
        np.testing.assert_array_equal(state.cells, before)

    def test_age_tracking(self):
        """Test survivors age, newborns start at 1 and dead cells reset."""
        cells = blinker()
        state = GridState(cells, age=cells.astype(np.uint32))
        nxt, _ = step_grid(state, LifeRule(), 0)
        assert nxt.age[2, 2] == 2
        assert nxt.age[1, 2] == 1
        assert nxt.age[2, 1] == 0

    def test_notation(self):
        """Test B/S parsing and formatting."""
        rule = LifeRule.from_string("b36/s23")
        assert rule.birth == (3, 6)
        assert rule.survival == (2, 3)
        assert str(rule) == "B36/S23"
        assert str(LIFE_RULES["seeds"]) == "B2/S"
        with pytest.raises(ValueError):
            LifeRule.from_string("B9/S23")
        with pytest.raises(ValueError):
            LifeRule.from_string("23/3")

    def test_patterns(self):
        """Test pattern library sizes."""
        assert len(GLIDER_GUN) == 36
        assert len(PULSAR) == 48
        for name in LIFE_PATTERNS:
            assert centered_pattern((64, 64), name).sum() == len(LIFE_PATTERNS[name])
        with pytest.raises(ValueError):
            centered_pattern((64, 64), "nope")

    def test_pulsar_period_three(self):
        """Test the pulsar returns after three generations."""
        start = GridState(centered_pattern((32, 32), "pulsar"))
        state = start
        for generation in range(1, 4):
            state, _ = step_grid(state, LifeRule(), 0)
            same = np.array_equal(state.cells, start.cells)
            assert same == (generation == 3)


class TestElementaryRule:
    """Tests for Wolfram rules."""

    def test_rule_30_rows(self):
        """Test rule 30 produces its familiar first rows."""
        cells = np.zeros((5, 7), dtype=np.int32)
        cells[0, 3] = 1
        state = GridState(cells, cursor=1)
        rule = ElementaryRule(30)
        state, _ = step_grid(state, rule, 0)
        state, _ = step_grid(state, rule, 0)
        np.testing.assert_array_equal(state.cells[1], [0, 0, 1, 1, 1, 0, 0])
        np.testing.assert_array_equal(state.cells[2], [0, 1, 1, 0, 0, 1, 0])
        assert state.cursor == 3

    def test_scrolls_when_full(self):
        """Test the diagram scrolls up once every row is written."""
        cells = np.zeros((3, 7), dtype=np.int32)
        cells[0, 3] = 1
        state = GridState(cells, cursor=1)
        rule = ElementaryRule(30)
        for _ in range(3):
            state, _ = step_grid(state, rule, 0)
        np.testing.assert_array_equal(state.cells[0], [0, 0, 1, 1, 1, 0, 0])
        np.testing.assert_array_equal(state.cells[1], [0, 1, 1, 0, 0, 1, 0])
        assert state.cursor == 3

    def test_rule_bounds(self):
        """Test rule numbers outside 0..255 are rejected."""
        with pytest.raises(ValueError):
            ElementaryRule(256)
        with pytest.raises(ValueError):
            ElementaryRule(-1)

    def test_rule_90_is_xor(self):
        """Test rule 90 equals left XOR right."""
        row = np.array([1, 0, 1, 1, 0, 0, 1, 0])
        expected = np.roll(row, 1) ^ np.roll(row, -1)
        np.testing.assert_array_equal(ElementaryRule(90).next_row(row), expected)


class TestAntRule:
    """Tests for Langton's ant."""

    def test_first_moves(self):
        """Test the ant turns right on empty cells and flips them."""
        state = GridState(np.zeros((5, 5)), agent=Agent(2, 2, UP))
        rule = AntRule("RL")
        state, _ = step_grid(state, rule, 0)
        assert state.cells[2, 2] == 1
        assert state.agent == Agent(3, 2, RIGHT)
        state, _ = step_grid(state, rule, 0)
        assert state.cells[2, 3] == 1
        assert state.agent == Agent(3, 3, DOWN)

    def test_turns_left_on_marked_cell(self):
        """Test a marked cell turns the ant left and clears."""
        cells = np.zeros((5, 5), dtype=np.int32)
        cells[2, 2] = 1
        state, _ = step_grid(GridState(cells, agent=Agent(2, 2, UP)), AntRule("RL"), 0)
        assert state.cells[2, 2] == 0
        assert state.agent == Agent(1, 2, LEFT)

    def test_wrap_and_bounce(self):
        """Test edge handling with and without wrapping."""
        start = GridState(np.zeros((5, 5)), agent=Agent(4, 0, UP))
        wrapped, _ = step_grid(start, AntRule("RL", wrap=True), 0)
        assert (wrapped.agent.x, wrapped.agent.y) == (0, 0)
        bounced, _ = step_grid(start, AntRule("RL", wrap=False), 0)
        assert bounced.agent == Agent(3, 0, LEFT)

    def test_visit_counts(self):
        """Test the age array counts visits."""
        state = GridState(np.zeros((5, 5)), age=np.zeros((5, 5)), agent=Agent(2, 2, UP))
        state, _ = step_grid(state, AntRule(), 0)
        assert state.age[2, 2] == 1

    def test_requires_agent(self):
        """Test stepping without an agent is an error."""
        with pytest.raises(ValueError):
            AntRule().apply(GridState(np.zeros((3, 3))), None)
        with pytest.raises(ValueError):
            AntRule("RX")


class TestCyclicRule:
    """Tests for the cyclic automaton."""

    def test_advance_with_successor_neighbor(self):
        """Test cells advance when enough neighbors hold the next state."""
        cells = np.zeros((5, 5), dtype=np.int32)
        cells[2, 2] = 1
        rule = CyclicRule(states=3, threshold=1, neighborhood=Neighborhood.VON_NEUMANN)
        state, _ = step_grid(GridState(cells), rule, 0)
        expected = np.zeros((5, 5), dtype=np.int32)
        expected[2, 2] = expected[1, 2] = expected[3, 2] = expected[2, 1] = expected[2, 3] = 1
        np.testing.assert_array_equal(state.cells, expected)

    def test_wraps_state_count(self):
        """Test the last state advances to zero."""
        cells = np.full((4, 4), 2, dtype=np.int32)
        cells[0, 0] = 0
        rule = CyclicRule(states=3, threshold=1, neighborhood=Neighborhood.MOORE)
        state, _ = step_grid(GridState(cells), rule, 0)
        assert state.cells[0, 1] == 0
        assert state.cells[2, 2] == 2

    def test_threshold_validated(self):
        """Test thresholds above the neighbor count are rejected."""
        with pytest.raises(ValueError):
            CyclicRule(threshold=5, neighborhood=Neighborhood.VON_NEUMANN)
        assert len(Neighborhood.EXTENDED.offsets) == 12

    def test_seeds(self):
        """Test every seed mode stays within the state range."""
        rng = np.random.default_rng(0)
        for mode in ("random", "spiral", "stripes", "corners"):
            cells = cyclic_seed((20, 30), 7, mode, rng)
            assert cells.shape == (20, 30)
            assert cells.min() >= 0 and cells.max() < 7


class TestSandpileRule:
    """Tests for the abelian sandpile."""

    def test_grains_conserved_inside(self):
        """Test center drops are conserved while avalanches stay inside."""
        state = GridState.empty(11, 11, with_age=True)
        rule = SandpileRule(critical_mass=4, drop_mode=DropMode.CENTER, drops=1)
        for _ in range(8):
            state, _ = step_grid(state, rule, 0)
        assert state.cells.sum() == 8
        assert state.cells.max() < 4

    def test_edge_topple_loses_grains(self):
        """Test grains toppled past an open edge are lost."""
        cells = np.zeros((5, 5), dtype=np.int32)
        cells[0, 0] = 4
        state = GridState(cells, age=np.zeros((5, 5)))
        state, _ = step_grid(state, SandpileRule(drops=0), 0)
        assert state.cells.sum() == 2
        assert state.cells[0, 1] == 1 and state.cells[1, 0] == 1
        assert state.age[0, 0] == 1

    def test_every_generation_ends_stable(self):
        """Test toppling continues until no cell reaches critical mass."""
        state = GridState.empty(41, 41, with_age=True)
        rule = SandpileRule(critical_mass=4, drop_mode=DropMode.CENTER, drops=10)
        for _ in range(300):
            state, _ = step_grid(state, rule, 0)
            assert state.cells.max() < 4
        assert state.generation == 300

    def test_overloaded_grid_relaxes(self):
        """Test a heavily overloaded grid is fully relaxed in one generation."""
        cells = np.full((32, 32), 9, dtype=np.int32)
        state = GridState(cells, age=np.zeros((32, 32)))
        for critical_mass in (4, 6, 8):
            relaxed, _ = step_grid(state, SandpileRule(critical_mass, drops=0), 0)
            assert relaxed.cells.max() < critical_mass
            assert relaxed.cells.sum() < cells.sum()

    def test_sweep_guard_is_logged(self, caplog):
        """Test the sweep guard stops a relaxation and logs it."""
        cells = np.full((8, 8), 9, dtype=np.int32)
        state = GridState(cells, age=np.zeros((8, 8)))
        with caplog.at_level(logging.WARNING, logger="complexsim.grid.rules"):
            partial, _ = step_grid(state, SandpileRule(drops=0, max_sweeps=1), 0)
        assert partial.cells.max() >= 4
        assert any("still unstable" in r.getMessage() for r in caplog.records)

    def test_critical_mass_below_four_rejected(self):
        """Test rules that create grains when toppling are rejected."""
        with pytest.raises(ValueError):
            SandpileRule(critical_mass=3)

    def test_random_drops_thread_rng(self):
        """Test random drops are reproducible and advance the rng state."""
        rule = SandpileRule(drop_mode=DropMode.RANDOM, drops=5)
        assert rule.uses_rng
        assert not SandpileRule().uses_rng
        state = GridState.empty(10, 10, with_age=True)
        a, rng_a = step_grid(state, rule, 1234)
        b, rng_b = step_grid(state, rule, 1234)
        assert a == b
        assert rng_a == rng_b != 1234
        assert a.cells.sum() == 5

    def test_pattern_drops_stay_inside(self):
        """Test spiral drop positions keep off the edge."""
        rule = SandpileRule(drop_mode=DropMode.PATTERN)
        for k in range(0, 5000, 37):
            x, y = rule.drop_position((20, 30), k, None)
            assert 1 <= x <= 28 and 1 <= y <= 18


class TestAggregationRule:
    """Tests for diffusion-limited aggregation."""

    def test_cluster_grows(self, small_limits):
        """Test walkers attach next to the cluster."""
        cells = aggregation_seed((60, 60), "line")
        start = GridState(cells, age=np.zeros((60, 60)))
        rule = AggregationRule(walkers=16)
        state, _ = step_grid(start, rule, 5)
        assert state.population() > start.population()
        new = (state.cells != 0) & (start.cells == 0)
        assert state.age[new].min() == 1
        assert sorted(state.age[new]) == list(range(1, int(new.sum()) + 1))

    def test_deterministic(self, small_limits):
        """Test equal inputs give equal clusters."""
        start = GridState(aggregation_seed((60, 60), "cross"), age=np.zeros((60, 60)))
        rule = AggregationRule(walkers=4)
        a, rng_a = step_grid(start, rule, 42)
        b, rng_b = step_grid(start, rule, 42)
        assert a == b
        assert rng_a == rng_b

    def test_particle_cap(self):
        """Test growth stops at max_particles."""
        start = GridState(aggregation_seed((60, 60), "line"), age=np.zeros((60, 60)))
        rule = AggregationRule(max_particles=start.population())
        state, _ = step_grid(start, rule, 0)
        np.testing.assert_array_equal(state.cells, start.cells)
        assert state.generation == 1


class TestGridAutomaton:
    """Tests for the stateful driver."""

    def test_advance_matches_step_grid(self):
        """Test advancing several generations equals chained step_grid calls."""
        rule = SandpileRule(drop_mode=DropMode.RANDOM, drops=3)
        start = GridState.empty(12, 12, with_age=True)
        automaton = GridAutomaton(rule, rng_state=7)
        state = automaton.advance(start, 5)

        expected, rng_state = start, 7
        for _ in range(5):
            expected, rng_state = step_grid(expected, rule, rng_state)
        assert state == expected
        assert automaton.rng_state == rng_state
        assert state.generation == 5

    def test_advance_zero(self):
        """Test zero or negative counts leave the snapshot alone."""
        automaton = GridAutomaton(LifeRule(), rng_state=3)
        state = GridState(blinker())
        assert automaton.advance(state, 0) is state
        assert automaton.advance(state, -2) is state
        assert automaton.rng_state == 3

    def test_rule_swap_keeps_rng_state(self):
        """Test swapping the rule carries the rng state over."""
        automaton = GridAutomaton(SandpileRule(drop_mode=DropMode.RANDOM), rng_state=11)
        state = automaton.step(GridState.empty(10, 10, with_age=True))
        carried = automaton.rng_state
        automaton.rule = LifeRule()
        automaton.step(state)
        assert automaton.rng_state == carried != 11
