"""Tests for quarry.agent.searcher - the plan / travel / examine loop."""

import numpy as np
import pytest
from numpy.random import Generator

from quarry.agent.searcher import SearchAgent, SearchResult
from quarry.search.planner import manhattan, plan_path
from quarry.world.cell import Terrain
from quarry.world.grid import Grid


class TestSearchAgentSetup:
    """Tests for agent construction."""

    def test_start_cell_visited_and_fresh(self, open_grid: Grid, rng: Generator) -> None:
        start = open_grid.cell_at(2, 2)
        SearchAgent(grid=open_grid, location=start, rng=rng)
        assert start.visited
        assert start.multiplier == 0.8
        assert start.prob_find == start.prob_contain * 0.8

    def test_blocked_start_rejected(self, walled_grid: Grid, rng: Generator) -> None:
        with pytest.raises(ValueError):
            SearchAgent(grid=walled_grid, location=walled_grid.cell_at(2, 0), rng=rng)

    def test_result_actions(self) -> None:
        assert SearchResult(found=True, movements=4, examinations=3).actions == 7


class TestTravel:
    """Tests for walking a planned path."""

    def test_reaches_destination(self, open_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=open_grid, location=open_grid.cell_at(0, 0), rng=rng)
        goal = open_grid.cell_at(0, 3)
        path = plan_path(open_grid, agent.location, goal)
        assert path is not None

        assert agent.travel(path) is True
        assert agent.location is goal
        assert agent.movements == 3
        for cell in path:
            assert cell.visited
            assert cell.prob_find == cell.prob_contain * cell.multiplier

    def test_stops_at_blocked_cell(self, walled_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=walled_grid, location=walled_grid.cell_at(0, 0), rng=rng)
        path = plan_path(walled_grid, agent.location, walled_grid.cell_at(4, 0))
        assert path is not None

        assert agent.travel(path) is False
        wall = walled_grid.cell_at(2, 0)
        assert agent.location is walled_grid.cell_at(1, 0)
        assert agent.movements == 1
        assert wall.visited
        assert wall.prob_contain == 0.0
        assert walled_grid.total_belief() == pytest.approx(1.0)

    def test_replans_around_discovered_wall(self, walled_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=walled_grid, location=walled_grid.cell_at(1, 0), rng=rng)
        goal = walled_grid.cell_at(3, 0)
        first = plan_path(walled_grid, agent.location, goal)
        assert first is not None
        assert agent.travel(first) is False

        second = plan_path(walled_grid, agent.location, goal)
        assert second is not None
        assert walled_grid.cell_at(2, 0) not in second


class TestExamine:
    """Tests for examining the current cell."""

    def test_miss_on_empty_cell_updates_beliefs(self, open_grid: Grid, rng: Generator) -> None:
        start = open_grid.cell_at(0, 0)
        agent = SearchAgent(grid=open_grid, location=start, rng=rng)
        before = start.prob_contain

        assert agent.examine(open_grid.cell_at(4, 4)) is False
        assert agent.examinations == 1
        assert start.prob_contain < before
        assert open_grid.total_belief() == pytest.approx(1.0)

    def test_flat_target_found_eventually(self, open_grid: Grid, rng: Generator) -> None:
        start = open_grid.cell_at(0, 0)
        agent = SearchAgent(grid=open_grid, location=start, rng=rng)
        while not agent.examine(start):
            assert agent.examinations < 50
        assert agent.found

    def test_detection_uses_terrain_rate(self) -> None:
        # Forest detects 20% of the time; over many fresh trials the hit
        # rate lands near that.
        hits = 0
        rng = np.random.default_rng(0)
        for _ in range(2000):
            grid = Grid.from_codes([[2, 0]])
            start = grid.cell_at(0, 0)
            agent = SearchAgent(grid=grid, location=start, rng=rng)
            hits += agent.examine(start)
        assert 0.15 < hits / 2000 < 0.25


class TestChooseDestination:
    """Tests for ranking-driven destination choice."""

    def test_prefers_current_cell_under_uniform_belief(
        self,
        open_grid: Grid,
        rng: Generator,
    ) -> None:
        start = open_grid.cell_at(2, 2)
        agent = SearchAgent(grid=open_grid, location=start, rng=rng)
        assert agent.choose_destination() is start

    def test_tie_break_picks_a_nearest_candidate(self, open_grid: Grid, rng: Generator) -> None:
        start = open_grid.cell_at(2, 2)
        agent = SearchAgent(grid=open_grid, location=start, rng=rng)
        start.update_belief(0.0)
        dest = agent.choose_destination()
        assert dest.position in {(1, 2), (3, 2), (2, 1), (2, 3)}

    def test_heads_for_hot_cell(self, open_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=open_grid, location=open_grid.cell_at(0, 0), rng=rng)
        hot = open_grid.cell_at(4, 4)
        hot.update_belief(0.9)
        assert agent.choose_destination() is hot


class TestRun:
    """End-to-end searches on small grids."""

    def test_finds_target_on_open_grid(self, open_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=open_grid, location=open_grid.cell_at(0, 0), rng=rng)
        result = agent.run(open_grid.cell_at(4, 4), max_actions=100_000)
        assert result.found
        assert result.movements >= 8
        assert result.examinations >= 1
        assert agent.location is open_grid.cell_at(4, 4)

    def test_finds_target_behind_wall(self, walled_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=walled_grid, location=walled_grid.cell_at(0, 0), rng=rng)
        target = walled_grid.cell_at(4, 0)
        result = agent.run(target, max_actions=100_000)
        assert result.found
        assert agent.location is target
        assert walled_grid.total_belief() == pytest.approx(1.0)

    def test_budget_respected(self, open_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=open_grid, location=open_grid.cell_at(0, 0), rng=rng)
        # Uniform belief: the start cell ranks highest, so one examination
        result = agent.run(open_grid.cell_at(4, 4), max_actions=1)
        assert not result.found
        assert result.actions == 1
        assert result.examinations == 1

    def test_budget_stops_mid_path(self, open_grid: Grid, rng: Generator) -> None:
        start = open_grid.cell_at(0, 0)
        agent = SearchAgent(grid=open_grid, location=start, rng=rng)
        open_grid.cell_at(4, 4).update_belief(0.9)

        result = agent.run(open_grid.cell_at(0, 1), max_actions=2)
        assert not result.found
        assert result.actions == 2
        assert result.movements == 2
        assert result.examinations == 0
        assert manhattan(start, agent.location) == 2

    def test_budget_skips_examination(self, open_grid: Grid, rng: Generator) -> None:
        agent = SearchAgent(grid=open_grid, location=open_grid.cell_at(0, 0), rng=rng)
        goal = open_grid.cell_at(2, 0)
        goal.update_belief(0.9)
        assert agent.step(open_grid.cell_at(4, 4), max_actions=2) is False
        assert agent.location is goal
        assert agent.examinations == 0

    @pytest.mark.parametrize("budget", [1, 5, 17, 40])
    def test_budget_never_exceeded_on_random_grid(self, budget: int) -> None:
        rng = np.random.default_rng(budget)
        grid = Grid.random(8, 8, rng)
        start = next(c for c in grid if c.terrain is not Terrain.BLOCKED)
        target = grid.reachable_from(start)[-1]
        agent = SearchAgent(grid=grid, location=start, rng=rng)
        result = agent.run(target, max_actions=budget)
        assert result.actions <= budget

    def test_random_grid_search(self, rng: Generator) -> None:
        grid = Grid.random(10, 10, rng)
        start = next(c for c in grid if c.terrain is not Terrain.BLOCKED)
        reachable = grid.reachable_from(start)
        target = reachable[-1]
        agent = SearchAgent(grid=grid, location=start, rng=rng)
        result = agent.run(target, max_actions=1_000_000)
        assert result.found
        for cell in grid:
            assert cell.prob_find == cell.prob_contain * cell.multiplier
