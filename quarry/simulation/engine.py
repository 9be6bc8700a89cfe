"""SimulationEngine — runs independent search trials.

Each trial follows the same order:

1. Generate a random grid from the config.
2. Place the agent on a random unblocked cell.
3. Hide the target on a random cell truly reachable from the agent.
4. Let the agent search until it finds the target or runs out of actions.

All randomness flows from one seeded generator, so a seed reproduces the
whole batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.random import Generator

from quarry.agent.searcher import SearchAgent
from quarry.simulation.config import SimulationConfig
from quarry.world.cell import Cell, Terrain
from quarry.world.grid import Grid

logger = logging.getLogger(__name__)


@dataclass
class TrialResult:
    """Outcome of a single trial.

    Attributes:
        found: Whether the agent detected the target.
        movements: Cells entered.
        examinations: Examinations performed.
        target_terrain: Terrain of the target's cell.
    """

    found: bool
    movements: int
    examinations: int
    target_terrain: Terrain

    @property
    def actions(self) -> int:
        return self.movements + self.examinations


@dataclass
class TrialSummary:
    """Aggregate statistics over a batch of trials.

    Attributes:
        trials: Number of trials summarised.
        found: Trials in which the target was detected.
        mean_actions: Mean actions per trial (0.0 for an empty batch).
        mean_actions_by_terrain: Mean actions per target terrain, only for
            terrains that occurred.
    """

    trials: int
    found: int
    mean_actions: float
    mean_actions_by_terrain: dict[Terrain, float] = field(default_factory=dict)


@dataclass
class Trial:
    """A freshly generated grid with the agent and target placed."""

    grid: Grid
    start: Cell
    target: Cell


@dataclass
class SimulationEngine:
    """Generates and runs search trials.

    Attributes:
        config: Loaded simulation configuration.
        rng: Master seeded random generator.
        trials_run: Number of trials completed.
    """

    config: SimulationConfig
    rng: Generator = field(init=False)
    trials_run: int = 0

    def __post_init__(self) -> None:
        """Seed the RNG from config."""
        self.rng = np.random.default_rng(self.config.seed)

    def new_trial(self) -> Trial:
        """Generate a grid and place the agent and target.

        Grids without an unblocked cell are regenerated.
        """
        cfg = self.config
        while True:
            grid = Grid.random(
                cfg.grid_width,
                cfg.grid_height,
                self.rng,
                blocked_density=cfg.blocked_density,
                terrain_weights=cfg.terrain_weights,
            )
            open_cells = [c for c in grid if c.terrain is not Terrain.BLOCKED]
            if open_cells:
                break
            logger.debug("Generated a fully blocked grid, retrying")

        start = open_cells[int(self.rng.integers(len(open_cells)))]
        reachable = grid.reachable_from(start)
        target = reachable[int(self.rng.integers(len(reachable)))]
        return Trial(grid=grid, start=start, target=target)

    def run_trial(self) -> TrialResult:
        """Generate one trial and let the agent search it."""
        trial = self.new_trial()
        agent = SearchAgent(grid=trial.grid, location=trial.start, rng=self.rng)
        outcome = agent.run(trial.target, self.config.max_actions)
        self.trials_run += 1

        result = TrialResult(
            found=outcome.found,
            movements=outcome.movements,
            examinations=outcome.examinations,
            target_terrain=trial.target.terrain,
        )
        logger.info(
            "Trial %d: found=%s actions=%d (moves=%d, exams=%d) target=%s on %s",
            self.trials_run,
            result.found,
            result.actions,
            result.movements,
            result.examinations,
            trial.target.position,
            result.target_terrain.name.lower(),
        )
        return result

    def run(self, trials: int) -> list[TrialResult]:
        """Run a fixed number of trials.

        Args:
            trials: Number of trials to run.
        """
        return [self.run_trial() for _ in range(trials)]


def summarise(results: list[TrialResult]) -> TrialSummary:
    """Aggregate a batch of trial results."""
    if not results:
        return TrialSummary(trials=0, found=0, mean_actions=0.0)

    actions = np.array([r.actions for r in results], dtype=np.float64)
    terrains = np.array([r.target_terrain.value for r in results])
    by_terrain = {
        terrain: float(actions[terrains == terrain.value].mean())
        for terrain in Terrain
        if np.any(terrains == terrain.value)
    }
    return TrialSummary(
        trials=len(results),
        found=sum(r.found for r in results),
        mean_actions=float(actions.mean()),
        mean_actions_by_terrain=by_terrain,
    )
