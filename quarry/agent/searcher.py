"""SearchAgent — the plan / travel / examine loop.

Each cycle the agent:

1. Ranks every reachable cell by ``prob_find / (distance + 1)`` and picks
   a destination (ties: nearer first, then uniformly at random).
2. Plans an A* path there under its current knowledge of the grid.
3. Walks the path.  Entering a cell marks it visited and reveals its
   terrain; a blocked cell is never entered, it is ruled out and the
   agent re-plans from where it stands.
4. Examines the destination.  A present target is detected with the
   terrain's detection rate; a miss feeds back into the beliefs.

Movements and examinations each count as one action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from quarry.search.belief import observe_blocked, observe_failed_examination, rank_cells
from quarry.search.planner import distances_from, plan_path
from quarry.world.cell import Terrain

if TYPE_CHECKING:
    from numpy.random import Generator

    from quarry.world.cell import Cell
    from quarry.world.grid import Grid

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """Outcome of one search run.

    Attributes:
        found: Whether the target was detected.
        movements: Cells entered.
        examinations: Examinations performed.
    """

    found: bool
    movements: int
    examinations: int

    @property
    def actions(self) -> int:
        """Total actions taken (movements + examinations)."""
        return self.movements + self.examinations


@dataclass
class SearchAgent:
    """An agent hunting a stationary target on a partially known grid.

    Attributes:
        grid: The grid being searched; its cells carry the agent's beliefs.
        location: Cell the agent currently occupies.
        rng: Seeded random generator for tie-breaking and detection.
        movements: Cells entered so far.
        examinations: Examinations performed so far.
        found: Set once the target has been detected.
    """

    grid: Grid
    location: Cell
    rng: Generator = field(repr=False)
    movements: int = 0
    examinations: int = 0
    found: bool = False

    def __post_init__(self) -> None:
        """The start cell is known from the outset."""
        if self.location.terrain is Terrain.BLOCKED:
            msg = f"agent cannot start on blocked cell {self.location.position}"
            raise ValueError(msg)
        self._enter(self.location)

    @property
    def actions(self) -> int:
        return self.movements + self.examinations

    def choose_destination(self) -> Cell:
        """Rank the grid and return the cell to head for next."""
        distances = distances_from(self.grid, self.location)
        candidates = rank_cells(self.grid, distances)
        if len(candidates) == 1:
            return candidates[0]

        nearest = min(distances[self.grid.index_of(c)] for c in candidates)
        candidates = [c for c in candidates if distances[self.grid.index_of(c)] == nearest]
        return candidates[int(self.rng.integers(len(candidates)))]

    def travel(self, path: list[Cell], max_actions: int | None = None) -> bool:
        """Follow ``path`` (starting at the current location).

        Args:
            path: Planned cells, the first being the current location.
            max_actions: If given, stop before a movement would push
                movements + examinations past this budget.

        Returns:
            True if the agent reached the end of the path, False if a
            blocked cell or the action budget cut the trip short.
        """
        for cell in path[1:]:
            if not self._within_budget(max_actions):
                return False
            if cell.terrain is Terrain.BLOCKED:
                logger.debug("Blocked cell at %s, re-planning", cell.position)
                cell.mark_visited()
                observe_blocked(self.grid, cell)
                return False
            self._enter(cell)
            self.movements += 1
            self.location = cell
        return True

    def examine(self, target: Cell) -> bool:
        """Examine the current location for ``target``.

        Returns:
            True if the target was detected here.
        """
        self.examinations += 1
        cell = self.location
        if cell is target and self.rng.random() < cell.multiplier:
            self.found = True
            return True
        observe_failed_examination(self.grid, cell)
        return False

    def step(self, target: Cell, max_actions: int | None = None) -> bool:
        """Run one choose / plan / travel / examine cycle.

        Args:
            target: The hidden target's cell.
            max_actions: If given, no movement or examination is taken
                once movements + examinations reach it.

        Returns:
            True if the target was found during this cycle.
        """
        destination = self.choose_destination()
        path = plan_path(self.grid, self.location, destination)
        if path is None:
            # distances_from and plan_path share the same knowledge
            msg = f"no path from {self.location.position} to {destination.position}"
            raise RuntimeError(msg)
        if not self.travel(path, max_actions):
            return False
        if not self._within_budget(max_actions):
            return False
        return self.examine(target)

    def run(self, target: Cell, max_actions: int) -> SearchResult:
        """Search until the target is found or the action budget runs out.

        Args:
            target: The hidden target's cell.
            max_actions: Upper bound on movements + examinations; the
                result never exceeds it.

        Returns:
            The run's SearchResult.
        """
        while not self.found and self._within_budget(max_actions):
            self.step(target, max_actions)
        if not self.found:
            logger.warning("Gave up after %d actions without finding the target", self.actions)
        return SearchResult(
            found=self.found,
            movements=self.movements,
            examinations=self.examinations,
        )

    def _within_budget(self, max_actions: int | None) -> bool:
        return max_actions is None or self.actions < max_actions

    def _enter(self, cell: Cell) -> None:
        if not cell.visited:
            cell.mark_visited()
        cell.update_belief(cell.prob_contain)
