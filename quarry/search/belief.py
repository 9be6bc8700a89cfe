"""Belief revision and destination ranking.

After every observation the agent conditions its belief over target
location on what it saw:

- Running into a blocked cell rules it out entirely.
- Examining a cell without success lowers that cell's belief by its
  false-negative rate and raises every other cell's proportionally.

Both updates finish by calling ``Cell.update_belief`` on every cell so
``prob_find == prob_contain * multiplier`` holds across the grid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quarry.world.cell import Cell
    from quarry.world.grid import Grid


def _rescale(grid: Grid, observed: Cell, observed_belief: float, norm: float) -> None:
    for cell in grid:
        if cell is observed:
            cell.update_belief(observed_belief)
        else:
            cell.update_belief(cell.prob_contain / norm)


def observe_blocked(grid: Grid, cell: Cell) -> None:
    """Condition beliefs on ``cell`` being impassable.

    Raises:
        ValueError: If all belief mass is already on ``cell``.
    """
    norm = 1.0 - cell.prob_contain
    if norm <= 0.0:
        msg = f"cannot rule out {cell.position}: it holds all belief mass"
        raise ValueError(msg)
    _rescale(grid, cell, 0.0, norm)


def observe_failed_examination(grid: Grid, cell: Cell) -> None:
    """Condition beliefs on an unsuccessful examination of ``cell``.

    Uses the cell's current multiplier as the detection rate, so the
    cell should have been visited (terrain known) before examining.

    Raises:
        ValueError: If a miss was impossible under the current belief.
    """
    p = cell.prob_contain
    rate = cell.multiplier
    norm = 1.0 - p * rate
    if norm <= 0.0:
        msg = f"examination of {cell.position} could not have failed"
        raise ValueError(msg)
    _rescale(grid, cell, p * (1.0 - rate) / norm, norm)


def rank_cells(grid: Grid, distances: dict[int, int]) -> list[Cell]:
    """Score every cell and return the best-scoring candidates.

    Reachable cells get ``rank_score = prob_find / (distance + 1)``, the
    ``+ 1`` paying for the examination itself.  Unreachable cells get 0
    and are never candidates.

    Args:
        grid: The grid being searched.
        distances: Arena index to step count, from ``distances_from``.

    Returns:
        All reachable cells sharing the maximum score (empty only if
        nothing is reachable).
    """
    best: list[Cell] = []
    best_score = -1.0
    for cell in grid:
        d = distances.get(grid.index_of(cell))
        if d is None:
            cell.rank_score = 0.0
            continue
        score = cell.prob_find / (d + 1)
        cell.rank_score = score
        if score > best_score:
            best_score = score
            best = [cell]
        elif score == best_score:
            best.append(cell)
    return best
