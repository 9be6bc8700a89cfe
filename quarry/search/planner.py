"""Planner — A* over the agent's current knowledge of the grid.

Unvisited cells are assumed passable; a cell only becomes an obstacle
once the agent has bumped into it and found it blocked.  Each call to
``plan_path`` is one planning pass: it resets the transient state of
every cell, then writes cost-so-far, heuristic and predecessor as edges
are relaxed.

Open-set ordering is ``(f, h, seq)``: lowest f first, ties to the lower
heuristic (closer to the goal), then FIFO.
"""

from __future__ import annotations

import heapq
from collections import deque
from typing import TYPE_CHECKING

from quarry.world.cell import Cell, Terrain

if TYPE_CHECKING:
    from quarry.world.grid import Grid

_STEP_COST = 1.0


def known_blocked(cell: Cell) -> bool:
    """Return True if the agent has discovered ``cell`` to be blocked."""
    return cell.visited and cell.terrain is Terrain.BLOCKED


def manhattan(a: Cell, b: Cell) -> float:
    """Manhattan distance between two cells (admissible on a 4-grid)."""
    (ax, ay), (bx, by) = a.position, b.position
    return float(abs(ax - bx) + abs(ay - by))


def reconstruct_path(cell: Cell) -> list[Cell]:
    """Walk predecessor links back to the root and return root-first.

    Raises:
        ValueError: If the predecessor links contain a cycle.
    """
    path: list[Cell] = []
    seen: set[int] = set()
    current: Cell | None = cell
    while current is not None:
        if id(current) in seen:
            msg = f"predecessor cycle detected at {current.position}"
            raise ValueError(msg)
        seen.add(id(current))
        path.append(current)
        current = current.predecessor
    path.reverse()
    return path


def plan_path(grid: Grid, start: Cell, goal: Cell) -> list[Cell] | None:
    """Find a shortest path from ``start`` to ``goal`` under current knowledge.

    Args:
        grid: The grid being searched.
        start: Cell the agent currently occupies.
        goal: Destination cell.

    Returns:
        Cells from ``start`` to ``goal`` inclusive, or None when the goal
        is known blocked or walled off by known-blocked cells.
    """
    grid.reset_planning()
    if known_blocked(goal):
        return None

    start.cost_so_far = 0.0
    start.heuristic = manhattan(start, goal)

    seq = 0
    open_heap: list[tuple[float, float, int, Cell]] = [
        (start.combined_score, start.heuristic, seq, start),
    ]
    discovered = {grid.index_of(start)}
    closed: set[int] = set()

    while open_heap:
        _, _, _, current = heapq.heappop(open_heap)
        idx = grid.index_of(current)
        if idx in closed:
            continue
        if current is goal:
            return reconstruct_path(goal)
        closed.add(idx)

        tentative = current.cost_so_far + _STEP_COST
        for nb in grid.neighbours(current):
            nb_idx = grid.index_of(nb)
            if nb_idx in closed or known_blocked(nb):
                continue
            if nb_idx in discovered and tentative >= nb.cost_so_far:
                continue
            discovered.add(nb_idx)
            nb.cost_so_far = tentative
            nb.heuristic = manhattan(nb, goal)
            nb.predecessor = current
            seq += 1
            heapq.heappush(open_heap, (nb.combined_score, nb.heuristic, seq, nb))

    return None


def distances_from(grid: Grid, origin: Cell) -> dict[int, int]:
    """Breadth-first step counts from ``origin`` over known-passable cells.

    Returns:
        Mapping from arena index to distance; unreachable cells are absent.
    """
    dist = {grid.index_of(origin): 0}
    queue = deque([origin])
    while queue:
        current = queue.popleft()
        d = dist[grid.index_of(current)] + 1
        for nb in grid.neighbours(current):
            nb_idx = grid.index_of(nb)
            if nb_idx in dist or known_blocked(nb):
                continue
            dist[nb_idx] = d
            queue.append(nb)
    return dist
