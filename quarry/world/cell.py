"""Cell — per-location belief and search state.

A cell fuses three concerns that the search agent touches on every step:

- **Terrain**: fixed at construction; decides how likely an examination
  is to reveal the target once the terrain is known.
- **Belief**: ``prob_contain`` (the target is here) and ``prob_find``
  (examining here now finds it), linked by ``multiplier``.
- **Planning bookkeeping**: cost-so-far, heuristic and predecessor,
  grouped in a ``PlanState`` so a new planning pass can reset them
  without touching belief.

The cell performs no belief arithmetic beyond ``prob_find = prob_contain
* multiplier``; revision across the grid lives in ``quarry.search.belief``.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from enum import Enum

# -- Constants ---------------------------------------------------------------

_UNVISITED_MULTIPLIER = 0.5  # terrain unknown until the cell is visited


class InvalidTerrainCodeError(ValueError):
    """Raised by strict terrain parsing for a code outside ``0..3``."""

    def __init__(self, code: int) -> None:
        self.code = code
        super().__init__(f"invalid terrain code {code!r}, expected 0, 1, 2 or 3")


class Terrain(Enum):
    """Terrain classification; the value is an ordinal used for selection."""

    FLAT = 0
    HILLY = 1
    FOREST = 2
    BLOCKED = 3

    @classmethod
    def from_code(cls, code: int) -> Terrain:
        """Map a terrain code, coercing anything unknown to BLOCKED."""
        if code == 0:
            return cls.FLAT
        if code == 1:
            return cls.HILLY
        if code == 2:
            return cls.FOREST
        return cls.BLOCKED

    @classmethod
    def parse(cls, code: int) -> Terrain:
        """Map a terrain code strictly.

        Non-integral codes such as ``1.0`` or ``3.5`` are rejected too.

        Raises:
            InvalidTerrainCodeError: If ``code`` is not 0, 1, 2 or 3.
        """
        try:
            return cls(operator.index(code))
        except (TypeError, ValueError):
            raise InvalidTerrainCodeError(code) from None

    @property
    def detection_rate(self) -> float:
        """Probability an examination finds a target present on this terrain."""
        return _DETECTION_RATES[self]


_DETECTION_RATES: dict[Terrain, float] = {
    Terrain.FLAT: 0.8,
    Terrain.HILLY: 0.5,
    Terrain.FOREST: 0.2,
    Terrain.BLOCKED: 0.0,
}


@dataclass
class PlanState:
    """Transient bookkeeping written by one planning pass.

    Attributes:
        cost_so_far: Steps from the pass's start cell (g).
        heuristic: Estimated steps to the pass's goal (h).
        predecessor: Parent on the planned path.  Non-owning; the grid
            owns every cell.
    """

    cost_so_far: float = 0.0
    heuristic: float = 0.0
    predecessor: Cell | None = None

    def reset(self) -> None:
        """Clear everything a previous pass may have written."""
        self.cost_so_far = 0.0
        self.heuristic = 0.0
        self.predecessor = None


class Cell:
    """A single grid location as seen by the searching agent.

    Args:
        position: ``(x, y)`` coordinate; the grid's lookup key.
        terrain_code: ``0`` flat, ``1`` hilly, ``2`` forest, anything
            else blocked.
        prior: Initial probability that the target is here.
    """

    __slots__ = (
        "_multiplier",
        "_position",
        "_prob_contain",
        "_prob_find",
        "_terrain",
        "_visited",
        "plan",
        "rank_score",
    )

    def __init__(self, position: tuple[int, int], terrain_code: int, prior: float) -> None:
        self._position = (int(position[0]), int(position[1]))
        self._terrain = Terrain.from_code(terrain_code)
        self._visited = False
        self._multiplier = _UNVISITED_MULTIPLIER
        self._prob_contain = prior
        self._prob_find = prior * self._multiplier
        self.plan = PlanState()
        self.rank_score = 0.0

    def __repr__(self) -> str:
        return (
            f"Cell(position={self._position}, terrain={self._terrain.name}, "
            f"visited={self._visited}, prob_contain={self._prob_contain:.6g})"
        )

    # -- Read-only state -----------------------------------------------------

    @property
    def position(self) -> tuple[int, int]:
        return self._position

    @property
    def terrain(self) -> Terrain:
        return self._terrain

    @property
    def visited(self) -> bool:
        return self._visited

    @property
    def multiplier(self) -> float:
        return self._multiplier

    @property
    def prob_contain(self) -> float:
        return self._prob_contain

    @property
    def prob_find(self) -> float:
        return self._prob_find

    # -- Planning ------------------------------------------------------------

    @property
    def cost_so_far(self) -> float:
        return self.plan.cost_so_far

    @cost_so_far.setter
    def cost_so_far(self, g: float) -> None:
        self.plan.cost_so_far = g

    @property
    def heuristic(self) -> float:
        return self.plan.heuristic

    @heuristic.setter
    def heuristic(self, h: float) -> None:
        self.plan.heuristic = h

    @property
    def predecessor(self) -> Cell | None:
        return self.plan.predecessor

    @predecessor.setter
    def predecessor(self, cell: Cell | None) -> None:
        self.plan.predecessor = cell

    @property
    def combined_score(self) -> float:
        """A* priority ``f = g + h``, recomputed on every read."""
        return self.plan.cost_so_far + self.plan.heuristic

    def reset_planning(self) -> None:
        """Reset cost, heuristic and predecessor; belief is untouched."""
        self.plan.reset()

    # -- Belief --------------------------------------------------------------

    def mark_visited(self) -> None:
        """Record a visit and switch to the terrain's detection multiplier.

        ``prob_find`` keeps its previous value until the next
        ``update_belief`` call.
        """
        self._visited = True
        self._multiplier = self._terrain.detection_rate

    def update_belief(self, p: float) -> None:
        """Overwrite ``prob_contain`` and recompute ``prob_find``."""
        self._prob_contain = p
        self._prob_find = p * self._multiplier
