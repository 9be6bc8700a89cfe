"""Grid — the arena of cells the agent searches.

The Grid owns every Cell in a flat row-major list (``index = y * width +
x``) and provides the spatial queries used by planning, belief revision
and target placement.  Cells refer to each other only through non-owning
predecessor links.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.random import Generator
    from numpy.typing import ArrayLike

from quarry.world.cell import Cell, Terrain

_CARDINAL_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1))


def check_terrain_mix(blocked_density: float, terrain_weights: Sequence[float]) -> None:
    """Validate the parameters of a random terrain draw.

    Raises:
        ValueError: If ``blocked_density`` is outside ``[0, 1)`` or
            ``terrain_weights`` is not three non-negative numbers with a
            positive sum.
    """
    if not 0.0 <= blocked_density < 1.0:
        msg = f"blocked_density must be in [0, 1), got {blocked_density}"
        raise ValueError(msg)
    if (
        len(terrain_weights) != 3
        or any(w < 0 for w in terrain_weights)
        or sum(terrain_weights) <= 0
    ):
        msg = (
            "terrain_weights must be three non-negative numbers with a "
            f"positive sum, got {list(terrain_weights)}"
        )
        raise ValueError(msg)


@dataclass
class Grid:
    """A 2D grid of search cells.

    Attributes:
        width: Number of columns.
        height: Number of rows.
        cells: Row-major list of Cell objects, ``width * height`` long.
    """

    width: int
    height: int
    cells: list[Cell] = field(repr=False)

    def __post_init__(self) -> None:
        """Check the arena matches the declared dimensions."""
        if self.width <= 0 or self.height <= 0:
            msg = f"grid dimensions must be positive, got {self.width}x{self.height}"
            raise ValueError(msg)
        if len(self.cells) != self.width * self.height:
            msg = (
                f"expected {self.width * self.height} cells for "
                f"{self.width}x{self.height}, got {len(self.cells)}"
            )
            raise ValueError(msg)

    @classmethod
    def from_codes(cls, codes: ArrayLike, *, strict: bool = False) -> Grid:
        """Build a grid from a 2D array of terrain codes indexed ``[y][x]``.

        Every cell starts with the same prior, ``1 / (width * height)``.

        Args:
            codes: Terrain codes, one row per grid row.
            strict: If True, reject codes outside ``0..3`` instead of
                coercing them to BLOCKED.

        Raises:
            InvalidTerrainCodeError: In strict mode, for an unknown code.
            ValueError: If ``codes`` is not a non-empty 2D array.
        """
        arr = np.asarray(codes)
        if arr.ndim != 2 or arr.size == 0:
            msg = f"terrain codes must be a non-empty 2D array, got shape {arr.shape}"
            raise ValueError(msg)

        height, width = arr.shape
        prior = 1.0 / (width * height)
        cells: list[Cell] = []
        for y in range(height):
            for x in range(width):
                if strict:
                    code = Terrain.parse(arr[y, x].item()).value
                else:
                    code = int(arr[y, x])
                cells.append(Cell((x, y), code, prior))
        return cls(width=width, height=height, cells=cells)

    @classmethod
    def random(
        cls,
        width: int,
        height: int,
        rng: Generator,
        *,
        blocked_density: float = 0.3,
        terrain_weights: Sequence[float] = (1.0, 1.0, 1.0),
    ) -> Grid:
        """Generate a grid with randomly assigned terrain.

        Each cell is blocked with probability ``blocked_density``;
        otherwise it is flat, hilly or forest in proportion to
        ``terrain_weights``.

        Args:
            width: Number of columns.
            height: Number of rows.
            rng: Seeded random generator.
            blocked_density: Fraction of cells expected to be blocked.
            terrain_weights: Relative weights for flat, hilly and forest.

        Raises:
            ValueError: If the dimensions or terrain mix are invalid.
        """
        if width <= 0 or height <= 0:
            msg = f"grid dimensions must be positive, got {width}x{height}"
            raise ValueError(msg)
        check_terrain_mix(blocked_density, terrain_weights)
        weights = np.asarray(terrain_weights, dtype=np.float64)
        probs = np.append(weights / weights.sum() * (1.0 - blocked_density), blocked_density)
        codes = rng.choice(len(Terrain), size=(height, width), p=probs)
        return cls.from_codes(codes)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        """Return the cell at grid coordinates ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.width}x{self.height}"
            raise IndexError(msg)
        return self.cells[y * self.width + x]

    def index_of(self, cell: Cell) -> int:
        """Return the arena index of ``cell``."""
        x, y = cell.position
        return y * self.width + x

    def neighbours(self, cell: Cell) -> list[Cell]:
        """Return the in-bounds 4-connected neighbours of ``cell``."""
        x, y = cell.position
        result: list[Cell] = []
        for dx, dy in _CARDINAL_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                result.append(self.cells[ny * self.width + nx])
        return result

    def reset_planning(self) -> None:
        """Clear cost, heuristic and predecessor on every cell."""
        for cell in self.cells:
            cell.reset_planning()

    def total_belief(self) -> float:
        """Sum of ``prob_contain`` over the grid (1.0 while consistent)."""
        return float(sum(cell.prob_contain for cell in self.cells))

    def beliefs(self) -> np.ndarray:
        """Return ``prob_contain`` as a ``(height, width)`` array."""
        values = np.fromiter(
            (cell.prob_contain for cell in self.cells),
            dtype=np.float64,
            count=len(self.cells),
        )
        return values.reshape(self.height, self.width)

    def reachable_from(self, start: Cell) -> list[Cell]:
        """Return every unblocked cell truly connected to ``start``.

        Uses the real terrain, not the agent's knowledge of it.  Returns
        an empty list when ``start`` itself is blocked.
        """
        if start.terrain is Terrain.BLOCKED:
            return []
        seen = {self.index_of(start)}
        order = [start]
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for nb in self.neighbours(current):
                idx = self.index_of(nb)
                if idx in seen or nb.terrain is Terrain.BLOCKED:
                    continue
                seen.add(idx)
                order.append(nb)
                queue.append(nb)
        return order
