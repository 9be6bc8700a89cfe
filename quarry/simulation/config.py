"""Config — load search-trial parameters from YAML files.

Grid size, terrain mix and the action budget live in YAML and are parsed
into a typed dataclass here, so trials can be varied without code changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from quarry.world.grid import check_terrain_mix


@dataclass
class SimulationConfig:
    """Top-level configuration for a batch of search trials.

    Attributes:
        seed: RNG seed for deterministic replay.
        grid_width: Number of grid columns.
        grid_height: Number of grid rows.
        blocked_density: Probability that any given cell is blocked.
        terrain_weights: Relative weights for flat, hilly and forest
            among unblocked cells.
        max_actions: Movements + examinations allowed per trial before
            the agent gives up.
        trials: Number of trials ``python -m quarry`` runs by default.
    """

    seed: int = 42
    grid_width: int = 50
    grid_height: int = 50
    blocked_density: float = 0.3
    terrain_weights: list[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])
    max_actions: int = 1_000_000
    trials: int = 10

    def __post_init__(self) -> None:
        """Validate ranges that would otherwise fail deep inside a trial."""
        if self.grid_width <= 0 or self.grid_height <= 0:
            msg = f"grid dimensions must be positive, got {self.grid_width}x{self.grid_height}"
            raise ValueError(msg)
        check_terrain_mix(self.blocked_density, self.terrain_weights)
        if self.max_actions <= 0:
            msg = f"max_actions must be positive, got {self.max_actions}"
            raise ValueError(msg)
        if self.trials <= 0:
            msg = f"trials must be positive, got {self.trials}"
            raise ValueError(msg)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
            ValueError: If a value is out of range.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            seed=data.get("seed", cls.seed),
            grid_width=data.get("grid_width", cls.grid_width),
            grid_height=data.get("grid_height", cls.grid_height),
            blocked_density=data.get("blocked_density", cls.blocked_density),
            terrain_weights=list(data.get("terrain_weights", [1.0, 1.0, 1.0])),
            max_actions=data.get("max_actions", cls.max_actions),
            trials=data.get("trials", cls.trials),
        )
