"""Entry point for ``python -m quarry``.

Loads the default YAML config, runs a batch of search trials, and prints
how many actions the agent needed on average.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from quarry.simulation.config import SimulationConfig
from quarry.simulation.engine import SimulationEngine, TrialSummary, summarise

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def format_summary(summary: TrialSummary) -> str:
    """Render a batch summary as human-readable lines."""
    lines = [
        f"trials:        {summary.trials}",
        f"found:         {summary.found}",
        f"mean actions:  {summary.mean_actions:.1f}",
    ]
    for terrain, mean in summary.mean_actions_by_terrain.items():
        lines.append(f"  {terrain.name.lower():<12} {mean:.1f}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, run trials, print the summary."""
    parser = argparse.ArgumentParser(
        prog="quarry",
        description="Quarry - probabilistic target search on a terrain grid",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-n",
        "--trials",
        type=int,
        default=None,
        help="Number of trials to run (default: from config)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the config's RNG seed",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log each trial (-v) or every re-plan (-vv)",
    )
    args = parser.parse_args(argv)
    if args.trials is not None and args.trials <= 0:
        parser.error(f"--trials must be positive, got {args.trials}")

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")

    config = SimulationConfig.from_yaml(args.config)
    if args.seed is not None:
        config.seed = args.seed
    engine = SimulationEngine(config=config)

    trials = args.trials if args.trials is not None else config.trials
    results = engine.run(trials)
    print(format_summary(summarise(results)))


if __name__ == "__main__":
    main()
