"""Headless kingdom runner.

Usage:
    fablerealm --ticks 30 --build residential:2,2 --build power_plant:4,4
    fablerealm --ticks 100 --save-dir kingdoms --profile aurelia --no-ai
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from typing import List, Optional, Tuple

from fablerealm.config import Config
from fablerealm.orchestrator import Orchestrator
from fablerealm.persistence import InMemoryPersistence, JsonPersistence
from fablerealm.schemas import BuildingType
from fablerealm.simulation_rules import format_stats_summary


def parse_build(value: str) -> Tuple[BuildingType, int, int]:
    """Parse ``type:x,y`` (e.g. ``residential:2,3``)."""
    try:
        kind, coords = value.split(":", 1)
        x_text, y_text = coords.split(",", 1)
        return BuildingType(kind.strip().lower()), int(x_text), int(y_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid build '{value}'; expected type:x,y (e.g. residential:2,3)"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a FableRealm kingdom without a UI.")
    parser.add_argument("--ticks", type=int, default=10, help="Number of ticks to simulate")
    parser.add_argument(
        "--tick-rate", type=float, default=None, help="Seconds between ticks (default from config)"
    )
    parser.add_argument(
        "--build",
        action="append",
        type=parse_build,
        default=[],
        metavar="TYPE:X,Y",
        help="Place a structure before the first tick (repeatable)",
    )
    parser.add_argument("--profile", default=None, help="Profile id to load and save")
    parser.add_argument(
        "--save-dir", default=None, help="Persist profiles as JSON in this directory"
    )
    parser.add_argument("--no-ai", action="store_true", help="Use local quests only")
    parser.add_argument("--seed", type=int, default=None, help="Seed for quest and news rolls")
    return parser


async def run_session(args: argparse.Namespace) -> int:
    persistence = JsonPersistence(args.save_dir) if args.save_dir else InMemoryPersistence()
    orchestrator = Orchestrator(
        persistence=persistence,
        profile_id=args.profile,
        ai_enabled=False if args.no_ai else None,
        tick_rate_seconds=args.tick_rate,
        rng=random.Random(args.seed) if args.seed is not None else None,
    )

    builds: List[Tuple[BuildingType, int, int]] = args.build
    if builds:
        await orchestrator.start()
        for tool, x, y in builds:
            result = orchestrator.apply_action(tool, x, y)
            print(f"  {tool.value} @ ({x},{y}): {result.message}")

    outcome = await orchestrator.run(num_ticks=args.ticks)
    print("\n" + format_stats_summary(outcome["stats"]))
    if orchestrator.current_goal is not None:
        goal = orchestrator.current_goal
        status = "completed" if goal.completed else "active"
        print(f"Quest ({status}): {goal.description}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.no_ai:
        try:
            Config.validate()
        except ValueError as exc:
            print(f"Configuration error: {exc}", file=sys.stderr)
            return 2
        print(Config.display() + "\n")
    return asyncio.run(run_session(args))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
