"""Action engine: build, upgrade and bulldoze between ticks.

Every operation is pure. A rejected action returns the input grid and stats
untouched; an accepted one returns a grid in which only the target row is
rebuilt. Rejections are ordinary results, never exceptions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from fablerealm.catalog import MAX_LEVEL, CAPSTONE_TYPE, get_config, is_placeable
from fablerealm.grid import in_bounds, replace_tile
from fablerealm.schemas import BuildingType, CityStats, Grid, NewsType

UPGRADE_COST_FACTOR = 1.8
BULLDOZE_FEE = 20


class ActionKind(str, Enum):
    BUILD = "build"
    UPGRADE = "upgrade"
    BULLDOZE = "bulldoze"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a player action.

    ``classification`` drives news-feed colouring and audio cues; the engine
    itself never plays sounds or writes news.
    """

    grid: Grid
    stats: CityStats
    success: bool
    message: str
    classification: NewsType


def _rejected(grid: Grid, stats: CityStats, message: str, classification: NewsType) -> ActionResult:
    return ActionResult(grid, stats, False, message, classification)


def classify_tool(tool: BuildingType) -> ActionKind:
    """Map a selected tool to the action it performs."""
    if tool == BuildingType.UPGRADE:
        return ActionKind.UPGRADE
    if tool == BuildingType.NONE:
        return ActionKind.BULLDOZE
    return ActionKind.BUILD


def upgrade_cost(building_type: BuildingType, current_level: int) -> int:
    """Gold needed to raise a structure from ``current_level`` to the next tier.

    Scales the structure's build cost, not its maintenance.
    """
    base_cost = get_config(building_type).cost
    return math.floor(base_cost * (current_level + 1) * UPGRADE_COST_FACTOR)


def execute(
    tool: BuildingType,
    grid: Grid,
    stats: CityStats,
    x: int,
    y: int,
    variant: int = 0,
) -> ActionResult:
    """Dispatch the selected tool at (x, y)."""
    if not in_bounds(grid, x, y):
        return _rejected(
            grid, stats, "That land lies beyond the kingdom's borders.", NewsType.NEUTRAL
        )

    kind = classify_tool(tool)
    if kind is ActionKind.UPGRADE:
        return upgrade_tile(grid, stats, x, y)
    if kind is ActionKind.BULLDOZE:
        return bulldoze_tile(grid, stats, x, y)
    return build_tile(grid, stats, x, y, tool, variant)


def build_tile(
    grid: Grid,
    stats: CityStats,
    x: int,
    y: int,
    building_type: BuildingType,
    variant: int = 0,
) -> ActionResult:
    tile = grid[y][x]
    config = get_config(building_type)

    if not is_placeable(building_type):
        return _rejected(grid, stats, "Unknown building type.", NewsType.NEUTRAL)

    if not tile.is_empty:
        return _rejected(grid, stats, "That land is already occupied.", NewsType.NEUTRAL)

    if stats.money < config.cost:
        return _rejected(
            grid,
            stats,
            f"Thy treasury needs {config.cost}g to establish this {config.name}.",
            NewsType.NEGATIVE,
        )

    new_grid = replace_tile(grid, x, y, building_type=building_type, level=1, variant=variant)
    new_stats = stats.model_copy(update={"money": stats.money - config.cost})

    if building_type == CAPSTONE_TYPE:
        message = "The Great Portal has been opened! A new age of cosmic prosperity begins!"
    else:
        message = f"Established {config.name}."
    return ActionResult(new_grid, new_stats, True, message, NewsType.POSITIVE)


def upgrade_tile(grid: Grid, stats: CityStats, x: int, y: int) -> ActionResult:
    tile = grid[y][x]

    if not tile.is_structure:
        return _rejected(grid, stats, "Only structures can be enhanced.", NewsType.NEUTRAL)

    if tile.level >= MAX_LEVEL:
        return _rejected(
            grid, stats, "Structure is already at max magical resonance.", NewsType.NEUTRAL
        )

    cost = upgrade_cost(tile.building_type, tile.level)
    if stats.money < cost:
        return _rejected(
            grid,
            stats,
            f"The treasury lacks the {cost}g required for this rite.",
            NewsType.NEGATIVE,
        )

    new_level = tile.level + 1
    new_grid = replace_tile(grid, x, y, level=new_level)
    new_stats = stats.model_copy(update={"money": stats.money - cost})
    name = get_config(tile.building_type).name
    return ActionResult(
        new_grid, new_stats, True, f"{name} enhanced to Tier {new_level}.", NewsType.POSITIVE
    )


def bulldoze_tile(grid: Grid, stats: CityStats, x: int, y: int) -> ActionResult:
    tile = grid[y][x]

    if tile.is_empty:
        return _rejected(grid, stats, "The land is already clear.", NewsType.NEUTRAL)

    new_grid = replace_tile(grid, x, y, building_type=BuildingType.NONE, level=1, variant=None)
    new_stats = stats.model_copy(update={"money": max(0, stats.money - BULLDOZE_FEE)})
    return ActionResult(new_grid, new_stats, True, "Tile cleared by Royal decree.", NewsType.NEUTRAL)
