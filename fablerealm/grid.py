"""Grid construction and functional-update helpers.

A grid is a square list of rows indexed ``grid[y][x]``. Nothing in this module
mutates its input; ``replace_tile`` rebuilds only the affected row and shares
every other row object with the original grid.
"""

from __future__ import annotations

from typing import Iterator

from fablerealm.config import Config
from fablerealm.schemas import BuildingType, CityStats, Grid, Tile


def create_grid(size: int | None = None) -> Grid:
    """Return an empty ``size`` x ``size`` grid (defaults to ``Config.GRID_SIZE``)."""
    size = Config.GRID_SIZE if size is None else size
    if size < 1:
        raise ValueError(f"Grid size must be positive, got {size}")
    return [[Tile(x=x, y=y) for x in range(size)] for y in range(size)]


def initial_stats(money: int | None = None) -> CityStats:
    """Stats for a freshly founded kingdom."""
    return CityStats(money=Config.INITIAL_MONEY if money is None else money)


def in_bounds(grid: Grid, x: int, y: int) -> bool:
    return 0 <= y < len(grid) and 0 <= x < len(grid[y])


def iter_tiles(grid: Grid) -> Iterator[Tile]:
    """Yield tiles in row-major order (left-to-right, top-to-bottom)."""
    for row in grid:
        yield from row


def replace_tile(grid: Grid, x: int, y: int, **changes) -> Grid:
    """Return a new grid with the tile at (x, y) updated by ``changes``."""
    row = grid[y]
    new_row = list(row)
    new_row[x] = row[x].model_copy(update=changes)
    new_grid = list(grid)
    new_grid[y] = new_row
    return new_grid


def count_buildings(grid: Grid, building_type: BuildingType) -> int:
    return sum(1 for tile in iter_tiles(grid) if tile.building_type == building_type)


def building_counts(grid: Grid) -> dict[str, int]:
    """Count of every non-empty tile type (roads included)."""
    counts: dict[str, int] = {}
    for tile in iter_tiles(grid):
        if tile.is_empty:
            continue
        key = tile.building_type.value
        counts[key] = counts.get(key, 0) + 1
    return counts


def distinct_building_types(grid: Grid) -> set[BuildingType]:
    """Distinct structure types present, excluding empty land and roads."""
    return {tile.building_type for tile in iter_tiles(grid) if tile.is_structure}
