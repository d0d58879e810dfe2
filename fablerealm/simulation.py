"""Tick engine: one deterministic economic step over the whole grid.

Order of a tick:

1. Resolve coverage through the signature-keyed cache.
2. First pass: total mana/essence supply and total maintenance.
3. Second pass, row-major: greedy all-or-nothing resource allocation, then
   per-tile happiness and effectiveness, then income and population growth.
4. Build the next grid and stats.

Allocation is first-come in row-major order, so an earlier tile can starve a
later one when supply is short.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from fablerealm.catalog import (
    HIGHER_KNOWLEDGE_TYPE,
    INDUSTRIAL_TYPES,
    CoverageChannel,
    get_config,
)
from fablerealm.coverage import CoverageCache, CoverageMap
from fablerealm.grid import iter_tiles
from fablerealm.schemas import BuildingType, CityStats, Grid, Tile
from fablerealm.simulation_rules import SimulationRules

BASE_HAPPINESS = 75
RESOURCE_DENIED_PENALTY = 40
INDUSTRIAL_PENALTY = 30
INDUSTRIAL_SCAN_RADIUS = 3
HIGHER_KNOWLEDGE_SCAN_RADIUS = 8
FALLBACK_EFFECTIVENESS = 0.1
EFFICIENCY_MULTIPLIER = 1.2
TIME_STEP_HOURS = 0.1

# Residential coverage modifiers: channel -> (covered, uncovered)
RESIDENTIAL_COVERAGE_BONUS = {
    CoverageChannel.GUARD: (15, -20),
    CoverageChannel.WARD: (15, -15),
    CoverageChannel.NATURE: (20, 0),
    CoverageChannel.CONFECTIONERY: (12, 0),
    CoverageChannel.TRADE: (15, 0),
    CoverageChannel.COSMIC: (10, 0),
    CoverageChannel.CELESTIAL: (50, 0),
}
KNOWLEDGE_BONUS = 20
HIGHER_KNOWLEDGE_BONUS = 25


@dataclass(frozen=True)
class TickReport:
    """Unfloored totals from the most recent tick, kept for diagnostics."""

    income_total: float
    maintenance_total: int
    population_growth: float
    average_happiness: float
    residential_count: int


def has_building_nearby(
    grid: Grid, x: int, y: int, radius: int, building_types: frozenset[BuildingType]
) -> bool:
    """Square (Chebyshev) scan around (x, y) for any of ``building_types``."""
    height = len(grid)
    for ny in range(max(0, y - radius), min(height, y + radius + 1)):
        row = grid[ny]
        for nx in range(max(0, x - radius), min(len(row), x + radius + 1)):
            if row[nx].building_type in building_types:
                return True
    return False


def residential_happiness(
    grid: Grid, coverage: CoverageMap, x: int, y: int, happiness: int
) -> int:
    """Apply coverage bonuses and the industrial penalty to a cottage."""
    for channel, (covered, uncovered) in RESIDENTIAL_COVERAGE_BONUS.items():
        happiness += covered if coverage.covers(channel, x, y) else uncovered

    if coverage.covers(CoverageChannel.KNOWLEDGE, x, y):
        academy_nearby = has_building_nearby(
            grid, x, y, HIGHER_KNOWLEDGE_SCAN_RADIUS, frozenset({HIGHER_KNOWLEDGE_TYPE})
        )
        happiness += HIGHER_KNOWLEDGE_BONUS if academy_nearby else KNOWLEDGE_BONUS

    if has_building_nearby(grid, x, y, INDUSTRIAL_SCAN_RADIUS, INDUSTRIAL_TYPES):
        happiness -= INDUSTRIAL_PENALTY

    return happiness


def effectiveness(has_mana: bool, has_essence: bool, happiness: int, efficient: bool) -> float:
    """Output multiplier in [0.1, 1.2]; never zero even with no resources."""
    if has_mana and has_essence:
        base = 0.2 + (happiness / 100) * 0.8
    else:
        base = FALLBACK_EFFECTIVENESS
    return base * (EFFICIENCY_MULTIPLIER if efficient else 1.0)


class TickEngine(SimulationRules):
    """Default kingdom economy.

    Holds the coverage cache; otherwise stateless. ``last_report`` exposes the
    unfloored totals of the previous ``advance`` call.
    """

    def __init__(self, coverage_cache: CoverageCache | None = None) -> None:
        self.coverage_cache = coverage_cache or CoverageCache()
        self.last_report: TickReport | None = None

    def advance(self, grid: Grid, stats: CityStats) -> Tuple[Grid, CityStats]:
        coverage = self.coverage_cache.resolve(grid)

        mana_supply = 0
        essence_supply = 0
        maintenance_total = 0
        for tile in iter_tiles(grid):
            config = get_config(tile.building_type)
            mana_supply += config.mana_yield * tile.level
            essence_supply += config.essence_yield * tile.level
            maintenance_total += config.maintenance * tile.level

        mana_used = 0
        essence_used = 0
        income_total = 0.0
        pop_growth = 0.0
        residential_total = 0
        residential_count = 0

        new_grid: Grid = []
        for y, row in enumerate(grid):
            new_row: list[Tile] = []
            for x, tile in enumerate(row):
                coverage_flags = {
                    "has_guards": coverage.covers(CoverageChannel.GUARD, x, y),
                    "has_magic_safety": coverage.covers(CoverageChannel.WARD, x, y),
                    "has_wisdom": coverage.covers(CoverageChannel.KNOWLEDGE, x, y),
                }

                if not tile.is_structure:
                    new_row.append(
                        tile.model_copy(
                            update={
                                "has_mana": True,
                                "has_essence": True,
                                "happiness": 100,
                                **coverage_flags,
                            }
                        )
                    )
                    continue

                config = get_config(tile.building_type)
                mana_req = config.mana_req * tile.level
                essence_req = config.essence_req * tile.level

                has_mana = mana_used + mana_req <= mana_supply
                has_essence = essence_used + essence_req <= essence_supply
                if has_mana:
                    mana_used += mana_req
                if has_essence:
                    essence_used += essence_req

                happiness = BASE_HAPPINESS
                if not has_mana:
                    happiness -= RESOURCE_DENIED_PENALTY
                if not has_essence:
                    happiness -= RESOURCE_DENIED_PENALTY

                is_residential = tile.building_type == BuildingType.RESIDENTIAL
                if is_residential:
                    happiness = residential_happiness(grid, coverage, x, y, happiness)

                happiness = max(0, min(100, happiness))
                if is_residential:
                    residential_total += happiness
                    residential_count += 1

                factor = effectiveness(
                    has_mana,
                    has_essence,
                    happiness,
                    coverage.covers(CoverageChannel.EFFICIENCY, x, y),
                )
                income_total += config.income_gen * tile.level * factor
                pop_growth += config.pop_gen * tile.level * factor

                new_row.append(
                    tile.model_copy(
                        update={
                            "has_mana": has_mana,
                            "has_essence": has_essence,
                            "happiness": happiness,
                            **coverage_flags,
                        }
                    )
                )
            new_grid.append(new_row)

        average_happiness = (
            residential_total / residential_count if residential_count else 100.0
        )
        self.last_report = TickReport(
            income_total=income_total,
            maintenance_total=maintenance_total,
            population_growth=pop_growth,
            average_happiness=average_happiness,
            residential_count=residential_count,
        )

        new_stats = stats.model_copy(
            update={
                "money": stats.money + math.floor(income_total - maintenance_total),
                "population": max(0, stats.population + math.floor(pop_growth)),
                "happiness": math.floor(average_happiness),
                "mana_supply": mana_supply,
                "essence_supply": essence_supply,
                "mana_usage": mana_used,
                "essence_usage": essence_used,
                "income_total": math.floor(income_total),
                "maintenance_total": maintenance_total,
                "day": stats.day + 1,
                "time": (stats.time + TIME_STEP_HOURS) % 24,
            }
        )
        return new_grid, new_stats


def calculate_tick(grid: Grid, stats: CityStats) -> Tuple[Grid, CityStats]:
    """Advance once with a throwaway engine (no coverage reuse between calls)."""
    return TickEngine().advance(grid, stats)
