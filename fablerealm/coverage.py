"""Coverage builder: which tiles fall inside which service radius.

Coverage depends only on the (type, level) layout of the grid. ``CoverageCache``
keys the last computed map by that layout signature, so ticks that change only
happiness or resource flags reuse the previous map.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from fablerealm.catalog import CoverageChannel, get_config
from fablerealm.schemas import BuildingType, Grid

Layer = Tuple[Tuple[bool, ...], ...]
GridSignature = Tuple[Tuple[Tuple[BuildingType, int], ...], ...]


@dataclass(frozen=True)
class CoverageMap:
    """One boolean layer per channel, indexed ``layer[y][x]``."""

    layers: Mapping[CoverageChannel, Layer]

    def covers(self, channel: CoverageChannel, x: int, y: int) -> bool:
        return self.layers[channel][y][x]


def grid_signature(grid: Grid) -> GridSignature:
    """Structural key of a grid: (type, level) of every tile, row-major."""
    return tuple(tuple((tile.building_type, tile.level) for tile in row) for row in grid)


def effective_radius(service_radius: int, level: int) -> int:
    return service_radius + (level - 1)


def compute_coverage(grid: Grid) -> CoverageMap:
    """Mark every cell within Euclidean reach of a service building.

    A source covers cells with ``dx^2 + dy^2 <= r^2`` where
    ``r = service_radius + (level - 1)``. Sources of the same channel combine
    by logical OR; there is no stacking.
    """
    height = len(grid)
    width = len(grid[0]) if height else 0
    mutable: Dict[CoverageChannel, List[List[bool]]] = {
        channel: [[False] * width for _ in range(height)] for channel in CoverageChannel
    }

    for cy, row in enumerate(grid):
        for cx, tile in enumerate(row):
            config = get_config(tile.building_type)
            if not config.provides_coverage:
                continue

            radius = effective_radius(config.service_radius, tile.level)
            layer = mutable[config.channel]
            for ny in range(max(0, cy - radius), min(height, cy + radius + 1)):
                dy = ny - cy
                for nx in range(max(0, cx - radius), min(width, cx + radius + 1)):
                    dx = nx - cx
                    if dx * dx + dy * dy <= radius * radius:
                        layer[ny][nx] = True

    return CoverageMap(
        layers={
            channel: tuple(tuple(row) for row in cells) for channel, cells in mutable.items()
        }
    )


class CoverageCache:
    """Single-entry cache of the last coverage map, keyed by grid signature.

    ``computations`` counts actual rebuilds and exists for instrumentation.
    """

    def __init__(self) -> None:
        self._signature: Optional[GridSignature] = None
        self._coverage: Optional[CoverageMap] = None
        self.computations = 0

    def resolve(self, grid: Grid) -> CoverageMap:
        signature = grid_signature(grid)
        if self._coverage is None or signature != self._signature:
            self._coverage = compute_coverage(grid)
            self._signature = signature
            self.computations += 1
        return self._coverage

    def invalidate(self) -> None:
        self._signature = None
        self._coverage = None
