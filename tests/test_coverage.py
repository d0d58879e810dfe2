"""Tests for service coverage and the signature-keyed cache."""

from fablerealm.catalog import CoverageChannel
from fablerealm.coverage import CoverageCache, compute_coverage, grid_signature
from fablerealm.grid import create_grid, replace_tile
from fablerealm.schemas import BuildingType


def _guard_post(level: int = 1):
    return replace_tile(create_grid(15), 5, 5, building_type=BuildingType.POLICE_STATION, level=level)


def test_coverage_is_euclidean():
    coverage = compute_coverage(_guard_post())

    assert coverage.covers(CoverageChannel.GUARD, 5, 5)
    assert coverage.covers(CoverageChannel.GUARD, 5, 11)  # dy == radius
    assert not coverage.covers(CoverageChannel.GUARD, 5, 12)
    assert not coverage.covers(CoverageChannel.GUARD, 11, 11)  # inside the square, outside the circle
    assert not coverage.covers(CoverageChannel.WARD, 5, 5)


def test_radius_grows_with_level():
    coverage = compute_coverage(_guard_post(level=2))

    assert coverage.covers(CoverageChannel.GUARD, 5, 12)
    assert not coverage.covers(CoverageChannel.GUARD, 10, 10)


def test_druid_circle_covers_nothing():
    grid = replace_tile(create_grid(5), 2, 2, building_type=BuildingType.DRUID_CIRCLE)
    coverage = compute_coverage(grid)

    for layer in coverage.layers.values():
        assert not any(any(row) for row in layer)


def test_signature_ignores_derived_fields():
    grid = _guard_post()
    changed = replace_tile(grid, 0, 0, happiness=10, has_mana=False, has_guards=True)

    assert grid_signature(grid) == grid_signature(changed)


def test_cache_rebuilds_only_on_structural_change():
    cache = CoverageCache()
    grid = _guard_post()

    first = cache.resolve(grid)
    assert cache.resolve(grid) is first
    assert cache.computations == 1

    cache.resolve(replace_tile(grid, 1, 1, happiness=3))
    assert cache.computations == 1

    built = replace_tile(grid, 0, 0, building_type=BuildingType.SCHOOL)
    cache.resolve(built)
    assert cache.computations == 2

    cache.resolve(replace_tile(built, 0, 0, level=2))
    assert cache.computations == 3

    cache.invalidate()
    cache.resolve(grid)
    assert cache.computations == 4
