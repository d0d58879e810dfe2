"""Tests for the building catalog."""

from fablerealm.catalog import (
    BUILDINGS,
    ZERO_EFFECT,
    CoverageChannel,
    get_config,
    is_placeable,
)
from fablerealm.schemas import BuildingType


def test_catalog_is_total():
    for building_type in BuildingType:
        assert building_type in BUILDINGS
        assert get_config(building_type) is BUILDINGS[building_type]


def test_unknown_type_resolves_to_zero_effect():
    assert get_config("dragon_lair") is ZERO_EFFECT
    assert get_config(BuildingType.NONE) is ZERO_EFFECT


def test_producers():
    assert get_config(BuildingType.POWER_PLANT).mana_yield == 120
    assert get_config(BuildingType.WATER_TOWER).essence_yield == 100
    assert get_config(BuildingType.DRUID_CIRCLE).essence_yield == 40


def test_druid_circle_provides_no_coverage():
    druid = get_config(BuildingType.DRUID_CIRCLE)
    assert druid.channel == CoverageChannel.NATURE
    assert not druid.provides_coverage


def test_service_buildings_have_channels():
    expected = {
        BuildingType.POLICE_STATION: CoverageChannel.GUARD,
        BuildingType.FIRE_STATION: CoverageChannel.WARD,
        BuildingType.SCHOOL: CoverageChannel.KNOWLEDGE,
        BuildingType.LIBRARY: CoverageChannel.KNOWLEDGE,
        BuildingType.MAGIC_ACADEMY: CoverageChannel.KNOWLEDGE,
        BuildingType.PARK: CoverageChannel.NATURE,
        BuildingType.LUMINA_BLOOM: CoverageChannel.NATURE,
        BuildingType.BAKERY: CoverageChannel.CONFECTIONERY,
        BuildingType.MARKET_SQUARE: CoverageChannel.TRADE,
        BuildingType.GRAND_OBSERVATORY: CoverageChannel.COSMIC,
        BuildingType.GREAT_PORTAL: CoverageChannel.CELESTIAL,
        BuildingType.CLOCKTOWER: CoverageChannel.EFFICIENCY,
    }
    for building_type, channel in expected.items():
        config = get_config(building_type)
        assert config.channel == channel
        assert config.provides_coverage


def test_placeable_types():
    assert not is_placeable(BuildingType.NONE)
    assert not is_placeable(BuildingType.UPGRADE)
    assert is_placeable(BuildingType.ROAD)
    assert is_placeable(BuildingType.GREAT_PORTAL)
