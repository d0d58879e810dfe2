"""Building catalog: static economic profile of every building type.

``get_config`` is total over ``BuildingType``. Empty land and the upgrade tool
map to an explicit zero-effect record, so callers never branch on a missing
entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from fablerealm.schemas import MAX_LEVEL, BuildingType


class CoverageChannel(str, Enum):
    """Area-of-effect categories produced by service buildings."""

    GUARD = "guard"
    WARD = "ward"
    KNOWLEDGE = "knowledge"
    NATURE = "nature"
    CONFECTIONERY = "confectionery"
    TRADE = "trade"
    COSMIC = "cosmic"
    CELESTIAL = "celestial"
    EFFICIENCY = "efficiency"


@dataclass(frozen=True, slots=True)
class BuildingConfig:
    """Per-type profile. Output, upkeep and draws are per level per tick."""

    name: str
    description: str
    cost: int = 0
    maintenance: int = 0
    income_gen: int = 0
    pop_gen: int = 0
    mana_req: int = 0
    essence_req: int = 0
    service_radius: Optional[int] = None
    channel: Optional[CoverageChannel] = None
    mana_yield: int = 0
    essence_yield: int = 0

    @property
    def provides_coverage(self) -> bool:
        return bool(self.service_radius) and self.channel is not None


ZERO_EFFECT = BuildingConfig(name="Open Meadow", description="Untouched land awaiting a decree.")

_B = BuildingType
_C = CoverageChannel

BUILDINGS: Dict[BuildingType, BuildingConfig] = {
    _B.NONE: ZERO_EFFECT,
    _B.ROAD: BuildingConfig(
        name="Golden Path",
        description="Connects your kingdom. People need roads to travel.",
        cost=50, maintenance=2,
    ),
    _B.RESIDENTIAL: BuildingConfig(
        name="Thatch Cottage",
        description="Provides housing for fairytale folk.",
        cost=500, maintenance=5, income_gen=10, pop_gen=15, mana_req=5, essence_req=5,
    ),
    _B.COMMERCIAL: BuildingConfig(
        name="The Gilded Tankard",
        description="An inn for travelers and thirsty dwarves.",
        cost=1200, maintenance=20, income_gen=80, mana_req=10, essence_req=10,
    ),
    _B.INDUSTRIAL: BuildingConfig(
        name="Crystal Mine",
        description="Extracts magical gems from the earth.",
        cost=2500, maintenance=50, income_gen=200, mana_req=20, essence_req=20,
    ),
    _B.PARK: BuildingConfig(
        name="Enchanted Grove",
        description="A peaceful place where wisps dance.",
        cost=800, maintenance=30, mana_req=5, essence_req=15,
        service_radius=4, channel=_C.NATURE,
    ),
    _B.POWER_PLANT: BuildingConfig(
        name="Mana Nexus",
        description="Harnesses the ambient mana of the realm.",
        cost=5000, maintenance=150, mana_yield=120,
    ),
    _B.WATER_TOWER: BuildingConfig(
        name="Essence Fountain",
        description="Calls forth life-essence from the deep springs.",
        cost=3000, maintenance=80, essence_yield=100,
    ),
    _B.POLICE_STATION: BuildingConfig(
        name="Royal Guard Post",
        description="Keeps the roads safe from goblins and brigands.",
        cost=2000, maintenance=100, mana_req=5, essence_req=5,
        service_radius=6, channel=_C.GUARD,
    ),
    _B.FIRE_STATION: BuildingConfig(
        name="Order of Mages",
        description="Mages who quell rogue magic and fire.",
        cost=2500, maintenance=120, mana_req=20, essence_req=5,
        service_radius=6, channel=_C.WARD,
    ),
    _B.SCHOOL: BuildingConfig(
        name="Village Library",
        description="Teaches the basic arts of lore and magic.",
        cost=1500, maintenance=60, mana_req=10, essence_req=5,
        service_radius=5, channel=_C.KNOWLEDGE,
    ),
    _B.UPGRADE: BuildingConfig(
        name="Royal Decree",
        description="Enhance a building to the next level.",
    ),
    _B.WINDMILL: BuildingConfig(
        name="Fairytale Windmill",
        description="Produces flour and a bit of rustic charm.",
        cost=1000, maintenance=25, income_gen=40,
    ),
    _B.MARKET_SQUARE: BuildingConfig(
        name="Market Square",
        description="A bustling hub of trade and merriment.",
        cost=4000, maintenance=100, income_gen=300, mana_req=10, essence_req=10,
        service_radius=5, channel=_C.TRADE,
    ),
    _B.MAGIC_ACADEMY: BuildingConfig(
        name="Magic Academy",
        description="Prestigious institution for high sorcery.",
        cost=10000, maintenance=400, mana_req=50, essence_req=20,
        service_radius=8, channel=_C.KNOWLEDGE,
    ),
    _B.LIBRARY: BuildingConfig(
        name="Grand Library",
        description="Repository of all known magical scrolls.",
        cost=3500, maintenance=150, mana_req=15, essence_req=10,
        service_radius=7, channel=_C.KNOWLEDGE,
    ),
    _B.BAKERY: BuildingConfig(
        name="Gingerbread Bakery",
        description="Smells like heaven, tastes like magic.",
        cost=800, maintenance=30, income_gen=50, mana_req=5, essence_req=10,
        service_radius=4, channel=_C.CONFECTIONERY,
    ),
    _B.LANDMARK: BuildingConfig(
        name="Wizard's Keep",
        description="A grand landmark that draws pilgrims.",
        cost=20000, maintenance=500, income_gen=1000, mana_req=100, essence_req=50,
    ),
    _B.DRUID_CIRCLE: BuildingConfig(
        name="Druid Circle",
        description="Taps into natural essence without tools.",
        # Belongs to the nature family but has no radius, so it covers nothing
        cost=5000, maintenance=50, essence_yield=40, channel=_C.NATURE,
    ),
    _B.LUMBER_MILL: BuildingConfig(
        name="Lumber Mill",
        description="Processes enchanted wood for the realm.",
        cost=1500, maintenance=40, income_gen=120, mana_req=5, essence_req=15,
    ),
    _B.LUMINA_BLOOM: BuildingConfig(
        name="Lumina Bloom",
        description="Glowing flowers that brighten the mood.",
        cost=600, maintenance=10, mana_req=2, essence_req=8,
        service_radius=3, channel=_C.NATURE,
    ),
    _B.GRAND_OBSERVATORY: BuildingConfig(
        name="Observatory",
        description="Studies the celestial mana currents.",
        cost=8000, maintenance=300, mana_req=30, essence_req=10,
        service_radius=6, channel=_C.COSMIC,
    ),
    _B.CLOCKTOWER: BuildingConfig(
        name="Clocktower",
        description="Keeps the kingdom running efficiently.",
        cost=7000, maintenance=250, mana_req=20, essence_req=5,
        service_radius=7, channel=_C.EFFICIENCY,
    ),
    _B.GREAT_PORTAL: BuildingConfig(
        name="The Great Portal",
        description="A cosmic gateway that binds the realms together.",
        cost=50000, maintenance=1000, income_gen=5000, mana_req=200, essence_req=100,
        service_radius=15, channel=_C.CELESTIAL,
    ),
}

INDUSTRIAL_TYPES = frozenset({BuildingType.INDUSTRIAL, BuildingType.LUMBER_MILL})
HIGHER_KNOWLEDGE_TYPE = BuildingType.MAGIC_ACADEMY
CAPSTONE_TYPE = BuildingType.GREAT_PORTAL

__all__ = [
    "MAX_LEVEL",
    "BUILDINGS",
    "ZERO_EFFECT",
    "BuildingConfig",
    "CoverageChannel",
    "INDUSTRIAL_TYPES",
    "HIGHER_KNOWLEDGE_TYPE",
    "CAPSTONE_TYPE",
    "get_config",
    "is_placeable",
]


def get_config(building_type: BuildingType | str) -> BuildingConfig:
    """Return the profile for ``building_type``.

    Unrecognised values (for instance from a hand-edited save) resolve to the
    zero-effect record rather than raising.
    """
    try:
        return BUILDINGS[BuildingType(building_type)]
    except (ValueError, KeyError):
        return ZERO_EFFECT


def is_placeable(building_type: BuildingType) -> bool:
    """True for types that can be built on empty land."""
    return building_type not in (BuildingType.NONE, BuildingType.UPGRADE)
