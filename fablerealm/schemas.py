"""
Pydantic schemas for the FableRealm simulation.

All data structures shared by the engines, the session orchestrator, and the
persistence backends are defined here.

Design notes:
- Tiles, stats and goals are frozen. Engines produce new instances with
  ``model_copy(update=...)`` instead of mutating in place, so a renderer holding
  an older snapshot never observes a half-applied tick.
- A grid is a plain ``list`` of rows. Functional updates rebuild only the row
  that changed; every other row object is shared with the previous grid.
- Field names are snake_case; the persisted layout is ``{grid, stats}`` keyed
  by profile id (see ``KingdomProfile``).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_LEVEL = 5


# ============================================================================
# Enumerations
# ============================================================================


class BuildingType(str, Enum):
    """Every tile type and placement tool known to the kingdom.

    ``NONE`` is empty land and ``ROAD`` a placeholder path with upkeep but no
    behaviour. ``UPGRADE`` is a tool only; it never appears on a tile.
    """

    NONE = "none"
    ROAD = "road"
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"
    PARK = "park"
    POWER_PLANT = "power_plant"
    WATER_TOWER = "water_tower"
    POLICE_STATION = "police_station"
    FIRE_STATION = "fire_station"
    SCHOOL = "school"
    UPGRADE = "upgrade"
    WINDMILL = "windmill"
    MARKET_SQUARE = "market_square"
    MAGIC_ACADEMY = "magic_academy"
    LIBRARY = "library"
    BAKERY = "bakery"
    LANDMARK = "landmark"
    DRUID_CIRCLE = "druid_circle"
    LUMBER_MILL = "lumber_mill"
    LUMINA_BLOOM = "lumina_bloom"
    GRAND_OBSERVATORY = "grand_observatory"
    CLOCKTOWER = "clocktower"
    GREAT_PORTAL = "great_portal"


class Weather(str, Enum):
    CLEAR = "clear"
    RAIN = "rain"
    STORM = "storm"
    SNOW = "snow"
    FOG = "fog"


class NewsType(str, Enum):
    """Classification shared by news entries and action outcomes."""

    NEUTRAL = "neutral"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    URGENT = "urgent"


class GoalTargetType(str, Enum):
    """Known goal predicates. ``Goal.target_type`` stays a free string so that
    goals written by an external generator with an unrecognised type can still
    be loaded (they simply never complete)."""

    POPULATION = "population"
    MONEY = "money"
    HAPPINESS = "happiness"
    BUILDING_COUNT = "building_count"
    MANA_SURPLUS = "mana_surplus"
    ESSENCE_SURPLUS = "essence_surplus"
    DIVERSITY = "diversity"


# ============================================================================
# Grid and stats
# ============================================================================


class Tile(BaseModel):
    """One grid cell.

    Coordinates are fixed at creation. The ``has_*`` flags and ``happiness``
    record the outcome of the most recent tick and are overwritten wholesale
    by the tick engine.
    """

    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0, description="Column index")
    y: int = Field(..., ge=0, description="Row index")
    building_type: BuildingType = Field(BuildingType.NONE, description="Structure on this tile")
    level: int = Field(1, ge=1, le=MAX_LEVEL, description="Upgrade tier")
    has_mana: bool = True
    has_essence: bool = True
    has_guards: bool = False
    # Mirrors the ward (fire-safety) coverage channel
    has_magic_safety: bool = False
    has_wisdom: bool = False
    happiness: int = Field(100, ge=0, le=100)
    variant: Optional[int] = Field(None, description="Cosmetic sub-style chosen at build time")

    @property
    def is_empty(self) -> bool:
        return self.building_type == BuildingType.NONE

    @property
    def is_structure(self) -> bool:
        """True for anything other than empty land or road."""
        return self.building_type not in (BuildingType.NONE, BuildingType.ROAD)


Grid = List[List[Tile]]


class CityStats(BaseModel):
    """Aggregate session state.

    Derived fields are rewritten by the tick engine; ``money`` is also changed
    by player actions and goal rewards.
    """

    model_config = ConfigDict(frozen=True)

    money: int = 15000
    population: int = Field(0, ge=0)
    day: int = Field(1, ge=0)
    happiness: int = Field(100, ge=0, le=100)
    mana_supply: int = 0
    essence_supply: int = 0
    mana_usage: int = 0
    essence_usage: int = 0
    maintenance_total: int = 0
    income_total: int = 0
    weather: Weather = Weather.CLEAR
    time: float = Field(10.0, ge=0, lt=24, description="Hour of day, wraps at 24")
    # Persisted with the profile but not used by any computation yet
    tax_rate: float = 1.0

    @property
    def mana_surplus(self) -> int:
        return self.mana_supply - self.mana_usage

    @property
    def essence_surplus(self) -> int:
        return self.essence_supply - self.essence_usage


# ============================================================================
# Goals and news
# ============================================================================


class Goal(BaseModel):
    """A player-facing objective with a gold reward."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Short random identifier")
    title: str = ""
    description: str
    target_type: str = Field(..., description="One of GoalTargetType; unknown values never complete")
    target_value: int
    building_type: Optional[BuildingType] = Field(
        None, description="Required structure when target_type is building_count"
    )
    reward: int = Field(0, ge=0)
    completed: bool = False


class NewsItem(BaseModel):
    """One entry in the herald's feed."""

    id: str
    text: str
    type: NewsType = NewsType.NEUTRAL
    timestamp: float = Field(default_factory=lambda: datetime.now(timezone.utc).timestamp())


# ============================================================================
# Persistence
# ============================================================================


class KingdomProfile(BaseModel):
    """Saved kingdom snapshot keyed by profile id.

    There is no schema version: the catalog and tile shape are implicitly part
    of the compatibility contract.
    """

    id: str
    name: str
    last_played: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    play_time: float = Field(0.0, ge=0, description="Seconds of simulated play")
    stats: CityStats
    grid: Grid
