"""
FableRealm - tick-based fairytale kingdom simulation.

Place and upgrade structures on a square grid; every tick the engine allocates
mana and essence, applies service coverage, and derives happiness, income and
population. Quests and news can be written by an LLM, with a deterministic
local fallback for quests.

No file I/O or database required: persistence and text generation are
injected collaborators.
"""

__version__ = "0.2.0"

from .orchestrator import Orchestrator

from .simulation_rules import SimulationRules, format_stats_summary
from .simulation import TickEngine, TickReport, calculate_tick
from .coverage import CoverageCache, CoverageMap, compute_coverage, grid_signature
from .actions import (
    ActionKind,
    ActionResult,
    execute,
    build_tile,
    upgrade_tile,
    bulldoze_tile,
    upgrade_cost,
    classify_tool,
)
from .quests import check_goal, complete_goal, generate_fallback_quest
from .catalog import BUILDINGS, MAX_LEVEL, BuildingConfig, CoverageChannel, get_config
from .grid import create_grid, initial_stats, replace_tile
from .persistence import (
    PersistenceStrategy,
    InMemoryPersistence,
    JsonPersistence,
    PostgresPersistence,
)
from .schemas import (
    BuildingType,
    CityStats,
    Goal,
    GoalTargetType,
    Grid,
    KingdomProfile,
    NewsItem,
    NewsType,
    Tile,
    Weather,
)

__all__ = [
    # Session
    "Orchestrator",
    # Engines
    "SimulationRules",
    "TickEngine",
    "TickReport",
    "calculate_tick",
    "format_stats_summary",
    "CoverageCache",
    "CoverageMap",
    "compute_coverage",
    "grid_signature",
    "ActionKind",
    "ActionResult",
    "execute",
    "build_tile",
    "upgrade_tile",
    "bulldoze_tile",
    "upgrade_cost",
    "classify_tool",
    "check_goal",
    "complete_goal",
    "generate_fallback_quest",
    # Catalog
    "BUILDINGS",
    "MAX_LEVEL",
    "BuildingConfig",
    "CoverageChannel",
    "get_config",
    # Grid helpers
    "create_grid",
    "initial_stats",
    "replace_tile",
    # Persistence
    "PersistenceStrategy",
    "InMemoryPersistence",
    "JsonPersistence",
    "PostgresPersistence",
    # Schemas
    "BuildingType",
    "CityStats",
    "Goal",
    "GoalTargetType",
    "Grid",
    "KingdomProfile",
    "NewsItem",
    "NewsType",
    "Tile",
    "Weather",
]
