"""
SimulationRules interface for the deterministic side of a FableRealm session.

The orchestrator owns the authoritative (grid, stats) pair and hands it to a
``SimulationRules`` implementation once per tick. Implementations are pure:
they return a new pair and never mutate the one they were given.

Design principle: if it can be calculated, calculate it. Text generation is
only ever used for flavour (quests and news), never for economic outcome.
"""

from abc import ABC, abstractmethod
from typing import Tuple

from fablerealm.schemas import CityStats, Grid


def format_stats_summary(stats: CityStats) -> str:
    """Format aggregate stats as a one-line summary for console output.

    Mana and essence read usage/supply, as in the quest prompt. Example output:
    "Day 12 | Gold=14210 (+85/-40) | Pop=132 | Mood=71% | Mana=95/120 | Essence=80/100"
    """

    return (
        f"Day {stats.day} | Gold={stats.money} "
        f"(+{stats.income_total}/-{stats.maintenance_total}) | "
        f"Pop={stats.population} | Mood={stats.happiness}% | "
        f"Mana={stats.mana_usage}/{stats.mana_supply} | "
        f"Essence={stats.essence_usage}/{stats.essence_supply}"
    )


class SimulationRules(ABC):
    """Abstract base class for the per-tick kingdom update.

    Core responsibilities:
    1. advance() - one deterministic tick over the whole grid
    2. should_stop() - optional early termination for headless runs
    3. Lifecycle hooks - on_session_start(), on_session_end()

    Subclasses are dependency-injected into the Orchestrator, so an alternative
    economy can be swapped in without touching the scheduler.
    """

    @abstractmethod
    def advance(self, grid: Grid, stats: CityStats) -> Tuple[Grid, CityStats]:
        """
        Apply one tick to the kingdom.

        Must be deterministic given its inputs and must not mutate them.

        Args:
            grid: Grid at the start of the tick
            stats: Aggregate stats at the start of the tick

        Returns:
            (new_grid, new_stats) for the next tick
        """
        pass

    def should_stop(self, grid: Grid, stats: CityStats, tick: int) -> bool:
        """Return True to end a bounded run early (default: never)."""
        return False

    def on_session_start(self, grid: Grid, stats: CityStats) -> Tuple[Grid, CityStats]:
        """Hook called once when a session starts, after any saved profile is loaded."""
        return grid, stats

    def on_session_end(self, grid: Grid, stats: CityStats) -> Tuple[Grid, CityStats]:
        """Hook called once when a session stops."""
        return grid, stats

    def format_stats_summary(self, stats: CityStats) -> str:
        """Return a printable stats summary for the orchestrator output.

        Subclasses can override to provide different labels or metrics.
        """

        return format_stats_summary(stats)
