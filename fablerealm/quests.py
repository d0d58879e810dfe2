"""Goal engine: evaluate objectives and synthesise local fallbacks."""

from __future__ import annotations

import random
import string
from typing import Optional, Tuple

from fablerealm.catalog import CAPSTONE_TYPE
from fablerealm.grid import count_buildings, distinct_building_types
from fablerealm.schemas import CityStats, Goal, GoalTargetType, Grid

CAPSTONE_WEALTH_THRESHOLD = 25000
DEFAULT_REWARD = 1000
CAPSTONE_REWARD = 25000


def new_goal_id(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "".join(rng.choices(string.ascii_lowercase + string.digits, k=6))


def check_goal(goal: Goal, stats: CityStats, grid: Grid) -> bool:
    """Return True when an uncompleted goal's predicate holds.

    Completed goals and unknown target types always evaluate False.
    """
    if goal.completed:
        return False

    target = goal.target_value
    kind = goal.target_type
    if kind == GoalTargetType.POPULATION:
        return stats.population >= target
    if kind == GoalTargetType.MONEY:
        return stats.money >= target
    if kind == GoalTargetType.HAPPINESS:
        return stats.happiness >= target
    if kind == GoalTargetType.BUILDING_COUNT:
        if goal.building_type is None:
            return False
        return count_buildings(grid, goal.building_type) >= target
    if kind == GoalTargetType.MANA_SURPLUS:
        return stats.mana_surplus >= target
    if kind == GoalTargetType.ESSENCE_SURPLUS:
        return stats.essence_surplus >= target
    if kind == GoalTargetType.DIVERSITY:
        return len(distinct_building_types(grid)) >= target
    return False


def complete_goal(goal: Goal, stats: CityStats) -> Tuple[Goal, CityStats]:
    """Mark ``goal`` completed and pay its reward into the treasury."""
    return (
        goal.model_copy(update={"completed": True}),
        stats.model_copy(update={"money": stats.money + goal.reward}),
    )


def generate_fallback_quest(stats: CityStats, rng: Optional[random.Random] = None) -> Goal:
    """Build a local objective when no text generator is available.

    Draws uniformly among population, money and diversity goals. Once the
    treasury exceeds the wealth threshold the capstone objective (open the
    Great Portal) joins the draw with a much larger reward.
    """
    rng = rng or random.Random()
    choices = [GoalTargetType.POPULATION, GoalTargetType.MONEY, GoalTargetType.DIVERSITY]
    if stats.money > CAPSTONE_WEALTH_THRESHOLD:
        choices.append(GoalTargetType.BUILDING_COUNT)

    kind = rng.choice(choices)
    reward = DEFAULT_REWARD
    building_type = None

    if kind == GoalTargetType.POPULATION:
        target_value = stats.population + 50
        title = "Village Growth"
        description = (
            "The realm needs more subjects to thrive. "
            "Attract more fairytale folk to your village."
        )
    elif kind == GoalTargetType.MONEY:
        target_value = stats.money + 5000
        title = "Royal Treasury"
        description = "A wealthy kingdom is a strong kingdom. Fill the royal coffers."
    elif kind == GoalTargetType.BUILDING_COUNT:
        target_value = 1
        building_type = CAPSTONE_TYPE
        title = "The Cosmic Gateway"
        description = (
            "The Council of Archmages foresees a grand convergence. "
            "Establish 'The Great Portal' to secure our future."
        )
        reward = CAPSTONE_REWARD
    else:
        target_value = 5
        title = "Architectural Bloom"
        description = (
            "The Wizard Council requests a more diverse array of structures in the village."
        )

    return Goal(
        id=new_goal_id(rng),
        title=title,
        description=description,
        target_type=kind.value,
        target_value=target_value,
        building_type=building_type,
        reward=reward,
        completed=False,
    )
