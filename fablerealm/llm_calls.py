"""
Text-generation calls for quests and news, via Mirascope.

This module provides:
- Quest generation from the Royal Wizard (generate_goal)
- Herald news headlines (generate_news)

Both functions are stateless and never raise: any provider, timeout or schema
failure is logged and reported as ``None`` so the caller can fall back to a
local quest or simply skip the headline.
"""

import json
from typing import Literal, Optional

from pydantic import BaseModel, Field

from fablerealm.grid import building_counts, distinct_building_types
from fablerealm.logging_utils import log_error, log_llm
from fablerealm.quests import new_goal_id
from fablerealm.schemas import BuildingType, CityStats, Goal, Grid, NewsItem, NewsType
from .llm_utils import call_llm_with_retries


WIZARD_SYSTEM_PROMPT = """
You are the Ancient Royal Wizard of a fairytale kingdom. You speak in a
mystical, high-fantasy voice and issue decrees that the Sovereign must fulfil.
Always answer with JSON only.
"""

HERALD_SYSTEM_PROMPT = """
You are the Royal Herald. You write one-sentence, whimsical and atmospheric
headlines for the kingdom's news parchment. Always answer with JSON only.
"""


# ============================================================================
# Response schemas
# ============================================================================


class GoalDraft(BaseModel):
    """Quest as written by the model, before an id is assigned."""

    title: str = Field("Royal Decree", description="Short quest title")
    description: str = Field(
        ..., description="A mystical, fairytale-themed description of the quest from the Royal Wizard."
    )
    target_type: Literal[
        "population",
        "money",
        "building_count",
        "happiness",
        "mana_surplus",
        "essence_surplus",
        "diversity",
    ] = Field(
        ...,
        description=(
            "The metric the player must reach. 'mana_surplus' and 'essence_surplus' refer to "
            "unused magic resources. 'diversity' is the count of unique building types."
        ),
    )
    target_value: int = Field(
        ..., description="Target value; challenging but reachable from the current stats."
    )
    building_type: Optional[BuildingType] = Field(
        None, description="Required building type if target_type is building_count."
    )
    reward: int = Field(..., ge=0, description="Gold reward for completion (typically 500-2000).")


class NewsDraft(BaseModel):
    text: str = Field(..., description="A whimsical fairytale headline.")
    type: Literal["positive", "negative", "neutral", "urgent"]


# ============================================================================
# Prompts
# ============================================================================


def build_goal_prompt(stats: CityStats, grid: Grid) -> str:
    counts = building_counts(grid)
    return f"""
Context:
Day: {stats.day}
Gold: {stats.money}
Population: {stats.population}
Building Counts: {json.dumps(counts, sort_keys=True)}
Unique Buildings Count: {len(distinct_building_types(grid))}
Mana: {stats.mana_usage}/{stats.mana_supply} (Available: {stats.mana_surplus})
Essence: {stats.essence_usage}/{stats.essence_supply} (Available: {stats.essence_surplus})
Kingdom Mood: {stats.happiness}%

Create a specific, magical decree or prophecy for the Sovereign to fulfil.
Vary the objectives significantly. You can choose:
1. Resource Management: reach a surplus of unused Mana or Essence.
2. Architectural Diversity: build at least X different types of structures.
3. Expansion: reach a population threshold.
4. Prosperity: reach a treasury gold count.
5. Specific Structures: construct a number of a specific building.
6. Contentment: reach a high average happiness level.

The description must be flavourful and address the current state of the kingdom.
Ensure target_value is a step up from the current state but not impossible.
Output JSON matching the GoalDraft schema.
"""


def build_news_prompt(stats: CityStats, context: Optional[str]) -> str:
    return f"""
Kingdom Snapshot: Pop {stats.population}, Gold {stats.money}, Day {stats.day}.
Recent Event: {context or 'The sun rises over the valley.'}

Generate a one-sentence news scroll update for the herald's parchment.
Output JSON matching the NewsDraft schema.
"""


# ============================================================================
# LLM Call Functions
# ============================================================================


async def generate_goal(
    stats: CityStats,
    grid: Grid,
    llm_provider: str,
    llm_model: str,
) -> Optional[Goal]:
    """
    Ask the Royal Wizard for a new quest.

    Args:
        stats: Current kingdom stats
        grid: Current grid (used for building counts)
        llm_provider: LLM provider name (e.g., "openai", "anthropic")
        llm_model: Model identifier (e.g., "gpt-5-nano")

    Returns:
        A fresh, uncompleted Goal, or None if generation failed
    """
    log_llm("[Royal Wizard] Requesting a new decree...")
    try:
        draft = await call_llm_with_retries(
            system_prompt=WIZARD_SYSTEM_PROMPT,
            user_prompt=build_goal_prompt(stats, grid),
            llm_provider=llm_provider,
            llm_model=llm_model,
            response_model=GoalDraft,
        )
    except Exception as exc:
        log_error(f"[Royal Wizard] Failed to generate quest: {exc}")
        return None

    return Goal(id=new_goal_id(), completed=False, **draft.model_dump())


async def generate_news(
    stats: CityStats,
    context: Optional[str],
    llm_provider: str,
    llm_model: str,
) -> Optional[NewsItem]:
    """
    Ask the Royal Herald for a headline about the kingdom.

    Returns:
        NewsItem, or None if generation failed
    """
    log_llm("[Herald] Composing a headline...")
    try:
        draft = await call_llm_with_retries(
            system_prompt=HERALD_SYSTEM_PROMPT,
            user_prompt=build_news_prompt(stats, context),
            llm_provider=llm_provider,
            llm_model=llm_model,
            response_model=NewsDraft,
        )
    except Exception as exc:
        log_error(f"[Herald] Failed to generate news: {exc}")
        return None

    return NewsItem(id=new_goal_id(), text=draft.text, type=NewsType(draft.type))
