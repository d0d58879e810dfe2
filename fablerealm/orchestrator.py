"""
Session orchestrator.

Owns the single authoritative (grid, stats) pair and is the only place that
holds a mutable reference to it. Every change goes through a pure transition
(tick engine, action engine, goal completion) and the result replaces the
previous pair wholesale.

Coordinates the session loop:
1. Skip the tick if the session is paused or the host is backgrounded
2. Apply the tick engine (deterministic economy)
3. Check the active goal; grant its reward exactly once
4. Request a replacement goal in the background when none is active
5. Save the snapshot (fire-and-forget)
6. Occasionally request a news headline (fire-and-forget)
"""

import asyncio
import json
import random
from typing import Any, Callable, Dict, List, Optional, Set

from .actions import ActionKind, ActionResult, classify_tool, execute
from .config import Config
from .grid import create_grid, initial_stats
from .llm_calls import generate_goal, generate_news
from .logging_utils import (
    colored,
    Color,
    LOG_TAG_DETERMINISTIC,
    LOG_TAG_SUCCESS,
    log_deterministic,
    log_error,
    log_info,
    log_success,
)
from .persistence import InMemoryPersistence, PersistenceStrategy
from .quests import check_goal, complete_goal, generate_fallback_quest, new_goal_id
from .schemas import (
    BuildingType,
    CityStats,
    Goal,
    Grid,
    NewsItem,
    NewsType,
    Tile,
    Weather,
)
from .simulation import TickEngine
from .simulation_rules import SimulationRules


TickListener = Callable[[int, Grid, CityStats, Grid, CityStats], None]
ActionListener = Callable[[ActionKind, Tile, ActionResult], None]

CONSOLE_HELP = "Available: gift [gold], weather [type], stats, pause, resume, help"


class Orchestrator:
    """
    Kingdom session coordinator.

    All collaborators are injected; defaults give an in-memory, deterministic
    session with locally generated quests.
    """

    def __init__(
        self,
        grid: Optional[Grid] = None,
        stats: Optional[CityStats] = None,
        *,
        simulation_rules: Optional[SimulationRules] = None,
        persistence: Optional[PersistenceStrategy] = None,
        profile_id: Optional[str] = None,
        ai_enabled: Optional[bool] = None,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        tick_rate_seconds: Optional[float] = None,
        goal_fetch_delay: Optional[float] = None,
        news_chance: Optional[float] = None,
        news_limit: Optional[int] = None,
        goal: Optional[Goal] = None,
        is_backgrounded: Optional[Callable[[], bool]] = None,
        tick_listeners: Optional[List[TickListener]] = None,
        action_listeners: Optional[List[ActionListener]] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the session with all dependencies injected.

        Args:
            grid: Starting grid (defaults to an empty Config.GRID_SIZE grid)
            stats: Starting stats (defaults to Config.INITIAL_MONEY and day 1)
            simulation_rules: Economy implementation (defaults to TickEngine)
            persistence: Storage backend (defaults to InMemoryPersistence)
            profile_id: Profile to load and save (defaults to Config.PROFILE_ID)
            ai_enabled: Whether quests and news are requested from an LLM
            is_backgrounded: Optional callable; ticks are skipped while it
                returns True
            tick_listeners: Callables invoked after each tick with
                (tick, previous_grid, previous_stats, grid, stats)
            action_listeners: Callables invoked after each action with
                (kind, tile_before, result); used for audio cues
        """
        self.grid: Grid = grid if grid is not None else create_grid()
        self.stats: CityStats = stats if stats is not None else initial_stats()
        self.current_goal: Optional[Goal] = goal
        self.news_feed: List[NewsItem] = []

        self.simulation_rules = simulation_rules or TickEngine()
        self.persistence = persistence or InMemoryPersistence()
        self.profile_id = profile_id or Config.PROFILE_ID

        self.ai_enabled = Config.AI_ENABLED if ai_enabled is None else ai_enabled
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL

        self.tick_rate_seconds = (
            Config.TICK_RATE_SECONDS if tick_rate_seconds is None else tick_rate_seconds
        )
        self.goal_fetch_delay = (
            Config.GOAL_FETCH_DELAY_SECONDS if goal_fetch_delay is None else goal_fetch_delay
        )
        self.news_chance = Config.NEWS_CHANCE if news_chance is None else news_chance
        self.news_limit = Config.NEWS_FEED_LIMIT if news_limit is None else news_limit

        self.is_backgrounded = is_backgrounded
        self.tick_listeners = tick_listeners or []
        self.action_listeners = action_listeners or []
        self.rng = rng or random.Random()

        self.paused = False
        self.started = False
        self.tick_count = 0
        self.play_time = 0.0

        # Single in-flight flag rather than a queue: at most one goal request
        self._fetching_goal = False
        self._background_tasks: Set[asyncio.Task] = set()
        self._save_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Initialize persistence and restore the saved profile if any.

        Safe to call more than once; only the first call loads.
        """
        if self.started:
            return
        self.started = True

        try:
            await self.persistence.initialize()
            profile = await self.persistence.load(self.profile_id)
        except Exception as exc:
            log_error(f"[Persistence] Could not load kingdom '{self.profile_id}': {exc}")
            profile = None

        if profile is not None:
            self.grid = profile.grid
            self.stats = profile.stats
            self.play_time = profile.play_time
            log_info(f"[Persistence] Restored kingdom '{profile.id}' at day {self.stats.day}")

        self.grid, self.stats = self.simulation_rules.on_session_start(self.grid, self.stats)

    async def stop(self) -> None:
        """Finish pending saves, cancel other background work and close persistence."""
        # Saves run to completion so the profile matches the last applied tick
        if self._save_tasks:
            await asyncio.gather(*list(self._save_tasks), return_exceptions=True)
        for task in list(self._background_tasks):
            task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()
        self._save_tasks.clear()
        self._fetching_goal = False
        self.started = False

        self.grid, self.stats = self.simulation_rules.on_session_end(self.grid, self.stats)

        try:
            await self.persistence.close()
        except Exception as exc:
            log_error(f"[Persistence] Close failed: {exc}")

    async def run(self, num_ticks: Optional[int] = None) -> Dict[str, Any]:
        """Drive ticks on a fixed interval.

        Skipped intervals (paused or backgrounded) are not queued and do not
        count toward ``num_ticks``. ``None`` runs until cancelled.

        Returns:
            Dict with profile_id, ticks, final grid and final stats
        """
        await self.start()
        try:
            print(f"Founding session for profile '{self.profile_id}'")
            print(f"Grid: {len(self.grid)}x{len(self.grid)}, Tick rate: {self.tick_rate_seconds}s\n")

            ticks_completed = 0
            while num_ticks is None or ticks_completed < num_ticks:
                await asyncio.sleep(self.tick_rate_seconds)
                if not await self.tick():
                    continue
                ticks_completed += 1

                if self.simulation_rules.should_stop(self.grid, self.stats, self.tick_count):
                    print(f"\nSession stopped early at tick {self.tick_count}.")
                    break

            return {
                "profile_id": self.profile_id,
                "ticks": ticks_completed,
                "grid": self.grid,
                "stats": self.stats,
            }
        finally:
            await self.stop()

    # ------------------------------------------------------------------
    # Tick pipeline
    # ------------------------------------------------------------------

    def is_tick_blocked(self) -> bool:
        if self.paused:
            return True
        return bool(self.is_backgrounded and self.is_backgrounded())

    async def tick(self) -> bool:
        """Run one tick unless the session is paused or backgrounded.

        Returns:
            True if a tick was applied, False if it was skipped
        """
        if self.is_tick_blocked():
            return False

        previous_grid, previous_stats = self.grid, self.stats
        tick = self.tick_count + 1
        print(colored(f"  {LOG_TAG_DETERMINISTIC} [Tick {tick}] Advancing the realm...", Color.BLUE))

        self.grid, self.stats = self.simulation_rules.advance(self.grid, self.stats)
        self.tick_count = tick
        self.play_time += self.tick_rate_seconds

        print(
            colored(
                f"  {LOG_TAG_SUCCESS} {self.simulation_rules.format_stats_summary(self.stats)}",
                Color.GREEN,
            )
        )

        self._update_goal()
        save = self._spawn(self._save_snapshot(self.grid, self.stats, self.play_time))
        self._save_tasks.add(save)
        save.add_done_callback(self._save_tasks.discard)
        if self.ai_enabled and self.rng.random() < self.news_chance:
            self._spawn(self._fetch_news(self.stats, "Prosperity"))

        for listener in self.tick_listeners:
            try:
                listener(tick, previous_grid, previous_stats, self.grid, self.stats)
            except Exception as exc:  # pragma: no cover - diagnostic hook
                log_error(f"[Listener] Tick listener failed: {exc}")

        return True

    def _update_goal(self) -> None:
        goal = self.current_goal
        if goal is not None and not goal.completed:
            if check_goal(goal, self.stats, self.grid):
                self.current_goal, self.stats = complete_goal(goal, self.stats)
                log_success(f"[Quest] '{goal.title}' fulfilled; +{goal.reward}g")
                self.push_news(
                    "Huzzah! The Royal Wizard's decree has been fulfilled!", NewsType.POSITIVE
                )
            return

        self.request_goal()

    def request_goal(self) -> bool:
        """Start a background goal fetch unless one is already in flight."""
        if self._fetching_goal:
            return False
        self._fetching_goal = True
        self._spawn(self._fetch_goal())
        return True

    async def _fetch_goal(self) -> None:
        try:
            if self.goal_fetch_delay > 0:
                await asyncio.sleep(self.goal_fetch_delay)

            goal: Optional[Goal] = None
            if self.ai_enabled:
                goal = await generate_goal(
                    self.stats, self.grid, self.llm_provider, self.llm_model
                )
            if goal is None:
                log_deterministic("[Quest] Drafting a local decree.")
                goal = generate_fallback_quest(self.stats, self.rng)

            if self.current_goal is not None and not self.current_goal.completed:
                log_info("[Quest] A decree is already active; dropping the new one.")
                return

            self.current_goal = goal
            log_info(f"[Quest] New decree: {goal.title or goal.description}")
            self.push_news(
                "A new magical prophecy has been delivered by the Royal Wizard.", NewsType.URGENT
            )
        finally:
            self._fetching_goal = False

    async def _save_snapshot(self, grid: Grid, stats: CityStats, play_time: float) -> None:
        try:
            await self.persistence.save(grid, stats, self.profile_id, play_time=play_time)
        except Exception as exc:
            log_error(f"[Persistence] Auto-save failed: {exc}")

    async def _fetch_news(self, stats: CityStats, context: Optional[str]) -> None:
        news = await generate_news(stats, context, self.llm_provider, self.llm_model)
        if news is not None:
            self._push(news)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every background task started so far (saves, fetches)."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Player input
    # ------------------------------------------------------------------

    def apply_action(
        self, tool: BuildingType, x: int, y: int, variant: int = 0
    ) -> ActionResult:
        """Run the action engine and commit the result if it succeeded.

        Every outcome with a message lands in the news feed; rejections are
        always classified negative there.
        """
        if self.paused:
            return ActionResult(
                self.grid, self.stats, False, "The realm is paused.", NewsType.NEUTRAL
            )

        kind = classify_tool(tool)
        result = execute(tool, self.grid, self.stats, x, y, variant)
        log_deterministic(f"[{kind.value.title()}] ({x},{y}) {result.message}")
        if result.success:
            tile_before = self.grid[y][x]
            self.grid, self.stats = result.grid, result.stats
            self.push_news(result.message, result.classification)
            for listener in self.action_listeners:
                try:
                    listener(kind, tile_before, result)
                except Exception as exc:  # pragma: no cover - diagnostic hook
                    log_error(f"[Listener] Action listener failed: {exc}")
        elif result.message:
            self.push_news(result.message, NewsType.NEGATIVE)
        return result

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def handle_command(self, line: str) -> str:
        """Execute a wizard-console command and return its reply."""
        parts = line.strip().split()
        if not parts:
            return ""
        cmd, args = parts[0].lower(), parts[1:]

        if cmd == "help":
            return CONSOLE_HELP
        if cmd == "gift":
            try:
                amount = int(args[0]) if args else 1000
            except ValueError:
                amount = 1000
            self.stats = self.stats.model_copy(update={"money": self.stats.money + amount})
            return f"The royal treasury receives {amount}g."
        if cmd == "weather":
            kind = args[0].lower() if args else Weather.RAIN.value
            try:
                weather = Weather(kind)
            except ValueError:
                return f"Unknown weather '{kind}'. Try: {', '.join(w.value for w in Weather)}"
            self.stats = self.stats.model_copy(update={"weather": weather})
            return f"The skies turn to {weather.value}."
        if cmd == "stats":
            snapshot = {"gold": self.stats.money, "pop": self.stats.population, "day": self.stats.day}
            return json.dumps(snapshot, indent=2)
        if cmd == "pause":
            self.pause()
            return "Time stands still."
        if cmd == "resume":
            self.resume()
            return "Time flows once more."
        return f"Unknown incantation '{cmd}'. {CONSOLE_HELP}"

    # ------------------------------------------------------------------
    # News feed
    # ------------------------------------------------------------------

    def push_news(self, text: str, news_type: NewsType = NewsType.NEUTRAL) -> NewsItem:
        item = NewsItem(id=new_goal_id(self.rng), text=text, type=news_type)
        self._push(item)
        return item

    def _push(self, item: NewsItem) -> None:
        self.news_feed = [item, *self.news_feed][: self.news_limit]
