"""
PersistenceStrategy interface for pluggable kingdom storage.

Persistence is OPTIONAL: a session runs entirely in memory when no backend is
given. The orchestrator saves once per tick and loads once at start, and it
treats every persistence error as non-fatal.

Three included implementations:
1. InMemoryPersistence - Dict-based storage, data lost on exit (testing)
2. JsonPersistence - One JSON file per profile in a directory (single player)
3. PostgresPersistence - JSONB rows in a ``kingdom_profiles`` table (hosted)

Usage pattern:
    persistence = JsonPersistence("kingdoms")
    await persistence.initialize()

    await persistence.save(grid, stats, profile_id="aurelia")
    profile = await persistence.load("aurelia")

    await persistence.close()
"""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from fablerealm.schemas import CityStats, Grid, KingdomProfile
from .config import Config

try:  # Optional dependency (only needed for PostgresPersistence)
    import asyncpg
except ImportError:  # pragma: no cover - asyncpg may not be installed for json/memory usage
    asyncpg = None


DEFAULT_PROFILE_ID = "default"


class PersistenceStrategy(ABC):
    """Abstract base class for kingdom profile storage.

    Method categories:
    1. Lifecycle: initialize(), close()
    2. Profiles: save_profile(), get_profile(), list_profiles(), delete_profile()
    3. Active profile pointer: set_active_profile(), get_active_profile_id()
    4. Convenience: save(grid, stats), load()

    All methods are async so file and database backends never block the tick
    loop; the in-memory backend simply completes immediately.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backend (create directories, open pools)."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources."""
        pass

    @abstractmethod
    async def save_profile(self, profile: KingdomProfile) -> None:
        """Insert or replace a profile by id."""
        pass

    @abstractmethod
    async def get_profile(self, profile_id: str) -> Optional[KingdomProfile]:
        """Return the stored profile, or None if absent."""
        pass

    @abstractmethod
    async def list_profiles(self) -> List[KingdomProfile]:
        """Return all profiles, most recently played first."""
        pass

    @abstractmethod
    async def delete_profile(self, profile_id: str) -> None:
        """Remove a profile; clears the active pointer if it referenced it."""
        pass

    @abstractmethod
    async def set_active_profile(self, profile_id: Optional[str]) -> None:
        pass

    @abstractmethod
    async def get_active_profile_id(self) -> str:
        """Return the active profile id (``default`` when none was recorded)."""
        pass

    async def save(
        self,
        grid: Grid,
        stats: CityStats,
        profile_id: str = DEFAULT_PROFILE_ID,
        *,
        play_time: float = 0.0,
    ) -> None:
        """Snapshot ``(grid, stats)`` under ``profile_id`` and mark it active."""
        profile = KingdomProfile(
            id=profile_id,
            name=f"Kingdom of {profile_id}",
            last_played=datetime.now(timezone.utc),
            play_time=play_time,
            stats=stats,
            grid=grid,
        )
        await self.save_profile(profile)
        await self.set_active_profile(profile_id)

    async def load(self, profile_id: str = DEFAULT_PROFILE_ID) -> Optional[KingdomProfile]:
        """Load a profile. ``default`` resolves through the active pointer."""
        if profile_id == DEFAULT_PROFILE_ID:
            profile_id = await self.get_active_profile_id()
        return await self.get_profile(profile_id)


class InMemoryPersistence(PersistenceStrategy):
    """Dict-backed storage; nothing survives the process.

    Data is kept after close() so tests can inspect what was written.
    """

    def __init__(self):
        self.profiles: Dict[str, KingdomProfile] = {}
        self.active_profile_id: Optional[str] = None
        self.save_count = 0

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def save_profile(self, profile: KingdomProfile) -> None:
        self.profiles[profile.id] = profile
        self.save_count += 1

    async def get_profile(self, profile_id: str) -> Optional[KingdomProfile]:
        return self.profiles.get(profile_id)

    async def list_profiles(self) -> List[KingdomProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.last_played, reverse=True)

    async def delete_profile(self, profile_id: str) -> None:
        self.profiles.pop(profile_id, None)
        if self.active_profile_id == profile_id:
            self.active_profile_id = None

    async def set_active_profile(self, profile_id: Optional[str]) -> None:
        self.active_profile_id = profile_id

    async def get_active_profile_id(self) -> str:
        return self.active_profile_id or DEFAULT_PROFILE_ID


def _write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to a sibling temp file, then rename it over ``path``.

    Readers see either the old file or the complete new one, never a
    partial write.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonPersistence(PersistenceStrategy):
    """File-based persistence using human-readable JSON.

    Directory structure:
    ```
    {base_path}/
      active_profile          # id of the most recently saved profile
      profiles/
        default.json          # KingdomProfile
        aurelia.json
    ```

    All file I/O runs in a worker thread (asyncio.to_thread).
    """

    ACTIVE_POINTER = "active_profile"

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else Config.SAVE_DIR

    async def initialize(self) -> None:
        await asyncio.to_thread(self._profiles_dir().mkdir, parents=True, exist_ok=True)

    async def close(self) -> None:
        return None

    async def save_profile(self, profile: KingdomProfile) -> None:
        path = self._profile_path(profile.id)
        await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
        payload = profile.model_dump(mode="json")
        await asyncio.to_thread(_write_atomic, path, json.dumps(payload, indent=2))

    async def get_profile(self, profile_id: str) -> Optional[KingdomProfile]:
        path = self._profile_path(profile_id)
        if not path.exists():
            return None

        payload = await asyncio.to_thread(path.read_text, "utf-8")
        return KingdomProfile.model_validate_json(payload)

    async def list_profiles(self) -> List[KingdomProfile]:
        directory = self._profiles_dir()
        if not directory.exists():
            return []

        def _read_all() -> List[str]:
            return [path.read_text("utf-8") for path in sorted(directory.glob("*.json"))]

        payloads = await asyncio.to_thread(_read_all)
        profiles = [KingdomProfile.model_validate_json(item) for item in payloads]
        profiles.sort(key=lambda p: p.last_played, reverse=True)
        return profiles

    async def delete_profile(self, profile_id: str) -> None:
        path = self._profile_path(profile_id)
        if path.exists():
            await asyncio.to_thread(path.unlink)
        if await self.get_active_profile_id() == profile_id:
            await self.set_active_profile(None)

    async def set_active_profile(self, profile_id: Optional[str]) -> None:
        pointer = self.base_path / self.ACTIVE_POINTER
        if profile_id is None:
            if pointer.exists():
                await asyncio.to_thread(pointer.unlink)
            return
        await asyncio.to_thread(self.base_path.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(_write_atomic, pointer, profile_id)

    async def get_active_profile_id(self) -> str:
        pointer = self.base_path / self.ACTIVE_POINTER
        if not pointer.exists():
            return DEFAULT_PROFILE_ID
        value = await asyncio.to_thread(pointer.read_text, "utf-8")
        return value.strip() or DEFAULT_PROFILE_ID

    def _profiles_dir(self) -> Path:
        return self.base_path / "profiles"

    def _profile_path(self, profile_id: str) -> Path:
        return self._profiles_dir() / f"{profile_id}.json"


class PostgresPersistence(PersistenceStrategy):
    """PostgreSQL-backed persistence using an asyncpg connection pool.

    Expected schema:
    ```
    CREATE TABLE kingdom_profiles (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        last_played TIMESTAMPTZ NOT NULL,
        play_time DOUBLE PRECISION NOT NULL DEFAULT 0,
        is_active BOOLEAN NOT NULL DEFAULT FALSE,
        profile JSONB NOT NULL
    );
    ```
    """

    def __init__(self, database_url: Optional[str] = None):
        if asyncpg is None:  # pragma: no cover - handled during runtime when dependency missing
            raise ImportError(
                "asyncpg is required for PostgresPersistence. "
                "Install with `pip install fablerealm[postgres]`."
            )

        self.database_url = database_url or Config.DATABASE_URL
        self.pool: Optional["asyncpg.Pool"] = None

    async def initialize(self) -> None:
        if self.pool is None:
            self.pool = await asyncpg.create_pool(self.database_url)

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def save_profile(self, profile: KingdomProfile) -> None:
        assert self.pool is not None, "Persistence not initialized"

        query = """
            INSERT INTO kingdom_profiles (id, name, last_played, play_time, profile)
            VALUES ($1, $2, $3, $4, $5::jsonb)
            ON CONFLICT (id) DO UPDATE
            SET name = $2, last_played = $3, play_time = $4, profile = $5::jsonb
        """

        async with self.pool.acquire() as conn:
            await conn.execute(
                query,
                profile.id,
                profile.name,
                profile.last_played,
                profile.play_time,
                profile.model_dump_json(),
            )

    async def get_profile(self, profile_id: str) -> Optional[KingdomProfile]:
        assert self.pool is not None, "Persistence not initialized"

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT profile FROM kingdom_profiles WHERE id = $1", profile_id
            )

        if not row:
            return None
        return KingdomProfile.model_validate_json(row["profile"])

    async def list_profiles(self) -> List[KingdomProfile]:
        assert self.pool is not None, "Persistence not initialized"

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT profile FROM kingdom_profiles ORDER BY last_played DESC"
            )

        return [KingdomProfile.model_validate_json(row["profile"]) for row in rows]

    async def delete_profile(self, profile_id: str) -> None:
        assert self.pool is not None, "Persistence not initialized"

        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM kingdom_profiles WHERE id = $1", profile_id)

    async def set_active_profile(self, profile_id: Optional[str]) -> None:
        assert self.pool is not None, "Persistence not initialized"

        async with self.pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute("UPDATE kingdom_profiles SET is_active = FALSE WHERE is_active")
                if profile_id is not None:
                    await conn.execute(
                        "UPDATE kingdom_profiles SET is_active = TRUE WHERE id = $1", profile_id
                    )

    async def get_active_profile_id(self) -> str:
        assert self.pool is not None, "Persistence not initialized"

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id FROM kingdom_profiles WHERE is_active LIMIT 1"
            )

        return row["id"] if row else DEFAULT_PROFILE_ID
