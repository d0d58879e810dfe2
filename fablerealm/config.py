"""
FableRealm Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    # Simulation
    GRID_SIZE: int = int(os.getenv("GRID_SIZE", "15"))
    TICK_RATE_SECONDS: float = float(os.getenv("TICK_RATE_SECONDS", "1.0"))
    INITIAL_MONEY: int = int(os.getenv("INITIAL_MONEY", "15000"))

    # Text generation (quests and news)
    AI_ENABLED: bool = _env_flag("AI_ENABLED", "true")
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-5-nano")
    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")

    GOAL_FETCH_DELAY_SECONDS: float = float(os.getenv("GOAL_FETCH_DELAY_SECONDS", "3.0"))
    NEWS_CHANCE: float = float(os.getenv("NEWS_CHANCE", "0.1"))
    NEWS_FEED_LIMIT: int = int(os.getenv("NEWS_FEED_LIMIT", "10"))

    # Persistence
    SAVE_DIR: Path = Path(os.getenv("SAVE_DIR", "kingdoms"))
    PROFILE_ID: str = os.getenv("PROFILE_ID", "default")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://localhost/fablerealm")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if required values are missing."""
        if cls.GRID_SIZE < 1:
            raise ValueError("GRID_SIZE must be a positive integer")

        if cls.TICK_RATE_SECONDS <= 0:
            raise ValueError("TICK_RATE_SECONDS must be greater than zero")

        # Keys only matter when quests and news are requested from a provider
        if not cls.AI_ENABLED:
            return

        if cls.LLM_PROVIDER == "anthropic" and not cls.ANTHROPIC_API_KEY:
            raise ValueError(
                "ANTHROPIC_API_KEY is required when using the 'anthropic' provider. "
                "Set AI_ENABLED=false to run with locally generated quests only."
            )

        if cls.LLM_PROVIDER == "openai" and not cls.OPENAI_API_KEY:
            raise ValueError(
                "OPENAI_API_KEY is required when using the 'openai' provider. "
                "Set AI_ENABLED=false to run with locally generated quests only."
            )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "FableRealm Configuration:",
            f"  Grid: {cls.GRID_SIZE}x{cls.GRID_SIZE}",
            f"  Tick Rate: {cls.TICK_RATE_SECONDS}s",
            f"  Starting Gold: {cls.INITIAL_MONEY}",
            f"  AI Enabled: {cls.AI_ENABLED}",
            f"  LLM Provider: {cls.LLM_PROVIDER}",
            f"  LLM Model: {cls.LLM_MODEL}",
            f"  Save Directory: {cls.SAVE_DIR}",
            f"  Profile: {cls.PROFILE_ID}",
        ]
        return "\n".join(lines)
