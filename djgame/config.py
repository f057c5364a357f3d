from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class Settings:
    redis_url: str
    # All game days are computed in this zone (IANA name).
    game_timezone: str
    # Expiry for the per-day choose lock; bounds how long a crashed request can block others.
    choose_lock_ttl_ms: int
    log_level: str


_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Load a repo-local `.env` without overriding variables already exported."""

    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
    _DOTENV_LOADED = True


def settings_from_env() -> Settings:
    return Settings(
        redis_url=os.environ.get("REDIS_URL", "redis://localhost:6379/0"),
        game_timezone=os.environ.get("GAME_TIMEZONE", "UTC"),
        choose_lock_ttl_ms=int(os.environ.get("CHOOSE_LOCK_TTL_MS", "5000")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def load_settings() -> Settings:
    _load_dotenv_once()
    return settings_from_env()
