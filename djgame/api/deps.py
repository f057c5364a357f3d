from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import Depends, Form

from djgame.api.models import SlashCommand
from djgame.clock import game_day
from djgame.config import Settings, load_settings
from djgame.infra.redis_client import create_redis
from djgame.kv_store import RedisKeyValueStore
from djgame.repository import DailyGameRepository


def get_settings() -> Settings:
    return load_settings()


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_repository(r: redis.Redis = Depends(get_redis)) -> DailyGameRepository:
    return DailyGameRepository(RedisKeyValueStore(r))


def get_game_day(settings: Settings = Depends(get_settings)) -> str:
    return game_day(tz_name=settings.game_timezone)


def slash_command_form(
    user_id: str = Form(...),
    user_name: str = Form(""),
    text: str = Form(""),
    command: str = Form(""),
) -> SlashCommand:
    return SlashCommand(command=command, user_id=user_id, user_name=user_name, text=text)
