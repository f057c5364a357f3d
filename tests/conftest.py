from __future__ import annotations

from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient

from djgame.kv_store import RedisKeyValueStore
from djgame.repository import DailyGameRepository

DAY = "2024-01-01"


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    # A private server per test; FakeRedis instances otherwise share one by host/port.
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture()
def store(r: fakeredis.FakeRedis) -> RedisKeyValueStore:
    return RedisKeyValueStore(r)


@pytest.fixture()
def repo(store: RedisKeyValueStore) -> DailyGameRepository:
    return DailyGameRepository(store)


@pytest.fixture()
def client_and_redis(r: fakeredis.FakeRedis) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis, with the game day pinned to DAY."""

    from djgame.api.deps import get_game_day, get_redis
    from djgame.main import app

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_game_day] = lambda: DAY
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
