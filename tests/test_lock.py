from __future__ import annotations

import fakeredis
import pytest
import redis

from djgame.errors import GameBusy
from djgame.kv_store import RedisKeyValueStore
from djgame.lock import day_lock

DAY = "2024-01-01"
KEY = "djgame:v1:lock:2024-01-01:choose"


def test_lock_is_exclusive_and_released(store: RedisKeyValueStore, r: fakeredis.FakeRedis) -> None:
    with day_lock(store=store, day=DAY, action="choose", ttl_ms=5_000) as token:
        assert r.get(KEY) == token
        assert 0 < r.pttl(KEY) <= 5_000

        with pytest.raises(GameBusy):
            with day_lock(store=store, day=DAY, action="choose"):
                pass

        # Different day or action is a different lock.
        with day_lock(store=store, day="2024-01-02", action="choose"):
            pass
        with day_lock(store=store, day=DAY, action="other"):
            pass

    assert r.exists(KEY) == 0


def test_lock_released_on_error(store: RedisKeyValueStore, r: fakeredis.FakeRedis) -> None:
    with pytest.raises(RuntimeError):
        with day_lock(store=store, day=DAY, action="choose"):
            raise RuntimeError("boom")

    assert r.exists(KEY) == 0


def test_lock_does_not_release_someone_elses_lock(store: RedisKeyValueStore, r: fakeredis.FakeRedis) -> None:
    with day_lock(store=store, day=DAY, action="choose"):
        # Simulate expiry followed by another holder taking the lock.
        r.set(KEY, "other-holder")

    assert r.get(KEY) == "other-holder"


def test_release_failure_does_not_mask_body_error(
    store: RedisKeyValueStore, r: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _down(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise redis.exceptions.ConnectionError("down")

    with pytest.raises(ValueError) as e:
        with day_lock(store=store, day=DAY, action="choose"):
            monkeypatch.setattr(r, "get", _down)
            raise ValueError("body failed")

    assert str(e.value) == "body failed"
