from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Protocol, TypeVar

import redis

from djgame.errors import StoreUnavailable

T = TypeVar("T")

_GLOB_SPECIALS = set("*?[]\\")


class KeyValueStore(Protocol):
    """Minimal blob-store contract the repository is written against.

    There is no cross-key atomicity. `put` is last-write-wins; `put_if_absent`
    is the only conditional primitive and is what create-once records use.
    """

    def put(self, key: str, value: str) -> None: ...

    def put_if_absent(self, key: str, value: str, *, ttl_ms: int | None = None) -> bool: ...

    def get(self, key: str) -> str | None: ...

    def delete(self, key: str) -> None: ...

    def exists(self, key: str) -> bool: ...

    def list_keys(self, prefix: str) -> list[str]: ...


def _escape_glob(value: str) -> str:
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIALS else ch for ch in value)


@contextmanager
def _store_errors(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except redis.exceptions.RedisError as e:
        raise StoreUnavailable(f"{op} failed for key '{key}': {e}") from e


class RedisKeyValueStore:
    """KeyValueStore over a redis-py client (expects `decode_responses=True`)."""

    def __init__(self, r: redis.Redis) -> None:
        self._r = r

    def _call(self, op: str, key: str, fn: Callable[[], T]) -> T:
        with _store_errors(op, key):
            return fn()

    def put(self, key: str, value: str) -> None:
        self._call("put", key, lambda: self._r.set(key, value))

    def put_if_absent(self, key: str, value: str, *, ttl_ms: int | None = None) -> bool:
        # SET NX is the compare-and-swap: only one concurrent writer gets a truthy reply.
        created = self._call("put_if_absent", key, lambda: self._r.set(key, value, nx=True, px=ttl_ms))
        return bool(created)

    def get(self, key: str) -> str | None:
        raw = self._call("get", key, lambda: self._r.get(key))
        return raw if raw is None else str(raw)

    def delete(self, key: str) -> None:
        self._call("delete", key, lambda: self._r.delete(key))

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", key, lambda: self._r.exists(key)))

    def list_keys(self, prefix: str) -> list[str]:
        pattern = f"{_escape_glob(prefix)}*"
        # SCAN may yield a key more than once; callers get a sorted, de-duplicated list.
        return self._call("list_keys", prefix, lambda: sorted(set(self._r.scan_iter(match=pattern))))
