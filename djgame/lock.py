from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager, suppress

from djgame.errors import GameBusy, StoreUnavailable
from djgame.kv_store import KeyValueStore
from djgame.repository import lock_key


@contextmanager
def day_lock(*, store: KeyValueStore, day: str, action: str, ttl_ms: int = 5_000) -> Iterator[str]:
    """Best-effort per-day lock for one action.

    Serializes writers of the same (day, action) that go through this lock. It is
    not a fence: if the holder outlives `ttl_ms` a second holder can get in, which
    is why create-once records still use a conditional write.
    Raises GameBusy if another holder has it.
    """

    key = lock_key(day, action)
    token = secrets.token_hex(8)
    if not store.put_if_absent(key, token, ttl_ms=ttl_ms):
        raise GameBusy()
    try:
        yield token
    finally:
        # A failed release leaves the lock to expire; the body's own exception must surface.
        with suppress(StoreUnavailable):
            # get+delete is not atomic; a lock that expired and was re-taken in between can be released early.
            if store.get(key) == token:
                store.delete(key)
