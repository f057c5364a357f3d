from __future__ import annotations

import secrets
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from djgame.api.models import DailySong, Guess, RevealRecord, SongSuggestion
from djgame.clock import now as _now
from djgame.errors import AlreadyChosen, AlreadyGuessed, AlreadyRevealed, CorruptRecord
from djgame.kv_store import KeyValueStore

# The key scheme is the schema. Bump the tag (and migrate) if any format below changes.
SCHEMA_TAG = "djgame:v1"
SUGGESTION_PREFIX = f"{SCHEMA_TAG}:suggestion:"  # + {user_id}:{suggestion_id}
DAY_PREFIX = f"{SCHEMA_TAG}:day:"  # + {day}:song | {day}:reveal | {day}:guess:{user_id}
LOCK_PREFIX = f"{SCHEMA_TAG}:lock:"  # + {day}:{action}

M = TypeVar("M", bound=BaseModel)


def suggestion_user_prefix(user_id: str) -> str:
    return f"{SUGGESTION_PREFIX}{user_id}:"


def suggestion_key(user_id: str, suggestion_id: str) -> str:
    return f"{suggestion_user_prefix(user_id)}{suggestion_id}"


def daily_song_key(day: str) -> str:
    return f"{DAY_PREFIX}{day}:song"


def reveal_key(day: str) -> str:
    return f"{DAY_PREFIX}{day}:reveal"


def guess_day_prefix(day: str) -> str:
    return f"{DAY_PREFIX}{day}:guess:"


def guess_key(day: str, user_id: str) -> str:
    return f"{guess_day_prefix(day)}{user_id}"


def lock_key(day: str, action: str) -> str:
    return f"{LOCK_PREFIX}{day}:{action}"


def _decode(model: type[M], key: str, raw: str) -> M:
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecord(f"record at '{key}' is not a valid {model.__name__}") from e


def new_suggestion_id(at: datetime) -> str:
    # Millisecond timestamp keeps ids roughly ordered; the random tail prevents collisions.
    return f"{int(at.timestamp() * 1000):013d}-{secrets.token_hex(4)}"


class DailyGameRepository:
    """Maps the game's records onto deterministic keys in a KeyValueStore.

    Each mutating method issues exactly one store write or delete.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # -- suggestions --------------------------------------------------------

    def list_suggesters(self) -> set[str]:
        users: set[str] = set()
        for key in self.store.list_keys(SUGGESTION_PREFIX):
            user_id, sep, _ = key[len(SUGGESTION_PREFIX) :].partition(":")
            if user_id and sep:
                users.add(user_id)
        return users

    def list_suggestions(self, user_id: str) -> list[SongSuggestion]:
        out: list[SongSuggestion] = []
        for key in self.store.list_keys(suggestion_user_prefix(user_id)):
            raw = self.store.get(key)
            if raw is None:
                # Consumed between listing and reading.
                continue
            out.append(_decode(SongSuggestion, key, raw))
        out.sort(key=lambda s: (s.timestamp, s.suggestion_id))
        return out

    def add_suggestion(self, user_id: str, name: str, url: str) -> SongSuggestion:
        at = _now()
        suggestion = SongSuggestion(
            suggestion_id=new_suggestion_id(at),
            submitter_id=user_id,
            submitter_name=name,
            song_url=url,
            timestamp=at,
        )
        self.store.put(suggestion_key(user_id, suggestion.suggestion_id), suggestion.model_dump_json())
        return suggestion

    def suggestion_exists(self, user_id: str, suggestion_id: str) -> bool:
        return self.store.exists(suggestion_key(user_id, suggestion_id))

    def remove_suggestion(self, user_id: str, suggestion_id: str) -> None:
        self.store.delete(suggestion_key(user_id, suggestion_id))

    # -- daily song ---------------------------------------------------------

    def daily_song_exists(self, day: str) -> bool:
        return self.store.exists(daily_song_key(day))

    def get_daily_song(self, day: str) -> DailySong | None:
        raw = self.store.get(daily_song_key(day))
        if raw is None:
            return None
        return _decode(DailySong, daily_song_key(day), raw)

    def set_daily_song(self, day: str, record: DailySong) -> None:
        if not self.store.put_if_absent(daily_song_key(day), record.model_dump_json()):
            raise AlreadyChosen()

    # -- reveal -------------------------------------------------------------

    def reveal_exists(self, day: str) -> bool:
        return self.store.exists(reveal_key(day))

    def get_reveal(self, day: str) -> RevealRecord | None:
        raw = self.store.get(reveal_key(day))
        if raw is None:
            return None
        return _decode(RevealRecord, reveal_key(day), raw)

    def set_reveal(self, day: str, record: RevealRecord) -> None:
        if not self.store.put_if_absent(reveal_key(day), record.model_dump_json()):
            existing = self.get_reveal(day)
            raise AlreadyRevealed(by=existing.revealer_name if existing else "someone else")

    # -- guesses ------------------------------------------------------------

    def guess_exists(self, day: str, user_id: str) -> bool:
        return self.store.exists(guess_key(day, user_id))

    def add_guess(self, day: str, record: Guess) -> None:
        if not self.store.put_if_absent(guess_key(day, record.guesser_id), record.model_dump_json()):
            raise AlreadyGuessed()

    def list_guesses(self, day: str) -> list[Guess]:
        out: list[Guess] = []
        for key in self.store.list_keys(guess_day_prefix(day)):
            raw = self.store.get(key)
            if raw is None:
                continue
            out.append(_decode(Guess, key, raw))
        return out
