from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

GAME_DAY_FORMAT = "%Y-%m-%d"


def now() -> datetime:
    return datetime.now(tz=UTC)


def game_day(*, tz_name: str = "UTC", at: datetime | None = None) -> str:
    """Format the game day (`YYYY-MM-DD`) for `at` (default: now) in the given zone."""

    moment = at if at is not None else now()
    return moment.astimezone(ZoneInfo(tz_name)).strftime(GAME_DAY_FORMAT)


def parse_game_day(value: str) -> str:
    """Validate a game day string and return it in canonical form."""

    try:
        return datetime.strptime(value, GAME_DAY_FORMAT).strftime(GAME_DAY_FORMAT)
    except ValueError as e:
        raise ValueError(f"Invalid game day '{value}' (expected YYYY-MM-DD)") from e
