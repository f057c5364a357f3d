"""Daily game rules: one function per command.

Consistency model
-----------------
The store has no transactions, so each command reads key presence, decides,
then writes. That check-then-act sequence is racy on its own. What keeps it
correct:

- create-once records (daily song, reveal, guess) are written with a
  conditional put, so the loser of a race gets the same rule error a
  serialized caller would;
- `choose_dj` runs under a per-day lock so only one request draws from the
  suggestion pool at a time;
- the daily song records which suggestion it consumed, and `reconcile_day`
  deletes it if the delete after selection failed.

The lock expires, so the overall guarantee is best-effort single-writer, not
linearizable. Plain `put` (suggestions) is last-write-wins.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass

from statemachine.exceptions import TransitionNotAllowed

from djgame.api.models import (
    DailySong,
    DayPhase,
    DayStatus,
    Guess,
    GuessOutcome,
    RevealRecord,
    RevealSummary,
    SongSuggestion,
    Visibility,
)
from djgame.errors import (
    AlreadyChosen,
    AlreadyGuessed,
    AlreadyRevealed,
    InvalidGuessFormat,
    NoSuggestions,
    NotChosenYet,
)
from djgame.fsm import DailyGameFSM, fsm_for_day
from djgame.lock import day_lock
from djgame.repository import DailyGameRepository

logger = logging.getLogger(__name__)

# Slack user mention: <@U123ABC|alice>. Only the first one in the text counts.
MENTION_RE = re.compile(r"<@([^|>\s]+)\|([^>]+)>")


@dataclass(frozen=True, slots=True)
class Mention:
    user_id: str
    display_name: str


@dataclass(frozen=True, slots=True)
class SuggestionAdded:
    suggestion: SongSuggestion
    visibility: Visibility = Visibility.private


@dataclass(frozen=True, slots=True)
class DJChosen:
    day: str
    visibility: Visibility = Visibility.broadcast


@dataclass(frozen=True, slots=True)
class SongToPlay:
    day: str
    song_url: str
    visibility: Visibility = Visibility.broadcast


@dataclass(frozen=True, slots=True)
class GuessRecorded:
    day: str
    guess: Guess
    visibility: Visibility = Visibility.private


@dataclass(frozen=True, slots=True)
class DJRevealed:
    summary: RevealSummary
    visibility: Visibility = Visibility.broadcast


def parse_mention(text: str) -> Mention | None:
    m = MENTION_RE.search(text or "")
    if m is None:
        return None
    user_id = m.group(1)
    # A blank label (<@U123| >) still identifies the user; show the id instead.
    return Mention(user_id=user_id, display_name=m.group(2).strip() or user_id)


def _send(*, repo: DailyGameRepository, day: str, event: str) -> DailyGameFSM:
    """Apply `event` to the day's machine or raise the matching rule error."""

    fsm = fsm_for_day(repo=repo, day=day)
    try:
        fsm.send(event)
    except TransitionNotAllowed as e:
        if fsm.phase == DayPhase.no_dj:
            raise NotChosenYet() from e
        if event == "choose":
            raise AlreadyChosen() from e
        if event == "reveal":
            existing = repo.get_reveal(day)
            raise AlreadyRevealed(by=existing.revealer_name if existing else "someone else") from e
        raise
    return fsm


def suggest_song(*, repo: DailyGameRepository, user_id: str, user_name: str, song_url: str) -> SuggestionAdded:
    suggestion = repo.add_suggestion(user_id, user_name, song_url)
    logger.info("suggestion %s added by %s", suggestion.suggestion_id, user_id)
    return SuggestionAdded(suggestion=suggestion)


def _draw(*, repo: DailyGameRepository, rng: random.Random) -> SongSuggestion:
    # Two independent draws: every suggester is equally likely to be DJ no matter how many songs they queued.
    candidates = sorted(repo.list_suggesters())
    while candidates:
        dj_id = rng.choice(candidates)
        suggestions = repo.list_suggestions(dj_id)
        if suggestions:
            return rng.choice(suggestions)
        # Listed but already consumed (e.g. by another day's selection).
        candidates.remove(dj_id)
    raise NoSuggestions()


def choose_dj(
    *,
    repo: DailyGameRepository,
    day: str,
    rng: random.Random | None = None,
    lock_ttl_ms: int = 5_000,
) -> DJChosen:
    rng = rng or random.SystemRandom()

    with day_lock(store=repo.store, day=day, action="choose", ttl_ms=lock_ttl_ms):
        try:
            _send(repo=repo, day=day, event="choose")
        except AlreadyChosen:
            reconcile_day(repo=repo, day=day)
            raise

        suggestion = _draw(repo=repo, rng=rng)
        record = DailySong(
            dj_user_id=suggestion.submitter_id,
            dj_name=suggestion.submitter_name,
            song_url=suggestion.song_url,
            suggestion_id=suggestion.suggestion_id,
        )
        repo.set_daily_song(day, record)
        repo.remove_suggestion(suggestion.submitter_id, suggestion.suggestion_id)

    logger.info("DJ chosen for %s (suggestion %s)", day, suggestion.suggestion_id)
    return DJChosen(day=day)


def play_song(*, repo: DailyGameRepository, day: str) -> SongToPlay:
    _send(repo=repo, day=day, event="play")
    song = repo.get_daily_song(day)
    if song is None:
        raise NotChosenYet()
    return SongToPlay(day=day, song_url=song.song_url)


def guess_dj(
    *,
    repo: DailyGameRepository,
    day: str,
    guesser_id: str,
    guesser_name: str,
    text: str,
) -> GuessRecorded:
    _send(repo=repo, day=day, event="guess")
    if repo.guess_exists(day, guesser_id):
        raise AlreadyGuessed()

    mention = parse_mention(text)
    if mention is None:
        raise InvalidGuessFormat()

    guess = Guess(
        guesser_id=guesser_id,
        guesser_name=guesser_name,
        guessed_user_id=mention.user_id,
        guessed_user_name=mention.display_name,
    )
    repo.add_guess(day, guess)
    logger.info("guess recorded for %s by %s", day, guesser_id)
    return GuessRecorded(day=day, guess=guess)


def reveal_dj(*, repo: DailyGameRepository, day: str, revealer_id: str, revealer_name: str) -> DJRevealed:
    _send(repo=repo, day=day, event="reveal")

    # Read the song before taking the one-shot reveal record, so a missing song never burns it.
    song = repo.get_daily_song(day)
    if song is None:
        raise NotChosenYet()
    repo.set_reveal(day, RevealRecord(revealer_user_id=revealer_id, revealer_name=revealer_name))

    outcomes = [
        GuessOutcome(
            guesser_name=g.guesser_name,
            guessed_user_name=g.guessed_user_name,
            correct=g.guessed_user_id == song.dj_user_id,
        )
        for g in repo.list_guesses(day)
    ]
    outcomes.sort(key=lambda o: o.guesser_name.casefold())

    logger.info("DJ revealed for %s by %s (%d guesses)", day, revealer_id, len(outcomes))
    return DJRevealed(
        summary=RevealSummary(
            day=day,
            dj_name=song.dj_name,
            song_url=song.song_url,
            revealer_name=revealer_name,
            outcomes=outcomes,
        )
    )


def reconcile_day(*, repo: DailyGameRepository, day: str) -> bool:
    """Delete the suggestion the day's selection consumed if it is still stored.

    Returns True if something was removed.
    """

    song = repo.get_daily_song(day)
    if song is None or not song.suggestion_id:
        return False
    if not repo.suggestion_exists(song.dj_user_id, song.suggestion_id):
        return False

    logger.warning("removing leftover consumed suggestion %s for %s", song.suggestion_id, day)
    repo.remove_suggestion(song.dj_user_id, song.suggestion_id)
    return True


def day_status(*, repo: DailyGameRepository, day: str) -> DayStatus:
    fsm = fsm_for_day(repo=repo, day=day)
    return DayStatus(
        day=day,
        phase=fsm.phase,
        num_suggesters=len(repo.list_suggesters()),
        num_guesses=len(repo.list_guesses(day)),
    )
