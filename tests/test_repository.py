from __future__ import annotations

import fakeredis
import pytest

from djgame.api.models import DailySong, Guess, RevealRecord
from djgame.errors import AlreadyChosen, AlreadyGuessed, AlreadyRevealed, CorruptRecord
from djgame.repository import DailyGameRepository

DAY = "2024-01-01"


def _guess(guesser: str, guessed: str) -> Guess:
    return Guess(
        guesser_id=guesser,
        guesser_name=guesser.lower(),
        guessed_user_id=guessed,
        guessed_user_name=guessed.lower(),
    )


def test_key_scheme_is_stable(repo: DailyGameRepository, r: fakeredis.FakeRedis) -> None:
    s = repo.add_suggestion("UA", "alice", "https://song.test/1")
    repo.set_daily_song(DAY, DailySong(dj_user_id="UA", dj_name="alice", song_url="u1"))
    repo.set_reveal(DAY, RevealRecord(revealer_user_id="UB", revealer_name="bob"))
    repo.add_guess(DAY, _guess("UB", "UA"))

    assert sorted(r.keys("*")) == sorted(
        [
            f"djgame:v1:suggestion:UA:{s.suggestion_id}",
            "djgame:v1:day:2024-01-01:song",
            "djgame:v1:day:2024-01-01:reveal",
            "djgame:v1:day:2024-01-01:guess:UB",
        ]
    )


def test_suggestions_are_listed_per_user_and_deduplicated(repo: DailyGameRepository) -> None:
    a1 = repo.add_suggestion("UA", "alice", "u1")
    a2 = repo.add_suggestion("UA", "alice", "u2")
    repo.add_suggestion("UB", "bob", "u3")

    assert a1.suggestion_id != a2.suggestion_id
    assert repo.list_suggesters() == {"UA", "UB"}
    assert sorted(s.song_url for s in repo.list_suggestions("UA")) == ["u1", "u2"]
    assert [s.song_url for s in repo.list_suggestions("UB")] == ["u3"]
    assert repo.list_suggestions("UC") == []


def test_remove_suggestion_only_touches_that_record(repo: DailyGameRepository) -> None:
    a1 = repo.add_suggestion("UA", "alice", "u1")
    repo.add_suggestion("UA", "alice", "u2")

    repo.remove_suggestion("UA", a1.suggestion_id)

    assert [s.song_url for s in repo.list_suggestions("UA")] == ["u2"]
    assert repo.list_suggesters() == {"UA"}


def test_daily_song_is_create_once(repo: DailyGameRepository) -> None:
    assert repo.daily_song_exists(DAY) is False
    assert repo.get_daily_song(DAY) is None

    first = DailySong(dj_user_id="UA", dj_name="alice", song_url="u1")
    repo.set_daily_song(DAY, first)

    with pytest.raises(AlreadyChosen):
        repo.set_daily_song(DAY, DailySong(dj_user_id="UB", dj_name="bob", song_url="u2"))

    assert repo.daily_song_exists(DAY) is True
    assert repo.get_daily_song(DAY) == first


def test_reveal_is_create_once_and_names_first_revealer(repo: DailyGameRepository) -> None:
    repo.set_reveal(DAY, RevealRecord(revealer_user_id="UB", revealer_name="bob"))

    with pytest.raises(AlreadyRevealed) as e:
        repo.set_reveal(DAY, RevealRecord(revealer_user_id="UC", revealer_name="carol"))

    assert e.value.by == "bob"
    assert repo.get_reveal(DAY) == RevealRecord(revealer_user_id="UB", revealer_name="bob")


def test_guesses_are_one_per_user_per_day(repo: DailyGameRepository) -> None:
    repo.add_guess(DAY, _guess("UB", "UA"))

    with pytest.raises(AlreadyGuessed):
        repo.add_guess(DAY, _guess("UB", "UC"))

    # Other days and other users are independent.
    repo.add_guess("2024-01-02", _guess("UB", "UC"))
    repo.add_guess(DAY, _guess("UC", "UA"))

    assert repo.guess_exists(DAY, "UB") is True
    assert repo.guess_exists(DAY, "UD") is False
    assert sorted(g.guesser_id for g in repo.list_guesses(DAY)) == ["UB", "UC"]
    assert repo.list_guesses(DAY)[0].guessed_user_id == "UA"


def test_undecodable_record_is_reported_as_corrupt(repo: DailyGameRepository, r: fakeredis.FakeRedis) -> None:
    r.set("djgame:v1:day:2024-01-01:song", "not-json")
    r.set("djgame:v1:day:2024-01-01:guess:UB", '{"guesser_id": "UB"}')

    with pytest.raises(CorruptRecord) as e:
        repo.get_daily_song(DAY)
    assert "djgame:v1:day:2024-01-01:song" in str(e.value)

    with pytest.raises(CorruptRecord):
        repo.list_guesses(DAY)
