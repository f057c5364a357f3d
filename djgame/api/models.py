from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class DayPhase(StrEnum):
    no_dj = "no_dj"
    dj_chosen = "dj_chosen"
    revealed = "revealed"


class Visibility(StrEnum):
    # Broadcast replies go to the whole channel; private ones only to the caller.
    broadcast = "broadcast"
    private = "private"


class SongSuggestion(BaseModel):
    suggestion_id: str
    submitter_id: str
    submitter_name: str
    song_url: str
    timestamp: datetime


class DailySong(BaseModel):
    dj_user_id: str
    dj_name: str
    song_url: str

    # Which suggestion this selection consumed; lets a later pass finish the cleanup.
    suggestion_id: str | None = None


class RevealRecord(BaseModel):
    revealer_user_id: str
    revealer_name: str


class Guess(BaseModel):
    guesser_id: str
    guesser_name: str
    guessed_user_id: str
    guessed_user_name: str


class GuessOutcome(BaseModel):
    guesser_name: str
    guessed_user_name: str
    correct: bool


class RevealSummary(BaseModel):
    day: str
    dj_name: str
    song_url: str
    revealer_name: str
    outcomes: list[GuessOutcome] = Field(default_factory=list)


class DayStatus(BaseModel):
    day: str
    phase: DayPhase
    num_suggesters: int
    num_guesses: int


class SlashCommand(BaseModel):
    """The subset of a Slack slash-command POST the game needs."""

    command: str = ""
    user_id: str
    user_name: str = ""
    text: str = ""

    @property
    def display_name(self) -> str:
        return self.user_name or self.user_id


class SlackReply(BaseModel):
    response_type: Literal["in_channel", "ephemeral"]
    text: str
    blocks: list[dict[str, Any]] | None = None


class ReconcileResponse(BaseModel):
    day: str
    removed_suggestion: bool
