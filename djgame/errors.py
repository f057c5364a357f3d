from __future__ import annotations


class GameRuleError(ValueError):
    """A command that is not legal for the day's current state.

    These are user-facing and recoverable: the message is shown to the user verbatim.
    """

    reason = "That isn't allowed right now."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)


class AlreadyChosen(GameRuleError):
    reason = "The DJ of the day has already been chosen."


class AlreadyRevealed(GameRuleError):
    def __init__(self, by: str) -> None:
        self.by = by
        super().__init__(f"The DJ of the day was already revealed by {by}.")


class AlreadyGuessed(GameRuleError):
    reason = "You already guessed today. Wait for the reveal!"


class NoSuggestions(GameRuleError):
    reason = "There are no song suggestions yet. Use /suggest to add one."


class NotChosenYet(GameRuleError):
    reason = "The DJ of the day hasn't been chosen yet. Use /choose first."


class InvalidGuessFormat(GameRuleError):
    reason = "Mention the user you think is the DJ, e.g. `/guess @someone`."


class GameBusy(GameRuleError):
    reason = "Someone else is choosing the DJ right now. Try again in a moment."


class StoreUnavailable(RuntimeError):
    """The backing store failed; the command's outcome is unknown to the caller."""


class CorruptRecord(StoreUnavailable):
    """A stored record could not be decoded."""
