from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal, cast

from djgame import slack
from djgame.api.models import SlackReply, SlashCommand
from djgame.errors import GameRuleError, StoreUnavailable
from djgame.game import choose_dj, guess_dj, play_song, reveal_dj, suggest_song
from djgame.repository import DailyGameRepository

logger = logging.getLogger(__name__)

CommandName = Literal["play", "suggest", "choose", "guess", "reveal"]

COMMAND_NAMES: frozenset[str] = frozenset({"play", "suggest", "choose", "guess", "reveal"})
# Older installs registered the suggestion command as /submit.
COMMAND_ALIASES: dict[str, str] = {"submit": "suggest"}


@dataclass(frozen=True, slots=True)
class CommandContext:
    repo: DailyGameRepository
    day: str
    cmd: SlashCommand
    rng: random.Random | None = None
    lock_ttl_ms: int = 5_000


def normalize_command(raw: str) -> CommandName:
    name = (raw or "").strip().lstrip("/").casefold()
    name = COMMAND_ALIASES.get(name, name)
    if name not in COMMAND_NAMES:
        raise ValueError(f"Unknown command: {raw}")
    return cast(CommandName, name)


def _play(ctx: CommandContext) -> SlackReply:
    result = play_song(repo=ctx.repo, day=ctx.day)
    return slack.reply(result.song_url, visibility=result.visibility)


def _suggest(ctx: CommandContext) -> SlackReply:
    result = suggest_song(
        repo=ctx.repo,
        user_id=ctx.cmd.user_id,
        user_name=ctx.cmd.display_name,
        song_url=slack.unwrap_link(ctx.cmd.text),
    )
    return slack.reply(f"Suggestion added: {result.suggestion.song_url}", visibility=result.visibility)


def _choose(ctx: CommandContext) -> SlackReply:
    result = choose_dj(repo=ctx.repo, day=ctx.day, rng=ctx.rng, lock_ttl_ms=ctx.lock_ttl_ms)
    return slack.reply(
        "The DJ of the day has been chosen! Use /play to hear the song and /guess @someone to guess who it is.",
        visibility=result.visibility,
    )


def _guess(ctx: CommandContext) -> SlackReply:
    result = guess_dj(
        repo=ctx.repo,
        day=ctx.day,
        guesser_id=ctx.cmd.user_id,
        guesser_name=ctx.cmd.display_name,
        text=ctx.cmd.text,
    )
    return slack.reply(
        f"Guess added: {result.guess.guessed_user_name}. Results come with the reveal.",
        visibility=result.visibility,
    )


def _reveal(ctx: CommandContext) -> SlackReply:
    result = reveal_dj(repo=ctx.repo, day=ctx.day, revealer_id=ctx.cmd.user_id, revealer_name=ctx.cmd.display_name)
    return slack.reply(
        slack.reveal_text(result.summary),
        visibility=result.visibility,
        blocks=slack.reveal_blocks(result.summary),
    )


_HANDLERS: dict[str, Callable[[CommandContext], SlackReply]] = {
    "play": _play,
    "suggest": _suggest,
    "choose": _choose,
    "guess": _guess,
    "reveal": _reveal,
}


def dispatch_command(
    *,
    repo: DailyGameRepository,
    day: str,
    command: str,
    cmd: SlashCommand,
    rng: random.Random | None = None,
    lock_ttl_ms: int = 5_000,
) -> SlackReply:
    """Run one slash command and always return a reply.

    Rule violations become private replies quoting the reason; store failures become a
    generic private reply and are logged.
    """

    try:
        name = normalize_command(command)
    except ValueError as e:
        return slack.rejection(str(e))

    ctx = CommandContext(repo=repo, day=day, cmd=cmd, rng=rng, lock_ttl_ms=lock_ttl_ms)
    logger.info("command=%s user=%s day=%s", name, cmd.user_id, day)
    try:
        return _HANDLERS[name](ctx)
    except GameRuleError as e:
        logger.info("command=%s user=%s rejected: %s", name, cmd.user_id, e)
        return slack.rejection(str(e))
    except StoreUnavailable:
        logger.exception("command=%s user=%s failed: store unavailable", name, cmd.user_id)
        return slack.failure()
    except Exception:
        logger.exception("command=%s user=%s failed: unexpected error", name, cmd.user_id)
        return slack.failure()
