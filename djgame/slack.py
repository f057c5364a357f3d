from __future__ import annotations

import re
from typing import Any

from djgame.api.models import RevealSummary, SlackReply, Visibility

# Slack wraps links as <https://...> or <https://...|label>.
_LINK_RE = re.compile(r"^<([^|>]+)(?:\|[^>]*)?>$")

GENERIC_FAILURE_TEXT = "Something went wrong on our side and nothing was saved. Please try again later."


def unwrap_link(text: str) -> str:
    text = (text or "").strip()
    m = _LINK_RE.match(text)
    return m.group(1) if m else text


def response_type_for(visibility: Visibility) -> str:
    return "in_channel" if visibility == Visibility.broadcast else "ephemeral"


def reply(text: str, *, visibility: Visibility, blocks: list[dict[str, Any]] | None = None) -> SlackReply:
    return SlackReply(response_type=response_type_for(visibility), text=text, blocks=blocks)  # type: ignore[arg-type]


def rejection(reason: str) -> SlackReply:
    return reply(reason, visibility=Visibility.private)


def failure() -> SlackReply:
    return reply(GENERIC_FAILURE_TEXT, visibility=Visibility.private)


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def reveal_blocks(summary: RevealSummary) -> list[dict[str, Any]]:
    headline = f"The DJ of the day was *{summary.dj_name}*! (revealed by {summary.revealer_name})"
    if summary.outcomes:
        lines = [
            f"{':white_check_mark:' if o.correct else ':x:'} {o.guesser_name} guessed {o.guessed_user_name}"
            for o in summary.outcomes
        ]
        body = "\n".join(lines)
    else:
        body = "_Nobody guessed today._"
    return [_section(headline), {"type": "divider"}, _section(body)]


def reveal_text(summary: RevealSummary) -> str:
    correct = sum(1 for o in summary.outcomes if o.correct)
    return f"The DJ of the day was {summary.dj_name}! {correct}/{len(summary.outcomes)} guessed right."
