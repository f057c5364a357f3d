from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from djgame.api.deps import get_game_day, get_repository, get_settings, slash_command_form
from djgame.api.models import DayStatus, ReconcileResponse, SlackReply, SlashCommand
from djgame.clock import parse_game_day
from djgame.commands import dispatch_command
from djgame.config import Settings
from djgame.errors import StoreUnavailable
from djgame.game import day_status, reconcile_day
from djgame.repository import DailyGameRepository

router = APIRouter()


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


def _run(command: str, cmd: SlashCommand, repo: DailyGameRepository, day: str, settings: Settings) -> SlackReply:
    return dispatch_command(
        repo=repo,
        day=day,
        command=command,
        cmd=cmd,
        lock_ttl_ms=settings.choose_lock_ttl_ms,
    )


# Slack expects HTTP 200 for every slash command; rejections travel in the reply body.


@router.post("/slack/commands", response_model=SlackReply)
async def slash_command_route(
    cmd: SlashCommand = Depends(slash_command_form),
    repo: DailyGameRepository = Depends(get_repository),
    day: str = Depends(get_game_day),
    settings: Settings = Depends(get_settings),
) -> SlackReply:
    return _run(cmd.command, cmd, repo, day, settings)


@router.post("/slack/{command_name}", response_model=SlackReply)
async def named_command_route(
    command_name: str,
    cmd: SlashCommand = Depends(slash_command_form),
    repo: DailyGameRepository = Depends(get_repository),
    day: str = Depends(get_game_day),
    settings: Settings = Depends(get_settings),
) -> SlackReply:
    return _run(command_name, cmd, repo, day, settings)


@router.get("/days/{day}", response_model=DayStatus)
async def day_status_route(day: str, repo: DailyGameRepository = Depends(get_repository)) -> DayStatus:
    try:
        return day_status(repo=repo, day=parse_game_day(day))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable") from e


@router.post("/admin/days/{day}/reconcile", response_model=ReconcileResponse)
async def reconcile_day_route(day: str, repo: DailyGameRepository = Depends(get_repository)) -> ReconcileResponse:
    """Finish a DJ selection whose suggestion cleanup failed."""

    try:
        parsed = parse_game_day(day)
        removed = reconcile_day(repo=repo, day=parsed)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except StoreUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store unavailable") from e
    return ReconcileResponse(day=parsed, removed_suggestion=removed)
