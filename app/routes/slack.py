# app/routes/slack.py

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app import __version__
from app.commands import (
    Command,
    InfoCommand,
    ListCommand,
    NoCommand,
    SongCommand,
    StartCommand,
    StopCommand,
    VoteCommand,
    parse_command,
)
from app.database import get_db
from app.deps.security import require_slack_request
from app.errors import MalformedRequest
from app.schemas import SlackCommandRequest, SlackMessage
from app.services import competition_service
from app.services.slack_responder import SlackResponder, get_slack_responder

logger = logging.getLogger("slack")

router = APIRouter(tags=["slack"])

USAGE = (
    "Usage: `start <description>`, `stop`, `song <uri>`, "
    "`vote <song id>`, `list`, `info`"
)


@dataclass
class CommandOutcome:
    reply: str
    # Posted to the channel through response_url when set.
    announcement: Optional[str] = None


def decode_form(body: bytes) -> SlackCommandRequest:
    try:
        fields = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
        return SlackCommandRequest.model_validate(fields)
    except (UnicodeDecodeError, ValidationError) as exc:
        logger.warning("Could not decode slash command body: %s", exc)
        raise MalformedRequest("Could not read the slash command payload") from None


async def execute_command(
    command: Command, form: SlackCommandRequest, db: AsyncSession
) -> CommandOutcome:
    if isinstance(command, NoCommand):
        return CommandOutcome(reply=USAGE)

    if isinstance(command, StartCommand):
        competition = await competition_service.start_competition(
            db, command.description, form.user_id, form.user_name
        )
        return CommandOutcome(
            reply=f"Started competition `{competition.id}`",
            announcement=(
                f"<@{competition.user_id}> started competition with description: "
                f"*{competition.description}*"
            ),
        )

    if isinstance(command, StopCommand):
        competition = await competition_service.stop_competition(db, form.user_id)
        return CommandOutcome(
            reply=f"Closed competition `{competition.id}`",
            announcement=(
                f"<@{form.user_id}> *ended* competition with description: "
                f"*{competition.description}*"
            ),
        )

    if isinstance(command, SongCommand):
        song = await competition_service.submit_song(
            db, command.uri, form.user_id, form.user_name
        )
        return CommandOutcome(
            reply=f"Your song is `{song.id}`",
            announcement=f"<@{song.user_id}> *added* song: {song.song_uri}",
        )

    if isinstance(command, VoteCommand):
        vote = await competition_service.cast_vote(
            db, command.song_id, form.user_id, form.user_name
        )
        return CommandOutcome(
            reply=f"Vote recorded for `{vote.song_id}`",
            announcement=f"<@{vote.user_id}> *voted* for song_id: {vote.song_id}",
        )

    if isinstance(command, ListCommand):
        songs = await competition_service.list_active_songs(db)
        if not songs:
            return CommandOutcome(reply="No songs have been submitted yet")
        lines = [f"`{song.id}` <@{song.user_id}> - {song.song_uri}" for song in songs]
        return CommandOutcome(reply="\n".join(lines))

    if isinstance(command, InfoCommand):
        active = await competition_service.find_active_competition(db)
        status = (
            f"Active competition: *{active.description}* started by <@{active.user_id}>"
            if active
            else "No competition is running"
        )
        return CommandOutcome(reply=f"Song of the Week bot v{__version__}\n{status}")

    raise TypeError(f"Unhandled command {command!r}")


@router.post("/", response_model=SlackMessage)
async def handle_slash_command(
    background: BackgroundTasks,
    body: bytes = Depends(require_slack_request),
    db: AsyncSession = Depends(get_db),
    responder: SlackResponder = Depends(get_slack_responder),
):
    form = decode_form(body)
    command = parse_command(form.text)
    logger.info("Handling %s from user=%s", type(command).__name__, form.user_id)

    outcome = await execute_command(command, form, db)

    if outcome.announcement and form.response_url:
        background.add_task(responder.in_channel, form.response_url, outcome.announcement)

    return SlackMessage(response_type="ephemeral", text=outcome.reply)
