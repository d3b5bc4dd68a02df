"""Parsing of the free-text argument of the ``/sotw`` slash command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from app.errors import InvalidArgument, MissingArgument, UnrecognizedCommand


@dataclass(frozen=True)
class NoCommand:
    """The slash command was sent without any text."""


@dataclass(frozen=True)
class StartCommand:
    description: str


@dataclass(frozen=True)
class StopCommand:
    pass


@dataclass(frozen=True)
class VoteCommand:
    song_id: UUID


@dataclass(frozen=True)
class ListCommand:
    pass


@dataclass(frozen=True)
class SongCommand:
    uri: str


@dataclass(frozen=True)
class InfoCommand:
    pass


Command = Union[
    NoCommand, StartCommand, StopCommand, VoteCommand, ListCommand, SongCommand, InfoCommand
]


def split_payload(text: str) -> tuple[str, Optional[str]]:
    """Split ``text`` on the first run of whitespace into keyword and remainder."""

    parts = text.strip().split(None, 1)
    if not parts:
        return "", None
    if len(parts) == 1:
        return parts[0], None
    remainder = parts[1].strip()
    return parts[0], remainder or None


def parse_command(text: Optional[str]) -> Command:
    """Map the command text to exactly one command or raise ``CommandParseError``."""

    if text is None or not text.strip():
        return NoCommand()

    keyword, argument = split_payload(text)

    if keyword == "start":
        if argument is None:
            raise MissingArgument(keyword)
        return StartCommand(description=argument)
    if keyword == "stop":
        return StopCommand()
    if keyword == "vote":
        if argument is None:
            raise MissingArgument(keyword)
        try:
            return VoteCommand(song_id=UUID(argument))
        except ValueError:
            raise InvalidArgument(f"`{argument}` is not a valid song id") from None
    if keyword == "list":
        return ListCommand()
    if keyword == "song":
        if argument is None:
            raise MissingArgument(keyword)
        return SongCommand(uri=argument)
    if keyword == "info":
        return InfoCommand()

    raise UnrecognizedCommand(keyword)


__all__ = [
    "Command",
    "InfoCommand",
    "ListCommand",
    "NoCommand",
    "SongCommand",
    "StartCommand",
    "StopCommand",
    "VoteCommand",
    "parse_command",
    "split_payload",
]
