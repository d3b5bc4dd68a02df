"""Competition lifecycle operations.

Every public coroutine runs as one transaction on the given session: it
either commits all of its writes or rolls back and raises. Invariants that
span rows are left to the database (the partial unique index on
``competitions.is_active``, the unique ``(competition_id, user_id)`` pair on
``songs`` and row locks), so they hold across every running instance.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import (
    ActiveCompetitionExists,
    NoActiveCompetition,
    SotwError,
    StoreError,
    UserDoesNotOwnEntity,
)
from app.models.competition import Competition, utcnow
from app.models.song import Song
from app.models.vote import Vote

_LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def _transaction(db: AsyncSession, action: str) -> AsyncIterator[None]:
    """Commit on success; roll back and surface store failures as ``StoreError``."""

    try:
        yield
        await db.commit()
    except SotwError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        _LOGGER.exception("Store failure while trying to %s", action)
        raise StoreError(f"Unable to {action}") from exc


async def _active_competition(db: AsyncSession, *, for_update: bool = False) -> Optional[Competition]:
    stmt = (
        select(Competition)
        .where(Competition.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    return (await db.execute(stmt)).scalar_one_or_none()


def _detach(db: AsyncSession, *rows) -> None:
    """Hand rows to the caller outside the session so a later rollback cannot expire them."""

    for row in rows:
        if row is not None and row in db:
            db.expunge(row)


async def find_active_competition(db: AsyncSession) -> Optional[Competition]:
    """Return the active competition, or ``None`` when every round is closed."""

    async with _transaction(db, "find active competition"):
        competition = await _active_competition(db)
    _detach(db, competition)
    return competition


async def start_competition(
    db: AsyncSession, description: str, user_id: str, user_name: str = ""
) -> Competition:
    """Open a new competition owned by ``user_id``.

    The lookup only produces a friendly error; the partial unique index is
    what keeps two concurrent starts from both succeeding. The loser's insert
    fails with ``IntegrityError`` and is reported as ``ActiveCompetitionExists``
    carrying the winner's id.
    """

    try:
        existing = await _active_competition(db)
        if existing is not None:
            _LOGGER.warning("Found active competition id=%s. Will not continue.", existing.id)
            raise ActiveCompetitionExists(existing.id)

        competition = Competition(
            description=description,
            user_id=user_id,
            user_name=user_name,
            started=utcnow(),
            ended=None,
            is_active=True,
        )
        db.add(competition)
        await db.commit()
    except ActiveCompetitionExists:
        await db.rollback()
        raise
    except IntegrityError:
        await db.rollback()
        winner = await find_active_competition(db)
        if winner is None:
            # The competing round was opened and closed before we could look.
            raise StoreError("Competition changed concurrently, try again") from None
        _LOGGER.warning("Lost race to start a competition against id=%s", winner.id)
        raise ActiveCompetitionExists(winner.id) from None
    except SQLAlchemyError as exc:
        await db.rollback()
        _LOGGER.exception("Store failure while trying to start competition")
        raise StoreError("Unable to start competition") from exc

    _LOGGER.info("Created new competition id=%s owner=%s", competition.id, user_id)
    _detach(db, competition)
    return competition


async def stop_competition(db: AsyncSession, user_id: str) -> Competition:
    """Close the active competition if ``user_id`` owns it."""

    async with _transaction(db, "stop competition"):
        competition = await _active_competition(db, for_update=True)
        if competition is None:
            raise NoActiveCompetition("Unable to find an existing active competition")
        if competition.user_id != user_id:
            _LOGGER.warning(
                "User %s tried to close competition id=%s owned by %s",
                user_id,
                competition.id,
                competition.user_id,
            )
            raise UserDoesNotOwnEntity(competition.id)

        result = await db.execute(
            update(Competition)
            .where(Competition.id == competition.id, Competition.is_active.is_(True))
            .values(is_active=False, ended=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NoActiveCompetition("The competition was closed by another request")
        await db.refresh(competition)

    _LOGGER.info("Closed competition id=%s", competition.id)
    _detach(db, competition)
    return competition


async def submit_song(db: AsyncSession, uri: str, user_id: str, user_name: str = "") -> Song:
    """Record ``uri`` as the user's song in the active competition.

    A previous submission by the same user in the same competition is
    deleted first, in the same transaction.
    """

    async with _transaction(db, "submit song"):
        # Locking the competition row serializes submissions against each other and against a close.
        competition = await _active_competition(db, for_update=True)
        if competition is None:
            raise NoActiveCompetition("Unable to find active competition when trying to add a song")

        await db.execute(
            delete(Song)
            .where(Song.competition_id == competition.id, Song.user_id == user_id)
            .execution_options(synchronize_session="fetch")
        )
        song = Song(
            user_id=user_id,
            user_name=user_name,
            song_uri=uri,
            competition_id=competition.id,
            submitted_at=utcnow(),
        )
        db.add(song)

    _detach(db, song)
    return song


async def cast_vote(db: AsyncSession, song_id: UUID, user_id: str, user_name: str = "") -> Vote:
    """Append a vote for ``song_id``.

    The song is not looked up: unknown ids and songs from closed rounds are
    accepted as long as the store itself does not refuse the row.
    """

    async with _transaction(db, "cast vote"):
        vote = Vote(user_id=user_id, user_name=user_name, song_id=song_id, cast_at=utcnow())
        db.add(vote)

    _detach(db, vote)
    return vote


async def list_active_songs(db: AsyncSession) -> Sequence[Song]:
    """Songs of the active competition, oldest submission first."""

    async with _transaction(db, "list songs"):
        competition = await _active_competition(db)
        if competition is None:
            raise NoActiveCompetition("Unable to find active competition when trying to list songs")
        songs = (
            await db.execute(
                select(Song)
                .where(Song.competition_id == competition.id)
                .order_by(Song.submitted_at, Song.id)
            )
        ).scalars().all()

    _detach(db, *songs)
    return songs


__all__ = [
    "cast_vote",
    "find_active_competition",
    "list_active_songs",
    "start_competition",
    "stop_competition",
    "submit_song",
]
