"""
Rating ledger: one thumbs-up/down per (user, song title, song artist).

Songs are identified by their literal title/artist strings, so a rating does
not need a row in ``songs``. Strings are compared exactly; "Ode" and "ode"
are different songs.

Writes go through a single upsert so that concurrent submissions for the same
key can never leave two rows behind: the last writer's value and timestamp
win. PostgreSQL and SQLite use ``INSERT ... ON CONFLICT DO UPDATE``; any other
dialect falls back to a savepoint insert followed by an update when the
unique constraint fires.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.errors import NotFoundError, StoreError, ValidationError
from radiocalico.logger import database_logger
from radiocalico.models.rating_model import THUMBS_DOWN, THUMBS_UP, Rating

VALID_RATINGS = (THUMBS_UP, THUMBS_DOWN)

_CONFLICT_COLUMNS = ["user_id", "song_title", "song_artist"]


@dataclass
class RatingAggregate:
    thumbs_up: int = 0
    thumbs_down: int = 0
    total_ratings: int = 0
    user_rating: Optional[int] = None


def rating_label(value: int) -> str:
    return "thumbs_up" if value == THUMBS_UP else "thumbs_down"


def _require_text(value, field: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{field} must be a non-empty string")
    if "\x00" in value:
        raise ValidationError(f"{field} must not contain NUL characters")
    return value


def validate_song_key(title, artist) -> None:
    if title is None or artist is None:
        raise ValidationError("song_title and song_artist are required")
    _require_text(title, "song_title")
    _require_text(artist, "song_artist")


def validate_rating(value) -> int:
    if value is None:
        raise ValidationError("song_title, song_artist, and rating are required")
    # bool is an int subclass; True must not sneak in as a thumbs up
    if isinstance(value, bool) or not isinstance(value, int) or value not in VALID_RATINGS:
        raise ValidationError("rating must be 1 (thumbs up) or -1 (thumbs down)")
    return value


def _upsert_statement(dialect_name: str, values: dict):
    if dialect_name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect_name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None

    stmt = insert(Rating).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=_CONFLICT_COLUMNS,
        set_={
            "rating": stmt.excluded.rating,
            "submitted_at": stmt.excluded.submitted_at,
        },
    )


class RatingLedger:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def submit(self, user_id: int, title, artist, value) -> Rating:
        """
        Insert or overwrite ``user_id``'s rating for (title, artist).

        Input is validated before anything touches the store. The previous
        value, if any, is not kept.
        """
        if title is None or artist is None or value is None:
            raise ValidationError("song_title, song_artist, and rating are required")
        validate_song_key(title, artist)
        validate_rating(value)

        values = {
            "user_id": user_id,
            "song_title": title,
            "song_artist": artist,
            "rating": value,
            "submitted_at": datetime.now(timezone.utc),
        }

        try:
            stmt = _upsert_statement(self.session.get_bind().dialect.name, values)
            if stmt is not None:
                await self.session.execute(stmt)
            else:
                await self._insert_or_update(values)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            database_logger.error("Rating upsert failed for user %s: %r", user_id, e)
            raise StoreError("Database error while saving rating")

        database_logger.info(
            "User %s rated %r by %r as %s", user_id, title, artist, rating_label(value)
        )
        return await self._get(user_id, title, artist)

    async def _insert_or_update(self, values: dict) -> None:
        try:
            async with self.session.begin_nested():
                self.session.add(Rating(**values))
        except IntegrityError:
            # Lost the race or already rated: overwrite inside the same transaction
            await self.session.execute(
                update(Rating)
                .where(
                    Rating.user_id == values["user_id"],
                    Rating.song_title == values["song_title"],
                    Rating.song_artist == values["song_artist"],
                )
                .values(rating=values["rating"], submitted_at=values["submitted_at"])
            )

    async def _get(self, user_id: int, title: str, artist: str) -> Optional[Rating]:
        stmt = (
            select(Rating)
            .where(
                Rating.user_id == user_id,
                Rating.song_title == title,
                Rating.song_artist == artist,
            )
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_aggregate(self, title, artist, user_id: Optional[int] = None) -> RatingAggregate:
        """Counts for a song; a song nobody rated yields zeros, not an error."""
        validate_song_key(title, artist)

        counts_stmt = select(
            func.coalesce(func.sum(case((Rating.rating == THUMBS_UP, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Rating.rating == THUMBS_DOWN, 1), else_=0)), 0),
            func.count(Rating.id),
        ).where(Rating.song_title == title, Rating.song_artist == artist)

        try:
            thumbs_up, thumbs_down, total = (await self.session.execute(counts_stmt)).one()
            aggregate = RatingAggregate(
                thumbs_up=int(thumbs_up),
                thumbs_down=int(thumbs_down),
                total_ratings=int(total),
            )
            if user_id is not None:
                own = await self.session.execute(
                    select(Rating.rating).where(
                        Rating.user_id == user_id,
                        Rating.song_title == title,
                        Rating.song_artist == artist,
                    )
                )
                aggregate.user_rating = own.scalar_one_or_none()
        except SQLAlchemyError as e:
            database_logger.error("Rating aggregate failed for %r by %r: %r", title, artist, e)
            raise StoreError("Database error while reading ratings")

        return aggregate

    async def remove(self, user_id: int, title, artist) -> None:
        """Delete the caller's rating; a second delete of the same key is a NotFoundError."""
        validate_song_key(title, artist)

        stmt = delete(Rating).where(
            Rating.user_id == user_id,
            Rating.song_title == title,
            Rating.song_artist == artist,
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                await self.session.rollback()
                raise NotFoundError("Rating not found")
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            database_logger.error("Rating delete failed for user %s: %r", user_id, e)
            raise StoreError("Database error while deleting rating")

        database_logger.info("User %s removed rating for %r by %r", user_id, title, artist)

    async def list_for_user(self, user_id: int) -> List[Rating]:
        stmt = (
            select(Rating)
            .where(Rating.user_id == user_id)
            .order_by(Rating.submitted_at.desc(), Rating.id.desc())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            database_logger.error("Listing ratings failed for user %s: %r", user_id, e)
            raise StoreError("Database error while reading ratings")
        return list(result.scalars().all())
