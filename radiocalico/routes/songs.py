from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.database import get_async_session
from radiocalico.deps.caller import Authenticated, CallerContext, get_caller, require_caller
from radiocalico.errors import ValidationError
from radiocalico.logger import api_logger
from radiocalico.models.song_model import Song
from radiocalico.schemas.base import CreatedResponse
from radiocalico.schemas.song_schemas import SongCreate, SongOut

router = APIRouter(prefix="/api/songs", tags=["songs"])


def song_out(song: Song, caller: CallerContext) -> SongOut:
    out = SongOut.model_validate(song)
    out.is_mine = song.user_id is not None and song.user_id == caller.user_id
    return out


@router.get("", response_model=List[SongOut])
async def list_songs(
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(Song).order_by(Song.created_at.desc(), Song.id.desc())
    # Anonymous callers only see public (ownerless) songs
    if not isinstance(caller, Authenticated):
        stmt = stmt.where(Song.user_id.is_(None))
    result = await db.execute(stmt)
    return [song_out(s, caller) for s in result.scalars().all()]


@router.get("/my", response_model=List[SongOut])
async def list_my_songs(
    caller: Authenticated = Depends(require_caller),
    db: AsyncSession = Depends(get_async_session),
):
    result = await db.execute(
        select(Song)
        .where(Song.user_id == caller.user_id)
        .order_by(Song.created_at.desc(), Song.id.desc())
    )
    return [song_out(s, caller) for s in result.scalars().all()]


@router.post("", response_model=CreatedResponse)
async def create_song(
    payload: SongCreate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    if not (payload.title or "").strip() or not (payload.artist or "").strip():
        raise ValidationError("Title and artist are required")

    song = Song(
        title=payload.title,
        artist=payload.artist,
        album=payload.album,
        duration=payload.duration,
        file_path=payload.file_path,
        user_id=caller.user_id,
    )
    db.add(song)
    await db.commit()
    await db.refresh(song)

    api_logger.info("Song %s added by %s", song.id, caller.user_id or "anonymous")
    return CreatedResponse(id=song.id, message="Song added successfully")
