# radiocalico/routes/playlists.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.database import get_async_session
from radiocalico.deps.caller import Authenticated, CallerContext, get_caller, require_caller
from radiocalico.errors import NotFoundError, ValidationError
from radiocalico.logger import api_logger
from radiocalico.models.playlist_model import Playlist, PlaylistSong
from radiocalico.models.song_model import Song
from radiocalico.routes.songs import song_out
from radiocalico.schemas.base import CreatedResponse
from radiocalico.schemas.playlist_schemas import PlaylistCreate, PlaylistOut, PlaylistSongAdd, PlaylistSongOut

router = APIRouter(prefix="/api/playlists", tags=["playlists"])


def playlist_out(playlist: Playlist, caller: CallerContext) -> PlaylistOut:
    out = PlaylistOut.model_validate(playlist)
    out.is_mine = playlist.user_id is not None and playlist.user_id == caller.user_id
    return out


def visible_to(caller: CallerContext):
    """Ownerless playlists are public; owned ones are visible to their owner."""
    if isinstance(caller, Authenticated):
        return or_(Playlist.user_id.is_(None), Playlist.user_id == caller.user_id)
    return Playlist.user_id.is_(None)


@router.get("", response_model=List[PlaylistOut])
async def list_playlists(
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    stmt = select(Playlist).order_by(Playlist.created_at.desc(), Playlist.id.desc())
    if not isinstance(caller, Authenticated):
        stmt = stmt.where(Playlist.user_id.is_(None))
    result = await db.execute(stmt)
    return [playlist_out(p, caller) for p in result.scalars().all()]


@router.get("/my", response_model=List[PlaylistOut])
async def list_my_playlists(
    caller: Authenticated = Depends(require_caller),
    db: AsyncSession = Depends(get_async_session),
):
    result = await db.execute(
        select(Playlist)
        .where(Playlist.user_id == caller.user_id)
        .order_by(Playlist.created_at.desc(), Playlist.id.desc())
    )
    return [playlist_out(p, caller) for p in result.scalars().all()]


@router.post("", response_model=CreatedResponse)
async def create_playlist(
    payload: PlaylistCreate,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    if not (payload.name or "").strip():
        raise ValidationError("Playlist name is required")

    playlist = Playlist(name=payload.name, description=payload.description, user_id=caller.user_id)
    db.add(playlist)
    await db.commit()
    await db.refresh(playlist)

    api_logger.info("Playlist %s created by %s", playlist.id, caller.user_id or "anonymous")
    return CreatedResponse(id=playlist.id, message="Playlist created successfully")


@router.get("/{playlist_id}/songs", response_model=List[PlaylistSongOut])
async def list_playlist_songs(
    playlist_id: int,
    caller: CallerContext = Depends(get_caller),
    db: AsyncSession = Depends(get_async_session),
):
    playlist = (
        await db.execute(select(Playlist).where(Playlist.id == playlist_id, visible_to(caller)))
    ).scalars().first()
    if not playlist:
        raise NotFoundError("Playlist not found")

    rows = await db.execute(
        select(Song, PlaylistSong.position)
        .join(PlaylistSong, PlaylistSong.song_id == Song.id)
        .where(PlaylistSong.playlist_id == playlist_id)
        .order_by(PlaylistSong.position, Song.id)
    )
    return [
        PlaylistSongOut(**song_out(song, caller).model_dump(), position=position)
        for song, position in rows.all()
    ]


@router.post("/{playlist_id}/songs", response_model=List[PlaylistSongOut])
async def add_song_to_playlist(
    playlist_id: int,
    payload: PlaylistSongAdd,
    caller: Authenticated = Depends(require_caller),
    db: AsyncSession = Depends(get_async_session),
):
    # Verify list ownership
    playlist = (
        await db.execute(
            select(Playlist).where(Playlist.id == playlist_id, Playlist.user_id == caller.user_id)
        )
    ).scalars().first()
    if not playlist:
        raise NotFoundError("Playlist not found")

    song = await db.get(Song, payload.song_id)
    if not song:
        raise NotFoundError("Song not found")

    # Idempotent add
    existing = await db.get(PlaylistSong, (playlist_id, payload.song_id))
    if not existing:
        position = payload.position
        if position is None:
            last = (
                await db.execute(
                    select(func.max(PlaylistSong.position)).where(PlaylistSong.playlist_id == playlist_id)
                )
            ).scalar_one()
            position = 0 if last is None else last + 1
        db.add(PlaylistSong(playlist_id=playlist_id, song_id=payload.song_id, position=position))
        await db.commit()

    return await list_playlist_songs(playlist_id, caller=caller, db=db)
