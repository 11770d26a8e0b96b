from datetime import datetime
from typing import Optional

from pydantic import Field

from radiocalico.schemas.base import CamelModel
from radiocalico.schemas.song_schemas import SongOut


class PlaylistCreate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None


class PlaylistOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    is_mine: bool = False


class PlaylistSongAdd(CamelModel):
    song_id: int
    position: Optional[int] = Field(default=None, ge=0)


class PlaylistSongOut(SongOut):
    position: int
