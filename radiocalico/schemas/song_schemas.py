from datetime import datetime
from typing import Optional

from pydantic import Field

from radiocalico.schemas.base import CamelModel


class SongCreate(CamelModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    file_path: Optional[str] = None


class SongOut(CamelModel):
    id: int
    title: str
    artist: str
    album: Optional[str] = None
    duration: Optional[int] = None
    file_path: Optional[str] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    is_mine: bool = False
