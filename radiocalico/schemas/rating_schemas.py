from datetime import datetime
from typing import Literal, Optional

from pydantic import StrictInt

from radiocalico.schemas.base import CamelModel


class RatingSubmit(CamelModel):
    song_title: Optional[str] = None
    song_artist: Optional[str] = None
    rating: Optional[StrictInt] = None  # 1 = thumbs up, -1 = thumbs down


class RatingDelete(CamelModel):
    song_title: Optional[str] = None
    song_artist: Optional[str] = None


class RatingSubmitResponse(CamelModel):
    message: str
    rating: Literal["thumbs_up", "thumbs_down"]


class RatingAggregateOut(CamelModel):
    thumbs_up: int
    thumbs_down: int
    total_ratings: int
    user_rating: Optional[int] = None


class RatingOut(CamelModel):
    song_title: str
    song_artist: str
    rating: int
    submitted_at: datetime
    created_at: Optional[datetime] = None
