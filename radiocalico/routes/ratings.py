# radiocalico/routes/ratings.py
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.database import get_async_session
from radiocalico.deps.caller import Authenticated, CallerContext, get_caller, require_caller
from radiocalico.schemas.base import MessageResponse
from radiocalico.schemas.rating_schemas import (
    RatingAggregateOut,
    RatingDelete,
    RatingOut,
    RatingSubmit,
    RatingSubmitResponse,
)
from radiocalico.services.rating_ledger import RatingLedger, rating_label

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


def get_ledger(session: AsyncSession = Depends(get_async_session)) -> RatingLedger:
    return RatingLedger(session)


@router.post("", response_model=RatingSubmitResponse)
async def submit_rating(
    payload: RatingSubmit,
    caller: Authenticated = Depends(require_caller),
    ledger: RatingLedger = Depends(get_ledger),
):
    stored = await ledger.submit(caller.user_id, payload.song_title, payload.song_artist, payload.rating)
    return RatingSubmitResponse(
        message="Rating submitted successfully",
        rating=rating_label(stored.rating),
    )


# Both spellings are in use by clients
@router.get("/mine", response_model=List[RatingOut])
@router.get("/my", response_model=List[RatingOut], include_in_schema=False)
async def get_my_ratings(
    caller: Authenticated = Depends(require_caller),
    ledger: RatingLedger = Depends(get_ledger),
):
    return await ledger.list_for_user(caller.user_id)


@router.get("/{title}/{artist}", response_model=RatingAggregateOut)
async def get_song_ratings(
    title: str,
    artist: str,
    caller: CallerContext = Depends(get_caller),
    ledger: RatingLedger = Depends(get_ledger),
):
    # Path segments arrive already percent-decoded
    aggregate = await ledger.get_aggregate(title, artist, caller.user_id)
    body = RatingAggregateOut.model_validate(aggregate).model_dump(by_alias=True)
    if not isinstance(caller, Authenticated):
        body.pop("userRating")
    return JSONResponse(content=body)


@router.delete("", response_model=MessageResponse)
async def delete_rating(
    payload: RatingDelete,
    caller: Authenticated = Depends(require_caller),
    ledger: RatingLedger = Depends(get_ledger),
):
    await ledger.remove(caller.user_id, payload.song_title, payload.song_artist)
    return MessageResponse(message="Rating deleted successfully")
