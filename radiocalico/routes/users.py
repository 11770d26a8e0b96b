from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.database import get_async_session
from radiocalico.models.user_model import User
from radiocalico.schemas.user_schemas import UserProfileOut

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserProfileOut])
async def list_users(db: AsyncSession = Depends(get_async_session)):
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return result.scalars().all()
