from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from passlib.hash import bcrypt
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from radiocalico.config import AUTH_RATE_LIMIT, MIN_PASSWORD_LENGTH
from radiocalico.database import get_async_session
from radiocalico.deps.caller import Authenticated, require_caller
from radiocalico.errors import AuthRequiredError, ConflictError, NotFoundError, ValidationError
from radiocalico.limiter import limiter
from radiocalico.logger import auth_logger, security_logger
from radiocalico.models.user_model import User
from radiocalico.schemas.user_schemas import AuthResponse, UserCreate, UserLogin, UserOut, UserProfileOut
from radiocalico.utils.token_utils import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(request: Request, user: UserCreate, db: AsyncSession = Depends(get_async_session)):
    username_norm = (user.username or "").strip()
    email_norm = str(user.email or "").strip().lower()

    if not username_norm or not email_norm or not user.password:
        raise ValidationError("Username, email, and password are required")

    if len(user.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    # Check username OR email conflict in a single round-trip
    result = await db.execute(
        select(User.id).where(
            (User.username == username_norm) | (func.lower(User.email) == email_norm)
        )
    )
    if result.first() is not None:
        raise ConflictError("Username or email already exists")

    new_user = User(
        username=username_norm,
        email=email_norm,
        password_hash=bcrypt.hash(user.password),
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=datetime.now(timezone.utc),
    )

    try:
        db.add(new_user)
        await db.commit()
    except IntegrityError:
        # Someone registered the same name between the check and the insert
        await db.rollback()
        raise ConflictError("Username or email already exists")
    await db.refresh(new_user)

    auth_logger.info("Registered user %s (id=%s)", new_user.username, new_user.id)

    return AuthResponse(
        message="User registered successfully",
        user=UserOut.model_validate(new_user),
        token=create_access_token(new_user),
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(request: Request, user: UserLogin, db: AsyncSession = Depends(get_async_session)):
    if not (user.username or "").strip() or not user.password:
        raise ValidationError("Username and password are required")

    login_name = user.username.strip()
    result = await db.execute(
        select(User).where(or_(User.username == login_name, func.lower(User.email) == login_name.lower()))
    )
    db_user = result.scalars().first()

    if not db_user or not bcrypt.verify(user.password, db_user.password_hash):
        security_logger.warning("Failed login for %r", login_name)
        raise AuthRequiredError("Invalid username or password")

    db_user.last_login = datetime.now(timezone.utc)
    await db.commit()

    auth_logger.info("User %s logged in", db_user.username)

    return AuthResponse(
        message="Login successful",
        user=UserOut.model_validate(db_user),
        token=create_access_token(db_user),
    )


@router.get("/profile", response_model=UserProfileOut)
async def profile(
    caller: Authenticated = Depends(require_caller),
    db: AsyncSession = Depends(get_async_session),
):
    user = await db.get(User, caller.user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
