from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from radiocalico import config
from radiocalico.models.user_model import User


def _get_secret_key() -> str:
    secret = config.SECRET_KEY
    if not secret:
        # Fail fast with a clear message instead of a generic 500
        raise RuntimeError("SECRET_KEY is not configured in the backend environment")
    if len(secret) < 32:
        raise RuntimeError("SECRET_KEY is too short; use at least 32 characters")
    return secret


def create_access_token(user: User) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "id": user.id,         # what the caller dependencies read
        "sub": user.username,  # helpful for auditing/logs
        "exp": expire,
    }
    return jwt.encode(to_encode, _get_secret_key(), algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the token claims; raises JWTError for bad, expired or incomplete tokens."""
    payload = jwt.decode(token, _get_secret_key(), algorithms=[config.ALGORITHM])
    if payload.get("id") is None:
        raise JWTError("Token has no user id")
    return payload
