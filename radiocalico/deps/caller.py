# radiocalico/deps/caller.py
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Request
from jose import JWTError

from radiocalico.errors import AuthRequiredError
from radiocalico.logger import security_logger
from radiocalico.utils.token_utils import decode_access_token


@dataclass(frozen=True)
class Anonymous:
    """Request carried no usable credentials."""

    @property
    def user_id(self) -> None:
        return None


@dataclass(frozen=True)
class Authenticated:
    user_id: int
    username: Optional[str] = None


CallerContext = Union[Anonymous, Authenticated]

ANONYMOUS = Anonymous()


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def caller_from_token(token: str) -> Authenticated:
    payload = decode_access_token(token)
    return Authenticated(user_id=int(payload["id"]), username=payload.get("sub"))


async def get_caller(request: Request) -> CallerContext:
    """Optional auth: any missing or broken token just means Anonymous."""
    token = _bearer_token(request)
    if not token:
        return ANONYMOUS
    try:
        caller = caller_from_token(token)
    except (JWTError, TypeError, ValueError) as e:
        security_logger.warning("Ignoring invalid token on %s: %s", request.url.path, e)
        return ANONYMOUS
    request.state.user_id = caller.user_id
    return caller


async def require_caller(request: Request) -> Authenticated:
    """Required auth: 401 unless the request carries a valid bearer token."""
    token = _bearer_token(request)
    if not token:
        raise AuthRequiredError("Access token required")
    try:
        caller = caller_from_token(token)
    except (JWTError, TypeError, ValueError) as e:
        security_logger.warning("Rejected token on %s: %s", request.url.path, e)
        raise AuthRequiredError("Invalid or expired token")
    request.state.user_id = caller.user_id
    return caller
