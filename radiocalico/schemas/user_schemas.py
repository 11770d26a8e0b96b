from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from radiocalico.schemas.base import CamelModel


class UserCreate(CamelModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserLogin(CamelModel):
    # Either the username or the email address
    username: Optional[str] = None
    password: Optional[str] = None


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserProfileOut(UserOut):
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResponse(CamelModel):
    message: str
    user: UserOut
    token: str
