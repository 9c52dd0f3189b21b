"""
DevCamper Backend: User and Auth Schemas
==========================================

What:  Bodies for registration, login, profile changes and user administration.

Role rules:
    - RegisterRequest accepts "user" or "publisher" only
    - Admin-managed bodies (UserCreate / UserUpdate) may assign any role
"""

from typing import Literal, Optional

from pydantic import Field

from devcamper.schemas.bootcamp import EMAIL_PATTERN
from devcamper.schemas.common import CamelModel, PartialUpdate

PublicRole = Literal["user", "publisher"]
Role = Literal["user", "publisher", "admin"]


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    role: PublicRole = "user"


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UpdateDetailsRequest(PartialUpdate):
    REQUIRED_ON_RECORD = ("name", "email")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=128)
    role: Role = "user"


class UserUpdate(PartialUpdate):
    REQUIRED_ON_RECORD = ("name", "email", "role", "password")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    role: Optional[Role] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
