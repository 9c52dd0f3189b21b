"""
DevCamper Backend: Route Dependencies
=======================================

What:  FastAPI dependencies shared by the route modules: the calling user,
       role gates, and the collaborators kept on app.state.
How:   The bearer token is read from the Authorization header, or from the
       `token` cookie set at login. The user is loaded on every request so
       role changes and deletions take effect immediately.
"""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.exceptions import AuthenticationError
from devcamper.models import User
from devcamper.resources import USERS
from devcamper.services.auth_service import decode_token
from devcamper.services.authorization import ensure_role
from devcamper.services.geocoder_base import GeocoderService
from devcamper.services.photo_service import PhotoStorage
from devcamper.services.store import ResourceStore

TOKEN_COOKIE = "token"

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Raises:
        AuthenticationError (401) when no valid token is presented or its user is gone.
    """
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise AuthenticationError()

    user = await ResourceStore(db, USERS).get(decode_token(token))
    if user is None:
        raise AuthenticationError(context={"reason": "unknown-user"})
    return user


def require_roles(*roles: str) -> Callable:
    """
    Role gate dependency.

    Usage:
        caller: User = Depends(require_roles("publisher", "admin"))
    """

    async def role_checker(user: User = Depends(get_current_user)) -> User:
        ensure_role(user.role, *roles)
        return user

    return role_checker


def get_geocoder(request: Request) -> GeocoderService:
    return request.app.state.geocoder


def get_photo_storage(request: Request) -> PhotoStorage:
    return request.app.state.photo_storage
