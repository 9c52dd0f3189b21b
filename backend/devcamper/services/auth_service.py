"""
DevCamper Backend: Auth Service
=================================

What:  Caller identity: password hashing, bearer tokens, register/login and
       self-service profile changes.
How:   passlib CryptContext (pbkdf2_sha256) for hashes, PyJWT (HS256 by
       default) for tokens carrying the user id in `sub`.
Who:   Auth routes; `get_current_user` dependency decodes tokens through
       `decode_token`.

Token payload:
    {"sub": "<user uuid>", "exp": <unix time>, "type": "access"}
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.config import settings
from devcamper.exceptions import AuthenticationError, ValidationError
from devcamper.models import User
from devcamper.resources import USERS
from devcamper.schemas.user import (
    LoginRequest,
    RegisterRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.services.store import ResourceStore

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# ══════════════════════════════════════════════════════════════════════════
# Hashing & Tokens
# ══════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> UUID:
    """
    Returns:
        The user id carried by a valid access token.

    Raises:
        AuthenticationError for expired, tampered or malformed tokens.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired", context={"reason": "expired"})
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(context={"reason": type(e).__name__})

    if payload.get("type") != "access":
        raise AuthenticationError(context={"reason": "wrong-token-type"})
    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError(context={"reason": "bad-subject"})


# ══════════════════════════════════════════════════════════════════════════
# Auth Service
# ══════════════════════════════════════════════════════════════════════════

class AuthService:
    """Registration, login and profile updates for the calling user."""

    async def register(self, db: AsyncSession, body: RegisterRequest) -> str:
        """Create a user and return a token for it. Duplicate email → 400."""
        store = ResourceStore(db, USERS)
        if await store.find_one({"email": body.email.lower()}) is not None:
            raise ValidationError(message="Email is already registered", field="email")

        user = User(
            name=body.name,
            email=body.email.lower(),
            role=body.role,
            password_hash=hash_password(body.password),
        )
        await store.add(user)
        logger.info("User registered: %s (role=%s)", user.id, user.role)
        return create_access_token(user.id)

    async def login(self, db: AsyncSession, body: LoginRequest) -> str:
        user = await ResourceStore(db, USERS).find_one({"email": body.email.lower()})
        if user is None or not verify_password(body.password, user.password_hash):
            raise AuthenticationError(message="Invalid credentials")
        logger.info("User logged in: %s", user.id)
        return create_access_token(user.id)

    async def update_details(self, db: AsyncSession, user: User, body: UpdateDetailsRequest) -> User:
        changes = body.changes()
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        for name, value in changes.items():
            setattr(user, name, value)
        await ResourceStore(db, USERS).flush()
        return user

    async def update_password(self, db: AsyncSession, user: User, body: UpdatePasswordRequest) -> str:
        """Change the password and issue a fresh token. Wrong current password → 401."""
        if not verify_password(body.current_password, user.password_hash):
            raise AuthenticationError(message="Password is incorrect")
        user.password_hash = hash_password(body.new_password)
        await ResourceStore(db, USERS).flush()
        logger.info("Password changed for user %s", user.id)
        return create_access_token(user.id)


auth_service = AuthService()
