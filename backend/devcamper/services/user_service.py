"""
DevCamper Backend: User Administration Service
================================================

What:  Admin-only CRUD over users. Listing goes through the advanced
       results pipeline; this service covers single-record operations.
Note:  Records never include the password hash (it is not in the USERS
       allow-list).
"""

import logging
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models import User
from devcamper.resources import USERS
from devcamper.schemas.user import UserCreate, UserUpdate
from devcamper.services.auth_service import hash_password
from devcamper.services.store import ResourceStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class UserService:
    async def _fetch(self, store: ResourceStore, user_id) -> User:
        user = await store.get(user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user

    async def get_user(self, db: AsyncSession, user_id) -> Record:
        return USERS.to_record(await self._fetch(ResourceStore(db, USERS), user_id))

    async def create_user(self, db: AsyncSession, body: UserCreate) -> Record:
        store = ResourceStore(db, USERS)
        email = body.email.lower()
        if await store.find_one({"email": email}) is not None:
            raise ValidationError(message="Email is already registered", field="email")

        user = User(
            name=body.name,
            email=email,
            role=body.role,
            password_hash=hash_password(body.password),
        )
        await store.add(user)
        logger.info("User created by admin: %s (role=%s)", user.id, user.role)
        return USERS.to_record(user)

    async def update_user(self, db: AsyncSession, user_id, body: UserUpdate) -> Record:
        store = ResourceStore(db, USERS)
        user = await self._fetch(store, user_id)

        changes = body.changes()
        if "password" in changes:
            user.password_hash = hash_password(changes.pop("password"))
        if "email" in changes:
            changes["email"] = changes["email"].lower()
        for name, value in changes.items():
            setattr(user, name, value)

        await store.flush()
        return USERS.to_record(user)

    async def delete_user(self, db: AsyncSession, user_id) -> None:
        store = ResourceStore(db, USERS)
        user = await self._fetch(store, user_id)
        await store.delete(user)
        logger.info("User deleted: %s", user_id)


user_service = UserService()
