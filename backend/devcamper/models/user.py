"""
DevCamper Backend: User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table.
Who:   Auth service (register/login), user administration, and every
       owned record (bootcamps, courses, reviews reference users.id).

Roles:
    user       Can write reviews
    publisher  Can publish a bootcamp and its courses
    admin      Bypasses ownership checks; never self-assignable at registration
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base

ROLES = ("user", "publisher", "admin")


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Unique: login looks users up by email
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        server_default=text("'user'"),
    )

    # passlib hash string; never serialized by any schema
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
