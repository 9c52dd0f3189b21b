"""
DevCamper Backend: Bootcamp SQLAlchemy Model
==============================================

What:  ORM model representing the `bootcamps` table.
Who:   BootcampService (CRUD, photo, radius search), the Resource Store
       (advanced results), Alembic (schema management).

Table Design:
    - slug: derived from name on create/rename (URL-friendly identifier)
    - location columns: filled by the geocoder from `address`; radius search
      reads latitude/longitude
    - careers: JSON list drawn from CAREERS; selectable but not filterable
    - average_cost / average_rating: derived aggregates, recomputed by the
      course and review services after every write
    - photo: stored filename, DEFAULT_PHOTO when none was uploaded
    - user_id: the Owner used by the Authorization Guard

    Index on (latitude, longitude): the radius search pre-filters with a
    bounding box before computing great-circle distances.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base

CAREERS = (
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
)

DEFAULT_PHOTO = "no-photo.jpg"


class Bootcamp(Base):
    """
    A published bootcamp.

    Lifecycle:
        1. Created by a publisher/admin (address geocoded into location)
        2. Updated by its owner or an admin (address change re-geocodes)
        3. Photo replaced/removed by its owner or an admin
        4. Deleted together with its courses and reviews
    """

    __tablename__ = "bootcamps"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Geocoded Location ─────────────────────────────────────────────────
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    formatted_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    careers: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    average_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    average_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    photo: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default=DEFAULT_PHOTO,
        server_default=text(f"'{DEFAULT_PHOTO}'"),
    )

    housing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_assistance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    job_guarantee: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accept_gi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("idx_bootcamps_location", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return f"<Bootcamp(id={self.id}, name='{self.name}')>"
