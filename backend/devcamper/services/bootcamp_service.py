"""
DevCamper Backend: Bootcamp Service (Business Logic)
======================================================

What:  Bootcamp CRUD, geocoding, radius search and photo management.
How:   Stateless; every call receives the session handle and the
       collaborators (geocoder, photo storage) it needs.
Who:   Called by routes/bootcamps.py.

Create flow (POST /api/v1/bootcamps):
    ┌───────────┐    ┌──────────────┐    ┌────────────┐    ┌──────────┐
    │ One-per-  │───▶│   Geocode    │───▶│  Slugify   │───▶│  Store   │
    │ publisher │    │  (address)   │    │   (name)   │    │  (DB)    │
    └───────────┘    └──────────────┘    └────────────┘    └──────────┘

Mutations (update, delete, photo upload/delete) always run:
    fetch → NotFound (404) → Authorization Guard (403) → mutate
"""

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models import Bootcamp, DEFAULT_PHOTO, User
from devcamper.resources import BOOTCAMPS, COURSES, REVIEWS
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate
from devcamper.services.authorization import ADMIN_ROLE, ensure_can_modify
from devcamper.services.geo import radius_in_radians
from devcamper.services.geocoder_base import GeocodedLocation, GeocoderService
from devcamper.services.photo_service import PhotoStorage, photo_key, validate_photo
from devcamper.services.store import ResourceStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def slugify(value: str) -> str:
    """"ModernTech Bootcamp!" → "moderntech-bootcamp"."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    return re.sub(r"[-\s_]+", "-", value)


def _apply_location(bootcamp: Bootcamp, location: GeocodedLocation) -> None:
    bootcamp.latitude = location.latitude
    bootcamp.longitude = location.longitude
    bootcamp.formatted_address = location.formatted_address
    bootcamp.street = location.street
    bootcamp.city = location.city
    bootcamp.state = location.state
    bootcamp.zipcode = location.zipcode
    bootcamp.country = location.country


class BootcampService:
    """
    Business logic for bootcamps.

    Error Handling Strategy:
        Missing records → NotFoundError; guard denials → ForbiddenError;
        store failures arrive as DatabaseError/ValidationError from the
        ResourceStore; collaborator failures propagate as GeocoderError,
        CircuitBreakerOpenError or FileStorageError.
    """

    async def _fetch(self, store: ResourceStore, bootcamp_id) -> Bootcamp:
        bootcamp = await store.get(bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def _fetch_for_update(self, store: ResourceStore, caller: User, bootcamp_id) -> Bootcamp:
        bootcamp = await self._fetch(store, bootcamp_id)
        ensure_can_modify(caller.id, caller.role, bootcamp.user_id)
        return bootcamp

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_bootcamp(self, db: AsyncSession, bootcamp_id) -> Record:
        """Single bootcamp with its courses' title and description attached."""
        store = ResourceStore(db, BOOTCAMPS)
        bootcamp = await self._fetch(store, bootcamp_id)
        records = await store.expand([BOOTCAMPS.to_record(bootcamp)], fields=("title", "description"))
        return records[0]

    async def bootcamps_in_radius(
        self,
        db: AsyncSession,
        geocoder: GeocoderService,
        zipcode: str,
        distance: float,
        unit: str = "mi",
    ) -> List[Record]:
        """
        Bootcamps within `distance` (miles or kilometres) of `zipcode`.

        radius (radians) = distance / earth radius (3959 mi, 6371 km)
        """
        try:
            radius = radius_in_radians(distance, unit)
        except KeyError:
            raise ValidationError(message=f"Unknown distance unit '{unit}'", field="unit")

        location = await geocoder.geocode(zipcode)
        bootcamps = await ResourceStore(db, BOOTCAMPS).within_radius(
            location.latitude, location.longitude, radius
        )
        logger.info(
            "Radius search: %d bootcamps within %s %s of %s",
            len(bootcamps), distance, unit, zipcode,
        )
        return bootcamps

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_bootcamp(
        self,
        db: AsyncSession,
        geocoder: GeocoderService,
        caller: User,
        body: BootcampCreate,
    ) -> Record:
        """
        Raises:
            ValidationError: a non-admin caller already owns a bootcamp,
                or the name is taken
            GeocoderError / CircuitBreakerOpenError: address lookup failed
        """
        store = ResourceStore(db, BOOTCAMPS)

        if caller.role != ADMIN_ROLE and await store.find_one({"userId": caller.id}) is not None:
            raise ValidationError(
                message=f"User with the ID of {caller.id} has already published one bootcamp.",
                context={"user_id": str(caller.id)},
            )

        bootcamp = Bootcamp(**body.model_dump(), slug=slugify(body.name), user_id=caller.id)
        _apply_location(bootcamp, await geocoder.geocode(body.address))

        await store.add(bootcamp)
        logger.info("Bootcamp created: %s by user %s", bootcamp.id, caller.id)
        return BOOTCAMPS.to_record(bootcamp)

    async def update_bootcamp(
        self,
        db: AsyncSession,
        geocoder: GeocoderService,
        caller: User,
        bootcamp_id,
        body: BootcampUpdate,
    ) -> Record:
        """Apply the sent fields; a changed address is geocoded again, a new name re-slugged."""
        store = ResourceStore(db, BOOTCAMPS)
        bootcamp = await self._fetch_for_update(store, caller, bootcamp_id)

        changes = body.changes()
        address_changed = "address" in changes and changes["address"] != bootcamp.address
        for name, value in changes.items():
            setattr(bootcamp, name, value)
        if "name" in changes:
            bootcamp.slug = slugify(bootcamp.name)
        if address_changed:
            _apply_location(bootcamp, await geocoder.geocode(bootcamp.address))

        await store.flush()
        logger.info("Bootcamp updated: %s (%s)", bootcamp.id, ", ".join(sorted(changes)) or "no changes")
        return BOOTCAMPS.to_record(bootcamp)

    async def delete_bootcamp(
        self,
        db: AsyncSession,
        photos: PhotoStorage,
        caller: User,
        bootcamp_id,
    ) -> None:
        """Delete the bootcamp with its courses, reviews and uploaded photo."""
        store = ResourceStore(db, BOOTCAMPS)
        bootcamp = await self._fetch_for_update(store, caller, bootcamp_id)

        scope = {"bootcampId": bootcamp.id}
        courses = await ResourceStore(db, COURSES).delete_where(scope)
        reviews = await ResourceStore(db, REVIEWS).delete_where(scope)
        photo = bootcamp.photo
        await store.delete(bootcamp)

        if photo and photo != DEFAULT_PHOTO:
            await photos.delete(photo)

        logger.info(
            "Bootcamp deleted: %s (%d courses, %d reviews)", bootcamp_id, courses, reviews
        )

    async def upload_photo(
        self,
        db: AsyncSession,
        photos: PhotoStorage,
        caller: User,
        bootcamp_id,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Validate and store the photo as photo_<id><ext>; returns the stored name.

        Raises:
            ValidationError: not an image, or larger than settings.max_photo_size
            FileStorageError: the write failed
        """
        store = ResourceStore(db, BOOTCAMPS)
        bootcamp = await self._fetch_for_update(store, caller, bootcamp_id)

        validate_photo(content_type, len(content))
        key = photo_key(bootcamp.id, filename)
        previous = bootcamp.photo

        await photos.store(key, content)
        bootcamp.photo = key
        await store.flush()

        if previous and previous not in (DEFAULT_PHOTO, key):
            await photos.delete(previous)

        logger.info("Photo uploaded for bootcamp %s: %s", bootcamp.id, key)
        return key

    async def delete_photo(
        self,
        db: AsyncSession,
        photos: PhotoStorage,
        caller: User,
        bootcamp_id,
    ) -> None:
        """Remove the uploaded photo and fall back to the default one. No photo → 404."""
        store = ResourceStore(db, BOOTCAMPS)
        bootcamp = await self._fetch_for_update(store, caller, bootcamp_id)

        if not bootcamp.photo or bootcamp.photo == DEFAULT_PHOTO:
            raise NotFoundError(message="No photo found for this bootcamp")

        await photos.delete(bootcamp.photo)
        bootcamp.photo = DEFAULT_PHOTO
        await store.flush()
        logger.info("Photo deleted for bootcamp %s", bootcamp.id)


bootcamp_service = BootcampService()
