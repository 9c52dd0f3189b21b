"""
DevCamper Backend: Review Service
===================================

What:  Review CRUD plus the bootcamp's derived `average_rating`.
Rules:
    - one review per user per bootcamp (400 on a second one)
    - updates/deletes only by the review's author or an admin
    - average rating recomputed after every change (null with no reviews)
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models import Review, User
from devcamper.resources import BOOTCAMPS, REVIEWS
from devcamper.schemas.review import ReviewCreate, ReviewUpdate
from devcamper.services.authorization import ensure_can_modify
from devcamper.services.store import ResourceStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ReviewService:
    async def refresh_average_rating(self, db: AsyncSession, bootcamp_id) -> Optional[float]:
        bootcamp = await ResourceStore(db, BOOTCAMPS).get(bootcamp_id)
        if bootcamp is None:
            return None
        average = await ResourceStore(db, REVIEWS).average("rating", {"bootcampId": bootcamp_id})
        bootcamp.average_rating = round(average, 1) if average is not None else None
        await ResourceStore(db, BOOTCAMPS).flush()
        return bootcamp.average_rating

    async def _fetch(self, store: ResourceStore, review_id) -> Review:
        review = await store.get(review_id)
        if review is None:
            raise NotFoundError(resource="Review", resource_id=str(review_id))
        return review

    async def get_review(self, db: AsyncSession, review_id) -> Record:
        store = ResourceStore(db, REVIEWS)
        review = await self._fetch(store, review_id)
        records = await store.expand([REVIEWS.to_record(review)])
        return records[0]

    async def add_review(
        self,
        db: AsyncSession,
        caller: User,
        bootcamp_id,
        body: ReviewCreate,
    ) -> Record:
        bootcamp = await ResourceStore(db, BOOTCAMPS).get(bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))

        store = ResourceStore(db, REVIEWS)
        existing = await store.find_one({"bootcampId": bootcamp.id, "userId": caller.id})
        if existing is not None:
            raise ValidationError(
                message="You have already reviewed this bootcamp",
                context={"bootcamp_id": str(bootcamp.id), "user_id": str(caller.id)},
            )

        review = Review(**body.model_dump(), bootcamp_id=bootcamp.id, user_id=caller.id)
        await store.add(review)
        await self.refresh_average_rating(db, bootcamp.id)

        logger.info("Review %s added to bootcamp %s", review.id, bootcamp.id)
        return REVIEWS.to_record(review)

    async def update_review(
        self,
        db: AsyncSession,
        caller: User,
        review_id,
        body: ReviewUpdate,
    ) -> Record:
        store = ResourceStore(db, REVIEWS)
        review = await self._fetch(store, review_id)
        ensure_can_modify(caller.id, caller.role, review.user_id)

        changes = body.changes()
        for name, value in changes.items():
            setattr(review, name, value)
        await store.flush()
        if "rating" in changes:
            await self.refresh_average_rating(db, review.bootcamp_id)

        return REVIEWS.to_record(review)

    async def delete_review(self, db: AsyncSession, caller: User, review_id) -> None:
        store = ResourceStore(db, REVIEWS)
        review = await self._fetch(store, review_id)
        ensure_can_modify(caller.id, caller.role, review.user_id)

        bootcamp_id = review.bootcamp_id
        await store.delete(review)
        await self.refresh_average_rating(db, bootcamp_id)
        logger.info("Review deleted: %s", review_id)


review_service = ReviewService()
