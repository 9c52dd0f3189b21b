"""
DevCamper Backend: Course Service
===================================

What:  Course CRUD plus the bootcamp's derived `average_cost`.
How:   After every create/update/delete the owning bootcamp's average cost
       is recomputed: mean tuition rounded up to the nearest 10, or null
       once the bootcamp has no courses left.
Who:   Called by routes/courses.py.

Adding a course requires the caller to own the bootcamp (or be an admin);
updates and deletes check ownership of the course itself.
"""

import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import NotFoundError
from devcamper.models import Course, User
from devcamper.resources import BOOTCAMPS, COURSES
from devcamper.schemas.course import CourseCreate, CourseUpdate
from devcamper.services.authorization import ensure_can_modify
from devcamper.services.store import ResourceStore

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def round_up_to_ten(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return float(math.ceil(value / 10) * 10)


class CourseService:
    async def refresh_average_cost(self, db: AsyncSession, bootcamp_id) -> Optional[float]:
        """Recompute and store the bootcamp's average cost; returns the new value."""
        bootcamp = await ResourceStore(db, BOOTCAMPS).get(bootcamp_id)
        if bootcamp is None:
            return None
        average = await ResourceStore(db, COURSES).average("tuition", {"bootcampId": bootcamp_id})
        bootcamp.average_cost = round_up_to_ten(average)
        await ResourceStore(db, BOOTCAMPS).flush()
        logger.debug("Bootcamp %s average_cost=%s", bootcamp_id, bootcamp.average_cost)
        return bootcamp.average_cost

    async def _fetch(self, store: ResourceStore, course_id) -> Course:
        course = await store.get(course_id)
        if course is None:
            raise NotFoundError(resource="Course", resource_id=str(course_id))
        return course

    async def get_course(self, db: AsyncSession, course_id) -> Record:
        """Single course with its bootcamp's name and description attached."""
        store = ResourceStore(db, COURSES)
        course = await self._fetch(store, course_id)
        records = await store.expand([COURSES.to_record(course)])
        return records[0]

    async def add_course(
        self,
        db: AsyncSession,
        caller: User,
        bootcamp_id,
        body: CourseCreate,
    ) -> Record:
        bootcamp = await ResourceStore(db, BOOTCAMPS).get(bootcamp_id)
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        ensure_can_modify(caller.id, caller.role, bootcamp.user_id)

        course = Course(**body.model_dump(), bootcamp_id=bootcamp.id, user_id=caller.id)
        await ResourceStore(db, COURSES).add(course)
        await self.refresh_average_cost(db, bootcamp.id)

        logger.info("Course %s added to bootcamp %s", course.id, bootcamp.id)
        return COURSES.to_record(course)

    async def update_course(
        self,
        db: AsyncSession,
        caller: User,
        course_id,
        body: CourseUpdate,
    ) -> Record:
        store = ResourceStore(db, COURSES)
        course = await self._fetch(store, course_id)
        ensure_can_modify(caller.id, caller.role, course.user_id)

        changes = body.changes()
        for name, value in changes.items():
            setattr(course, name, value)
        await store.flush()
        if "tuition" in changes:
            await self.refresh_average_cost(db, course.bootcamp_id)

        return COURSES.to_record(course)

    async def delete_course(self, db: AsyncSession, caller: User, course_id) -> None:
        store = ResourceStore(db, COURSES)
        course = await self._fetch(store, course_id)
        ensure_can_modify(caller.id, caller.role, course.user_id)

        bootcamp_id = course.bootcamp_id
        await store.delete(course)
        await self.refresh_average_cost(db, bootcamp_id)
        logger.info("Course deleted: %s", course_id)


course_service = CourseService()
