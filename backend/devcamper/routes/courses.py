"""
DevCamper Backend: Course Route Handlers
==========================================

Routes:
    GET    /courses                          public, advanced results (+ bootcamp name/description)
    GET    /bootcamps/{bootcamp_id}/courses  public, advanced results pinned to one bootcamp
    GET    /courses/{id}                     public
    POST   /bootcamps/{bootcamp_id}/courses  publisher, admin (bootcamp owner)
    PUT    /courses/{id}                     publisher, admin (course owner)
    DELETE /courses/{id}                     publisher, admin (course owner)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.models import User
from devcamper.query.results import ResultEnvelope, advanced_results
from devcamper.resources import COURSES
from devcamper.routes.deps import require_roles
from devcamper.schemas.common import DataResponse, ErrorResponse
from devcamper.schemas.course import CourseCreate, CourseUpdate
from devcamper.services.course_service import course_service

router = APIRouter(tags=["Courses"])

publisher = require_roles("publisher", "admin")

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner or wrong role", "model": ErrorResponse},
    404: {"description": "Course or bootcamp not found", "model": ErrorResponse},
}


@router.get("/courses", response_model=ResultEnvelope, summary="List courses")
async def list_courses(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(COURSES)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=ResultEnvelope,
    summary="List the courses of one bootcamp",
)
async def list_bootcamp_courses(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(COURSES, scoped=True)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get(
    "/courses/{course_id}",
    response_model=DataResponse,
    responses={404: ERRORS[404]},
    summary="Get a course",
)
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await course_service.get_course(db, course_id))


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Add a course to a bootcamp",
)
async def add_course(
    bootcamp_id: UUID,
    body: CourseCreate,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(publisher),
) -> DataResponse:
    return DataResponse(data=await course_service.add_course(db, caller, bootcamp_id, body))


@router.put(
    "/courses/{course_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Update a course",
)
async def update_course(
    course_id: UUID,
    body: CourseUpdate,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(publisher),
) -> DataResponse:
    return DataResponse(data=await course_service.update_course(db, caller, course_id, body))


@router.delete(
    "/courses/{course_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Delete a course",
)
async def delete_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(publisher),
) -> DataResponse:
    await course_service.delete_course(db, caller, course_id)
    return DataResponse(data={})
