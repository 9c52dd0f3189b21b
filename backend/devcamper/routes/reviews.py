"""
DevCamper Backend: Review Route Handlers
==========================================

Routes:
    GET    /reviews                          public, advanced results
    GET    /bootcamps/{bootcamp_id}/reviews  public, advanced results pinned to one bootcamp
    GET    /reviews/{id}                     public
    POST   /bootcamps/{bootcamp_id}/reviews  user, admin
    PUT    /reviews/{id}                     user, admin (author)
    DELETE /reviews/{id}                     user, admin (author)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.models import User
from devcamper.query.results import ResultEnvelope, advanced_results
from devcamper.resources import REVIEWS
from devcamper.routes.deps import require_roles
from devcamper.schemas.common import DataResponse, ErrorResponse
from devcamper.schemas.review import ReviewCreate, ReviewUpdate
from devcamper.services.review_service import review_service

router = APIRouter(tags=["Reviews"])

reviewer = require_roles("user", "admin")

ERRORS = {
    400: {"description": "Invalid input or already reviewed", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the author or wrong role", "model": ErrorResponse},
    404: {"description": "Review or bootcamp not found", "model": ErrorResponse},
}


@router.get("/reviews", response_model=ResultEnvelope, summary="List reviews")
async def list_reviews(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(REVIEWS)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get(
    "/bootcamps/{bootcamp_id}/reviews",
    response_model=ResultEnvelope,
    summary="List the reviews of one bootcamp",
)
async def list_bootcamp_reviews(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(REVIEWS, scoped=True)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get(
    "/reviews/{review_id}",
    response_model=DataResponse,
    responses={404: ERRORS[404]},
    summary="Get a review",
)
async def get_review(
    review_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await review_service.get_review(db, review_id))


@router.post(
    "/bootcamps/{bootcamp_id}/reviews",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Review a bootcamp",
)
async def add_review(
    bootcamp_id: UUID,
    body: ReviewCreate,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(reviewer),
) -> DataResponse:
    return DataResponse(data=await review_service.add_review(db, caller, bootcamp_id, body))


@router.put(
    "/reviews/{review_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Update a review",
)
async def update_review(
    review_id: UUID,
    body: ReviewUpdate,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(reviewer),
) -> DataResponse:
    return DataResponse(data=await review_service.update_review(db, caller, review_id, body))


@router.delete(
    "/reviews/{review_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Delete a review",
)
async def delete_review(
    review_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    caller: User = Depends(reviewer),
) -> DataResponse:
    await review_service.delete_review(db, caller, review_id)
    return DataResponse(data={})
