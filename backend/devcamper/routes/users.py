"""
DevCamper Backend: User Administration Routes
===============================================

Every route here requires the admin role.

Routes:
    GET    /users        advanced results
    GET    /users/{id}
    POST   /users
    PUT    /users/{id}
    DELETE /users/{id}
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.query.results import ResultEnvelope, advanced_results
from devcamper.resources import USERS
from devcamper.routes.deps import require_roles
from devcamper.schemas.common import DataResponse
from devcamper.schemas.user import UserCreate, UserUpdate
from devcamper.services.user_service import user_service

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(require_roles("admin"))],
)


@router.get("", response_model=ResultEnvelope, summary="List users")
async def list_users(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(USERS)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get("/{user_id}", response_model=DataResponse, summary="Get a user")
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    return DataResponse(data=await user_service.get_user(db, user_id))


@router.post(
    "",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    return DataResponse(data=await user_service.create_user(db, body))


@router.put("/{user_id}", response_model=DataResponse, summary="Update a user")
async def update_user(
    user_id: UUID,
    body: UserUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await user_service.update_user(db, user_id, body))


@router.delete("/{user_id}", response_model=DataResponse, summary="Delete a user")
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_db_session)) -> DataResponse:
    await user_service.delete_user(db, user_id)
    return DataResponse(data={})
