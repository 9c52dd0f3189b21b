"""
DevCamper Backend: Bootcamp Route Handlers
============================================

What:  /api/v1/bootcamps endpoints.
How:   Thin handlers: list answers with the advanced-results envelope as-is,
       everything else delegates to BootcampService.

Routes:
    GET    /bootcamps                              public, advanced results
    GET    /bootcamps/radius/{zipcode}/{distance}  public
    GET    /bootcamps/{id}                         public
    POST   /bootcamps                              publisher, admin
    PUT    /bootcamps/{id}                         publisher, admin (owner)
    DELETE /bootcamps/{id}                         publisher, admin (owner)
    PUT    /bootcamps/{id}/photo                   publisher, admin (owner)
    DELETE /bootcamps/{id}/photo                   publisher, admin (owner)
"""

import logging
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Path, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.exceptions import ValidationError
from devcamper.models import User
from devcamper.query.results import ResultEnvelope, advanced_results
from devcamper.resources import BOOTCAMPS
from devcamper.routes.deps import get_geocoder, get_photo_storage, require_roles
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.geocoder_base import GeocoderService
from devcamper.services.photo_service import PhotoStorage, validate_photo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bootcamps", tags=["Bootcamps"])

publisher = require_roles("publisher", "admin")

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    403: {"description": "Not the owner or wrong role", "model": ErrorResponse},
    404: {"description": "Bootcamp not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=ResultEnvelope,
    summary="List bootcamps (filter, select, sort, paginate)",
    description=(
        "Supports `field=value`, `field[gt|gte|lt|lte|in]=value`, `select=a,b`, "
        "`sort=-a,b`, `page` and `limit`. Unknown fields are ignored. "
        "Each bootcamp carries its courses."
    ),
)
async def list_bootcamps(
    response: Response,
    envelope: ResultEnvelope = Depends(advanced_results(BOOTCAMPS)),
) -> ResultEnvelope:
    response.headers["X-Total-Count"] = str(envelope.pagination.total)
    return envelope


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListResponse,
    summary="Bootcamps within a distance of a postal code",
)
async def bootcamps_in_radius(
    zipcode: str,
    distance: float = Path(gt=0),
    unit: Literal["mi", "km"] = Query(default="mi"),
    db: AsyncSession = Depends(get_db_session),
    geocoder: GeocoderService = Depends(get_geocoder),
) -> ListResponse:
    bootcamps = await bootcamp_service.bootcamps_in_radius(db, geocoder, zipcode, distance, unit)
    return ListResponse(count=len(bootcamps), data=bootcamps)


@router.get(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses={404: ERRORS[404]},
    summary="Get a bootcamp with its courses",
)
async def get_bootcamp(
    bootcamp_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse:
    return DataResponse(data=await bootcamp_service.get_bootcamp(db, bootcamp_id))


@router.post(
    "",
    response_model=DataResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Create a bootcamp",
)
async def create_bootcamp(
    body: BootcampCreate,
    db: AsyncSession = Depends(get_db_session),
    geocoder: GeocoderService = Depends(get_geocoder),
    caller: User = Depends(publisher),
) -> DataResponse:
    return DataResponse(data=await bootcamp_service.create_bootcamp(db, geocoder, caller, body))


@router.put(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Update a bootcamp",
)
async def update_bootcamp(
    bootcamp_id: UUID,
    body: BootcampUpdate,
    db: AsyncSession = Depends(get_db_session),
    geocoder: GeocoderService = Depends(get_geocoder),
    caller: User = Depends(publisher),
) -> DataResponse:
    return DataResponse(
        data=await bootcamp_service.update_bootcamp(db, geocoder, caller, bootcamp_id, body)
    )


@router.delete(
    "/{bootcamp_id}",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Delete a bootcamp with its courses and reviews",
)
async def delete_bootcamp(
    bootcamp_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    photos: PhotoStorage = Depends(get_photo_storage),
    caller: User = Depends(publisher),
) -> DataResponse:
    await bootcamp_service.delete_bootcamp(db, photos, caller, bootcamp_id)
    return DataResponse(data={"message": "Bootcamp Deleted Successfully."})


@router.put(
    "/{bootcamp_id}/photo",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Upload a bootcamp photo",
)
async def upload_bootcamp_photo(
    bootcamp_id: UUID,
    file: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db_session),
    photos: PhotoStorage = Depends(get_photo_storage),
    caller: User = Depends(publisher),
) -> DataResponse:
    if file is None:
        raise ValidationError(message="No file was uploaded.", field="file")
    # Reject on the reported size before reading the body
    validate_photo(file.content_type, None, reported_size=file.size)
    content = await file.read()
    key = await bootcamp_service.upload_photo(
        db,
        photos,
        caller,
        bootcamp_id,
        filename=file.filename,
        content_type=file.content_type,
        content=content,
    )
    return DataResponse(data={"fileName": key})


@router.delete(
    "/{bootcamp_id}/photo",
    response_model=DataResponse,
    responses=ERRORS,
    summary="Delete a bootcamp photo",
)
async def delete_bootcamp_photo(
    bootcamp_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    photos: PhotoStorage = Depends(get_photo_storage),
    caller: User = Depends(publisher),
) -> DataResponse:
    await bootcamp_service.delete_photo(db, photos, caller, bootcamp_id)
    return DataResponse(data={"message": "Photo deleted successfully."})
