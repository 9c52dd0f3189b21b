"""
DevCamper Backend: Uploaded Photo Serving
===========================================

What:  GET /uploads/{filename} returns a stored bootcamp photo.
How:   Only flat file names inside the photo storage root are served;
       PhotoStorage.path_for rejects anything else.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from devcamper.exceptions import NotFoundError
from devcamper.routes.deps import get_photo_storage
from devcamper.services.photo_service import PhotoStorage

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded photo",
    responses={200: {"description": "Image file"}, 404: {"description": "File not found"}},
)
async def serve_upload(
    filename: str,
    photos: PhotoStorage = Depends(get_photo_storage),
) -> FileResponse:
    path = photos.path_for(filename)
    if path is None:
        raise NotFoundError(resource="File", message=f"File {filename} not found")

    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=3600"},
    )
