"""Finalized recording endpoints."""

from fastapi import APIRouter
from fastapi.responses import FileResponse, RedirectResponse, Response

from app.api.dependency import RecordingCatalogDep
from app.schemas import RecordingsOut, recording_content_type

router = APIRouter(prefix="/recordings", tags=["recordings"])


@router.get("")
async def list_recordings(catalog: RecordingCatalogDep) -> RecordingsOut:
    """List finalized recordings, newest first.

    Raises:
        500: The recordings directory or bucket could not be read
    """
    return RecordingsOut(recordings=await catalog.list_recordings())


@router.get("/{filename}", response_model=None)
async def get_recording(filename: str, catalog: RecordingCatalogDep) -> Response:
    """Stream a local recording, or redirect to its object store URL.

    Raises:
        404: No recording with this name
    """
    location = await catalog.resolve(filename)

    if location.path is not None:
        return FileResponse(
            location.path,
            media_type=recording_content_type(filename),
            filename=filename,
            content_disposition_type="inline",
        )

    return RedirectResponse(location.url)  # type: ignore[arg-type]
