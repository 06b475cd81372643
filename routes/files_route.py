"""FastAPI routes for the file catalog: staging, upload, listing, edits and deletes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel

from controllers.file_controller import get_content, get_thumbnail, serialize_file, serialize_view
from models.drive_file import DATE_RANGES, FILE_KINDS, KIND_FILTER_ALL, SORT_OPTIONS, FilterState
from routes.deps import require_session
from services.session_registry import DriveSession
from utils.errors import ConfirmationRequired, FileNotFoundInCatalog, StagingNotFound
from utils.file_kinds import format_bytes

router = APIRouter(prefix="/files", tags=["files"])


class ConfirmPayload(BaseModel):
    name: str = ""
    notes: str = ""
    staging_id: Optional[str] = None


class EditPayload(BaseModel):
    name: str
    notes: str = ""


@router.post("/staging", summary="Read a file and hold it for confirmation")
async def stage_upload_route(file: UploadFile = File(...), session: DriveSession = Depends(require_session)):
    """Stage an upload; the response pre-fills the editable name.

    Raises:
        HTTPException: If the upload cannot be read.
    """
    staged = await session.dashboard.stage_upload(file)
    if staged is None:
        raise HTTPException(status_code=400, detail="Unable to read uploaded file.")
    return {
        "staging_id": staged.staging_id,
        "name": staged.name,
        "mimeType": staged.mime_type,
        "type": staged.kind,
        "size": staged.size,
        "sizeLabel": format_bytes(staged.size),
    }


@router.delete("/staging")
async def cancel_staging_route(session: DriveSession = Depends(require_session)):
    session.dashboard.cancel_staging()
    return {"staged": False}


@router.post("", status_code=201, summary="Confirm the staged upload")
async def confirm_upload_route(payload: ConfirmPayload, session: DriveSession = Depends(require_session)):
    """Add the staged file to the catalog; analysis continues in the background."""
    try:
        record = await session.dashboard.confirm_upload(payload.name, payload.notes, payload.staging_id)
    except StagingNotFound as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return serialize_file(record)


@router.get("")
async def list_files_route(
    search: str = "",
    kind: str = Query(KIND_FILTER_ALL),
    date_range: str = Query("all"),
    sort: str = Query("date-desc"),
    session: DriveSession = Depends(require_session),
):
    """Return the filtered catalog grouped by upload day."""
    if kind != KIND_FILTER_ALL and kind not in FILE_KINDS:
        raise HTTPException(status_code=400, detail=f"Unknown kind '{kind}'")
    if date_range not in DATE_RANGES:
        raise HTTPException(status_code=400, detail=f"Unknown date range '{date_range}'")
    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=400, detail=f"Unknown sort option '{sort}'")
    groups = session.dashboard.view(FilterState(search=search, kind=kind, date_range=date_range), sort=sort)
    return serialize_view(groups)


@router.get("/{file_id}")
async def get_file_route(file_id: str, include_data: bool = False, session: DriveSession = Depends(require_session)):
    try:
        record = session.dashboard.get_file(file_id)
    except FileNotFoundInCatalog as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    return serialize_file(record, include_data=include_data)


@router.patch("/{file_id}")
async def edit_file_route(file_id: str, payload: EditPayload, session: DriveSession = Depends(require_session)):
    try:
        record = await session.dashboard.edit_file(file_id, payload.name, payload.notes)
    except FileNotFoundInCatalog as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return serialize_file(record)


@router.delete("/{file_id}")
async def delete_file_route(file_id: str, confirm: bool = False, session: DriveSession = Depends(require_session)):
    """Delete a file; requires `confirm=true`."""
    try:
        deleted = await session.dashboard.delete_file(file_id, confirmed=confirm)
    except ConfirmationRequired as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return {"id": file_id, "deleted": deleted}


@router.get("/{file_id}/content")
async def file_content_route(file_id: str, session: DriveSession = Depends(require_session)):
    """Return the raw bytes of the file for the full-screen viewer."""
    return await get_content(session, file_id)


@router.get("/{file_id}/thumbnail")
async def file_thumbnail_route(file_id: str, session: DriveSession = Depends(require_session)):
    """Return the PNG thumbnail bytes for an image file."""
    return await get_thumbnail(session, file_id)
