import asyncio
import base64
from typing import Any, Dict, List, Tuple
from urllib.parse import quote

from fastapi import HTTPException
from fastapi.responses import Response

from models.drive_file import DriveFile
from services.session_registry import DriveSession
from services.thumbnail_generator import ThumbnailGenerator
from utils.errors import FileNotFoundInCatalog
from utils.file_kinds import format_bytes, strip_data_url


def serialize_file(record: DriveFile, include_data: bool = False) -> Dict[str, Any]:
    """Return the API shape of a record, with a display size and optionally the payload."""
    payload = record.to_dict() if include_data else record.to_summary()
    payload["sizeLabel"] = format_bytes(record.size)
    return payload


def serialize_view(groups: List[Tuple[str, List[DriveFile]]]) -> Dict[str, Any]:
    """Return grouped records as an ordered list of {label, files} buckets."""
    return {
        "groups": [
            {"label": label, "files": [serialize_file(record) for record in records]}
            for label, records in groups
        ],
        "total": sum(len(records) for _, records in groups),
    }


def _require_file(session: DriveSession, file_id: str) -> DriveFile:
    try:
        return session.dashboard.get_file(file_id)
    except FileNotFoundInCatalog as exc:
        raise HTTPException(status_code=404, detail="File not found") from exc


async def get_content(session: DriveSession, file_id: str) -> Response:
    """Controller to return the raw bytes of a stored file.

    Args:
        session: The caller's drive session.
        file_id: Catalog id of the record.

    Returns:
        FastAPI `Response` with the decoded payload and the record's MIME type.

    Raises:
        HTTPException(404) if the file is not in the catalog.
    """
    record = _require_file(session, file_id)
    try:
        raw = base64.b64decode(strip_data_url(record.data))
    except Exception as exc:
        raise HTTPException(status_code=500, detail="Stored file payload is corrupt") from exc
    headers = {"Content-Disposition": f"inline; filename*=UTF-8''{quote(record.name)}"}
    return Response(content=raw, media_type=record.mime_type or "application/octet-stream", headers=headers)


async def get_thumbnail(session: DriveSession, file_id: str) -> Response:
    """Controller to render a PNG thumbnail for an image record.

    Raises:
        HTTPException(404) if the file is missing or is not an image.
        HTTPException(422) if the stored payload cannot be decoded as an image.
    """
    record = _require_file(session, file_id)
    if record.kind != "image":
        raise HTTPException(status_code=404, detail="Thumbnail not available for this file")

    # Pillow work is blocking -> run in thread
    try:
        png = await asyncio.to_thread(ThumbnailGenerator().create_thumbnail, record.data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Response(content=png, media_type="image/png")
