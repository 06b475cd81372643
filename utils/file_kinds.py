"""Helpers for classifying and describing uploaded files."""

import math

TEXT_EXTENSIONS = (".txt", ".md")


def detect_file_kind(mime_type: str, name: str) -> str:
    """Return the coarse kind for a file from its MIME type and name.

    MIME prefixes win for image/video/audio, then an exact PDF match, then
    text by MIME prefix or filename extension. Anything else is "other".
    """
    mime = (mime_type or "").lower()
    filename = (name or "").lower()
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("video/"):
        return "video"
    if mime.startswith("audio/"):
        return "audio"
    if mime == "application/pdf":
        return "pdf"
    if mime.startswith("text/") or filename.endswith(TEXT_EXTENSIONS):
        return "text"
    return "other"


def format_bytes(size: int) -> str:
    """Render a byte count for display, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / math.pow(1024, index), 2)
    return f"{value:g} {units[index]}"


def strip_data_url(payload: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix if the payload carries one."""
    if payload.startswith("data:") and "," in payload:
        return payload.split(",", 1)[1]
    return payload
