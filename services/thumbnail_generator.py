"""Thumbnail generator service.

Provides a small OOP wrapper around Pillow to create preview thumbnails
for image records. Input is the record's base64 payload; the resulting
thumbnail fits within 160x160 pixels and is returned as raw PNG bytes.

Public class: `ThumbnailGenerator`

Example:
    tg = ThumbnailGenerator(max_size=(160, 160))
    png_bytes = tg.create_thumbnail(record.data)
"""
from __future__ import annotations

import base64
import io
from typing import Tuple

from PIL import Image

from utils.file_kinds import strip_data_url


class ThumbnailGenerator:
    """Generate PNG thumbnails from base64 image payloads.

    Args:
        max_size: Maximum width and height for the thumbnail. Defaults to (160, 160).
        background: Optional background color used when flattening images with alpha.
            If None, images with alpha are flattened against white.
    """

    def __init__(self, max_size: Tuple[int, int] = (160, 160), background: Tuple[int, int, int] | None = None):
        self.max_size = max_size
        self.background = background or (255, 255, 255)

    def create_thumbnail(self, payload_b64: str) -> bytes:
        """Create a thumbnail from a base64 image payload.

        Args:
            payload_b64: Base64-encoded image data, optionally as a data URL.

        Returns:
            PNG bytes of the thumbnail.

        Raises:
            ValueError: If the payload cannot be decoded or opened as an image.
        """
        try:
            raw = base64.b64decode(strip_data_url(payload_b64), validate=True)
        except Exception as exc:
            raise ValueError("Invalid base64 data provided") from exc

        try:
            src = Image.open(io.BytesIO(raw))
            src.load()
        except Exception as exc:
            raise ValueError("Decoded bytes are not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        background = Image.new("RGB", src.size, self.background)
        background.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        background.save(out_io, format="PNG", optimize=True)
        return out_io.getvalue()
