"""Utilities to build multimodal input payloads for the Responses API."""

import base64
from typing import Any, Dict, List

from utils.file_kinds import detect_file_kind


def to_data_url(payload_b64: str, mime_type: str) -> str:
    """Wrap a base64 payload in a data URL for the given MIME type."""
    return f"data:{mime_type or 'application/octet-stream'};base64,{payload_b64}"


def build_file_content(payload_b64: str, mime_type: str, name: str) -> Dict[str, Any]:
    """Return the content entry that carries the file itself.

    Images go in as `input_image`, text is decoded into `input_text`, and
    everything else (PDF, audio, video, binaries) as `input_file`.
    """
    kind = detect_file_kind(mime_type, name)
    if kind == "image":
        return {"type": "input_image", "image_url": to_data_url(payload_b64, mime_type)}
    if kind == "text":
        try:
            text = base64.b64decode(payload_b64).decode("utf-8", errors="replace")
        except Exception as exc:
            raise ValueError("Text payload is not valid base64.") from exc
        return {"type": "input_text", "text": f"File contents:\n{text}"}
    return {
        "type": "input_file",
        "filename": name or "upload",
        "file_data": to_data_url(payload_b64, mime_type),
    }


def build_inputs(
    system_prompt: str,
    user_prompt: str,
    *,
    payload_b64: str,
    mime_type: str,
    name: str,
) -> List[Dict[str, Any]]:
    """Build the Responses API input array: system prompt, then instruction and file."""
    return [
        {
            "type": "message",
            "role": "system",
            "content": [{"type": "input_text", "text": system_prompt}],
        },
        {
            "type": "message",
            "role": "user",
            "content": [
                build_file_content(payload_b64, mime_type, name),
                {"type": "input_text", "text": user_prompt},
            ],
        },
    ]
