from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

FILE_KINDS = ("image", "text", "pdf", "video", "audio", "other")
KIND_FILTER_ALL = "all"
DATE_RANGES = ("all", "today", "week", "month")
SORT_OPTIONS = ("date-desc", "date-asc", "name-asc", "name-desc", "size-desc")
ANALYSIS_FAILED_SUMMARY = "Analysis failed"


@dataclass
class AIAnalysis:
    """Enrichment attached to a file record.

    Attributes:
        is_analyzing: True until the analysis call for the record settles.
        summary: Short model-generated summary (meaningless while analyzing).
        tags: Ordered tag list (meaningless while analyzing).
    """

    is_analyzing: bool
    summary: str = ""
    tags: List[str] = field(default_factory=list)

    @classmethod
    def pending(cls) -> "AIAnalysis":
        return cls(is_analyzing=True, summary="", tags=[])

    @classmethod
    def failed(cls) -> "AIAnalysis":
        return cls(is_analyzing=False, summary=ANALYSIS_FAILED_SUMMARY, tags=[])

    def to_dict(self) -> Dict[str, Any]:
        return {"summary": self.summary, "tags": list(self.tags), "isAnalyzing": self.is_analyzing}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIAnalysis":
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("aiData.tags must be a list")
        return cls(
            is_analyzing=bool(data.get("isAnalyzing", False)),
            summary=str(data.get("summary") or ""),
            tags=[str(tag) for tag in tags],
        )


@dataclass
class DriveFile:
    """In-memory representation of one catalog entry.

    Attributes:
        id: Opaque unique identifier (uuid4 hex string).
        name: Display name, editable.
        kind: Coarse category derived once at intake (see FILE_KINDS).
        mime_type: MIME type reported at intake.
        size: Size of the raw content in bytes.
        upload_date: Unix timestamp in milliseconds, set at intake.
        data: Base64-encoded raw content.
        notes: Free-text user notes, editable.
        ai_data: Optional enrichment result.
    """

    id: str
    name: str
    kind: str
    mime_type: str
    size: int
    upload_date: int
    data: str
    notes: str = ""
    ai_data: Optional[AIAnalysis] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON shape persisted to local storage."""
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.kind,
            "mimeType": self.mime_type,
            "size": self.size,
            "uploadDate": self.upload_date,
            "data": self.data,
            "notes": self.notes,
        }
        if self.ai_data is not None:
            payload["aiData"] = self.ai_data.to_dict()
        return payload

    def to_summary(self) -> Dict[str, Any]:
        """Return the record without its payload, for listings."""
        payload = self.to_dict()
        payload.pop("data", None)
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DriveFile":
        """Build a record from its stored shape.

        Raises:
            KeyError, TypeError or ValueError when the entry is malformed.
        """
        if not isinstance(data, dict):
            raise TypeError("file entry must be an object")
        kind = data["type"]
        if kind not in FILE_KINDS:
            raise ValueError(f"Unknown file kind {kind!r}")
        ai_raw = data.get("aiData")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            kind=kind,
            mime_type=str(data.get("mimeType") or ""),
            size=int(data.get("size") or 0),
            upload_date=int(data["uploadDate"]),
            data=str(data.get("data") or ""),
            notes=str(data.get("notes") or ""),
            ai_data=AIAnalysis.from_dict(ai_raw) if isinstance(ai_raw, dict) else None,
        )


@dataclass
class FilterState:
    """Session-local view filter; never persisted."""

    search: str = ""
    kind: str = KIND_FILTER_ALL
    # accepted and carried, not used for narrowing
    date_range: str = "all"


@dataclass
class StagedUpload:
    """A file that has been read but not yet committed to the catalog."""

    staging_id: str
    name: str
    mime_type: str
    size: int
    data: str
    kind: str
