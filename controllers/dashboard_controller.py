"""Upload intake, background enrichment and catalog editing for one session."""

from __future__ import annotations

import asyncio
import base64
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from models.drive_file import AIAnalysis, DriveFile, FilterState, StagedUpload
from services.catalog.file_catalog import FileCatalog
from services.catalog.views import derived_view
from services.openai.content_analyzer import ContentAnalyzer
from utils.errors import ConfirmationRequired, FileNotFoundInCatalog, StagingNotFound
from utils.file_kinds import detect_file_kind

LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class EnrichmentTicket:
    """Ownership token for one in-flight analysis.

    A discarded ticket tells the task to drop its result on arrival instead
    of patching the catalog.
    """

    file_id: str
    discarded: bool = False
    task: Optional["asyncio.Task[None]"] = None

    def discard(self) -> None:
        self.discarded = True


class DashboardController:
    """Coordinate staging, confirmation, enrichment and edits against a FileCatalog."""

    def __init__(
        self,
        catalog: FileCatalog,
        analyzer: ContentAnalyzer,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.catalog = catalog
        self.analyzer = analyzer
        self._clock = clock
        self._staged: Optional[StagedUpload] = None
        self._tickets: Dict[str, EnrichmentTicket] = {}
        self._closed = False

    @property
    def staged(self) -> Optional[StagedUpload]:
        return self._staged

    async def stage_upload(self, upload: Any) -> Optional[StagedUpload]:
        """Read an uploaded file into a base64 payload and hold it for confirmation.

        Args:
            upload: An object with `filename`, `content_type` and an async
                `read()` method (e.g. FastAPI's UploadFile).

        Returns:
            The staged upload, or None when the file could not be read. A
            failed read stages nothing.
        """
        self._ensure_open()
        name = getattr(upload, "filename", None) or "upload"
        mime_type = getattr(upload, "content_type", None) or "application/octet-stream"
        try:
            raw = await upload.read()
        except Exception as exc:
            LOGGER.warning("Could not read upload %r: %s", name, exc)
            return None
        if raw is None:
            LOGGER.warning("Upload %r produced no data", name)
            return None

        self._staged = StagedUpload(
            staging_id=uuid.uuid4().hex,
            name=name,
            mime_type=mime_type,
            size=len(raw),
            data=base64.b64encode(raw).decode("ascii"),
            kind=detect_file_kind(mime_type, name),
        )
        return self._staged

    def cancel_staging(self) -> None:
        self._staged = None

    async def confirm_upload(self, name: str, notes: str = "", staging_id: Optional[str] = None) -> DriveFile:
        """Commit the staged upload to the catalog and start its analysis.

        Returns as soon as the record is stored; analysis runs as a separate task.

        Raises:
            StagingNotFound: If nothing is staged, or `staging_id` does not match.
        """
        self._ensure_open()
        staged = self._staged
        if staged is None or (staging_id is not None and staging_id != staged.staging_id):
            raise StagingNotFound("No staged upload to confirm.")

        final_name = (name or "").strip() or staged.name
        record = DriveFile(
            id=uuid.uuid4().hex,
            name=final_name,
            kind=detect_file_kind(staged.mime_type, final_name),
            mime_type=staged.mime_type,
            size=staged.size,
            upload_date=self._clock(),
            data=staged.data,
            notes=notes or "",
            ai_data=AIAnalysis.pending(),
        )
        await self.catalog.insert_first(record)
        self._staged = None

        ticket = EnrichmentTicket(file_id=record.id)
        self._tickets[record.id] = ticket
        ticket.task = asyncio.create_task(self._enrich(record, ticket))
        return record

    async def _enrich(self, record: DriveFile, ticket: EnrichmentTicket) -> None:
        """Run analysis for one record and apply exactly one final patch."""
        try:
            try:
                result = await self.analyzer.analyze(record.data, record.mime_type, record.name)
                analysis = AIAnalysis(
                    is_analyzing=False,
                    summary=result["summary"],
                    tags=list(result["tags"]),
                )
            except Exception as exc:
                LOGGER.error("Analysis failed for file %s: %s", record.id, exc)
                analysis = AIAnalysis.failed()

            if ticket.discarded:
                LOGGER.warning("Discarding analysis result for file %s; it was deleted or the session closed", record.id)
                return
            if not await self.catalog.patch_analysis(record.id, analysis):
                LOGGER.warning("Analysis result for file %s matched no catalog record", record.id)
        except Exception as exc:
            LOGGER.error("Failed to store analysis for file %s: %s", record.id, exc)
        finally:
            if self._tickets.get(record.id) is ticket:
                del self._tickets[record.id]

    async def delete_file(self, file_id: str, confirmed: bool = False) -> bool:
        """Remove a record after explicit confirmation.

        Returns False when the record was already absent.

        Raises:
            ConfirmationRequired: If `confirmed` is not set.
        """
        if not confirmed:
            raise ConfirmationRequired("Deleting a file requires confirmation.")
        ticket = self._tickets.get(file_id)
        if ticket is not None:
            ticket.discard()
        return await self.catalog.remove(file_id)

    async def edit_file(self, file_id: str, name: str, notes: str) -> DriveFile:
        """Replace only the name and notes of an existing record.

        Raises:
            FileNotFoundInCatalog: If no record matches `file_id`.
        """
        record = await self.catalog.update_details(file_id, name, notes)
        if record is None:
            raise FileNotFoundInCatalog(file_id)
        return record

    def get_file(self, file_id: str) -> DriveFile:
        record = self.catalog.get(file_id)
        if record is None:
            raise FileNotFoundInCatalog(file_id)
        return record

    def view(
        self,
        filter_state: Optional[FilterState] = None,
        sort: str = "date-desc",
        now: Optional[datetime] = None,
    ) -> List[Tuple[str, List[DriveFile]]]:
        """Return the filtered, sorted and date-grouped catalog."""
        return derived_view(self.catalog.files, filter_state or FilterState(), now=now, sort=sort)

    def pending_enrichments(self) -> List[str]:
        """Ids of records whose analysis task has not settled yet."""
        return list(self._tickets)

    async def wait_for_enrichments(self) -> None:
        """Wait until every in-flight analysis task has settled."""
        tasks = [ticket.task for ticket in list(self._tickets.values()) if ticket.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def teardown(self) -> None:
        """Close the controller: in-flight results will be dropped on arrival."""
        self._closed = True
        self._staged = None
        for ticket in self._tickets.values():
            ticket.discard()

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Session is closed; sign in again.")
