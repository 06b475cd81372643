"""Derived, read-only views over catalog records: filter, sort and date groups."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Sequence, Tuple

from models.drive_file import KIND_FILTER_ALL, SORT_OPTIONS, DriveFile, FilterState

TODAY = "Today"
YESTERDAY = "Yesterday"


def matches_search(record: DriveFile, query: str) -> bool:
    """Case-insensitive substring match over name, notes, summary and tags."""
    if not query:
        return True
    q = query.lower()
    if q in record.name.lower() or q in record.notes.lower():
        return True
    if record.ai_data is None:
        return False
    if q in record.ai_data.summary.lower():
        return True
    return any(q in tag.lower() for tag in record.ai_data.tags)


def sort_files(files: Sequence[DriveFile], sort: str = "date-desc") -> List[DriveFile]:
    """Return a stably sorted copy of `files`.

    Raises:
        ValueError: If `sort` is not one of SORT_OPTIONS.
    """
    if sort not in SORT_OPTIONS:
        raise ValueError(f"Unsupported sort option {sort!r}. Supported: {', '.join(SORT_OPTIONS)}")
    if sort == "date-desc":
        return sorted(files, key=lambda f: f.upload_date, reverse=True)
    if sort == "date-asc":
        return sorted(files, key=lambda f: f.upload_date)
    if sort == "name-asc":
        return sorted(files, key=lambda f: f.name.lower())
    if sort == "name-desc":
        return sorted(files, key=lambda f: f.name.lower(), reverse=True)
    return sorted(files, key=lambda f: f.size, reverse=True)


def filter_files(
    files: Sequence[DriveFile],
    filter_state: FilterState,
    sort: str = "date-desc",
) -> List[DriveFile]:
    """Apply search, then kind, then sort. `filter_state.date_range` does not narrow."""
    result = [f for f in files if matches_search(f, filter_state.search)]
    if filter_state.kind != KIND_FILTER_ALL:
        result = [f for f in result if f.kind == filter_state.kind]
    return sort_files(result, sort)


def date_label(upload_date_ms: int, now: datetime) -> str:
    """Label a timestamp by calendar day relative to `now`."""
    moment = datetime.fromtimestamp(upload_date_ms / 1000, tz=now.tzinfo)
    day = moment.date()
    if day == now.date():
        return TODAY
    if day == (now - timedelta(days=1)).date():
        return YESTERDAY
    return f"{moment.strftime('%B')} {moment.day}, {moment.year}"


def group_files_by_date(
    files: Sequence[DriveFile],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Dict[str, List[DriveFile]]:
    """Partition `files` into date buckets, keeping first-occurrence order.

    Args:
        files: Records, normally already sorted newest first.
        now: Reference moment; defaults to the current time in `tz`.
        tz: Timezone for calendar days; local time when omitted.
    """
    if now is None:
        now = datetime.now(tz) if tz else datetime.now().astimezone()
    elif now.tzinfo is None:
        now = now.astimezone()

    groups: Dict[str, List[DriveFile]] = {}
    for record in files:
        groups.setdefault(date_label(record.upload_date, now), []).append(record)
    return groups


def derived_view(
    files: Sequence[DriveFile],
    filter_state: FilterState,
    now: Optional[datetime] = None,
    sort: str = "date-desc",
) -> List[Tuple[str, List[DriveFile]]]:
    """Filter, sort and group records for display."""
    ordered = filter_files(files, filter_state, sort)
    return list(group_files_by_date(ordered, now=now).items())
