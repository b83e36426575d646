"""Merge per-day issue/memo fragments from spreadsheet rows into day notes."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from ..core.model import DayNote, OwnerId
from ..core.ports import DayNoteRepository
from .errors import Err, Ok, RecordParseError, Result, describe

if TYPE_CHECKING:
    from .models import MigrationReport

logger = logging.getLogger(__name__)


def merge_fragment(buffer: str, fragment: str | None) -> str:
    """
    Append `fragment` on a new line unless the buffer already contains it.

    Examples:
        >>> merge_fragment("server down", "server down")
        'server down'
        >>> merge_fragment("server down", "db slow")
        'server down\\ndb slow'
    """
    if fragment is None:
        return buffer
    normalized = fragment.strip()
    if not normalized or normalized in buffer:
        return buffer
    return f"{buffer}\n{normalized}" if buffer else normalized


class DayNoteAggregator:
    """Two accumulators (issue, memo) per due date for one import run."""

    def __init__(self) -> None:
        self.issues: dict[date, str] = {}
        self.memos: dict[date, str] = {}

    def add(self, due_date: date | None, issue: str | None, memo: str | None) -> None:
        if due_date is None:
            return
        if issue and issue.strip():
            self.issues[due_date] = merge_fragment(self.issues.get(due_date, ""), issue)
        if memo and memo.strip():
            self.memos[due_date] = merge_fragment(self.memos.get(due_date, ""), memo)

    def dates(self) -> list[date]:
        return sorted(set(self.issues) | set(self.memos))

    def upsert(self, repo: DayNoteRepository, owner_id: OwnerId, day: date) -> Result[bool]:
        """
        Write the note for one date. Blank accumulators leave the stored
        field untouched. Ok(False) means there was nothing to write.
        """
        issue = self.issues.get(day, "").strip()
        memo = self.memos.get(day, "").strip()
        if not issue and not memo:
            return Ok(False)
        try:
            note = repo.find(owner_id, day) or DayNote(owner_id=owner_id, due_date=day)
            if issue:
                note.issue = issue
            if memo:
                note.memo = memo
            repo.save(note)
        except Exception as e:
            message = f"Day note upsert failed ({day.isoformat()}): {describe(e)}"
            return Err(RecordParseError(message, path=day.isoformat()))
        logger.debug("Day note %s updated (issue=%d, memo=%d chars)", day, len(issue), len(memo))
        return Ok(True)

    def flush(self, repo: DayNoteRepository, owner_id: OwnerId, report: MigrationReport) -> int:
        """Upsert one day note per date; returns the number of notes written."""
        written = 0
        for day in self.dates():
            if report.record(self.upsert(repo, owner_id, day)):
                written += 1
        return written
