"""Spreadsheet (CSV) logs -> dated work items and day-note fragments."""

import csv
import io
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..core.dates import parse_flexible
from ..core.heuristics import Heuristics
from ..core.model import ArchiveEntry, WorkItem
from ..core.ports import Store
from ..core.utils import escape_html, file_name, normalize_title
from ..render.markdown import apply_inline_code
from .blocks import persist_item
from .errors import ArchiveReadError, Err, Ok, RecordParseError, Result, describe
from .models import ImportContext

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 120


@dataclass(frozen=True)
class ColumnMap:
    """Header chosen for each role; None when the file has no such column."""

    date: str | None
    work: str | None
    issue: str | None
    memo: str | None
    title: str | None


def find_header(headers: Sequence[str], candidates: Iterable[str]) -> str | None:
    """
    First candidate (in priority order) contained in any header,
    compared case-insensitively.
    """
    for candidate in candidates:
        needle = candidate.lower()
        for header in headers:
            if header is None:
                continue
            if needle in header.lower():
                return header
    return None


def detect_columns(headers: Sequence[str], heuristics: Heuristics) -> ColumnMap:
    return ColumnMap(
        date=find_header(headers, heuristics.column_aliases("date")),
        work=find_header(headers, heuristics.column_aliases("work")),
        issue=find_header(headers, heuristics.column_aliases("issue")),
        memo=find_header(headers, heuristics.column_aliases("memo")),
        title=find_header(headers, heuristics.column_aliases("title")),
    )


def _cell(row: dict[str | None, str | list[str] | None], key: str | None) -> str:
    if key is None:
        return ""
    value = row.get(key)
    return value if isinstance(value, str) else ""


def row_to_html(work: str, issue: str, memo: str, headings: dict[str, str]) -> str:
    """One `<h3>` plus a `<p>` per non-blank line for each filled field."""
    parts: list[str] = []
    for role, value in (("work", work), ("issue", issue), ("memo", memo)):
        if not value or not value.strip():
            continue
        parts.append(f"<h3>{escape_html(headings.get(role, role))}</h3>")
        for line in value.splitlines():
            if line.strip():
                parts.append(f"<p>{apply_inline_code(line.strip())}</p>")
    return "".join(parts)


def row_title(title_cell: str, due_label: str, row_number: int, placeholder: str) -> str:
    title = title_cell if title_cell.strip() else due_label
    if not title.strip():
        title = f"{placeholder} {row_number}"
    lines = title.strip().splitlines()
    title = lines[0].strip() if lines else title.strip()
    return normalize_title(title[:MAX_TITLE_LENGTH], placeholder)


class TabularIngester:
    """Turns each data row of a CSV log into one `worklog` item."""

    def __init__(self, store: Store):
        self.store = store

    def is_duplicate_view(self, entry: ArchiveEntry, ctx: ImportContext) -> bool:
        lower = file_name(entry.path).lower()
        return any(lower.endswith(suffix) for suffix in ctx.heuristics.skip_csv_suffixes)

    def read_rows(self, entry: ArchiveEntry) -> Result[tuple[list[str], list[dict]]]:
        """Decode and parse the whole file up front; a bad stream yields nothing."""
        try:
            text = entry.data.decode("utf-8-sig")
            reader = csv.DictReader(io.StringIO(text, newline=""))
            rows = list(reader)
            headers = [h for h in (reader.fieldnames or []) if h is not None]
        except (UnicodeDecodeError, csv.Error) as e:
            return Err(ArchiveReadError(f"CSV parse failed ({entry.path}): {describe(e)}", path=entry.path))
        return Ok((headers, rows))

    def ingest(self, entry: ArchiveEntry, ctx: ImportContext) -> int:
        """Import one CSV entry; returns the number of items created."""
        parsed = ctx.report.record(self.read_rows(entry))
        if parsed is None:
            logger.warning("Skipping unreadable CSV %s", entry.path)
            return 0
        headers, rows = parsed
        columns = detect_columns(headers, ctx.heuristics)
        logger.debug("Columns for %s: %s", entry.path, columns)

        created = 0
        for index, row in enumerate(rows, start=1):
            # Line number in the file; the header is line 1
            row_number = index + 1
            result = self.ingest_row(row, columns, entry.path, index, row_number, ctx)
            if ctx.report.record(result) is not None:
                created += 1
            else:
                logger.warning("Row %d of %s skipped", row_number, entry.path)
        logger.info("CSV %s: %d of %d rows imported", entry.path, created, len(rows))
        return created

    def ingest_row(
        self,
        row: dict,
        columns: ColumnMap,
        source_path: str,
        index: int,
        row_number: int,
        ctx: ImportContext,
    ) -> Result[WorkItem]:
        try:
            date_cell = _cell(row, columns.date)
            due_date = parse_flexible(date_cell)
            if due_date is None and date_cell.strip():
                raise RecordParseError(f"unrecognised date '{date_cell.strip()}'")

            placeholder = ctx.heuristics.placeholder_title
            title = row_title(
                _cell(row, columns.title),
                due_date.isoformat() if due_date else "",
                index,
                placeholder,
            )

            work = _cell(row, columns.work)
            issue = _cell(row, columns.issue)
            memo = _cell(row, columns.memo)
            html = row_to_html(work, issue, memo, ctx.heuristics.row_sections)

            item = WorkItem(
                owner_id=ctx.owner_id,
                title=title,
                status="todo",
                template_type="worklog",
                due_date=due_date,
            )
            persist_item(self.store, item, {"html": html, "issue": issue.strip(), "memo": memo.strip()})
            ctx.day_notes.add(due_date, issue, memo)
            return Ok(item)
        except Exception as e:
            message = f"CSV record parse failed ({source_path}, row {row_number}): {describe(e)}"
            return Err(RecordParseError(message, path=source_path))
