"""Monthly board: one summary row per dated item."""

import calendar
from dataclasses import dataclass
from datetime import date

from .core.heuristics import DEFAULT_HEURISTICS, Heuristics
from .core.model import OwnerId
from .core.ports import Store
from .core.utils import short_text
from .render.sanitize import summarize_html


@dataclass
class BoardRow:
    item_id: str
    parent_id: str | None
    due_date: date | None
    title: str
    status: str
    template_type: str
    today_work: str = ""
    issue: str = ""
    memo: str = ""
    checklist_total: int = 0
    checklist_done: int = 0


def _one_line(raw: str | None) -> str:
    return short_text((raw or "").replace("\n", " "))


def build_board(
    store: Store,
    owner_id: OwnerId,
    year: int,
    month: int,
    heuristics: Heuristics = DEFAULT_HEURISTICS,
) -> list[BoardRow]:
    """
    Rows for items due in `year`/`month`, newest day first.

    Issue/memo come from the spreadsheet payload when present, else from
    the HTML sections; a day note for the same date overrides both.
    """
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])

    rows: list[BoardRow] = []
    for item in store.items.find_by_owner_between(owner_id, start, end):
        row = BoardRow(
            item_id=item.id,
            parent_id=item.parent_id,
            due_date=item.due_date,
            title=item.title,
            status=item.status,
            template_type=item.template_type,
        )

        block = store.blocks.first_by_item(item.id)
        if block is not None:
            summary = summarize_html(block.html, heuristics.summary_sections)
            row.today_work = summary.today_work
            row.issue = _one_line(block.content.get("issue")) or summary.issue
            row.memo = _one_line(block.content.get("memo")) or summary.memo
            row.checklist_total = summary.checklist_total
            row.checklist_done = summary.checklist_done

        note = store.day_notes.find(owner_id, item.due_date) if item.due_date else None
        if note is not None:
            if note.issue.strip():
                row.issue = short_text(note.issue)
            if note.memo.strip():
                row.memo = short_text(note.memo)

        rows.append(row)
    return rows
