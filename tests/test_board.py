"""Tests for the monthly board."""

from datetime import date

from worklog_migrator.adapters.memory_store import InMemoryStore
from worklog_migrator.board import build_board
from worklog_migrator.core.model import ContentBlock, DayNote, WorkItem


def _item(store, title, due, owner="u1", content=None):
    item = store.items.save(WorkItem(owner_id=owner, title=title, due_date=due, template_type="worklog"))
    if content is not None:
        store.blocks.save(ContentBlock(item_id=item.id, content=content))
    return item


def test_board_rows_for_month():
    """Only this owner's items in the month, newest day first."""
    store = InMemoryStore()
    _item(store, "early", date(2024, 3, 1))
    _item(store, "late", date(2024, 3, 31))
    _item(store, "april", date(2024, 4, 1))
    _item(store, "foreign", date(2024, 3, 2), owner="u2")
    _item(store, "undated", None)

    rows = build_board(store, "u1", 2024, 3)

    assert [r.title for r in rows] == ["late", "early"]


def test_board_summary_sources():
    """HTML sections, then payload fields, then the day note."""
    store = InMemoryStore()
    day = date(2024, 3, 5)
    _item(store, "log", day, content={
        "html": "<h3>요청내용</h3><p>deploy</p><h3>이슈</h3><p>html issue</p>",
        "issue": "",
        "memo": "payload memo",
    })
    store.day_notes.save(DayNote(owner_id="u1", due_date=day, issue="note issue\nline2"))

    [row] = build_board(store, "u1", 2024, 3)

    assert row.today_work == "deploy"
    assert row.issue == "note issue line2"
    assert row.memo == "payload memo"


def test_board_checklist_counts():
    """Checklist glyphs are counted per item."""
    store = InMemoryStore()
    _item(store, "todo", date(2024, 3, 5), content={"html": "<ul><li>☑ a</li><li>☐ b</li><li>☐ c</li></ul>"})

    [row] = build_board(store, "u1", 2024, 3)

    assert row.checklist_total == 3
    assert row.checklist_done == 1
    assert row.today_work == "☑ a"
