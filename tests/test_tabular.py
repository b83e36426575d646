"""Tests for CSV log ingestion."""

from datetime import date

from worklog_migrator.adapters.memory_store import InMemoryStore
from worklog_migrator.core.heuristics import DEFAULT_HEURISTICS
from worklog_migrator.core.model import ArchiveEntry
from worklog_migrator.import_migrate.models import ImportContext
from worklog_migrator.import_migrate.tabular import (
    TabularIngester,
    detect_columns,
    find_header,
    row_title,
)


def csv_entry(text, path="up.zip/log.csv", encoding="utf-8"):
    return ArchiveEntry(path=path, data=text.encode(encoding))


def test_find_header_priority_and_case():
    """Candidates are tried in order and matched as case-insensitive substrings."""
    headers = ["Due Date", "Task title", "Notes"]

    assert find_header(headers, ["날짜", "date"]) == "Due Date"
    assert find_header(headers, ["memo", "note"]) == "Notes"
    assert find_header(headers, ["이슈", "issue"]) is None


def test_detect_korean_columns():
    """Legacy Korean headers map to every role."""
    columns = detect_columns(["날짜", "오늘의 업무 제목", "오늘의 업무", "이슈", "메모"], DEFAULT_HEURISTICS)

    assert columns.date == "날짜"
    assert columns.title == "오늘의 업무 제목"
    assert columns.issue == "이슈"
    assert columns.memo == "메모"


def test_row_title_fallbacks():
    """Title cell, then due date, then a numbered placeholder; first line only."""
    assert row_title("Standup\nsecond line", "2024-03-01", 1, "Imported item") == "Standup"
    assert row_title("", "2024-03-01", 1, "Imported item") == "2024-03-01"
    assert row_title("  ", "", 7, "Imported item") == "Imported item 7"
    assert len(row_title("x" * 300, "", 1, "Imported item")) == 120


def test_ingest_korean_log():
    """Each row becomes a dated worklog item with a rendered block."""
    store = InMemoryStore()
    ctx = ImportContext(owner_id="u1")
    text = (
        "날짜,오늘의 업무,이슈,메모\n"
        "2024-03-01,deploy api,server down,call vendor\n"
        "2024년 3월 2일,review <b>,,\n"
    )

    created = TabularIngester(store).ingest(csv_entry(text), ctx)

    assert created == 2
    assert ctx.report.failures == []
    items = sorted(store.all_items(), key=lambda i: i.due_date)
    assert [i.due_date for i in items] == [date(2024, 3, 1), date(2024, 3, 2)]
    assert items[0].title == "2024-03-01"
    assert items[0].template_type == "worklog"
    assert items[0].status == "todo"

    block = store.blocks.first_by_item(items[0].id)
    assert block.html == (
        "<h3>요청내용</h3><p>deploy api</p>"
        "<h3>이슈</h3><p>server down</p>"
        "<h3>메모</h3><p>call vendor</p>"
    )
    assert block.content["issue"] == "server down"
    assert block.content["memo"] == "call vendor"

    second = store.blocks.first_by_item(items[1].id)
    assert second.html == "<h3>요청내용</h3><p>review &lt;b&gt;</p>"

    assert ctx.day_notes.issues == {date(2024, 3, 1): "server down"}
    assert ctx.day_notes.memos == {date(2024, 3, 1): "call vendor"}


def test_ingest_english_aliases_with_bom():
    """English headers work and a UTF-8 BOM is ignored."""
    store = InMemoryStore()
    ctx = ImportContext(owner_id="u1")
    text = "\ufeffDate,Task,Issue,Note\n2024-04-10,write docs,,remember lunch\n"

    created = TabularIngester(store).ingest(csv_entry(text), ctx)

    assert created == 1
    item = store.all_items()[0]
    assert item.due_date == date(2024, 4, 10)
    assert "<p>write docs</p>" in store.blocks.first_by_item(item.id).html


def test_malformed_row_reported_with_row_number():
    """A row with an unreadable date fails alone; later rows still import."""
    store = InMemoryStore()
    ctx = ImportContext(owner_id="u1")
    text = "date,task\nnot-a-date,x\n2024-03-05,y\n"

    created = TabularIngester(store).ingest(csv_entry(text), ctx)

    assert created == 1
    assert ctx.report.failures == [
        "CSV record parse failed (up.zip/log.csv, row 2): unrecognised date 'not-a-date'"
    ]
    assert ctx.report.issues[0].kind == "record_parse"
    assert store.all_items()[0].due_date == date(2024, 3, 5)


def test_undated_rows_get_placeholder_titles():
    """Without a date or title column rows are numbered."""
    store = InMemoryStore()
    ctx = ImportContext(owner_id="u1")

    TabularIngester(store).ingest(csv_entry("task\nfirst\nsecond\n"), ctx)

    titles = sorted(i.title for i in store.all_items())
    assert titles == ["Imported item 1", "Imported item 2"]
    assert all(i.due_date is None for i in store.all_items())


def test_unreadable_stream_is_one_failure():
    """Bytes that are not UTF-8 give a single failure and no items."""
    store = InMemoryStore()
    ctx = ImportContext(owner_id="u1")
    entry = ArchiveEntry(path="up.zip/log.csv", data=b"date,task\n\xff\xfe,x\n")

    created = TabularIngester(store).ingest(entry, ctx)

    assert created == 0
    assert len(ctx.report.failures) == 1
    assert ctx.report.failures[0].startswith("CSV parse failed (up.zip/log.csv)")
    assert store.all_items() == []


def test_duplicate_view_detection():
    """Files ending in _all.csv are the duplicate database view."""
    ingester = TabularIngester(InMemoryStore())
    ctx = ImportContext(owner_id="u1")

    assert ingester.is_duplicate_view(csv_entry("", path="up.zip/Tasks_all.csv"), ctx)
    assert not ingester.is_duplicate_view(csv_entry("", path="up.zip/Tasks.csv"), ctx)
