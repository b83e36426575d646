"""Tests for day-note aggregation."""

from datetime import date

from worklog_migrator.adapters.memory_store import InMemoryStore
from worklog_migrator.core.model import DayNote
from worklog_migrator.import_migrate.daynotes import DayNoteAggregator, merge_fragment
from worklog_migrator.import_migrate.models import MigrationReport


def test_merge_fragment_dedup():
    """Fragments already contained in the buffer are not appended again."""
    assert merge_fragment("", " server down ") == "server down"
    assert merge_fragment("server down", "server down") == "server down"
    assert merge_fragment("server down", "db slow") == "server down\ndb slow"
    assert merge_fragment("server down", None) == "server down"
    assert merge_fragment("server down", "   ") == "server down"


def test_aggregate_and_flush():
    """One note per date with merged issue and memo text."""
    store = InMemoryStore()
    agg = DayNoteAggregator()
    day = date(2024, 3, 1)
    agg.add(day, "server down", "")
    agg.add(day, "server down", "call vendor")
    agg.add(day, "db slow", None)
    agg.add(None, "ignored", "ignored")

    written = agg.flush(store.day_notes, "u1", MigrationReport())

    assert written == 1
    note = store.day_notes.find("u1", day)
    assert note.issue == "server down\ndb slow"
    assert note.memo == "call vendor"
    assert agg.dates() == [day]


def test_flush_keeps_existing_field_when_blank():
    """A date with only memo text leaves the stored issue alone."""
    store = InMemoryStore()
    day = date(2024, 3, 2)
    store.day_notes.save(DayNote(owner_id="u1", due_date=day, issue="old issue", memo="old memo"))
    agg = DayNoteAggregator()
    agg.add(day, "", "new memo")

    agg.flush(store.day_notes, "u1", MigrationReport())

    note = store.day_notes.find("u1", day)
    assert note.issue == "old issue"
    assert note.memo == "new memo"


def test_flush_records_failed_save_and_continues(monkeypatch):
    """A date whose save fails is reported; later dates are still written."""
    store = InMemoryStore()
    bad, good = date(2024, 3, 1), date(2024, 3, 2)
    agg = DayNoteAggregator()
    agg.add(bad, "server down", None)
    agg.add(good, "db slow", None)
    real_save = store.day_notes.save

    def save(note):
        if note.due_date == bad:
            raise OSError("db locked")
        real_save(note)

    monkeypatch.setattr(store.day_notes, "save", save)
    report = MigrationReport()

    written = agg.flush(store.day_notes, "u1", report)

    assert written == 1
    assert report.failures == ["Day note upsert failed (2024-03-01): db locked"]
    assert report.issues[0].kind == "record_parse"
    assert store.day_notes.find("u1", good).issue == "db slow"
