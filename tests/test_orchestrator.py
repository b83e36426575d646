"""End-to-end tests for archive import runs."""

import io
import zipfile
from datetime import date

import pytest

from worklog_migrator.adapters.fs_storage import FsBlobStorage
from worklog_migrator.adapters.memory_store import InMemoryStore
from worklog_migrator.import_migrate.orchestrator import (
    MigrationOrchestrator,
    load_report_json,
    save_report_json,
)

PAGE_ID = "0123456789abcdef0123456789abcdef"
PNG = b"\x89PNG\r\n\x1a\nfake"
LOG_CSV = "날짜,오늘의 업무,이슈,메모\n2024-03-01,deploy api,server down,call vendor\n"


def make_zip(files):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def sample_export():
    """A small export: CSV log, its _all duplicate, pages, an image and a nested ZIP."""
    nested = make_zip({"meeting.md": "# 회의록\n- 안건"})
    return make_zip({
        "log.csv": LOG_CSV,
        "log_all.csv": LOG_CSV,
        f"Plan {PAGE_ID}.md": "# Plan\n![diagram](diagram.png)",
        f"Plan {PAGE_ID}/diagram.png": PNG,
        "2024-03-01 retro.md": "retro notes",
        "more.zip": nested,
    })


@pytest.fixture
def migrator(tmp_path):
    """Orchestrator over an in-memory store and a temp blob directory."""
    store = InMemoryStore()
    blobs = FsBlobStorage(tmp_path / "files")
    return MigrationOrchestrator(store, blobs)


def test_full_import(migrator):
    """Every stage contributes to one report."""
    store = migrator.store

    report = migrator.import_archive("u1", sample_export(), "export.zip")

    assert report.failures == []
    assert report.persisted_items == 3
    assert report.persisted_files == 1
    assert len(report.manual_fix_hints) == 3
    assert "csv:export.zip/log.csv" in report.detected_patterns
    assert "csv-skip-all:export.zip/log_all.csv" in report.detected_patterns
    assert f"markdown:export.zip/Plan {PAGE_ID}.md" in report.detected_patterns
    assert "markdown:export.zip/more.zip/meeting.md" in report.detected_patterns

    by_title = {i.title: i for i in store.all_items()}
    assert set(by_title) == {"2024-03-01", "Plan", "회의록"}
    assert by_title["회의록"].template_type == "meeting"
    assert by_title["2024-03-01"].template_type == "worklog"

    # The dated page joined the spreadsheet row of the same day
    log_html = store.blocks.first_by_item(by_title["2024-03-01"].id).html
    assert "<hr/><h3>2024-03-01 retro</h3><p>retro notes</p>" in log_html

    [asset] = store.assets.find_by_item(by_title["Plan"].id)
    plan_html = store.blocks.first_by_item(by_title["Plan"].id).html
    assert f'src="/files/{asset.stored_name}"' in plan_html
    assert 'src="diagram.png"' not in plan_html

    note = store.day_notes.find("u1", date(2024, 3, 1))
    assert note.issue == "server down"
    assert note.memo == "call vendor"


def test_reimport_creates_new_items(migrator):
    """Importing the same archive twice does not deduplicate."""
    migrator.import_archive("u1", sample_export(), "export.zip")
    second = migrator.import_archive("u1", sample_export(), "export.zip")

    assert second.persisted_items == 3
    assert len(migrator.store.all_items()) == 6


def test_corrupt_upload(migrator):
    """A broken upload is reported, never raised."""
    report = migrator.import_archive("u1", b"not a zip", "bad.zip")

    assert report.persisted_items == 0
    assert len(report.failures) == 1
    assert report.failures[0].startswith("ZIP extraction failed (bad.zip)")


def test_blank_display_name(migrator):
    """Entries fall back to the default upload name."""
    report = migrator.import_archive("u1", make_zip({"a.md": "x"}), "  ")

    assert report.detected_patterns == ["markdown:upload.zip/a.md"]


def test_unexpected_error_aborts_but_keeps_items(migrator, monkeypatch):
    """An unexpected stage error ends the run; earlier items stay."""
    def explode(entries, ctx):
        raise RuntimeError("boom")

    monkeypatch.setattr(migrator.documents, "ingest_all", explode)

    report = migrator.import_archive("u1", sample_export(), "export.zip")

    assert report.failures == ["Import aborted: boom"]
    assert report.persisted_items == 1
    assert len(migrator.store.all_items()) == 1


def test_runs_do_not_share_state(migrator):
    """Each run gets its own context; pages from earlier runs are not parents."""
    migrator.import_archive("u1", make_zip({"Plan.md": "# Plan"}), "export.zip")
    migrator.import_archive("u1", make_zip({"Plan/child.md": "child"}), "export.zip")

    child = next(i for i in migrator.store.all_items() if i.title == "child")
    assert child.parent_id is None


def test_report_json_round_trip(migrator, tmp_path):
    """Reports survive a save/load cycle."""
    report = migrator.import_archive("u1", b"junk", "bad.zip")
    path = tmp_path / "report.json"

    save_report_json(report, path)
    loaded = load_report_json(path)

    assert loaded.failures == report.failures
    assert loaded.issues == report.issues
    assert loaded.to_dict() == report.to_dict()


def test_failed_day_note_save_does_not_abort(migrator, monkeypatch):
    """A day note that cannot be saved is reported; documents still import."""
    def locked(note):
        raise OSError("db locked")

    monkeypatch.setattr(migrator.store.day_notes, "save", locked)

    report = migrator.import_archive(
        "u1", make_zip({"log.csv": LOG_CSV, "Page.md": "# Page\nbody"}), "export.zip"
    )

    assert "Day note upsert failed (2024-03-01): db locked" in report.failures
    assert not any(f.startswith("Import aborted") for f in report.failures)
    assert [i.kind for i in report.issues] == ["record_parse"]
    assert "Page" in {i.title for i in migrator.store.all_items()}


def test_merged_section_image_is_rewritten(migrator):
    """An image referenced from a page folded into its parent points at stored bytes."""
    data = make_zip({
        "root/2024-03-01/sub.md": "# Sub\n![o](other.png)",
        "root/2024-03-01/sub/page.md": "![p](./photo.png)",
        "root/2024-03-01/sub/photo.png": PNG,
    })

    report = migrator.import_archive("u1", data, "e.zip")

    assert report.failures == []
    assert report.persisted_files == 1
    [item] = migrator.store.all_items()
    assert item.title == "Sub"
    [asset] = migrator.store.assets.find_by_item(item.id)
    html = migrator.store.blocks.first_by_item(item.id).html
    assert "<hr/><h3>page</h3>" in html
    assert f'src="/files/{asset.stored_name}"' in html
    assert "./photo.png" not in html
    assert 'src="other.png"' in html
