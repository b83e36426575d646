"""Run one archive import end to end and report on it."""

import json
import logging
from pathlib import Path

from ..core.heuristics import DEFAULT_HEURISTICS, Heuristics
from ..core.model import OwnerId
from ..core.ports import BlobStorage, Store
from ..core.utils import file_name
from .archive import safe_name, walk_archive
from .assets import AssetLinker
from .documents import DocumentIngester
from .errors import MigrationError, describe
from .models import ImportContext, ImportLimits, MigrationIssue, MigrationReport
from .tabular import TabularIngester

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Sequences the stages of an import:

    walk archive -> CSV logs -> day notes -> documents (shallowest first)
    -> attachments -> link rewriting.

    Each call builds a fresh ImportContext; nothing is shared between calls.
    """

    def __init__(
        self,
        store: Store,
        blobs: BlobStorage,
        heuristics: Heuristics = DEFAULT_HEURISTICS,
        limits: ImportLimits | None = None,
        files_url_prefix: str = "/files/",
    ):
        self.store = store
        self.blobs = blobs
        self.heuristics = heuristics
        self.limits = limits or ImportLimits()
        self.tabular = TabularIngester(store)
        self.documents = DocumentIngester(store)
        self.assets = AssetLinker(store, blobs, url_prefix=files_url_prefix)

    def new_context(self, owner_id: OwnerId) -> ImportContext:
        ctx = ImportContext(owner_id=owner_id, heuristics=self.heuristics, limits=self.limits)
        ctx.report.manual_fix_hints = list(self.heuristics.manual_fix_hints)
        return ctx

    def import_archive(self, owner_id: OwnerId, data: bytes, display_name: str | None = None) -> MigrationReport:
        """
        Import an uploaded archive for `owner_id`.

        Never raises for bad input: every problem ends up in
        `report.failures`. Items written before a failure are kept.

        Args:
            owner_id: Owner of every created record
            data: Raw bytes of the uploaded ZIP
            display_name: Upload file name; first segment of every entry path

        Returns:
            MigrationReport for this run
        """
        ctx = self.new_context(owner_id)
        report = ctx.report
        name = safe_name(display_name)

        try:
            walked = walk_archive(data, name, ctx.limits)
            for error in walked.errors:
                report.add_failure(error)
            entries = walked.entries

            for entry in entries:
                if not entry.path.lower().endswith(".csv"):
                    continue
                if self.tabular.is_duplicate_view(entry, ctx):
                    report.detected_patterns.append(f"csv-skip-all:{entry.path}")
                    logger.debug("Skipping duplicate database view %s", file_name(entry.path))
                    continue
                report.detected_patterns.append(f"csv:{entry.path}")
                report.persisted_items += self.tabular.ingest(entry, ctx)

            written = ctx.day_notes.flush(self.store.day_notes, owner_id, report)
            logger.info("Day notes written: %d", written)

            report.persisted_items += self.documents.ingest_all(entries, ctx)
            report.persisted_files += self.assets.link_all(entries, ctx)
            self.assets.rewrite_all(ctx)
        except Exception as e:
            logger.exception("Import of %s aborted", name)
            report.add_failure(MigrationError(f"Import aborted: {describe(e)}", path=name))

        for failure in report.failures:
            logger.warning("%s", failure)
        logger.info(
            "Imported %s for %s: %d items, %d files, %d failures",
            name, owner_id, report.persisted_items, report.persisted_files, len(report.failures),
        )
        return report


def save_report_json(report: MigrationReport, output_path: Path) -> None:
    """Save report to JSON file."""
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)


def load_report_json(input_path: Path) -> MigrationReport:
    """Load report from JSON file."""
    with input_path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    report = MigrationReport(
        detected_patterns=data.get("detectedPatterns", []),
        persisted_items=data.get("persistedItems", 0),
        persisted_files=data.get("persistedFiles", 0),
        failures=data.get("failures", []),
        manual_fix_hints=data.get("manualFixHints", []),
        started_at=data.get("startedAt", ""),
    )
    for issue in data.get("issues", []):
        report.issues.append(MigrationIssue(
            kind=issue["kind"],
            path=issue.get("path", ""),
            message=issue["message"],
        ))
    return report
