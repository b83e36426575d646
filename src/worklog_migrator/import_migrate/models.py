"""Data models for an archive import run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..core.heuristics import DEFAULT_HEURISTICS, Heuristics
from ..core.model import OwnerId
from .daynotes import DayNoteAggregator
from .errors import Err, MigrationError, Result
from .path_index import PathIndex, RewriteMap


@dataclass
class ImportLimits:
    """Bounds on archive expansion for one run."""

    max_depth: int = 8  # nested archive levels below the uploaded one
    max_total_bytes: int = 512 * 1024 * 1024  # decompressed bytes, whole run
    max_entries: int = 50_000


@dataclass
class MigrationIssue:
    kind: str
    path: str
    message: str


@dataclass
class MigrationReport:
    """Outcome of one `import_archive` call."""

    detected_patterns: list[str] = field(default_factory=list)
    persisted_items: int = 0
    persisted_files: int = 0
    failures: list[str] = field(default_factory=list)
    manual_fix_hints: list[str] = field(default_factory=list)
    issues: list[MigrationIssue] = field(default_factory=list)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def add_failure(self, error: MigrationError) -> None:
        self.failures.append(error.message)
        self.issues.append(MigrationIssue(kind=error.kind, path=error.path, message=error.message))

    def record(self, result: Result[Any]) -> Any:
        """Fold a step result into the report; returns the value or None."""
        if isinstance(result, Err):
            self.add_failure(result.error)
            return None
        return result.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "detectedPatterns": list(self.detected_patterns),
            "persistedItems": self.persisted_items,
            "persistedFiles": self.persisted_files,
            "failures": list(self.failures),
            "manualFixHints": list(self.manual_fix_hints),
            "issues": [asdict(issue) for issue in self.issues],
            "startedAt": self.started_at,
        }


@dataclass
class ImportContext:
    """
    Mutable state of exactly one import run, handed to every stage.
    Discarded when the run ends.
    """

    owner_id: OwnerId
    report: MigrationReport = field(default_factory=MigrationReport)
    path_index: PathIndex = field(default_factory=PathIndex)
    rewrites: RewriteMap = field(default_factory=RewriteMap)
    day_notes: DayNoteAggregator = field(default_factory=DayNoteAggregator)
    heuristics: Heuristics = DEFAULT_HEURISTICS
    limits: ImportLimits = field(default_factory=ImportLimits)
