"""Import engine for legacy note-tool ZIP exports."""

from .errors import ArchiveReadError, AssetStoreError, MigrationError, RecordParseError
from .models import ImportContext, ImportLimits, MigrationReport
from .orchestrator import MigrationOrchestrator

__all__ = [
    "MigrationOrchestrator",
    "MigrationReport",
    "ImportContext",
    "ImportLimits",
    "MigrationError",
    "ArchiveReadError",
    "RecordParseError",
    "AssetStoreError",
]
