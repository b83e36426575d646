"""Runtime wiring helper for CLI and API applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_storage import FsBlobStorage
from .adapters.idgen import HexId
from .adapters.sqlite_store import SQLiteStore
from .config import MigratorConfig, load_config
from .core.heuristics import Heuristics, load_heuristics
from .core.ports import BlobStorage, Store
from .import_migrate.models import ImportLimits
from .import_migrate.orchestrator import MigrationOrchestrator


@dataclass
class Runtime:
    """Container for all wired components."""
    store: Store
    blobs: BlobStorage
    heuristics: Heuristics
    migrator: MigrationOrchestrator
    config: MigratorConfig


def build_runtime(
    data_dir: Path | None = None,
    db_path: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a data directory."""
    config = load_config(config_path=config_path, data_dir=data_dir)

    # CLI args win over config values
    if db_path is not None:
        config.storage.db = db_path

    store = SQLiteStore(config.storage.db, idgen=HexId())
    blobs = FsBlobStorage(config.storage.files_dir, allowed_mime=config.storage.allowed_mime)
    heuristics = load_heuristics(config.heuristics.path)
    limits = ImportLimits(
        max_depth=config.limits.max_depth,
        max_total_bytes=config.limits.max_total_bytes,
        max_entries=config.limits.max_entries,
    )
    migrator = MigrationOrchestrator(
        store,
        blobs,
        heuristics=heuristics,
        limits=limits,
        files_url_prefix=config.storage.files_url_prefix,
    )

    return Runtime(
        store=store,
        blobs=blobs,
        heuristics=heuristics,
        migrator=migrator,
        config=config,
    )
