"""Configuration loader for worklog.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_NAME = "worklog.toml"


@dataclass
class StorageConfig:
    """Where imported records and attachment bytes live."""
    root: Path
    db: Path
    files_dir: Path
    files_url_prefix: str = "/files/"
    allowed_mime: frozenset[str] = field(default_factory=frozenset)


@dataclass
class LimitsConfig:
    """Archive expansion bounds per import run."""
    max_depth: int = 8
    max_total_bytes: int = 512 * 1024 * 1024
    max_entries: int = 50_000


@dataclass
class HeuristicsConfig:
    """Optional YAML overlay for the matching tables."""
    path: Path | None = None


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class MigratorConfig:
    """Complete worklog-migrator configuration."""
    storage: StorageConfig
    limits: LimitsConfig
    heuristics: HeuristicsConfig
    logging: LoggingConfig


def _limit(data: dict[str, Any], key: str, default: int, minimum: int = 1) -> int:
    value = data.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise ValueError(f"[limits] {key} must be an integer >= {minimum}, got {value!r}")
    return value


def load_config(config_path: Path | None = None, data_dir: Path | None = None) -> MigratorConfig:
    """
    Load configuration from worklog.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/worklog.toml
    3. data_dir/worklog.toml

    Args:
        config_path: Explicit path to config file
        data_dir: Storage root used for fallback search and as default root

    Returns:
        MigratorConfig with resolved settings

    Raises:
        ValueError: if the file is not valid TOML or a value has the wrong type
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if data_dir:
        search_paths.append(data_dir / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid config file {path}: {e}") from e
            break

    # Parse storage config
    storage_data = toml_data.get("storage", {})
    root = Path(storage_data.get("root", data_dir or Path("./data")))
    allowed = storage_data.get("allowed_mime", [])
    if not isinstance(allowed, list):
        raise ValueError("[storage] allowed_mime must be a list of MIME types")

    storage_config = StorageConfig(
        root=root,
        db=Path(storage_data.get("db", root / "worklog.sqlite")),
        files_dir=Path(storage_data.get("files_dir", root / "files")),
        files_url_prefix=str(storage_data.get("files_url_prefix", "/files/")),
        allowed_mime=frozenset(str(m) for m in allowed),
    )

    # Parse limits config
    limits_data = toml_data.get("limits", {})
    limits_config = LimitsConfig(
        max_depth=_limit(limits_data, "max_depth", 8, minimum=0),
        max_total_bytes=_limit(limits_data, "max_total_bytes", 512 * 1024 * 1024),
        max_entries=_limit(limits_data, "max_entries", 50_000),
    )

    # Parse heuristics config
    heuristics_data = toml_data.get("heuristics", {})
    heuristics_path = heuristics_data.get("path")
    heuristics_config = HeuristicsConfig(
        path=Path(heuristics_path) if heuristics_path else None
    )

    # Parse logging config
    logging_data = toml_data.get("logging", {})
    logging_config = LoggingConfig(
        level=str(logging_data.get("level", "WARNING")).upper()
    )

    return MigratorConfig(
        storage=storage_config,
        limits=limits_config,
        heuristics=heuristics_config,
        logging=logging_config,
    )
