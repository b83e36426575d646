"""Keyword and alias tables consulted by the importer.

The defaults ship as ``data/heuristics.yaml``; a deployment can overlay its
own YAML file (top-level keys replace the packaged ones).
"""

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

_REQUIRED_COLUMNS = ("date", "work", "issue", "memo", "title")


@dataclass(frozen=True)
class Heuristics:
    columns: dict[str, tuple[str, ...]]
    template_keywords: dict[str, tuple[str, ...]]
    summary_sections: dict[str, tuple[str, ...]]
    row_sections: dict[str, str]
    placeholder_title: str
    skip_csv_suffixes: tuple[str, ...]
    manual_fix_hints: tuple[str, ...]

    def column_aliases(self, role: str) -> tuple[str, ...]:
        return self.columns.get(role, ())


def _as_tuple(value: Any, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise ValueError(f"Heuristics key '{key}' must be a list of strings")
    return tuple(str(v) for v in value)


def _as_table(data: Any, key: str) -> dict[str, tuple[str, ...]]:
    if not isinstance(data, dict):
        raise ValueError(f"Heuristics key '{key}' must be a mapping")
    # YAML mappings keep file order; template and bucket priority relies on it.
    return {str(k): _as_tuple(v, f"{key}.{k}") for k, v in data.items()}


def _read_default() -> dict[str, Any]:
    text = resources.files("worklog_migrator").joinpath("data/heuristics.yaml").read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def load_heuristics(override_path: Path | None = None) -> Heuristics:
    """
    Load the packaged tables, optionally overlaid by a user YAML file.

    Raises:
        ValueError: if the YAML is malformed or a table has the wrong shape.
    """
    data = _read_default()

    if override_path is not None:
        try:
            override = yaml.safe_load(override_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid heuristics file {override_path}: {e}") from e
        if override is not None and not isinstance(override, dict):
            raise ValueError(f"Invalid heuristics file {override_path}: top level must be a mapping")
        data.update(override or {})

    columns = _as_table(data.get("columns", {}), "columns")
    missing = [role for role in _REQUIRED_COLUMNS if role not in columns]
    if missing:
        raise ValueError(f"Heuristics 'columns' is missing roles: {', '.join(missing)}")

    row_sections = data.get("row_sections", {})
    if not isinstance(row_sections, dict):
        raise ValueError("Heuristics key 'row_sections' must be a mapping")

    return Heuristics(
        columns=columns,
        template_keywords=_as_table(data.get("template_keywords", {}), "template_keywords"),
        summary_sections=_as_table(data.get("summary_sections", {}), "summary_sections"),
        row_sections={str(k): str(v) for k, v in row_sections.items()},
        placeholder_title=str(data.get("placeholder_title") or "Imported item"),
        skip_csv_suffixes=_as_tuple(data.get("skip_csv_suffixes", []), "skip_csv_suffixes"),
        manual_fix_hints=_as_tuple(data.get("manual_fix_hints", []), "manual_fix_hints"),
    )


DEFAULT_HEURISTICS = load_heuristics()
