"""Path and text helpers shared by the importer stages."""

import re

TRAILING_PAGE_ID_RE = re.compile(r"\s+[0-9a-f]{32}$", re.IGNORECASE)
DEFAULT_PLACEHOLDER_TITLE = "Imported item"


def to_posix(path: str) -> str:
    return path.replace("\\", "/")


def file_name(path: str) -> str:
    """Last path segment. `a/b/c.md` -> `c.md`."""
    idx = path.rfind("/")
    return path if idx < 0 else path[idx + 1:]


def directory_path(path: str) -> str:
    """Everything before the last `/`, or "" for a bare name."""
    idx = path.rfind("/")
    return "" if idx < 0 else path[:idx]


def strip_extension(name: str) -> str:
    idx = name.rfind(".")
    return name if idx < 0 else name[:idx]


def extension(path: str) -> str:
    """Lower-cased extension without the dot ("" when absent)."""
    name = file_name(path).lower()
    idx = name.rfind(".")
    return "" if idx < 0 else name[idx + 1:]


def path_depth(path: str) -> int:
    return path.count("/")


def collapse_slashes(path: str) -> str:
    return re.sub(r"/+", "/", path)


def escape_html(raw: str) -> str:
    """
    Escape `&`, `<` and `>` only; quotes are left alone so rendered text
    matches what the legacy tool produced.
    """
    return raw.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def escape_attr(raw: str) -> str:
    return escape_html(raw).replace('"', "&quot;")


def normalize_title(raw: str | None, placeholder: str = DEFAULT_PLACEHOLDER_TITLE) -> str:
    """
    Strip the 32-hex page id the legacy exporter appends to names.

    Examples:
        >>> normalize_title("Weekly sync 0123456789abcdef0123456789abcdef")
        'Weekly sync'
        >>> normalize_title("   ")
        'Imported item'
    """
    if raw is None or not raw.strip():
        return placeholder
    cleaned = TRAILING_PAGE_ID_RE.sub("", raw.strip()).strip()
    return cleaned or placeholder


def first_non_blank(*values: str | None) -> str:
    for value in values:
        if value is not None and value.strip():
            return value
    return ""


def short_text(raw: str | None, limit: int = 120) -> str:
    """Collapse whitespace and cut to `limit` characters with a `...` tail."""
    if raw is None:
        return ""
    compact = re.sub(r"\s+", " ", raw).strip()
    return compact[:limit] + "..." if len(compact) > limit else compact
