"""Flatten an uploaded ZIP (and any ZIPs inside it) into archive entries."""

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass, field

from ..core.model import ArchiveEntry
from ..core.utils import to_posix
from .errors import ArchiveReadError, describe
from .models import ImportLimits

logger = logging.getLogger(__name__)

UTF8_NAME_FLAG = 0x800
ENCRYPTED_FLAG = 0x1
READ_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError,
               NotImplementedError, RuntimeError, ValueError)


@dataclass
class WalkResult:
    entries: list[ArchiveEntry] = field(default_factory=list)
    errors: list[ArchiveReadError] = field(default_factory=list)


@dataclass
class _Budget:
    bytes_left: int
    entries_left: int


class _LimitReached(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.entries: list[ArchiveEntry] = []


def safe_name(name: str | None, fallback: str = "upload.zip") -> str:
    if name is None or not name.strip():
        return fallback
    return to_posix(name.strip())


def _entry_name(info: zipfile.ZipInfo) -> str:
    name = info.filename
    if not info.flag_bits & UTF8_NAME_FLAG:
        # Legacy tools write UTF-8 names without setting the flag
        try:
            name = name.encode("cp437").decode("utf-8")
        except (UnicodeEncodeError, UnicodeDecodeError):
            pass
    return to_posix(name)


def walk_archive(data: bytes, display_name: str, limits: ImportLimits | None = None) -> WalkResult:
    """
    Read every file of a ZIP, recursing into `.zip` members.

    Entry paths are `<display_name>/<member>`; a nested archive's members get
    the nested archive's full path as prefix. A corrupt or encrypted archive
    contributes nothing and records one error; its siblings are unaffected.
    Archives nested deeper than `limits.max_depth` are skipped with an error.
    Once the run's byte or entry budget is used up extraction stops, keeping
    what was already read.

    Args:
        data: Raw bytes of the uploaded archive
        display_name: Name used as the first path segment
        limits: Depth/size bounds (defaults when None)

    Returns:
        WalkResult with entries in archive order and the errors met on the way
    """
    limits = limits or ImportLimits()
    result = WalkResult()
    budget = _Budget(bytes_left=limits.max_total_bytes, entries_left=limits.max_entries)
    name = safe_name(display_name)

    try:
        result.entries = _walk(data, name, 0, limits, budget, result.errors)
    except _LimitReached as e:
        result.entries = e.entries
        result.errors.append(ArchiveReadError(str(e), path=name))
        logger.warning("%s", e)

    logger.info("Walked %s: %d entries, %d errors", name, len(result.entries), len(result.errors))
    return result


def _walk(
    data: bytes,
    name: str,
    depth: int,
    limits: ImportLimits,
    budget: _Budget,
    errors: list[ArchiveReadError],
) -> list[ArchiveEntry]:
    out: list[ArchiveEntry] = []
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                member = _entry_name(info)
                if info.is_dir() or member.endswith("/"):
                    continue
                path = f"{name}/{member}"
                if info.flag_bits & ENCRYPTED_FLAG:
                    raise ArchiveReadError(f"encrypted entry {member} is not supported", path=name)

                payload = _read_member(zf, info, path, budget)

                if path.lower().endswith(".zip"):
                    if depth + 1 > limits.max_depth:
                        message = f"ZIP nesting too deep ({path}): limit is {limits.max_depth} levels"
                        errors.append(ArchiveReadError(message, path=path))
                        logger.warning("%s", message)
                        continue
                    try:
                        out.extend(_walk(payload, path, depth + 1, limits, budget, errors))
                    except _LimitReached as e:
                        e.entries = out + e.entries
                        raise
                else:
                    budget.entries_left -= 1
                    if budget.entries_left < 0:
                        e = _LimitReached(f"Archive entry limit reached at {path}: {limits.max_entries} files")
                        e.entries = out
                        raise e
                    out.append(ArchiveEntry(path=path, data=payload))
                    logger.debug("Extracted %s (%d bytes)", path, len(payload))
    except _LimitReached as e:
        if not e.entries:
            e.entries = out
        raise
    except ArchiveReadError as e:
        message = f"ZIP extraction failed ({name}): {e.message}"
        errors.append(ArchiveReadError(message, path=name))
        logger.warning("%s", message)
        return []
    except READ_ERRORS as e:
        message = f"ZIP extraction failed ({name}): {describe(e)}"
        errors.append(ArchiveReadError(message, path=name))
        logger.warning("%s", message)
        return []
    return out


def _read_member(zf: zipfile.ZipFile, info: zipfile.ZipInfo, path: str, budget: _Budget) -> bytes:
    if info.file_size > budget.bytes_left:
        raise _LimitReached(f"Archive size limit reached at {path}: decompressed budget exhausted")
    with zf.open(info) as fh:
        # Declared sizes can lie; never read past the budget
        payload = fh.read(budget.bytes_left + 1)
    if len(payload) > budget.bytes_left:
        raise _LimitReached(f"Archive size limit reached at {path}: decompressed budget exhausted")
    budget.bytes_left -= len(payload)
    return payload
