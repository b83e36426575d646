"""Error kinds and step results for the import pipeline.

Every stage step returns ``Ok(value)`` or ``Err(error)``; the orchestrator
folds the ``Err`` values into the report and keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class MigrationError(Exception):
    """Base class; `message` is what ends up in the report."""

    kind = "migration"

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.message = message
        self.path = path


class ArchiveReadError(MigrationError):
    """A ZIP (at any nesting level) or a CSV stream could not be read."""

    kind = "archive_read"


class RecordParseError(MigrationError):
    """One CSV row or one document could not be turned into content."""

    kind = "record_parse"


class AssetStoreError(MigrationError):
    """An attachment could not be stored, recorded or linked."""

    kind = "asset_store"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: MigrationError


Result = Union[Ok[T], Err]


def describe(exc: BaseException) -> str:
    """Short text for an unexpected exception."""
    text = str(exc)
    return text if text else type(exc).__name__
