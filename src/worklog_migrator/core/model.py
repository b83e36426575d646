from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

ItemId = str
OwnerId = str

TemplateType = Literal["worklog", "meeting", "free"]


@dataclass(frozen=True)
class ArchiveEntry:
    """One file pulled out of an uploaded archive (nested archives flattened)."""

    path: str  # "<outer>.zip/<inner>.zip/dir/file.md"
    data: bytes = field(repr=False)

    @property
    def depth(self) -> int:
        return self.path.count("/")


@dataclass
class WorkItem:
    owner_id: OwnerId
    title: str
    status: str = "todo"
    template_type: TemplateType = "free"
    parent_id: ItemId | None = None
    due_date: date | None = None
    id: ItemId = ""  # assigned on first save
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ContentBlock:
    item_id: ItemId
    content: dict[str, str]  # {"html": ...} plus "issue"/"memo" for tabular rows
    sort_order: int = 0
    type: str = "paragraph"
    id: str = ""

    @property
    def html(self) -> str:
        return str(self.content.get("html", ""))


@dataclass
class DayNote:
    owner_id: OwnerId
    due_date: date
    issue: str = ""
    memo: str = ""
    id: str = ""
    updated_at: datetime | None = None


@dataclass
class AssetRecord:
    owner_id: OwnerId
    item_id: ItemId
    original_name: str
    stored_name: str
    mime_type: str
    size_bytes: int
    id: str = ""
