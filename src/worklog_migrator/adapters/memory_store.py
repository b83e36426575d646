"""Dictionary-backed repositories; used by tests and throwaway runs."""

import itertools
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Iterable

from ..core.model import AssetRecord, ContentBlock, DayNote, ItemId, OwnerId, WorkItem
from ..core.ports import IdGenerator
from .idgen import HexId


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryItemRepository:
    def __init__(self, idgen: IdGenerator):
        self.idgen = idgen
        self._rows: dict[ItemId, WorkItem] = {}
        self._touched: dict[ItemId, int] = {}
        self._clock = itertools.count()

    def save(self, item: WorkItem) -> WorkItem:
        now = _now()
        if not item.id:
            item.id = self.idgen.new_id()
            item.created_at = now
        item.updated_at = now
        self._rows[item.id] = replace(item)
        self._touched[item.id] = next(self._clock)
        return item

    def find_by_id(self, item_id: ItemId) -> WorkItem | None:
        row = self._rows.get(item_id)
        return replace(row) if row else None

    def _recent_first(self, rows: Iterable[WorkItem]) -> list[WorkItem]:
        # Save order breaks ties between equal timestamps
        ordered = sorted(rows, key=lambda r: self._touched[r.id], reverse=True)
        return [replace(r) for r in ordered]

    def find_by_parent(self, parent_id: ItemId) -> list[WorkItem]:
        return self._recent_first(r for r in self._rows.values() if r.parent_id == parent_id)

    def find_by_owner_and_due_date(self, owner_id: OwnerId, due_date: date) -> list[WorkItem]:
        return self._recent_first(
            r for r in self._rows.values() if r.owner_id == owner_id and r.due_date == due_date
        )

    def find_by_owner_between(self, owner_id: OwnerId, start: date, end: date) -> list[WorkItem]:
        rows = self._recent_first(
            r for r in self._rows.values()
            if r.owner_id == owner_id and r.due_date is not None and start <= r.due_date <= end
        )
        # Stable sort keeps recency order within a day
        return sorted(rows, key=lambda r: r.due_date, reverse=True)  # type: ignore[arg-type, return-value]

    def delete(self, item_id: ItemId) -> None:
        self._rows.pop(item_id, None)
        self._touched.pop(item_id, None)

    def all(self) -> list[WorkItem]:
        return [replace(r) for r in self._rows.values()]


class InMemoryBlockRepository:
    def __init__(self, idgen: IdGenerator):
        self.idgen = idgen
        self._rows: dict[str, ContentBlock] = {}

    def save(self, block: ContentBlock) -> ContentBlock:
        if not block.id:
            block.id = self.idgen.new_id()
        self._rows[block.id] = replace(block, content=dict(block.content))
        return block

    def find_by_item(self, item_id: ItemId) -> list[ContentBlock]:
        rows = [r for r in self._rows.values() if r.item_id == item_id]
        return [replace(r, content=dict(r.content)) for r in sorted(rows, key=lambda r: r.sort_order)]

    def first_by_item(self, item_id: ItemId) -> ContentBlock | None:
        rows = self.find_by_item(item_id)
        return rows[0] if rows else None

    def delete_by_item(self, item_id: ItemId) -> None:
        for key in [k for k, r in self._rows.items() if r.item_id == item_id]:
            del self._rows[key]


class InMemoryDayNoteRepository:
    def __init__(self, idgen: IdGenerator):
        self.idgen = idgen
        self._rows: dict[tuple[OwnerId, date], DayNote] = {}

    def save(self, note: DayNote) -> DayNote:
        if not note.id:
            note.id = self.idgen.new_id()
        note.updated_at = _now()
        self._rows[(note.owner_id, note.due_date)] = replace(note)
        return note

    def find(self, owner_id: OwnerId, due_date: date) -> DayNote | None:
        row = self._rows.get((owner_id, due_date))
        return replace(row) if row else None


class InMemoryAssetRepository:
    def __init__(self, idgen: IdGenerator):
        self.idgen = idgen
        self._rows: dict[str, AssetRecord] = {}

    def save(self, asset: AssetRecord) -> AssetRecord:
        if not asset.id:
            asset.id = self.idgen.new_id()
        self._rows[asset.id] = replace(asset)
        return asset

    def find_by_item(self, item_id: ItemId) -> list[AssetRecord]:
        return [replace(r) for r in self._rows.values() if r.item_id == item_id]

    def find_by_stored_name(self, stored_name: str) -> AssetRecord | None:
        for row in self._rows.values():
            if row.stored_name == stored_name:
                return replace(row)
        return None

    def delete_by_item(self, item_id: ItemId) -> None:
        for key in [k for k, r in self._rows.items() if r.item_id == item_id]:
            del self._rows[key]


class InMemoryStore:
    """All four collections behind one object, sharing an id generator."""

    def __init__(self, idgen: IdGenerator | None = None):
        idgen = idgen or HexId()
        self.items = InMemoryItemRepository(idgen)
        self.blocks = InMemoryBlockRepository(idgen)
        self.day_notes = InMemoryDayNoteRepository(idgen)
        self.assets = InMemoryAssetRepository(idgen)

    def all_items(self) -> list[WorkItem]:
        return self.items.all()
