from datetime import date
from typing import Protocol, Iterable

from .model import AssetRecord, ContentBlock, DayNote, ItemId, OwnerId, WorkItem


class BlobStorage(Protocol):
    """
    Opaque binary store for uploaded attachments.
    """

    def store(self, original_name: str, mime_type: str, data: bytes) -> str:
        """Persist bytes and return the stored reference (file name)."""
        pass

    def load(self, stored_name: str) -> bytes:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> str:
        pass


class ItemRepository(Protocol):
    """
    Work items. `save` assigns id/timestamps on first insert and bumps
    `updated_at` on every call.
    """

    def save(self, item: WorkItem) -> WorkItem:
        pass

    def find_by_id(self, item_id: ItemId) -> WorkItem | None:
        pass

    def find_by_parent(self, parent_id: ItemId) -> list[WorkItem]:
        pass

    def find_by_owner_and_due_date(self, owner_id: OwnerId, due_date: date) -> list[WorkItem]:
        """Most recently updated first."""
        pass

    def find_by_owner_between(self, owner_id: OwnerId, start: date, end: date) -> list[WorkItem]:
        """Due date descending, then most recently updated first."""
        pass

    def delete(self, item_id: ItemId) -> None:
        pass


class BlockRepository(Protocol):
    def save(self, block: ContentBlock) -> ContentBlock:
        pass

    def find_by_item(self, item_id: ItemId) -> list[ContentBlock]:
        """Ordered by sort order."""
        pass

    def first_by_item(self, item_id: ItemId) -> ContentBlock | None:
        pass

    def delete_by_item(self, item_id: ItemId) -> None:
        pass


class DayNoteRepository(Protocol):
    def save(self, note: DayNote) -> DayNote:
        pass

    def find(self, owner_id: OwnerId, due_date: date) -> DayNote | None:
        pass


class AssetRepository(Protocol):
    def save(self, asset: AssetRecord) -> AssetRecord:
        pass

    def find_by_item(self, item_id: ItemId) -> list[AssetRecord]:
        pass

    def find_by_stored_name(self, stored_name: str) -> AssetRecord | None:
        pass

    def delete_by_item(self, item_id: ItemId) -> None:
        pass


class Store(Protocol):
    """
    Bundle of the four persistence collections the importer writes to.
    """

    items: ItemRepository
    blocks: BlockRepository
    day_notes: DayNoteRepository
    assets: AssetRepository

    def all_items(self) -> Iterable[WorkItem]:
        pass
