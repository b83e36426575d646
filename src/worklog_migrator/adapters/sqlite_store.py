"""SQLite-backed persistence for imported items, blocks, day notes and assets."""

import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from ..core.model import AssetRecord, ContentBlock, DayNote, ItemId, OwnerId, WorkItem
from ..core.ports import IdGenerator
from .idgen import HexId

SCHEMA = """
CREATE TABLE IF NOT EXISTS work_items (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    parent_id TEXT,
    title TEXT NOT NULL,
    status TEXT NOT NULL,
    template_type TEXT NOT NULL,
    due_date TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_items_owner_due ON work_items(owner_id, due_date);
CREATE INDEX IF NOT EXISTS idx_items_parent ON work_items(parent_id);

CREATE TABLE IF NOT EXISTS content_blocks (
    id TEXT PRIMARY KEY,
    item_id TEXT NOT NULL,
    sort_order INTEGER NOT NULL,
    type TEXT NOT NULL,
    content TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_blocks_item ON content_blocks(item_id, sort_order);

CREATE TABLE IF NOT EXISTS day_notes (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    due_date TEXT NOT NULL,
    issue TEXT NOT NULL DEFAULT '',
    memo TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL,
    UNIQUE (owner_id, due_date)
);

CREATE TABLE IF NOT EXISTS file_assets (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    item_id TEXT NOT NULL,
    original_name TEXT NOT NULL,
    stored_name TEXT NOT NULL,
    mime_type TEXT NOT NULL,
    size_bytes INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_assets_item ON file_assets(item_id);
CREATE INDEX IF NOT EXISTS idx_assets_stored ON file_assets(stored_name);
"""

ITEM_COLUMNS = "id, owner_id, parent_id, title, status, template_type, due_date, created_at, updated_at"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _date_or_none(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def _ts_or_none(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _item_from_row(row: tuple[Any, ...]) -> WorkItem:
    return WorkItem(
        id=row[0],
        owner_id=row[1],
        parent_id=row[2],
        title=row[3],
        status=row[4],
        template_type=row[5],
        due_date=_date_or_none(row[6]),
        created_at=_ts_or_none(row[7]),
        updated_at=_ts_or_none(row[8]),
    )


class _Table:
    def __init__(self, store: "SQLiteStore"):
        self.store = store

    def _conn(self) -> sqlite3.Connection:
        return self.store._conn()


class SQLiteItemRepository(_Table):
    def save(self, item: WorkItem) -> WorkItem:
        now = _now()
        if not item.id:
            item.id = self.store.idgen.new_id()
            item.created_at = now
        item.updated_at = now
        conn = self._conn()
        try:
            conn.execute(
                f"INSERT OR REPLACE INTO work_items ({ITEM_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    item.id,
                    item.owner_id,
                    item.parent_id,
                    item.title,
                    item.status,
                    item.template_type,
                    item.due_date.isoformat() if item.due_date else None,
                    (item.created_at or now).isoformat(),
                    now.isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return item

    def _query(self, sql: str, params: tuple[Any, ...]) -> list[WorkItem]:
        conn = self._conn()
        try:
            rows = conn.execute(f"SELECT {ITEM_COLUMNS} FROM work_items {sql}", params).fetchall()
        finally:
            conn.close()
        return [_item_from_row(r) for r in rows]

    def find_by_id(self, item_id: ItemId) -> WorkItem | None:
        rows = self._query("WHERE id = ?", (item_id,))
        return rows[0] if rows else None

    def find_by_parent(self, parent_id: ItemId) -> list[WorkItem]:
        return self._query("WHERE parent_id = ? ORDER BY updated_at DESC, rowid DESC", (parent_id,))

    def find_by_owner_and_due_date(self, owner_id: OwnerId, due_date: date) -> list[WorkItem]:
        return self._query(
            "WHERE owner_id = ? AND due_date = ? ORDER BY updated_at DESC, rowid DESC",
            (owner_id, due_date.isoformat()),
        )

    def find_by_owner_between(self, owner_id: OwnerId, start: date, end: date) -> list[WorkItem]:
        return self._query(
            "WHERE owner_id = ? AND due_date BETWEEN ? AND ? "
            "ORDER BY due_date DESC, updated_at DESC, rowid DESC",
            (owner_id, start.isoformat(), end.isoformat()),
        )

    def delete(self, item_id: ItemId) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM work_items WHERE id = ?", (item_id,))
            conn.commit()
        finally:
            conn.close()

    def all(self) -> list[WorkItem]:
        return self._query("ORDER BY rowid", ())


class SQLiteBlockRepository(_Table):
    def save(self, block: ContentBlock) -> ContentBlock:
        if not block.id:
            block.id = self.store.idgen.new_id()
        conn = self._conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO content_blocks (id, item_id, sort_order, type, content) "
                "VALUES (?, ?, ?, ?, ?)",
                (block.id, block.item_id, block.sort_order, block.type,
                 json.dumps(block.content, ensure_ascii=False)),
            )
            conn.commit()
        finally:
            conn.close()
        return block

    def find_by_item(self, item_id: ItemId) -> list[ContentBlock]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id, item_id, sort_order, type, content FROM content_blocks "
                "WHERE item_id = ? ORDER BY sort_order, rowid",
                (item_id,),
            ).fetchall()
        finally:
            conn.close()
        return [
            ContentBlock(id=r[0], item_id=r[1], sort_order=r[2], type=r[3], content=json.loads(r[4]))
            for r in rows
        ]

    def first_by_item(self, item_id: ItemId) -> ContentBlock | None:
        rows = self.find_by_item(item_id)
        return rows[0] if rows else None

    def delete_by_item(self, item_id: ItemId) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM content_blocks WHERE item_id = ?", (item_id,))
            conn.commit()
        finally:
            conn.close()


class SQLiteDayNoteRepository(_Table):
    def save(self, note: DayNote) -> DayNote:
        if not note.id:
            note.id = self.store.idgen.new_id()
        note.updated_at = _now()
        conn = self._conn()
        try:
            conn.execute(
                """
                INSERT INTO day_notes (id, owner_id, due_date, issue, memo, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(owner_id, due_date) DO UPDATE SET
                    issue = excluded.issue,
                    memo = excluded.memo,
                    updated_at = excluded.updated_at
                """,
                (note.id, note.owner_id, note.due_date.isoformat(), note.issue, note.memo,
                 note.updated_at.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()
        return note

    def find(self, owner_id: OwnerId, due_date: date) -> DayNote | None:
        conn = self._conn()
        try:
            row = conn.execute(
                "SELECT id, owner_id, due_date, issue, memo, updated_at FROM day_notes "
                "WHERE owner_id = ? AND due_date = ?",
                (owner_id, due_date.isoformat()),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return DayNote(
            id=row[0],
            owner_id=row[1],
            due_date=date.fromisoformat(row[2]),
            issue=row[3],
            memo=row[4],
            updated_at=_ts_or_none(row[5]),
        )


class SQLiteAssetRepository(_Table):
    def save(self, asset: AssetRecord) -> AssetRecord:
        if not asset.id:
            asset.id = self.store.idgen.new_id()
        conn = self._conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO file_assets "
                "(id, owner_id, item_id, original_name, stored_name, mime_type, size_bytes) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (asset.id, asset.owner_id, asset.item_id, asset.original_name,
                 asset.stored_name, asset.mime_type, asset.size_bytes),
            )
            conn.commit()
        finally:
            conn.close()
        return asset

    def _query(self, where: str, params: tuple[Any, ...]) -> list[AssetRecord]:
        conn = self._conn()
        try:
            rows = conn.execute(
                "SELECT id, owner_id, item_id, original_name, stored_name, mime_type, size_bytes "
                f"FROM file_assets {where}",
                params,
            ).fetchall()
        finally:
            conn.close()
        return [
            AssetRecord(id=r[0], owner_id=r[1], item_id=r[2], original_name=r[3],
                        stored_name=r[4], mime_type=r[5], size_bytes=r[6])
            for r in rows
        ]

    def find_by_item(self, item_id: ItemId) -> list[AssetRecord]:
        return self._query("WHERE item_id = ? ORDER BY rowid", (item_id,))

    def find_by_stored_name(self, stored_name: str) -> AssetRecord | None:
        rows = self._query("WHERE stored_name = ?", (stored_name,))
        return rows[0] if rows else None

    def delete_by_item(self, item_id: ItemId) -> None:
        conn = self._conn()
        try:
            conn.execute("DELETE FROM file_assets WHERE item_id = ?", (item_id,))
            conn.commit()
        finally:
            conn.close()


class SQLiteStore:
    """
    One database file holding every collection the importer writes.
    """

    def __init__(self, db_path: Path, idgen: IdGenerator | None = None):
        self.db_path = db_path
        self.idgen = idgen or HexId()
        self.items = SQLiteItemRepository(self)
        self.blocks = SQLiteBlockRepository(self)
        self.day_notes = SQLiteDayNoteRepository(self)
        self.assets = SQLiteAssetRepository(self)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        """Get a connection to the SQLite database."""
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _init_schema(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()

    def all_items(self) -> list[WorkItem]:
        return self.items.all()
