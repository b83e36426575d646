"""Attach binary entries to the item whose folder holds them and relink
references to them inside item content."""

import logging
from typing import Iterable

from bs4 import BeautifulSoup

from ..core.model import ArchiveEntry, AssetRecord, ItemId
from ..core.ports import BlobStorage, Store
from ..core.utils import extension, file_name
from .errors import AssetStoreError, Err, Ok, Result, describe
from .models import ImportContext
from .path_index import RewriteMap

logger = logging.getLogger(__name__)

MIME_TYPES: dict[str, str] = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "csv": "text/csv",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}
ASSET_EXTENSIONS = frozenset(MIME_TYPES)
DEFAULT_MIME = "image/png"


def is_asset(path: str) -> bool:
    return extension(path) in ASSET_EXTENSIONS


def mime_for(path: str) -> str:
    return MIME_TYPES.get(extension(path), DEFAULT_MIME)


def rewrite_references(html: str, refs: dict[str, str]) -> tuple[str, bool]:
    """
    Point `img[src]` and `a[href]` at served URLs.

    Returns:
        Tuple of (html, changed); html is returned untouched when nothing matched
    """
    soup = BeautifulSoup(html, "html.parser")
    changed = False
    for tag, attr in (("img", "src"), ("a", "href")):
        for element in soup.find_all(tag, attrs={attr: True}):
            replacement = RewriteMap.resolve(str(element[attr]), refs)
            if replacement is not None and replacement != element[attr]:
                element[attr] = replacement
                changed = True
    return (soup.decode(), True) if changed else (html, False)


class AssetLinker:
    def __init__(self, store: Store, blobs: BlobStorage, url_prefix: str = "/files/"):
        self.store = store
        self.blobs = blobs
        self.url_prefix = url_prefix

    def link_all(self, entries: Iterable[ArchiveEntry], ctx: ImportContext) -> int:
        """Store every matched attachment; returns how many were stored."""
        stored = 0
        for entry in entries:
            if not is_asset(entry.path):
                continue
            item_id = ctx.path_index.best_match(entry.path)
            if item_id is None:
                logger.debug("No item folder holds %s; attachment dropped", entry.path)
                continue
            if ctx.report.record(self.link(entry, item_id, ctx)) is not None:
                stored += 1
        logger.info("Assets: %d stored", stored)
        return stored

    def link(self, entry: ArchiveEntry, item_id: ItemId, ctx: ImportContext) -> Result[AssetRecord]:
        original_name = file_name(entry.path)
        mime = mime_for(entry.path)
        try:
            stored_name = self.blobs.store(original_name, mime, entry.data)
            asset = self.store.assets.save(AssetRecord(
                owner_id=ctx.owner_id,
                item_id=item_id,
                original_name=original_name,
                stored_name=stored_name,
                mime_type=mime,
                size_bytes=len(entry.data),
            ))
        except Exception as e:
            message = f"File store failed ({entry.path}): {describe(e)}"
            return Err(AssetStoreError(message, path=entry.path))

        ctx.rewrites.register(item_id, entry.path, self.url_prefix + stored_name)
        return Ok(asset)

    def rewrite_all(self, ctx: ImportContext) -> int:
        """Relink references in every item that received attachments."""
        rewritten = 0
        for item_id, refs in ctx.rewrites.items():
            changed = ctx.report.record(self.rewrite_item(item_id, refs))
            if changed:
                rewritten += 1
        return rewritten

    def rewrite_item(self, item_id: ItemId, refs: dict[str, str]) -> Result[bool]:
        try:
            block = self.store.blocks.first_by_item(item_id)
            if block is None or not block.html.strip():
                return Ok(False)
            html, changed = rewrite_references(block.html, refs)
            if changed:
                block.content["html"] = html
                self.store.blocks.save(block)
            return Ok(changed)
        except Exception as e:
            return Err(AssetStoreError(f"Asset link rewrite failed (item {item_id}): {describe(e)}", path=item_id))
