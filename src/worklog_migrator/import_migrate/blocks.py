"""Primary-block persistence shared by the ingesters."""

from ..core.model import ContentBlock, ItemId, WorkItem
from ..core.ports import Store
from ..core.utils import escape_html, file_name, normalize_title, strip_extension


def persist_item(store: Store, item: WorkItem, content: dict[str, str] | None) -> WorkItem:
    """
    Save an item and, when `content` carries HTML, its primary block as one
    unit: if the block cannot be written the item is removed again.
    """
    store.items.save(item)
    if content is None or not content.get("html", "").strip():
        return item
    try:
        store.blocks.save(ContentBlock(item_id=item.id, content=content))
    except Exception:
        store.items.delete(item.id)
        raise
    return item


def section_for(source_path: str, html: str, placeholder: str) -> str:
    title = normalize_title(strip_extension(file_name(source_path)), placeholder)
    return f"<hr/><h3>{escape_html(title)}</h3>{html}"


def append_section(store: Store, item_id: ItemId, source_path: str, html: str, placeholder: str) -> bool:
    """
    Append a document's HTML to an item's primary block under an
    `<hr/><h3>name</h3>` separator, creating the block if needed.

    Returns False when there was nothing to append.
    """
    if not html or not html.strip():
        return False
    section = section_for(source_path, html, placeholder)
    block = store.blocks.first_by_item(item_id)
    if block is None:
        store.blocks.save(ContentBlock(item_id=item_id, content={"html": section}))
        return True
    block.content["html"] = block.html + section
    store.blocks.save(block)
    return True
