"""Markdown/HTML pages -> work items, or extra sections of existing items."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from ..core.dates import parse_flexible
from ..core.heuristics import Heuristics
from ..core.model import ArchiveEntry, ItemId, TemplateType, WorkItem
from ..core.ports import Store
from ..core.utils import extension, file_name, normalize_title, path_depth, strip_extension, to_posix
from ..render.markdown import first_heading, markdown_to_html
from ..render.sanitize import sanitize_html
from .blocks import append_section, persist_item
from .errors import Err, Ok, RecordParseError, Result, describe
from .models import ImportContext

logger = logging.getLogger(__name__)

KEYWORD_TEMPLATES = ("worklog", "meeting")
MARKDOWN_EXTENSIONS = frozenset({"md"})
HTML_EXTENSIONS = frozenset({"html", "htm"})

# A page two or more folders below a dated folder is folded into its parent.
# Legacy exports rely on this exact boundary.
MERGE_LEVEL_THRESHOLD = 2


@dataclass(frozen=True)
class DocumentOutcome:
    item_id: ItemId
    created: bool  # False when merged into a parent or anchor item


def is_document(path: str) -> bool:
    ext = extension(path)
    return ext in MARKDOWN_EXTENSIONS or ext in HTML_EXTENSIONS


def level_from_date(path: str) -> int:
    """
    Folder distance between a path's last segment and the first segment
    that reads as a date; 0 when no segment does. Archive names are ignored.

    Examples:
        >>> level_from_date("top.zip/2024-03-01/sub/page.md")
        2
        >>> level_from_date("top.zip/notes/page.md")
        0
    """
    if not path or not path.strip():
        return 0
    segments = [
        segment for segment in to_posix(path).split("/")
        if segment.strip() and not segment.lower().endswith(".zip")
    ]
    for index, segment in enumerate(segments):
        if parse_flexible(strip_extension(segment)) is not None:
            return max(0, len(segments) - 1 - index)
    return 0


def infer_template_type(text: str, heuristics: Heuristics) -> TemplateType:
    lower = text.lower()
    for template, keywords in heuristics.template_keywords.items():
        if template in KEYWORD_TEMPLATES and any(k.lower() in lower for k in keywords):
            return template  # type: ignore[return-value]
    return "free"


class DocumentIngester:
    def __init__(self, store: Store):
        self.store = store

    def ingest_all(self, entries: Iterable[ArchiveEntry], ctx: ImportContext) -> int:
        """
        Import documents shallowest first so a page is registered before
        anything inside its folder. Returns the number of items created.
        """
        docs = sorted((e for e in entries if is_document(e.path)), key=lambda e: path_depth(e.path))
        created = 0
        for entry in docs:
            outcome = ctx.report.record(self.ingest(entry, ctx))
            if outcome is not None and outcome.created:
                created += 1
        logger.info("Documents: %d seen, %d items created", len(docs), created)
        return created

    def render(self, entry: ArchiveEntry, text: str) -> str:
        if extension(entry.path) in MARKDOWN_EXTENSIONS:
            return markdown_to_html(text)
        return sanitize_html(text)

    def ingest(self, entry: ArchiveEntry, ctx: ImportContext) -> Result[DocumentOutcome | None]:
        is_markdown = extension(entry.path) in MARKDOWN_EXTENSIONS
        label = "Markdown" if is_markdown else "HTML"
        ctx.report.detected_patterns.append(f"{'markdown' if is_markdown else 'html'}:{entry.path}")

        parent_id = ctx.path_index.find_parent(entry.path)
        level = level_from_date(entry.path)
        placeholder = ctx.heuristics.placeholder_title

        try:
            text = entry.data.decode("utf-8", errors="replace")
            html = self.render(entry, text)
        except Exception as e:
            return Err(RecordParseError(f"{label} parse failed ({entry.path}): {describe(e)}", path=entry.path))

        if parent_id is not None and level >= MERGE_LEVEL_THRESHOLD:
            logger.debug("Merging %s into parent %s (level %d)", entry.path, parent_id, level)
            merged = self.merge(parent_id, entry.path, html, placeholder)
            if isinstance(merged, Err):
                return merged
            return Ok(None)

        try:
            heading = first_heading(text) if is_markdown else None
            if heading:
                title = normalize_title(heading, placeholder)
            else:
                title = normalize_title(strip_extension(file_name(entry.path)), placeholder)
            due_date = parse_flexible(f"{title} {entry.path}")

            if parent_id is None and due_date is not None:
                anchor = self.find_anchor(ctx, due_date)
                if anchor is not None:
                    logger.debug("Merging %s into anchor %s (%s)", entry.path, anchor.id, due_date)
                    merged = self.merge(anchor.id, entry.path, html, placeholder)
                    if isinstance(merged, Err):
                        return merged
                    ctx.path_index.register(entry.path, anchor.id, placeholder)
                    return Ok(DocumentOutcome(item_id=anchor.id, created=False))

            if due_date is None and parent_id is not None:
                parent = self.store.items.find_by_id(parent_id)
                due_date = parent.due_date if parent else None

            item = WorkItem(
                owner_id=ctx.owner_id,
                title=title,
                status="todo",
                template_type=infer_template_type(text, ctx.heuristics),
                parent_id=parent_id,
                due_date=due_date,
            )
            persist_item(self.store, item, {"html": html})
        except Exception as e:
            return Err(RecordParseError(f"{label} parse failed ({entry.path}): {describe(e)}", path=entry.path))

        ctx.path_index.register(entry.path, item.id, placeholder)
        logger.debug("Created item %s from %s", item.id, entry.path)
        return Ok(DocumentOutcome(item_id=item.id, created=True))

    def find_anchor(self, ctx: ImportContext, due_date: date) -> WorkItem | None:
        """Most recently updated item of this owner due the same day."""
        candidates = self.store.items.find_by_owner_and_due_date(ctx.owner_id, due_date)
        return candidates[0] if candidates else None

    def merge(self, item_id: ItemId, source_path: str, html: str, placeholder: str) -> Result[bool]:
        try:
            return Ok(append_section(self.store, item_id, source_path, html, placeholder))
        except Exception as e:
            message = f"Parent merge failed ({source_path}): {describe(e)}"
            return Err(RecordParseError(message, path=source_path))
