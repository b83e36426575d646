"""HTML rendering for imported content."""

from .markdown import markdown_to_html
from .sanitize import SectionSummary, sanitize_html, summarize_html

__all__ = [
    "markdown_to_html",
    "sanitize_html",
    "summarize_html",
    "SectionSummary",
]
