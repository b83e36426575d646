"""Sanitizing externally authored HTML and summarizing rendered blocks."""

import re
from dataclasses import dataclass
from typing import Mapping, Sequence

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, Declaration, Doctype, ProcessingInstruction

from ..core.heuristics import DEFAULT_HEURISTICS
from ..core.utils import short_text

# Relaxed text-formatting allowlist plus <hr>.
ALLOWED_TAGS: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "title"}),
    "b": frozenset(),
    "blockquote": frozenset({"cite"}),
    "br": frozenset(),
    "caption": frozenset(),
    "cite": frozenset(),
    "code": frozenset(),
    "col": frozenset({"span", "width"}),
    "colgroup": frozenset({"span", "width"}),
    "dd": frozenset(),
    "div": frozenset(),
    "dl": frozenset(),
    "dt": frozenset(),
    "em": frozenset(),
    "h1": frozenset(),
    "h2": frozenset(),
    "h3": frozenset(),
    "h4": frozenset(),
    "h5": frozenset(),
    "h6": frozenset(),
    "hr": frozenset(),
    "i": frozenset(),
    "img": frozenset({"align", "alt", "height", "src", "title", "width"}),
    "li": frozenset(),
    "ol": frozenset({"start", "type"}),
    "p": frozenset(),
    "pre": frozenset(),
    "q": frozenset({"cite"}),
    "small": frozenset(),
    "span": frozenset(),
    "strike": frozenset(),
    "strong": frozenset(),
    "sub": frozenset(),
    "sup": frozenset(),
    "table": frozenset({"summary", "width"}),
    "tbody": frozenset(),
    "td": frozenset({"abbr", "axis", "colspan", "rowspan", "width"}),
    "tfoot": frozenset(),
    "th": frozenset({"abbr", "axis", "colspan", "rowspan", "scope", "width"}),
    "thead": frozenset(),
    "tr": frozenset(),
    "u": frozenset(),
    "ul": frozenset({"type"}),
}

# Removed together with their content; any other unknown tag is unwrapped.
DROP_WITH_CONTENT = frozenset({"script", "style", "iframe", "object", "embed", "noscript", "template", "head", "title"})

URL_ATTRIBUTES = frozenset({"href", "src", "cite"})
SAFE_SCHEMES = frozenset({"http", "https", "mailto", "ftp"})
SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
# Browsers drop these anywhere in a URL before reading the scheme
URL_IGNORED_RE = re.compile(r"[\t\n\r]")
LEADING_CONTROLS = "".join(chr(c) for c in range(0x21))

MARKUP_NODES = (Comment, Declaration, Doctype, ProcessingInstruction)

CHECKLIST_MARKERS = ("[ ]", "[x]", "☐", "☑")
DONE_MARKERS = ("[x]", "☑")
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4"})


def _url_allowed(value: str) -> bool:
    # Relative references are kept so attachment links can be rewritten later.
    cleaned = URL_IGNORED_RE.sub("", value).lstrip(LEADING_CONTROLS)
    scheme = SCHEME_RE.match(cleaned)
    return scheme is None or scheme.group(1).lower() in SAFE_SCHEMES


def sanitize_html(html: str) -> str:
    """
    Reduce an HTML document or fragment to the body markup built from the
    allowlisted tags and attributes.

    Examples:
        >>> sanitize_html('<p onclick="x()">hi<script>bad()</script></p>')
        '<p>hi</p>'
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    for node in root.find_all(string=lambda s: isinstance(s, MARKUP_NODES)):
        node.extract()

    for tag in list(root.find_all(True)):
        if tag.decomposed:
            continue
        name = tag.name.lower()
        if name in DROP_WITH_CONTENT:
            tag.decompose()
            continue
        allowed = ALLOWED_TAGS.get(name)
        if allowed is None:
            tag.unwrap()
            continue
        tag.attrs = {
            attr: value
            for attr, value in tag.attrs.items()
            if attr in allowed
            and not (attr in URL_ATTRIBUTES and not _url_allowed(str(value)))
        }

    if root is soup:
        return soup.decode().strip()
    return root.decode_contents().strip()


@dataclass(frozen=True)
class SectionSummary:
    today_work: str = ""
    issue: str = ""
    memo: str = ""
    checklist_total: int = 0
    checklist_done: int = 0


def count_checklist(soup: BeautifulSoup) -> tuple[int, int]:
    """Count `<li>` items carrying checklist glyphs or bracket markers."""
    total = done = 0
    for li in soup.find_all("li"):
        text = li.get_text()
        if any(marker in text for marker in CHECKLIST_MARKERS):
            total += 1
            if any(marker in text for marker in DONE_MARKERS):
                done += 1
    return total, min(done, total)


def _bucket_for(heading: str, sections: Mapping[str, Sequence[str]]) -> str | None:
    heading = heading.lower()
    for bucket, keywords in sections.items():
        if any(keyword.lower() in heading for keyword in keywords):
            return bucket
    return None


def summarize_html(html: str, sections: Mapping[str, Sequence[str]] | None = None) -> SectionSummary:
    """
    Best-effort one-line summary of a rendered block.

    Top-level headings switch the collecting bucket (today / issue / memo)
    by keyword; text of the following blocks is joined with `` / `` until the
    next heading. Without any "today" text the first paragraph or list item
    is used instead.
    """
    if not html or not html.strip():
        return SectionSummary()

    if sections is None:
        sections = DEFAULT_HEURISTICS.summary_sections

    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup
    total, done = count_checklist(soup)

    collected: dict[str, list[str]] = {bucket: [] for bucket in sections}
    current: str | None = None
    for element in root.children:
        if not isinstance(element, Tag):
            continue
        text = element.get_text(" ", strip=True)
        if not text:
            continue
        if element.name in HEADING_TAGS:
            current = _bucket_for(text, sections)
            continue
        if current is not None:
            collected[current].append(text)

    today = short_text(" / ".join(collected.get("today", [])))
    issue = short_text(" / ".join(collected.get("issue", [])))
    memo = short_text(" / ".join(collected.get("memo", [])))

    if not today:
        first = root.find(["p", "li"])
        if first is not None:
            today = short_text(first.get_text(" ", strip=True))

    return SectionSummary(
        today_work=today,
        issue=issue,
        memo=memo,
        checklist_total=total,
        checklist_done=done,
    )
