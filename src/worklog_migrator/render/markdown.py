"""Line-oriented renderer for the Markdown dialect of the legacy exporter.

Only the subset the exporter emits is understood: fenced code, `#`..`###`
headings, dash rules, `-`/glyph bullets, `- [ ]`/`- [x]` checklists,
standalone images and inline code. Everything else becomes a paragraph.
"""

import re

from ..core.utils import escape_attr, escape_html

FENCE = "```"
RULE_RE = re.compile(r"^-{3,}$")
IMAGE_LINE_RE = re.compile(r"^!\[[^\]]*\]\(([^)]+)\)$")
WON_CODE_RE = re.compile(r"₩([^₩]{1,200})₩")
BACKTICK_CODE_RE = re.compile(r"`([^`]{1,300})`")

HEADINGS = (("### ", "h3"), ("## ", "h2"), ("# ", "h1"))
CHECKLIST_PREFIXES = {"- [ ] ": False, "- [x] ": True, "- [X] ": True}
BULLET_PREFIXES = ("- ", "▪️", "▪", "🔸")
CHECKED_GLYPH = "☑"
UNCHECKED_GLYPH = "☐"


def apply_inline_code(raw: str) -> str:
    """Escape a line and turn `₩code₩` / `` `code` `` spans into <code>."""
    escaped = escape_html(raw)
    escaped = WON_CODE_RE.sub(r"<code>\1</code>", escaped)
    return BACKTICK_CODE_RE.sub(r"<code>\1</code>", escaped)


class _Output:
    def __init__(self) -> None:
        self.parts: list[str] = []
        self.in_list = False

    def emit(self, html: str) -> None:
        self.parts.append(html)

    def open_list(self) -> None:
        if not self.in_list:
            self.parts.append("<ul>")
            self.in_list = True

    def close_list(self) -> None:
        if self.in_list:
            self.parts.append("</ul>")
            self.in_list = False


def markdown_to_html(markdown: str) -> str:
    """
    Render exporter Markdown to an HTML fragment.

    Examples:
        >>> markdown_to_html("# Title\\n- [x] done")
        '<h1>Title</h1><ul><li>☑ done</li></ul>'
    """
    out = _Output()
    in_code = False

    for raw in markdown.splitlines():
        line = raw.strip()

        if line.startswith(FENCE):
            out.close_list()
            out.emit("</code></pre>" if in_code else "<pre><code>")
            in_code = not in_code
            continue

        if in_code:
            out.emit(escape_html(raw) + "\n")
            continue

        if not line:
            out.close_list()
            continue

        if RULE_RE.match(line):
            out.close_list()
            out.emit("<hr/>")
            continue

        heading = _heading(line)
        if heading is not None:
            tag, text = heading
            out.close_list()
            out.emit(f"<{tag}>{apply_inline_code(text)}</{tag}>")
            continue

        checklist = _checklist(line)
        if checklist is not None:
            checked, text = checklist
            glyph = CHECKED_GLYPH if checked else UNCHECKED_GLYPH
            out.open_list()
            out.emit(f"<li>{glyph} {apply_inline_code(text)}</li>")
            continue

        bullet = _bullet(line)
        if bullet is not None:
            out.open_list()
            out.emit(f"<li>{apply_inline_code(bullet)}</li>")
            continue

        image = IMAGE_LINE_RE.match(line)
        if image:
            out.close_list()
            out.emit(f'<p><img src="{escape_attr(image.group(1).strip())}"/></p>')
            continue

        out.close_list()
        out.emit(f"<p>{apply_inline_code(line)}</p>")

    out.close_list()
    if in_code:
        out.emit("</code></pre>")
    return "".join(out.parts)


def _heading(line: str) -> tuple[str, str] | None:
    for prefix, tag in HEADINGS:
        if line.startswith(prefix):
            return tag, line[len(prefix):].strip()
    return None


def _checklist(line: str) -> tuple[bool, str] | None:
    for prefix, checked in CHECKLIST_PREFIXES.items():
        if line.startswith(prefix):
            return checked, line[len(prefix):].strip()
    return None


def _bullet(line: str) -> str | None:
    for prefix in BULLET_PREFIXES:
        if line.startswith(prefix):
            return line[len(prefix):].strip()
    return None


def first_heading(markdown: str) -> str | None:
    """Text of the first level-1 heading, if any."""
    for line in markdown.splitlines():
        trimmed = line.strip()
        if trimmed.startswith("# "):
            return trimmed[2:].strip()
    return None
