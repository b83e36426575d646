"""Tests for the exporter Markdown renderer."""

from worklog_migrator.render.markdown import apply_inline_code, first_heading, markdown_to_html


def test_heading_and_checklist():
    """Headings and checklist lines render with glyphs inside one list."""
    html = markdown_to_html("# Title\n- [x] done\n- [ ] todo")

    assert html == "<h1>Title</h1><ul><li>☑ done</li><li>☐ todo</li></ul>"


def test_heading_levels():
    """Up to three heading levels are recognised."""
    html = markdown_to_html("# A\n## B\n### C\n#### D")

    assert html == "<h1>A</h1><h2>B</h2><h3>C</h3><p>#### D</p>"


def test_glyph_bullets():
    """Dash and glyph bullets all become list items."""
    html = markdown_to_html("- one\n▪️ two\n🔸 three")

    assert html == "<ul><li>one</li><li>two</li><li>three</li></ul>"


def test_blank_line_closes_list():
    """A blank line ends the current list."""
    html = markdown_to_html("- a\n\n- b")

    assert html == "<ul><li>a</li></ul><ul><li>b</li></ul>"


def test_rule_and_paragraph():
    """Dash rules become <hr/>; plain lines become paragraphs."""
    html = markdown_to_html("first\n---\nsecond")

    assert html == "<p>first</p><hr/><p>second</p>"


def test_fenced_code_is_escaped():
    """Fenced code keeps raw lines, escaped, and is closed at end of input."""
    html = markdown_to_html("```\n<b>x</b>\n```\nafter")
    assert html == "<pre><code>&lt;b&gt;x&lt;/b&gt;\n</code></pre><p>after</p>"

    unterminated = markdown_to_html("```\ncode")
    assert unterminated == "<pre><code>code\n</code></pre>"


def test_image_line():
    """A line holding only an image becomes an <img> paragraph."""
    html = markdown_to_html("![shot](./photo.png)")

    assert html == '<p><img src="./photo.png"/></p>'


def test_inline_code_spans():
    """Backtick and won-sign spans both become <code>."""
    assert apply_inline_code("run `ls -l` now") == "run <code>ls -l</code> now"
    assert apply_inline_code("₩select 1₩") == "<code>select 1</code>"


def test_text_is_escaped():
    """Markup in text lines is escaped."""
    assert markdown_to_html("a < b & c") == "<p>a &lt; b &amp; c</p>"


def test_first_heading():
    """Only a level-1 heading counts."""
    assert first_heading("intro\n## Sub\n# Main\n# Second") == "Main"
    assert first_heading("no heading here") is None
