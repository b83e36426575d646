"""Tests for HTML sanitizing and section summaries."""

from worklog_migrator.render.sanitize import sanitize_html, summarize_html


def test_scripts_and_handlers_removed():
    """Script content and event handler attributes are dropped."""
    assert sanitize_html('<p onclick="x()">hi<script>bad()</script></p>') == "<p>hi</p>"


def test_full_document_reduced_to_body():
    """Head content is dropped and the body markup is returned."""
    html = "<html><head><title>T</title><style>p{}</style></head><body><h1>Hi</h1></body></html>"

    assert sanitize_html(html) == "<h1>Hi</h1>"


def test_unsafe_url_dropped_relative_kept():
    """javascript: URLs go; relative attachment references stay."""
    out = sanitize_html('<a href="javascript:alert(1)">x</a><img src="./photo.png" onerror="y()">')

    assert "javascript" not in out
    assert "<a>x</a>" in out
    assert 'src="./photo.png"' in out
    assert "onerror" not in out


def test_unsafe_scheme_split_by_whitespace_dropped():
    """Tabs, newlines and leading controls cannot hide a javascript: scheme."""
    out = sanitize_html(
        '<a href="java&#9;script:alert(1)">x</a>'
        '<img src="jav&#x0A;ascript:alert(2)">'
        '<a href="&#1;&#32;javascript:alert(3)">y</a>'
    )

    assert "script:alert" not in out
    assert "<a>x</a>" in out
    assert "<a>y</a>" in out
    assert "src=" not in out


def test_unknown_tags_unwrapped_comments_removed():
    """Unknown containers keep their children; comments disappear."""
    out = sanitize_html("<!-- note --><section><p>a</p></section>")

    assert out == "<p>a</p>"


def test_summary_sections():
    """Headings switch the bucket that following text goes to."""
    html = (
        "<h3>요청내용</h3><p>deploy api</p><p>review</p>"
        "<h3>이슈</h3><p>db slow</p>"
        "<h3>메모</h3><p>call vendor</p>"
    )

    summary = summarize_html(html)

    assert summary.today_work == "deploy api / review"
    assert summary.issue == "db slow"
    assert summary.memo == "call vendor"


def test_summary_headings_ignore_case():
    """English section headings match regardless of case."""
    summary = summarize_html("<h2>Work</h2><p>ship it</p><h2>ISSUE</h2><p>flaky ci</p><h2>Memo</h2><p>ask ops</p>")

    assert summary.today_work == "ship it"
    assert summary.issue == "flaky ci"
    assert summary.memo == "ask ops"


def test_summary_fallback_and_checklist():
    """Without a today section the first list item is used."""
    summary = summarize_html("<ul><li>☑ done</li><li>☐ todo</li><li>plain</li></ul>")

    assert summary.today_work == "☑ done"
    assert summary.checklist_total == 2
    assert summary.checklist_done == 1


def test_summary_empty():
    """Blank HTML gives an empty summary."""
    summary = summarize_html("  ")

    assert summary.today_work == ""
    assert summary.checklist_total == 0
