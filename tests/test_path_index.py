"""Tests for folder and attachment lookup tables."""

from worklog_migrator.import_migrate.path_index import PathIndex, RewriteMap

PAGE_ID = "0123456789abcdef0123456789abcdef"


def test_register_both_folder_spellings():
    """A page registers its stem folder and its id-less folder."""
    index = PathIndex()

    keys = index.register(f"up.zip/Team/Weekly {PAGE_ID}.md", "item-1")

    assert keys == [f"up.zip/Team/Weekly {PAGE_ID}", "up.zip/Team/Weekly"]
    assert index.get("up.zip/Team/Weekly") == "item-1"
    assert f"up.zip/Team/Weekly {PAGE_ID}" in index
    assert len(index) == 2


def test_find_parent_walks_up():
    """The nearest registered ancestor folder wins."""
    index = PathIndex()
    index.register("up.zip/Team.md", "team")
    index.register("up.zip/Team/Weekly.md", "weekly")

    assert index.find_parent("up.zip/Team/Weekly/Day/page.md") == "weekly"
    assert index.find_parent("up.zip/Team/other.md") == "team"
    assert index.find_parent("up.zip/Elsewhere/page.md") is None


def test_best_match_longest_strict_prefix():
    """Attachments go to the deepest folder that strictly contains them."""
    index = PathIndex()
    index.register_folder("up.zip/Team", "team")
    index.register_folder("up.zip/Team/Weekly", "weekly")

    assert index.best_match("up.zip/Team/Weekly/photo.png") == "weekly"
    assert index.best_match("up.zip/Team/photo.png") == "team"
    assert index.best_match("up.zip/Teamwork/photo.png") is None
    assert index.best_match("up.zip/Team") is None


def test_rewrite_map_spellings():
    """Name, ./name and full path all resolve to the same URL."""
    refs = RewriteMap()
    refs.register("item-1", "up.zip/Team/photo.png", "/files/abc.png")

    table = refs.for_item("item-1")
    assert RewriteMap.resolve("photo.png", table) == "/files/abc.png"
    assert RewriteMap.resolve("./photo.png", table) == "/files/abc.png"
    assert RewriteMap.resolve("up.zip/Team/photo.png", table) == "/files/abc.png"
    assert RewriteMap.resolve("Team/photo.png", table) == "/files/abc.png"
    assert RewriteMap.resolve("other.png", table) is None
    assert RewriteMap.resolve("", table) is None
    assert refs.items() == [("item-1", table)]
    assert refs.for_item("missing") == {}
