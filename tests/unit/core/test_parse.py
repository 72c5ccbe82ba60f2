"""Unit tests for core/parse.py"""

from sitepub.core.parse import (
    discover_files, extract_first_h1, extract_headings, extract_image_paths, read_import_file, scan_import_files,
)


def test_extract_first_h1():
    assert extract_first_h1("intro\n\n# Title Here\n\n## Sub\n") == "Title Here"


def test_extract_first_h1_missing():
    assert extract_first_h1("## Only a subheading\n") == ""


def test_extract_headings_levels_and_ids():
    headings = extract_headings("# One\n\ntext\n\n### Three Things ###\n\n####### too deep\n")
    assert [(h.level, h.text, h.id) for h in headings] == [(1, "One", "one"), (3, "Three Things", "three-things")]


def test_extract_image_paths_markdown_and_html():
    """Local images are returned relative to images/, in order, deduplicated."""
    body = (
        "![a](/images/blog/a.png)\n"
        '<img src="/images/b.jpg" alt="b">\n'
        "![remote](https://example.com/c.png)\n"
        "![again](/images/blog/a.png)\n"
    )
    assert extract_image_paths(body) == ["blog/a.png", "b.jpg"]


def test_discover_files_single(tmp_path):
    f = tmp_path / "doc.md"
    f.write_text("# Hello")
    assert discover_files(f) == [f]


def test_discover_files_non_md_skipped(tmp_path):
    (tmp_path / "notes.txt").write_text("text")
    assert discover_files(tmp_path) == []


def test_discover_files_dir_recursive(tmp_path):
    (tmp_path / "a.md").write_text("a")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "b.md").write_text("b")
    assert discover_files(tmp_path) == [tmp_path / "a.md", sub / "b.md"]


def test_read_import_file_title_precedence(tmp_path):
    """Frontmatter title wins, then the first H1, then the file stem."""
    with_fm = tmp_path / "one.md"
    with_fm.write_text("---\ntitle: From FM\n---\n# From H1\n")
    with_h1 = tmp_path / "two.md"
    with_h1.write_text("# From H1\n\nbody\n")
    bare = tmp_path / "three.md"
    bare.write_text("just text\n")

    assert read_import_file(with_fm).title == "From FM"
    assert read_import_file(with_h1).title == "From H1"
    assert read_import_file(bare).title == "three"


def test_read_import_file_fields(tmp_path):
    f = tmp_path / "post.md"
    f.write_text("---\ntitle: T\ndraft: false\n---\nBody\n")
    imported = read_import_file(f)
    assert imported.frontmatter == {"title": "T", "draft": "false"}
    assert imported.body == "Body\n"
    assert imported.name == "post.md"
    assert len(imported.hash) == 64
    assert imported.mtime.tzinfo is not None


def test_scan_import_files_skips_undecodable(tmp_path):
    (tmp_path / "good.md").write_text("# Good\n")
    (tmp_path / "bad.md").write_bytes(b"\xff\xfe\xfa")
    files = scan_import_files(tmp_path)
    assert [f.name for f in files] == ["good.md"]
