"""Unit tests for core/frontmatter.py"""

from datetime import datetime, timezone

import pytest

from sitepub.core import frontmatter
from sitepub.core.errors import FrontmatterError


EXPECTED_CREATED = datetime(2026, 1, 9, 19, 37, 45, tzinfo=timezone.utc)


# --- lenient parse ---

def test_parse_flat_string_map():
    fields, body = frontmatter.parse("---\ntitle: Hello\ndraft: false\norder: 3\n---\n\n# Body\n")
    assert fields == {"title": "Hello", "draft": "false", "order": "3"}
    assert body == "# Body\n"


def test_parse_without_block_returns_document():
    doc = "# No frontmatter\n"
    assert frontmatter.parse(doc) == ({}, doc)


def test_parse_unclosed_block_is_not_frontmatter():
    doc = "---\ntitle: Hello\n# Body\n"
    assert frontmatter.parse(doc) == ({}, doc)


def test_parse_malformed_yaml_never_raises():
    fields, body = frontmatter.parse("---\ntitle: [unclosed\n---\nBody\n")
    assert fields == {}
    assert body == "Body\n"


def test_parse_skips_nested_values():
    fields, _ = frontmatter.parse("---\ntitle: T\ntags: [a, b]\n---\n")
    assert fields == {"title": "T"}


# --- typed parse ---

def test_parse_typed_hyphenated_keys(sample_md):
    typed, body = frontmatter.parse_typed(sample_md)
    assert typed.title == "Hello World"
    assert typed.short_id == "abc12345"
    assert typed.section == "blog"
    assert typed.tags == ["python", "web"]
    assert typed.draft is False
    assert typed.published_at == EXPECTED_CREATED
    assert body.startswith("# Hello World")


def test_parse_typed_keeps_unknown_fields():
    typed, _ = frontmatter.parse_typed("---\ntitle: T\ncustom-field: kept\n---\n")
    assert typed.model_extra == {"custom-field": "kept"}


def test_parse_typed_comma_separated_tags():
    typed, _ = frontmatter.parse_typed("---\ntags: a, b ,c\n---\n")
    assert typed.tags == ["a", "b", "c"]


def test_parse_typed_accepts_date_like_strings():
    doc = "---\ntitle: 2024-01-01\nseries: 2025-06-01T08:00:00Z\n---\n"
    fields, _ = frontmatter.parse(doc)
    typed, _ = frontmatter.parse_typed(doc)
    assert typed.title == fields["title"] == "2024-01-01"
    assert typed.series == fields["series"] == "2025-06-01T08:00:00Z"


def test_parse_typed_without_block():
    typed, body = frontmatter.parse_typed("plain body")
    assert typed is None
    assert body == "plain body"


def test_parse_typed_malformed_yaml_raises():
    with pytest.raises(FrontmatterError):
        frontmatter.parse_typed("---\ntitle: [unclosed\n---\nBody\n")


def test_parse_typed_non_mapping_raises():
    with pytest.raises(FrontmatterError):
        frontmatter.parse_typed("---\n- a\n- b\n---\n")


def test_parse_typed_bad_date_raises():
    with pytest.raises(FrontmatterError):
        frontmatter.parse_typed("---\ncreated-at: yesterday\n---\n")


# --- timestamps ---

@pytest.mark.parametrize("text", [
    "2026-01-09T19:37:45Z",
    "2026-01-09T19:37:45.000000000+00:00",
    "2026-01-09T20:37:45+01:00",
    "2026-01-09 19:37:45",
])
def test_parse_timestamp_variants(text):
    assert frontmatter.parse_timestamp(text) == EXPECTED_CREATED


def test_parse_timestamp_truncates_nanoseconds():
    ts = frontmatter.parse_timestamp("2026-01-09T19:37:45.123456789Z")
    assert ts.microsecond == 123456


def test_parse_timestamp_date_only():
    assert frontmatter.parse_timestamp("2026-01-09") == datetime(2026, 1, 9, tzinfo=timezone.utc)


def test_format_timestamp_uses_z_for_utc():
    assert frontmatter.format_timestamp(EXPECTED_CREATED) == "2026-01-09T19:37:45Z"


@pytest.mark.parametrize("created", [
    "2026-01-09T19:37:45Z",
    "2026-01-09T19:37:45.000000000+00:00",
])
def test_round_trip_parse_join_parse_typed(created):
    """Lenient parse, join back into a block, then typed parse keeps the instant."""
    fields, body = frontmatter.parse(f"---\ntitle: T\ncreated-at: {created}\n---\nBody\n")
    typed, _ = frontmatter.parse_typed(frontmatter.dump(fields, body))
    assert typed.created_at == EXPECTED_CREATED
    assert typed.created_at.utcoffset().total_seconds() == 0


def test_dump_layout():
    doc = frontmatter.dump({"title": "T"}, "Body\n")
    assert doc == "---\ntitle: T\n---\n\nBody\n"
