"""Unit tests for core/utils/slug.py"""

import re

import pytest

from sitepub.core.utils.slug import content_slug, slugify


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my-file-name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("multiple---hyphens", "multiple-hyphens"),
    ("Special! Ch@rs#", "special-ch-rs"),
    ("", ""),
])
def test_slugify_basic(text, expected):
    """slugify converts text to lowercase hyphenated slug."""
    assert slugify(text) == expected


def test_slugify_strips_diacritics():
    """Accented letters fold to ASCII; nothing outside [a-z0-9-] survives."""
    slug = slugify("Héllo Wörld")
    assert slug == "hello-world"
    assert re.fullmatch(r'[a-z0-9-]+', slug)
    assert not slug.startswith("-") and not slug.endswith("-")


def test_slugify_strips_leading_trailing_hyphens():
    assert slugify("!leading?") == "leading"


def test_content_slug_appends_short_id():
    assert content_slug("My Post", "ab12cd34") == "my-post-ab12cd34"


def test_content_slug_without_heading_uses_short_id():
    assert content_slug("!!!", "ab12cd34") == "ab12cd34"


def test_content_slug_without_short_id():
    assert content_slug("My Post", "") == "my-post"
