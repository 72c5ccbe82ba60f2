"""Slug generation for tags, sections and content"""

import re
import unicodedata


_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated ASCII slug."""
    text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    return _NON_ALNUM.sub('-', text.lower()).strip('-')


def content_slug(heading: str, short_id: str) -> str:
    """Slug for a content item; the short ID suffix keeps colliding headings apart."""
    base = slugify(heading)
    if not short_id:
        return base
    return f"{base}-{short_id}" if base else short_id
