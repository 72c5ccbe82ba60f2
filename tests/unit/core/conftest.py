"""Shared fixtures for core unit tests"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from sitepub.core.models import Content, Tag


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

SAMPLE_MD = """\
---
title: Hello World
short-id: abc12345
section: blog
tags: [python, web]
draft: false
published-at: 2026-01-09T19:37:45Z
---

# Hello World

A first paragraph with **bold** text.

![Alt text|||A caption](/images/blog/photo.png)

```embed
provider: youtube
id: dQw4w9WgXcQ
```
"""


@pytest.fixture(name="make_content")
def make_content_fixture():
    """Factory for published blog contents; keyword arguments override the defaults."""
    site_id = uuid4()

    def make(**kwargs) -> Content:
        defaults = dict(
            site_id=site_id,
            heading="A post",
            body="Body",
            kind="blog",
            draft=False,
            published_at=NOW - timedelta(days=1),
        )
        defaults.update(kwargs)
        return Content(**defaults)
    return make


@pytest.fixture(name="tag")
def tag_fixture():
    return Tag(site_id=uuid4(), name="python")


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
