"""Unit tests for core/importer.py"""

import pytest

from sitepub.core.errors import NotFoundError
from sitepub.core.importer import Importer
from sitepub.core.models import Contributor
from sitepub.core.utils.hashing import sha256_file


POST = """\
---
title: First Post
short-id: post0001
section: blog
contributor: jane
tags: [python, web]
draft: false
published-at: 2026-01-09T19:37:45Z
description: SEO text
---

Intro paragraph.

![Photo](/images/blog/a.png)
"""


@pytest.fixture(name="import_root")
def import_root_fixture(tmp_path):
    root = tmp_path / "import"
    (root / "content" / "blog").mkdir(parents=True)
    (root / "content" / "blog" / "first.md").write_text(POST)
    (root / "content" / "loose.md").write_text("# Loose Note\n\nNo frontmatter here.\n")
    (root / "images" / "blog").mkdir(parents=True)
    (root / "images" / "blog" / "a.png").write_bytes(b"png")
    return root


@pytest.fixture(name="importer")
def importer_fixture(service, profile_service, workspace):
    return Importer(service, profile_service, workspace)


def test_import_creates_content(import_root, importer, service, site):
    result = importer.import_site(site, import_root)

    assert result.contents_created == 2
    assert result.sections_created == 1
    assert result.tags_created == 2
    assert result.images_created == 1
    assert result.links_created == 1
    assert result.errors == []

    post = service.get_content_by_short_id(site.id, "post0001")
    assert post.heading == "First Post"
    assert post.summary == "Intro paragraph."
    assert post.meta.description == "SEO text"
    assert post.draft is False
    assert post.contributor_id is None
    assert service.get_section_by_path(site.id, "blog").name == "Blog"


def test_import_title_from_h1_and_root_section(import_root, importer, service, site):
    importer.import_site(site, import_root)
    loose = next(c for c in service.get_all_content_with_meta(site.id) if c.heading == "Loose Note")
    assert loose.section_id is None
    with pytest.raises(NotFoundError):
        service.get_section_by_path(site.id, "")


def test_import_is_idempotent_by_short_id(import_root, importer, service, site):
    importer.import_site(site, import_root)
    second = importer.import_site(site, import_root)

    assert second.contents_created == 0
    assert second.contents_skipped == 2
    assert second.tags_created == 0
    assert second.images_created == 0
    assert second.errors == []


def test_import_records_bad_frontmatter(tmp_path, importer, site):
    root = tmp_path / "bad"
    root.mkdir()
    (root / "broken.md").write_text("---\ntitle: [unclosed\n---\nBody\n")
    result = importer.import_site(site, root)
    assert result.contents_created == 0
    assert len(result.errors) == 1
    assert result.errors[0].startswith("broken.md:")


def test_import_resolves_known_contributor(import_root, importer, service, site):
    jane = service.create_contributor(Contributor(site_id=site.id, handle="jane"))
    importer.import_site(site, import_root)
    post = service.get_content_by_short_id(site.id, "post0001")
    assert post.contributor_id == jane.id
    assert post.contributor_handle == "jane"


def test_import_without_short_id_keys_on_file_hash(import_root, importer, service, site):
    loose = import_root / "content" / "loose.md"
    importer.import_site(site, import_root)
    assert service.get_content_by_short_id(site.id, sha256_file(loose)[:8]).heading == "Loose Note"

    loose.write_text("# Loose Note\n\nEdited since the last import.\n")
    again = importer.import_site(site, import_root)
    assert again.contents_created == 1
    assert again.contents_skipped == 1
