"""Service contract tests run against both the memory and the SQL implementation"""

from datetime import datetime, timedelta, timezone

import pytest

from sitepub.core.errors import DuplicateError, NotFoundError
from sitepub.core.models import (
    Content, ContentMeta, Contributor, Image, Layout, Section, Setting, Site, SocialLink, Tag,
)
from sitepub.crud.memory_repo import MemoryProfileService, MemoryService


@pytest.fixture(name="store", params=["memory", "sql"])
def store_fixture(request):
    """(Service, ProfileService) pair for each implementation."""
    if request.param == "memory":
        return MemoryService(), MemoryProfileService()
    return request.getfixturevalue("sql_service"), request.getfixturevalue("sql_profile_service")


@pytest.fixture(name="svc")
def svc_fixture(store):
    return store[0]


@pytest.fixture(name="blog")
def blog_fixture(svc):
    return svc.create_site(Site(name="Blog", slug="blog"))


# --- sites ---

def test_site_lookup_and_update(svc, blog):
    assert svc.get_site_by_slug("blog").id == blog.id
    stamp = datetime(2026, 1, 1, tzinfo=timezone.utc)
    blog.last_published_at = stamp
    svc.update_site(blog)
    loaded = svc.get_site(blog.id)
    assert loaded.last_published_at == stamp
    assert loaded.last_published_at.tzinfo is not None


def test_site_duplicate_slug(svc, blog):
    with pytest.raises(DuplicateError):
        svc.create_site(Site(slug="blog"))


def test_site_missing(svc):
    with pytest.raises(NotFoundError):
        svc.get_site_by_slug("nope")


# --- sections, layouts, tags, settings ---

def test_section_layout_name_joined(svc, blog):
    layout = svc.create_layout(Layout(site_id=blog.id, name="wide"))
    svc.create_section(Section(site_id=blog.id, name="Posts", path="/posts", layout_id=layout.id))
    section = svc.get_section_by_path(blog.id, "posts")
    assert section.layout_name == "wide"
    assert svc.get_layout_by_name(blog.id, "wide").id == layout.id


def test_section_duplicate_path(svc, blog):
    svc.create_section(Section(site_id=blog.id, name="Posts", path="posts"))
    with pytest.raises(DuplicateError):
        svc.create_section(Section(site_id=blog.id, name="Again", path="posts"))


def test_tag_lookup(svc, blog):
    svc.create_tag(Tag(site_id=blog.id, name="Machine Learning"))
    assert svc.get_tag_by_name(blog.id, "Machine Learning").slug == "machine-learning"
    with pytest.raises(NotFoundError):
        svc.get_tag_by_name(blog.id, "nope")


def test_setting_update(svc, blog):
    svc.create_setting(Setting(site_id=blog.id, ref_key="ssg.publish.branch", value="main"))
    setting = svc.get_setting_by_ref_key(blog.id, "ssg.publish.branch")
    setting.value = "pages"
    svc.update_setting(setting)
    assert [s.value for s in svc.get_settings(blog.id)] == ["pages"]


# --- images ---

def test_image_link_duplicate(svc, blog):
    content = svc.create_content(Content(site_id=blog.id, heading="Post"))
    image = svc.create_image(Image(site_id=blog.id, file_name="a.png", file_path="a.png"))
    svc.link_image_to_content(content.id, image.id, is_header=True)
    with pytest.raises(DuplicateError):
        svc.link_image_to_content(content.id, image.id)
    assert [ci.is_header for ci in svc.get_content_images(content.id)] == [True]


def test_image_update(svc, blog):
    image = svc.create_image(Image(site_id=blog.id, file_name="a.png", file_path="a.png"))
    image.alt_text = "Alt"
    svc.update_image(image)
    assert svc.get_images(blog.id)[0].alt_text == "Alt"


# --- contributors and profiles ---

def test_contributor_social_links_and_profile(store, blog):
    svc, profiles = store
    jane = svc.create_contributor(Contributor(
        site_id=blog.id, handle="jane", social_links=[SocialLink(platform="github", url="https://github.com/jane")],
    ))
    profile = profiles.create_profile(blog.id, "jane", "Jane", "Doe", "", "[]", "jane.jpg", "")
    svc.set_contributor_profile(jane.id, profile.id)

    loaded = svc.get_contributor_by_handle(blog.id, "jane")
    assert loaded.profile_id == profile.id
    assert loaded.social_links[0].url == "https://github.com/jane"
    assert profiles.get_profile(profile.id).photo_path == "jane.jpg"


# --- contents ---

def test_content_with_meta_joins(svc, blog):
    section = svc.create_section(Section(site_id=blog.id, name="Posts", path="posts"))
    tag = svc.create_tag(Tag(site_id=blog.id, name="python"))
    image = svc.create_image(Image(site_id=blog.id, file_name="h.png", file_path="posts/h.png", alt_text="Header"))
    older = svc.create_content(Content(
        site_id=blog.id, short_id="older001", heading="Older", section_id=section.id, tags=[tag],
        meta=ContentMeta(description="SEO"), created_at=datetime.now(timezone.utc) - timedelta(days=1),
    ))
    svc.create_content(Content(site_id=blog.id, short_id="newer001", heading="Newer"))
    svc.link_image_to_content(older.id, image.id, is_header=True)

    contents = svc.get_all_content_with_meta(blog.id)
    assert [c.short_id for c in contents] == ["older001", "newer001"]
    first = contents[0]
    assert (first.section_path, first.section_name) == ("posts", "Posts")
    assert [t.name for t in first.tags] == ["python"]
    assert first.meta.description == "SEO"
    assert (first.header_image_url, first.header_image_alt) == ("/images/posts/h.png", "Header")
    assert first.created_at.tzinfo is not None


def test_content_duplicate_short_id(svc, blog):
    svc.create_content(Content(site_id=blog.id, short_id="same0001"))
    with pytest.raises(DuplicateError):
        svc.create_content(Content(site_id=blog.id, short_id="same0001"))


def test_build_user_authors_map(svc, blog):
    jane = Contributor(site_id=blog.id, handle="jane")
    contents = [
        Content(site_id=blog.id, author_username="jane"),
        Content(site_id=blog.id, author_username="ghost"),
        Content(site_id=blog.id, author_username="jane", contributor_handle="jane"),
    ]
    assert svc.build_user_authors_map(contents, [jane]) == {"jane": jane}


def test_offset_timestamps_keep_their_instant(svc, blog):
    published = datetime(2026, 1, 9, 19, 37, 45, tzinfo=timezone(timedelta(hours=2)))
    svc.create_content(Content(site_id=blog.id, short_id="offset01", published_at=published))
    blog.last_published_at = published
    svc.update_site(blog)

    [content] = svc.get_all_content_with_meta(blog.id)
    assert content.published_at == datetime(2026, 1, 9, 17, 37, 45, tzinfo=timezone.utc)
    assert svc.get_site(blog.id).last_published_at == published
