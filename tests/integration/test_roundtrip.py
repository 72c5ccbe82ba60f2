"""Integration test: export a site's backup bundle and markdown, import it into a fresh site, regenerate"""

import shutil
from datetime import timedelta

import pytest
from sqlmodel import Session, SQLModel

from sitepub.core.models import Content, Contributor, Image, Layout, Section, Site, Tag, utcnow
from sitepub.core.pipeline import run_export_meta, run_generate, run_import
from sitepub.core.workspace import Workspace
from sitepub.crud.database import init_db, make_engine
from sitepub.crud.sql_repo import SQLProfileService, SQLService


@pytest.fixture(name="session")
def session_fixture():
    engine = make_engine("sqlite://")
    init_db(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="source")
def source_fixture(session, tmp_path):
    """A populated site with one post linked to every kind of metadata."""
    service = SQLService(session)
    workspace = Workspace(tmp_path / "sites")
    site = service.create_site(Site(name="Source", slug="source"))
    workspace.create_site_directories(site.slug)

    layout = service.create_layout(Layout(site_id=site.id, name="wide", code="<main>{{ body | safe }}</main>"))
    section = service.create_section(Section(site_id=site.id, name="Posts", path="posts", layout_id=layout.id))
    tag = service.create_tag(Tag(site_id=site.id, name="python"))
    service.create_contributor(Contributor(site_id=site.id, handle="jane", name="Jane"))

    (workspace.images_path(site.slug) / "posts").mkdir(parents=True)
    (workspace.images_path(site.slug) / "posts" / "a.png").write_bytes(b"png")
    image = service.create_image(Image(site_id=site.id, file_name="a.png", file_path="posts/a.png", alt_text="A"))

    post = service.create_content(Content(
        site_id=site.id, short_id="post0001", heading="Hello World", body="First paragraph.",
        section_id=section.id, contributor_handle="jane", tags=[tag], draft=False,
        published_at=utcnow() - timedelta(days=1),
    ))
    service.link_image_to_content(post.id, image.id, is_header=True)
    return service, workspace, site


def _import_root(workspace: Workspace, slug: str, root):
    bundle = root / "bundle"
    shutil.copytree(workspace.meta_path(slug), bundle / "meta")
    shutil.copytree(workspace.images_path(slug), bundle / "images")
    shutil.copytree(workspace.markdown_path(slug), bundle / "content")
    return bundle


def test_export_import_roundtrip(session, source, tmp_path):
    service, workspace, site = source
    assert run_export_meta(service, workspace, site).errors == []
    run_generate(service, workspace, site)
    root = _import_root(workspace, site.slug, tmp_path)

    target = service.create_site(Site(name="Target", slug="target"))
    workspace.create_site_directories(target.slug)
    profiles = SQLProfileService(session)

    first = run_import(service, profiles, workspace, target, root)
    assert first.errors == []
    assert (first.layouts_created, first.sections_created) == (1, 1)
    assert (first.contributors_created, first.tags_created) == (1, 1)
    assert (first.images_created, first.contents_created, first.links_created) == (1, 1, 1)
    assert (workspace.images_path(target.slug) / "posts" / "a.png").is_file()

    [post] = service.get_all_content_with_meta(target.id)
    assert post.short_id == "post0001"
    assert post.section_path == "posts"
    assert [t.name for t in post.tags] == ["python"]
    assert post.contributor_handle == "jane"
    assert post.header_image_url == "/images/posts/a.png"

    second = run_import(service, profiles, workspace, target, root)
    assert second.contents_skipped == 1
    assert second.contents_created == second.links_created == 0
    assert second.layouts_created == second.tags_created == second.images_created == 0


def test_imported_site_generates_html(session, source, tmp_path):
    service, workspace, site = source
    run_export_meta(service, workspace, site)
    run_generate(service, workspace, site)
    root = _import_root(workspace, site.slug, tmp_path)

    target = service.create_site(Site(name="Target", slug="target"))
    workspace.create_site_directories(target.slug)
    run_import(service, SQLProfileService(session), workspace, target, root)

    markdown, html = run_generate(service, workspace, target)
    assert markdown.files_generated == 1
    assert html.pages_generated == 1
    page = workspace.content_html_path(target.slug, "posts", "hello-world-post0001").read_text()
    assert page == "<main><p>First paragraph.</p>\n</main>"
