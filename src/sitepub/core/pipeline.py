"""Pipeline step functions: generate, export-meta, import and publish orchestration"""

import logging
from pathlib import Path
from typing import Optional
from uuid import UUID

from sitepub.core import meta as m
from sitepub.core.export import GenerateMetaResult, MetaGenerator
from sitepub.core.generator import GenerateMarkdownResult, MarkdownGenerator
from sitepub.core.htmlgen import GenerateHTMLResult, HTMLGenerator
from sitepub.core.importer import Importer, ImportResult
from sitepub.core.models import Site, utcnow
from sitepub.core.publisher import PublishResult, Publisher
from sitepub.core.scheduler import build_publish_config
from sitepub.core.workspace import Workspace
from sitepub.crud.repo import ProfileService, Service


logger = logging.getLogger(__name__)


def run_generate(
    service: Service, workspace: Workspace, site: Site,
    ) -> tuple[GenerateMarkdownResult, GenerateHTMLResult]:
    """Regenerate both the markdown tree and the HTML site from stored content."""
    contents = service.get_all_content_with_meta(site.id)
    contributors = service.get_contributors(site.id)
    markdown = MarkdownGenerator(workspace).generate_markdown(site.slug, contents)
    html = HTMLGenerator(workspace).generate_html(
        site, contents,
        service.get_sections(site.id),
        service.get_layouts(site.id),
        service.get_settings(site.id),
        contributors=contributors,
        user_authors=service.build_user_authors_map(contents, contributors),
        images=service.get_images(site.id),
    )
    return markdown, html


def content_image_links(service: Service, site_id: UUID) -> dict[str, list[m.MetaContentImage]]:
    """Content short ID -> ordered image links, by image path."""
    paths = {img.id: img.file_path for img in service.get_images(site_id)}
    links: dict[str, list[m.MetaContentImage]] = {}
    for content in service.get_all_content_with_meta(site_id):
        items = [
            m.MetaContentImage(
                image_path=paths[ci.image_id], is_header=ci.is_header,
                is_featured=ci.is_featured, order_num=ci.order_num,
            )
            for ci in sorted(service.get_content_images(content.id), key=lambda ci: ci.order_num)
            if ci.image_id in paths
        ]
        if items:
            links[content.short_id] = items
    return links


def run_export_meta(service: Service, workspace: Workspace, site: Site) -> GenerateMetaResult:
    """Write the site's backup bundle into its meta/ directory."""
    contributors = service.get_contributors(site.id)
    return MetaGenerator(workspace).generate_meta(
        site.slug,
        layouts=service.get_layouts(site.id),
        contributors=contributors,
        tags=service.get_tags(site.id),
        sections=service.get_sections(site.id),
        images=service.get_images(site.id),
        content_images=content_image_links(service, site.id),
        contributor_photo_paths={c.handle: c.photo_path for c in contributors if c.photo_path},
    )


def run_import(
    service: Service, profile_service: ProfileService, workspace: Workspace,
    site: Site, import_root: Path, user_id: Optional[UUID] = None,
    ) -> ImportResult:
    if not Path(import_root).is_dir():
        raise FileNotFoundError(f"import root not found: {import_root}")
    return Importer(service, profile_service, workspace).import_site(site, Path(import_root), user_id)


def run_publish(service: Service, workspace: Workspace, publisher: Publisher, site: Site) -> PublishResult:
    """Regenerate then publish now, regardless of schedule. Advances the site's watermark."""
    config = build_publish_config(service.get_settings(site.id))
    _, html = run_generate(service, workspace, site)
    if html.errors:
        logger.warning("Site %s generated with %d errors", site.slug, len(html.errors))
    result = publisher.publish(config, site.slug)
    site.last_published_at = utcnow()
    service.update_site(site)
    return result
