"""Site import: hydrate meta, images, content files, image links and profiles from an import root.

Expected layout::

    {root}/meta/      backup bundle (optional)
    {root}/images/    site images
    {root}/content/   markdown with frontmatter (falls back to the root itself)
    {root}/profiles/  contributor photos
"""

import logging
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from sitepub.core import frontmatter
from sitepub.core.errors import DuplicateError, FrontmatterError, NotFoundError
from sitepub.core.meta import BackupMeta
from sitepub.core.metaload import (
    MetaLoader, copy_profiles, get_content_path, get_meta_path, has_meta_directory,
)
from sitepub.core.models import SHORT_ID_LEN, Content, ContentMeta, Section, Site, Tag
from sitepub.core.parse import ImportFile, extract_image_paths, scan_import_files
from sitepub.core.processor import Processor
from sitepub.core.workspace import Workspace
from sitepub.crud.repo import ProfileService, Service


logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    layouts_created:      int = 0
    sections_created:     int = 0
    contributors_created: int = 0
    tags_created:         int = 0
    files_copied:         int = 0
    images_created:       int = 0
    images_updated:       int = 0
    contents_created:     int = 0
    contents_skipped:     int = 0
    links_created:        int = 0
    profiles_copied:      int = 0
    profiles_created:     int = 0
    errors:               list[str] = Field(default_factory=list)


def _section_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1].replace("-", " ").title()


class Importer:
    def __init__(self, service: Service, profile_service: ProfileService, workspace: Workspace):
        self.service = service
        self.workspace = workspace
        self.loader = MetaLoader(service, profile_service, workspace)

    def import_site(self, site: Site, import_root: Path, user_id: Optional[UUID] = None) -> ImportResult:
        """Run every import step; a failing item is recorded and the rest continue."""
        root = Path(import_root)
        result = ImportResult()
        bundle = BackupMeta()

        if has_meta_directory(root):
            meta_path = get_meta_path(root)
            bundle = self.loader.load_meta(meta_path)
            result.errors.extend(bundle.errors)
            hydrated = self.loader.hydrate_from_meta(site.id, bundle, user_id, meta_path)
            result.layouts_created = hydrated.layouts_created
            result.sections_created = hydrated.sections_created
            result.contributors_created = hydrated.contributors_created
            result.tags_created = hydrated.tags_created
            result.errors.extend(hydrated.errors)

        images = self.loader.hydrate_images(site.id, site.slug, root, bundle, user_id)
        result.files_copied = images.files_copied
        result.images_created = images.images_created
        result.images_updated = images.images_updated
        result.errors.extend(images.errors)

        linked_by_bundle = set(bundle.content_images)
        for f in scan_import_files(get_content_path(root)):
            self._import_file(site, f, user_id, linked_by_bundle, result)

        links = self.loader.hydrate_content_images(site.id, bundle)
        result.links_created += links.links_created
        result.errors.extend(links.errors)

        result.profiles_copied = copy_profiles(root, self.workspace.profiles_path(site.slug))
        profiles = self.loader.hydrate_profiles(site.id, root, bundle, user_id)
        result.profiles_created = profiles.profiles_created
        result.errors.extend(profiles.errors)

        logger.info(
            "Imported site %s: %d contents created, %d skipped, %d errors",
            site.slug, result.contents_created, result.contents_skipped, len(result.errors),
        )
        return result

    # --- content files ---

    def _section_id(self, site_id: UUID, path: str, result: ImportResult) -> Optional[UUID]:
        path = path.strip("/")
        try:
            return self.service.get_section_by_path(site_id, path).id
        except NotFoundError:
            if not path:
                return None
        section = self.service.create_section(Section(site_id=site_id, name=_section_name(path), path=path))
        result.sections_created += 1
        return section.id

    def _tags(self, site_id: UUID, names: list[str], result: ImportResult) -> list[Tag]:
        tags = []
        for name in dict.fromkeys(n.strip() for n in names if n.strip()):
            try:
                tags.append(self.service.get_tag_by_name(site_id, name))
            except NotFoundError:
                tags.append(self.service.create_tag(Tag(site_id=site_id, name=name)))
                result.tags_created += 1
        return tags

    def _import_file(
        self, site: Site, f: ImportFile, user_id: Optional[UUID], linked_by_bundle: set[str], result: ImportResult,
    ) -> None:
        try:
            typed, body = frontmatter.parse_typed(f.raw)
        except FrontmatterError as e:
            logger.warning("Skipping %s: %s", f.path, e)
            result.errors.append(f"{f.name}: {e}")
            return
        typed = typed or frontmatter.TypedFrontmatter()

        # unchanged files without a short-id map to the same content on re-import
        short_id = typed.short_id or f.hash[:SHORT_ID_LEN]
        try:
            self.service.get_content_by_short_id(site.id, short_id)
            result.contents_skipped += 1
            return
        except NotFoundError:
            pass

        contributor_id, contributor_handle = None, ""
        if typed.contributor:
            try:
                contributor = self.service.get_contributor_by_handle(site.id, typed.contributor)
                contributor_id, contributor_handle = contributor.id, contributor.handle
            except NotFoundError:
                logger.warning("Unknown contributor %r in %s", typed.contributor, f.name)

        try:
            content = Content(
                site_id=site.id,
                user_id=user_id,
                short_id=short_id,
                section_id=self._section_id(site.id, typed.section, result),
                contributor_id=contributor_id,
                contributor_handle=contributor_handle,
                author_username=typed.author,
                kind=typed.kind or "post",
                heading=typed.title or f.title,
                summary=typed.summary or Processor.extract_first_paragraph(body),
                body=body,
                draft=typed.draft,
                featured=typed.featured,
                series=typed.series,
                series_order=typed.series_order,
                published_at=typed.published_at,
                tags=self._tags(site.id, typed.tags, result),
                meta=ContentMeta(
                    summary=typed.summary,
                    description=typed.description,
                    keywords=typed.keywords,
                    robots=typed.robots,
                    canonical_url=typed.canonical_url,
                    sitemap=typed.sitemap,
                    table_of_contents=typed.table_of_contents,
                    share=typed.share,
                    comments=typed.comments,
                ),
                created_at=typed.created_at or f.mtime,
                updated_at=typed.updated_at or f.mtime,
            )
            content = self.service.create_content(content)
        except (DuplicateError, ValueError) as e:
            logger.warning("Content %s failed: %s", f.name, e)
            result.errors.append(f"{f.name}: {e}")
            return
        result.contents_created += 1

        if short_id not in linked_by_bundle:
            result.links_created += self._link_body_images(site.id, content)

    def _link_body_images(self, site_id: UUID, content: Content) -> int:
        """Link images referenced in the body when the bundle carries no links for this content."""
        images = {img.file_path: img.id for img in self.service.get_images(site_id)}
        created = 0
        for order, path in enumerate(extract_image_paths(content.body)):
            image_id = images.get(path)
            if image_id is None:
                continue
            try:
                self.service.link_image_to_content(content.id, image_id, order_num=order)
            except DuplicateError:
                continue
            created += 1
        return created
