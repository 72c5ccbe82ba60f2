"""Backup import: load a Meta bundle and hydrate a site from it.

Hydration is additive. Each record is looked up by its natural key (layout
name, section path, contributor handle, tag name) and created only when
absent, so running it twice creates nothing the second time.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Optional
from uuid import UUID

import yaml
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from sitepub.core import meta as m
from sitepub.core.errors import DuplicateError, NotFoundError
from sitepub.core.models import Contributor, Image, Layout, Section, SocialLink, Tag
from sitepub.core.workspace import Workspace
from sitepub.crud.repo import ProfileService, Service


logger = logging.getLogger(__name__)

META_DIR = "meta"
CONTENT_DIR = "content"
IMAGES_DIR = "images"
PROFILES_DIR = "profiles"
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".avif"}
PROFILE_PHOTO_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")

# file name -> (BackupMeta attribute, schema)
_META_FILES: dict[str, tuple[str, TypeAdapter]] = {
    m.LAYOUTS_FILE:        ("layouts",        TypeAdapter(list[m.MetaLayout])),
    m.CONTRIBUTORS_FILE:   ("contributors",   TypeAdapter(list[m.MetaContributor])),
    m.TAGS_FILE:           ("tags",           TypeAdapter(list[m.MetaTag])),
    m.SECTIONS_FILE:       ("sections",       TypeAdapter(list[m.MetaSection])),
    m.IMAGES_FILE:         ("images",         TypeAdapter(dict[str, m.MetaImage])),
    m.CONTENT_IMAGES_FILE: ("content_images", TypeAdapter(dict[str, list[m.MetaContentImage]])),
}


class HydrationResult(BaseModel):
    layouts_created:      int = 0
    sections_created:     int = 0
    contributors_created: int = 0
    tags_created:         int = 0
    errors:               list[str] = Field(default_factory=list)


class ImageHydrationResult(BaseModel):
    files_copied:   int = 0
    images_created: int = 0
    images_updated: int = 0
    errors:         list[str] = Field(default_factory=list)


class ProfileHydrationResult(BaseModel):
    profiles_created: int = 0
    errors:           list[str] = Field(default_factory=list)


class ContentImageHydrationResult(BaseModel):
    links_created: int = 0
    links_skipped: int = 0
    errors:        list[str] = Field(default_factory=list)


# --- import directory helpers ---

def get_meta_path(import_path: Path) -> Path:
    return Path(import_path) / META_DIR


def has_meta_directory(import_path: Path) -> bool:
    return get_meta_path(import_path).is_dir()


def get_content_path(import_path: Path) -> Path:
    """content/ under the import root when present, otherwise the root itself."""
    content = Path(import_path) / CONTENT_DIR
    return content if content.is_dir() else Path(import_path)


def get_images_path(import_path: Path) -> Path:
    return Path(import_path) / IMAGES_DIR


def is_image_extension(ext: str) -> bool:
    return ext.lower() in IMAGE_EXTENSIONS


def find_profile_photo(profiles_path: Path, handle: str) -> str:
    """Return '{handle}.{ext}' for the first photo found by naming convention, or ''."""
    for ext in PROFILE_PHOTO_EXTENSIONS:
        if (Path(profiles_path) / f"{handle}{ext}").is_file():
            return f"{handle}{ext}"
    return ""


def copy_profiles(import_path: Path, workspace_profiles_path: Path) -> int:
    """Copy every file under {import}/profiles into the workspace. Returns the count copied."""
    src = Path(import_path) / PROFILES_DIR
    if not src.is_dir():
        return 0
    dst_root = Path(workspace_profiles_path)
    count = 0
    for path in sorted(p for p in src.rglob("*") if p.is_file()):
        dst = dst_root / path.relative_to(src)
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, dst)
        except OSError as e:
            logger.warning("Profile copy failed for %s: %s", path, e)
            continue
        count += 1
    return count


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


class MetaLoader:
    def __init__(self, service: Service, profile_service: ProfileService, workspace: Workspace):
        self.service = service
        self.profile_service = profile_service
        self.workspace = workspace

    def load_meta(self, meta_path: Path) -> m.BackupMeta:
        """Read whichever bundle files exist. Bad files are recorded in errors, never raised."""
        bundle = m.BackupMeta()
        for file_name, (attr, schema) in _META_FILES.items():
            path = Path(meta_path) / file_name
            if not path.is_file():
                continue
            try:
                data = yaml.safe_load(path.read_text(encoding="utf-8"))
                if data is None:
                    continue
                value = schema.validate_python(data)
            except (OSError, UnicodeDecodeError, yaml.YAMLError, ValidationError) as e:
                logger.warning("Cannot load %s: %s", path, e)
                bundle.errors.append(f"{file_name} parse error: {e}")
                continue
            setattr(bundle, attr, value)
        return bundle

    # --- entities ---

    def _create(self, result: HydrationResult, label: str, create, *args: Any) -> bool:
        try:
            create(*args)
        except (DuplicateError, ValueError, OSError) as e:
            logger.warning("Hydration of %s failed: %s", label, e)
            result.errors.append(f"{label}: {e}")
            return False
        return True

    def _hydrate_layouts(self, site_id: UUID, bundle: m.BackupMeta, meta_path: Optional[Path],
                         result: HydrationResult) -> None:
        existing = {l.name for l in self.service.get_layouts(site_id)}
        for ml in bundle.layouts:
            if ml.name in existing:
                continue
            layout = Layout(
                site_id=site_id, name=ml.name, description=ml.description,
                exclude_default_css=ml.exclude_default_css,
            )
            if meta_path is not None:
                layouts_dir = Path(meta_path) / m.LAYOUTS_DIR
                layout.code = _read_text(layouts_dir / f"{ml.name}.html")
                layout.css = _read_text(layouts_dir / f"{ml.name}.css")
            if self._create(result, f"layout {ml.name}", self.service.create_layout, layout):
                existing.add(ml.name)
                result.layouts_created += 1

    def _hydrate_sections(self, site_id: UUID, bundle: m.BackupMeta, result: HydrationResult) -> None:
        layouts = {l.name: l.id for l in self.service.get_layouts(site_id)}
        for ms in bundle.sections:
            try:
                self.service.get_section_by_path(site_id, ms.path)
                continue
            except NotFoundError:
                pass
            section = Section(site_id=site_id, name=ms.name, path=ms.path, layout_id=layouts.get(ms.layout))
            if self._create(result, f"section {ms.name}", self.service.create_section, section):
                result.sections_created += 1

    def _hydrate_contributors(self, site_id: UUID, bundle: m.BackupMeta, result: HydrationResult) -> None:
        for mc in bundle.contributors:
            try:
                self.service.get_contributor_by_handle(site_id, mc.handle)
                continue
            except NotFoundError:
                pass
            contributor = Contributor(
                site_id=site_id, handle=mc.handle, name=mc.name, surname=mc.surname, bio=mc.bio,
                social_links=[SocialLink(platform=p, url=u) for p, u in mc.social_links.items()],
            )
            if self._create(result, f"contributor {mc.handle}", self.service.create_contributor, contributor):
                result.contributors_created += 1

    def _hydrate_tags(self, site_id: UUID, bundle: m.BackupMeta, result: HydrationResult) -> None:
        for mt in bundle.tags:
            try:
                self.service.get_tag_by_name(site_id, mt.name)
                continue
            except NotFoundError:
                pass
            tag = Tag(site_id=site_id, name=mt.name, slug=mt.slug)
            if self._create(result, f"tag {mt.name}", self.service.create_tag, tag):
                result.tags_created += 1

    def hydrate_from_meta(
        self,
        site_id: UUID,
        bundle: m.BackupMeta,
        user_id: Optional[UUID] = None,
        meta_path: Optional[Path] = None,
    ) -> HydrationResult:
        """Create missing layouts, sections, contributors and tags.

        Layouts go first so sections can resolve their layout by name. With
        meta_path set, layout code and CSS are read from meta/layouts/.
        """
        result = HydrationResult()
        self._hydrate_layouts(site_id, bundle, meta_path, result)
        self._hydrate_sections(site_id, bundle, result)
        self._hydrate_contributors(site_id, bundle, result)
        self._hydrate_tags(site_id, bundle, result)
        logger.info(
            "Hydrated site %s: %d layouts, %d sections, %d contributors, %d tags",
            site_id, result.layouts_created, result.sections_created,
            result.contributors_created, result.tags_created,
        )
        return result

    # --- images ---

    def hydrate_images(
        self,
        site_id: UUID,
        site_slug: str,
        import_path: Path,
        bundle: m.BackupMeta,
        user_id: Optional[UUID] = None,
    ) -> ImageHydrationResult:
        """Copy supported images into the workspace; create records or refresh their metadata."""
        result = ImageHydrationResult()
        src_root = get_images_path(import_path)
        if not src_root.is_dir():
            return result

        dst_root = self.workspace.images_path(site_slug)
        dst_root.mkdir(parents=True, exist_ok=True)
        existing = {img.file_path: img for img in self.service.get_images(site_id)}

        for path in sorted(p for p in src_root.rglob("*") if p.is_file()):
            rel = path.relative_to(src_root).as_posix()
            if not is_image_extension(path.suffix):
                continue

            dst = dst_root / rel
            try:
                dst.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(path, dst)
            except OSError as e:
                logger.warning("Image copy failed for %s: %s", rel, e)
                result.errors.append(f"copy {rel}: {e}")
                continue
            result.files_copied += 1

            mi = bundle.images.get(rel)
            image = existing.get(rel)
            if image is not None:
                if mi is None:
                    continue
                image = _apply_image_meta(image, mi)
                try:
                    self.service.update_image(image)
                except (NotFoundError, ValueError) as e:
                    result.errors.append(f"update {rel}: {e}")
                    continue
                result.images_updated += 1
            else:
                image = Image(site_id=site_id, file_name=path.name, file_path=rel)
                if mi is not None:
                    image = _apply_image_meta(image, mi)
                try:
                    existing[rel] = self.service.create_image(image)
                except (DuplicateError, ValueError) as e:
                    result.errors.append(f"create {rel}: {e}")
                    continue
                result.images_created += 1
        return result

    # --- profiles ---

    def hydrate_profiles(
        self,
        site_id: UUID,
        import_path: Path,
        bundle: m.BackupMeta,
        user_id: Optional[UUID] = None,
    ) -> ProfileHydrationResult:
        """Create and link a profile for each bundled contributor that has none yet."""
        result = ProfileHydrationResult()
        profiles_path = Path(import_path) / PROFILES_DIR
        by_handle = {mc.handle: mc for mc in bundle.contributors}
        created_by = str(user_id) if user_id else ""

        for contributor in self.service.get_contributors(site_id):
            if contributor.profile_id is not None:
                continue
            mc = by_handle.get(contributor.handle)
            if mc is None:
                continue

            photo = mc.photo_path
            if not photo or not (profiles_path / photo).is_file():
                photo = find_profile_photo(profiles_path, contributor.handle)

            links = [{"platform": p, "url": u} for p, u in mc.social_links.items()]
            try:
                profile = self.profile_service.create_profile(
                    site_id, contributor.handle, contributor.name, contributor.surname,
                    contributor.bio, json.dumps(links), photo, created_by,
                )
            except (ValueError, LookupError, OSError) as e:
                logger.warning("Profile for %s failed: %s", contributor.handle, e)
                result.errors.append(f"profile {contributor.handle}: {e}")
                continue
            try:
                self.service.set_contributor_profile(contributor.id, profile.id, created_by)
            except (ValueError, LookupError) as e:
                result.errors.append(f"link profile {contributor.handle}: {e}")
                continue
            result.profiles_created += 1
        return result

    # --- content-image links ---

    def hydrate_content_images(self, site_id: UUID, bundle: m.BackupMeta) -> ContentImageHydrationResult:
        """Link images to contents by short ID and file path.

        Links whose content or image does not resolve are skipped; links that
        already exist are left as they are.
        """
        result = ContentImageHydrationResult()
        if not bundle.content_images:
            return result

        contents = {c.short_id: c.id for c in self.service.get_all_content_with_meta(site_id) if c.short_id}
        images = {img.file_path: img.id for img in self.service.get_images(site_id)}

        for short_id, links in bundle.content_images.items():
            content_id = contents.get(short_id)
            if content_id is None:
                result.links_skipped += len(links)
                continue
            for link in links:
                image_id = images.get(link.image_path)
                if image_id is None:
                    logger.warning("Image not found for content %s: %s", short_id, link.image_path)
                    result.links_skipped += 1
                    continue
                try:
                    self.service.link_image_to_content(
                        content_id, image_id, link.is_header, link.is_featured, link.order_num,
                    )
                except DuplicateError:
                    continue
                result.links_created += 1
        return result


def _apply_image_meta(image: Image, mi: m.MetaImage) -> Image:
    return image.model_copy(update={
        "alt_text": mi.alt,
        "title": mi.caption,
        "attribution": mi.attribution,
        "attribution_url": mi.attribution_url,
    })
