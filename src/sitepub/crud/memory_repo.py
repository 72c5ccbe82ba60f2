from dataclasses import dataclass, field
from uuid import UUID

from sitepub.core.errors import DuplicateError, NotFoundError
from sitepub.core.models import (
    Content, ContentImage, Contributor, Image, Layout, Profile, Section, Setting, Site, Tag, utcnow,
)
from sitepub.crud.repo import ProfileService, Service


def _copy(model):
    return model.model_copy(deep=True)


def _first(items, what: str, **match):
    for item in items:
        if all(getattr(item, k) == v for k, v in match.items()):
            return _copy(item)
    raise NotFoundError(f"{what} not found: {match}")


@dataclass
class MemoryService(Service):
    _sites:          dict[UUID, Site] = field(default_factory=dict)
    _sections:       dict[UUID, Section] = field(default_factory=dict)
    _layouts:        dict[UUID, Layout] = field(default_factory=dict)
    _tags:           dict[UUID, Tag] = field(default_factory=dict)
    _content_tags:   dict[UUID, list[UUID]] = field(default_factory=dict)
    _settings:       dict[UUID, Setting] = field(default_factory=dict)
    _images:         dict[UUID, Image] = field(default_factory=dict)
    _content_images: list[ContentImage] = field(default_factory=list)
    _contributors:   dict[UUID, Contributor] = field(default_factory=dict)
    _contents:       dict[UUID, Content] = field(default_factory=dict)

    def _of_site(self, store: dict, site_id: UUID) -> list:
        return [_copy(x) for x in store.values() if x.site_id == site_id]

    def _put(self, store: dict, item):
        store[item.id] = _copy(item)
        return _copy(item)

    # --- sites ---

    def list_sites(self) -> list[Site]:
        return [_copy(s) for s in self._sites.values()]

    def get_site(self, site_id: UUID) -> Site:
        return _first(self._sites.values(), "site", id=site_id)

    def get_site_by_slug(self, slug: str) -> Site:
        return _first(self._sites.values(), "site", slug=slug)

    def create_site(self, site: Site) -> Site:
        if any(s.slug == site.slug for s in self._sites.values()):
            raise DuplicateError(f"site slug already exists: {site.slug}")
        return self._put(self._sites, site)

    def update_site(self, site: Site) -> Site:
        if site.id not in self._sites:
            raise NotFoundError(f"site not found: {site.id}")
        site = site.model_copy(update={"updated_at": utcnow()})
        return self._put(self._sites, site)

    # --- sections ---

    def get_sections(self, site_id: UUID) -> list[Section]:
        sections = self._of_site(self._sections, site_id)
        layouts = {l.id: l.name for l in self._layouts.values()}
        for s in sections:
            s.layout_name = layouts.get(s.layout_id, "") if s.layout_id else ""
        return sections

    def get_section_by_path(self, site_id: UUID, path: str) -> Section:
        return _first(self.get_sections(site_id), "section", path=path.lstrip("/"))

    def create_section(self, section: Section) -> Section:
        if any(s.site_id == section.site_id and s.path == section.path for s in self._sections.values()):
            raise DuplicateError(f"section path already exists: {section.path!r}")
        return self._put(self._sections, section)

    # --- layouts ---

    def get_layouts(self, site_id: UUID) -> list[Layout]:
        return self._of_site(self._layouts, site_id)

    def get_layout_by_name(self, site_id: UUID, name: str) -> Layout:
        return _first(self.get_layouts(site_id), "layout", name=name)

    def create_layout(self, layout: Layout) -> Layout:
        if any(l.site_id == layout.site_id and l.name == layout.name for l in self._layouts.values()):
            raise DuplicateError(f"layout already exists: {layout.name}")
        return self._put(self._layouts, layout)

    # --- tags ---

    def get_tags(self, site_id: UUID) -> list[Tag]:
        return self._of_site(self._tags, site_id)

    def get_tag_by_name(self, site_id: UUID, name: str) -> Tag:
        return _first(self.get_tags(site_id), "tag", name=name)

    def create_tag(self, tag: Tag) -> Tag:
        if any(t.site_id == tag.site_id and t.name == tag.name for t in self._tags.values()):
            raise DuplicateError(f"tag already exists: {tag.name}")
        return self._put(self._tags, tag)

    def add_tag_to_content(self, content_id: UUID, tag_id: UUID) -> None:
        links = self._content_tags.setdefault(content_id, [])
        if tag_id not in links:
            links.append(tag_id)

    # --- settings ---

    def get_settings(self, site_id: UUID) -> list[Setting]:
        return self._of_site(self._settings, site_id)

    def get_setting_by_ref_key(self, site_id: UUID, ref_key: str) -> Setting:
        return _first(self.get_settings(site_id), "setting", ref_key=ref_key)

    def create_setting(self, setting: Setting) -> Setting:
        if any(s.site_id == setting.site_id and s.ref_key == setting.ref_key for s in self._settings.values()):
            raise DuplicateError(f"setting already exists: {setting.ref_key}")
        return self._put(self._settings, setting)

    def update_setting(self, setting: Setting) -> Setting:
        if setting.id not in self._settings:
            raise NotFoundError(f"setting not found: {setting.id}")
        return self._put(self._settings, setting)

    # --- images ---

    def get_images(self, site_id: UUID) -> list[Image]:
        return self._of_site(self._images, site_id)

    def create_image(self, image: Image) -> Image:
        if any(i.site_id == image.site_id and i.file_path == image.file_path for i in self._images.values()):
            raise DuplicateError(f"image already exists: {image.file_path}")
        return self._put(self._images, image)

    def update_image(self, image: Image) -> Image:
        if image.id not in self._images:
            raise NotFoundError(f"image not found: {image.id}")
        return self._put(self._images, image)

    def link_image_to_content(
        self, content_id: UUID, image_id: UUID,
        is_header: bool = False, is_featured: bool = False, order_num: int = 0,
    ) -> ContentImage:
        if any(ci.content_id == content_id and ci.image_id == image_id for ci in self._content_images):
            raise DuplicateError(f"image {image_id} already linked to content {content_id}")
        link = ContentImage(
            content_id=content_id, image_id=image_id,
            is_header=is_header, is_featured=is_featured, order_num=order_num,
        )
        self._content_images.append(link)
        return _copy(link)

    def get_content_images(self, content_id: UUID) -> list[ContentImage]:
        links = [_copy(ci) for ci in self._content_images if ci.content_id == content_id]
        return sorted(links, key=lambda ci: ci.order_num)

    # --- contributors ---

    def get_contributors(self, site_id: UUID) -> list[Contributor]:
        return self._of_site(self._contributors, site_id)

    def get_contributor_by_handle(self, site_id: UUID, handle: str) -> Contributor:
        return _first(self.get_contributors(site_id), "contributor", handle=handle)

    def create_contributor(self, contributor: Contributor) -> Contributor:
        if any(c.site_id == contributor.site_id and c.handle == contributor.handle
               for c in self._contributors.values()):
            raise DuplicateError(f"contributor already exists: {contributor.handle}")
        return self._put(self._contributors, contributor)

    def set_contributor_profile(self, contributor_id: UUID, profile_id: UUID, updated_by: str = "") -> None:
        if contributor_id not in self._contributors:
            raise NotFoundError(f"contributor not found: {contributor_id}")
        self._contributors[contributor_id].profile_id = profile_id

    # --- contents ---

    def get_content_by_short_id(self, site_id: UUID, short_id: str) -> Content:
        return _first(self._contents.values(), "content", site_id=site_id, short_id=short_id)

    def create_content(self, content: Content) -> Content:
        if any(c.site_id == content.site_id and c.short_id == content.short_id for c in self._contents.values()):
            raise DuplicateError(f"content short ID already exists: {content.short_id}")
        stored = content.model_copy(update={"tags": [], "section_path": "", "section_name": ""}, deep=True)
        self._contents[stored.id] = stored
        for tag in content.tags:
            self.add_tag_to_content(stored.id, tag.id)
        return _copy(content)

    def get_all_content_with_meta(self, site_id: UUID) -> list[Content]:
        out = []
        for content in self._of_site(self._contents, site_id):
            section = self._sections.get(content.section_id) if content.section_id else None
            if section is not None:
                content.section_path = section.path
                content.section_name = section.name
            content.tags = [_copy(self._tags[t]) for t in self._content_tags.get(content.id, []) if t in self._tags]
            for link in self.get_content_images(content.id):
                image = self._images.get(link.image_id)
                if link.is_header and image is not None:
                    content.header_image_url = f"/images/{image.file_path}"
                    content.header_image_alt = image.alt_text
                    break
            out.append(content)
        return sorted(out, key=lambda c: c.created_at)


@dataclass
class MemoryProfileService(ProfileService):
    _profiles: dict[UUID, Profile] = field(default_factory=dict)

    def create_profile(
        self,
        site_id: UUID,
        slug: str,
        name: str,
        surname: str,
        bio: str,
        social_links: str,
        photo_path: str,
        created_by: str,
    ) -> Profile:
        profile = Profile(
            site_id=site_id, slug=slug, name=name, surname=surname, bio=bio,
            social_links=social_links or "[]", photo_path=photo_path, created_by=created_by,
        )
        self._profiles[profile.id] = profile
        return _copy(profile)

    def get_profile(self, profile_id: UUID) -> Profile:
        return _first(self._profiles.values(), "profile", id=profile_id)
