from __future__ import annotations
from abc import ABC, abstractmethod
from uuid import UUID

from sitepub.core.models import (
    Content, ContentImage, Contributor, Image, Layout, Profile, Section, Setting, Site, Tag,
)


class Service(ABC):
    """Store of site entities. Lookups by natural key raise NotFoundError when absent."""

    # --- sites ---

    @abstractmethod
    def list_sites(self) -> list[Site]:
        raise NotImplementedError

    @abstractmethod
    def get_site(self, site_id: UUID) -> Site:
        raise NotImplementedError

    @abstractmethod
    def get_site_by_slug(self, slug: str) -> Site:
        raise NotImplementedError

    @abstractmethod
    def create_site(self, site: Site) -> Site:
        raise NotImplementedError

    @abstractmethod
    def update_site(self, site: Site) -> Site:
        raise NotImplementedError

    # --- sections ---

    @abstractmethod
    def get_sections(self, site_id: UUID) -> list[Section]:
        raise NotImplementedError

    @abstractmethod
    def get_section_by_path(self, site_id: UUID, path: str) -> Section:
        raise NotImplementedError

    @abstractmethod
    def create_section(self, section: Section) -> Section:
        raise NotImplementedError

    # --- layouts ---

    @abstractmethod
    def get_layouts(self, site_id: UUID) -> list[Layout]:
        raise NotImplementedError

    @abstractmethod
    def get_layout_by_name(self, site_id: UUID, name: str) -> Layout:
        raise NotImplementedError

    @abstractmethod
    def create_layout(self, layout: Layout) -> Layout:
        raise NotImplementedError

    # --- tags ---

    @abstractmethod
    def get_tags(self, site_id: UUID) -> list[Tag]:
        raise NotImplementedError

    @abstractmethod
    def get_tag_by_name(self, site_id: UUID, name: str) -> Tag:
        raise NotImplementedError

    @abstractmethod
    def create_tag(self, tag: Tag) -> Tag:
        raise NotImplementedError

    @abstractmethod
    def add_tag_to_content(self, content_id: UUID, tag_id: UUID) -> None:
        """Idempotent: linking an already linked tag is a no-op."""
        raise NotImplementedError

    # --- settings ---

    @abstractmethod
    def get_settings(self, site_id: UUID) -> list[Setting]:
        raise NotImplementedError

    @abstractmethod
    def get_setting_by_ref_key(self, site_id: UUID, ref_key: str) -> Setting:
        raise NotImplementedError

    @abstractmethod
    def create_setting(self, setting: Setting) -> Setting:
        raise NotImplementedError

    @abstractmethod
    def update_setting(self, setting: Setting) -> Setting:
        raise NotImplementedError

    # --- images ---

    @abstractmethod
    def get_images(self, site_id: UUID) -> list[Image]:
        raise NotImplementedError

    @abstractmethod
    def create_image(self, image: Image) -> Image:
        raise NotImplementedError

    @abstractmethod
    def update_image(self, image: Image) -> Image:
        raise NotImplementedError

    @abstractmethod
    def link_image_to_content(
        self, content_id: UUID, image_id: UUID,
        is_header: bool = False, is_featured: bool = False, order_num: int = 0,
    ) -> ContentImage:
        """Raises DuplicateError if the pair is already linked."""
        raise NotImplementedError

    @abstractmethod
    def get_content_images(self, content_id: UUID) -> list[ContentImage]:
        raise NotImplementedError

    # --- contributors ---

    @abstractmethod
    def get_contributors(self, site_id: UUID) -> list[Contributor]:
        raise NotImplementedError

    @abstractmethod
    def get_contributor_by_handle(self, site_id: UUID, handle: str) -> Contributor:
        raise NotImplementedError

    @abstractmethod
    def create_contributor(self, contributor: Contributor) -> Contributor:
        raise NotImplementedError

    @abstractmethod
    def set_contributor_profile(self, contributor_id: UUID, profile_id: UUID, updated_by: str = "") -> None:
        raise NotImplementedError

    # --- contents ---

    @abstractmethod
    def get_content_by_short_id(self, site_id: UUID, short_id: str) -> Content:
        raise NotImplementedError

    @abstractmethod
    def create_content(self, content: Content) -> Content:
        raise NotImplementedError

    @abstractmethod
    def get_all_content_with_meta(self, site_id: UUID) -> list[Content]:
        """Contents with section path/name, tags and header image joined in."""
        raise NotImplementedError

    def build_user_authors_map(
        self, contents: list[Content], contributors: list[Contributor],
    ) -> dict[str, Contributor]:
        """Map author usernames of contents without a contributor to the contributor of the same handle."""
        by_handle = {c.handle: c for c in contributors}
        authors: dict[str, Contributor] = {}
        for content in contents:
            name = content.author_username
            if not name or content.contributor_handle or name in authors:
                continue
            if name in by_handle:
                authors[name] = by_handle[name]
        return authors


class ProfileService(ABC):
    @abstractmethod
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
        raise NotImplementedError

    @abstractmethod
    def get_profile(self, profile_id: UUID) -> Profile:
        raise NotImplementedError
