"""Portable backup bundle: Meta projections of site entities, free of storage IDs"""

from typing import Any

from pydantic import BaseModel, Field

from sitepub.core.models import Contributor, Image, Layout, Section, Tag


LAYOUTS_FILE        = "layouts.yml"
CONTRIBUTORS_FILE   = "contributors.yml"
TAGS_FILE           = "tags.yml"
SECTIONS_FILE       = "sections.yml"
IMAGES_FILE         = "images.yml"
CONTENT_IMAGES_FILE = "content_images.yml"
LAYOUTS_DIR         = "layouts"


class MetaModel(BaseModel):
    def to_yaml(self) -> dict[str, Any]:
        """Plain dict for YAML output; empty optional fields are omitted."""
        return self.model_dump(exclude_defaults=True)


class MetaLayout(MetaModel):
    name:                str
    description:         str = ""
    exclude_default_css: bool = False


class MetaContributor(MetaModel):
    handle:       str
    name:         str = ""
    surname:      str = ""
    bio:          str = ""
    photo_path:   str = ""
    social_links: dict[str, str] = Field(default_factory=dict)


class MetaTag(MetaModel):
    name: str
    slug: str = ""


class MetaSection(MetaModel):
    name:   str
    path:   str = ""
    layout: str = ""


class MetaImage(MetaModel):
    path:            str
    alt:             str = ""
    caption:         str = ""
    attribution:     str = ""
    attribution_url: str = ""


class MetaContentImage(MetaModel):
    image_path:  str
    is_header:   bool = False
    is_featured: bool = False
    order_num:   int = 0


class BackupMeta(BaseModel):
    layouts:        list[MetaLayout] = Field(default_factory=list)
    contributors:   list[MetaContributor] = Field(default_factory=list)
    tags:           list[MetaTag] = Field(default_factory=list)
    sections:       list[MetaSection] = Field(default_factory=list)
    images:         dict[str, MetaImage] = Field(default_factory=dict)               # keyed by image path
    content_images: dict[str, list[MetaContentImage]] = Field(default_factory=dict)  # keyed by content short ID
    errors:         list[str] = Field(default_factory=list, exclude=True)


def layout_to_meta(layout: Layout) -> MetaLayout:
    return MetaLayout(
        name=layout.name,
        description=layout.description,
        exclude_default_css=layout.exclude_default_css,
    )


def contributor_to_meta(contributor: Contributor, photo_path: str = "") -> MetaContributor:
    """Social links collapse to platform -> url, falling back to the handle."""
    links = {}
    for link in contributor.social_links:
        if link.url or link.handle:
            links[link.platform] = link.url or link.handle
    return MetaContributor(
        handle=contributor.handle,
        name=contributor.name,
        surname=contributor.surname,
        bio=contributor.bio,
        photo_path=photo_path or contributor.photo_path,
        social_links=links,
    )


def tag_to_meta(tag: Tag) -> MetaTag:
    return MetaTag(name=tag.name, slug=tag.slug)


def section_to_meta(section: Section) -> MetaSection:
    return MetaSection(name=section.name, path=section.path, layout=section.layout_name)


def image_to_meta(image: Image) -> MetaImage:
    return MetaImage(
        path=image.file_path,
        alt=image.alt_text,
        caption=image.title,
        attribution=image.attribution,
        attribution_url=image.attribution_url,
    )
