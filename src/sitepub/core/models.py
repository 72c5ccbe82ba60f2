"""Domain models for sites and their content, read by generation and backup"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from sitepub.core.utils.slug import content_slug, slugify


SHORT_ID_LEN = 8


def new_short_id() -> str:
    """8-character portable identifier."""
    return uuid4().hex[:SHORT_ID_LEN]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Site(BaseModel):
    id:                UUID = Field(default_factory=uuid4)
    short_id:          str = Field(default_factory=new_short_id)
    name:              str = ""
    slug:              str
    mode:              str = "blog"         # "blog" or "structured"
    active:            bool = True
    default_layout_id: Optional[UUID] = None
    last_published_at: Optional[datetime] = None
    created_at:        datetime = Field(default_factory=utcnow)
    updated_at:        datetime = Field(default_factory=utcnow)


class Section(BaseModel):
    id:          UUID = Field(default_factory=uuid4)
    site_id:     UUID
    short_id:    str = Field(default_factory=new_short_id)
    name:        str
    description: str = ""
    path:        str = ""
    layout_id:   Optional[UUID] = None
    layout_name: str = ""

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, v: str) -> str:
        return v.lstrip("/")

    @property
    def is_root(self) -> bool:
        return self.path == ""


class Tag(BaseModel):
    id:       UUID = Field(default_factory=uuid4)
    site_id:  UUID
    short_id: str = Field(default_factory=new_short_id)
    name:     str
    slug:     str = ""

    @model_validator(mode="after")
    def _default_slug(self) -> "Tag":
        if not self.slug:
            self.slug = slugify(self.name)
        return self


class ContentMeta(BaseModel):
    """SEO metadata attached to a content item."""
    summary:           str = ""
    excerpt:           str = ""
    description:       str = ""
    keywords:          str = ""
    robots:            str = ""
    canonical_url:     str = ""
    sitemap:           str = ""
    table_of_contents: bool = False
    share:             bool = False
    comments:          bool = False


class Content(BaseModel):
    id:                 UUID = Field(default_factory=uuid4)
    site_id:            UUID
    user_id:            Optional[UUID] = None
    short_id:           str = Field(default_factory=new_short_id)
    section_id:         Optional[UUID] = None
    contributor_id:     Optional[UUID] = None
    contributor_handle: str = ""
    author_username:    str = ""
    kind:               str = "post"        # page, post, article, blog, ...
    heading:            str = ""
    summary:            str = ""
    body:               str = ""
    draft:              bool = True
    featured:           bool = False
    series:             str = ""
    series_order:       int = 0
    published_at:       Optional[datetime] = None

    # joined fields
    section_path:       str = ""
    section_name:       str = ""
    tags:               list[Tag] = Field(default_factory=list)
    meta:               Optional[ContentMeta] = None
    header_image_url:   str = ""
    header_image_alt:   str = ""

    created_at:         datetime = Field(default_factory=utcnow)
    updated_at:         datetime = Field(default_factory=utcnow)

    @property
    def slug(self) -> str:
        return content_slug(self.heading, self.short_id)

    @property
    def display_handle(self) -> str:
        return self.contributor_handle or self.author_username


class Layout(BaseModel):
    id:                  UUID = Field(default_factory=uuid4)
    site_id:             UUID
    short_id:            str = Field(default_factory=new_short_id)
    name:                str
    description:         str = ""
    code:                str = ""
    css:                 str = ""
    exclude_default_css: bool = False
    header_image_id:     Optional[UUID] = None


class SocialLink(BaseModel):
    platform: str
    handle:   str = ""
    url:      str = ""


class Contributor(BaseModel):
    id:           UUID = Field(default_factory=uuid4)
    site_id:      UUID
    profile_id:   Optional[UUID] = None
    short_id:     str = Field(default_factory=new_short_id)
    handle:       str
    name:         str = ""
    surname:      str = ""
    bio:          str = ""
    social_links: list[SocialLink] = Field(default_factory=list)
    role:         str = "editor"
    photo_path:   str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}" if self.surname else self.name


class Image(BaseModel):
    id:              UUID = Field(default_factory=uuid4)
    site_id:         UUID
    short_id:        str = Field(default_factory=new_short_id)
    file_name:       str
    file_path:       str                   # relative to the site's images dir
    alt_text:        str = ""
    title:           str = ""
    attribution:     str = ""
    attribution_url: str = ""
    width:           int = 0
    height:          int = 0

    @property
    def has_metadata(self) -> bool:
        return bool(self.alt_text or self.title or self.attribution or self.attribution_url)


class ContentImage(BaseModel):
    id:          UUID = Field(default_factory=uuid4)
    content_id:  UUID
    image_id:    UUID
    is_header:   bool = False
    is_featured: bool = False
    order_num:   int = 0


class Setting(BaseModel):
    id:          UUID = Field(default_factory=uuid4)
    site_id:     UUID
    short_id:    str = Field(default_factory=new_short_id)
    name:        str = ""
    description: str = ""
    value:       str = ""
    ref_key:     str
    category:    str = ""
    position:    int = 0
    system:      bool = False


class Profile(BaseModel):
    id:           UUID = Field(default_factory=uuid4)
    site_id:      UUID
    short_id:     str = Field(default_factory=new_short_id)
    slug:         str
    name:         str = ""
    surname:      str = ""
    bio:          str = ""
    social_links: str = "[]"               # JSON list of {platform, url}
    photo_path:   str = ""
    created_by:   str = ""
