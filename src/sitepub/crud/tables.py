from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, Text, UniqueConstraint
from sqlmodel import Field, SQLModel


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ts(nullable: bool = False) -> Column:
    return Column(DateTime(timezone=True), nullable=nullable)


class SiteRow(SQLModel, table=True):
    __tablename__ = "sites"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    short_id: str = Field(..., index=True)
    name: str = Field(default="")
    slug: str = Field(..., index=True, unique=True, nullable=False)
    mode: str = Field(default="blog")
    active: bool = Field(default=True, nullable=False)
    default_layout_id: Optional[UUID] = Field(default=None)
    last_published_at: Optional[datetime] = Field(default=None, sa_column=_ts(nullable=True))
    created_at: datetime = Field(default_factory=_now, sa_column=_ts())
    updated_at: datetime = Field(default_factory=_now, sa_column=_ts())


class SectionRow(SQLModel, table=True):
    __tablename__ = "sections"
    __table_args__ = (UniqueConstraint("site_id", "path"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    name: str = Field(...)
    description: str = Field(default="")
    path: str = Field(default="")
    layout_id: Optional[UUID] = Field(default=None, foreign_key="layouts.id")


class LayoutRow(SQLModel, table=True):
    __tablename__ = "layouts"
    __table_args__ = (UniqueConstraint("site_id", "name"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    name: str = Field(...)
    description: str = Field(default="")
    code: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    css: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    exclude_default_css: bool = Field(default=False, nullable=False)
    header_image_id: Optional[UUID] = Field(default=None)


class TagRow(SQLModel, table=True):
    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("site_id", "name"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    name: str = Field(...)
    slug: str = Field(..., index=True)


class ContentTagRow(SQLModel, table=True):
    __tablename__ = "content_tags"
    content_id: UUID = Field(foreign_key="contents.id", primary_key=True)
    tag_id: UUID = Field(foreign_key="tags.id", primary_key=True)


class SettingRow(SQLModel, table=True):
    __tablename__ = "settings"
    __table_args__ = (UniqueConstraint("site_id", "ref_key"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    name: str = Field(default="")
    description: str = Field(default="")
    value: str = Field(default="")
    ref_key: str = Field(..., index=True)
    category: str = Field(default="")
    position: int = Field(default=0)
    system: bool = Field(default=False)


class ImageRow(SQLModel, table=True):
    __tablename__ = "images"
    __table_args__ = (UniqueConstraint("site_id", "file_path"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    file_name: str = Field(...)
    file_path: str = Field(...)
    alt_text: str = Field(default="")
    title: str = Field(default="")
    attribution: str = Field(default="")
    attribution_url: str = Field(default="")
    width: int = Field(default=0)
    height: int = Field(default=0)


class ContentImageRow(SQLModel, table=True):
    __tablename__ = "content_images"
    __table_args__ = (UniqueConstraint("content_id", "image_id"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    content_id: UUID = Field(foreign_key="contents.id", index=True, nullable=False)
    image_id: UUID = Field(foreign_key="images.id", nullable=False)
    is_header: bool = Field(default=False)
    is_featured: bool = Field(default=False)
    order_num: int = Field(default=0)


class ContributorRow(SQLModel, table=True):
    __tablename__ = "contributors"
    __table_args__ = (UniqueConstraint("site_id", "handle"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    profile_id: Optional[UUID] = Field(default=None, foreign_key="profiles.id")
    short_id: str = Field(...)
    handle: str = Field(...)
    name: str = Field(default="")
    surname: str = Field(default="")
    bio: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    social_links: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    role: str = Field(default="editor")
    photo_path: str = Field(default="")
    updated_by: str = Field(default="")


class ContentRow(SQLModel, table=True):
    __tablename__ = "contents"
    __table_args__ = (UniqueConstraint("site_id", "short_id"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    user_id: Optional[UUID] = Field(default=None)
    short_id: str = Field(..., index=True)
    section_id: Optional[UUID] = Field(default=None, foreign_key="sections.id")
    contributor_id: Optional[UUID] = Field(default=None, foreign_key="contributors.id")
    contributor_handle: str = Field(default="")
    author_username: str = Field(default="")
    kind: str = Field(default="post")
    heading: str = Field(default="")
    summary: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    body: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    draft: bool = Field(default=True)
    featured: bool = Field(default=False)
    series: str = Field(default="")
    series_order: int = Field(default=0)
    meta: Optional[dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    published_at: Optional[datetime] = Field(default=None, sa_column=_ts(nullable=True))
    created_at: datetime = Field(default_factory=_now, sa_column=_ts())
    updated_at: datetime = Field(default_factory=_now, sa_column=_ts())


class ProfileRow(SQLModel, table=True):
    __tablename__ = "profiles"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    site_id: UUID = Field(foreign_key="sites.id", index=True, nullable=False)
    short_id: str = Field(...)
    slug: str = Field(..., index=True)
    name: str = Field(default="")
    surname: str = Field(default="")
    bio: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    social_links: str = Field(default="[]", sa_column=Column(Text, nullable=False, default="[]"))
    photo_path: str = Field(default="")
    created_by: str = Field(default="")
