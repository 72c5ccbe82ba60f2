from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from sitepub.core.errors import DuplicateError, NotFoundError
from sitepub.core.models import (
    Content, ContentImage, Contributor, Image, Layout, Profile, Section, Setting, Site, Tag, utcnow,
)
from sitepub.crud.repo import ProfileService, Service
from sitepub.crud.tables import (
    ContentImageRow, ContentRow, ContentTagRow, ContributorRow, ImageRow, LayoutRow, ProfileRow,
    SectionRow, SettingRow, SiteRow, TagRow,
)


M = TypeVar("M", bound=BaseModel)


def _aware(value: Any) -> Any:
    """SQLite drops tzinfo; stored values are UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _utc(value: Any) -> Any:
    """Rows hold UTC wall-clock time; convert offset-aware values before writing."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value


def _row_to_model(model_cls: type[M], row: SQLModel, **extra: Any) -> M:
    data = {
        name: _aware(getattr(row, name))
        for name in model_cls.model_fields
        if hasattr(row, name)
    }
    data.update(extra)
    return model_cls.model_validate(data)


def _model_to_row(row_cls: type[SQLModel], model: BaseModel) -> SQLModel:
    data = model.model_dump(include=set(row_cls.model_fields))
    return row_cls(**{name: _utc(value) for name, value in data.items()})


def _apply(row: SQLModel, model: BaseModel) -> SQLModel:
    for name, value in model.model_dump(include=set(type(row).model_fields) - {"id"}).items():
        setattr(row, name, _utc(value))
    return row


class SQLService(Service):
    def __init__(self, session: Session):
        self.session = session

    def _add(self, row: SQLModel, what: str) -> SQLModel:
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateError(f"{what} already exists") from e
        self.session.refresh(row)
        return row

    def _update(self, row_cls: type[SQLModel], model: BaseModel, what: str) -> SQLModel:
        row = self.session.get(row_cls, model.id)
        if row is None:
            raise NotFoundError(f"{what} not found: {model.id}")
        return self._add(_apply(row, model), what)

    def _one(self, stmt, what: str) -> SQLModel:
        row = self.session.exec(stmt).first()
        if row is None:
            raise NotFoundError(f"{what} not found")
        return row

    # --- sites ---

    def list_sites(self) -> list[Site]:
        return [_row_to_model(Site, r) for r in self.session.exec(select(SiteRow).order_by(SiteRow.created_at))]

    def get_site(self, site_id: UUID) -> Site:
        row = self.session.get(SiteRow, site_id)
        if row is None:
            raise NotFoundError(f"site not found: {site_id}")
        return _row_to_model(Site, row)

    def get_site_by_slug(self, slug: str) -> Site:
        return _row_to_model(Site, self._one(select(SiteRow).where(SiteRow.slug == slug), f"site {slug!r}"))

    def create_site(self, site: Site) -> Site:
        return _row_to_model(Site, self._add(_model_to_row(SiteRow, site), f"site {site.slug!r}"))

    def update_site(self, site: Site) -> Site:
        site = site.model_copy(update={"updated_at": utcnow()})
        return _row_to_model(Site, self._update(SiteRow, site, "site"))

    # --- sections ---

    def _section(self, row: SectionRow) -> Section:
        layout = self.session.get(LayoutRow, row.layout_id) if row.layout_id else None
        return _row_to_model(Section, row, layout_name=layout.name if layout else "")

    def get_sections(self, site_id: UUID) -> list[Section]:
        rows = self.session.exec(select(SectionRow).where(SectionRow.site_id == site_id).order_by(SectionRow.path))
        return [self._section(r) for r in rows]

    def get_section_by_path(self, site_id: UUID, path: str) -> Section:
        stmt = select(SectionRow).where(SectionRow.site_id == site_id, SectionRow.path == path.lstrip("/"))
        return self._section(self._one(stmt, f"section {path!r}"))

    def create_section(self, section: Section) -> Section:
        return self._section(self._add(_model_to_row(SectionRow, section), f"section {section.path!r}"))

    # --- layouts ---

    def get_layouts(self, site_id: UUID) -> list[Layout]:
        rows = self.session.exec(select(LayoutRow).where(LayoutRow.site_id == site_id).order_by(LayoutRow.name))
        return [_row_to_model(Layout, r) for r in rows]

    def get_layout_by_name(self, site_id: UUID, name: str) -> Layout:
        stmt = select(LayoutRow).where(LayoutRow.site_id == site_id, LayoutRow.name == name)
        return _row_to_model(Layout, self._one(stmt, f"layout {name!r}"))

    def create_layout(self, layout: Layout) -> Layout:
        return _row_to_model(Layout, self._add(_model_to_row(LayoutRow, layout), f"layout {layout.name!r}"))

    # --- tags ---

    def get_tags(self, site_id: UUID) -> list[Tag]:
        rows = self.session.exec(select(TagRow).where(TagRow.site_id == site_id).order_by(TagRow.name))
        return [_row_to_model(Tag, r) for r in rows]

    def get_tag_by_name(self, site_id: UUID, name: str) -> Tag:
        stmt = select(TagRow).where(TagRow.site_id == site_id, TagRow.name == name)
        return _row_to_model(Tag, self._one(stmt, f"tag {name!r}"))

    def create_tag(self, tag: Tag) -> Tag:
        return _row_to_model(Tag, self._add(_model_to_row(TagRow, tag), f"tag {tag.name!r}"))

    def add_tag_to_content(self, content_id: UUID, tag_id: UUID) -> None:
        if self.session.get(ContentTagRow, (content_id, tag_id)) is None:
            self._add(ContentTagRow(content_id=content_id, tag_id=tag_id), "content tag")

    # --- settings ---

    def get_settings(self, site_id: UUID) -> list[Setting]:
        rows = self.session.exec(select(SettingRow).where(SettingRow.site_id == site_id).order_by(SettingRow.ref_key))
        return [_row_to_model(Setting, r) for r in rows]

    def get_setting_by_ref_key(self, site_id: UUID, ref_key: str) -> Setting:
        stmt = select(SettingRow).where(SettingRow.site_id == site_id, SettingRow.ref_key == ref_key)
        return _row_to_model(Setting, self._one(stmt, f"setting {ref_key!r}"))

    def create_setting(self, setting: Setting) -> Setting:
        return _row_to_model(Setting, self._add(_model_to_row(SettingRow, setting), f"setting {setting.ref_key!r}"))

    def update_setting(self, setting: Setting) -> Setting:
        return _row_to_model(Setting, self._update(SettingRow, setting, "setting"))

    # --- images ---

    def get_images(self, site_id: UUID) -> list[Image]:
        rows = self.session.exec(select(ImageRow).where(ImageRow.site_id == site_id).order_by(ImageRow.file_path))
        return [_row_to_model(Image, r) for r in rows]

    def create_image(self, image: Image) -> Image:
        return _row_to_model(Image, self._add(_model_to_row(ImageRow, image), f"image {image.file_path!r}"))

    def update_image(self, image: Image) -> Image:
        return _row_to_model(Image, self._update(ImageRow, image, "image"))

    def link_image_to_content(
        self, content_id: UUID, image_id: UUID,
        is_header: bool = False, is_featured: bool = False, order_num: int = 0,
    ) -> ContentImage:
        row = ContentImageRow(
            content_id=content_id, image_id=image_id,
            is_header=is_header, is_featured=is_featured, order_num=order_num,
        )
        return _row_to_model(ContentImage, self._add(row, "content image link"))

    def get_content_images(self, content_id: UUID) -> list[ContentImage]:
        stmt = (select(ContentImageRow)
                .where(ContentImageRow.content_id == content_id)
                .order_by(ContentImageRow.order_num))
        return [_row_to_model(ContentImage, r) for r in self.session.exec(stmt)]

    # --- contributors ---

    def get_contributors(self, site_id: UUID) -> list[Contributor]:
        stmt = select(ContributorRow).where(ContributorRow.site_id == site_id).order_by(ContributorRow.handle)
        return [_row_to_model(Contributor, r) for r in self.session.exec(stmt)]

    def get_contributor_by_handle(self, site_id: UUID, handle: str) -> Contributor:
        stmt = select(ContributorRow).where(ContributorRow.site_id == site_id, ContributorRow.handle == handle)
        return _row_to_model(Contributor, self._one(stmt, f"contributor {handle!r}"))

    def create_contributor(self, contributor: Contributor) -> Contributor:
        row = _model_to_row(ContributorRow, contributor)
        return _row_to_model(Contributor, self._add(row, f"contributor {contributor.handle!r}"))

    def set_contributor_profile(self, contributor_id: UUID, profile_id: UUID, updated_by: str = "") -> None:
        row = self.session.get(ContributorRow, contributor_id)
        if row is None:
            raise NotFoundError(f"contributor not found: {contributor_id}")
        row.profile_id = profile_id
        row.updated_by = updated_by
        self._add(row, "contributor")

    # --- contents ---

    def get_content_by_short_id(self, site_id: UUID, short_id: str) -> Content:
        stmt = select(ContentRow).where(ContentRow.site_id == site_id, ContentRow.short_id == short_id)
        return _row_to_model(Content, self._one(stmt, f"content {short_id!r}"))

    def create_content(self, content: Content) -> Content:
        row = self._add(_model_to_row(ContentRow, content), f"content {content.short_id!r}")
        for tag in content.tags:
            self.add_tag_to_content(row.id, tag.id)
        return _row_to_model(Content, row, tags=content.tags)

    def _content_tags(self, content_id: UUID) -> list[Tag]:
        stmt = (select(TagRow)
                .join(ContentTagRow, ContentTagRow.tag_id == TagRow.id)
                .where(ContentTagRow.content_id == content_id))
        return [_row_to_model(Tag, r) for r in self.session.exec(stmt)]

    def _header_image(self, content_id: UUID) -> tuple[str, str]:
        stmt = (select(ImageRow)
                .join(ContentImageRow, ContentImageRow.image_id == ImageRow.id)
                .where(ContentImageRow.content_id == content_id, ContentImageRow.is_header == True))  # noqa: E712
        row = self.session.exec(stmt).first()
        return (f"/images/{row.file_path}", row.alt_text) if row else ("", "")

    def get_all_content_with_meta(self, site_id: UUID) -> list[Content]:
        sections = {s.id: s for s in self.session.exec(select(SectionRow).where(SectionRow.site_id == site_id))}
        stmt = select(ContentRow).where(ContentRow.site_id == site_id).order_by(ContentRow.created_at)
        out = []
        for row in self.session.exec(stmt).all():
            section = sections.get(row.section_id)
            url, alt = self._header_image(row.id)
            out.append(_row_to_model(
                Content, row,
                section_path=section.path if section else "",
                section_name=section.name if section else "",
                tags=self._content_tags(row.id),
                header_image_url=url,
                header_image_alt=alt,
            ))
        return out


class SQLProfileService(ProfileService):
    def __init__(self, session: Session):
        self.session = session

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
        row = _model_to_row(ProfileRow, profile)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return _row_to_model(Profile, row)

    def get_profile(self, profile_id: UUID) -> Profile:
        row = self.session.get(ProfileRow, profile_id)
        if row is None:
            raise NotFoundError(f"profile not found: {profile_id}")
        return _row_to_model(Profile, row)
