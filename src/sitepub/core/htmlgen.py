"""Static HTML generation: content pages with blocks, root and section indexes with pagination, author pages"""

import logging
import shutil
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

import jinja2
from pydantic import BaseModel, Field

from sitepub.core.blocks import BlocksConfig, build_blocks
from sitepub.core.models import Content, Contributor, Image, Layout, Section, Setting, Site, utcnow
from sitepub.core.processor import ImageMeta, Processor
from sitepub.core.site_settings import SiteSettings
from sitepub.core.templates import DEFAULT_CSS, make_environment
from sitepub.core.workspace import Workspace, author_url, clean_dir, content_url, ensure_dir, pagination_url


logger = logging.getLogger(__name__)

PAGE_KIND = "page"


class GenerateHTMLResult(BaseModel):
    total_content:   int = 0
    pages_generated: int = 0
    index_pages:     int = 0
    author_pages:    int = 0
    errors:          list[str] = Field(default_factory=list)


def is_publishable(content: Content, now: Optional[datetime] = None) -> bool:
    """Not a draft, and either undated or dated no later than now."""
    if content.draft:
        return False
    return content.published_at is None or content.published_at <= (now or utcnow())


def build_menu(sections: Iterable[Section]) -> list[Section]:
    return [s for s in sections if not s.is_root and s.name != "main"]


def images_meta(images: Iterable[Image]) -> dict[str, ImageMeta]:
    """Image metadata keyed by public src."""
    return {
        f"/images/{img.file_path}": ImageMeta(
            title=img.title, alt=img.alt_text,
            attribution=img.attribution, attribution_url=img.attribution_url,
        )
        for img in images
        if img.has_metadata
    }


def author_of(content: Content, contributors: dict[str, Contributor],
              user_authors: dict[str, Contributor]) -> Optional[Contributor]:
    """Contributor credited on a page: the linked contributor, else the author's matching contributor."""
    if content.contributor_handle:
        return contributors.get(content.contributor_handle)
    return user_authors.get(content.author_username)


def contents_by_author(contents: Iterable[Content], handle: str) -> list[Content]:
    return [c for c in contents if handle in (c.contributor_handle, c.author_username)]


def unique_user_authors(contents: Iterable[Content], exclude: set[str]) -> list[str]:
    """Author usernames without a contributor of their own, in first-seen order."""
    names = (c.author_username for c in contents if c.author_username and c.author_username not in exclude)
    return list(dict.fromkeys(names))


def _pages(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)] or [[]]


class HTMLGenerator:
    def __init__(self, workspace: Workspace, processor: Optional[Processor] = None):
        self.workspace = workspace
        self.processor = processor or Processor(str(workspace.base_path))
        self.env = make_environment()

    # --- templates ---

    def _layout_templates(self, site: Site, sections: list[Section], layouts: list[Layout],
                          result: GenerateHTMLResult) -> tuple[dict, Optional[tuple]]:
        """Return ({section_id: (template, layout)}, site default) for custom layouts that compile."""
        compiled: dict[UUID, tuple[jinja2.Template, Layout]] = {}
        for layout in layouts:
            template = self.env.get_template("layout.html")
            if layout.code.strip():
                try:
                    template = self.env.from_string(layout.code)
                except jinja2.TemplateSyntaxError as e:
                    logger.warning("Layout %s does not compile: %s", layout.name, e)
                    result.errors.append(f"layout {layout.name}: {e}")
            compiled[layout.id] = (template, layout)

        by_section = {s.id: compiled[s.layout_id] for s in sections if s.layout_id in compiled}
        default = compiled.get(site.default_layout_id) if site.default_layout_id else None
        return by_section, default

    def _template_for(self, section_id: Optional[UUID], by_section: dict, default: Optional[tuple]):
        if section_id in by_section:
            return by_section[section_id]
        if default is not None:
            return default
        return self.env.get_template("layout.html"), None

    def _render(self, path, template_layout: tuple, **context) -> None:
        template, layout = template_layout
        html = template.render(
            default_css=DEFAULT_CSS,
            exclude_default_css=bool(layout and layout.exclude_default_css),
            layout_css=layout.css if layout else "",
            **context,
        )
        ensure_dir(path)
        path.write_text(html, encoding="utf-8")

    # --- assets ---

    def _copy_tree(self, src, dst, label: str, result: GenerateHTMLResult) -> None:
        if not src.is_dir():
            return
        try:
            shutil.copytree(src, dst, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            logger.warning("Copying %s failed: %s", label, e)
            result.errors.append(f"{label}: {e}")

    # --- generation ---

    def generate_html(
        self,
        site: Site,
        contents: list[Content],
        sections: list[Section],
        layouts: list[Layout],
        settings: list[Setting],
        contributors: Optional[list[Contributor]] = None,
        user_authors: Optional[dict[str, Contributor]] = None,
        images: Optional[list[Image]] = None,
    ) -> GenerateHTMLResult:
        """Clean html/ and regenerate the whole site. Not crash-atomic; re-run to recover."""
        result = GenerateHTMLResult(total_content=len(contents))
        cfg = SiteSettings.from_settings(settings)
        html_root = self.workspace.html_path(site.slug)

        clean_dir(html_root)
        html_root.mkdir(parents=True, exist_ok=True)
        self._copy_tree(self.workspace.images_path(site.slug), html_root / "images", "images", result)
        self._copy_tree(self.workspace.profiles_path(site.slug), html_root / "profiles", "profiles", result)

        by_section, default = self._layout_templates(site, sections, layouts, result)
        menu = build_menu(sections)
        section_by_id = {s.id: s for s in sections}
        meta = images_meta(images or [])
        now = utcnow()
        publishable = [c for c in contents if is_publishable(c, now)]

        def url_for(c: Content) -> str:
            return content_url(cfg.base_path, c.section_path, c.slug)

        def author_url_for(handle: str) -> str:
            return author_url(cfg.base_path, handle)

        common = dict(site=site, menu=menu, sections=sections, base_path=cfg.base_path, url_for=url_for,
                      author_url=author_url_for, settings=cfg)
        by_handle = {c.handle: c for c in contributors or []}

        blocks_cfg = BlocksConfig(
            enabled=cfg.blocks_enabled, multi_section=cfg.blocks_multisection, max_items=cfg.blocks_max_items,
        )
        for content in publishable:
            try:
                body = self.processor.process_content(
                    content.body, meta, str(site.id), cfg.forms_enabled, cfg.forms_endpoint,
                )
                path = self.workspace.content_html_path(site.slug, content.section_path, content.slug)
                self._render(
                    path, self._template_for(content.section_id, by_section, default),
                    content=content, body=body, section=section_by_id.get(content.section_id),
                    blocks=build_blocks(content, publishable, blocks_cfg), is_index=False,
                    author=author_of(content, by_handle, user_authors or {}), **common,
                )
            except Exception as e:
                logger.warning("Page for %r failed: %s", content.heading, e)
                result.errors.append(f"content {content.heading}: {e}")
                continue
            result.pages_generated += 1

        listed = [c for c in publishable if c.kind != PAGE_KIND]
        result.index_pages = self._render_indexes(site, listed, sections, by_section, default, cfg, common, result)
        result.author_pages = self._render_author_pages(
            site, listed, contributors or [], user_authors or {}, default, common, result,
        )

        logger.info("Generated %d pages, %d indexes and %d author pages for %s (%d errors)",
                    result.pages_generated, result.index_pages, result.author_pages, site.slug, len(result.errors))
        return result

    def _render_indexes(self, site: Site, listed: list[Content], sections: list[Section],
                        by_section: dict, default: Optional[tuple], cfg: SiteSettings, common: dict,
                        result: GenerateHTMLResult) -> int:
        """Root index always; section indexes only when they list something. Returns the count."""
        root = next((s for s in sections if s.is_root), None)
        targets = [("", root, listed)]
        for section in sections:
            items = [c for c in listed if c.section_id == section.id]
            if not section.is_root and items:
                targets.append((section.path, section, items))

        count = 0
        for index_path, section, items in targets:
            template_layout = self._template_for(section.id if section else None, by_section, default)
            try:
                self._render_index(site.slug, index_path, section, items, template_layout, cfg, common)
            except Exception as e:
                logger.warning("Index %r for %s failed: %s", index_path or "/", site.slug, e)
                result.errors.append(f"index {index_path or '/'}: {e}")
                continue
            count += 1
        return count

    def _render_author_pages(self, site: Site, listed: list[Content], contributors: list[Contributor],
                             user_authors: dict[str, Contributor], default: Optional[tuple], common: dict,
                             result: GenerateHTMLResult) -> int:
        """One page per contributor, then per author username without a contributor, under authors/."""
        authors = list(contributors)
        for name in unique_user_authors(listed, {c.handle for c in contributors}):
            authors.append(user_authors.get(name) or Contributor(site_id=site.id, handle=name, name=name))

        template_layout = default or (self.env.get_template("layout.html"), None)
        count = 0
        for author in authors:
            try:
                self._render(
                    self.workspace.author_html_path(site.slug, author.handle), template_layout,
                    content=None, contents=contents_by_author(listed, author.handle), author=author,
                    section=None, is_index=False, is_author=True, **common,
                )
            except Exception as e:
                logger.warning("Author page for %r failed: %s", author.handle, e)
                result.errors.append(f"author {author.handle}: {e}")
                continue
            count += 1
        return count

    def _render_index(self, slug: str, index_path: str, section: Optional[Section], items: list[Content],
                      template_layout: tuple, cfg: SiteSettings, common: dict) -> None:
        pages = _pages(items, cfg.index_max_items)
        total = len(pages)
        for number, page_items in enumerate(pages, start=1):
            self._render(
                self.workspace.pagination_html_path(slug, index_path, number), template_layout,
                content=None, contents=page_items, section=section, is_index=True,
                current_page=number, total_pages=total,
                prev_url=pagination_url(cfg.base_path, index_path, number - 1) if number > 1 else "",
                next_url=pagination_url(cfg.base_path, index_path, number + 1) if number < total else "",
                **common,
            )
