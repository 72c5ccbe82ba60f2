"""Markdown generation: one frontmatter document per content item"""

import logging
from typing import Any

from pydantic import BaseModel, Field

from sitepub.core import frontmatter
from sitepub.core.models import Content
from sitepub.core.workspace import Workspace, clean_dir, ensure_dir


logger = logging.getLogger(__name__)

DEFAULT_SECTION = "posts"


class GenerateMarkdownResult(BaseModel):
    total_content:   int = 0
    files_generated: int = 0
    errors:          list[str] = Field(default_factory=list)


def content_frontmatter(content: Content) -> dict[str, Any]:
    """Frontmatter for a content file; empty optional fields are left out."""
    fields: dict[str, Any] = {
        "title": content.heading,
        "slug": content.slug,
        "short-id": content.short_id,
        "section": content.section_path,
        "author": content.author_username,
        "contributor": content.contributor_handle,
        "tags": [t.name for t in content.tags],
        "layout": content.section_name,
        "draft": content.draft,
        "featured": content.featured,
        "summary": content.summary,
        "image": content.header_image_url,
        "social-image": content.header_image_url,
        "published-at": frontmatter.format_timestamp(content.published_at) if content.published_at else "",
        "created-at": frontmatter.format_timestamp(content.created_at),
        "updated-at": frontmatter.format_timestamp(content.updated_at),
        "kind": content.kind,
        "series": content.series,
        "series-order": content.series_order,
    }
    if content.meta is not None:
        fields.update({
            "description": content.meta.description,
            "robots": content.meta.robots,
            "keywords": content.meta.keywords,
            "canonical-url": content.meta.canonical_url,
            "sitemap": content.meta.sitemap,
            "table-of-contents": content.meta.table_of_contents,
            "comments": content.meta.comments,
            "share": content.meta.share,
        })
    keep = {"title", "slug", "draft", "featured", "created-at", "updated-at"}
    return {k: v for k, v in fields.items() if k in keep or v}


class MarkdownGenerator:
    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def generate_markdown(self, site_slug: str, contents: list[Content]) -> GenerateMarkdownResult:
        """Clean markdown/ and write every content under its section path."""
        result = GenerateMarkdownResult(total_content=len(contents))
        clean_dir(self.workspace.markdown_path(site_slug))

        for content in contents:
            try:
                path = self.workspace.content_markdown_path(
                    site_slug, content.section_path or DEFAULT_SECTION, content.slug,
                )
                ensure_dir(path)
                path.write_text(frontmatter.dump(content_frontmatter(content), content.body), encoding="utf-8")
            except (OSError, ValueError) as e:
                logger.warning("Markdown for %r failed: %s", content.heading, e)
                result.errors.append(f"content {content.heading}: {e}")
                continue
            result.files_generated += 1

        logger.info("Generated %d/%d markdown files for %s",
                    result.files_generated, result.total_content, site_slug)
        return result
