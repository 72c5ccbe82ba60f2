"""Markdown to HTML conversion and post-processing of rendered content"""

import html
import re
from typing import Optional

from markdown_it import MarkdownIt
from pydantic import BaseModel

from sitepub.core.embeds import process_embeds
from sitepub.core.forms import process_forms


CAPTION_SEPARATOR = "|||"
IMG_RE = re.compile(r'<img([^>]*?)alt="([^"]*?)"([^>]*?)>')
SRC_RE = re.compile(r'src="([^"]*)"')
WORKSPACE_IMAGES_RE = re.compile(r'/ssg/workspace/[^/]+/images/')
PUBLIC_IMAGES_PATH = "/images/"

PARAGRAPH_SKIP_PREFIXES = ("#", "```", "-", "*", ">", "![")
ORDERED_LIST_RE = re.compile(r"^\d+[.)]\s")


class ImageMeta(BaseModel):
    """Human metadata for an image, keyed by its public src."""
    title:           str = ""
    alt:             str = ""
    attribution:     str = ""
    attribution_url: str = ""


def _make_parser() -> MarkdownIt:
    return MarkdownIt(
        "gfm-like",
        options_update={"linkify": False, "html": True, "breaks": True, "xhtmlOut": True},
    )


def _credit(meta: Optional[ImageMeta]) -> str:
    if meta is None or not meta.attribution:
        return ""
    title = html.escape(meta.title)
    attribution = html.escape(meta.attribution)
    if meta.attribution_url:
        attribution = (
            f'<a href="{html.escape(meta.attribution_url)}" target="_blank" rel="noopener">'
            f'{attribution}</a>'
        )
    return (
        f'<figcaption class="content-credit"><span class="content-credit-title">{title}</span>'
        f'<span class="content-credit-attr">{attribution}</span></figcaption>'
    )


class Processor:
    """Renders content bodies. Bodies are sanitized upstream, so raw HTML passes through."""

    def __init__(self, workspace_base: str = ""):
        self.md = _make_parser()
        self._workspace_re = None
        if workspace_base:
            base = re.escape(str(workspace_base).rstrip("/"))
            self._workspace_re = re.compile(base + r'/[^/]+/images/')

    def to_html(self, markdown: str) -> str:
        return self.md.render(markdown or "")

    def process_content(
        self,
        content: str,
        images_meta: Optional[dict[str, ImageMeta]] = None,
        site_id: str = "",
        forms_enabled: bool = False,
        forms_endpoint: str = "",
    ) -> str:
        """Render markdown, then enhance images, rewrite paths, expand embeds and forms."""
        out = self.to_html(content)
        out = self.enhance_images(out, images_meta)
        out = self.rewrite_image_paths(out)
        out = process_embeds(out)
        return process_forms(out, site_id, forms_endpoint, forms_enabled)

    def rewrite_image_paths(self, content: str) -> str:
        """Point workspace image URLs at the published /images/ path."""
        content = WORKSPACE_IMAGES_RE.sub(PUBLIC_IMAGES_PATH, content)
        if self._workspace_re is not None:
            content = self._workspace_re.sub(PUBLIC_IMAGES_PATH, content)
        return content

    def enhance_images(self, content: str, images_meta: Optional[dict[str, ImageMeta]] = None) -> str:
        """Split ``alt|||caption`` alts into a figure; add credits from image metadata."""
        images_meta = images_meta or {}

        def _sub(match: re.Match) -> str:
            src_match = SRC_RE.search(match.group(0))
            if not src_match:
                return match.group(0)
            src = src_match.group(1)
            alt, _, caption = match.group(2).partition(CAPTION_SEPARATOR)
            alt, caption = alt.strip(), caption.strip()

            img = f'<img src="{src}" alt="{alt}" class="content-img" loading="lazy">'
            credit = _credit(images_meta.get(self.rewrite_image_paths(src)) or images_meta.get(src))
            if not caption and not credit:
                return img
            figcaption = f'<figcaption class="content-caption">{caption}</figcaption>' if caption else ""
            return f'<figure class="content-figure">{img}{credit}{figcaption}</figure>'

        return IMG_RE.sub(_sub, content)

    @staticmethod
    def extract_first_paragraph(markdown: str) -> str:
        """First blank-line-delimited paragraph that is not a heading, fence, list, quote or image."""
        for para in (markdown or "").split("\n\n"):
            para = para.strip()
            if para and not para.startswith(PARAGRAPH_SKIP_PREFIXES) and not ORDERED_LIST_RE.match(para):
                return para
        return ""
