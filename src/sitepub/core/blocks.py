"""Related-content and series-navigation blocks computed per content item"""

from typing import Optional

from pydantic import BaseModel, Field

from sitepub.core.models import Content


# Kind -> successive fallback tiers of candidate kinds
RELATED_TIERS: dict[str, tuple[str, ...]] = {
    "blog":    ("blog", "article"),
    "article": ("article", "post", "blog"),
    "post":    ("article",),
}


class BlocksConfig(BaseModel):
    enabled:       bool = True
    multi_section: bool = True
    max_items:     int = Field(default=5, ge=0)


class GeneratedBlocks(BaseModel):
    related:               list[Content] = Field(default_factory=list)
    series_prev:           Optional[Content] = None
    series_next:           Optional[Content] = None
    series_index_forward:  list[Content] = Field(default_factory=list)
    series_index_backward: list[Content] = Field(default_factory=list)

    def has_content(self) -> bool:
        return bool(
            self.related
            or self.series_prev
            or self.series_next
            or self.series_index_forward
            or self.series_index_backward
        )


def has_common_tags(a: Content, b: Content) -> bool:
    """True if a and b share at least one tag by ID."""
    ids = {t.id for t in a.tags}
    return any(t.id in ids for t in b.tags)


def _series_blocks(blocks: GeneratedBlocks, current: Content, all_content: list[Content], max_items: int) -> None:
    # sorted() is stable: equal series_order keeps input order
    entries = sorted((c for c in all_content if c.series == current.series), key=lambda c: c.series_order)
    index = next((i for i, c in enumerate(entries) if c.id == current.id), None)
    if index is None:
        return

    if index > 0:
        blocks.series_prev = entries[index - 1]
    if index < len(entries) - 1:
        blocks.series_next = entries[index + 1]
    blocks.series_index_forward = entries[index + 1:][:max_items]
    blocks.series_index_backward = entries[:index][::-1][:max_items]


def _related(current: Content, all_content: list[Content], config: BlocksConfig) -> list[Content]:
    if not current.tags:
        return []

    candidates = [
        c for c in all_content
        if c.id != current.id
        and (config.multi_section or c.section_id == current.section_id)
        and has_common_tags(current, c)
    ]

    related: list[Content] = []
    for kind in RELATED_TIERS.get(current.kind, ()):
        for c in candidates:
            if len(related) >= config.max_items:
                return related
            if c.kind == kind:
                related.append(c)
    return related


def build_blocks(current: Content, all_content: list[Content], config: BlocksConfig) -> GeneratedBlocks:
    """Series content gets series navigation; other content gets tag-related items by kind."""
    blocks = GeneratedBlocks()
    if not config.enabled:
        return blocks

    if current.series:
        _series_blocks(blocks, current, all_content, config.max_items)
        return blocks

    blocks.related = _related(current, all_content, config)
    return blocks
