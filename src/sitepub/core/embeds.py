"""Embed blocks: ```embed fenced YAML turned into provider iframes or raw HTML"""

import html
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote_plus

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from sitepub.core.codeblocks import replace_code_blocks
from sitepub.core.errors import EmbedError


DEFAULT_RATIO = "16:9"

VALID_RATIOS: dict[str, str] = {
    "16:9": "ratio-16-9",
    "4:3":  "ratio-4-3",
    "1:1":  "ratio-1-1",
    "9:16": "ratio-9-16",
}

_SEPARATOR_RE = re.compile(r'^---\s*$', re.MULTILINE)


class EmbedConfig(BaseModel):
    provider: str = ""
    id:       str = ""
    ratio:    str = ""
    title:    str = ""
    code:     str = ""

    @field_validator("provider", "id", "ratio", "title", "code", mode="before")
    @classmethod
    def _as_text(cls, v):
        return "" if v is None else str(v)


@dataclass(frozen=True)
class EmbedProvider:
    name:        str
    url_pattern: str = ""
    allow_attr:  str = ""
    requires_id: bool = True
    normalize:   Optional[Callable[[str], str]] = None


def _soundcloud_url(track: str) -> str:
    """Accept 'artist/track' or a full URL; always return the percent-encoded track URL."""
    track = track.strip()
    if not track.lower().startswith("http"):
        track = "https://soundcloud.com/" + track.lstrip("/")
    return quote_plus(track, safe="")


EMBED_PROVIDERS: dict[str, EmbedProvider] = {
    "youtube": EmbedProvider(
        name="YouTube",
        url_pattern="https://www.youtube.com/embed/{id}",
        allow_attr="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture",
    ),
    "vimeo": EmbedProvider(
        name="Vimeo",
        url_pattern="https://player.vimeo.com/video/{id}",
        allow_attr="autoplay; fullscreen; picture-in-picture",
    ),
    "tiktok": EmbedProvider(
        name="TikTok",
        url_pattern="https://www.tiktok.com/embed/v2/{id}",
    ),
    "soundcloud": EmbedProvider(
        name="SoundCloud",
        url_pattern="https://w.soundcloud.com/player/?url={id}",
        normalize=_soundcloud_url,
    ),
    "html": EmbedProvider(name="HTML", requires_id=False),
}


def ratio_class(ratio: str) -> str:
    """CSS class for a ratio; unknown ratios fall back to 16:9."""
    return VALID_RATIOS.get((ratio or DEFAULT_RATIO).strip(), VALID_RATIOS[DEFAULT_RATIO])


def embed_to_html(config: EmbedConfig) -> str:
    """Render one embed. Raises EmbedError for unknown providers or missing fields."""
    if not config.provider.strip():
        raise EmbedError("provider is required")

    key = config.provider.strip().lower()
    provider = EMBED_PROVIDERS.get(key)
    if provider is None:
        raise EmbedError(f"unsupported provider: {config.provider}")

    if key == "html":
        if not config.code.strip():
            raise EmbedError("code is required for html embeds")
        return f'<div class="embed-html">{config.code.strip()}</div>'

    if provider.requires_id and not config.id.strip():
        raise EmbedError("id is required")

    embed_id = config.id.strip()
    if provider.normalize:
        embed_id = provider.normalize(embed_id)
    src = provider.url_pattern.format(id=html.escape(embed_id))

    title = html.escape(config.title or f"{provider.name} video")
    allow = f' allow="{provider.allow_attr}"' if provider.allow_attr else ""
    return (
        f'<div class="embed-container {ratio_class(config.ratio)}">'
        f'<iframe src="{src}" title="{title}"{allow} allowfullscreen loading="lazy"></iframe>'
        f'</div>'
    )


def parse_embed(text: str) -> EmbedConfig:
    """Parse embed block text. Markup after a '---' line becomes the html provider's code."""
    header, code = text, ""
    parts = _SEPARATOR_RE.split(text, maxsplit=1)
    if len(parts) == 2:
        header, code = parts[0], parts[1].strip()

    try:
        data = yaml.safe_load(header) if header.strip() else {}
    except yaml.YAMLError as e:
        raise EmbedError(f"invalid embed YAML: {e}") from e
    if not isinstance(data, dict):
        raise EmbedError("embed block must be a mapping")

    if code and not data.get("code"):
        data["code"] = code
    try:
        return EmbedConfig.model_validate(data)
    except ValidationError as e:
        raise EmbedError(f"invalid embed fields: {e}") from e


def _embed_block(text: str) -> Optional[str]:
    try:
        return embed_to_html(parse_embed(text))
    except EmbedError:
        return None


def process_embeds(content: str) -> str:
    """Replace every valid ```embed block; invalid blocks are left untouched."""
    return replace_code_blocks(content, "embed", _embed_block)
