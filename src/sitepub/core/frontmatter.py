"""Frontmatter codec: lenient flat parse, strict typed projection, and serialization.

The two stages are kept separate. ``parse`` never fails and yields a flat
string map; ``parse_typed`` validates the same block against
``TypedFrontmatter`` and raises ``FrontmatterError`` only when a block is
present but cannot be read.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sitepub.core.errors import FrontmatterError


DELIMITER = "---"

_TIMESTAMP_RE = re.compile(
    r'^(?P<date>\d{4}-\d{2}-\d{2})'
    r'(?:[Tt ]+(?P<time>\d{1,2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?'
    r'\s*(?P<tz>[Zz]|[+-]\d{2}(?::?\d{2})?)?)?$'
)


def _split(document: str) -> tuple[Optional[str], str]:
    """Return (block_text, body). block_text is None when there is no closed block."""
    lines = document.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        return None, document

    for i in range(1, len(lines)):
        if lines[i].strip() == DELIMITER:
            block = "".join(lines[1:i])
            body = "".join(lines[i + 1:]).lstrip("\r\n")
            return block, body
    return None, document


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339-like timestamp or ISO date. Naive values are taken as UTC.

    Fractions longer than microseconds are truncated. Raises ValueError.
    """
    m = _TIMESTAMP_RE.match(text.strip())
    if not m:
        raise ValueError(f"not a timestamp: {text!r}")

    year, month, day = (int(p) for p in m.group("date").split("-"))
    if not m.group("time"):
        return datetime(year, month, day, tzinfo=timezone.utc)

    hour, minute, second = (int(p) for p in m.group("time").split(":"))
    micro = int((m.group("frac") or "0")[:6].ljust(6, "0"))
    tz = timezone.utc
    raw_tz = m.group("tz")
    if raw_tz and raw_tz not in ("Z", "z"):
        sign = -1 if raw_tz[0] == "-" else 1
        digits = raw_tz[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:4] or 0))
        tz = timezone(sign * offset)
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def format_timestamp(value: datetime) -> str:
    """RFC 3339 string; UTC renders with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _scalar_to_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float, str)):
        return str(value)
    return None


def parse(document: str) -> tuple[dict[str, str], str]:
    """Lenient stage: flat string map of scalar fields and the body. Never raises."""
    block, body = _split(document)
    if block is None:
        return {}, document

    try:
        data = yaml.safe_load(block) if block.strip() else {}
    except yaml.YAMLError:
        return {}, body
    if not isinstance(data, dict):
        return {}, body

    fields: dict[str, str] = {}
    for key, value in data.items():
        text = _scalar_to_str(value)
        if text is not None:
            fields[str(key)] = text
    return fields, body


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_timestamp(value)
    raise ValueError(f"unsupported date value: {value!r}")


class TypedFrontmatter(BaseModel):
    """Strict projection of a content document's frontmatter. Unknown keys are kept as extras."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title:             str = ""
    slug:              str = ""
    short_id:          str = Field(default="", alias="short-id")
    section:           str = ""
    author:            str = ""
    contributor:       str = ""
    tags:              list[str] = Field(default_factory=list)
    layout:            str = ""
    draft:             bool = False
    featured:          bool = False
    summary:           str = ""
    description:       str = ""
    image:             str = ""
    social_image:      str = Field(default="", alias="social-image")
    published_at:      Optional[datetime] = Field(default=None, alias="published-at")
    created_at:        Optional[datetime] = Field(default=None, alias="created-at")
    updated_at:        Optional[datetime] = Field(default=None, alias="updated-at")
    robots:            str = ""
    keywords:          str = ""
    canonical_url:     str = Field(default="", alias="canonical-url")
    sitemap:           str = ""
    table_of_contents: bool = Field(default=False, alias="table-of-contents")
    comments:          bool = False
    share:             bool = False
    kind:              str = ""
    series:            str = ""
    series_order:      int = Field(default=0, alias="series-order")

    @field_validator("published_at", "created_at", "updated_at", mode="before")
    @classmethod
    def _dates(cls, v: Any) -> Optional[datetime]:
        return _coerce_datetime(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return [str(t) for t in v]

    @field_validator(
        "title", "slug", "short_id", "section", "author", "contributor", "layout", "summary",
        "description", "image", "social_image", "robots", "keywords", "canonical_url",
        "sitemap", "kind", "series", mode="before",
    )
    @classmethod
    def _strings(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, (bool, int, float, date)):
            return _scalar_to_str(v)
        return v

    @field_validator("series_order", mode="before")
    @classmethod
    def _order(cls, v: Any) -> Any:
        return 0 if v in (None, "") else v


def parse_typed(document: str) -> tuple[Optional[TypedFrontmatter], str]:
    """Strict stage. Returns (None, document) when no block is present."""
    block, body = _split(document)
    if block is None:
        return None, document

    try:
        data = yaml.safe_load(block) if block.strip() else {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML frontmatter: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(f"Invalid YAML frontmatter: expected a mapping, got {type(data).__name__}")

    try:
        return TypedFrontmatter.model_validate({str(k): v for k, v in data.items()}), body
    except ValidationError as e:
        raise FrontmatterError(f"Invalid frontmatter values: {e}") from e


def join(fields: dict[str, Any]) -> str:
    """Render a mapping as YAML block content (no delimiters)."""
    return yaml.safe_dump(dict(fields), default_flow_style=False, allow_unicode=True, sort_keys=False)


def dump(fields: dict[str, Any], body: str) -> str:
    """Render a full document: delimited frontmatter block followed by the body."""
    return f"{DELIMITER}\n{join(fields)}{DELIMITER}\n\n{body}"
