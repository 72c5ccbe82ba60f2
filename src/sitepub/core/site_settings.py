"""Per-site settings: free-form ref-key rows projected into one validated model"""

import re
from datetime import timedelta
from typing import Iterable, Mapping, Union

from pydantic import BaseModel, Field

from sitepub.core.models import Setting


BLOCKS_ENABLED        = "ssg.blocks.enabled"
BLOCKS_MULTISECTION   = "ssg.blocks.multisection"
BLOCKS_MAX_ITEMS      = "ssg.blocks.maxitems"
INDEX_MAX_ITEMS       = "ssg.index.maxitems"
SITE_BASE_PATH        = "ssg.site.base_path"
FORMS_ENABLED         = "ssg.forms.enabled"
FORMS_ENDPOINT        = "ssg.forms.endpoint"
SCHEDULE_ENABLED      = "ssg.scheduled.publish.enabled"
SCHEDULE_INTERVAL     = "ssg.scheduled.publish.interval"
PUBLISH_REPO_URL      = "ssg.publish.repo.url"
PUBLISH_BRANCH        = "ssg.publish.branch"
PUBLISH_AUTH_TOKEN    = "ssg.publish.auth.token"
COMMIT_USER_NAME      = "ssg.git.commit.user.name"
COMMIT_USER_EMAIL     = "ssg.git.commit.user.email"

DEFAULT_INTERVAL = timedelta(hours=1)
MIN_INTERVAL = timedelta(minutes=1)

_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')
_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s":  timedelta(seconds=1),
    "m":  timedelta(minutes=1),
    "h":  timedelta(hours=1),
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as '90s', '30m' or '1h30m'. Raises ValueError."""
    text = (text or "").strip()
    sign = -1 if text.startswith("-") else 1
    rest = text.lstrip("+-")
    if not rest:
        raise ValueError(f"invalid duration: {text!r}")
    if rest == "0":
        return timedelta(0)

    total = timedelta(0)
    pos = 0
    for m in _DURATION_PART.finditer(rest):
        if m.start() != pos:
            raise ValueError(f"invalid duration: {text!r}")
        total += float(m.group(1)) * _UNITS[m.group(2)]
        pos = m.end()
    if pos != len(rest):
        raise ValueError(f"invalid duration: {text!r}")
    return sign * total


def _positive_int(value: str, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def _base_path(value: str) -> str:
    value = (value or "").strip().strip("/")
    return f"/{value}/" if value else "/"


class SiteSettings(BaseModel):
    blocks_enabled:      bool = True
    blocks_multisection: bool = True
    blocks_max_items:    int = Field(default=5, gt=0)
    index_max_items:     int = Field(default=9, gt=0)
    base_path:           str = "/"
    forms_enabled:       bool = False
    forms_endpoint:      str = ""
    schedule_enabled:    bool = False
    schedule_interval:   timedelta = DEFAULT_INTERVAL
    publish_repo_url:    str = ""
    publish_branch:      str = "gh-pages"
    publish_auth_token:  str = ""
    commit_user_name:    str = "Clio Bot"
    commit_user_email:   str = "clio@localhost"

    @classmethod
    def from_settings(cls, settings: Union[Iterable[Setting], Mapping[str, str]]) -> "SiteSettings":
        """Build from Setting rows or a ref_key -> value mapping; blank values take defaults."""
        if isinstance(settings, Mapping):
            raw = {k: (v or "") for k, v in settings.items()}
        else:
            raw = {s.ref_key: s.value or "" for s in settings}

        def get(key: str) -> str:
            return raw.get(key, "").strip()

        interval = DEFAULT_INTERVAL
        if get(SCHEDULE_INTERVAL):
            try:
                parsed = parse_duration(get(SCHEDULE_INTERVAL))
            except ValueError:
                parsed = None
            if parsed is not None and parsed >= MIN_INTERVAL:
                interval = parsed

        defaults = cls.model_fields
        return cls(
            blocks_enabled=get(BLOCKS_ENABLED) != "false",
            blocks_multisection=get(BLOCKS_MULTISECTION) != "false",
            blocks_max_items=_positive_int(get(BLOCKS_MAX_ITEMS), defaults["blocks_max_items"].default),
            index_max_items=_positive_int(get(INDEX_MAX_ITEMS), defaults["index_max_items"].default),
            base_path=_base_path(get(SITE_BASE_PATH)),
            forms_enabled=get(FORMS_ENABLED) == "true",
            forms_endpoint=get(FORMS_ENDPOINT),
            schedule_enabled=get(SCHEDULE_ENABLED) == "true",
            schedule_interval=interval,
            publish_repo_url=get(PUBLISH_REPO_URL),
            publish_branch=get(PUBLISH_BRANCH) or defaults["publish_branch"].default,
            publish_auth_token=get(PUBLISH_AUTH_TOKEN),
            commit_user_name=get(COMMIT_USER_NAME) or defaults["commit_user_name"].default,
            commit_user_email=get(COMMIT_USER_EMAIL) or defaults["commit_user_email"].default,
        )
