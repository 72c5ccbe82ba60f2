"""Markdown scanning: headings, first H1, image references, and import file discovery"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from sitepub.core import frontmatter
from sitepub.core.utils.hashing import sha256_file
from sitepub.core.utils.slug import slugify


logger = logging.getLogger(__name__)

H1_RE = re.compile(r'^#\s+(.+)$', re.MULTILINE)
MD_IMAGE_RE = re.compile(r'!\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+"[^"]*")?\s*\)')
HTML_IMAGE_RE = re.compile(r'<img[^>]+src=["\']([^"\']+)["\']', re.IGNORECASE)
EXTERNAL_RE = re.compile(r'^(?:[a-z][a-z0-9+.-]*:|//)', re.IGNORECASE)
IMAGES_PREFIX = "/images/"
MD_EXTENSIONS = {'.md'}


@dataclass(frozen=True)
class Heading:
    level: int
    text:  str
    id:    str


@dataclass
class ImportFile:
    """A markdown file found under an import root."""
    path:        Path
    name:        str
    mtime:       datetime
    hash:        str
    title:       str
    body:        str
    raw:         str
    frontmatter: dict[str, str] = field(default_factory=dict)


def extract_first_h1(body: str) -> str:
    """Return the text of the first ``# `` heading, or ''."""
    m = H1_RE.search(body)
    return m.group(1).strip() if m else ""


def extract_headings(body: str) -> list[Heading]:
    """Return all ATX headings (levels 1-6) in document order."""
    headings = []
    for line in body.splitlines():
        line = line.strip()
        if not line.startswith('#'):
            continue
        level = len(line) - len(line.lstrip('#'))
        if not 1 <= level <= 6:
            continue
        text = line[level:].strip().rstrip('#').strip()
        if text:
            headings.append(Heading(level=level, text=text, id=slugify(text)))
    return headings


def extract_image_paths(body: str) -> list[str]:
    """Return same-origin image paths referenced by the body, relative to the images dir.

    External URLs are ignored; a leading ``/images/`` is removed; order is kept.
    """
    found = [m.group(1) for m in MD_IMAGE_RE.finditer(body)]
    found += [m.group(1) for m in HTML_IMAGE_RE.finditer(body)]

    paths: dict[str, None] = {}
    for src in found:
        if EXTERNAL_RE.match(src):
            continue
        if src.startswith(IMAGES_PREFIX):
            src = src[len(IMAGES_PREFIX):]
        src = src.lstrip('/')
        if src:
            paths.setdefault(src)
    return list(paths)


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md files under path, or [path] if a single markdown file."""
    if path.is_file():
        return [path] if path.suffix.lower() in MD_EXTENSIONS else []
    if not path.is_dir():
        return []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix.lower() in MD_EXTENSIONS)


def read_import_file(path: Path) -> ImportFile:
    """Read one markdown file; title comes from frontmatter, first H1, then filename."""
    raw = path.read_text(encoding='utf-8')
    fields, body = frontmatter.parse(raw)
    title = fields.get('title') or extract_first_h1(body) or path.stem
    return ImportFile(
        path=path,
        name=path.name,
        mtime=datetime.fromtimestamp(path.stat().st_mtime).astimezone(),
        hash=sha256_file(path),
        title=title,
        body=body,
        raw=raw,
        frontmatter=fields,
    )


def scan_import_files(root: Path) -> list[ImportFile]:
    """Read every markdown file under root; unreadable files are skipped."""
    files = []
    for p in discover_files(Path(root)):
        try:
            files.append(read_import_file(p))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable import file %s: %s", p, e)
    return files
