"""Workspace path resolver: per-site output layout on disk.

Layout under the base directory::

    {base}/{slug}/
    ├── markdown/   generated .md files
    ├── html/       generated site
    ├── images/     site images
    ├── meta/       backup bundle
    └── profiles/   contributor photos

Path methods are pure; only the directory helpers touch the filesystem.
"""

import shutil
from pathlib import Path, PurePosixPath


DEFAULT_SITES_BASE_PATH = "_workspace/sites"
INDEX_FILE = "index.html"
AUTHORS_DIR = "authors"


def _segment(path: str) -> str:
    """Normalize a section path; reject anything that would escape the site directory."""
    path = (path or "").strip().strip("/")
    if path in ("", "."):
        return ""
    if ".." in PurePosixPath(path).parts or "\\" in path:
        raise ValueError(f"Path escapes workspace: {path!r}")
    return path


def _name(name: str) -> str:
    """Validate a single path component such as a site or content slug."""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid path component: {name!r}")
    return name


class Workspace:
    def __init__(self, base_path: str | Path = ""):
        self.base_path = Path(base_path or DEFAULT_SITES_BASE_PATH)

    # --- site directories ---

    def site_base_path(self, slug: str) -> Path:
        return self.base_path / _name(slug)

    def markdown_path(self, slug: str) -> Path:
        return self.site_base_path(slug) / "markdown"

    def html_path(self, slug: str) -> Path:
        return self.site_base_path(slug) / "html"

    def images_path(self, slug: str) -> Path:
        return self.site_base_path(slug) / "images"

    def meta_path(self, slug: str) -> Path:
        return self.site_base_path(slug) / "meta"

    def profiles_path(self, slug: str) -> Path:
        return self.site_base_path(slug) / "profiles"

    def static_path(self, slug: str) -> Path:
        return self.html_path(slug) / "static"

    # --- content and index files ---

    def content_markdown_path(self, slug: str, section_path: str, content_slug: str) -> Path:
        """e.g. {base}/my-blog/markdown/posts/my-post.md"""
        return self.markdown_path(slug) / _segment(section_path) / f"{_name(content_slug)}.md"

    def content_html_path(self, slug: str, section_path: str, content_slug: str) -> Path:
        """e.g. {base}/my-blog/html/posts/my-post/index.html"""
        return self.html_path(slug) / _segment(section_path) / _name(content_slug) / INDEX_FILE

    def index_html_path(self, slug: str, path: str = "") -> Path:
        """Root index for '' or '/', otherwise the section's index."""
        return self.html_path(slug) / _segment(path) / INDEX_FILE

    def pagination_html_path(self, slug: str, path: str, page: int) -> Path:
        """Page 1 reuses the index path; page N>1 lives under .../page/N/index.html."""
        if page < 1:
            raise ValueError(f"Invalid page number: {page}")
        if page == 1:
            return self.index_html_path(slug, path)
        return self.html_path(slug) / _segment(path) / "page" / str(page) / INDEX_FILE

    def author_html_path(self, slug: str, handle: str) -> Path:
        """e.g. {base}/my-blog/html/authors/jane/index.html"""
        return self.html_path(slug) / AUTHORS_DIR / _name(handle) / INDEX_FILE

    def section_images_path(self, slug: str, section_path: str) -> Path:
        return self.images_path(slug) / _segment(section_path)

    # --- filesystem helpers ---

    def create_site_directories(self, slug: str) -> None:
        for d in (self.markdown_path(slug), self.html_path(slug), self.images_path(slug)):
            d.mkdir(parents=True, exist_ok=True)

    def delete_site_directories(self, slug: str) -> None:
        shutil.rmtree(self.site_base_path(slug), ignore_errors=True)

    def site_directories_exist(self, slug: str) -> bool:
        return self.site_base_path(slug).exists()


def content_url(base_path: str, section_path: str, content_slug: str) -> str:
    """Public URL of a content page, e.g. /blog/posts/my-post/"""
    section = _segment(section_path)
    return f"{base_path}{section}/{content_slug}/" if section else f"{base_path}{content_slug}/"


def author_url(base_path: str, handle: str) -> str:
    return f"{base_path}{AUTHORS_DIR}/{_name(handle)}/"


def pagination_url(base_path: str, index_path: str, page: int) -> str:
    """Public URL matching pagination_html_path."""
    section = _segment(index_path)
    prefix = f"{base_path}{section}/" if section else base_path
    return prefix if page == 1 else f"{prefix}page/{page}/"


def ensure_dir(file_path: Path) -> None:
    """Create the parent directory of file_path."""
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)


def clean_dir(path: Path) -> None:
    """Remove everything inside path but keep path itself. A missing path is not an error."""
    path = Path(path)
    if not path.is_dir():
        return
    for entry in path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()
