"""Backup export: write a site's Meta bundle as YAML files under meta/"""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from sitepub.core import meta as m
from sitepub.core.models import Contributor, Image, Layout, Section, Tag
from sitepub.core.workspace import Workspace, clean_dir


logger = logging.getLogger(__name__)


class GenerateMetaResult(BaseModel):
    layouts_file:        str = ""
    contributors_file:   str = ""
    tags_file:           str = ""
    sections_file:       str = ""
    images_file:         str = ""
    content_images_file: str = ""
    errors:              list[str] = Field(default_factory=list)


def write_yaml(path: Path, data: Any) -> None:
    path.write_text(
        yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )


class MetaGenerator:
    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def _write(self, result: GenerateMetaResult, attr: str, label: str, path: Path, data: Any) -> None:
        try:
            write_yaml(path, data)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Meta export of %s failed: %s", label, e)
            result.errors.append(f"{label}: {e}")
        else:
            setattr(result, attr, str(path))

    def _write_layout_files(self, result: GenerateMetaResult, base: Path, layouts: list[Layout]) -> None:
        layouts_dir = base / m.LAYOUTS_DIR
        try:
            layouts_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            result.errors.append(f"layouts dir: {e}")
            return
        for layout in layouts:
            for suffix, text in ((".html", layout.code), (".css", layout.css)):
                if not text:
                    continue
                try:
                    (layouts_dir / f"{layout.name}{suffix}").write_text(text, encoding="utf-8")
                except OSError as e:
                    result.errors.append(f"layout {layout.name} {suffix[1:]}: {e}")

    def generate_meta(
        self,
        site_slug: str,
        layouts: list[Layout],
        contributors: list[Contributor],
        tags: list[Tag],
        sections: list[Section],
        images: list[Image],
        content_images: dict[str, list[m.MetaContentImage]],
        contributor_photo_paths: Optional[dict[str, str]] = None,
    ) -> GenerateMetaResult:
        """Clean meta/ and write one YAML file per non-empty collection.

        Only images that carry human metadata are exported. Raises OSError
        when the meta directory itself cannot be prepared.
        """
        result = GenerateMetaResult()
        base = self.workspace.meta_path(site_slug)
        clean_dir(base)
        base.mkdir(parents=True, exist_ok=True)
        photo_paths = contributor_photo_paths or {}

        if layouts:
            self._write(result, "layouts_file", "layouts", base / m.LAYOUTS_FILE,
                        [m.layout_to_meta(l).to_yaml() for l in layouts])
            self._write_layout_files(result, base, layouts)

        if contributors:
            self._write(result, "contributors_file", "contributors", base / m.CONTRIBUTORS_FILE,
                        [m.contributor_to_meta(c, photo_paths.get(c.handle, "")).to_yaml() for c in contributors])

        if tags:
            self._write(result, "tags_file", "tags", base / m.TAGS_FILE,
                        [m.tag_to_meta(t).to_yaml() for t in tags])

        if sections:
            self._write(result, "sections_file", "sections", base / m.SECTIONS_FILE,
                        [m.section_to_meta(s).to_yaml() for s in sections])

        with_meta = {img.file_path: m.image_to_meta(img).to_yaml() for img in images if img.has_metadata}
        if with_meta:
            self._write(result, "images_file", "images", base / m.IMAGES_FILE, with_meta)

        if content_images:
            self._write(result, "content_images_file", "content_images", base / m.CONTENT_IMAGES_FILE,
                        {sid: [link.to_yaml() for link in links] for sid, links in content_images.items()})

        logger.info("Exported meta for site %s (%d errors)", site_slug, len(result.errors))
        return result
