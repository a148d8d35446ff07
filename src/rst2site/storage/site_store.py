"""Writing the generated site tree: front-matter pages, menu config, assets."""

import hashlib
import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml

from ..config import DIR_PERMISSION, FILE_PERMISSION
from ..errors import NoSectionsError, SiteIOError
from ..parser.markdown import Section, slugify
from ..parser.toc import TOCEntry
from ..security import validate_path_traversal

logger = logging.getLogger(__name__)

INDEX_FILE = "_index.md"
CONFIG_FILE = "config.yaml"
OVERVIEW_ID = "overview"
OVERVIEW_NAME = "Overview"
WEIGHT_STEP = 10


@dataclass
class MenuItem:
    """An entry of the site's main navigation menu."""
    identifier: str
    name: str
    weight: int
    url: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {"identifier": self.identifier, "name": self.name}
        if self.url is not None:
            data["url"] = self.url
        data["weight"] = self.weight
        return data


@dataclass
class SiteConfig:
    """Navigation config consumed by the static site generator."""
    main: list[MenuItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"menu": {"main": [item.to_dict() for item in self.main]}}

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True, default_flow_style=False, width=4096)


def build_site_config(toc: list[TOCEntry]) -> SiteConfig:
    """
    Build the main menu from the table of contents.

    The overview page always comes first with weight 10; TOC entries follow
    in source order at weights 20, 30, ...
    """
    items = [MenuItem(identifier=OVERVIEW_ID, name=OVERVIEW_NAME, url=f"/{OVERVIEW_ID}/", weight=WEIGHT_STEP)]
    for i, entry in enumerate(toc):
        items.append(MenuItem(
            identifier=entry.id,
            name=entry.name,
            url=f"/{entry.id}/",
            weight=(i + 2) * WEIGHT_STEP,
        ))
    return SiteConfig(main=items)


def render_page(metadata: dict, body: str) -> str:
    """Prefix a page body with a YAML front-matter block."""
    front_matter = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True, width=4096)
    return f"---\n{front_matter}---\n\n{body}"


def _content_hash_suffix(content: str) -> str:
    """Short hash suffix used to keep section file names unique."""
    return hashlib.md5(content[:200].encode('utf-8')).hexdigest()[:6]


class SiteStore:
    """Writes pages and config under an output root."""

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)

    def ensure_dir(self, path: Union[str, Path]) -> Path:
        """Create a directory (and parents) under the output permission policy."""
        path = Path(path)
        try:
            path.mkdir(mode=DIR_PERMISSION, parents=True, exist_ok=True)
        except OSError as e:
            raise SiteIOError(f"Failed to create directory {path}: {e}", path=str(path)) from e
        return path

    def write_file(self, path: Union[str, Path], content: str) -> Path:
        """Write a text file and apply the output file permission."""
        path = Path(path)
        try:
            path.write_text(content, encoding="utf-8")
            os.chmod(path, FILE_PERMISSION)
        except OSError as e:
            raise SiteIOError(f"Failed to write {path}: {e}", path=str(path)) from e
        return path

    def is_empty(self) -> bool:
        """Check whether the output root has no entries."""
        try:
            return next(os.scandir(self.base_path), None) is None
        except OSError as e:
            raise SiteIOError(f"Failed to check output directory {self.base_path}: {e}",
                              path=str(self.base_path)) from e

    def copy_assets(self, source_dir: Union[str, Path], name: str) -> Optional[Path]:
        """Copy an assets directory verbatim into the output root, if it exists."""
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            return None
        target = self.base_path / name
        try:
            shutil.copytree(source_dir, target, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise SiteIOError(f"Failed to copy assets directory {source_dir}: {e}", path=str(source_dir)) from e
        logger.info("Copied assets %s -> %s", source_dir, target)
        return target

    def write_sections(self, doc_dir: Union[str, Path], sections: list[Section]) -> list[Path]:
        """
        Write a split document as a page directory.

        The first section becomes ``_index.md`` (title only); each later
        section becomes ``<slug>.md`` with weight 10, 20, 30, ... in order.
        """
        if not sections:
            raise NoSectionsError(f"No sections to write for {doc_dir}", path=str(doc_dir))

        doc_dir = self.ensure_dir(doc_dir)
        first = sections[0]
        written = [self.write_file(doc_dir / INDEX_FILE, render_page({"title": first.title}, first.content))]

        root = doc_dir.resolve()
        used: set[str] = {INDEX_FILE[:-len(".md")]}
        for i, section in enumerate(sections[1:], start=1):
            stem = slugify(section.title)
            if stem in used:
                stem = f"{stem}-{_content_hash_suffix(section.content)}"
            used.add(stem)
            target = doc_dir / f"{stem}.md"
            if not validate_path_traversal(target.resolve(), root):
                raise SiteIOError(f"Section title {section.title!r} escapes {doc_dir}", path=str(target))
            self.ensure_dir(target.parent)
            page = render_page({"title": section.title, "weight": i * WEIGHT_STEP}, section.content)
            written.append(self.write_file(target, page))

        logger.info("Wrote %d section files to %s", len(written), doc_dir)
        return written

    def write_external_entry(self, entry: TOCEntry) -> Path:
        """Write the landing page of an external TOC link; its body is the URL."""
        doc_dir = self.ensure_dir(self.base_path / entry.id)
        return self.write_file(doc_dir / INDEX_FILE, render_page({"title": entry.name}, f"{entry.url}\n"))

    def write_overview(self, content: str) -> Path:
        """Write the root document's page with the fixed Overview title."""
        doc_dir = self.ensure_dir(self.base_path / OVERVIEW_ID)
        return self.write_file(doc_dir / INDEX_FILE, render_page({"title": OVERVIEW_NAME}, content))

    def write_site_config(self, site_config: SiteConfig) -> Path:
        path = self.write_file(self.base_path / CONFIG_FILE, site_config.to_yaml())
        logger.info("Wrote %s with %d menu items", path, len(site_config.main))
        return path

    def cleanup_intermediate_files(self) -> list[Path]:
        """
        Remove flat converter output superseded by a page directory.

        A ``<name>.md`` file is removed when a sibling ``<name>/_index.md``
        exists.
        """
        removed: list[Path] = []
        try:
            candidates = sorted(self.base_path.rglob("*.md"))
        except OSError as e:
            raise SiteIOError(f"Failed to scan {self.base_path}: {e}", path=str(self.base_path)) from e

        for path in candidates:
            if path.name == INDEX_FILE or not path.is_file():
                continue
            if (path.with_suffix("") / INDEX_FILE).is_file():
                try:
                    path.unlink()
                except OSError as e:
                    raise SiteIOError(f"Failed to remove intermediate file {path}: {e}", path=str(path)) from e
                removed.append(path)

        if removed:
            logger.info("Removed %d intermediate files", len(removed))
        return removed
