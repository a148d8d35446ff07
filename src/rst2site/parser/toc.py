"""Table of contents (toctree) parsing for the root index document."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import HeadingNotFoundError, MissingTOCError, TOCMalformedError
from .markdown import slugify
from .rst import get_top_level_heading

logger = logging.getLogger(__name__)

TOCTREE_MARKER = ".. toctree::"

_EXTERNAL_RE = re.compile(r'^(.*?)<([^<>]*)>')


@dataclass(frozen=True)
class TOCEntry:
    """One entry of the table of contents."""
    id: str
    name: str
    is_external: bool = False
    url: Optional[str] = None

    def __post_init__(self):
        if self.is_external != (self.url is not None):
            raise ValueError(f"TOC entry {self.id!r}: url must be set exactly when the entry is external")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _toctree_body(lines: list[str]) -> list[str]:
    """Return the stripped entry lines of the first toctree block."""
    start = None
    for i, line in enumerate(lines):
        if line.strip() == TOCTREE_MARKER:
            start = i + 1
            break
    if start is None:
        raise MissingTOCError("Table of contents not found in the index document")

    body: list[str] = []
    body_indent: Optional[int] = None
    for line in lines[start:]:
        stripped = line.strip()
        if not stripped:
            continue
        if body_indent is None:
            body_indent = _indent(line)
        elif _indent(line) < body_indent:
            break
        if stripped.startswith('..'):
            break
        if stripped.startswith(':'):
            continue
        body.append(stripped)
    return body


def parse_external_entry(line: str) -> Optional[TOCEntry]:
    """Parse ``Name <url>``; returns None if the line is not an external link."""
    match = _EXTERNAL_RE.match(line)
    if not match:
        return None
    url = match.group(2).strip()
    name = match.group(1).strip() or url
    return TOCEntry(id=slugify(name), name=name, is_external=True, url=url)


def parse_table_of_contents(content: str, input_dir: str) -> list[TOCEntry]:
    """
    Parse the toctree of an index document into ordered entries.

    Local entries are document paths relative to `input_dir` without the
    ``.rst`` extension; their names come from each document's top-level
    heading and their ids are the path as written. External entries use the
    ``Name <url>`` form and are identified by the slug of the name.

    Raises:
        MissingTOCError: if there is no toctree or it lists no entries
        TOCMalformedError: if a local entry's heading cannot be read
    """
    toc: list[TOCEntry] = []
    base = Path(input_dir)

    for line in _toctree_body(content.split('\n')):
        external = parse_external_entry(line)
        if external is not None:
            toc.append(external)
            continue

        file_path = base / f"{line}.rst"
        try:
            name = get_top_level_heading(file_path)
        except (HeadingNotFoundError, OSError, UnicodeDecodeError) as e:
            raise TOCMalformedError(
                f"Failed to get top-level heading for {line}: {e}",
                path=str(file_path),
            ) from e
        toc.append(TOCEntry(id=line, name=name))

    if not toc:
        raise MissingTOCError("Table of contents has no entries")

    ids = [entry.id for entry in toc]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise TOCMalformedError(f"Duplicate table of contents entries: {', '.join(duplicates)}")

    logger.info("Parsed table of contents with %d entries", len(toc))
    return toc
