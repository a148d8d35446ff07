"""Markdown post-processing: slugs and heading-based section splitting."""

import re
from dataclasses import dataclass
from typing import Optional

from ..errors import NoSectionsError

_WHITESPACE_RE = re.compile(r'\s+')
_BOLD_RE = re.compile(r'^\*\*(.*)\*\*$')
HEADING_RE = re.compile(r'^(#{1,6})\s+(\S.*?)\s*$')
_FENCE_RE = re.compile(r'^\s{0,3}(`{3,}|~{3,})')
_TOCTREE_DIV_RE = re.compile(r'<div class="toctree".*?</div>', re.DOTALL)
_LEVEL_ONE_RE = re.compile(r'^# .+$', re.MULTILINE)


@dataclass(frozen=True)
class Section:
    """A heading-bounded span of a converted document."""
    title: str
    content: str


def slugify(text: str) -> str:
    """Lower-case, trim and collapse whitespace runs to a single underscore."""
    return _WHITESPACE_RE.sub('_', text.lower().strip())


def strip_bold(title: str) -> str:
    """Remove a surrounding ``**`` pair from a title."""
    match = _BOLD_RE.match(title)
    if match:
        return match.group(1)
    return title


def split_into_sections(content: str, max_depth: int, source: Optional[str] = None) -> list[Section]:
    """
    Split converted markdown into sections at headings of level <= max_depth.

    Deeper headings stay in the content of the section that owns them. Lines
    before the first qualifying heading are dropped. Heading markers inside
    fenced code blocks are treated as content.

    Raises:
        NoSectionsError: if no heading at or above max_depth is found
    """
    if max_depth < 1:
        raise ValueError(f"max_depth must be at least 1, got {max_depth}")

    sections: list[Section] = []
    current_title: Optional[str] = None
    current_lines: list[str] = []
    fence: Optional[str] = None

    def finalize_section():
        if current_title is not None:
            sections.append(Section(title=current_title, content='\n'.join(current_lines)))

    for line in content.split('\n'):
        fence_match = _FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
        elif fence is None:
            match = HEADING_RE.match(line)
            if match and len(match.group(1)) <= max_depth:
                finalize_section()
                current_title = strip_bold(match.group(2))
                current_lines = []
                continue

        if current_title is not None:
            current_lines.append(line)

    finalize_section()

    if not sections:
        where = f" in {source}" if source else ""
        raise NoSectionsError(f"No sections found{where} (max depth {max_depth})", path=source)

    return sections


def strip_overview_markup(content: str) -> str:
    """Remove the toctree blocks and level-1 headings from the converted root document."""
    content = _TOCTREE_DIV_RE.sub('', content)
    return _LEVEL_ONE_RE.sub('', content)
