"""reStructuredText title extraction."""

from pathlib import Path
from typing import Optional

from ..errors import HeadingNotFoundError
from .markdown import strip_bold

# Characters accepted in a section underline.
RST_UNDERLINE_CHARS = set('=~-`#*^"\'+_')


def is_underline(line: str, length: int) -> bool:
    """Check if a line is an underline of exactly `length` characters."""
    if len(line) != length:
        return False
    return all(c in RST_UNDERLINE_CHARS for c in line)


def _underlines_title(underline: str, title: str) -> bool:
    """Check whether `underline` is a valid underline for a stripped title line.

    Plain titles need an underline of exactly their length. A bold title
    (``**Title**``) may be underlined anywhere from the bare title's length
    up to the full marked-up line's length.
    """
    plain = strip_bold(title)
    if plain == title:
        return is_underline(underline, len(title))
    return any(is_underline(underline, n) for n in range(max(len(plain), 1), len(title) + 1))


def extract_top_level_heading(content: str, source: Optional[str] = None) -> str:
    """
    Return the first title in an RST document.

    A title is a non-empty line, not a directive/comment (``..``) and not an
    embedded reference (``<``), followed by an underline of the same length.
    A surrounding bold pair is removed from the result.

    Raises:
        HeadingNotFoundError: if no title/underline pair exists
    """
    lines = content.split('\n')

    for i, raw in enumerate(lines[:-1]):
        line = raw.strip()
        if not line or line.startswith('..') or line.startswith('<'):
            continue
        if _underlines_title(lines[i + 1].strip(), line):
            return strip_bold(line)

    where = f" in {source}" if source else ""
    raise HeadingNotFoundError(f"No top-level heading found{where}", path=source)


def get_top_level_heading(file_path: Path) -> str:
    """Read an RST file and return its top-level heading."""
    content = Path(file_path).read_text(encoding='utf-8')
    return extract_top_level_heading(content, source=str(file_path))
