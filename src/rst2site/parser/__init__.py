"""Parsing utilities for RST sources and converted markdown."""

from .markdown import Section, slugify, split_into_sections
from .rst import extract_top_level_heading, get_top_level_heading
from .toc import TOCEntry, parse_table_of_contents

__all__ = [
    "Section",
    "slugify",
    "split_into_sections",
    "extract_top_level_heading",
    "get_top_level_heading",
    "TOCEntry",
    "parse_table_of_contents",
]
