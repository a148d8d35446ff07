"""Conversion operations."""

from .convert_local import convert_all_rst_files, discover_rst_files
from .convert_site import convert_site

__all__ = ["convert_all_rst_files", "discover_rst_files", "convert_site"]
