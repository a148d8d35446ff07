"""Convert an RST documentation tree into a markdown site tree."""

__version__ = "0.1.0"
