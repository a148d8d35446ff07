"""Error types raised while building a site."""

from typing import Optional


class Rst2SiteError(Exception):
    """Base class for every fatal error in a conversion run."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SourceMissingError(Rst2SiteError):
    """A required input path does not exist."""


class DestinationConflictError(Rst2SiteError):
    """The output directory is not empty and overwriting was not allowed."""


class MissingTOCError(Rst2SiteError):
    """The index document has no toctree block, or the block has no entries."""


class TOCMalformedError(Rst2SiteError):
    """A toctree entry points at a document whose title cannot be resolved."""


class HeadingNotFoundError(Rst2SiteError):
    """No title line with a matching underline was found."""


class ConverterUnavailableError(Rst2SiteError):
    """The external converter executable cannot be run."""


class ConversionError(Rst2SiteError):
    """The external converter failed, timed out or produced no output."""


class NoSectionsError(Rst2SiteError):
    """A converted document has no heading at or above the split depth."""


class SiteIOError(Rst2SiteError):
    """A filesystem operation failed."""
