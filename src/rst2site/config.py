"""Run configuration and process-wide constants."""

import os
from dataclasses import dataclass, field

# Creation modes for everything written under the output directory.
DIR_PERMISSION = 0o755
FILE_PERMISSION = 0o644

DEFAULT_PANDOC_PATH = "pandoc"
DEFAULT_MAX_PARALLEL = 4
DEFAULT_DEPTH = 2
DEFAULT_TIMEOUT = 60.0
DEFAULT_INDEX_NAME = "index.rst"
DEFAULT_ASSETS_DIR = "images"

MAX_HEADING_LEVEL = 6


def _env_default(name: str, fallback):
    """Read a default from the environment, coerced to the fallback's type."""
    value = os.environ.get(name)
    if value is None or value == "":
        return fallback
    try:
        return type(fallback)(value)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {value!r}") from None


def default_pandoc_path() -> str:
    return _env_default("RST2SITE_PANDOC_PATH", DEFAULT_PANDOC_PATH)


def default_max_parallel() -> int:
    return _env_default("RST2SITE_MAX_PARALLEL", DEFAULT_MAX_PARALLEL)


def default_timeout() -> float:
    return _env_default("RST2SITE_TIMEOUT", DEFAULT_TIMEOUT)


@dataclass
class Config:
    """Parameters for one conversion run."""
    input_dir: str
    output_dir: str
    pandoc_path: str = DEFAULT_PANDOC_PATH
    force: bool = False
    verbose: bool = False
    max_parallel: int = DEFAULT_MAX_PARALLEL
    depth: int = DEFAULT_DEPTH
    timeout: float = DEFAULT_TIMEOUT
    index_name: str = DEFAULT_INDEX_NAME
    assets_dir: str = DEFAULT_ASSETS_DIR
    exclude: list[str] = field(default_factory=list)
    include_hidden: bool = False

    def validate(self) -> None:
        """Reject settings the pipeline cannot honour."""
        if not 1 <= self.depth <= MAX_HEADING_LEVEL:
            raise ValueError(f"depth must be between 1 and {MAX_HEADING_LEVEL}, got {self.depth}")
        if self.max_parallel < 1:
            raise ValueError(f"max_parallel must be at least 1, got {self.max_parallel}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
