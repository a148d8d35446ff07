"""RST to markdown conversion via the pandoc executable."""

import logging
import subprocess
from pathlib import Path
from typing import Union

from .config import DEFAULT_PANDOC_PATH, DEFAULT_TIMEOUT
from .errors import ConversionError, ConverterUnavailableError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PandocConverter:
    """Converts single RST files to GitHub-flavoured markdown with pandoc."""

    def __init__(self, pandoc_path: str = DEFAULT_PANDOC_PATH, timeout: float = DEFAULT_TIMEOUT):
        self.pandoc_path = pandoc_path
        self.timeout = timeout

    def check_available(self) -> None:
        """Raise ConverterUnavailableError unless ``pandoc --version`` succeeds."""
        try:
            result = subprocess.run(
                [self.pandoc_path, '--version'],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ConverterUnavailableError(f"pandoc not found: {e}", path=self.pandoc_path) from e
        if result.returncode != 0:
            raise ConverterUnavailableError(
                f"pandoc not found: {self.pandoc_path} --version exited with {result.returncode}",
                path=self.pandoc_path,
            )
        version = result.stdout.split('\n', 1)[0].strip()
        logger.debug("Using %s", version or self.pandoc_path)

    def convert(self, source: PathLike, dest: PathLike) -> None:
        """
        Convert `source` to markdown at `dest`.

        Blocks until pandoc exits. Exceeding the timeout, a non-zero exit
        status or a missing output file all raise ConversionError.
        """
        cmd = [self.pandoc_path, '-f', 'rst', '-t', 'gfm', str(source), '-o', str(dest)]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ConversionError(
                f"Error converting {source}: timed out after {self.timeout:g}s",
                path=str(source),
            ) from e
        except OSError as e:
            raise ConversionError(f"Error converting {source}: {e}", path=str(source)) from e

        if result.returncode != 0:
            output = (result.stdout + result.stderr).strip()
            raise ConversionError(
                f"Error converting {source}: exit status {result.returncode}\n{output}",
                path=str(source),
            )
        if not Path(dest).is_file():
            raise ConversionError(f"Error converting {source}: no output written to {dest}", path=str(source))

        logger.debug("Converted %s -> %s", source, dest)
