"""Command-line entry point."""

import argparse
import asyncio
import logging
import sys
from typing import Callable, Optional

from .config import Config, default_max_parallel, default_pandoc_path, default_timeout, DEFAULT_DEPTH
from .errors import Rst2SiteError
from .tools.convert_site import convert_site

logger = logging.getLogger(__name__)

OVERWRITE_PROMPT = "Output directory is not empty. Overwrite existing files? (y/n): "


def ask_user_overwrite(
    input_fn: Callable[[str], str] = input,
    print_fn: Callable[[str], None] = print,
) -> bool:
    """Ask until the user answers y or n. End of input counts as no."""
    while True:
        try:
            response = input_fn(OVERWRITE_PROMPT)
        except EOFError:
            return False
        response = response.strip().lower()
        if response == 'y':
            return True
        if response == 'n':
            return False
        print_fn("Please enter 'y' or 'n'.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rst2site",
        description="Convert an RST documentation tree into a markdown site tree",
    )
    parser.add_argument("--input", required=True, help="Input directory")
    parser.add_argument("--output", required=True, help="Output directory")
    parser.add_argument("--pandoc-path", default=None, help="Path to the pandoc executable (default: pandoc)")
    parser.add_argument("--force", action="store_true", help="Force overwrite of output directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--parallel", type=int, default=None, help="Maximum number of parallel conversions (default: 4)")
    parser.add_argument("--depth", type=int, default=DEFAULT_DEPTH, help="Heading depth level to split sections (default: 2)")
    parser.add_argument("--timeout", type=float, default=None, help="Seconds allowed per pandoc run (default: 60)")
    parser.add_argument("--exclude", action="append", default=[], metavar="PATTERN",
                        help="Gitignore-style pattern of source files to skip (repeatable)")
    parser.add_argument("--include-hidden", action="store_true", help="Also convert files in hidden directories")
    return parser


def config_from_args(args: argparse.Namespace) -> Config:
    """Build a Config, filling unset options from the environment."""
    return Config(
        input_dir=args.input,
        output_dir=args.output,
        pandoc_path=args.pandoc_path or default_pandoc_path(),
        force=args.force,
        verbose=args.verbose,
        max_parallel=args.parallel if args.parallel is not None else default_max_parallel(),
        depth=args.depth,
        timeout=args.timeout if args.timeout is not None else default_timeout(),
        exclude=list(args.exclude),
        include_hidden=args.include_hidden,
    )


def setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the rst2site command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = config_from_args(args)
        cfg.validate()
    except ValueError as e:
        parser.error(str(e))

    setup_logging(cfg.verbose)

    try:
        result = asyncio.run(convert_site(cfg, confirm=ask_user_overwrite))
    except Rst2SiteError as e:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(
        "Wrote %d documents (%d sections) and %d external links to %s",
        result["document_count"], result["section_count"], result["external_count"], result["output"],
    )
    print("Conversion completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
