"""Run a full RST source tree to site tree conversion."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..config import Config
from ..converter import PandocConverter
from ..errors import DestinationConflictError, SiteIOError, SourceMissingError
from ..parser.markdown import strip_overview_markup
from ..parser.toc import TOCEntry, parse_table_of_contents
from ..storage.site_store import OVERVIEW_ID, INDEX_FILE, SiteStore, build_site_config
from .convert_local import convert_all_rst_files, discover_rst_files

logger = logging.getLogger(__name__)


def prepare_output(cfg: Config, store: SiteStore, confirm: Optional[Callable[[], bool]] = None) -> None:
    """
    Check the input, create the output root and copy assets.

    A non-empty output root needs either ``cfg.force`` or a positive answer
    from `confirm`.
    """
    input_dir = Path(cfg.input_dir)
    if not input_dir.is_dir():
        raise SourceMissingError(f"Input directory does not exist: {cfg.input_dir}", path=cfg.input_dir)

    store.ensure_dir(store.base_path)

    if not store.is_empty() and not cfg.force:
        if confirm is None or not confirm():
            raise DestinationConflictError(
                "Output directory is not empty and overwriting was not confirmed",
                path=str(store.base_path),
            )

    if cfg.assets_dir:
        store.copy_assets(input_dir / cfg.assets_dir, cfg.assets_dir)


def load_table_of_contents(cfg: Config) -> list[TOCEntry]:
    """Read the index document and parse its toctree."""
    index_path = Path(cfg.input_dir) / cfg.index_name
    if not index_path.is_file():
        raise SourceMissingError(f"{cfg.index_name} not found in input directory", path=str(index_path))
    try:
        content = index_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SiteIOError(f"Failed to read {index_path}: {e}", path=str(index_path)) from e
    return parse_table_of_contents(content, cfg.input_dir)


def write_external_links(store: SiteStore, toc: list[TOCEntry]) -> int:
    """Write a landing page for every external TOC entry."""
    count = 0
    for entry in toc:
        if entry.is_external:
            store.write_external_entry(entry)
            count += 1
    return count


def process_index_document(cfg: Config, store: SiteStore, converter) -> Path:
    """Convert the index document into the Overview page."""
    source = Path(cfg.input_dir) / cfg.index_name
    overview_dir = store.ensure_dir(store.base_path / OVERVIEW_ID)
    output_path = overview_dir / INDEX_FILE

    converter.convert(source, output_path)
    try:
        content = output_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SiteIOError(f"Failed to read converted {output_path}: {e}", path=str(output_path)) from e

    return store.write_overview(strip_overview_markup(content))


async def convert_site(
    cfg: Config,
    converter=None,
    confirm: Optional[Callable[[], bool]] = None,
) -> dict:
    """
    Convert an RST source tree into a site tree.

    Stages run strictly in order: converter check, output setup, TOC parse,
    external link pages, concurrent conversion of all other documents, the
    Overview page, ``config.yaml`` and removal of superseded flat files.

    Args:
        cfg: Run configuration
        converter: Object with ``check_available()`` and ``convert(src, dst)``;
            defaults to pandoc as configured in `cfg`
        confirm: Called when the output root is not empty and ``cfg.force``
            is off; returning False aborts the run

    Returns:
        Dict with run statistics

    Raises:
        Rst2SiteError: on the first failure of any stage
    """
    cfg.validate()
    if converter is None:
        converter = PandocConverter(cfg.pandoc_path, timeout=cfg.timeout)

    converter.check_available()

    store = SiteStore(cfg.output_dir)
    prepare_output(cfg, store, confirm)

    toc = load_table_of_contents(cfg)
    external_count = write_external_links(store, toc)

    doc_files = discover_rst_files(
        cfg.input_dir,
        index_name=cfg.index_name,
        assets_dir=cfg.assets_dir,
        include_hidden=cfg.include_hidden,
        follow_symlinks=True,
        extra_ignore_patterns=cfg.exclude,
        prune_paths=[cfg.output_dir],
    )
    logger.info("Converting %d documents with up to %d workers", len(doc_files), cfg.max_parallel)
    section_count = await convert_all_rst_files(
        doc_files,
        cfg.input_dir,
        store,
        converter,
        max_depth=cfg.depth,
        max_parallel=cfg.max_parallel,
    )

    await asyncio.to_thread(process_index_document, cfg, store, converter)

    store.write_site_config(build_site_config(toc))
    store.cleanup_intermediate_files()

    return {
        "success": True,
        "output": str(store.base_path),
        "toc": [entry.id for entry in toc],
        "document_count": len(doc_files),
        "external_count": external_count,
        "section_count": section_count,
    }
