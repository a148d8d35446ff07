"""Discover and convert the documents of a local RST source tree."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import pathspec

from ..errors import SiteIOError, SourceMissingError
from ..parser.markdown import split_into_sections
from ..security import is_hidden_path, validate_path_traversal
from ..storage.site_store import SiteStore

logger = logging.getLogger(__name__)

RST_EXTENSION = '.rst'


def discover_rst_files(
    base_path: str,
    index_name: str = "index.rst",
    assets_dir: Optional[str] = "images",
    include_hidden: bool = False,
    follow_symlinks: bool = False,
    extra_ignore_patterns: Optional[list[str]] = None,
    prune_paths: Optional[list[str]] = None,
) -> list[str]:
    """
    Find every RST document under a source root except the index document.

    Args:
        base_path: Source root
        index_name: Root-relative path of the index document, never returned
        assets_dir: Root-relative assets directory, never entered
        include_hidden: Whether to enter hidden directories
        follow_symlinks: Whether to follow symbolic links inside the root
        extra_ignore_patterns: Gitignore-style patterns to exclude
        prune_paths: Extra directories (e.g. an output root nested in the source) to skip

    Returns:
        Sorted list of root-relative POSIX paths
    """
    base = Path(base_path).resolve()
    if not base.is_dir():
        raise SourceMissingError(f"Input directory does not exist: {base_path}", path=str(base_path))

    ignore_spec = None
    if extra_ignore_patterns:
        ignore_spec = pathspec.GitIgnoreSpec.from_lines(extra_ignore_patterns)

    pruned = {Path(p).resolve() for p in prune_paths or []}
    if assets_dir:
        pruned.add((base / assets_dir).resolve())

    rst_files: list[str] = []

    def is_ignored(rel_path: str) -> bool:
        return ignore_spec is not None and ignore_spec.match_file(rel_path)

    def crawl_directory(current_path: Path, ancestors: frozenset = frozenset()) -> None:
        ancestors = ancestors | {current_path.resolve()}
        try:
            entries = sorted(current_path.iterdir())
        except OSError as e:
            raise SiteIOError(f"Failed to list {current_path}: {e}", path=str(current_path)) from e

        for item in entries:
            resolved = item.resolve()
            rel_path = item.relative_to(base).as_posix()

            if item.is_symlink():
                if not follow_symlinks:
                    logger.debug("Skipping symlink: %s", rel_path)
                    continue
                if not validate_path_traversal(resolved, base):
                    logger.warning("Symlink escapes source directory, skipping: %s -> %s", item, resolved)
                    continue
                if resolved in ancestors:
                    logger.warning("Symlink loops back to an ancestor, skipping: %s -> %s", item, resolved)
                    continue

            if item.is_dir():
                if resolved in pruned:
                    logger.debug("Pruning directory: %s", rel_path)
                    continue
                if not include_hidden and is_hidden_path(Path(rel_path)):
                    logger.debug("Skipping hidden directory: %s", rel_path)
                    continue
                if is_ignored(rel_path + '/'):
                    logger.debug("Skipping excluded directory: %s", rel_path)
                    continue
                crawl_directory(item, ancestors)
            elif item.is_file() and item.suffix == RST_EXTENSION:
                if rel_path == index_name:
                    continue
                if not include_hidden and is_hidden_path(Path(rel_path)):
                    continue
                if is_ignored(rel_path):
                    logger.debug("Skipping excluded file: %s", rel_path)
                    continue
                rst_files.append(rel_path)

    crawl_directory(base)

    rst_files.sort()
    return rst_files


def process_document(
    store: SiteStore,
    converter,
    input_dir: Path,
    rel_path: str,
    max_depth: int,
) -> int:
    """
    Convert one document and write it as a page directory.

    The converter writes ``<output>/<stem>.md``; that file is then split into
    ``<output>/<stem>/_index.md`` plus one file per further section.
    Returns the number of sections written.
    """
    source = Path(input_dir) / rel_path
    stem = rel_path[:-len(RST_EXTENSION)]
    intermediate = store.base_path / f"{stem}.md"

    store.ensure_dir(intermediate.parent)
    converter.convert(source, intermediate)

    try:
        content = intermediate.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise SiteIOError(f"Error reading converted file {intermediate}: {e}", path=str(intermediate)) from e

    sections = split_into_sections(content, max_depth, source=rel_path)
    store.write_sections(store.base_path / stem, sections)
    logger.info("Converted %s into %d sections", rel_path, len(sections))
    return len(sections)


async def convert_all_rst_files(
    doc_files: list[str],
    input_dir: str,
    store: SiteStore,
    converter,
    max_depth: int = 2,
    max_parallel: int = 4,
) -> int:
    """
    Convert and split documents concurrently, at most `max_parallel` at a time.

    Each document is handled start to finish by one worker. The first failure
    is raised; documents not yet started are cancelled and conversions already
    running are left to finish on their own.

    Returns:
        Total number of sections written
    """
    if not doc_files:
        return 0

    semaphore = asyncio.Semaphore(max_parallel)
    base = Path(input_dir)

    async def _convert_one(rel_path: str) -> int:
        async with semaphore:
            return await asyncio.to_thread(process_document, store, converter, base, rel_path, max_depth)

    tasks = [asyncio.create_task(_convert_one(rel_path), name=rel_path) for rel_path in doc_files]
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)

    for task in tasks:
        if task in done and task.exception() is not None:
            raise task.exception()

    return sum(task.result() for task in tasks)
