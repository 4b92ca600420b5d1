"""Directory traversal for datasource folders.

`walk_files` validates the root eagerly and then streams file paths lazily,
depth-first, in whatever order ``os.scandir`` reports entries. That order is
filesystem dependent and deliberately left unsorted.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import config
from ingestion.errors import FilesystemError, NotFoundError

logger = logging.getLogger(__name__)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _walk(directory: str, skip_hidden: bool) -> Iterator[str]:
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                if skip_hidden and _is_hidden(entry.name):
                    logger.debug("Skipping hidden entry: %s", entry.path)
                    continue
                # Symlinked directories are not followed, which rules out cycles.
                if entry.is_dir(follow_symlinks=False):
                    yield from _walk(entry.path, skip_hidden)
                elif entry.is_file():
                    yield entry.path
    except OSError as exc:
        raise FilesystemError(f"Cannot read directory {directory}: {exc}") from exc


def walk_files(
    root: str | os.PathLike[str], *, skip_hidden: bool = config.SKIP_HIDDEN
) -> Iterator[str]:
    """Yield every regular file path below ``root``.

    Args:
        root: Directory to walk. Yielded paths are joined onto it, so a
            relative root produces relative paths.
        skip_hidden: Ignore files and directories whose name starts with
            ``.``; hidden directories are not descended into.

    Raises:
        NotFoundError: ``root`` does not exist (raised on call, not on
            first iteration).
        FilesystemError: ``root`` is not a directory, or a directory cannot
            be read part-way through the walk.
    """
    root_path = os.fspath(root)
    if not os.path.exists(root_path):
        raise NotFoundError(f"Datasource directory not found: {root_path}")
    if not os.path.isdir(root_path):
        raise FilesystemError(f"Datasource path is not a directory: {root_path}")
    return _walk(root_path, skip_hidden)


def datasource_root(data_dir: str | os.PathLike[str], datasource: str) -> Path:
    """Folder holding the documents of ``datasource``."""
    return Path(data_dir) / datasource


__all__ = ["datasource_root", "walk_files"]
