"""
walker.py - Depth-first file discovery under a root.

Directories are tested against the PathFilter before descending, so an
ignored directory prunes its whole subtree without a single file inside it
being opened. Files are tested against the path pattern.

Ignore patterns see the path relative to the root with a leading
separator ("/sub/build"), so directories above the root never count.

Symlinks are followed by default. Each directory and each file is
identified by (st_dev, st_ino) and visited at most once, so a link cycle
ends the descent and a file reached through a symlink or hardlink is
yielded only under its first path.

No external dependencies. Pure stdlib.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator

from .errors import InvalidPattern
from .path_filter import PathFilter

logger = logging.getLogger(__name__)


def normalize_root(root: str) -> str:
    """Absolute path with exactly one trailing separator."""
    return os.path.join(os.path.abspath(root), "")


def compile_path_pattern(path_pattern: str | re.Pattern, case_fold: bool = False) -> re.Pattern:
    """Compile the file path regex. An empty pattern matches every file."""
    if isinstance(path_pattern, re.Pattern):
        return path_pattern
    try:
        return re.compile(path_pattern, re.IGNORECASE if case_fold else 0)
    except re.error as e:
        raise InvalidPattern(path_pattern, str(e)) from e


def _inode_key(path: str) -> tuple[int, int] | None:
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_dev, st.st_ino)


def walk(
    root: str,
    path_pattern: str | re.Pattern = "",
    path_filter: PathFilter | None = None,
    follow_symlinks: bool = True,
    case_fold: bool = False,
) -> Iterator[str]:
    """
    Lazily yield regular files under *root* whose full path matches *path_pattern*.

    Args:
        root: Directory to walk. Must exist.
        path_pattern: Regex searched in each candidate file path.
        path_filter: Prunes directories whose root-relative path it ignores.
        follow_symlinks: Descend into linked directories and yield linked files.
        case_fold: Case-insensitive path pattern (ignored if already compiled).

    Yields:
        File paths in walk order: a directory's files, then its subdirectories,
        siblings sorted by name.
    """
    root = normalize_root(root)
    if not os.path.isdir(root):
        raise FileNotFoundError(f"root directory does not exist: {root}")

    file_rx = compile_path_pattern(path_pattern, case_fold)
    seen: set[tuple[int, int]] = set()
    seen_files: set[tuple[int, int]] = set()
    root_key = _inode_key(root)
    if root_key:
        seen.add(root_key)

    for dirpath, dirnames, filenames in os.walk(root, followlinks=follow_symlinks):
        kept = []
        for d in sorted(dirnames):
            full = os.path.join(dirpath, d)
            if path_filter and path_filter.should_ignore(os.sep + full[len(root):]):
                logger.debug(f"Pruned {full}")
                continue
            if os.path.islink(full):
                if not follow_symlinks:
                    continue
                key = _inode_key(full)
                if key is None or key in seen:
                    logger.debug(f"Skipping symlink cycle at {full}")
                    continue
                seen.add(key)
            elif follow_symlinks:
                key = _inode_key(full)
                if key is not None:
                    if key in seen:
                        continue
                    seen.add(key)
            kept.append(d)
        # Prune in place so os.walk won't descend
        dirnames[:] = kept

        for filename in sorted(filenames):
            file_path = os.path.join(dirpath, filename)
            if os.path.islink(file_path) and not follow_symlinks:
                continue
            if not os.path.isfile(file_path):
                continue
            if not file_rx.search(file_path):
                continue
            key = _inode_key(file_path)
            if key is not None:
                if key in seen_files:
                    logger.debug(f"Skipping {file_path}: same file already yielded")
                    continue
                seen_files.add(key)
            yield file_path
