"""File discovery utilities for scanning source trees."""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set


logger = logging.getLogger(__name__)

DEFAULT_IGNORE_GLOBS = ("**/node_modules/**",)
DEFAULT_EXCLUDE_DIRS = {
    ".git", ".hg", ".svn", "node_modules",
}


def iter_files(
    root: str,
    kinds: Iterable[str],
    ignore_globs: Iterable[str] = DEFAULT_IGNORE_GLOBS,
    exclude_dirs: Optional[Set[str]] = None,
) -> Iterator[str]:
    """
    Iterate over files of the given kinds in a directory tree.

    Args:
        root: Root directory to scan.
        kinds: File extensions to include, without a leading dot
            (e.g. ``["ts", "css"]``). Matching is case-insensitive.
        ignore_globs: Glob patterns, relative to ``root``, of files to skip.
            Directories matched by a pattern ending in ``/**`` are not
            descended into.
        exclude_dirs: Directory names that are never descended into.

    Yields:
        Absolute, symlink-resolved file paths, in a stable sorted order.
        Symlinks whose target lies outside ``root`` are skipped.
    """
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    suffixes = {f".{kind.lower()}" for kind in kinds}
    patterns = list(ignore_globs)
    directory_patterns = [p[:-3] for p in patterns if p.endswith("/**")]
    base = Path(os.path.realpath(root))
    prefix = str(base) + os.sep

    def _walk(current: Path) -> Iterator[Path]:
        try:
            entries = sorted(current.iterdir())
        except PermissionError:
            return

        for entry in entries:
            if entry.is_dir():
                if entry.name in exclude_dirs:
                    continue
                if _is_ignored(entry.relative_to(base).as_posix(), directory_patterns):
                    continue
                yield from _walk(entry)
            elif entry.is_file():
                if entry.suffix.lower() not in suffixes:
                    continue
                if _is_ignored(entry.relative_to(base).as_posix(), patterns):
                    continue
                yield entry

    for path in _walk(base):
        real_path = os.path.realpath(path)
        if not real_path.startswith(prefix):
            logger.debug("Skipping %s, it links outside of %s", path, base)
            continue
        yield real_path


def find_files(
    roots: Iterable[str],
    kinds: Iterable[str],
    ignore_globs: Iterable[str] = DEFAULT_IGNORE_GLOBS,
) -> List[str]:
    """
    Collect files of the given kinds from several root directories.

    Files reachable from more than one root are returned once, at the
    position of their first discovery.
    """
    kinds = list(kinds)
    ignore_globs = list(ignore_globs)
    found = {}
    for root in roots:
        for path in iter_files(root, kinds, ignore_globs):
            found.setdefault(path, None)
    return list(found)


def _is_ignored(relative: str, patterns: List[str]) -> bool:
    """Check a root-relative posix path against ignore globs."""
    for pattern in patterns:
        if fnmatch.fnmatchcase(relative, pattern):
            return True
        # "**/" also matches zero directories
        if pattern.startswith("**/") and fnmatch.fnmatchcase(relative, pattern[3:]):
            return True
    return False
