# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source file discovery and source root lookup.

Discovery walks a directory tree in sorted order so batch runs see files in a
deterministic sequence. Directories that never hold project sources (VCS
metadata, build output, dependency caches) are always skipped; user patterns
are matched with fnmatch against the relative path and the file name.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Directories never descended into
ALWAYS_IGNORED = {
    ".git",
    ".svn",
    ".hg",
    ".idea",
    ".vscode",
    ".gradle",
    "node_modules",
    "build",
    "target",
    "out",
    "__pycache__",
}

DEFAULT_SOURCE_ROOT_CANDIDATES = ("src/main/java",)


def normalize_path(path: str) -> str:
    """Normalize a file path for use as an identity key.

    Args:
        path: Absolute or relative path.

    Returns:
        Absolute path with symlinks and relative components resolved.
    """
    return str(Path(path).expanduser().resolve())


def matches_ignore_pattern(rel_path: str, patterns: Iterable[str]) -> bool:
    """Check a relative path against user ignore patterns.

    Args:
        rel_path: Path relative to the discovery root, using "/" separators.
        patterns: fnmatch-style patterns.

    Returns:
        True if the path, its file name, or any of its directories matches.
    """
    name = rel_path.rsplit("/", 1)[-1]
    parts = rel_path.split("/")
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(name, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern.rstrip("/")) for part in parts[:-1]):
            return True
    return False


def discover_source_files(
    root: str,
    extensions: Sequence[str] = (".java",),
    ignore_patterns: Sequence[str] = (),
) -> List[str]:
    """Find all source files under a directory.

    Args:
        root: Directory to walk.
        extensions: File extensions to include (e.g. [".java"]).
        ignore_patterns: Additional fnmatch patterns to exclude.

    Returns:
        Sorted list of absolute file paths.

    Raises:
        NotADirectoryError: If root is not a directory.
    """
    root_path = Path(root).resolve()
    if not root_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    suffixes = tuple(extensions)
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(
            d for d in dirnames if d not in ALWAYS_IGNORED and not d.startswith(".")
        )
        for filename in sorted(filenames):
            if not filename.endswith(suffixes):
                continue
            full_path = Path(dirpath) / filename
            rel_path = full_path.relative_to(root_path).as_posix()
            if ignore_patterns and matches_ignore_pattern(rel_path, ignore_patterns):
                logger.debug(f"Ignoring {rel_path} (matches ignore pattern)")
                continue
            found.append(str(full_path))

    logger.info(f"Discovered {len(found)} source files under {root_path}")
    return found


def find_source_root(
    start: str, candidates: Sequence[str] = DEFAULT_SOURCE_ROOT_CANDIDATES
) -> Optional[str]:
    """Walk outward from a directory looking for a source root.

    At each ancestor (start included) every candidate is tried as a
    subdirectory, so a file at /repo/src/main/java/com/acme/Foo.java finds
    /repo/src/main/java.

    Args:
        start: Directory to start from.
        candidates: Relative source root locations (e.g. "src/main/java").

    Returns:
        Absolute path of the first existing candidate, or None.
    """
    current: Optional[Path] = Path(start).resolve()
    while current is not None:
        for candidate in candidates:
            source_root = current / candidate
            if source_root.is_dir():
                return str(source_root)
        current = current.parent if current.parent != current else None
    return None


def source_root_for_file(
    filepath: str, candidates: Sequence[str] = DEFAULT_SOURCE_ROOT_CANDIDATES
) -> str:
    """Source root for single-file analysis.

    Args:
        filepath: File being analyzed.
        candidates: Relative source root locations.

    Returns:
        The enclosing source root, or the file's own directory if none exists.
    """
    parent = str(Path(filepath).resolve().parent)
    return find_source_root(parent, candidates) or parent


def source_root_for_directory(
    root: str, candidates: Sequence[str] = DEFAULT_SOURCE_ROOT_CANDIDATES
) -> str:
    """Source root for whole-directory analysis.

    Args:
        root: Directory being analyzed.
        candidates: Relative source root locations.

    Returns:
        The first candidate that exists directly under root, or root itself.
    """
    root_path = Path(root).resolve()
    for candidate in candidates:
        if (root_path / candidate).is_dir():
            return str(root_path / candidate)
    return str(root_path)
