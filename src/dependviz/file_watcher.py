# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Workspace watcher that reports source files changed outside the editor.

Uses the watchdog library for cross-platform file system events. Create,
modify, delete and move events on supported, non-ignored source files are
forwarded to registered invalidation callbacks, which the document service
uses to evict stale cache entries and refresh the index of known types.
A move reports both its source and its destination path.

Known Limitations:
- Callbacks run synchronously on the watchdog thread and must return quickly
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Set

from watchdog.events import FileMovedEvent, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from dependviz.file_discovery import ALWAYS_IGNORED, matches_ignore_pattern

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

# Callback signature: (filepath: str) -> None
InvalidationCallback = Callable[[str], None]


class FileWatcher:
    """Watches a workspace for source file changes.

    Usage:
        watcher = FileWatcher(project_root="/path/to/project")
        watcher.register_invalidation_callback(cache.invalidate)
        watcher.start()
        # ...
        watcher.stop()
    """

    def __init__(
        self,
        project_root: str,
        extensions: Iterable[str] = (".java",),
        user_ignore_patterns: Optional[Set[str]] = None,
        gitignore_path: Optional[str] = None,
    ):
        """Initialize FileWatcher.

        Args:
            project_root: Root directory to watch.
            extensions: Source file extensions to report.
            user_ignore_patterns: Additional fnmatch ignore patterns.
            gitignore_path: Path to .gitignore (defaults to {project_root}/.gitignore)
        """
        self.project_root = Path(project_root).resolve()
        self.extensions = set(extensions)
        self.user_ignore_patterns = user_ignore_patterns or set()
        self.gitignore_path = (
            Path(gitignore_path) if gitignore_path else self.project_root / ".gitignore"
        )
        self._gitignore_patterns: Set[str] = self._load_gitignore()

        self._invalidation_callbacks: List[InvalidationCallback] = []

        self._observer: Optional["BaseObserver"] = None
        self._event_handler = _FileEventHandler(self)

        logger.info(f"FileWatcher initialized for {self.project_root}")

    def _load_gitignore(self) -> Set[str]:
        """Load .gitignore patterns, skipping blank lines, comments and negations.

        Returns:
            Set of patterns with trailing slashes removed.
        """
        patterns: Set[str] = set()
        if not self.gitignore_path.exists():
            logger.debug(f"No .gitignore found at {self.gitignore_path}")
            return patterns

        try:
            with open(self.gitignore_path, encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith("#") or line.startswith("!"):
                        continue
                    patterns.add(line.rstrip("/"))
            logger.debug(f"Loaded {len(patterns)} patterns from .gitignore")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to load .gitignore: {e}")

        return patterns

    def should_ignore(self, file_path: str) -> bool:
        """Check if a file should be ignored.

        Args:
            file_path: Absolute or relative file path

        Returns:
            True if any path component is an always-ignored directory, or the
            path matches a .gitignore or user pattern
        """
        path = Path(file_path)
        try:
            rel_path = path.resolve().relative_to(self.project_root)
        except ValueError:
            rel_path = path
        rel_path_str = rel_path.as_posix()

        if any(part in ALWAYS_IGNORED for part in rel_path.parts[:-1]):
            return True

        return matches_ignore_pattern(
            rel_path_str, self._gitignore_patterns | self.user_ignore_patterns
        )

    def is_supported_file(self, file_path: str) -> bool:
        return Path(file_path).suffix in self.extensions

    def register_invalidation_callback(self, callback: InvalidationCallback) -> None:
        """Register a callback invoked with the path of each changed file.

        Args:
            callback: Function that takes filepath (str). Exceptions it raises
                are logged and do not affect other callbacks.
        """
        if callback not in self._invalidation_callbacks:
            self._invalidation_callbacks.append(callback)
            logger.debug(f"Registered invalidation callback: {callback}")

    def unregister_invalidation_callback(self, callback: InvalidationCallback) -> None:
        if callback in self._invalidation_callbacks:
            self._invalidation_callbacks.remove(callback)
            logger.debug(f"Unregistered invalidation callback: {callback}")

    def notify_file_changed(self, file_path: str) -> None:
        """Forward a change to every callback if the file is relevant.

        Args:
            file_path: Path of the created, modified, deleted or moved file.
        """
        if not self.is_supported_file(file_path) or self.should_ignore(file_path):
            return
        for callback in list(self._invalidation_callbacks):
            try:
                callback(file_path)
            except Exception as e:
                # One failing callback must not block the others
                logger.error(f"Invalidation callback failed for {file_path}: {e}")

    def start(self) -> None:
        """Start watching file system.

        Raises:
            RuntimeError: If watcher is already running
        """
        if self._observer is not None and self._observer.is_alive():
            raise RuntimeError("FileWatcher is already running")

        self._observer = Observer()
        self._observer.schedule(  # type: ignore  # watchdog types vary by version
            self._event_handler, str(self.project_root), recursive=True
        )
        self._observer.start()  # type: ignore  # watchdog types vary by version

        logger.info(f"FileWatcher started, monitoring {self.project_root}")

    def stop(self) -> None:
        """Stop watching file system.

        Blocks until observer thread terminates (with timeout).
        """
        if self._observer is not None and self._observer.is_alive():
            self._observer.stop()  # type: ignore  # watchdog types vary by version
            self._observer.join(timeout=5.0)
            logger.info("FileWatcher stopped")

    def is_running(self) -> bool:
        return self._observer is not None and self._observer.is_alive()


class _FileEventHandler(FileSystemEventHandler):
    """Internal event handler for watchdog."""

    def __init__(self, watcher: FileWatcher):
        super().__init__()
        self.watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.notify_file_changed(str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.notify_file_changed(str(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.watcher.notify_file_changed(str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """Treat a move as a deletion of the old path and a change of the new one."""
        if event.is_directory or not isinstance(event, FileMovedEvent):
            return
        self.watcher.notify_file_changed(str(event.src_path))
        self.watcher.notify_file_changed(str(event.dest_path))
