# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Incremental per-file graph cache for the editor server.

This module implements the backing store for editor-driven analysis. Each
tracked file is keyed by its normalized path and moves between two states:

    UNTRACKED --open/change/query--> ANALYZED --close/invalidate--> UNTRACKED

Key Features:
- open/change always re-analyze and atomically replace the entry
- query serves the cached graph or analyzes on demand
- Analysis failure leaves the file UNTRACKED so a later query retries
- Reconfiguring the workspace invalidates every entry

Thread Safety:
- _lock protects the slot table and the configured engine
- Each slot has its own lock guarding its graph, version and pending query
- _stats_lock protects statistics
- Lock order is always _lock -> slot lock -> _stats_lock; analysis itself
  runs with no lock held

Versioning:
- Every analysis start increments the slot's version under the slot lock
- A finished analysis is committed only if its version is still the newest,
  so a slow earlier change can never overwrite a newer one
- close, invalidate and reconfigure also increment versions, so in-flight
  analyses cannot resurrect an evicted entry

Slot lifetime:
- A slot with no graph, no pending query and no analysis in flight is idle
  and is removed from the table, so closed files leave nothing behind
- Removed slots are marked retired under both locks; a caller that locks a
  retired slot drops it and looks the key up again

Query coalescing:
- The first query for an UNTRACKED file registers a pending future and runs
  the analysis; concurrent queries for the same file wait on that future
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Tuple

from dependviz.analysis_engine import AnalysisEngine, AnalysisError
from dependviz.file_discovery import normalize_path
from dependviz.models import CacheStatistics, CodeGraph

logger = logging.getLogger(__name__)


class FileState:
    """States of a file in the cache.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    UNTRACKED = "untracked"
    ANALYZED = "analyzed"


class WorkspaceNotConfiguredError(Exception):
    """Raised when analysis is requested before a workspace is configured."""

    pass


@dataclass
class _CacheSlot:
    lock: Lock = field(default_factory=Lock)
    version: int = 0
    graph: Optional[CodeGraph] = None
    pending: Optional["Future[CodeGraph]"] = None
    # Analyses started but not yet committed
    active: int = 0
    retired: bool = False

    def is_idle(self) -> bool:
        return self.graph is None and self.pending is None and self.active == 0


class GraphCache:
    """Per-file cache of analyzed dependency graphs.

    Graphs handed out by the cache are shared with the cache and must be
    treated as read-only by callers.

    Usage:
        cache = GraphCache()
        cache.configure("/workspace", create_engine("/workspace/src/main/java"))
        cache.open("/workspace/src/main/java/com/acme/Foo.java", text)
        graph = cache.query("/workspace/src/main/java/com/acme/Foo.java")
        cache.close("/workspace/src/main/java/com/acme/Foo.java")
    """

    def __init__(self) -> None:
        """Initialize an unconfigured cache."""
        self._lock = Lock()
        self._slots: Dict[str, _CacheSlot] = {}
        self._engine: Optional[AnalysisEngine] = None
        self._workspace_root: Optional[str] = None

        self._stats_lock = Lock()
        self._stats = CacheStatistics()

        logger.debug("GraphCache initialized")

    # Configuration

    def configure(self, workspace_root: str, engine: AnalysisEngine) -> None:
        """Set the workspace root and the engine used for analysis.

        Any existing entries are invalidated and any in-flight analysis is
        discarded when it finishes.

        Args:
            workspace_root: Root directory of the editor workspace.
            engine: Engine whose oracle is rooted in this workspace.
        """
        with self._lock:
            reconfigured = self._engine is not None
            self._workspace_root = normalize_path(workspace_root)
            self._engine = engine
            slots = list(self._slots.items())

            invalidated = 0
            for key, slot in slots:
                with slot.lock:
                    slot.version += 1
                    if slot.graph is not None:
                        slot.graph = None
                        invalidated += 1
                    if slot.is_idle():
                        self._retire(key, slot)

        if invalidated:
            self._record(evictions=invalidated)
        self._update_entry_count()

        if reconfigured:
            logger.info(
                f"Workspace reconfigured to {self._workspace_root}, "
                f"invalidated {invalidated} cache entries"
            )
        else:
            logger.info(f"Workspace configured: {self._workspace_root}")

    @property
    def workspace_root(self) -> Optional[str]:
        return self._workspace_root

    @property
    def engine(self) -> Optional[AnalysisEngine]:
        return self._engine

    def is_configured(self) -> bool:
        return self._engine is not None

    # Lifecycle

    def open(self, filepath: str, content: Optional[str] = None) -> CodeGraph:
        """Analyze a newly opened file and replace its entry.

        Args:
            filepath: Path of the file.
            content: Editor buffer text. If None, the file is read from disk.

        Returns:
            The new graph, or an empty graph if analysis failed.

        Raises:
            WorkspaceNotConfiguredError: If configure() was never called.
        """
        return self._analyze_and_commit(normalize_path(filepath), content)

    def change(self, filepath: str, content: Optional[str] = None) -> CodeGraph:
        """Re-analyze a changed file and replace its entry.

        Same contract as open().
        """
        return self._analyze_and_commit(normalize_path(filepath), content)

    def save(self, filepath: str) -> None:
        """Handle a save. The entry already reflects the last change."""
        logger.debug(f"Save for {normalize_path(filepath)}: cache unchanged")

    def close(self, filepath: str) -> bool:
        """Evict a file's entry.

        Returns:
            True if an entry was removed.
        """
        removed = self._evict(normalize_path(filepath))
        logger.debug(f"Closed {filepath} (entry removed: {removed})")
        return removed

    def invalidate(self, filepath: str) -> bool:
        """Evict a file's entry without re-analysis.

        Used when a file changes outside the editor. The next query
        re-analyzes it.

        Returns:
            True if an entry was removed.
        """
        return self._evict(normalize_path(filepath))

    def query(self, filepath: str, content: Optional[str] = None) -> CodeGraph:
        """Get a file's graph, analyzing it on demand.

        Concurrent queries for an UNTRACKED file share a single analysis.

        Args:
            filepath: Path of the file.
            content: Text to analyze on a miss. If None, read from disk.

        Returns:
            The cached or freshly computed graph; an empty graph if analysis
            failed (the file then stays UNTRACKED).

        Raises:
            WorkspaceNotConfiguredError: If configure() was never called.
        """
        key = normalize_path(filepath)
        self._require_engine()
        slot = self._acquire_slot(key)
        try:
            if slot.graph is not None:
                self._record(hits=1)
                return slot.graph
            if slot.pending is not None:
                pending = slot.pending
                owner = False
            else:
                engine = self._require_engine()
                pending = Future()
                slot.pending = pending
                slot.version += 1
                slot.active += 1
                version = slot.version
                owner = True
        finally:
            slot.lock.release()

        if not owner:
            self._record(coalesced_queries=1)
            logger.debug(f"Query for {key} waiting on in-flight analysis")
            return pending.result()

        self._record(misses=1)
        result = CodeGraph()
        try:
            graph = self._run(engine, key, content)
            self._commit(slot, key, version, graph)
            if graph is not None:
                result = graph
        finally:
            with slot.lock:
                if slot.pending is pending:
                    slot.pending = None
                idle = slot.is_idle()
            pending.set_result(result)
            if idle:
                self._discard_if_idle(key, slot)
        return result

    # Inspection

    def get(self, filepath: str) -> Optional[CodeGraph]:
        """Get a file's cached graph without analyzing."""
        slot = self._slots.get(normalize_path(filepath))
        if slot is None:
            return None
        with slot.lock:
            return slot.graph

    def state(self, filepath: str) -> str:
        """Get a file's FileState."""
        return FileState.ANALYZED if self.get(filepath) is not None else FileState.UNTRACKED

    def entries(self) -> List[Tuple[str, CodeGraph]]:
        """Snapshot of all (path, graph) entries, sorted by path."""
        with self._lock:
            slots = sorted(self._slots.items())
        result: List[Tuple[str, CodeGraph]] = []
        for key, slot in slots:
            with slot.lock:
                if slot.graph is not None:
                    result.append((key, slot.graph))
        return result

    def tracked_paths(self) -> List[str]:
        return [key for key, _ in self.entries()]

    def clear(self) -> None:
        """Evict every entry."""
        with self._lock:
            keys = list(self._slots)
        for key in keys:
            self._evict(key)

    def get_statistics(self) -> CacheStatistics:
        """Get a snapshot of cache statistics."""
        with self._stats_lock:
            return CacheStatistics(**self._stats.to_dict())

    # Internals

    def _acquire_slot(self, key: str) -> _CacheSlot:
        """Get the live slot for a key with its lock held.

        The caller must release slot.lock.
        """
        while True:
            with self._lock:
                slot = self._slots.get(key)
                if slot is None:
                    slot = _CacheSlot()
                    self._slots[key] = slot
            slot.lock.acquire()
            if not slot.retired:
                return slot
            # Removed between lookup and lock; the table has a newer slot
            slot.lock.release()

    def _retire(self, key: str, slot: _CacheSlot) -> None:
        # Caller holds _lock and slot.lock
        slot.retired = True
        if self._slots.get(key) is slot:
            del self._slots[key]

    def _discard_if_idle(self, key: str, slot: _CacheSlot) -> None:
        with self._lock:
            with slot.lock:
                if not slot.retired and slot.is_idle():
                    self._retire(key, slot)

    def _require_engine(self) -> AnalysisEngine:
        engine = self._engine
        if engine is None:
            raise WorkspaceNotConfiguredError(
                "Workspace root must be configured before analysis"
            )
        return engine

    def _analyze_and_commit(self, key: str, content: Optional[str]) -> CodeGraph:
        self._require_engine()
        slot = self._acquire_slot(key)
        try:
            engine = self._require_engine()
            slot.version += 1
            slot.active += 1
            version = slot.version
        finally:
            slot.lock.release()

        graph = self._run(engine, key, content)
        self._commit(slot, key, version, graph)
        return graph if graph is not None else CodeGraph()

    def _run(self, engine: AnalysisEngine, key: str, content: Optional[str]) -> Optional[CodeGraph]:
        self._record(analyses=1)
        try:
            return engine.analyze_file(key, content)
        except AnalysisError as e:
            logger.warning(f"Analysis failed for {key}: {e.reason}")
        except Exception as e:
            logger.error(f"Unexpected error analyzing {key}: {e}", exc_info=True)
        self._record(failures=1)
        return None

    def _commit(self, slot: _CacheSlot, key: str, version: int, graph: Optional[CodeGraph]) -> None:
        with slot.lock:
            slot.active -= 1
            if version != slot.version:
                superseded = True
            else:
                superseded = False
                # A failed analysis removes any previous entry
                slot.graph = graph
            idle = slot.is_idle()

        if superseded:
            self._record(discarded_results=1)
            logger.debug(f"Discarded superseded analysis of {key} (version {version})")
        else:
            self._update_entry_count()
        if idle:
            self._discard_if_idle(key, slot)

    def _evict(self, key: str) -> bool:
        with self._lock:
            slot = self._slots.get(key)
            if slot is None:
                return False
            with slot.lock:
                slot.version += 1
                removed = slot.graph is not None
                slot.graph = None
                if slot.is_idle():
                    self._retire(key, slot)
        if removed:
            self._record(evictions=1)
            self._update_entry_count()
        return removed

    def _update_entry_count(self) -> None:
        with self._lock:
            slots = list(self._slots.values())
        count = sum(1 for slot in slots if slot.graph is not None)
        with self._stats_lock:
            self._stats.current_entry_count = count
            self._stats.peak_entry_count = max(self._stats.peak_entry_count, count)

    def _record(self, **increments: int) -> None:
        with self._stats_lock:
            for name, amount in increments.items():
                setattr(self._stats, name, getattr(self._stats, name) + amount)
