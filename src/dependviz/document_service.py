# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Editor-facing service: document lifecycle and dependency graph queries.

This layer translates editor lifecycle notifications into GraphCache
operations and answers graph queries with node-link JSON. It is independent
of any transport; the protocol layer (mcp_server) only forwards calls here.

Lifecycle handling:
- initialize(root): configure the workspace (re-initializing invalidates all)
- did_open / did_change: full re-analysis of supported files from the given
  document text
- did_save: no cache effect
- did_close: evict the cache entry and forget the document text

Queries never raise: any failure yields the empty graph JSON.
"""

import logging
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from dependviz.analysis_engine import AnalysisEngine, create_engine
from dependviz.cache import GraphCache, WorkspaceNotConfiguredError
from dependviz.config import Config
from dependviz.file_discovery import find_source_root, normalize_path
from dependviz.file_watcher import FileWatcher
from dependviz.models import merge_graphs
from dependviz.serialization import EMPTY_GRAPH_JSON, to_json

logger = logging.getLogger(__name__)

# Builds an engine for a given source root
EngineFactory = Callable[[str], AnalysisEngine]


def uri_to_path(uri: str) -> str:
    """Convert a file URI or plain path to a normalized filesystem path.

    Args:
        uri: "file:///..." URI or a filesystem path.

    Returns:
        Absolute normalized path.

    Raises:
        ValueError: If uri uses a scheme other than file.
    """
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        path = url2pathname(parsed.path)
        if parsed.netloc and parsed.netloc != "localhost":
            path = f"//{parsed.netloc}{path}"
        return normalize_path(path)
    # Single letters are Windows drive letters, not schemes
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"Unsupported URI scheme: {uri}")
    return normalize_path(uri)


class DocumentService:
    """Document lifecycle and query service backed by a GraphCache.

    Thread Safety:
        All methods may be called concurrently. Ordering guarantees for a
        single file come from the cache's per-file versioning.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        cache: Optional[GraphCache] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        """Initialize service.

        Args:
            config: Configuration object. If None, loads from default location.
            cache: Graph cache. If None, creates an empty one.
            engine_factory: Builds the analysis engine for a source root.
                Defaults to the Java engine configured from config.
        """
        self.config = config if config is not None else Config()
        self.cache = cache if cache is not None else GraphCache()
        self._engine_factory = engine_factory or self._default_engine_factory

        self._documents: Dict[str, str] = {}
        self._documents_lock = Lock()
        self._watcher: Optional[FileWatcher] = None

    def _default_engine_factory(self, source_root: str) -> AnalysisEngine:
        return create_engine(source_root, self.config)

    # Workspace

    def initialize(self, root_uri: str) -> Dict[str, Any]:
        """Configure the workspace root.

        The source root used for cross-file lookups is the nearest configured
        source root candidate at or above the workspace root, or the
        workspace root itself.

        Args:
            root_uri: Workspace root as a file URI or path.

        Returns:
            Dictionary with the resolved workspace_root and source_root.
        """
        workspace_root = uri_to_path(root_uri)
        source_root = find_source_root(workspace_root, self.config.source_root_candidates)
        if source_root is None:
            logger.warning(f"Source root not found, using workspace root: {workspace_root}")
            source_root = workspace_root
        else:
            logger.info(f"Found source root: {source_root}")

        self.cache.configure(workspace_root, self._engine_factory(source_root))

        if self.config.watch_workspace:
            self._start_watcher(workspace_root)

        return {"workspace_root": workspace_root, "source_root": source_root}

    def _start_watcher(self, workspace_root: str) -> None:
        self._stop_watcher()
        watcher = FileWatcher(
            project_root=workspace_root,
            extensions=self.config.source_extensions,
            user_ignore_patterns=set(self.config.ignore_patterns),
        )
        watcher.register_invalidation_callback(self._on_file_changed_on_disk)
        watcher.start()
        self._watcher = watcher

    def _stop_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def _on_file_changed_on_disk(self, filepath: str) -> None:
        """Drop cached graphs of files edited outside the editor."""
        key = normalize_path(filepath)
        engine = self.cache.engine
        if engine is not None:
            # Created, moved or deleted files change which names resolve
            engine.refresh()
        with self._documents_lock:
            if key in self._documents:
                # The editor buffer is authoritative for open documents
                return
        if self.cache.invalidate(key):
            logger.debug(f"Invalidated {key} after change on disk")

    # Lifecycle notifications

    def did_open(self, uri: str, text: Optional[str] = None) -> None:
        """Handle a document being opened in the editor."""
        logger.info(f"Document opened: {uri}")
        self._analyze_document(uri, text, self.cache.open)

    def did_change(self, uri: str, text: Optional[str] = None) -> None:
        """Handle a full-document change."""
        logger.info(f"Document changed: {uri}")
        self._analyze_document(uri, text, self.cache.change)

    def did_save(self, uri: str) -> None:
        """Handle a document save."""
        logger.info(f"Document saved: {uri}")
        try:
            self.cache.save(uri_to_path(uri))
        except ValueError as e:
            logger.warning(f"Ignoring save for {uri}: {e}")

    def did_close(self, uri: str) -> None:
        """Handle a document being closed."""
        logger.info(f"Document closed: {uri}")
        try:
            path = uri_to_path(uri)
        except ValueError as e:
            logger.warning(f"Ignoring close for {uri}: {e}")
            return
        with self._documents_lock:
            self._documents.pop(path, None)
        self.cache.close(path)

    def _analyze_document(
        self,
        uri: str,
        text: Optional[str],
        operation: Callable[[str, Optional[str]], Any],
    ) -> None:
        try:
            path = uri_to_path(uri)
        except ValueError as e:
            logger.warning(f"Ignoring {uri}: {e}")
            return

        if not self.is_supported(path):
            logger.debug(f"Ignoring unsupported file {path}")
            return

        with self._documents_lock:
            if text is not None:
                self._documents[path] = text
            else:
                text = self._documents.get(path)

        try:
            graph = operation(path, text)
        except WorkspaceNotConfiguredError:
            logger.warning(f"Workspace not configured, cannot analyze {path}")
            return
        logger.info(
            f"Analyzed file: {path} ({graph.node_count()} nodes, {graph.edge_count()} edges)"
        )

    # Queries

    def get_file_dependency_graph(self, uri: str) -> str:
        """Get the node-link JSON graph of one file.

        The file is analyzed on demand when it has no cache entry.

        Args:
            uri: File URI or path.

        Returns:
            Node-link JSON string; {"nodes": [], "links": []} on any failure.
        """
        try:
            path = uri_to_path(uri)
            if not self.is_supported(path):
                return EMPTY_GRAPH_JSON
            with self._documents_lock:
                text = self._documents.get(path)
            graph = self.cache.query(path, text)
            return to_json(graph, self.config.include_external_nodes)
        except Exception as e:
            logger.error(f"Failed to build file dependency graph for {uri}: {e}")
            return EMPTY_GRAPH_JSON

    def get_dependency_graph(self) -> str:
        """Get the merged node-link JSON graph of every analyzed file.

        Returns:
            Node-link JSON string; {"nodes": [], "links": []} on any failure.
        """
        try:
            graph = merge_graphs(graph for _, graph in self.cache.entries())
            return to_json(graph, self.config.include_external_nodes)
        except Exception as e:
            logger.error(f"Failed to build dependency graph: {e}")
            return EMPTY_GRAPH_JSON

    def get_cache_statistics(self) -> Dict[str, Any]:
        """Get cache statistics as a JSON-compatible dict."""
        return self.cache.get_statistics().to_dict()

    def is_supported(self, filepath: str) -> bool:
        return Path(filepath).suffix in self.config.source_extensions

    def open_documents(self) -> Dict[str, str]:
        with self._documents_lock:
            return dict(self._documents)

    def shutdown(self) -> None:
        """Stop background work and drop all state."""
        self._stop_watcher()
        self.cache.clear()
        with self._documents_lock:
            self._documents.clear()
        logger.info("Document service shut down")
