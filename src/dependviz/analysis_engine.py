# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Per-file and whole-project analysis pipeline.

A per-file analysis runs the source oracle and then every extractor through
the aggregator. Per-file work shares no mutable state, so batch runs execute
it in a thread pool; the resulting partial graphs are folded into the project
graph by the calling thread only (single-writer reducer).

Error handling:
- File-level failures (unreadable file, syntax error, or any unexpected
  error while analyzing the file) surface as AnalysisError from
  analyze_file() and as a logged warning everywhere else
- Batch runs skip failed files and continue with the rest
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence

from dependviz.aggregator import GraphAggregator
from dependviz.file_discovery import discover_source_files
from dependviz.models import CodeGraph
from dependviz.oracle.base import OracleError, SourceOracle
from dependviz.oracle.java_oracle import JavaSourceOracle

if TYPE_CHECKING:
    from dependviz.config import Config

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Raised when a file cannot be analyzed at all."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Analysis failed for {filepath}: {reason}")


@dataclass
class ProjectAnalysis:
    """Result of a batch analysis run."""

    graph: CodeGraph
    analyzed_files: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.analyzed_files) + len(self.failed_files)


class AnalysisEngine:
    """Runs the oracle and extractor pipeline for files and projects.

    Thread Safety:
        analyze_file() may be called concurrently; the oracle and aggregator
        hold no per-call state.
    """

    def __init__(
        self,
        oracle: SourceOracle,
        aggregator: Optional[GraphAggregator] = None,
        max_workers: int = 4,
    ):
        """Initialize engine.

        Args:
            oracle: Source oracle that parses files into resolved units.
            aggregator: Aggregator running the extractors. Defaults to one
                holding every built-in extractor.
            max_workers: Thread pool size for batch runs.
        """
        self.oracle = oracle
        self.aggregator = aggregator if aggregator is not None else GraphAggregator()
        self.max_workers = max_workers

    @property
    def source_root(self) -> Optional[str]:
        return self.oracle.source_root

    def supports(self, filepath: str) -> bool:
        return self.oracle.supports(filepath)

    def refresh(self) -> None:
        """Make the oracle re-read files outside the one being analyzed."""
        self.oracle.refresh()

    def analyze_file(self, filepath: str, content: Optional[str] = None) -> CodeGraph:
        """Analyze one file.

        Args:
            filepath: Path of the file; recorded as the origin of its types.
            content: In-memory source text. If None, the file is read from disk.

        Returns:
            Graph with the merged output of every extractor for this file.

        Raises:
            AnalysisError: If the file cannot be analyzed.
        """
        try:
            unit = self.oracle.load(filepath, content)
            graph = self.aggregator.build_graph(unit)
        except OracleError as e:
            raise AnalysisError(filepath, e.reason) from e
        except Exception as e:
            # Nothing raised while analyzing one file may reach other files
            logger.error(f"Unexpected error analyzing {filepath}: {e}", exc_info=True)
            raise AnalysisError(filepath, f"{type(e).__name__}: {e}") from e
        logger.debug(
            f"Analyzed {filepath}: {graph.node_count()} nodes, {graph.edge_count()} edges"
        )
        return graph

    def try_analyze_file(self, filepath: str, content: Optional[str] = None) -> Optional[CodeGraph]:
        """Analyze one file, logging a warning instead of raising on failure.

        Returns:
            The file's graph, or None if the file could not be analyzed.
        """
        try:
            return self.analyze_file(filepath, content)
        except AnalysisError as e:
            logger.warning(f"Skipping {filepath}: {e.reason}")
            return None

    def analyze_files(self, filepaths: Sequence[str]) -> ProjectAnalysis:
        """Analyze files in parallel and fold them into one graph.

        Partial graphs are folded in input order by the calling thread.

        Args:
            filepaths: Files to analyze.

        Returns:
            ProjectAnalysis with the folded graph and per-file outcome.
        """
        result = ProjectAnalysis(graph=CodeGraph())
        if not filepaths:
            return result

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(self.try_analyze_file, path) for path in filepaths]
            for path, future in zip(filepaths, futures):
                graph = future.result()
                if graph is None:
                    result.failed_files.append(path)
                    continue
                self.aggregator.fold_into(result.graph, graph)
                result.analyzed_files.append(path)

        logger.info(
            f"Analyzed {len(result.analyzed_files)} files "
            f"({len(result.failed_files)} failed): "
            f"{result.graph.node_count()} nodes, {result.graph.edge_count()} edges"
        )
        return result

    def analyze_project(
        self,
        root: str,
        extensions: Sequence[str] = (".java",),
        ignore_patterns: Sequence[str] = (),
    ) -> ProjectAnalysis:
        """Discover and analyze every source file under a directory.

        Args:
            root: Directory to walk.
            extensions: Source file extensions to include.
            ignore_patterns: fnmatch patterns to exclude.

        Returns:
            ProjectAnalysis for all discovered files.
        """
        files = discover_source_files(root, extensions, ignore_patterns)
        return self.analyze_files(files)


def create_engine(source_root: Optional[str], config: Optional["Config"] = None) -> AnalysisEngine:
    """Create an engine backed by the Java oracle.

    Args:
        source_root: Root of the package hierarchy for cross-file lookups.
        config: Configuration supplying worker count and file size limit.

    Returns:
        A ready-to-use AnalysisEngine.
    """
    if config is None:
        return AnalysisEngine(JavaSourceOracle(source_root))
    oracle = JavaSourceOracle(source_root, max_file_size_kb=config.max_file_size_kb)
    return AnalysisEngine(oracle, max_workers=config.max_workers)
