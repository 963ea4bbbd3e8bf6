# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Graph aggregation: run extractors over a unit and fold graphs together.

The aggregator owns no state besides its extractor registry, so one instance
can be shared by every worker thread. Folding into an accumulator is NOT
thread-safe; callers that fold from several threads must serialize access.
"""

import logging
from typing import Iterable, Optional

from dependviz.extractors.registry import ExtractorRegistry, create_default_registry
from dependviz.models import CodeGraph, ResolvedUnit

logger = logging.getLogger(__name__)


class GraphAggregator:
    """Builds per-unit graphs from extractor output and folds graphs.

    Usage:
        aggregator = GraphAggregator()
        unit_graph = aggregator.build_graph(unit)
        project_graph = aggregator.fold([unit_graph, other_graph])
    """

    def __init__(self, registry: Optional[ExtractorRegistry] = None):
        """Initialize aggregator.

        Args:
            registry: Extractors to run. If None, uses every built-in extractor.
        """
        self.registry = registry if registry is not None else create_default_registry()

    def build_graph(self, unit: ResolvedUnit) -> CodeGraph:
        """Run all registered extractors over a unit and merge their output.

        Args:
            unit: Resolved unit to analyze.

        Returns:
            A new graph holding the merged output of every extractor.
        """
        graph = CodeGraph()
        for extractor in self.registry.get_extractors():
            partial = extractor.extract(unit)
            logger.debug(
                f"{extractor.name()} on {unit.path}: "
                f"{partial.node_count()} nodes, {partial.edge_count()} edges"
            )
            graph.merge(partial)
        return graph

    def fold_into(self, accumulator: CodeGraph, graph: CodeGraph) -> CodeGraph:
        """Merge one graph into an accumulator and return the accumulator."""
        accumulator.merge(graph)
        return accumulator

    def fold(self, graphs: Iterable[CodeGraph]) -> CodeGraph:
        """Merge a sequence of graphs into one new graph.

        Args:
            graphs: Graphs to merge, e.g. one per analyzed file.

        Returns:
            A new graph; the inputs are not modified.
        """
        accumulator = CodeGraph()
        for graph in graphs:
            self.fold_into(accumulator, graph)
        return accumulator
