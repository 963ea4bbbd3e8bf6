# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Location extractor plugin."""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, ResolvedUnit

logger = logging.getLogger(__name__)


class LocationExtractor(GraphExtractor):
    """Extractor for the file path attribute.

    Sets file_path on every declaration of a unit that carries a file origin.
    Units parsed from an anonymous source produce an empty graph.

    Priority: 10 (last in the default pipeline)
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        if unit.path is None:
            return graph
        for decl in unit.declarations:
            graph.set_node_file_path(decl.identity, unit.path)
        return graph

    def priority(self) -> int:
        return 10

    def name(self) -> str:
        return "LocationExtractor"
