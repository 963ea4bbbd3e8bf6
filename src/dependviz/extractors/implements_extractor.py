# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Interface implementation extractor plugin."""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, DeclarationKind, EdgeType, ResolvedUnit

logger = logging.getLogger(__name__)


class ImplementsExtractor(GraphExtractor):
    """Extractor for Implements relations.

    Emits an Implements edge from each class or interface to every interface
    listed in its implements clause.

    Priority: 40
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for decl in unit.declarations_of(DeclarationKind.CLASS, DeclarationKind.INTERFACE):
            for reference in decl.implemented_types:
                target = self._resolve(unit, reference)
                if target is not None:
                    graph.add_reference(decl.identity, target, EdgeType.IMPLEMENTS)
        return graph

    def priority(self) -> int:
        return 40

    def name(self) -> str:
        return "ImplementsExtractor"
