# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Inheritance extractor plugin.

Emits an Extends edge from every class or interface to each supertype it
declares in its extends clause:
- class Sub extends Base            -> Sub Extends Base
- interface Child extends A, B      -> Child Extends A, Child Extends B

Enum and annotation declarations are not visited.
"""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, DeclarationKind, EdgeType, ResolvedUnit

logger = logging.getLogger(__name__)


class InheritanceExtractor(GraphExtractor):
    """Extractor for Extends relations.

    Priority: 50 (runs after the reference extractors)
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for decl in unit.declarations_of(DeclarationKind.CLASS, DeclarationKind.INTERFACE):
            for reference in decl.extended_types:
                target = self._resolve(unit, reference)
                if target is not None:
                    graph.add_reference(decl.identity, target, EdgeType.EXTENDS)
        return graph

    def priority(self) -> int:
        return 50

    def name(self) -> str:
        return "InheritanceExtractor"
