# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Method call extractor plugin.

Each method invocation is resolved to the type that declares the invoked
method, and a MethodCall edge is emitted from the enclosing class or interface
of the call site to that type. Call sites outside any class or interface use
the Unknown sentinel as their source.
"""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, EdgeType, ResolvedUnit, enclosing_type_name

logger = logging.getLogger(__name__)


class MethodCallExtractor(GraphExtractor):
    """Extractor for MethodCall relations.

    Priority: 70
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for reference in unit.method_calls:
            target = self._resolve(unit, reference)
            if target is None:
                continue
            source = enclosing_type_name(reference.scope)
            graph.add_reference(source, target, EdgeType.METHOD_CALL)
        return graph

    def priority(self) -> int:
        return 70

    def name(self) -> str:
        return "MethodCallExtractor"
