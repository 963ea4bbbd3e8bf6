# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Object creation extractor plugin."""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, EdgeType, ResolvedUnit, enclosing_type_name

logger = logging.getLogger(__name__)


class ObjectCreationExtractor(GraphExtractor):
    """Extractor for ObjectCreate relations.

    Emits an ObjectCreate edge from the enclosing class or interface of every
    constructor invocation (including anonymous class creation) to the
    constructed type.

    Priority: 60
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for reference in unit.object_creations:
            target = self._resolve(unit, reference)
            if target is None:
                continue
            graph.add_reference(
                enclosing_type_name(reference.scope), target, EdgeType.OBJECT_CREATE
            )
        return graph

    def priority(self) -> int:
        return 60

    def name(self) -> str:
        return "ObjectCreationExtractor"
