# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Size extractor plugin."""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, ResolvedUnit, TypeDeclaration

logger = logging.getLogger(__name__)


class SizeExtractor(GraphExtractor):
    """Extractor for the lines of code attribute.

    The line count of a declaration is its inclusive source span
    (end line - begin line + 1). A declaration without a known span counts
    as 0 lines.

    Priority: 20
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for decl in unit.declarations:
            graph.set_node_lines_of_code(decl.identity, self.count_lines(decl))
        return graph

    @staticmethod
    def count_lines(decl: TypeDeclaration) -> int:
        if decl.begin_line is None or decl.end_line is None:
            return 0
        return decl.end_line - decl.begin_line + 1

    def priority(self) -> int:
        return 20

    def name(self) -> str:
        return "SizeExtractor"
