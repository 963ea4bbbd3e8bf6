# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Classification extractor plugin.

Sets the kind attribute of every declared type:
- interface declarations          -> Interface
- abstract class declarations     -> AbstractClass
- other class declarations        -> Class
- enum declarations               -> Enum
- annotation type declarations    -> Annotation
"""

import logging

from dependviz.extractors.base import GraphExtractor
from dependviz.models import CodeGraph, DeclarationKind, NodeKind, ResolvedUnit, TypeDeclaration

logger = logging.getLogger(__name__)


class ClassificationExtractor(GraphExtractor):
    """Extractor for the node kind attribute.

    Priority: 30
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        graph = CodeGraph()
        for decl in unit.declarations:
            kind = self.classify(decl)
            if kind != NodeKind.UNKNOWN:
                graph.set_node_kind(decl.identity, kind)
        return graph

    @staticmethod
    def classify(decl: TypeDeclaration) -> str:
        """Map a declaration to its NodeKind.

        Interface takes precedence over abstract, abstract over concrete.

        Args:
            decl: Type declaration.

        Returns:
            NodeKind value.
        """
        if decl.kind == DeclarationKind.INTERFACE:
            return NodeKind.INTERFACE
        if decl.kind == DeclarationKind.CLASS:
            return NodeKind.ABSTRACT_CLASS if decl.is_abstract else NodeKind.CLASS
        if decl.kind == DeclarationKind.ENUM:
            return NodeKind.ENUM
        if decl.kind == DeclarationKind.ANNOTATION:
            return NodeKind.ANNOTATION
        return NodeKind.UNKNOWN

    def priority(self) -> int:
        return 30

    def name(self) -> str:
        return "ClassificationExtractor"
