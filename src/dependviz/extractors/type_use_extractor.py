# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Type use extractor plugin.

Emits TypeUse edges for the types a declared type depends on through its
signature and body:
- Field types of every class or interface
- Return types of methods declared directly in a class or interface
- Parameter types of those methods (constructors are not included)
- Types of local variable declarations anywhere in the unit; the source is the
  nearest enclosing class or interface, or the Unknown sentinel

Field, return and parameter types are only collected from class and interface
declarations. Local variables inside enums and annotations still count, with
their source found by walking outward.
"""

import logging
from typing import Iterator

from dependviz.extractors.base import GraphExtractor
from dependviz.models import (
    CodeGraph,
    DeclarationKind,
    EdgeType,
    ResolvedUnit,
    SymbolReference,
    TypeDeclaration,
    enclosing_type_name,
)

logger = logging.getLogger(__name__)


class TypeUseExtractor(GraphExtractor):
    """Extractor for TypeUse relations.

    Priority: 80 (first in the default pipeline)
    """

    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        """Extract TypeUse edges from a resolved unit.

        Args:
            unit: Resolved unit to analyze.

        Returns:
            Graph holding one TypeUse edge per distinct (source, used type).
        """
        graph = CodeGraph()

        for decl in unit.declarations_of(DeclarationKind.CLASS, DeclarationKind.INTERFACE):
            for reference in self._signature_types(decl):
                target = self._resolve(unit, reference)
                if target is not None:
                    graph.add_reference(decl.identity, target, EdgeType.TYPE_USE)

        for reference in unit.local_variable_types:
            target = self._resolve(unit, reference)
            if target is not None:
                source = enclosing_type_name(reference.scope)
                graph.add_reference(source, target, EdgeType.TYPE_USE)

        return graph

    def _signature_types(self, decl: TypeDeclaration) -> Iterator[SymbolReference]:
        yield from decl.field_types
        for method in decl.methods:
            if method.return_type is not None:
                yield method.return_type
            yield from method.parameter_types

    def priority(self) -> int:
        return 80

    def name(self) -> str:
        return "TypeUseExtractor"
