# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for graph extractor plugins.

This module defines the abstract base class for extractors that derive one
relation or attribute kind from a resolved unit (modular extractor plugin
pattern).

Lifecycle:
1. Extractor is registered in ExtractorRegistry with a priority
2. The aggregator calls extract() once per resolved unit
3. Extractor returns a fresh CodeGraph holding only what it is responsible for
4. The aggregator merges that partial graph into the unit graph
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from dependviz.models import CodeGraph, ResolvedUnit, SymbolReference
from dependviz.oracle.base import ResolutionError

logger = logging.getLogger(__name__)


class GraphExtractor(ABC):
    """Abstract base class for graph extractor plugins.

    Extractors are independent, stateless strategy objects. Each one focuses
    on a single relation (e.g. Extends, MethodCall) or node attribute (e.g.
    kind, lines of code).

    Design Pattern:
    - Each extractor is independent and stateless
    - Extractors are registered with priority values
    - Higher priority extractors execute first
    - Running extractors in any order and merging yields the same graph
    """

    @abstractmethod
    def extract(self, unit: ResolvedUnit) -> CodeGraph:
        """Extract a partial graph from a resolved unit.

        Args:
            unit: Resolved unit produced by a source oracle.

        Returns:
            A newly created graph. Empty if nothing was found.

        Design Notes:
        - Extractors MUST be stateless (no instance variables modified)
        - Extractors MUST NOT raise on a per-reference resolution failure;
          only the affected relation is skipped
        - Extractors MUST NOT keep a reference to the returned graph
        """
        pass

    @abstractmethod
    def priority(self) -> int:
        """Return extractor priority for execution order.

        Higher priority extractors execute first. Order never changes the
        merged result; it only fixes the order nodes are first mentioned.

        Returns:
            Integer priority value. Higher values execute first.
        """
        pass

    @abstractmethod
    def name(self) -> str:
        """Return extractor name for logging and debugging.

        Returns:
            Human-readable extractor name (e.g., "InheritanceExtractor").
        """
        pass

    def _resolve(self, unit: ResolvedUnit, reference: SymbolReference) -> Optional[str]:
        """Resolve a reference, returning None when it cannot be resolved.

        Args:
            unit: Unit the reference belongs to.
            reference: Reference site to resolve.

        Returns:
            Fully-qualified name, or None on failure.
        """
        try:
            return unit.resolver.resolve(reference)
        except ResolutionError as e:
            logger.debug(f"{self.name()}: skipping reference in {unit.path}: {e}")
        except Exception as e:
            logger.debug(
                f"{self.name()}: resolver failed for '{reference.text}' "
                f"at {unit.path}:{reference.line}: {e}"
            )
        return None
