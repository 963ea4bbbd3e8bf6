# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry for graph extractor plugins.

This module implements the extractor registry that holds extractor plugins in
priority order.
"""

import logging
from typing import List

from .base import GraphExtractor

logger = logging.getLogger(__name__)


class ExtractorRegistry:
    """Registry for graph extractor plugins with priority-based ordering.

    Thread Safety:
    - Register all extractors during initialization before processing
    - After that the registry is only read and may be shared across threads
    """

    def __init__(self) -> None:
        """Initialize empty extractor registry."""
        self._extractors: List[GraphExtractor] = []
        self._sorted: bool = True

    def register(self, extractor: GraphExtractor) -> None:
        """Register an extractor plugin.

        Args:
            extractor: Extractor to register.

        Raises:
            TypeError: If extractor is not a GraphExtractor instance.
        """
        if not isinstance(extractor, GraphExtractor):
            raise TypeError(f"Extractor must be a GraphExtractor instance, got {type(extractor)}")

        self._extractors.append(extractor)
        self._sorted = False

        logger.debug(
            f"Registered extractor '{extractor.name()}' with priority {extractor.priority()}"
        )

    def get_extractors(self) -> List[GraphExtractor]:
        """Get all registered extractors in priority order.

        Returns:
            List of extractors sorted by priority (highest first), then name.
        """
        if not self._sorted:
            self._extractors.sort(key=lambda e: (-e.priority(), e.name()))
            self._sorted = True

        return list(self._extractors)

    def clear(self) -> None:
        """Remove all registered extractors."""
        self._extractors.clear()
        self._sorted = True

    def count(self) -> int:
        """Return number of registered extractors."""
        return len(self._extractors)


def create_default_registry() -> ExtractorRegistry:
    """Create a registry holding every built-in extractor.

    Returns:
        Registry running type use, calls, creations, inheritance,
        implementation, classification, size and location in that order.
    """
    from .classification_extractor import ClassificationExtractor
    from .implements_extractor import ImplementsExtractor
    from .inheritance_extractor import InheritanceExtractor
    from .location_extractor import LocationExtractor
    from .method_call_extractor import MethodCallExtractor
    from .object_creation_extractor import ObjectCreationExtractor
    from .size_extractor import SizeExtractor
    from .type_use_extractor import TypeUseExtractor

    registry = ExtractorRegistry()
    for extractor in (
        TypeUseExtractor(),
        MethodCallExtractor(),
        ObjectCreationExtractor(),
        InheritanceExtractor(),
        ImplementsExtractor(),
        ClassificationExtractor(),
        SizeExtractor(),
        LocationExtractor(),
    ):
        registry.register(extractor)
    return registry
