# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Extractor plugins deriving graph relations and attributes from resolved units.

Components:
- GraphExtractor: Abstract base class for extractor plugins
- ExtractorRegistry: Priority-based registry for extractor plugins
- TypeUseExtractor: Field, return, parameter and local variable types
- MethodCallExtractor: Calls resolved to the callee's declaring type
- ObjectCreationExtractor: Constructor invocations
- InheritanceExtractor: Declared supertypes
- ImplementsExtractor: Implemented interfaces
- ClassificationExtractor: Node kind
- SizeExtractor: Lines of code
- LocationExtractor: Originating file path
"""

from dependviz.extractors.base import GraphExtractor
from dependviz.extractors.classification_extractor import ClassificationExtractor
from dependviz.extractors.implements_extractor import ImplementsExtractor
from dependviz.extractors.inheritance_extractor import InheritanceExtractor
from dependviz.extractors.location_extractor import LocationExtractor
from dependviz.extractors.method_call_extractor import MethodCallExtractor
from dependviz.extractors.object_creation_extractor import ObjectCreationExtractor
from dependviz.extractors.registry import ExtractorRegistry, create_default_registry
from dependviz.extractors.size_extractor import SizeExtractor
from dependviz.extractors.type_use_extractor import TypeUseExtractor

__all__ = [
    "GraphExtractor",
    "ExtractorRegistry",
    "create_default_registry",
    "ClassificationExtractor",
    "ImplementsExtractor",
    "InheritanceExtractor",
    "LocationExtractor",
    "MethodCallExtractor",
    "ObjectCreationExtractor",
    "SizeExtractor",
    "TypeUseExtractor",
]
