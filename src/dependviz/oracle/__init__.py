# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Source oracles: parse files into resolved units and resolve references."""

from .base import (
    OracleError,
    ResolutionError,
    SourceOracle,
    SymbolResolver,
    UnresolvedSymbolError,
)
from .java_oracle import JavaSourceOracle, JavaSymbolResolver, SourceIndex, clean_type_text

__all__ = [
    "OracleError",
    "ResolutionError",
    "SourceOracle",
    "SymbolResolver",
    "UnresolvedSymbolError",
    "JavaSourceOracle",
    "JavaSymbolResolver",
    "SourceIndex",
    "clean_type_text",
]
