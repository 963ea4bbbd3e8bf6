# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Capability interfaces for source parsing and symbol resolution.

The graph engine never parses source text itself. A SourceOracle turns one
file into a ResolvedUnit (a language-neutral declaration tree), and the unit
carries a SymbolResolver that maps each reference site to a fully-qualified
type name.

Failure model:
- SourceOracle.load() raises OracleError when the file cannot be read or parsed
  at all. Callers treat this as a file-level failure.
- SymbolResolver.resolve() raises UnresolvedSymbolError for a single reference.
  Extractors catch it and skip only that relation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from dependviz.models import ResolvedUnit, SymbolReference


class OracleError(Exception):
    """Raised when a source file cannot be turned into a resolved unit."""

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Cannot analyze {filepath}: {reason}")


class ResolutionError(Exception):
    """Base class for symbol resolution failures."""

    pass


class UnresolvedSymbolError(ResolutionError):
    """Raised when a single reference cannot be resolved to a qualified name."""

    def __init__(self, reference: SymbolReference, reason: str = "unresolved"):
        self.reference = reference
        self.reason = reason
        super().__init__(f"Cannot resolve '{reference.text}' at line {reference.line}: {reason}")


class SymbolResolver(ABC):
    """Resolves reference sites of one unit to fully-qualified type names."""

    @abstractmethod
    def resolve(self, reference: SymbolReference) -> str:
        """Resolve a reference.

        For TYPE references the result is the referenced type. For METHOD_CALL
        references it is the type declaring the invoked method. For
        OBJECT_CREATION references it is the constructed type.

        Args:
            reference: Reference site produced by the oracle for this unit.

        Returns:
            Fully-qualified type name.

        Raises:
            UnresolvedSymbolError: If this reference cannot be resolved.
        """
        pass


class SourceOracle(ABC):
    """Parses source files into resolved units.

    An oracle is configured with a source root that determines where it looks
    for declarations outside the file being analyzed.
    """

    @abstractmethod
    def load(self, filepath: str, content: Optional[str] = None) -> ResolvedUnit:
        """Parse one file into a resolved unit.

        Args:
            filepath: Path of the file. Used as the unit origin and, when
                content is None, to read the source text.
            content: In-memory source text (e.g. an unsaved editor buffer).

        Returns:
            ResolvedUnit with path set to filepath.

        Raises:
            OracleError: If the file cannot be read or parsed.
        """
        pass

    @abstractmethod
    def supports(self, filepath: str) -> bool:
        """Check whether this oracle can analyze the given file."""
        pass

    @property
    @abstractmethod
    def source_root(self) -> Optional[str]:
        """Root directory used to resolve declarations outside a file."""
        pass

    def refresh(self) -> None:
        """Forget cached knowledge of files outside the one being loaded.

        Called when source files are created, changed or deleted on disk.
        Oracles without such state need not override this.
        """
        pass
