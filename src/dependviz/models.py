# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the dependency graph engine.

This module defines the foundational data structures used throughout the system:
- NodeKind / EdgeType: Enum-like classes for the wire-level node and edge types
- GraphNode / GraphEdge: Declared types and the relations between them
- CodeGraph: Name-keyed node container with triple-deduplicated edges and merge
- CacheStatistics: Performance counters for the incremental graph cache

Resolved unit models (oracle output consumed by extractors):
- DeclarationKind: Syntactic category of a type declaration
- ReferenceKind: Kinds of symbol references an oracle can resolve
- SymbolReference: One resolvable reference site
- MethodDeclaration / TypeDeclaration: Language-neutral declaration tree
- ResolvedUnit: A parsed file plus its symbol resolution capability

All wire-facing values use JSON-compatible primitives for serialization.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

if TYPE_CHECKING:
    from dependviz.oracle.base import SymbolResolver

logger = logging.getLogger(__name__)

# Identity used when a reference site has no enclosing named type
UNKNOWN_NODE = "Unknown"

# Sentinel for lines_of_code that has not been computed yet
LINES_NOT_COMPUTED = -1


class NodeKind:
    """Kinds of declared types.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    CLASS = "Class"
    INTERFACE = "Interface"
    ABSTRACT_CLASS = "AbstractClass"
    ENUM = "Enum"
    ANNOTATION = "Annotation"
    UNKNOWN = "Unknown"

    ALL = (CLASS, INTERFACE, ABSTRACT_CLASS, ENUM, ANNOTATION, UNKNOWN)


class EdgeType:
    """Types of relations between declared types.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    EXTENDS = "Extends"  # class Sub extends Base
    IMPLEMENTS = "Implements"  # class Impl implements Iface
    TYPE_USE = "TypeUse"  # field, return, parameter or local variable type
    METHOD_CALL = "MethodCall"  # call resolved to the callee's declaring type
    OBJECT_CREATE = "ObjectCreate"  # new Foo()

    ALL = (EXTENDS, IMPLEMENTS, TYPE_USE, METHOD_CALL, OBJECT_CREATE)


class DeclarationKind:
    """Syntactic category of a type declaration in a resolved unit."""

    CLASS = "class"
    INTERFACE = "interface"
    ENUM = "enum"
    ANNOTATION = "annotation"


class ReferenceKind:
    """Kinds of references a symbol resolver is asked to resolve."""

    TYPE = "type"  # a type expression (field, parameter, supertype, ...)
    METHOD_CALL = "method_call"  # a method invocation expression
    OBJECT_CREATION = "object_creation"  # a constructor invocation


@dataclass
class GraphNode:
    """A declared type in the dependency graph.

    The name is the node's identity and never changes once the node exists.
    Attributes start out unknown and are filled in by extractors or merges.
    """

    name: str
    kind: str = NodeKind.UNKNOWN
    lines_of_code: int = LINES_NOT_COMPUTED
    file_path: Optional[str] = None
    # Adjacency view in insertion order; may hold duplicates after merges
    references: List[str] = field(default_factory=list)

    def copy(self) -> "GraphNode":
        """Return an independent copy of this node."""
        return GraphNode(
            name=self.name,
            kind=self.kind,
            lines_of_code=self.lines_of_code,
            file_path=self.file_path,
            references=list(self.references),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "name": self.name,
            "kind": self.kind,
            "lines_of_code": self.lines_of_code,
            "file_path": self.file_path,
            "references": list(self.references),
        }


@dataclass(frozen=True)
class GraphEdge:
    """A typed relation between two declared types.

    Two edges with the same (source, target, edge_type) triple are the same edge.
    """

    source: str
    target: str
    edge_type: str

    def key(self) -> Tuple[str, str, str]:
        """Return the deduplication key for this edge."""
        return (self.source, self.target, self.edge_type)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {"source": self.source, "target": self.target, "type": self.edge_type}


class CodeGraph:
    """Typed dependency graph keyed by fully-qualified type name.

    Nodes are created lazily the first time a name is mentioned, either as an
    edge endpoint or when one of its attributes is set, and are never removed.
    Edges are deduplicated on their (source, target, edge_type) triple.

    Insertion order of nodes and edges is preserved so serialized output is
    deterministic for a given sequence of operations.

    Thread Safety:
        NOT thread-safe. A graph has a single owner (an aggregator run or a
        cache entry); concurrent writers must serialize access externally.
    """

    def __init__(self) -> None:
        """Initialize empty graph."""
        self._nodes: Dict[str, GraphNode] = {}
        self._edges: Dict[Tuple[str, str, str], GraphEdge] = {}

    def get_or_create_node(self, name: str) -> GraphNode:
        """Return the node with the given name, creating it if absent.

        Args:
            name: Fully-qualified type name.

        Returns:
            The existing or newly created node.
        """
        node = self._nodes.get(name)
        if node is None:
            node = GraphNode(name=name)
            self._nodes[name] = node
        return node

    def add_reference(self, source: str, target: str, edge_type: str) -> bool:
        """Record a relation from source to target.

        Both endpoint nodes are created if needed, the target is appended to the
        source node's references, and the edge is added unless its triple is
        already present.

        Args:
            source: Name of the referring type.
            target: Name of the referenced type.
            edge_type: EdgeType value.

        Returns:
            True if a new edge was added, False if it already existed.
        """
        source_node = self.get_or_create_node(source)
        self.get_or_create_node(target)
        source_node.references.append(target)
        return self._add_edge(GraphEdge(source=source, target=target, edge_type=edge_type))

    def _add_edge(self, edge: GraphEdge) -> bool:
        key = edge.key()
        if key in self._edges:
            return False
        self._edges[key] = edge
        return True

    def set_node_kind(self, name: str, kind: str) -> None:
        """Set the kind of a node, creating the node if absent."""
        self.get_or_create_node(name).kind = kind

    def set_node_lines_of_code(self, name: str, lines_of_code: int) -> None:
        """Set the line count of a node, creating the node if absent."""
        self.get_or_create_node(name).lines_of_code = lines_of_code

    def set_node_file_path(self, name: str, file_path: str) -> None:
        """Set the originating file of a node, creating the node if absent."""
        self.get_or_create_node(name).file_path = file_path

    def get_node(self, name: str) -> Optional[GraphNode]:
        """Get node by name.

        Args:
            name: Fully-qualified type name.

        Returns:
            The node, or None if the graph has never mentioned this name.
        """
        return self._nodes.get(name)

    def has_node(self, name: str) -> bool:
        return name in self._nodes

    def has_edge(self, source: str, target: str, edge_type: str) -> bool:
        return (source, target, edge_type) in self._edges

    def nodes(self) -> List[GraphNode]:
        """Get all nodes in insertion order."""
        return list(self._nodes.values())

    def edges(self) -> List[GraphEdge]:
        """Get all edges in insertion order."""
        return list(self._edges.values())

    def edges_of_type(self, edge_type: str) -> List[GraphEdge]:
        """Get all edges of one EdgeType in insertion order."""
        return [edge for edge in self._edges.values() if edge.edge_type == edge_type]

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return len(self._edges)

    def is_empty(self) -> bool:
        return not self._nodes and not self._edges

    def merge(self, source: "CodeGraph") -> None:
        """Fold another graph into this one.

        Nodes missing here are inserted as independent copies. For nodes present
        in both graphs the first known value of each attribute wins:
        - kind is taken from source only while this graph's kind is Unknown
        - lines_of_code only while this graph's value is LINES_NOT_COMPUTED
        - file_path only while this graph's value is None
        The source node's references are appended without deduplication.

        Edges are then inserted by triple; endpoints are created on demand and
        an edge whose triple is already present is skipped.

        Merging a graph into itself adds no edges and leaves every attribute
        unchanged, though each node's references list doubles.

        Args:
            source: Graph to fold in. It is not modified unless it is self.
        """
        for source_node in list(source._nodes.values()):
            target_node = self._nodes.get(source_node.name)
            if target_node is None:
                self._nodes[source_node.name] = source_node.copy()
                continue

            if target_node.kind == NodeKind.UNKNOWN and source_node.kind != NodeKind.UNKNOWN:
                target_node.kind = source_node.kind
            if (
                target_node.lines_of_code == LINES_NOT_COMPUTED
                and source_node.lines_of_code != LINES_NOT_COMPUTED
            ):
                target_node.lines_of_code = source_node.lines_of_code
            if target_node.file_path is None and source_node.file_path is not None:
                target_node.file_path = source_node.file_path
            target_node.references.extend(list(source_node.references))

        for edge in list(source._edges.values()):
            self.get_or_create_node(edge.source)
            self.get_or_create_node(edge.target)
            self._add_edge(edge)

    def copy(self) -> "CodeGraph":
        """Return a deep copy of this graph."""
        duplicate = CodeGraph()
        duplicate.merge(self)
        return duplicate

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict of node and edge lists."""
        return {
            "nodes": [node.to_dict() for node in self._nodes.values()],
            "edges": [edge.to_dict() for edge in self._edges.values()],
        }

    def __repr__(self) -> str:
        return f"CodeGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"


def merge_graphs(graphs: Iterable[CodeGraph]) -> CodeGraph:
    """Fold a sequence of graphs into a new graph.

    Args:
        graphs: Graphs to merge, in order.

    Returns:
        A new graph; the inputs are not modified.
    """
    result = CodeGraph()
    for graph in graphs:
        result.merge(graph)
    return result


@dataclass
class SymbolReference:
    """A reference site the oracle can attempt to resolve.

    The text is the reference as written in source. The scope is the innermost
    type declaration containing the reference, or None at unit level.
    """

    kind: str  # ReferenceKind value
    text: str
    line: int = 0
    scope: Optional["TypeDeclaration"] = field(default=None, repr=False, compare=False)
    # Oracle-specific hints (receiver expression, method name, ...)
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class MethodDeclaration:
    """A method declared directly in a type body.

    Constructors are not represented. return_type is None for void methods.
    """

    name: str
    return_type: Optional[SymbolReference] = None
    parameter_types: List[SymbolReference] = field(default_factory=list)


@dataclass
class TypeDeclaration:
    """A type declaration inside a resolved unit.

    qualified_name is None for declarations without a globally unique name
    (for example classes declared inside a method body).
    """

    name: str
    kind: str  # DeclarationKind value
    qualified_name: Optional[str] = None
    is_abstract: bool = False
    begin_line: Optional[int] = None
    end_line: Optional[int] = None
    parent: Optional["TypeDeclaration"] = field(default=None, repr=False, compare=False)
    extended_types: List[SymbolReference] = field(default_factory=list)
    implemented_types: List[SymbolReference] = field(default_factory=list)
    field_types: List[SymbolReference] = field(default_factory=list)
    methods: List[MethodDeclaration] = field(default_factory=list)

    @property
    def is_class_or_interface(self) -> bool:
        return self.kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE)

    @property
    def identity(self) -> str:
        """Graph node name for this declaration."""
        return self.qualified_name if self.qualified_name else UNKNOWN_NODE

    def method_names(self) -> List[str]:
        return [method.name for method in self.methods]


def enclosing_type_name(scope: Optional[TypeDeclaration]) -> str:
    """Find the graph identity of the nearest enclosing class or interface.

    Walks outward from scope, skipping enum and annotation declarations.

    Args:
        scope: Innermost declaration containing a reference site.

    Returns:
        Qualified name of the nearest class/interface, or UNKNOWN_NODE if there
        is none or it has no qualified name.
    """
    current = scope
    while current is not None:
        if current.is_class_or_interface:
            return current.identity
        current = current.parent
    return UNKNOWN_NODE


@dataclass
class ResolvedUnit:
    """A parsed source file together with its symbol resolution capability.

    Attributes:
        resolver: Resolves any SymbolReference of this unit to a qualified name.
        path: Originating file path, or None for in-memory sources.
        declarations: Every type declaration in document order, nested included.
        local_variable_types: Types of local variable declarations.
        method_calls: Method invocation sites.
        object_creations: Constructor invocation sites.
    """

    resolver: "SymbolResolver"
    path: Optional[str] = None
    declarations: List[TypeDeclaration] = field(default_factory=list)
    local_variable_types: List[SymbolReference] = field(default_factory=list)
    method_calls: List[SymbolReference] = field(default_factory=list)
    object_creations: List[SymbolReference] = field(default_factory=list)

    def declarations_of(self, *kinds: str) -> List[TypeDeclaration]:
        """Get declarations of the given DeclarationKind values."""
        return [decl for decl in self.declarations if decl.kind in kinds]


@dataclass
class CacheStatistics:
    """Statistics for the incremental graph cache."""

    hits: int = 0
    misses: int = 0
    analyses: int = 0
    failures: int = 0
    discarded_results: int = 0  # Results dropped because a newer analysis started
    coalesced_queries: int = 0  # Queries that waited on an in-flight analysis
    evictions: int = 0
    current_entry_count: int = 0
    peak_entry_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict.

        Returns:
            Dictionary with all statistics fields.
        """
        return {
            "hits": self.hits,
            "misses": self.misses,
            "analyses": self.analyses,
            "failures": self.failures,
            "discarded_results": self.discarded_results,
            "coalesced_queries": self.coalesced_queries,
            "evictions": self.evictions,
            "current_entry_count": self.current_entry_count,
            "peak_entry_count": self.peak_entry_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheStatistics":
        """Deserialize from JSON-compatible dict.

        Args:
            data: Dictionary containing cache statistics fields.

        Returns:
            CacheStatistics instance.
        """
        return cls(**{key: int(data.get(key, 0)) for key in cls().to_dict()})
