# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Java source oracle built on tree-sitter.

This module turns one .java file into a ResolvedUnit:
- Parse with the tree-sitter Java grammar (syntax errors fail the whole file)
- Walk the tree once, collecting type declarations (nested and local ones
  included), supertypes, field/method/parameter types, local variable types,
  method invocations and object creations
- Bind a JavaSymbolResolver that maps each reference to a fully-qualified name

Resolution is name-based. A simple type name is looked up, in order, among:
1. Types declared in this unit that are visible from the reference scope
2. Single-type imports
3. Types of the same package found in the source root index
4. Types of wildcard-imported packages found in the source root index
5. Implicitly imported java.lang types

Primitive types, void, var and type parameters are not declared types and are
reported as unresolved. Method calls resolve to the type that declares the
invoked method when that type is declared in the unit, otherwise to the static
type of the receiver.

Known Limitations:
- No type inference: calls on chained or computed receivers are unresolved
- Types of external libraries resolve only through explicit imports,
  fully-qualified names or java.lang
- Record declarations are not represented as type declarations
"""

import logging
import os
import re
from collections import ChainMap
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter_java as ts_java
from tree_sitter import Language as TSLanguage
from tree_sitter import Node, Parser

from dependviz.models import (
    DeclarationKind,
    MethodDeclaration,
    ReferenceKind,
    ResolvedUnit,
    SymbolReference,
    TypeDeclaration,
)
from dependviz.oracle.base import OracleError, SourceOracle, SymbolResolver, UnresolvedSymbolError

logger = logging.getLogger(__name__)

JAVA_EXTENSION = ".java"

PRIMITIVE_TYPES = frozenset(
    {"boolean", "byte", "char", "short", "int", "long", "float", "double", "void", "var"}
)

# Implicitly imported java.lang types
JAVA_LANG_TYPES = frozenset(
    {
        "AutoCloseable",
        "ArithmeticException",
        "ArrayIndexOutOfBoundsException",
        "Boolean",
        "Byte",
        "CharSequence",
        "Character",
        "Class",
        "ClassCastException",
        "ClassNotFoundException",
        "CloneNotSupportedException",
        "Cloneable",
        "Comparable",
        "Deprecated",
        "Double",
        "Enum",
        "Error",
        "Exception",
        "Float",
        "FunctionalInterface",
        "IllegalArgumentException",
        "IllegalStateException",
        "IndexOutOfBoundsException",
        "Integer",
        "InterruptedException",
        "Iterable",
        "Long",
        "Math",
        "NullPointerException",
        "Number",
        "NumberFormatException",
        "Object",
        "Override",
        "Process",
        "Record",
        "Runnable",
        "Runtime",
        "RuntimeException",
        "SafeVarargs",
        "Short",
        "StackOverflowError",
        "String",
        "StringBuffer",
        "StringBuilder",
        "SuppressWarnings",
        "System",
        "Thread",
        "ThreadLocal",
        "Throwable",
        "UnsupportedOperationException",
        "Void",
    }
)

# Methods every class inherits from java.lang.Object
OBJECT_METHODS = frozenset(
    {"equals", "getClass", "hashCode", "notify", "notifyAll", "toString", "wait", "clone"}
)

TYPE_NODE_TYPES = frozenset(
    {
        "type_identifier",
        "scoped_type_identifier",
        "generic_type",
        "array_type",
        "integral_type",
        "floating_point_type",
        "boolean_type",
        "void_type",
        "annotated_type",
    }
)

DECLARATION_NODE_TYPES = {
    "class_declaration": DeclarationKind.CLASS,
    "interface_declaration": DeclarationKind.INTERFACE,
    "enum_declaration": DeclarationKind.ENUM,
    "annotation_type_declaration": DeclarationKind.ANNOTATION,
}

# Receiver categories recorded on METHOD_CALL references
RECEIVER_IMPLICIT = "implicit"
RECEIVER_THIS = "this"
RECEIVER_SUPER = "super"
RECEIVER_VARIABLE = "variable"
RECEIVER_TYPE = "type"
RECEIVER_EXPRESSION = "expression"

_GENERIC_ARGS = re.compile(r"<[^<>]*>")
_ANNOTATION = re.compile(r"@[\w.]+(\([^)]*\))?\s*")
_QUALIFIED_NAME = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)*$")


def clean_type_text(text: str) -> str:
    """Reduce a written type to its raw (erased, non-array) name.

    Args:
        text: Type as written, e.g. "@NonNull Map<String, List<Foo>>[]".

    Returns:
        Raw name, e.g. "Map".
    """
    text = _ANNOTATION.sub("", text)
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_ARGS.sub("", text)
    text = text.replace("[]", "").replace("...", "")
    return "".join(text.split())


def _node_text(source: bytes, node: Optional[Node], errors: str = "strict") -> str:
    if node is None:
        return ""
    return source[node.start_byte : node.end_byte].decode("utf-8", errors=errors)


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _child_of_type(node: Node, *types: str) -> Optional[Node]:
    for child in node.children:
        if child.type in types:
            return child
    return None


class SourceIndex:
    """Index of fully-qualified type names available under a source root.

    Names come from the files themselves: each file's package declaration
    combined with its top-level type declarations, so the index does not
    depend on how directories are laid out. The directory walk happens once,
    lazily on first lookup, and loading files never changes the index.
    refresh() forces a new walk on the next lookup.

    Thread Safety:
        Lookups and refreshes are protected by an internal lock.
    """

    def __init__(
        self,
        source_root: Optional[str],
        extensions: Tuple[str, ...] = (JAVA_EXTENSION,),
        language: Optional[TSLanguage] = None,
    ):
        """Initialize index.

        Args:
            source_root: Directory scanned for source files. None disables
                scanning and the index stays empty.
            extensions: Source file extensions to index.
            language: tree-sitter Java language. Created if not given.
        """
        self.source_root = Path(source_root).resolve() if source_root else None
        self.extensions = extensions
        self._language = language if language is not None else TSLanguage(ts_java.language())
        self._names: Set[str] = set()
        self._scanned = False
        self._lock = Lock()

    def _scan(self) -> None:
        self._names = set()
        if self.source_root is None or not self.source_root.is_dir():
            logger.debug(f"No source root to index: {self.source_root}")
            return
        parser = Parser(self._language)
        for dirpath, dirnames, filenames in os.walk(self.source_root):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for filename in filenames:
                if filename.endswith(self.extensions):
                    self._names.update(self._declared_names(parser, os.path.join(dirpath, filename)))
        logger.debug(f"Indexed {len(self._names)} types under {self.source_root}")

    @staticmethod
    def _declared_names(parser: Parser, filepath: str) -> List[str]:
        """Get the qualified names of a file's top-level types."""
        try:
            with open(filepath, "rb") as f:
                source = f.read()
        except OSError as e:
            logger.debug(f"Cannot index {filepath}: {e}")
            return []

        root = parser.parse(source).root_node
        package = ""
        names: List[str] = []
        for child in root.children:
            if child.type == "package_declaration":
                name_node = _child_of_type(child, "scoped_identifier", "identifier")
                package = _node_text(source, name_node, errors="replace")
            elif child.type in DECLARATION_NODE_TYPES:
                name = _node_text(source, child.child_by_field_name("name"), errors="replace")
                if name:
                    names.append(name)
        return [f"{package}.{name}" if package else name for name in names]

    def refresh(self) -> None:
        """Discard the scanned names; the next lookup walks the tree again."""
        with self._lock:
            self._scanned = False
            self._names = set()

    def contains(self, qualified_name: str) -> bool:
        """Check whether a type of this name is declared under the source root."""
        with self._lock:
            if not self._scanned:
                self._scan()
                self._scanned = True
            return qualified_name in self._names


class _UnitBuilder:
    """Single-pass tree walker that builds the declaration tree of one file."""

    def __init__(self, source: bytes):
        self.source = source
        self.package = ""
        self.imports: Dict[str, str] = {}
        self.wildcard_imports: List[str] = []
        self.static_imports: Dict[str, str] = {}
        self.static_wildcard_imports: List[str] = []
        self.declarations: List[TypeDeclaration] = []
        self.local_variable_types: List[SymbolReference] = []
        self.method_calls: List[SymbolReference] = []
        self.object_creations: List[SymbolReference] = []
        self._variables: ChainMap = ChainMap()
        self._type_parameters: ChainMap = ChainMap()

    def text(self, node: Optional[Node]) -> str:
        return _node_text(self.source, node)

    # Compilation unit level

    def build(self, root: Node) -> None:
        for child in root.children:
            if child.type == "package_declaration":
                name_node = _child_of_type(child, "scoped_identifier", "identifier")
                self.package = self.text(name_node)
            elif child.type == "import_declaration":
                self._add_import(child)
            elif child.type in DECLARATION_NODE_TYPES:
                self._declare(child, parent=None, local=False)
            else:
                self._walk(child, None)

    def _add_import(self, node: Node) -> None:
        name = self.text(_child_of_type(node, "scoped_identifier", "identifier"))
        if not name:
            return
        is_static = _child_of_type(node, "static") is not None
        is_wildcard = _child_of_type(node, "asterisk") is not None
        if is_static:
            if is_wildcard:
                self.static_wildcard_imports.append(name)
            else:
                owner, _, member = name.rpartition(".")
                self.static_imports[member] = owner
        elif is_wildcard:
            self.wildcard_imports.append(name)
        else:
            self.imports[name.rsplit(".", 1)[-1]] = name

    # Declarations

    def _declare(self, node: Node, parent: Optional[TypeDeclaration], local: bool) -> None:
        name = self.text(node.child_by_field_name("name"))
        kind = DECLARATION_NODE_TYPES[node.type]

        qualified_name: Optional[str] = None
        if not local:
            if parent is not None and parent.qualified_name:
                qualified_name = f"{parent.qualified_name}.{name}"
            elif parent is None:
                qualified_name = f"{self.package}.{name}" if self.package else name

        modifiers = _child_of_type(node, "modifiers")
        is_abstract = modifiers is not None and any(
            child.type == "abstract" for child in modifiers.children
        )

        decl = TypeDeclaration(
            name=name,
            kind=kind,
            qualified_name=qualified_name,
            is_abstract=is_abstract,
            begin_line=node.start_point[0] + 1,
            end_line=node.end_point[0] + 1,
            parent=parent,
        )
        self.declarations.append(decl)

        with self._scoped_type_parameters(node.child_by_field_name("type_parameters")):
            self._collect_supertypes(node, decl)
            body = node.child_by_field_name("body")
            if body is not None:
                with self._scoped_variables(self._field_names(body)):
                    self._walk_type_body(body, decl)

    def _collect_supertypes(self, node: Node, decl: TypeDeclaration) -> None:
        superclass = _child_of_type(node, "superclass")
        if superclass is not None:
            for type_node in superclass.named_children:
                if type_node.type in TYPE_NODE_TYPES:
                    decl.extended_types.append(self._type_reference(type_node, decl))

        extends_interfaces = _child_of_type(node, "extends_interfaces")
        if extends_interfaces is not None:
            decl.extended_types.extend(self._type_list(extends_interfaces, decl))

        super_interfaces = _child_of_type(node, "super_interfaces")
        if super_interfaces is not None:
            decl.implemented_types.extend(self._type_list(super_interfaces, decl))

    def _type_list(self, node: Node, scope: TypeDeclaration) -> List[SymbolReference]:
        type_list = _child_of_type(node, "type_list")
        if type_list is None:
            return []
        return [
            self._type_reference(type_node, scope)
            for type_node in type_list.named_children
            if type_node.type in TYPE_NODE_TYPES
        ]

    def _field_names(self, body: Node) -> Dict[str, str]:
        """Map field names of a type body to their written types."""
        fields: Dict[str, str] = {}
        for member in self._members(body):
            if member.type in ("field_declaration", "constant_declaration"):
                type_text = self._type_text(member.child_by_field_name("type"))
                for declarator in member.children_by_field_name("declarator"):
                    fields[self.text(declarator.child_by_field_name("name"))] = type_text
        return fields

    def _members(self, body: Node) -> Iterator[Node]:
        for member in body.named_children:
            if member.type == "enum_body_declarations":
                yield from member.named_children
            else:
                yield member

    def _walk_type_body(self, body: Node, decl: TypeDeclaration) -> None:
        for member in self._members(body):
            if member.type in ("field_declaration", "constant_declaration"):
                type_node = member.child_by_field_name("type")
                if type_node is not None:
                    decl.field_types.append(self._type_reference(type_node, decl))
                for declarator in member.children_by_field_name("declarator"):
                    self._walk(declarator, decl)
            elif member.type == "method_declaration":
                decl.methods.append(self._method(member, decl))
            elif member.type in ("constructor_declaration", "compact_constructor_declaration"):
                self._walk_callable(member, decl)
            elif member.type in DECLARATION_NODE_TYPES:
                self._declare(member, parent=decl, local=False)
            else:
                self._walk(member, decl)

    def _method(self, node: Node, decl: TypeDeclaration) -> MethodDeclaration:
        with self._scoped_type_parameters(node.child_by_field_name("type_parameters")):
            type_node = node.child_by_field_name("type")
            return_type = None
            if type_node is not None and type_node.type != "void_type":
                return_type = self._type_reference(type_node, decl)
            method = MethodDeclaration(
                name=self.text(node.child_by_field_name("name")),
                return_type=return_type,
                parameter_types=[
                    self._type_reference(type_node, decl)
                    for _, type_node in self._parameters(node)
                ],
            )
            self._walk_callable(node, decl)
        return method

    def _parameters(self, node: Node) -> List[Tuple[str, Node]]:
        """Get (name, type node) pairs of a method or constructor."""
        parameters = node.child_by_field_name("parameters")
        result: List[Tuple[str, Node]] = []
        if parameters is None:
            return result
        for param in parameters.named_children:
            if param.type == "formal_parameter":
                type_node = param.child_by_field_name("type")
                name = self.text(param.child_by_field_name("name"))
            elif param.type == "spread_parameter":
                type_node = next(
                    (c for c in param.named_children if c.type in TYPE_NODE_TYPES), None
                )
                declarator = _child_of_type(param, "variable_declarator")
                name = self.text(declarator.child_by_field_name("name")) if declarator else ""
            else:
                continue
            if type_node is not None:
                result.append((name, type_node))
        return result

    def _walk_callable(self, node: Node, decl: Optional[TypeDeclaration]) -> None:
        with self._scoped_type_parameters(node.child_by_field_name("type_parameters")):
            params = {name: self._type_text(type_node) for name, type_node in self._parameters(node)}
            with self._scoped_variables(params):
                body = node.child_by_field_name("body")
                if body is not None:
                    self._walk(body, decl)

    # Statements and expressions

    def _walk(self, node: Node, scope: Optional[TypeDeclaration]) -> None:
        node_type = node.type

        if node_type in DECLARATION_NODE_TYPES:
            # Types declared inside a method body have no qualified name
            self._declare(node, parent=scope, local=True)
            return

        if node_type == "local_variable_declaration":
            type_node = node.child_by_field_name("type")
            for declarator in node.children_by_field_name("declarator"):
                if type_node is not None:
                    self.local_variable_types.append(self._type_reference(type_node, scope))
                    self._variables[self.text(declarator.child_by_field_name("name"))] = (
                        self._type_text(type_node)
                    )
                self._walk(declarator, scope)
            return

        if node_type in ("enhanced_for_statement", "resource"):
            type_node = node.child_by_field_name("type")
            name_node = node.child_by_field_name("name")
            if type_node is not None:
                self.local_variable_types.append(self._type_reference(type_node, scope))
                if name_node is not None:
                    self._variables[self.text(name_node)] = self._type_text(type_node)

        elif node_type == "method_invocation":
            self.method_calls.append(self._method_call(node, scope))

        elif node_type == "object_creation_expression":
            type_node = node.child_by_field_name("type")
            if type_node is not None:
                self.object_creations.append(
                    SymbolReference(
                        kind=ReferenceKind.OBJECT_CREATION,
                        text=self._type_text(type_node),
                        line=_line(node),
                        scope=scope,
                    )
                )
        elif node_type == "class_body":
            # Anonymous class or enum constant body
            self._walk_anonymous_body(node, scope)
            return

        elif node_type in ("lambda_expression", "record_declaration"):
            with self._scoped_variables({}):
                for child in node.named_children:
                    self._walk(child, scope)
            return

        elif node_type in ("block", "switch_block", "for_statement", "catch_clause"):
            with self._scoped_variables({}):
                for child in node.named_children:
                    self._walk(child, scope)
            return

        for child in node.named_children:
            self._walk(child, scope)

    def _walk_anonymous_body(self, body: Node, scope: Optional[TypeDeclaration]) -> None:
        """Walk an anonymous class body; its members belong to no declaration."""
        with self._scoped_variables(self._field_names(body)):
            for member in body.named_children:
                if member.type in ("method_declaration", "constructor_declaration"):
                    self._walk_callable(member, scope)
                else:
                    self._walk(member, scope)

    def _method_call(self, node: Node, scope: Optional[TypeDeclaration]) -> SymbolReference:
        method_name = self.text(node.child_by_field_name("name"))
        receiver = node.child_by_field_name("object")
        metadata = {"method": method_name}

        if receiver is None:
            metadata["receiver_kind"] = RECEIVER_IMPLICIT
        elif receiver.type == "this":
            metadata["receiver_kind"] = RECEIVER_THIS
        elif receiver.type == "super":
            metadata["receiver_kind"] = RECEIVER_SUPER
        elif receiver.type == "identifier":
            name = self.text(receiver)
            if name in self._variables:
                metadata["receiver_kind"] = RECEIVER_VARIABLE
                metadata["receiver_type"] = self._variables[name]
            elif name[:1].isupper():
                metadata["receiver_kind"] = RECEIVER_TYPE
                metadata["receiver_type"] = name
            else:
                metadata["receiver_kind"] = RECEIVER_EXPRESSION
        elif receiver.type == "field_access" and self._is_this_field(receiver):
            field_name = self.text(receiver.child_by_field_name("field"))
            if field_name in self._variables:
                metadata["receiver_kind"] = RECEIVER_VARIABLE
                metadata["receiver_type"] = self._variables[field_name]
            else:
                metadata["receiver_kind"] = RECEIVER_EXPRESSION
        elif receiver.type in ("field_access", "scoped_identifier") and self._looks_like_type(
            self.text(receiver)
        ):
            metadata["receiver_kind"] = RECEIVER_TYPE
            metadata["receiver_type"] = self.text(receiver)
        elif receiver.type == "object_creation_expression":
            metadata["receiver_kind"] = RECEIVER_TYPE
            metadata["receiver_type"] = self._type_text(receiver.child_by_field_name("type"))
        else:
            metadata["receiver_kind"] = RECEIVER_EXPRESSION

        if "receiver_type" in metadata and self._is_type_parameter(metadata["receiver_type"]):
            metadata["receiver_kind"] = RECEIVER_EXPRESSION

        return SymbolReference(
            kind=ReferenceKind.METHOD_CALL,
            text=self.text(node),
            line=_line(node),
            scope=scope,
            metadata=metadata,
        )

    def _is_this_field(self, node: Node) -> bool:
        target = node.child_by_field_name("object")
        return target is not None and target.type == "this"

    @staticmethod
    def _looks_like_type(text: str) -> bool:
        if not _QUALIFIED_NAME.match(text):
            return False
        return text.rsplit(".", 1)[-1][:1].isupper()

    # Types

    def _type_text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        if node.type == "generic_type":
            return self._type_text(node.named_children[0])
        if node.type == "array_type":
            return self._type_text(node.child_by_field_name("element"))
        if node.type == "annotated_type":
            return self._type_text(node.named_children[-1])
        return clean_type_text(self.text(node))

    def _type_reference(self, node: Node, scope: Optional[TypeDeclaration]) -> SymbolReference:
        text = self._type_text(node)
        metadata = {}
        if self._is_type_parameter(text):
            metadata["type_parameter"] = "true"
        return SymbolReference(
            kind=ReferenceKind.TYPE, text=text, line=_line(node), scope=scope, metadata=metadata
        )

    def _is_type_parameter(self, text: str) -> bool:
        return text.split(".", 1)[0] in self._type_parameters

    @contextmanager
    def _scoped_variables(self, initial: Dict[str, str]) -> Iterator[None]:
        self._variables = self._variables.new_child(dict(initial))
        try:
            yield
        finally:
            self._variables = self._variables.parents

    @contextmanager
    def _scoped_type_parameters(self, node: Optional[Node]) -> Iterator[None]:
        names: Dict[str, bool] = {}
        if node is not None:
            for param in node.named_children:
                name_node = _child_of_type(param, "type_identifier", "identifier")
                if name_node is not None:
                    names[self.text(name_node)] = True
        self._type_parameters = self._type_parameters.new_child(names)
        try:
            yield
        finally:
            self._type_parameters = self._type_parameters.parents


class JavaSymbolResolver(SymbolResolver):
    """Name-based resolver for references of one Java compilation unit."""

    def __init__(
        self,
        package: str,
        declarations: List[TypeDeclaration],
        imports: Dict[str, str],
        wildcard_imports: List[str],
        static_imports: Dict[str, str],
        static_wildcard_imports: List[str],
        index: SourceIndex,
    ):
        self.package = package
        self.declarations = declarations
        self.imports = imports
        self.wildcard_imports = wildcard_imports
        self.static_imports = static_imports
        self.static_wildcard_imports = static_wildcard_imports
        self.index = index
        self._by_qualified_name = {
            decl.qualified_name: decl for decl in declarations if decl.qualified_name
        }

    def resolve(self, reference: SymbolReference) -> str:
        if reference.kind == ReferenceKind.METHOD_CALL:
            return self._resolve_method_call(reference)
        if reference.metadata.get("type_parameter") == "true":
            raise UnresolvedSymbolError(reference, "type parameter")
        name = self.resolve_type_name(reference.text, reference.scope)
        if name is None:
            raise UnresolvedSymbolError(reference)
        return name

    # Types

    def resolve_type_name(self, text: str, scope: Optional[TypeDeclaration]) -> Optional[str]:
        """Resolve a written type name as seen from a declaration scope.

        Args:
            text: Type as written in source.
            scope: Innermost declaration containing the reference.

        Returns:
            Fully-qualified name, or None if the name cannot be resolved.
        """
        name = clean_type_text(text)
        if not name or name in PRIMITIVE_TYPES:
            return None

        first, _, rest = name.partition(".")
        head = self._resolve_simple_name(first, scope)
        if head is not None:
            return f"{head}.{rest}" if rest else head
        if rest and first[:1].islower():
            # Already fully qualified, e.g. java.util.List
            return name
        return None

    def _resolve_simple_name(self, name: str, scope: Optional[TypeDeclaration]) -> Optional[str]:
        # Member and enclosing types visible from the scope
        current = scope
        while current is not None:
            if current.name == name and current.qualified_name:
                return current.qualified_name
            for decl in self.declarations:
                if decl.parent is current and decl.name == name:
                    return decl.qualified_name
            current = current.parent

        for decl in self.declarations:
            if decl.parent is None and decl.name == name:
                return decl.qualified_name

        if name in self.imports:
            return self.imports[name]

        same_package = f"{self.package}.{name}" if self.package else name
        if self.index.contains(same_package):
            return same_package

        for package in self.wildcard_imports:
            candidate = f"{package}.{name}"
            if self.index.contains(candidate):
                return candidate

        if name in JAVA_LANG_TYPES:
            return f"java.lang.{name}"
        return None

    # Method calls

    def _resolve_method_call(self, reference: SymbolReference) -> str:
        method = reference.metadata.get("method", "")
        receiver_kind = reference.metadata.get("receiver_kind", RECEIVER_EXPRESSION)
        scope = reference.scope

        if receiver_kind in (RECEIVER_IMPLICIT, RECEIVER_THIS):
            target = self._resolve_unqualified_call(method, scope, receiver_kind)
        elif receiver_kind == RECEIVER_SUPER:
            target = self._resolve_super_call(method, scope)
        elif receiver_kind in (RECEIVER_VARIABLE, RECEIVER_TYPE):
            receiver_type = self.resolve_type_name(reference.metadata.get("receiver_type", ""), scope)
            target = self._declaring_type_of(receiver_type, method) if receiver_type else None
        else:
            target = None

        if target is None:
            raise UnresolvedSymbolError(reference, f"cannot find declaring type of {method}()")
        return target

    def _resolve_unqualified_call(
        self, method: str, scope: Optional[TypeDeclaration], receiver_kind: str
    ) -> Optional[str]:
        fallback: Optional[str] = None
        current = scope
        while current is not None:
            candidate, exact = self._lookup_method(current, method, set())
            if exact:
                return candidate
            if fallback is None:
                fallback = candidate
            if receiver_kind == RECEIVER_THIS:
                break
            current = current.parent

        if receiver_kind == RECEIVER_IMPLICIT:
            if method in self.static_imports:
                return self.static_imports[method]
            if len(self.static_wildcard_imports) == 1:
                return self.static_wildcard_imports[0]
        if fallback is None and method in OBJECT_METHODS:
            return "java.lang.Object"
        return fallback

    def _resolve_super_call(self, method: str, scope: Optional[TypeDeclaration]) -> Optional[str]:
        if scope is None:
            return None
        for reference in scope.extended_types:
            supertype = self.resolve_type_name(reference.text, scope)
            if supertype is not None:
                return self._declaring_type_of(supertype, method)
        return "java.lang.Object"

    def _declaring_type_of(self, type_name: str, method: str) -> Optional[str]:
        decl = self._by_qualified_name.get(type_name)
        if decl is None:
            # Declared outside this unit; its own members are unknown here
            return type_name
        candidate, exact = self._lookup_method(decl, method, set())
        if exact or candidate is not None:
            return candidate
        if method in OBJECT_METHODS:
            return "java.lang.Object"
        return None

    def _lookup_method(
        self, decl: TypeDeclaration, method: str, seen: Set[str]
    ) -> Tuple[Optional[str], bool]:
        """Search a unit-local declaration and its supertypes for a method.

        Returns:
            (type name, exact) where exact is True if the method was found
            declared in the unit. When it was not, the first supertype declared
            outside the unit is returned as the best candidate.
        """
        if method in decl.method_names():
            return decl.qualified_name, decl.qualified_name is not None

        fallback: Optional[str] = None
        for reference in decl.extended_types:
            supertype = self.resolve_type_name(reference.text, decl)
            if supertype is None or supertype in seen:
                continue
            seen.add(supertype)
            super_decl = self._by_qualified_name.get(supertype)
            if super_decl is None:
                if fallback is None:
                    fallback = supertype
                continue
            candidate, exact = self._lookup_method(super_decl, method, seen)
            if exact:
                return candidate, True
            if fallback is None:
                fallback = candidate
        return fallback, False


class JavaSourceOracle(SourceOracle):
    """SourceOracle for Java files using tree-sitter.

    Usage:
        oracle = JavaSourceOracle(source_root="/repo/src/main/java")
        unit = oracle.load("/repo/src/main/java/com/acme/Foo.java")
    """

    def __init__(self, source_root: Optional[str] = None, max_file_size_kb: int = 1024):
        """Initialize oracle.

        Args:
            source_root: Root of the package hierarchy used to find types
                declared in other files.
            max_file_size_kb: Files larger than this are rejected.
        """
        self._source_root = str(Path(source_root).resolve()) if source_root else None
        self._max_file_size_bytes = max_file_size_kb * 1024
        self._language = TSLanguage(ts_java.language())
        self.index = SourceIndex(self._source_root, language=self._language)
        logger.debug(f"JavaSourceOracle initialized with source_root={self._source_root}")

    @property
    def source_root(self) -> Optional[str]:
        return self._source_root

    def supports(self, filepath: str) -> bool:
        return filepath.endswith(JAVA_EXTENSION)

    def refresh(self) -> None:
        self.index.refresh()

    def load(self, filepath: str, content: Optional[str] = None) -> ResolvedUnit:
        if content is None:
            content = self._read(filepath)

        try:
            source = content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise OracleError(filepath, f"encoding error: {e}") from e
        if len(source) > self._max_file_size_bytes:
            raise OracleError(filepath, f"file exceeds {self._max_file_size_bytes} bytes")

        # Parser instances are not shared across threads
        tree = Parser(self._language).parse(source)
        if tree.root_node.has_error:
            raise OracleError(filepath, "syntax error")

        builder = _UnitBuilder(source)
        try:
            builder.build(tree.root_node)
        except RecursionError:
            raise OracleError(filepath, "nesting too deep to analyze") from None

        resolver = JavaSymbolResolver(
            package=builder.package,
            declarations=builder.declarations,
            imports=builder.imports,
            wildcard_imports=builder.wildcard_imports,
            static_imports=builder.static_imports,
            static_wildcard_imports=builder.static_wildcard_imports,
            index=self.index,
        )
        logger.debug(
            f"Loaded {filepath}: {len(builder.declarations)} declarations, "
            f"{len(builder.method_calls)} calls, {len(builder.object_creations)} creations"
        )
        return ResolvedUnit(
            resolver=resolver,
            path=filepath,
            declarations=builder.declarations,
            local_variable_types=builder.local_variable_types,
            method_calls=builder.method_calls,
            object_creations=builder.object_creations,
        )

    def _read(self, filepath: str) -> str:
        try:
            with open(filepath, encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            raise OracleError(filepath, "file not found") from None
        except UnicodeDecodeError as e:
            raise OracleError(filepath, f"encoding error: {e}") from e
        except OSError as e:
            raise OracleError(filepath, str(e)) from e
