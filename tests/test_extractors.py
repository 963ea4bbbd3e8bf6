# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the extractor plugins.

Test coverage:
- Scenario A: field, return and parameter types become TypeUse edges
- Scenario B: Extends and Implements edges, supertypes stay Unknown
- Scenario C: lines of code is the inclusive declaration span
- Unresolvable references skip one relation only
- Unknown sentinel source for references outside any class or interface
- Classification precedence and location handling
"""

from dependviz.extractors import (
    ClassificationExtractor,
    ImplementsExtractor,
    InheritanceExtractor,
    LocationExtractor,
    MethodCallExtractor,
    ObjectCreationExtractor,
    SizeExtractor,
    TypeUseExtractor,
)
from dependviz.models import (
    UNKNOWN_NODE,
    DeclarationKind,
    EdgeType,
    MethodDeclaration,
    NodeKind,
    ResolvedUnit,
    SymbolReference,
)
from dependviz.oracle.base import SymbolResolver

from .conftest import ScriptedResolver, call_ref, creation_ref, make_class, type_ref


class ExplodingResolver(SymbolResolver):
    """Resolver that fails with an unexpected error."""

    def resolve(self, reference: SymbolReference) -> str:
        raise RuntimeError("resolver crashed")


class TestTypeUseExtractor:
    """Tests for TypeUseExtractor."""

    def test_scenario_a(self, scenario_a_unit):
        """Field Bar, return Baz and parameter Qux give TypeUse edges from Foo."""
        graph = TypeUseExtractor().extract(scenario_a_unit)

        targets = {edge.target for edge in graph.edges_of_type(EdgeType.TYPE_USE)}
        assert targets == {"com.acme.Bar", "com.acme.Baz", "com.acme.Qux"}
        assert all(edge.source == "com.acme.Foo" for edge in graph.edges())

    def test_local_variables_use_enclosing_type(self, rich_unit):
        """Local variable types are attributed to the enclosing class."""
        graph = TypeUseExtractor().extract(rich_unit)

        assert graph.has_edge("com.acme.Service", "java.util.List", EdgeType.TYPE_USE)

    def test_unresolved_types_are_skipped(self, rich_unit):
        """Primitive and var types produce no edge; the rest still do."""
        graph = TypeUseExtractor().extract(rich_unit)

        assert graph.edge_count() == 4
        assert not graph.has_node("int")
        assert not graph.has_node("var")

    def test_local_variable_outside_class_uses_sentinel(self):
        """A local variable with no enclosing class is sourced at Unknown."""
        unit = ResolvedUnit(
            resolver=ScriptedResolver({"Bar": "a.Bar"}),
            local_variable_types=[type_ref("Bar", scope=None)],
        )

        graph = TypeUseExtractor().extract(unit)

        assert graph.has_edge(UNKNOWN_NODE, "a.Bar", EdgeType.TYPE_USE)

    def test_enum_signatures_are_not_visited(self):
        """Field and method types of enums are not TypeUse sources."""
        mode = make_class("a.Mode", kind=DeclarationKind.ENUM)
        mode.field_types.append(type_ref("Bar", mode))
        mode.methods.append(MethodDeclaration(name="next", return_type=type_ref("Bar", mode)))
        unit = ResolvedUnit(resolver=ScriptedResolver({"Bar": "a.Bar"}), declarations=[mode])

        assert TypeUseExtractor().extract(unit).is_empty()

    def test_unexpected_resolver_error_is_contained(self):
        """A resolver raising an arbitrary exception only skips that reference."""
        foo = make_class("a.Foo")
        foo.field_types.append(type_ref("Bar", foo))
        unit = ResolvedUnit(resolver=ExplodingResolver(), declarations=[foo])

        assert TypeUseExtractor().extract(unit).is_empty()


class TestInheritanceExtractors:
    """Tests for InheritanceExtractor and ImplementsExtractor."""

    def test_scenario_b(self, scenario_b_unit):
        """Sub extends Base implements Iface."""
        extends = InheritanceExtractor().extract(scenario_b_unit)
        implements = ImplementsExtractor().extract(scenario_b_unit)

        assert [e.key() for e in extends.edges()] == [
            ("com.acme.Sub", "com.acme.Base", EdgeType.EXTENDS)
        ]
        assert [e.key() for e in implements.edges()] == [
            ("com.acme.Sub", "com.acme.Iface", EdgeType.IMPLEMENTS)
        ]
        assert extends.get_node("com.acme.Base").kind == NodeKind.UNKNOWN

    def test_interface_extends_many(self):
        """An interface extending several interfaces gets one edge per supertype."""
        child = make_class("a.Child", kind=DeclarationKind.INTERFACE)
        child.extended_types.extend([type_ref("A", child), type_ref("B", child)])
        unit = ResolvedUnit(
            resolver=ScriptedResolver({"A": "a.A", "B": "a.B"}), declarations=[child]
        )

        graph = InheritanceExtractor().extract(unit)

        assert graph.has_edge("a.Child", "a.A", EdgeType.EXTENDS)
        assert graph.has_edge("a.Child", "a.B", EdgeType.EXTENDS)

    def test_unresolvable_interface_skipped(self, rich_unit):
        """An unresolvable interface drops only that Implements edge."""
        graph = ImplementsExtractor().extract(rich_unit)

        assert [e.target for e in graph.edges()] == ["java.lang.Runnable"]

    def test_enum_implements_is_ignored(self):
        """Enum declarations are not visited by the supertype extractors."""
        mode = make_class("a.Mode", kind=DeclarationKind.ENUM)
        mode.implemented_types.append(type_ref("Iface", mode))
        unit = ResolvedUnit(resolver=ScriptedResolver({"Iface": "a.Iface"}), declarations=[mode])

        assert ImplementsExtractor().extract(unit).is_empty()


class TestReferenceExtractors:
    """Tests for MethodCallExtractor and ObjectCreationExtractor."""

    def test_method_call_resolves_to_declaring_type(self, rich_unit):
        """Resolved calls become MethodCall edges; unresolved ones are skipped."""
        graph = MethodCallExtractor().extract(rich_unit)

        assert [e.key() for e in graph.edges()] == [
            ("com.acme.Service", "com.acme.Repository", EdgeType.METHOD_CALL)
        ]

    def test_object_creation(self, rich_unit):
        """Constructor invocations become ObjectCreate edges."""
        graph = ObjectCreationExtractor().extract(rich_unit)

        assert graph.has_edge("com.acme.Service", "java.util.ArrayList", EdgeType.OBJECT_CREATE)

    def test_call_inside_enum_uses_outer_class(self):
        """Calls inside a nested enum are attributed to the enclosing class."""
        outer = make_class("a.Outer")
        mode = make_class("a.Outer.Mode", kind=DeclarationKind.ENUM, parent=outer)
        unit = ResolvedUnit(
            resolver=ScriptedResolver({"log()": "a.Logger", "Widget": "a.Widget"}),
            declarations=[outer, mode],
            method_calls=[call_ref("log()", mode)],
            object_creations=[creation_ref("Widget", mode)],
        )

        calls = MethodCallExtractor().extract(unit)
        creations = ObjectCreationExtractor().extract(unit)

        assert calls.has_edge("a.Outer", "a.Logger", EdgeType.METHOD_CALL)
        assert creations.has_edge("a.Outer", "a.Widget", EdgeType.OBJECT_CREATE)

    def test_creation_outside_class_uses_sentinel(self):
        """A creation site with no enclosing class is sourced at Unknown."""
        unit = ResolvedUnit(
            resolver=ScriptedResolver({"Widget": "a.Widget"}),
            object_creations=[creation_ref("Widget", scope=None)],
        )

        graph = ObjectCreationExtractor().extract(unit)

        assert graph.has_edge(UNKNOWN_NODE, "a.Widget", EdgeType.OBJECT_CREATE)


class TestAttributeExtractors:
    """Tests for the classification, size and location extractors."""

    def test_classification_kinds(self):
        """Each declaration category maps to its node kind."""
        decls = [
            make_class("a.Plain"),
            make_class("a.Abstract", is_abstract=True),
            make_class("a.Iface", kind=DeclarationKind.INTERFACE),
            make_class("a.Mode", kind=DeclarationKind.ENUM),
            make_class("a.Marker", kind=DeclarationKind.ANNOTATION),
        ]
        unit = ResolvedUnit(resolver=ScriptedResolver(), declarations=decls)

        graph = ClassificationExtractor().extract(unit)

        assert {node.name: node.kind for node in graph.nodes()} == {
            "a.Plain": NodeKind.CLASS,
            "a.Abstract": NodeKind.ABSTRACT_CLASS,
            "a.Iface": NodeKind.INTERFACE,
            "a.Mode": NodeKind.ENUM,
            "a.Marker": NodeKind.ANNOTATION,
        }

    def test_interface_wins_over_abstract(self):
        """An interface flagged abstract is still an Interface."""
        decl = make_class("a.Iface", kind=DeclarationKind.INTERFACE, is_abstract=True)

        assert ClassificationExtractor.classify(decl) == NodeKind.INTERFACE

    def test_scenario_c(self):
        """A declaration spanning lines 3 through 12 has 10 lines of code."""
        unit = ResolvedUnit(
            resolver=ScriptedResolver(), declarations=[make_class("a.Foo", begin_line=3, end_line=12)]
        )

        graph = SizeExtractor().extract(unit)

        assert graph.get_node("a.Foo").lines_of_code == 10

    def test_size_without_span_is_zero(self):
        """A declaration without a source span counts as 0 lines."""
        decl = make_class("a.Foo", begin_line=None, end_line=None)

        assert SizeExtractor.count_lines(decl) == 0

    def test_location_sets_file_path(self, rich_unit):
        """Every declaration of a unit with a path gets that path."""
        graph = LocationExtractor().extract(rich_unit)

        assert {node.file_path for node in graph.nodes()} == {"/src/com/acme/Service.java"}
        assert graph.node_count() == 2

    def test_location_without_path_is_empty(self):
        """A unit with no file origin yields an empty graph."""
        unit = ResolvedUnit(resolver=ScriptedResolver(), declarations=[make_class("a.Foo")])

        assert LocationExtractor().extract(unit).is_empty()

    def test_extractors_return_fresh_graphs(self, scenario_a_unit):
        """Each call returns a new graph instance."""
        extractor = ClassificationExtractor()

        first = extractor.extract(scenario_a_unit)
        second = extractor.extract(scenario_a_unit)

        assert first is not second
