# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for DependViz tests.

Provides a scripted symbol resolver so extractor, aggregator and cache tests
run without parsing real source, plus a small Maven-layout Java project for
oracle, engine and CLI tests.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from dependviz.models import (
    DeclarationKind,
    MethodDeclaration,
    ReferenceKind,
    ResolvedUnit,
    SymbolReference,
    TypeDeclaration,
)
from dependviz.oracle.base import SymbolResolver, UnresolvedSymbolError


class ScriptedResolver(SymbolResolver):
    """Resolver that answers from a fixed text -> qualified name table.

    Any text missing from the table raises UnresolvedSymbolError.
    """

    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names = dict(names or {})
        self.calls: List[str] = []

    def resolve(self, reference: SymbolReference) -> str:
        self.calls.append(reference.text)
        if reference.text not in self.names:
            raise UnresolvedSymbolError(reference, "not scripted")
        return self.names[reference.text]


def type_ref(text: str, scope: Optional[TypeDeclaration] = None, line: int = 1) -> SymbolReference:
    return SymbolReference(kind=ReferenceKind.TYPE, text=text, line=line, scope=scope)


def call_ref(text: str, scope: Optional[TypeDeclaration] = None) -> SymbolReference:
    return SymbolReference(kind=ReferenceKind.METHOD_CALL, text=text, scope=scope)


def creation_ref(text: str, scope: Optional[TypeDeclaration] = None) -> SymbolReference:
    return SymbolReference(kind=ReferenceKind.OBJECT_CREATION, text=text, scope=scope)


def make_class(
    qualified_name: str,
    kind: str = DeclarationKind.CLASS,
    begin_line: Optional[int] = 1,
    end_line: Optional[int] = 10,
    is_abstract: bool = False,
    parent: Optional[TypeDeclaration] = None,
) -> TypeDeclaration:
    return TypeDeclaration(
        name=qualified_name.rsplit(".", 1)[-1],
        kind=kind,
        qualified_name=qualified_name,
        is_abstract=is_abstract,
        begin_line=begin_line,
        end_line=end_line,
        parent=parent,
    )


@pytest.fixture
def scenario_a_unit() -> ResolvedUnit:
    """Class Foo with a Bar field and a method Baz run(Qux q)."""
    foo = make_class("com.acme.Foo", begin_line=3, end_line=12)
    foo.field_types.append(type_ref("Bar", foo))
    foo.methods.append(
        MethodDeclaration(
            name="run",
            return_type=type_ref("Baz", foo),
            parameter_types=[type_ref("Qux", foo)],
        )
    )
    resolver = ScriptedResolver(
        {"Bar": "com.acme.Bar", "Baz": "com.acme.Baz", "Qux": "com.acme.Qux"}
    )
    return ResolvedUnit(resolver=resolver, path="/src/com/acme/Foo.java", declarations=[foo])


@pytest.fixture
def scenario_b_unit() -> ResolvedUnit:
    """Class Sub extends Base implements Iface."""
    sub = make_class("com.acme.Sub")
    sub.extended_types.append(type_ref("Base", sub))
    sub.implemented_types.append(type_ref("Iface", sub))
    resolver = ScriptedResolver({"Base": "com.acme.Base", "Iface": "com.acme.Iface"})
    return ResolvedUnit(resolver=resolver, path="/src/com/acme/Sub.java", declarations=[sub])


@pytest.fixture
def rich_unit() -> ResolvedUnit:
    """A unit exercising every extractor, with some unresolvable references."""
    service = make_class("com.acme.Service", begin_line=5, end_line=40)
    service.extended_types.append(type_ref("BaseService", service))
    service.implemented_types.append(type_ref("Runnable", service))
    service.implemented_types.append(type_ref("Missing", service))
    service.field_types.append(type_ref("Repository", service))
    service.field_types.append(type_ref("int", service))
    service.methods.append(
        MethodDeclaration(
            name="find",
            return_type=type_ref("Entity", service),
            parameter_types=[type_ref("String", service)],
        )
    )
    inner = make_class(
        "com.acme.Service.Mode", kind=DeclarationKind.ENUM, begin_line=30, end_line=33, parent=service
    )
    names = {
        "BaseService": "com.acme.BaseService",
        "Runnable": "java.lang.Runnable",
        "Repository": "com.acme.Repository",
        "Entity": "com.acme.Entity",
        "String": "java.lang.String",
        "List": "java.util.List",
        "repository.load()": "com.acme.Repository",
        "ArrayList": "java.util.ArrayList",
    }
    return ResolvedUnit(
        resolver=ScriptedResolver(names),
        path="/src/com/acme/Service.java",
        declarations=[service, inner],
        local_variable_types=[type_ref("List", service), type_ref("var", service)],
        method_calls=[call_ref("repository.load()", service), call_ref("helper()", service)],
        object_creations=[creation_ref("ArrayList", service)],
    )


@pytest.fixture
def java_project(tmp_path: Path) -> Path:
    """Create a small Maven-layout Java project.

    Layout:
        project/src/main/java/com/acme/model/Shape.java      (interface)
        project/src/main/java/com/acme/model/BaseShape.java  (abstract class)
        project/src/main/java/com/acme/model/Circle.java     (class)
        project/src/main/java/com/acme/app/Main.java         (uses the model)
        project/src/main/java/com/acme/app/Broken.java       (syntax error)

    Returns:
        Path to the project root directory
    """
    project = tmp_path / "project"
    model = project / "src" / "main" / "java" / "com" / "acme" / "model"
    app = project / "src" / "main" / "java" / "com" / "acme" / "app"
    model.mkdir(parents=True)
    app.mkdir(parents=True)

    (model / "Shape.java").write_text(
        "package com.acme.model;\n"
        "\n"
        "public interface Shape {\n"
        "    double area();\n"
        "}\n"
    )
    (model / "BaseShape.java").write_text(
        "package com.acme.model;\n"
        "\n"
        "public abstract class BaseShape implements Shape {\n"
        "    protected String name;\n"
        "\n"
        "    public String getName() {\n"
        "        return name;\n"
        "    }\n"
        "}\n"
    )
    (model / "Circle.java").write_text(
        "package com.acme.model;\n"
        "\n"
        "public class Circle extends BaseShape {\n"
        "    private double radius;\n"
        "\n"
        "    public Circle(double radius) {\n"
        "        this.radius = radius;\n"
        "    }\n"
        "\n"
        "    public double area() {\n"
        "        return Math.PI * radius * radius;\n"
        "    }\n"
        "}\n"
    )
    (app / "Main.java").write_text(
        "package com.acme.app;\n"
        "\n"
        "import com.acme.model.Circle;\n"
        "import com.acme.model.Shape;\n"
        "\n"
        "public class Main {\n"
        "    public static void main(String[] args) {\n"
        "        Shape shape = new Circle(2.0);\n"
        "        Circle circle = new Circle(1.0);\n"
        "        String name = circle.getName();\n"
        "        print(shape);\n"
        "    }\n"
        "\n"
        "    static void print(Shape shape) {\n"
        "    }\n"
        "}\n"
    )
    (app / "Broken.java").write_text("package com.acme.app;\n\npublic class Broken {\n")
    return project


@pytest.fixture
def java_source_root(java_project: Path) -> Path:
    return java_project / "src" / "main" / "java"
