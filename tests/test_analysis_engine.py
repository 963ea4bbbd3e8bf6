# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for AnalysisEngine: per-file analysis and parallel batch runs."""

from pathlib import Path

import pytest

from dependviz.analysis_engine import AnalysisEngine, AnalysisError, create_engine
from dependviz.config import Config
from dependviz.models import EdgeType, NodeKind
from dependviz.oracle import JavaSourceOracle


def write_java(path: Path, source: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source)
    return str(path)


def deep_expression_source(terms: int = 3000) -> str:
    expression = " + ".join(["1"] * terms)
    return f"class Deep {{\n    int sum() {{\n        return {expression};\n    }}\n}}\n"


class FailingOracle(JavaSourceOracle):
    """Java oracle that fails unexpectedly on files named Boom.java."""

    def load(self, filepath, content=None):
        if Path(filepath).name == "Boom.java":
            raise ValueError("unexpected state")
        return super().load(filepath, content)


class TestAnalyzeFile:
    """Tests for single-file analysis."""

    def test_analyze_file(self, java_source_root: Path):
        """A valid file yields its unit graph."""
        engine = create_engine(str(java_source_root))
        path = java_source_root / "com" / "acme" / "model" / "Circle.java"

        graph = engine.analyze_file(str(path))

        assert graph.get_node("com.acme.model.Circle").kind == NodeKind.CLASS
        assert graph.has_edge(
            "com.acme.model.Circle", "com.acme.model.BaseShape", EdgeType.EXTENDS
        )

    def test_syntax_error_raises_analysis_error(self, java_source_root: Path):
        """Oracle failures surface as AnalysisError."""
        engine = create_engine(str(java_source_root))
        path = java_source_root / "com" / "acme" / "app" / "Broken.java"

        with pytest.raises(AnalysisError) as exc_info:
            engine.analyze_file(str(path))

        assert exc_info.value.filepath == str(path)

    def test_try_analyze_file_returns_none(self, java_source_root: Path):
        """try_analyze_file() returns None instead of raising."""
        engine = create_engine(str(java_source_root))
        path = java_source_root / "com" / "acme" / "app" / "Broken.java"

        assert engine.try_analyze_file(str(path)) is None

    def test_deep_nesting_raises_analysis_error(self, tmp_path: Path):
        """Files too deeply nested to walk fail like any other bad file."""
        path = write_java(tmp_path / "Deep.java", deep_expression_source())

        with pytest.raises(AnalysisError) as exc_info:
            create_engine(str(tmp_path)).analyze_file(path)

        assert exc_info.value.reason == "nesting too deep to analyze"

    def test_unexpected_error_raises_analysis_error(self, tmp_path: Path):
        """Any exception raised while analyzing a file becomes AnalysisError."""
        path = write_java(tmp_path / "Boom.java", "class Boom {}\n")
        engine = AnalysisEngine(FailingOracle(str(tmp_path)))

        with pytest.raises(AnalysisError) as exc_info:
            engine.analyze_file(path)

        assert exc_info.value.reason == "ValueError: unexpected state"

    def test_engine_exposes_oracle_root(self, java_source_root: Path):
        """The engine reports its oracle's source root and supported files."""
        engine = AnalysisEngine(JavaSourceOracle(str(java_source_root)))

        assert engine.source_root == str(java_source_root.resolve())
        assert engine.supports("Foo.java")


class TestAnalyzeProject:
    """Tests for whole-project batch analysis."""

    def test_project_graph(self, java_project: Path, java_source_root: Path):
        """Every file is analyzed; broken files are skipped and reported."""
        engine = create_engine(str(java_source_root))

        result = engine.analyze_project(str(java_project))

        assert result.file_count == 5
        assert [Path(p).name for p in result.failed_files] == ["Broken.java"]
        graph = result.graph
        assert graph.get_node("com.acme.model.Shape").kind == NodeKind.INTERFACE
        assert graph.get_node("com.acme.model.BaseShape").kind == NodeKind.ABSTRACT_CLASS
        assert graph.get_node("com.acme.model.Circle").kind == NodeKind.CLASS
        assert graph.has_edge(
            "com.acme.model.BaseShape", "com.acme.model.Shape", EdgeType.IMPLEMENTS
        )
        assert graph.has_edge("com.acme.app.Main", "com.acme.model.Circle", EdgeType.OBJECT_CREATE)

    def test_project_result_is_deterministic(self, java_project: Path, java_source_root: Path):
        """Parallel runs fold in discovery order and give identical output."""
        first = create_engine(str(java_source_root)).analyze_project(str(java_project))
        second = AnalysisEngine(
            JavaSourceOracle(str(java_source_root)), max_workers=1
        ).analyze_project(str(java_project))

        assert first.graph.to_dict() == second.graph.to_dict()

    def test_file_order_does_not_change_edges(self, tmp_path: Path):
        """Same-package references resolve whichever file is analyzed first."""
        package_dir = tmp_path / "app" / "src" / "main" / "java" / "com" / "acme"
        a = write_java(package_dir / "A.java", "package com.acme;\n\nclass A {\n    B b;\n}\n")
        b = write_java(package_dir / "B.java", "package com.acme;\n\nclass B {}\n")

        forward = create_engine(str(tmp_path)).analyze_files([a, b]).graph
        backward = create_engine(str(tmp_path)).analyze_files([b, a]).graph

        assert forward.has_edge("com.acme.A", "com.acme.B", EdgeType.TYPE_USE)
        assert {e.key() for e in forward.edges()} == {e.key() for e in backward.edges()}

    def test_single_file_sees_unanalyzed_types(self, tmp_path: Path):
        """Types declared in files never analyzed still resolve."""
        package_dir = tmp_path / "com" / "acme"
        a = write_java(package_dir / "A.java", "package com.acme;\n\nclass A {\n    B b;\n}\n")
        write_java(package_dir / "B.java", "package com.acme;\n\nclass B {}\n")

        graph = create_engine(str(tmp_path)).analyze_files([a]).graph

        assert graph.has_edge("com.acme.A", "com.acme.B", EdgeType.TYPE_USE)

    def test_deeply_nested_file_skipped(self, tmp_path: Path):
        """A file too deep to walk is reported failed; the batch continues."""
        deep = write_java(tmp_path / "Deep.java", deep_expression_source())
        ok = write_java(tmp_path / "Ok.java", "class Ok {\n    String name;\n}\n")

        result = create_engine(str(tmp_path)).analyze_files([deep, ok])

        assert result.failed_files == [deep]
        assert result.analyzed_files == [ok]
        assert result.graph.has_edge("Ok", "java.lang.String", EdgeType.TYPE_USE)

    def test_unexpected_error_skipped(self, tmp_path: Path):
        """An unexpected failure in one file does not abort the batch."""
        boom = write_java(tmp_path / "Boom.java", "class Boom {}\n")
        ok = write_java(tmp_path / "Ok.java", "class Ok {}\n")
        engine = AnalysisEngine(FailingOracle(str(tmp_path)))

        result = engine.analyze_files([boom, ok])

        assert result.failed_files == [boom]
        assert result.analyzed_files == [ok]
        assert result.graph.has_node("Ok")

    def test_no_files(self, tmp_path: Path):
        """An empty directory yields an empty graph."""
        result = create_engine(str(tmp_path)).analyze_project(str(tmp_path))

        assert result.graph.is_empty()
        assert result.file_count == 0

    def test_create_engine_uses_config(self, tmp_path: Path):
        """create_engine() applies worker count from configuration."""
        config = Config.from_dict({"max_workers": 2, "max_file_size_kb": 8})

        engine = create_engine(str(tmp_path), config)

        assert engine.max_workers == 2
