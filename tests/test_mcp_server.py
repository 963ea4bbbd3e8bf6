# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for MCP Server Protocol Layer.

Test coverage:
- Server starts without errors, with default or injected dependencies
- Every editor lifecycle and query tool is registered
- Tools forward to DocumentService and decode its JSON payloads
- Shutdown releases service resources
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Skip tests if mcp package not available (requires Python 3.10+)
pytest.importorskip("mcp", reason="MCP package requires Python 3.10+")

from dependviz.config import Config  # noqa: E402
from dependviz.document_service import DocumentService  # noqa: E402
from dependviz.mcp_server import DependVizMCPServer  # noqa: E402
from dependviz.serialization import EMPTY_GRAPH_JSON  # noqa: E402

EXPECTED_TOOLS = {
    "initialize_workspace",
    "did_open",
    "did_change",
    "did_save",
    "did_close",
    "get_file_dependency_graph",
    "get_dependency_graph",
    "get_cache_statistics",
}


@pytest.fixture
def config() -> Config:
    return Config.from_dict({})


def call_tool(server: DependVizMCPServer, name: str, **kwargs):
    """Invoke a registered tool function with a stand-in request context."""
    ctx = Mock()
    ctx.info = AsyncMock()
    ctx.debug = AsyncMock()
    ctx.error = AsyncMock()
    tool = server.mcp._tool_manager.get_tool(name)
    return asyncio.run(tool.fn(ctx=ctx, **kwargs))


class TestDependVizMCPServer:
    """Tests for DependVizMCPServer."""

    def test_server_initialization(self, config: Config):
        """The server builds its own DocumentService when none is given."""
        server = DependVizMCPServer(config=config)

        assert server.config is config
        assert isinstance(server.service, DocumentService)
        assert server.mcp.name == "dependviz"

    def test_injected_service(self, config: Config):
        """An injected service is used as-is."""
        service = DocumentService(config=config)

        server = DependVizMCPServer(config=config, service=service)

        assert server.service is service

    def test_tools_are_registered(self, config: Config):
        """Every lifecycle and query tool is exposed."""
        server = DependVizMCPServer(config=config)

        tools = asyncio.run(server.mcp.list_tools())

        assert {tool.name for tool in tools} == EXPECTED_TOOLS

    def test_shutdown_delegates_to_service(self, config: Config):
        """shutdown() releases service resources."""
        service = Mock()

        server = DependVizMCPServer(config=config, service=service)
        server.shutdown()

        service.shutdown.assert_called_once()


class TestToolForwarding:
    """Tests for tool-to-service delegation."""

    def test_graph_query_decodes_payload(self, config: Config):
        """The file graph tool returns the service JSON as a dictionary."""
        service = Mock()
        service.get_file_dependency_graph.return_value = EMPTY_GRAPH_JSON
        server = DependVizMCPServer(config=config, service=service)

        result = call_tool(server, "get_file_dependency_graph", uri="file:///A.java")

        assert result == {"nodes": [], "links": []}
        service.get_file_dependency_graph.assert_called_once_with("file:///A.java")

    def test_lifecycle_tools_forward(self, config: Config):
        """didOpen and didClose reach the service with their arguments."""
        service = Mock()
        server = DependVizMCPServer(config=config, service=service)

        opened = call_tool(server, "did_open", uri="file:///A.java", text="class A {}")
        call_tool(server, "did_close", uri="file:///A.java")

        assert opened == {"uri": "file:///A.java", "status": "ok"}
        service.did_open.assert_called_once_with("file:///A.java", "class A {}")
        service.did_close.assert_called_once_with("file:///A.java")

    def test_end_to_end_query(self, config: Config, java_project: Path, java_source_root: Path):
        """A real service answers graph queries through the tools."""
        server = DependVizMCPServer(config=config)
        path = java_source_root / "com" / "acme" / "model" / "Circle.java"

        call_tool(server, "initialize_workspace", root_uri=java_project.as_uri())
        result = call_tool(server, "get_file_dependency_graph", uri=path.as_uri())

        ids = {node["id"] for node in result["nodes"]}
        assert "com.acme.model.Circle" in ids
        merged = call_tool(server, "get_dependency_graph")
        assert {node["id"] for node in merged["nodes"]} == ids
        assert len(merged["links"]) == len(result["links"])
        assert call_tool(server, "get_cache_statistics")["misses"] >= 1
