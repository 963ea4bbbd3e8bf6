# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""MCP Server Protocol Layer for DependViz.

This module exposes the editor lifecycle and graph queries as MCP tools. It
contains ZERO business logic: every tool forwards to DocumentService.
Blocking service calls run in worker threads so concurrent tool calls for
different files do not serialize on the event loop.
"""

import argparse
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.session import ServerSession

from dependviz.config import Config
from dependviz.document_service import DocumentService
from dependviz.log_config import get_default_data_root
from dependviz.logging_setup import setup_logging

logger = logging.getLogger(__name__)

TRANSPORTS = ["stdio", "streamable-http", "sse"]


class DependVizMCPServer:
    """MCP Protocol Layer for DependViz.

    Responsibilities:
    - Initialize the MCP server and register tools
    - Translate tool invocations into DocumentService calls
    - Format service results as tool results
    - Handle server lifecycle (startup, shutdown)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        service: Optional[DocumentService] = None,
    ):
        """Initialize MCP server.

        Args:
            config: Configuration object. If None, loads from default location.
            service: Service layer instance. If None, creates default service.
        """
        if config is None:
            config = Config()
        self.config = config

        if service is None:
            service = DocumentService(config=config)
        self.service = service

        self.mcp = FastMCP(name="dependviz")
        self._register_tools()

        logger.info("DependVizMCPServer initialized")

    def _register_tools(self) -> None:
        """Register MCP tools with the server."""

        @self.mcp.tool()
        async def initialize_workspace(
            root_uri: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Set the workspace root used to locate source files.

            Re-initializing discards every cached graph.

            Args:
                root_uri: Workspace root as a file:// URI or path
                ctx: MCP context for logging

            Returns:
                Dictionary with the resolved workspace_root and source_root.
            """
            await ctx.info(f"Initializing workspace: {root_uri}")
            try:
                return await asyncio.to_thread(self.service.initialize, root_uri)
            except Exception as e:
                await ctx.error(f"Failed to initialize workspace {root_uri}: {e}")
                raise

        @self.mcp.tool()
        async def did_open(
            uri: str,
            ctx: Context[ServerSession, None],
            text: Optional[str] = None,
        ) -> Dict[str, Any]:
            """Notify that a document was opened; analyzes it.

            Args:
                uri: Document URI or path
                ctx: MCP context for logging
                text: Full document text. If omitted, the file is read from disk.
            """
            await ctx.debug(f"didOpen: {uri}")
            await asyncio.to_thread(self.service.did_open, uri, text)
            return {"uri": uri, "status": "ok"}

        @self.mcp.tool()
        async def did_change(
            uri: str,
            ctx: Context[ServerSession, None],
            text: Optional[str] = None,
        ) -> Dict[str, Any]:
            """Notify that a document changed; re-analyzes the full text.

            Args:
                uri: Document URI or path
                ctx: MCP context for logging
                text: Full new document text. If omitted, the last known text
                    (or the file on disk) is used.
            """
            await ctx.debug(f"didChange: {uri}")
            await asyncio.to_thread(self.service.did_change, uri, text)
            return {"uri": uri, "status": "ok"}

        @self.mcp.tool()
        async def did_save(
            uri: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Notify that a document was saved."""
            await ctx.debug(f"didSave: {uri}")
            await asyncio.to_thread(self.service.did_save, uri)
            return {"uri": uri, "status": "ok"}

        @self.mcp.tool()
        async def did_close(
            uri: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Notify that a document was closed; drops its cached graph."""
            await ctx.debug(f"didClose: {uri}")
            await asyncio.to_thread(self.service.did_close, uri)
            return {"uri": uri, "status": "ok"}

        @self.mcp.tool()
        async def get_file_dependency_graph(
            uri: str,
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Get the dependency graph of one source file.

            Args:
                uri: Document URI or path
                ctx: MCP context for logging

            Returns:
                Node-link graph with "nodes" and "links" lists. Both are empty
                if the file cannot be analyzed.
            """
            await ctx.info(f"Building dependency graph for {uri}")
            payload = await asyncio.to_thread(self.service.get_file_dependency_graph, uri)
            response: Dict[str, Any] = json.loads(payload)
            await ctx.info(
                f"Graph for {uri}: {len(response['nodes'])} nodes, "
                f"{len(response['links'])} links"
            )
            return response

        @self.mcp.tool()
        async def get_dependency_graph(
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Get the merged dependency graph of every analyzed file.

            Returns:
                Node-link graph with "nodes" and "links" lists.
            """
            await ctx.info("Exporting dependency graph")
            payload = await asyncio.to_thread(self.service.get_dependency_graph)
            response: Dict[str, Any] = json.loads(payload)
            return response

        @self.mcp.tool()
        async def get_cache_statistics(
            ctx: Context[ServerSession, None],
        ) -> Dict[str, Any]:
            """Get cache hit, miss and analysis counters."""
            await ctx.debug("Reading cache statistics")
            return self.service.get_cache_statistics()

        logger.info(
            "MCP tools registered: initialize_workspace, did_open, did_change, did_save, "
            "did_close, get_file_dependency_graph, get_dependency_graph, get_cache_statistics"
        )

    def run(self, transport: str = "stdio") -> None:
        """Run the MCP server.

        Args:
            transport: Transport type to use. Options:
                - "stdio": Standard input/output (default)
                - "streamable-http": HTTP transport
                - "sse": Server-sent events transport
        """
        logger.info(f"Starting MCP server with {transport} transport")
        self.mcp.run(transport=transport)  # type: ignore[arg-type]

    def shutdown(self) -> None:
        """Shutdown the MCP server and cleanup resources."""
        logger.info("Shutting down MCP server")
        self.service.shutdown()


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="DependViz MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .dependviz.yml. Default: ./.dependviz.yml",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help=f"Directory for log files. Default: {get_default_data_root() / 'logs'}",
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=TRANSPORTS,
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    return parser.parse_args()


def serve(
    config: Config,
    transport: str = "stdio",
    log_dir: Optional[Path] = None,
) -> None:
    """Configure logging and run the server until the transport closes.

    Args:
        config: Configuration object.
        transport: One of TRANSPORTS.
        log_dir: Directory for the JSON log file. If None, uses the default.
    """
    setup_logging(log_dir=log_dir, log_level=getattr(logging, config.log_level))

    server = DependVizMCPServer(config=config)
    try:
        server.run(transport=transport)
    finally:
        server.shutdown()


def main() -> None:
    """Main entry point for MCP server."""
    args = parse_args()
    serve(Config(args.config), transport=args.transport, log_dir=args.log_dir)


if __name__ == "__main__":
    main()
