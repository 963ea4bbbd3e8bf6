# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""DependViz: typed dependency graphs for Java source trees."""

from .aggregator import GraphAggregator
from .analysis_engine import AnalysisEngine, AnalysisError, ProjectAnalysis, create_engine
from .cache import FileState, GraphCache, WorkspaceNotConfiguredError
from .config import Config, ConfigurationError
from .document_service import DocumentService
from .models import (
    CacheStatistics,
    CodeGraph,
    EdgeType,
    GraphEdge,
    GraphNode,
    NodeKind,
    ResolvedUnit,
    merge_graphs,
)
from .serialization import graph_from_node_link, to_json, to_node_link, write_graph_file

__version__ = "0.1.0"

__all__ = [
    "CodeGraph",
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "EdgeType",
    "ResolvedUnit",
    "CacheStatistics",
    "merge_graphs",
    "GraphAggregator",
    "AnalysisEngine",
    "AnalysisError",
    "ProjectAnalysis",
    "create_engine",
    "GraphCache",
    "FileState",
    "WorkspaceNotConfiguredError",
    "Config",
    "ConfigurationError",
    "DocumentService",
    "to_node_link",
    "to_json",
    "graph_from_node_link",
    "write_graph_file",
]

# Conditional import for MCP server (requires Python 3.10+ and mcp package)
try:
    from .mcp_server import DependVizMCPServer

    __all__.append("DependVizMCPServer")
except ImportError:
    # MCP package not available
    pass
