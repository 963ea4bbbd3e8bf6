# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Node-link JSON serialization of dependency graphs.

Wire format:
    {
      "nodes": [{"id", "name", "type", "linesOfCode", "filePath"}, ...],
      "links": [{"source", "target", "type"}, ...]
    }

id always equals name. filePath is null when the node has no known origin.
linesOfCode is -1 for nodes whose size was never computed.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from dependviz.models import CodeGraph, GraphNode, NodeKind

logger = logging.getLogger(__name__)

EMPTY_GRAPH: Dict[str, List[Any]] = {"nodes": [], "links": []}

EMPTY_GRAPH_JSON = json.dumps(EMPTY_GRAPH)


def is_external_node(node: GraphNode) -> bool:
    """Check whether a node stands for a type declared outside the analyzed files.

    Such nodes were only ever mentioned as edge endpoints: their kind is still
    Unknown and they have no file path.
    """
    return node.kind == NodeKind.UNKNOWN and node.file_path is None


def to_node_link(graph: CodeGraph, include_external_nodes: bool = True) -> Dict[str, Any]:
    """Convert a graph to the node-link dictionary.

    Args:
        graph: Graph to convert.
        include_external_nodes: If False, external nodes and every link
            touching one are left out.

    Returns:
        Dictionary with "nodes" and "links" lists.
    """
    nodes: List[Dict[str, Any]] = []
    kept = set()
    for node in graph.nodes():
        if not include_external_nodes and is_external_node(node):
            continue
        kept.add(node.name)
        nodes.append(
            {
                "id": node.name,
                "name": node.name,
                "type": node.kind,
                "linesOfCode": node.lines_of_code,
                "filePath": node.file_path,
            }
        )

    links = [
        {"source": edge.source, "target": edge.target, "type": edge.edge_type}
        for edge in graph.edges()
        if edge.source in kept and edge.target in kept
    ]
    return {"nodes": nodes, "links": links}


def to_json(graph: CodeGraph, include_external_nodes: bool = True, indent: Any = None) -> str:
    """Serialize a graph to a node-link JSON string.

    Args:
        graph: Graph to serialize.
        include_external_nodes: See to_node_link().
        indent: json.dumps indent; None for compact output.

    Returns:
        JSON string.
    """
    return json.dumps(to_node_link(graph, include_external_nodes), indent=indent)


def graph_from_node_link(data: Dict[str, Any]) -> CodeGraph:
    """Rebuild a graph from a node-link dictionary.

    Node references are rebuilt from the links, one entry per link.

    Args:
        data: Dictionary in the node-link format.

    Returns:
        The reconstructed graph.

    Raises:
        ValueError: If the dictionary is not in node-link format.
    """
    if not isinstance(data, dict) or not isinstance(data.get("nodes"), list):
        raise ValueError("Node-link data must be an object with a 'nodes' list")

    graph = CodeGraph()
    try:
        for entry in data["nodes"]:
            node = graph.get_or_create_node(entry["id"])
            node.kind = entry.get("type", NodeKind.UNKNOWN)
            node.lines_of_code = int(entry.get("linesOfCode", -1))
            node.file_path = entry.get("filePath")
        for link in data.get("links", []):
            graph.add_reference(link["source"], link["target"], link["type"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed node-link data: {e}") from e
    return graph


def write_graph_file(
    graph: CodeGraph, output_path: str, include_external_nodes: bool = True
) -> Path:
    """Write a graph as pretty-printed node-link JSON.

    Parent directories are created as needed. The file is written to a
    temporary sibling first and then moved into place, so readers never see
    a partially written artifact.

    Args:
        graph: Graph to write.
        output_path: Destination file.
        include_external_nodes: See to_node_link().

    Returns:
        Absolute path of the written file.

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = to_json(graph, include_external_nodes, indent=2)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Wrote {graph.node_count()} nodes and {graph.edge_count()} edges to {path}")
    return path


def read_graph_file(path: str) -> CodeGraph:
    """Read a node-link JSON artifact back into a graph.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid node-link JSON.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return graph_from_node_link(data)
