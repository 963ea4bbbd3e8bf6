# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Command-line interface for DependViz.

Commands:
    dependviz analyze <root>          Analyze every source file under root
    dependviz analyze --file <path>   Analyze a single file
    dependviz serve                   Run the editor-integration MCP server

Exit codes:
    0  success
    1  the output artifact could not be written
    2  invalid invocation (usage error, missing or nonexistent path)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dependviz import __version__
from dependviz.analysis_engine import AnalysisError, create_engine
from dependviz.config import VALID_LOG_LEVELS, Config
from dependviz.file_discovery import source_root_for_directory, source_root_for_file
from dependviz.log_config import get_default_data_root
from dependviz.logging_setup import setup_logging
from dependviz.models import CodeGraph
from dependviz.serialization import write_graph_file

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_WRITE_FAILURE = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with analyze and serve subcommands."""
    parser = argparse.ArgumentParser(
        prog="dependviz",
        description="Typed dependency graphs for Java source trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to .dependviz.yml. Default: ./.dependviz.yml",
    )
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Logging level. Default: from configuration (INFO)",
    )
    common.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help=f"Directory for log files. Default: {get_default_data_root() / 'logs'}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    analyze = subparsers.add_parser(
        "analyze",
        parents=[common],
        help="Analyze a source tree or a single file",
        description="Analyze a source tree or a single file and write node-link JSON",
    )
    analyze.add_argument("root", nargs="?", default=None, help="Project root to analyze")
    analyze.add_argument(
        "--file", dest="file", default=None, help="Analyze only this source file"
    )
    analyze.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output JSON path. Default: from configuration (data/sample.json)",
    )
    analyze.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of analysis threads. Default: from configuration (4)",
    )
    analyze.add_argument(
        "--exclude-external",
        action="store_true",
        help="Leave types declared outside the analyzed files out of the output",
    )

    serve = subparsers.add_parser(
        "serve",
        parents=[common],
        help="Run the editor-integration MCP server",
    )
    serve.add_argument(
        "--transport",
        type=str,
        choices=["stdio", "streamable-http", "sse"],
        default="stdio",
        help="Transport type for MCP server. Default: stdio",
    )
    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration and apply command-line overrides."""
    config = Config(args.config)
    if args.log_level is not None:
        config.set("log_level", args.log_level)
    if getattr(args, "workers", None) is not None:
        config.set("max_workers", args.workers)
    if getattr(args, "exclude_external", False):
        config.set("include_external_nodes", False)
    return config


def run_analyze(args: argparse.Namespace, config: Config) -> int:
    """Run batch analysis and write the output artifact.

    Returns:
        Process exit code.
    """
    output_path = args.output or config.output_path

    if args.file is not None:
        filepath = str(Path(args.file).resolve())
        source_root = source_root_for_file(filepath, config.source_root_candidates)
        logger.info(f"Analyzing file {filepath} (source root: {source_root})")
        engine = create_engine(source_root, config)
        try:
            graph = engine.analyze_file(filepath)
        except AnalysisError as e:
            logger.warning(f"Could not analyze {filepath}: {e.reason}")
            graph = CodeGraph()
    else:
        root = str(Path(args.root).resolve())
        source_root = source_root_for_directory(root, config.source_root_candidates)
        logger.info(f"Analyzing project {root} (source root: {source_root})")
        engine = create_engine(source_root, config)
        analysis = engine.analyze_project(
            root, config.source_extensions, config.ignore_patterns
        )
        graph = analysis.graph
        if analysis.failed_files:
            logger.warning(f"{len(analysis.failed_files)} files could not be analyzed")

    try:
        written = write_graph_file(graph, output_path, config.include_external_nodes)
    except OSError as e:
        logger.error(f"Failed to write output to {output_path}: {e}")
        return EXIT_WRITE_FAILURE

    print(f"Dependency graph written to {written}")
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the dependviz command.

    Args:
        argv: Arguments without the program name. If None, uses sys.argv.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "analyze":
        if (args.root is None) == (args.file is None):
            parser.error("analyze requires exactly one of <root> or --file")
        if args.file is not None and not Path(args.file).is_file():
            parser.error(f"file not found: {args.file}")
        if args.root is not None and not Path(args.root).is_dir():
            parser.error(f"directory not found: {args.root}")
        if args.workers is not None and args.workers < 1:
            parser.error("--workers must be at least 1")

    config = load_config(args)

    if args.command == "serve":
        # Deferred so batch analysis never imports the protocol stack
        from dependviz.mcp_server import serve

        serve(config, transport=args.transport, log_dir=args.log_dir)
        return EXIT_SUCCESS

    setup_logging(log_dir=args.log_dir, log_level=getattr(logging, config.log_level))
    return run_analyze(args, config)


if __name__ == "__main__":
    sys.exit(main())
