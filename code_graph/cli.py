#!/usr/bin/env python3
"""
Code Knowledge Graph - command line entry point

Reads parser output (entities plus per-file import/export maps) from a JSON
file, builds the knowledge graph and writes it next to the workspace.
"""

import argparse
import json
import sys
from pathlib import Path

from .config import settings
from .graph.graph_builder import GraphBuilder
from .graph.json_graph_client import JsonGraphClient
from .graph.models import RelationshipFilters
from .types import CommunityStrategy
from .utils.logger import app_logger, setup_logging


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="code-graph", description="Code Knowledge Graph builder")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build a knowledge graph from parsed entities")
    build.add_argument("entities", help="JSON file with entities, file_imports and file_exports")
    build.add_argument("--workspace", required=True, help="Workspace root the entities belong to")
    build.add_argument("--output", help="Output file (default: <workspace>/.huima/kg.json)")
    build.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in CommunityStrategy],
        default=settings.community_strategy,
        help="Community detection strategy",
    )
    build.add_argument("--enable-imports", action="store_true", help="Build IMPORTS relations")
    build.add_argument("--enable-calls", action="store_true", help="Build CALLS relations")
    build.add_argument("--enable-semantic", action="store_true", help="Build RELATED_TO relations")
    build.add_argument("--min-weight", type=float, default=None, help="Minimum relation weight")
    build.add_argument("--log-level", default=settings.log_level, help="Log level")
    return parser


def load_input(path: str) -> dict:
    """Read the parser output file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, list):
        data = {"entities": data}
    if not isinstance(data, dict):
        raise ValueError("input must be a JSON object or a list of entities")
    return data


def run_build(args: argparse.Namespace) -> int:
    try:
        data = load_input(args.entities)
    except (OSError, ValueError) as e:
        app_logger.error(f"Could not read {args.entities}: {e}")
        return 1

    filters = RelationshipFilters.from_settings()
    filters.enable_imports_exports = filters.enable_imports_exports or args.enable_imports
    filters.enable_calls = filters.enable_calls or args.enable_calls
    filters.enable_semantic_related = filters.enable_semantic_related or args.enable_semantic
    if args.min_weight is not None:
        filters.min_relation_weight = args.min_weight

    builder = GraphBuilder(args.workspace, filters=filters, strategy=args.strategy)
    graph = builder.build_graph(
        data.get("entities") or [],
        data.get("file_imports") or {},
        data.get("file_exports") or {},
    )

    output = Path(args.output) if args.output else settings.graph_output_path(args.workspace)
    try:
        JsonGraphClient(output).save_graph(graph)
    except OSError as e:
        app_logger.error(f"Could not write {output}: {e}")
        return 1

    stats = graph.metadata
    app_logger.info(
        f"Files: {stats.total_files}, entities: {stats.total_entities}, "
        f"relationships: {stats.total_relationships}, communities: {len(graph.communities)}"
    )
    app_logger.info(f"Output: {output}")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = create_parser().parse_args(argv)
    setup_logging(args.log_level, settings.log_file)

    if args.command == "build":
        return run_build(args)
    return 1


if __name__ == "__main__":
    sys.exit(main())
