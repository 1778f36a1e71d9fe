# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""graphpub CLI.

Usage:
    graphpub subgraph publish GRAPH_REF --name NAME --schema PATH|-
        [--routing-url URL] [--allow-invalid-routing-url] [--convert]
        [--profile NAME] [--format text|json]
    python -m graphpub.cli ...

Prompts and warnings go to stderr, the publish report to stdout.
Exit codes: 0 success, 1 error, 130 interrupted.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from functools import partial
from typing import TextIO

from . import GraphRef, __version__
from .client import RegistryClient
from .config import DEFAULT_PROFILE, resolve_profile
from .errors import BuildErrorsError
from .git_context import GitContext
from .logging_config import configure
from .problem_details import from_exception
from .publish import (
    PublishRequest,
    confirm_supplied_routing_url,
    format_publish_report,
    publish_subgraph_schema,
)
from .schema_source import read_schema
from .terminal import is_interactive, paint

logger = logging.getLogger(__name__)


def cmd_subgraph_publish(args: argparse.Namespace) -> int:
    """Publish a subgraph schema after confirming its routing URL."""
    stdin, stdout, stderr = sys.stdin, sys.stdout, sys.stderr

    request = PublishRequest(
        graph_ref=GraphRef.parse(args.graph_ref),
        subgraph=args.name,
        profile_name=args.profile,
        routing_url=args.routing_url,
        allow_invalid_routing_url=args.allow_invalid_routing_url,
        convert=args.convert,
    )
    is_tty = is_interactive(stdin, stderr)
    supplied_outcomes = confirm_supplied_routing_url(request, reader=stdin.buffer, writer=stderr, is_tty=is_tty)
    profile = resolve_profile(args.profile)

    with RegistryClient.from_profile(profile) as client:
        report = publish_subgraph_schema(
            request,
            routing_url_source=client,
            publisher=client,
            read_schema=partial(read_schema, args.schema, stdin=stdin.buffer),
            git_context=GitContext.from_env(),
            reader=stdin.buffer,
            writer=stderr,
            is_tty=is_tty,
            describe=partial(_paint_for, stderr),
            supplied_outcomes=supplied_outcomes,
        )

    if args.format == "json":
        print(json.dumps({"data": report.to_dict()}, ensure_ascii=False, indent=2), file=stdout)
    else:
        print(format_publish_report(report), file=stdout)

    if report.response.has_build_errors:
        raise BuildErrorsError(
            f"Encountered {len(report.response.build_errors)} composition error(s) "
            f"while publishing `{request.subgraph}` to `{request.graph_ref}`.",
            build_errors=report.response.build_errors,
        )
    return 0


def _paint_for(stream: TextIO, text: str, style: str) -> str:
    return paint(text, style, stream=stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Publish subgraph schemas to a graph registry",
        prog="graphpub",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")
    commands = parser.add_subparsers(dest="command", required=True)

    p_subgraph = commands.add_parser("subgraph", help="Subgraph commands")
    subgraph_commands = p_subgraph.add_subparsers(dest="subcommand", required=True)

    _publish_epilog = """\
examples:
  %(prog)s my-graph@current --name products --schema products.graphql --routing-url https://products.example.com
  cat schema.graphql | %(prog)s my-graph --name products --schema -
  %(prog)s my-graph@dev --name products --schema s.graphql --routing-url http://localhost:4001 --allow-invalid-routing-url
"""
    p_publish = subgraph_commands.add_parser(
        "publish",
        help="Publish a subgraph schema",
        epilog=_publish_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_publish.add_argument("graph_ref", metavar="GRAPH_REF", help="graph@variant to publish to")
    p_publish.add_argument("--name", required=True, metavar="SUBGRAPH", help="Name of the subgraph")
    p_publish.add_argument(
        "--schema", "-s", required=True, metavar="PATH", help="SDL file to publish, or - to read stdin"
    )
    p_publish.add_argument(
        "--routing-url",
        metavar="URL",
        default=None,
        help=(
            "URL of a running subgraph that a supergraph can route operations to. "
            'May be left empty ("") or a placeholder if not running a router in managed federation mode'
        ),
    )
    p_publish.add_argument(
        "--allow-invalid-routing-url",
        action="store_true",
        help="Skip routing URL checks and the confirmation prompt",
    )
    p_publish.add_argument(
        "--convert", "-c", action="store_true", help="Convert a non-federated graph into a federated graph"
    )
    p_publish.add_argument("--profile", default=DEFAULT_PROFILE, help="Credential profile (default: %(default)s)")
    p_publish.add_argument("--format", choices=["text", "json"], default="text", help="Report format")
    p_publish.set_defaults(handler=cmd_subgraph_publish)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure(json_output=args.log_json, level="DEBUG" if args.verbose else "INFO")

    try:
        code = args.handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except Exception as e:
        problem = from_exception(e)
        if getattr(args, "format", "text") == "json":
            print(problem.to_json(), file=sys.stdout)
        else:
            print(problem.to_cli_text(), file=sys.stderr)
        if args.verbose:
            logger.debug("Command failed", exc_info=True)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
