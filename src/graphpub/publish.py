# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Subgraph publish orchestration.

Order of operations:
    1. Confirm the supplied routing URL (unless ``allow_invalid_routing_url``).
       Local only, so the CLI runs it before loading credentials.
    2. No URL supplied?  Fetch the current one from the registry, confirm it.
    3. Read the schema, publish, and build a ``PublishReport``.

The routing URL is always classified before the publish request is sent.
Registry access goes through two narrow protocols so tests can swap in
fakes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Protocol, TextIO

from . import GraphRef, SubgraphPublishInput, SubgraphPublishResponse
from .confirmation import handle_maybe_invalid_routing_url, write_message
from .git_context import GitContext
from .routing_url import ConfirmationOutcome

logger = logging.getLogger(__name__)


class RoutingUrlSource(Protocol):
    def fetch_routing_url(self, graph_ref: GraphRef, subgraph: str) -> str: ...


class SubgraphPublisher(Protocol):
    def publish_subgraph(self, publish_input: SubgraphPublishInput) -> SubgraphPublishResponse: ...


@dataclass
class PublishRequest:
    """Command-line options for one publish."""

    graph_ref: GraphRef
    subgraph: str
    profile_name: str
    routing_url: str | None = None
    allow_invalid_routing_url: bool = False
    convert: bool = False


@dataclass
class PublishReport:
    graph_ref: GraphRef
    subgraph: str
    response: SubgraphPublishResponse
    routing_url_outcomes: list[ConfirmationOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        r = self.response
        return {
            "graph_ref": str(self.graph_ref),
            "subgraph": self.subgraph,
            "api_schema_hash": r.api_schema_hash,
            "supergraph_was_updated": r.supergraph_was_updated,
            "subgraph_was_created": r.subgraph_was_created,
            "subgraph_was_updated": r.subgraph_was_updated,
            "launch_url": r.launch_url,
            "build_errors": list(r.build_errors),
            "success": not r.has_build_errors,
        }


def format_publish_report(report: PublishReport) -> str:
    r = report.response
    ref, name = report.graph_ref, report.subgraph
    lines: list[str] = []

    if r.subgraph_was_created:
        lines.append(f"A new subgraph called '{name}' was created in '{ref}'")
    elif r.subgraph_was_updated:
        lines.append(f"The '{name}' subgraph in '{ref}' was updated")
    else:
        lines.append(f"The '{name}' subgraph was NOT updated because no changes were detected")

    if r.supergraph_was_updated:
        lines.append(f"The supergraph schema for '{ref}' was updated, composed from the updated '{name}' subgraph")
    else:
        lines.append(f"The supergraph schema for '{ref}' was NOT updated with a new schema")

    if r.launch_url:
        lines.append(f"Monitor your schema delivery progression on studio: {r.launch_url}")

    if r.build_errors:
        lines.append("")
        lines.append(f"There were {len(r.build_errors)} composition error(s):")
        lines.extend(f"  - {msg}" for msg in r.build_errors)

    return "\n".join(lines)


def confirm_supplied_routing_url(
    request: PublishRequest,
    *,
    reader: BinaryIO,
    writer: TextIO,
    is_tty: bool,
) -> list[ConfirmationOutcome]:
    """Guard the URL given on the command line.  Local only: no credentials, no network."""
    outcome = handle_maybe_invalid_routing_url(
        request.routing_url,
        reader=reader,
        writer=writer,
        is_tty=is_tty,
        allow_invalid=request.allow_invalid_routing_url,
    )
    return [] if outcome is None else [outcome]


def publish_subgraph_schema(
    request: PublishRequest,
    *,
    routing_url_source: RoutingUrlSource,
    publisher: SubgraphPublisher,
    read_schema: Callable[[], str],
    git_context: GitContext,
    reader: BinaryIO,
    writer: TextIO,
    is_tty: bool,
    describe: Callable[[str, str], str] | None = None,
    supplied_outcomes: list[ConfirmationOutcome] | None = None,
) -> PublishReport:
    """Confirm the routing URL, then publish.

    Pass *supplied_outcomes* when ``confirm_supplied_routing_url`` already
    ran for this request; the supplied URL is not checked a second time.

    Raises:
        RoutingUrlError: the routing URL guard stopped the publish.
        StreamIOError: prompt streams failed.
        RegistryError / SchemaSourceError: collaborator failures.
    """
    if supplied_outcomes is None:
        outcomes = confirm_supplied_routing_url(request, reader=reader, writer=writer, is_tty=is_tty)
    else:
        outcomes = list(supplied_outcomes)

    if request.routing_url is None:
        fetched = routing_url_source.fetch_routing_url(request.graph_ref, request.subgraph)
        logger.debug("Fetched routing URL %r for %s/%s", fetched, request.graph_ref, request.subgraph)
        outcome = handle_maybe_invalid_routing_url(
            fetched,
            reader=reader,
            writer=writer,
            is_tty=is_tty,
            allow_invalid=request.allow_invalid_routing_url,
        )
        if outcome is not None:
            outcomes.append(outcome)

    paint = describe or (lambda text, _style: text)
    write_message(
        writer,
        f"Publishing SDL to {paint(str(request.graph_ref), 'cyan')} "
        f"(subgraph: {paint(request.subgraph, 'cyan')}) "
        f"using credentials from the {paint(request.profile_name, 'bold yellow')} profile.\n",
    )

    schema = read_schema()
    logger.debug("Publishing \n%s", schema)

    response = publisher.publish_subgraph(
        SubgraphPublishInput(
            graph_ref=request.graph_ref,
            subgraph=request.subgraph,
            url=request.routing_url,
            schema=schema,
            git_context=git_context,
            convert_to_federated_graph=request.convert,
        )
    )
    return PublishReport(
        graph_ref=request.graph_ref,
        subgraph=request.subgraph,
        response=response,
        routing_url_outcomes=outcomes,
    )
