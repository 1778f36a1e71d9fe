# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""graphpub: publish subgraph schemas to a graph registry.

Before anything is sent, the routing URL (where the router will reach the
running subgraph) is checked:
- unparsable or non-http(s) URLs prompt in a terminal and fail in CI
- localhost / 127.0.0.1 prompts in a terminal and warns in CI
- public http(s) URLs pass silently
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import InvalidGraphRefError, Suggestion
from .git_context import GitContext

__version__ = "0.4.0"

DEFAULT_VARIANT = "current"

_GRAPH_REF_RE = re.compile(r"^(?P<graph>[A-Za-z][A-Za-z0-9_-]{0,63})(?:@(?P<variant>[A-Za-z0-9][A-Za-z0-9_.-]{0,63}))?$")


@dataclass(frozen=True)
class GraphRef:
    """``graph@variant`` reference to a graph in the registry."""

    name: str
    variant: str = DEFAULT_VARIANT

    @classmethod
    def parse(cls, text: str) -> GraphRef:
        m = _GRAPH_REF_RE.match(text.strip())
        if m is None:
            raise InvalidGraphRefError(
                f"`{text}` is not a valid graph ref.",
                suggestion=Suggestion.CHECK_GRAPH_REF,
            )
        return cls(name=m.group("graph"), variant=m.group("variant") or DEFAULT_VARIANT)

    def __str__(self) -> str:
        return f"{self.name}@{self.variant}"


@dataclass
class SubgraphPublishInput:
    """Everything the registry needs for one publish."""

    graph_ref: GraphRef
    subgraph: str
    url: str | None  # None keeps the routing URL already in the registry
    schema: str
    git_context: GitContext = field(default_factory=GitContext)
    convert_to_federated_graph: bool = False


@dataclass
class SubgraphPublishResponse:
    """Registry answer to a publish."""

    api_schema_hash: str | None = None
    supergraph_was_updated: bool = False
    subgraph_was_created: bool = False
    subgraph_was_updated: bool = True
    launch_url: str | None = None
    build_errors: list[str] = field(default_factory=list)

    @property
    def has_build_errors(self) -> bool:
        return bool(self.build_errors)
