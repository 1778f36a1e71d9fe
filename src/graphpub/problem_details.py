# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Structured error reports for the CLI.

Maps graphpub exceptions to a ``ProblemDetail`` so every failure reaches
the user in one shape, as text (``to_cli_text``) or JSON (``to_json``).

Key public API:

- ``ProblemType``   : StrEnum error taxonomy.
- ``ProblemDetail`` : frozen dataclass.
- ``sanitize_detail()``: scrub API keys and credentials from messages.
- ``from_exception()`` : build a ``ProblemDetail`` from any exception.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .errors import (
    AuthenticationError,
    BuildErrorsError,
    ConfigError,
    GraphPubError,
    InvalidGraphRefError,
    RegistryError,
    RoutingUrlError,
    SchemaSourceError,
    StreamIOError,
    Suggestion,
    UserCancelledError,
)

MAX_DETAIL_LENGTH = 500

# ── ProblemType taxonomy ─────────────────────────────────────────────


class ProblemType(StrEnum):
    INVALID_ROUTING_URL = "invalid-routing-url"
    PUBLISH_CANCELLED = "publish-cancelled"
    STREAM_IO = "stream-io"
    CONFIG_ERROR = "config-error"
    INVALID_GRAPH_REF = "invalid-graph-ref"
    SCHEMA_SOURCE = "schema-source"
    REGISTRY_ERROR = "registry-error"
    AUTH_REQUIRED = "auth-required"
    BUILD_ERRORS = "build-errors"
    INTERNAL = "internal"


_TITLES: dict[ProblemType, str] = {
    ProblemType.INVALID_ROUTING_URL: "Invalid Routing URL",
    ProblemType.PUBLISH_CANCELLED: "Publish Cancelled",
    ProblemType.STREAM_IO: "Terminal I/O Failed",
    ProblemType.CONFIG_ERROR: "Configuration Error",
    ProblemType.INVALID_GRAPH_REF: "Invalid Graph Ref",
    ProblemType.SCHEMA_SOURCE: "Schema Unreadable",
    ProblemType.REGISTRY_ERROR: "Registry Request Failed",
    ProblemType.AUTH_REQUIRED: "Authentication Failed",
    ProblemType.BUILD_ERRORS: "Composition Failed",
    ProblemType.INTERNAL: "Unexpected Error",
}

# Most specific first: isinstance() order matters.
_EXCEPTION_TYPES: tuple[tuple[type[Exception], ProblemType], ...] = (
    (UserCancelledError, ProblemType.PUBLISH_CANCELLED),
    (RoutingUrlError, ProblemType.INVALID_ROUTING_URL),
    (StreamIOError, ProblemType.STREAM_IO),
    (ConfigError, ProblemType.CONFIG_ERROR),
    (InvalidGraphRefError, ProblemType.INVALID_GRAPH_REF),
    (SchemaSourceError, ProblemType.SCHEMA_SOURCE),
    (AuthenticationError, ProblemType.AUTH_REQUIRED),
    (RegistryError, ProblemType.REGISTRY_ERROR),
    (BuildErrorsError, ProblemType.BUILD_ERRORS),
)

# ── Secret sanitization ──────────────────────────────────────────────

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?:service|user):[\w.@-]+:[A-Za-z0-9_-]{8,}"), "<redacted>"),
    (re.compile(r"x-api-key\s*[=:]\s*\S+", re.IGNORECASE), "x-api-key: <redacted>"),
    (re.compile(r"Bearer\s+\S+"), "Bearer <redacted>"),
    (re.compile(r"://[^@\s/]+@"), "://<redacted>@"),
    (
        re.compile(r"(?:API_KEY|GRAPHPUB_KEY|SECRET|TOKEN|PASSWORD)\s*[=:]\s*\S+", re.IGNORECASE),
        "<redacted>",
    ),
]


def sanitize_detail(text: str) -> str:
    """Scrub API keys and URL credentials from *text*, then truncate."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    if len(text) > MAX_DETAIL_LENGTH:
        text = text[:MAX_DETAIL_LENGTH] + "..."
    return text


# ── ProblemDetail ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """Immutable, user-facing description of a failure."""

    type: ProblemType = ProblemType.INTERNAL
    title: str = ""
    detail: str = ""
    suggestion: Suggestion | None = None
    exit_code: int = 1

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": str(self.type), "title": self.title, "detail": self.detail}
        if self.suggestion is not None:
            d["suggestion"] = self.suggestion.text
        return d

    def to_json(self) -> str:
        return json.dumps({"error": self.to_dict()}, ensure_ascii=False)

    def to_cli_text(self) -> str:
        """Human-friendly CLI error message.

        Format::

            error: <detail>
                    <suggestion>
        """
        lines = [f"error: {self.detail}"]
        if self.suggestion is not None:
            lines.append(f"        {self.suggestion.text}")
        return "\n".join(lines)


def from_exception(exc: BaseException) -> ProblemDetail:
    """Build a ProblemDetail from an exception.

    Known graphpub errors keep their message and suggestion.  Anything else
    is reported as ``internal`` with its sanitized message.
    """
    problem_type = ProblemType.INTERNAL
    for exc_type, ptype in _EXCEPTION_TYPES:
        if isinstance(exc, exc_type):
            problem_type = ptype
            break

    suggestion = exc.suggestion if isinstance(exc, GraphPubError) else None
    if suggestion is None and problem_type is ProblemType.AUTH_REQUIRED:
        suggestion = Suggestion.CHECK_API_KEY

    return ProblemDetail(
        type=problem_type,
        title=_TITLES[problem_type],
        detail=sanitize_detail(str(exc)),
        suggestion=suggestion,
    )
