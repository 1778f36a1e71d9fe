# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""graphpub exception hierarchy.

All graphpub errors inherit from GraphPubError, allowing the CLI to catch
the base class for any failure or specific subclasses for targeted handling.
Errors that have a known fix carry a ``Suggestion``.
"""

from __future__ import annotations

from enum import StrEnum

from .routing_url import ConfirmationOutcome


class Suggestion(StrEnum):
    """Remediation hints attached to errors."""

    ALLOW_INVALID_ROUTING_URL_OR_SPECIFY_VALID_URL = "allow-invalid-routing-url-or-specify-valid-url"
    CONFIGURE_PROFILE = "configure-profile"
    CHECK_GRAPH_REF = "check-graph-ref"
    CHECK_SCHEMA_SOURCE = "check-schema-source"
    CHECK_API_KEY = "check-api-key"
    FIX_COMPOSITION_ERRORS = "fix-composition-errors"
    CONVERT_TO_FEDERATED_GRAPH = "convert-to-federated-graph"

    @property
    def text(self) -> str:
        return _SUGGESTION_TEXT[self]


_SUGGESTION_TEXT: dict[Suggestion, str] = {
    Suggestion.ALLOW_INVALID_ROUTING_URL_OR_SPECIFY_VALID_URL: (
        "Try publishing again with `--allow-invalid-routing-url`, "
        "or supply a valid URL with `--routing-url`."
    ),
    Suggestion.CONFIGURE_PROFILE: (
        "Add the profile to profiles.yaml, or set the GRAPHPUB_KEY environment variable."
    ),
    Suggestion.CHECK_GRAPH_REF: "Graph refs look like `my-graph@current`.",
    Suggestion.CHECK_SCHEMA_SOURCE: "Pass a readable file path to `--schema`, or `-` to read from stdin.",
    Suggestion.CHECK_API_KEY: "Check that the API key for this profile is valid and has publish access.",
    Suggestion.FIX_COMPOSITION_ERRORS: "Fix the composition errors above and publish again.",
    Suggestion.CONVERT_TO_FEDERATED_GRAPH: (
        "Pass `--convert` to convert this graph into a federated graph. This cannot be undone."
    ),
}


class GraphPubError(Exception):
    """Base exception for all graphpub errors."""

    def __init__(self, message: str, *, suggestion: Suggestion | None = None) -> None:
        super().__init__(message)
        self.suggestion = suggestion


class RoutingUrlError(GraphPubError):
    """The routing URL guard stopped the publish."""

    outcome = ConfirmationOutcome.HARD_FAILED


class UnparsableUrlError(RoutingUrlError):
    """Routing URL could not be parsed as an absolute URL."""


class UnsupportedSchemeError(RoutingUrlError):
    """Routing URL uses a scheme the router cannot reach."""

    def __init__(self, message: str, *, scheme: str, suggestion: Suggestion | None = None) -> None:
        super().__init__(message, suggestion=suggestion)
        self.scheme = scheme


class UserCancelledError(RoutingUrlError):
    """User answered anything but ``y`` at the publish prompt."""

    outcome = ConfirmationOutcome.USER_DECLINED


class StreamIOError(GraphPubError):
    """Reading or writing the prompt streams failed."""


class ConfigError(GraphPubError):
    """Profile configuration is missing or malformed."""


class InvalidGraphRefError(GraphPubError):
    """Graph reference is not of the form ``graph@variant``."""


class SchemaSourceError(GraphPubError):
    """Schema text could not be read."""


class RegistryError(GraphPubError):
    """Graph registry request failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        suggestion: Suggestion | None = None,
    ) -> None:
        super().__init__(message, suggestion=suggestion)
        self.status_code = status_code


class AuthenticationError(RegistryError):
    """Registry rejected the API key."""


class BuildErrorsError(GraphPubError):
    """Publish succeeded but the supergraph failed to compose."""

    def __init__(self, message: str, *, build_errors: list[str]) -> None:
        super().__init__(message, suggestion=Suggestion.FIX_COMPOSITION_ERRORS)
        self.build_errors = build_errors
