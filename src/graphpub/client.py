# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Synchronous GraphQL client for the graph registry.

Implements the two remote operations the publish command needs:
fetching a subgraph's current routing URL, and publishing a subgraph
schema.  Every failure (transport, HTTP status, GraphQL ``errors``) is
raised as ``RegistryError``; rejected credentials as ``AuthenticationError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from . import GraphRef, SubgraphPublishInput, SubgraphPublishResponse, __version__
from .config import Profile
from .errors import AuthenticationError, RegistryError, Suggestion

logger = logging.getLogger(__name__)

CLIENT_NAME = "graphpub"
DEFAULT_TIMEOUT_SECONDS = 30.0

ROUTING_URL_QUERY = """
query SubgraphRoutingUrl($graphRef: ID!, $subgraphName: ID!) {
  variant(ref: $graphRef) {
    __typename
    ... on GraphVariant {
      subgraph(name: $subgraphName) {
        url
      }
    }
  }
}
"""

IS_FEDERATED_QUERY = """
query IsFederatedGraph($graphId: ID!, $variant: String!) {
  graph(id: $graphId) {
    variant(name: $variant) {
      isFederated
    }
  }
}
"""

CONVERT_MUTATION = """
mutation ConvertToFederatedGraph($graphId: ID!, $variant: String!) {
  graph(id: $graphId) {
    updateVariantIsFederated(name: $variant, isFederated: true) {
      isFederated
    }
  }
}
"""

PUBLISH_MUTATION = """
mutation SubgraphPublish(
  $graphId: ID!
  $variant: String!
  $subgraph: String!
  $url: String
  $revision: String!
  $schema: PartialSchemaInput!
  $gitContext: GitContextInput!
) {
  graph(id: $graphId) {
    publishSubgraph(
      graphVariant: $variant
      name: $subgraph
      url: $url
      revision: $revision
      activePartialSchema: $schema
      gitContext: $gitContext
    ) {
      compositionConfig {
        schemaHash
      }
      supergraphWasUpdated
      wasCreated
      wasUpdated
      launchUrl
      errors {
        message
      }
    }
  }
}
"""


class RegistryClient:
    """Authenticated registry client.  Use as a context manager."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "x-api-key": api_key,
                "apollographql-client-name": CLIENT_NAME,
                "apollographql-client-version": __version__,
                "user-agent": f"{CLIENT_NAME}/{__version__}",
            },
        )

    @classmethod
    def from_profile(cls, profile: Profile, **kwargs: Any) -> RegistryClient:
        return cls(profile.registry_url, profile.api_key, **kwargs)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Transport --

    def _post(self, query: str, variables: dict[str, Any], operation: str) -> dict[str, Any]:
        logger.debug("POST %s (%s)", self.endpoint, operation)
        try:
            response = self._http.post(
                self.endpoint,
                json={"query": query, "variables": variables, "operationName": operation},
            )
        except httpx.HTTPError as e:
            raise RegistryError(f"Could not reach the registry at {self.endpoint}: {e}") from e

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"The registry rejected the API key (HTTP {response.status_code}).",
                status_code=response.status_code,
                suggestion=Suggestion.CHECK_API_KEY,
            )
        if response.status_code >= 400:
            raise RegistryError(
                f"Registry request {operation} failed with HTTP {response.status_code}.",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RegistryError(f"Registry returned invalid JSON for {operation}.") from e

        errors = body.get("errors") or []
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise RegistryError(f"Registry request {operation} failed: {messages}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise RegistryError(f"Registry returned no data for {operation}.")
        return data

    # -- Operations --

    def fetch_routing_url(self, graph_ref: GraphRef, subgraph: str) -> str:
        """Current routing URL of *subgraph*; empty string when none is set."""
        data = self._post(
            ROUTING_URL_QUERY,
            {"graphRef": str(graph_ref), "subgraphName": subgraph},
            "SubgraphRoutingUrl",
        )
        variant = data.get("variant")
        if not variant or variant.get("__typename") != "GraphVariant":
            raise RegistryError(
                f"Could not find graph variant `{graph_ref}`.",
                suggestion=Suggestion.CHECK_GRAPH_REF,
            )
        found = variant.get("subgraph")
        if found is None:
            raise RegistryError(
                f"Could not find subgraph `{subgraph}` in `{graph_ref}`. "
                "Pass `--routing-url` to create it.",
            )
        return found.get("url") or ""

    def ensure_federated(self, graph_ref: GraphRef, *, convert: bool) -> None:
        """Fail (or convert, with *convert*) when the variant is not federated."""
        data = self._post(
            IS_FEDERATED_QUERY,
            {"graphId": graph_ref.name, "variant": graph_ref.variant},
            "IsFederatedGraph",
        )
        variant = (data.get("graph") or {}).get("variant")
        # New variants are created federated by the publish itself.
        if variant is None or variant.get("isFederated"):
            return
        if not convert:
            raise RegistryError(
                f"`{graph_ref}` is a non-federated graph.",
                suggestion=Suggestion.CONVERT_TO_FEDERATED_GRAPH,
            )
        logger.info("Converting %s to a federated graph", graph_ref)
        self._post(
            CONVERT_MUTATION,
            {"graphId": graph_ref.name, "variant": graph_ref.variant},
            "ConvertToFederatedGraph",
        )

    def publish_subgraph(self, publish_input: SubgraphPublishInput) -> SubgraphPublishResponse:
        graph_ref = publish_input.graph_ref
        self.ensure_federated(graph_ref, convert=publish_input.convert_to_federated_graph)

        data = self._post(
            PUBLISH_MUTATION,
            {
                "graphId": graph_ref.name,
                "variant": graph_ref.variant,
                "subgraph": publish_input.subgraph,
                "url": publish_input.url,
                "revision": publish_input.git_context.commit or "",
                "schema": {"sdl": publish_input.schema},
                "gitContext": publish_input.git_context.to_variables(),
            },
            "SubgraphPublish",
        )
        graph = data.get("graph")
        if graph is None:
            raise RegistryError(f"Could not find graph `{graph_ref.name}`.", suggestion=Suggestion.CHECK_GRAPH_REF)
        result = graph.get("publishSubgraph") or {}
        composition = result.get("compositionConfig") or {}
        return SubgraphPublishResponse(
            api_schema_hash=composition.get("schemaHash"),
            supergraph_was_updated=bool(result.get("supergraphWasUpdated")),
            subgraph_was_created=bool(result.get("wasCreated")),
            subgraph_was_updated=bool(result.get("wasUpdated", True)),
            launch_url=result.get("launchUrl"),
            build_errors=[e.get("message", "") for e in result.get("errors") or [] if e],
        )
