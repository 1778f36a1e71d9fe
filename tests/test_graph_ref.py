# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for GraphRef parsing and the publish response model."""

from __future__ import annotations

import pytest

from graphpub import GraphRef, SubgraphPublishResponse
from graphpub.errors import InvalidGraphRefError, Suggestion


class TestGraphRef:
    def test_with_variant(self):
        ref = GraphRef.parse("my-graph@staging")
        assert ref == GraphRef(name="my-graph", variant="staging")
        assert str(ref) == "my-graph@staging"

    def test_default_variant(self):
        assert str(GraphRef.parse("my-graph")) == "my-graph@current"

    def test_variant_with_dots(self):
        assert GraphRef.parse("shop@v1.2-rc").variant == "v1.2-rc"

    @pytest.mark.parametrize(
        "text",
        ["", "@current", "1graph@current", "my graph", "my-graph@", "my-graph@@x", "g@" + "v" * 65, "g" * 65],
    )
    def test_invalid(self, text):
        with pytest.raises(InvalidGraphRefError) as exc_info:
            GraphRef.parse(text)
        assert exc_info.value.suggestion is Suggestion.CHECK_GRAPH_REF


class TestSubgraphPublishResponse:
    def test_build_errors(self):
        assert SubgraphPublishResponse(build_errors=["Field conflict"]).has_build_errors
        assert not SubgraphPublishResponse().has_build_errors
