# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for graphpub.schema_source."""

from __future__ import annotations

import io

import pytest

from graphpub.errors import SchemaSourceError, Suggestion
from graphpub.schema_source import read_schema

SDL = "type Query {\n  products: [Product]\n}\n"


class TestReadSchema:
    def test_from_file(self, tmp_path):
        path = tmp_path / "products.graphql"
        path.write_text(SDL, encoding="utf-8")
        assert read_schema(str(path), stdin=io.BytesIO()) == SDL

    def test_from_stdin(self):
        assert read_schema("-", stdin=io.BytesIO(SDL.encode())) == SDL

    def test_bom_stripped(self, tmp_path):
        path = tmp_path / "bom.graphql"
        path.write_bytes(b"\xef\xbb\xbf" + SDL.encode())
        assert read_schema(str(path), stdin=io.BytesIO()) == SDL

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaSourceError, match="is not a file") as exc_info:
            read_schema(str(tmp_path / "missing.graphql"), stdin=io.BytesIO())
        assert exc_info.value.suggestion is Suggestion.CHECK_SCHEMA_SOURCE

    def test_directory(self, tmp_path):
        with pytest.raises(SchemaSourceError):
            read_schema(str(tmp_path), stdin=io.BytesIO())

    def test_empty_stdin(self):
        with pytest.raises(SchemaSourceError, match="SDL from stdin is empty"):
            read_schema("-", stdin=io.BytesIO(b"  \n"))

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "latin1.graphql"
        path.write_bytes(b"type Caf\xe9 { id: ID }")
        with pytest.raises(SchemaSourceError, match="not valid UTF-8"):
            read_schema(str(path), stdin=io.BytesIO())

    def test_closed_stdin(self):
        stdin = io.BytesIO(SDL.encode())
        stdin.close()
        with pytest.raises(SchemaSourceError, match="from stdin"):
            read_schema("-", stdin=stdin)
