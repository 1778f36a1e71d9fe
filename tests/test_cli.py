# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for the graphpub CLI.

Covers:
- subgraph publish end to end with a fake registry
- exit codes (0 / 1 / 130) and error rendering (text and JSON)
- TTY detection feeding the confirmation prompt
"""

from __future__ import annotations

import io
import json
import logging
import sys

import pytest
import structlog

import graphpub.cli as cli
from graphpub import SubgraphPublishResponse
from graphpub.git_context import GitContext

SDL = "type Query { products: [String] }\n"


class _FakeRegistryClient:
    """Replaces RegistryClient; ``from_profile`` hands out one shared instance."""

    routing_url = "https://products.example.com"
    response = SubgraphPublishResponse(subgraph_was_updated=True, supergraph_was_updated=True)
    instance: _FakeRegistryClient | None = None

    def __init__(self, profile):
        self.profile = profile
        self.calls: list[str] = []
        self.published = []

    @classmethod
    def from_profile(cls, profile):
        cls.instance = cls(profile)
        return cls.instance

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def fetch_routing_url(self, graph_ref, subgraph):
        self.calls.append("fetch")
        return self.routing_url

    def publish_subgraph(self, publish_input):
        self.calls.append("publish")
        self.published.append(publish_input)
        return self.response


@pytest.fixture(autouse=True)
def _cli_env(monkeypatch):
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level

    _FakeRegistryClient.instance = None
    monkeypatch.setattr(cli, "RegistryClient", _FakeRegistryClient)
    monkeypatch.setattr(cli.GitContext, "from_env", classmethod(lambda klass, *a, **kw: GitContext(commit="abc")))
    monkeypatch.setenv("GRAPHPUB_KEY", "service:shop:key")
    yield

    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "products.graphql"
    path.write_text(SDL)
    return str(path)


def _set_stdin(monkeypatch, data: bytes = b"") -> None:
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))


def _main(*argv: str) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(list(argv))
    return exc_info.value.code


class TestSubgraphPublish:
    def test_success(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main(
            "subgraph", "publish", "shop@current", "--name", "products", "--schema", schema_file,
            "--routing-url", "https://products.example.com",
        )  # fmt: skip
        captured = capsys.readouterr()

        assert code == 0
        assert "Publishing SDL to shop@current (subgraph: products)" in captured.err
        assert "The 'products' subgraph in 'shop@current' was updated" in captured.out
        published = _FakeRegistryClient.instance.published[0]
        assert published.schema == SDL
        assert published.url == "https://products.example.com"

    def test_invalid_url_without_tty(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch, b"y")
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "invalid-url",
        )  # fmt: skip
        captured = capsys.readouterr()

        assert code == 1
        assert "error: `invalid-url` is not a valid routing URL." in captured.err
        assert "--allow-invalid-routing-url" in captured.err
        assert "[y/N]" not in captured.err
        assert _FakeRegistryClient.instance is None

    def test_invalid_url_reported_before_missing_credentials(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        monkeypatch.delenv("GRAPHPUB_KEY")
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "invalid-url",
        )  # fmt: skip
        err = capsys.readouterr().err

        assert code == 1
        assert "error: `invalid-url` is not a valid routing URL." in err
        assert "No API key found" not in err
        assert _FakeRegistryClient.instance is None

    def test_tty_prompt_shown_once(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch, b"y")
        monkeypatch.setattr(cli, "is_interactive", lambda stdin, stderr: True)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "http://127.1:4000",
        )  # fmt: skip
        err = capsys.readouterr().err
        assert code == 0
        assert err.count("[y/N]") == 1
        assert "The host `127.0.0.1` is not routable" in err

    def test_allow_invalid_routing_url(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "invalid-url", "--allow-invalid-routing-url",
        )  # fmt: skip
        assert code == 0
        assert _FakeRegistryClient.instance.published[0].url == "invalid-url"

    def test_localhost_without_tty_warns(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "http://localhost:8000",
        )  # fmt: skip
        assert code == 0
        assert "WARN: The host `localhost` is not routable" in capsys.readouterr().err

    def test_tty_prompt_confirmed(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch, b"y")
        monkeypatch.setattr(cli, "is_interactive", lambda stdin, stderr: True)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "ftp://invalid-scheme",
        )  # fmt: skip
        captured = capsys.readouterr()
        assert code == 0
        assert "The `ftp` protocol is not supported by the router." in captured.err
        assert "[y/N] " in captured.err

    def test_tty_prompt_declined(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch, b"n")
        monkeypatch.setattr(cli, "is_interactive", lambda stdin, stderr: True)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "invalid-url",
        )  # fmt: skip
        assert code == 1
        assert "error: You cancelled a subgraph publish due to an invalid routing url." in capsys.readouterr().err
        assert _FakeRegistryClient.instance is None

    def test_fetches_routing_url_when_absent(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main("subgraph", "publish", "shop", "--name", "products", "--schema", schema_file)
        assert code == 0
        assert _FakeRegistryClient.instance.calls == ["fetch", "publish"]
        assert _FakeRegistryClient.instance.published[0].url is None

    def test_schema_from_stdin(self, monkeypatch, capsys):
        _set_stdin(monkeypatch, SDL.encode())
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", "-",
            "--routing-url", "https://products.example.com",
        )  # fmt: skip
        assert code == 0
        assert _FakeRegistryClient.instance.published[0].schema == SDL

    def test_json_report(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "https://products.example.com", "--format", "json",
        )  # fmt: skip
        assert code == 0
        data = json.loads(capsys.readouterr().out)["data"]
        assert data["graph_ref"] == "shop@current"
        assert data["success"] is True

    def test_json_error(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "invalid-url", "--format", "json",
        )  # fmt: skip
        assert code == 1
        error = json.loads(capsys.readouterr().out)["error"]
        assert error["type"] == "invalid-routing-url"
        assert "--allow-invalid-routing-url" in error["suggestion"]

    def test_build_errors_exit_1(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        monkeypatch.setattr(
            _FakeRegistryClient,
            "response",
            SubgraphPublishResponse(build_errors=["Field conflict on Product.id"]),
        )
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "https://products.example.com",
        )  # fmt: skip
        captured = capsys.readouterr()
        assert code == 1
        assert "  - Field conflict on Product.id" in captured.out
        assert "error: Encountered 1 composition error(s)" in captured.err

    def test_missing_api_key(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        monkeypatch.delenv("GRAPHPUB_KEY")
        code = _main(
            "subgraph", "publish", "shop", "--name", "products", "--schema", schema_file,
            "--routing-url", "https://products.example.com",
        )  # fmt: skip
        assert code == 1
        assert "No API key found for the `default` profile." in capsys.readouterr().err

    def test_invalid_graph_ref(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)
        code = _main("subgraph", "publish", "not a ref", "--name", "products", "--schema", schema_file)
        assert code == 1
        assert "is not a valid graph ref" in capsys.readouterr().err

    def test_keyboard_interrupt(self, monkeypatch, capsys, schema_file):
        _set_stdin(monkeypatch)

        def _interrupt(args):
            raise KeyboardInterrupt

        monkeypatch.setattr(cli, "cmd_subgraph_publish", _interrupt)
        code = _main("subgraph", "publish", "shop", "--name", "products", "--schema", schema_file)
        assert code == 130
        assert "Interrupted." in capsys.readouterr().err


class TestParser:
    def test_requires_name_and_schema(self, capsys):
        assert _main("subgraph", "publish", "shop") == 2

    def test_help_mentions_override(self, capsys):
        assert _main("subgraph", "publish", "--help") == 0
        assert "--allow-invalid-routing-url" in capsys.readouterr().out

    def test_version(self, capsys):
        assert _main("--version") == 0
        assert "graphpub" in capsys.readouterr().out
