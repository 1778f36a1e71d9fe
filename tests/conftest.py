# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import graphpub  # noqa: F401
except ImportError:
    raise ImportError("graphpub is not installed. Run: pip install -e '.[dev]'") from None

import io

import pytest

_ENV_VARS = (
    "GRAPHPUB_KEY",
    "GRAPHPUB_REGISTRY_URL",
    "GRAPHPUB_VCS_BRANCH",
    "GRAPHPUB_VCS_COMMIT",
    "GRAPHPUB_VCS_AUTHOR",
    "GRAPHPUB_VCS_REMOTE_URL",
    "XDG_CONFIG_HOME",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the developer's real profiles and VCS overrides out of tests."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("GRAPHPUB_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def output():
    """In-memory text stream standing in for stderr."""
    return io.StringIO()
