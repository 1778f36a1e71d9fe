# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""VCS metadata sent alongside a publish.

Each field is best-effort: outside a git checkout (or without git on PATH)
it is ``None``.  CI systems can set the ``GRAPHPUB_VCS_*`` variables instead.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 5.0

_ENV_OVERRIDES = {
    "branch": "GRAPHPUB_VCS_BRANCH",
    "commit": "GRAPHPUB_VCS_COMMIT",
    "author": "GRAPHPUB_VCS_AUTHOR",
    "remote_url": "GRAPHPUB_VCS_REMOTE_URL",
}

_GIT_COMMANDS = {
    "branch": ["rev-parse", "--abbrev-ref", "HEAD"],
    "commit": ["rev-parse", "HEAD"],
    "author": ["log", "-1", "--format=%an <%ae>"],
    "remote_url": ["remote", "get-url", "origin"],
}

_CREDENTIALS_RE = re.compile(r"^(?P<scheme>[a-z][a-z0-9+.-]*://)[^@/]+@", re.IGNORECASE)


def strip_credentials(url: str) -> str:
    """Drop ``user:token@`` from an http(s)/ssh remote URL."""
    return _CREDENTIALS_RE.sub(r"\g<scheme>", url)


def _run_git(args: list[str], cwd: Path | None) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    if result.returncode != 0:
        return None
    value = result.stdout.strip()
    # detached HEAD
    if value == "HEAD":
        return None
    return value or None


@dataclass(frozen=True)
class GitContext:
    branch: str | None = None
    commit: str | None = None
    author: str | None = None
    remote_url: str | None = None

    @classmethod
    def from_env(cls, cwd: Path | None = None, *, env: Mapping[str, str] | None = None) -> GitContext:
        env = os.environ if env is None else env
        values: dict[str, str | None] = {}
        for field_name, var in _ENV_OVERRIDES.items():
            values[field_name] = env.get(var) or _run_git(_GIT_COMMANDS[field_name], cwd)
        if values["remote_url"]:
            values["remote_url"] = strip_credentials(values["remote_url"])
        return cls(**values)

    def to_variables(self) -> dict[str, Any]:
        """GraphQL ``GitContextInput`` variables."""
        d = asdict(self)
        return {"branch": d["branch"], "commit": d["commit"], "committer": d["author"], "remoteUrl": d["remote_url"]}
