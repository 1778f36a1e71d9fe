# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Credential profiles.

Profiles live in a YAML file::

    # ~/.config/graphpub/profiles.yaml
    profiles:
      default:
        api_key: service:my-graph:abc123
      staging:
        api_key: service:my-graph:def456
        registry_url: https://registry.staging.example.com/graphql

Environment overrides:
    GRAPHPUB_CONFIG_HOME   directory holding profiles.yaml
    GRAPHPUB_KEY           API key, wins over any profile
    GRAPHPUB_REGISTRY_URL  registry endpoint, wins over any profile
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigError, Suggestion

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
DEFAULT_REGISTRY_URL = "https://api.graphpub.dev/graphql"
PROFILES_FILENAME = "profiles.yaml"

ENV_CONFIG_HOME = "GRAPHPUB_CONFIG_HOME"
ENV_KEY = "GRAPHPUB_KEY"
ENV_REGISTRY_URL = "GRAPHPUB_REGISTRY_URL"


class ProfileEntry(BaseModel):
    """One profile as stored on disk."""

    api_key: str | None = Field(None, description="Registry API key")
    registry_url: str | None = Field(None, description="GraphQL endpoint of the registry")


class ProfilesFile(BaseModel):
    profiles: dict[str, ProfileEntry] = Field(default_factory=dict)


class Profile(BaseModel):
    """Resolved credentials, ready for the registry client."""

    name: str
    api_key: str = Field(repr=False)
    registry_url: str = DEFAULT_REGISTRY_URL


def config_home(env: Mapping[str, str] | None = None) -> Path:
    env = os.environ if env is None else env
    override = env.get(ENV_CONFIG_HOME)
    if override:
        return Path(override).expanduser()
    xdg = env.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / "graphpub"


def load_profiles(path: Path) -> ProfilesFile:
    """Load and validate *path*.  A missing file means no profiles."""
    if not path.exists():
        logger.debug("No profiles file at %s", path)
        return ProfilesFile()
    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {path}: {e}", suggestion=Suggestion.CONFIGURE_PROFILE) from e
    try:
        return ProfilesFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            f"{path} is not a valid profiles file: {e.error_count()} validation error(s)",
            suggestion=Suggestion.CONFIGURE_PROFILE,
        ) from e


def resolve_profile(name: str = DEFAULT_PROFILE, *, env: Mapping[str, str] | None = None) -> Profile:
    """Resolve credentials for profile *name*, applying environment overrides.

    Raises:
        ConfigError: no API key available from either the profile or ``GRAPHPUB_KEY``.
    """
    env = os.environ if env is None else env
    profiles = load_profiles(config_home(env) / PROFILES_FILENAME)
    entry = profiles.profiles.get(name, ProfileEntry())

    api_key = env.get(ENV_KEY) or entry.api_key
    if not api_key:
        raise ConfigError(
            f"No API key found for the `{name}` profile.",
            suggestion=Suggestion.CONFIGURE_PROFILE,
        )
    if env.get(ENV_KEY):
        logger.debug("Using API key from %s", ENV_KEY)

    registry_url = env.get(ENV_REGISTRY_URL) or entry.registry_url or DEFAULT_REGISTRY_URL
    return Profile(name=name, api_key=api_key, registry_url=registry_url)
