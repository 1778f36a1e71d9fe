# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Read SDL from a file, or from stdin when the source is ``-``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO

from .errors import SchemaSourceError, Suggestion

logger = logging.getLogger(__name__)

STDIN_SOURCE = "-"


def read_schema(source: str, *, stdin: BinaryIO, description: str = "SDL") -> str:
    """Return the schema text from *source*.

    Raises:
        SchemaSourceError: unreadable file, undecodable bytes, or empty schema.
    """
    if source == STDIN_SOURCE:
        origin = "stdin"
        try:
            raw = stdin.read()
        except (OSError, ValueError) as e:
            raise SchemaSourceError(
                f"Could not read {description} from stdin: {e}", suggestion=Suggestion.CHECK_SCHEMA_SOURCE
            ) from e
    else:
        path = Path(source).expanduser()
        origin = str(path)
        if not path.is_file():
            raise SchemaSourceError(
                f"Could not read {description}: `{path}` is not a file.", suggestion=Suggestion.CHECK_SCHEMA_SOURCE
            )
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise SchemaSourceError(
                f"Could not read {description} from `{path}`: {e}", suggestion=Suggestion.CHECK_SCHEMA_SOURCE
            ) from e

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SchemaSourceError(
            f"{description} from {origin} is not valid UTF-8.", suggestion=Suggestion.CHECK_SCHEMA_SOURCE
        ) from e

    if not text.strip():
        raise SchemaSourceError(f"{description} from {origin} is empty.", suggestion=Suggestion.CHECK_SCHEMA_SOURCE)

    logger.debug("Read %d bytes of %s from %s", len(raw), description, origin)
    return text
