# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Publish confirmation for questionable routing URLs.

Decision table (classification × TTY):

    Unparsable / UnsupportedScheme   TTY: prompt     no TTY: hard error + suggestion
    LocalHost                        TTY: prompt     no TTY: WARN line, proceed
    ValidPublic                      proceed silently

The TTY flag and both streams are parameters so tests can drive the whole
protocol with ``io.BytesIO`` / ``io.StringIO``.  The prompt reads exactly
one byte: ``y`` or ``Y`` confirms, anything else (including end of input)
cancels.  There is no re-prompt.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, TextIO

from .errors import (
    StreamIOError,
    Suggestion,
    UnparsableUrlError,
    UnsupportedSchemeError,
    UserCancelledError,
)
from .routing_url import (
    ConfirmationOutcome,
    LocalHost,
    RoutingUrlClassification,
    Unparsable,
    UnsupportedScheme,
    ValidPublic,
    classify_routing_url,
)

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "You cancelled a subgraph publish due to an invalid routing url."
WARNING_PREFIX = "WARN:"

_UNREACHABLE = "Continuing the publish will make this subgraph unreachable by your supergraph."
_QUESTION = "Would you still like to publish?"


# ── Messages ─────────────────────────────────────────────────────────


def unparsable_reason(url: str) -> str:
    return f"`{url}` is not a valid routing URL."


def unsupported_scheme_reason(url: str, scheme: str) -> str:
    return (
        f"`{url}` is not a valid routing URL. The `{scheme}` protocol is not supported by the router. "
        "Valid protocols are `http` and `https`."
    )


def local_host_reason(host: str) -> str:
    return (
        f"The host `{host}` is not routable via the public internet. "
        "Continuing the publish will make this subgraph reachable in local environments only."
    )


# ── Stream helpers ───────────────────────────────────────────────────


def write_message(writer: TextIO, text: str) -> None:
    """Write and flush *text*; stream failures become ``StreamIOError``."""
    try:
        writer.write(text)
        writer.flush()
    except (OSError, ValueError) as e:
        raise StreamIOError(f"Could not write to the output stream: {e}") from e


def _read_byte(reader: BinaryIO) -> bytes:
    try:
        return reader.read(1) or b""
    except (OSError, ValueError) as e:
        raise StreamIOError(f"Could not read from the input stream: {e}") from e


# ── Protocol ─────────────────────────────────────────────────────────


def prompt_for_publish(message: str, reader: BinaryIO, writer: TextIO) -> ConfirmationOutcome:
    """Ask ``<message> [y/N] `` and read a single byte.

    Returns ``USER_CONFIRMED`` for ``y``/``Y``.

    Raises:
        UserCancelledError: any other byte, or no byte at all.
        StreamIOError: the streams themselves failed.
    """
    write_message(writer, f"{message} [y/N] ")
    response = _read_byte(reader)
    if not response:
        logger.debug("No input available at publish prompt")
    if response.lower() == b"y":
        return ConfirmationOutcome.USER_CONFIRMED
    raise UserCancelledError(CANCELLED_MESSAGE)


def warn_about_local_url(reason: str, writer: TextIO) -> None:
    write_message(writer, f"{WARNING_PREFIX} {reason}\n")


def confirm_routing_url(
    classification: RoutingUrlClassification,
    *,
    is_tty: bool,
    reader: BinaryIO,
    writer: TextIO,
) -> ConfirmationOutcome:
    """Run the confirmation protocol for an already-classified URL.

    ``HARD_FAILED`` and ``USER_DECLINED`` surface as ``RoutingUrlError``
    subclasses (their ``outcome`` attribute names which one); the other
    three outcomes are returned.
    """
    match classification:
        case ValidPublic():
            return ConfirmationOutcome.PROCEED

        case LocalHost(host=host):
            reason = local_host_reason(host)
            if is_tty:
                return prompt_for_publish(f"{reason} {_QUESTION}", reader, writer)
            warn_about_local_url(reason, writer)
            return ConfirmationOutcome.PROCEED_WITH_WARNING

        case UnsupportedScheme(url=url, scheme=scheme):
            reason = unsupported_scheme_reason(url, scheme)
            if is_tty:
                return prompt_for_publish(f"{reason} {_UNREACHABLE} {_QUESTION}", reader, writer)
            raise UnsupportedSchemeError(
                reason,
                scheme=scheme,
                suggestion=Suggestion.ALLOW_INVALID_ROUTING_URL_OR_SPECIFY_VALID_URL,
            )

        case Unparsable(url=url):
            reason = unparsable_reason(url)
            if is_tty:
                return prompt_for_publish(f"{reason} {_UNREACHABLE} {_QUESTION}", reader, writer)
            raise UnparsableUrlError(
                reason,
                suggestion=Suggestion.ALLOW_INVALID_ROUTING_URL_OR_SPECIFY_VALID_URL,
            )

    raise TypeError(f"Unknown routing URL classification: {classification!r}")


def handle_maybe_invalid_routing_url(
    routing_url: str | None,
    *,
    reader: BinaryIO,
    writer: TextIO,
    is_tty: bool,
    allow_invalid: bool = False,
) -> ConfirmationOutcome | None:
    """Classify *routing_url* and confirm it.

    Returns ``None`` when there is nothing to validate yet (no URL given).
    ``allow_invalid`` skips classification and interaction entirely.
    """
    if allow_invalid:
        return ConfirmationOutcome.PROCEED

    classification = classify_routing_url(routing_url)
    if classification is None:
        return None

    outcome = confirm_routing_url(classification, is_tty=is_tty, reader=reader, writer=writer)
    logger.debug("Routing URL %r: %s", routing_url, outcome)
    return outcome
