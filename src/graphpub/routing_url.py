# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Routing URL classifier.

Sorts a candidate routing URL into one of four buckets before a publish:

- ``Unparsable``       : not an absolute URL at all
- ``UnsupportedScheme``: parses, but the router only speaks http/https
- ``LocalHost``        : http/https pointing at localhost or 127.0.0.1
- ``ValidPublic``      : anything else

Leaf module: no I/O, no graphpub imports.  Every call re-parses; nothing
is cached.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import unquote, urlsplit

logger = logging.getLogger(__name__)

ROUTABLE_SCHEMES: tuple[str, ...] = ("http", "https")
LOCAL_HOSTS: tuple[str, ...] = ("localhost", "127.0.0.1")

# RFC 3986 §3.1
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")

# Leading/trailing C0 controls and spaces are dropped before parsing.
_STRIP_CHARS = "".join(chr(c) for c in range(0x21))

# Tabs and newlines anywhere in the text are ignored.
_TAB_OR_NEWLINE = str.maketrans("", "", "\t\n\r")

_AUTHORITY_END_RE = re.compile(r"[/\\?#]")

_FORBIDDEN_HOST_CHARS = frozenset(" #%/:<>?@[\\]^|\x7f") | {chr(c) for c in range(0x20)}

_RADIX_DIGITS = {8: "01234567", 10: "0123456789", 16: "0123456789abcdef"}


# ── Types ────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ParsedUrl:
    """Scheme and host of a successfully parsed absolute URL."""

    scheme: str
    host: str | None


@dataclass(frozen=True, slots=True)
class Unparsable:
    url: str
    reason: str


@dataclass(frozen=True, slots=True)
class UnsupportedScheme:
    url: str
    scheme: str


@dataclass(frozen=True, slots=True)
class LocalHost:
    url: str
    host: str


@dataclass(frozen=True, slots=True)
class ValidPublic:
    url: str


RoutingUrlClassification = Unparsable | UnsupportedScheme | LocalHost | ValidPublic


class ConfirmationOutcome(StrEnum):
    """Terminal result of the publish confirmation for one routing URL."""

    PROCEED = "proceed"
    PROCEED_WITH_WARNING = "proceed-with-warning"
    USER_CONFIRMED = "user-confirmed"
    USER_DECLINED = "user-declined"
    HARD_FAILED = "hard-failed"


# ── Host normalization ───────────────────────────────────────────────


def _parse_ipv4_number(part: str) -> int:
    """Parse one IPv4 part: decimal, ``0x`` hex, or ``0``-prefixed octal."""
    if not part:
        raise ValueError("empty IPv4 part")
    radix = 10
    if part.startswith(("0x", "0X")):
        part, radix = part[2:], 16
    elif len(part) > 1 and part.startswith("0"):
        part, radix = part[1:], 8
    if not part:
        return 0
    if any(ch not in _RADIX_DIGITS[radix] for ch in part.lower()):
        raise ValueError(f"invalid IPv4 part {part!r}")
    return int(part, radix)


def _ends_in_number(host: str) -> bool:
    labels = host.split(".")
    if labels[-1] == "":
        if len(labels) == 1:
            return False
        labels.pop()
    last = labels[-1]
    if last.isascii() and last.isdigit():
        return True
    try:
        _parse_ipv4_number(last)
    except ValueError:
        return False
    return True


def _normalize_ipv4(host: str) -> str:
    """Normalize shorthand IPv4 forms (127.1, 0x7f.0.0.1, 2130706433) to dotted quad.

    Pure arithmetic, no DNS.
    """
    parts = host.split(".")
    if parts[-1] == "":
        parts.pop()
    if len(parts) > 4:
        raise ValueError("too many IPv4 parts")
    numbers = [_parse_ipv4_number(p) for p in parts]
    if any(n > 255 for n in numbers[:-1]):
        raise ValueError("IPv4 part out of range")
    if numbers[-1] >= 256 ** (5 - len(numbers)):
        raise ValueError("IPv4 address out of range")
    address = numbers[-1]
    for i, n in enumerate(numbers[:-1]):
        address += n * 256 ** (3 - i)
    return str(ipaddress.IPv4Address(address))


def _normalize_host(raw: str, *, bracketed: bool) -> str:
    if bracketed:
        # ipaddress.AddressValueError is a ValueError
        return str(ipaddress.IPv6Address(raw))

    host = unquote(raw, errors="strict").lower()
    if not host.isascii():
        try:
            host = host.encode("idna").decode("ascii")
        except UnicodeError as e:
            raise ValueError(f"invalid international host: {e}") from e
    if any(ch in _FORBIDDEN_HOST_CHARS for ch in host):
        raise ValueError("invalid host character")
    if _ends_in_number(host):
        return _normalize_ipv4(host)
    return host


# ── Parsing ──────────────────────────────────────────────────────────


def parse_absolute_url(candidate: str) -> ParsedUrl:
    """Parse *candidate* as an absolute URL.

    For http(s) the host comes back in canonical form: percent-decoded,
    lower-cased, IPv4 shorthand expanded.  Slashes after the scheme are
    optional, so ``http:localhost:8000`` has host ``localhost``.

    Raises:
        ValueError: relative reference, empty http(s) host, bad port,
            malformed IP literal, or forbidden characters in the host.
    """
    text = candidate.strip(_STRIP_CHARS).translate(_TAB_OR_NEWLINE)
    m = _SCHEME_RE.match(text)
    if m is None:
        raise ValueError("relative URL without a base")
    scheme = m.group(1).lower()

    if scheme not in ROUTABLE_SCHEMES:
        parts = urlsplit(text)
        # .port raises ValueError on non-numeric or out-of-range ports
        _ = parts.port
        return ParsedUrl(scheme=scheme, host=parts.hostname or None)

    rest = text[m.end():].lstrip("/\\")
    end = _AUTHORITY_END_RE.search(rest)
    authority = rest[: end.start()] if end else rest

    parts = urlsplit(f"{scheme}://{authority}")
    _ = parts.port
    if not parts.hostname:
        raise ValueError("empty host")
    bracketed = authority.rpartition("@")[2].startswith("[")
    return ParsedUrl(scheme=scheme, host=_normalize_host(parts.hostname, bracketed=bracketed))


def classify_routing_url(candidate: str | None) -> RoutingUrlClassification | None:
    """Classify a routing URL candidate.

    Returns ``None`` for an absent candidate: the caller has to fetch the
    current URL from the registry first and classify that instead.  The
    empty string is a real candidate (it is unparsable).
    """
    if candidate is None:
        return None

    try:
        parsed = parse_absolute_url(candidate)
    except ValueError as e:
        logger.debug("Parse error: %s", e)
        return Unparsable(url=candidate, reason=str(e))

    logger.debug("Parsed URL: scheme=%s host=%s", parsed.scheme, parsed.host)

    if parsed.scheme not in ROUTABLE_SCHEMES:
        return UnsupportedScheme(url=candidate, scheme=parsed.scheme)
    if parsed.host in LOCAL_HOSTS:
        return LocalHost(url=candidate, host=parsed.host)
    return ValidPublic(url=candidate)
