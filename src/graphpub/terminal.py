# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Terminal capabilities and styled CLI output.

The TTY context is probed here, once, by the caller that owns the real
process streams.  The confirmation protocol never probes it itself.
"""

from __future__ import annotations

import os
from typing import IO

from rich.console import Console


def _isatty(stream: IO | None) -> bool:
    if stream is None:
        return False
    try:
        return stream.isatty()
    except (AttributeError, ValueError, OSError):
        return False


def is_interactive(stdin: IO | None, stderr: IO | None) -> bool:
    """True only when both *stdin* and *stderr* are attached to a terminal."""
    return _isatty(stdin) and _isatty(stderr)


def color_enabled(stream: IO | None) -> bool:
    """Honour NO_COLOR (https://no-color.org) and piped output."""
    if os.environ.get("NO_COLOR"):
        return False
    return _isatty(stream)


def paint(text: str, style: str, *, stream: IO | None) -> str:
    """Render *text* with a rich *style* when *stream* supports colour."""
    if not color_enabled(stream):
        return text
    console = Console(force_terminal=True, color_system="standard", width=10_000)
    with console.capture() as capture:
        console.print(text, style=style, end="", markup=False, highlight=False, soft_wrap=True)
    return capture.get()

