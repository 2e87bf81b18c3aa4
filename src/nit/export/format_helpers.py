"""Text formatting helpers for review reports.

Pure functions only: nothing here reads the filesystem or the process
environment, so callers pass the working and home directories in.
"""
from __future__ import annotations

import os

#: Maximum length of the quoted line context in a report entry.
CONTEXT_LIMIT = 60

_ELLIPSIS = "..."


def bold(text: str) -> str:
    """Return *text* wrapped in bold markdown markers."""
    return f"**{text}**"


def code_span(text: str) -> str:
    """Return *text* as an inline markdown code span."""
    return f"`{text}`"


def truncate(text: str, limit: int = CONTEXT_LIMIT) -> str:
    """Cut *text* to at most *limit* characters, ending in ``...`` when cut.

    Parameters
    ----------
    text:
        The text to shorten.
    limit:
        Maximum length of the result, ellipsis included.
    """
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(_ELLIPSIS))] + _ELLIPSIS


def indent_continuation(text: str, indent: str = "   ") -> str:
    """Indent every line of *text* after the first by *indent*.

    Blank lines are kept, so paragraph breaks inside an annotation
    survive in the report.
    """
    return text.replace("\n", "\n" + indent)


def short_path(path: str, cwd: str | None = None, home: str | None = None) -> str:
    """Return *path* relative to *cwd*, else ``~``-prefixed under *home*.

    Parameters
    ----------
    path:
        Absolute path to shorten.
    cwd:
        Working directory; paths below it are shown relative to it.
    home:
        Home directory; other paths below it are shown as ``~/...``.
    """
    for base, prefix in ((cwd, ""), (home, "~" + os.sep)):
        if not base:
            continue
        base = base.rstrip(os.sep) or os.sep
        if path == base:
            return "." if prefix == "" else "~"
        root = base if base.endswith(os.sep) else base + os.sep
        if path.startswith(root):
            return prefix + path[len(root):]
    return path


__all__ = [
    "CONTEXT_LIMIT",
    "bold",
    "code_span",
    "indent_continuation",
    "short_path",
    "truncate",
]
