"""Render collected annotations as a single markdown review report.

``render_report`` is a pure function of its arguments: it performs no
I/O and does not look at the store, so it can be tested on hand-built
``ReportItem`` lists.

Example output::

    I reviewed your code and have the following comments. Please address them.

    Comment types: ISSUE (problems to fix), SUGGESTION (improvements), ...

    1. **[ISSUE]** `src/app.py:12` - Off-by-one in the loop bound
       > `for i in range(len(items) + 1):`
    2. [DELETED FILE] **[NOTE]** `old.py:3` - Was this moved?
"""
from __future__ import annotations

from collections.abc import Sequence

from nit.export.collector import ReportItem
from nit.export.format_helpers import (
    CONTEXT_LIMIT,
    bold,
    code_span,
    indent_continuation,
    short_path,
    truncate,
)
from nit.models import AnnotationKind

DELETED_MARKER = "[DELETED FILE]"

INTRO = "I reviewed your code and have the following comments. Please address them."

#: Kinds in the order the preamble lists them.
PREAMBLE_ORDER = (
    AnnotationKind.ISSUE,
    AnnotationKind.SUGGESTION,
    AnnotationKind.NOTE,
    AnnotationKind.PRAISE,
)


def preamble() -> list[str]:
    """Return the fixed report header lines."""
    kinds = ", ".join(f"{kind.value} ({kind.description})" for kind in PREAMBLE_ORDER)
    return [INTRO, "", f"Comment types: {kinds}", ""]


def render_entry(
    index: int,
    item: ReportItem,
    cwd: str | None = None,
    home: str | None = None,
) -> str:
    """Render one numbered report entry.

    Parameters
    ----------
    index:
        1-based entry number.
    item:
        The annotation to render.
    cwd, home:
        Directories used to shorten the document path.
    """
    annotation = item.annotation
    prefix = "" if item.exists else f"{DELETED_MARKER} "
    location = code_span(f"{short_path(item.document, cwd, home)}:{item.line}")
    text = indent_continuation(annotation.text)
    entry = f"{index}. {prefix}{bold(f'[{annotation.kind.value}]')} {location} - {text}"
    if annotation.original_context:
        context = truncate(annotation.original_context, CONTEXT_LIMIT)
        entry += f"\n   > {code_span(context)}"
    return entry


def render_report(
    items: Sequence[ReportItem],
    cwd: str | None = None,
    home: str | None = None,
) -> str:
    """Render *items* as a complete report.

    Parameters
    ----------
    items:
        Report items, already in report order.
    cwd, home:
        Optional directories used to shorten document paths; when
        omitted, absolute paths are shown.

    Returns
    -------
    str
        The preamble followed by one numbered entry per item, joined
        with newlines.
    """
    lines = preamble()
    for index, item in enumerate(items, start=1):
        lines.append(render_entry(index, item, cwd, home))
    return "\n".join(lines)


__all__ = [
    "DELETED_MARKER",
    "INTRO",
    "preamble",
    "render_entry",
    "render_report",
]
