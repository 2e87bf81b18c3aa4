"""nit-review: line-anchored review annotations for text documents.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import nit

    session = nit.ReviewSession(nit.NitConfig(sinks=("register",)))
    key = session.open("src/app.py")
    session.add(key, 12, "ISSUE", "Off-by-one in the loop bound")

    # Edit the document; the annotation follows its line
    session.workspace.insert_lines(key, 1, ["# header"])
    session.next(key, 1).line        # -> 13

    # Render every annotation as one report and deliver it
    result = session.export()
    print(result.text)

    nit.__version__
    '0.1.0'

Thread safety
-------------
A ``ReviewSession`` and its ``AnnotationStore`` are meant to be driven
by one thread.  Callers mutating them from several threads must add
their own locking.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from nit.config import NitConfig, load_config
from nit.errors import (
    ConfigError,
    DeliveryUnavailableError,
    EmptyDocumentKeyError,
    InvalidKindError,
    NitError,
    NoAnnotationError,
)
from nit.models import Annotation, AnnotationKind, normalize_path
from nit.session import ExportResult, ReviewSession

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nit.export.collector import ReportItem


def render_report(items: "Sequence[ReportItem]") -> str:
    """Render report items as the markdown review report, with absolute paths.

    Parameters
    ----------
    items:
        Items as returned by ``ReviewSession.collect``.

    Returns
    -------
    str
        The report text.
    """
    from nit.export.report import render_report as _render_report

    return _render_report(items)


__all__ = [
    "__version__",
    "Annotation",
    "AnnotationKind",
    "ConfigError",
    "DeliveryUnavailableError",
    "EmptyDocumentKeyError",
    "ExportResult",
    "InvalidKindError",
    "NitConfig",
    "NitError",
    "NoAnnotationError",
    "ReviewSession",
    "load_config",
    "normalize_path",
    "render_report",
]
