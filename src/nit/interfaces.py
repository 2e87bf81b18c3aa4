"""Collaborator contracts consumed by the annotation engine.

The engine never talks to an editor, a filesystem watcher or a
clipboard directly.  It is handed implementations of the abstract
classes below and treats every handle they return as opaque.

- ``DocumentAccess``: line count and line text of loaded documents.
- ``AnchorAdapter``: tracked positions that the host keeps pinned to
  their line while the document is edited.
- ``DeliverySink``: a destination for the final report text.
- ``SelectionUI``: presents collected items and reports the choice.

``nit.host.Workspace`` provides in-process ``DocumentAccess`` and
``AnchorAdapter`` implementations; sinks live in
``nit.export.delivery`` and pickers in ``nit.pickers``.
"""
from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Hashable

from nit.models import DocumentKey

if TYPE_CHECKING:
    from nit.export.collector import ReportItem

ExistenceCheck = Callable[[DocumentKey], bool]


def file_exists(key: DocumentKey) -> bool:
    """Return True if *key* names a readable regular file on disk."""
    return os.path.isfile(key) and os.access(key, os.R_OK)


class DocumentAccess(ABC):
    """Read access to documents currently loaded by the host."""

    @abstractmethod
    def line_count(self, key: DocumentKey) -> int | None:
        """Return the number of lines in *key*, or ``None`` if it is not open."""

    @abstractmethod
    def line_text(self, key: DocumentKey, line: int) -> str | None:
        """Return the text of 1-based *line*, or ``None`` if unavailable."""

    def is_open(self, key: DocumentKey) -> bool:
        """Return True if the host currently has *key* loaded."""
        return self.line_count(key) is not None


class AnchorAdapter(ABC):
    """Host-managed tracked positions.

    An anchor created on line ``N`` must keep reporting the line that
    holds the same content after arbitrary insertions, deletions and
    moves in that document, for as long as the anchor is held.
    """

    @abstractmethod
    def create(self, key: DocumentKey, line: int) -> Hashable:
        """Create an anchor bound to 1-based *line* of *key* and return its handle."""

    @abstractmethod
    def query(self, handle: Hashable) -> int | None:
        """Return the anchor's current 1-based line, or ``None`` if it is gone."""

    @abstractmethod
    def release(self, handle: Hashable) -> None:
        """Stop tracking *handle*.  Releasing an unknown handle is a no-op."""


class DeliverySink(ABC):
    """A destination for exported report text.

    Implementations raise ``nit.errors.DeliveryError`` when they cannot
    accept the text; the delivery chain then tries the next sink.
    """

    #: Registry name of the sink, e.g. ``"clipboard"``.
    name: str = ""

    @abstractmethod
    def deliver(self, text: str) -> None:
        """Hand *text* to the destination."""

    def describe(self) -> str:
        """Return a short human-readable destination name."""
        return self.name


class SelectionUI(ABC):
    """Presents collected report items and reports the user's choice."""

    name: str = ""

    @abstractmethod
    def select(
        self,
        items: Sequence["ReportItem"],
        on_choice: Callable[["ReportItem | None"], None],
    ) -> None:
        """Present *items* and call *on_choice* with the chosen item or ``None``."""


__all__ = [
    "AnchorAdapter",
    "DeliverySink",
    "DocumentAccess",
    "ExistenceCheck",
    "SelectionUI",
    "file_exists",
]
