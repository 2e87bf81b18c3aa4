"""Next/previous annotation lookup with wraparound."""
from __future__ import annotations

from dataclasses import dataclass

from nit.models import Annotation, DocumentKey
from nit.store import AnnotationStore


@dataclass(frozen=True)
class Jump:
    """Result of a navigation request.

    Parameters
    ----------
    line:
        Reconciled line of the target annotation.
    annotation:
        The target annotation.
    wrapped:
        True when no annotation lay in the requested direction and the
        search wrapped around to the other end of the document.
    """

    line: int
    annotation: Annotation
    wrapped: bool = False


class Navigator:
    """Finds annotations relative to a cursor line.

    Parameters
    ----------
    store:
        The store to navigate; reconciled on every request.
    """

    def __init__(self, store: AnnotationStore) -> None:
        self._store = store

    def next(self, key: DocumentKey, cursor_line: int) -> Jump | None:
        """Return the first annotation strictly below *cursor_line*.

        Wraps to the first annotation of the document when none is
        below.  Returns ``None`` when the document has no annotations.
        """
        ordered = self._store.items(key)
        if not ordered:
            return None
        for line, annotation in ordered:
            if line > cursor_line:
                return Jump(line, annotation)
        line, annotation = ordered[0]
        return Jump(line, annotation, wrapped=True)

    def prev(self, key: DocumentKey, cursor_line: int) -> Jump | None:
        """Return the last annotation strictly above *cursor_line*.

        Wraps to the last annotation of the document when none is
        above.  Returns ``None`` when the document has no annotations.
        """
        ordered = self._store.items(key)
        if not ordered:
            return None
        for line, annotation in reversed(ordered):
            if line < cursor_line:
                return Jump(line, annotation)
        line, annotation = ordered[-1]
        return Jump(line, annotation, wrapped=True)


__all__ = ["Jump", "Navigator"]
