"""Annotation store and reconciler.

The store maps each ``DocumentKey`` to a ``{line: Annotation}`` dict.
The line numbers in that dict are a *last-known-good cache*: the host
keeps each annotation's anchor pinned while the document is edited, and
``reconcile`` pulls the live positions back into the cache before any
operation that depends on line numbers.

Reconciliation
--------------
For every annotation of a document, in ascending stored-line order:

1. An anchored annotation whose anchor is gone, or now lies outside
   ``[1, line_count]``, is removed and its anchor released.
2. An unanchored annotation keeps its stored line.
3. Survivors are placed on their current line.  When several land on
   the same line the first one (in stored-line order) keeps it and
   every other one probes forward, line by line, to the nearest free
   line.  Naturally placed annotations are never displaced by a probe.

Reconciling a document the host does not have open is a no-op; its
stored lines stay authoritative until it is opened again and
``restore`` re-anchors them.

Thread safety
-------------
``AnnotationStore`` is not safe for concurrent mutation from several
threads.  Callers sharing a store across threads must serialise access
themselves.
"""
from __future__ import annotations

import logging

from nit.errors import EmptyDocumentKeyError, InvalidKindError, LineOutOfRangeError
from nit.interfaces import AnchorAdapter, DocumentAccess
from nit.models import Annotation, AnnotationKind, DocumentKey

logger = logging.getLogger(__name__)


class AnnotationStore:
    """Per-document annotation storage with lazy reconciliation.

    Parameters
    ----------
    documents:
        Read access to loaded documents.
    anchors:
        The host's tracked-position adapter.
    """

    def __init__(self, documents: DocumentAccess, anchors: AnchorAdapter) -> None:
        self._documents = documents
        self._anchors = anchors
        self._data: dict[DocumentKey, dict[int, Annotation]] = {}

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(self, key: DocumentKey) -> None:
        """Resync the stored lines of *key* from live anchors."""
        entries = self._data.get(key)
        if not entries:
            return
        line_count = self._documents.line_count(key)
        if line_count is None:
            return

        survivors: list[tuple[int, Annotation]] = []
        for stored, annotation in sorted(entries.items()):
            if annotation.anchor is None:
                survivors.append((stored, annotation))
                continue
            current = self._anchors.query(annotation.anchor)
            if current is None or not 1 <= current <= line_count:
                logger.debug(
                    "Dropping [%s] annotation on %s:%d (anchor now %s, %d line(s))",
                    annotation.kind.value,
                    key,
                    stored,
                    current,
                    line_count,
                )
                self._anchors.release(annotation.anchor)
                annotation.anchor = None
                continue
            survivors.append((current, annotation))

        updated: dict[int, Annotation] = {}
        collided: list[tuple[int, Annotation]] = []
        for line, annotation in survivors:
            if line in updated:
                collided.append((line, annotation))
            else:
                updated[line] = annotation

        for line, annotation in collided:
            target = line
            while target in updated:
                target += 1
            logger.debug("Collision on %s:%d; moved annotation to line %d", key, line, target)
            updated[target] = annotation

        if updated:
            self._data[key] = updated
        else:
            del self._data[key]

    def reconcile_all(self) -> None:
        for key in list(self._data):
            self.reconcile(key)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(
        self,
        key: DocumentKey,
        line: int,
        kind: AnnotationKind | str,
        text: str,
        line_content: str | None = None,
    ) -> Annotation:
        """Add an annotation on *line* of *key*, replacing any annotation there.

        Parameters
        ----------
        key:
            Document to annotate.
        line:
            1-based line number, after reconciliation.
        kind:
            An ``AnnotationKind`` or its name.
        text:
            Annotation body; must not be empty.
        line_content:
            Text of the annotated line.  Read from the document when omitted.

        Returns
        -------
        Annotation
            The stored annotation.

        Raises
        ------
        EmptyDocumentKeyError
            If *key* is empty.
        InvalidKindError
            If *kind* is not an ``AnnotationKind``.
        LineOutOfRangeError
            If the document is open and *line* lies outside it, or
            *line* is not positive.
        ValueError
            If *text* is empty.

        All validation happens before the store is touched.  Adding on a
        line that already holds an annotation replaces it.
        """
        if not key:
            raise EmptyDocumentKeyError()
        parsed = AnnotationKind.parse(kind)
        if parsed is None:
            raise InvalidKindError(kind, AnnotationKind.names())
        if not text:
            raise ValueError("annotation text must not be empty")
        line_count = self._documents.line_count(key)
        if line < 1 or (line_count is not None and line > line_count):
            raise LineOutOfRangeError(key, line, line_count or 0)

        self.reconcile(key)

        if line_content is None:
            line_content = self._documents.line_text(key, line) or ""
        annotation = Annotation(kind=parsed, text=text, original_context=line_content.strip())

        entries = self._data.setdefault(key, {})
        previous = entries.get(line)
        if previous is not None and previous.anchor is not None:
            self._anchors.release(previous.anchor)
            previous.anchor = None
        if line_count is not None:
            annotation.anchor = self._anchors.create(key, line)
        entries[line] = annotation
        logger.debug("Added [%s] annotation on %s:%d", parsed.value, key, line)
        return annotation

    def delete(self, key: DocumentKey, line: int) -> Annotation | None:
        """Remove the annotation whose reconciled line is *line*.

        Returns the removed annotation, or ``None`` when nothing was there.
        """
        if not key:
            raise EmptyDocumentKeyError()
        self.reconcile(key)
        entries = self._data.get(key)
        if not entries or line not in entries:
            return None
        annotation = entries.pop(line)
        if annotation.anchor is not None:
            self._anchors.release(annotation.anchor)
            annotation.anchor = None
        if not entries:
            del self._data[key]
        logger.debug("Deleted annotation on %s:%d", key, line)
        return annotation

    def clear(self, key: DocumentKey | None = None) -> int:
        """Remove every annotation of *key*, or of all documents when ``None``.

        Returns the number of annotations removed.
        """
        keys = list(self._data) if key is None else [key]
        removed = 0
        for doc in keys:
            entries = self._data.pop(doc, {})
            for annotation in entries.values():
                if annotation.anchor is not None:
                    self._anchors.release(annotation.anchor)
                    annotation.anchor = None
            removed += len(entries)
        return removed

    # ------------------------------------------------------------------
    # Host lifecycle
    # ------------------------------------------------------------------

    def restore(self, key: DocumentKey) -> None:
        """Re-anchor the annotations of *key* after the host (re)opened it.

        Annotations still holding a live anchor were placed by
        ``reconcile`` and are kept, even when a collision pushed them past
        the last line.  Unanchored annotations whose stored line lies
        beyond the document are dropped.
        """
        self.reconcile(key)
        entries = self._data.get(key)
        line_count = self._documents.line_count(key)
        if not entries or line_count is None:
            return
        for line in sorted(entries):
            annotation = entries[line]
            if annotation.anchor is not None:
                continue
            if not 1 <= line <= line_count:
                logger.debug("Dropping annotation on %s:%d outside restored document", key, line)
                del entries[line]
                continue
            annotation.anchor = self._anchors.create(key, line)
        if not entries:
            del self._data[key]

    def detach(self, key: DocumentKey) -> None:
        """Freeze the lines of *key* and release its anchors before the host closes it."""
        self.reconcile(key)
        for annotation in self._data.get(key, {}).values():
            if annotation.anchor is not None:
                self._anchors.release(annotation.anchor)
                annotation.anchor = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, key: DocumentKey, line: int) -> Annotation | None:
        """Return the annotation on reconciled *line* of *key*, if any."""
        self.reconcile(key)
        return self._data.get(key, {}).get(line)

    def items(self, key: DocumentKey) -> list[tuple[int, Annotation]]:
        """Return ``(line, annotation)`` pairs of *key* in ascending line order."""
        self.reconcile(key)
        return sorted(self._data.get(key, {}).items())

    def documents(self) -> list[DocumentKey]:
        """Return the keys of all documents holding annotations, sorted."""
        return sorted(self._data)

    def snapshot(self, key: DocumentKey | None = None) -> dict[DocumentKey, dict[int, Annotation]]:
        """Return detached copies of the reconciled annotations.

        Mutating the result never affects the store.
        """
        keys = self.documents() if key is None else [key]
        result: dict[DocumentKey, dict[int, Annotation]] = {}
        for doc in keys:
            self.reconcile(doc)
            entries = self._data.get(doc)
            if entries:
                result[doc] = {line: ann.snapshot() for line, ann in sorted(entries.items())}
        return result

    def count(self, key: DocumentKey | None = None) -> int:
        """Return the number of reconciled annotations of *key*, or of all documents."""
        if key is not None:
            self.reconcile(key)
            return len(self._data.get(key, {}))
        self.reconcile_all()
        return sum(len(entries) for entries in self._data.values())

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"AnnotationStore(documents={len(self._data)}, annotations={self.count()})"
