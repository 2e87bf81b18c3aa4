"""Flatten the whole annotation store into an ordered list of report items."""
from __future__ import annotations

from dataclasses import dataclass

from nit.interfaces import ExistenceCheck, file_exists
from nit.models import Annotation, DocumentKey
from nit.store import AnnotationStore


@dataclass(frozen=True)
class ReportItem:
    """One annotation as it appears in a report or picker.

    Parameters
    ----------
    document:
        Canonical key of the annotated document.
    line:
        Reconciled 1-based line number.
    annotation:
        The annotation itself.
    exists:
        Whether the document existed on disk when the item was collected.
    """

    document: DocumentKey
    line: int
    annotation: Annotation
    exists: bool

    @property
    def sort_key(self) -> tuple[str, int]:
        return (self.document, self.line)


def collect_all(
    store: AnnotationStore, exists: ExistenceCheck = file_exists
) -> list[ReportItem]:
    """Reconcile every document and return all annotations as report items.

    Items are sorted by ``(document, line)``; documents compare as plain
    strings, so the order never depends on insertion order.  Existence is
    checked once per document, at call time.

    Parameters
    ----------
    store:
        The store to collect from.
    exists:
        On-disk existence check, ``file_exists`` by default.
    """
    store.reconcile_all()
    items: list[ReportItem] = []
    for document in store.documents():
        present = exists(document)
        for line, annotation in store.items(document):
            items.append(ReportItem(document, line, annotation, present))
    items.sort(key=lambda item: item.sort_key)
    return items


def deleted_documents(items: list[ReportItem]) -> list[DocumentKey]:
    """Return the distinct documents among *items* that no longer exist, sorted."""
    return sorted({item.document for item in items if not item.exists})


__all__ = ["ReportItem", "collect_all", "deleted_documents"]
