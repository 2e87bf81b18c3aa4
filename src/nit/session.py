"""Review session: the context object every nit operation runs against.

A ``ReviewSession`` bundles the annotation store with its collaborators
(documents, anchors, delivery sinks, picker, notifier) and exposes the
user-level operations: add, edit, delete, next/prev, list, export and
clear.  One session is created per process run; nothing is persisted.

Outcomes that are not failures, such as "nothing to delete" or
"no annotations", are reported through the ``notify`` callable and a
falsy return value.  Only a failed export raises.

Usage
-----
::

    from nit import ReviewSession

    session = ReviewSession()
    key = session.open("src/app.py")
    session.add(key, 12, "ISSUE", "Off-by-one in the loop bound")
    session.workspace.insert_lines(key, 1, ["# header"])
    session.next(key, 1).line          # -> 13
    result = session.export()
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import click

from nit.config import NitConfig
from nit.errors import (
    DeliveryUnavailableError,
    EmptyDocumentKeyError,
    InvalidKindError,
    LineOutOfRangeError,
    NitError,
    NoAnnotationError,
)
from nit.export.collector import ReportItem, collect_all, deleted_documents
from nit.export.delivery import build_sinks, deliver
from nit.export.format_helpers import short_path
from nit.export.report import render_report
from nit.host.workspace import Workspace
from nit.interfaces import (
    AnchorAdapter,
    DeliverySink,
    DocumentAccess,
    ExistenceCheck,
    SelectionUI,
    file_exists,
)
from nit.models import Annotation, AnnotationKind, DocumentKey, normalize_path
from nit.navigator import Jump, Navigator
from nit.store import AnnotationStore

logger = logging.getLogger(__name__)

Notifier = Callable[[str, int], None]
Confirm = Callable[[str], bool]


def log_notify(message: str, level: int = logging.INFO) -> None:
    """Default notifier: forward to the ``nit.session`` logger."""
    logger.log(level, message)


def prompt_confirm(prompt: str) -> bool:
    """Default confirmation: ask on the terminal, treating EOF as "no"."""
    try:
        return click.confirm(prompt, default=False)
    except click.Abort:
        return False


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a successful export.

    Parameters
    ----------
    count:
        Number of annotations exported.
    deleted_documents:
        Documents that no longer exist on disk, sorted.
    sink:
        The sink that accepted the report.
    text:
        The rendered report.
    """

    count: int
    deleted_documents: list[DocumentKey] = field(default_factory=list)
    sink: DeliverySink | None = None
    text: str = ""

    @property
    def warnings(self) -> int:
        return len(self.deleted_documents)


class ReviewSession:
    """All annotation state and collaborators of one review.

    Parameters
    ----------
    config:
        Session options; defaults to ``NitConfig()``.
    documents, anchors:
        Host collaborators.  When both are omitted an in-process
        ``Workspace`` is created and exposed as ``self.workspace``.
    exists:
        On-disk existence check used by export and list.
    notify:
        Receives ``(message, logging level)`` for user-facing messages.
    confirm:
        Asked before clearing every annotation when
        ``config.confirm_clear`` is set.
    sinks:
        Delivery sinks; built from ``config.sinks`` when omitted.
    picker:
        Selection UI for ``list``; chosen from ``config.picker`` when omitted.
    cwd, home:
        Directories used to shorten paths in reports.  Default to the
        process working directory and the user's home directory.
    """

    def __init__(
        self,
        config: NitConfig | None = None,
        documents: DocumentAccess | None = None,
        anchors: AnchorAdapter | None = None,
        *,
        exists: ExistenceCheck = file_exists,
        notify: Notifier = log_notify,
        confirm: Confirm = prompt_confirm,
        sinks: Sequence[DeliverySink] | None = None,
        picker: SelectionUI | None = None,
        cwd: str | None = None,
        home: str | None = None,
    ) -> None:
        self.config = config or NitConfig()
        self.workspace: Workspace | None = None
        if documents is None and anchors is None:
            self.workspace = Workspace(invalidate_on_delete=self.config.invalidate_on_delete)
            documents = anchors = self.workspace
        if documents is None or anchors is None:
            raise ValueError("documents and anchors must be given together")
        self.store = AnnotationStore(documents, anchors)
        self.navigator = Navigator(self.store)
        self.exists = exists
        self.notify = notify
        self.confirm = confirm
        self.sinks = list(sinks) if sinks is not None else build_sinks(self.config.sinks)
        self._picker = picker
        self.cwd = cwd if cwd is not None else os.getcwd()
        self.home = home if home is not None else str(Path.home())

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @staticmethod
    def key(path: str | os.PathLike[str]) -> DocumentKey:
        """Return the document key for *path*, rejecting unnamed documents."""
        key = normalize_path(path)
        if not key:
            raise EmptyDocumentKeyError()
        return key

    def _require_workspace(self) -> Workspace:
        if self.workspace is None:
            raise NitError("this session uses an external host; call document_opened instead")
        return self.workspace

    def open(self, path: str | os.PathLike[str]) -> DocumentKey:
        """Load *path* into the workspace and re-anchor its annotations."""
        key = self._require_workspace().open(path)
        self.document_opened(key)
        return key

    def open_text(self, path: str | os.PathLike[str], text: str) -> DocumentKey:
        """Load *text* as the content of *path* and re-anchor its annotations."""
        workspace = self._require_workspace()
        key = self.key(path)
        self.store.detach(key)
        workspace.open_text(key, text)
        self.document_opened(key)
        return key

    def close(self, key: DocumentKey) -> None:
        """Freeze the annotations of *key* and unload it."""
        self.document_closing(key)
        self._require_workspace().close(key)

    def document_opened(self, key: DocumentKey) -> None:
        """Host hook: *key* was (re)loaded."""
        self.store.restore(key)

    def document_closing(self, key: DocumentKey) -> None:
        """Host hook: *key* is about to be unloaded."""
        self.store.detach(key)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(
        self,
        path: str | os.PathLike[str],
        line: int,
        kind: AnnotationKind | str,
        text: str,
    ) -> Annotation | None:
        """Add an annotation, replacing any on the same line.

        Returns the new annotation, or ``None`` after notifying why the
        input was rejected.
        """
        try:
            key = self.key(path)
        except EmptyDocumentKeyError as exc:
            self.notify(str(exc), logging.WARNING)
            return None
        try:
            return self.store.add(key, line, kind, text)
        except InvalidKindError as exc:
            self.notify(str(exc), logging.ERROR)
        except (LineOutOfRangeError, ValueError) as exc:
            self.notify(str(exc), logging.WARNING)
        return None

    def annotation_at(self, path: str | os.PathLike[str], line: int) -> Annotation | None:
        """Return the annotation on reconciled *line* of *path*, if any."""
        return self.store.find(self.key(path), line)

    def edit(
        self,
        path: str | os.PathLike[str],
        line: int,
        kind: AnnotationKind | str,
        text: str,
    ) -> Annotation | None:
        """Add or update the annotation on *line*; empty text deletes it."""
        try:
            key = self.key(path)
        except EmptyDocumentKeyError as exc:
            self.notify(str(exc), logging.WARNING)
            return None
        existing = self.store.find(key, line)
        body = text.strip()
        if not body:
            if existing is not None:
                self.store.delete(key, line)
                self.notify("Deleted comment", logging.INFO)
            return None
        annotation = self.add(key, line, kind, body)
        if annotation is not None:
            self.notify("Updated comment" if existing else "Added comment", logging.INFO)
        return annotation

    def delete(self, path: str | os.PathLike[str], line: int, strict: bool = False) -> bool:
        """Delete the annotation on *line*; returns False if there was none.

        With *strict*, a missing annotation raises ``NoAnnotationError``
        instead of notifying.
        """
        key = self.key(path)
        removed = self.store.delete(key, line)
        if removed is None:
            if strict:
                raise NoAnnotationError(key, line)
            self.notify("No comment at cursor", logging.WARNING)
            return False
        self.notify("Deleted comment", logging.INFO)
        return True

    def clear(self, path: str | os.PathLike[str] | None = None) -> int:
        """Remove the annotations of *path*, or of every document.

        Clearing everything asks ``confirm`` first when
        ``config.confirm_clear`` is set.  Returns the number removed.
        """
        key = self.key(path) if path is not None else None
        total = self.store.count(key)
        if total == 0:
            self.notify("No comments to clear", logging.INFO)
            return 0
        if key is None and self.config.confirm_clear:
            if not self.confirm(f"Clear all {total} comments?"):
                return 0
        removed = self.store.clear(key)
        self.notify(f"Cleared {removed} comments", logging.INFO)
        return removed

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next(self, path: str | os.PathLike[str], cursor_line: int) -> Jump | None:
        """Return the next annotation after *cursor_line*, wrapping around."""
        return self._jump(self.navigator.next(self.key(path), cursor_line), "first")

    def prev(self, path: str | os.PathLike[str], cursor_line: int) -> Jump | None:
        """Return the previous annotation before *cursor_line*, wrapping around."""
        return self._jump(self.navigator.prev(self.key(path), cursor_line), "last")

    def _jump(self, jump: Jump | None, end: str) -> Jump | None:
        if jump is None:
            self.notify("No comments in buffer", logging.INFO)
        elif jump.wrapped and self.config.notify_wrap:
            self.notify(f"Wrapped to {end} comment", logging.INFO)
        return jump

    # ------------------------------------------------------------------
    # Listing and export
    # ------------------------------------------------------------------

    def collect(self) -> list[ReportItem]:
        """Return every annotation as a sorted list of report items."""
        return collect_all(self.store, self.exists)

    @property
    def picker(self) -> SelectionUI:
        if self._picker is None:
            from nit.pickers import detect_picker

            self._picker = detect_picker(self.config.picker)
        return self._picker

    def list(
        self, on_open: Callable[[ReportItem], None] | None = None
    ) -> ReportItem | None:
        """Present all annotations in the picker and return the chosen item.

        *on_open* is called with the chosen item when its document still
        exists; choosing an item of a deleted document only warns.
        """
        items = self.collect()
        if not items:
            self.notify("No comments", logging.INFO)
            return None
        chosen: list[ReportItem | None] = [None]

        def handle(item: ReportItem | None) -> None:
            chosen[0] = item
            if item is None:
                return
            if not item.exists:
                self.notify(f"File no longer exists: {item.document}", logging.WARNING)
            elif on_open is not None:
                on_open(item)

        self.picker.select(items, handle)
        return chosen[0]

    def render(self, items: Sequence[ReportItem] | None = None) -> str:
        """Render *items* (all annotations by default) as the report text."""
        if items is None:
            items = self.collect()
        return render_report(items, self.cwd, self.home)

    def export(self) -> ExportResult | None:
        """Render every annotation and deliver the report.

        Returns ``None`` when there is nothing to export.

        Raises
        ------
        DeliveryUnavailableError
            If no sink accepted the report.
        """
        items = self.collect()
        if not items:
            self.notify("No comments to export", logging.WARNING)
            return None

        deleted = deleted_documents(items)
        if deleted:
            self.notify(f"Warning: {len(deleted)} file(s) no longer exist", logging.WARNING)

        text = self.render(items)
        try:
            sink = deliver(text, self.sinks)
        except DeliveryUnavailableError:
            self.notify(
                "Failed to export: clipboard unavailable. "
                "Install xclip, xsel or wl-copy, or configure another sink",
                logging.ERROR,
            )
            raise
        message = f"Exported {len(items)} comments to {sink.describe()}"
        if self.sinks and sink is not self.sinks[0]:
            message += f" ({self.sinks[0].describe()} unavailable)"
        self.notify(message, logging.INFO)
        return ExportResult(count=len(items), deleted_documents=deleted, sink=sink, text=text)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_annotations(
        self, path: str | os.PathLike[str] | None = None
    ) -> dict[DocumentKey, dict[int, Annotation]]:
        """Return detached copies of the annotations of *path*, or of all documents."""
        key = self.key(path) if path is not None else None
        return self.store.snapshot(key)

    def count(self) -> int:
        return self.store.count()

    def count_by_file(self) -> dict[str, int]:
        """Return annotation counts keyed by short document path."""
        self.store.reconcile_all()
        return {
            short_path(key, self.cwd, self.home): self.store.count(key)
            for key in self.store.documents()
        }

    def __repr__(self) -> str:
        return f"ReviewSession(documents={len(self.store.documents())}, annotations={self.count()})"


__all__ = [
    "ExportResult",
    "ReviewSession",
    "log_notify",
    "prompt_confirm",
]
