"""In-process host environment.

A ``Workspace`` plays the part an editor plays for a plugin: it keeps a
set of documents loaded, lets callers edit them, and hands out anchors
that stay pinned to their line.  It implements both ``DocumentAccess``
and ``AnchorAdapter`` so a ``ReviewSession`` can run headless, in tests
or from the CLI.

Usage
-----
::

    from nit.host import Workspace

    workspace = Workspace()
    key = workspace.open("src/app.py")
    handle = workspace.create(key, 10)
    workspace.insert_lines(key, 1, ["# header"])
    workspace.query(handle)   # -> 11
"""
from __future__ import annotations

import itertools
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Hashable

from nit.errors import DocumentNotOpenError, EmptyDocumentKeyError, LineOutOfRangeError
from nit.host.buffer import TextBuffer
from nit.interfaces import AnchorAdapter, DocumentAccess
from nit.models import DocumentKey, normalize_path

logger = logging.getLogger(__name__)


class Workspace(DocumentAccess, AnchorAdapter):
    """A collection of loaded ``TextBuffer`` documents keyed by ``DocumentKey``.

    Parameters
    ----------
    invalidate_on_delete:
        Passed to every buffer the workspace opens; see ``TextBuffer``.
    """

    def __init__(self, invalidate_on_delete: bool = True) -> None:
        self.invalidate_on_delete = invalidate_on_delete
        self._buffers: dict[DocumentKey, TextBuffer] = {}
        self._owners: dict[int, DocumentKey] = {}
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def open(self, path: str | os.PathLike[str]) -> DocumentKey:
        """Load *path* from disk and return its key.

        A missing file opens as an empty buffer, like a new file in an
        editor.  Opening an already loaded document is a no-op.
        """
        key = self._key(path)
        if key in self._buffers:
            return key
        file = Path(key)
        text = file.read_text(encoding="utf-8") if file.is_file() else ""
        self._buffers[key] = TextBuffer.from_text(text, self.invalidate_on_delete)
        logger.debug("Opened %s (%d line(s))", key, self._buffers[key].line_count)
        return key

    def open_text(self, path: str | os.PathLike[str], text: str) -> DocumentKey:
        """Load *text* as the content of *path* without touching the disk."""
        key = self._key(path)
        self._drop_buffer(key)
        self._buffers[key] = TextBuffer.from_text(text, self.invalidate_on_delete)
        return key

    def close(self, key: DocumentKey) -> None:
        """Unload *key*; all of its anchors become gone."""
        self._drop_buffer(key)
        logger.debug("Closed %s", key)

    def save(self, key: DocumentKey) -> None:
        """Write the buffer for *key* back to disk."""
        Path(key).write_text(self.buffer(key).text(), encoding="utf-8")

    def buffer(self, key: DocumentKey) -> TextBuffer:
        try:
            return self._buffers[key]
        except KeyError:
            raise DocumentNotOpenError(key) from None

    def open_documents(self) -> list[DocumentKey]:
        return sorted(self._buffers)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def insert_lines(self, key: DocumentKey, before: int, lines: Iterable[str]) -> None:
        self.buffer(key).insert_lines(before, lines)

    def delete_lines(self, key: DocumentKey, start: int, end: int | None = None) -> None:
        self.buffer(key).delete_lines(start, start if end is None else end)

    def move_lines(self, key: DocumentKey, start: int, end: int, after: int) -> None:
        self.buffer(key).move_lines(start, end, after)

    def set_line(self, key: DocumentKey, line: int, text: str) -> None:
        self.buffer(key).set_line(line, text)

    # ------------------------------------------------------------------
    # DocumentAccess
    # ------------------------------------------------------------------

    def line_count(self, key: DocumentKey) -> int | None:
        buffer = self._buffers.get(key)
        return buffer.line_count if buffer is not None else None

    def line_text(self, key: DocumentKey, line: int) -> str | None:
        buffer = self._buffers.get(key)
        return buffer.line(line) if buffer is not None else None

    # ------------------------------------------------------------------
    # AnchorAdapter
    # ------------------------------------------------------------------

    def create(self, key: DocumentKey, line: int) -> Hashable:
        buffer = self.buffer(key)
        if not 1 <= line <= buffer.line_count:
            raise LineOutOfRangeError(key, line, buffer.line_count)
        anchor_id = next(self._ids)
        buffer.add_anchor(anchor_id, line)
        self._owners[anchor_id] = key
        return anchor_id

    def query(self, handle: Hashable) -> int | None:
        key = self._owners.get(handle)  # type: ignore[call-overload]
        if key is None:
            return None
        return self._buffers[key].anchor_line(handle)  # type: ignore[arg-type]

    def release(self, handle: Hashable) -> None:
        key = self._owners.pop(handle, None)  # type: ignore[call-overload]
        if key is not None and key in self._buffers:
            self._buffers[key].drop_anchor(handle)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _key(path: str | os.PathLike[str]) -> DocumentKey:
        key = normalize_path(path)
        if not key:
            raise EmptyDocumentKeyError()
        return key

    def _drop_buffer(self, key: DocumentKey) -> None:
        buffer = self._buffers.pop(key, None)
        if buffer is None:
            return
        for anchor_id in buffer.anchor_ids():
            self._owners.pop(anchor_id, None)

    def __repr__(self) -> str:
        return f"Workspace(documents={len(self._buffers)}, anchors={len(self._owners)})"
