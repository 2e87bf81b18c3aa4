"""Data model for review annotations.

An ``Annotation`` is a typed, user-authored comment bound to one line of
one document.  Annotations are mutable (their text may be edited in
place) and hold an optional anchor handle obtained from the host's
``AnchorAdapter``; the store owns the annotation, the host owns the
anchor.

Documents are identified by a ``DocumentKey``: the canonical,
symlink-resolved absolute path of the file, so that two names for the
same file land in the same partition of the store.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Hashable

DocumentKey = str


class AnnotationKind(str, Enum):
    """The fixed set of annotation kinds a reviewer can choose from."""

    NOTE = "NOTE"
    SUGGESTION = "SUGGESTION"
    ISSUE = "ISSUE"
    PRAISE = "PRAISE"

    @property
    def description(self) -> str:
        """Return the short explanation used in the report preamble."""
        return _KIND_DESCRIPTIONS[self]

    @classmethod
    def names(cls) -> tuple[str, ...]:
        """Return the kind names in their canonical cycling order."""
        return tuple(kind.value for kind in cls)

    @classmethod
    def parse(cls, value: object) -> "AnnotationKind | None":
        """Return the kind named by *value*, or ``None`` if it is not a kind.

        Matching is exact: ``"issue"`` is not ``ISSUE``.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return None
        return None

    def cycle(self, step: int = 1) -> "AnnotationKind":
        """Return the kind *step* places after this one, wrapping around."""
        members = list(type(self))
        return members[(members.index(self) + step) % len(members)]


_KIND_DESCRIPTIONS: dict[AnnotationKind, str] = {
    AnnotationKind.ISSUE: "problems to fix",
    AnnotationKind.SUGGESTION: "improvements",
    AnnotationKind.NOTE: "observations",
    AnnotationKind.PRAISE: "positive feedback",
}


@dataclass
class Annotation:
    """A single review annotation.

    Parameters
    ----------
    kind:
        One of the ``AnnotationKind`` members.
    text:
        The free-text body; may span several lines.
    anchor:
        Opaque handle returned by the host's anchor adapter, or ``None``
        while the annotation is detached from a loaded document.
    original_context:
        The trimmed text of the annotated line when the annotation was
        created.  Never updated afterwards.
    """

    kind: AnnotationKind
    text: str
    anchor: Hashable | None = field(default=None, compare=False)
    original_context: str = field(default="")

    def snapshot(self) -> "Annotation":
        """Return a detached copy safe to hand to callers."""
        return Annotation(
            kind=self.kind,
            text=self.text,
            anchor=None,
            original_context=self.original_context,
        )


def normalize_path(file: str | os.PathLike[str]) -> DocumentKey:
    """Return the canonical document key for *file*.

    The path is made absolute and symlinks are resolved.  When the file
    does not exist yet, the plain absolute path is returned instead.
    The empty string maps to the empty key.
    """
    text = os.fspath(file)
    if text == "":
        return ""
    absolute = os.path.abspath(os.path.expanduser(text))
    try:
        return str(Path(absolute).resolve(strict=True))
    except (OSError, RuntimeError):
        return absolute


__all__ = [
    "Annotation",
    "AnnotationKind",
    "DocumentKey",
    "normalize_path",
]
