"""In-process text buffer with line-tracking anchors.

``TextBuffer`` stores a document as a list of lines together with a
line-indexed anchor table.  Every edit operation shifts the table so an
anchor keeps pointing at the content it was created on:

- inserting lines at or above an anchor pushes it down;
- deleting lines above an anchor pulls it up;
- moving a block carries the anchors inside it along;
- deleting the anchored line itself makes the anchor *gone*, or, when
  the buffer was created with ``invalidate_on_delete=False``, collapses
  it onto the first line after the deleted range.

Line numbers are 1-based throughout.  Like an editor buffer, a
``TextBuffer`` always holds at least one (possibly empty) line.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)


class TextBuffer:
    """A mutable list of lines with anchors that follow edits.

    Parameters
    ----------
    lines:
        Initial content, one string per line without line terminators.
    invalidate_on_delete:
        When ``True`` (the default) anchors on deleted lines become gone.
        When ``False`` they collapse onto the line that follows the
        deleted range, which may leave several anchors on one line.
    """

    def __init__(self, lines: Iterable[str] = (), invalidate_on_delete: bool = True) -> None:
        self._lines: list[str] = list(lines) or [""]
        self._anchors: dict[int, int | None] = {}
        self.invalidate_on_delete = invalidate_on_delete

    @classmethod
    def from_text(cls, text: str, invalidate_on_delete: bool = True) -> "TextBuffer":
        """Build a buffer by splitting *text* into lines."""
        return cls(text.splitlines(), invalidate_on_delete=invalidate_on_delete)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def line(self, number: int) -> str | None:
        """Return the text of line *number*, or ``None`` when out of range."""
        if 1 <= number <= len(self._lines):
            return self._lines[number - 1]
        return None

    def text(self) -> str:
        """Return the buffer content joined with newlines, newline-terminated."""
        return "\n".join(self._lines) + "\n"

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def add_anchor(self, anchor_id: int, line: int) -> None:
        """Start tracking *anchor_id* at *line*."""
        if not 1 <= line <= len(self._lines):
            raise ValueError(f"line {line} outside buffer of {len(self._lines)} line(s)")
        self._anchors[anchor_id] = line

    def anchor_line(self, anchor_id: int) -> int | None:
        """Return the current line of *anchor_id*, or ``None`` if it is gone."""
        return self._anchors.get(anchor_id)

    def drop_anchor(self, anchor_id: int) -> None:
        self._anchors.pop(anchor_id, None)

    def anchor_ids(self) -> list[int]:
        return list(self._anchors)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def insert_lines(self, before: int, new_lines: Iterable[str]) -> None:
        """Insert *new_lines* so that the first of them becomes line *before*.

        ``before`` may be ``line_count + 1`` to append at the end.
        """
        added = list(new_lines)
        if not 1 <= before <= len(self._lines) + 1:
            raise ValueError(f"cannot insert before line {before}")
        if not added:
            return
        self._lines[before - 1:before - 1] = added
        for anchor_id, line in self._anchors.items():
            if line is not None and line >= before:
                self._anchors[anchor_id] = line + len(added)

    def delete_lines(self, start: int, end: int) -> None:
        """Delete lines *start* through *end* inclusive."""
        if not 1 <= start <= end <= len(self._lines):
            raise ValueError(f"cannot delete lines {start}-{end}")
        removed = end - start + 1
        del self._lines[start - 1:end]
        for anchor_id, line in self._anchors.items():
            if line is None or line < start:
                continue
            if line > end:
                self._anchors[anchor_id] = line - removed
            elif self.invalidate_on_delete:
                self._anchors[anchor_id] = None
                logger.debug("Anchor %d invalidated by deleting lines %d-%d", anchor_id, start, end)
            else:
                self._anchors[anchor_id] = start
        if not self._lines:
            self._lines.append("")

    def move_lines(self, start: int, end: int, after: int) -> None:
        """Move lines *start*..*end* so they follow line *after* (0 = top).

        ``after`` is a line number in the buffer before the move and must
        not fall inside the moved block.
        """
        count = len(self._lines)
        if not 1 <= start <= end <= count:
            raise ValueError(f"cannot move lines {start}-{end}")
        if not 0 <= after <= count or start <= after <= end:
            raise ValueError(f"cannot move lines {start}-{end} below line {after}")
        block = list(range(start, end + 1))
        rest = [n for n in range(1, count + 1) if n < start or n > end]
        split = sum(1 for n in rest if n <= after)
        order = rest[:split] + block + rest[split:]
        new_position = {old: new for new, old in enumerate(order, start=1)}
        self._lines = [self._lines[old - 1] for old in order]
        for anchor_id, line in self._anchors.items():
            if line is not None:
                self._anchors[anchor_id] = new_position[line]

    def set_line(self, number: int, text: str) -> None:
        """Replace the text of line *number* in place; anchors stay put."""
        if not 1 <= number <= len(self._lines):
            raise ValueError(f"line {number} outside buffer of {len(self._lines)} line(s)")
        self._lines[number - 1] = text

    def __repr__(self) -> str:
        return f"TextBuffer(lines={len(self._lines)}, anchors={len(self._anchors)})"
