"""Selection UIs for browsing collected annotations.

Two pickers are built in and registered in ``picker_registry``:

- ``rich``: a rich table followed by a numeric prompt.
- ``plain``: one ``path:line [KIND] text`` row per item, the same rows
  an editor quickfix list would show, followed by the same prompt.

``detect_picker("auto")`` chooses ``rich`` when standard output is a
terminal and ``plain`` otherwise.
"""
from __future__ import annotations

import os
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nit.export.collector import ReportItem
from nit.export.format_helpers import short_path, truncate
from nit.interfaces import SelectionUI
from nit.plugins.registry import PluginRegistry

picker_registry: PluginRegistry[SelectionUI] = PluginRegistry(SelectionUI, "pickers")

_KIND_STYLES = {
    "NOTE": "cyan",
    "SUGGESTION": "blue",
    "ISSUE": "yellow",
    "PRAISE": "green",
}


def _short(document: str) -> str:
    return short_path(document, os.getcwd(), str(Path.home()))


def item_label(item: ReportItem) -> str:
    """Return the one-line label for *item* used by every picker."""
    prefix = "" if item.exists else "[DELETED] "
    first_line = item.annotation.text.splitlines()[0] if item.annotation.text else ""
    return (
        f"{prefix}{_short(item.document)}:{item.line} "
        f"[{item.annotation.kind.value}] {first_line}"
    )


def _ask(count: int) -> int | None:
    try:
        choice = click.prompt(
            "Open annotation # (0 to cancel)",
            default=0,
            type=click.IntRange(0, count),
            show_default=False,
        )
    except click.Abort:
        return None
    return choice or None


@picker_registry.register("rich")
class RichPicker(SelectionUI):
    """Show items in a rich table and prompt for a number."""

    name = "rich"

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def select(
        self,
        items: Sequence[ReportItem],
        on_choice: Callable[[ReportItem | None], None],
    ) -> None:
        table = Table(title="Nits", show_lines=False)
        table.add_column("#", justify="right")
        table.add_column("Location")
        table.add_column("Kind")
        table.add_column("Text")
        for index, item in enumerate(items, start=1):
            style = _KIND_STYLES.get(item.annotation.kind.value, "white")
            location = escape(f"{_short(item.document)}:{item.line}")
            if not item.exists:
                location = f"[red][DELETED][/red] {location}"
            table.add_row(
                str(index),
                location,
                f"[{style}]{item.annotation.kind.value}[/{style}]",
                escape(truncate(item.annotation.text.replace("\n", " "), 80)),
            )
        self._console.print(table)
        choice = _ask(len(items))
        on_choice(items[choice - 1] if choice else None)


@picker_registry.register("plain")
class PlainPicker(SelectionUI):
    """Print quickfix-style rows and prompt for a number."""

    name = "plain"

    def select(
        self,
        items: Sequence[ReportItem],
        on_choice: Callable[[ReportItem | None], None],
    ) -> None:
        for index, item in enumerate(items, start=1):
            click.echo(f"{index:>3}. {item_label(item)}")
        choice = _ask(len(items))
        on_choice(items[choice - 1] if choice else None)


def detect_picker(name: str = "auto") -> SelectionUI:
    """Return a picker instance for *name*, resolving ``"auto"``."""
    if name == "auto":
        name = "rich" if sys.stdout.isatty() else "plain"
    return picker_registry.create(name)


__all__ = [
    "PlainPicker",
    "RichPicker",
    "detect_picker",
    "item_label",
    "picker_registry",
]
