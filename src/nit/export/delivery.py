"""Delivery sinks for exported reports.

A report is handed to a chain of sinks in a fixed preference order; the
first sink that accepts it wins.  The default chain mirrors an editor's
register fallback: the system clipboard, then the primary selection,
then an in-process register that always succeeds.

Built-in sinks registered in ``sink_registry``:

- ``clipboard``: system clipboard via ``wl-copy``, ``xclip``, ``xsel``,
  ``pbcopy`` or ``clip``, whichever is installed.
- ``primary``: X11/Wayland primary selection.
- ``register``: keeps the text in memory on the sink instance.
- ``stdout``: writes the text to standard output.

``FileSink`` takes a path and is constructed directly.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TextIO

from nit.errors import DeliveryError, DeliveryUnavailableError
from nit.interfaces import DeliverySink
from nit.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)

sink_registry: PluginRegistry[DeliverySink] = PluginRegistry(DeliverySink, "sinks")

_CLIPBOARD_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("pbcopy",),
    ("clip",),
)

_PRIMARY_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("wl-copy", "--primary"),
    ("xclip", "-selection", "primary"),
    ("xsel", "--primary", "--input"),
)

#: Seconds to wait for a clipboard tool before giving up on it.
CLIPBOARD_TIMEOUT = 5


@sink_registry.register("clipboard")
class ClipboardSink(DeliverySink):
    """Copy the report to the system clipboard through an external tool.

    Parameters
    ----------
    runner:
        Callable with the signature of ``subprocess.run``.
    which:
        Callable with the signature of ``shutil.which``.
    """

    name = "clipboard"
    commands: tuple[tuple[str, ...], ...] = _CLIPBOARD_COMMANDS

    def __init__(
        self,
        runner: Callable[..., Any] = subprocess.run,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self._runner = runner
        self._which = which

    def available_tools(self) -> list[str]:
        """Return the names of installed tools this sink could use."""
        return [cmd[0] for cmd in self.commands if self._which(cmd[0])]

    def deliver(self, text: str) -> None:
        tried: list[str] = []
        for command in self.commands:
            executable = self._which(command[0])
            if executable is None:
                continue
            tried.append(command[0])
            try:
                self._runner(
                    [executable, *command[1:]],
                    input=text,
                    text=True,
                    check=True,
                    capture_output=True,
                    timeout=CLIPBOARD_TIMEOUT,
                )
            except (OSError, subprocess.SubprocessError) as exc:
                logger.debug("%s failed for %s sink: %s", command[0], self.name, exc)
                continue
            return
        if not tried:
            raise DeliveryError(f"no {self.name} tool installed (install xclip or xsel)")
        raise DeliveryError(f"every {self.name} tool failed ({', '.join(tried)})")

    def describe(self) -> str:
        return "system clipboard"


@sink_registry.register("primary")
class PrimarySelectionSink(ClipboardSink):
    """Copy the report to the primary selection (middle-click paste)."""

    name = "primary"
    commands = _PRIMARY_COMMANDS

    def describe(self) -> str:
        return "primary selection"


@sink_registry.register("register")
class RegisterSink(DeliverySink):
    """Keep the report in memory; never fails."""

    name = "register"

    def __init__(self) -> None:
        self.contents: str | None = None

    def deliver(self, text: str) -> None:
        self.contents = text

    def describe(self) -> str:
        return "register"


@sink_registry.register("stdout")
class StreamSink(DeliverySink):
    """Write the report to a text stream, standard output by default."""

    name = "stdout"

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def deliver(self, text: str) -> None:
        stream = self._stream if self._stream is not None else sys.stdout
        try:
            stream.write(text if text.endswith("\n") else text + "\n")
            stream.flush()
        except (OSError, ValueError) as exc:
            raise DeliveryError(f"cannot write to stream: {exc}") from exc


class FileSink(DeliverySink):
    """Write the report to a file, replacing its content."""

    name = "file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def deliver(self, text: str) -> None:
        try:
            self.path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        except OSError as exc:
            raise DeliveryError(f"cannot write {self.path}: {exc}") from exc

    def describe(self) -> str:
        return str(self.path)


def build_sinks(names: Sequence[str]) -> list[DeliverySink]:
    """Instantiate the registered sinks named in *names*, in order."""
    return [sink_registry.create(name) for name in names]


def deliver(text: str, sinks: Sequence[DeliverySink]) -> DeliverySink:
    """Hand *text* to the first sink in *sinks* that accepts it.

    Returns
    -------
    DeliverySink
        The sink that accepted the text.

    Raises
    ------
    DeliveryUnavailableError
        If every sink failed, or *sinks* is empty.
    """
    failures: list[tuple[str, str]] = []
    for sink in sinks:
        try:
            sink.deliver(text)
        except DeliveryError as exc:
            logger.warning("Delivery to %s failed: %s", sink.describe(), exc)
            failures.append((sink.name, str(exc)))
            continue
        return sink
    raise DeliveryUnavailableError(failures)


__all__ = [
    "ClipboardSink",
    "FileSink",
    "PrimarySelectionSink",
    "RegisterSink",
    "StreamSink",
    "build_sinks",
    "deliver",
    "sink_registry",
]
