"""Scripted review sessions.

A script is a YAML document with an optional ``config`` mapping and a
list of ``steps``.  Each step is a mapping with exactly one verb::

    config:
      sinks: [register]
    steps:
      - open: src/app.py
      - add: {file: src/app.py, line: 12, kind: ISSUE, text: Off by one}
      - insert: {file: src/app.py, before: 1, lines: ["# header"]}
      - next: {file: src/app.py, line: 1}
      - export: {}

Relative paths are resolved against the script's directory.  The same
verbs back the interactive ``nit shell``; ``parse_command`` turns a
shell line such as ``add 12 ISSUE Off by one`` into a step.
"""
from __future__ import annotations

import logging
import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from nit.errors import NitError, ScriptError
from nit.host.workspace import Workspace
from nit.models import AnnotationKind
from nit.session import ReviewSession

logger = logging.getLogger(__name__)


@dataclass
class Script:
    """A parsed script: config overrides plus the steps to run."""

    steps: list[dict[str, Any]]
    config: dict[str, Any] = field(default_factory=dict)
    base_dir: Path = field(default_factory=Path.cwd)


def load_script(path: str | Path) -> Script:
    """Read and validate the script at *path*.

    Raises
    ------
    ScriptError
        If the file is not YAML, or lacks a ``steps`` list.
    """
    file = Path(path)
    try:
        data = yaml.safe_load(file.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ScriptError(f"{file}: invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ScriptError(f"{file}: expected a mapping with a 'steps' list")
    steps = data.get("steps")
    if not isinstance(steps, list):
        raise ScriptError(f"{file}: 'steps' must be a list")
    config = data.get("config") or {}
    if not isinstance(config, dict):
        raise ScriptError(f"{file}: 'config' must be a mapping")
    return Script(steps=steps, config=config, base_dir=file.resolve().parent)


class ScriptRunner:
    """Apply script steps to a ``ReviewSession``.

    Parameters
    ----------
    session:
        The session to drive.
    base_dir:
        Directory that relative file paths are resolved against.
    """

    def __init__(self, session: ReviewSession, base_dir: Path | None = None) -> None:
        self.session = session
        self.base_dir = base_dir or Path.cwd()
        self._handlers: dict[str, Callable[[Any], Any]] = {
            "open": self._open,
            "close": self._close,
            "add": self._add,
            "edit": self._edit,
            "delete": self._delete,
            "insert": self._insert,
            "remove": self._remove,
            "move": self._move,
            "set": self._set,
            "save": self._save,
            "next": self._next,
            "prev": self._prev,
            "clear": self._clear,
            "export": self._export,
        }

    @property
    def verbs(self) -> list[str]:
        return sorted(self._handlers)

    def run(self, steps: Sequence[Mapping[str, Any]]) -> list[Any]:
        """Run *steps* in order and return each step's result."""
        return [self.run_step(step, index) for index, step in enumerate(steps)]

    def run_step(self, step: Mapping[str, Any], index: int | None = None) -> Any:
        if not isinstance(step, Mapping) or len(step) != 1:
            raise ScriptError("each step must be a mapping with exactly one verb", index)
        verb, args = next(iter(step.items()))
        handler = self._handlers.get(verb)
        if handler is None:
            raise ScriptError(f"unknown verb {verb!r} (expected one of: {', '.join(self.verbs)})", index)
        logger.debug("Running step %s: %s %r", index, verb, args)
        try:
            return handler(args)
        except ScriptError as exc:
            if exc.index is None and index is not None:
                raise ScriptError(str(exc), index) from exc
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            if isinstance(exc, NitError):
                raise
            raise ScriptError(f"{verb}: {exc}", index) from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _path(self, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ScriptError(f"expected a file path, got {value!r}")
        path = Path(value).expanduser()
        return str(path if path.is_absolute() else self.base_dir / path)

    def _file(self, args: Any) -> str:
        if isinstance(args, str):
            return self._path(args)
        if not isinstance(args, Mapping) or "file" not in args:
            raise ScriptError("missing 'file'")
        return self._path(args["file"])

    @staticmethod
    def _int(args: Mapping[str, Any], name: str) -> int:
        value = args.get(name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ScriptError(f"{name!r} must be an integer, got {value!r}")
        return value

    def _workspace(self) -> Workspace:
        if self.session.workspace is None:
            raise ScriptError("editing steps need an in-process workspace")
        return self.session.workspace

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def _open(self, args: Any) -> str:
        if isinstance(args, Mapping) and "text" in args:
            return self.session.open_text(self._file(args), str(args["text"]))
        return self.session.open(self._file(args))

    def _close(self, args: Any) -> None:
        self.session.close(self.session.key(self._file(args)))

    def _add(self, args: Mapping[str, Any]):
        return self.session.add(
            self._file(args), self._int(args, "line"), args.get("kind", ""), str(args.get("text", ""))
        )

    def _edit(self, args: Mapping[str, Any]):
        return self.session.edit(
            self._file(args),
            self._int(args, "line"),
            args.get("kind", AnnotationKind.NOTE.value),
            str(args.get("text", "")),
        )

    def _delete(self, args: Mapping[str, Any]) -> bool:
        return self.session.delete(self._file(args), self._int(args, "line"))

    def _insert(self, args: Mapping[str, Any]) -> None:
        lines = args.get("lines", [])
        if isinstance(lines, str):
            lines = lines.splitlines()
        key = self.session.key(self._file(args))
        self._workspace().insert_lines(key, self._int(args, "before"), [str(line) for line in lines])

    def _remove(self, args: Mapping[str, Any]) -> None:
        start = self._int(args, "start")
        end = self._int(args, "end") if "end" in args else start
        self._workspace().delete_lines(self.session.key(self._file(args)), start, end)

    def _move(self, args: Mapping[str, Any]) -> None:
        self._workspace().move_lines(
            self.session.key(self._file(args)),
            self._int(args, "start"),
            self._int(args, "end"),
            self._int(args, "after"),
        )

    def _set(self, args: Mapping[str, Any]) -> None:
        self._workspace().set_line(
            self.session.key(self._file(args)), self._int(args, "line"), str(args.get("text", ""))
        )

    def _save(self, args: Any) -> None:
        self._workspace().save(self.session.key(self._file(args)))

    def _next(self, args: Mapping[str, Any]):
        return self.session.next(self._file(args), self._int(args, "line"))

    def _prev(self, args: Mapping[str, Any]):
        return self.session.prev(self._file(args), self._int(args, "line"))

    def _clear(self, args: Any) -> int:
        if args in (None, {}, "all"):
            return self.session.clear()
        return self.session.clear(self._file(args))

    def _export(self, args: Any):
        return self.session.export()


def parse_command(text: str, current: str | None) -> dict[str, Any]:
    """Turn one interactive shell line into a script step.

    Parameters
    ----------
    text:
        The line typed by the user, e.g. ``add 12 ISSUE needs a test``.
    current:
        The file the shell is focused on, used for every verb that
        needs one.

    Raises
    ------
    ScriptError
        If the command is unknown or its arguments are malformed.
    """
    try:
        words = shlex.split(text)
    except ValueError as exc:
        raise ScriptError(str(exc)) from exc
    if not words:
        raise ScriptError("empty command")
    verb, rest = words[0].lower(), words[1:]

    if verb == "open":
        if len(rest) != 1:
            raise ScriptError("usage: open PATH")
        return {"open": rest[0]}
    if verb == "clear":
        if rest == ["all"] or current is None:
            return {"clear": "all"}
        return {"clear": current}
    if verb == "export":
        return {"export": {}}
    if current is None:
        raise ScriptError("no file open; use: open PATH")

    def ints(count: int, usage: str) -> list[int]:
        if len(rest) < count:
            raise ScriptError(f"usage: {usage}")
        try:
            return [int(word) for word in rest[:count]]
        except ValueError:
            raise ScriptError(f"usage: {usage}") from None

    if verb in ("add", "edit"):
        (line,) = ints(1, f"{verb} LINE KIND TEXT...")
        if len(rest) < 2:
            raise ScriptError(f"usage: {verb} LINE KIND TEXT...")
        return {verb: {"file": current, "line": line, "kind": rest[1].upper(), "text": " ".join(rest[2:])}}
    if verb in ("delete", "del"):
        (line,) = ints(1, "delete LINE")
        return {"delete": {"file": current, "line": line}}
    if verb in ("next", "prev"):
        (line,) = ints(1, f"{verb} LINE")
        return {verb: {"file": current, "line": line}}
    if verb == "insert":
        (before,) = ints(1, "insert BEFORE TEXT...")
        return {"insert": {"file": current, "before": before, "lines": [" ".join(rest[1:])]}}
    if verb == "remove":
        if len(rest) >= 2:
            start, end = ints(2, "remove START [END]")
        else:
            (start,) = ints(1, "remove START [END]")
            end = start
        return {"remove": {"file": current, "start": start, "end": end}}
    if verb == "move":
        start, end, after = ints(3, "move START END AFTER")
        return {"move": {"file": current, "start": start, "end": end, "after": after}}
    if verb == "save":
        return {"save": current}
    raise ScriptError(f"unknown command {verb!r}")


__all__ = [
    "Script",
    "ScriptRunner",
    "load_script",
    "parse_command",
]
