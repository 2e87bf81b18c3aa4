"""Shared test fixtures for nit.

Fixtures defined here are available to all tests in the suite without
needing an explicit import.  ``FakeHost`` is a scriptable stand-in for
an editor: tests set anchor positions directly to simulate any edit.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from nit.config import NitConfig
from nit.export.delivery import RegisterSink
from nit.interfaces import AnchorAdapter, DocumentAccess
from nit.session import ReviewSession
from nit.store import AnnotationStore


class FakeHost(DocumentAccess, AnchorAdapter):
    """Documents and anchors whose positions tests set by hand."""

    def __init__(self, line_counts: dict[str, int] | None = None) -> None:
        self.line_counts: dict[str, int] = dict(line_counts or {})
        self.positions: dict[int, int | None] = {}
        self.released: list[int] = []
        self._next = 0

    def line_count(self, key: str) -> int | None:
        return self.line_counts.get(key)

    def line_text(self, key: str, line: int) -> str | None:
        if key not in self.line_counts:
            return None
        return f"  content of line {line}  "

    def create(self, key: str, line: int) -> int:
        self._next += 1
        self.positions[self._next] = line
        return self._next

    def query(self, handle: int) -> int | None:
        return self.positions.get(handle)

    def release(self, handle: int) -> None:
        self.positions.pop(handle, None)
        self.released.append(handle)


class Notes:
    """Records session notifications."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, int]] = []

    def __call__(self, message: str, level: int = logging.INFO) -> None:
        self.messages.append((message, level))

    @property
    def texts(self) -> list[str]:
        return [message for message, _ in self.messages]

    def at(self, level: int) -> list[str]:
        return [message for message, lvl in self.messages if lvl == level]


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string."""
    return "0.1.0"


@pytest.fixture()
def host_factory() -> type[FakeHost]:
    return FakeHost


@pytest.fixture()
def fake_host() -> FakeHost:
    return FakeHost({"/docs/a.txt": 50, "/docs/b.txt": 50})


@pytest.fixture()
def fake_store(fake_host: FakeHost) -> AnnotationStore:
    return AnnotationStore(fake_host, fake_host)


@pytest.fixture()
def notes() -> Notes:
    return Notes()


@pytest.fixture()
def register() -> RegisterSink:
    return RegisterSink()


@pytest.fixture()
def make_file(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing a file of ``count`` numbered lines under tmp_path."""

    def _make(name: str = "a.txt", count: int = 20) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"line {n}\n" for n in range(1, count + 1)), encoding="utf-8")
        return path

    return _make


@pytest.fixture()
def session(tmp_path: Path, notes: Notes, register: RegisterSink) -> ReviewSession:
    """A session over an in-process workspace that exports into ``register``."""
    return ReviewSession(
        NitConfig(sinks=("register",), confirm_clear=False),
        notify=notes,
        sinks=[register],
        cwd=str(tmp_path.resolve()),
        home=str(tmp_path.resolve().parent),
    )
