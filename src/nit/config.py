"""Configuration for nit sessions.

Configuration lives in a small YAML file::

    picker: auto            # auto | rich | plain
    confirm_clear: true
    notify_wrap: false
    sinks: [clipboard, primary, register]
    invalidate_on_delete: true

``load_config`` reads the file named by its argument, falling back to
the ``NIT_CONFIG`` environment variable.  A missing file yields the
defaults; a file with unknown keys or wrongly typed values raises
``ConfigError``.
"""
from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from nit.errors import ConfigError

CONFIG_ENV_VAR = "NIT_CONFIG"

PICKER_CHOICES = ("auto", "rich", "plain")

DEFAULT_SINKS = ("clipboard", "primary", "register")


@dataclass(frozen=True)
class NitConfig:
    """Session options.

    Parameters
    ----------
    picker:
        Which selection UI ``list`` uses; ``"auto"`` picks one at runtime.
    confirm_clear:
        Ask for confirmation before clearing every annotation.
    notify_wrap:
        Notify when next/prev navigation wraps around.
    sinks:
        Delivery sink names, tried in order on export.
    invalidate_on_delete:
        When ``False``, anchors on deleted lines collapse onto the next
        line instead of disappearing.
    """

    picker: str = "auto"
    confirm_clear: bool = True
    notify_wrap: bool = False
    sinks: tuple[str, ...] = field(default=DEFAULT_SINKS)
    invalidate_on_delete: bool = True

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Raise ``ConfigError`` if any option has the wrong type or value."""
        if not isinstance(self.picker, str):
            raise ConfigError(f"picker: expected string, got {type(self.picker).__name__}")
        if self.picker not in PICKER_CHOICES:
            raise ConfigError(
                f"picker: unknown picker {self.picker!r} "
                f"(choose from {', '.join(PICKER_CHOICES)})"
            )
        for name in ("confirm_clear", "notify_wrap", "invalidate_on_delete"):
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigError(f"{name}: expected boolean, got {type(value).__name__}")
        if isinstance(self.sinks, str) or not all(isinstance(s, str) for s in self.sinks):
            raise ConfigError("sinks: expected a list of sink names")
        if not self.sinks:
            raise ConfigError("sinks: at least one sink is required")

        from nit.export.delivery import sink_registry

        unknown = [s for s in self.sinks if s not in sink_registry]
        if unknown:
            raise ConfigError(
                f"sinks: unknown sink(s) {', '.join(unknown)} "
                f"(available: {', '.join(sink_registry.list_plugins())})"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "NitConfig":
        """Build a config from a parsed mapping, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown option(s): {', '.join(unknown)}")
        values = dict(data)
        if "sinks" in values and isinstance(values["sinks"], list):
            values["sinks"] = tuple(values["sinks"])
        return cls(**values)

    def merged(self, **overrides: Any) -> "NitConfig":
        """Return a copy with *overrides* applied; ``None`` values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "sinks" in changes and isinstance(changes["sinks"], list):
            changes["sinks"] = tuple(changes["sinks"])
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["sinks"] = list(self.sinks)
        return data


def load_config(path: str | os.PathLike[str] | None = None) -> NitConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Config file to read.  Defaults to ``$NIT_CONFIG``; when neither
        is set, or the file does not exist, the defaults are returned.

    Raises
    ------
    ConfigError
        If the file is not valid YAML, is not a mapping, or holds
        invalid options.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None
    if path is None:
        return NitConfig()
    file = Path(path)
    if not file.is_file():
        return NitConfig()
    try:
        data = yaml.safe_load(file.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"{file}: invalid YAML: {exc}") from exc
    if data is None:
        return NitConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{file}: expected a mapping at the top level")
    return NitConfig.from_mapping(data)


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_SINKS",
    "NitConfig",
    "PICKER_CHOICES",
    "load_config",
]
