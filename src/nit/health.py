"""Environment health checks.

``run_checks`` inspects the interpreter, the clipboard tools the
delivery sinks rely on, the registered pickers and the configuration,
and returns one ``HealthCheck`` per finding.
"""
from __future__ import annotations

import shutil
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from nit.config import NitConfig
from nit.errors import ConfigError
from nit.export.delivery import ClipboardSink, PrimarySelectionSink
from nit.pickers import picker_registry

MIN_PYTHON = (3, 10)


class HealthStatus(Enum):
    """Outcome of a single health check."""

    OK = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


@dataclass(frozen=True)
class HealthCheck:
    """A single health finding.

    Parameters
    ----------
    status:
        How the check came out.
    name:
        Short name of the thing checked.
    message:
        Human-readable result.
    advice:
        Optional follow-up steps for the user.
    """

    status: HealthStatus
    name: str
    message: str
    advice: tuple[str, ...] = field(default=())

    def __str__(self) -> str:
        advice = "".join(f"\n  - {line}" for line in self.advice)
        return f"[{self.status.name}] {self.name}: {self.message}{advice}"

    @property
    def is_error(self) -> bool:
        return self.status == HealthStatus.ERROR


def check_python(version: tuple[int, ...] | None = None) -> HealthCheck:
    current = tuple(version or sys.version_info[:3])
    shown = ".".join(str(part) for part in current)
    if current[:2] < MIN_PYTHON:
        return HealthCheck(
            HealthStatus.ERROR,
            "python",
            f"Python {shown} is too old",
            (f"nit requires Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]}+",),
        )
    return HealthCheck(HealthStatus.OK, "python", f"Python {shown}")


def check_clipboard(which: Callable[[str], str | None] = shutil.which) -> list[HealthCheck]:
    results: list[HealthCheck] = []
    for sink in (ClipboardSink(which=which), PrimarySelectionSink(which=which)):
        tools = sink.available_tools()
        if tools:
            results.append(
                HealthCheck(
                    HealthStatus.OK,
                    sink.name,
                    f"{sink.describe()} available via {', '.join(tools)}",
                )
            )
        else:
            results.append(
                HealthCheck(
                    HealthStatus.WARN,
                    sink.name,
                    f"{sink.describe()} not available",
                    (
                        "Export will fall back to the next configured sink",
                        "Install xclip, xsel or wl-copy on Linux for clipboard support",
                    ),
                )
            )
    return results


def check_pickers() -> list[HealthCheck]:
    names = picker_registry.list_plugins()
    results = [HealthCheck(HealthStatus.OK, "picker", f"{name} picker available") for name in names]
    results.append(HealthCheck(HealthStatus.INFO, "picker", "plain picker always works without a terminal"))
    return results


def check_config(load: Callable[[], NitConfig]) -> HealthCheck:
    try:
        config = load()
    except ConfigError as exc:
        return HealthCheck(HealthStatus.ERROR, "config", str(exc), ("Fix or remove the config file",))
    return HealthCheck(
        HealthStatus.OK,
        "config",
        f"picker={config.picker}, sinks={', '.join(config.sinks)}",
    )


def run_checks(
    load: Callable[[], NitConfig] = NitConfig,
    which: Callable[[str], str | None] = shutil.which,
) -> list[HealthCheck]:
    """Run every health check and return the findings in display order."""
    results = [check_python()]
    results.extend(check_clipboard(which))
    results.extend(check_pickers())
    results.append(check_config(load))
    return results


__all__ = [
    "HealthCheck",
    "HealthStatus",
    "check_clipboard",
    "check_config",
    "check_pickers",
    "check_python",
    "run_checks",
]
