"""Plugin registry for nit.

Delivery sinks and pickers are looked up by name from registries built
on ``PluginRegistry``.  Third-party packages can add their own by
declaring entry-points in their ``pyproject.toml`` under the
``"nit.sinks"`` or ``"nit.pickers"`` groups.

Example
-------
Register a sink with the decorator::

    from nit.export.delivery import sink_registry
    from nit.interfaces import DeliverySink

    @sink_registry.register("tmux")
    class TmuxBufferSink(DeliverySink):
        name = "tmux"

        def deliver(self, text: str) -> None:
            ...

Load all installed plugins via entry-points::

    sink_registry.load_entrypoints()          # scans "nit.sinks"

Retrieve a plugin by name::

    sink = sink_registry.create("tmux")
"""
from __future__ import annotations

import importlib.metadata
import logging
from abc import ABC
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ABC)


class PluginNotFoundError(KeyError):
    """Raised when a requested plugin name is not in the registry."""

    def __init__(self, name: str, registry_name: str, available: list[str] | None = None) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        choices = ", ".join(available) if available else "none"
        super().__init__(
            f"Plugin {name!r} is not registered in the {registry_name!r} registry "
            f"(available: {choices})."
        )


class PluginAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Plugin {name!r} is already registered in the {registry_name!r} registry. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


class PluginRegistry(Generic[T]):
    """Type-safe registry for plugin implementations.

    Parameters
    ----------
    base_class:
        The abstract base class all plugins must subclass.
    name:
        A human-readable name for this registry (used in error messages).
    """

    def __init__(self, base_class: type[T], name: str) -> None:
        self._base_class = base_class
        self._name = name
        self._plugins: dict[str, type[T]] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str) -> Callable[[type[T]], type[T]]:
        """Return a class decorator that registers the decorated class under *name*.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``base_class``.
        """

        def decorator(cls: type[T]) -> type[T]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[T]) -> None:
        """Register *cls* under *name* without the decorator syntax."""
        if name in self._plugins:
            raise PluginAlreadyRegisteredError(name, self._name)
        if not (isinstance(cls, type) and issubclass(cls, self._base_class)):
            raise TypeError(
                f"Cannot register {cls!r} under {name!r}: "
                f"it must be a subclass of {self._base_class.__name__}."
            )
        self._plugins[name] = cls
        logger.debug(
            "Registered plugin %r -> %s in registry %r",
            name,
            cls.__qualname__,
            self._name,
        )

    def deregister(self, name: str) -> None:
        """Remove a plugin from the registry.

        Raises
        ------
        PluginNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._plugins:
            raise PluginNotFoundError(name, self._name, self.list_plugins())
        del self._plugins[name]
        logger.debug("Deregistered plugin %r from registry %r", name, self._name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[T]:
        """Return the class registered under *name*.

        Raises
        ------
        PluginNotFoundError
            If no plugin is registered under ``name``.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name, self._name, self.list_plugins()) from None

    def create(self, name: str, *args: Any, **kwargs: Any) -> T:
        """Instantiate the plugin registered under *name*."""
        return self.get(name)(*args, **kwargs)

    def list_plugins(self) -> list[str]:
        """Return a sorted list of all registered plugin names."""
        return sorted(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._name!r}, "
            f"base_class={self._base_class.__name__}, "
            f"plugins={self.list_plugins()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    @property
    def entrypoint_group(self) -> str:
        """Entry-point group scanned by default, ``nit.<registry name>``."""
        return f"nit.{self._name}"

    def load_entrypoints(self, group: str | None = None) -> int:
        """Register plugins declared as package entry-points.

        Names already registered are skipped, so repeated calls are
        idempotent.  Entry-points that fail to import or do not subclass
        ``base_class`` are logged and skipped.

        Parameters
        ----------
        group:
            Entry-point group; defaults to ``entrypoint_group``.

        Returns
        -------
        int
            Number of plugins newly registered.
        """
        group = group or self.entrypoint_group
        added = 0
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._plugins:
                logger.debug(
                    "Entry-point %r already registered in %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.",
                    ep.name,
                    group,
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (PluginAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered "
                    "in registry %r; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            added += 1
        return added
