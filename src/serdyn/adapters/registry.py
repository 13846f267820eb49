"""Registry of foreign-object adapters.

When the decoder expects a struct but meets an opaque object (a
dataclass instance, a pydantic model, a plain class instance ...), it
asks an :class:`AdapterRegistry` for the first adapter that can read the
object's fields.  Adapters are tried in registration order.

Third-party packages contribute adapters by declaring entry-points in the
"serdyn.adapters" group of their own ``pyproject.toml``.

Example
-------
Register an adapter with the decorator::

    from serdyn.adapters import ObjectAdapter, default_registry

    registry = default_registry()

    @registry.register("attrs")
    class AttrsAdapter(ObjectAdapter):
        def matches(self, obj):
            return hasattr(type(obj), "__attrs_attrs__")

        def fields(self, obj):
            return {a.name: getattr(obj, a.name) for a in type(obj).__attrs_attrs__}

Load all installed adapters via entry-points::

    registry.load_entrypoints("serdyn.adapters")
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable
from typing import Any

from serdyn.adapters.base import ObjectAdapter

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "serdyn.adapters"


class AdapterNotFoundError(KeyError):
    """Raised when a requested adapter name is not in the registry."""

    def __init__(self, name: str) -> None:
        self.adapter_name = name
        super().__init__(
            f"Adapter {name!r} is not registered. "
            "Check that the package is installed and its entry-points are declared."
        )


class AdapterAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str) -> None:
        self.adapter_name = name
        super().__init__(
            f"Adapter {name!r} is already registered. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


class AdapterRegistry:
    """Ordered registry of :class:`ObjectAdapter` subclasses.

    Adapters are registered either via the ``@register`` decorator at
    import time, or lazily via ``load_entrypoints`` for installed packages.
    One instance of each adapter class is created on first use.
    """

    def __init__(self) -> None:
        self._adapters: dict[str, type[ObjectAdapter]] = {}
        self._instances: dict[str, ObjectAdapter] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str) -> Callable[[type[ObjectAdapter]], type[ObjectAdapter]]:
        """Return a class decorator that registers the decorated adapter.

        Raises
        ------
        AdapterAlreadyRegisteredError
            If ``name`` is already in use.
        TypeError
            If the decorated class does not subclass ``ObjectAdapter``.
        """

        def decorator(cls: type[ObjectAdapter]) -> type[ObjectAdapter]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[ObjectAdapter]) -> None:
        """Register ``cls`` under ``name`` without decorator syntax."""
        if name in self._adapters:
            raise AdapterAlreadyRegisteredError(name)
        if not (isinstance(cls, type) and issubclass(cls, ObjectAdapter)):
            raise TypeError(
                f"Cannot register {cls!r} under {name!r}: "
                "it must be a subclass of ObjectAdapter."
            )
        self._adapters[name] = cls
        logger.debug("Registered adapter %r -> %s", name, cls.__qualname__)

    def deregister(self, name: str) -> None:
        """Remove the adapter registered under ``name``.

        Raises
        ------
        AdapterNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._adapters:
            raise AdapterNotFoundError(name)
        del self._adapters[name]
        self._instances.pop(name, None)
        logger.debug("Deregistered adapter %r", name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[ObjectAdapter]:
        """Return the adapter class registered under ``name``."""
        try:
            return self._adapters[name]
        except KeyError:
            raise AdapterNotFoundError(name) from None

    def list_adapters(self) -> list[str]:
        """Return adapter names in the order they are tried."""
        return list(self._adapters)

    def find(self, obj: Any) -> ObjectAdapter | None:
        """Return the first adapter that can read ``obj``, or ``None``."""
        for name, cls in self._adapters.items():
            adapter = self._instances.get(name)
            if adapter is None:
                adapter = self._instances[name] = cls()
            if adapter.matches(obj):
                return adapter
        return None

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def __repr__(self) -> str:
        return f"AdapterRegistry(adapters={self.list_adapters()})"

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> None:
        """Discover and register adapters declared as package entry-points.

        Adapters that are already registered are skipped with a
        debug-level log entry, so repeated calls are idempotent.  Broken
        entry-points are logged and skipped.
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._adapters:
                logger.debug("Entry-point %r already registered; skipping.", ep.name)
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
            except (AdapterAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered; skipping.",
                    ep.name,
                )
