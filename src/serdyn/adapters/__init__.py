"""serdyn foreign-object adapters.

Exports the adapter base class, the registry and the built-in adapters.
"""
from __future__ import annotations

import functools

from serdyn.adapters.base import ObjectAdapter
from serdyn.adapters.builtin import (
    BUILTIN_ADAPTERS,
    AttributeAdapter,
    DataclassAdapter,
    PydanticModelAdapter,
)
from serdyn.adapters.registry import (
    ENTRYPOINT_GROUP,
    AdapterAlreadyRegisteredError,
    AdapterNotFoundError,
    AdapterRegistry,
)


def builtin_registry() -> AdapterRegistry:
    """Return a new registry holding only the built-in adapters."""
    registry = AdapterRegistry()
    for name, cls in BUILTIN_ADAPTERS:
        registry.register_class(name, cls)
    return registry


@functools.lru_cache(maxsize=1)
def default_registry() -> AdapterRegistry:
    """Return the shared registry: built-ins plus installed entry-points.

    The attribute adapter accepts almost any object, so entry-point
    adapters are inserted ahead of it.
    """
    registry = AdapterRegistry()
    for name, cls in BUILTIN_ADAPTERS[:-1]:
        registry.register_class(name, cls)
    registry.load_entrypoints(ENTRYPOINT_GROUP)
    fallback_name, fallback = BUILTIN_ADAPTERS[-1]
    if fallback_name not in registry:
        registry.register_class(fallback_name, fallback)
    return registry


__all__ = [
    "ObjectAdapter",
    "AdapterRegistry",
    "AdapterNotFoundError",
    "AdapterAlreadyRegisteredError",
    "ENTRYPOINT_GROUP",
    "DataclassAdapter",
    "PydanticModelAdapter",
    "AttributeAdapter",
    "BUILTIN_ADAPTERS",
    "builtin_registry",
    "default_registry",
]
