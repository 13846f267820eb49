"""serdyn host access layer.

Exports the abstract access surface and the builtin-object host.
"""
from __future__ import annotations

from serdyn.host.base import (
    ContextNotActiveError,
    DynamicKind,
    Host,
    HostContext,
    HostLimitError,
    MappingBuilder,
    SequenceBuilder,
)
from serdyn.host.native import NativeContext, NativeHost, default_host

__all__ = [
    "DynamicKind",
    "Host",
    "HostContext",
    "SequenceBuilder",
    "MappingBuilder",
    "ContextNotActiveError",
    "HostLimitError",
    "NativeHost",
    "NativeContext",
    "default_host",
]
