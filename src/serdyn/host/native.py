"""Host implementation backed by Python's builtin objects.

``NativeHost`` builds ``None``, ``bool``, ``int``, ``float``, ``str``,
``bytes``, ``list``, ``tuple`` and ``dict`` objects.  Its execution
context is a re-entrant lock: holding it is what makes a
:class:`NativeContext` token active.

Usage
-----
::

    from serdyn.host import NativeHost

    host = NativeHost(max_container_len=10_000)
    with host.acquire() as ctx:
        obj = ctx.new_mapping([(ctx.text("a"), ctx.integer(1))])
"""
from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from serdyn.host.base import (
    ContextNotActiveError,
    DynamicKind,
    Host,
    HostContext,
    HostLimitError,
    MappingBuilder,
    SequenceBuilder,
)


class _ListBuilder(SequenceBuilder):
    __slots__ = ("_ctx", "_items", "_done")

    def __init__(self, ctx: NativeContext) -> None:
        self._ctx = ctx
        self._items: list[Any] = []
        self._done = False

    def append(self, item: Any) -> None:
        self._ctx._check_active()
        if self._done:
            raise RuntimeError("Sequence builder already finished")
        self._ctx._check_len(len(self._items) + 1)
        self._items.append(item)

    def finish(self) -> list[Any]:
        self._ctx._check_active()
        self._done = True
        return self._items


class _DictBuilder(MappingBuilder):
    __slots__ = ("_ctx", "_items", "_done")

    def __init__(self, ctx: NativeContext) -> None:
        self._ctx = ctx
        self._items: dict[Any, Any] = {}
        self._done = False

    def insert(self, key: Any, value: Any) -> None:
        self._ctx._check_active()
        if self._done:
            raise RuntimeError("Mapping builder already finished")
        self._ctx._check_len(len(self._items) + 1)
        self._items[key] = value

    def finish(self) -> dict[Any, Any]:
        self._ctx._check_active()
        self._done = True
        return self._items


class NativeContext(HostContext):
    """Access token for :class:`NativeHost`.

    Parameters
    ----------
    max_container_len:
        Largest container the host will build, or ``None`` for no limit.
    """

    __slots__ = ("_active", "_max_container_len")

    def __init__(self, max_container_len: int | None = None) -> None:
        self._active = True
        self._max_container_len = max_container_len

    @property
    def active(self) -> bool:
        return self._active

    def _release(self) -> None:
        self._active = False

    def _check_active(self) -> None:
        if not self._active:
            raise ContextNotActiveError(
                "Host context used outside of its acquire() scope"
            )

    def _check_len(self, requested: int) -> None:
        limit = self._max_container_len
        if limit is not None and requested > limit:
            raise HostLimitError(limit, requested)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def none(self) -> None:
        self._check_active()
        return None

    def boolean(self, value: bool) -> bool:
        self._check_active()
        return bool(value)

    def integer(self, value: int) -> int:
        self._check_active()
        return int(value)

    def floating(self, value: float) -> float:
        self._check_active()
        return float(value)

    def text(self, value: str) -> str:
        self._check_active()
        return str(value)

    def binary(self, value: bytes) -> bytes:
        self._check_active()
        return bytes(value)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def new_tuple(self, items: Iterable[Any]) -> tuple[Any, ...]:
        self._check_active()
        result = tuple(items)
        self._check_len(len(result))
        return result

    def new_sequence(self, items: Iterable[Any]) -> list[Any]:
        self._check_active()
        result = list(items)
        self._check_len(len(result))
        return result

    def sequence_builder(self) -> SequenceBuilder:
        self._check_active()
        return _ListBuilder(self)

    def new_mapping(self, pairs: Iterable[tuple[Any, Any]]) -> dict[Any, Any]:
        builder = self.mapping_builder()
        for key, value in pairs:
            builder.insert(key, value)
        return builder.finish()

    def mapping_builder(self) -> MappingBuilder:
        self._check_active()
        return _DictBuilder(self)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def kind_of(self, obj: Any) -> DynamicKind:
        self._check_active()
        if obj is None:
            return DynamicKind.ABSENT
        # bool before int: bool is an int subclass
        if isinstance(obj, bool):
            return DynamicKind.BOOL
        if isinstance(obj, int):
            return DynamicKind.INT
        if isinstance(obj, float):
            return DynamicKind.FLOAT
        if isinstance(obj, str):
            return DynamicKind.TEXT
        if isinstance(obj, (bytes, bytearray)):
            return DynamicKind.BYTES
        if isinstance(obj, list):
            return DynamicKind.SEQUENCE
        if isinstance(obj, tuple):
            return DynamicKind.TUPLE
        if isinstance(obj, dict):
            return DynamicKind.MAPPING
        return DynamicKind.OBJECT

    def length(self, obj: Any) -> int:
        self._check_active()
        return len(obj)

    def sequence_items(self, obj: Any) -> Iterator[Any]:
        self._check_active()
        return iter(obj)

    def mapping_items(self, obj: Any) -> Iterator[tuple[Any, Any]]:
        self._check_active()
        return iter(obj.items())


class NativeHost(Host):
    """The builtin-object host.

    Parameters
    ----------
    max_container_len:
        Optional upper bound on the number of items in any container the
        host constructs.  Exceeding it raises :class:`HostLimitError`.
    """

    def __init__(self, max_container_len: int | None = None) -> None:
        self._lock = threading.RLock()
        self._max_container_len = max_container_len

    @contextmanager
    def acquire(self) -> Iterator[NativeContext]:
        """Hold the host lock and yield an active :class:`NativeContext`."""
        with self._lock:
            ctx = NativeContext(self._max_container_len)
            try:
                yield ctx
            finally:
                ctx._release()

    def __repr__(self) -> str:
        return f"NativeHost(max_container_len={self._max_container_len!r})"


_DEFAULT_HOST = NativeHost()


def default_host() -> NativeHost:
    """Return the process-wide unlimited :class:`NativeHost`."""
    return _DEFAULT_HOST
