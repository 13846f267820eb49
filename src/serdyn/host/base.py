"""Abstract host access layer.

The transcoding engine never touches dynamic objects directly: every
construction and inspection goes through a :class:`HostContext`, the
explicit token proving that the caller holds the host's exclusive scoped
execution context.  A :class:`Host` hands such tokens out from
:meth:`Host.acquire`; the token stops working once the scope ends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager
from enum import Enum
from typing import Any


class DynamicKind(Enum):
    """Kinds of dynamic objects, valued by their builtin type name."""

    ABSENT = "none"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "str"
    BYTES = "bytes"
    SEQUENCE = "list"
    TUPLE = "tuple"
    MAPPING = "dict"
    OBJECT = "object"


class ContextNotActiveError(RuntimeError):
    """Raised when a ``HostContext`` is used outside of its scope."""


class HostLimitError(Exception):
    """Raised by a host when constructing an object would exceed its limits.

    Parameters
    ----------
    limit:
        The configured limit that was hit.
    requested:
        The size that was requested.
    """

    def __init__(self, limit: int, requested: int) -> None:
        super().__init__(f"container of {requested} item(s) exceeds host limit of {limit}")
        self.limit = limit
        self.requested = requested


class SequenceBuilder(ABC):
    """Open-ended accumulation of a sequence whose length is not known up front."""

    @abstractmethod
    def append(self, item: Any) -> None: ...

    @abstractmethod
    def finish(self) -> Any: ...


class MappingBuilder(ABC):
    """Ordered insertion of key/value pairs into a new mapping."""

    @abstractmethod
    def insert(self, key: Any, value: Any) -> None: ...

    @abstractmethod
    def finish(self) -> Any: ...


class HostContext(ABC):
    """The narrow access surface the encoder and decoder rely on.

    Implementations must raise :class:`ContextNotActiveError` from every
    method once the owning scope has ended.
    """

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the scoped execution context is held."""

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    @abstractmethod
    def none(self) -> Any: ...

    @abstractmethod
    def boolean(self, value: bool) -> Any: ...

    @abstractmethod
    def integer(self, value: int) -> Any: ...

    @abstractmethod
    def floating(self, value: float) -> Any: ...

    @abstractmethod
    def text(self, value: str) -> Any: ...

    @abstractmethod
    def binary(self, value: bytes) -> Any: ...

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    @abstractmethod
    def new_tuple(self, items: Iterable[Any]) -> Any: ...

    @abstractmethod
    def new_sequence(self, items: Iterable[Any]) -> Any: ...

    @abstractmethod
    def sequence_builder(self) -> SequenceBuilder: ...

    @abstractmethod
    def new_mapping(self, pairs: Iterable[tuple[Any, Any]]) -> Any: ...

    @abstractmethod
    def mapping_builder(self) -> MappingBuilder: ...

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @abstractmethod
    def kind_of(self, obj: Any) -> DynamicKind: ...

    @abstractmethod
    def length(self, obj: Any) -> int: ...

    @abstractmethod
    def sequence_items(self, obj: Any) -> Iterator[Any]: ...

    @abstractmethod
    def mapping_items(self, obj: Any) -> Iterator[tuple[Any, Any]]: ...


class Host(ABC):
    """A foreign object runtime that can be entered exclusively."""

    @abstractmethod
    def acquire(self) -> AbstractContextManager[HostContext]:
        """Enter the exclusive execution context and yield its token."""
