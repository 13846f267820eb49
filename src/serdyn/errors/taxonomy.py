"""Structural error types shared by the encoder and decoder.

Every failure of a traversal is raised as a :class:`TranscodeError`
subclass.  Errors carry structured fields (``expected``, ``found``,
``name`` ...) so that callers can inspect them programmatically, plus the
structural ``path`` from the root of the traversal to the offending node.
"""
from __future__ import annotations

from collections.abc import Sequence
from enum import Enum, auto
from typing import Any, ClassVar, Union

PathElement = Union[str, int]


class ErrorKind(Enum):
    """Machine-readable category of a :class:`TranscodeError`."""

    TYPE_MISMATCH = auto()
    MISSING_FIELD = auto()
    UNKNOWN_FIELD = auto()
    UNKNOWN_VARIANT = auto()
    INVALID_VARIANT_ENCODING = auto()
    ARITY_MISMATCH = auto()
    OUT_OF_RANGE = auto()
    INVALID_CHAR_LENGTH = auto()
    UNHASHABLE_KEY = auto()
    HOST_ALLOCATION_FAILURE = auto()
    DEPTH_LIMIT_EXCEEDED = auto()
    CUSTOM = auto()


def format_path(path: Sequence[PathElement]) -> str:
    """Render a structural path as ``$.field[0].other``."""
    parts = ["$"]
    for element in path:
        if isinstance(element, int):
            parts.append(f"[{element}]")
        elif element.isidentifier():
            parts.append(f".{element}")
        else:
            parts.append(f"[{element!r}]")
    return "".join(parts)


class TranscodeError(Exception):
    """Base class of all encode/decode failures.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    path:
        Field names, sequence indices and variant names leading from the
        root value to the node that failed.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.CUSTOM

    def __init__(self, message: str, path: Sequence[PathElement] = ()) -> None:
        self.message = message
        self.path: tuple[PathElement, ...] = tuple(path)
        super().__init__(str(self))

    @property
    def location(self) -> str:
        """The ``path`` rendered for display."""
        return format_path(self.path)

    def __str__(self) -> str:
        return f"{type(self).__name__} at {self.location}: {self.message}"


class TypeMismatch(TranscodeError):
    """The object or value is not of the expected kind."""

    kind = ErrorKind.TYPE_MISMATCH

    def __init__(self, expected: str, found: str, path: Sequence[PathElement] = ()) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected}, found {found}", path)


class MissingField(TranscodeError):
    """A required struct field is absent from the mapping."""

    kind = ErrorKind.MISSING_FIELD

    def __init__(self, name: str, path: Sequence[PathElement] = ()) -> None:
        self.name = name
        super().__init__(f"missing field {name!r}", path)


class UnknownField(TranscodeError):
    """A mapping carries a key the struct does not declare.

    Only raised when ``deny_unknown_fields`` is enabled.
    """

    kind = ErrorKind.UNKNOWN_FIELD

    def __init__(self, name: str, path: Sequence[PathElement] = ()) -> None:
        self.name = name
        super().__init__(f"unknown field {name!r}", path)


class UnknownVariant(TranscodeError):
    """A variant discriminator names no acceptable variant."""

    kind = ErrorKind.UNKNOWN_VARIANT

    def __init__(
        self,
        name: str,
        known: Sequence[str] = (),
        path: Sequence[PathElement] = (),
    ) -> None:
        self.name = name
        self.known: tuple[str, ...] = tuple(known)
        expected = ", ".join(repr(k) for k in self.known) or "none"
        super().__init__(f"unknown variant {name!r}, expected one of {expected}", path)


class InvalidVariantEncoding(TranscodeError):
    """A mapping used as a variant does not have exactly one entry."""

    kind = ErrorKind.INVALID_VARIANT_ENCODING

    def __init__(self, entries: int, path: Sequence[PathElement] = ()) -> None:
        self.entries = entries
        super().__init__(
            f"variant mapping must have exactly one entry, found {entries}", path
        )


class ArityMismatch(TranscodeError):
    """A fixed-arity tuple has the wrong number of elements."""

    kind = ErrorKind.ARITY_MISMATCH

    def __init__(self, expected: int, found: int, path: Sequence[PathElement] = ()) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"expected {expected} element(s), found {found}", path)


class OutOfRange(TranscodeError):
    """A number does not fit the target width or signedness."""

    kind = ErrorKind.OUT_OF_RANGE

    def __init__(self, value: Any, target: str, path: Sequence[PathElement] = ()) -> None:
        self.value = value
        self.target = target
        super().__init__(f"{value!r} is out of range for {target}", path)


class InvalidCharLength(TranscodeError):
    """Text used as a char does not hold exactly one character."""

    kind = ErrorKind.INVALID_CHAR_LENGTH

    def __init__(self, length: int, path: Sequence[PathElement] = ()) -> None:
        self.length = length
        super().__init__(f"expected a single character, found {length}", path)


class UnhashableKey(TranscodeError):
    """A map key cannot be used as a mapping key."""

    kind = ErrorKind.UNHASHABLE_KEY

    def __init__(self, found: str, path: Sequence[PathElement] = ()) -> None:
        self.found = found
        super().__init__(f"map key of type {found} is not hashable", path)


class HostAllocationFailure(TranscodeError):
    """The host access layer could not construct an object."""

    kind = ErrorKind.HOST_ALLOCATION_FAILURE

    def __init__(self, cause: BaseException, path: Sequence[PathElement] = ()) -> None:
        self.cause = cause
        super().__init__(
            f"host could not allocate object: {type(cause).__name__}: {cause}", path
        )


class DepthLimitExceeded(TranscodeError):
    """The value is nested deeper than ``max_depth`` allows."""

    kind = ErrorKind.DEPTH_LIMIT_EXCEEDED

    def __init__(self, limit: int, path: Sequence[PathElement] = ()) -> None:
        self.limit = limit
        super().__init__(f"nesting depth exceeds the limit of {limit}", path)


class Custom(TranscodeError):
    """A failure reported by a value's own factory, getter or validation."""

    kind = ErrorKind.CUSTOM

    def __init__(self, message: str, path: Sequence[PathElement] = ()) -> None:
        super().__init__(message, path)
