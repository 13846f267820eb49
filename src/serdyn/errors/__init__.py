"""serdyn error taxonomy.

Exports the ``TranscodeError`` base class, its structured subclasses and
the ``ErrorKind`` enum used for programmatic inspection.
"""
from __future__ import annotations

from serdyn.errors.taxonomy import (
    ArityMismatch,
    Custom,
    DepthLimitExceeded,
    ErrorKind,
    HostAllocationFailure,
    InvalidCharLength,
    InvalidVariantEncoding,
    MissingField,
    OutOfRange,
    PathElement,
    TranscodeError,
    TypeMismatch,
    UnhashableKey,
    UnknownField,
    UnknownVariant,
    format_path,
)

__all__ = [
    "ErrorKind",
    "PathElement",
    "format_path",
    "TranscodeError",
    "TypeMismatch",
    "MissingField",
    "UnknownField",
    "UnknownVariant",
    "InvalidVariantEncoding",
    "ArityMismatch",
    "OutOfRange",
    "InvalidCharLength",
    "UnhashableKey",
    "HostAllocationFailure",
    "DepthLimitExceeded",
    "Custom",
]
