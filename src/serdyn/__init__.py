"""serdyn: structural transcoding between typed values and dynamic objects.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    from dataclasses import dataclass

    import serdyn
    from serdyn import u8

    @dataclass
    class Pixel:
        x: u8
        y: u8

    with serdyn.NativeHost().acquire() as ctx:
        obj = serdyn.encode(ctx, Pixel(3, 4))     # {"x": 3, "y": 4}
        pixel = serdyn.decode(ctx, obj, Pixel)

    serdyn.from_dynamic({"x": 300, "y": 0}, Pixel)
    # OutOfRange at $.x: 300 is out of range for u8

    serdyn.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from serdyn.convenience import Codec, from_dynamic, to_dynamic
from serdyn.errors import (
    ArityMismatch,
    Custom,
    DepthLimitExceeded,
    ErrorKind,
    HostAllocationFailure,
    InvalidCharLength,
    InvalidVariantEncoding,
    MissingField,
    OutOfRange,
    TranscodeError,
    TypeMismatch,
    UnhashableKey,
    UnknownField,
    UnknownVariant,
)
from serdyn.host import ContextNotActiveError, NativeHost, default_host
from serdyn.model import (
    char,
    f32,
    f64,
    i8,
    i16,
    i32,
    i64,
    i128,
    newtype,
    shape_of,
    tagged_union,
    tuple_struct,
    u8,
    u16,
    u32,
    u64,
    u128,
)
from serdyn.options import TranscodeOptions

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from serdyn.host import HostContext


def encode(
    ctx: "HostContext",
    value: Any,
    shape: Any = None,
    *,
    options: TranscodeOptions | None = None,
) -> Any:
    """Encode a typed value into a dynamic object.

    Parameters
    ----------
    ctx:
        Active host context, e.g. from ``NativeHost().acquire()``.
    value:
        The typed value.
    shape:
        Shape or type annotation; inferred from ``value`` when omitted.
    options:
        Traversal options.

    Returns
    -------
    Any
        The dynamic object.

    Raises
    ------
    TranscodeError
        If ``value`` does not conform to ``shape``.
    """
    from serdyn.encoder.encoder import encode as _encode

    return _encode(ctx, value, shape, options=options)


def decode(
    ctx: "HostContext",
    obj: Any,
    shape: Any,
    *,
    options: TranscodeOptions | None = None,
) -> Any:
    """Decode a dynamic object into a typed value.

    Parameters
    ----------
    ctx:
        Active host context.
    obj:
        The dynamic object.
    shape:
        Shape or type annotation of the expected value.
    options:
        Traversal options.

    Returns
    -------
    Any
        The typed value.

    Raises
    ------
    TranscodeError
        On the first structural mismatch.
    """
    from serdyn.decoder.decoder import decode as _decode

    return _decode(ctx, obj, shape, options=options)


__all__ = [
    "__version__",
    "encode",
    "decode",
    "to_dynamic",
    "from_dynamic",
    "Codec",
    "shape_of",
    "TranscodeOptions",
    "NativeHost",
    "default_host",
    "ContextNotActiveError",
    # markers and width aliases
    "newtype",
    "tuple_struct",
    "tagged_union",
    "u8",
    "u16",
    "u32",
    "u64",
    "u128",
    "i8",
    "i16",
    "i32",
    "i64",
    "i128",
    "f32",
    "f64",
    "char",
    # errors
    "ErrorKind",
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
