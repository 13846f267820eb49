"""Convenience API for serdyn: transcoding without managing a context.

``serdyn.encode`` and ``serdyn.decode`` take an explicit host context.
This module adds ``to_dynamic`` / ``from_dynamic``, which acquire the
default :class:`~serdyn.host.NativeHost` for the duration of one call,
and the ``Codec`` wrapper that derives a shape once and reuses it.

Example
-------
::

    from serdyn import Codec

    codec = Codec(Point)
    obj = codec.encode(Point(1, 2))      # {"x": 1, "y": 2}
    point = codec.decode(obj)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from serdyn.host import Host
    from serdyn.model.shapes import Shape
    from serdyn.options import TranscodeOptions

T = TypeVar("T")


def to_dynamic(
    value: Any,
    shape: Any = None,
    *,
    options: "TranscodeOptions | None" = None,
    host: "Host | None" = None,
) -> Any:
    """Encode ``value`` using a freshly acquired host context.

    Parameters
    ----------
    value:
        The typed value.
    shape:
        Shape or type annotation; inferred from ``value`` when omitted.
    options:
        Traversal options.
    host:
        Host to acquire; the process-wide default when omitted.
    """
    from serdyn.encoder import encode
    from serdyn.host import default_host

    with (host or default_host()).acquire() as ctx:
        return encode(ctx, value, shape, options=options)


def from_dynamic(
    obj: Any,
    tp: Any,
    *,
    options: "TranscodeOptions | None" = None,
    host: "Host | None" = None,
) -> Any:
    """Decode ``obj`` into an instance of ``tp`` using a fresh host context."""
    from serdyn.decoder import decode
    from serdyn.host import default_host

    with (host or default_host()).acquire() as ctx:
        return decode(ctx, obj, tp, options=options)


class Codec(Generic[T]):
    """Encoder/decoder pair bound to one type.

    Parameters
    ----------
    tp:
        The type (or a hand-written shape) to transcode.
    options:
        Options applied to every call.
    host:
        Host acquired per call; the process-wide default when omitted.

    Example
    -------
    ::

        codec = Codec(list[u8])
        codec.encode([1, 2, 3])
        codec.decode([1, 2, 300])   # raises OutOfRange at $[2]
    """

    def __init__(
        self,
        tp: Any,
        options: "TranscodeOptions | None" = None,
        host: "Host | None" = None,
    ) -> None:
        from serdyn.model.derive import as_shape

        self._type = tp
        self._shape: Shape = as_shape(tp)
        self._options = options
        self._host = host

    @property
    def shape(self) -> "Shape":
        """The derived shape."""
        return self._shape

    def encode(self, value: T) -> Any:
        return to_dynamic(value, self._shape, options=self._options, host=self._host)

    def decode(self, obj: Any) -> T:
        return from_dynamic(obj, self._shape, options=self._options, host=self._host)

    def __repr__(self) -> str:
        return f"Codec(shape={self._shape.describe()!r})"
