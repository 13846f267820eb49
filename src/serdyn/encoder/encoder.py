"""Encoder: typed values to dynamic objects.

The encoder walks a typed value alongside its shape and builds the
canonical dynamic representation through a :class:`HostContext`:

=====================  ==============================================
Shape                  Dynamic object
=====================  ==============================================
scalar                 the matching scalar
option                 ``None`` when absent, else the inner encoding
unit / unit struct     ``()``
newtype                the inner encoding (no tag)
sequence               ``list``
tuple / tuple struct   ``tuple`` (no tag)
map                    ``dict`` with encoded keys and values
struct                 ``dict`` of field name -> encoding (no tag)
unit variant           ``"Name"``
newtype variant        ``{"Name": payload}``
tuple variant          ``{"Name": (p0, p1, ...)}``
struct variant         ``{"Name": {"field": value, ...}}``
=====================  ==============================================

Usage
-----
::

    from serdyn.encoder import Encoder
    from serdyn.host import NativeHost

    with NativeHost().acquire() as ctx:
        obj = Encoder(ctx).encode(point, Point)
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from serdyn.errors import (
    ArityMismatch,
    Custom,
    DepthLimitExceeded,
    HostAllocationFailure,
    InvalidCharLength,
    OutOfRange,
    PathElement,
    TranscodeError,
    TypeMismatch,
    UnhashableKey,
)
from serdyn.host import HostContext, HostLimitError, MappingBuilder
from serdyn.model.derive import as_shape, infer_shape
from serdyn.model.shapes import (
    ANY,
    AnyShape,
    BoolShape,
    BytesShape,
    CharShape,
    EnumShape,
    FieldShape,
    FloatShape,
    IntShape,
    MapShape,
    NewtypeShape,
    OptionShape,
    SeqShape,
    Shape,
    ShapeKind,
    StrShape,
    StructShape,
    TupleShape,
    TupleStructShape,
    UnitShape,
    UnitStructShape,
    VariantKind,
    resolve,
)
from serdyn.options import TranscodeOptions

Path = tuple[PathElement, ...]


def _type_name(value: Any) -> str:
    return type(value).__qualname__


def _key_label(key: Any) -> PathElement:
    return key if isinstance(key, (str, int)) and not isinstance(key, bool) else repr(key)


class Encoder:
    """Encodes typed values into dynamic objects.

    Parameters
    ----------
    ctx:
        Active host context; every object is built through it.
    options:
        Traversal options.  Only ``max_depth`` affects encoding.
    """

    def __init__(self, ctx: HostContext, options: TranscodeOptions | None = None) -> None:
        self._ctx = ctx
        self._options = options if options is not None else TranscodeOptions()
        self._handlers: dict[ShapeKind, Callable[[Any, Any, Path, int], Any]] = {
            ShapeKind.ANY: self._encode_any,
            ShapeKind.BOOL: self._encode_bool,
            ShapeKind.INT: self._encode_int,
            ShapeKind.FLOAT: self._encode_float,
            ShapeKind.CHAR: self._encode_char,
            ShapeKind.STR: self._encode_str,
            ShapeKind.BYTES: self._encode_bytes,
            ShapeKind.OPTION: self._encode_option,
            ShapeKind.UNIT: self._encode_unit,
            ShapeKind.UNIT_STRUCT: self._encode_unit_struct,
            ShapeKind.NEWTYPE: self._encode_newtype,
            ShapeKind.SEQ: self._encode_seq,
            ShapeKind.TUPLE: self._encode_tuple,
            ShapeKind.TUPLE_STRUCT: self._encode_tuple_struct,
            ShapeKind.MAP: self._encode_map,
            ShapeKind.STRUCT: self._encode_struct,
            ShapeKind.ENUM: self._encode_enum,
        }

    def encode(self, value: Any, shape: Any = None) -> Any:
        """Encode ``value`` into a dynamic object.

        Parameters
        ----------
        value:
            The typed value.
        shape:
            A shape or a type annotation describing ``value``.  When
            omitted the shape is inferred from the value itself.

        Raises
        ------
        TranscodeError
            On the first structural failure; nothing partial is returned.
        """
        target = ANY if shape is None else as_shape(shape)
        return self._encode(value, target, (), 0)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _encode(self, value: Any, shape: Shape, path: Path, depth: int) -> Any:
        if depth > self._options.max_depth:
            raise DepthLimitExceeded(self._options.max_depth, path)
        shape = resolve(shape)
        handler = self._handlers.get(shape.kind)
        if handler is None:
            raise TypeError(f"Unsupported shape kind {shape.kind!r}")
        try:
            return handler(value, shape, path, depth)
        except (MemoryError, HostLimitError) as exc:
            raise HostAllocationFailure(exc, path) from exc

    def _call(self, fn: Callable[..., Any], path: Path, *args: Any) -> Any:
        """Call a shape's describe hook, reporting its failures as ``Custom``."""
        try:
            return fn(*args)
        except TranscodeError:
            raise
        except Exception as exc:
            raise Custom(str(exc) or type(exc).__name__, path) from exc

    def _iterate(self, iterable: Any, path: Path) -> Iterator[Any]:
        """Yield the items of a user iterable, reporting its failures as ``Custom``."""
        iterator = self._call(iter, path, iterable)
        while True:
            try:
                item = next(iterator)
            except StopIteration:
                return
            except TranscodeError:
                raise
            except Exception as exc:
                raise Custom(str(exc) or type(exc).__name__, path) from exc
            yield item

    @staticmethod
    def _check_instance(value: Any, factory: Any, expected: str, path: Path) -> None:
        if isinstance(factory, type) and not isinstance(value, factory):
            raise TypeMismatch(expected, _type_name(value), path)

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _encode_any(self, value: Any, shape: AnyShape, path: Path, depth: int) -> Any:
        try:
            inferred = infer_shape(value)
        except TypeError:
            raise TypeMismatch("an encodable value", _type_name(value), path) from None
        return self._encode(value, inferred, path, depth)

    def _encode_bool(self, value: Any, shape: BoolShape, path: Path, depth: int) -> Any:
        if not isinstance(value, bool):
            raise TypeMismatch("bool", _type_name(value), path)
        return self._ctx.boolean(value)

    def _encode_int(self, value: Any, shape: IntShape, path: Path, depth: int) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeMismatch(shape.describe(), _type_name(value), path)
        if not shape.contains(value):
            raise OutOfRange(value, shape.describe(), path)
        return self._ctx.integer(value)

    def _encode_float(self, value: Any, shape: FloatShape, path: Path, depth: int) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatch(shape.describe(), _type_name(value), path)
        try:
            number = float(value)
        except OverflowError:
            raise OutOfRange(value, shape.describe(), path) from None
        if not shape.contains(number):
            raise OutOfRange(value, shape.describe(), path)
        return self._ctx.floating(number)

    def _encode_char(self, value: Any, shape: CharShape, path: Path, depth: int) -> Any:
        if not isinstance(value, str):
            raise TypeMismatch("char", _type_name(value), path)
        if len(value) != 1:
            raise InvalidCharLength(len(value), path)
        return self._ctx.text(value)

    def _encode_str(self, value: Any, shape: StrShape, path: Path, depth: int) -> Any:
        if not isinstance(value, str):
            raise TypeMismatch("str", _type_name(value), path)
        return self._ctx.text(value)

    def _encode_bytes(self, value: Any, shape: BytesShape, path: Path, depth: int) -> Any:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeMismatch("bytes", _type_name(value), path)
        return self._ctx.binary(value)

    # ------------------------------------------------------------------
    # Wrappers
    # ------------------------------------------------------------------

    def _encode_option(self, value: Any, shape: OptionShape, path: Path, depth: int) -> Any:
        if value is None:
            return self._ctx.none()
        return self._encode(value, shape.inner, path, depth + 1)

    def _encode_unit(self, value: Any, shape: UnitShape, path: Path, depth: int) -> Any:
        if not isinstance(value, tuple) or value:
            raise TypeMismatch("unit", _type_name(value), path)
        return self._ctx.new_tuple(())

    def _encode_unit_struct(
        self, value: Any, shape: UnitStructShape, path: Path, depth: int
    ) -> Any:
        self._check_instance(value, shape.factory, shape.name, path)
        return self._ctx.new_tuple(())

    def _encode_newtype(self, value: Any, shape: NewtypeShape, path: Path, depth: int) -> Any:
        self._check_instance(value, shape.factory, shape.name, path)
        inner = self._call(shape.unwrap, path, value)
        return self._encode(inner, shape.inner, path, depth + 1)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _encode_seq(self, value: Any, shape: SeqShape, path: Path, depth: int) -> Any:
        if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Iterable):
            raise TypeMismatch(shape.describe(), _type_name(value), path)
        builder = self._ctx.sequence_builder()
        for index, item in enumerate(self._iterate(value, path)):
            builder.append(self._encode(item, shape.element, path + (index,), depth + 1))
        return builder.finish()

    def _encode_items(
        self, items: Any, elements: tuple[Shape, ...], path: Path, depth: int
    ) -> Any:
        items = tuple(self._iterate(items, path))
        if len(items) != len(elements):
            raise ArityMismatch(len(elements), len(items), path)
        return self._ctx.new_tuple(
            [
                self._encode(item, element, path + (index,), depth + 1)
                for index, (item, element) in enumerate(zip(items, elements))
            ]
        )

    def _encode_tuple(self, value: Any, shape: TupleShape, path: Path, depth: int) -> Any:
        if not isinstance(value, tuple):
            raise TypeMismatch(shape.describe(), _type_name(value), path)
        return self._encode_items(value, shape.elements, path, depth)

    def _encode_tuple_struct(
        self, value: Any, shape: TupleStructShape, path: Path, depth: int
    ) -> Any:
        self._check_instance(value, shape.factory, shape.name, path)
        parts = self._call(shape.unpack, path, value)
        return self._encode_items(parts, shape.elements, path, depth)

    def _insert(self, builder: MappingBuilder, key: Any, value: Any, path: Path) -> None:
        try:
            builder.insert(key, value)
        except TypeError:
            raise UnhashableKey(_type_name(key), path) from None

    def _encode_map(self, value: Any, shape: MapShape, path: Path, depth: int) -> Any:
        if not isinstance(value, Mapping):
            raise TypeMismatch(shape.describe(), _type_name(value), path)
        builder = self._ctx.mapping_builder()
        for key, item in self._iterate(self._call(value.items, path), path):
            item_path = path + (_key_label(key),)
            encoded_key = self._encode(key, shape.key, item_path, depth + 1)
            encoded_value = self._encode(item, shape.value, item_path, depth + 1)
            self._insert(builder, encoded_key, encoded_value, item_path)
        return builder.finish()

    def _encode_fields(
        self,
        value: Any,
        fields: tuple[FieldShape, ...],
        getter: Callable[[Any, str], Any],
        path: Path,
        depth: int,
    ) -> Any:
        pairs = []
        for f in fields:
            field_path = path + (f.name,)
            item = self._call(getter, field_path, value, f.name)
            pairs.append(
                (self._ctx.text(f.name), self._encode(item, f.shape, field_path, depth + 1))
            )
        return self._ctx.new_mapping(pairs)

    def _encode_struct(self, value: Any, shape: StructShape, path: Path, depth: int) -> Any:
        self._check_instance(value, shape.factory, shape.name, path)
        return self._encode_fields(value, shape.fields, shape.getter, path, depth)

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def _encode_enum(self, value: Any, shape: EnumShape, path: Path, depth: int) -> Any:
        variant = shape.variant_for(value)
        if variant is None:
            raise TypeMismatch(f"a variant of {shape.name}", _type_name(value), path)
        if variant.kind is VariantKind.UNIT:
            return self._ctx.text(variant.name)

        payload_path = path + (variant.name,)
        if variant.kind is VariantKind.NEWTYPE:
            inner = self._call(variant.unwrap, payload_path, value)
            payload = self._encode(inner, variant.inner, payload_path, depth + 1)
        elif variant.kind is VariantKind.TUPLE:
            parts = self._call(variant.unpack, payload_path, value)
            payload = self._encode_items(parts, variant.elements, payload_path, depth)
        elif variant.kind is VariantKind.STRUCT:
            payload = self._encode_fields(
                value, variant.fields, variant.getter, payload_path, depth
            )
        else:
            raise TypeError(f"Unsupported variant kind {variant.kind!r}")
        return self._ctx.new_mapping([(self._ctx.text(variant.name), payload)])


def encode(
    ctx: HostContext,
    value: Any,
    shape: Any = None,
    *,
    options: TranscodeOptions | None = None,
) -> Any:
    """Encode ``value`` into a dynamic object using ``ctx``.

    Parameters
    ----------
    ctx:
        Active host context held by the caller for the whole call.
    value:
        The typed value to encode.
    shape:
        A shape or annotation; inferred from ``value`` when omitted.
    options:
        Traversal options.

    Returns
    -------
    Any
        The dynamic object.
    """
    return Encoder(ctx, options).encode(value, shape)
