"""Decoder: dynamic objects to typed values.

The decoder walks a dynamic object against the shape the caller expects
and builds the typed value through each shape's ``factory``.  It never
guesses: scalars must be of the exact matching kind (``1`` is not a
``bool``), integers must fit their width, tuples must have the declared
arity, required fields must be present and enum variants must be
encoded canonically.  The first mismatch aborts the whole call with a
structured :class:`~serdyn.errors.TranscodeError` carrying the path to
the offending node.

Usage
-----
::

    from serdyn.decoder import Decoder
    from serdyn.host import NativeHost

    with NativeHost().acquire() as ctx:
        point = Decoder(ctx).decode({"x": 1, "y": 2}, Point)
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from serdyn.adapters import AdapterRegistry, default_registry
from serdyn.errors import (
    ArityMismatch,
    Custom,
    DepthLimitExceeded,
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
from serdyn.host import DynamicKind, HostContext, HostLimitError
from serdyn.model.derive import as_shape
from serdyn.model.shapes import (
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
    Variant,
    VariantKind,
    resolve,
)
from serdyn.options import TranscodeOptions

logger = logging.getLogger(__name__)

Path = tuple[PathElement, ...]

_SCALAR_KINDS = frozenset(
    {
        DynamicKind.ABSENT,
        DynamicKind.BOOL,
        DynamicKind.INT,
        DynamicKind.FLOAT,
        DynamicKind.TEXT,
    }
)


def _key_label(key: Any) -> PathElement:
    return key if isinstance(key, (str, int)) and not isinstance(key, bool) else repr(key)


class Decoder:
    """Decodes dynamic objects into typed values.

    Parameters
    ----------
    ctx:
        Active host context; every object is inspected through it.
    options:
        Traversal options (unknown-field policy, leniency switches,
        depth limit, adapter use).
    adapters:
        Registry consulted when a struct is expected but an opaque object
        is found.  Defaults to :func:`serdyn.adapters.default_registry`.
    """

    def __init__(
        self,
        ctx: HostContext,
        options: TranscodeOptions | None = None,
        adapters: AdapterRegistry | None = None,
    ) -> None:
        self._ctx = ctx
        self._options = options if options is not None else TranscodeOptions()
        self._adapters: AdapterRegistry | None = None
        if self._options.use_adapters:
            self._adapters = adapters if adapters is not None else default_registry()
        self._handlers: dict[ShapeKind, Callable[[Any, Any, Path, int], Any]] = {
            ShapeKind.ANY: self._decode_any,
            ShapeKind.BOOL: self._decode_bool,
            ShapeKind.INT: self._decode_int,
            ShapeKind.FLOAT: self._decode_float,
            ShapeKind.CHAR: self._decode_char,
            ShapeKind.STR: self._decode_str,
            ShapeKind.BYTES: self._decode_bytes,
            ShapeKind.OPTION: self._decode_option,
            ShapeKind.UNIT: self._decode_unit,
            ShapeKind.UNIT_STRUCT: self._decode_unit_struct,
            ShapeKind.NEWTYPE: self._decode_newtype,
            ShapeKind.SEQ: self._decode_seq,
            ShapeKind.TUPLE: self._decode_tuple,
            ShapeKind.TUPLE_STRUCT: self._decode_tuple_struct,
            ShapeKind.MAP: self._decode_map,
            ShapeKind.STRUCT: self._decode_struct,
            ShapeKind.ENUM: self._decode_enum,
        }

    def decode(self, obj: Any, shape: Any) -> Any:
        """Decode ``obj`` against ``shape``.

        Parameters
        ----------
        obj:
            The dynamic object.
        shape:
            A shape or a type annotation describing the expected value.

        Returns
        -------
        Any
            The typed value built by the shape's factories.

        Raises
        ------
        TranscodeError
            On the first structural mismatch; no partial value is returned.
        """
        return self._decode(obj, as_shape(shape), (), 0)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _decode(self, obj: Any, shape: Shape, path: Path, depth: int) -> Any:
        if depth > self._options.max_depth:
            raise DepthLimitExceeded(self._options.max_depth, path)
        shape = resolve(shape)
        handler = self._handlers.get(shape.kind)
        if handler is None:
            raise TypeError(f"Unsupported shape kind {shape.kind!r}")
        try:
            return handler(obj, shape, path, depth)
        except (MemoryError, HostLimitError) as exc:
            raise HostAllocationFailure(exc, path) from exc

    def _kind(self, obj: Any) -> DynamicKind:
        return self._ctx.kind_of(obj)

    def _mismatch(self, expected: str, obj: Any, path: Path) -> TypeMismatch:
        kind = self._kind(obj)
        found = type(obj).__qualname__ if kind is DynamicKind.OBJECT else kind.value
        return TypeMismatch(expected, found, path)

    def _build(self, factory: Callable[..., Any], path: Path, *args: Any, **kwargs: Any) -> Any:
        """Call a factory or adapter hook, reporting its failures as ``Custom``."""
        try:
            return factory(*args, **kwargs)
        except TranscodeError:
            raise
        except Exception as exc:
            raise Custom(str(exc) or type(exc).__name__, path) from exc

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def _decode_any(self, obj: Any, shape: AnyShape, path: Path, depth: int) -> Any:
        kind = self._kind(obj)
        if kind in _SCALAR_KINDS:
            return obj
        if kind is DynamicKind.BYTES:
            return bytes(obj)
        if kind is DynamicKind.SEQUENCE:
            return [
                self._decode(item, shape, path + (index,), depth + 1)
                for index, item in enumerate(self._ctx.sequence_items(obj))
            ]
        if kind is DynamicKind.TUPLE:
            return tuple(
                self._decode(item, shape, path + (index,), depth + 1)
                for index, item in enumerate(self._ctx.sequence_items(obj))
            )
        if kind is DynamicKind.MAPPING:
            entries = self._ctx.mapping_items(obj)
        else:
            entries = self._adapted_fields(obj, "any", path).items()
        result: dict[Any, Any] = {}
        for key, value in entries:
            item_path = path + (_key_label(key),)
            decoded_key = self._decode(key, shape, item_path, depth + 1)
            self._store(result, decoded_key, self._decode(value, shape, item_path, depth + 1), item_path)
        return result

    def _decode_bool(self, obj: Any, shape: BoolShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.BOOL:
            raise self._mismatch("bool", obj, path)
        return obj

    def _decode_int(self, obj: Any, shape: IntShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.INT:
            raise self._mismatch(shape.describe(), obj, path)
        if not shape.contains(obj):
            raise OutOfRange(obj, shape.describe(), path)
        return int(obj)

    def _decode_float(self, obj: Any, shape: FloatShape, path: Path, depth: int) -> Any:
        kind = self._kind(obj)
        if kind is DynamicKind.FLOAT:
            number = obj
        elif kind is DynamicKind.INT and self._options.int_as_float:
            try:
                number = float(obj)
            except OverflowError:
                raise OutOfRange(obj, shape.describe(), path) from None
        else:
            raise self._mismatch(shape.describe(), obj, path)
        if not shape.contains(number):
            raise OutOfRange(obj, shape.describe(), path)
        return number

    def _decode_char(self, obj: Any, shape: CharShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.TEXT:
            raise self._mismatch("char", obj, path)
        if len(obj) != 1:
            raise InvalidCharLength(len(obj), path)
        return obj

    def _decode_str(self, obj: Any, shape: StrShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.TEXT:
            raise self._mismatch("str", obj, path)
        return obj

    def _decode_bytes(self, obj: Any, shape: BytesShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.BYTES:
            raise self._mismatch("bytes", obj, path)
        return bytes(obj)

    # ------------------------------------------------------------------
    # Wrappers
    # ------------------------------------------------------------------

    def _decode_option(self, obj: Any, shape: OptionShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is DynamicKind.ABSENT:
            return None
        return self._decode(obj, shape.inner, path, depth + 1)

    def _expect_empty_tuple(self, obj: Any, expected: str, path: Path) -> None:
        if self._kind(obj) is not DynamicKind.TUPLE:
            raise self._mismatch(expected, obj, path)
        found = self._ctx.length(obj)
        if found:
            raise ArityMismatch(0, found, path)

    def _decode_unit(self, obj: Any, shape: UnitShape, path: Path, depth: int) -> Any:
        self._expect_empty_tuple(obj, "unit", path)
        return ()

    def _decode_unit_struct(
        self, obj: Any, shape: UnitStructShape, path: Path, depth: int
    ) -> Any:
        self._expect_empty_tuple(obj, shape.name, path)
        return self._build(shape.factory, path)

    def _decode_newtype(self, obj: Any, shape: NewtypeShape, path: Path, depth: int) -> Any:
        inner = self._decode(obj, shape.inner, path, depth + 1)
        return self._build(shape.factory, path, inner)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def _decode_seq(self, obj: Any, shape: SeqShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.SEQUENCE:
            raise self._mismatch(shape.describe(), obj, path)
        items = [
            self._decode(item, shape.element, path + (index,), depth + 1)
            for index, item in enumerate(self._ctx.sequence_items(obj))
        ]
        return self._build(shape.factory, path, items)

    def _decode_items(
        self, obj: Any, elements: tuple[Shape, ...], expected: str, path: Path, depth: int
    ) -> list[Any]:
        kind = self._kind(obj)
        lenient = kind is DynamicKind.SEQUENCE and self._options.lists_as_tuples
        if kind is not DynamicKind.TUPLE and not lenient:
            raise self._mismatch(expected, obj, path)
        found = self._ctx.length(obj)
        if found != len(elements):
            raise ArityMismatch(len(elements), found, path)
        return [
            self._decode(item, element, path + (index,), depth + 1)
            for index, (item, element) in enumerate(zip(self._ctx.sequence_items(obj), elements))
        ]

    def _decode_tuple(self, obj: Any, shape: TupleShape, path: Path, depth: int) -> Any:
        return tuple(self._decode_items(obj, shape.elements, shape.describe(), path, depth))

    def _decode_tuple_struct(
        self, obj: Any, shape: TupleStructShape, path: Path, depth: int
    ) -> Any:
        items = self._decode_items(obj, shape.elements, shape.name, path, depth)
        return self._build(shape.factory, path, *items)

    def _store(self, result: dict[Any, Any], key: Any, value: Any, path: Path) -> None:
        try:
            result[key] = value
        except TypeError:
            raise UnhashableKey(type(key).__qualname__, path) from None

    def _decode_map(self, obj: Any, shape: MapShape, path: Path, depth: int) -> Any:
        if self._kind(obj) is not DynamicKind.MAPPING:
            raise self._mismatch(shape.describe(), obj, path)
        result: dict[Any, Any] = {}
        for key, value in self._ctx.mapping_items(obj):
            item_path = path + (_key_label(key),)
            decoded_key = self._decode(key, shape.key, item_path, depth + 1)
            decoded_value = self._decode(value, shape.value, item_path, depth + 1)
            self._store(result, decoded_key, decoded_value, item_path)
        return result

    # ------------------------------------------------------------------
    # Structs
    # ------------------------------------------------------------------

    def _adapted_fields(self, obj: Any, expected: str, path: Path) -> dict[str, Any]:
        adapter = self._adapters.find(obj) if self._adapters is not None else None
        if adapter is None:
            raise self._mismatch(expected, obj, path)
        return self._build(adapter.fields, path, obj)

    def _entries(self, obj: Any, expected: str, path: Path) -> dict[Any, Any]:
        kind = self._kind(obj)
        if kind is DynamicKind.MAPPING:
            return dict(self._ctx.mapping_items(obj))
        if kind is DynamicKind.OBJECT:
            return self._adapted_fields(obj, expected, path)
        raise self._mismatch(expected, obj, path)

    def _decode_fields(
        self,
        entries: dict[Any, Any],
        fields: tuple[FieldShape, ...],
        owner: str,
        path: Path,
        depth: int,
    ) -> dict[str, Any]:
        known = {f.name for f in fields}
        unknown = [key for key in entries if key not in known]
        if unknown:
            if self._options.deny_unknown_fields:
                raise UnknownField(str(unknown[0]), path)
            logger.debug(
                "Ignoring unknown field(s) %s of %s at %s",
                ", ".join(repr(k) for k in unknown),
                owner,
                format_path(path),
            )
        values: dict[str, Any] = {}
        for f in fields:
            if f.name in entries:
                values[f.name] = self._decode(entries[f.name], f.shape, path + (f.name,), depth + 1)
            elif f.required:
                raise MissingField(f.name, path)
            else:
                values[f.name] = f.default_value()
        return values

    def _decode_struct(self, obj: Any, shape: StructShape, path: Path, depth: int) -> Any:
        entries = self._entries(obj, shape.name, path)
        values = self._decode_fields(entries, shape.fields, shape.name, path, depth)
        return self._build(shape.factory, path, **values)

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def _decode_enum(self, obj: Any, shape: EnumShape, path: Path, depth: int) -> Any:
        kind = self._kind(obj)
        if kind is DynamicKind.TEXT:
            variant = shape.variant_named(obj)
            if variant is None or variant.kind is not VariantKind.UNIT:
                raise UnknownVariant(obj, shape.unit_variant_names, path)
            return self._build(variant.factory, path)
        if kind is not DynamicKind.MAPPING:
            raise self._mismatch(shape.name, obj, path)

        entries = self._ctx.length(obj)
        if entries != 1:
            raise InvalidVariantEncoding(entries, path)
        ((name, payload),) = self._ctx.mapping_items(obj)
        variant = shape.variant_named(name) if isinstance(name, str) else None
        if variant is None:
            raise UnknownVariant(str(name), shape.variant_names, path)
        return self._decode_variant(variant, payload, path + (name,), depth)

    def _decode_variant(self, variant: Variant, payload: Any, path: Path, depth: int) -> Any:
        if variant.kind is VariantKind.UNIT:
            if self._kind(payload) is not DynamicKind.ABSENT:
                self._expect_empty_tuple(payload, "unit", path)
            return self._build(variant.factory, path)
        if variant.kind is VariantKind.NEWTYPE:
            inner = self._decode(payload, variant.inner, path, depth + 1)
            return self._build(variant.factory, path, inner)
        if variant.kind is VariantKind.TUPLE:
            items = self._decode_items(
                payload, variant.elements, f"tuple variant {variant.name}", path, depth
            )
            return self._build(variant.factory, path, *items)
        if variant.kind is VariantKind.STRUCT:
            entries = self._entries(payload, f"struct variant {variant.name}", path)
            values = self._decode_fields(entries, variant.fields, variant.name, path, depth)
            return self._build(variant.factory, path, **values)
        raise TypeError(f"Unsupported variant kind {variant.kind!r}")


def decode(
    ctx: HostContext,
    obj: Any,
    shape: Any,
    *,
    options: TranscodeOptions | None = None,
    adapters: AdapterRegistry | None = None,
) -> Any:
    """Decode ``obj`` against ``shape`` using ``ctx``.

    Parameters
    ----------
    ctx:
        Active host context held by the caller for the whole call.
    obj:
        The dynamic object.
    shape:
        A shape or a type annotation of the expected value.
    options:
        Traversal options.
    adapters:
        Foreign-object adapter registry; defaults to the shared one.

    Returns
    -------
    Any
        The typed value.
    """
    return Decoder(ctx, options, adapters).decode(obj, shape)
