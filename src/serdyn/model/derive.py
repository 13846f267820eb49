"""Shape derivation from Python type annotations.

``shape_of`` turns an annotation into a :mod:`serdyn.model.shapes` tree so
that callers rarely have to write shapes by hand.

Supported annotations
---------------------
=================================  =======================================
Annotation                         Shape
=================================  =======================================
``bool`` / ``float`` / ``str``     ``BoolShape`` / ``FloatShape`` / ``StrShape``
``int``                            unbounded ``IntShape``
``bytes``                          ``BytesShape``
``typing.Any``                     ``AnyShape``
``u8`` ... ``i128``, ``f32``,      width-specific scalars (``Annotated``)
``char``
``Optional[T]``                    ``OptionShape``
``list[T]`` / ``Sequence[T]``      ``SeqShape``
``tuple[T, ...]``                  ``SeqShape`` decoded to a ``tuple``
``tuple[()]``                      ``UnitShape``
``tuple[A, B]``                    ``TupleShape``
``dict[K, V]`` / ``Mapping[K, V]`` ``MapShape``
dataclass                          ``StructShape`` / ``UnitStructShape``
``@newtype`` dataclass             ``NewtypeShape``
``@tuple_struct`` / ``NamedTuple`` ``TupleStructShape``
``enum.Enum`` subclass             ``EnumShape`` of unit variants
``A | B`` of classes               ``EnumShape`` named after the classes
``@tagged_union`` base class       ``EnumShape`` of its subclasses
=================================  =======================================

``typing.Annotated[T, shape]`` always wins over the derived shape.
"""
from __future__ import annotations

import collections.abc
import dataclasses
import enum
import functools
import logging
import operator
import types
import typing
from collections.abc import Callable, Sequence
from typing import Annotated, Any, Union

from serdyn.model.shapes import (
    ANY,
    SHAPE_TYPES,
    BoolShape,
    BytesShape,
    CharShape,
    EnumShape,
    FieldShape,
    FloatShape,
    IntShape,
    MapShape,
    NewtypeShape,
    NewtypeVariant,
    OptionShape,
    SeqShape,
    Shape,
    ShapeRef,
    StrShape,
    StructShape,
    StructVariant,
    TupleShape,
    TupleStructShape,
    TupleVariant,
    UnitShape,
    UnitStructShape,
    UnitVariant,
    Variant,
)

logger = logging.getLogger(__name__)

_KIND_ATTR = "__serdyn_kind__"

# ---------------------------------------------------------------------------
# Width-specific scalar aliases
# ---------------------------------------------------------------------------

u8 = Annotated[int, IntShape(8, signed=False)]
u16 = Annotated[int, IntShape(16, signed=False)]
u32 = Annotated[int, IntShape(32, signed=False)]
u64 = Annotated[int, IntShape(64, signed=False)]
u128 = Annotated[int, IntShape(128, signed=False)]
i8 = Annotated[int, IntShape(8)]
i16 = Annotated[int, IntShape(16)]
i32 = Annotated[int, IntShape(32)]
i64 = Annotated[int, IntShape(64)]
i128 = Annotated[int, IntShape(128)]
f32 = Annotated[float, FloatShape(32)]
f64 = Annotated[float, FloatShape(64)]
char = Annotated[str, CharShape()]


# ---------------------------------------------------------------------------
# Class markers
# ---------------------------------------------------------------------------


def newtype(cls: type) -> type:
    """Mark a single-field dataclass as a transparent newtype wrapper."""
    setattr(cls, _KIND_ATTR, "newtype")
    return cls


def tuple_struct(cls: type) -> type:
    """Mark a dataclass as a tuple struct (encoded as a bare tuple)."""
    setattr(cls, _KIND_ATTR, "tuple_struct")
    return cls


def tagged_union(cls: type) -> type:
    """Mark a base class whose subclasses are the enum's variants.

    Every subclass, direct or indirect, is a variant.  An instance is
    tagged with the most specific variant class it belongs to.  Defining
    a new subclass clears the :func:`shape_of` cache, so later lookups
    see it; shapes obtained before that keep their old variant table.

    Example
    -------
    ::

        @tagged_union
        class Shape:
            pass

        @dataclass
        class Circle(Shape):
            radius: float

        @dataclass
        class Empty(Shape):
            pass
    """
    setattr(cls, _KIND_ATTR, "tagged_union")
    original = cls.__dict__.get("__init_subclass__")

    def __init_subclass__(sub: type, **kwargs: Any) -> None:
        if original is not None:
            original.__func__(sub, **kwargs)
        else:
            super(cls, sub).__init_subclass__(**kwargs)
        shape_of.cache_clear()

    cls.__init_subclass__ = classmethod(__init_subclass__)  # type: ignore[assignment]
    return cls


def _own_marker(cls: type) -> str | None:
    return cls.__dict__.get(_KIND_ATTR)


def _descendants(cls: type) -> list[type]:
    found: list[type] = []
    for sub in cls.__subclasses__():
        for candidate in (sub, *_descendants(sub)):
            if candidate not in found:
                found.append(candidate)
    return found


def union_owner(cls: type) -> type | None:
    """Return the ``@tagged_union`` base that ``cls`` is a variant of."""
    for base in cls.__mro__[1:]:
        if _own_marker(base) == "tagged_union":
            return base
    return None


# ---------------------------------------------------------------------------
# Small callables stored on shapes
# ---------------------------------------------------------------------------


def _constant(value: Any) -> Callable[[], Any]:
    def factory() -> Any:
        return value

    return factory


def _is(value: Any) -> Callable[[Any], bool]:
    def matches(candidate: Any) -> bool:
        return candidate is value

    return matches


def _instance_of(cls: type, narrower: tuple[type, ...] = ()) -> Callable[[Any], bool]:
    def matches(candidate: Any) -> bool:
        return isinstance(candidate, cls) and not isinstance(candidate, narrower)

    return matches


def _type_hints(tp: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except NameError as exc:
        raise TypeError(
            f"Cannot resolve the annotations of {tp.__qualname__!r}: {exc}"
        ) from exc


def _attribute_tuple(names: Sequence[str]) -> Callable[[Any], tuple[Any, ...]]:
    def unpack(value: Any) -> tuple[Any, ...]:
        return tuple(getattr(value, name) for name in names)

    return unpack


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


_SEQUENCE_ORIGINS = (list, collections.abc.Sequence, collections.abc.MutableSequence)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class _Deriver:
    """Builds one shape tree, tracking classes under construction."""

    def __init__(self) -> None:
        self._in_progress: dict[type, ShapeRef] = {}

    def derive(self, tp: Any) -> Shape:
        if isinstance(tp, SHAPE_TYPES):
            return tp
        if tp is Any:
            return ANY
        if tp is bool:
            return BoolShape()
        if tp is int:
            return IntShape(None)
        if tp is float:
            return FloatShape()
        if tp is str:
            return StrShape()
        if tp is bytes:
            return BytesShape()

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)
        if origin is Annotated:
            for meta in args[1:]:
                if isinstance(meta, SHAPE_TYPES):
                    return meta
            return self.derive(args[0])
        if origin is Union or origin is types.UnionType:
            return self._union_annotation(tp, args)
        if origin in _SEQUENCE_ORIGINS:
            return SeqShape(self.derive(args[0]) if args else ANY)
        if origin is tuple:
            return self._tuple(args)
        if origin in _MAPPING_ORIGINS:
            if not args:
                return MapShape(ANY, ANY)
            return MapShape(self.derive(args[0]), self.derive(args[1]))

        if tp is list:
            return SeqShape(ANY)
        if tp is tuple:
            return SeqShape(ANY, factory=tuple)
        if tp is dict:
            return MapShape(ANY, ANY)
        if isinstance(tp, type):
            return self._class(tp)
        raise TypeError(f"Cannot derive a shape for {tp!r}")

    # ------------------------------------------------------------------
    # Annotation forms
    # ------------------------------------------------------------------

    def _union_annotation(self, tp: Any, args: tuple[Any, ...]) -> Shape:
        members = [a for a in args if a is not type(None)]
        if len(members) < len(args):
            if len(members) == 1:
                return OptionShape(self.derive(members[0]))
            return OptionShape(self._variants_of(" | ".join(_name(m) for m in members), members))
        return self._variants_of(" | ".join(_name(m) for m in members), members)

    def _tuple(self, args: tuple[Any, ...]) -> Shape:
        if not args or args == ((),):
            return UnitShape()
        if len(args) == 2 and args[1] is Ellipsis:
            return SeqShape(self.derive(args[0]), factory=tuple)
        return TupleShape(tuple(self.derive(a) for a in args))

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _class(self, tp: type) -> Shape:
        ref = self._in_progress.get(tp)
        if ref is not None:
            logger.debug("Closing recursive shape reference to %s", tp.__qualname__)
            return ref
        if issubclass(tp, enum.Enum):
            return self._enum(tp)

        marker = _own_marker(tp)
        if marker == "tagged_union":
            return self._building(
                tp, lambda: self._variants_of(tp.__name__, _descendants(tp))
            )
        if issubclass(tp, tuple) and hasattr(tp, "_fields"):
            return self._building(tp, lambda: self._named_tuple(tp))
        if dataclasses.is_dataclass(tp):
            return self._building(tp, lambda: self._dataclass(tp, marker))
        raise TypeError(f"Cannot derive a shape for class {tp.__qualname__!r}")

    def _building(self, tp: type, build: Callable[[], Shape]) -> Shape:
        ref = ShapeRef(tp.__qualname__)
        self._in_progress[tp] = ref
        try:
            shape = build()
        finally:
            del self._in_progress[tp]
        ref.target = shape
        return shape

    def _enum(self, tp: type[enum.Enum]) -> EnumShape:
        variants = tuple(
            UnitVariant(member.name, factory=_constant(member), matches=_is(member))
            for member in tp
        )
        return EnumShape(tp.__name__, variants)

    def _named_tuple(self, tp: type) -> TupleStructShape:
        hints = _type_hints(tp)
        elements = tuple(self.derive(hints.get(name, Any)) for name in tp._fields)
        return TupleStructShape(tp.__name__, elements, factory=tp, unpack=tuple)

    def _dataclass(self, tp: type, marker: str | None) -> Shape:
        hints = _type_hints(tp)
        fields = [f for f in dataclasses.fields(tp) if f.init]
        names = [f.name for f in fields]

        if marker == "newtype":
            if len(fields) != 1:
                raise TypeError(
                    f"@newtype class {tp.__qualname__!r} must have exactly one field, "
                    f"found {len(fields)}"
                )
            return NewtypeShape(
                tp.__name__,
                self.derive(hints[names[0]]),
                factory=tp,
                unwrap=operator.attrgetter(names[0]),
            )
        if marker == "tuple_struct":
            return TupleStructShape(
                tp.__name__,
                tuple(self.derive(hints[name]) for name in names),
                factory=tp,
                unpack=_attribute_tuple(names),
            )
        if not fields:
            return UnitStructShape(tp.__name__, factory=tp)
        return StructShape(
            tp.__name__,
            tuple(self._field(f, hints[f.name]) for f in fields),
            factory=tp,
        )

    def _field(self, f: dataclasses.Field[Any], annotation: Any) -> FieldShape:
        factory = None if f.default_factory is dataclasses.MISSING else f.default_factory
        return FieldShape(
            f.name,
            self.derive(annotation),
            default=f.default,
            default_factory=factory,
        )

    # ------------------------------------------------------------------
    # Enums from classes
    # ------------------------------------------------------------------

    def _variants_of(self, name: str, members: Sequence[Any]) -> EnumShape:
        for member in members:
            if not isinstance(member, type):
                raise TypeError(f"Union member {member!r} is not a class and cannot be a variant")
        return EnumShape(name, tuple(self._variant(m, members) for m in members))

    def _variant(self, cls: type, members: Sequence[type]) -> Variant:
        shape = self.derive(cls)
        narrower = tuple(m for m in members if m is not cls and issubclass(m, cls))
        matches = _instance_of(cls, narrower)
        if isinstance(shape, UnitStructShape):
            return UnitVariant(cls.__name__, factory=shape.factory, matches=matches)
        if isinstance(shape, NewtypeShape):
            return NewtypeVariant(
                cls.__name__, shape.inner, shape.factory, shape.unwrap, matches
            )
        if isinstance(shape, TupleStructShape):
            return TupleVariant(
                cls.__name__, shape.elements, shape.factory, shape.unpack, matches
            )
        if isinstance(shape, StructShape):
            return StructVariant(
                cls.__name__, shape.fields, shape.factory, matches, shape.getter
            )
        raise TypeError(
            f"Class {cls.__qualname__!r} has shape {shape.describe()!r} "
            "and cannot be an enum variant"
        )


def _name(tp: Any) -> str:
    return getattr(tp, "__name__", repr(tp))


@functools.lru_cache(maxsize=None)
def shape_of(tp: Any) -> Shape:
    """Derive the shape of a type annotation.

    Parameters
    ----------
    tp:
        Any supported annotation (see the module docstring), or a shape,
        which is returned unchanged.

    Returns
    -------
    Shape
        The derived shape.  Results are memoised per annotation.

    Raises
    ------
    TypeError
        If the annotation (or anything it contains) has no data-model
        counterpart.
    """
    return _Deriver().derive(tp)


def as_shape(shape_or_type: Any) -> Shape:
    """Return ``shape_or_type`` if it is a shape, else derive one from it."""
    if isinstance(shape_or_type, SHAPE_TYPES):
        return shape_or_type
    return shape_of(shape_or_type)


def infer_shape(value: Any) -> Shape:
    """Infer a one-level shape from a runtime value.

    Container children are given ``AnyShape`` so that the encoder infers
    them in turn.  Class instances use the shape of their class, or of
    the ``@tagged_union`` base they belong to.

    Raises
    ------
    TypeError
        If ``value`` has no data-model counterpart.
    """
    if value is None:
        return OptionShape(ANY)
    if isinstance(value, bool):
        return BoolShape()
    if isinstance(value, int):
        return IntShape(None)
    if isinstance(value, float):
        return FloatShape()
    if isinstance(value, str):
        return StrShape()
    if isinstance(value, (bytes, bytearray)):
        return BytesShape()

    cls = type(value)
    if isinstance(value, enum.Enum):
        return shape_of(cls)
    owner = union_owner(cls)
    if owner is not None:
        return shape_of(owner)
    if dataclasses.is_dataclass(value) or (isinstance(value, tuple) and hasattr(cls, "_fields")):
        return shape_of(cls)

    if isinstance(value, tuple):
        return TupleShape((ANY,) * len(value)) if value else UnitShape()
    if isinstance(value, list):
        return SeqShape(ANY)
    if isinstance(value, dict):
        return MapShape(ANY, ANY)
    raise TypeError(f"Cannot infer a shape for {cls.__qualname__!r} value")
