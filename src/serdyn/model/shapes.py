"""Shape definitions for the serdyn data model.

A *shape* is the statically known description of a typed value: which
data-model kind it is and, for composites, its children, field names,
arities and variant table.  Every shape is a frozen dataclass so that
shape trees are immutable and can be shared freely between traversals.

Composite shapes that correspond to user classes carry both halves of
the per-type visitor capability:

* a *describe* half (``getter``, ``unwrap``, ``unpack``, ``matches``)
  that the encoder uses to take a typed value apart, and
* an *accept* half (``factory``) that the decoder uses to build a typed
  value from decoded children.

Shapes are usually derived from annotations by
:func:`serdyn.model.derive.shape_of`, but they can also be written by
hand.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from dataclasses import MISSING, dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar, Union


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class ShapeKind(Enum):
    """Data-model node kinds."""

    ANY = auto()
    BOOL = auto()
    INT = auto()
    FLOAT = auto()
    CHAR = auto()
    STR = auto()
    BYTES = auto()
    OPTION = auto()
    UNIT = auto()
    UNIT_STRUCT = auto()
    NEWTYPE = auto()
    SEQ = auto()
    TUPLE = auto()
    TUPLE_STRUCT = auto()
    MAP = auto()
    STRUCT = auto()
    ENUM = auto()


class VariantKind(Enum):
    """The four payload shapes an enum variant can have.

    UNIT
        No payload; encoded as the bare variant name.
    NEWTYPE
        A single unnamed payload; encoded as ``{name: payload}``.
    TUPLE
        Fixed-arity unnamed payloads; encoded as ``{name: (p0, p1, ...)}``.
    STRUCT
        Named-field payloads; encoded as ``{name: {field: value, ...}}``.
    """

    UNIT = auto()
    NEWTYPE = auto()
    TUPLE = auto()
    STRUCT = auto()


_INT_WIDTHS: tuple[int, ...] = (8, 16, 32, 64, 128)
_FLOAT_WIDTHS: tuple[int, ...] = (32, 64)
_F32_MAX = 3.4028234663852886e38


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AnyShape:
    """No static expectation.

    The encoder infers the shape from the runtime value; the decoder
    returns the dynamic object rebuilt from plain builtin containers.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.ANY

    def describe(self) -> str:
        return "any"


@dataclass(frozen=True, slots=True)
class BoolShape:
    """A boolean.  No truthiness coercion is ever applied."""

    kind: ClassVar[ShapeKind] = ShapeKind.BOOL

    def describe(self) -> str:
        return "bool"


@dataclass(frozen=True, slots=True)
class IntShape:
    """An integer of a given width and signedness.

    Parameters
    ----------
    bits:
        One of 8, 16, 32, 64 or 128.  ``None`` means unbounded, which is
        what a plain ``int`` annotation derives to.
    signed:
        Whether negative values are representable.
    """

    bits: int | None = 64
    signed: bool = True

    kind: ClassVar[ShapeKind] = ShapeKind.INT

    def __post_init__(self) -> None:
        if self.bits is not None and self.bits not in _INT_WIDTHS:
            raise ValueError(
                f"Unsupported integer width {self.bits!r}; expected one of {_INT_WIDTHS}"
            )

    @property
    def min_value(self) -> int | None:
        """Smallest representable value, or ``None`` when unbounded."""
        if not self.signed:
            return 0
        if self.bits is None:
            return None
        return -(1 << (self.bits - 1))

    @property
    def max_value(self) -> int | None:
        """Largest representable value, or ``None`` when unbounded."""
        if self.bits is None:
            return None
        if self.signed:
            return (1 << (self.bits - 1)) - 1
        return (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        """Return True if ``value`` fits this width and signedness."""
        low, high = self.min_value, self.max_value
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
        return True

    def describe(self) -> str:
        if self.bits is None:
            return "int" if self.signed else "uint"
        return f"{'i' if self.signed else 'u'}{self.bits}"


@dataclass(frozen=True, slots=True)
class FloatShape:
    """A floating point number (``f32`` or ``f64``).

    Values are carried as Python ``float``.  An ``f32`` rejects finite
    values beyond the largest finite single-precision magnitude; it does
    not round to single precision.
    """

    bits: int = 64

    kind: ClassVar[ShapeKind] = ShapeKind.FLOAT

    def __post_init__(self) -> None:
        if self.bits not in _FLOAT_WIDTHS:
            raise ValueError(
                f"Unsupported float width {self.bits!r}; expected one of {_FLOAT_WIDTHS}"
            )

    def contains(self, value: float) -> bool:
        """Return True if ``value`` is representable at this width.

        Infinities and NaN are representable at every width.
        """
        if self.bits == 64 or not math.isfinite(value):
            return True
        return abs(value) <= _F32_MAX

    def describe(self) -> str:
        return f"f{self.bits}"


@dataclass(frozen=True, slots=True)
class CharShape:
    """A single Unicode scalar value, carried as a one-character ``str``."""

    kind: ClassVar[ShapeKind] = ShapeKind.CHAR

    def describe(self) -> str:
        return "char"


@dataclass(frozen=True, slots=True)
class StrShape:
    """A text string."""

    kind: ClassVar[ShapeKind] = ShapeKind.STR

    def describe(self) -> str:
        return "str"


@dataclass(frozen=True, slots=True)
class BytesShape:
    """A byte string."""

    kind: ClassVar[ShapeKind] = ShapeKind.BYTES

    def describe(self) -> str:
        return "bytes"


# ---------------------------------------------------------------------------
# Wrappers and containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OptionShape:
    """An optional value.  ``None`` is absence, anything else is present."""

    inner: Shape

    kind: ClassVar[ShapeKind] = ShapeKind.OPTION

    def describe(self) -> str:
        return f"option<{self.inner.describe()}>"


@dataclass(frozen=True, slots=True)
class UnitShape:
    """The unit value ``()``."""

    kind: ClassVar[ShapeKind] = ShapeKind.UNIT

    def describe(self) -> str:
        return "unit"


@dataclass(frozen=True, slots=True)
class UnitStructShape:
    """A named type with no fields; encoded like unit."""

    name: str
    factory: Callable[[], Any]

    kind: ClassVar[ShapeKind] = ShapeKind.UNIT_STRUCT

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class NewtypeShape:
    """A transparent wrapper around a single unnamed value."""

    name: str
    inner: Shape
    factory: Callable[[Any], Any]
    unwrap: Callable[[Any], Any]

    kind: ClassVar[ShapeKind] = ShapeKind.NEWTYPE

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class SeqShape:
    """A homogeneous, variable-length sequence.

    ``factory`` receives the decoded ``list`` and may convert it, e.g.
    to a ``tuple`` for ``tuple[T, ...]`` annotations.
    """

    element: Shape
    factory: Callable[[list[Any]], Any] = list

    kind: ClassVar[ShapeKind] = ShapeKind.SEQ

    def describe(self) -> str:
        return f"seq<{self.element.describe()}>"


@dataclass(frozen=True, slots=True)
class TupleShape:
    """A fixed-arity heterogeneous tuple."""

    elements: tuple[Shape, ...]

    kind: ClassVar[ShapeKind] = ShapeKind.TUPLE

    @property
    def arity(self) -> int:
        return len(self.elements)

    def describe(self) -> str:
        return "(" + ", ".join(e.describe() for e in self.elements) + ")"


@dataclass(frozen=True, slots=True)
class TupleStructShape:
    """A named fixed-arity tuple; encoded as a bare tuple."""

    name: str
    elements: tuple[Shape, ...]
    factory: Callable[..., Any]
    unpack: Callable[[Any], Sequence[Any]] = tuple

    kind: ClassVar[ShapeKind] = ShapeKind.TUPLE_STRUCT

    @property
    def arity(self) -> int:
        return len(self.elements)

    def describe(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class MapShape:
    """An arbitrary key/value mapping."""

    key: Shape
    value: Shape

    kind: ClassVar[ShapeKind] = ShapeKind.MAP

    def describe(self) -> str:
        return f"map<{self.key.describe()}, {self.value.describe()}>"


# ---------------------------------------------------------------------------
# Structs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldShape:
    """One named field of a struct or struct-like variant.

    Parameters
    ----------
    name:
        The key used in the encoded mapping and the keyword passed to
        the owner's factory.
    shape:
        Shape of the field value.
    default:
        Value used when the field is absent at decode time.
    default_factory:
        Zero-argument callable producing the absent-field value.

    A field is *required* unless it has a default, a default factory, or
    an option shape (absent options decode to ``None``).
    """

    name: str
    shape: Shape
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None

    @property
    def required(self) -> bool:
        if self.default is not MISSING or self.default_factory is not None:
            return False
        return not isinstance(self.shape, OptionShape)

    def default_value(self) -> Any:
        """Return the value to use when the field is absent."""
        if self.default_factory is not None:
            return self.default_factory()
        if self.default is not MISSING:
            return self.default
        return None


def _check_unique(owner: str, what: str, names: Sequence[str]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate {what} {name!r} in {owner!r}")
        seen.add(name)


@dataclass(frozen=True, slots=True)
class StructShape:
    """A named-field record; encoded as a mapping with no type tag."""

    name: str
    fields: tuple[FieldShape, ...]
    factory: Callable[..., Any]
    getter: Callable[[Any, str], Any] = getattr

    kind: ClassVar[ShapeKind] = ShapeKind.STRUCT

    def __post_init__(self) -> None:
        _check_unique(self.name, "field", [f.name for f in self.fields])

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def describe(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitVariant:
    """A variant without payload."""

    name: str
    factory: Callable[[], Any]
    matches: Callable[[Any], bool]

    kind: ClassVar[VariantKind] = VariantKind.UNIT


@dataclass(frozen=True, slots=True)
class NewtypeVariant:
    """A variant with a single unnamed payload."""

    name: str
    inner: Shape
    factory: Callable[[Any], Any]
    unwrap: Callable[[Any], Any]
    matches: Callable[[Any], bool]

    kind: ClassVar[VariantKind] = VariantKind.NEWTYPE


@dataclass(frozen=True, slots=True)
class TupleVariant:
    """A variant with fixed-arity unnamed payloads."""

    name: str
    elements: tuple[Shape, ...]
    factory: Callable[..., Any]
    unpack: Callable[[Any], Sequence[Any]]
    matches: Callable[[Any], bool]

    kind: ClassVar[VariantKind] = VariantKind.TUPLE


@dataclass(frozen=True, slots=True)
class StructVariant:
    """A variant with named-field payloads."""

    name: str
    fields: tuple[FieldShape, ...]
    factory: Callable[..., Any]
    matches: Callable[[Any], bool]
    getter: Callable[[Any, str], Any] = getattr

    kind: ClassVar[VariantKind] = VariantKind.STRUCT

    def __post_init__(self) -> None:
        _check_unique(self.name, "field", [f.name for f in self.fields])


Variant = Union[UnitVariant, NewtypeVariant, TupleVariant, StructVariant]


@dataclass(frozen=True, slots=True)
class EnumShape:
    """A closed set of named variants, discriminated by variant name."""

    name: str
    variants: tuple[Variant, ...]

    kind: ClassVar[ShapeKind] = ShapeKind.ENUM

    def __post_init__(self) -> None:
        _check_unique(self.name, "variant", [v.name for v in self.variants])

    @property
    def variant_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.variants)

    @property
    def unit_variant_names(self) -> tuple[str, ...]:
        return tuple(v.name for v in self.variants if v.kind is VariantKind.UNIT)

    def variant_named(self, name: str) -> Variant | None:
        """Return the variant called ``name``, or ``None``."""
        for variant in self.variants:
            if variant.name == name:
                return variant
        return None

    def variant_for(self, value: Any) -> Variant | None:
        """Return the first variant whose ``matches`` accepts ``value``."""
        for variant in self.variants:
            if variant.matches(value):
                return variant
        return None

    def describe(self) -> str:
        return self.name


# ---------------------------------------------------------------------------
# Recursive references
# ---------------------------------------------------------------------------


@dataclass(eq=False, slots=True)
class ShapeRef:
    """A late-bound pointer used to close cycles in recursive types.

    ``target`` is filled in once the referenced shape has been built;
    traversals call :func:`resolve` before dispatching.
    """

    name: str
    target: Shape | None = field(default=None, repr=False)

    @property
    def kind(self) -> ShapeKind:
        return resolve(self).kind

    def describe(self) -> str:
        return self.name


Shape = Union[
    AnyShape,
    BoolShape,
    IntShape,
    FloatShape,
    CharShape,
    StrShape,
    BytesShape,
    OptionShape,
    UnitShape,
    UnitStructShape,
    NewtypeShape,
    SeqShape,
    TupleShape,
    TupleStructShape,
    MapShape,
    StructShape,
    EnumShape,
    ShapeRef,
]

SHAPE_TYPES: tuple[type, ...] = (
    AnyShape,
    BoolShape,
    IntShape,
    FloatShape,
    CharShape,
    StrShape,
    BytesShape,
    OptionShape,
    UnitShape,
    UnitStructShape,
    NewtypeShape,
    SeqShape,
    TupleShape,
    TupleStructShape,
    MapShape,
    StructShape,
    EnumShape,
    ShapeRef,
)

ANY = AnyShape()


def resolve(shape: Shape) -> Shape:
    """Follow ``ShapeRef`` links until a concrete shape is reached."""
    while isinstance(shape, ShapeRef):
        if shape.target is None:
            raise RuntimeError(f"Shape reference {shape.name!r} was never resolved")
        shape = shape.target
    return shape
