"""Unit tests for serdyn.model.derive — shape derivation from annotations."""
from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Annotated, Any, NamedTuple, Optional, Union

import pytest

from serdyn.model import (
    ANY,
    BoolShape,
    BytesShape,
    CharShape,
    EnumShape,
    FloatShape,
    IntShape,
    MapShape,
    NewtypeShape,
    OptionShape,
    SeqShape,
    ShapeKind,
    ShapeRef,
    StrShape,
    StructShape,
    TupleShape,
    TupleStructShape,
    UnitShape,
    UnitStructShape,
    VariantKind,
    as_shape,
    char,
    f32,
    i64,
    infer_shape,
    newtype,
    resolve,
    shape_of,
    tagged_union,
    tuple_struct,
    u8,
    u16,
    union_owner,
)


# ---------------------------------------------------------------------------
# Model classes
# ---------------------------------------------------------------------------


@dataclass
class Point:
    x: i64
    y: i64


@dataclass
class Settings:
    name: str
    retries: u8 = 3
    tags: list[str] = field(default_factory=list)
    note: Optional[str] = None


@dataclass
class Marker:
    pass


@newtype
@dataclass(frozen=True)
class UserId:
    value: u16


@tuple_struct
@dataclass(frozen=True)
class Rgb:
    r: u8
    g: u8
    b: u8


class Pair(NamedTuple):
    left: int
    right: str


class Color(enum.Enum):
    RED = 1
    GREEN = 2


@tagged_union
class Event:
    pass


@dataclass
class Started(Event):
    pass


@newtype
@dataclass
class Progress(Event):
    percent: u8


@tuple_struct
@dataclass
class Moved(Event):
    x: i64
    y: i64


@dataclass
class Failed(Event):
    reason: str
    code: u16 = 1


@dataclass
class TreeNode:
    label: str
    children: list[TreeNode] = field(default_factory=list)


@dataclass
class Circle:
    radius: float


@dataclass
class Ring(Circle):
    inner: float


@dataclass
class Square:
    side: float


@newtype
@dataclass
class TooWide:
    a: int
    b: int


class NotModelled:
    pass


@dataclass
class Dangling:
    target: UndefinedModel  # noqa: F821


# ===========================================================================
# Scalars and builtin containers
# ===========================================================================


class TestScalarDerivation:
    @pytest.mark.parametrize(
        "annotation,expected",
        [
            (bool, BoolShape()),
            (int, IntShape(None)),
            (float, FloatShape()),
            (str, StrShape()),
            (bytes, BytesShape()),
            (u8, IntShape(8, signed=False)),
            (i64, IntShape(64)),
            (f32, FloatShape(32)),
            (char, CharShape()),
        ],
    )
    def test_scalar(self, annotation: Any, expected: Any) -> None:
        assert shape_of(annotation) == expected

    def test_any(self) -> None:
        assert shape_of(Any) is ANY

    def test_annotated_shape_wins(self) -> None:
        assert shape_of(Annotated[int, IntShape(16)]) == IntShape(16)

    def test_annotated_without_shape_uses_base(self) -> None:
        assert shape_of(Annotated[str, "doc"]) == StrShape()


class TestContainerDerivation:
    def test_list(self) -> None:
        assert shape_of(list[u8]) == SeqShape(IntShape(8, signed=False))

    def test_abstract_sequence(self) -> None:
        assert shape_of(Sequence[str]) == SeqShape(StrShape())

    def test_bare_list(self) -> None:
        assert shape_of(list) == SeqShape(ANY)

    def test_homogeneous_tuple_decodes_to_tuple(self) -> None:
        shape = shape_of(tuple[str, ...])
        assert isinstance(shape, SeqShape)
        assert shape.factory is tuple

    def test_empty_tuple_is_unit(self) -> None:
        assert shape_of(tuple[()]) == UnitShape()

    def test_fixed_tuple(self) -> None:
        assert shape_of(tuple[u8, str]) == TupleShape((IntShape(8, signed=False), StrShape()))

    def test_dict(self) -> None:
        assert shape_of(dict[str, int]) == MapShape(StrShape(), IntShape(None))

    def test_mapping(self) -> None:
        assert shape_of(Mapping[str, bool]) == MapShape(StrShape(), BoolShape())

    def test_bare_dict(self) -> None:
        assert shape_of(dict) == MapShape(ANY, ANY)

    def test_optional(self) -> None:
        assert shape_of(Optional[str]) == OptionShape(StrShape())

    def test_pipe_none(self) -> None:
        assert shape_of(str | None) == OptionShape(StrShape())


# ===========================================================================
# Classes
# ===========================================================================


class TestClassDerivation:
    def test_dataclass_struct(self) -> None:
        shape = shape_of(Point)
        assert isinstance(shape, StructShape)
        assert shape.name == "Point"
        assert shape.field_names == ("x", "y")
        assert shape.factory is Point

    def test_struct_field_defaults(self) -> None:
        shape = shape_of(Settings)
        required = {f.name: f.required for f in shape.fields}
        assert required == {"name": True, "retries": False, "tags": False, "note": False}

    def test_fieldless_dataclass_is_unit_struct(self) -> None:
        assert isinstance(shape_of(Marker), UnitStructShape)

    def test_newtype(self) -> None:
        shape = shape_of(UserId)
        assert isinstance(shape, NewtypeShape)
        assert shape.inner == IntShape(16, signed=False)
        assert shape.unwrap(UserId(7)) == 7

    def test_newtype_requires_one_field(self) -> None:
        with pytest.raises(TypeError, match="exactly one field"):
            shape_of(TooWide)

    def test_tuple_struct(self) -> None:
        shape = shape_of(Rgb)
        assert isinstance(shape, TupleStructShape)
        assert shape.arity == 3
        assert tuple(shape.unpack(Rgb(1, 2, 3))) == (1, 2, 3)

    def test_named_tuple(self) -> None:
        shape = shape_of(Pair)
        assert isinstance(shape, TupleStructShape)
        assert shape.elements == (IntShape(None), StrShape())

    def test_enum_members_are_unit_variants(self) -> None:
        shape = shape_of(Color)
        assert isinstance(shape, EnumShape)
        assert shape.unit_variant_names == ("RED", "GREEN")
        assert shape.variant_named("GREEN").factory() is Color.GREEN

    def test_unsupported_class_raises(self) -> None:
        with pytest.raises(TypeError, match="Cannot derive"):
            shape_of(NotModelled)

    def test_unresolvable_annotation_raises_type_error(self) -> None:
        with pytest.raises(TypeError, match="Cannot resolve the annotations") as exc_info:
            shape_of(Dangling)
        assert isinstance(exc_info.value.__cause__, NameError)

    def test_results_are_memoised(self) -> None:
        assert shape_of(Point) is shape_of(Point)


class TestTaggedUnion:
    def test_variants_follow_subclasses(self) -> None:
        shape = shape_of(Event)
        assert isinstance(shape, EnumShape)
        assert shape.variant_names == ("Started", "Progress", "Moved", "Failed")

    def test_variant_kinds(self) -> None:
        shape = shape_of(Event)
        kinds = {v.name: v.kind for v in shape.variants}
        assert kinds == {
            "Started": VariantKind.UNIT,
            "Progress": VariantKind.NEWTYPE,
            "Moved": VariantKind.TUPLE,
            "Failed": VariantKind.STRUCT,
        }

    def test_variant_matching(self) -> None:
        shape = shape_of(Event)
        assert shape.variant_for(Moved(1, 2)).name == "Moved"
        assert shape.variant_for(Point(1, 2)) is None

    def test_union_owner(self) -> None:
        assert union_owner(Failed) is Event
        assert union_owner(Point) is None

    def test_subclass_alone_derives_own_shape(self) -> None:
        assert isinstance(shape_of(Failed), StructShape)

    def test_union_of_classes(self) -> None:
        shape = shape_of(Union[Circle, Square])
        assert isinstance(shape, EnumShape)
        assert shape.name == "Circle | Square"
        assert all(v.kind is VariantKind.STRUCT for v in shape.variants)

    def test_optional_union_of_classes(self) -> None:
        shape = shape_of(Optional[Union[Circle, Square]])
        assert isinstance(shape, OptionShape)
        assert isinstance(shape.inner, EnumShape)

    def test_union_with_non_class_member_raises(self) -> None:
        with pytest.raises(TypeError):
            shape_of(Union[int, str])

    def test_indirect_subclass_is_its_own_variant(self) -> None:
        @tagged_union
        class Reading:
            pass

        @dataclass
        class Raw(Reading):
            value: i64

        @dataclass
        class Calibrated(Raw):
            offset: i64

        shape = shape_of(Reading)
        assert shape.variant_names == ("Raw", "Calibrated")
        assert shape.variant_for(Raw(1)).name == "Raw"
        assert shape.variant_for(Calibrated(1, 2)).name == "Calibrated"

    def test_union_member_matches_most_specific_class(self) -> None:
        for annotation in (Union[Circle, Ring], Union[Ring, Circle]):
            shape = shape_of(annotation)
            assert shape.variant_for(Ring(2.0, 1.0)).name == "Ring"
            assert shape.variant_for(Circle(2.0)).name == "Circle"

    def test_subclass_defined_after_first_lookup(self) -> None:
        @tagged_union
        class Late:
            pass

        @newtype
        @dataclass
        class LateOne(Late):
            value: u8

        assert shape_of(Late).variant_names == ("LateOne",)

        @newtype
        @dataclass
        class LateTwo(Late):
            value: u8

        assert shape_of(Late).variant_names == ("LateOne", "LateTwo")
        assert shape_of(Late).variant_for(LateTwo(3)).name == "LateTwo"

    def test_existing_init_subclass_still_runs(self) -> None:
        seen: list[str] = []

        @tagged_union
        class Audited:
            def __init_subclass__(cls, **kwargs: Any) -> None:
                super().__init_subclass__(**kwargs)
                seen.append(cls.__name__)

        @dataclass
        class Logged(Audited):
            pass

        assert seen == ["Logged"]
        assert shape_of(Audited).variant_names == ("Logged",)


class TestRecursiveDerivation:
    def test_self_reference_is_closed(self) -> None:
        shape = shape_of(TreeNode)
        children = shape.fields[1].shape
        assert isinstance(children, SeqShape)
        assert isinstance(children.element, ShapeRef)
        assert resolve(children.element) is shape

    def test_recursive_shape_kind(self) -> None:
        children = shape_of(TreeNode).fields[1].shape
        assert children.element.kind is ShapeKind.STRUCT


# ===========================================================================
# as_shape / infer_shape
# ===========================================================================


class TestAsShape:
    def test_shape_passes_through(self) -> None:
        shape = SeqShape(StrShape())
        assert as_shape(shape) is shape

    def test_type_is_derived(self) -> None:
        assert as_shape(u8) == IntShape(8, signed=False)


class TestInferShape:
    def test_none_is_option(self) -> None:
        assert isinstance(infer_shape(None), OptionShape)

    def test_bool_before_int(self) -> None:
        assert infer_shape(True) == BoolShape()

    def test_int_is_unbounded(self) -> None:
        assert infer_shape(10**30) == IntShape(None)

    def test_empty_tuple_is_unit(self) -> None:
        assert infer_shape(()) == UnitShape()

    def test_tuple_arity(self) -> None:
        assert infer_shape((1, "a")) == TupleShape((ANY, ANY))

    def test_dataclass_instance(self) -> None:
        assert infer_shape(Point(1, 2)) is shape_of(Point)

    def test_union_member_uses_owner(self) -> None:
        assert infer_shape(Failed("x")) is shape_of(Event)

    def test_enum_member(self) -> None:
        assert infer_shape(Color.RED) is shape_of(Color)

    def test_unknown_object_raises(self) -> None:
        with pytest.raises(TypeError, match="Cannot infer"):
            infer_shape(NotModelled())
