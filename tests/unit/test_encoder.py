"""Unit tests for serdyn.encoder — typed values to dynamic objects."""
from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from serdyn.encoder import Encoder, encode
from serdyn.errors import (
    ArityMismatch,
    Custom,
    DepthLimitExceeded,
    HostAllocationFailure,
    InvalidCharLength,
    OutOfRange,
    TypeMismatch,
    UnhashableKey,
)
from serdyn.host import NativeContext, NativeHost
from serdyn.model import (
    FieldShape,
    IntShape,
    NewtypeShape,
    StrShape,
    StructShape,
    char,
    f32,
    i8,
    newtype,
    tagged_union,
    tuple_struct,
    u8,
    u128,
)
from serdyn.options import TranscodeOptions


# ---------------------------------------------------------------------------
# Model classes
# ---------------------------------------------------------------------------


@dataclass
class Point:
    x: i8
    y: i8


@dataclass
class Profile:
    name: str
    nick: Optional[str] = None
    scores: list[u8] = field(default_factory=list)


@dataclass
class Empty:
    pass


@newtype
@dataclass
class Meters:
    value: float


@tuple_struct
@dataclass
class Pair:
    a: u8
    b: u8


class Level(enum.Enum):
    LOW = "low"
    HIGH = "high"


@tagged_union
class Command:
    pass


@dataclass
class Stop(Command):
    pass


@newtype
@dataclass
class Say(Command):
    text: str


@tuple_struct
@dataclass
class Jump(Command):
    dx: i8
    dy: i8


@dataclass
class Rename(Command):
    old: str
    new: str


@dataclass
class Node:
    value: u8
    next: Optional[Node] = None


class Opaque:
    pass


class BrokenMapping(Mapping):
    def __getitem__(self, key: Any) -> Any:
        raise KeyError(key)

    def __iter__(self) -> Iterator[Any]:
        raise OSError("backing store unavailable")

    def __len__(self) -> int:
        return 1


# ===========================================================================
# Scalars
# ===========================================================================


class TestScalarEncoding:
    def test_bool(self, ctx: NativeContext) -> None:
        assert encode(ctx, True, bool) is True

    def test_int_in_range(self, ctx: NativeContext) -> None:
        assert encode(ctx, 255, u8) == 255

    def test_int_out_of_range(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, 256, u8)
        assert exc_info.value.value == 256
        assert exc_info.value.target == "u8"

    def test_negative_unsigned_out_of_range(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange):
            encode(ctx, -1, u8)

    def test_u128_max(self, ctx: NativeContext) -> None:
        assert encode(ctx, 2**128 - 1, u128) == 2**128 - 1

    def test_bool_is_not_int(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch):
            encode(ctx, True, u8)

    def test_float_accepts_int_value(self, ctx: NativeContext) -> None:
        result = encode(ctx, 3, f32)
        assert result == 3.0
        assert isinstance(result, float)

    def test_f32_out_of_range(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, 1e300, f32)
        assert exc_info.value.target == "f32"

    def test_f32_limits(self, ctx: NativeContext) -> None:
        assert encode(ctx, -3.4028234663852886e38, f32) == -3.4028234663852886e38
        assert encode(ctx, float("inf"), f32) == float("inf")
        assert encode(ctx, 1e300, float) == 1e300

    def test_float_rejects_text(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch) as exc_info:
            encode(ctx, "1.5", float)
        assert exc_info.value.expected == "f64"
        assert exc_info.value.found == "str"

    def test_char(self, ctx: NativeContext) -> None:
        assert encode(ctx, "é", char) == "é"

    def test_char_too_long(self, ctx: NativeContext) -> None:
        with pytest.raises(InvalidCharLength) as exc_info:
            encode(ctx, "ab", char)
        assert exc_info.value.length == 2

    def test_bytes(self, ctx: NativeContext) -> None:
        assert encode(ctx, bytearray(b"ab"), bytes) == b"ab"

    def test_str_rejects_bytes(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch):
            encode(ctx, b"ab", str)


# ===========================================================================
# Wrappers and containers
# ===========================================================================


class TestContainerEncoding:
    def test_option_absent(self, ctx: NativeContext) -> None:
        assert encode(ctx, None, Optional[u8]) is None

    def test_option_present(self, ctx: NativeContext) -> None:
        assert encode(ctx, 7, Optional[u8]) == 7

    def test_unit(self, ctx: NativeContext) -> None:
        assert encode(ctx, (), tuple[()]) == ()

    def test_unit_rejects_non_empty(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch):
            encode(ctx, (1,), tuple[()])

    def test_sequence_becomes_list(self, ctx: NativeContext) -> None:
        assert encode(ctx, (1, 2, 3), list[u8]) == [1, 2, 3]

    def test_sequence_from_generator(self, ctx: NativeContext) -> None:
        assert encode(ctx, (i for i in range(3)), list[u8]) == [0, 1, 2]

    def test_failing_iterable_is_custom(self, ctx: NativeContext) -> None:
        def readings() -> Iterator[int]:
            yield 1
            raise ValueError("boom")

        with pytest.raises(Custom) as exc_info:
            encode(ctx, readings(), list[int])
        assert exc_info.value.message == "boom"
        assert exc_info.value.path == ()
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_failing_mapping_is_custom(self, ctx: NativeContext) -> None:
        with pytest.raises(Custom) as exc_info:
            encode(ctx, {"outer": BrokenMapping()}, dict[str, dict[str, u8]])
        assert "backing store unavailable" in exc_info.value.message
        assert exc_info.value.path == ("outer",)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_sequence_rejects_str(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch):
            encode(ctx, "abc", list[str])

    def test_sequence_error_path(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, [1, 2, 300], list[u8])
        assert exc_info.value.path == (2,)
        assert exc_info.value.location == "$[2]"

    def test_tuple(self, ctx: NativeContext) -> None:
        assert encode(ctx, (1, "a"), tuple[u8, str]) == (1, "a")

    def test_tuple_arity_mismatch(self, ctx: NativeContext) -> None:
        with pytest.raises(ArityMismatch) as exc_info:
            encode(ctx, (1, "a", 2), tuple[u8, str])
        assert exc_info.value.expected == 2
        assert exc_info.value.found == 3

    def test_map(self, ctx: NativeContext) -> None:
        assert encode(ctx, {"a": 1, "b": 2}, dict[str, u8]) == {"a": 1, "b": 2}

    def test_map_preserves_order(self, ctx: NativeContext) -> None:
        result = encode(ctx, {"b": 1, "a": 2}, dict[str, u8])
        assert list(result) == ["b", "a"]

    def test_map_error_path_uses_key(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, {"a": 1, "b": 999}, dict[str, u8])
        assert exc_info.value.location == "$.b"

    def test_unhashable_encoded_key(self, ctx: NativeContext) -> None:
        with pytest.raises(UnhashableKey) as exc_info:
            encode(ctx, {(1, 2): "x"}, dict[tuple[u8, ...], str])
        assert exc_info.value.found == "list"


# ===========================================================================
# Structs and newtypes
# ===========================================================================


class TestStructEncoding:
    def test_struct_is_untagged_mapping(self, ctx: NativeContext) -> None:
        assert encode(ctx, Point(1, -2), Point) == {"x": 1, "y": -2}

    def test_struct_field_order(self, ctx: NativeContext) -> None:
        assert list(encode(ctx, Profile("ann"), Profile)) == ["name", "nick", "scores"]

    def test_nested_error_path(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, Profile("ann", scores=[1, 1000]), Profile)
        assert exc_info.value.path == ("scores", 1)

    def test_wrong_class_is_type_mismatch(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch) as exc_info:
            encode(ctx, Profile("ann"), Point)
        assert exc_info.value.expected == "Point"
        assert exc_info.value.found == "Profile"

    def test_unit_struct(self, ctx: NativeContext) -> None:
        assert encode(ctx, Empty(), Empty) == ()

    def test_newtype_is_transparent(self, ctx: NativeContext) -> None:
        assert encode(ctx, Meters(2.5), Meters) == 2.5

    def test_tuple_struct_is_bare_tuple(self, ctx: NativeContext) -> None:
        assert encode(ctx, Pair(1, 2), Pair) == (1, 2)

    def test_failing_getter_is_custom(self, ctx: NativeContext) -> None:
        def getter(value: Any, name: str) -> Any:
            raise LookupError(f"no {name}")

        shape = StructShape("Rec", (FieldShape("a", StrShape()),), factory=dict, getter=getter)
        with pytest.raises(Custom) as exc_info:
            encode(ctx, {"a": "x"}, shape)
        assert "no a" in exc_info.value.message
        assert exc_info.value.path == ("a",)
        assert isinstance(exc_info.value.__cause__, LookupError)

    def test_hand_written_shape_with_callable_factory(self, ctx: NativeContext) -> None:
        shape = NewtypeShape("Wrapped", IntShape(8), factory=lambda v: [v], unwrap=lambda v: v[0])
        assert encode(ctx, [5], shape) == 5


# ===========================================================================
# Enums
# ===========================================================================


class TestEnumEncoding:
    def test_python_enum_is_bare_name(self, ctx: NativeContext) -> None:
        assert encode(ctx, Level.HIGH, Level) == "HIGH"

    def test_unit_variant(self, ctx: NativeContext) -> None:
        assert encode(ctx, Stop(), Command) == "Stop"

    def test_newtype_variant(self, ctx: NativeContext) -> None:
        assert encode(ctx, Say("hi"), Command) == {"Say": "hi"}

    def test_tuple_variant(self, ctx: NativeContext) -> None:
        assert encode(ctx, Jump(1, -1), Command) == {"Jump": (1, -1)}

    def test_struct_variant(self, ctx: NativeContext) -> None:
        assert encode(ctx, Rename("a", "b"), Command) == {"Rename": {"old": "a", "new": "b"}}

    def test_variant_payload_error_path(self, ctx: NativeContext) -> None:
        with pytest.raises(OutOfRange) as exc_info:
            encode(ctx, Jump(1, 200), Command)
        assert exc_info.value.path == ("Jump", 1)

    def test_non_member_is_type_mismatch(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch):
            encode(ctx, Point(0, 0), Command)


# ===========================================================================
# Inference, recursion and limits
# ===========================================================================


class TestInferredEncoding:
    def test_plain_builtins(self, ctx: NativeContext) -> None:
        value = {"a": [1, 2.5, None, True], "b": (1, "x"), "c": b"\x00"}
        assert encode(ctx, value) == value

    def test_inferred_dataclass(self, ctx: NativeContext) -> None:
        assert encode(ctx, [Point(1, 2)]) == [{"x": 1, "y": 2}]

    def test_inferred_union_member(self, ctx: NativeContext) -> None:
        assert encode(ctx, Say("yo")) == {"Say": "yo"}

    def test_opaque_object_is_type_mismatch(self, ctx: NativeContext) -> None:
        with pytest.raises(TypeMismatch) as exc_info:
            encode(ctx, {"k": Opaque()})
        assert exc_info.value.path == ("k",)


class TestRecursionAndLimits:
    def test_recursive_struct(self, ctx: NativeContext) -> None:
        chain = Node(1, Node(2, Node(3)))
        assert encode(ctx, chain, Node) == {
            "value": 1,
            "next": {"value": 2, "next": {"value": 3, "next": None}},
        }

    def test_depth_limit(self, ctx: NativeContext) -> None:
        chain: Optional[Node] = None
        for i in range(50):
            chain = Node(i % 200, chain)
        with pytest.raises(DepthLimitExceeded) as exc_info:
            Encoder(ctx, TranscodeOptions(max_depth=10)).encode(chain, Node)
        assert exc_info.value.limit == 10

    def test_host_limit_is_allocation_failure(self) -> None:
        with NativeHost(max_container_len=2).acquire() as ctx:
            with pytest.raises(HostAllocationFailure) as exc_info:
                encode(ctx, [1, 2, 3], list[u8])
        assert exc_info.value.path == ()
        assert exc_info.value.cause.limit == 2
