"""serdyn data model.

Exports all shape types and the annotation-driven shape derivation.
"""
from __future__ import annotations

from serdyn.model.derive import (
    as_shape,
    char,
    f32,
    f64,
    i8,
    i16,
    i32,
    i64,
    i128,
    infer_shape,
    newtype,
    shape_of,
    tagged_union,
    tuple_struct,
    u8,
    u16,
    u32,
    u64,
    u128,
    union_owner,
)
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
    NewtypeVariant,
    OptionShape,
    SeqShape,
    Shape,
    ShapeKind,
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
    VariantKind,
    resolve,
)

__all__ = [
    # Kinds
    "ShapeKind",
    "VariantKind",
    # Shapes
    "Shape",
    "ANY",
    "AnyShape",
    "BoolShape",
    "IntShape",
    "FloatShape",
    "CharShape",
    "StrShape",
    "BytesShape",
    "OptionShape",
    "UnitShape",
    "UnitStructShape",
    "NewtypeShape",
    "SeqShape",
    "TupleShape",
    "TupleStructShape",
    "MapShape",
    "FieldShape",
    "StructShape",
    "EnumShape",
    "ShapeRef",
    "resolve",
    # Variants
    "Variant",
    "UnitVariant",
    "NewtypeVariant",
    "TupleVariant",
    "StructVariant",
    # Derivation
    "shape_of",
    "as_shape",
    "infer_shape",
    "union_owner",
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
]
