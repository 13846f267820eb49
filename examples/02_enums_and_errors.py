#!/usr/bin/env python3
"""Example: Enums and structured errors (serdyn)

Shows the canonical encoding of the four variant kinds and how to
inspect a decoding failure programmatically.

Usage:
    python examples/02_enums_and_errors.py
"""
from __future__ import annotations

from dataclasses import dataclass

import serdyn
from serdyn import i32, newtype, tagged_union, tuple_struct


@tagged_union
class Shape:
    pass


@dataclass
class Empty(Shape):
    pass


@newtype
@dataclass
class Circle(Shape):
    radius: float


@tuple_struct
@dataclass
class Offset(Shape):
    dx: i32
    dy: i32


@dataclass
class Rect(Shape):
    width: float
    height: float


def main() -> None:
    codec = serdyn.Codec(list[Shape])

    shapes = [Empty(), Circle(1.5), Offset(-2, 3), Rect(2.0, 1.0)]
    encoded = codec.encode(shapes)
    for obj in encoded:
        print(f"  {obj!r}")
    assert codec.decode(encoded) == shapes

    broken = ["Empty", {"Rect": {"width": 2.0}}]
    try:
        codec.decode(broken)
    except serdyn.TranscodeError as exc:
        print(f"kind={exc.kind.name} location={exc.location} message={exc.message}")


if __name__ == "__main__":
    main()
