#!/usr/bin/env python3
"""Example: Adapters and options (serdyn)

Decodes a struct from an opaque object through the adapter registry and
loads options from a YAML document.

Usage:
    python examples/03_adapters_and_options.py
"""
from __future__ import annotations

from dataclasses import dataclass

import yaml

import serdyn
from serdyn import u8


@dataclass
class Color:
    r: u8
    g: u8
    b: u8


class LegacyColor:
    """A plain class whose instances carry the same fields."""

    def __init__(self, r: int, g: int, b: int) -> None:
        self.r = r
        self.g = g
        self.b = b


OPTIONS_YAML = """
deny_unknown_fields: true
lists_as_tuples: true
"""


def main() -> None:
    # Opaque objects are read through the first matching adapter.
    print(serdyn.from_dynamic(LegacyColor(255, 128, 0), Color))

    options = serdyn.TranscodeOptions.from_mapping(yaml.safe_load(OPTIONS_YAML))
    try:
        serdyn.from_dynamic({"r": 1, "g": 2, "b": 3, "a": 4}, Color, options=options)
    except serdyn.UnknownField as exc:
        print(f"Rejected: {exc}")


if __name__ == "__main__":
    main()
