#!/usr/bin/env python3
"""Example: Quickstart (serdyn)

Minimal working example: describe a typed record, encode it into plain
builtin objects and decode it back.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install serdyn
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import serdyn
from serdyn import u8, u16


@dataclass
class Server:
    host: str
    port: u16
    workers: u8 = 4
    aliases: list[str] = field(default_factory=list)
    tls_cert: Optional[str] = None


def main() -> None:
    print(f"serdyn version: {serdyn.__version__}")

    server = Server("example.org", 8443, aliases=["www.example.org"])

    # Step 1: Encode inside an explicit host context
    with serdyn.NativeHost().acquire() as ctx:
        obj = serdyn.encode(ctx, server, Server)
        print(f"Encoded: {obj}")

        # Step 2: Decode it back against the same type
        restored = serdyn.decode(ctx, obj, Server)
        print(f"Decoded: {restored}")
        assert restored == server

    # Step 3: Values that do not fit their declared width are rejected
    try:
        serdyn.from_dynamic({"host": "example.org", "port": 70000}, Server)
    except serdyn.TranscodeError as exc:
        print(f"Rejected: {exc}")


if __name__ == "__main__":
    main()
