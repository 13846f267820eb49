"""serdyn encoder module.

Exports the ``Encoder`` class and the ``encode`` convenience function.
"""
from __future__ import annotations

from serdyn.encoder.encoder import Encoder, encode

__all__ = [
    "Encoder",
    "encode",
]
