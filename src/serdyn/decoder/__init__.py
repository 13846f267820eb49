"""serdyn decoder module.

Exports the ``Decoder`` class and the ``decode`` convenience function.
"""
from __future__ import annotations

from serdyn.decoder.decoder import Decoder, decode

__all__ = [
    "Decoder",
    "decode",
]
