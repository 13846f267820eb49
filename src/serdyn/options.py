"""Traversal options shared by the encoder and decoder."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TranscodeOptions:
    """Configuration for :class:`~serdyn.encoder.Encoder` and
    :class:`~serdyn.decoder.Decoder`.

    Parameters
    ----------
    deny_unknown_fields:
        Reject mapping keys a struct does not declare with
        ``UnknownField`` instead of ignoring them (default False).
    int_as_float:
        Accept an ``int`` object where a float is expected (default False).
    lists_as_tuples:
        Accept a ``list`` object where a fixed-arity tuple is expected,
        for data that went through JSON or YAML (default False).
    max_depth:
        Deepest nesting a single traversal will follow before failing
        with ``DepthLimitExceeded``.
    use_adapters:
        Let the decoder read struct fields from opaque objects such as
        dataclass instances or pydantic models (default True).
    """

    deny_unknown_fields: bool = False
    int_as_float: bool = False
    lists_as_tuples: bool = False
    max_depth: int = 128
    use_adapters: bool = True

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TranscodeOptions":
        """Build options from a plain mapping, e.g. a loaded YAML file.

        Raises
        ------
        ValueError
            If ``data`` contains a key that is not an option name.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"Unknown transcode option(s): {', '.join(unknown)}. "
                f"Valid options: {', '.join(sorted(known))}"
            )
        return cls(**dict(data))

    def replace(self, **changes: Any) -> "TranscodeOptions":
        """Return a copy with ``changes`` applied."""
        return dataclasses.replace(self, **changes)
