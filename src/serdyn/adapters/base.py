"""Base class for foreign-object adapters."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ObjectAdapter(ABC):
    """Reads the named fields of an opaque object.

    Adapters let the decoder accept objects that are not mappings, but
    still carry named fields, wherever a struct is expected.
    """

    @abstractmethod
    def matches(self, obj: Any) -> bool:
        """Return True if this adapter can read ``obj``."""

    @abstractmethod
    def fields(self, obj: Any) -> dict[str, Any]:
        """Return the object's fields as a name -> value dict."""
