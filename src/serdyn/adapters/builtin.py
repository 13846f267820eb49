"""Built-in adapters for dataclasses, pydantic models and plain objects."""
from __future__ import annotations

import dataclasses
import sys
from typing import Any

from serdyn.adapters.base import ObjectAdapter


class DataclassAdapter(ObjectAdapter):
    """Reads the fields of a dataclass instance (not recursively)."""

    def matches(self, obj: Any) -> bool:
        return dataclasses.is_dataclass(obj) and not isinstance(obj, type)

    def fields(self, obj: Any) -> dict[str, Any]:
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}


class PydanticModelAdapter(ObjectAdapter):
    """Reads the declared fields of a pydantic ``BaseModel`` instance.

    pydantic is never imported here: an object can only be a model if
    pydantic has already been imported by whoever created it.
    """

    def matches(self, obj: Any) -> bool:
        pydantic = sys.modules.get("pydantic")
        if pydantic is None:
            return False
        return isinstance(obj, pydantic.BaseModel)

    def fields(self, obj: Any) -> dict[str, Any]:
        return {name: getattr(obj, name) for name in type(obj).model_fields}


class AttributeAdapter(ObjectAdapter):
    """Reads the public instance attributes of any object with a ``__dict__``."""

    def matches(self, obj: Any) -> bool:
        return hasattr(obj, "__dict__") and not isinstance(obj, type) and not callable(obj)

    def fields(self, obj: Any) -> dict[str, Any]:
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}


BUILTIN_ADAPTERS: tuple[tuple[str, type[ObjectAdapter]], ...] = (
    ("dataclass", DataclassAdapter),
    ("pydantic", PydanticModelAdapter),
    ("attributes", AttributeAdapter),
)
