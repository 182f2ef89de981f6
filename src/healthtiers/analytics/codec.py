"""JSON-friendly encoding and validated decoding of result dataclasses.

Encoding turns dates and datetimes into ISO-8601 strings, enums into
their values and nested dataclasses into dicts.  Decoding validates the
encoded form against the dataclass type hints with a pydantic
``TypeAdapter``, so a round trip yields field-for-field equality and
malformed input raises ``pydantic.ValidationError``.
"""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter

T = TypeVar("T")


def encode(obj: Any) -> Any:
    """Convert *obj* into plain JSON types."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: encode(getattr(obj, f.name)) for f in dataclasses.fields(obj) if f.init}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(encode(k)): encode(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [encode(v) for v in obj]
    return obj


@lru_cache(maxsize=None)
def adapter(cls: type[T]) -> TypeAdapter[T]:
    """Cached pydantic adapter for dataclass *cls*."""
    return TypeAdapter(cls)


class JsonMixin:
    """``to_dict`` / ``to_json`` / ``from_dict`` / ``from_json`` for dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        return encode(self)

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return adapter(cls).validate_python(data)

    @classmethod
    def from_json(cls, text: str):
        return adapter(cls).validate_json(text)
