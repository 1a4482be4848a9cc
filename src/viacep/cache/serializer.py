"""JSON serialization of cached values.

Values are encoded with :func:`pydantic_core.to_json`, which handles Pydantic
models, dataclasses, and the builtin containers.  Decoding goes through a
:class:`pydantic.TypeAdapter` for the requested destination type, so a value
stored as an :class:`~viacep.models.Address` comes back as one.
"""

from __future__ import annotations

import functools
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError, to_json

from viacep.exceptions import SerializationError

T = TypeVar("T")


def encode(value: Any) -> bytes:
    """Serialize *value* to JSON bytes.

    ``bytes`` values are written as JSON strings, so only UTF-8 byte
    strings can be stored; arbitrary binary data is rejected rather than
    silently re-encoded.

    Raises:
        SerializationError: If *value* (or anything nested in it) has no
            JSON representation, e.g. a function, a lock, a plain object,
            or bytes that are not valid UTF-8.
    """
    try:
        return to_json(value)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"failed to encode value of type {type(value).__name__}: {exc}"
        ) from exc


@functools.lru_cache(maxsize=128)
def _adapter(into: Any) -> TypeAdapter:
    return TypeAdapter(into)


def decode(raw: bytes, into: type[T]) -> T:
    """Deserialize *raw* into an instance of *into*.

    Raises:
        pydantic.ValidationError: If the data does not fit *into*.
        TypeError: If *into* is not a type Pydantic can validate.
    """
    return _adapter(into).validate_json(raw)
