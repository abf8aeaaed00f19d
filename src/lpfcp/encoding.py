"""Value encoding backed by pydantic.

Every value crossing the wire travels as a JSON text token. Decoding is driven
by a type descriptor, which may be any annotation pydantic understands,
including parametrised generics such as ``list[int]`` or ``dict[str, Point]``.
"""

from __future__ import annotations

import inspect
from functools import lru_cache
from typing import Any

import pydantic_core
from pydantic import TypeAdapter


class EncodeError(ValueError):
    """A value could not be turned into a token."""


class DecodeError(ValueError):
    """A token could not be decoded into the requested type."""


@lru_cache(maxsize=512)
def _cached_adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def type_adapter(type_: Any) -> TypeAdapter[Any]:
    """Return a (cached when possible) TypeAdapter for ``type_``."""
    if type_ is inspect.Parameter.empty or type_ is inspect.Signature.empty:
        type_ = Any
    try:
        return _cached_adapter(type_)
    except TypeError:
        # Unhashable annotation
        return TypeAdapter(type_)


def encode(value: Any) -> str:
    """Encode ``value`` as a JSON text token.

    Raises:
        EncodeError: If pydantic cannot serialise the value
    """
    try:
        return pydantic_core.to_json(value).decode("utf-8")
    except pydantic_core.PydanticSerializationError as e:
        msg = f"Cannot encode value of type {type(value).__name__}: {e}"
        raise EncodeError(msg) from e


def decode(token: Any, type_: Any = Any, *, strict: bool = False) -> Any:
    """Decode a JSON text token against a type descriptor.

    Args:
        token: JSON text (``str`` or ``bytes``)
        type_: The target annotation
        strict: Refuse type coercions (``"3"`` never becomes ``3``)

    Raises:
        DecodeError: If the token is not text or does not validate
    """
    if not isinstance(token, str | bytes | bytearray):
        msg = f"Token must be JSON text, got {type(token).__name__}"
        raise DecodeError(msg)
    try:
        return type_adapter(type_).validate_json(token, strict=strict)
    except (ValueError, TypeError) as e:
        msg = f"Cannot decode {token!r} as {_type_name(type_)}: {e}"
        raise DecodeError(msg) from e


def conforms(value: Any, type_: Any) -> bool:
    """Check that ``value`` already is an instance of ``type_`` (strict)."""
    try:
        type_adapter(type_).validate_python(value, strict=True)
    except (ValueError, TypeError):
        return False
    return True


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)
