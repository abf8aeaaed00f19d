"""Result envelope: success with a value, or failure with a wrapped exception."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from lpfcp.encoding import DecodeError, decode, encode
from lpfcp.error import TransportError
from lpfcp.wrapping import WrappedException

T = TypeVar("T")


@dataclass(frozen=True, eq=False)
class RpcResult(Generic[T]):
    """Outcome of one remote call.

    On the wire:

        {"success": true, "value": "<token>"}
        {"success": false, "exceptionClass": "...", "message": "...", "cause": {...}}

    The envelope carries no type information; the receiving side decodes the
    value token against the return type it already knows.
    """

    value: T | None = None
    failure: WrappedException | None = None

    @staticmethod
    def success(value: T) -> RpcResult[T]:
        """Create a successful result."""
        return RpcResult(value=value)

    @staticmethod
    def failed(exc: BaseException | WrappedException) -> RpcResult[Any]:
        """Create a failed result from an exception or a wrapped descriptor."""
        if isinstance(exc, BaseException):
            exc = WrappedException.capture(exc)
        return RpcResult(failure=exc)

    @property
    def is_success(self) -> bool:
        return self.failure is None

    def get_or_throw(self) -> T | None:
        """Return the value, or raise the materialised failure."""
        if self.failure is not None:
            raise self.failure.materialize()
        return self.value

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict, encoding the value as a token.

        Raises:
            EncodeError: If the value cannot be encoded
        """
        if self.failure is not None:
            return {"success": False, **self.failure.to_json()}
        return {"success": True, "value": encode(self.value)}

    def encode(self) -> str:
        """Serialise the envelope to JSON text."""
        return json.dumps(self.to_json())

    @staticmethod
    def from_json(data: Any, type_: Any = Any) -> RpcResult[Any]:
        """Parse an envelope dict, decoding the value token against ``type_``.

        Raises:
            TransportError: If the envelope is malformed or the value does not decode
        """
        if not isinstance(data, dict) or not isinstance(data.get("success"), bool):
            msg = "Result envelope must be an object with a boolean `success`"
            raise TransportError(msg)

        if not data["success"]:
            try:
                return RpcResult(failure=WrappedException.from_json(data))
            except ValueError as e:
                raise TransportError(f"Malformed failure envelope: {e}") from e

        if "value" not in data:
            msg = "Success envelope is missing `value`"
            raise TransportError(msg)
        try:
            return RpcResult(value=decode(data["value"], type_))
        except DecodeError as e:
            raise TransportError(f"Malformed result value: {e}") from e

    @staticmethod
    def decode(payload: str | bytes, type_: Any = Any) -> RpcResult[Any]:
        """Parse reply text into a result whose value is decoded against ``type_``."""
        try:
            data = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as e:
            raise TransportError(f"Response body is not JSON: {e}") from e
        return RpcResult.from_json(data, type_)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RpcResult):
            return NotImplemented
        if self.failure is not None or other.failure is not None:
            if self.failure is None or other.failure is None:
                return False
            return self.failure.exception_class == other.failure.exception_class
        return self.value == other.value

    def __hash__(self) -> int:
        if self.failure is not None:
            return hash(("failure", self.failure.exception_class))
        return hash(("success", repr(self.value)))

    def __repr__(self) -> str:
        if self.failure is not None:
            return f"RpcResult.failed({self.failure.exception_class}: {self.failure.message!r})"
        return f"RpcResult.success({self.value!r})"
