"""Portable exception descriptors.

A :class:`WrappedException` captures the identity and message of an exception
so the other side of the wire can recognise it without importing its class.
Protocol errors defined in :mod:`lpfcp.error` are materialised back into their
real classes; anything else becomes a :class:`RemoteException`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from lpfcp.error import PROTOCOL_ERRORS, class_identity


@dataclass(frozen=True)
class WrappedException:
    """Descriptor of an exception: class identity, message and optional cause."""

    exception_class: str
    message: str
    cause: WrappedException | None = None

    @classmethod
    def capture(cls, exc: BaseException) -> WrappedException:
        """Capture a live exception, following ``__cause__`` transitively.

        A cause chain that loops back on itself is cut at the first repeat.
        """
        chain: list[BaseException] = []
        seen: set[int] = set()
        current: BaseException | None = exc
        while current is not None and id(current) not in seen:
            seen.add(id(current))
            chain.append(current)
            current = current.__cause__

        root = chain[-1]
        wrapped = cls(class_identity(type(root)), str(root))
        for link in reversed(chain[:-1]):
            wrapped = cls(class_identity(type(link)), str(link), wrapped)
        return wrapped

    def is_instance_of(self, exc_type: type[BaseException]) -> bool:
        """Check whether the captured exception was of exactly ``exc_type``."""
        return self.exception_class == class_identity(exc_type)

    def materialize(self) -> BaseException:
        """Build a local exception equivalent to the captured one."""
        protocol_error = PROTOCOL_ERRORS.get(self.exception_class)
        exc: BaseException
        if protocol_error is not None:
            exc = protocol_error(self.message)
        else:
            exc = RemoteException(self)
        if self.cause is not None:
            exc.__cause__ = self.cause.materialize()
        return exc

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        result: dict[str, Any] = {
            "exceptionClass": self.exception_class,
            "message": self.message,
        }
        if self.cause is not None:
            result["cause"] = self.cause.to_json()
        return result

    @staticmethod
    def from_json(data: Any) -> WrappedException:
        """Parse from a JSON-compatible dict."""
        if not isinstance(data, dict):
            msg = f"Wrapped exception must be an object, got {type(data).__name__}"
            raise ValueError(msg)
        exception_class = data.get("exceptionClass")
        message = data.get("message", "")
        if not isinstance(exception_class, str) or not isinstance(message, str):
            msg = "Wrapped exception requires string `exceptionClass` and `message`"
            raise ValueError(msg)
        cause = data.get("cause")
        return WrappedException(
            exception_class,
            message,
            WrappedException.from_json(cause) if cause is not None else None,
        )


class RemoteException(Exception):
    """An application exception raised on the remote side.

    Example:
        ```python
        try:
            await calculator.divide(1, 0)
        except ExecutedFunctionThrowError as e:
            remote = e.__cause__
            assert remote.is_instance_of(ZeroDivisionError)
        ```
    """

    def __init__(self, wrapped: WrappedException) -> None:
        super().__init__(wrapped.message)
        self.wrapped = wrapped

    @property
    def exception_class(self) -> str:
        return self.wrapped.exception_class

    @property
    def message(self) -> str:
        return self.wrapped.message

    def is_instance_of(self, exc_type: type[BaseException]) -> bool:
        return self.wrapped.is_instance_of(exc_type)

    def __str__(self) -> str:
        return f"{self.exception_class}: {self.message}"

    def __repr__(self) -> str:
        return f"RemoteException({self.exception_class!r}, {self.message!r})"
