"""Client-side stubs.

A stub is an instance of a generated subclass of an interface class. Every
public function of the interface is replaced by a coroutine that turns the
call into a request envelope, hands it to a sender, and decodes the reply
against the function's declared return annotation.

Example:
    ```python
    class Calculator(Protocol):
        async def add(self, a: int, b: int) -> int: ...

    calculator = create_stub(Calculator, sender)
    assert await calculator.add(3, 5) == 8
    ```
"""

from __future__ import annotations

import inspect
import types
import typing
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from lpfcp.encoding import conforms, encode
from lpfcp.error import TransportError
from lpfcp.registry import (
    KEYWORD_ONLY,
    VAR_KEYWORD,
    VAR_POSITIONAL,
    resolve_annotation,
    type_hints,
)
from lpfcp.result import RpcResult
from lpfcp.wire import ArgumentKey, RequestEnvelope

T = TypeVar("T")

Sender = Callable[[RequestEnvelope], "str | bytes | Awaitable[str | bytes]"]

SENDER_ATTR = "_lpfcp_sender"


@dataclass(frozen=True)
class RemoteSignature:
    """One declared signature of an interface function."""

    signature: inspect.Signature
    annotations: dict[str, Any]
    return_annotation: Any
    has_receiver: bool = True

    @staticmethod
    def from_function(func: Callable[..., Any], *, has_receiver: bool = True) -> RemoteSignature:
        signature = inspect.signature(func)
        hints = type_hints(func)
        for param in signature.parameters.values():
            if param.kind is VAR_KEYWORD:
                msg = f"{func.__qualname__}: variable keyword arguments cannot be sent"
                raise TypeError(msg)
        annotations = {
            name: resolve_annotation(hints, name, param.annotation)
            for name, param in signature.parameters.items()
        }
        return RemoteSignature(
            signature=signature,
            annotations=annotations,
            return_annotation=resolve_annotation(hints, "return", signature.return_annotation),
            has_receiver=has_receiver,
        )

    def bind(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> inspect.BoundArguments:
        """Bind a call, filling in defaults.

        Raises:
            TypeError: If the arguments do not fit the signature
        """
        if self.has_receiver:
            args = (None, *args)
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return bound

    def accepts(self, bound: inspect.BoundArguments) -> bool:
        """Check that the bound values conform to the declared annotations."""
        for name, value in self._value_arguments(bound):
            param = self.signature.parameters[name]
            values = value if param.kind is VAR_POSITIONAL else (value,)
            if not all(conforms(v, self.annotations[name]) for v in values):
                return False
        return True

    def wire_arguments(self, bound: inspect.BoundArguments) -> dict[str, Any]:
        """Key bound values for the wire.

        Positional values, ``*args`` expanded, take keys "1", "2", ... in order.
        Keyword-only values are keyed by name: every position after ``*args``
        belongs to ``*args``.
        """
        positional: list[Any] = []
        keyword: dict[str, Any] = {}
        for name, value in self._value_arguments(bound):
            kind = self.signature.parameters[name].kind
            if kind is VAR_POSITIONAL:
                positional.extend(value)
            elif kind is KEYWORD_ONLY:
                keyword[name] = value
            else:
                positional.append(value)
        keys = {
            ArgumentKey.positional(index).to_json(): value
            for index, value in enumerate(positional, start=1)
        }
        return keys | keyword

    def _value_arguments(self, bound: inspect.BoundArguments) -> list[tuple[str, Any]]:
        items = list(bound.arguments.items())
        return items[1:] if self.has_receiver else items


@dataclass(frozen=True)
class RemoteMethod:
    """A remote function with its declared signature or overloads."""

    name: str
    signatures: tuple[RemoteSignature, ...]

    @staticmethod
    def from_function(
        name: str, func: Callable[..., Any], *, has_receiver: bool = True
    ) -> RemoteMethod:
        overloads = typing.get_overloads(func)
        declared = overloads or [func]
        return RemoteMethod(
            name,
            tuple(RemoteSignature.from_function(f, has_receiver=has_receiver) for f in declared),
        )

    def select(
        self, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> tuple[RemoteSignature, inspect.BoundArguments]:
        """Pick the declared signature a call addresses.

        Raises:
            TypeError: If no declared signature accepts the arguments
        """
        if len(self.signatures) == 1:
            signature = self.signatures[0]
            return signature, signature.bind(args, kwargs)

        for signature in self.signatures:
            try:
                bound = signature.bind(args, kwargs)
            except TypeError:
                continue
            if signature.accepts(bound):
                return signature, bound

        msg = f"No overload of {self.name}() accepts the given arguments"
        raise TypeError(msg)

    def build_request(
        self, args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> tuple[RequestEnvelope, Any]:
        """Build the request envelope and return it with the expected return type."""
        signature, bound = self.select(args, kwargs)
        function_args = {
            key: encode(value) for key, value in signature.wire_arguments(bound).items()
        }
        return RequestEnvelope(self.name, function_args), signature.return_annotation


def remote_methods(interface: type) -> dict[str, RemoteMethod]:
    """Collect the public functions of ``interface``."""
    methods: dict[str, RemoteMethod] = {}
    for name in dir(interface):
        if name.startswith("_"):
            continue
        member = inspect.getattr_static(interface, name)
        func = member.__func__ if isinstance(member, staticmethod | classmethod) else member
        if not inspect.isfunction(func):
            continue
        methods[name] = RemoteMethod.from_function(
            name, func, has_receiver=not isinstance(member, staticmethod)
        )
    return methods


async def send_request(sender: Sender, request: RequestEnvelope) -> str | bytes:
    """Hand ``request`` to ``sender``, normalising its failures to TransportError."""
    try:
        reply = sender(request)
        if inspect.isawaitable(reply):
            reply = await reply
    except TransportError:
        raise
    except Exception as e:
        msg = f"Transport error: {e}"
        raise TransportError(msg) from e

    if not isinstance(reply, str | bytes | bytearray):
        msg = f"Sender returned {type(reply).__name__}, expected str or bytes"
        raise TransportError(msg)
    return reply


def create_stub(interface: type[T], sender: Sender) -> T:
    """Create an object implementing ``interface`` whose calls go through ``sender``."""
    methods = remote_methods(interface)

    def exec_body(namespace: dict[str, Any]) -> None:
        for name, remote in methods.items():
            namespace[name] = _stub_method(interface, remote)
        namespace["__init__"] = _stub_init
        namespace["__repr__"] = _stub_repr
        namespace["__lpfcp_interface__"] = interface

    stub_type = types.new_class(f"{interface.__name__}Stub", (interface,), exec_body=exec_body)
    return stub_type(sender)


def _stub_method(interface: type, remote: RemoteMethod) -> Callable[..., Any]:
    async def method(self: Any, *args: Any, **kwargs: Any) -> Any:
        request, return_type = remote.build_request(args, kwargs)
        reply = await send_request(getattr(self, SENDER_ATTR), request)
        return RpcResult.decode(reply, return_type).get_or_throw()

    declared = inspect.getattr_static(interface, remote.name)
    method.__name__ = remote.name
    method.__qualname__ = f"{interface.__name__}Stub.{remote.name}"
    method.__doc__ = getattr(declared, "__doc__", None)
    return method


def _stub_init(self: Any, sender: Sender) -> None:
    object.__setattr__(self, SENDER_ATTR, sender)


def _stub_repr(self: Any) -> str:
    return f"<{type(self).__lpfcp_interface__.__name__} stub>"
