"""Tests for the result envelope."""

import json
from dataclasses import dataclass

import pytest

from lpfcp.error import (
    ExecutedFunctionThrowError,
    NoMatchingFunctionFoundError,
    TransportError,
    class_identity,
)
from lpfcp.result import RpcResult
from lpfcp.wrapping import RemoteException, WrappedException


@dataclass
class Pair:
    left: int
    right: int


class TestRpcResultBasics:
    """Construction, equality and get_or_throw."""

    def test_success(self) -> None:
        """A success holds its value."""
        result = RpcResult.success(8)
        assert result.is_success
        assert result.value == 8
        assert result.failure is None
        assert result.get_or_throw() == 8

    def test_success_with_none(self) -> None:
        """None is a legitimate value."""
        result = RpcResult.success(None)
        assert result.is_success
        assert result.get_or_throw() is None

    def test_failure(self) -> None:
        """A failure holds the wrapped exception and raises it."""
        result = RpcResult.failed(NoMatchingFunctionFoundError("nothing"))
        assert not result.is_success
        assert result.failure is not None
        assert result.failure.is_instance_of(NoMatchingFunctionFoundError)
        with pytest.raises(NoMatchingFunctionFoundError):
            result.get_or_throw()

    def test_failure_from_wrapped(self) -> None:
        """A failure can be built from a descriptor."""
        result = RpcResult.failed(WrappedException("shop.InsufficientFunds", "low"))
        with pytest.raises(RemoteException) as exc_info:
            result.get_or_throw()
        assert exc_info.value.exception_class == "shop.InsufficientFunds"

    def test_success_equality(self) -> None:
        """Successes are equal iff their values are equal."""
        assert RpcResult.success(8) == RpcResult.success(8)
        assert RpcResult.success(8) != RpcResult.success(9)
        assert RpcResult.success(8) != RpcResult.failed(ValueError("8"))

    def test_failure_equality(self) -> None:
        """Failures are equal iff their exception classes are equal."""
        assert RpcResult.failed(ValueError("a")) == RpcResult.failed(ValueError("b"))
        assert RpcResult.failed(ValueError("a")) != RpcResult.failed(KeyError("a"))

    def test_repr(self) -> None:
        """The representation names the outcome."""
        assert repr(RpcResult.success(1)) == "RpcResult.success(1)"
        assert "builtins.ValueError" in repr(RpcResult.failed(ValueError("x")))


class TestRpcResultWire:
    """Encoding and decoding envelopes."""

    def test_success_envelope(self) -> None:
        """Successes carry the encoded value token."""
        assert json.loads(RpcResult.success(Pair(1, 2)).encode()) == {
            "success": True,
            "value": '{"left":1,"right":2}',
        }

    def test_failure_envelope(self) -> None:
        """Failures carry the exception identity, message and cause."""
        error = ExecutedFunctionThrowError(ValueError("bad"))
        envelope = json.loads(RpcResult.failed(error).encode())

        assert envelope["success"] is False
        assert envelope["exceptionClass"] == class_identity(ExecutedFunctionThrowError)
        assert envelope["message"] == "ValueError: bad"
        assert envelope["cause"] == {"exceptionClass": "builtins.ValueError", "message": "bad"}

    def test_decode_success_with_type(self) -> None:
        """The value token is decoded against the given type."""
        text = RpcResult.success(Pair(1, 2)).encode()
        assert RpcResult.decode(text, Pair).get_or_throw() == Pair(1, 2)

    def test_decode_failure(self) -> None:
        """Failures decode back into their materialised exception."""
        text = RpcResult.failed(ExecutedFunctionThrowError(KeyError("k"))).encode()
        result = RpcResult.decode(text, int)

        with pytest.raises(ExecutedFunctionThrowError) as exc_info:
            result.get_or_throw()
        assert isinstance(exc_info.value.__cause__, RemoteException)
        assert exc_info.value.__cause__.is_instance_of(KeyError)

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[]",
            '{"value": "1"}',
            '{"success": "yes"}',
            '{"success": true}',
            '{"success": false, "message": "no class"}',
            '{"success": true, "value": "\\"text\\""}',
        ],
    )
    def test_decode_malformed(self, payload: str) -> None:
        """Anything that is not a well-formed envelope is a transport error."""
        with pytest.raises(TransportError):
            RpcResult.decode(payload, int)
