"""Request envelope and argument keys.

A request is a JSON object:

    {"functionName": "add", "functionArgs": {"a": "3", "2": "5"}}

Argument keys are either a parameter name or its 1-based position; every
argument value is a JSON text token.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

DEFAULT_PATH = "/lpfcp"

FUNCTION_NAME = "functionName"
FUNCTION_ARGS = "functionArgs"


@dataclass(frozen=True)
class ArgumentKey:
    """An argument key, addressing a parameter by name or by position."""

    name: str
    index: int | None = None

    @staticmethod
    def parse(key: str) -> ArgumentKey:
        """Parse a wire key; decimal keys also carry their position."""
        index = int(key) if key.isdecimal() and key.isascii() else None
        return ArgumentKey(key, index)

    @staticmethod
    def positional(index: int) -> ArgumentKey:
        """Key for the 1-based position ``index``."""
        return ArgumentKey(str(index), index)

    def to_json(self) -> str:
        return self.name


@dataclass(frozen=True)
class RequestEnvelope:
    """A call to ``function_name`` with encoded arguments."""

    function_name: str
    function_args: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        return {FUNCTION_NAME: self.function_name, FUNCTION_ARGS: dict(self.function_args)}

    def encode(self) -> str:
        """Serialise to JSON text."""
        return json.dumps(self.to_json())

    @staticmethod
    def from_json(data: Any) -> RequestEnvelope:
        """Parse from a JSON-compatible dict.

        Raises:
            ValueError: If the dict is not a well-formed request
        """
        if not isinstance(data, dict):
            msg = "Request must be a JSON object"
            raise ValueError(msg)
        function_name = data.get(FUNCTION_NAME)
        function_args = data.get(FUNCTION_ARGS)
        if not isinstance(function_name, str):
            msg = f"`{FUNCTION_NAME}` must be a string"
            raise ValueError(msg)
        if not isinstance(function_args, dict):
            msg = f"`{FUNCTION_ARGS}` must be an object"
            raise ValueError(msg)
        return RequestEnvelope(function_name, dict(function_args))


def parse_request(payload: str | bytes) -> dict[str, Any]:
    """Parse request text into a dict without validating its fields.

    Raises:
        ValueError: If the payload is not a JSON object
    """
    data = json.loads(payload)
    if not isinstance(data, dict):
        msg = f"Request must be a JSON object, got {type(data).__name__}"
        raise ValueError(msg)
    return data
