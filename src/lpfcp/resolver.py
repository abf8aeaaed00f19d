"""Server-side request resolution.

Matches a request envelope against the exposed candidates of a processor,
decodes arguments, and invokes exactly one candidate:

1. ``functionName`` must be a string, ``functionArgs`` a mapping.
2. Candidates named ``functionName`` are tried in registry order.
3. Every provided key is bound to a parameter (by name, then position) and its
   token decoded strictly against the parameter annotation. A token that does
   not decode is kept raw and checked again before invocation.
4. A candidate is viable only if every provided key was bound.
5. A candidate whose bound values do not fit its parameters is skipped; the
   first candidate that runs wins, whether it returns or raises.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from lpfcp.encoding import DecodeError, EncodeError, conforms, decode
from lpfcp.error import (
    ArgumentMismatch,
    ExecutedFunctionThrowError,
    IncorrectFunctionArgsError,
    IncorrectFunctionNameError,
    NoMatchingFunctionFoundError,
    TransportError,
)
from lpfcp.registry import (
    KEYWORD_ONLY,
    POSITIONAL_ONLY,
    POSITIONAL_OR_KEYWORD,
    CandidateFunction,
    FunctionRegistry,
    Parameter,
)
from lpfcp.result import RpcResult
from lpfcp.wire import FUNCTION_ARGS, FUNCTION_NAME, ArgumentKey, parse_request

logger = logging.getLogger(__name__)


@dataclass
class ArgumentBinding:
    """Values bound to one candidate's parameters.

    ``raw`` holds the names of parameters whose token did not decode.
    """

    values: dict[str, Any] = field(default_factory=dict)
    varargs: dict[int, Any] = field(default_factory=dict)
    raw: set[str] = field(default_factory=set)
    raw_varargs: set[int] = field(default_factory=set)

    def __len__(self) -> int:
        return len(self.values) + len(self.varargs)


async def process_request(
    request: Mapping[str, Any],
    processor: Any,
    registry: FunctionRegistry | None = None,
) -> RpcResult[Any]:
    """Process a request, capturing every failure in the result.

    Args:
        request: The parsed request envelope
        processor: The object whose exposed functions may be invoked
        registry: Candidates to use instead of scanning ``processor``

    Returns:
        A successful result with the return value, or a failed result
    """
    try:
        return RpcResult.success(await process_request_unsafely(request, processor, registry))
    except Exception as e:
        return RpcResult.failed(e)


async def process_request_unsafely(
    request: Mapping[str, Any],
    processor: Any,
    registry: FunctionRegistry | None = None,
) -> Any:
    """Process a request and return the invoked function's return value.

    Raises:
        IncorrectFunctionNameError: If ``functionName`` is missing or not a string
        IncorrectFunctionArgsError: If ``functionArgs`` is missing or not a mapping
        NoMatchingFunctionFoundError: If no candidate accepts the arguments
        ExecutedFunctionThrowError: If the invoked function raised
    """
    function_name = request.get(FUNCTION_NAME) if isinstance(request, Mapping) else None
    if not isinstance(function_name, str):
        msg = f"`{FUNCTION_NAME}` key not found or is not a string."
        raise IncorrectFunctionNameError(msg)

    function_args = request.get(FUNCTION_ARGS)
    if not isinstance(function_args, Mapping):
        msg = f"`{FUNCTION_ARGS}` key not found or is not a JSON object."
        raise IncorrectFunctionArgsError(msg)

    if registry is None:
        registry = FunctionRegistry.for_processor(processor)

    for candidate in registry.candidates(function_name):
        binding = bind_arguments(candidate, function_args)

        # Every passed argument must be used
        if len(binding) != len(function_args):
            logger.debug(
                "Skipping %s%s: bound %d of %d arguments",
                candidate.name,
                _describe(candidate),
                len(binding),
                len(function_args),
            )
            continue

        try:
            args, kwargs = build_call(candidate, binding)
        except ArgumentMismatch as e:
            logger.debug("Skipping %s%s: %s", candidate.name, _describe(candidate), e)
            continue

        logger.debug("Dispatching %s%s", candidate.name, _describe(candidate))
        try:
            result = candidate.invoke(processor, args, kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning("Exposed function %s raised", candidate.name, exc_info=True)
            raise ExecutedFunctionThrowError(e) from e
        return result

    msg = (
        f"Function `{function_name}` with specified params not found. "
        "Ensure the function is marked with @exposed."
    )
    raise NoMatchingFunctionFoundError(msg)


def bind_arguments(candidate: CandidateFunction, function_args: Mapping[str, Any]) -> ArgumentBinding:
    """Bind provided arguments to ``candidate``'s parameters.

    Keys that address no parameter are left out, so the caller can compare
    the binding size with the number of provided keys.
    """
    binding = ArgumentBinding()
    for key, token in function_args.items():
        argument_key = ArgumentKey.parse(str(key))
        parameter = candidate.find_parameter(argument_key)
        if parameter is None:
            continue

        value, is_raw = _decode_or_raw(token, parameter)
        if parameter.is_variadic and argument_key.index is not None:
            binding.varargs[argument_key.index] = value
            if is_raw:
                binding.raw_varargs.add(argument_key.index)
        else:
            binding.values[parameter.name] = value
            if is_raw:
                binding.raw.add(parameter.name)
            else:
                binding.raw.discard(parameter.name)
    return binding


def build_call(
    candidate: CandidateFunction, binding: ArgumentBinding
) -> tuple[list[Any], dict[str, Any]]:
    """Arrange a binding into call arguments, checking it fits the signature.

    Raises:
        ArgumentMismatch: If a raw value does not fit its annotation, a required
            parameter is missing, or positional arguments cannot be laid out
    """
    for parameter in candidate.value_parameters:
        if parameter.name in binding.raw and not conforms(
            binding.values[parameter.name], parameter.annotation
        ):
            msg = f"argument `{parameter.name}` does not fit {parameter.annotation!r}"
            raise ArgumentMismatch(msg)
        if parameter.is_variadic:
            for index in binding.raw_varargs:
                if not conforms(binding.varargs[index], parameter.annotation):
                    msg = f"argument {index} does not fit {parameter.annotation!r}"
                    raise ArgumentMismatch(msg)

    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    # Positional-or-keyword parameters before a filled *args must go positionally
    positional_layout = bool(binding.varargs)
    gap: Parameter | None = None

    for parameter in candidate.value_parameters:
        if parameter.is_variadic:
            if binding.varargs and gap is not None:
                msg = f"missing positional argument `{gap.name}`"
                raise ArgumentMismatch(msg)
            args.extend(binding.varargs[i] for i in sorted(binding.varargs))
            continue
        if parameter.kind not in (POSITIONAL_ONLY, POSITIONAL_OR_KEYWORD, KEYWORD_ONLY):
            continue

        present = parameter.name in binding.values
        positional = parameter.kind is POSITIONAL_ONLY or (
            parameter.kind is POSITIONAL_OR_KEYWORD and positional_layout
        )
        if not present:
            if not parameter.has_default:
                msg = f"missing required argument `{parameter.name}`"
                raise ArgumentMismatch(msg)
            if positional:
                gap = gap or parameter
            continue

        value = binding.values[parameter.name]
        if positional:
            if gap is not None:
                msg = f"missing positional argument `{gap.name}`"
                raise ArgumentMismatch(msg)
            args.append(value)
        else:
            kwargs[parameter.name] = value

    return args, kwargs


async def handle_request(
    payload: str | bytes,
    processor: Any,
    registry: FunctionRegistry | None = None,
) -> str:
    """Transport-agnostic entry point: request text in, result envelope text out.

    Raises:
        TransportError: If the payload is not a JSON object
    """
    try:
        request = parse_request(payload)
    except ValueError as e:
        raise TransportError(f"Malformed request body: {e}") from e

    result = await process_request(request, processor, registry)
    try:
        return result.encode()
    except EncodeError as e:
        logger.warning("Cannot encode result of %s: %s", request.get(FUNCTION_NAME), e)
        return RpcResult.failed(e).encode()


def _decode_or_raw(token: Any, parameter: Parameter) -> tuple[Any, bool]:
    try:
        return decode(token, parameter.annotation, strict=True), False
    except DecodeError:
        return token, True


def _describe(candidate: CandidateFunction) -> str:
    return "(" + ", ".join(p.name for p in candidate.value_parameters) + ")"
