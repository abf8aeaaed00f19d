"""Function registry: which functions of a processor can be called remotely.

Only functions carrying the :func:`exposed` marker are candidates. Several
functions may share one remote name, which is how overloading is expressed:

    class Calculator:
        @exposed(name="add")
        def add_ints(self, a: int, b: int) -> int:
            return a + b

        @exposed(name="add")
        def add_strings(self, a: str, b: str) -> str:
            return a + b

Candidates are enumerated in method-resolution order (most derived class
first) and in definition order within a class. That order is the overload
resolution order.
"""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from functools import cache
from typing import Any, Self

from lpfcp.wire import ArgumentKey

EXPOSED_ATTR = "__lpfcp_exposed__"

POSITIONAL_ONLY = inspect.Parameter.POSITIONAL_ONLY
POSITIONAL_OR_KEYWORD = inspect.Parameter.POSITIONAL_OR_KEYWORD
VAR_POSITIONAL = inspect.Parameter.VAR_POSITIONAL
KEYWORD_ONLY = inspect.Parameter.KEYWORD_ONLY
VAR_KEYWORD = inspect.Parameter.VAR_KEYWORD


@dataclass(frozen=True)
class Exposure:
    """The exposure marker attached to a function."""

    name: str | None = None


def exposed(func: Any = None, /, *, name: str | None = None) -> Any:
    """Mark a function as remotely callable.

    Usable bare (``@exposed``) or with a remote name (``@exposed(name="add")``).
    Works above or below ``@staticmethod`` / ``@classmethod``.
    """

    def decorate(f: Any) -> Any:
        target = f.__func__ if isinstance(f, staticmethod | classmethod) else f
        setattr(target, EXPOSED_ATTR, Exposure(name))
        return f

    if func is None:
        return decorate
    return decorate(func)


def is_exposed(func: Any) -> bool:
    target = func.__func__ if isinstance(func, staticmethod | classmethod) else func
    return isinstance(getattr(target, EXPOSED_ATTR, None), Exposure)


@dataclass(frozen=True)
class Parameter:
    """One parameter of a candidate function.

    ``index`` is 0 for the receiver and 1-based for value parameters. For a
    ``*args`` parameter the annotation is the element type.
    """

    name: str
    index: int
    annotation: Any = Any
    kind: inspect._ParameterKind = POSITIONAL_OR_KEYWORD
    has_default: bool = False
    is_receiver: bool = False

    @property
    def is_variadic(self) -> bool:
        return self.kind is VAR_POSITIONAL

    def matches_name(self, key: ArgumentKey) -> bool:
        if self.is_receiver or self.kind in (VAR_POSITIONAL, VAR_KEYWORD):
            return False
        return key.name == self.name

    def matches_index(self, key: ArgumentKey) -> bool:
        if self.is_receiver or self.kind is VAR_KEYWORD or key.index is None:
            return False
        if self.is_variadic:
            return key.index >= self.index
        return key.index == self.index


@dataclass(frozen=True)
class CandidateFunction:
    """An exposed function eligible for dispatch."""

    name: str
    parameters: tuple[Parameter, ...]
    return_annotation: Any
    function: Callable[..., Any] = field(compare=False, repr=False)
    attribute: str | None = None

    @property
    def receiver(self) -> Parameter | None:
        if self.parameters and self.parameters[0].is_receiver:
            return self.parameters[0]
        return None

    @property
    def value_parameters(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if not p.is_receiver)

    @property
    def is_coroutine(self) -> bool:
        return inspect.iscoroutinefunction(self.function)

    def find_parameter(self, key: ArgumentKey) -> Parameter | None:
        """Find the parameter addressed by ``key``: by name first, then by position."""
        for parameter in self.parameters:
            if parameter.matches_name(key):
                return parameter
        for parameter in self.parameters:
            if parameter.matches_index(key):
                return parameter
        return None

    def invoke(self, processor: Any, args: list[Any], kwargs: dict[str, Any]) -> Any:
        """Call the function, with ``processor`` as receiver when it has one."""
        if self.attribute is not None and processor is not None:
            return getattr(processor, self.attribute)(*args, **kwargs)
        return self.function(*args, **kwargs)

    @staticmethod
    def from_function(
        func: Callable[..., Any],
        *,
        name: str | None = None,
        attribute: str | None = None,
        has_receiver: bool = False,
    ) -> CandidateFunction:
        """Describe ``func``; with ``has_receiver`` its first parameter is the receiver."""
        signature = inspect.signature(func)
        hints = type_hints(func)

        parameters = []
        offset = 0 if has_receiver else 1
        for position, param in enumerate(signature.parameters.values()):
            parameters.append(
                Parameter(
                    name=param.name,
                    index=position + offset,
                    annotation=resolve_annotation(hints, param.name, param.annotation),
                    kind=param.kind,
                    has_default=param.default is not inspect.Parameter.empty,
                    is_receiver=has_receiver and position == 0,
                )
            )

        return CandidateFunction(
            name=name or func.__name__,
            parameters=tuple(parameters),
            return_annotation=resolve_annotation(hints, "return", signature.return_annotation),
            function=func,
            attribute=attribute,
        )


class FunctionRegistry:
    """Ordered collection of candidate functions, possibly sharing names."""

    def __init__(self, candidates: Iterable[CandidateFunction] = ()) -> None:
        self._candidates: list[CandidateFunction] = list(candidates)

    @classmethod
    def for_processor(cls, processor: Any) -> FunctionRegistry:
        """Registry of every exposed function on ``processor``'s class."""
        return cls(_scan_class(type(processor)))

    @classmethod
    def for_class(cls, processor_type: type) -> FunctionRegistry:
        return cls(_scan_class(processor_type))

    def register(self, func: Callable[..., Any], *, name: str | None = None) -> Self:
        """Add a plain callable (function, bound method, lambda) as a candidate."""
        self._candidates.append(CandidateFunction.from_function(func, name=name))
        return self

    def candidates(self, name: str) -> list[CandidateFunction]:
        """Candidates named ``name``, in resolution order."""
        return [c for c in self._candidates if c.name == name]

    def names(self) -> list[str]:
        return list(dict.fromkeys(c.name for c in self._candidates))

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self._candidates)

    def __iter__(self) -> Iterator[CandidateFunction]:
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __repr__(self) -> str:
        return f"FunctionRegistry({self.names()!r})"


@cache
def _scan_class(processor_type: type) -> tuple[CandidateFunction, ...]:
    seen: set[str] = set()
    found: list[CandidateFunction] = []
    for klass in processor_type.__mro__:
        if klass is object:
            continue
        for attribute, member in vars(klass).items():
            if attribute in seen:
                continue
            # An override hides the base definition, exposed or not
            seen.add(attribute)
            if not is_exposed(member):
                continue
            func = member.__func__ if isinstance(member, staticmethod | classmethod) else member
            if not callable(func):
                continue
            exposure: Exposure = getattr(func, EXPOSED_ATTR)
            found.append(
                CandidateFunction.from_function(
                    func,
                    name=exposure.name or attribute,
                    attribute=attribute,
                    has_receiver=not isinstance(member, staticmethod),
                )
            )
    return tuple(found)


def type_hints(func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(func, include_extras=True)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references degrade to Any
        return {}


def resolve_annotation(hints: dict[str, Any], name: str, raw: Any) -> Any:
    if name in hints:
        return hints[name]
    if raw is inspect.Parameter.empty or isinstance(raw, str):
        return Any
    return raw
