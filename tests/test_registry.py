"""Tests for the function registry and exposure marker."""

import inspect
from typing import Any

from lpfcp.registry import (
    CandidateFunction,
    FunctionRegistry,
    Parameter,
    exposed,
    is_exposed,
)
from lpfcp.wire import ArgumentKey


class Base:
    @exposed
    def ping(self) -> str:
        return "base"

    @exposed
    def status(self) -> str:
        return "ok"

    @exposed
    def shared(self) -> str:
        return "base"


class Derived(Base):
    @exposed
    def ping(self) -> str:
        return "derived"

    def status(self) -> str:
        return "hidden"

    @exposed(name="add")
    def add_ints(self, a: int, b: int = 0) -> int:
        return a + b

    @exposed(name="add")
    def add_strings(self, a: str, b: str) -> str:
        return a + b

    @exposed
    def collect(self, first: str, *rest: int, flag: bool = False, **extra: Any) -> int:
        return len(rest)

    def helper(self) -> None:
        pass


class TestExposed:
    """Tests for the exposure marker."""

    def test_bare_decorator(self) -> None:
        """@exposed marks the function and returns it unchanged."""

        def f() -> None:
            pass

        assert exposed(f) is f
        assert is_exposed(f)

    def test_named_decorator(self) -> None:
        """@exposed(name=...) records the remote name."""

        @exposed(name="remote")
        def f() -> None:
            pass

        assert is_exposed(f)
        assert f.__lpfcp_exposed__.name == "remote"

    def test_unmarked_function(self) -> None:
        """Plain functions are not exposed."""

        def f() -> None:
            pass

        assert not is_exposed(f)

    def test_static_method(self) -> None:
        """The marker reaches through staticmethod."""
        marked = exposed(staticmethod(lambda: None))
        assert is_exposed(marked)


class TestFunctionRegistry:
    """Tests for FunctionRegistry."""

    def test_only_exposed_functions(self) -> None:
        """Unmarked methods are never candidates."""
        registry = FunctionRegistry.for_processor(Derived())
        assert "helper" not in registry
        assert "ping" in registry

    def test_enumeration_order(self) -> None:
        """Most derived class first, definition order within a class."""
        registry = FunctionRegistry.for_class(Derived)
        assert registry.names() == ["ping", "add", "collect", "shared"]

    def test_override_hides_base(self) -> None:
        """An override is enumerated once, and hides the base marker when unmarked."""
        registry = FunctionRegistry.for_class(Derived)
        assert len(registry.candidates("ping")) == 1
        assert registry.candidates("ping")[0].function is Derived.ping
        assert "status" not in registry

    def test_overload_set(self) -> None:
        """Functions sharing a remote name form an overload set in definition order."""
        candidates = FunctionRegistry.for_class(Derived).candidates("add")
        assert [c.attribute for c in candidates] == ["add_ints", "add_strings"]

    def test_candidates_unknown_name(self) -> None:
        """Unknown names have no candidates."""
        assert FunctionRegistry.for_class(Derived).candidates("missing") == []

    def test_register_builder(self) -> None:
        """register() appends plain callables and returns the registry."""

        def double(x: int) -> int:
            return 2 * x

        registry = FunctionRegistry()
        assert registry.register(double) is registry
        registry.register(double, name="twice")
        assert registry.names() == ["double", "twice"]
        assert len(registry) == 2

    def test_class_registry_is_cached(self) -> None:
        """Scanning the same class twice yields the same candidates."""
        first = list(FunctionRegistry.for_processor(Derived()))
        second = list(FunctionRegistry.for_processor(Derived()))
        assert [c.function for c in first] == [c.function for c in second]


class TestCandidateFunction:
    """Tests for candidate descriptions."""

    def test_parameters(self) -> None:
        """The receiver has index 0; value parameters are 1-based."""
        candidate = FunctionRegistry.for_class(Derived).candidates("add")[0]
        receiver, a, b = candidate.parameters

        assert receiver.is_receiver
        assert receiver.index == 0
        assert a == Parameter("a", 1, int, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        assert b.has_default
        assert candidate.return_annotation is int
        assert candidate.receiver is receiver
        assert candidate.value_parameters == (a, b)

    def test_parameter_kinds(self) -> None:
        """*args, keyword-only and **kwargs parameters are described."""
        candidate = FunctionRegistry.for_class(Derived).candidates("collect")[0]
        _, first, rest, flag, extra = candidate.parameters

        assert first.kind is inspect.Parameter.POSITIONAL_OR_KEYWORD
        assert rest.is_variadic
        assert rest.annotation is int
        assert flag.kind is inspect.Parameter.KEYWORD_ONLY
        assert extra.kind is inspect.Parameter.VAR_KEYWORD

    def test_find_parameter_by_name_and_index(self) -> None:
        """Keys address parameters by name or 1-based position."""
        candidate = FunctionRegistry.for_class(Derived).candidates("add")[0]

        assert candidate.find_parameter(ArgumentKey.parse("b")).name == "b"
        assert candidate.find_parameter(ArgumentKey.parse("1")).name == "a"
        assert candidate.find_parameter(ArgumentKey.parse("0")) is None
        assert candidate.find_parameter(ArgumentKey.parse("self")) is None
        assert candidate.find_parameter(ArgumentKey.parse("3")) is None

    def test_variadic_absorbs_later_positions(self) -> None:
        """*args is addressed by every position at or after its own."""
        candidate = FunctionRegistry.for_class(Derived).candidates("collect")[0]

        assert candidate.find_parameter(ArgumentKey.parse("1")).name == "first"
        assert candidate.find_parameter(ArgumentKey.parse("2")).name == "rest"
        assert candidate.find_parameter(ArgumentKey.parse("9")).name == "rest"
        assert candidate.find_parameter(ArgumentKey.parse("rest")) is None
        assert candidate.find_parameter(ArgumentKey.parse("extra")) is None
        assert candidate.find_parameter(ArgumentKey.parse("flag")).name == "flag"

    def test_plain_function(self) -> None:
        """A function without receiver starts at index 1 and has no annotations."""

        def f(x, y=2):
            return x + y

        candidate = CandidateFunction.from_function(f)
        assert candidate.name == "f"
        assert candidate.receiver is None
        assert [p.index for p in candidate.parameters] == [1, 2]
        assert candidate.parameters[0].annotation is Any
        assert candidate.return_annotation is Any

    def test_unresolvable_annotation(self) -> None:
        """Forward references that cannot be resolved degrade to Any."""

        def f(x: "Missing") -> "Missing":  # noqa: F821
            return x

        candidate = CandidateFunction.from_function(f)
        assert candidate.parameters[0].annotation is Any
        assert candidate.return_annotation is Any

    def test_invoke_uses_processor_attribute(self) -> None:
        """Invocation goes through the processor's attribute."""
        processor = Derived()
        candidate = FunctionRegistry.for_processor(processor).candidates("ping")[0]
        assert candidate.invoke(processor, [], {}) == "derived"
