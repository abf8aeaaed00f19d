"""Interface shared by the calculator server and client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, overload


@dataclass
class Operands:
    a: int
    b: int


class Calculator(Protocol):
    """Remote calculator functions."""

    async def hello(self) -> str: ...

    @overload
    async def add(self, a: int, b: int) -> int: ...
    @overload
    async def add(self, a: str = "1", b: str = "2") -> str: ...
    async def add(self, a, b): ...

    async def add_operands(self, operands: Operands) -> int: ...

    async def sum(self, *values: int) -> int: ...

    async def divide_safely(self, a: int, b: int) -> int | None: ...

    async def divide(self, a: int, b: int) -> float: ...
