import asyncio
import logging

from api import Operands

from lpfcp import Server, ServerConfig, exposed


class Calculator:
    """Calculator processor.

    Functions marked with @exposed are callable remotely. Functions sharing a
    remote name are overloads, tried in definition order.
    """

    @exposed
    def hello(self) -> str:
        return "Hello, World!"

    @exposed(name="add")
    def add_ints(self, a: int, b: int) -> int:
        return a + b

    @exposed(name="add")
    def add_strings(self, a: str, b: str) -> str:
        return a + b

    @exposed
    def add_operands(self, operands: Operands) -> int:
        return operands.a + operands.b

    @exposed
    def sum(self, *values: int) -> int:
        return sum(values)

    @exposed
    def divide_safely(self, a: int, b: int) -> int | None:
        return a // b if b else None

    @exposed
    async def divide(self, a: int, b: int) -> float:
        return a / b


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    server = Server(Calculator(), ServerConfig(host="127.0.0.1", port=8080))

    await server.start()

    # Keep running
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
