# ruff: noqa: S311

import asyncio
import random

from api import Calculator, Operands

from lpfcp import ExecutedFunctionThrowError, get_processor


async def main() -> None:
    calculator = get_processor(Calculator, "http://127.0.0.1:8080/lpfcp")

    print(await calculator.hello())
    print(await calculator.add("3", "5"))
    print(await calculator.add(b="5"))
    print(await calculator.add_operands(Operands(2, 3)))
    print(await calculator.sum(1, 2, 3, 4))
    print(await calculator.divide_safely(3, 0))

    try:
        await calculator.divide(1, 0)
    except ExecutedFunctionThrowError as e:
        print(f"divide failed remotely: {e.__cause__}")

    while True:
        x = random.randint(0, 100)
        y = random.randint(0, 100)
        result = await calculator.add(x, y)
        print(f"{x} + {y} = {result}")
        await asyncio.sleep(1)


if __name__ == "__main__":
    asyncio.run(main())
