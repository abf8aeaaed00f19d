"""Client entry point: typed stubs for remote processors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

from lpfcp.stubs import Sender, create_stub
from lpfcp.transports import HttpTransport

T = TypeVar("T")


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for the LPFCP client."""

    url: str
    timeout: float = 30.0


def get_processor(
    interface: type[T],
    target: str | ClientConfig | Sender,
    *,
    timeout: float = 30.0,
) -> T:
    """Create a stub implementing ``interface`` for a remote processor.

    Args:
        interface: Class (plain, Protocol or ABC) declaring the remote functions
        target: Endpoint URL, a ClientConfig, or any sender callable
        timeout: Request timeout in seconds when ``target`` is a URL

    Returns:
        An instance of a generated subclass of ``interface``; every public
        function of the interface becomes a coroutine performing the remote call

    Example:
        ```python
        calculator = get_processor(Calculator, "http://localhost:8080/lpfcp")
        total = await calculator.add(3, 5)
        ```
    """
    if isinstance(target, str):
        target = ClientConfig(target, timeout)
    if isinstance(target, ClientConfig):
        return create_stub(interface, HttpTransport(target.url, target.timeout))
    return create_stub(interface, target)
