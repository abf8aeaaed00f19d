"""HTTP server binding for the LPFCP protocol."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Self

from aiohttp import web

from lpfcp.error import TransportError
from lpfcp.registry import FunctionRegistry
from lpfcp.resolver import handle_request
from lpfcp.wire import DEFAULT_PATH

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for the LPFCP server."""

    host: str = "127.0.0.1"
    port: int = 8080
    path: str = DEFAULT_PATH


def lpfcp_handler(processor: Any, registry: FunctionRegistry | None = None) -> Any:
    """Build an aiohttp handler resolving requests against ``processor``.

    Protocol outcomes, failures included, are answered with HTTP 200. Only a
    body that is not a JSON object is rejected with HTTP 400.
    """
    if registry is None:
        registry = FunctionRegistry.for_processor(processor)

    async def handle(request: web.Request) -> web.Response:
        body = await request.read()
        try:
            text = await handle_request(body, processor, registry)
        except TransportError as e:
            logger.info("Rejected malformed request from %s: %s", request.remote, e)
            return web.Response(text=str(e), status=400)
        return web.Response(text=text, content_type="application/json")

    return handle


def add_lpfcp_route(
    app: web.Application,
    processor: Any,
    path: str = DEFAULT_PATH,
    registry: FunctionRegistry | None = None,
) -> None:
    """Mount the LPFCP endpoint on an existing application.

    Args:
        app: The aiohttp application
        processor: The object whose exposed functions are served
        path: The endpoint path (default "/lpfcp")
        registry: Candidates to serve instead of scanning ``processor``
    """
    app.router.add_post(path, lpfcp_handler(processor, registry))


class Server:
    """LPFCP server: serves one processor over HTTP.

    The server owns its listening socket; nothing is shared between instances.

    Example:
        ```python
        async with Server(Calculator(), ServerConfig(port=0)) as server:
            calculator = get_processor(CalculatorApi, server.url)
            await calculator.add(3, 5)
        ```
    """

    def __init__(self, processor: Any, config: ServerConfig | None = None) -> None:
        self.processor = processor
        self.config = config or ServerConfig()
        self.registry = FunctionRegistry.for_processor(processor)
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    async def __aenter__(self) -> Self:
        """Enter async context manager - starts the server."""
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Exit async context manager - stops the server."""
        await self.stop()

    @property
    def port(self) -> int:
        """Get the actual bound port (useful when port=0 for dynamic allocation)."""
        if self._site is None:
            return self.config.port
        server = self._site._server
        if server is not None and server.sockets:  # type: ignore[union-attr]
            return server.sockets[0].getsockname()[1]  # type: ignore[union-attr]
        return self.config.port

    @property
    def url(self) -> str:
        return f"http://{self.config.host}:{self.port}{self.config.path}"

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        """Start the server."""
        if self._runner is not None:
            msg = "Server already started"
            raise RuntimeError(msg)

        self._app = web.Application()
        add_lpfcp_route(self._app, self.processor, self.config.path, self.registry)

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info(
            "Serving %d exposed functions of %s on %s",
            len(self.registry),
            type(self.processor).__name__,
            self.url,
        )

    async def stop(self) -> None:
        """Stop the server."""
        if self._runner is not None:
            url = self.url
            await self._runner.cleanup()
            logger.info("Stopped server on %s", url)
        self._runner = None
        self._site = None
        self._app = None
