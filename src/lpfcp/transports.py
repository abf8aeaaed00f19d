"""Transport implementations for the LPFCP protocol.

A transport is any sender accepted by :func:`lpfcp.stubs.create_stub`: it
takes a request envelope and returns the raw reply text.
"""

from __future__ import annotations

import logging
from typing import Any, Self

import aiohttp

from lpfcp.error import TransportError
from lpfcp.registry import FunctionRegistry
from lpfcp.resolver import handle_request
from lpfcp.wire import RequestEnvelope

logger = logging.getLogger(__name__)


class HttpTransport:
    """HTTP transport: POSTs each request as JSON to an LPFCP endpoint.

    Uses the given ``aiohttp.ClientSession`` when one is provided or opened with
    ``async with``; otherwise each call opens and closes its own session.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the HTTP transport.

        Args:
            url: The endpoint URL (e.g., "http://localhost:8080/lpfcp")
            timeout: Request timeout in seconds
            session: Optional session to reuse across calls
        """
        self.url = url
        self.timeout = timeout
        self._session = session
        self._owns_session = False

    async def __aenter__(self) -> Self:
        """Async context manager entry."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the session if this transport opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
            self._owns_session = False

    async def __call__(self, request: RequestEnvelope) -> bytes:
        return await self.send_and_receive(request.encode().encode("utf-8"))

    async def send_and_receive(self, data: bytes) -> bytes:
        """POST ``data`` and return the response body.

        Raises:
            TransportError: On connection failure, timeout or a non-2xx status
        """
        try:
            if self._session is not None:
                return await self._post(self._session, data)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, data)
        except aiohttp.ClientResponseError as e:
            msg = f"HTTP {e.status} from {self.url}: {e.message}"
            raise TransportError(msg) from e
        except aiohttp.ClientError as e:
            msg = f"Request to {self.url} failed: {e}"
            raise TransportError(msg) from e
        except TimeoutError as e:
            msg = f"Request to {self.url} timed out after {self.timeout}s"
            raise TransportError(msg) from e

    async def _post(self, session: aiohttp.ClientSession, data: bytes) -> bytes:
        logger.debug("POST %s (%d bytes)", self.url, len(data))
        async with session.post(
            self.url,
            data=data,
            headers={"Content-Type": "application/json"},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            response.raise_for_status()
            return await response.read()

    def __repr__(self) -> str:
        return f"HttpTransport({self.url!r})"


class LocalTransport:
    """In-process transport: resolves requests directly against a processor.

    The request and reply still go through their JSON text forms, so a stub
    backed by this transport behaves exactly like one talking over HTTP.
    """

    def __init__(self, processor: Any, registry: FunctionRegistry | None = None) -> None:
        self.processor = processor
        self.registry = registry

    async def __call__(self, request: RequestEnvelope) -> str:
        return await self.send_and_receive(request.encode())

    async def send_and_receive(self, data: str | bytes) -> str:
        return await handle_request(data, self.processor, self.registry)

    def __repr__(self) -> str:
        return f"LocalTransport({type(self.processor).__name__})"
