"""
The single aiohttp session shared by every stage of a run, with timeout
enforcement and translation of transport failures into `NetworkError`.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Union

import aiohttp

from msstore_dl.exceptions import NetworkError
from msstore_dl.models.config import DEFAULT_TIMEOUT
from msstore_dl.models.update import TrustContext

log = logging.getLogger(__name__)

SOAP_CONTENT_TYPE = "application/soap+xml; charset=utf-8"


class HttpTransport:
    """
    Async HTTP client for the catalog, the update service and file downloads.

    Requests to the update service are pinned to a `TrustContext`; everything
    else (certificates, catalog, signed download URLs) uses the system trust
    store.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """
        Initializes the transport.

        Args:
            timeout: Upper bound in seconds for each request. For file
                downloads it bounds connecting and each socket read instead,
                so large packages are not cut off.
        """
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpTransport":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    @staticmethod
    def _ssl_for(trust: Optional[TrustContext]) -> Union[bool, Any]:
        return trust.ssl_context if trust is not None else True

    async def get_bytes(self, url: str) -> bytes:
        """Fetches a URL and returns the raw body."""
        session = await self._initialize_session()
        try:
            async with session.get(url) as r:
                r.raise_for_status()
                return await r.read()
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f'HTTP error: status: {e.status} on "{url}"') from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f'Request to "{url}" failed: {e!r}') from e

    async def get_json(self, url: str) -> Any:
        """
        Fetches a URL and decodes the body as JSON.

        Raises:
            NetworkError: On transport failure or a non-2xx status.
            ValueError: If the body is not valid JSON.
        """
        session = await self._initialize_session()
        try:
            async with session.get(url) as r:
                r.raise_for_status()
                return await r.json(content_type=None)
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f'HTTP error: status: {e.status} on "{url}"') from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f'Request to "{url}" failed: {e!r}') from e

    async def post_soap(
        self, url: str, envelope: str, trust: Optional[TrustContext] = None
    ) -> str:
        """POSTs a SOAP envelope and returns the response body as text."""
        session = await self._initialize_session()
        log.debug(
            f"POST {url} ({len(envelope)} bytes, trust={trust.name if trust else 'system'})"
        )
        try:
            async with session.post(
                url,
                data=envelope.encode("utf-8"),
                headers={"Content-Type": SOAP_CONTENT_TYPE},
                ssl=self._ssl_for(trust),
            ) as r:
                r.raise_for_status()
                return await r.text()
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f'HTTP error: status: {e.status} on "{url}"') from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f'Request to "{url}" failed: {e!r}') from e

    @asynccontextmanager
    async def stream(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        """
        Opens a streaming GET. Failures while connecting or while the caller
        reads the body surface as `NetworkError`.
        """
        session = await self._initialize_session()
        timeout = aiohttp.ClientTimeout(
            total=None, sock_connect=self.timeout, sock_read=self.timeout
        )
        try:
            async with session.get(url, timeout=timeout, allow_redirects=True) as r:
                r.raise_for_status()
                yield r
        except aiohttp.ClientResponseError as e:
            raise NetworkError(f'HTTP error: status: {e.status} on "{url}"') from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f'Download from "{url}" failed: {e!r}') from e
