"""
Async ROM library API client.

Thin aiohttp wrapper shared by the platform registry, duplicate oracle and
batch uploader. Owns one connection pool for the lifetime of the client.
"""
import json
import asyncio
import logging
from typing import Dict, Optional, Any, Callable
import aiohttp

from .config import APIConfig
from .errors import APIError
from .events import EventEmitter
from ..logging import get_logger


class AsyncAPIClient:
    """
    Asynchronous ROM library API client.

    Features:
    - Full async/await support
    - Configurable proxy, SSL, timeouts
    - Connection pooling
    - Uniform error mapping (HTTP status -> APIError)

    Example:
        >>> config = APIConfig.default()
        >>> async with AsyncAPIClient(config) as client:
        ...     platforms = await client.get_json('platforms/active')
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
            session: Optional externally owned session
        """
        self._config = config or APIConfig.default()
        self._session = session
        self._owns_session = session is None
        self._connector: Optional[aiohttp.TCPConnector] = None
        self._closed = False

        self._event_emitter = EventEmitter('romup.api')

        self._logger = get_logger('romup.api')
        if not logging.getLogger().handlers:
            self._logger.setLevel(self._config.log_level)

    def on(self, event: str, callback: Callable) -> 'AsyncAPIClient':
        """Register an event handler ('request', 'response')."""
        self._event_emitter.on(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'AsyncAPIClient':
        """Remove an event handler."""
        self._event_emitter.off(event, callback)
        return self

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                **self._config.get_connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close client and release resources."""
        self._closed = True

        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

        if self._connector and not self._connector.closed:
            await self._connector.close()
            self._connector = None

    async def get_json(
        self,
        route: str,
        params: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        GET an API route and decode the JSON body.

        Args:
            route: Route relative to the base URL
            params: Optional query string parameters

        Returns:
            Decoded JSON response

        Raises:
            APIError: On transport failure or non-2xx status
        """
        return await self._request('GET', route, params=params)

    async def post_form(
        self,
        route: str,
        data: aiohttp.FormData,
        timeout: Optional[aiohttp.ClientTimeout] = None
    ) -> Any:
        """
        POST a multipart form and decode the JSON body.

        Args:
            route: Route relative to the base URL
            data: Form data (file parts may be async iterables)
            timeout: Optional per-request timeout override

        Returns:
            Decoded JSON response

        Raises:
            APIError: On transport failure or non-2xx status
        """
        return await self._request('POST', route, data=data, timeout=timeout)

    async def _request(self, method: str, route: str, **kwargs) -> Any:
        if self._closed:
            raise APIError(0, "Client is closed")

        url = self._config.url_for(route)
        session = await self._ensure_session()
        kwargs = {k: v for k, v in kwargs.items() if v is not None}
        if self._config.proxy:
            kwargs.update(self._config.proxy.to_request_kwargs())

        self._logger.debug(f"{method} {url}")
        self._event_emitter.emit('request', method, url)

        try:
            async with session.request(method, url, **kwargs) as response:
                self._event_emitter.emit('response', method, url, response.status)
                if response.status >= 400:
                    message = await self._read_error_message(response)
                    self._logger.error(f"{method} {url} failed: HTTP {response.status} {message or ''}")
                    raise APIError(response.status, message)
                if response.status == 204:
                    return None
                return await response.json(content_type=None)
        except APIError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"{method} {url} failed: {e}")
            raise APIError(0, str(e)) from e
        except ValueError as e:
            # Malformed JSON body
            self._logger.error(f"{method} {url} returned invalid JSON: {e}")
            raise APIError(502, "Invalid response from server") from e

    async def _read_error_message(self, response: aiohttp.ClientResponse) -> Optional[str]:
        """Extract the server's error message from a failed response."""
        try:
            text = await response.text()
        except (aiohttp.ClientError, UnicodeDecodeError):
            return None
        if not text:
            return None
        try:
            body = json.loads(text)
        except ValueError:
            return text.strip() or None
        if isinstance(body, dict):
            for key in ('message', 'error', 'title'):
                if isinstance(body.get(key), str):
                    return body[key]
        return None
