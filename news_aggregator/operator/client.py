"""HTTP client for the aggregator service, used by the reconcilers."""

import ssl
from types import TracebackType
from typing import Any, Self

import aiohttp
from pydantic import BaseModel, TypeAdapter, ValidationError

from news_aggregator.constants import HTTP_CALL_TIMEOUT_SECONDS
from news_aggregator.exceptions import AggregatorHTTPError, AggregatorUnavailableError
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class _TitleItem(BaseModel):
    title: str


_TITLES_ADAPTER = TypeAdapter(list[_TitleItem])


class AggregatorClient:
    """
    Thin async wrapper over the aggregator's /sources and /news endpoints.

    Every call carries its own timeout. Certificate verification can be
    turned off for self-signed deployments.
    """

    def __init__(
        self,
        base_url: str,
        verify_tls: bool = False,
        timeout: float = HTTP_CALL_TIMEOUT_SECONDS,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.verify_tls = verify_tls
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_option: ssl.SSLContext | bool = ssl.create_default_context() if self.verify_tls else False
            self._session = aiohttp.ClientSession(connector=aiohttp.TCPConnector(ssl=ssl_option))
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(self, method: str, url: str, expected: int, json: Any = None) -> bytes:
        session = self._get_session()
        try:
            async with session.request(method, url, json=json, timeout=self.timeout) as response:
                body = await response.read()
                if response.status != expected:
                    raise AggregatorHTTPError(method, url, response.status, response.reason)
                return body
        except aiohttp.ClientError as e:
            raise AggregatorUnavailableError(f"{method} {url} failed: {e}") from e
        except TimeoutError as e:
            raise AggregatorUnavailableError(f"{method} {url} timed out") from e

    async def add_source(self, name: str, link: str, format_: str = "RSS") -> None:
        await self._request("POST", f"{self.base_url}/sources", 201, {"name": name, "url": link, "format": format_})
        logger.debug("Source added to aggregator", source=name)

    async def update_source(self, name: str, link: str, format_: str = "RSS") -> None:
        await self._request("PUT", f"{self.base_url}/sources", 200, {"name": name, "url": link, "format": format_})
        logger.debug("Source updated in aggregator", source=name)

    async def delete_source(self, name: str) -> None:
        await self._request("DELETE", f"{self.base_url}/sources", 200, {"name": name})
        logger.debug("Source deleted from aggregator", source=name)

    async def fetch_titles(self, url: str) -> list[str]:
        """GET a /news URL and return the article titles in order."""
        body = await self._request("GET", url, 200)
        try:
            items = _TITLES_ADAPTER.validate_json(body)
        except ValidationError as e:
            raise AggregatorHTTPError("GET", url, 200, f"undecodable news list: {e.error_count()} errors") from e
        return [item.title for item in items]
