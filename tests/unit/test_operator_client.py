"""Unit tests for the aggregator HTTP client."""

import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from news_aggregator.exceptions import AggregatorHTTPError, AggregatorUnavailableError
from news_aggregator.operator.client import AggregatorClient

BASE_URL = "https://aggregator.test:8443"


class TestSourceCalls:
    """Test /sources calls."""

    @pytest.mark.asyncio
    async def test_add_source(self) -> None:
        """Test POST body and expected 201."""
        with aioresponses() as mocked:
            mocked.post(f"{BASE_URL}/sources", status=201, payload={"message": "ok"})
            async with AggregatorClient(BASE_URL + "/") as client:
                await client.add_source("bbc-world", "https://feeds.example/bbc.xml")

            call = mocked.requests[("POST", URL(f"{BASE_URL}/sources"))][0]
            assert call.kwargs["json"] == {"name": "bbc-world", "url": "https://feeds.example/bbc.xml", "format": "RSS"}

    @pytest.mark.asyncio
    async def test_update_source(self) -> None:
        """Test PUT expects 200."""
        with aioresponses() as mocked:
            mocked.put(f"{BASE_URL}/sources", status=200, payload={"message": "ok"})
            async with AggregatorClient(BASE_URL) as client:
                await client.update_source("bbc-world", "https://feeds.example/new.xml")

    @pytest.mark.asyncio
    async def test_delete_source(self) -> None:
        """Test DELETE sends the name."""
        with aioresponses() as mocked:
            mocked.delete(f"{BASE_URL}/sources", status=200, payload={"message": "ok"})
            async with AggregatorClient(BASE_URL) as client:
                await client.delete_source("bbc-world")

            call = mocked.requests[("DELETE", URL(f"{BASE_URL}/sources"))][0]
            assert call.kwargs["json"] == {"name": "bbc-world"}

    @pytest.mark.asyncio
    async def test_unexpected_status(self) -> None:
        """Test a 400 is a permanent HTTP error."""
        with aioresponses() as mocked:
            mocked.post(f"{BASE_URL}/sources", status=400, payload={"error": "bad"})
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorHTTPError) as exc_info:
                    await client.add_source("bbc-world", "https://feeds.example/bbc.xml")

        assert exc_info.value.status == 400
        assert not exc_info.value.transient

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 429, 500, 503])
    async def test_transient_statuses(self, status: int) -> None:
        """Test retryable statuses are flagged transient."""
        with aioresponses() as mocked:
            mocked.put(f"{BASE_URL}/sources", status=status)
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorHTTPError) as exc_info:
                    await client.update_source("bbc-world", "https://feeds.example/bbc.xml")

        assert exc_info.value.transient

    @pytest.mark.asyncio
    async def test_unreachable(self) -> None:
        """Test network failures are transient unavailability."""
        with aioresponses() as mocked:
            mocked.post(f"{BASE_URL}/sources", exception=aiohttp.ClientConnectionError("refused"))
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorUnavailableError) as exc_info:
                    await client.add_source("bbc-world", "https://feeds.example/bbc.xml")

        assert exc_info.value.transient


class TestFetchTitles:
    """Test fetch_titles."""

    @pytest.mark.asyncio
    async def test_titles_in_order(self) -> None:
        """Test titles are read from the article list."""
        url = f"{BASE_URL}/news?keywords=ukraine"
        with aioresponses() as mocked:
            mocked.get(url, status=200, payload=[{"title": "First", "source": "bbc-world"}, {"title": "Second"}])
            async with AggregatorClient(BASE_URL) as client:
                titles = await client.fetch_titles(url)

        assert titles == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_undecodable_body(self) -> None:
        """Test a body that is not an article list."""
        url = f"{BASE_URL}/news"
        with aioresponses() as mocked:
            mocked.get(url, status=200, body=b"<html>")
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorHTTPError):
                    await client.fetch_titles(url)
