"""Unit tests for the HTTP fetcher module.

Tests binary content-type skipping, HTTP error handling, redirect limits,
timeouts and successful fetches using mocked httpx responses.
"""

from __future__ import annotations

import httpx
import pytest
import respx

from content_extraction.config.settings import Settings
from content_extraction.scraper.http_fetcher import (
    _is_binary_content_type,
    build_http_client,
    fetch_url,
)


# ---------------------------------------------------------------------------
# Unit tests for helper functions
# ---------------------------------------------------------------------------


class TestIsBinaryContentType:
    def test_pdf_is_binary(self) -> None:
        assert _is_binary_content_type("application/pdf") is True

    def test_image_is_binary(self) -> None:
        assert _is_binary_content_type("image/png") is True
        assert _is_binary_content_type("image/jpeg") is True

    def test_html_not_binary(self) -> None:
        assert _is_binary_content_type("text/html; charset=utf-8") is False

    def test_vnd_is_binary(self) -> None:
        assert _is_binary_content_type("application/vnd.ms-excel") is True


class TestBuildHttpClient:
    @pytest.mark.asyncio
    async def test_client_carries_user_agent_and_redirect_limit(self) -> None:
        settings = Settings(user_agent="TestAgent/1.0", max_redirects=3)
        async with build_http_client(settings) as client:
            assert client.headers["User-Agent"] == "TestAgent/1.0"
            assert client.max_redirects == 3
            assert client.follow_redirects is True


# ---------------------------------------------------------------------------
# Integration tests using respx (mock httpx)
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestFetchUrl:
    async def test_successful_fetch(self) -> None:
        html_body = "<html><body>" + ("word " * 200) + "</body></html>"
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/article").mock(
                return_value=httpx.Response(
                    200,
                    text=html_body,
                    headers={"content-type": "text/html; charset=utf-8"},
                )
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://example.com/article", client=client, timeout=10)

        assert result.ok
        assert result.error is None
        assert result.html == html_body
        assert result.status_code == 200

    async def test_http_404_returns_error(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/missing").mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://example.com/missing", client=client, timeout=10)

        assert not result.ok
        assert result.html is None
        assert result.status_code == 404
        assert "404" in (result.error or "")

    async def test_binary_content_type_skipped(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/doc.pdf").mock(
                return_value=httpx.Response(
                    200,
                    content=b"%PDF-1.4",
                    headers={"content-type": "application/pdf"},
                )
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://example.com/doc.pdf", client=client, timeout=10)

        assert result.html is None
        assert result.error is not None
        assert "binary" in result.error.lower()

    async def test_timeout_returns_error(self) -> None:
        with respx.mock(base_url="https://slow.example.com") as mock:
            mock.get("/slow").mock(side_effect=httpx.TimeoutException("timeout"))
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://slow.example.com/slow", client=client, timeout=5)

        assert result.html is None
        assert result.error == "timeout"

    async def test_connection_error_returns_error(self) -> None:
        with respx.mock() as mock:
            mock.get("https://down.example.com/").mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://down.example.com/", client=client, timeout=5)

        assert result.status_code is None
        assert "request error" in (result.error or "")

    async def test_redirect_loop_is_bounded(self) -> None:
        with respx.mock(base_url="https://loop.example.com") as mock:
            mock.get("/a").mock(
                return_value=httpx.Response(302, headers={"location": "https://loop.example.com/b"})
            )
            mock.get("/b").mock(
                return_value=httpx.Response(302, headers={"location": "https://loop.example.com/a"})
            )
            async with httpx.AsyncClient(follow_redirects=True, max_redirects=5) as client:
                result = await fetch_url("https://loop.example.com/a", client=client, timeout=5)

        assert result.error == "too many redirects"

    async def test_final_url_follows_redirect(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/old").mock(
                return_value=httpx.Response(301, headers={"location": "https://example.com/new"})
            )
            mock.get("/new").mock(
                return_value=httpx.Response(
                    200, text="<html></html>", headers={"content-type": "text/html"}
                )
            )
            async with httpx.AsyncClient(follow_redirects=True) as client:
                result = await fetch_url("https://example.com/old", client=client, timeout=5)

        assert result.ok
        assert result.final_url == "https://example.com/new"
