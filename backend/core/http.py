"""Shared outbound HTTP client for Appwrite and Composio calls."""

import httpx

from backend.core.config import settings

_client: httpx.AsyncClient | None = None


def get_client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("HTTP client not initialised, call open_client() at startup")
    return _client


def open_client(transport: httpx.AsyncBaseTransport | None = None) -> None:
    global _client
    _client = httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        transport=transport,
        headers={"Accept": "application/json"},
    )


async def close_client() -> None:
    global _client
    if _client:
        await _client.aclose()
        _client = None
