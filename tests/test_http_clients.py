"""Tests for HTTP-based adapters."""

import asyncio

import httpx
import pytest

from recipe_nutrition.adapters.fdc_client import HttpxFdcClient


def test_fdc_client_get_food() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"fdcId": 1, "foodNutrients": []})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxFdcClient(
        api_key="key",
        base_url="https://api.test",
        http_client=async_client,
    )

    food = asyncio.run(client.get_food(1))

    assert food["fdcId"] == 1
    assert seen[0].url.path == "/food/1"
    assert seen[0].url.params["api_key"] == "key"
    assert seen[0].url.params["format"] == "full"


def test_fdc_client_raises_on_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not found"})

    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    client = HttpxFdcClient(
        api_key="key",
        base_url="https://api.test",
        http_client=async_client,
    )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.get_food(404))
