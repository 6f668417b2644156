"""Tests for the nutrition lookup resolver."""

import asyncio

from calorie_assistant.errors import ExternalServiceError
from calorie_assistant.services.nutrition import (
    FALLBACK_GUIDANCE,
    NutritionLookupResolver,
)
from calorie_assistant.services.providers import FatSecretProvider, WebSearchProvider
from tests.conftest import FakeFatSecretClient, FakeWebSearchClient, StaticProvider


def test_resolver_returns_first_usable_result() -> None:
    first = StaticProvider(name="first", result="first data")
    second = StaticProvider(name="second", result="second data")
    resolver = NutritionLookupResolver(providers=[first, second])

    assert asyncio.run(resolver.resolve("rice")) == "first data"
    assert second.calls == []


def test_resolver_falls_through_empty_and_failing_providers() -> None:
    empty = StaticProvider(name="empty", result="   ")
    failing = StaticProvider(
        name="failing", error=ExternalServiceError("fatsecret", "boom", 503)
    )
    last = StaticProvider(name="last", result="last data")
    resolver = NutritionLookupResolver(providers=[empty, failing, last])

    assert asyncio.run(resolver.resolve("rice")) == "last data"
    assert failing.calls == ["rice"]


def test_resolver_absorbs_unexpected_errors() -> None:
    broken = StaticProvider(name="broken", error=KeyError("foods"))
    resolver = NutritionLookupResolver(providers=[broken])

    assert asyncio.run(resolver.resolve("rice")) == FALLBACK_GUIDANCE


def test_resolver_total_fallback_is_instructive() -> None:
    resolver = NutritionLookupResolver(
        providers=[StaticProvider(name="a"), StaticProvider(name="b")]
    )

    result = asyncio.run(resolver.resolve("mystery stew"))

    assert result
    assert "estimate" in result.lower()
    assert "typical nutrition values" in result


def test_resolver_skips_token_request_without_credentials() -> None:
    web_client = FakeWebSearchClient()
    resolver = NutritionLookupResolver(
        providers=[FatSecretProvider(client=None), WebSearchProvider(client=web_client)]
    )

    result = asyncio.run(resolver.resolve("banana"))

    assert web_client.queries == ["banana nutrition calories"]
    assert result == "Related: Banana - 105 calories per medium fruit"


def test_resolver_prefers_structured_provider(resolver, web_search_client) -> None:
    result = asyncio.run(resolver.resolve("coffee-mate"))

    assert "per 1 tablespoon" in result
    assert web_search_client.queries == []


def test_resolver_uses_web_search_when_structured_is_empty(
    resolver,
    fatsecret_client: FakeFatSecretClient,
    web_search_client: FakeWebSearchClient,
) -> None:
    fatsecret_client.search_payload = {"foods": {}}

    result = asyncio.run(resolver.resolve("banana"))

    assert fatsecret_client.token_calls == 1
    assert web_search_client.queries == ["banana nutrition calories"]
    assert result.startswith("Related:")
