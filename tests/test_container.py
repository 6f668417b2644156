"""Tests for container wiring."""

import asyncio

from calorie_assistant.config import Settings
from calorie_assistant.containers import build_container
from calorie_assistant.services.providers import FatSecretProvider


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    service = container.estimation_service
    assert service.orchestrator is not None
    assert service.audit_service.repository is None
    asyncio.run(container.close_resources())


def test_build_container_without_credentials() -> None:
    container = build_container(
        Settings(
            _env_file=None,
            openai_api_key=None,
            fatsecret_client_id=None,
            fatsecret_client_secret=None,
            supabase_url=None,
        )
    )

    service = container.estimation_service
    assert service.orchestrator is None
    asyncio.run(container.close_resources())


def test_build_container_skips_fatsecret_without_credentials() -> None:
    container = build_container(
        Settings(
            _env_file=None,
            openai_api_key="key",
            fatsecret_client_id=None,
            supabase_url=None,
        )
    )

    resolver = container.estimation_service.orchestrator.dispatcher.resolver
    structured = resolver.providers[0]
    assert isinstance(structured, FatSecretProvider)
    assert structured.client is None
    asyncio.run(container.close_resources())
