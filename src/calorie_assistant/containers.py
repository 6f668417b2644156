"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from calorie_assistant.adapters.duckduckgo_client import HttpxDuckDuckGoClient
from calorie_assistant.adapters.fatsecret_client import HttpxFatSecretClient
from calorie_assistant.adapters.openai_chat_client import OpenAIChatClient
from calorie_assistant.adapters.supabase_audit_repository import SupabaseAuditRepository
from calorie_assistant.config import Settings
from calorie_assistant.services.audit import AuditService
from calorie_assistant.services.conversation import ConversationOrchestrator
from calorie_assistant.services.estimation import CalorieEstimationService
from calorie_assistant.services.nutrition import NutritionLookupResolver
from calorie_assistant.services.providers import FatSecretProvider, WebSearchProvider
from calorie_assistant.services.token_cache import TokenCache
from calorie_assistant.services.tools import ToolDispatcher


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    estimation_service: CalorieEstimationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()

    audit_repository = None
    if resolved_settings.audit_persistence_configured:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        audit_repository = SupabaseAuditRepository(supabase_client)
    audit_service = AuditService(audit_repository)

    fatsecret_client = None
    if resolved_settings.fatsecret_configured:
        fatsecret_client = HttpxFatSecretClient.create(
            client_id=resolved_settings.fatsecret_client_id,
            client_secret=resolved_settings.fatsecret_client_secret,
            token_url=resolved_settings.fatsecret_token_url,
            api_url=resolved_settings.fatsecret_api_url,
            timeout=resolved_settings.http_timeout_seconds,
        )
    web_search_client = HttpxDuckDuckGoClient.create(
        base_url=resolved_settings.duckduckgo_url,
        timeout=resolved_settings.http_timeout_seconds,
    )
    resolver = NutritionLookupResolver(
        providers=[
            FatSecretProvider(
                client=fatsecret_client,
                token_cache=TokenCache(
                    refresh_buffer_seconds=resolved_settings.token_refresh_buffer_seconds
                ),
            ),
            WebSearchProvider(client=web_search_client),
        ]
    )
    dispatcher = ToolDispatcher(
        resolver=resolver, concurrency=resolved_settings.tool_concurrency
    )

    chat_client = None
    orchestrator = None
    if resolved_settings.openai_api_key:
        chat_client = OpenAIChatClient.create(
            api_key=resolved_settings.openai_api_key,
            model=resolved_settings.openai_model,
            timeout=resolved_settings.chat_timeout_seconds,
        )
        orchestrator = ConversationOrchestrator(
            chat_client=chat_client,
            dispatcher=dispatcher,
            max_tool_turns=resolved_settings.max_tool_turns,
            run_timeout_seconds=resolved_settings.run_timeout_seconds,
            max_tokens=resolved_settings.openai_max_tokens,
        )

    estimation_service = CalorieEstimationService(
        orchestrator=orchestrator,
        audit_service=audit_service,
    )

    async def close_resources() -> None:
        await web_search_client.close()
        if fatsecret_client is not None:
            await fatsecret_client.close()
        if chat_client is not None:
            await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )
