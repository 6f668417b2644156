"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from calorie_assistant.adapters.duckduckgo_client import WebSearchClient
from calorie_assistant.adapters.fatsecret_client import FatSecretClient
from calorie_assistant.config import Settings
from calorie_assistant.containers import AppContainer
from calorie_assistant.domain.conversation import (
    ChatResponse,
    ConversationMessage,
    StopReason,
    TextBlock,
    ToolInvocation,
)
from calorie_assistant.domain.nutrition import ProviderToken
from calorie_assistant.services.audit import AuditRepository, AuditService
from calorie_assistant.services.conversation import (
    ChatClient,
    ConversationOrchestrator,
    ToolSpec,
)
from calorie_assistant.services.estimation import CalorieEstimationService
from calorie_assistant.services.nutrition import NutritionLookupResolver
from calorie_assistant.services.providers import FatSecretProvider, WebSearchProvider
from calorie_assistant.services.token_cache import TokenCache
from calorie_assistant.services.tools import ToolDispatcher


def text_response(text: str) -> ChatResponse:
    return ChatResponse(stop_reason=StopReason.END_TURN, blocks=(TextBlock(text),))


def tool_response(*queries: str, name: str = "web_search") -> ChatResponse:
    return ChatResponse(
        stop_reason=StopReason.TOOL_USE,
        blocks=tuple(
            ToolInvocation(id=f"call_{index}", name=name, query=query)
            for index, query in enumerate(queries)
        ),
    )


@dataclass
class ScriptedChatClient(ChatClient):
    """Fake chat client returning queued responses in order."""

    responses: list[ChatResponse] = field(default_factory=list)
    calls: list[list[ConversationMessage]] = field(default_factory=list)

    async def complete(
        self,
        *,
        system_prompt: str,
        tools: list[ToolSpec],
        messages: list[ConversationMessage],
        max_tokens: int,
    ) -> ChatResponse:
        self.calls.append(list(messages))
        return self.responses.pop(0)


@dataclass
class AlwaysToolChatClient(ChatClient):
    """Fake chat client that never stops asking for tools."""

    calls: int = 0

    async def complete(
        self,
        *,
        system_prompt: str,
        tools: list[ToolSpec],
        messages: list[ConversationMessage],
        max_tokens: int,
    ) -> ChatResponse:
        self.calls += 1
        return tool_response(f"query {self.calls}")


@dataclass
class FakeFatSecretClient(FatSecretClient):
    """Fake FatSecret client counting token and search calls."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": {
                "food": [
                    {
                        "food_name": "Coffee-mate Original",
                        "brand_name": "Nestle",
                        "food_description": (
                            "Per 1 tablespoon - Calories: 35kcal | Fat: 1.50g "
                            "| Carbs: 5.00g | Protein: 0.00g"
                        ),
                    }
                ]
            }
        }
    )
    expires_in: float = 86400
    token_delay: float = 0.0
    token_calls: int = 0
    searches: list[tuple[str, str]] = field(default_factory=list)

    async def fetch_token(self) -> ProviderToken:
        self.token_calls += 1
        if self.token_delay:
            await asyncio.sleep(self.token_delay)
        return ProviderToken(
            token=f"token-{self.token_calls}", expires_at=1_000_000 + self.expires_in
        )

    async def search_foods(
        self, token: str, query: str, max_results: int = 5
    ) -> dict[str, object]:
        self.searches.append((token, query))
        return self.search_payload


@dataclass
class FakeWebSearchClient(WebSearchClient):
    """Fake keyless web search client."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "Abstract": "",
            "Answer": "",
            "RelatedTopics": [
                {"Text": "Banana - 105 calories per medium fruit"},
                {"Text": "Banana bread recipe"},
            ],
        }
    )
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str) -> dict[str, object]:
        self.queries.append(query)
        return self.payload


@dataclass
class StaticProvider:
    """Provider returning a fixed value or raising."""

    name: str
    result: str | None = None
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def lookup(self, query: str) -> str | None:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    events: list[dict[str, object]] = field(default_factory=list)

    def create_event(
        self,
        action: str,
        resource_type: str,
        description: str,
        status: str,
    ) -> None:
        self.events.append(
            {
                "action": action,
                "resource_type": resource_type,
                "description": description,
                "status": status,
            }
        )


def fixed_clock() -> float:
    return 1_000_000.0


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        fatsecret_client_id="client-id",
        fatsecret_client_secret="client-secret",
        supabase_url=None,
    )


@pytest.fixture
def fatsecret_client() -> FakeFatSecretClient:
    return FakeFatSecretClient()


@pytest.fixture
def web_search_client() -> FakeWebSearchClient:
    return FakeWebSearchClient()


@pytest.fixture
def chat_client() -> ScriptedChatClient:
    return ScriptedChatClient()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def resolver(
    fatsecret_client: FakeFatSecretClient, web_search_client: FakeWebSearchClient
) -> NutritionLookupResolver:
    return NutritionLookupResolver(
        providers=[
            FatSecretProvider(
                client=fatsecret_client, token_cache=TokenCache(clock=fixed_clock)
            ),
            WebSearchProvider(client=web_search_client),
        ]
    )


@pytest.fixture
def container(
    settings: Settings,
    chat_client: ScriptedChatClient,
    resolver: NutritionLookupResolver,
    audit_repository: InMemoryAuditRepository,
) -> AppContainer:
    orchestrator = ConversationOrchestrator(
        chat_client=chat_client,
        dispatcher=ToolDispatcher(resolver=resolver),
        max_tool_turns=settings.max_tool_turns,
        run_timeout_seconds=settings.run_timeout_seconds,
    )
    estimation_service = CalorieEstimationService(
        orchestrator=orchestrator,
        audit_service=AuditService(audit_repository),
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        estimation_service=estimation_service,
        close_resources=close_resources,
    )
