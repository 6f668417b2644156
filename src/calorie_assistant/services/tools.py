"""Executes tool invocations requested by the chat service."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from calorie_assistant.domain.conversation import ToolInvocation, ToolResult
from calorie_assistant.services.sanitizer import extract_food_content_only

_logger = logging.getLogger(__name__)

NUTRITION_SEARCH_TOOL_NAME = "web_search"


class NutritionResolver(Protocol):
    """Interface for nutrition lookups used by tool calls."""

    async def resolve(self, query: str) -> str:
        """Return nutrition text for the query; never empty."""


@dataclass
class ToolDispatcher:
    """Runs one turn's tool invocations with bounded concurrency."""

    resolver: NutritionResolver
    concurrency: int = 4

    async def dispatch(self, invocations: list[ToolInvocation]) -> list[ToolResult]:
        """Return one ToolResult per invocation, keyed by invocation id."""
        semaphore = asyncio.Semaphore(max(1, self.concurrency))

        async def run(invocation: ToolInvocation) -> ToolResult:
            async with semaphore:
                return await self._dispatch_one(invocation)

        return list(await asyncio.gather(*(run(item) for item in invocations)))

    async def _dispatch_one(self, invocation: ToolInvocation) -> ToolResult:
        if invocation.name != NUTRITION_SEARCH_TOOL_NAME:
            _logger.warning("Unsupported tool requested: %s", invocation.name)
            return ToolResult(
                invocation_id=invocation.id,
                content=f'Tool "{invocation.name}" is not supported.',
                is_error=True,
            )
        query = extract_food_content_only(invocation.query.strip())
        if not query:
            return ToolResult(
                invocation_id=invocation.id,
                content="The web_search tool requires a non-empty query.",
                is_error=True,
            )
        content = await self.resolver.resolve(query)
        return ToolResult(invocation_id=invocation.id, content=content)
