"""Tool-using conversation loop with the chat service."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from calorie_assistant.domain.conversation import (
    ChatResponse,
    ConversationMessage,
    StopReason,
    ToolInvocation,
    ToolResult,
)
from calorie_assistant.errors import ConversationBudgetExceeded
from calorie_assistant.services.tools import NUTRITION_SEARCH_TOOL_NAME, ToolDispatcher

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful nutrition assistant that helps users estimate calories and macronutrients for their meals.

When a user describes a food or meal:
1. Use the web_search tool to look up nutrition facts for branded, packaged, or restaurant foods.
2. Search results are reported per serving. Always scale them to the quantity the user actually ate (for example, 2 tablespoons is twice a 1 tablespoon serving).
3. If no data is found, estimate from typical nutrition values.
4. Keep responses concise and friendly. If the description is vague, ask about portion size or preparation method.
5. Always include specific numbers that can be used for logging.

End every estimate with a single summary line in exactly this format:
**Calories: 450** | **Carbs: 50g** | **Fat: 20g** | **Protein: 25g**

If the user asks about multiple items, give individual estimates and use the summary line for the total.

Be encouraging and non-judgmental about food choices."""


@dataclass(frozen=True)
class ToolSpec:
    """Declaration of a tool offered to the chat service."""

    name: str
    description: str
    input_schema: dict[str, object]


NUTRITION_SEARCH_TOOL = ToolSpec(
    name=NUTRITION_SEARCH_TOOL_NAME,
    description=(
        "Search for nutrition facts (calories, carbs, fat, protein) of a food, "
        "brand, or restaurant item. Results are per serving."
    ),
    input_schema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "Food to look up, e.g. 'Coffee-mate original creamer'.",
            }
        },
        "required": ["query"],
    },
)


class ChatClient(Protocol):
    """Interface for the chat service."""

    async def complete(
        self,
        *,
        system_prompt: str,
        tools: list[ToolSpec],
        messages: list[ConversationMessage],
        max_tokens: int,
    ) -> ChatResponse:
        """Run one model turn over the full message history."""


class ConversationState(str, Enum):
    """States of one orchestration run."""

    INIT = "init"
    MODEL_TURN = "model_turn"
    TOOL_TURN = "tool_turn"
    FINAL = "final"


@dataclass
class ConversationOrchestrator:
    """Drives model turns and tool turns until the model gives a final answer.

    The loop is capped both by the number of tool turns and by a wall-clock
    budget; either cap raises ConversationBudgetExceeded. Chat-service errors
    propagate unchanged and are never retried here.
    """

    chat_client: ChatClient
    dispatcher: ToolDispatcher
    max_tool_turns: int = 6
    run_timeout_seconds: float = 60.0
    max_tokens: int = 1024
    system_prompt: str = SYSTEM_PROMPT
    tools: list[ToolSpec] = field(default_factory=lambda: [NUTRITION_SEARCH_TOOL])

    async def run(
        self, history: list[ConversationMessage], new_message: str
    ) -> str:
        """Return the model's final text for the new message."""
        try:
            async with asyncio.timeout(self.run_timeout_seconds):
                return await self._loop(history, new_message)
        except TimeoutError as exc:
            _logger.warning(
                "Conversation exceeded wall-clock budget of %ss",
                self.run_timeout_seconds,
            )
            raise ConversationBudgetExceeded(
                "timeout", self.run_timeout_seconds
            ) from exc

    async def _loop(
        self, history: list[ConversationMessage], new_message: str
    ) -> str:
        state = ConversationState.INIT
        messages = [*history, ConversationMessage(role="user", content=new_message)]
        tool_turns = 0

        while True:
            state = ConversationState.MODEL_TURN
            response = await self.chat_client.complete(
                system_prompt=self.system_prompt,
                tools=self.tools,
                messages=messages,
                max_tokens=self.max_tokens,
            )
            invocations = response.tool_invocations
            _logger.info(
                "Model turn %s: stop_reason=%s tool_calls=%s",
                tool_turns + 1,
                response.stop_reason.value,
                len(invocations),
            )
            if response.stop_reason is not StopReason.TOOL_USE or not invocations:
                state = ConversationState.FINAL
                _logger.debug("Conversation reached %s", state.value)
                return response.first_text

            if tool_turns >= self.max_tool_turns:
                _logger.warning(
                    "Conversation exceeded tool turn cap of %s", self.max_tool_turns
                )
                raise ConversationBudgetExceeded("turns", self.max_tool_turns)

            state = ConversationState.TOOL_TURN
            tool_turns += 1
            results = _complete_results(
                invocations, await self.dispatcher.dispatch(invocations)
            )
            messages = [
                *messages,
                ConversationMessage(role="assistant", content=response.blocks),
                ConversationMessage(role="user", content=tuple(results)),
            ]


def _complete_results(
    invocations: list[ToolInvocation], results: list[ToolResult]
) -> list[ToolResult]:
    """Return exactly one result per invocation, in invocation order."""
    by_id = {result.invocation_id: result for result in results}
    completed: list[ToolResult] = []
    for invocation in invocations:
        result = by_id.get(invocation.id)
        if result is None:
            _logger.warning("Tool call %s produced no result", invocation.name)
            result = ToolResult(
                invocation_id=invocation.id,
                content=f'Tool "{invocation.name}" returned no result.',
                is_error=True,
            )
        completed.append(result)
    return completed
