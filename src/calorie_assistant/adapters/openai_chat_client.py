"""OpenAI Chat Completions client with tool calling."""

import json
from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from calorie_assistant.domain.conversation import (
    ChatResponse,
    ConversationMessage,
    StopReason,
    TextBlock,
    ToolInvocation,
    ToolResult,
)
from calorie_assistant.errors import ExternalServiceError
from calorie_assistant.services.conversation import ChatClient, ToolSpec

_FINISH_REASONS = {
    "stop": StopReason.END_TURN,
    "tool_calls": StopReason.TOOL_USE,
    "function_call": StopReason.TOOL_USE,
    "length": StopReason.MAX_TOKENS,
}


@dataclass
class OpenAIChatClient(ChatClient):
    """Chat client backed by the OpenAI Chat Completions API."""

    client: AsyncOpenAI
    model: str
    timeout: float = 30.0

    @classmethod
    def create(cls, api_key: str, model: str, timeout: float = 30.0) -> "OpenAIChatClient":
        """Create an OpenAI chat client without SDK-level retries."""
        return cls(
            client=AsyncOpenAI(api_key=api_key, max_retries=0),
            model=model,
            timeout=timeout,
        )

    async def complete(
        self,
        *,
        system_prompt: str,
        tools: list[ToolSpec],
        messages: list[ConversationMessage],
        max_tokens: int,
    ) -> ChatResponse:
        """Send the conversation and translate the reply into domain blocks."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "messages": to_openai_messages(system_prompt, messages),
            "max_completion_tokens": max_tokens,
            "timeout": self.timeout,
        }
        if tools:
            request_payload["tools"] = [_to_openai_tool(tool) for tool in tools]

        try:
            response = await self.client.chat.completions.create(**request_payload)
        except openai.APIStatusError as exc:
            raise ExternalServiceError(
                "openai", "chat completion rejected", exc.status_code
            ) from exc
        except openai.APIError as exc:
            raise ExternalServiceError("openai", "chat completion failed") from exc

        if not response.choices:
            raise ExternalServiceError("openai", "chat completion returned no choices")
        return from_openai_choice(response.choices[0])

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def to_openai_messages(
    system_prompt: str, messages: list[ConversationMessage]
) -> list[dict[str, object]]:
    """Convert domain messages into the Chat Completions message list.

    Tool results carried in a user turn become one ``tool`` message each,
    matched to the assistant's ``tool_calls`` by id.
    """
    payload: list[dict[str, object]] = [{"role": "system", "content": system_prompt}]
    for message in messages:
        if isinstance(message.content, str):
            payload.append({"role": message.role, "content": message.content})
            continue
        texts = [block.text for block in message.blocks if isinstance(block, TextBlock)]
        if message.role == "assistant":
            entry: dict[str, object] = {
                "role": "assistant",
                "content": "\n".join(texts) if texts else None,
            }
            calls = [
                {
                    "id": block.id,
                    "type": "function",
                    "function": {
                        "name": block.name,
                        "arguments": json.dumps(block.arguments or {"query": block.query}),
                    },
                }
                for block in message.blocks
                if isinstance(block, ToolInvocation)
            ]
            if calls:
                entry["tool_calls"] = calls
            payload.append(entry)
            continue
        for block in message.blocks:
            if isinstance(block, ToolResult):
                payload.append(
                    {
                        "role": "tool",
                        "tool_call_id": block.invocation_id,
                        "content": block.content,
                    }
                )
        if texts:
            payload.append({"role": "user", "content": "\n".join(texts)})
    return payload


def from_openai_choice(choice: object) -> ChatResponse:
    """Translate a Chat Completions choice into a ChatResponse."""
    message = getattr(choice, "message", None)
    blocks: list[TextBlock | ToolInvocation] = []
    content = getattr(message, "content", None)
    if content:
        blocks.append(TextBlock(content))
    for call in getattr(message, "tool_calls", None) or []:
        arguments = _parse_arguments(call.function.arguments)
        query = arguments.get("query")
        blocks.append(
            ToolInvocation(
                id=call.id,
                name=call.function.name,
                query=query if isinstance(query, str) else "",
                arguments=arguments,
            )
        )
    finish_reason = getattr(choice, "finish_reason", None)
    stop_reason = _FINISH_REASONS.get(finish_reason or "", StopReason.OTHER)
    if any(isinstance(block, ToolInvocation) for block in blocks):
        stop_reason = StopReason.TOOL_USE
    return ChatResponse(stop_reason=stop_reason, blocks=tuple(blocks))


def _to_openai_tool(tool: ToolSpec) -> dict[str, object]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema,
        },
    }


def _parse_arguments(raw: str | None) -> dict[str, object]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
