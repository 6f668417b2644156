"""Conversation domain models exchanged with the chat service."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

Role = Literal["user", "assistant"]


class StopReason(str, Enum):
    """Why the chat service ended its turn."""

    END_TURN = "end_turn"
    TOOL_USE = "tool_use"
    MAX_TOKENS = "max_tokens"
    OTHER = "other"


@dataclass(frozen=True)
class TextBlock:
    """Plain text content inside a message."""

    text: str


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the chat service."""

    id: str
    name: str
    query: str
    arguments: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """The answer to a single tool invocation."""

    invocation_id: str
    content: str
    is_error: bool = False


ContentBlock = TextBlock | ToolInvocation | ToolResult


@dataclass(frozen=True)
class ConversationMessage:
    """One turn of the conversation history."""

    role: Role
    content: str | tuple[ContentBlock, ...]

    @property
    def blocks(self) -> tuple[ContentBlock, ...]:
        """Return the content as a tuple of blocks."""
        if isinstance(self.content, str):
            return (TextBlock(self.content),)
        return self.content


@dataclass(frozen=True)
class ChatResponse:
    """A single model turn returned by the chat service."""

    stop_reason: StopReason
    blocks: tuple[TextBlock | ToolInvocation, ...]

    @property
    def tool_invocations(self) -> list[ToolInvocation]:
        return [block for block in self.blocks if isinstance(block, ToolInvocation)]

    @property
    def first_text(self) -> str:
        for block in self.blocks:
            if isinstance(block, TextBlock):
                return block.text
        return ""
