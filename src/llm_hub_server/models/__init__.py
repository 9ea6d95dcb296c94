"""Pydantic models for the OpenAI chat-completions wire protocol."""

import time
import uuid
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field, model_serializer, model_validator

Role = Literal["system", "user", "assistant", "tool"]


class WireModel(BaseModel):
    """Base model that omits unset optional fields when serialized.

    Fields listed in ``nullable_fields`` are always emitted, as ``null`` when
    empty, because OpenAI clients expect the key to be present.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_serializer(mode="wrap")
    def drop_unset_fields(self, handler):
        data = handler(self)
        if not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in self.nullable_fields
        }


class FunctionDefinition(WireModel):
    """Function exposed to the model as a tool."""

    name: str
    description: str | None = None
    parameters: dict[str, Any] | None = None


class Tool(WireModel):
    """Tool definition supplied by the client."""

    type: str = "function"
    function: FunctionDefinition


class FunctionCall(WireModel):
    """Function invocation; ``arguments`` is JSON text relayed verbatim."""

    name: str
    arguments: str


class ToolCall(WireModel):
    """Tool invocation emitted by the assistant."""

    id: str
    type: str = "function"
    function: FunctionCall


class ChatMessage(WireModel):
    """Chat message model."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"content"})

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def check_content_or_tool_calls(self) -> "ChatMessage":
        if self.content is None and not self.tool_calls:
            raise ValueError(f"{self.role} message requires content unless tool_calls is set")
        return self


class ChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request.

    Sampling parameters are accepted for compatibility; ``tool_choice`` is
    carried but never interpreted.
    """

    model: str
    messages: list[ChatMessage]
    stream: bool = False
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None
    tools: list[Tool] | None = None
    tool_choice: str | dict[str, Any] | None = None


class Usage(WireModel):
    """Approximate token usage."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatChoice(WireModel):
    """Chat completion choice."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"finish_reason"})

    index: int = 0
    message: ChatMessage
    finish_reason: str | None = "stop"


class ChatCompletionResponse(WireModel):
    """OpenAI-compatible chat completion response."""

    id: str
    object: str = "chat.completion"
    created: int
    model: str
    choices: list[ChatChoice]
    usage: Usage | None = None


class FunctionCallDelta(WireModel):
    """Partial function call within a streamed tool call."""

    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(WireModel):
    """Partial tool call emitted while streaming."""

    index: int
    id: str | None = None
    type: str | None = None
    function: FunctionCallDelta | None = None


class ChatMessageDelta(WireModel):
    """Incremental assistant message fragment."""

    role: Role | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class ChatStreamChoice(WireModel):
    """Streaming chat completion choice."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"finish_reason"})

    index: int = 0
    delta: ChatMessageDelta = Field(default_factory=ChatMessageDelta)
    finish_reason: str | None = None


class ChatCompletionStreamResponse(WireModel):
    """OpenAI-compatible streaming response chunk."""

    id: str
    object: str = "chat.completion.chunk"
    created: int
    model: str
    choices: list[ChatStreamChoice]


class ModelCard(WireModel):
    """Entry of the ``/v1/models`` listing."""

    id: str
    object: str = "model"
    created: int = 1677610602
    owned_by: str


class ModelList(WireModel):
    """Response body of ``/v1/models``."""

    object: str = "list"
    data: list[ModelCard]


def new_completion_id() -> str:
    """Generate a chat completion id."""
    return f"chatcmpl-{uuid.uuid4()}"


def now() -> int:
    """Creation timestamp in epoch seconds."""
    return int(time.time())
