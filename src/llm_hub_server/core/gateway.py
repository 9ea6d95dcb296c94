"""Chat completion request lifecycle against the on-device engine."""

import asyncio
import json
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from llm_hub_server.catalog.registry import LLMModel, ModelCatalog
from llm_hub_server.config import ConfigProvider, ServerConfig
from llm_hub_server.core.engine import InferenceEngine
from llm_hub_server.core.prompt import build_prompt
from llm_hub_server.core.resolver import resolve_model
from llm_hub_server.core.tool_calls import extract_tool_calls
from llm_hub_server.exceptions import (
    EngineUnavailableError,
    GenerationError,
    ModelLoadError,
)
from llm_hub_server.metrics import MetricsExporter
from llm_hub_server.models import (
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionStreamResponse,
    ChatMessage,
    ChatMessageDelta,
    ChatStreamChoice,
    new_completion_id,
    now,
)
from llm_hub_server.utils import get_logger
from llm_hub_server.utils.token_counter import ApproximateTokenCounter, get_counter

logger = get_logger(__name__)

DONE_FRAME = "data: [DONE]\n\n"


@dataclass(frozen=True)
class PreparedCompletion:
    """A request whose model is resolved and loaded."""

    request: ChatCompletionRequest
    model: LLMModel
    prompt: str
    config: ServerConfig


def sse_frame(payload: str) -> str:
    """Wrap a payload as a server-sent event frame."""
    return f"data: {payload}\n\n"


class ChatCompletionService:
    """Drives one chat completion from resolution to serialized output.

    Steps:
    1. Configuration snapshot
    2. Model resolution against the available catalog
    3. Model load in the engine
    4. Prompt construction
    5. Generation, as one response or a stream of SSE frames
    """

    def __init__(
        self,
        engine: InferenceEngine | None,
        catalog: ModelCatalog,
        config_provider: ConfigProvider,
        token_counter: ApproximateTokenCounter | None = None,
    ) -> None:
        """Initialize service.

        Args:
            engine: Inference engine, None when not configured
            catalog: Model catalog
            config_provider: Source of configuration snapshots
            token_counter: Usage estimator
        """
        self.engine = engine
        self.catalog = catalog
        self.config_provider = config_provider
        self.token_counter = token_counter or get_counter()

    async def prepare(self, request: ChatCompletionRequest) -> PreparedCompletion:
        """Resolve and load the serving model, then build the prompt.

        Raises:
            EngineUnavailableError: If no engine is configured
            ModelNotFoundError: If no model can serve the request
            ModelLoadError: If the engine fails to load the model
        """
        if self.engine is None:
            raise EngineUnavailableError("No inference engine is configured")

        # Preferences and catalog checks touch the filesystem.
        config = await run_in_threadpool(self.config_provider.snapshot)
        available = await run_in_threadpool(self.catalog.available_models)
        model = resolve_model(config.selected_model, request.model, available)
        logger.info(
            "model.resolved",
            requested=request.model,
            override=config.selected_model,
            model=model.name,
        )

        try:
            loaded = await self.engine.load_model(model)
        except Exception as e:
            logger.error("model.load_failed", model=model.name, error=str(e))
            loaded = False
        if not loaded:
            MetricsExporter.record_request(model.name, "stream" if request.stream else "sync", "error")
            raise ModelLoadError(model.name)

        return PreparedCompletion(
            request=request,
            model=model,
            prompt=build_prompt(request),
            config=config,
        )

    async def complete(self, prepared: PreparedCompletion) -> ChatCompletionResponse:
        """Generate a full response.

        Tool calls are only looked for when the request defined tools.

        Raises:
            GenerationError: If the engine fails
        """
        model = prepared.model
        start_time = time.perf_counter()
        try:
            text = await self.engine.generate_response(prepared.prompt, model)
        except Exception as e:
            logger.error("generation.failed", model=model.name, error=str(e))
            MetricsExporter.record_request(model.name, "sync", "error")
            raise GenerationError(model.name, str(e)) from e
        duration = time.perf_counter() - start_time

        tool_calls = extract_tool_calls(text) if prepared.request.tools else None
        message = ChatMessage(
            role="assistant",
            content=None if tool_calls else text,
            tool_calls=tool_calls,
        )
        usage = self.token_counter.usage(prepared.prompt, text)

        MetricsExporter.record_request(model.name, "sync", "ok", duration)
        MetricsExporter.record_tokens(model.name, usage.prompt_tokens, usage.completion_tokens)
        logger.info(
            "generation.complete",
            model=model.name,
            duration_ms=round(duration * 1000, 2),
            tool_calls=len(tool_calls) if tool_calls else 0,
            completion_tokens=usage.completion_tokens,
        )

        return ChatCompletionResponse(
            id=new_completion_id(),
            created=now(),
            model=model.name,
            choices=[
                ChatChoice(
                    index=0,
                    message=message,
                    finish_reason="tool_calls" if tool_calls else "stop",
                )
            ],
            usage=usage,
        )

    async def stream(
        self,
        prepared: PreparedCompletion,
        is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    ) -> AsyncIterator[str]:
        """Generate SSE frames, one per engine increment.

        Content is relayed verbatim; tool calls are not extracted while
        streaming. A successful stream always ends with a ``stop`` frame and
        the ``[DONE]`` sentinel. The engine iterator is closed as soon as the
        client disconnects or the request is cancelled.

        Args:
            prepared: Prepared completion
            is_disconnected: Coroutine reporting whether the client left

        Yields:
            SSE frames
        """
        model = prepared.model
        completion_id = new_completion_id()
        created = now()
        start_time = time.perf_counter()
        completion_chars = 0

        def chunk(delta: ChatMessageDelta, finish_reason: str | None = None) -> str:
            frame = ChatCompletionStreamResponse(
                id=completion_id,
                created=created,
                model=model.name,
                choices=[ChatStreamChoice(index=0, delta=delta, finish_reason=finish_reason)],
            )
            return sse_frame(frame.model_dump_json())

        logger.info("stream.start", model=model.name, id=completion_id)
        increments = None
        try:
            increments = self.engine.generate_response_stream(prepared.prompt, model)
            async for text in increments:
                if is_disconnected is not None and await is_disconnected():
                    logger.info("stream.client_disconnected", model=model.name, id=completion_id)
                    MetricsExporter.record_disconnect(model.name)
                    MetricsExporter.record_request(model.name, "stream", "disconnected")
                    return
                completion_chars += len(text)
                yield chunk(ChatMessageDelta(content=text))

            yield chunk(ChatMessageDelta(), finish_reason="stop")
            yield DONE_FRAME
        except asyncio.CancelledError:
            logger.info("stream.cancelled", model=model.name, id=completion_id)
            MetricsExporter.record_disconnect(model.name)
            MetricsExporter.record_request(model.name, "stream", "disconnected")
            raise
        except Exception as e:
            # Headers are already sent; report in-band and terminate the stream.
            logger.error("stream.generation_failed", model=model.name, error=str(e))
            MetricsExporter.record_request(model.name, "stream", "error")
            yield sse_frame(json.dumps(GenerationError(model.name, str(e)).to_dict()))
            yield DONE_FRAME
        else:
            duration = time.perf_counter() - start_time
            MetricsExporter.record_request(model.name, "stream", "ok", duration)
            logger.info(
                "stream.complete",
                model=model.name,
                id=completion_id,
                duration_ms=round(duration * 1000, 2),
                completion_tokens=completion_chars // self.token_counter.chars_per_token,
            )
        finally:
            aclose = getattr(increments, "aclose", None)
            if aclose is not None:
                await aclose()
