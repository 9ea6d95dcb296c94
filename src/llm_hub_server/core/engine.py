"""Inference engine interface and adapters."""

import inspect
from collections.abc import AsyncIterator, Iterator
from contextlib import aclosing
from typing import Protocol

from starlette.concurrency import iterate_in_threadpool, run_in_threadpool
from uvicorn.importer import import_from_string

from llm_hub_server.catalog.registry import LLMModel
from llm_hub_server.config import Settings
from llm_hub_server.utils import get_logger

logger = get_logger(__name__)


class InferenceEngine(Protocol):
    """On-device token generation runtime.

    The engine keeps at most one model resident and serializes generation
    internally; the gateway adds no locking of its own. ``load_model`` must
    be a cheap no-op when the model is already loaded.
    """

    async def load_model(self, model: LLMModel) -> bool:
        """Make ``model`` the resident model. Returns False on failure."""
        ...

    async def generate_response(self, prompt: str, model: LLMModel) -> str:
        """Generate a complete response."""
        ...

    def generate_response_stream(self, prompt: str, model: LLMModel) -> AsyncIterator[str]:
        """Generate a response as text increments.

        The iterator is traversed once and closed early when the client
        goes away.
        """
        ...


class BlockingInferenceEngine(Protocol):
    """Synchronous engine, run through :class:`BlockingEngineAdapter`."""

    def load_model(self, model: LLMModel) -> bool: ...

    def generate_response(self, prompt: str, model: LLMModel) -> str: ...

    def generate_response_stream(self, prompt: str, model: LLMModel) -> Iterator[str]: ...


class BlockingEngineAdapter:
    """Expose a synchronous engine through the async interface.

    Every blocking call runs in the threadpool so concurrent requests keep
    being served while a model loads or generates.
    """

    def __init__(self, engine: BlockingInferenceEngine) -> None:
        self.engine = engine

    async def load_model(self, model: LLMModel) -> bool:
        return await run_in_threadpool(self.engine.load_model, model)

    async def generate_response(self, prompt: str, model: LLMModel) -> str:
        return await run_in_threadpool(self.engine.generate_response, prompt, model)

    async def generate_response_stream(self, prompt: str, model: LLMModel) -> AsyncIterator[str]:
        chunks = iter(self.engine.generate_response_stream(prompt, model))
        try:
            async with aclosing(iterate_in_threadpool(chunks)) as increments:
                async for chunk in increments:
                    yield chunk
        finally:
            # Stops the engine generator when the consumer goes away early.
            close = getattr(chunks, "close", None)
            if close is not None:
                close()


def load_engine(settings: Settings) -> InferenceEngine | None:
    """Instantiate the engine named by ``settings.engine``.

    The import string has the form ``package.module:attr``. Classes and
    functions are called without arguments to produce the engine; any other
    object is used as is.

    Args:
        settings: Application settings

    Returns:
        Engine instance, or None when no engine is configured
    """
    if not settings.engine:
        logger.warning("engine.not_configured")
        return None

    target = import_from_string(settings.engine)
    engine = target() if inspect.isclass(target) or inspect.isfunction(target) else target

    if settings.engine_blocking:
        engine = BlockingEngineAdapter(engine)

    logger.info("engine.loaded", engine=settings.engine, blocking=settings.engine_blocking)
    return engine
