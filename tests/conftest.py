"""Test configuration and fixtures."""

from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi.testclient import TestClient

from llm_hub_server.catalog import LLMModel, StaticModelCatalog
from llm_hub_server.config import ServerConfig, Settings
from llm_hub_server.main import create_app


class FakeEngine:
    """Async engine returning canned output."""

    def __init__(
        self,
        response: str | Exception = "Paris",
        chunks: list[str] | None = None,
        load_ok: bool = True,
        fail_after: int | None = None,
    ) -> None:
        self.response = response
        self.chunks = chunks if chunks is not None else ["Hel", "lo", ", world"]
        self.load_ok = load_ok
        self.fail_after = fail_after
        self.loaded: list[str] = []
        self.prompts: list[str] = []
        self.stream_closed = False
        self.chunks_produced = 0

    async def load_model(self, model: LLMModel) -> bool:
        self.loaded.append(model.name)
        return self.load_ok

    async def generate_response(self, prompt: str, model: LLMModel) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    async def generate_response_stream(self, prompt: str, model: LLMModel) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index >= self.fail_after:
                    raise RuntimeError("engine crashed")
                self.chunks_produced += 1
                yield chunk
        finally:
            self.stream_closed = True


class FakeBlockingEngine:
    """Synchronous engine for the threadpool adapter."""

    def __init__(self, chunks: list[str] | None = None) -> None:
        self.chunks = chunks if chunks is not None else ["a", "b", "c"]
        self.loaded: list[str] = []
        self.generator_closed = False

    def load_model(self, model: LLMModel) -> bool:
        self.loaded.append(model.name)
        return True

    def generate_response(self, prompt: str, model: LLMModel) -> str:
        return f"echo: {prompt}"

    def generate_response_stream(self, prompt: str, model: LLMModel) -> Iterator[str]:
        try:
            yield from self.chunks
        finally:
            self.generator_closed = True


class StaticConfigProvider:
    """Config provider returning a fixed snapshot."""

    def __init__(self, **overrides) -> None:
        self.config = ServerConfig(**overrides)

    def snapshot(self) -> ServerConfig:
        return self.config


@pytest.fixture
def models() -> list[LLMModel]:
    """Catalog entries in declaration order."""
    return [
        LLMModel(name="Whisper Small", category="audio", source="OpenAI"),
        LLMModel(name="Gemma 3 1B", category="text", source="Google", model_format="task"),
        LLMModel(name="Llama 3.2 3B Instruct", category="text", source="Meta", model_format="gguf"),
        LLMModel(name="Phi-4 Vision", category="multimodal", source="Microsoft"),
    ]


@pytest.fixture
def catalog(models: list[LLMModel]) -> StaticModelCatalog:
    """Catalog with every model available."""
    return StaticModelCatalog(models)


@pytest.fixture
def engine() -> FakeEngine:
    """Fake inference engine."""
    return FakeEngine()


@pytest.fixture
def config_provider() -> StaticConfigProvider:
    """Config provider without a pinned model."""
    return StaticConfigProvider()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment file."""
    return Settings(_env_file=None)


@pytest.fixture
def client(
    settings: Settings,
    engine: FakeEngine,
    catalog: StaticModelCatalog,
    config_provider: StaticConfigProvider,
) -> TestClient:
    """Create test client."""
    app = create_app(
        settings=settings,
        engine=engine,
        catalog=catalog,
        config_provider=config_provider,
    )
    return TestClient(app)
