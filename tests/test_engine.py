"""Tests for engine adapters and loading."""

import asyncio

from llm_hub_server.catalog import LLMModel
from llm_hub_server.config import Settings
from llm_hub_server.core.engine import BlockingEngineAdapter, load_engine

from tests.conftest import FakeBlockingEngine, FakeEngine

MODEL = LLMModel(name="Gemma", category="text", source="Google")


class TestBlockingEngineAdapter:
    """Synchronous engines behind the async interface."""

    def test_load_and_generate(self) -> None:
        adapter = BlockingEngineAdapter(FakeBlockingEngine())

        async def run():
            return await adapter.load_model(MODEL), await adapter.generate_response("hi", MODEL)

        loaded, text = asyncio.run(run())

        assert loaded is True
        assert text == "echo: hi"
        assert adapter.engine.loaded == ["Gemma"]

    def test_stream(self) -> None:
        adapter = BlockingEngineAdapter(FakeBlockingEngine(["x", "y"]))

        async def run() -> list[str]:
            return [chunk async for chunk in adapter.generate_response_stream("hi", MODEL)]

        assert asyncio.run(run()) == ["x", "y"]
        assert adapter.engine.generator_closed

    def test_early_close_closes_sync_generator(self) -> None:
        engine = FakeBlockingEngine(["x", "y", "z"])
        adapter = BlockingEngineAdapter(engine)

        async def run() -> str:
            stream = adapter.generate_response_stream("hi", MODEL)
            first = await stream.__anext__()
            await stream.aclose()
            return first

        assert asyncio.run(run()) == "x"
        assert engine.generator_closed


class TestLoadEngine:
    """Engine construction from settings."""

    def test_not_configured(self) -> None:
        assert load_engine(Settings(_env_file=None)) is None

    def test_import_string(self) -> None:
        engine = load_engine(Settings(_env_file=None, engine="tests.conftest:FakeEngine"))

        assert isinstance(engine, FakeEngine)

    def test_blocking_engine_is_wrapped(self) -> None:
        engine = load_engine(
            Settings(
                _env_file=None,
                engine="tests.conftest:FakeBlockingEngine",
                engine_blocking=True,
            )
        )

        assert isinstance(engine, BlockingEngineAdapter)
        assert isinstance(engine.engine, FakeBlockingEngine)
