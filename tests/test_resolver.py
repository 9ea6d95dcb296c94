"""Tests for serving-model resolution."""

import pytest

from llm_hub_server.catalog import LLMModel
from llm_hub_server.core.resolver import resolve_model
from llm_hub_server.exceptions import ModelNotFoundError


class TestResolveModel:
    """Resolution precedence."""

    def test_override_wins_over_request(self) -> None:
        models = [
            LLMModel(name="B", category="text", source="x"),
            LLMModel(name="A", category="text", source="x"),
        ]

        assert resolve_model("A", "B", models).name == "A"

    def test_unknown_override_falls_through_to_request(self, models: list[LLMModel]) -> None:
        model = resolve_model("Deleted Model", "Gemma 3 1B", models)

        assert model.name == "Gemma 3 1B"

    def test_exact_request_match(self, models: list[LLMModel]) -> None:
        assert resolve_model(None, "Phi-4 Vision", models).name == "Phi-4 Vision"

    def test_exact_match_preferred_over_substring(self) -> None:
        models = [
            LLMModel(name="Gemma 3 1B Instruct", category="text", source="x"),
            LLMModel(name="Gemma 3 1B", category="text", source="x"),
        ]

        assert resolve_model(None, "Gemma 3 1B", models).name == "Gemma 3 1B"

    def test_case_insensitive_substring(self, models: list[LLMModel]) -> None:
        assert resolve_model(None, "llama", models).name == "Llama 3.2 3B Instruct"

    def test_fallback_to_first_chat_model(self) -> None:
        models = [
            LLMModel(name="Whisper", category="audio", source="x"),
            LLMModel(name="C", category="text", source="x"),
        ]

        assert resolve_model(None, "gpt-4o", models).name == "C"

    def test_fallback_accepts_multimodal(self) -> None:
        models = [
            LLMModel(name="Embedder", category="embedding", source="x"),
            LLMModel(name="Vision", category="multimodal", source="x"),
        ]

        assert resolve_model(None, "gpt-4o", models).name == "Vision"

    def test_empty_request_name_skips_substring(self) -> None:
        models = [
            LLMModel(name="Whisper", category="audio", source="x"),
            LLMModel(name="C", category="text", source="x"),
        ]

        assert resolve_model(None, "", models).name == "C"

    def test_not_found(self) -> None:
        models = [LLMModel(name="Whisper", category="audio", source="x")]

        with pytest.raises(ModelNotFoundError):
            resolve_model(None, "gpt-4o", models)

    def test_empty_catalog(self) -> None:
        with pytest.raises(ModelNotFoundError):
            resolve_model("A", "B", [])
