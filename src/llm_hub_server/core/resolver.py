"""Serving-model resolution policy."""

from llm_hub_server.catalog.registry import LLMModel
from llm_hub_server.exceptions import ModelNotFoundError


def resolve_model(
    configured_override: str | None,
    requested_model: str,
    available_models: list[LLMModel],
) -> LLMModel:
    """Pick the model that serves a request.

    First match wins:

    1. exact name match of the administrator-pinned ``configured_override``
    2. exact name match of ``requested_model``
    3. a model whose name contains ``requested_model``, ignoring case
    4. the first ``text`` or ``multimodal`` model

    Args:
        configured_override: Model pinned by the server, if any
        requested_model: Model named in the request
        available_models: Models ready to load, in catalog order

    Returns:
        The selected model

    Raises:
        ModelNotFoundError: If no step yields a candidate
    """
    if configured_override:
        for model in available_models:
            if model.name == configured_override:
                return model

    for model in available_models:
        if model.name == requested_model:
            return model

    if requested_model:
        needle = requested_model.lower()
        for model in available_models:
            if needle in model.name.lower():
                return model

    for model in available_models:
        if model.serves_chat:
            return model

    raise ModelNotFoundError(f"Model not found: {requested_model or configured_override}")
