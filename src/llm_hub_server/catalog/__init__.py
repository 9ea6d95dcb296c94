"""On-device model catalog."""

from llm_hub_server.catalog.registry import (
    FileModelCatalog,
    LLMModel,
    ModelCatalog,
    StaticModelCatalog,
    create_catalog,
)

__all__ = [
    "FileModelCatalog",
    "LLMModel",
    "ModelCatalog",
    "StaticModelCatalog",
    "create_catalog",
]
