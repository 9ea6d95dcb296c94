"""Model catalog backed by a JSON manifest."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from llm_hub_server.config import Settings
from llm_hub_server.core.integrity import is_model_file_valid
from llm_hub_server.utils import get_logger

logger = get_logger(__name__)

CHAT_CATEGORIES = frozenset({"text", "multimodal"})


@dataclass(frozen=True)
class LLMModel:
    """On-device model entry."""

    name: str
    category: str
    source: str
    description: str = ""
    url: str = ""
    model_format: str = ""
    size_bytes: int = 0
    path: str | None = None

    @property
    def serves_chat(self) -> bool:
        """Whether the model can answer chat completions."""
        return self.category in CHAT_CATEGORIES


_MODEL_LIST = TypeAdapter(list[LLMModel])


class ModelCatalog(Protocol):
    """Source of model entries."""

    def all_models(self) -> list[LLMModel]:
        """Every declared model, downloaded or not."""
        ...

    def available_models(self) -> list[LLMModel]:
        """Models present on the device and ready to load."""
        ...


class StaticModelCatalog:
    """In-memory catalog.

    Args:
        models: Declared models
        available: Names of models ready to load; all of them when omitted
    """

    def __init__(self, models: list[LLMModel], available: set[str] | None = None) -> None:
        self._models = list(models)
        self._available = available

    def all_models(self) -> list[LLMModel]:
        return list(self._models)

    def available_models(self) -> list[LLMModel]:
        if self._available is None:
            return list(self._models)
        return [m for m in self._models if m.name in self._available]


class FileModelCatalog:
    """Catalog loaded from a manifest plus a list of user-imported models.

    The manifest is either ``{"models": [...]}`` or a bare list. Imported
    models are merged after bundled ones, keeping the first entry for any
    duplicated name. Files are re-read on every call so newly downloaded
    models show up without a restart.
    """

    def __init__(
        self,
        catalog_path: str | Path | None,
        imported_models_path: str | Path | None = None,
        models_dir: str | Path = ".",
    ) -> None:
        """Initialize catalog.

        Args:
            catalog_path: Path to the bundled model manifest
            imported_models_path: Path to the imported-models list
            models_dir: Base directory for relative model paths
        """
        self.catalog_path = Path(catalog_path) if catalog_path else None
        self.imported_models_path = Path(imported_models_path) if imported_models_path else None
        self.models_dir = Path(models_dir)

    def all_models(self) -> list[LLMModel]:
        bundled = self._load(self.catalog_path)
        imported = self._load(self.imported_models_path)

        seen: set[str] = set()
        models: list[LLMModel] = []
        for model in bundled + imported:
            if model.name in seen:
                continue
            seen.add(model.name)
            models.append(model)
        return models

    def available_models(self) -> list[LLMModel]:
        available = [m for m in self.all_models() if self._is_ready(m)]
        logger.debug("catalog.available", count=len(available))
        return available

    def resolve_path(self, model: LLMModel) -> Path | None:
        """Absolute location of a model's files, if it has a local path."""
        if not model.path:
            return None
        path = Path(model.path)
        return path if path.is_absolute() else self.models_dir / path

    def _is_ready(self, model: LLMModel) -> bool:
        path = self.resolve_path(model)
        if path is None:
            return False
        return is_model_file_valid(path, model.model_format, model.size_bytes)

    def _load(self, path: Path | None) -> list[LLMModel]:
        if path is None:
            return []
        if not path.exists():
            logger.warning("catalog.file_not_found", path=str(path))
            return []

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                data = data.get("models", [])
            return _MODEL_LIST.validate_python(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error("catalog.load_failed", path=str(path), error=str(e))
            return []


def create_catalog(settings: Settings) -> FileModelCatalog:
    """Factory for the catalog described by ``settings``.

    Args:
        settings: Application settings

    Returns:
        Configured catalog
    """
    return FileModelCatalog(
        catalog_path=settings.catalog_path,
        imported_models_path=settings.imported_models_path,
        models_dir=settings.models_dir_path,
    )
