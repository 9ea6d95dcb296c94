"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

OPENAI_API_TYPE = "OpenAI"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LLM_HUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server port")
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool | None = Field(
        default=None,
        description="Render logs as JSON lines; auto-detected from the terminal when unset",
    )
    enabled: bool = Field(default=True, description="Whether the server should run")
    api_type: str = Field(
        default=OPENAI_API_TYPE,
        description="API flavour exposed under /v1",
    )
    selected_model: str | None = Field(
        default=None,
        description="Model pinned by the administrator, overrides the request",
    )
    preferences_path: str | None = Field(
        default=None,
        description="JSON file with runtime preferences, re-read on change",
    )

    # Model settings
    catalog_path: str | None = Field(default=None, description="JSON model manifest")
    imported_models_path: str | None = Field(
        default=None,
        description="JSON list of user-imported models",
    )
    models_dir: str = Field(
        default="./models",
        description="Base directory for relative model paths",
    )

    # Engine settings
    engine: str | None = Field(
        default=None,
        description="Import string of the inference engine factory (module:attr)",
    )
    engine_blocking: bool = Field(
        default=False,
        description="Run a synchronous engine in the threadpool",
    )

    @property
    def models_dir_path(self) -> Path:
        """Get full path to the models directory."""
        return Path(self.models_dir).resolve()


class ServerConfig(BaseModel):
    """Immutable configuration snapshot taken at the start of a request."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    port: int = 8080
    selected_model: str | None = None
    api_type: str = OPENAI_API_TYPE

    @property
    def openai_enabled(self) -> bool:
        return self.api_type == OPENAI_API_TYPE


class ConfigProvider(Protocol):
    """Read-only source of server configuration snapshots."""

    def snapshot(self) -> ServerConfig:
        """Return the current configuration."""
        ...


class SettingsConfigProvider:
    """Config provider backed by static settings."""

    def __init__(self, settings: Settings) -> None:
        self._config = ServerConfig(
            enabled=settings.enabled,
            port=settings.port,
            selected_model=settings.selected_model,
            api_type=settings.api_type,
        )

    def snapshot(self) -> ServerConfig:
        return self._config


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def create_config_provider(settings: Settings) -> ConfigProvider:
    """Factory for the configured config provider.

    Args:
        settings: Application settings

    Returns:
        Preferences-file provider when ``preferences_path`` is set, otherwise
        a static provider over ``settings``
    """
    if settings.preferences_path:
        from llm_hub_server.preferences import PreferencesConfigProvider

        return PreferencesConfigProvider(settings.preferences_path, settings)
    return SettingsConfigProvider(settings)
