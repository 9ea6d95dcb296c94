"""Runtime preferences read from a JSON file, reloaded when it changes."""

import json
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from llm_hub_server.config import ServerConfig, Settings
from llm_hub_server.utils import get_logger

logger = get_logger(__name__)


class PreferencesConfigProvider:
    """Config provider backed by a preferences file.

    The file is checked on every ``snapshot()`` call and re-parsed only when
    its mtime changes. Keys missing from the file fall back to ``settings``.
    A missing or malformed file keeps the last good configuration.
    """

    def __init__(self, preferences_path: str | Path, settings: Settings) -> None:
        """Initialize provider.

        Args:
            preferences_path: Path to the JSON preferences file
            settings: Settings supplying defaults
        """
        self.preferences_path = Path(preferences_path)
        self._defaults: dict[str, Any] = {
            "enabled": settings.enabled,
            "port": settings.port,
            "selected_model": settings.selected_model,
            "api_type": settings.api_type,
        }
        self._config = ServerConfig(**self._defaults)
        self._last_mtime: float = 0.0
        self._lock = threading.Lock()

    def snapshot(self) -> ServerConfig:
        """Return the current configuration, reloading the file if changed."""
        try:
            self._check_and_reload()
        except OSError as e:
            logger.error("preferences.check_failed", path=str(self.preferences_path), error=str(e))
        return self._config

    def _check_and_reload(self) -> None:
        if not self.preferences_path.exists():
            return

        mtime = self.preferences_path.stat().st_mtime
        if mtime == self._last_mtime:
            return

        content = self.preferences_path.read_text(encoding="utf-8")
        config = self._parse(content)

        with self._lock:
            self._last_mtime = mtime
            if config is None:
                return
            if config != self._config:
                logger.info(
                    "preferences.reloaded",
                    path=str(self.preferences_path),
                    selected_model=config.selected_model,
                    api_type=config.api_type,
                )
            self._config = config

    def _parse(self, content: str) -> ServerConfig | None:
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("preferences.parse_failed", error=str(e))
            return None

        if not isinstance(data, dict):
            logger.warning("preferences.parse_failed", error="top-level value is not an object")
            return None

        try:
            return ServerConfig(**{**self._defaults, **data})
        except ValidationError as e:
            logger.warning("preferences.invalid", error=str(e))
            return None
