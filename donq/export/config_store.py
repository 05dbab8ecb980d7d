"""DONQ — Export Configuration.

The export settings live in a small JSON document next to the app. It is read
once at startup and rewritten synchronously on every update; nothing re-reads
it behind the caller's back.
"""

import json
import threading
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from donq.config import Settings, settings
from donq.core.errors import ConfigError
from donq.core.logging import get_logger

logger = get_logger("export.config")

ExportFormat = Literal["csv", "spreadsheet"]

FILE_EXTENSIONS = {"csv": ".csv", "spreadsheet": ".xlsx"}


class ExportConfiguration(BaseModel):
    """Where approved donations are mirrored, and in which format."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: str = Field(alias="exportPath", min_length=1)
    name: str = Field(alias="fileName", min_length=1)
    format: ExportFormat = Field(default="csv", alias="fileFormat")

    @property
    def output_file(self) -> Path:
        """Resolved export file path, extension chosen by format."""
        return Path(self.path).expanduser().resolve() / (
            self.name + FILE_EXTENSIONS[self.format]
        )

    @classmethod
    def defaults(cls, app_settings: Settings | None = None) -> "ExportConfiguration":
        app_settings = app_settings or settings
        return cls(
            path=app_settings.default_export_path,
            name=app_settings.default_export_name,
            format=app_settings.default_export_format,
        )


class ExportConfigStore:
    """Loads, holds and persists the current ``ExportConfiguration``."""

    def __init__(self, settings_path: str | Path, default: ExportConfiguration):
        self.settings_path = Path(settings_path)
        self._default = default
        self._lock = threading.Lock()
        self._current = self._load()

    def _load(self) -> ExportConfiguration:
        if not self.settings_path.exists():
            logger.info(
                "No export settings file, using defaults",
                extra={"path": str(self.settings_path)},
            )
            return self._default
        try:
            raw = json.loads(self.settings_path.read_text(encoding="utf-8"))
            return ExportConfiguration.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            raise ConfigError(
                f"Malformed export settings in {self.settings_path}: {e}"
            ) from e

    @property
    def current(self) -> ExportConfiguration:
        return self._current

    def update(self, path: str, name: str, format: str) -> ExportConfiguration:
        """Validate, persist and switch to a new configuration."""
        try:
            config = ExportConfiguration(path=path, name=name, format=format)
        except ValidationError as e:
            raise ConfigError(f"Invalid export settings: {e}") from e

        with self._lock:
            try:
                self.settings_path.parent.mkdir(parents=True, exist_ok=True)
                self.settings_path.write_text(
                    json.dumps(config.model_dump(by_alias=True), indent=2),
                    encoding="utf-8",
                )
            except OSError as e:
                raise ConfigError(
                    f"Could not save export settings to {self.settings_path}: {e}"
                ) from e
            self._current = config

        logger.info(
            f"Export settings updated: {config.format} → {config.output_file}",
            extra={"path": str(config.output_file)},
        )
        return config
