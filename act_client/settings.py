from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from act_client.exceptions import ConfigurationError
from act_client.models import DEFAULT_BASE_URL
from act_client.transport import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class ApiSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    token_env: str = "APIFY_TOKEN"
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def token(self) -> str | None:
        return os.getenv(self.token_env) or None


class StoreSettings(BaseModel):
    default_store_id: str | None = None
    default_store_id_env: str = "APIFY_DEFAULT_KEY_VALUE_STORE_ID"

    @property
    def store_id(self) -> str | None:
        """Explicit ``default_store_id`` wins over the environment variable."""
        return self.default_store_id or os.getenv(self.default_store_id_env) or None


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    log_file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, value: Any) -> str:
        level = str(value or "INFO").strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {sorted(LOG_LEVELS)}")
        return level


class Settings(BaseModel):
    api: ApiSettings = Field(default_factory=ApiSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                ACT_CLIENT_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If the file does not exist or its content is invalid.
        """
        config_path = path or Path(os.getenv("ACT_CLIENT_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)},
            )
        try:
            with config_path.open("r", encoding="utf-8") as fp:
                payload = yaml.safe_load(fp) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file is not valid YAML: {exc}", {"path": str(config_path)}) from exc
        if not isinstance(payload, dict):
            raise ConfigurationError("Configuration root must be a mapping", {"path": str(config_path)})
        try:
            return cls(**payload)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "ApiSettings",
    "StoreSettings",
    "LoggingSettings",
    "get_settings",
]
