"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PAGEDIGEST__DIGEST__MODEL=gpt-5-mini)
  2. pagedigest.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional. Selector lists, exclusions and domain lists are
user data and live in the key-value store instead (see site_config.py).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("pagedigest")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "pagedigest.db")

SimplificationLevel = Literal["Conservative", "Balanced", "Aggressive"]


def _find_config_file() -> str | None:
    """Return the path of the first pagedigest.yaml found, or None."""
    candidates = [
        Path("pagedigest.yaml"),
        Path(platformdirs.user_config_dir("pagedigest")) / "pagedigest.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class DigestSettings(BaseModel):
    model: str = "gpt-5-nano"
    simplification: SimplificationLevel = "Balanced"
    min_text_length: int = Field(default=100, ge=0)
    # Per-mode prompt overrides, e.g. {"summary_small": "..."}
    prompts: dict[str, str] = {}


class OpenAISettings(BaseModel):
    api_key: SecretStr | None = None
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 60.0


class CacheSettings(BaseModel):
    db_path: str = _DEFAULT_DB_PATH
    limit: int = Field(default=50, ge=1)
    trim_to: int = Field(default=30, ge=0)
    flush_interval_seconds: float = 5.0
    write_through: bool = True


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PAGEDIGEST__CACHE__LIMIT=100
        env_prefix="PAGEDIGEST__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    digest: DigestSettings = DigestSettings()
    openai: OpenAISettings = OpenAISettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
