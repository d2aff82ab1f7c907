"""Load configuration from YAML and environment variables. Credentials come from env only."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class StreamSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STREAM_", extra="ignore", populate_by_name=True)
    base_url: str = Field(default="http://localhost:4000", alias="CHATSTREAM_URL")
    stream_path: str = "/api/chat/stream"
    api_key: str = Field(default="", alias="CHATSTREAM_API_KEY")
    model: Optional[str] = None
    timeout: float = 120.0


class WebSocketSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="WEBSOCKET_", extra="ignore")
    url: str = "ws://localhost:4000/socket"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")
    level: str = "INFO"
    json_format: bool = True


class Config(BaseSettings):
    """Client config: YAML + env."""

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")

    stream: StreamSettings = Field(default_factory=StreamSettings)
    websocket: WebSocketSettings = Field(default_factory=WebSocketSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "Config":
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        yaml_data = _load_yaml(path)
        env_prefix = os.getenv("CHATSTREAM_ENV_PREFIX", "")
        if env_prefix:
            yaml_data = _deep_merge(yaml_data, _load_yaml(Path(f"config/{env_prefix}.yaml")))
        url = os.getenv("CHATSTREAM_URL")
        if url:
            yaml_data.setdefault("stream", {})["base_url"] = url
        api_key = os.getenv("CHATSTREAM_API_KEY")
        if api_key:
            yaml_data.setdefault("stream", {})["api_key"] = api_key
        model = os.getenv("CHATSTREAM_MODEL")
        if model:
            yaml_data.setdefault("stream", {})["model"] = model
        return cls(**yaml_data)


def get_config(config_path: str | Path | None = None) -> Config:
    return Config.load(config_path)
