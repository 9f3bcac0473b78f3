"""Configuration management.

Settings are read from init arguments, environment variables, ``.env`` and
an optional ``config.yaml``, in that order of precedence.
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """Load config.yaml if one exists."""
    candidates = []
    explicit = os.getenv("CYCLE_COACH_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except Exception as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """Relay, client and storage settings."""

    # ---- Upstream gateway ----
    gateway_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gateway_api_key", "lovable_api_key"),
        description="Bearer credential for the upstream model gateway",
    )
    gateway_base_url: str = Field(
        default="https://ai.gateway.lovable.dev/v1",
        description="Base URL of the OpenAI-compatible gateway",
    )
    default_model: str = Field(
        default="coach-chat",
        description="Logical model name, mapped to a provider model by the registry",
    )
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP timeout in seconds")

    # ---- Relay / client ----
    relay_url: str = Field(
        default="http://127.0.0.1:8000/cycle-chat",
        description="Where ChatSession posts chat turns",
    )
    cors_allow_origin: str = Field(default="*", description="Access-Control-Allow-Origin value")
    server_host: str = Field(default="127.0.0.1", description="Relay bind host")
    server_port: int = Field(default=8000, ge=1, le=65535, description="Relay bind port")
    journal_context_limit: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Maximum journal entries injected into the system prompt",
    )
    max_frame_retries: int = Field(
        default=3,
        ge=1,
        description="Parse attempts before a malformed stream frame is discarded",
    )

    # ---- Storage / logging ----
    storage_root: str = Field(default=".storage", description="Storage root directory")
    log_dir: str = Field(default="logs", description="Log directory")
    log_redact_content: bool = Field(default=False, description="Truncate logged messages")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = Settings()
