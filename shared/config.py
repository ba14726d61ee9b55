"""Unified configuration management for the Room Visualizer service.

Environment variables are read once into a pydantic model; provider endpoints
and model names come from a YAML file with built-in defaults.
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, validator

from .schemas import DatabaseConfig, ServiceConfig

DEFAULT_PROVIDER_CONFIG_PATH = Path(__file__).parent.parent / "config" / "providers.yml"

# Used when the YAML file is missing or unreadable
DEFAULT_PROVIDER_CONFIG: dict[str, Any] = {
    "vision": {
        "gemini": {"model": "gemini-2.5-flash"},
        "openai": {"model": "gpt-4o", "max_tokens": 500, "temperature": 0.4},
    },
    "segmentation": {
        "url": "https://api-inference.huggingface.co/models/nvidia/segformer-b0-finetuned-ade-512-512",
        "floor_label": "floor",
    },
    "inpainting": {
        "url": "https://api.stability.ai/v2beta/stable-image/edit/inpaint",
    },
}

VISION_PROVIDERS = ["gemini", "openai"]


class ServiceSettings(BaseModel):
    """Settings for the Room Visualizer service."""

    # ========================================================================
    # BASIC SETTINGS
    # ========================================================================
    log_level: str = "INFO"
    log_format: str = "text"
    debug: bool = False
    environment: str = "development"
    service_port: int = 3000

    # ========================================================================
    # DATABASE SETTINGS - Optional, history is disabled without a URL
    # ========================================================================
    database_url: Optional[str] = None

    # ========================================================================
    # PROVIDER CREDENTIALS
    # ========================================================================
    vision_provider: str = "gemini"
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    huggingface_token: Optional[str] = None
    stability_api_key: Optional[str] = None
    provider_config_path: str = str(DEFAULT_PROVIDER_CONFIG_PATH)

    # ========================================================================
    # PROCESSING SETTINGS
    # ========================================================================
    max_upload_size_mb: int = 5
    service_request_timeout: int = 120
    max_concurrent_requests: int = 10

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @validator("environment")
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = ["development", "staging", "production"]
        if v.lower() not in valid_envs:
            raise ValueError(f"Environment must be one of {valid_envs}")
        return v.lower()

    @validator("vision_provider")
    def validate_vision_provider(cls, v):
        """Validate the vision provider name."""
        if v.lower() not in VISION_PROVIDERS:
            raise ValueError(f"Vision provider must be one of {VISION_PROVIDERS}")
        return v.lower()

    @property
    def history_enabled(self) -> bool:
        return bool(self.database_url)

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    def get_service_config(self) -> ServiceConfig:
        """Get service configuration."""
        return ServiceConfig(
            port=self.service_port,
            timeout_seconds=self.service_request_timeout,
            max_concurrent_requests=self.max_concurrent_requests,
        )

    def get_database_config(self) -> DatabaseConfig:
        """Get database configuration."""
        if not self.database_url:
            raise ValueError("Database configuration not available")
        return DatabaseConfig(
            url=self.database_url,
            timeout_seconds=self.service_request_timeout,
        )

    def missing_credentials(self) -> list[str]:
        """Names of provider credentials the current setup needs but lacks."""
        required = {
            "HUGGINGFACE_TOKEN": self.huggingface_token,
            "STABILITY_API_KEY": self.stability_api_key,
        }
        if self.vision_provider == "openai":
            required["OPENAI_API_KEY"] = self.openai_api_key
        else:
            required["GEMINI_API_KEY"] = self.gemini_api_key
        return [name for name, value in required.items() if not value]


# ============================================================================
# SETTINGS LOADER
# ============================================================================

def load_settings_from_env(environ: Optional[dict[str, str]] = None) -> ServiceSettings:
    """Build settings from environment variables."""
    env = os.environ if environ is None else environ

    def parse_bool(value: str) -> bool:
        return value.lower() in ("true", "1", "yes", "on")

    # PORT is what most hosting platforms inject
    port = env.get("PORT") or env.get("SERVICE_PORT") or "3000"

    return ServiceSettings(
        log_level=env.get("LOG_LEVEL", "INFO"),
        log_format=env.get("LOG_FORMAT", "text"),
        debug=parse_bool(env.get("DEBUG", "false")),
        environment=env.get("ENVIRONMENT", "development"),
        service_port=int(port),

        database_url=env.get("DATABASE_URL") or None,

        vision_provider=env.get("VISION_PROVIDER", "gemini"),
        gemini_api_key=env.get("GEMINI_API_KEY"),
        openai_api_key=env.get("OPENAI_API_KEY"),
        huggingface_token=env.get("HUGGINGFACE_TOKEN"),
        stability_api_key=env.get("STABILITY_API_KEY"),
        provider_config_path=env.get("PROVIDER_CONFIG_PATH", str(DEFAULT_PROVIDER_CONFIG_PATH)),

        max_upload_size_mb=int(env.get("MAX_UPLOAD_SIZE_MB", "5")),
        service_request_timeout=int(env.get("SERVICE_REQUEST_TIMEOUT", "120")),
        max_concurrent_requests=int(env.get("MAX_CONCURRENT_REQUESTS", "10")),
    )


def get_settings() -> ServiceSettings:
    """Get the process-wide settings, loading them on first use."""
    if not hasattr(get_settings, "_instance"):
        get_settings._instance = load_settings_from_env()
    return get_settings._instance


def load_provider_config(path: Optional[str] = None) -> dict[str, Any]:
    """Load provider endpoints and models from YAML, merged over the defaults."""
    config_path = Path(path) if path else DEFAULT_PROVIDER_CONFIG_PATH
    config = copy.deepcopy(DEFAULT_PROVIDER_CONFIG)

    try:
        with open(config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(
            "Provider configuration not loaded, using defaults",
            config_file=str(config_path),
            error=str(e),
        )
        return config

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            _merge(config[section], values)
        else:
            config[section] = values
    return config


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
