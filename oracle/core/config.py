"""
Core configuration module for the Oracle interview system.
Loads settings from environment variables and config files.
"""
import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MODEL_CONFIG: Dict[str, Any] = {
    "providers": {
        "llm": {
            "provider": "ollama",
            "model": "qwen2.5:3b",
            "fallback_provider": "ollama",
            "max_tokens": 1024,
            "temperature": 0.7,
        },
    },
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Oracle"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # MongoDB
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "oracle"

    # Session storage backend: "memory" or "mongodb"
    session_storage_backend: str = "memory"

    # Model Provider Overrides
    provider_llm_provider: Optional[str] = None
    provider_llm_model: Optional[str] = None

    # vLLM
    vllm_api_url: str = "http://localhost:8001/v1"
    vllm_api_key: Optional[str] = None

    # Ollama
    ollama_api_url: str = "http://localhost:11434"

    # Adaptive interview workflow
    max_interview_exchanges: int = 20
    response_timeout_hours: float = 24.0
    activity_max_attempts: int = 3
    activity_timeout_seconds: float = 300.0
    activity_retry_interval_seconds: float = 1.0
    include_introduction: bool = True
    finished_workflow_retention_seconds: float = 300.0
    workflow_done_max_chars: int = 80

    # Step-based interview engine
    engine_done_max_chars: int = 50
    maintenance_agent_name: str = "maintenance-dispatcher"

    @property
    def uses_mongodb(self) -> bool:
        return self.session_storage_backend.lower() == "mongodb"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def load_model_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load model configuration from YAML file.
    Environment variables can override config values.

    The bundled config/models.yaml is optional; built-in defaults are used
    when it is absent. An explicitly requested path must exist.
    """
    if config_path is None:
        path = Path(__file__).parent.parent.parent / "config" / "models.yaml"
        if path.exists():
            with open(path, "r") as f:
                config = yaml.safe_load(f) or {}
        else:
            config = copy.deepcopy(DEFAULT_MODEL_CONFIG)
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Model config not found: {path}")
        with open(path, "r") as f:
            config = yaml.safe_load(f) or {}

    llm_config = config.setdefault("providers", {}).setdefault("llm", {})

    # Apply environment variable overrides
    settings = get_settings()

    if settings.provider_llm_provider:
        llm_config["provider"] = settings.provider_llm_provider

    if settings.provider_llm_model:
        llm_config["model"] = settings.provider_llm_model

    return config
