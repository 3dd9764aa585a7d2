"""
Configuration for the memory store and embedding providers.
Values come from environment variables; defaults suit a local development setup.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import ConfigError

# Embedding provider selection
EMBEDDING_PROVIDERS = ("gemini", "ollama", "hash")
LOG_LEVELS = ("debug", "info", "warn", "error")

DEFAULT_EMBEDDING_PROVIDER = "gemini"
DEFAULT_GEMINI_MODEL = "embedding-001"
DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "nomic-embed-text"
DEFAULT_HASH_EMBED_DIM = 384
DEFAULT_EMBEDDING_TIMEOUT_SEC = 30.0

# Snapshot path for the in-memory store
DEFAULT_VECTOR_DB_PATH = "./data/vector_db"
DEFAULT_LOG_LEVEL = "info"

VERSION = "1.0.0"


@dataclass
class AppConfig:
    """Resolved application configuration."""

    embedding_provider: str = DEFAULT_EMBEDDING_PROVIDER
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    ollama_model: str = DEFAULT_OLLAMA_MODEL
    hash_embed_dim: int = DEFAULT_HASH_EMBED_DIM
    embedding_timeout_sec: float = DEFAULT_EMBEDDING_TIMEOUT_SEC
    vector_db_path: Optional[str] = DEFAULT_VECTOR_DB_PATH
    log_level: str = DEFAULT_LOG_LEVEL


def _get_choice_from_env(name: str, choices, default: str) -> str:
    """Read an enumerated env var, falling back to the default on unknown values."""
    value = os.getenv(name)
    if not value:
        return default

    value = value.lower()
    if value in choices:
        return value

    from ..util.logging import logger
    logger.warning(f"Invalid {name} value: {value}. Using default: {default}")
    return default


def _get_number_from_env(name: str, default, cast=int):
    value = os.getenv(name)
    if not value:
        return default
    try:
        return cast(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{value}'")


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    return AppConfig(
        embedding_provider=_get_choice_from_env(
            "EMBEDDING_PROVIDER", EMBEDDING_PROVIDERS, DEFAULT_EMBEDDING_PROVIDER
        ),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        ollama_base_url=os.getenv("OLLAMA_BASE_URL", DEFAULT_OLLAMA_BASE_URL),
        ollama_model=os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
        hash_embed_dim=_get_number_from_env("HASH_EMBED_DIM", DEFAULT_HASH_EMBED_DIM),
        embedding_timeout_sec=_get_number_from_env(
            "EMBEDDING_TIMEOUT_SEC", DEFAULT_EMBEDDING_TIMEOUT_SEC, cast=float
        ),
        vector_db_path=os.getenv("VECTOR_DB_PATH", DEFAULT_VECTOR_DB_PATH) or None,
        log_level=_get_choice_from_env("LOG_LEVEL", LOG_LEVELS, DEFAULT_LOG_LEVEL),
    )


def validate_config(config: AppConfig) -> List[str]:
    """Validate configuration and return any issues."""
    issues = []

    if config.embedding_provider == "gemini" and not config.gemini_api_key:
        issues.append("GEMINI_API_KEY is required when using the Gemini embedding provider")

    if config.embedding_provider not in EMBEDDING_PROVIDERS:
        issues.append(f"Invalid EMBEDDING_PROVIDER: {config.embedding_provider}")

    if config.log_level not in LOG_LEVELS:
        issues.append(f"Invalid LOG_LEVEL: {config.log_level}")

    if config.hash_embed_dim < 1:
        issues.append("HASH_EMBED_DIM must be >= 1")

    if config.embedding_timeout_sec <= 0:
        issues.append("EMBEDDING_TIMEOUT_SEC must be > 0")

    return issues


def get_config() -> AppConfig:
    """Load and validate configuration. Raises ConfigError on the first issue found."""
    config = load_config()
    issues = validate_config(config)
    if issues:
        raise ConfigError("; ".join(issues))
    return config


def ensure_data_directory(config: AppConfig) -> None:
    """Ensure the snapshot directory exists."""
    if config.vector_db_path:
        Path(config.vector_db_path).parent.mkdir(parents=True, exist_ok=True)
