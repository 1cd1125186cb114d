"""Configuration loader for the EPUB translation pipeline."""

import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "EPUB Translator"
    version: str = "1.0.0"


class TranslationConfig(BaseModel):
    """Remote translation service and retry configuration."""

    api_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    model_id: str = "gemini-2.5-flash"
    source_language: str = "en"
    target_language: str = "ar"
    max_concurrency: int = Field(default=2, ge=1)
    max_retries: int = Field(default=5, ge=0)
    rate_limit_backoff_s: float = Field(default=1.0, ge=0)
    failure_backoff_s: float = Field(default=2.0, ge=0)
    request_timeout_s: float = Field(default=120.0, gt=0)


class ChunkingConfig(BaseModel):
    """Markup chunking configuration."""

    max_chunk_size: int = Field(default=14000, gt=0)
    versioned_keys: bool = True


class CacheConfig(BaseModel):
    """Chunk cache policy."""

    # When False, chunks that fell back to the original text are retried on resume.
    cache_fallbacks: bool = True


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/translation.db"
    output_dir: str = "./output"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # API keys, usually loaded from environment
    api_keys: list[str] = Field(default_factory=list)


def parse_api_keys(raw: str) -> list[str]:
    """Split a comma- or newline-separated list of API keys.

    Args:
        raw: The raw string, e.g. from an environment variable.

    Returns:
        Non-empty, stripped keys in their original order.
    """
    return [key.strip() for key in re.split(r"[,\n]", raw) if key.strip()]


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Override API keys from environment
    env_keys = os.getenv("TRANSLATOR_API_KEYS")
    single_key = os.getenv("GEMINI_API_KEY")
    if env_keys:
        config.api_keys = parse_api_keys(env_keys)
    elif single_key:
        config.api_keys = [single_key.strip()]

    return config
