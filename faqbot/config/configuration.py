"""Configuration module for faqbot.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml
- APP_ENV=test → config_test.yaml
- Default      → config.yaml

The OpenAI API key is loaded from the .env file.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from faqbot/config/ up to project root
    return Path(__file__).parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable.

    Returns:
        Config filename:
        - APP_ENV=dev  → config_dev.yaml
        - APP_ENV=test → config_test.yaml
        - Default      → config.yaml
    """
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


def _resolve_path(value: str) -> Path:
    """Resolve a configured path relative to the project root."""
    path = Path(value)
    if path.is_absolute():
        return path
    return _get_project_root() / path


def _positive_int(section: dict, key: str, default: int) -> int:
    value = section.get(key, default)
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ConfigurationError(f"'{key}' must be a positive integer, got {value!r}")
    return value


@dataclass(frozen=True)
class RetryConfig:
    """Bounded retry policy for transient OpenAI failures."""
    max_attempts: int
    backoff_seconds: float
    backoff_multiplier: float


@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI API configuration."""
    api_key: str
    model: str
    rephrase_temperature: float
    embedding_model: str
    embedding_dimensions: Optional[int]
    embedding_batch_size: int
    request_timeout_seconds: float
    retry: RetryConfig


@dataclass(frozen=True)
class CorpusConfig:
    """Location of the CSV knowledge source and its fingerprint sidecar."""
    csv_path: Path
    fingerprint_path: Path


@dataclass(frozen=True)
class VectorStoreConfig:
    """Persisted FAISS index configuration."""
    directory: Path
    top_k: int


@dataclass(frozen=True)
class ChatConfig:
    """Interactive chat configuration."""
    session_id: str
    max_history_messages: Optional[int]


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AuditLogConfig:
    """Audit log configuration."""
    enabled: bool
    sqlite_path: Path


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    openai: OpenAIConfig
    corpus: CorpusConfig
    vector_store: VectorStoreConfig
    chat: ChatConfig
    logging: LoggingConfig
    audit_log: AuditLogConfig


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Loads from config.yaml for non-sensitive settings and .env for API keys.
    Fails fast if required configuration is missing.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    # Load environment variables from .env file
    load_dotenv()

    # Load YAML configuration
    yaml_config = _load_yaml_config()

    # Build OpenAI config
    openai_section = yaml_config.get("openai", {})
    embedding_section = openai_section.get("embedding_model", {})
    retry_section = openai_section.get("retry", {})

    retry_config = RetryConfig(
        max_attempts=_positive_int(retry_section, "max_attempts", 1),
        backoff_seconds=float(retry_section.get("backoff_seconds", 1.0)),
        backoff_multiplier=float(retry_section.get("backoff_multiplier", 2.0)),
    )

    openai_config = OpenAIConfig(
        api_key=_get_required_env("OPENAI_API_KEY"),
        model=openai_section.get("model", "gpt-4o"),
        rephrase_temperature=float(openai_section.get("rephrase_temperature", 0.1)),
        embedding_model=embedding_section.get("name", "text-embedding-3-small"),
        embedding_dimensions=embedding_section.get("dimensions"),
        embedding_batch_size=_positive_int(embedding_section, "batch_size", 512),
        request_timeout_seconds=float(openai_section.get("request_timeout_seconds", 30.0)),
        retry=retry_config,
    )

    # Build Corpus config
    corpus_section = yaml_config.get("corpus", {})

    corpus_config = CorpusConfig(
        csv_path=_resolve_path(corpus_section.get("csv_path", "docs/sample_qa.csv")),
        fingerprint_path=_resolve_path(
            corpus_section.get("fingerprint_path", "docs/sample_qa_hash.txt")
        ),
    )

    # Build Vector store config
    vector_store_section = yaml_config.get("vector_store", {})

    vector_store_config = VectorStoreConfig(
        directory=_resolve_path(vector_store_section.get("directory", "vector_db")),
        top_k=_positive_int(vector_store_section, "top_k", 4),
    )

    # Build Chat config
    chat_section = yaml_config.get("chat", {})
    max_history = chat_section.get("max_history_messages")
    if max_history is not None:
        max_history = _positive_int(chat_section, "max_history_messages", 1)

    chat_config = ChatConfig(
        session_id=str(chat_section.get("session_id", "default")),
        max_history_messages=max_history,
    )

    # Build Logging config
    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    # Build AuditLog config
    audit_log_section = yaml_config.get("audit_log", {})

    audit_log_config = AuditLogConfig(
        enabled=bool(audit_log_section.get("enabled", True)),
        sqlite_path=_resolve_path(audit_log_section.get("sqlite_path", "rag_logs.db")),
    )

    return AppConfig(
        openai=openai_config,
        corpus=corpus_config,
        vector_store=vector_store_config,
        chat=chat_config,
        logging=logging_config,
        audit_log=audit_log_config,
    )


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Returns:
        AppConfig: Application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get current environment name.

    Returns:
        'dev', 'test', or 'default' based on APP_ENV.
    """
    app_env = os.environ.get("APP_ENV", "").lower()
    return app_env if app_env in ("dev", "test") else "default"


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
