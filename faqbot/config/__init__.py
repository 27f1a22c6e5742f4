"""Configuration module."""

from faqbot.config.configuration import (
    AppConfig,
    AuditLogConfig,
    ChatConfig,
    ConfigurationError,
    CorpusConfig,
    LoggingConfig,
    OpenAIConfig,
    RetryConfig,
    VectorStoreConfig,
    get_config,
    get_environment,
    load_config,
    reset_config,
)

__all__ = [
    "AppConfig",
    "AuditLogConfig",
    "ChatConfig",
    "ConfigurationError",
    "CorpusConfig",
    "LoggingConfig",
    "OpenAIConfig",
    "RetryConfig",
    "VectorStoreConfig",
    "get_config",
    "get_environment",
    "load_config",
    "reset_config",
]
