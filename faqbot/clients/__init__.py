"""Client modules for external services."""

from faqbot.clients.openai_client import (
    Completer,
    Embedder,
    OpenAICompleter,
    OpenAIEmbedder,
    create_openai_client,
)
from faqbot.clients.retry import RetryPolicy, call_with_retry
from faqbot.clients.sqlite_client import SqliteClient

__all__ = [
    "Completer",
    "Embedder",
    "OpenAICompleter",
    "OpenAIEmbedder",
    "RetryPolicy",
    "SqliteClient",
    "call_with_retry",
    "create_openai_client",
]
