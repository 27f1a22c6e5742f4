"""Data models module."""

from faqbot.models.document import (
    ChangeStatus,
    Document,
    IndexingResult,
    RetrievedDocument,
)
from faqbot.models.message import Message, Role, TurnResult
from faqbot.models.rag_log import RagLog

__all__ = [
    "ChangeStatus",
    "Document",
    "IndexingResult",
    "Message",
    "RagLog",
    "RetrievedDocument",
    "Role",
    "TurnResult",
]
