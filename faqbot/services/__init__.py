"""Service modules."""

from faqbot.services.rag_log_service import RagLogService

__all__ = ["RagLogService"]
