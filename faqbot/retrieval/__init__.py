"""Document retrieval module."""

from faqbot.retrieval.retriever import DEFAULT_TOP_K, Retriever, to_context_string

__all__ = ["DEFAULT_TOP_K", "Retriever", "to_context_string"]
