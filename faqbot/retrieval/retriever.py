"""Similarity search over the loaded vector index."""

import logging
from typing import List, Sequence

from faqbot.clients.openai_client import Embedder
from faqbot.ingestion.vector_index import VectorIndex
from faqbot.models import RetrievedDocument

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 4


def to_context_string(results: Sequence[RetrievedDocument]) -> str:
    """Wrap each document in <doc> markers and join them in retrieval order."""
    return "\n".join(
        f"<doc>\n{result.document.content}\n</doc>" for result in results
    )


class Retriever:
    """Returns the top-k documents closest to a query string."""

    def __init__(self, index: VectorIndex, embedder: Embedder, top_k: int = DEFAULT_TOP_K):
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}")
        self._index = index
        self._embedder = embedder
        self._top_k = top_k

    @property
    def top_k(self) -> int:
        return self._top_k

    def retrieve(self, query: str) -> List[RetrievedDocument]:
        """
        Search the index for documents similar to `query`.

        Args:
            query: Text to search for.

        Returns:
            Up to top_k RetrievedDocuments, closest first.

        Raises:
            EmbeddingError: If the query cannot be embedded.
        """
        query_vector = self._embedder.embed_query(query)
        matches = self._index.search(query_vector, self._top_k)

        logger.debug(f"Retrieved {len(matches)} documents for query: {query[:50]}")
        return [
            RetrievedDocument(document=document, rank=rank, distance=distance)
            for rank, (document, distance) in enumerate(matches)
        ]
