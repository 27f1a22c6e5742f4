"""Document models for the CSV corpus and the vector index."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Document:
    """A single retrievable unit of text, one per CSV row."""

    content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RetrievedDocument:
    """A Document returned by a similarity search, with its position."""

    document: Document
    rank: int  # 0 = closest match
    distance: float  # L2 distance to the query embedding


@dataclass(frozen=True)
class ChangeStatus:
    """Result of comparing the corpus fingerprint against the sidecar."""

    current_fingerprint: str  # SHA-256 of the corpus bytes
    previous_fingerprint: Optional[str]  # None if no readable sidecar
    needs_reindex: bool


@dataclass(frozen=True)
class IndexingResult:
    """Outcome of the startup indexing step."""

    rebuilt: bool  # True if a new index was built and persisted this run
    fingerprint: str
    document_count: int  # Documents in the loaded index
    fell_back: bool = False  # True if a rebuild failed and the old index was kept
