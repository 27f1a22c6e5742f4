"""Corpus ingestion and vector index management."""

from faqbot.ingestion.change_detector import (
    ChangeDetector,
    compute_fingerprint,
    read_corpus_bytes,
    read_fingerprint,
    write_fingerprint,
)
from faqbot.ingestion.csv_loader import CsvCorpusLoader, format_row
from faqbot.ingestion.index_pipeline import prepare_index
from faqbot.ingestion.vector_index import VectorIndex, VectorIndexManager

__all__ = [
    # Change detection
    "ChangeDetector",
    "compute_fingerprint",
    "read_corpus_bytes",
    "read_fingerprint",
    "write_fingerprint",
    # Corpus loading
    "CsvCorpusLoader",
    "format_row",
    # Index management
    "VectorIndex",
    "VectorIndexManager",
    "prepare_index",
]
