"""Shared fixtures and deterministic stand-ins for the OpenAI capabilities."""

import os
import tempfile
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from faqbot.errors import EmbeddingError, ModelCallError

VOCABULARY = ["refund", "return", "shipping", "payment", "password", "cancel"]


class KeywordEmbedder:
    """Embeds text as keyword counts over a small fixed vocabulary.

    The last component is a constant so no vector is all zeros.
    """

    def __init__(self, vocabulary: Sequence[str] = VOCABULARY):
        self.vocabulary = list(vocabulary)
        self.document_calls = 0
        self.query_calls = 0
        self.embedded_texts: List[str] = []

    def _vector(self, text: str) -> List[float]:
        lowered = text.lower()
        return [float(lowered.count(word)) for word in self.vocabulary] + [1.0]

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        self.document_calls += 1
        self.embedded_texts.extend(texts)
        return [self._vector(text) for text in texts]

    def embed_query(self, text: str) -> List[float]:
        self.query_calls += 1
        return self._vector(text)


class FailingEmbedder(KeywordEmbedder):
    """Fails every document embedding call; queries still work."""

    def embed_documents(self, texts: Sequence[str]) -> List[List[float]]:
        self.document_calls += 1
        raise EmbeddingError("embedding service unavailable")


class ScriptedCompleter:
    """Returns canned responses and records every prompt it was given."""

    def __init__(
        self,
        responder: Optional[Callable[[List[Dict[str, str]]], str]] = None,
        fail_on_calls: Sequence[int] = (),
    ):
        self.calls: List[List[Dict[str, str]]] = []
        self._responder = responder or (lambda messages: f"response {len(self.calls)}")
        self._fail_on_calls = set(fail_on_calls)

    def complete(self, messages) -> str:
        self.calls.append(list(messages))
        if len(self.calls) in self._fail_on_calls:
            raise ModelCallError(f"model call {len(self.calls)} failed")
        return self._responder(list(messages))


SAMPLE_CSV = (
    "question,answer\n"
    "What is your refund policy?,Refunds are issued within 30 days.\n"
    "How do I return an item?,Start a return from the Orders page.\n"
    "How long does shipping take?,Shipping takes 3 to 5 business days.\n"
)


@pytest.fixture
def workdir():
    """Temporary directory for corpus, sidecar and index files."""
    with tempfile.TemporaryDirectory() as path:
        yield path


@pytest.fixture
def corpus_path(workdir):
    """A three-row CSV corpus."""
    path = os.path.join(workdir, "sample_qa.csv")
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(SAMPLE_CSV)
    return path


@pytest.fixture
def fingerprint_path(workdir):
    return os.path.join(workdir, "sample_qa_hash.txt")


@pytest.fixture
def index_dir(workdir):
    return os.path.join(workdir, "vector_db")


@pytest.fixture
def embedder():
    return KeywordEmbedder()
