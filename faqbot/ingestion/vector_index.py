"""FAISS vector index: build, persist and load.

A persisted index is a directory holding three files:
- index.faiss   : the FAISS index (exact L2 search)
- docstore.json : the Documents, position i matching FAISS id i
- manifest.json : counts and dimension used to validate a load
"""

import json
import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import faiss
import numpy as np

from faqbot.clients.openai_client import Embedder
from faqbot.errors import EmbeddingError, StorageError
from faqbot.models import Document

logger = logging.getLogger(__name__)

INDEX_FILE = "index.faiss"
DOCSTORE_FILE = "docstore.json"
MANIFEST_FILE = "manifest.json"
FORMAT_VERSION = 1

PathLike = Union[str, Path]


class VectorIndex:
    """Nearest-neighbour index mapping embeddings back to Documents."""

    def __init__(self, faiss_index: faiss.Index, documents: Sequence[Document]):
        if faiss_index.ntotal != len(documents):
            raise ValueError(
                f"FAISS index holds {faiss_index.ntotal} vectors "
                f"but {len(documents)} documents were given"
            )
        self._index = faiss_index
        self._documents = list(documents)

    @property
    def faiss_index(self) -> faiss.Index:
        return self._index

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    @property
    def dimension(self) -> int:
        return self._index.d

    def __len__(self) -> int:
        return len(self._documents)

    def search(self, vector: Sequence[float], k: int) -> List[Tuple[Document, float]]:
        """
        Find the k documents closest to `vector`.

        Returns:
            (document, distance) pairs, closest first.

        Raises:
            EmbeddingError: If `vector` does not match the index dimension.
        """
        k = min(k, len(self._documents))
        if k <= 0:
            return []

        query = np.asarray([vector], dtype="float32")
        if query.shape[1] != self.dimension:
            raise EmbeddingError(
                f"Query vector has dimension {query.shape[1]}, index expects {self.dimension}"
            )

        distances, ids = self._index.search(query, k)
        return [
            (self._documents[int(doc_id)], float(distance))
            for doc_id, distance in zip(ids[0], distances[0])
            if doc_id >= 0
        ]


def _to_matrix(vectors: List[List[float]], expected_rows: int) -> np.ndarray:
    if len(vectors) != expected_rows:
        raise EmbeddingError(
            f"Embedder returned {len(vectors)} vectors for {expected_rows} documents"
        )
    dimensions = {len(vector) for vector in vectors}
    if len(dimensions) != 1 or 0 in dimensions:
        raise EmbeddingError(f"Embedder returned inconsistent vector sizes: {sorted(dimensions)}")
    return np.ascontiguousarray(vectors, dtype="float32")


def _restore_backup(target: Path, backup: Path) -> None:
    if target.exists() or not backup.exists():
        return
    try:
        backup.rename(target)
    except OSError as e:
        logger.error(f"Could not restore previous vector index from {backup}: {e}")
    else:
        logger.warning(f"Restored previous vector index at {target}")


class VectorIndexManager:
    """Owns the lifecycle of the persisted vector index.

    When `embedding_model` is given it is recorded in the manifest, and an
    index built with a different model is refused on load.
    """

    def __init__(self, embedder: Embedder, embedding_model: Optional[str] = None):
        self._embedder = embedder
        self._embedding_model = embedding_model

    def build(self, documents: Sequence[Document]) -> VectorIndex:
        """
        Embed every document and build a fresh in-memory index.

        The build is all-or-nothing: nothing is returned unless every
        document was embedded.

        Args:
            documents: Documents to index.

        Returns:
            A new VectorIndex.

        Raises:
            EmbeddingError: If there is nothing to embed or any embedding fails.
        """
        if not documents:
            raise EmbeddingError("No documents to embed")

        start_time = time.perf_counter()
        vectors = self._embedder.embed_documents([doc.content for doc in documents])
        matrix = _to_matrix(vectors, len(documents))

        faiss_index = faiss.IndexFlatL2(matrix.shape[1])
        faiss_index.add(matrix)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Built vector index with {len(documents)} documents "
            f"(dimension {matrix.shape[1]}) in {elapsed_ms:.1f}ms"
        )
        return VectorIndex(faiss_index, documents)

    def persist(self, index: VectorIndex, directory: PathLike) -> None:
        """
        Write the index to `directory`, replacing whatever was there.

        Files are written to a staging directory first and swapped into
        place, so a failed write leaves the previous index intact.

        Raises:
            StorageError: If writing fails.
        """
        target = Path(directory)
        staging = target.with_name(target.name + ".staging")
        backup = target.with_name(target.name + ".old")

        manifest = {
            "format_version": FORMAT_VERSION,
            "document_count": len(index),
            "dimension": index.dimension,
            "embedding_model": self._embedding_model,
            "saved_at": int(time.time()),
        }
        docstore = [
            {"content": doc.content, "metadata": dict(doc.metadata)}
            for doc in index.documents
        ]

        try:
            if staging.exists():
                shutil.rmtree(staging)
            staging.mkdir(parents=True)

            faiss.write_index(index.faiss_index, str(staging / INDEX_FILE))
            with open(staging / DOCSTORE_FILE, "w", encoding="utf-8") as f:
                json.dump(docstore, f, ensure_ascii=False, indent=2)
            with open(staging / MANIFEST_FILE, "w", encoding="utf-8") as f:
                json.dump(manifest, f, indent=2)

            if backup.exists():
                shutil.rmtree(backup)
            if target.exists():
                target.rename(backup)
            staging.rename(target)
        except (OSError, RuntimeError, TypeError) as e:
            # faiss raises RuntimeError on I/O failures; TypeError covers
            # metadata that json cannot serialize
            _restore_backup(target, backup)
            raise StorageError(f"Failed to persist vector index to {target}: {e}") from e

        shutil.rmtree(backup, ignore_errors=True)
        logger.info(f"Persisted vector index ({len(index)} documents) to {target}")

    def load(self, directory: PathLike) -> VectorIndex:
        """
        Read a previously persisted index.

        Raises:
            StorageError: If the directory is absent, incomplete or corrupt.
        """
        source = Path(directory)
        if not source.is_dir():
            raise StorageError(f"Vector index directory not found: {source}")

        missing = [
            name for name in (INDEX_FILE, DOCSTORE_FILE, MANIFEST_FILE)
            if not (source / name).is_file()
        ]
        if missing:
            raise StorageError(f"Vector index at {source} is missing {', '.join(missing)}")

        try:
            faiss_index = faiss.read_index(str(source / INDEX_FILE))
            with open(source / DOCSTORE_FILE, "r", encoding="utf-8") as f:
                docstore = json.load(f)
            with open(source / MANIFEST_FILE, "r", encoding="utf-8") as f:
                manifest = json.load(f)
        except (OSError, RuntimeError, ValueError) as e:
            raise StorageError(f"Failed to read vector index at {source}: {e}") from e

        try:
            documents = [
                Document(content=entry["content"], metadata=entry.get("metadata", {}))
                for entry in docstore
            ]
            expected_count = manifest["document_count"]
            expected_dimension = manifest["dimension"]
            built_with = manifest.get("embedding_model")
        except (KeyError, TypeError, AttributeError) as e:
            raise StorageError(f"Vector index at {source} has malformed metadata: {e}") from e

        if faiss_index.ntotal != len(documents) or len(documents) != expected_count:
            raise StorageError(
                f"Vector index at {source} is inconsistent: {faiss_index.ntotal} vectors, "
                f"{len(documents)} documents, manifest says {expected_count}"
            )
        if faiss_index.d != expected_dimension:
            raise StorageError(
                f"Vector index at {source} has dimension {faiss_index.d}, "
                f"manifest says {expected_dimension}"
            )
        if self._embedding_model is not None and built_with != self._embedding_model:
            raise StorageError(
                f"Vector index at {source} was built with embedding model {built_with!r}, "
                f"expected {self._embedding_model!r}"
            )

        logger.info(f"Loaded vector index ({len(documents)} documents) from {source}")
        return VectorIndex(faiss_index, documents)
