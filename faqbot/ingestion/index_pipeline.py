"""Startup indexing: rebuild the vector index only when the corpus changed.

Write path: parse -> build -> persist index -> write fingerprint, in that
order, so a crash part-way through always leaves the index looking stale.
Read path: the running system always loads the index from disk, even right
after a rebuild.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from faqbot.errors import EmbeddingError, StorageError
from faqbot.ingestion.change_detector import (
    ChangeDetector,
    read_corpus_bytes,
    write_fingerprint,
)
from faqbot.ingestion.csv_loader import CsvCorpusLoader
from faqbot.ingestion.vector_index import VectorIndex, VectorIndexManager
from faqbot.models import IndexingResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _existing_index_loads(manager: VectorIndexManager, index_dir: PathLike) -> bool:
    try:
        manager.load(index_dir)
    except StorageError:
        return False
    return True


def prepare_index(
    corpus_path: PathLike,
    fingerprint_path: PathLike,
    index_dir: PathLike,
    manager: VectorIndexManager,
    loader: Optional[CsvCorpusLoader] = None,
    detector: Optional[ChangeDetector] = None,
) -> Tuple[VectorIndex, IndexingResult]:
    """
    Make sure an up-to-date index is on disk, then load it.

    Args:
        corpus_path: Path to the CSV corpus.
        fingerprint_path: Path to the fingerprint sidecar.
        index_dir: Directory of the persisted index.
        manager: VectorIndexManager wrapping the embedder.
        loader: Corpus loader (defaults to CsvCorpusLoader).
        detector: Change detector (defaults to ChangeDetector).

    Returns:
        Tuple of (loaded VectorIndex, IndexingResult).

    Raises:
        CorpusFileError: If the corpus cannot be read.
        ParseError: If the corpus is malformed.
        EmbeddingError, StorageError: If a rebuild fails and no usable
            index exists on disk, or if the final load fails.
    """
    loader = loader or CsvCorpusLoader()
    detector = detector or ChangeDetector()

    # Read once so the fingerprint and the parsed documents describe the same bytes
    corpus_bytes = read_corpus_bytes(corpus_path)
    status = detector.check_bytes(corpus_bytes, fingerprint_path)

    rebuilt = False
    fell_back = False

    if not status.needs_reindex:
        try:
            loaded = manager.load(index_dir)
        except StorageError as e:
            logger.warning(f"Corpus unchanged but index at {index_dir} is unusable, rebuilding: {e}")
        else:
            logger.info(
                f"Corpus unchanged (fingerprint {status.current_fingerprint[:12]}), "
                f"reusing index at {index_dir}"
            )
            return loaded, IndexingResult(
                rebuilt=False,
                fingerprint=status.current_fingerprint,
                document_count=len(loaded),
            )
    elif status.previous_fingerprint is None:
        logger.info(f"No previous fingerprint for {corpus_path}, building index")
    else:
        logger.info(
            f"Corpus changed ({status.previous_fingerprint[:12]} -> "
            f"{status.current_fingerprint[:12]}), rebuilding index"
        )

    documents = loader.parse(corpus_bytes, source=str(corpus_path))

    try:
        index = manager.build(documents)
        manager.persist(index, index_dir)
    except (EmbeddingError, StorageError) as e:
        if not _existing_index_loads(manager, index_dir):
            raise
        logger.warning(f"Index rebuild failed, keeping previous index at {index_dir}: {e}")
        fell_back = True
    else:
        rebuilt = True
        try:
            write_fingerprint(fingerprint_path, status.current_fingerprint)
        except StorageError as e:
            # The new index is on disk but still looks stale, so the next start rebuilds
            logger.warning(f"Index rebuilt but fingerprint was not recorded: {e}")

    # Always serve the index as read back from disk
    loaded = manager.load(index_dir)

    return loaded, IndexingResult(
        rebuilt=rebuilt,
        fingerprint=status.current_fingerprint,
        document_count=len(loaded),
        fell_back=fell_back,
    )
