"""Corpus change detection.

The corpus is fingerprinted with SHA-256 over its raw bytes and compared with
the fingerprint recorded in a plain-text sidecar file after the last
successful rebuild. Detection never writes; the caller records the new
fingerprint with `write_fingerprint` once the rebuilt index is persisted.
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional, Union

from faqbot.errors import CorpusFileError, StorageError
from faqbot.models import ChangeStatus

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def compute_fingerprint(data: bytes) -> str:
    """Compute SHA-256 hash of the corpus bytes.

    Args:
        data: Raw corpus bytes.

    Returns:
        SHA-256 hash as lowercase hexadecimal string.
    """
    return hashlib.sha256(data).hexdigest()


def read_corpus_bytes(corpus_path: PathLike) -> bytes:
    """Read the whole corpus file.

    Raises:
        CorpusFileError: If the file is missing or unreadable.
    """
    try:
        return Path(corpus_path).read_bytes()
    except FileNotFoundError as e:
        raise CorpusFileError(f"Corpus file not found: {corpus_path}") from e
    except OSError as e:
        raise CorpusFileError(f"Failed to read corpus file {corpus_path}: {e}") from e


def read_fingerprint(fingerprint_path: PathLike) -> Optional[str]:
    """Read the previously recorded fingerprint.

    Returns:
        The stored digest, or None if the sidecar is absent, empty or unreadable.
    """
    path = Path(fingerprint_path)
    if not path.exists():
        return None

    try:
        stored = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable fingerprint file {path}: {e}")
        return None

    return stored or None


def write_fingerprint(fingerprint_path: PathLike, fingerprint: str) -> None:
    """Overwrite the sidecar with the given fingerprint.

    Raises:
        StorageError: If the sidecar cannot be written.
    """
    path = Path(fingerprint_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(fingerprint, encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Failed to write fingerprint file {path}: {e}") from e

    logger.debug(f"Recorded corpus fingerprint {fingerprint[:12]} in {path}")


class ChangeDetector:
    """Decides whether the corpus changed since the last index build."""

    def check_bytes(self, data: bytes, fingerprint_path: PathLike) -> ChangeStatus:
        """Compare already-read corpus bytes against the sidecar."""
        current = compute_fingerprint(data)
        previous = read_fingerprint(fingerprint_path)

        return ChangeStatus(
            current_fingerprint=current,
            previous_fingerprint=previous,
            needs_reindex=previous is None or previous != current,
        )

    def check(self, corpus_path: PathLike, fingerprint_path: PathLike) -> ChangeStatus:
        """
        Fingerprint the corpus file and compare it with the sidecar.

        Args:
            corpus_path: Path to the CSV corpus.
            fingerprint_path: Path to the fingerprint sidecar.

        Returns:
            ChangeStatus describing current and previous fingerprints.

        Raises:
            CorpusFileError: If the corpus file is missing or unreadable.
        """
        return self.check_bytes(read_corpus_bytes(corpus_path), fingerprint_path)

    def should_reindex(self, corpus_path: PathLike, fingerprint_path: PathLike) -> bool:
        """Return True if the index must be rebuilt from the corpus."""
        return self.check(corpus_path, fingerprint_path).needs_reindex
