"""Tests for the startup indexing pipeline.

These tests verify:
- First run builds, persists and records the fingerprint
- A second run with an unchanged corpus does no embedding work
- A changed corpus triggers a full rebuild
- Failed rebuilds fall back to the previous index without touching the sidecar
"""

import os
import shutil
from pathlib import Path

import pytest

from faqbot.errors import EmbeddingError, ParseError, StorageError
from faqbot.ingestion import index_pipeline
from faqbot.ingestion.change_detector import compute_fingerprint, read_fingerprint
from faqbot.ingestion.index_pipeline import prepare_index
from faqbot.ingestion.vector_index import VectorIndexManager

from conftest import FailingEmbedder, KeywordEmbedder


class CountingManager(VectorIndexManager):
    """VectorIndexManager that records the order of build/persist/load calls."""

    def __init__(self, embedder, events=None):
        super().__init__(embedder)
        self.events = events if events is not None else []

    def build(self, documents):
        self.events.append("build")
        return super().build(documents)

    def persist(self, index, directory):
        self.events.append("persist")
        return super().persist(index, directory)

    def load(self, directory):
        self.events.append("load")
        return super().load(directory)


def snapshot(directory):
    """Bytes of every file in the index directory."""
    result = {}
    for name in sorted(os.listdir(directory)):
        with open(os.path.join(directory, name), "rb") as f:
            result[name] = f.read()
    return result


class TestFirstRun:
    """Test indexing with no previous state."""

    def test_first_run_builds_once_and_writes_sidecar(
        self, corpus_path, fingerprint_path, index_dir, embedder
    ):
        """Test one build, one persist and one sidecar equal to the corpus digest."""
        manager = CountingManager(embedder)

        index, result = prepare_index(corpus_path, fingerprint_path, index_dir, manager)

        assert manager.events == ["build", "persist", "load"]
        assert result.rebuilt is True
        assert result.document_count == 3
        assert len(index) == 3

        with open(corpus_path, "rb") as f:
            expected = compute_fingerprint(f.read())
        assert read_fingerprint(fingerprint_path) == expected
        assert result.fingerprint == expected

        print(f"First run result: {result}")

    def test_index_is_always_loaded_from_disk(
        self, corpus_path, fingerprint_path, index_dir, embedder
    ):
        """Test that the returned index comes from load, not the in-memory build."""
        manager = CountingManager(embedder)
        prepare_index(corpus_path, fingerprint_path, index_dir, manager)

        assert manager.events[-1] == "load"

    def test_sidecar_written_after_persist(
        self, corpus_path, fingerprint_path, index_dir, embedder
    ):
        """Test that the sidecar does not exist yet while the index is persisted."""
        sidecar_seen_during_persist = []

        class ObservingManager(VectorIndexManager):
            def persist(self, index, directory):
                sidecar_seen_during_persist.append(os.path.exists(fingerprint_path))
                super().persist(index, directory)

        prepare_index(corpus_path, fingerprint_path, index_dir, ObservingManager(embedder))

        assert sidecar_seen_during_persist == [False]
        assert os.path.exists(fingerprint_path)


class TestSubsequentRuns:
    """Test idempotence and change sensitivity."""

    def test_unchanged_corpus_skips_embedding(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test zero embedding calls and byte-identical index on the second run."""
        prepare_index(corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder()))
        before = snapshot(index_dir)

        second_embedder = KeywordEmbedder()
        manager = CountingManager(second_embedder)
        index, result = prepare_index(corpus_path, fingerprint_path, index_dir, manager)

        assert second_embedder.document_calls == 0
        assert manager.events == ["load"]
        assert result.rebuilt is False
        assert len(index) == 3
        assert snapshot(index_dir) == before

    def test_changed_corpus_triggers_full_rebuild(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test that appending a row re-embeds the whole corpus."""
        prepare_index(corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder()))
        old_fingerprint = read_fingerprint(fingerprint_path)

        with open(corpus_path, "a", encoding="utf-8", newline="") as f:
            f.write("Which payment methods?,Cards and PayPal.\n")

        embedder = KeywordEmbedder()
        index, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(embedder)
        )

        assert result.rebuilt is True
        assert len(embedder.embedded_texts) == 4
        assert len(index) == 4
        assert read_fingerprint(fingerprint_path) != old_fingerprint

    def test_missing_index_with_current_sidecar_rebuilds(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test that a deleted index is rebuilt even though the corpus is unchanged."""
        prepare_index(corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder()))
        shutil.rmtree(index_dir)

        embedder = KeywordEmbedder()
        index, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(embedder)
        )

        assert result.rebuilt is True
        assert embedder.document_calls == 1
        assert len(index) == 3

    def test_changed_embedding_model_triggers_rebuild(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test that switching embedding model rebuilds even with an unchanged corpus."""
        prepare_index(
            corpus_path, fingerprint_path, index_dir,
            VectorIndexManager(KeywordEmbedder(), embedding_model="model-a"),
        )

        embedder = KeywordEmbedder()
        _, result = prepare_index(
            corpus_path, fingerprint_path, index_dir,
            VectorIndexManager(embedder, embedding_model="model-b"),
        )

        assert result.rebuilt is True
        assert embedder.document_calls == 1

    def test_stale_sidecar_without_index_rebuilds(
        self, corpus_path, fingerprint_path, index_dir, embedder
    ):
        """Test that a sidecar from another corpus version forces a rebuild."""
        with open(fingerprint_path, "w", encoding="utf-8") as f:
            f.write("0" * 64)

        _, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(embedder)
        )
        assert result.rebuilt is True


class TestFailures:
    """Test rebuild failures and fallback."""

    def test_build_failure_without_existing_index_is_fatal(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test that a failed first build raises and writes nothing."""
        with pytest.raises(EmbeddingError):
            prepare_index(
                corpus_path, fingerprint_path, index_dir, VectorIndexManager(FailingEmbedder())
            )

        assert not os.path.exists(fingerprint_path)
        assert not os.path.exists(index_dir)

    def test_build_failure_falls_back_to_existing_index(
        self, corpus_path, fingerprint_path, index_dir
    ):
        """Test that the previous index stays authoritative after a failed rebuild."""
        prepare_index(corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder()))
        old_fingerprint = read_fingerprint(fingerprint_path)
        before = snapshot(index_dir)

        with open(corpus_path, "a", encoding="utf-8", newline="") as f:
            f.write("Can I cancel?,Yes until shipped.\n")

        index, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(FailingEmbedder())
        )

        assert result.fell_back is True
        assert result.rebuilt is False
        assert len(index) == 3
        assert snapshot(index_dir) == before
        # Sidecar untouched so the next run tries again
        assert read_fingerprint(fingerprint_path) == old_fingerprint

    def test_persist_failure_without_existing_index_is_fatal(
        self, corpus_path, fingerprint_path, index_dir, embedder
    ):
        """Test that a failed persist does not record the fingerprint."""

        class BrokenPersistManager(VectorIndexManager):
            def persist(self, index, directory):
                raise StorageError("disk full")

        with pytest.raises(StorageError):
            prepare_index(corpus_path, fingerprint_path, index_dir, BrokenPersistManager(embedder))

        assert not os.path.exists(fingerprint_path)

    def test_parse_error_is_fatal(self, workdir, fingerprint_path, index_dir, embedder):
        """Test that a malformed corpus stops startup."""
        bad_corpus = os.path.join(workdir, "bad.csv")
        with open(bad_corpus, "w", encoding="utf-8") as f:
            f.write("question,answer\nonly-one-field\n")

        with pytest.raises(ParseError):
            prepare_index(bad_corpus, fingerprint_path, index_dir, VectorIndexManager(embedder))
        assert embedder.document_calls == 0

    def test_failed_swap_falls_back_to_existing_index(
        self, corpus_path, fingerprint_path, index_dir, monkeypatch
    ):
        """Test that a rename failure mid-swap leaves the previous index in service."""
        prepare_index(corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder()))
        old_fingerprint = read_fingerprint(fingerprint_path)

        with open(corpus_path, "a", encoding="utf-8", newline="") as f:
            f.write("Can I cancel?,Yes until shipped.\n")

        original_rename = Path.rename

        def failing_rename(self, target):
            if self.name.endswith(".staging"):
                raise OSError("rename failed")
            return original_rename(self, target)

        monkeypatch.setattr(Path, "rename", failing_rename)

        index, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder())
        )

        assert result.fell_back is True
        assert len(index) == 3
        assert os.path.isdir(index_dir)
        assert read_fingerprint(fingerprint_path) == old_fingerprint

    def test_unwritable_sidecar_is_not_fatal(
        self, corpus_path, fingerprint_path, index_dir, monkeypatch
    ):
        """Test that a failed sidecar write keeps the fresh index and rebuilds next time."""

        def failing_write(path, fingerprint):
            raise StorageError("sidecar not writable")

        monkeypatch.setattr(index_pipeline, "write_fingerprint", failing_write)

        index, result = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(KeywordEmbedder())
        )

        assert result.rebuilt is True
        assert len(index) == 3
        assert not os.path.exists(fingerprint_path)

        monkeypatch.undo()
        embedder = KeywordEmbedder()
        _, second = prepare_index(
            corpus_path, fingerprint_path, index_dir, VectorIndexManager(embedder)
        )
        assert second.rebuilt is True
        assert embedder.document_calls == 1
