"""Tests for the checkpoint store."""

import pytest

from topicstore.checkpoint.store import CheckpointStore
from topicstore.core.models import CheckpointMetadata
from topicstore.exceptions import (
    CheckpointStoreError,
    CorruptCheckpointError,
    MissingCheckpointError,
    TruncatedStreamError,
)


@pytest.fixture
def store(tmp_path):
    return CheckpointStore(tmp_path / "nested" / "lda-model")


class TestWrite:
    """Test writing snapshots."""

    def test_write_creates_directory(self, store, pair):
        """Test that a missing model directory is created."""
        paths = store.write(pair, "final")
        assert store.directory.is_dir()
        assert paths.theta.name == "final.theta.bin"
        assert paths.phi.name == "final.phi.bin"
        assert paths.theta.is_file() and paths.phi.is_file()

    def test_write_iteration_label(self, store, pair):
        paths = store.write_iteration(pair, 12)
        assert paths.theta.name == "results-12.theta.bin"
        assert CheckpointStore.iteration_label(12) == "results-12"

    def test_directory_is_a_file(self, tmp_path, pair):
        """Test that a file in place of the directory is reported."""
        blocker = tmp_path / "lda-model"
        blocker.write_text("not a directory")
        with pytest.raises(CheckpointStoreError, match="not a directory"):
            CheckpointStore(blocker).write(pair, "final")

    def test_write_overwrites(self, store, pair, phi_table):
        store.write(pair, "final")
        store.write(pair, "final")
        assert store.read("final").topic_term == phi_table


class TestRead:
    """Test resolving and reading snapshots."""

    def test_read_roundtrip(self, store, pair):
        store.write(pair, "final")
        loaded = store.read("final")
        assert loaded.doc_topic == pair.doc_topic
        assert loaded.topic_term == pair.topic_term
        assert (loaded.num_topics, loaded.num_words, loaded.num_docs) == (2, 4, 3)

    def test_missing_theta(self, store, pair):
        """Test that a missing theta file is named in the error."""
        paths = store.write(pair, "final")
        paths.theta.unlink()
        with pytest.raises(MissingCheckpointError) as exc:
            store.read("final")
        assert exc.value.paths == [str(paths.theta)]
        assert str(paths.theta) in str(exc.value)
        assert isinstance(exc.value, FileNotFoundError)

    def test_missing_phi(self, store, pair):
        paths = store.write(pair, "final")
        paths.phi.unlink()
        with pytest.raises(MissingCheckpointError) as exc:
            store.read("final")
        assert exc.value.paths == [str(paths.phi)]

    def test_both_missing(self, store):
        """Test that every missing path is reported, theta first."""
        paths = store.paths("final")
        with pytest.raises(MissingCheckpointError) as exc:
            with store.resolve("final"):
                pass
        assert exc.value.paths == [str(paths.theta), str(paths.phi)]

    def test_resolve_yields_open_streams(self, store, pair):
        store.write(pair, "final")
        with store.resolve() as ckpt:
            assert ckpt.label == "final"
            assert ckpt.theta.read(8)
            assert ckpt.phi.read(8)
        assert ckpt.theta.closed and ckpt.phi.closed

    def test_truncated_file_names_path(self, store, pair):
        paths = store.write(pair, "final")
        data = paths.phi.read_bytes()
        paths.phi.write_bytes(data[:-8])
        with pytest.raises(TruncatedStreamError) as exc:
            store.read("final")
        assert str(paths.phi) in exc.value.stream_name


class TestListing:
    """Test snapshot listing and latest-iteration lookup."""

    def test_labels_sorted(self, store, pair):
        for label in ("final", "results-2", "results-10"):
            store.write(pair, label)
        assert store.labels() == ["final", "results-10", "results-2"]

    def test_iterations_numeric_order(self, store, pair):
        """Test that iterations sort by number, not by name."""
        for iteration in (10, 2, 30):
            store.write_iteration(pair, iteration)
        store.write(pair, "final")
        assert store.iterations() == [2, 10, 30]
        assert store.latest_iteration() == 30

    def test_incomplete_snapshot_ignored(self, store, pair):
        paths = store.write_iteration(pair, 50)
        store.write_iteration(pair, 40)
        paths.phi.unlink()
        assert store.iterations() == [40]
        assert not store.exists("results-50")

    def test_missing_directory(self, tmp_path):
        store = CheckpointStore(tmp_path / "absent")
        assert store.labels() == []
        assert store.latest_iteration() is None

    def test_resolve_latest(self, store, pair):
        store.write_iteration(pair, 3)
        store.write_iteration(pair, 7)
        with store.resolve_latest() as ckpt:
            assert ckpt.label == "results-7"

    def test_resolve_latest_without_iterations(self, store, pair):
        store.write(pair, "final")
        with pytest.raises(MissingCheckpointError, match="results-"):
            with store.resolve_latest():
                pass


class TestState:
    """Test training state persistence."""

    def test_state_roundtrip(self, store):
        metadata = CheckpointMetadata(
            num_topics=2, num_words=4, num_docs=3,
            iteration=20, converged=True, seed=7, extra={"sampler": "test"},
        )
        store.write_state(metadata)
        assert store.read_state() == metadata

    def test_no_state(self, store):
        assert store.read_state() is None

    @pytest.mark.parametrize("content", [
        "{not json",
        "[1, 2]",
        '{"num_topics": 2}',
    ])
    def test_invalid_state(self, store, content):
        """Test that unreadable state is reported as a corrupt checkpoint."""
        store.directory.mkdir(parents=True)
        (store.directory / "state.json").write_text(content, encoding="utf-8")
        with pytest.raises(CorruptCheckpointError, match="invalid training state"):
            store.read_state()
