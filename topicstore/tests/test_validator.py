"""Tests for the checkpoint validator."""

import struct

import pytest

from topicstore.checkpoint.store import CheckpointStore
from topicstore.checkpoint.validator import CheckpointValidator, ValidationSeverity
from topicstore.core.distribution import DistributionTable
from topicstore.core.models import CheckpointPair


@pytest.fixture
def validator():
    return CheckpointValidator(strict=False)


def _write(directory, theta, phi, label="final"):
    pair = CheckpointPair(
        doc_topic=DistributionTable.from_matrix(theta, kind="document"),
        topic_term=DistributionTable.from_matrix(phi, kind="topic"),
    )
    return CheckpointStore(directory).write(pair, label)


class TestValidCheckpoints:
    """Test snapshots that pass validation."""

    def test_valid_snapshot(self, validator, model_dir):
        result = validator.validate(model_dir)
        assert result.valid, f"Validation failed: {result.errors}"
        assert result.errors == []
        assert result.stats == {"num_topics": 2, "num_words": 4, "num_docs": 3}

    def test_label(self, validator, model_dir, pair):
        CheckpointStore(model_dir).write_iteration(pair, 4)
        assert validator.validate(model_dir, "results-4").valid


class TestValidatorErrors:
    """Test validator error detection."""

    def test_file_not_found(self, validator, tmp_path):
        result = validator.validate(tmp_path / "absent")
        assert not result.valid
        assert result.codes() == ["FILE_NOT_FOUND"]
        assert len(result.errors[0].details["paths"]) == 2

    def test_truncated(self, validator, model_dir):
        phi = model_dir / "final.phi.bin"
        phi.write_bytes(phi.read_bytes()[:-1])
        result = validator.validate(model_dir)
        assert not result.valid
        assert result.codes() == ["TRUNCATED"]
        assert str(phi) in result.errors[0].details["stream"]

    def test_corrupt_record(self, validator, model_dir):
        theta = model_dir / "final.theta.bin"
        theta.write_bytes(struct.pack("<QQQd", 1, 2, 1, 1.0))
        result = validator.validate(model_dir)
        assert result.codes() == ["CORRUPT"]

    def test_dimension_mismatch(self, validator, tmp_path):
        """Test theta covering a different number of topics than phi."""
        _write(tmp_path, theta=[[0.2, 0.3, 0.5]], phi=[[0.5, 0.5], [1.0, 0.0]])
        result = validator.validate(tmp_path)
        assert not result.valid
        assert "DIMENSION_MISMATCH" in result.codes()


class TestNormalization:
    """Test sum-to-one checks."""

    def test_not_normalized_is_warning(self, validator, tmp_path):
        _write(tmp_path, theta=[[0.5, 0.5]], phi=[[0.5, 0.4], [1.0, 0.0]])
        result = validator.validate(tmp_path)
        assert result.valid
        assert result.codes() == ["NOT_NORMALIZED"]
        assert result.errors[0].severity == ValidationSeverity.WARNING
        assert result.errors[0].details == {"kind": "topic", "rows": [0]}
        assert result.warning_count == 1

    def test_strict_mode(self, tmp_path):
        _write(tmp_path, theta=[[0.7, 0.7]], phi=[[0.5, 0.5], [1.0, 0.0]])
        result = CheckpointValidator(strict=True).validate(tmp_path)
        assert not result.valid
        assert result.error_count == 1
        assert "document 0 sums to 1.4" in result.errors[0].message

    def test_tolerance(self, tmp_path):
        _write(tmp_path, theta=[[0.5, 0.5]], phi=[[0.5, 0.4999], [1.0, 0.0]])
        assert CheckpointValidator(tolerance=1e-3, strict=True).validate(tmp_path).valid
