"""Shared fixtures for topicstore tests."""

import io

import pytest

from topicstore.checkpoint.codec import encode_doc_topic, encode_topic_term
from topicstore.checkpoint.store import CheckpointStore
from topicstore.core.distribution import DistributionTable
from topicstore.core.models import CheckpointPair
from topicstore.inference.base import LdaModel

PHI = [
    [0.4, 0.3, 0.2, 0.1],
    [0.1, 0.1, 0.1, 0.7],
]

THETA = [
    [0.9, 0.1],
    [0.2, 0.8],
    [0.5, 0.5],
]

WORDS = ["model", "topic", "term", "corpus"]


class FakeLda(LdaModel):
    """Deterministic strategy returning the fixed PHI table."""

    def __init__(self, lda_config, num_docs=3, converge_at=None):
        super().__init__(num_docs, len(PHI[0]), lda_config)
        self.converge_at = converge_at
        self.performed = []
        self.restored = None

    @classmethod
    def from_config(cls, config, lda_config):
        return cls(lda_config, num_docs=int(config.get("corpus", {}).get("docs", 3)))

    def perform_iteration(self, iteration):
        self.performed.append(iteration)
        return self.converge_at is not None and iteration >= self.converge_at

    def compute_term_topic_probability(self, term, topic):
        return PHI[topic][term]

    def compute_doc_topic_probability(self, doc, topic):
        return 1.0 / self.num_topics()

    def restore(self, pair):
        self.restored = pair


@pytest.fixture
def phi_table():
    return DistributionTable.from_matrix(PHI, kind="topic")


@pytest.fixture
def theta_table():
    return DistributionTable.from_matrix(THETA, kind="document")


@pytest.fixture
def pair(theta_table, phi_table):
    return CheckpointPair(doc_topic=theta_table, topic_term=phi_table)


@pytest.fixture
def streams(theta_table, phi_table):
    """In-memory (theta, phi) streams positioned at the start."""
    theta, phi = io.BytesIO(), io.BytesIO()
    encode_doc_topic(theta, theta_table)
    encode_topic_term(phi, phi_table)
    theta.seek(0)
    phi.seek(0)
    return theta, phi


@pytest.fixture
def model_dir(tmp_path, pair):
    """A model directory holding a ``final`` snapshot."""
    directory = tmp_path / "lda-model"
    CheckpointStore(directory).write(pair, "final")
    return directory


@pytest.fixture
def vocab_file(tmp_path):
    path = tmp_path / "vocab.txt"
    path.write_text("\n".join(WORDS) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def fake_lda():
    return FakeLda
