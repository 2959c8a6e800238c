"""Data models for topicstore."""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional

from .distribution import DistributionTable


@dataclass(frozen=True)
class Term:
    """A term returned from a topic query.

    Attributes:
        term_id: Vocabulary id of the term
        text: Term text, empty when the vocabulary cannot resolve the id
        probability: Probability of the term under the queried topic
    """

    term_id: int
    text: str
    probability: float


@dataclass(frozen=True)
class Topic:
    """A topic id with its probability under some document."""

    topic_id: int
    probability: float


@dataclass(frozen=True)
class CheckpointPair:
    """The two tables that make up one checkpoint.

    Attributes:
        doc_topic: One distribution over topics per document (theta)
        topic_term: One distribution over terms per topic (phi)
    """

    doc_topic: DistributionTable
    topic_term: DistributionTable

    @property
    def num_topics(self) -> int:
        return len(self.topic_term)

    @property
    def num_words(self) -> int:
        return self.topic_term.num_outcomes

    @property
    def num_docs(self) -> int:
        return len(self.doc_topic)


@dataclass
class CheckpointMetadata:
    """Training state recorded next to a model's checkpoints.

    Attributes:
        num_topics: Number of topics
        num_words: Vocabulary size
        num_docs: Number of documents
        iteration: Iterations elapsed when the state was recorded
        converged: Whether the sampler reported convergence
        alpha: Symmetric document-topic Dirichlet prior
        beta: Symmetric topic-term Dirichlet prior
        max_iters: Iteration budget of the training run
        save_period: Checkpoint every this many iterations (None = never)
        seed: Random seed of the training run
        model_prefix: Directory holding the checkpoints
        extra: Strategy-specific values
    """

    num_topics: int
    num_words: int
    num_docs: int
    iteration: int = 0
    converged: bool = False
    alpha: float = 0.1
    beta: float = 0.1
    max_iters: Optional[int] = None
    save_period: Optional[int] = None
    seed: Optional[int] = None
    model_prefix: str = "lda-model"
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to a JSON-serializable dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckpointMetadata":
        """Create metadata from a dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.__annotations__})
