"""topicstore - Topic model checkpoints and queries.

A Python library for working with trained topic models including:
- Probability distributions and distribution tables
- A binary checkpoint format for document-topic and topic-term tables
- A checkpoint store with final and per-iteration snapshots
- A read-only query engine with top-k term lookup
"""

from .checkpoint import CheckpointStore, CheckpointValidator
from .config import LdaConfig, TopicModelConfig
from .core.distribution import DiscreteDistribution, DistributionTable
from .core.models import CheckpointMetadata, CheckpointPair, Term, Topic
from .exceptions import (
    TopicStoreError,
    ConfigurationError,
    CheckpointError,
    MissingCheckpointError,
    TruncatedStreamError,
    CorruptCheckpointError,
    CheckpointStoreError,
    OutOfRangeError,
    InferenceError,
)
from .query import TopicModel, load_topic_model
from .vocabulary import Vocabulary

__version__ = "1.0.0"
__all__ = [
    "TopicModel",
    "load_topic_model",
    "CheckpointStore",
    "CheckpointValidator",
    "DiscreteDistribution",
    "DistributionTable",
    "CheckpointMetadata",
    "CheckpointPair",
    "Term",
    "Topic",
    "TopicModelConfig",
    "LdaConfig",
    "Vocabulary",
    "TopicStoreError",
    "ConfigurationError",
    "CheckpointError",
    "MissingCheckpointError",
    "TruncatedStreamError",
    "CorruptCheckpointError",
    "CheckpointStoreError",
    "OutOfRangeError",
    "InferenceError",
]
