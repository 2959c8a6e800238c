"""Core data types: distributions, tables and query results."""
from .distribution import DiscreteDistribution, DistributionTable
from .models import CheckpointMetadata, CheckpointPair, Term, Topic

__all__ = [
    "DiscreteDistribution",
    "DistributionTable",
    "CheckpointMetadata",
    "CheckpointPair",
    "Term",
    "Topic",
]
