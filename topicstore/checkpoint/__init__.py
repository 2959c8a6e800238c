"""Checkpoint format, storage and validation.

Usage:
    from topicstore.checkpoint import CheckpointStore, CheckpointValidator
"""

from .codec import (
    decode_doc_topic,
    decode_table,
    decode_topic_term,
    encode_doc_topic,
    encode_table,
    encode_topic_term,
)
from .store import CheckpointPaths, CheckpointStore, ResolvedCheckpoint
from .validator import (
    CheckpointValidator,
    ValidationError,
    ValidationResult,
    ValidationSeverity,
)

__all__ = [
    "CheckpointStore",
    "CheckpointPaths",
    "ResolvedCheckpoint",
    "CheckpointValidator",
    "ValidationResult",
    "ValidationError",
    "ValidationSeverity",
    "encode_table",
    "encode_topic_term",
    "encode_doc_topic",
    "decode_table",
    "decode_topic_term",
    "decode_doc_topic",
]
