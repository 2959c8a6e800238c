"""Custom exceptions for topicstore."""
from typing import Iterable, List


class TopicStoreError(Exception):
    """Base exception for all topicstore errors."""

    pass


class ConfigurationError(TopicStoreError):
    """Raised when configuration is invalid or missing."""

    pass


class CheckpointError(TopicStoreError):
    """Base class for errors reading or writing a checkpoint."""

    pass


class MissingCheckpointError(CheckpointError, FileNotFoundError):
    """Raised when one or both files of a checkpoint pair do not exist."""

    def __init__(self, paths: Iterable[str]):
        self.paths: List[str] = [str(p) for p in paths]
        super().__init__(
            "missing checkpoint file(s): " + ", ".join(self.paths)
        )

    def __str__(self) -> str:
        return self.args[0]


class TruncatedStreamError(CheckpointError):
    """Raised when a stream ends before its declared records are read."""

    def __init__(self, stream_name: str, detail: str = ""):
        self.stream_name = stream_name
        message = f"{stream_name} ended unexpectedly"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class CorruptCheckpointError(CheckpointError):
    """Raised when a stream is readable but its contents are inconsistent."""

    pass


class CheckpointStoreError(TopicStoreError):
    """Raised when the checkpoint directory cannot be used."""

    pass


class OutOfRangeError(TopicStoreError, IndexError):
    """Raised when a document or topic id is outside the model's bounds."""

    def __init__(self, kind: str, value: int, bound: int):
        self.kind = kind
        self.value = value
        self.bound = bound
        super().__init__(f"{kind} {value} out of range [0, {bound})")


class InferenceError(TopicStoreError):
    """Raised when an inference strategy cannot be constructed or run."""

    pass

