"""Checkpoint Store - name, write, list and resolve model snapshots.

A snapshot is identified by a label and stored as two files in the model
directory:

    <directory>/
    ├── results-10.theta.bin     document-topic table at iteration 10
    ├── results-10.phi.bin       topic-term table at iteration 10
    ├── final.theta.bin
    ├── final.phi.bin
    └── state.json               training state used to resume

Writing a pair is not transactional: a crash between the two files leaves
a mismatched pair behind. The store does no locking; callers that write
from several workers must serialize their calls.
"""

import json
import logging
import re
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from ..core.models import CheckpointMetadata, CheckpointPair
from ..exceptions import (
    CheckpointStoreError,
    CorruptCheckpointError,
    MissingCheckpointError,
)
from ..utils.progress import ProgressReporter
from .codec import (
    DOC_TOPIC_STREAM,
    TOPIC_TERM_STREAM,
    decode_doc_topic,
    decode_topic_term,
    encode_doc_topic,
    encode_topic_term,
)

logger = logging.getLogger(__name__)

THETA_SUFFIX = ".theta.bin"
PHI_SUFFIX = ".phi.bin"
STATE_FILE = "state.json"
FINAL_LABEL = "final"
ITERATION_PREFIX = "results-"

_ITERATION_RE = re.compile(r"^results-(\d+)$")


@dataclass(frozen=True)
class CheckpointPaths:
    """File paths of one snapshot."""
    theta: Path
    phi: Path

    def missing(self) -> List[Path]:
        """Paths that do not exist, theta first."""
        return [p for p in (self.theta, self.phi) if not p.is_file()]


@dataclass
class ResolvedCheckpoint:
    """An opened snapshot. Streams are closed when the resolve block exits."""
    label: str
    paths: CheckpointPaths
    theta: BinaryIO
    phi: BinaryIO


class CheckpointStore:
    """Manages the snapshot files of one model directory.

    Example:
        store = CheckpointStore("lda-model")
        store.write(pair, "final")
        store.write_iteration(pair, 20)      # results-20.{theta,phi}.bin

        with store.resolve("final") as ckpt:
            model = TopicModel(ckpt.theta, ckpt.phi)

        pair = store.read(store.iteration_label(store.latest_iteration()))
    """

    def __init__(self, directory: Union[str, Path]):
        """Initialize the store. The directory is created lazily on write.

        Args:
            directory: Model directory (the configured model prefix)
        """
        self.directory = Path(directory)

    @staticmethod
    def iteration_label(iteration: int) -> str:
        """Label of the snapshot taken after ``iteration`` iterations."""
        return f"{ITERATION_PREFIX}{int(iteration)}"

    def paths(self, label: str) -> CheckpointPaths:
        return CheckpointPaths(
            theta=self.directory / f"{label}{THETA_SUFFIX}",
            phi=self.directory / f"{label}{PHI_SUFFIX}",
        )

    def _ensure_directory(self) -> None:
        if self.directory.exists() and not self.directory.is_dir():
            raise CheckpointStoreError(
                f"checkpoint path exists and is not a directory: {self.directory}"
            )
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CheckpointStoreError(
                f"cannot create checkpoint directory {self.directory}: {e}"
            ) from e

    # =========================================================================
    # Writing
    # =========================================================================

    def write(self, pair: CheckpointPair, label: str) -> CheckpointPaths:
        """Write a snapshot under ``label``.

        Args:
            pair: Document-topic and topic-term tables
            label: Snapshot name, e.g. "final" or "results-12"

        Returns:
            Paths of the written files

        Raises:
            CheckpointStoreError: If the directory cannot be used
        """
        self._ensure_directory()
        paths = self.paths(label)

        with open(paths.theta, "wb") as f:
            encode_doc_topic(f, pair.doc_topic)
        with open(paths.phi, "wb") as f:
            encode_topic_term(f, pair.topic_term)

        logger.info(
            "Wrote checkpoint %s (%d topics, %d words, %d docs) to %s",
            label, pair.num_topics, pair.num_words, pair.num_docs, self.directory,
        )
        return paths

    def write_iteration(self, pair: CheckpointPair, iteration: int) -> CheckpointPaths:
        """Write a snapshot labelled with an iteration number."""
        return self.write(pair, self.iteration_label(iteration))

    def write_state(self, metadata: CheckpointMetadata) -> Path:
        """Record training state so a later run can resume from it."""
        self._ensure_directory()
        state_path = self.directory / STATE_FILE
        state_path.write_text(json.dumps(metadata.to_dict(), indent=2), encoding="utf-8")
        return state_path

    # =========================================================================
    # Reading
    # =========================================================================

    @contextmanager
    def resolve(self, label: str = FINAL_LABEL) -> Iterator[ResolvedCheckpoint]:
        """Open both files of a snapshot for reading.

        Both paths are checked before either file is opened.

        Raises:
            MissingCheckpointError: Naming every missing path
        """
        paths = self.paths(label)
        missing = paths.missing()
        if missing:
            raise MissingCheckpointError(missing)

        with open(paths.theta, "rb") as theta, open(paths.phi, "rb") as phi:
            yield ResolvedCheckpoint(label=label, paths=paths, theta=theta, phi=phi)

    def read(
        self,
        label: str = FINAL_LABEL,
        progress: Optional[ProgressReporter] = None,
    ) -> CheckpointPair:
        """Decode a snapshot into memory.

        Raises:
            MissingCheckpointError: If either file is absent
            TruncatedStreamError: If either file ends early
            CorruptCheckpointError: If a record disagrees with its header
        """
        with self.resolve(label) as ckpt:
            topic_term = decode_topic_term(
                ckpt.phi, progress, name=f"{TOPIC_TERM_STREAM} {ckpt.paths.phi}"
            )
            doc_topic = decode_doc_topic(
                ckpt.theta, progress, name=f"{DOC_TOPIC_STREAM} {ckpt.paths.theta}"
            )
        return CheckpointPair(doc_topic=doc_topic, topic_term=topic_term)

    def read_state(self) -> Optional[CheckpointMetadata]:
        """Load recorded training state, or None if none was written.

        Raises:
            CorruptCheckpointError: If the state file is not valid state JSON
        """
        state_path = self.directory / STATE_FILE
        if not state_path.is_file():
            return None
        try:
            data = json.loads(state_path.read_text(encoding="utf-8"))
            return CheckpointMetadata.from_dict(data)
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            raise CorruptCheckpointError(f"invalid training state {state_path}: {e}") from e

    # =========================================================================
    # Listing
    # =========================================================================

    def exists(self, label: str) -> bool:
        """Check if both files of a snapshot exist."""
        return not self.paths(label).missing()

    def labels(self) -> List[str]:
        """Labels of all complete snapshots, sorted by name."""
        if not self.directory.is_dir():
            return []
        found = set()
        for theta in self.directory.glob(f"*{THETA_SUFFIX}"):
            label = theta.name[: -len(THETA_SUFFIX)]
            if self.exists(label):
                found.add(label)
        return sorted(found)

    def iterations(self) -> List[int]:
        """Iteration numbers of all complete ``results-N`` snapshots, ascending."""
        numbers = []
        for label in self.labels():
            match = _ITERATION_RE.match(label)
            if match:
                numbers.append(int(match.group(1)))
        return sorted(numbers)

    def latest_iteration(self) -> Optional[int]:
        """Highest iteration with a complete snapshot, or None."""
        numbers = self.iterations()
        return numbers[-1] if numbers else None

    @contextmanager
    def resolve_latest(self) -> Iterator[ResolvedCheckpoint]:
        """Open the most recent iteration snapshot.

        Raises:
            MissingCheckpointError: If no iteration snapshot exists
        """
        latest = self.latest_iteration()
        if latest is None:
            pattern = self.directory / f"{ITERATION_PREFIX}*{THETA_SUFFIX}"
            raise MissingCheckpointError([pattern])
        with self.resolve(self.iteration_label(latest)) as ckpt:
            yield ckpt
