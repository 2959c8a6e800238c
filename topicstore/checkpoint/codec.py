"""Checkpoint codec - binary encoding of distribution tables.

Stream layout, little-endian, integers are unsigned 64-bit:

    u64 rows          number of distributions that follow
    u64 outcomes      support size of every distribution
    rows x record

Each record is a dense, self-describing distribution:

    u64 n             number of outcomes (always equal to the header width)
    n x float64       probability of outcome 0 .. n-1

A topic-term stream (``.phi.bin``) has ``rows = num_topics`` and
``outcomes = num_words``; a document-topic stream (``.theta.bin``) has
``rows = num_docs`` and ``outcomes = num_topics``.

Example:
    with open("final.phi.bin", "wb") as f:
        encode_topic_term(f, phi)

    with open("final.phi.bin", "rb") as f:
        phi = decode_topic_term(f)
"""
import logging
from typing import BinaryIO, Optional, Tuple

import numpy as np

from ..core.distribution import DiscreteDistribution, DistributionTable
from ..exceptions import CorruptCheckpointError, TruncatedStreamError
from ..utils.progress import ProgressReporter

logger = logging.getLogger(__name__)

COUNT_DTYPE = np.dtype("<u8")
PROB_DTYPE = np.dtype("<f8")

HEADER_SIZE = 2 * COUNT_DTYPE.itemsize

TOPIC_TERM_STREAM = "topic term stream"
DOC_TOPIC_STREAM = "document topic stream"

# Upper bound on a single read() call so a corrupt length cannot force a
# huge allocation before truncation is noticed.
_READ_CHUNK = 1 << 20


def _read_exact(stream: BinaryIO, size: int, name: str, what: str) -> bytes:
    """Read exactly ``size`` bytes or raise TruncatedStreamError."""
    chunks = []
    remaining = size
    while remaining > 0:
        try:
            chunk = stream.read(min(remaining, _READ_CHUNK))
        except OSError as e:
            raise TruncatedStreamError(name, f"read failed in {what}: {e}") from e
        if not chunk:
            got = size - remaining
            raise TruncatedStreamError(
                name, f"{what}: expected {size} bytes, got {got}"
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


# =========================================================================
# Encoding
# =========================================================================

def write_distribution(stream: BinaryIO, dist: DiscreteDistribution) -> int:
    """Write one distribution record.

    Returns:
        Number of bytes written
    """
    probs = dist.as_array().astype(PROB_DTYPE, copy=False)
    payload = np.array([probs.size], dtype=COUNT_DTYPE).tobytes() + probs.tobytes()
    stream.write(payload)
    return len(payload)


def encode_table(stream: BinaryIO, table: DistributionTable) -> int:
    """Write a table header followed by every row in id order.

    Args:
        stream: Binary stream opened for writing
        table: Table to encode

    Returns:
        Number of bytes written
    """
    header = np.array([len(table), table.num_outcomes], dtype=COUNT_DTYPE)
    stream.write(header.tobytes())
    written = HEADER_SIZE
    for dist in table:
        written += write_distribution(stream, dist)
    return written


def encode_topic_term(stream: BinaryIO, table: DistributionTable) -> int:
    """Encode a topic-term (phi) table: ``num_topics``, ``num_words``, rows."""
    return encode_table(stream, table)


def encode_doc_topic(stream: BinaryIO, table: DistributionTable) -> int:
    """Encode a document-topic (theta) table: ``num_docs``, ``num_topics``, rows."""
    return encode_table(stream, table)


# =========================================================================
# Decoding
# =========================================================================

def decode_header(stream: BinaryIO, name: str) -> Tuple[int, int]:
    """Read the two header fields of a table stream.

    Returns:
        ``(rows, outcomes)``

    Raises:
        TruncatedStreamError: If the stream ends inside the header
    """
    data = _read_exact(stream, HEADER_SIZE, name, "header")
    rows, outcomes = np.frombuffer(data, dtype=COUNT_DTYPE).tolist()
    return rows, outcomes


def read_distribution(
    stream: BinaryIO,
    name: str,
    expected_size: Optional[int] = None,
    index: int = 0,
) -> DiscreteDistribution:
    """Read one distribution record.

    Args:
        stream: Binary stream positioned at a record
        name: Stream name for error messages
        expected_size: Required outcome count, if known
        index: Record index for error messages

    Raises:
        TruncatedStreamError: If the stream ends inside the record
        CorruptCheckpointError: If the record size disagrees with expected_size
    """
    what = f"record {index}"
    size_bytes = _read_exact(stream, COUNT_DTYPE.itemsize, name, what)
    size = int(np.frombuffer(size_bytes, dtype=COUNT_DTYPE)[0])
    if expected_size is not None and size != expected_size:
        raise CorruptCheckpointError(
            f"{name}: {what} has {size} outcomes, header declares {expected_size}"
        )
    data = _read_exact(stream, size * PROB_DTYPE.itemsize, name, what)
    probs = np.frombuffer(data, dtype=PROB_DTYPE).astype(np.float64, copy=False)
    return DiscreteDistribution._from_array(probs)


def decode_table(
    stream: BinaryIO,
    name: str,
    kind: str = "row",
    progress: Optional[ProgressReporter] = None,
) -> DistributionTable:
    """Read a header and exactly the declared number of records.

    Probability sums are not checked here; see CheckpointValidator.

    Args:
        stream: Binary stream opened for reading
        name: Stream name used in error messages
        kind: Row id name for the returned table ("topic", "document")
        progress: Optional reporter, updated once per record

    Returns:
        The decoded table

    Raises:
        TruncatedStreamError: If the stream ends before all records are read
        CorruptCheckpointError: If a record's size disagrees with the header
    """
    rows, outcomes = decode_header(stream, name)
    logger.debug("Decoding %s: %d rows x %d outcomes", name, rows, outcomes)

    if progress is not None:
        progress.start(f"Loading {name}", rows)

    distributions = []
    for i in range(rows):
        distributions.append(read_distribution(stream, name, outcomes, i))
        if progress is not None:
            progress.update(i + 1)

    if progress is not None:
        progress.finish()

    return DistributionTable(distributions, num_outcomes=outcomes, kind=kind)


def decode_topic_term(
    stream: BinaryIO,
    progress: Optional[ProgressReporter] = None,
    name: str = TOPIC_TERM_STREAM,
) -> DistributionTable:
    """Decode a topic-term (phi) stream."""
    return decode_table(stream, name, kind="topic", progress=progress)


def decode_doc_topic(
    stream: BinaryIO,
    progress: Optional[ProgressReporter] = None,
    name: str = DOC_TOPIC_STREAM,
) -> DistributionTable:
    """Decode a document-topic (theta) stream."""
    return decode_table(stream, name, kind="document", progress=progress)
