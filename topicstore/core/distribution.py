"""Discrete probability distributions and ordered tables of them.

A topic model checkpoint is two tables of distributions: one distribution
over terms per topic (phi) and one distribution over topics per document
(theta). Both are dense, immutable and backed by float64 numpy arrays.
"""
import operator
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..exceptions import OutOfRangeError

DEFAULT_TOLERANCE = 1e-6


class DiscreteDistribution:
    """A probability mass function over the outcomes ``0 .. N-1``.

    Example:
        dist = DiscreteDistribution([0.5, 0.25, 0.25])
        dist.probability(1)   # 0.25
        dist.probability(7)   # 0.0, outside the support

    Args:
        probabilities: One non-negative value per outcome
    """

    __slots__ = ("_probs",)

    def __init__(self, probabilities: Union[Sequence[float], np.ndarray]):
        probs = np.array(probabilities, dtype=np.float64)
        if probs.ndim != 1:
            raise ValueError(f"expected a 1-d sequence, got shape {probs.shape}")
        if probs.size and (not np.isfinite(probs).all() or (probs < 0).any()):
            raise ValueError("probabilities must be finite and non-negative")
        probs.setflags(write=False)
        self._probs = probs

    @classmethod
    def from_weights(
        cls,
        weights: Union[Sequence[float], np.ndarray],
        prior: float = 0.0,
    ) -> "DiscreteDistribution":
        """Build a distribution by normalizing weights plus a symmetric prior.

        Args:
            weights: Non-negative weights (e.g. assignment counts)
            prior: Pseudo-count added to every outcome

        Returns:
            Normalized distribution

        Raises:
            ValueError: If the weights plus prior sum to zero
        """
        smoothed = np.asarray(weights, dtype=np.float64) + prior
        total = smoothed.sum()
        if total <= 0:
            raise ValueError("cannot normalize weights that sum to zero")
        return cls(smoothed / total)

    @classmethod
    def _from_array(cls, probs: np.ndarray) -> "DiscreteDistribution":
        # Used by the codec: values are taken as stored, without validation.
        dist = cls.__new__(cls)
        if probs.flags.writeable:
            probs.setflags(write=False)
        dist._probs = probs
        return dist

    def __len__(self) -> int:
        return int(self._probs.size)

    @property
    def size(self) -> int:
        """Number of outcomes in the support."""
        return int(self._probs.size)

    def probability(self, outcome: int) -> float:
        """Probability of ``outcome``; 0.0 for outcomes outside the support."""
        if 0 <= outcome < self._probs.size:
            return float(self._probs[outcome])
        return 0.0

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        for outcome, prob in enumerate(self._probs.tolist()):
            yield outcome, prob

    def as_array(self) -> np.ndarray:
        """Read-only view of the probabilities."""
        return self._probs

    def total(self) -> float:
        return float(self._probs.sum())

    def is_normalized(self, tolerance: float = DEFAULT_TOLERANCE) -> bool:
        """Check that the probabilities sum to 1 within ``tolerance``."""
        return abs(self.total() - 1.0) <= tolerance

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DiscreteDistribution):
            return NotImplemented
        return np.array_equal(self._probs, other._probs)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.size <= 6:
            body = ", ".join(f"{p:.4g}" for p in self._probs)
        else:
            head = ", ".join(f"{p:.4g}" for p in self._probs[:3])
            body = f"{head}, ... ({self.size} outcomes)"
        return f"DiscreteDistribution([{body}])"


class DistributionTable:
    """An immutable, ordered sequence of distributions over one support.

    Row ``i`` is the distribution for topic ``i`` (topic-term table) or
    for document ``i`` (document-topic table). Every row has the same
    number of outcomes.

    Args:
        distributions: Rows in id order
        num_outcomes: Support size of every row; inferred from the first
            row when omitted (0 for an empty table)
        kind: Name of the row id used in error messages ("topic", "document")
    """

    def __init__(
        self,
        distributions: Iterable[DiscreteDistribution],
        num_outcomes: Optional[int] = None,
        kind: str = "row",
    ):
        rows: List[DiscreteDistribution] = list(distributions)
        if num_outcomes is None:
            num_outcomes = len(rows[0]) if rows else 0
        for i, row in enumerate(rows):
            if len(row) != num_outcomes:
                raise ValueError(
                    f"{kind} {i} has {len(row)} outcomes, expected {num_outcomes}"
                )
        self._rows = tuple(rows)
        self._num_outcomes = num_outcomes
        self.kind = kind

    @classmethod
    def from_matrix(cls, matrix: Union[Sequence[Sequence[float]], np.ndarray],
                    kind: str = "row") -> "DistributionTable":
        """Build a table from a 2-d array, one row per distribution."""
        array = np.asarray(matrix, dtype=np.float64)
        if array.ndim != 2:
            raise ValueError(f"expected a 2-d matrix, got shape {array.shape}")
        return cls(
            (DiscreteDistribution(row) for row in array),
            num_outcomes=array.shape[1],
            kind=kind,
        )

    @property
    def num_outcomes(self) -> int:
        return self._num_outcomes

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index: int) -> DiscreteDistribution:
        index = operator.index(index)
        if not 0 <= index < len(self._rows):
            raise OutOfRangeError(self.kind, index, len(self._rows))
        return self._rows[index]

    def __iter__(self) -> Iterator[DiscreteDistribution]:
        return iter(self._rows)

    def to_matrix(self) -> np.ndarray:
        """Stack all rows into a ``(len(self), num_outcomes)`` array."""
        if not self._rows:
            return np.zeros((0, self._num_outcomes), dtype=np.float64)
        return np.vstack([row.as_array() for row in self._rows])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DistributionTable):
            return NotImplemented
        return (self._num_outcomes == other._num_outcomes
                and self._rows == other._rows)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (f"DistributionTable(kind={self.kind!r}, rows={len(self)}, "
                f"num_outcomes={self._num_outcomes})")
