"""Bounded top-k selection.

Keeps the ``k`` best ``(item_id, score)`` pairs seen so far in a min-heap
whose root is the weakest entry held. Feeding items in ascending id order
makes ties resolve to the lower id: an equal score never displaces an
entry that is already held.
"""
import heapq
from typing import Iterable, List, Tuple, Union

import numpy as np


class TopKSelector:
    """Select the ``k`` highest-scoring items in one pass.

    Example:
        selector = TopKSelector(2)
        for term_id, prob in enumerate([0.1, 0.4, 0.4, 0.3]):
            selector.push(term_id, prob)
        selector.results()   # [(1, 0.4), (2, 0.4)]

    Args:
        k: Capacity; 0 selects nothing
    """

    def __init__(self, k: int):
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.k = k
        # Entries are (score, -item_id): the root is the lowest score and,
        # among equal scores, the highest id.
        self._heap: List[Tuple[float, int]] = []

    def __len__(self) -> int:
        return len(self._heap)

    def push(self, item_id: int, score: float) -> bool:
        """Offer an item.

        Returns:
            True if the item is now held
        """
        if self.k == 0:
            return False
        entry = (score, -item_id)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True
        if score > self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def extend(self, items: Iterable[Tuple[int, float]]) -> None:
        for item_id, score in items:
            self.push(item_id, score)

    def results(self) -> List[Tuple[int, float]]:
        """Held items by descending score, then ascending id."""
        ordered = sorted(self._heap, key=lambda e: (-e[0], -e[1]))
        return [(-neg_id, score) for score, neg_id in ordered]


def select_top_k(
    scores: Union[np.ndarray, Iterable[float]], k: int
) -> List[Tuple[int, float]]:
    """Top ``k`` ``(index, score)`` pairs of a score vector.

    Scans indices in ascending order, so equal scores keep the lower index.
    Runs in O(n log k) time and O(k) extra space.
    """
    selector = TopKSelector(k)
    if isinstance(scores, np.ndarray):
        scores = scores.tolist()
    for index, score in enumerate(scores):
        selector.push(index, score)
    return selector.results()
