"""Tests for bounded top-k selection."""

import numpy as np
import pytest

from topicstore.query.topk import TopKSelector, select_top_k


class TestTopKSelector:
    """Test the heap-backed selector."""

    def test_keeps_best(self):
        selector = TopKSelector(2)
        selector.extend(enumerate([0.1, 0.4, 0.2, 0.3]))
        assert selector.results() == [(1, 0.4), (3, 0.3)]
        assert len(selector) == 2

    def test_equal_score_does_not_displace(self):
        """Test that a later item with an equal score is rejected."""
        selector = TopKSelector(1)
        assert selector.push(0, 0.5)
        assert not selector.push(1, 0.5)
        assert selector.push(2, 0.6)
        assert selector.results() == [(2, 0.6)]

    def test_zero_capacity(self):
        selector = TopKSelector(0)
        assert not selector.push(0, 1.0)
        assert selector.results() == []

    def test_negative_capacity(self):
        with pytest.raises(ValueError):
            TopKSelector(-1)


class TestSelectTopK:
    """Test selection over score vectors."""

    def test_ties_prefer_lower_index(self):
        """Test that equal scores are ordered by ascending index."""
        assert select_top_k([0.25, 0.25, 0.25, 0.25], 2) == [(0, 0.25), (1, 0.25)]
        assert select_top_k([0.1, 0.4, 0.4, 0.3], 3) == [(1, 0.4), (2, 0.4), (3, 0.3)]

    @pytest.mark.parametrize("k", [0, 1, 3, 4, 10])
    def test_result_size(self, k):
        """Test that min(k, n) items come back."""
        assert len(select_top_k([0.4, 0.3, 0.2, 0.1], k)) == min(k, 4)

    def test_matches_full_sort(self):
        """Test agreement with sorting every score."""
        scores = np.random.default_rng(0).random(500)
        # Repeat a few values to exercise tie handling
        scores[::7] = 0.99
        expected = sorted(range(len(scores)), key=lambda i: (-scores[i], i))[:25]
        result = select_top_k(scores, 25)
        assert [i for i, _ in result] == expected
        np.testing.assert_array_equal([s for _, s in result], scores[expected])

    def test_descending_scores(self):
        result = select_top_k([0.05, 0.6, 0.15, 0.2], 4)
        scores = [s for _, s in result]
        assert scores == sorted(scores, reverse=True)

    def test_empty_input(self):
        assert select_top_k([], 5) == []
