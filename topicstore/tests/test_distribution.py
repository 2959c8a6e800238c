"""Tests for discrete distributions and distribution tables."""

import numpy as np
import pytest

from topicstore.core.distribution import DiscreteDistribution, DistributionTable
from topicstore.exceptions import OutOfRangeError


class TestDiscreteDistribution:
    """Test a single distribution."""

    def test_probability_lookup(self):
        """Test lookup inside and outside the support."""
        dist = DiscreteDistribution([0.5, 0.25, 0.25])
        assert dist.size == 3
        assert len(dist) == 3
        assert dist.probability(1) == 0.25
        assert dist.probability(3) == 0.0
        assert dist.probability(-1) == 0.0

    def test_from_weights_normalizes(self):
        """Test that weights are divided by their sum."""
        dist = DiscreteDistribution.from_weights([1, 3])
        np.testing.assert_allclose(dist.as_array(), [0.25, 0.75])
        assert dist.is_normalized()

    def test_from_weights_with_prior(self):
        """Test smoothing with a symmetric prior."""
        dist = DiscreteDistribution.from_weights([0, 0, 2], prior=1.0)
        np.testing.assert_allclose(dist.as_array(), [0.2, 0.2, 0.6])
        assert abs(dist.total() - 1.0) < 1e-12

    def test_from_zero_weights_fails(self):
        """Test that all-zero weights cannot be normalized."""
        with pytest.raises(ValueError):
            DiscreteDistribution.from_weights([0, 0])

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError):
            DiscreteDistribution([0.5, -0.1, 0.6])

    def test_rejects_non_finite_values(self):
        with pytest.raises(ValueError):
            DiscreteDistribution([0.5, float("nan")])

    def test_rejects_matrix(self):
        with pytest.raises(ValueError):
            DiscreteDistribution([[0.5, 0.5]])

    def test_is_immutable(self):
        """Test that the backing array is a read-only copy."""
        source = np.array([0.5, 0.5])
        dist = DiscreteDistribution(source)
        source[0] = 1.0
        assert dist.probability(0) == 0.5
        assert not dist.as_array().flags.writeable
        with pytest.raises(ValueError):
            dist.as_array()[0] = 0.0

    def test_not_normalized(self):
        dist = DiscreteDistribution([0.5, 0.4])
        assert not dist.is_normalized()
        assert dist.is_normalized(tolerance=0.2)

    def test_iteration_yields_outcomes(self):
        dist = DiscreteDistribution([0.75, 0.25])
        assert list(dist) == [(0, 0.75), (1, 0.25)]

    def test_equality(self):
        assert DiscreteDistribution([0.5, 0.5]) == DiscreteDistribution([0.5, 0.5])
        assert DiscreteDistribution([0.5, 0.5]) != DiscreteDistribution([0.4, 0.6])

    def test_empty_distribution(self):
        dist = DiscreteDistribution([])
        assert dist.size == 0
        assert dist.probability(0) == 0.0


class TestDistributionTable:
    """Test ordered tables of distributions."""

    def test_from_matrix(self):
        """Test building a table from a 2-d array."""
        table = DistributionTable.from_matrix([[0.4, 0.6], [1.0, 0.0]], kind="topic")
        assert len(table) == 2
        assert table.num_outcomes == 2
        assert table[1].probability(0) == 1.0
        np.testing.assert_array_equal(table.to_matrix(), [[0.4, 0.6], [1.0, 0.0]])

    def test_row_width_mismatch(self):
        """Test that every row must share one support size."""
        rows = [DiscreteDistribution([0.5, 0.5]), DiscreteDistribution([1.0])]
        with pytest.raises(ValueError, match="row 1 has 1 outcomes"):
            DistributionTable(rows)

    def test_explicit_width_mismatch(self):
        with pytest.raises(ValueError):
            DistributionTable([DiscreteDistribution([0.5, 0.5])], num_outcomes=3)

    def test_out_of_range_index(self):
        """Test that ids outside [0, len) are rejected."""
        table = DistributionTable.from_matrix([[1.0]], kind="document")
        with pytest.raises(OutOfRangeError, match="document 1 out of range"):
            table[1]
        with pytest.raises(IndexError):
            table[-1]

    def test_empty_table(self):
        table = DistributionTable([])
        assert len(table) == 0
        assert table.num_outcomes == 0
        assert table.to_matrix().shape == (0, 0)

    def test_iteration_order(self, phi_table):
        rows = list(phi_table)
        assert len(rows) == 2
        assert rows[1].probability(3) == 0.7

    def test_equality(self, phi_table):
        same = DistributionTable.from_matrix(phi_table.to_matrix(), kind="topic")
        assert same == phi_table
        assert DistributionTable.from_matrix([[1.0, 0.0]]) != phi_table
