"""Tests for the statistics module."""

import numpy as np
import pytest
from scipy.stats import chi2

from trim_wald import RankAssertionFailure, SingularCovariance
from trim_wald.statistics import (
    chi2_pvalue,
    count_null_eigenvalues,
    drop_dependent_rows,
    elementwise_wald,
    quadratic_wald,
    scalar_wald,
)


def _constrained_covariance(J: int, seed: int = 0) -> np.ndarray:
    """Covariance of J deviations constrained to zero level and zero trend."""
    t = np.arange(1, J + 1, dtype=float)
    X = np.column_stack([np.ones(J), t])
    P = np.eye(J) - X @ np.linalg.solve(X.T @ X, X.T)
    D = np.diag(np.random.default_rng(seed).uniform(0.5, 2.0, J))
    return P @ D @ P


class TestChi2PValue:
    def test_matches_cdf(self):
        assert chi2_pvalue(4.0, 1) == pytest.approx(1 - chi2.cdf(4.0, 1))

    def test_scalar_returns_float(self):
        assert isinstance(chi2_pvalue(1.0, 2), float)

    def test_vectorised(self):
        W = np.array([0.5, 1.0, 9.0])
        np.testing.assert_allclose(chi2_pvalue(W, 3), 1 - chi2.cdf(W, 3))

    def test_monotone_in_w(self):
        p = chi2_pvalue(np.linspace(0, 30, 61), 4)
        assert np.all(np.diff(p) <= 0)

    def test_zero_statistic_gives_one(self):
        assert chi2_pvalue(0.0, 2) == pytest.approx(1.0)


class TestScalarWald:
    def test_known_value(self):
        W, df, p = scalar_wald(0.5, 0.0625)
        assert W == 0.5**2 / 0.0625
        assert df == 1
        assert p == pytest.approx(0.0455, abs=1e-4)

    def test_sign_does_not_matter(self):
        assert scalar_wald(-0.3, 0.01)[0] == scalar_wald(0.3, 0.01)[0]

    @pytest.mark.parametrize("var", [0.0, -0.1, float("nan")])
    def test_non_positive_variance_raises(self, var):
        with pytest.raises(SingularCovariance):
            scalar_wald(0.5, var)


class TestElementwiseWald:
    def test_uses_diagonal(self):
        theta = np.array([0.2, 0.3, -0.4])
        V = np.diag([0.01, 0.03, 0.035])
        W, df, p = elementwise_wald(theta, V)
        np.testing.assert_allclose(W, theta**2 / np.diag(V))
        assert df == 1
        assert p.shape == (3,)

    def test_invariant_to_off_diagonal(self):
        theta = np.array([1.0, -2.0])
        V = np.array([[0.5, 0.0], [0.0, 2.0]])
        V_corr = np.array([[0.5, 0.4], [0.4, 2.0]])
        np.testing.assert_array_equal(
            elementwise_wald(theta, V)[0], elementwise_wald(theta, V_corr)[0]
        )

    def test_zero_variance_raises(self):
        with pytest.raises(SingularCovariance, match="offending positions"):
            elementwise_wald(np.array([1.0, 1.0]), np.diag([1.0, 0.0]))


class TestQuadraticWald:
    def test_identity_covariance_is_sum_of_squares(self):
        theta = np.array([1.0, 2.0, 2.0])
        W, df, p = quadratic_wald(theta, np.eye(3))
        assert W == pytest.approx(9.0)
        assert df == 3
        assert p == pytest.approx(1 - chi2.cdf(9.0, 3))

    def test_matches_explicit_inverse(self):
        rng = np.random.default_rng(7)
        L = rng.standard_normal((4, 4))
        V = L @ L.T + 0.5 * np.eye(4)
        theta = rng.standard_normal(4)
        W, _, _ = quadratic_wald(theta, V)
        assert W == pytest.approx(theta @ np.linalg.inv(V) @ theta)

    def test_one_by_one_reduces_to_scalar(self):
        W, df, _ = quadratic_wald(np.array([0.5]), np.array([[0.0625]]))
        assert W == pytest.approx(4.0)
        assert df == 1

    def test_singular_raises(self):
        V = np.array([[1.0, 1.0], [1.0, 1.0]])
        with pytest.raises(SingularCovariance):
            quadratic_wald(np.array([1.0, 0.5]), V)

    def test_singular_is_linalg_error(self):
        with pytest.raises(np.linalg.LinAlgError):
            quadratic_wald(np.array([1.0, 0.5]), np.zeros((2, 2)))


class TestRankReduction:
    def test_constrained_covariance_has_two_null_eigenvalues(self):
        assert count_null_eigenvalues(_constrained_covariance(6)) == 2

    def test_full_rank_has_none(self):
        assert count_null_eigenvalues(np.eye(4)) == 0

    def test_custom_tolerance(self):
        V = np.diag([1e-5, 1.0, 2.0])
        assert count_null_eigenvalues(V) == 0
        assert count_null_eigenvalues(V, tol=1e-4) == 1

    def test_drop_dependent_rows(self):
        V = _constrained_covariance(6)
        theta = np.arange(6, dtype=float)
        theta_r, V_r = drop_dependent_rows(theta, V)
        np.testing.assert_array_equal(theta_r, theta[2:])
        np.testing.assert_array_equal(V_r, V[2:, 2:])
        # The reduced system is invertible.
        assert np.linalg.matrix_rank(V_r) == 4

    def test_unexpected_rank_raises(self):
        with pytest.raises(RankAssertionFailure, match="unexpected rank") as info:
            drop_dependent_rows(np.ones(4), np.eye(4))
        assert info.value.observed == 0
        assert info.value.expected == 2

    def test_unexpected_rank_is_assertion_error(self):
        with pytest.raises(AssertionError):
            drop_dependent_rows(np.ones(3), np.diag([0.0, 0.0, 0.0]))
