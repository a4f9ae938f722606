"""Wald statistics, degrees of freedom and chi-square p-values.

The Wald statistic for testing whether a group of parameters differs
from zero is

    W = θᵀ V⁻¹ θ

with θ the estimates under test and V their covariance.  For a scalar
θ this reduces to W = θ² / var(θ).  Under H₀ (θ = 0) W is
asymptotically χ² distributed with df = rank(V), and H₀ is rejected
for small upper-tail probabilities p = 1 − F_χ²(W; df).  Choosing the
significance level (customarily 0.10, 0.05 or 0.01) is left to the
caller.

Because V already reflects any overdispersion and serial correlation
estimated during the fit, the tests remain valid beyond the pure
Poisson case.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import chi2

from ._config import get_condition_limit, get_eigen_tolerance
from ._errors import RankAssertionFailure, SingularCovariance

logger = logging.getLogger(__name__)


def chi2_pvalue(W: float | np.ndarray, df: int | np.ndarray) -> float | np.ndarray:
    """Upper-tail χ² probability ``1 - CDF(W, df)``.

    Vectorised over *W* (and *df*); returns a float for scalar input.
    """
    p = 1.0 - chi2.cdf(W, df=df)
    if np.ndim(p) == 0:
        return float(p)
    return np.asarray(p, dtype=float)


def scalar_wald(theta: float, var_theta: float) -> tuple[float, int, float]:
    """Univariate Wald test, ``W = θ² / var(θ)`` with one degree of freedom.

    Raises:
        SingularCovariance: If ``var_theta`` is not strictly positive.
    """
    theta = float(theta)
    var_theta = float(var_theta)
    if not var_theta > 0:
        raise SingularCovariance(
            f"Variance must be strictly positive for a Wald test, got {var_theta!r}."
        )
    W = theta**2 / var_theta
    df = 1
    return W, df, chi2_pvalue(W, df)


def elementwise_wald(
    theta: np.ndarray,
    var_theta: np.ndarray,
) -> tuple[np.ndarray, int, np.ndarray]:
    """Marginal Wald test for every element of θ.

    Only the diagonal of *var_theta* is used: ``W_i = θ_i² / V_ii``.
    Off-diagonal covariances have no influence on the result.

    Args:
        theta: Estimates, shape ``(k,)``.
        var_theta: Covariance, shape ``(k, k)``.

    Returns:
        ``(W, 1, p)`` with ``W`` and ``p`` of shape ``(k,)``.

    Raises:
        SingularCovariance: If any variance on the diagonal is not
            strictly positive.
    """
    theta = np.asarray(theta, dtype=float).ravel()
    variances = np.diag(np.atleast_2d(var_theta)).astype(float)
    bad = ~(variances > 0)
    if np.any(bad):
        raise SingularCovariance(
            "Variance must be strictly positive for a Wald test; "
            f"offending positions: {np.flatnonzero(bad).tolist()}."
        )
    W = theta**2 / variances
    df = 1
    return W, df, chi2_pvalue(W, df)


def quadratic_wald(
    theta: np.ndarray,
    var_theta: np.ndarray,
) -> tuple[float, int, float]:
    """Joint Wald test ``W = θᵀ V⁻¹ θ`` with ``df = len(θ)``.

    V⁻¹θ is obtained from a linear solve rather than an explicit
    inverse.

    Raises:
        SingularCovariance: If *var_theta* is singular, or its
            condition number exceeds
            :func:`~trim_wald._config.get_condition_limit`.
    """
    theta = np.asarray(theta, dtype=float).ravel()
    var_theta = np.atleast_2d(np.asarray(var_theta, dtype=float))

    with np.errstate(divide="ignore", invalid="ignore"):
        cond = np.linalg.cond(var_theta)
    if not np.isfinite(cond) or cond > get_condition_limit():
        raise SingularCovariance(
            f"Covariance matrix of size {var_theta.shape[0]} is singular or "
            f"ill-conditioned (condition number {cond:.3g})."
        )
    try:
        solved = np.linalg.solve(var_theta, theta)
    except np.linalg.LinAlgError as exc:
        raise SingularCovariance(
            f"Covariance matrix of size {var_theta.shape[0]} cannot be inverted: {exc}"
        ) from exc

    W = float(theta @ solved)
    df = int(theta.shape[0])
    return W, df, chi2_pvalue(W, df)


def count_null_eigenvalues(var_theta: np.ndarray, tol: float | None = None) -> int:
    """Number of eigenvalues of a symmetric matrix below *tol*.

    Args:
        var_theta: Symmetric matrix.
        tol: Threshold; defaults to
            :func:`~trim_wald._config.get_eigen_tolerance`.
    """
    if tol is None:
        tol = get_eigen_tolerance()
    eig = np.linalg.eigvalsh(np.atleast_2d(var_theta))
    logger.debug(
        "Eigen-spectrum of %d x %d covariance: min=%.3g, max=%.3g",
        eig.size,
        eig.size,
        eig.min(),
        eig.max(),
    )
    return int(np.sum(eig < tol))


def drop_dependent_rows(
    theta: np.ndarray,
    var_theta: np.ndarray,
    n_dependent: int = 2,
    tol: float | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """Remove linearly dependent equations from a constrained θ.

    The covariance must have exactly *n_dependent* eigenvalues below
    *tol*; the first *n_dependent* elements of θ and the matching rows
    and columns of V are then dropped.

    Returns:
        The reduced ``(theta, var_theta)``.

    Raises:
        RankAssertionFailure: If the number of near-zero eigenvalues
            differs from *n_dependent*.
    """
    n_null = count_null_eigenvalues(var_theta, tol)
    if n_null != n_dependent:
        raise RankAssertionFailure(n_null, n_dependent)
    theta = np.asarray(theta, dtype=float).ravel()
    var_theta = np.atleast_2d(np.asarray(var_theta, dtype=float))
    return theta[n_dependent:], var_theta[n_dependent:, n_dependent:]
