"""Test selection and execution for a fitted TRIM model.

:func:`wald` inspects the model type, the changepoints and the
covariates of a :class:`~trim_wald.FittedModelSummary`, classifies it
into exactly one :class:`WaldCase`, runs the procedure registered for
that case, and, when covariates are present, the per-covariate test.

The following tests exist:

* **slope** — model 2 without covariates or changepoints: a single
  slope β for all sites and the whole period, tested with the
  univariate statistic W = β² / var(β).
* **dslope** — model 2 with changepoints: the *changes* in slope
  β' = A β (see :mod:`trim_wald.contrasts`) are tested one changepoint
  at a time.  Without covariates each change gets a univariate test.
  With covariates the changes of one baseline parameter are tested
  jointly across all covariate blocks.
* **deviations** — model 3 without covariates: the deviations γ*
  from the linear trend are tested jointly.  Two linear constraints
  on γ* make two equations redundant; they are dropped first.
* **covar** — models 2 and 3 with covariates: the effect of each
  covariate (its block of β) is tested jointly.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from typing import Any

import numpy as np

from ._errors import PreconditionViolation
from ._results import (
    ChangeSlopeTest,
    CovariateTest,
    DeviationsTest,
    SlopeTest,
    WaldResult,
)
from ._summary import FittedModelSummary
from .contrasts import (
    block_count,
    covariate_slices,
    difference_matrix,
    regroup_indices,
    transform_blocks,
)
from .statistics import (
    chi2_pvalue,
    drop_dependent_rows,
    elementwise_wald,
    quadratic_wald,
    scalar_wald,
)

logger = logging.getLogger(__name__)

# Number of linear constraints on the model-3 deviations.
_N_DEVIATION_CONSTRAINTS = 2


class WaldCase(enum.Enum):
    """Model shapes that determine which trend test applies."""

    NO_TEST = "no_test"
    SLOPE = "slope"
    CHANGE_SLOPE = "change_slope"
    CHANGE_SLOPE_BLOCKS = "change_slope_blocks"
    DEVIATIONS = "deviations"
    NO_DEVIATIONS = "no_deviations"


def classify(summary: FittedModelSummary) -> WaldCase:
    """Select the trend test applicable to *summary*.

    Conditions are evaluated in order; the first match wins.

    Raises:
        PreconditionViolation: If no case matches.
    """
    model = summary.model
    ncovar = summary.ncovar
    n_beta = summary.n_beta

    if model == 1:
        return WaldCase.NO_TEST
    if model == 2:
        if summary.changepoints == (1,) and ncovar == 0:
            return WaldCase.SLOPE
        if n_beta >= 1 and ncovar == 0:
            return WaldCase.CHANGE_SLOPE
        if n_beta > 1 and ncovar > 0:
            return WaldCase.CHANGE_SLOPE_BLOCKS
    if model == 3:
        return WaldCase.DEVIATIONS if ncovar == 0 else WaldCase.NO_DEVIATIONS

    raise PreconditionViolation(
        f"No Wald test defined for model={model}, "
        f"changepoints={list(summary.changepoints)}, n_beta={n_beta}, ncovar={ncovar}."
    )


# ------------------------------------------------------------------ #
# Trend procedures
# ------------------------------------------------------------------ #
#
# Each procedure returns the WaldResult fields it produces, so the
# final result is assembled once from the pieces rather than filled
# in incrementally.


def _no_test(summary: FittedModelSummary) -> dict[str, Any]:
    return {}


def _slope_test(summary: FittedModelSummary) -> dict[str, Any]:
    W, df, p = scalar_wald(summary.beta[0], summary.var_beta[0, 0])
    logger.debug("Slope test: W=%.4f, df=%d, p=%.6f", W, df, p)
    return {"slope": SlopeTest(W=W, df=df, p=p)}


def _change_slope_test(summary: FittedModelSummary) -> dict[str, Any]:
    A = difference_matrix(summary.n_beta)
    dbeta = A @ summary.beta
    var_dbeta = A @ summary.var_beta @ A.T

    # Each changepoint is tested on its own; only the diagonal of
    # var_dbeta enters.
    W, df, p = elementwise_wald(dbeta, var_dbeta)
    logger.debug("Change-in-slope tests (univariate): W=%s", W)
    return {
        "dslope": ChangeSlopeTest(
            changepoints=summary.changepoint_labels,
            W=W,
            df=df,
            p=p,
            variant="univariate",
        )
    }


def _change_slope_block_test(summary: FittedModelSummary) -> dict[str, Any]:
    nbeta0 = summary.nbeta0
    nblock = block_count(summary.nclass)
    if nblock * nbeta0 != summary.n_beta:
        raise PreconditionViolation(
            f"Covariate blocks do not partition beta: nblock={nblock} x "
            f"nbeta0={nbeta0} != n_beta={summary.n_beta}."
        )
    logger.debug("Change-in-slope tests over %d blocks of %d", nblock, nbeta0)

    A = difference_matrix(nbeta0)
    dbeta, var_dbeta = transform_blocks(summary.beta, summary.var_beta, A, nblock)

    W = np.zeros(nbeta0)
    for b in range(nbeta0):
        idx = regroup_indices(b, nbeta0, nblock)
        W[b], _, _ = quadratic_wald(dbeta[idx], var_dbeta[np.ix_(idx, idx)])

    df = nblock
    p = chi2_pvalue(W, df)
    return {
        "dslope": ChangeSlopeTest(
            changepoints=summary.changepoint_labels,
            W=W,
            df=df,
            p=p,
            variant="block",
        )
    }


def _deviations_test(summary: FittedModelSummary) -> dict[str, Any]:
    J = summary.ntime
    theta = summary.gstar
    # Leading row/column belongs to the slope, which is not under test.
    var_theta = summary.var_gstar[1:, 1:]

    theta, var_theta = drop_dependent_rows(
        theta, var_theta, n_dependent=_N_DEVIATION_CONSTRAINTS
    )
    W, _, _ = quadratic_wald(theta, var_theta)
    df = J - _N_DEVIATION_CONSTRAINTS
    p = chi2_pvalue(W, df)
    logger.debug("Deviations test: W=%.4f, df=%d, p=%.6f", W, df, p)
    return {"deviations": DeviationsTest(W=W, df=df, p=p)}


_PROCEDURES: dict[WaldCase, Callable[[FittedModelSummary], dict[str, Any]]] = {
    WaldCase.NO_TEST: _no_test,
    WaldCase.SLOPE: _slope_test,
    WaldCase.CHANGE_SLOPE: _change_slope_test,
    WaldCase.CHANGE_SLOPE_BLOCKS: _change_slope_block_test,
    WaldCase.DEVIATIONS: _deviations_test,
    # Not defined for model 3 with covariates.
    WaldCase.NO_DEVIATIONS: _no_test,
}


# ------------------------------------------------------------------ #
# Covariate effects
# ------------------------------------------------------------------ #


def covariate_test(summary: FittedModelSummary) -> CovariateTest:
    """Joint Wald test of each covariate's coefficient block.

    Covariate effects are additions to the baseline parameters, which
    represent the first class of every covariate.  Covariate *k* owns
    ``(nclass_k - 1) * nbeta0`` consecutive coefficients.

    Returns:
        One row per covariate, in declaration order; ``df`` equals the
        block length.

    Raises:
        SingularCovariance: If a covariate block's covariance cannot be
            inverted.
    """
    rows = []
    slices = covariate_slices(summary.nclass, summary.nbeta0)
    for name, idx in zip(summary.covariate_names, slices):
        W, df, p = quadratic_wald(summary.beta[idx], summary.var_beta[idx, idx])
        logger.debug("Covariate %r: W=%.4f, df=%d, p=%.6f", name, W, df, p)
        rows.append((name, W, df, p))
    return CovariateTest.from_rows(rows)


# ------------------------------------------------------------------ #
# Public entry point
# ------------------------------------------------------------------ #


def wald(summary: FittedModelSummary) -> WaldResult:
    """Run every Wald test applicable to a fitted TRIM model.

    Args:
        summary: Fitted-model summary.  Not modified.

    Returns:
        A new :class:`~trim_wald.WaldResult`.  At most one of
        ``slope``, ``dslope`` and ``deviations`` is populated;
        ``covar`` is populated whenever the model has covariates.

    Raises:
        PreconditionViolation: The model shape matches no test case, or
            the covariate blocks do not partition β.
        RankAssertionFailure: The deviations covariance does not have
            exactly two near-zero eigenvalues.
        SingularCovariance: A covariance block cannot be inverted.

    Examples:
        >>> summary = FittedModelSummary(model=2, beta=[0.5], var_beta=[[0.0625]])
        >>> wald(summary).slope.W
        4.0
    """
    case = classify(summary)
    logger.debug("Selected Wald case %s for model %d", case.name, summary.model)

    parts = _PROCEDURES[case](summary)
    if summary.ncovar > 0:
        parts["covar"] = covariate_test(summary)
    return WaldResult(**parts)


compute_wald_tests = wald
