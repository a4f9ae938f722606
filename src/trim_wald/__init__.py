"""trim_wald — Wald significance tests for fitted TRIM models.

TRIM models are log-linear Poisson regressions for site-by-time count
data, optionally with overdispersion and serial correlation.  Given the
coefficients and covariance of a fitted model, this package selects
the applicable Wald tests (overall slope, changes in slope, deviations
from the linear trend, covariate effects), computes the χ² statistics
and p-values, and renders the classic TRIM report.

Public API:
    .. autosummary::
        wald
        compute_wald_tests
        classify
        covariate_test
        format_wald_result
        print_wald_result
        FittedModelSummary
        WaldResult
        SlopeTest
        ChangeSlopeTest
        DeviationsTest
        CovariateTest
        WaldCase
        WaldError
        PreconditionViolation
        RankAssertionFailure
        SingularCovariance
        get_eigen_tolerance
        set_eigen_tolerance
        get_condition_limit
        set_condition_limit
"""

from ._config import (
    get_condition_limit,
    get_eigen_tolerance,
    set_condition_limit,
    set_eigen_tolerance,
)
from ._errors import (
    PreconditionViolation,
    RankAssertionFailure,
    SingularCovariance,
    WaldError,
)
from ._results import (
    ChangeSlopeTest,
    CovariateTest,
    DeviationsTest,
    SlopeTest,
    WaldResult,
)
from ._summary import FittedModelSummary
from .dispatch import WaldCase, classify, compute_wald_tests, covariate_test, wald
from .display import format_wald_result, print_wald_result

__all__ = [
    "wald",
    "compute_wald_tests",
    "classify",
    "covariate_test",
    "format_wald_result",
    "print_wald_result",
    "FittedModelSummary",
    "WaldResult",
    "SlopeTest",
    "ChangeSlopeTest",
    "DeviationsTest",
    "CovariateTest",
    "WaldCase",
    "WaldError",
    "PreconditionViolation",
    "RankAssertionFailure",
    "SingularCovariance",
    "get_eigen_tolerance",
    "set_eigen_tolerance",
    "get_condition_limit",
    "set_condition_limit",
]

__version__ = "0.1.0"
