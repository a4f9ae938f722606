"""Exception types raised by the Wald test computations.

Every failure is fatal for the computation that raised it; nothing is
retried or replaced by a default value.  Each class also derives from
the closest built-in (or NumPy) exception so callers that already
catch ``ValueError`` / ``LinAlgError`` keep working.
"""

from __future__ import annotations

import numpy as np


class WaldError(Exception):
    """Base class for all trim_wald errors."""


class PreconditionViolation(WaldError, ValueError):
    """The model / changepoint / covariate combination matches no test case.

    Also raised when the covariate block arithmetic does not add up
    (``nblock * nbeta0 != n_beta``).  Indicates an inconsistent
    upstream fit.
    """


class RankAssertionFailure(WaldError, AssertionError):
    """The deviations covariance does not have the expected null space."""

    def __init__(self, observed: int, expected: int = 2) -> None:
        self.observed = observed
        self.expected = expected
        super().__init__(
            "assertion failed: unexpected rank "
            f"({observed} near-zero eigenvalues, expected {expected})"
        )


class SingularCovariance(WaldError, np.linalg.LinAlgError):
    """A covariance block cannot be inverted for the requested test."""
