"""Numerical tolerance configuration for the trim_wald package.

Two thresholds govern the linear algebra behind the Wald tests:

* **Eigenvalue tolerance** — eigenvalues of a covariance matrix below
  this value count as zero when checking the rank of the deviations
  covariance (model 3).
* **Condition limit** — a covariance block whose 2-norm condition
  number exceeds this value is treated as singular and its Wald
  statistic is not computed.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_eigen_tolerance` /
       :func:`set_condition_limit`.
    2. The ``TRIM_WALD_EIGEN_TOL`` / ``TRIM_WALD_COND_LIMIT``
       environment variables.
    3. The built-in defaults (``1e-7`` and ``1 / machine epsilon``).

Examples:
    Loosen the rank check from the shell::

        export TRIM_WALD_EIGEN_TOL=1e-6

    Or programmatically::

        import trim_wald
        trim_wald.set_eigen_tolerance(1e-6)

    Restore the default resolution order::

        trim_wald.set_eigen_tolerance(None)
"""

from __future__ import annotations

import math
import os

import numpy as np

DEFAULT_EIGEN_TOLERANCE = 1e-7
DEFAULT_CONDITION_LIMIT = 1.0 / float(np.finfo(float).eps)

_EIGEN_TOL_ENV = "TRIM_WALD_EIGEN_TOL"
_COND_LIMIT_ENV = "TRIM_WALD_COND_LIMIT"

# Sentinels indicating "no programmatic override has been set".
_eigen_tolerance_override: float | None = None
_condition_limit_override: float | None = None


def _validated(value: float, name: str) -> float:
    """Return *value* as a float, rejecting non-positive or non-finite input."""
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite number, got {value!r}.")
    return value


def _from_env(var: str) -> float | None:
    """Read a positive float from environment variable *var*, if set."""
    raw = os.environ.get(var, "").strip()
    if not raw:
        return None
    try:
        return _validated(float(raw), var)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {var}: {raw!r}.") from exc


def get_eigen_tolerance() -> float:
    """Return the active zero-eigenvalue tolerance.

    Resolution order:
        1. Value set by :func:`set_eigen_tolerance`.
        2. ``TRIM_WALD_EIGEN_TOL`` environment variable.
        3. ``1e-7``.

    Raises:
        ValueError: If the environment variable holds an invalid value.
    """
    if _eigen_tolerance_override is not None:
        return _eigen_tolerance_override

    env = _from_env(_EIGEN_TOL_ENV)
    if env is not None:
        return env

    return DEFAULT_EIGEN_TOLERANCE


def set_eigen_tolerance(value: float | None) -> None:
    """Override the zero-eigenvalue tolerance.

    Args:
        value: A positive finite float, or ``None`` to restore the
            default resolution order.

    Raises:
        ValueError: If *value* is not positive and finite.
    """
    global _eigen_tolerance_override
    _eigen_tolerance_override = (
        None if value is None else _validated(value, "Eigenvalue tolerance")
    )


def get_condition_limit() -> float:
    """Return the condition number above which a covariance is singular."""
    if _condition_limit_override is not None:
        return _condition_limit_override

    env = _from_env(_COND_LIMIT_ENV)
    if env is not None:
        return env

    return DEFAULT_CONDITION_LIMIT


def set_condition_limit(value: float | None) -> None:
    """Override the condition-number limit (``None`` restores the default).

    Raises:
        ValueError: If *value* is not positive and finite.
    """
    global _condition_limit_override
    _condition_limit_override = (
        None if value is None else _validated(value, "Condition limit")
    )
