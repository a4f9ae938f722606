"""Typed result objects for the Wald tests.

Frozen dataclasses that provide:

* **Attribute access** — ``result.slope.W``, ``result.covar.table``.
* **Dict-like access** — ``result["slope"]["p"]``, ``result.get("dslope")``,
  ``"covar" in result`` for consumers that prefer bracket syntax.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with all NumPy and pandas types converted to native Python.

One variant exists per test procedure:

* :class:`SlopeTest` — single overall slope (model 2).
* :class:`ChangeSlopeTest` — changes in slope at each changepoint
  (model 2), univariate or aggregated over covariate blocks.
* :class:`DeviationsTest` — deviations from the linear trend (model 3).
* :class:`CovariateTest` — one joint test per covariate.

:class:`WaldResult` composes them.  At most one of ``slope``,
``dslope`` and ``deviations`` is set; ``covar`` is set whenever the
model has covariates.  Membership (``"slope" in result``) reports only
populated entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar

import numpy as np
import pandas as pd

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy / pandas objects to Python-native types.

    Handles nested dicts, lists, DataFrames, np.ndarray, np.integer and
    np.floating so that :meth:`to_dict` returns a fully
    JSON-serialisable structure.
    """
    if isinstance(obj, pd.DataFrame):
        return [_numpy_to_python(row) for row in obj.to_dict(orient="records")]
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    Supports three access patterns:

    1. ``result["key"]``     — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss (default ``None``)
    3. ``"key" in result``   — membership test
    """

    def __getitem__(self, key: str) -> Any:
        """Attribute lookup via bracket syntax."""
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        """Attribute lookup with a fallback default."""
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        """Membership test: ``"key" in result``."""
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain, JSON-serialisable dictionary."""
        return {
            f.name: _numpy_to_python(getattr(self, f.name))
            for f in fields(self)  # type: ignore[arg-type]
        }


# ------------------------------------------------------------------ #
# Per-test variants
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class SlopeTest(_DictAccessMixin):
    """Test for the significance of a single overall slope."""

    W: float
    """Wald statistic θ² / var(θ)."""

    df: int
    """Degrees of freedom (always 1)."""

    p: float
    """Upper-tail χ² probability."""


@dataclass(frozen=True, eq=False)
class ChangeSlopeTest(_DictAccessMixin):
    """Tests for the significance of changes in slope, one per changepoint."""

    changepoints: list[Any]
    """Changepoint labels (time-id values), one per statistic."""

    W: np.ndarray
    """Wald statistics, shape ``(n_changepoints,)``."""

    df: int
    """Degrees of freedom: 1 (univariate) or ``nblock`` (block)."""

    p: np.ndarray
    """Upper-tail χ² probabilities, shape ``(n_changepoints,)``."""

    variant: str = "univariate"
    """``"univariate"`` or ``"block"`` (aggregated over covariate blocks)."""

    def to_frame(self) -> pd.DataFrame:
        """Return the tests as a ``Changepoint | Wald_test | df | p`` table."""
        n = len(self.W)
        return pd.DataFrame(
            {
                "Changepoint": list(self.changepoints),
                "Wald_test": np.asarray(self.W, dtype=float),
                "df": np.full(n, self.df, dtype=int),
                "p": np.asarray(self.p, dtype=float),
            }
        )


@dataclass(frozen=True)
class DeviationsTest(_DictAccessMixin):
    """Joint test for the deviations from the linear trend."""

    W: float
    df: int
    p: float


@dataclass(frozen=True, eq=False)
class CovariateTest(_DictAccessMixin):
    """Joint test per covariate, one row per covariate in declaration order."""

    COLUMNS: ClassVar[tuple[str, ...]] = ("Covariate", "W", "df", "p")

    table: pd.DataFrame
    """``Covariate | W | df | p`` table."""

    @classmethod
    def from_rows(cls, rows: list[tuple[str, float, int, float]]) -> CovariateTest:
        table = pd.DataFrame(rows, columns=list(cls.COLUMNS))
        table["W"] = table["W"].astype(float)
        table["df"] = table["df"].astype(int)
        table["p"] = table["p"].astype(float)
        return cls(table=table)

    @property
    def names(self) -> list[str]:
        return self.table["Covariate"].tolist()

    @property
    def W(self) -> np.ndarray:
        return self.table["W"].to_numpy()

    @property
    def df(self) -> np.ndarray:
        return self.table["df"].to_numpy()

    @property
    def p(self) -> np.ndarray:
        return self.table["p"].to_numpy()

    def __len__(self) -> int:
        return len(self.table)


# ------------------------------------------------------------------ #
# WaldResult
# ------------------------------------------------------------------ #


@dataclass(frozen=True, eq=False)
class WaldResult(_DictAccessMixin):
    """All Wald tests applicable to one fitted model.

    Entries are ``None`` when the corresponding test does not apply.
    Dict-style access and ``in`` see only populated entries, so
    ``len(result) == 0`` for a model without applicable tests.
    """

    slope: SlopeTest | None = None
    dslope: ChangeSlopeTest | None = None
    deviations: DeviationsTest | None = None
    covar: CovariateTest | None = field(default=None)

    def __post_init__(self) -> None:
        trend = [e for e in (self.slope, self.dslope, self.deviations) if e is not None]
        if len(trend) > 1:
            raise ValueError(
                "At most one of 'slope', 'dslope' and 'deviations' may be set."
            )

    def keys(self) -> list[str]:
        """Names of the populated entries."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def __getitem__(self, key: str) -> Any:
        if key not in self.keys():
            raise KeyError(key)
        return getattr(self, key)

    def get(self, key: str, default: Any = None) -> Any:
        value = getattr(self, key, None)
        return default if value is None else value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key in self.keys()

    def __len__(self) -> int:
        return len(self.keys())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def to_dict(self) -> dict[str, Any]:
        """Populated entries as nested plain dictionaries."""
        return {key: getattr(self, key).to_dict() for key in self.keys()}

    def __str__(self) -> str:
        from .display import format_wald_result

        return format_wald_result(self)
