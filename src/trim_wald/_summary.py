"""Fitted-model summary consumed by the Wald tests.

A :class:`FittedModelSummary` is the snapshot of a TRIM fit that the
tests need: the coefficient vector and its covariance, the block layout
of the coefficients, and the changepoint / covariate structure.  It is
produced by the model-fitting collaborator and is never modified here.

Array fields are copied into read-only NumPy arrays at construction, and
the covariate mapping is wrapped in a read-only proxy.  No other
validation happens; the dispatcher checks only the invariants it
depends on.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import numpy as np


def _read_only(arr: np.ndarray) -> np.ndarray:
    """Return a private, non-writeable copy of *arr*."""
    arr = np.array(arr, copy=True)
    arr.setflags(write=False)
    return arr


def _as_vector(values: Any) -> np.ndarray:
    return _read_only(np.atleast_1d(np.asarray(values, dtype=float)).ravel())


def _as_matrix(values: Any) -> np.ndarray:
    return _read_only(np.atleast_2d(np.asarray(values, dtype=float)))


@dataclass(frozen=True, eq=False)
class FittedModelSummary:
    """Immutable view of a fitted TRIM model.

    Attributes:
        model: TRIM model type (1, 2 or 3).
        beta: Coefficient estimates, shape ``(n_beta,)``.
        var_beta: Covariance of *beta*, shape ``(n_beta, n_beta)``.
        nbeta0: Number of baseline coefficients per block.
        changepoints: 1-based time indices of slope breaks (model 2).
            ``(1,)`` means a single overall slope.
        time_id: External label (year, period) for each time index.
        covariates: Covariate name -> level labels, in declaration order.
        nclass: Number of levels per covariate.  Derived from
            *covariates* when not given.
        ntime: Number of time points.
        gstar: Deviations from the linear trend (model 3).
        var_gstar: Covariance of the slope and *gstar*, one row and
            column larger than *gstar* (model 3).
    """

    model: int
    beta: np.ndarray
    var_beta: np.ndarray
    nbeta0: int = 1
    changepoints: tuple[int, ...] = (1,)
    time_id: tuple[Any, ...] = ()
    covariates: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    nclass: np.ndarray | None = None
    ntime: int = 0
    gstar: np.ndarray | None = None
    var_gstar: np.ndarray | None = None

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise fields via object.__setattr__.
        object.__setattr__(self, "model", int(self.model))
        object.__setattr__(self, "beta", _as_vector(self.beta))
        object.__setattr__(self, "var_beta", _as_matrix(self.var_beta))
        object.__setattr__(self, "nbeta0", int(self.nbeta0))
        object.__setattr__(
            self, "changepoints", tuple(int(c) for c in np.atleast_1d(self.changepoints))
        )
        object.__setattr__(self, "time_id", tuple(self.time_id))
        object.__setattr__(
            self,
            "covariates",
            MappingProxyType(
                {str(k): tuple(v) for k, v in dict(self.covariates).items()}
            ),
        )
        if self.nclass is None:
            nclass = [len(levels) for levels in self.covariates.values()]
        else:
            nclass = self.nclass
        object.__setattr__(
            self, "nclass", _read_only(np.atleast_1d(np.asarray(nclass, dtype=int)))
        )
        object.__setattr__(self, "ntime", int(self.ntime))
        if self.gstar is not None:
            object.__setattr__(self, "gstar", _as_vector(self.gstar))
        if self.var_gstar is not None:
            object.__setattr__(self, "var_gstar", _as_matrix(self.var_gstar))

    # ---- Derived quantities ---------------------------------------

    @property
    def n_beta(self) -> int:
        """Length of the coefficient vector."""
        return int(self.beta.shape[0])

    @property
    def ncovar(self) -> int:
        """Number of covariates."""
        return len(self.covariates)

    @property
    def covariate_names(self) -> list[str]:
        return list(self.covariates)

    @property
    def changepoint_labels(self) -> list[Any]:
        """External labels of the changepoints.

        Falls back to the 1-based indices themselves when no
        ``time_id`` is available.
        """
        if not self.time_id:
            return list(self.changepoints)
        return [self.time_id[c - 1] for c in self.changepoints]

    # ---- Construction ---------------------------------------------

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> FittedModelSummary:
        """Build a summary from a plain mapping of TRIM output fields.

        Accepts the field names of the TRIM output object, including
        the dotted ``time.id`` and ``covars`` spellings.  Unknown keys
        are ignored.

        Args:
            mapping: Field name -> value.

        Returns:
            A new :class:`FittedModelSummary`.

        Raises:
            KeyError: If ``model``, ``beta`` or ``var_beta`` is missing.
        """
        covariates = mapping.get("covariates", mapping.get("covars")) or {}
        if not isinstance(covariates, Mapping):
            # A bare sequence of names carries no level information.
            covariates = {str(name): () for name in covariates}
        return cls(
            model=mapping["model"],
            beta=mapping["beta"],
            var_beta=mapping["var_beta"],
            nbeta0=mapping.get("nbeta0", 1),
            changepoints=mapping.get("changepoints", (1,)),
            time_id=mapping.get("time_id", mapping.get("time.id", ())),
            covariates=covariates,
            nclass=mapping.get("nclass"),
            ntime=mapping.get("ntime", 0),
            gstar=mapping.get("gstar"),
            var_gstar=mapping.get("var_gstar"),
        )
