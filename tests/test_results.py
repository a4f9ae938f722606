"""Tests for the typed result objects."""

import json

import numpy as np
import pytest

from trim_wald import (
    ChangeSlopeTest,
    CovariateTest,
    FittedModelSummary,
    SlopeTest,
    WaldResult,
    wald,
)


class TestDictAccess:
    def test_bracket_and_attribute_agree(self):
        slope = SlopeTest(W=4.0, df=1, p=0.0455)
        assert slope["W"] == slope.W
        assert slope.get("missing", 7) == 7
        assert "p" in slope
        with pytest.raises(KeyError):
            slope["missing"]

    def test_frozen(self):
        slope = SlopeTest(W=4.0, df=1, p=0.0455)
        with pytest.raises(AttributeError):
            slope.W = 1.0  # type: ignore[misc]


class TestWaldResult:
    def test_only_populated_keys_visible(self):
        result = WaldResult(slope=SlopeTest(W=4.0, df=1, p=0.0455))
        assert "slope" in result
        assert "dslope" not in result
        assert result.get("dslope") is None
        with pytest.raises(KeyError):
            result["deviations"]
        assert len(result) == 1

    def test_trend_entries_are_exclusive(self):
        with pytest.raises(ValueError, match="At most one"):
            WaldResult(
                slope=SlopeTest(W=1.0, df=1, p=0.3),
                dslope=ChangeSlopeTest(
                    changepoints=[1], W=np.array([1.0]), df=1, p=np.array([0.3])
                ),
            )

    def test_empty(self):
        result = WaldResult()
        assert result.is_empty
        assert result.to_dict() == {}

    def test_to_dict_is_json_serialisable(self):
        nbeta0 = 2
        s = FittedModelSummary(
            model=2,
            beta=[0.1, 0.3, -0.2, 0.05],
            var_beta=np.eye(4) * 0.01,
            nbeta0=nbeta0,
            changepoints=[1, 3],
            time_id=(2000, 2001, 2002, 2003),
            covariates={"habitat": ("dune", "heath")},
        )
        d = wald(s).to_dict()
        json.dumps(d)
        assert d["dslope"]["changepoints"] == [2000, 2002]
        assert d["dslope"]["variant"] == "block"
        assert d["covar"]["table"][0]["Covariate"] == "habitat"
        assert d["covar"]["table"][0]["df"] == 2
        assert isinstance(d["dslope"]["W"], list)


class TestCovariateTest:
    def test_from_rows(self):
        covar = CovariateTest.from_rows(
            [("habitat", 8.2, 2, 0.0166), ("region", 0.5, 1, 0.48)]
        )
        assert covar.names == ["habitat", "region"]
        assert covar.df.tolist() == [2, 1]
        np.testing.assert_allclose(covar.W, [8.2, 0.5])
        assert len(covar) == 2

    def test_change_slope_frame(self):
        d = ChangeSlopeTest(
            changepoints=["2001", "2005"], W=np.array([1.0, 2.0]), df=3, p=np.array([0.8, 0.57])
        )
        frame = d.to_frame()
        assert list(frame.columns) == ["Changepoint", "Wald_test", "df", "p"]
        assert frame["df"].tolist() == [3, 3]
