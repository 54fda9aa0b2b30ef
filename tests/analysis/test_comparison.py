"""Tests for cross-view weight comparison."""

import json

import numpy as np
import pandas as pd
import pytest

from analysis.comparison import (
    CORRELATION_COLUMNS,
    WeightComparison,
    compare_views,
    correlate_weights,
    top_weights,
)
from core.error_handling import DataValidationError, InvalidArgumentError
from data.synthetic import generate_synthetic_model


class TestCompareViews:
    """Test compare_views on model handles."""

    def test_small_model_pairs_shared_regions(self, small_model):
        comparison = compare_views(
            small_model, "met", "acc", factors=[1, 2], prefix_a="met_", prefix_b="acc_"
        )

        assert isinstance(comparison, WeightComparison)
        assert comparison.factors == [1, 2]
        assert set(comparison.paired["feature"]) == {f"region_{i}" for i in range(2, 6)}
        assert len(comparison.paired) == 4 * 2
        assert list(comparison.correlations["factor"]) == [1, 2]
        assert (comparison.correlations["n_features"] == 4).all()

    def test_tables_are_normalized(self, small_model):
        comparison = compare_views(
            small_model, "met", "acc", prefix_a="met_", prefix_b="acc_"
        )
        assert comparison.table_a["value"].abs().max() == pytest.approx(1.0)
        assert comparison.table_b["value"].abs().max() == pytest.approx(1.0)

    def test_without_normalization_keeps_raw_values(self, small_model):
        comparison = compare_views(
            small_model, "met", "acc", factors=[1],
            prefix_a="met_", prefix_b="acc_", normalize=False,
        )
        raw = small_model.get_weights("met", [1])
        assert sorted(comparison.table_a["value"]) == pytest.approx(sorted(raw["value"]))

    def test_no_prefixes_share_nothing(self, small_model, caplog):
        with caplog.at_level("WARNING"):
            comparison = compare_views(small_model, "met", "acc", factors=[1])

        assert comparison.paired.empty
        assert comparison.correlations.empty
        assert "share no features" in caplog.text

    def test_wrong_prefix_raises(self, small_model):
        with pytest.raises(DataValidationError):
            compare_views(small_model, "met", "acc", prefix_a="acc_")

    def test_unknown_view_raises(self, small_model):
        with pytest.raises(InvalidArgumentError):
            compare_views(small_model, "met", "rna")

    def test_synthetic_shared_features_correlate(self):
        model = generate_synthetic_model(
            n_features=120, K=3, noise=0.1, percW=50.0, seed=7
        )
        comparison = compare_views(
            model, "met", "acc", prefix_a="met_", prefix_b="acc_"
        )

        assert len(comparison.paired) == 96 * 3
        assert (comparison.correlations["pearson_r"] > 0.8).all()

    def test_summary_is_json_serialisable(self, small_model):
        comparison = compare_views(
            small_model, "met", "acc", prefix_a="met_", prefix_b="acc_"
        )
        summary = comparison.summary()

        assert summary["n_features_a"] == 6
        assert summary["n_features_b"] == 5
        assert summary["n_pairs"] == 12
        assert [c["factor"] for c in summary["correlations"]] == [1, 2, 3]
        json.dumps(summary)


class TestCorrelateWeights:
    """Test per-factor correlation of paired weights."""

    def test_perfect_correlation(self):
        paired = pd.DataFrame(
            {
                "feature": list("abcd"),
                "factor": [1] * 4,
                "value_a": [1.0, 2.0, 3.0, 4.0],
                "value_b": [2.0, 4.0, 6.0, 8.0],
            }
        )
        result = correlate_weights(paired)

        assert list(result.columns) == CORRELATION_COLUMNS
        assert result["pearson_r"].iloc[0] == pytest.approx(1.0)
        assert result["spearman_r"].iloc[0] == pytest.approx(1.0)

    def test_too_few_pairs_give_nan(self):
        paired = pd.DataFrame(
            {"feature": ["a", "b"], "factor": [1, 1], "value_a": [1.0, 2.0], "value_b": [1.0, 3.0]}
        )
        result = correlate_weights(paired)

        assert result["n_features"].iloc[0] == 2
        assert np.isnan(result["pearson_r"].iloc[0])

    def test_constant_column_gives_nan(self):
        paired = pd.DataFrame(
            {
                "feature": list("abc"),
                "factor": [1] * 3,
                "value_a": [1.0, 1.0, 1.0],
                "value_b": [1.0, 2.0, 3.0],
            }
        )
        assert np.isnan(correlate_weights(paired)["pearson_r"].iloc[0])

    def test_custom_names(self):
        paired = pd.DataFrame(
            {"feature": list("abc"), "factor": [2] * 3, "x": [1.0, 2.0, 3.0], "y": [3.0, 2.0, 1.0]}
        )
        result = correlate_weights(paired, names=("x", "y"))
        assert result["factor"].tolist() == [2]
        assert result["pearson_r"].iloc[0] == pytest.approx(-1.0)


class TestTopWeights:
    """Test top_weights ranking."""

    @pytest.fixture
    def table(self):
        return pd.DataFrame(
            {
                "feature": ["a", "b", "c", "d", "a", "b"],
                "factor": [1, 1, 1, 1, 2, 2],
                "value": [0.1, -0.9, 0.5, -0.2, 0.3, 0.4],
            }
        )

    def test_ranks_by_absolute_value(self, table):
        top = top_weights(table, n=2, factors=1)

        assert top["feature"].tolist() == ["b", "c"]
        assert top["rank"].tolist() == [1, 2]
        assert top["abs_value"].tolist() == pytest.approx([0.9, 0.5])

    def test_per_factor(self, table):
        top = top_weights(table, n=1)
        assert list(zip(top["factor"], top["feature"])) == [(1, "b"), (2, "b")]

    def test_sign_filter(self, table):
        positive = top_weights(table, n=5, factors=[1], sign="positive")
        negative = top_weights(table, n=5, factors=[1], sign="negative")

        assert positive["feature"].tolist() == ["c", "a"]
        assert negative["feature"].tolist() == ["b", "d"]

    def test_invalid_arguments(self, table):
        with pytest.raises(InvalidArgumentError):
            top_weights(table, sign="largest")
        with pytest.raises(InvalidArgumentError):
            top_weights(table, n=0)
