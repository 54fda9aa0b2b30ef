"""Tests for the in-memory factor model handle."""

import numpy as np
import pandas as pd
import pytest

from core.error_handling import DataValidationError, InvalidArgumentError
from models import InMemoryFactorModel, SCORE_COLUMNS, WEIGHT_COLUMNS


class TestInMemoryFactorModel:
    """Test InMemoryFactorModel construction and queries."""

    def test_basic_properties(self, small_model):
        assert small_model.list_views() == {"met", "acc"}
        assert small_model.list_groups() == {"E6.5", "E7.5"}
        assert small_model.factor_count() == 3
        assert "K=3" in repr(small_model)

    def test_get_weights_long_format(self, small_model):
        table = small_model.get_weights("met", [2, 3])

        assert list(table.columns) == WEIGHT_COLUMNS
        assert len(table) == 12
        assert set(table["factor"]) == {2, 3}
        assert table["feature"].iloc[0] == "met_region_0"

    def test_get_weights_values(self):
        W = np.array([[1.0, 2.0], [3.0, 4.0]])
        model = InMemoryFactorModel({"rna": W}, feature_names={"rna": ["g1", "g2"]})

        table = model.get_weights("rna", [2])
        assert table["feature"].tolist() == ["g1", "g2"]
        assert table["value"].tolist() == [2.0, 4.0]

    def test_default_feature_names(self):
        model = InMemoryFactorModel({"rna": np.zeros((2, 1))})
        assert model.get_weights("rna", [1])["feature"].tolist() == [
            "rna_feature_0",
            "rna_feature_1",
        ]

    def test_get_weights_errors(self, small_model):
        with pytest.raises(InvalidArgumentError, match="Unknown view"):
            small_model.get_weights("rna", [1])
        with pytest.raises(InvalidArgumentError, match="out of range"):
            small_model.get_weights("met", [0])
        with pytest.raises(InvalidArgumentError, match="out of range"):
            small_model.get_weights("met", [4])

    def test_get_factors(self, small_model):
        scores = small_model.get_factors("E7.5", [1])

        assert list(scores.columns) == SCORE_COLUMNS
        assert len(scores) == 8
        assert (scores["group"] == "E7.5").all()
        assert (scores["factor"] == 1).all()

    def test_get_factors_all(self, small_model):
        scores = small_model.get_factors("E6.5")
        assert len(scores) == 10 * 3

    def test_get_factors_unknown_group(self, small_model):
        with pytest.raises(InvalidArgumentError, match="Unknown group"):
            small_model.get_factors("E9.5")

    def test_mismatched_factor_counts_raise(self):
        with pytest.raises(DataValidationError, match="same number of factors"):
            InMemoryFactorModel({"a": np.zeros((3, 2)), "b": np.zeros((3, 3))})

    def test_mismatched_score_factors_raise(self):
        with pytest.raises(DataValidationError):
            InMemoryFactorModel(
                {"a": np.zeros((3, 2))}, scores={"g": np.zeros((4, 3))}
            )

    def test_invalid_matrices_raise(self):
        with pytest.raises(DataValidationError):
            InMemoryFactorModel({})
        with pytest.raises(DataValidationError, match="2D"):
            InMemoryFactorModel({"a": np.zeros(3)})
        with pytest.raises(DataValidationError, match="names"):
            InMemoryFactorModel({"a": np.zeros((3, 2))}, feature_names={"a": ["x"]})
        with pytest.raises(DataValidationError, match="not unique"):
            InMemoryFactorModel(
                {"a": np.zeros((2, 2))}, feature_names={"a": ["x", "x"]}
            )


class TestFromConcatenated:
    """Test building a model from view-stacked loadings."""

    def test_splits_views(self):
        W = np.arange(10, dtype=float).reshape(5, 2)
        Z = np.ones((4, 2))
        model = InMemoryFactorModel.from_concatenated(
            W, [2, 3], ["met", "acc"], Z=Z, subject_ids=list("wxyz")
        )

        assert model.list_views() == {"met", "acc"}
        assert model.get_weights("acc", [1])["value"].tolist() == [4.0, 6.0, 8.0]
        assert model.get_factors("group_1", [1])["sample"].tolist() == list("wxyz")

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DataValidationError):
            InMemoryFactorModel.from_concatenated(np.zeros((5, 2)), [2, 2], ["a", "b"])
        with pytest.raises(DataValidationError):
            InMemoryFactorModel.from_concatenated(np.zeros((4, 2)), [2, 2], ["a"])


class TestFromWeightsFrame:
    """Test building a model from a long weights table."""

    @pytest.fixture
    def long_table(self):
        rows = []
        for view, features in (("met", ["r2", "r1"]), ("acc", ["r1", "r3"])):
            for k in (1, 2):
                for i, feature in enumerate(features):
                    rows.append((view, feature, k, float(10 * k + i)))
        return pd.DataFrame(rows, columns=["view", "feature", "factor", "value"])

    def test_round_trips_values(self, long_table):
        model = InMemoryFactorModel.from_weights_frame(long_table)

        assert model.list_views() == {"met", "acc"}
        assert model.factor_count() == 2
        table = model.get_weights("met", [2])
        assert table["feature"].tolist() == ["r2", "r1"]
        assert table["value"].tolist() == [20.0, 21.0]

    def test_missing_columns_raise(self, long_table):
        with pytest.raises(DataValidationError, match="missing columns"):
            InMemoryFactorModel.from_weights_frame(long_table.drop(columns="view"))

    def test_duplicate_rows_raise(self, long_table):
        duplicated = pd.concat([long_table, long_table.iloc[[0]]])
        with pytest.raises(DataValidationError, match="Duplicate"):
            InMemoryFactorModel.from_weights_frame(duplicated)

    def test_missing_cell_raises(self, long_table):
        with pytest.raises(DataValidationError, match="missing weights"):
            InMemoryFactorModel.from_weights_frame(long_table.iloc[1:])

    def test_gap_in_factors_raises(self, long_table):
        table = long_table.assign(factor=long_table["factor"].replace({2: 3}))
        with pytest.raises(DataValidationError, match="expected 1..3"):
            InMemoryFactorModel.from_weights_frame(table)

    def test_empty_table_raises(self):
        with pytest.raises(DataValidationError, match="empty"):
            InMemoryFactorModel.from_weights_frame(
                pd.DataFrame(columns=["view", "feature", "factor", "value"])
            )

    def test_fractional_factor_raises(self, long_table):
        table = long_table.assign(factor=long_table["factor"].astype(float))
        table.loc[0, "factor"] = 1.7
        with pytest.raises(DataValidationError, match="non-integer"):
            InMemoryFactorModel.from_weights_frame(table)

    def test_whole_float_factors_accepted(self, long_table):
        table = long_table.assign(factor=long_table["factor"].astype(float))
        model = InMemoryFactorModel.from_weights_frame(table)
        assert model.factor_count() == 2
