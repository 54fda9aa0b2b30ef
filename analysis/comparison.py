# analysis/comparison.py
"""Cross-view comparison of factor weights."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from core.error_handling import InvalidArgumentError
from models.base import BaseFactorModel

from .weights import (
    FactorSelection,
    as_weight_table,
    extract_weights,
    merge_weights,
    normalize_weights,
    resolve_factors,
    strip_feature_prefix,
)

logger = logging.getLogger(__name__)

CORRELATION_COLUMNS = ["factor", "n_features", "pearson_r", "p_value", "spearman_r"]
PAIRED_NAMES = ("value_a", "value_b")
VALID_SIGNS = ("all", "positive", "negative")


def correlate_weights(
    paired: pd.DataFrame, names: Tuple[str, str] = PAIRED_NAMES
) -> pd.DataFrame:
    """
    Correlate paired weights factor by factor.

    Parameters
    ----------
    paired : pd.DataFrame
        Output of :func:`merge_weights`
    names : tuple of str
        The two value columns to correlate

    Returns
    -------
    pd.DataFrame
        One row per factor with ``n_features``, Pearson ``r`` and its
        p-value, and Spearman ``r``. Factors with fewer than three finite
        pairs, or where either column is constant, get NaN statistics.
    """
    name_a, name_b = names
    rows = []

    for factor, group in paired.groupby("factor", sort=True):
        a = group[name_a].to_numpy(dtype=float)
        b = group[name_b].to_numpy(dtype=float)
        finite = np.isfinite(a) & np.isfinite(b)
        a, b = a[finite], b[finite]
        n = int(finite.sum())

        pearson_r = p_value = spearman_r = np.nan
        if n >= 3 and np.ptp(a) > 0 and np.ptp(b) > 0:
            pearson_r, p_value = stats.pearsonr(a, b)
            spearman_r, _ = stats.spearmanr(a, b)

        rows.append(
            {
                "factor": int(factor),
                "n_features": n,
                "pearson_r": float(pearson_r),
                "p_value": float(p_value),
                "spearman_r": float(spearman_r),
            }
        )

    return pd.DataFrame(rows, columns=CORRELATION_COLUMNS)


def top_weights(
    table: pd.DataFrame,
    n: int = 10,
    factors: Optional[Union[int, Iterable[int]]] = None,
    sign: str = "all",
) -> pd.DataFrame:
    """
    Return the ``n`` features with the largest absolute weight per factor.

    Parameters
    ----------
    table : pd.DataFrame
        Weight table
    n : int
        Number of features to keep per factor
    factors : int or iterable of int, optional
        Restrict to these factors
    sign : {"all", "positive", "negative"}
        Keep only weights of this sign before ranking

    Returns
    -------
    pd.DataFrame
        Columns ``feature, factor, value, abs_value, rank`` sorted by factor
        and rank (1 = largest ``|value|``)
    """
    if sign not in VALID_SIGNS:
        raise InvalidArgumentError(f"sign must be one of {VALID_SIGNS}, got {sign!r}")
    if n < 1:
        raise InvalidArgumentError(f"n must be >= 1, got {n}")

    data = as_weight_table(table)
    if factors is not None:
        if isinstance(factors, (int, np.integer)):
            factors = [factors]
        data = data[data["factor"].isin(list(factors))]

    if sign == "positive":
        data = data[data["value"] > 0]
    elif sign == "negative":
        data = data[data["value"] < 0]

    data = data.assign(abs_value=data["value"].abs())
    top = (
        data.sort_values(["factor", "abs_value"], ascending=[True, False], kind="mergesort")
        .groupby("factor", sort=True)
        .head(n)
        .copy()
    )
    top["rank"] = top.groupby("factor").cumcount() + 1
    return top.reset_index(drop=True)


@dataclass
class WeightComparison:
    """Result of comparing the weights of two views."""

    view_a: str
    view_b: str
    factors: List[int]
    table_a: pd.DataFrame
    table_b: pd.DataFrame
    paired: pd.DataFrame
    correlations: pd.DataFrame

    def summary(self) -> Dict[str, Any]:
        """Return a JSON-serialisable overview of the comparison."""
        per_factor = []
        for record in self.correlations.to_dict(orient="records"):
            per_factor.append(
                {
                    "factor": int(record["factor"]),
                    "n_features": int(record["n_features"]),
                    "pearson_r": _finite_or_none(record["pearson_r"]),
                    "p_value": _finite_or_none(record["p_value"]),
                    "spearman_r": _finite_or_none(record["spearman_r"]),
                }
            )

        return {
            "view_a": self.view_a,
            "view_b": self.view_b,
            "factors": list(self.factors),
            "n_features_a": int(self.table_a["feature"].nunique()),
            "n_features_b": int(self.table_b["feature"].nunique()),
            "n_pairs": int(len(self.paired)),
            "correlations": per_factor,
        }


def _finite_or_none(value: float) -> Optional[float]:
    value = float(value)
    return value if np.isfinite(value) else None


def compare_views(
    model: BaseFactorModel,
    view_a: str,
    view_b: str,
    factors: FactorSelection = None,
    prefix_a: Optional[str] = None,
    prefix_b: Optional[str] = None,
    normalize: bool = True,
) -> WeightComparison:
    """
    Compare the weights of two views on the features they share.

    Extracts both views, strips the modality prefixes so feature names line
    up, rescales each table independently, pairs the weights and correlates
    them per factor.

    Parameters
    ----------
    model : BaseFactorModel
        Trained model handle
    view_a, view_b : str
        Views to compare
    factors : int or iterable of int, optional
        Factors to compare; all factors when None
    prefix_a, prefix_b : str, optional
        Feature name prefixes to remove from each view (e.g. ``"met_"``)
    normalize : bool
        Rescale each view's weights to a maximum absolute value of 1

    Returns
    -------
    WeightComparison
    """
    selected = resolve_factors(factors, model.factor_count())
    logger.info(
        f"Comparing weights of '{view_a}' and '{view_b}' on factors {selected}"
    )

    table_a = extract_weights(model, view_a, selected)
    table_b = extract_weights(model, view_b, selected)

    if prefix_a:
        table_a = strip_feature_prefix(table_a, prefix_a)
    if prefix_b:
        table_b = strip_feature_prefix(table_b, prefix_b)

    if normalize:
        table_a = normalize_weights(table_a)
        table_b = normalize_weights(table_b)

    paired = merge_weights(table_a, table_b, names=PAIRED_NAMES)
    if paired.empty:
        logger.warning(
            f"Views '{view_a}' and '{view_b}' share no features; check the feature prefixes"
        )

    correlations = correlate_weights(paired, names=PAIRED_NAMES)
    for record in correlations.itertuples(index=False):
        logger.info(
            f"Factor {record.factor}: {record.n_features} shared features, "
            f"Pearson r = {record.pearson_r:.3f}"
        )

    return WeightComparison(
        view_a=view_a,
        view_b=view_b,
        factors=selected,
        table_a=table_a,
        table_b=table_b,
        paired=paired,
        correlations=correlations,
    )
