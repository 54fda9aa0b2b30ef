# analysis/weights.py
"""Weight extraction, normalization and cross-view merging.

The three steps compose linearly::

    table_a = normalize_weights(extract_weights(model, "met", factors))
    table_b = normalize_weights(extract_weights(model, "acc", factors))
    paired = merge_weights(table_a, table_b, names=("met", "acc"))

All functions return new DataFrames and never modify their inputs.
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from core.error_handling import DataValidationError, InvalidArgumentError
from models.base import WEIGHT_COLUMNS, BaseFactorModel

logger = logging.getLogger(__name__)

KEY_COLUMNS = ["feature", "factor"]

FactorSelection = Optional[Union[int, Iterable[int]]]


def empty_weight_table() -> pd.DataFrame:
    """Return a weight table with no rows and the canonical dtypes."""
    return pd.DataFrame(
        {
            "feature": pd.Series(dtype=object),
            "factor": pd.Series(dtype="int64"),
            "value": pd.Series(dtype=float),
        }
    )


def as_weight_table(table: pd.DataFrame) -> pd.DataFrame:
    """Coerce a frame to the canonical ``feature, factor, value`` layout.

    Extra columns are dropped. An empty frame without the expected columns
    becomes an empty weight table.

    Raises
    ------
    DataValidationError
        If a non-empty frame lacks one of the weight columns or holds
        values that cannot be converted.
    """
    if table.empty and not set(WEIGHT_COLUMNS).issubset(table.columns):
        return empty_weight_table()

    missing = [col for col in WEIGHT_COLUMNS if col not in table.columns]
    if missing:
        raise DataValidationError(f"Weight table is missing columns: {missing}")

    try:
        factor = pd.to_numeric(table["factor"])
        fractional = factor != factor.round()
    except (TypeError, ValueError) as e:
        raise DataValidationError(f"Weight table has invalid factor entries: {e}") from e
    if fractional.any():
        offenders = factor[fractional].unique()[:5].tolist()
        raise DataValidationError(f"Factor indices must be whole numbers, got {offenders}")

    try:
        result = pd.DataFrame(
            {
                "feature": table["feature"].astype(str).to_numpy(dtype=object),
                "factor": factor.astype("int64").to_numpy(),
                "value": table["value"].astype(float).to_numpy(),
            }
        )
    except (TypeError, ValueError) as e:
        raise DataValidationError(f"Weight table has invalid entries: {e}") from e

    return result


def resolve_factors(factors: FactorSelection, n_factors: int) -> List[int]:
    """Validate a factor selection against a model with ``n_factors`` factors.

    ``None`` selects every factor and a single integer selects one. The
    result keeps the requested order with duplicates removed.

    Raises
    ------
    InvalidArgumentError
        For an empty selection, a non-integer index, or an index outside
        ``[1, n_factors]``.
    """
    if factors is None:
        return list(range(1, n_factors + 1))

    if isinstance(factors, (int, np.integer)) and not isinstance(factors, bool):
        factors = [factors]
    elif isinstance(factors, (str, bytes)):
        raise InvalidArgumentError(f"Factors must be integers, got {factors!r}")

    try:
        requested = list(factors)
    except TypeError as e:
        raise InvalidArgumentError(f"Factors must be an iterable of integers: {e}") from e

    if not requested:
        raise InvalidArgumentError("At least one factor must be requested")

    resolved: List[int] = []
    for k in requested:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise InvalidArgumentError(f"Factor index {k!r} is not an integer")
        k = int(k)
        if not 1 <= k <= n_factors:
            raise InvalidArgumentError(
                f"Factor index {k} out of range [1, {n_factors}]"
            )
        if k not in resolved:
            resolved.append(k)

    return resolved


def extract_weights(
    model: BaseFactorModel, view: str, factors: FactorSelection = None
) -> pd.DataFrame:
    """
    Fetch the weights of one view for a set of factors.

    Parameters
    ----------
    model : BaseFactorModel
        Trained model handle
    view : str
        View (modality) name; must be one of ``model.list_views()``
    factors : int or iterable of int, optional
        1-based factor indices. ``None`` selects all factors.

    Returns
    -------
    pd.DataFrame
        Weight table with one ``feature, factor, value`` row per
        (feature, factor) pair defined for the view

    Raises
    ------
    InvalidArgumentError
        If the view is unknown or a factor index is out of range
    DataValidationError
        If the model returns duplicate (feature, factor) rows
    """
    views = model.list_views()
    if view not in views:
        raise InvalidArgumentError(
            f"Unknown view '{view}'; available views: {sorted(views)}"
        )

    selected = resolve_factors(factors, model.factor_count())
    table = as_weight_table(model.get_weights(view, selected))
    table = table[table["factor"].isin(selected)].reset_index(drop=True)

    duplicated = table.duplicated(subset=KEY_COLUMNS)
    if duplicated.any():
        examples = table.loc[duplicated, KEY_COLUMNS].head(5).to_records(index=False).tolist()
        raise DataValidationError(
            f"View '{view}' returned duplicate (feature, factor) weights: {examples}"
        )

    logger.debug(
        f"Extracted {len(table)} weights for view '{view}', factors {selected}"
    )
    return table


def normalize_weights(table: pd.DataFrame, column: str = "value") -> pd.DataFrame:
    """
    Rescale a weight column so that its largest absolute value is 1.

    Every value is divided by the same positive scalar, so signs and
    ordering are preserved. A table whose values are all zero (or which is
    empty) is returned unchanged. Applying the function twice gives the same
    result as applying it once.

    Parameters
    ----------
    table : pd.DataFrame
        Weight table
    column : str, optional
        Column to rescale

    Returns
    -------
    pd.DataFrame
        A rescaled copy of ``table``
    """
    result = table.copy()
    if result.empty:
        return result

    max_abs = result[column].abs().max()
    if not max_abs > 0:
        logger.debug(f"All '{column}' values are zero; normalization skipped")
        return result

    result[column] = result[column] / max_abs
    return result


def merge_weights(
    table_a: pd.DataFrame,
    table_b: pd.DataFrame,
    names: Tuple[str, str] = ("value_a", "value_b"),
) -> pd.DataFrame:
    """
    Pair the weights of two tables on (feature, factor).

    Only keys present in both tables are kept. Rows come back sorted by
    (factor, feature), but that order is not part of the contract.

    Parameters
    ----------
    table_a, table_b : pd.DataFrame
        Weight tables, typically from two different views
    names : tuple of str, optional
        Column names for the values of ``table_a`` and ``table_b``

    Returns
    -------
    pd.DataFrame
        Paired table with columns ``feature, factor, names[0], names[1]``
    """
    name_a, name_b = names
    if name_a == name_b or {name_a, name_b} & set(KEY_COLUMNS):
        raise InvalidArgumentError(
            f"Paired value names must be distinct and not {KEY_COLUMNS}, got {names}"
        )

    left = as_weight_table(table_a).rename(columns={"value": name_a})
    right = as_weight_table(table_b).rename(columns={"value": name_b})

    paired = left.merge(right, on=KEY_COLUMNS, how="inner")
    paired = paired.sort_values(KEY_COLUMNS, kind="mergesort").reset_index(drop=True)

    logger.debug(
        f"Merged {len(left)} x {len(right)} weights into {len(paired)} pairs"
    )
    return paired


def strip_feature_prefix(
    table: pd.DataFrame, prefix: str, strict: bool = True
) -> pd.DataFrame:
    """
    Remove a modality prefix (e.g. ``"met_"``) from every feature name.

    Parameters
    ----------
    table : pd.DataFrame
        Weight table
    prefix : str
        Prefix to remove
    strict : bool, optional
        If True, every feature must carry the prefix

    Returns
    -------
    pd.DataFrame
        Copy of ``table`` with stripped feature names

    Raises
    ------
    DataValidationError
        If ``strict`` and a feature lacks the prefix, or if stripping makes
        two features of the same factor collide
    """
    result = table.copy()
    if not prefix or result.empty:
        return result

    features = result["feature"].astype(str)
    has_prefix = features.str.startswith(prefix)

    if strict and not has_prefix.all():
        offenders = features[~has_prefix].unique()[:5].tolist()
        raise DataValidationError(
            f"{(~has_prefix).sum()} features lack prefix '{prefix}', e.g. {offenders}"
        )

    result["feature"] = features.where(~has_prefix, features.str.slice(len(prefix)))

    if "factor" in result.columns and result.duplicated(subset=KEY_COLUMNS).any():
        raise DataValidationError(
            f"Stripping prefix '{prefix}' produced duplicate feature names"
        )

    return result
