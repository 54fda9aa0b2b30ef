# models/in_memory.py
"""In-memory factor model handle built from weight and score matrices."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Union

import numpy as np
import pandas as pd

from core.error_handling import DataValidationError, InvalidArgumentError

from .base import SCORE_COLUMNS, WEIGHT_COLUMNS, BaseFactorModel

logger = logging.getLogger(__name__)

MatrixLike = Union[pd.DataFrame, np.ndarray]


def _as_factor_frame(
    matrix: MatrixLike,
    row_names: Optional[Sequence[str]],
    default_prefix: str,
    kind: str,
    name: str,
) -> pd.DataFrame:
    """Convert a (rows x K) matrix into a frame indexed by name with columns 1..K."""
    if isinstance(matrix, pd.DataFrame):
        values = matrix.to_numpy(dtype=float)
        if row_names is None:
            row_names = [str(idx) for idx in matrix.index]
    else:
        values = np.asarray(matrix, dtype=float)

    if values.ndim != 2:
        raise DataValidationError(
            f"{kind} matrix for '{name}' must be 2D, got {values.ndim}D"
        )

    n_rows, K = values.shape
    if row_names is None:
        row_names = [f"{default_prefix}_{i}" for i in range(n_rows)]
    row_names = [str(r) for r in row_names]

    if len(row_names) != n_rows:
        raise DataValidationError(
            f"{kind} matrix for '{name}' has {n_rows} rows but {len(row_names)} names"
        )
    if len(set(row_names)) != n_rows:
        raise DataValidationError(f"{kind} names for '{name}' are not unique")

    return pd.DataFrame(
        values, index=pd.Index(row_names), columns=range(1, K + 1), copy=True
    )


class InMemoryFactorModel(BaseFactorModel):
    """Factor model handle over per-view weights and per-group factor scores.

    Parameters
    ----------
    weights : Dict[str, DataFrame or ndarray]
        Per-view weight matrices of shape (features x K). A DataFrame's index
        supplies feature names unless ``feature_names`` overrides it.
    feature_names : Dict[str, Sequence[str]], optional
        Feature names per view, for ndarray weights
    scores : Dict[str, DataFrame or ndarray], optional
        Per-group factor score matrices of shape (samples x K)
    sample_names : Dict[str, Sequence[str]], optional
        Sample names per group, for ndarray scores
    """

    def __init__(
        self,
        weights: Mapping[str, MatrixLike],
        feature_names: Optional[Mapping[str, Sequence[str]]] = None,
        scores: Optional[Mapping[str, MatrixLike]] = None,
        sample_names: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        if not weights:
            raise DataValidationError("A factor model needs at least one view")

        feature_names = feature_names or {}
        sample_names = sample_names or {}

        self._weights: Dict[str, pd.DataFrame] = {
            str(view): _as_factor_frame(
                W, feature_names.get(view), f"{view}_feature", "Weight", str(view)
            )
            for view, W in weights.items()
        }
        self._scores: Dict[str, pd.DataFrame] = {
            str(group): _as_factor_frame(
                Z, sample_names.get(group), f"{group}_sample", "Score", str(group)
            )
            for group, Z in (scores or {}).items()
        }

        factor_counts = {f"view {name}": frame.shape[1] for name, frame in self._weights.items()}
        factor_counts.update(
            {f"group {name}": frame.shape[1] for name, frame in self._scores.items()}
        )
        if len(set(factor_counts.values())) != 1:
            raise DataValidationError(
                f"All views and groups must have the same number of factors, got {factor_counts}"
            )
        self._K = next(iter(factor_counts.values()))
        if self._K < 1:
            raise DataValidationError("A factor model needs at least one factor")

        logger.debug(
            f"Created factor model: {len(self._weights)} views, "
            f"{len(self._scores)} groups, K={self._K}"
        )

    @classmethod
    def from_concatenated(
        cls,
        W: np.ndarray,
        Dm: Sequence[int],
        view_names: Sequence[str],
        feature_names: Optional[Mapping[str, Sequence[str]]] = None,
        Z: Optional[np.ndarray] = None,
        group_name: str = "group_1",
        subject_ids: Optional[Sequence[str]] = None,
    ) -> "InMemoryFactorModel":
        """Build a model from loadings stacked across views along the feature axis.

        ``W`` has shape (sum(Dm) x K); rows ``d:d + Dm[m]`` belong to view m.
        An optional score matrix ``Z`` (N x K) becomes a single group.
        """
        W = np.asarray(W, dtype=float)
        if len(Dm) != len(view_names):
            raise DataValidationError(
                f"Got {len(Dm)} view dimensions for {len(view_names)} view names"
            )
        if W.ndim != 2 or W.shape[0] != int(np.sum(Dm)):
            raise DataValidationError(
                f"W has shape {W.shape}, expected ({int(np.sum(Dm))}, K)"
            )

        weights = {}
        d = 0
        for view_name, dim in zip(view_names, Dm):
            weights[view_name] = W[d : d + dim, :]
            d += dim

        scores = None
        sample_names = None
        if Z is not None:
            scores = {group_name: Z}
            if subject_ids is not None:
                sample_names = {group_name: subject_ids}

        return cls(
            weights,
            feature_names=feature_names,
            scores=scores,
            sample_names=sample_names,
        )

    @classmethod
    def from_weights_frame(cls, df: pd.DataFrame) -> "InMemoryFactorModel":
        """Build a model from a long table with columns ``view, feature, factor, value``.

        Every view must define a weight for every (feature, factor) pair with
        factors numbered 1..K.
        """
        missing = [c for c in ("view", "feature", "factor", "value") if c not in df.columns]
        if missing:
            raise DataValidationError(f"Weights table is missing columns: {missing}")
        if df.empty:
            raise DataValidationError("Weights table is empty")

        try:
            factors = pd.to_numeric(df["factor"])
            if (factors != factors.round()).any():
                raise ValueError("factor indices must be whole numbers")
            factors = factors.astype(int)
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Weights table has non-integer factors: {e}") from e

        K = int(factors.max())
        expected = list(range(1, K + 1))

        weights = {}
        for view, view_df in df.assign(factor=factors).groupby("view", sort=False):
            feature_order = pd.unique(view_df["feature"].astype(str))
            try:
                W = view_df.assign(feature=view_df["feature"].astype(str)).pivot(
                    index="feature", columns="factor", values="value"
                )
            except ValueError as e:
                raise DataValidationError(
                    f"Duplicate (feature, factor) weights for view '{view}'"
                ) from e

            if sorted(W.columns) != expected:
                raise DataValidationError(
                    f"View '{view}' defines factors {sorted(W.columns)}, expected 1..{K}"
                )
            W = W.reindex(index=feature_order, columns=expected)
            if W.isna().to_numpy().any():
                raise DataValidationError(
                    f"View '{view}' is missing weights for some (feature, factor) pairs"
                )
            weights[str(view)] = W

        return cls(weights)

    def list_views(self) -> Set[str]:
        return set(self._weights)

    def list_groups(self) -> Set[str]:
        return set(self._scores)

    def factor_count(self) -> int:
        return self._K

    def _check_factors(self, factors: Optional[Iterable[int]]) -> List[int]:
        if factors is None:
            return list(range(1, self._K + 1))
        factors = list(factors)
        bad = [k for k in factors if not 1 <= k <= self._K]
        if bad:
            raise InvalidArgumentError(
                f"Factor indices {bad} out of range [1, {self._K}]"
            )
        return factors

    def get_weights(self, view: str, factors: Iterable[int]) -> pd.DataFrame:
        if view not in self._weights:
            raise InvalidArgumentError(
                f"Unknown view '{view}'; available views: {sorted(self._weights)}"
            )
        factors = self._check_factors(factors)

        W = self._weights[view][factors]
        table = (
            W.rename_axis(index="feature", columns="factor")
            .reset_index()
            .melt(id_vars="feature", var_name="factor", value_name="value")
        )
        table["factor"] = table["factor"].astype(int)
        return table[WEIGHT_COLUMNS]

    def get_factors(
        self, group: str, factors: Optional[Iterable[int]] = None
    ) -> pd.DataFrame:
        if group not in self._scores:
            raise InvalidArgumentError(
                f"Unknown group '{group}'; available groups: {sorted(self._scores)}"
            )
        factors = self._check_factors(factors)

        Z = self._scores[group][factors]
        table = (
            Z.rename_axis(index="sample", columns="factor")
            .reset_index()
            .melt(id_vars="sample", var_name="factor", value_name="value")
        )
        table["factor"] = table["factor"].astype(int)
        table["group"] = group
        return table[SCORE_COLUMNS]

    def __repr__(self) -> str:
        return (
            f"InMemoryFactorModel(views={sorted(self._weights)}, "
            f"groups={sorted(self._scores)}, K={self._K})"
        )
