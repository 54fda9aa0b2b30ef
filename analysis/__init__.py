"""Analysis package for cross-view factor weight comparison."""

from .comparison import (
    WeightComparison,
    compare_views,
    correlate_weights,
    top_weights,
)
from .weights import (
    as_weight_table,
    extract_weights,
    merge_weights,
    normalize_weights,
    resolve_factors,
    strip_feature_prefix,
)

__all__ = [
    "WeightComparison",
    "as_weight_table",
    "compare_views",
    "correlate_weights",
    "extract_weights",
    "merge_weights",
    "normalize_weights",
    "resolve_factors",
    "strip_feature_prefix",
    "top_weights",
]
