"""Synthetic factor model generation module."""

import logging
from typing import Dict, Optional, Sequence

import numpy as np

from core.error_handling import InvalidArgumentError
from models.in_memory import InMemoryFactorModel

logger = logging.getLogger(__name__)


def generate_synthetic_model(
    view_names: Sequence[str] = ("met", "acc"),
    n_features: int = 200,
    K: int = 5,
    group_names: Sequence[str] = ("E5.5", "E6.5", "E7.5"),
    n_samples: int = 50,
    shared_fraction: float = 0.8,
    noise: float = 0.3,
    percW: float = 33.0,
    feature_prefixes: Optional[Dict[str, str]] = None,
    seed: Optional[int] = None,
) -> InMemoryFactorModel:
    """
    Generate a trained-looking multi-view factor model for testing and demos.

    Each view measures ``n_features`` features. A fraction ``shared_fraction``
    of them are the same underlying features in every view (e.g. genomic
    regions profiled for both methylation and accessibility) and their
    weights are a common sparse loading plus view-specific noise, so the
    views' weights correlate on those features. The remaining features are
    private to each view.

    Parameters
    ----------
    view_names : sequence of str, default=("met", "acc")
        Names of the views
    n_features : int, default=200
        Features per view
    K : int, default=5
        Number of factors
    group_names : sequence of str
        Sample groups that receive factor scores
    n_samples : int, default=50
        Samples per group
    shared_fraction : float, default=0.8
        Fraction of each view's features shared with the other views
    noise : float, default=0.3
        Standard deviation of the view-specific weight noise
    percW : float, default=33.0
        Percentage of non-zero loadings per factor
    feature_prefixes : dict, optional
        Feature-name prefix per view. Defaults to ``"<view>_"``.
    seed : int, optional
        Random seed

    Returns
    -------
    InMemoryFactorModel
    """
    if not view_names:
        raise InvalidArgumentError("At least one view is required")
    if K < 1 or n_features < 1:
        raise InvalidArgumentError("K and n_features must be >= 1")
    if not 0.0 <= shared_fraction <= 1.0:
        raise InvalidArgumentError("shared_fraction must be between 0 and 1")
    if noise < 0:
        raise InvalidArgumentError("noise must be >= 0")
    if not 0.0 < percW <= 100.0:
        raise InvalidArgumentError("percW must be in (0, 100]")

    logger.info("Generating synthetic factor model")
    rng = np.random.RandomState(seed)

    if feature_prefixes is None:
        feature_prefixes = {view: f"{view}_" for view in view_names}

    n_shared = int(round(shared_fraction * n_features))
    n_private = n_features - n_shared
    pW = max(1, int(round((percW / 100) * n_features)))

    def sparse_loadings(n_rows: int) -> np.ndarray:
        W = np.zeros((n_rows, K))
        for k in range(K):
            active = rng.choice(n_rows, size=min(pW, n_rows), replace=False)
            W[active, k] = rng.normal(0, 1, size=len(active))
        return W

    shared_W = sparse_loadings(n_shared) if n_shared else np.zeros((0, K))
    shared_names = [f"region_{j:04d}" for j in range(n_shared)]

    weights = {}
    feature_names = {}
    for view in view_names:
        prefix = feature_prefixes.get(view, "")
        view_shared = shared_W + rng.normal(0, noise, size=shared_W.shape)
        private_W = sparse_loadings(n_private) if n_private else np.zeros((0, K))
        private_names = [f"region_{view}_{j:04d}" for j in range(n_private)]

        weights[view] = np.vstack([view_shared, private_W])
        feature_names[view] = [prefix + name for name in shared_names + private_names]

    # Groups differ by a per-factor mean shift
    scores = {}
    sample_names = {}
    for g, group in enumerate(group_names):
        shift = rng.normal(0, 1, size=K) * (g + 1) / len(group_names)
        scores[group] = rng.normal(0, 1, size=(n_samples, K)) + shift
        sample_names[group] = [f"{group}_cell_{i:03d}" for i in range(n_samples)]

    return InMemoryFactorModel(
        weights,
        feature_names=feature_names,
        scores=scores,
        sample_names=sample_names,
    )
