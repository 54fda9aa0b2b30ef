# models/base.py
"""Read-only interface to a trained multi-view factor model."""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

import pandas as pd

WEIGHT_COLUMNS = ["feature", "factor", "value"]
SCORE_COLUMNS = ["sample", "group", "factor", "value"]


class BaseFactorModel(ABC):
    """Abstract handle over a trained factor model.

    Implementations expose the model's views, groups and factor count and
    return weights and factor scores as long-format tables. Factors are
    numbered from 1 to ``factor_count()``. Accessors must not mutate the
    handle, so one handle can be shared between callers.
    """

    @abstractmethod
    def list_views(self) -> Set[str]:
        """Return the names of the views (modalities)."""
        pass

    @abstractmethod
    def list_groups(self) -> Set[str]:
        """Return the names of the sample groups."""
        pass

    @abstractmethod
    def factor_count(self) -> int:
        """Return the number of factors K."""
        pass

    @abstractmethod
    def get_weights(self, view: str, factors: Iterable[int]) -> pd.DataFrame:
        """Return a weight table with columns ``feature, factor, value``."""
        pass

    @abstractmethod
    def get_factors(
        self, group: str, factors: Optional[Iterable[int]] = None
    ) -> pd.DataFrame:
        """Return factor scores with columns ``sample, group, factor, value``."""
        pass
