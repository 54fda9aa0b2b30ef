"""Test configuration and fixtures."""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from core.logger_utils import LOG_FORMAT
from models.base import BaseFactorModel
from models.in_memory import InMemoryFactorModel


class FakeFactorModel(BaseFactorModel):
    """Minimal model handle that returns a fixed weight table per view."""

    def __init__(self, tables, n_factors, groups=None):
        self.tables = tables
        self.n_factors = n_factors
        self.groups = groups or {}
        self.calls = []

    def list_views(self):
        return set(self.tables)

    def list_groups(self):
        return set(self.groups)

    def factor_count(self):
        return self.n_factors

    def get_weights(self, view: str, factors: Iterable[int]) -> pd.DataFrame:
        factors = list(factors)
        self.calls.append((view, factors))
        return self.tables[view]

    def get_factors(self, group: str, factors: Optional[Iterable[int]] = None):
        return self.groups[group]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def scenario_tables():
    """The two single-factor tables from the worked normalize/merge example."""
    table_a = pd.DataFrame(
        {"feature": ["g1", "g2"], "factor": [1, 1], "value": [4.0, -2.0]}
    )
    table_b = pd.DataFrame(
        {"feature": ["g1", "g3"], "factor": [1, 1], "value": [1.0, 5.0]}
    )
    return table_a, table_b


@pytest.fixture
def small_model():
    """Two-view, three-factor model with partly shared features and two groups."""
    np.random.seed(42)
    met = pd.DataFrame(
        np.random.normal(0, 1, (6, 3)),
        index=[f"met_region_{i}" for i in range(6)],
    )
    acc = pd.DataFrame(
        np.random.normal(0, 1, (5, 3)),
        index=[f"acc_region_{i}" for i in range(2, 7)],
    )
    scores = {
        "E6.5": np.random.normal(0, 1, (10, 3)),
        "E7.5": np.random.normal(1, 1, (8, 3)),
    }
    return InMemoryFactorModel({"met": met, "acc": acc}, scores=scores)


@pytest.fixture
def fake_model_factory():
    """Build FakeFactorModel instances from per-view tables."""
    return FakeFactorModel


@pytest.fixture(autouse=True)
def setup_logging():
    """Setup logging for tests and drop handlers installed by configure_logging."""
    logging.basicConfig(level=logging.WARNING)
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler.formatter is not None and handler.formatter._fmt == LOG_FORMAT:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
