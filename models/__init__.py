"""Models package - read-only handles over trained factor models."""

from .base import SCORE_COLUMNS, WEIGHT_COLUMNS, BaseFactorModel
from .in_memory import InMemoryFactorModel

__all__ = [
    'BaseFactorModel',
    'InMemoryFactorModel',
    'WEIGHT_COLUMNS',
    'SCORE_COLUMNS',
]
