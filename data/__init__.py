"""Synthetic model generation."""

from .synthetic import generate_synthetic_model

__all__ = ["generate_synthetic_model"]
