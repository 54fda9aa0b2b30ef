"""
Visualization package for factor weight comparison.

- WeightVisualizer: paired-weight scatter plots, weight distributions,
  top-weight bar charts and factor score scatter plots
"""

from .weight_plots import WeightVisualizer

__all__ = ["WeightVisualizer"]
