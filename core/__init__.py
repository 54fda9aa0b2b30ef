"""
Core functionality for cross-view factor weight comparison.

This package contains the shared infrastructure used by the analysis,
visualization and command-line layers:

- error_handling.py: Exception hierarchy and standard result dictionaries
- config_schema.py: Typed configuration sections and validation
- config_utils.py: YAML loading and safe configuration access
- io_utils.py: CSV/JSON/plot output helpers
- logger_utils.py: Logging setup for command-line runs
"""

from .error_handling import (
    ConfigurationError,
    DataValidationError,
    FactorAnalysisError,
    InvalidArgumentError,
)

__all__ = [
    "ConfigurationError",
    "DataValidationError",
    "FactorAnalysisError",
    "InvalidArgumentError",
]
