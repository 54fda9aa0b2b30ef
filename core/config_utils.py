"""Configuration utilities for safe and consistent config access."""

import copy
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .config_schema import ConfigurationValidator, ConfigValidationError
from .error_handling import ConfigurationError

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to the YAML file. ``None`` returns an empty configuration so
        that defaults apply.

    Returns
    -------
    Dict[str, Any]
        Parsed configuration (an empty dict for an empty file)

    Raises
    ------
    ConfigurationError
        If the file is missing, unparsable, or not a mapping
    """
    if config_path is None:
        return {}

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse config {config_path}: {e}") from e

    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping, got {type(config).__name__}"
        )

    logger.info(f"Loaded configuration from {config_path}")
    return config


def safe_get(config: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Safely get nested configuration values.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary
    *keys : str
        Nested keys to access (e.g., 'output', 'output_dir')
    default : Any, optional
        Default value if key not found

    Returns
    -------
    Any
        Configuration value or default

    Examples
    --------
    >>> config = {'output': {'output_dir': '/path/to/results'}}
    >>> safe_get(config, 'output', 'output_dir', default='./results')
    '/path/to/results'
    >>> safe_get(config, 'missing', 'key', default='fallback')
    'fallback'
    """
    current = config
    try:
        for key in keys:
            current = current[key]
        return current
    except (KeyError, TypeError):
        return default


def get_output_dir(config: Dict[str, Any]) -> Path:
    """Get output directory from config with safe fallback."""
    return Path(safe_get(config, "output", "output_dir", default="./results"))


def update_config_safely(
    config: Dict[str, Any], updates: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Safely update configuration with nested structure.

    Values of ``None`` in ``updates`` are skipped so that unset command-line
    options do not clobber configured values.

    Parameters
    ----------
    config : Dict[str, Any]
        Original configuration
    updates : Dict[str, Any]
        Updates to apply

    Returns
    -------
    Dict[str, Any]
        Updated configuration
    """
    updated_config = copy.deepcopy(config)

    def _deep_update(base_dict: Dict, update_dict: Dict) -> None:
        for key, value in update_dict.items():
            if value is None:
                continue
            if isinstance(value, dict):
                if not isinstance(base_dict.get(key), dict):
                    base_dict[key] = {}
                _deep_update(base_dict[key], value)
            else:
                base_dict[key] = value

    _deep_update(updated_config, updates)
    return updated_config


def ensure_directories(config: Dict[str, Any]) -> Path:
    """
    Ensure the output directory exists.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary

    Returns
    -------
    Path
        The output directory
    """
    output_dir = get_output_dir(config)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Ensured output directory exists: {output_dir}")
    return output_dir


def validate_configuration(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge configuration with defaults, then validate and fix it.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary to validate

    Returns
    -------
    Dict[str, Any]
        Validated and potentially fixed configuration

    Raises
    ------
    ConfigurationError
        If configuration is invalid and cannot be fixed
    """
    merged_config = ConfigurationValidator.merge_with_defaults(config)
    try:
        return ConfigurationValidator.validate_and_fix_configuration(merged_config)
    except ConfigValidationError as e:
        raise ConfigurationError(str(e)) from e


@contextmanager
def PlotManager():
    """
    Context manager for automatic matplotlib cleanup.

    Automatically closes all matplotlib figures on exit,
    preventing memory buildup from unclosed plots.

    Examples
    --------
    >>> with PlotManager():
    ...     import matplotlib.pyplot as plt
    ...     plt.figure()
    ...     plt.plot([1, 2, 3])
    # All figures automatically closed
    """
    try:
        yield
    finally:
        import matplotlib.pyplot as plt

        plt.close("all")
        logger.debug("All matplotlib figures closed")
