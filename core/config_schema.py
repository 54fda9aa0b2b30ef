"""Configuration schema validation for cross-view weight comparison runs."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.io_utils import safe_filename

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Exception raised for configuration validation errors."""


class LogLevel(Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ModelSource(Enum):
    """Where the trained model handle comes from."""

    WEIGHTS_FILE = "weights_file"
    SYNTHETIC = "synthetic"


@dataclass
class ModelConfig:
    """Model source configuration schema."""

    source: str = "synthetic"
    weights_file: Optional[str] = None
    n_factors: int = 5
    n_features: int = 200
    random_seed: Optional[int] = 42

    def validate(self) -> List[str]:
        """Validate model configuration."""
        errors = []

        valid_sources = [s.value for s in ModelSource]
        if self.source not in valid_sources:
            errors.append(
                f"source must be one of {valid_sources}, got {self.source}"
            )

        if self.source == ModelSource.WEIGHTS_FILE.value:
            if not self.weights_file:
                errors.append("weights_file is required when source is 'weights_file'")
            elif not Path(self.weights_file).exists():
                errors.append(f"weights_file does not exist: {self.weights_file}")

        # Synthetic model dimensions
        if self.n_factors < 1:
            errors.append("n_factors must be >= 1")
        if self.n_features < 1:
            errors.append("n_features must be >= 1")

        if self.random_seed is not None:
            if not isinstance(self.random_seed, int):
                errors.append("random_seed must be an integer")
            elif self.random_seed < 0:
                errors.append("random_seed must be >= 0")

        return errors


@dataclass
class ComparisonConfig:
    """Comparison configuration schema."""

    view_a: str = "met"
    view_b: str = "acc"
    factors: Optional[List[int]] = None
    prefix_a: Optional[str] = None
    prefix_b: Optional[str] = None
    normalize: bool = True
    top_n: int = 10

    def validate(self) -> List[str]:
        """Validate comparison configuration."""
        errors = []

        if not self.view_a:
            errors.append("view_a is required")
        if not self.view_b:
            errors.append("view_b is required")

        if self.factors is not None:
            if not isinstance(self.factors, list) or not self.factors:
                errors.append("factors must be a non-empty list of integers or null")
            elif not all(
                isinstance(k, int) and not isinstance(k, bool) and k >= 1
                for k in self.factors
            ):
                errors.append("factors must contain positive integers")

        if self.top_n < 1:
            errors.append("top_n must be >= 1")

        return errors


@dataclass
class OutputConfig:
    """Output configuration schema."""

    output_dir: str = "./results"
    generate_plots: bool = True
    save_tables: bool = True

    def validate(self) -> List[str]:
        """Validate output configuration."""
        errors = []

        if not self.output_dir:
            errors.append("output_dir is required")

        return errors


@dataclass
class MonitoringConfig:
    """Monitoring configuration schema."""

    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> List[str]:
        """Validate monitoring configuration."""
        errors = []

        valid_levels = [level.value for level in LogLevel]
        if self.log_level not in valid_levels:
            errors.append(f"log_level must be one of {valid_levels}")

        return errors


@dataclass
class ConfigSections:
    """Typed view over a validated configuration dictionary."""

    model: ModelConfig = field(default_factory=ModelConfig)
    comparison: ComparisonConfig = field(default_factory=ComparisonConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


class ConfigurationValidator:
    """Main configuration validator."""

    @staticmethod
    def create_from_dict(config_dict: Dict[str, Any]) -> ConfigSections:
        """Create configuration objects from dictionary."""
        sections = ConfigSections()

        if "model" in config_dict:
            sections.model = ModelConfig(**config_dict["model"])

        if "comparison" in config_dict:
            sections.comparison = ComparisonConfig(**config_dict["comparison"])

        if "output" in config_dict:
            sections.output = OutputConfig(**config_dict["output"])

        if "monitoring" in config_dict:
            sections.monitoring = MonitoringConfig(**config_dict["monitoring"])

        return sections

    @staticmethod
    def validate_configuration(config_dict: Dict[str, Any]) -> List[str]:
        """Validate complete configuration."""
        all_errors = []

        try:
            sections = ConfigurationValidator.create_from_dict(config_dict)

            for section_name in ("model", "comparison", "output", "monitoring"):
                config_obj = getattr(sections, section_name)
                for error in config_obj.validate():
                    all_errors.append(f"{section_name}: {error}")

        except (TypeError, ValueError) as e:
            all_errors.append(f"Configuration structure error: {str(e)}")

        cross_errors = ConfigurationValidator._validate_cross_sections(config_dict)
        all_errors.extend(cross_errors)

        return all_errors

    @staticmethod
    def _validate_cross_sections(config_dict: Dict[str, Any]) -> List[str]:
        """Validate relationships between configuration sections."""
        errors = []

        comparison = config_dict.get("comparison")
        model = config_dict.get("model")
        # Malformed sections are reported by the section schemas
        if not isinstance(comparison, dict):
            comparison = {}
        if not isinstance(model, dict):
            model = {}

        view_a, view_b = comparison.get("view_a"), comparison.get("view_b")
        if view_a and view_a == view_b:
            errors.append("comparison: view_a and view_b must differ")
        elif (
            isinstance(view_a, str)
            and isinstance(view_b, str)
            and safe_filename(view_a) == safe_filename(view_b)
        ):
            errors.append(
                f"comparison: views '{view_a}' and '{view_b}' map to the same "
                f"output file name '{safe_filename(view_a)}'"
            )

        # Requested factors must exist in a synthetic model
        factors = comparison.get("factors")
        n_factors = model.get("n_factors", 5)
        if (
            model.get("source", "synthetic") == ModelSource.SYNTHETIC.value
            and isinstance(factors, list)
            and isinstance(n_factors, int)
        ):
            out_of_range = [
                k for k in factors if isinstance(k, int) and k > n_factors
            ]
            if out_of_range:
                errors.append(
                    f"comparison: factors {out_of_range} exceed model.n_factors={n_factors}"
                )

        return errors

    @staticmethod
    def validate_and_fix_configuration(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Validate configuration and apply fixes where possible."""
        fixed_config = ConfigurationValidator._apply_fixes(config_dict)

        errors = ConfigurationValidator.validate_configuration(fixed_config)

        if errors:
            error_message = "Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in errors
            )
            raise ConfigValidationError(error_message)

        logger.info("Configuration validation passed")
        return fixed_config

    @staticmethod
    def _apply_fixes(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply automatic fixes to configuration."""
        fixed_config = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in config_dict.items()
        }

        if "output" not in fixed_config:
            fixed_config["output"] = {"output_dir": "./results"}

        # A weights file implies the file source
        model_config = fixed_config.get("model")
        if isinstance(model_config, dict) and "source" not in model_config:
            if model_config.get("weights_file"):
                model_config["source"] = ModelSource.WEIGHTS_FILE.value
                logger.info("Set model.source='weights_file' because weights_file is given")
            else:
                model_config["source"] = ModelSource.SYNTHETIC.value

        # Normalise log level spelling
        monitoring = fixed_config.get("monitoring")
        if monitoring and isinstance(monitoring.get("log_level"), str):
            monitoring["log_level"] = monitoring["log_level"].upper()

        output_dir = fixed_config["output"].get("output_dir")
        if output_dir and not Path(output_dir).is_absolute():
            fixed_config["output"]["output_dir"] = str(Path(output_dir).resolve())

        return fixed_config

    @staticmethod
    def get_default_configuration() -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "model": {
                "n_factors": 5,
                "n_features": 200,
                "random_seed": 42,
            },
            "comparison": {
                "view_a": "met",
                "view_b": "acc",
                "factors": None,
                "prefix_a": None,
                "prefix_b": None,
                "normalize": True,
                "top_n": 10,
            },
            "output": {
                "output_dir": "./results",
                "generate_plots": True,
                "save_tables": True,
            },
            "monitoring": {"log_level": "INFO", "log_file": None},
        }

    @staticmethod
    def merge_with_defaults(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Merge user configuration with defaults."""
        default_config = ConfigurationValidator.get_default_configuration()

        def deep_merge(base: Dict, update: Dict) -> Dict:
            """Deep merge two dictionaries."""
            merged = base.copy()
            for key, value in update.items():
                if (
                    key in merged
                    and isinstance(merged[key], dict)
                    and isinstance(value, dict)
                ):
                    merged[key] = deep_merge(merged[key], value)
                else:
                    merged[key] = value
            return merged

        return deep_merge(default_config, config_dict)
