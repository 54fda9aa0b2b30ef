#!/usr/bin/env python
"""
Cross-view factor weight comparison runner.

Loads a trained factor model (a long-format weights table, or a synthetic
model for demos), compares the weights of two views on their shared
features and writes tables, a JSON summary and plots to the output directory.

Usage:
    python run_comparison.py --config config.yaml
    python run_comparison.py --weights weights.csv --view-a met --view-b acc \
        --prefix-a met_ --prefix-b acc_ --factors 1 2 3
    python run_comparison.py --synthetic --output-dir results/demo
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from analysis.comparison import compare_views, top_weights
from core.config_utils import (
    ensure_directories,
    load_config,
    safe_get,
    update_config_safely,
    validate_configuration,
)
from core.error_handling import (
    FactorAnalysisError,
    create_success_result,
    log_and_return_error,
)
from core.io_utils import OutputManager, load_csv, safe_filename, save_json
from core.logger_utils import configure_logging
from data.synthetic import generate_synthetic_model
from models.base import BaseFactorModel
from models.in_memory import InMemoryFactorModel

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compare factor weights of two views of a trained factor model"
    )
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--weights", type=str, default=None,
        help="Long-format weights table (columns: view, feature, factor, value)",
    )
    source.add_argument(
        "--synthetic", action="store_true", help="Use a synthetic model"
    )

    parser.add_argument("--view-a", type=str, default=None, help="First view")
    parser.add_argument("--view-b", type=str, default=None, help="Second view")
    parser.add_argument(
        "--factors", type=int, nargs="+", default=None, help="1-based factor indices"
    )
    parser.add_argument("--prefix-a", type=str, default=None, help="Feature prefix of view A")
    parser.add_argument("--prefix-b", type=str, default=None, help="Feature prefix of view B")
    parser.add_argument(
        "--no-normalize", action="store_true", help="Keep raw weight magnitudes"
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip plot generation")
    parser.add_argument("--output-dir", type=str, default=None, help="Output directory")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Load the YAML config, apply command-line overrides and validate."""
    config = load_config(args.config)

    model_updates: Dict[str, Any] = {}
    if args.weights:
        model_updates = {"source": "weights_file", "weights_file": args.weights}
    elif args.synthetic:
        model_updates = {"source": "synthetic"}

    overrides = {
        "model": model_updates,
        "comparison": {
            "view_a": args.view_a,
            "view_b": args.view_b,
            "factors": args.factors,
            "prefix_a": args.prefix_a,
            "prefix_b": args.prefix_b,
            "normalize": False if args.no_normalize else None,
        },
        "output": {
            "output_dir": args.output_dir,
            "generate_plots": False if args.no_plots else None,
        },
        "monitoring": {"log_level": args.log_level},
    }
    config = update_config_safely(config, overrides)
    return validate_configuration(config)


def load_model(config: Dict[str, Any]) -> BaseFactorModel:
    """Build the model handle described by the ``model`` config section."""
    source = safe_get(config, "model", "source", default="synthetic")

    if source == "weights_file":
        weights_file = Path(safe_get(config, "model", "weights_file"))
        logger.info(f"Loading weights from {weights_file}")
        return InMemoryFactorModel.from_weights_frame(load_csv(weights_file))

    view_names = (
        safe_get(config, "comparison", "view_a"),
        safe_get(config, "comparison", "view_b"),
    )
    logger.info(f"Generating synthetic model with views {list(view_names)}")
    return generate_synthetic_model(
        view_names=view_names,
        n_features=safe_get(config, "model", "n_features", default=200),
        K=safe_get(config, "model", "n_factors", default=5),
        feature_prefixes={
            view_names[0]: safe_get(config, "comparison", "prefix_a") or "",
            view_names[1]: safe_get(config, "comparison", "prefix_b") or "",
        },
        seed=safe_get(config, "model", "random_seed"),
    )


def run_comparison(config: Dict[str, Any]) -> Dict[str, Any]:
    """Run one comparison and write its outputs. Returns the run summary."""
    output_dir = ensure_directories(config)
    comparison_config = config["comparison"]

    model = load_model(config)
    logger.info(f"Loaded {model!r}")

    comparison = compare_views(
        model,
        comparison_config["view_a"],
        comparison_config["view_b"],
        factors=comparison_config.get("factors"),
        prefix_a=comparison_config.get("prefix_a"),
        prefix_b=comparison_config.get("prefix_b"),
        normalize=comparison_config.get("normalize", True),
    )

    slug_a = safe_filename(comparison.view_a)
    slug_b = safe_filename(comparison.view_b)
    top_n = comparison_config.get("top_n", 10)

    with OutputManager(output_dir) as outputs:
        if safe_get(config, "output", "save_tables", default=True):
            outputs.save_csv(comparison.table_a, f"weights_{slug_a}.csv")
            outputs.save_csv(comparison.table_b, f"weights_{slug_b}.csv")
            outputs.save_csv(
                comparison.paired.rename(
                    columns={"value_a": f"value_{slug_a}", "value_b": f"value_{slug_b}"}
                ),
                "paired_weights.csv",
            )
            outputs.save_csv(comparison.correlations, "correlations.csv")
            outputs.save_csv(
                top_weights(comparison.table_a, n=top_n), f"top_weights_{slug_a}.csv"
            )
            outputs.save_csv(
                top_weights(comparison.table_b, n=top_n), f"top_weights_{slug_b}.csv"
            )

        if safe_get(config, "output", "generate_plots", default=True):
            # Imported here so table-only runs do not need a plotting backend
            from visualization.weight_plots import WeightVisualizer

            visualizer = WeightVisualizer()
            for path in visualizer.create_plots(
                comparison, output_dir / "plots", model=model, top_n=top_n
            ):
                outputs.track(path)

        # The manifest lists the summary itself as the last file
        summary_path = output_dir / "summary.json"
        result = create_success_result(
            **comparison.summary(),
            output_dir=str(output_dir),
            files=[str(path) for path in outputs.files_created + [summary_path]],
        )
        outputs.save_json(result, summary_path.name)

    logger.info(f"✅ Comparison complete: {result['n_pairs']} paired weights")
    return result


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point. Returns the process exit code."""
    args = parse_args(argv)
    configure_logging("INFO")

    try:
        config = build_config(args)
    except FactorAnalysisError as e:
        log_and_return_error(e, logger, context="Invalid configuration")
        return 1

    configure_logging(
        safe_get(config, "monitoring", "log_level", default="INFO"),
        safe_get(config, "monitoring", "log_file"),
    )

    try:
        run_comparison(config)
    except (FactorAnalysisError, OSError, ValueError) as e:
        error = log_and_return_error(e, logger, context="Weight comparison failed")
        save_json(error, Path(safe_get(config, "output", "output_dir")) / "summary.json")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
