# visualization/weight_plots.py
"""Factor weight visualization module."""

import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from analysis.comparison import WeightComparison, top_weights
from core.config_utils import PlotManager
from core.error_handling import handle_errors
from core.io_utils import safe_filename, save_plot
from models.base import BaseFactorModel

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class WeightVisualizer:
    """Creates factor weight and factor score visualizations."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or {}
        self.logger = logger
        self.dpi = self.config.get("dpi", 300)
        self.setup_style()

    def setup_style(self):
        """Setup consistent plotting style."""
        plt.style.use("seaborn-v0_8-darkgrid")
        plt.rcParams.update(
            {
                "figure.figsize": (10, 6),
                "font.size": 11,
                "axes.titlesize": 13,
                "axes.labelsize": 11,
                "xtick.labelsize": 10,
                "ytick.labelsize": 10,
                "legend.fontsize": 10,
                "figure.dpi": 100,
                "savefig.bbox": "tight",
            }
        )

    def create_plots(
        self,
        comparison: WeightComparison,
        plot_dir: PathLike,
        model: Optional[BaseFactorModel] = None,
        top_n: int = 10,
    ) -> List[Path]:
        """Create all weight comparison plots. Returns the files written."""
        logger.info("Creating weight comparison plots")
        plot_dir = Path(plot_dir)
        created = []

        with PlotManager():
            created.append(
                self.plot_weight_comparison(
                    comparison, plot_dir / "weight_comparison.png"
                )
            )

            for view, table in (
                (comparison.view_a, comparison.table_a),
                (comparison.view_b, comparison.table_b),
            ):
                view_slug = safe_filename(view)
                created.append(
                    self.plot_weight_distribution(
                        table, view, plot_dir / f"weight_distribution_{view_slug}.png"
                    )
                )
                for factor in comparison.factors:
                    created.append(
                        self.plot_top_weights(
                            table,
                            view,
                            factor,
                            plot_dir / f"top_weights_{view_slug}_factor{factor}.png",
                            n=top_n,
                        )
                    )

            if model is not None and model.list_groups() and len(comparison.factors) >= 2:
                factor_x, factor_y = comparison.factors[:2]
                created.append(
                    self.plot_factor_scatter(
                        model,
                        factor_x,
                        factor_y,
                        plot_dir / f"factor_scatter_{factor_x}_vs_{factor_y}.png",
                    )
                )

        created = [path for path in created if path is not None]
        logger.info(f"Created {len(created)} plots in {plot_dir}")
        return created

    @handle_errors(return_dict=False, log_level="warning")
    def plot_weight_comparison(
        self, comparison: WeightComparison, save_path: PathLike
    ) -> Path:
        """Scatter the paired weights of the two views, one panel per factor."""
        paired = comparison.paired
        factors = comparison.factors
        correlations = comparison.correlations.set_index("factor")

        n_panels = max(len(factors), 1)
        n_cols = min(n_panels, 3)
        n_rows = math.ceil(n_panels / n_cols)
        fig, axes = plt.subplots(
            n_rows, n_cols, figsize=(4.5 * n_cols, 4 * n_rows), squeeze=False
        )
        axes = axes.ravel()

        for ax, factor in zip(axes, factors):
            data = paired[paired["factor"] == factor]
            if data.empty:
                ax.text(0.5, 0.5, "No shared features", ha="center", va="center",
                        transform=ax.transAxes)
            else:
                ax.scatter(data["value_a"], data["value_b"], s=12, alpha=0.6,
                           color="steelblue", edgecolors="none")
                lim = max(np.abs(data[["value_a", "value_b"]].to_numpy()).max(), 1e-12)
                ax.plot([-lim, lim], [-lim, lim], "--", color="grey", linewidth=0.8)
                ax.axhline(0, color="black", linewidth=0.5)
                ax.axvline(0, color="black", linewidth=0.5)

            r = correlations["pearson_r"].get(factor, np.nan)
            r_label = "n/a" if pd.isna(r) else f"{r:.2f}"
            ax.set_title(f"Factor {factor} (r = {r_label})")
            ax.set_xlabel(f"{comparison.view_a} weight")
            ax.set_ylabel(f"{comparison.view_b} weight")

        for ax in axes[len(factors):]:
            ax.set_visible(False)

        plt.suptitle(
            f"Weights: {comparison.view_a} vs {comparison.view_b}",
            fontsize=14, fontweight="bold",
        )
        plt.tight_layout()

        save_path = Path(save_path)
        save_plot(save_path, dpi=self.dpi)
        logger.info(f"Saved: {save_path}")
        return save_path

    @handle_errors(return_dict=False, log_level="warning")
    def plot_weight_distribution(
        self, table: pd.DataFrame, view_name: str, save_path: PathLike
    ) -> Path:
        """Plot the distribution of weights for each factor of one view."""
        data = table.assign(factor=table["factor"].map(lambda k: f"Factor {k}"))
        order = [f"Factor {k}" for k in sorted(table["factor"].unique())]

        fig, ax = plt.subplots(figsize=(8, max(3, 0.8 * len(order) + 1)))
        sns.stripplot(
            data=data, x="value", y="factor", order=order, ax=ax,
            size=3, alpha=0.5, jitter=0.25, color="steelblue",
        )
        ax.axvline(0, color="black", linewidth=0.8)
        ax.set_xlabel("Weight")
        ax.set_ylabel("")
        ax.set_title(f"Weight distribution: {view_name}")

        plt.tight_layout()

        save_path = Path(save_path)
        save_plot(save_path, dpi=self.dpi)
        logger.info(f"Saved: {save_path}")
        return save_path

    @handle_errors(return_dict=False, log_level="warning")
    def plot_top_weights(
        self,
        table: pd.DataFrame,
        view_name: str,
        factor: int,
        save_path: PathLike,
        n: int = 10,
    ) -> Path:
        """Bar chart of the features with the largest absolute weight on a factor."""
        top = top_weights(table, n=n, factors=[factor])
        top = top.iloc[::-1]

        fig, ax = plt.subplots(figsize=(7, max(3, 0.35 * len(top) + 1)))
        colors = np.where(top["value"] >= 0, "firebrick", "steelblue")
        ax.barh(top["feature"], top["value"], color=colors)
        ax.axvline(0, color="black", linewidth=0.8)
        ax.set_xlabel("Weight")
        ax.set_title(f"{view_name}: top {len(top)} weights on factor {factor}")

        plt.tight_layout()

        save_path = Path(save_path)
        save_plot(save_path, dpi=self.dpi)
        logger.info(f"Saved: {save_path}")
        return save_path

    @handle_errors(return_dict=False, log_level="warning")
    def plot_factor_scatter(
        self,
        model: BaseFactorModel,
        factor_x: int,
        factor_y: int,
        save_path: PathLike,
        groups: Optional[Sequence[str]] = None,
    ) -> Path:
        """Scatter sample scores on two factors, coloured by group."""
        groups = sorted(model.list_groups()) if groups is None else list(groups)
        scores = pd.concat(
            [model.get_factors(group, [factor_x, factor_y]) for group in groups],
            ignore_index=True,
        )
        wide = scores.pivot_table(
            index=["group", "sample"], columns="factor", values="value"
        ).reset_index()
        x_label, y_label = f"Factor {factor_x}", f"Factor {factor_y}"
        wide = wide.rename(columns={factor_x: x_label, factor_y: y_label})

        fig, ax = plt.subplots(figsize=(7, 6))
        sns.scatterplot(
            data=wide, x=x_label, y=y_label, hue="group", ax=ax, s=20, alpha=0.8
        )
        ax.set_title(f"{x_label} vs {y_label}")

        plt.tight_layout()

        save_path = Path(save_path)
        save_plot(save_path, dpi=self.dpi)
        logger.info(f"Saved: {save_path}")
        return save_path
