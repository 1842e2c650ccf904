#!/usr/bin/env python3
"""
Scenario Chart Generator

Creates one 2x2 time-series chart per scenario run: supply against reserve
value, excess reserves, basket balances and cumulative redemption payouts.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .metrics import TreasuryMetricsCalculator


logger = logging.getLogger(__name__)


class ScenarioChartGenerator:
    """Generates one time-series chart per scenario"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        """Setup clean, professional chart styling"""
        plt.style.use('default')

        plt.rcParams.update({
            'figure.figsize': (12, 8),
            'font.size': 11,
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'legend.fontsize': 10,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10
        })

    def generate_scenario_charts(
        self,
        scenario_name: str,
        results: Dict[str, Any],
        charts_dir: Path
    ) -> List[Path]:
        """Generate the time-series chart; returns the written paths"""
        charts_dir = Path(charts_dir)
        charts_dir.mkdir(parents=True, exist_ok=True)

        scenario_results = results.get("scenario_results", results)
        if not scenario_results.get("metrics_history") and "sample_scenario_results" in results:
            scenario_results = results["sample_scenario_results"]

        metrics_history = scenario_results.get("metrics_history", [])
        if not metrics_history:
            logger.warning("No metrics history for %s, skipping chart", scenario_name)
            return []

        decimals = scenario_results.get("managed_decimals", 18)
        frame = TreasuryMetricsCalculator.history_frame(
            metrics_history,
            decimals={"managed_supply": decimals, "reserve_value": decimals,
                      "excess_reserves": decimals},
        )
        return [self._create_simulation_time_series(frame, charts_dir, scenario_name)]

    def _create_simulation_time_series(self, frame: pd.DataFrame, charts_dir: Path,
                                       scenario_name: str) -> Path:
        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 10))
        fig.suptitle(f'{scenario_name.replace("_", " ")} - Treasury Dynamics',
                     fontsize=16, fontweight='bold')

        steps = frame.index.to_numpy()

        self._plot_backing(ax1, frame, steps)
        self._plot_excess_reserves(ax2, frame, steps)
        self._plot_basket_balances(ax3, frame, steps)
        self._plot_cumulative_paid(ax4, frame, steps)

        plt.tight_layout()

        chart_path = charts_dir / f"{scenario_name.lower()}_treasury_dynamics.png"
        fig.savefig(chart_path, dpi=150, bbox_inches='tight')
        plt.close(fig)

        logger.info("Chart saved: %s", chart_path)
        return chart_path

    def _plot_backing(self, ax, frame, steps):
        """Managed supply against the value of the reserve"""
        ax.plot(steps, frame["managed_supply"], linewidth=3, color='#3498DB', label='Managed Supply')
        ax.plot(steps, frame["reserve_value"], linewidth=2, color='#27AE60',
                linestyle='--', label='Reserve Value')

        ax.set_title('Supply vs Reserve Value')
        ax.set_xlabel('Step')
        ax.set_ylabel('Managed Token Units')
        ax.legend()
        ax.grid(True, alpha=0.3)

    def _plot_excess_reserves(self, ax, frame, steps):
        excess = frame["excess_reserves"]
        ax.fill_between(steps, excess, color='#F39C12', alpha=0.3)
        ax.plot(steps, excess, linewidth=2, color='#F39C12', label='Excess Reserves')

        failed = frame[~frame["success"].astype(bool)]
        if not failed.empty:
            ax.scatter(failed.index, failed["excess_reserves"], color='#E74C3C',
                       zorder=5, label='Failed Action')

        ax.set_title('Mint Headroom (Excess Reserves)')
        ax.set_xlabel('Step')
        ax.set_ylabel('Managed Token Units')
        ax.legend()
        ax.grid(True, alpha=0.3)

    def _plot_basket_balances(self, ax, frame, steps):
        """Basket balances normalised to their first recorded value"""
        colors = ['#E74C3C', '#3498DB', '#27AE60', '#9B59B6', '#F39C12']
        columns = [c for c in frame.columns if c.startswith("basket_")]

        for i, column in enumerate(columns):
            series = frame[column].astype(float).to_numpy()
            if series.size == 0 or series[0] == 0:
                continue
            normalized = series / series[0] * 100
            ax.plot(steps, normalized, linewidth=2, color=colors[i % len(colors)],
                    label=column.replace("basket_", ""))

        ax.axhline(y=100, color='gray', linestyle='--', alpha=0.7)
        ax.set_title('Basket Balances (% of Initial)')
        ax.set_xlabel('Step')
        ax.set_ylabel('% of Initial Balance')
        if columns:
            ax.legend()
        ax.grid(True, alpha=0.3)

    def _plot_cumulative_paid(self, ax, frame, steps):
        """Cumulative payouts as a share of each asset's initial basket balance"""
        columns = [c for c in frame.columns if c.startswith("paid_")]

        for column in columns:
            symbol = column.replace("paid_", "")
            basket_column = f"basket_{symbol}"
            if basket_column not in frame.columns:
                continue
            initial = float(frame[basket_column].iloc[0])
            if initial == 0:
                continue
            paid = frame[column].astype(float).to_numpy()
            ax.step(steps, np.asarray(paid) / initial * 100, where='post', linewidth=2, label=symbol)

        ax.set_title('Cumulative Redemption Payouts')
        ax.set_xlabel('Step')
        ax.set_ylabel('% of Initial Basket Balance')
        if columns:
            ax.legend()
        ax.grid(True, alpha=0.3)
