#!/usr/bin/env python3
"""
Stress Test Execution Engine

Runs treasury stress scenarios individually, as a full suite, or as Monte
Carlo batches over varied redemption parameters, saving results and charts
when auto-save is enabled.
"""

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from ..analysis.results_manager import ResultsManager, RunMetadata
from ..analysis.scenario_charts import ScenarioChartGenerator
from ..core.exceptions import TreasuryError
from ..simulation.config import SimulationConfig
from .analyzer import StressTestAnalyzer
from .scenarios import TreasuryStressTestSuite


logger = logging.getLogger(__name__)


class StressTestRunner:
    """Stress test execution engine with Monte Carlo capabilities and automatic results storage"""

    def __init__(self, config: Optional[SimulationConfig] = None, auto_save: bool = True,
                 results_dir: str = "results"):
        self.config = config or SimulationConfig()
        self.test_suite = TreasuryStressTestSuite()
        self.analyzer = StressTestAnalyzer()
        self.results = {}
        self.rng = np.random.default_rng(self.config.random_seed)

        self.auto_save = auto_save
        self.results_manager = ResultsManager(results_dir) if self.auto_save else None
        self.chart_generator = ScenarioChartGenerator() if self.auto_save else None

    def run_monte_carlo_stress_test(
        self,
        scenario_name: str,
        num_runs: int = 100,
        vary_params: bool = True
    ) -> Dict:
        """
        Run Monte Carlo stress test for a specific scenario

        Args:
            scenario_name: Name of stress scenario to run
            num_runs: Number of Monte Carlo runs
            vary_params: Whether to vary payout percent and redemption fractions

        Returns:
            Aggregated results across all runs, with the last run as a sample
        """
        if self.test_suite.get_scenario(scenario_name) is None:
            raise ValueError(f"Unknown scenario: {scenario_name}")

        logger.info("Running Monte Carlo stress test: %s (%d runs)", scenario_name, num_runs)

        runs_results = []
        start_time = time.time()

        for run in range(num_runs):
            config = self._create_varied_config() if vary_params else self.config
            try:
                result = self.test_suite.run_scenario(scenario_name, config)
            except TreasuryError as e:
                logger.warning("Run %d failed: %s", run, e)
                continue
            runs_results.append(result)

            if (run + 1) % 10 == 0:
                logger.info("Completed %d/%d runs (%.1fs)", run + 1, num_runs, time.time() - start_time)

        aggregated_results = self.analyzer.analyze_monte_carlo_results(scenario_name, runs_results)
        if runs_results:
            sample = runs_results[-1]
            aggregated_results["sample_scenario_results"] = sample
            aggregated_results["analysis"] = self.analyzer.analyze_single_scenario(scenario_name, sample)

        total_time = time.time() - start_time
        logger.info("Monte Carlo stress test completed in %.1fs", total_time)

        if self.auto_save:
            self._save_scenario_results(scenario_name, aggregated_results, total_time, num_runs)

        return aggregated_results

    def run_full_stress_test_suite(self, num_monte_carlo_runs: int = 0) -> Dict:
        """
        Run every scenario once (or as Monte Carlo batches when num_monte_carlo_runs > 0)

        Returns:
            {"individual_results": name -> results, "suite_summary": summary}
        """
        logger.info("Running full treasury stress test suite")

        suite_results = {}
        for scenario_name in self.test_suite.get_scenario_names():
            try:
                if num_monte_carlo_runs > 0:
                    suite_results[scenario_name] = self.run_monte_carlo_stress_test(
                        scenario_name, num_monte_carlo_runs
                    )
                else:
                    suite_results[scenario_name] = self.run_targeted_scenario(scenario_name)
            except TreasuryError as e:
                logger.error("Failed to run %s: %s", scenario_name, e)
                suite_results[scenario_name] = {"error": str(e)}

        self.results = suite_results
        summary = self.analyzer.generate_suite_summary(suite_results)

        return {
            "individual_results": suite_results,
            "suite_summary": summary
        }

    def run_targeted_scenario(
        self,
        scenario_name: str,
        config: Optional[SimulationConfig] = None
    ) -> Dict:
        """
        Run a single targeted stress test scenario

        Args:
            scenario_name: Name of scenario to run
            config: Configuration overriding the runner's own

        Returns:
            Scenario results and analysis
        """
        results = self.test_suite.run_scenario(scenario_name, config or self.config)
        analysis = self.analyzer.analyze_single_scenario(scenario_name, results)

        final_results = {
            "scenario_results": results,
            "analysis": analysis
        }

        if self.auto_save:
            self._save_scenario_results(scenario_name, final_results, 0.0, 1)

        return final_results

    def _create_varied_config(self) -> SimulationConfig:
        """Configuration with randomised payout percent and redemption fractions"""
        base = self.config

        # Payout percent within +-20 points, kept inside [1, 99]
        payout_percent = int(np.clip(base.payout_percent + self.rng.integers(-20, 21), 1, 99))

        # Redemption fractions scaled by 0.5x-1.5x, kept inside (0, 1]
        fractions = [
            float(np.clip(f * self.rng.uniform(0.5, 1.5), 0.01, 1.0))
            for f in base.redemption_fractions
        ]

        return base.model_copy(update={
            "payout_percent": payout_percent,
            "redemption_fractions": fractions,
        })

    def get_results_summary(self) -> Dict:
        """Get summary of all test results"""
        if not self.results:
            return {"message": "No test results available"}

        return self.analyzer.generate_suite_summary(self.results)

    def _save_scenario_results(
        self,
        scenario_name: str,
        results: Dict,
        execution_time: float,
        num_runs: int
    ) -> Optional[Path]:
        """Save scenario results, chart and summary into a new run directory"""
        if not self.results_manager:
            return None

        run_dir = self.results_manager.create_run_directory(scenario_name)

        metadata = RunMetadata(
            run_id=run_dir.name,
            scenario_name=scenario_name,
            timestamp=time.strftime("%Y-%m-%d %H:%M:%S"),
            parameters={
                "num_monte_carlo_runs": num_runs,
                "config_name": self.config.name,
                "random_seed": self.config.random_seed,
                "backing_ratio": self.config.backing_ratio,
                "payout_percent": self.config.payout_percent,
            },
            execution_time=execution_time,
            num_runs=num_runs,
        )

        self.results_manager.save_results(run_dir, results, metadata)

        charts_generated: List[Path] = []
        if self.chart_generator:
            charts_generated = self.chart_generator.generate_scenario_charts(
                scenario_name, results, run_dir / "charts"
            )

        analysis = results.get("analysis", {})
        summary_data = {
            "metadata": metadata.__dict__,
            "key_metrics": analysis.get("key_metrics", {}),
            "invariants": analysis.get("invariants", {}),
            "risk_assessment": analysis.get("risk_assessment", {}),
            "charts_generated": [chart.name for chart in charts_generated],
        }
        self.results_manager.save_summary_report(run_dir, summary_data)

        logger.info("Results saved to: %s", run_dir)
        return run_dir

    def list_scenario_results(self, scenario_name: str) -> List[Dict]:
        """List all saved results for a scenario"""
        if not self.results_manager:
            return []
        return self.results_manager.list_scenario_runs(scenario_name)

    def load_scenario_results(self, scenario_name: str, run_id: str) -> Optional[Dict]:
        """Load results from a specific run"""
        runs = self.list_scenario_results(scenario_name)
        target_run = next((run for run in runs if run["run_id"] == run_id), None)
        if not target_run:
            return None
        return self.results_manager.load_results(Path(target_run["path"]))
