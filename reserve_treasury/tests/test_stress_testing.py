#!/usr/bin/env python3
"""
Stress Testing Framework Tests

Scenario outcomes, analyzer invariants, the runner (targeted, suite and
Monte Carlo), results storage and the command-line entry point.
"""

import json

import pytest

from reserve_treasury.analysis.results_manager import ResultsManager, RunMetadata
from reserve_treasury.main import main
from reserve_treasury.simulation.config import SimulationConfig
from reserve_treasury.stress_testing.analyzer import StressTestAnalyzer
from reserve_treasury.stress_testing.runner import StressTestRunner
from reserve_treasury.stress_testing.scenarios import TreasuryStressTestSuite, scenario_descriptions


EXPECTED_SCENARIOS = [
    "Mint_To_Ceiling",
    "Bank_Run",
    "Reserve_Extraction",
    "Duplicate_Basket_Asset",
    "Reserve_Repoint",
    "Unauthorized_Admin",
]


class TestScenarios:
    """Outcomes of each named scenario on the default world"""

    def setup_method(self):
        self.suite = TreasuryStressTestSuite()

    def test_scenario_catalogue(self):
        assert self.suite.get_scenario_names() == EXPECTED_SCENARIOS
        assert set(scenario_descriptions()) == set(EXPECTED_SCENARIOS)
        assert self.suite.get_scenario("Nope") is None

    def test_unknown_scenario_raises(self):
        with pytest.raises(ValueError):
            self.suite.run_scenario("Nope")

    def test_mint_to_ceiling(self):
        results = self.suite.run_scenario("Mint_To_Ceiling")
        summary = results["summary_statistics"]

        assert results["scenario_name"] == "Mint_To_Ceiling"
        assert summary["total_actions"] == 5
        assert summary["failures_by_type"] == {"InsufficientBacking": 1}
        assert summary["final_excess_reserves"] == 0

    def test_bank_run(self):
        results = self.suite.run_scenario("Bank_Run")
        summary = results["summary_statistics"]

        assert summary["failed_actions"] == 0
        assert summary["total_burned"] > 0
        assert summary["final_managed_supply"] == 390_000 * 10 ** 18 - summary["total_burned"]
        assert all(amount > 0 for amount in summary["total_paid"].values())

    def test_reserve_extraction(self):
        results = self.suite.run_scenario("Reserve_Extraction")
        events = results["action_events"]

        assert [e["success"] for e in events] == [True, False, True]
        assert events[1]["error_type"] == "InsufficientBacking"
        assert results["final_state"]["collateralization"] < 1.0

    def test_duplicate_basket_asset(self):
        results = self.suite.run_scenario("Duplicate_Basket_Asset")
        redemption = results["redemptions"][0]
        first, second, _ = redemption["payouts"]

        assert first["asset"] == second["asset"]
        assert second["balance_before"] == first["balance_before"] - first["amount"]
        assert second["amount"] < first["amount"]

    def test_reserve_repoint(self):
        results = self.suite.run_scenario("Reserve_Repoint")
        events = results["action_events"]

        assert [e["success"] for e in events] == [True, False, True, True]
        assert results["final_state"]["reserve_asset"] == "RSV2"

    def test_unauthorized_admin_changes_nothing(self):
        results = self.suite.run_scenario("Unauthorized_Admin")
        summary = results["summary_statistics"]
        final_state = results["final_state"]

        assert summary["failed_actions"] == summary["total_actions"] == 11
        assert summary["failures_by_type"]["Unauthorized"] == 10
        assert final_state["owner"] == "owner"
        assert final_state["approved_minters"] == ["minter"]
        assert final_state["approved_senders"] == ["sender"]
        assert final_state["redemption_active"] is False
        assert results["metrics_history"][0]["managed_supply"] == final_state["managed_supply"]


class TestStressTestAnalyzer:
    """Invariant checks and aggregation"""

    def setup_method(self):
        self.analyzer = StressTestAnalyzer()
        self.suite = TreasuryStressTestSuite()

    def test_invariants_hold_for_every_scenario(self):
        for name in EXPECTED_SCENARIOS:
            analysis = self.analyzer.analyze_single_scenario(name, self.suite.run_scenario(name))
            assert all(analysis["invariants"].values()), name

    def test_overpayment_is_flagged(self):
        results = {
            "summary_statistics": {"total_actions": 1, "failed_actions": 0},
            "redemptions": [{"payouts": [{"amount": 11, "balance_before": 10, "rounding_loss": 0}]}],
        }
        analysis = self.analyzer.analyze_single_scenario("synthetic", results)

        assert analysis["invariants"]["payouts_within_balances"] is False
        assert analysis["risk_assessment"]["risk_level"] == "CRITICAL"

    def test_unbacked_mint_is_flagged(self):
        results = {
            "metrics_history": [
                {"action": "SETUP", "managed_supply": 10, "reserve_value": 20},
                {"action": "MINT", "managed_supply": 25, "reserve_value": 20},
            ],
        }
        analysis = self.analyzer.analyze_single_scenario("synthetic", results)
        assert analysis["invariants"]["mints_fully_backed"] is False

    def test_undercollateralised_run_is_elevated(self):
        analysis = self.analyzer.analyze_single_scenario(
            "Reserve_Extraction", self.suite.run_scenario("Reserve_Extraction")
        )
        assert analysis["risk_assessment"]["risk_level"] == "ELEVATED"

    def test_monte_carlo_aggregation(self):
        runs = [self.suite.run_scenario("Bank_Run") for _ in range(3)]
        aggregated = self.analyzer.analyze_monte_carlo_results("Bank_Run", runs)

        assert aggregated["num_runs"] == 3
        assert aggregated["invariant_breaches"] == 0
        assert aggregated["failed_actions"]["max"] == 0.0
        assert aggregated["total_burned"]["std"] == 0.0

    def test_monte_carlo_without_runs(self):
        assert "error" in self.analyzer.analyze_monte_carlo_results("Bank_Run", [])


class TestStressTestRunner:
    """Runner orchestration and results storage"""

    def test_targeted_scenario_without_saving(self):
        runner = StressTestRunner(auto_save=False)
        results = runner.run_targeted_scenario("Bank_Run")

        assert set(results) == {"scenario_results", "analysis"}
        assert results["analysis"]["scenario_name"] == "Bank_Run"
        assert runner.list_scenario_results("Bank_Run") == []

    def test_full_suite(self):
        runner = StressTestRunner(auto_save=False)
        results = runner.run_full_stress_test_suite()

        assert set(results["individual_results"]) == set(EXPECTED_SCENARIOS)
        assert results["suite_summary"]["scenarios_completed"] == len(EXPECTED_SCENARIOS)
        assert results["suite_summary"]["scenarios_with_invariant_breaches"] == []
        assert runner.get_results_summary()["scenarios_run"] == len(EXPECTED_SCENARIOS)

    def test_varied_configs_stay_valid_and_reproducible(self):
        config = SimulationConfig(random_seed=11)
        first = StressTestRunner(config, auto_save=False)._create_varied_config()
        runner = StressTestRunner(config, auto_save=False)
        varied = [runner._create_varied_config() for _ in range(20)]

        assert varied[0] == first
        for cfg in varied:
            assert 1 <= cfg.payout_percent <= 99
            assert all(0 < f <= 1 for f in cfg.redemption_fractions)
            assert cfg.holders == config.holders

    def test_monte_carlo_run(self):
        runner = StressTestRunner(SimulationConfig(random_seed=3), auto_save=False)
        results = runner.run_monte_carlo_stress_test("Bank_Run", num_runs=4)

        assert results["num_runs"] == 4
        assert results["invariant_breaches"] == 0
        assert "sample_scenario_results" in results
        assert "analysis" in results

    def test_monte_carlo_unknown_scenario(self):
        runner = StressTestRunner(auto_save=False)
        with pytest.raises(ValueError):
            runner.run_monte_carlo_stress_test("Nope", num_runs=2)

    def test_auto_save_writes_run_directory(self, tmp_path):
        runner = StressTestRunner(auto_save=True, results_dir=str(tmp_path))
        runner.run_targeted_scenario("Mint_To_Ceiling")
        runner.run_targeted_scenario("Mint_To_Ceiling")

        runs = runner.list_scenario_results("Mint_To_Ceiling")
        assert [r["run_id"][:7] for r in runs] == ["run_001", "run_002"]

        run_dir = tmp_path / "Mint_To_Ceiling" / runs[0]["run_id"]
        for name in ("results.json", "metadata.json", "metrics_history.csv", "summary.md"):
            assert (run_dir / name).exists(), name
        assert list((run_dir / "charts").glob("*.png"))

        loaded = runner.load_scenario_results("Mint_To_Ceiling", runs[0]["run_id"])
        assert loaded["analysis"]["scenario_name"] == "Mint_To_Ceiling"
        assert "## Invariants" in (run_dir / "summary.md").read_text()


class TestResultsManager:
    """Run directories and serialisation"""

    def setup_method(self):
        self.metadata = RunMetadata(
            run_id="run_001",
            scenario_name="Synthetic",
            timestamp="2024-01-01 00:00:00",
            parameters={"seed": 1},
            execution_time=0.5,
        )

    def test_directories_are_numbered(self, tmp_path):
        manager = ResultsManager(str(tmp_path))
        first = manager.create_run_directory("Synthetic")
        second = manager.create_run_directory("Synthetic")

        assert first.name.startswith("run_001_")
        assert second.name.startswith("run_002_")
        assert (first / "charts").is_dir()
        assert manager.list_all_scenarios() == ["Synthetic"]

    def test_save_and_load_round_trip(self, tmp_path):
        manager = ResultsManager(str(tmp_path))
        run_dir = manager.create_run_directory("Synthetic")
        results = {"big": 10 ** 30, "tags": {"b", "a"}, "nested": [(1, 2)]}

        manager.save_results(run_dir, results, self.metadata)

        loaded = manager.load_results(run_dir)
        assert loaded == {"big": 10 ** 30, "tags": ["a", "b"], "nested": [[1, 2]]}
        assert manager.load_metadata(run_dir) == self.metadata
        assert not (run_dir / "metrics_history.csv").exists()

    def test_missing_files_load_as_none(self, tmp_path):
        manager = ResultsManager(str(tmp_path))
        assert manager.load_results(tmp_path) is None
        assert manager.load_metadata(tmp_path) is None
        assert manager.list_scenario_runs("Nothing") == []

    def test_corrupt_results_load_as_none(self, tmp_path):
        (tmp_path / "results.json").write_text("{not json")
        assert ResultsManager(str(tmp_path)).load_results(tmp_path) is None

    def test_summary_report(self, tmp_path):
        manager = ResultsManager(str(tmp_path))
        path = manager.save_summary_report(tmp_path, {
            "metadata": {"scenario_name": "Synthetic", "timestamp": "now", "execution_time": 1.0},
            "key_metrics": {"success_rate": 0.5, "failed_actions": 2},
            "invariants": {"payouts_within_balances": False},
            "risk_assessment": {"risk_level": "CRITICAL", "key_concerns": ["Invariant violated"]},
        })

        text = path.read_text()
        assert "- **Success Rate**: 0.5000" in text
        assert "- FAIL: payouts within balances" in text
        assert "CRITICAL" in text


class TestCommandLine:
    """reserve-treasury entry point"""

    def test_no_arguments_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_list_scenarios(self, capsys):
        assert main(["--list-scenarios"]) == 0
        out = capsys.readouterr().out
        for name in EXPECTED_SCENARIOS:
            assert name in out

    def test_unknown_scenario(self, capsys):
        assert main(["--scenario", "Nope", "--no-save"]) == 1
        assert "--list-scenarios" in capsys.readouterr().out

    def test_single_scenario(self, capsys):
        assert main(["--scenario", "Unauthorized_Admin", "--no-save"]) == 0
        out = capsys.readouterr().out
        assert "Unauthorized: 10" in out
        assert "PASS" in out

    def test_full_suite_with_config(self, tmp_path, capsys):
        config_path = tmp_path / "world.json"
        config_path.write_text(json.dumps({"name": "cli", "payout_percent": 20}))

        code = main(["--full-suite", "--config", str(config_path),
                     "--results-dir", str(tmp_path / "results")])

        assert code == 0
        assert "No invariant breaches" in capsys.readouterr().out
        assert (tmp_path / "results" / "Bank_Run").is_dir()

    def test_bad_config_file(self, tmp_path, capsys):
        config_path = tmp_path / "bad.json"
        config_path.write_text(json.dumps({"payout_percent": 100}))

        assert main(["--full-suite", "--config", str(config_path), "--no-save"]) == 1
        assert "could not load configuration" in capsys.readouterr().out
