#!/usr/bin/env python3
"""
Reserve Treasury Stress Testing - Main Entry Point

Command-line interface for running treasury stress scenarios against a
simulated world and browsing the stored results.
"""

import argparse
import logging
import sys
import time
from typing import Dict, Optional

from pydantic import ValidationError

from .core.exceptions import TreasuryError
from .simulation.config import SimulationConfig
from .stress_testing.runner import StressTestRunner
from .stress_testing.scenarios import TreasuryStressTestSuite


def main(argv: Optional[list] = None) -> int:
    """Main entry point with command-line interface"""

    parser = argparse.ArgumentParser(
        description="Reserve Treasury Stress Testing Framework",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reserve-treasury --list-scenarios                    # Show available scenarios
  reserve-treasury --scenario Bank_Run                 # Run one scenario (auto-saves results)
  reserve-treasury --scenario Bank_Run --monte-carlo 50
  reserve-treasury --full-suite --no-save              # Run every scenario once
  reserve-treasury --full-suite --config world.json --results-dir out/
        """
    )

    parser.add_argument('--list-scenarios', action='store_true',
                        help='List all available stress test scenarios')

    parser.add_argument('--scenario', type=str,
                        help='Run specific stress test scenario')

    parser.add_argument('--full-suite', action='store_true',
                        help='Run complete stress test suite')

    parser.add_argument('--monte-carlo', type=int, default=0,
                        help='Number of Monte Carlo runs per scenario (default: 0, single run)')

    parser.add_argument('--config', type=str,
                        help='Path to a SimulationConfig JSON file')

    parser.add_argument('--results-dir', type=str, default='results',
                        help='Directory for saved results (default: results)')

    parser.add_argument('--no-save', action='store_true',
                        help='Do not save results or charts')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not any([args.list_scenarios, args.scenario, args.full_suite]):
        parser.print_help()
        return 1

    if args.list_scenarios:
        list_scenarios()
        return 0

    try:
        config = SimulationConfig.from_json_file(args.config) if args.config else SimulationConfig()
    except (OSError, ValidationError) as e:
        print(f"Error: could not load configuration - {e}")
        return 1

    runner = StressTestRunner(config, auto_save=not args.no_save, results_dir=args.results_dir)

    try:
        if args.scenario:
            print(f"Running Stress Test Scenario: {args.scenario}")
            print("=" * 60)
            return run_single_scenario(runner, args.scenario, args.monte_carlo, args.verbose)

        print("Running Full Stress Test Suite")
        print("=" * 50)
        return run_full_suite(runner, args.monte_carlo, args.verbose)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except TreasuryError as e:
        print(f"Error: {e}")
        return 1


def list_scenarios():
    """List all available stress test scenarios"""

    test_suite = TreasuryStressTestSuite()

    print("Available Stress Test Scenarios:")
    print("-" * 40)

    for i, scenario in enumerate(test_suite.scenarios, 1):
        print(f"{i:2d}. {scenario.name}")
        print(f"    {scenario.description}")
        print()


def run_single_scenario(runner: StressTestRunner, scenario_name: str,
                        monte_carlo: int, verbose: bool) -> int:
    """Run a single stress test scenario"""

    try:
        if monte_carlo > 1:
            print(f"Running Monte Carlo analysis ({monte_carlo} runs)")
            results = runner.run_monte_carlo_stress_test(scenario_name, monte_carlo)
        else:
            results = runner.run_targeted_scenario(scenario_name)
    except ValueError as e:
        print(f"Error: {str(e)}")
        print("\nUse --list-scenarios to see available scenarios")
        return 1

    display_scenario_results(scenario_name, results, verbose)
    return 0


def run_full_suite(runner: StressTestRunner, monte_carlo: int, verbose: bool) -> int:
    """Run complete stress test suite"""

    start_time = time.time()
    results = runner.run_full_stress_test_suite(monte_carlo)

    if verbose:
        for name, scenario_results in results["individual_results"].items():
            display_scenario_results(name, scenario_results, verbose)

    display_suite_summary(results["suite_summary"])

    elapsed = time.time() - start_time
    print(f"\nFull stress test suite completed in {elapsed:.1f}s")

    return 1 if results["suite_summary"]["scenarios_with_invariant_breaches"] else 0


def display_scenario_results(scenario_name: str, results: Dict, verbose: bool):
    """Display results for single scenario"""

    print(f"\nResults for {scenario_name}:")
    print("=" * (len(scenario_name) + 12))

    if "error" in results:
        print(f"Failed: {results['error']}")
        return

    analysis = results.get("analysis", {})
    assessment = analysis.get("risk_assessment", {})
    print(f"Risk Level: {assessment.get('risk_level', 'Unknown')}")
    for concern in assessment.get("key_concerns", []):
        print(f"  - {concern}")

    print("\nInvariants:")
    for name, ok in analysis.get("invariants", {}).items():
        print(f"  {'PASS' if ok else 'FAIL'}  {name.replace('_', ' ')}")

    print("\nKey Metrics:")
    for metric, value in analysis.get("key_metrics", {}).items():
        if isinstance(value, float):
            print(f"  {metric.replace('_', ' ').title()}: {value:.4f}")
        else:
            print(f"  {metric.replace('_', ' ').title()}: {value}")

    failures = analysis.get("failures_by_type", {})
    if failures:
        print("\nRejected Actions:")
        for error_type, count in failures.items():
            print(f"  {error_type}: {count}")

    if verbose and "num_runs" in results:
        print(f"\nMonte Carlo ({results['num_runs']} runs, "
              f"{results['invariant_breaches']} with invariant breaches):")
        for metric in ("failed_actions", "rounding_loss", "total_burned"):
            stats = results[metric]
            print(f"  {metric.replace('_', ' ').title()}:")
            print(f"    Mean: {stats['mean']:.2f}")
            print(f"    Range: {stats['min']:.2f} - {stats['max']:.2f}")


def display_suite_summary(summary: Dict):
    """Display summary for full test suite"""

    print("\nSTRESS TEST SUITE SUMMARY")
    print("=" * 30)
    print(f"Scenarios run: {summary['scenarios_run']}")
    print(f"Scenarios completed: {summary['scenarios_completed']}")

    breached = summary["scenarios_with_invariant_breaches"]
    if breached:
        print("\nInvariant breaches:")
        for name in breached:
            print(f"  - {name}")
    else:
        print("No invariant breaches")


if __name__ == "__main__":
    sys.exit(main())
