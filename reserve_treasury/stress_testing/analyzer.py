#!/usr/bin/env python3
"""
Results Analysis and Metrics

Analysis tools for stress test results focusing on treasury solvency:
backing after every mint, payouts never exceeding balances, and rounding
loss always retained by the treasury.
"""

from typing import Any, Dict, List

import numpy as np


class StressTestAnalyzer:
    """Results analysis and invariant checks"""

    def analyze_single_scenario(self, scenario_name: str, results: Dict[str, Any]) -> Dict[str, Any]:
        """Key metrics, invariant checks and a risk assessment for one run"""
        summary = results.get("summary_statistics", {})
        total_actions = summary.get("total_actions", 0)
        failed_actions = summary.get("failed_actions", 0)

        invariants = {
            "mints_fully_backed": self._mints_fully_backed(results),
            "payouts_within_balances": self._payouts_within_balances(results),
            "rounding_favours_treasury": self._rounding_favours_treasury(results),
        }

        key_metrics = {
            "total_actions": total_actions,
            "failed_actions": failed_actions,
            "success_rate": (total_actions - failed_actions) / total_actions if total_actions else 1.0,
            "total_burned": summary.get("total_burned", 0),
            "total_rounding_loss": summary.get("total_rounding_loss", 0),
            "final_managed_supply": summary.get("final_managed_supply", 0),
            "final_excess_reserves": summary.get("final_excess_reserves", 0),
            "final_collateralization": results.get("final_state", {}).get("collateralization"),
        }
        for symbol, paid in summary.get("total_paid", {}).items():
            key_metrics[f"paid_{symbol}"] = paid

        return {
            "scenario_name": scenario_name,
            "key_metrics": key_metrics,
            "invariants": invariants,
            "failures_by_type": summary.get("failures_by_type", {}),
            "risk_assessment": self._assess_risk(invariants, results),
        }

    def analyze_monte_carlo_results(self, scenario_name: str, runs_results: List[Dict]) -> Dict[str, Any]:
        """Aggregate statistics across Monte Carlo runs"""

        if not runs_results:
            return {"error": "No results to analyze"}

        failed_actions = []
        rounding_losses = []
        burned = []
        paid: Dict[str, List[int]] = {}
        invariant_breaches = 0

        for result in runs_results:
            summary = result.get("summary_statistics", {})
            failed_actions.append(summary.get("failed_actions", 0))
            rounding_losses.append(summary.get("total_rounding_loss", 0))
            burned.append(summary.get("total_burned", 0))
            for symbol, amount in summary.get("total_paid", {}).items():
                paid.setdefault(symbol, []).append(amount)

            analysis = self.analyze_single_scenario(scenario_name, result)
            if not all(analysis["invariants"].values()):
                invariant_breaches += 1

        return {
            "scenario_name": scenario_name,
            "num_runs": len(runs_results),
            "invariant_breaches": invariant_breaches,
            "failed_actions": self._describe(failed_actions),
            "rounding_loss": self._describe(rounding_losses),
            "total_burned": self._describe(burned),
            "total_paid": {symbol: self._describe(values) for symbol, values in paid.items()},
        }

    def generate_suite_summary(self, suite_results: Dict[str, Dict]) -> Dict[str, Any]:
        """Summarise a full suite run"""
        completed = {name: r for name, r in suite_results.items() if "error" not in r}
        breached = [
            name for name, r in completed.items()
            if not all(r.get("analysis", {}).get("invariants", {}).values())
        ]
        return {
            "scenarios_run": len(suite_results),
            "scenarios_completed": len(completed),
            "scenarios_with_invariant_breaches": breached,
        }

    # ── Invariants

    def _mints_fully_backed(self, results: Dict[str, Any]) -> bool:
        """Whenever a mint grew supply, supply is within reserve value"""
        previous_supply = None
        for metrics in results.get("metrics_history", []):
            supply = metrics["managed_supply"]
            grew = previous_supply is not None and supply > previous_supply
            if metrics.get("action") == "MINT" and grew and supply > metrics["reserve_value"]:
                return False
            previous_supply = supply
        return True

    def _payouts_within_balances(self, results: Dict[str, Any]) -> bool:
        for redemption in results.get("redemptions", []):
            for payout in redemption["payouts"]:
                if payout["amount"] > payout["balance_before"]:
                    return False
        return True

    def _rounding_favours_treasury(self, results: Dict[str, Any]) -> bool:
        for redemption in results.get("redemptions", []):
            for payout in redemption["payouts"]:
                if payout["rounding_loss"] < 0:
                    return False
        return True

    def _assess_risk(self, invariants: Dict[str, bool], results: Dict[str, Any]) -> Dict[str, Any]:
        concerns = [f"Invariant violated: {name}" for name, ok in invariants.items() if not ok]

        collateralization = results.get("final_state", {}).get("collateralization")
        if collateralization is not None and collateralization < 1.0:
            concerns.append(f"Supply exceeds reserve value (collateralization {collateralization:.3f})")

        if concerns and any(not ok for ok in invariants.values()):
            level = "CRITICAL"
        elif concerns:
            level = "ELEVATED"
        else:
            level = "LOW"
        return {"risk_level": level, "key_concerns": concerns}

    @staticmethod
    def _describe(values: List[int]) -> Dict[str, float]:
        """Summary statistics; amounts are converted to float for reporting"""
        data = np.array([float(v) for v in values])
        return {
            "mean": float(np.mean(data)),
            "std": float(np.std(data)),
            "min": float(np.min(data)),
            "p50": float(np.percentile(data, 50)),
            "p95": float(np.percentile(data, 95)),
            "max": float(np.max(data)),
        }
