#!/usr/bin/env python3
"""
Simulation Engine and Metrics Tests

World construction from a SimulationConfig, action execution and recording,
and the metrics calculator built on top of it.
"""

import pytest

from reserve_treasury.analysis.metrics import TreasuryMetricsCalculator
from reserve_treasury.core.exceptions import ConfigurationError
from reserve_treasury.simulation.config import HolderSpec, SimulationConfig
from reserve_treasury.simulation.engine import TreasurySimulationEngine
from reserve_treasury.simulation.primitives import Action, ActionKind


ONE = 10 ** 18


class TestSimulationEngine:
    """World setup and action execution"""

    def setup_method(self):
        self.engine = TreasurySimulationEngine()
        self.config = self.engine.config

    def test_world_is_funded_and_minted(self):
        treasury = self.engine.treasury

        assert self.engine.managed_token.total_supply() == 390_000 * ONE
        assert self.engine.holder_balance("alice") == 250_000 * ONE
        assert treasury.excess_reserves() == 2 * 10 ** 24 - 390_000 * ONE
        assert [a.symbol for a in treasury.redeemable_tokens] == ["USDC", "WETH"]
        assert treasury.is_approved_minter(self.config.minter)
        assert treasury.is_approved_sender(self.config.sender)
        assert not treasury.redemption_active

    def test_unmintable_holdings_fail_setup(self):
        config = SimulationConfig(holders=[HolderSpec(name="whale", mint_amount=10 ** 30)])
        with pytest.raises(ConfigurationError):
            TreasurySimulationEngine(config)

    def test_failed_action_is_recorded(self):
        event = self.engine.execute(Action(ActionKind.MINT, "mallory", {"to": "mallory", "amount": 1}))

        assert event.success is False
        assert event.error_type == "Unauthorized"
        assert "mallory" in event.error_message

    def test_unknown_asset_raises(self):
        with pytest.raises(ConfigurationError):
            self.engine.asset("NOPE")

    def test_add_asset_rejects_existing_symbol(self):
        with pytest.raises(ConfigurationError):
            self.engine.add_asset("USDC")

    def test_run_simulation_records_every_step(self):
        actions = [
            Action(ActionKind.SET_REDEMPTION_ACTIVE, self.config.owner, {"percent": 50}),
            Action(ActionKind.BURN_AND_REDEEM, "bob", {"amount": 10_000 * ONE}),
            Action(ActionKind.HOLD, "bob"),
        ]
        results = self.engine.run_simulation(actions)

        history = results["metrics_history"]
        assert len(history) == len(actions) + 1
        assert history[0]["action"] == "SETUP"
        assert [m["step"] for m in history] == [0, 1, 2, 3]

        summary = results["summary_statistics"]
        assert summary["total_actions"] == 3
        assert summary["failed_actions"] == 0
        assert summary["total_burned"] == 10_000 * ONE
        assert summary["final_managed_supply"] == 380_000 * ONE
        assert summary["total_paid"]["USDC"] > 0
        assert summary["total_rounding_loss"] >= 0

    def test_redemption_record_matches_ledgers(self):
        self.engine.execute(Action(ActionKind.SET_REDEMPTION_ACTIVE, self.config.owner, {"percent": 50}))
        event = self.engine.execute(Action(ActionKind.BURN_AND_REDEEM, "carol", {"amount": 39_000 * ONE}))

        record = event.result
        for payout in record["payouts"]:
            assert self.engine.holder_balance("carol", payout["asset"]) == payout["amount"]
            assert payout["amount"] <= payout["balance_before"]
            assert payout["rounding_loss"] >= 0

    def test_fund_treasury_rolls_back_on_failure(self):
        event = self.engine.execute(Action(ActionKind.FUND_TREASURY, "owner", {"asset": "USDC", "amount": -5}))
        assert event.success is False
        assert event.error_type == "InvalidAmount"

    def test_results_include_events_and_final_state(self):
        results = self.engine.run_simulation([
            Action(ActionKind.ADD_MINTER, self.config.owner, {"account": "dave"}),
        ])

        assert results["treasury_events"][-1]["kind"] == "MINTER_ADDED"
        assert "dave" in results["final_state"]["approved_minters"]
        assert results["managed_decimals"] == 18


class TestMetricsCalculator:
    """Snapshot metrics, quotes and history frames"""

    def setup_method(self):
        self.engine = TreasurySimulationEngine()
        self.metrics = TreasuryMetricsCalculator(self.engine.treasury)

    def test_snapshot(self):
        snapshot = self.metrics.snapshot()

        assert snapshot["managed_supply"] == 390_000 * ONE
        assert snapshot["reserve_value"] == 2 * 10 ** 24
        assert snapshot["excess_reserves"] == 2 * 10 ** 24 - 390_000 * ONE
        assert snapshot["collateralization"] == pytest.approx(2_000_000 / 390_000)
        assert snapshot["mint_utilization"] == pytest.approx(0.195)
        assert snapshot["basket_USDC"] == 1_500_000 * 10 ** 6

    def test_quote_is_empty_while_inactive(self):
        assert self.metrics.redemption_quote(ONE) == {}

    def test_quote_matches_redemption_with_duplicates(self):
        treasury = self.engine.treasury
        owner = self.engine.config.owner
        usdc = self.engine.asset("USDC")
        weth = self.engine.asset("WETH")
        treasury.set_redeemable_tokens(owner, [usdc, weth, usdc])
        treasury.set_redemption_active(owner, 37)

        quote = self.metrics.redemption_quote(12_345 * ONE)
        result = treasury.burn_and_redeem("alice", 12_345 * ONE)

        assert quote == result.total_by_symbol()

    def test_rounding_loss_is_non_negative(self):
        loss = TreasuryMetricsCalculator.rounding_loss(
            balance=1_000_000, amount=ONE, supply=3 * ONE, payout_percent=50, paid=166666
        )
        assert loss == 0

        loss = TreasuryMetricsCalculator.rounding_loss(
            balance=999, amount=1, supply=3, payout_percent=99, paid=(999 * (ONE // 3) // ONE) * 99 // 100
        )
        assert loss == 329 - 328

    def test_history_frame(self):
        history = [
            {"step": 0, "managed_supply": 2 * ONE, "collateralization": None},
            {"step": 1, "managed_supply": 3 * ONE, "collateralization": 1.5},
        ]
        frame = TreasuryMetricsCalculator.history_frame(history, decimals={"managed_supply": 18})

        assert list(frame.index) == [0, 1]
        assert frame["managed_supply"].tolist() == [2.0, 3.0]
        assert TreasuryMetricsCalculator.history_frame([]).empty
