#!/usr/bin/env python3
"""
Stress Test Scenario Definitions

Named action sequences exercising the treasury's solvency boundaries: mint
ceilings, redemption runs, reserve extraction and repointing, basket
duplication and unauthorised administration.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..core.fixed_point import mul_div
from ..simulation.config import SimulationConfig
from ..simulation.engine import TreasurySimulationEngine
from ..simulation.primitives import Action, ActionKind


logger = logging.getLogger(__name__)


class StressTestScenario:
    """Individual stress test scenario"""

    def __init__(self, name: str, description: str,
                 build_actions: Callable[[TreasurySimulationEngine], List[Action]]):
        self.name = name
        self.description = description
        self.build_actions = build_actions
        self.results = None

    def run(self, engine: TreasurySimulationEngine) -> dict:
        """Build the scenario's actions against a fresh world and run them"""
        logger.info("Running stress test: %s (%s)", self.name, self.description)

        actions = self.build_actions(engine)
        results = engine.run_simulation(actions)
        results["scenario_name"] = self.name
        self.results = results

        return results


class TreasuryStressTestSuite:
    """Complete stress test suite for the treasury"""

    def __init__(self):
        self.scenarios = self._create_scenarios()

    def _create_scenarios(self) -> List[StressTestScenario]:
        """Create all stress test scenarios"""

        return [
            StressTestScenario(
                "Mint_To_Ceiling",
                "Mint in quarter-ceiling chunks until backing runs out",
                self._mint_to_ceiling
            ),

            StressTestScenario(
                "Bank_Run",
                "Every holder redeems in rounds until balances are exhausted",
                self._bank_run
            ),

            StressTestScenario(
                "Reserve_Extraction",
                "Approved sender drains 90% of reserves, then minting is retried",
                self._reserve_extraction
            ),

            StressTestScenario(
                "Duplicate_Basket_Asset",
                "Basket lists one asset twice; its payout splits rather than doubles",
                self._duplicate_basket_asset
            ),

            StressTestScenario(
                "Reserve_Repoint",
                "Owner repoints the reserve to an unfunded asset, then funds it",
                self._reserve_repoint
            ),

            StressTestScenario(
                "Unauthorized_Admin",
                "Outsider attempts every privileged operation",
                self._unauthorized_admin
            ),
        ]

    def get_scenario_names(self) -> List[str]:
        return [scenario.name for scenario in self.scenarios]

    def get_scenario(self, name: str) -> Optional[StressTestScenario]:
        for scenario in self.scenarios:
            if scenario.name == name:
                return scenario
        return None

    def run_scenario(self, scenario_name: str, config: Optional[SimulationConfig] = None) -> dict:
        """Run a named scenario in a freshly built world"""
        scenario = self.get_scenario(scenario_name)
        if scenario is None:
            raise ValueError(f"Unknown scenario: {scenario_name}")

        engine = TreasurySimulationEngine(config)
        return scenario.run(engine)

    # ── Scenario builders

    def _mint_to_ceiling(self, engine: TreasurySimulationEngine) -> List[Action]:
        config = engine.config
        chunk = engine.treasury.excess_reserves() // 4
        # Fifth chunk always overshoots the remaining headroom
        return [
            Action(ActionKind.MINT, config.minter, {"to": config.minter, "amount": chunk})
            for _ in range(5)
        ]

    def _bank_run(self, engine: TreasurySimulationEngine) -> List[Action]:
        config = engine.config
        actions = [Action(ActionKind.SET_REDEMPTION_ACTIVE, config.owner,
                          {"percent": config.payout_percent})]

        remaining = {h.name: engine.holder_balance(h.name) for h in config.holders}
        for fraction in config.redemption_fractions:
            for holder in config.holders:
                amount = min(int(holder.mint_amount * fraction), remaining[holder.name])
                if amount == 0:
                    continue
                remaining[holder.name] -= amount
                actions.append(Action(ActionKind.BURN_AND_REDEEM, holder.name, {"amount": amount}))
        return actions

    def _reserve_extraction(self, engine: TreasurySimulationEngine) -> List[Action]:
        config = engine.config
        treasury = engine.treasury
        balance = treasury.accounting.reserve_balance()
        extracted = balance * 9 // 10

        remaining_value = mul_div(balance - extracted, treasury.config.scale,
                                  treasury.config.backing_ratio)
        ceiling_after = max(0, remaining_value - engine.managed_token.total_supply())

        return [
            Action(ActionKind.TRANSFER_FROM_TREASURY, config.sender,
                   {"asset": config.reserve.symbol, "to": config.sender, "amount": extracted}),
            Action(ActionKind.MINT, config.minter, {"to": config.minter, "amount": ceiling_after + 1}),
            Action(ActionKind.MINT, config.minter, {"to": config.minter, "amount": ceiling_after}),
        ]

    def _duplicate_basket_asset(self, engine: TreasurySimulationEngine) -> List[Action]:
        config = engine.config
        symbols = [asset.symbol for asset in engine.basket]
        duplicated = [symbols[0]] + symbols if symbols else []

        actions = [
            Action(ActionKind.SET_REDEEMABLE_TOKENS, config.owner, {"assets": duplicated}),
            Action(ActionKind.SET_REDEMPTION_ACTIVE, config.owner, {"percent": config.payout_percent}),
        ]
        if config.holders:
            holder = config.holders[0]
            actions.append(Action(ActionKind.BURN_AND_REDEEM, holder.name,
                                  {"amount": engine.holder_balance(holder.name) // 2}))
        return actions

    def _reserve_repoint(self, engine: TreasurySimulationEngine) -> List[Action]:
        config = engine.config
        replacement = f"{config.reserve.symbol}2"
        engine.add_asset(replacement, config.reserve.decimals)

        return [
            Action(ActionKind.UPDATE_RESERVE_ASSET, config.owner, {"asset": replacement}),
            Action(ActionKind.MINT, config.minter, {"to": config.minter, "amount": 1}),
            Action(ActionKind.FUND_TREASURY, config.owner,
                   {"asset": replacement, "amount": config.reserve.treasury_balance * 2}),
            Action(ActionKind.MINT, config.minter, {"to": config.minter, "amount": 1}),
        ]

    def _unauthorized_admin(self, engine: TreasurySimulationEngine) -> List[Action]:
        outsider = "mallory"
        basket = [asset.symbol for asset in engine.basket]
        reserve = engine.config.reserve.symbol

        return [
            Action(ActionKind.SET_REDEMPTION_ACTIVE, outsider, {"percent": 99}),
            Action(ActionKind.SET_REDEEMABLE_TOKENS, outsider, {"assets": basket + basket}),
            Action(ActionKind.ADD_MINTER, outsider, {"account": outsider}),
            Action(ActionKind.REMOVE_MINTER, outsider, {"account": engine.config.minter}),
            Action(ActionKind.ADD_SENDER, outsider, {"account": outsider}),
            Action(ActionKind.REMOVE_SENDER, outsider, {"account": engine.config.sender}),
            Action(ActionKind.UPDATE_RESERVE_ASSET, outsider, {"asset": basket[0] if basket else reserve}),
            Action(ActionKind.TRANSFER_OWNERSHIP, outsider, {"new_owner": outsider}),
            Action(ActionKind.MINT, outsider, {"to": outsider, "amount": 1}),
            Action(ActionKind.TRANSFER_FROM_TREASURY, outsider,
                   {"asset": reserve, "to": outsider, "amount": 1}),
            Action(ActionKind.BURN_AND_REDEEM, outsider, {"amount": 0}),
        ]


def scenario_descriptions() -> Dict[str, str]:
    """Scenario name -> description, for listings"""
    return {s.name: s.description for s in TreasuryStressTestSuite().scenarios}
