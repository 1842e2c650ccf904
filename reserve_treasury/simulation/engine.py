#!/usr/bin/env python3
"""
Treasury Simulation Engine

Builds an in-memory world (reserve, basket, managed token, holders and a
treasury) from a SimulationConfig and drives it with a sequence of actions.
Failed actions are recorded, not raised: the engine is the outermost caller.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config import TreasuryConfig
from ..core.assets import InMemoryAsset, InMemoryManagedToken
from ..core.environment import ExecutionEnvironment
from ..core.exceptions import ConfigurationError, TreasuryError
from ..core.treasury import Treasury
from ..analysis.metrics import TreasuryMetricsCalculator
from .config import SimulationConfig
from .primitives import Action, ActionEvent, ActionKind


logger = logging.getLogger(__name__)

MAX_ALLOWANCE = 2 ** 256 - 1


class TreasurySimulationEngine:
    """Deterministic action runner over a simulated treasury world"""

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.environment = ExecutionEnvironment()
        self.assets: Dict[str, InMemoryAsset] = {}
        self.current_step = 0

        self.reserve = self._create_asset(self.config.reserve.symbol, self.config.reserve.decimals)
        self.managed_token = InMemoryManagedToken(
            self.config.managed_symbol, self.config.managed_decimals, reserve=self.reserve
        )
        self.assets[self.managed_token.symbol] = self.managed_token

        self.treasury = Treasury(
            self.managed_token,
            owner=self.config.owner,
            config=TreasuryConfig(backing_ratio=self.config.backing_ratio,
                                  treasury_address=self.config.treasury_address),
            environment=self.environment,
        )
        self.managed_token.grant_minter(self.treasury.address)
        self.metrics = TreasuryMetricsCalculator(self.treasury)

        self.basket = [self._create_asset(spec.symbol, spec.decimals) for spec in self.config.basket]

        # Simulation records
        self.metrics_history: List[Dict[str, Any]] = []
        self.action_events: List[ActionEvent] = []
        self.redemptions: List[Dict[str, Any]] = []
        self.cumulative_paid: Dict[str, int] = {asset.symbol: 0 for asset in self.basket}
        self.total_burned = 0

        self._setup_world()

    # ── World construction

    def _create_asset(self, symbol: str, decimals: int) -> InMemoryAsset:
        asset = InMemoryAsset(symbol, decimals)
        self.assets[symbol] = asset
        self.environment.register(asset)
        return asset

    def add_asset(self, symbol: str, decimals: int = 18, treasury_balance: int = 0) -> InMemoryAsset:
        """Introduce a new ledger into the world, e.g. a replacement reserve"""
        if symbol in self.assets:
            raise ConfigurationError("Asset already exists", {"symbol": symbol})
        asset = self._create_asset(symbol, decimals)
        if treasury_balance:
            asset.issue(self.treasury.address, treasury_balance)
        return asset

    def _setup_world(self):
        """Fund the treasury, grant roles, configure the basket and mint holdings"""
        config = self.config
        treasury = self.treasury

        self.reserve.issue(treasury.address, config.reserve.treasury_balance)
        for asset, spec in zip(self.basket, config.basket):
            asset.issue(treasury.address, spec.treasury_balance)

        treasury.add_approved_minter(config.owner, config.minter)
        treasury.add_approved_sender(config.owner, config.sender)
        treasury.set_redeemable_tokens(config.owner, self.basket)

        for holder in config.holders:
            try:
                treasury.mint(config.minter, holder.name, holder.mint_amount)
            except TreasuryError as e:
                raise ConfigurationError(
                    "Holder allocation cannot be minted",
                    {"holder": holder.name, "reason": str(e)}
                ) from e
            if holder.approve_treasury:
                self.managed_token.approve(holder.name, treasury.address, MAX_ALLOWANCE)

        logger.debug("World ready: supply=%d excess=%d",
                     self.managed_token.total_supply(), treasury.excess_reserves())

    # ── Execution

    def run_simulation(self, actions: List[Action]) -> Dict[str, Any]:
        """Execute actions in order, recording metrics after each one"""
        self._record_metrics(None)

        for action in actions:
            self.current_step += 1
            event = self.execute(action)
            self.action_events.append(event)
            self._record_metrics(event)

        return self._generate_results()

    def execute(self, action: Action) -> ActionEvent:
        """Execute a single action; treasury errors become failed events"""
        event = ActionEvent(
            step=self.current_step,
            action_kind=action.kind,
            caller=action.caller,
            params=dict(action.params),
        )
        try:
            event.result = self._dispatch(action)
        except TreasuryError as e:
            event.success = False
            event.error_type = type(e).__name__
            event.error_message = str(e)
            logger.debug("step %d %s failed: %s", self.current_step, action.kind.name, e)
        return event

    def _dispatch(self, action: Action) -> Dict[str, Any]:
        treasury = self.treasury
        caller = action.caller
        params = action.params
        kind = action.kind

        if kind == ActionKind.MINT:
            minted = treasury.mint(caller, params["to"], params["amount"])
            return {"minted": minted}

        elif kind == ActionKind.BURN_AND_REDEEM:
            return self._execute_redemption(caller, params["amount"])

        elif kind == ActionKind.TRANSFER_FROM_TREASURY:
            treasury.transfer_from_treasury(caller, self.asset(params["asset"]),
                                            params["to"], params["amount"])
            return {"transferred": params["amount"]}

        elif kind == ActionKind.FUND_TREASURY:
            asset = self.asset(params["asset"])
            with self.environment.transaction():
                asset.issue(treasury.address, params["amount"])
            return {"funded": params["amount"]}

        elif kind == ActionKind.SET_REDEMPTION_ACTIVE:
            treasury.set_redemption_active(caller, params["percent"])
            return {"percent": params["percent"]}

        elif kind == ActionKind.SET_REDEEMABLE_TOKENS:
            basket = [self.asset(symbol) for symbol in params["assets"]]
            treasury.set_redeemable_tokens(caller, basket)
            return {"assets": list(params["assets"])}

        elif kind == ActionKind.UPDATE_RESERVE_ASSET:
            treasury.update_reserve_asset(caller, self.asset(params["asset"]))
            return {"reserve_asset": params["asset"]}

        elif kind == ActionKind.ADD_MINTER:
            treasury.add_approved_minter(caller, params["account"])
        elif kind == ActionKind.REMOVE_MINTER:
            treasury.remove_approved_minter(caller, params["account"])
        elif kind == ActionKind.ADD_SENDER:
            treasury.add_approved_sender(caller, params["account"])
        elif kind == ActionKind.REMOVE_SENDER:
            treasury.remove_approved_sender(caller, params["account"])
        elif kind == ActionKind.TRANSFER_OWNERSHIP:
            treasury.transfer_ownership(caller, params["new_owner"])

        return {}

    def _execute_redemption(self, caller: str, amount: int) -> Dict[str, Any]:
        result = self.treasury.burn_and_redeem(caller, amount)
        self.total_burned += result.amount_burned

        payouts = []
        for payout in result.payouts:
            loss = self.metrics.rounding_loss(payout.balance_before, amount, result.supply_before,
                                              result.payout_percent, payout.amount)
            payouts.append({
                "asset": payout.asset.symbol,
                "amount": payout.amount,
                "balance_before": payout.balance_before,
                "rounding_loss": loss,
            })
            self.cumulative_paid[payout.asset.symbol] = \
                self.cumulative_paid.get(payout.asset.symbol, 0) + payout.amount

        record = {
            "step": self.current_step,
            "redeemer": caller,
            "amount": amount,
            "supply_before": result.supply_before,
            "share": result.share.raw,
            "payout_percent": result.payout_percent,
            "payouts": payouts,
        }
        self.redemptions.append(record)
        return record

    def asset(self, symbol: str) -> InMemoryAsset:
        if symbol not in self.assets:
            raise ConfigurationError("Unknown asset", {"symbol": symbol})
        return self.assets[symbol]

    def holder_balance(self, holder: str, symbol: Optional[str] = None) -> int:
        """Holder balance of an asset (the managed token by default)"""
        asset = self.asset(symbol) if symbol else self.managed_token
        return asset.balance_of(holder)

    # ── Recording

    def _record_metrics(self, event: Optional[ActionEvent]):
        metrics = {
            "step": self.current_step,
            "action": event.action_kind.name if event else "SETUP",
            "success": event.success if event else True,
        }
        metrics.update(self.metrics.snapshot())
        metrics["total_burned"] = self.total_burned
        for symbol, paid in self.cumulative_paid.items():
            metrics[f"paid_{symbol}"] = paid
        self.metrics_history.append(metrics)

    def _generate_results(self) -> Dict[str, Any]:
        failed = [e for e in self.action_events if not e.success]
        total_rounding_loss = sum(
            p["rounding_loss"] for r in self.redemptions for p in r["payouts"]
        )
        return {
            "simulation_name": self.config.name,
            "managed_decimals": self.managed_token.decimals(),
            "metrics_history": self.metrics_history,
            "action_events": [e.to_dict() for e in self.action_events],
            "redemptions": self.redemptions,
            "treasury_events": [e.to_dict() for e in self.treasury.events],
            "final_state": self.treasury.get_state(),
            "summary_statistics": {
                "total_actions": len(self.action_events),
                "failed_actions": len(failed),
                "failures_by_type": self._count_failures(failed),
                "total_burned": self.total_burned,
                "total_paid": dict(self.cumulative_paid),
                "total_rounding_loss": total_rounding_loss,
                "final_managed_supply": self.managed_token.total_supply(),
                "final_excess_reserves": self.treasury.excess_reserves(),
            },
        }

    @staticmethod
    def _count_failures(failed: List[ActionEvent]) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for event in failed:
            counts[event.error_type] = counts.get(event.error_type, 0) + 1
        return counts
