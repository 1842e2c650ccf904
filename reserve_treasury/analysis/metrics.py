#!/usr/bin/env python3
"""
Treasury Backing Metrics

Point-in-time backing and basket metrics for a treasury, and tabular views of
a simulation's metrics history.
"""

from typing import Any, Dict, List, Optional

import pandas as pd

from ..config import PERCENT_DENOMINATOR
from ..core.fixed_point import mul_div
from ..core.treasury import Treasury


class TreasuryMetricsCalculator:
    """Backing and basket metrics calculator"""

    def __init__(self, treasury: Treasury):
        self.treasury = treasury

    def snapshot(self) -> Dict[str, Any]:
        """Raw integer metrics describing the treasury right now"""
        accounting = self.treasury.accounting
        reserve_value = accounting.reserve_value()
        supply = self.treasury.managed_token.total_supply()
        collateralization = accounting.collateralization()

        metrics = {
            "managed_supply": supply,
            "reserve_asset": self.treasury.reserve_asset.symbol,
            "reserve_balance": accounting.reserve_balance(),
            "reserve_value": reserve_value,
            "excess_reserves": max(0, reserve_value - supply),
            "collateralization": collateralization.to_float() if collateralization else None,
            "mint_utilization": self._mint_utilization(supply, reserve_value),
            "redemption_active": self.treasury.redemption_active,
            "payout_percent": self.treasury.payout_percent,
        }
        for symbol, balance in self.basket_balances().items():
            metrics[f"basket_{symbol}"] = balance
        return metrics

    def basket_balances(self) -> Dict[str, int]:
        """Treasury balance of each distinct basket asset"""
        balances = {}
        for asset in self.treasury.redeemable_tokens:
            balances[asset.symbol] = asset.balance_of(self.treasury.address)
        return balances

    def redemption_quote(self, amount: int) -> Dict[str, int]:
        """
        Payouts a redemption of `amount` would receive right now

        Follows the same sequential, fresh-balance arithmetic as the
        redemption engine without touching any ledger.

        Args:
            amount: Managed-token amount to redeem

        Returns:
            Quoted payout per asset symbol (duplicates summed)
        """
        supply = self.treasury.managed_token.total_supply()
        if supply == 0 or not self.treasury.redemption_active:
            return {}

        engine = self.treasury.redemption_engine
        share = engine.compute_share(amount, supply)
        remaining = {}
        quote: Dict[str, int] = {}
        for asset in self.treasury.redeemable_tokens:
            balance = remaining.get(asset.symbol, asset.balance_of(self.treasury.address))
            payout = engine.compute_payout(balance, share, self.treasury.payout_percent)
            remaining[asset.symbol] = balance - payout
            quote[asset.symbol] = quote.get(asset.symbol, 0) + payout
        return quote

    @staticmethod
    def rounding_loss(balance: int, amount: int, supply: int, payout_percent: int, paid: int) -> int:
        """Units withheld by truncation versus a single exact division"""
        exact = mul_div(balance * amount, payout_percent, supply * PERCENT_DENOMINATOR)
        return exact - paid

    @staticmethod
    def history_frame(metrics_history: List[Dict[str, Any]],
                      decimals: Optional[Dict[str, int]] = None) -> pd.DataFrame:
        """
        Metrics history as a DataFrame indexed by step

        Args:
            metrics_history: Per-step metric dicts from a simulation run
            decimals: Optional column -> decimals map; those columns are
                converted to whole-unit floats for plotting

        Returns:
            DataFrame with one row per recorded step
        """
        if not metrics_history:
            return pd.DataFrame()

        frame = pd.DataFrame(metrics_history)
        if "step" in frame.columns:
            frame = frame.set_index("step")

        for column, places in (decimals or {}).items():
            if column in frame.columns:
                frame[column] = frame[column].map(
                    lambda v, p=places: None if pd.isna(v) else int(v) / 10 ** p
                ).astype(float)
        return frame

    def _mint_utilization(self, supply: int, reserve_value: int) -> Optional[float]:
        if reserve_value == 0:
            return None
        return supply / reserve_value
