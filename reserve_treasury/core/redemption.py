#!/usr/bin/env python3
"""
Redemption Engine

Proportional burn-and-redeem across the redeemable basket:
1. share = SCALE * amount / supply_before (truncated)
2. burn amount from the redeemer via burn-from
3. for each basket asset, in list order, pay
   floor(floor(balance * share / SCALE) * payout_percent / 100)

Balances are read fresh at each asset's turn, so a duplicated asset splits
its payout instead of doubling it. Rounding loss always stays in the treasury.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..config import PERCENT_DENOMINATOR, TreasuryConfig
from .assets import AssetLedger, ManagedTokenLedger
from .exceptions import DivideByZero, InsufficientBalance, RedemptionInactive
from .fixed_point import FixedPoint, mul_div, require_amount
from .state import TreasuryState


logger = logging.getLogger(__name__)


@dataclass
class Payout:
    """Amount of one basket asset paid to a redeemer"""
    asset: AssetLedger
    amount: int
    balance_before: int


@dataclass
class RedemptionResult:
    """Result of a burn-and-redeem operation"""
    redeemer: str
    amount_burned: int
    supply_before: int
    share: FixedPoint
    payout_percent: int
    payouts: List[Payout] = field(default_factory=list)

    def total_by_symbol(self) -> Dict[str, int]:
        """Payout totals keyed by asset symbol (duplicates summed)"""
        totals: Dict[str, int] = {}
        for payout in self.payouts:
            totals[payout.asset.symbol] = totals.get(payout.asset.symbol, 0) + payout.amount
        return totals


class RedemptionEngine:
    """Burns managed supply and pays out a proportional basket share"""

    def __init__(self, managed_token: ManagedTokenLedger, state: TreasuryState,
                 config: TreasuryConfig):
        self.managed_token = managed_token
        self.state = state
        self.config = config

    @property
    def holder(self) -> str:
        return self.config.treasury_address

    def compute_share(self, amount: int, supply_before: int) -> FixedPoint:
        if supply_before == 0:
            raise DivideByZero(
                "Cannot redeem against zero managed-token supply",
                {"amount": amount}
            )
        return FixedPoint.from_ratio(amount, supply_before, self.config.scale)

    def compute_payout(self, balance: int, share: FixedPoint, payout_percent: int) -> int:
        raw = share.apply(balance)
        return mul_div(raw, payout_percent, PERCENT_DENOMINATOR)

    def burn_and_redeem(self, caller: str, amount: int) -> RedemptionResult:
        redemption = self.state.redemption
        if not redemption.active:
            raise RedemptionInactive("Redemption has not been activated", {"caller": caller})
        require_amount(amount)

        supply_before = self.managed_token.total_supply()
        share = self.compute_share(amount, supply_before)

        self.managed_token.burn_from(self.holder, caller, amount)

        result = RedemptionResult(
            redeemer=caller,
            amount_burned=amount,
            supply_before=supply_before,
            share=share,
            payout_percent=redemption.payout_percent,
        )

        for asset in list(self.state.redeemable_assets):
            balance = asset.balance_of(self.holder)
            payout = self.compute_payout(balance, share, redemption.payout_percent)
            if not asset.transfer(self.holder, caller, payout):
                raise InsufficientBalance(
                    f"{asset.symbol} rejected redemption payout",
                    {"asset": asset.symbol, "amount": payout, "balance": balance}
                )
            result.payouts.append(Payout(asset=asset, amount=payout, balance_before=balance))
            logger.debug("paid %d %s to %s (balance %d)", payout, asset.symbol, caller, balance)

        return result
