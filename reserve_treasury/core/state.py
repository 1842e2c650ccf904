#!/usr/bin/env python3
"""
Treasury configuration state

The owned, administratively mutated configuration of a treasury: the reserve
asset pointer, the ordered redeemable basket and the redemption parameters.
"""

from dataclasses import dataclass, field
from typing import Any, List

from .assets import AssetLedger


@dataclass
class RedemptionState:
    """Redemption switch and payout throttle"""
    active: bool = False
    payout_percent: int = 0  # always < 100, checked when set


@dataclass
class TreasuryState:
    """Mutable treasury configuration"""
    reserve_asset: AssetLedger
    redeemable_assets: List[AssetLedger] = field(default_factory=list)
    redemption: RedemptionState = field(default_factory=RedemptionState)

    def snapshot(self) -> Any:
        return (
            self.reserve_asset,
            list(self.redeemable_assets),
            self.redemption.active,
            self.redemption.payout_percent,
        )

    def restore(self, state: Any) -> None:
        reserve_asset, basket, active, percent = state
        self.reserve_asset = reserve_asset
        self.redeemable_assets = list(basket)
        self.redemption = RedemptionState(active=active, payout_percent=percent)
