#!/usr/bin/env python3
"""
Reserve Accounting

Pure queries over current ledger state:
- excess reserves: mintable headroom = reserve value - managed supply, floored at 0
- token valuation: decimal normalisation of any asset amount into managed units

Nothing is cached; both reserve balance and supply move between calls.
"""

import logging
from typing import Optional

from ..config import TreasuryConfig
from .assets import AssetLedger, ManagedTokenLedger
from .fixed_point import FixedPoint, mul_div, ratio_or_none, require_amount
from .state import TreasuryState


logger = logging.getLogger(__name__)


class ReserveAccounting:
    """Reserve valuation and mint-ceiling calculations"""

    def __init__(self, managed_token: ManagedTokenLedger, state: TreasuryState,
                 config: TreasuryConfig):
        self.managed_token = managed_token
        self.state = state
        self.config = config

    @property
    def holder(self) -> str:
        return self.config.treasury_address

    def reserve_balance(self) -> int:
        """Treasury balance of the current reserve asset"""
        return self.state.reserve_asset.balance_of(self.holder)

    def reserve_value(self) -> int:
        """
        Reserve balance expressed in managed-token units

        Formula: balance * SCALE / BACKING_RATIO, truncated
        """
        return mul_div(self.reserve_balance(), self.config.scale, self.config.backing_ratio)

    def excess_reserves(self) -> int:
        """
        Managed-token amount that may still be minted

        Returns:
            max(0, reserve_value - total_supply)
        """
        value = self.reserve_value()
        supply = self.managed_token.total_supply()
        excess = max(0, value - supply)
        logger.debug("excess reserves: value=%d supply=%d excess=%d", value, supply, excess)
        return excess

    def value_of_token(self, asset: AssetLedger, amount: int) -> int:
        """
        Convert a raw asset amount into managed-token decimal units

        Args:
            asset: Asset whose native decimals apply to amount
            amount: Raw amount in the asset's base units

        Returns:
            amount * 10^managed_decimals / 10^asset_decimals, truncated
        """
        require_amount(amount)
        return mul_div(amount, 10 ** self.managed_token.decimals(), 10 ** asset.decimals())

    def collateralization(self) -> Optional[FixedPoint]:
        """Reserve value per unit of supply, or None at zero supply"""
        return ratio_or_none(self.reserve_value(), self.managed_token.total_supply(),
                             self.config.scale)
