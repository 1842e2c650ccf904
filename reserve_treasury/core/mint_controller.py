#!/usr/bin/env python3
"""
Mint Controller

Gates mint requests on the minter role and the live excess-reserve ceiling.
"""

import logging

from .assets import ManagedTokenLedger
from .authorization import AuthorizationRegistry
from .exceptions import InsufficientBacking
from .fixed_point import require_amount
from .reserve_accounting import ReserveAccounting


logger = logging.getLogger(__name__)


class MintController:
    """Mints managed tokens only within excess reserves"""

    def __init__(self, managed_token: ManagedTokenLedger, accounting: ReserveAccounting,
                 authorization: AuthorizationRegistry):
        self.managed_token = managed_token
        self.accounting = accounting
        self.authorization = authorization

    def mint(self, caller: str, to: str, amount: int) -> int:
        self.authorization.require_minter(caller)
        require_amount(amount)

        ceiling = self.accounting.excess_reserves()
        if amount > ceiling:
            raise InsufficientBacking(
                "Mint amount exceeds excess reserves",
                {"amount": amount, "excess_reserves": ceiling}
            )

        self.managed_token.mint(self.accounting.holder, to, amount)
        logger.debug("minted %d to %s (ceiling was %d)", amount, to, ceiling)
        return amount
