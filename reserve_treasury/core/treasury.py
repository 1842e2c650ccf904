#!/usr/bin/env python3
"""
Reserve-Backed Treasury

Single entry surface over the accounting core. Every mutating call:
- runs inside one ExecutionEnvironment transaction (all-or-nothing)
- holds the treasury's reentrancy guard for its whole duration
- checks the caller's role before touching any state

Callers identify themselves explicitly; the first argument of every
operation is the calling address.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..config import PERCENT_DENOMINATOR, TreasuryConfig
from .assets import AssetLedger, ManagedTokenLedger
from .authorization import AuthorizationRegistry
from .environment import ExecutionEnvironment
from .events import EventKind, TreasuryEvent
from .exceptions import ConfigurationError, InsufficientBalance, InvalidPercentage
from .fixed_point import FixedPoint, require_amount
from .guard import ReentrancyGuard
from .mint_controller import MintController
from .redemption import RedemptionEngine, RedemptionResult
from .reserve_accounting import ReserveAccounting
from .state import TreasuryState


logger = logging.getLogger(__name__)


class Treasury:
    """Authorization-checked facade over reserve accounting, minting and redemption"""

    def __init__(
        self,
        managed_token: ManagedTokenLedger,
        owner: str,
        reserve_asset: Optional[AssetLedger] = None,
        config: Optional[TreasuryConfig] = None,
        environment: Optional[ExecutionEnvironment] = None
    ):
        self.config = config or TreasuryConfig()
        self.managed_token = managed_token

        # Reserve pairing is read once from the token when not given explicitly
        if reserve_asset is None:
            reserve_asset = managed_token.reserve_asset()
        if reserve_asset is None:
            raise ConfigurationError(
                "No reserve asset given and managed token has no reserve pairing",
                {"managed_token": managed_token.symbol}
            )

        self.state = TreasuryState(reserve_asset=reserve_asset)
        self.authorization = AuthorizationRegistry(owner)
        self.events: List[TreasuryEvent] = []
        self._event_sequence = 0

        self.accounting = ReserveAccounting(managed_token, self.state, self.config)
        self.mint_controller = MintController(managed_token, self.accounting, self.authorization)
        self.redemption_engine = RedemptionEngine(managed_token, self.state, self.config)

        self.environment = environment or ExecutionEnvironment()
        self._guard = ReentrancyGuard(self.address)
        self.environment.add_scope(self._participants)

        logger.info("Treasury %s created: managed=%s reserve=%s owner=%s",
                    self.address, managed_token.symbol, reserve_asset.symbol, owner)

    @property
    def address(self) -> str:
        return self.config.treasury_address

    # ── Views

    @property
    def owner(self) -> str:
        return self.authorization.owner

    @property
    def reserve_asset(self) -> AssetLedger:
        return self.state.reserve_asset

    @property
    def redeemable_tokens(self) -> List[AssetLedger]:
        return list(self.state.redeemable_assets)

    @property
    def redemption_active(self) -> bool:
        return self.state.redemption.active

    @property
    def payout_percent(self) -> int:
        return self.state.redemption.payout_percent

    def is_approved_minter(self, account: str) -> bool:
        return self.authorization.is_minter(account)

    def is_approved_sender(self, account: str) -> bool:
        return self.authorization.is_sender(account)

    def excess_reserves(self) -> int:
        return self.accounting.excess_reserves()

    def value_of_token(self, asset: AssetLedger, amount: int) -> int:
        return self.accounting.value_of_token(asset, amount)

    def collateralization(self) -> Optional[FixedPoint]:
        return self.accounting.collateralization()

    # ── Value movement

    def mint(self, caller: str, to: str, amount: int) -> int:
        """Mint managed tokens to `to`, bounded by excess reserves"""
        with self._call("mint"):
            minted = self.mint_controller.mint(caller, to, amount)
            self._emit(EventKind.MINTED, caller, to=to, amount=minted)
            return minted

    def burn_and_redeem(self, caller: str, amount: int) -> RedemptionResult:
        """Burn `amount` of the caller's managed tokens for a basket payout"""
        with self._call("burn_and_redeem"):
            result = self.redemption_engine.burn_and_redeem(caller, amount)
            self._emit(EventKind.REDEEMED, caller,
                       amount=result.amount_burned,
                       share=result.share.raw,
                       payouts=[(p.asset.symbol, p.amount) for p in result.payouts])
            return result

    def transfer_from_treasury(self, caller: str, asset: AssetLedger, to: str, amount: int) -> None:
        """Approved-sender transfer of any treasury holding"""
        with self._call("transfer_from_treasury", asset):
            self.authorization.require_sender(caller)
            require_amount(amount)
            if not asset.transfer(self.address, to, amount):
                raise InsufficientBalance(
                    f"{asset.symbol} rejected treasury transfer",
                    {"asset": asset.symbol, "to": to, "amount": amount}
                )
            self._emit(EventKind.TREASURY_TRANSFER, caller, asset=asset.symbol, to=to, amount=amount)

    # ── Administration (owner only)

    def set_redemption_active(self, caller: str, percent: int) -> None:
        """
        Enable redemption at the given payout percent

        There is no way to deactivate redemption again; later
        calls only re-parameterise the percent.
        """
        with self._call("set_redemption_active"):
            self.authorization.require_owner(caller)
            if isinstance(percent, bool) or not isinstance(percent, int) \
                    or not 0 <= percent < PERCENT_DENOMINATOR:
                raise InvalidPercentage(
                    f"Payout percent must be an integer in [0, {PERCENT_DENOMINATOR})",
                    {"percent": percent}
                )
            self.state.redemption.active = True
            self.state.redemption.payout_percent = percent
            self._emit(EventKind.REDEMPTION_ACTIVATED, caller, percent=percent)

    def set_redeemable_tokens(self, caller: str, assets: Sequence[AssetLedger]) -> None:
        """Replace the redeemable basket wholesale; duplicates are kept"""
        with self._call("set_redeemable_tokens"):
            self.authorization.require_owner(caller)
            basket = list(assets)
            self.state.redeemable_assets = basket
            self._emit(EventKind.REDEEMABLE_TOKENS_SET, caller,
                       assets=[asset.symbol for asset in basket])

    def add_approved_minter(self, caller: str, account: str) -> None:
        with self._call("add_approved_minter"):
            self.authorization.require_owner(caller)
            self.authorization.add_minter(account)
            self._emit(EventKind.MINTER_ADDED, caller, account=account)

    def remove_approved_minter(self, caller: str, account: str) -> None:
        with self._call("remove_approved_minter"):
            self.authorization.require_owner(caller)
            self.authorization.remove_minter(account)
            self._emit(EventKind.MINTER_REMOVED, caller, account=account)

    def add_approved_sender(self, caller: str, account: str) -> None:
        with self._call("add_approved_sender"):
            self.authorization.require_owner(caller)
            self.authorization.add_sender(account)
            self._emit(EventKind.SENDER_ADDED, caller, account=account)

    def remove_approved_sender(self, caller: str, account: str) -> None:
        with self._call("remove_approved_sender"):
            self.authorization.require_owner(caller)
            self.authorization.remove_sender(account)
            self._emit(EventKind.SENDER_REMOVED, caller, account=account)

    def update_reserve_asset(self, caller: str, new_asset: AssetLedger) -> None:
        """Repoint the reserve; balances held in the old reserve are not moved"""
        with self._call("update_reserve_asset"):
            self.authorization.require_owner(caller)
            previous = self.state.reserve_asset
            self.state.reserve_asset = new_asset
            self._emit(EventKind.RESERVE_ASSET_UPDATED, caller,
                       previous=previous.symbol, asset=new_asset.symbol)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self._call("transfer_ownership"):
            self.authorization.require_owner(caller)
            self.authorization.transfer_ownership(new_owner)
            self._emit(EventKind.OWNERSHIP_TRANSFERRED, caller, previous=caller, owner=new_owner)

    # ── Journaling

    def snapshot(self) -> Any:
        return (self.state.snapshot(), self.authorization.snapshot(),
                len(self.events), self._event_sequence)

    def restore(self, state: Any) -> None:
        treasury_state, roles, event_count, sequence = state
        self.state.restore(treasury_state)
        self.authorization.restore(roles)
        del self.events[event_count:]
        self._event_sequence = sequence

    def get_state(self) -> Dict[str, Any]:
        """Plain-data summary of the current configuration and accounting"""
        collateralization = self.collateralization()
        return {
            "owner": self.owner,
            "reserve_asset": self.reserve_asset.symbol,
            "reserve_balance": self.accounting.reserve_balance(),
            "reserve_value": self.accounting.reserve_value(),
            "managed_supply": self.managed_token.total_supply(),
            "excess_reserves": self.excess_reserves(),
            "collateralization": collateralization.to_float() if collateralization else None,
            "redemption_active": self.redemption_active,
            "payout_percent": self.payout_percent,
            "redeemable_tokens": [asset.symbol for asset in self.state.redeemable_assets],
            "basket_balances": {
                asset.symbol: asset.balance_of(self.address)
                for asset in self.state.redeemable_assets
            },
            "approved_minters": sorted(self.authorization.minters()),
            "approved_senders": sorted(self.authorization.senders()),
            "event_count": len(self.events),
        }

    # ── Internals

    def _participants(self) -> List[Any]:
        """Ledgers the current configuration can move, plus the treasury itself"""
        return [self, self.managed_token, self.state.reserve_asset, *self.state.redeemable_assets]

    @contextmanager
    def _call(self, operation: str, *touched: AssetLedger) -> Iterator[None]:
        """Run one entry point inside an environment transaction and the reentrancy guard"""
        with self.environment.transaction(*touched), self._guard.enter(operation):
            yield

    def _emit(self, kind: EventKind, caller: str, **payload) -> TreasuryEvent:
        self._event_sequence += 1
        event = TreasuryEvent(sequence=self._event_sequence, kind=kind, caller=caller,
                              payload=payload)
        self.events.append(event)
        logger.info("%s by %s: %s", kind.name, caller, payload)
        return event

