#!/usr/bin/env python3
"""
Asset Ledger Capabilities

Abstract capability interfaces for the ledgers the treasury reads and moves:
- AssetLedger: any basket or reserve asset (balance, transfer, decimals)
- ManagedTokenLedger: the backed token, adding mint and burn-from

In-memory implementations are provided for simulation and tests. Ledgers also
expose snapshot/restore so an ExecutionEnvironment can roll back a failed call.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Set, Tuple

from .exceptions import InsufficientBalance, InsufficientTokenBalance, Unauthorized
from .fixed_point import require_amount


class AssetLedger(ABC):
    """Plain asset capability: balances, decimals, supply and transfer"""

    def __init__(self, symbol: str, address: Optional[str] = None):
        self.symbol = symbol
        self.address = address or symbol.lower()

    @abstractmethod
    def balance_of(self, holder: str) -> int:
        pass

    @abstractmethod
    def decimals(self) -> int:
        pass

    @abstractmethod
    def total_supply(self) -> int:
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move amount from sender to recipient; falsy result means rejected"""
        pass

    @abstractmethod
    def snapshot(self) -> Any:
        """Capture ledger state for rollback"""
        pass

    @abstractmethod
    def restore(self, state: Any) -> None:
        """Return the ledger to a state captured by snapshot()"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol!r}, address={self.address!r})"


class ManagedTokenLedger(AssetLedger):
    """Managed token capability: adds mint, burn-from and its reserve pairing"""

    @abstractmethod
    def mint(self, caller: str, recipient: str, amount: int) -> None:
        pass

    @abstractmethod
    def burn_from(self, spender: str, holder: str, amount: int) -> None:
        """Burn amount of holder's balance using spender's allowance"""
        pass

    @abstractmethod
    def reserve_asset(self) -> Optional[AssetLedger]:
        """Reserve asset this token was deployed against, if any"""
        pass


class InMemoryAsset(AssetLedger):
    """Dictionary-backed asset ledger with ERC20-style allowances"""

    def __init__(self, symbol: str, decimals: int = 18, address: Optional[str] = None):
        super().__init__(symbol, address)
        self._decimals = decimals
        self._supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[Tuple[str, str], int] = {}

    def balance_of(self, holder: str) -> int:
        return self.balances.get(holder, 0)

    def decimals(self) -> int:
        return self._decimals

    def total_supply(self) -> int:
        return self._supply

    def issue(self, holder: str, amount: int) -> None:
        """Create new units directly in holder's balance (world setup)"""
        require_amount(amount)
        self.balances[holder] = self.balance_of(holder) + amount
        self._supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        require_amount(amount)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"{self.symbol} transfer exceeds balance",
                {"holder": sender, "balance": balance, "amount": amount}
            )
        self.balances[sender] = balance - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def approve(self, owner: str, spender: str, amount: int) -> None:
        require_amount(amount)
        self.allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def snapshot(self) -> Any:
        return (self._supply, dict(self.balances), dict(self.allowances))

    def restore(self, state: Any) -> None:
        supply, balances, allowances = state
        self._supply = supply
        self.balances = dict(balances)
        self.allowances = dict(allowances)


class InMemoryManagedToken(InMemoryAsset, ManagedTokenLedger):
    """In-memory managed token; only granted minters may mint"""

    def __init__(self, symbol: str, decimals: int = 18, address: Optional[str] = None,
                 reserve: Optional[AssetLedger] = None):
        super().__init__(symbol, decimals, address)
        self._reserve = reserve
        self.minters: Set[str] = set()

    def grant_minter(self, account: str) -> None:
        self.minters.add(account)

    def reserve_asset(self) -> Optional[AssetLedger]:
        return self._reserve

    def mint(self, caller: str, recipient: str, amount: int) -> None:
        if caller not in self.minters:
            raise Unauthorized(f"{caller} may not mint {self.symbol}", {"caller": caller})
        self.issue(recipient, amount)

    def burn_from(self, spender: str, holder: str, amount: int) -> None:
        require_amount(amount)
        balance = self.balance_of(holder)
        allowed = self.allowance(holder, spender)
        if allowed < amount:
            raise InsufficientTokenBalance(
                f"{self.symbol} burn exceeds allowance",
                {"holder": holder, "allowance": allowed, "amount": amount}
            )
        if balance < amount:
            raise InsufficientTokenBalance(
                f"{self.symbol} burn exceeds balance",
                {"holder": holder, "balance": balance, "amount": amount}
            )
        self.allowances[(holder, spender)] = allowed - amount
        self.balances[holder] = balance - amount
        self._supply -= amount

    def snapshot(self) -> Any:
        return (super().snapshot(), set(self.minters))

    def restore(self, state: Any) -> None:
        base, minters = state
        super().restore(base)
        self.minters = set(minters)
