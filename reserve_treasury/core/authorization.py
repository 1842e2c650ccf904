#!/usr/bin/env python3
"""
Authorization Registry

Three independent role tables: a single transferable owner, approved minters
and approved senders. The registry only stores and answers membership; the
Treasury decides which role each operation needs.
"""

from typing import Any, FrozenSet, Set

from .exceptions import Unauthorized


class AuthorizationRegistry:
    """Owner, minter and sender role tables"""

    def __init__(self, owner: str):
        self.owner = owner
        self.approved_minters: Set[str] = set()
        self.approved_senders: Set[str] = set()

    # ── Lookups

    def is_owner(self, account: str) -> bool:
        return account == self.owner

    def is_minter(self, account: str) -> bool:
        return account in self.approved_minters

    def is_sender(self, account: str) -> bool:
        return account in self.approved_senders

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise Unauthorized("Caller is not the owner", {"caller": caller})

    def require_minter(self, caller: str) -> None:
        if not self.is_minter(caller):
            raise Unauthorized("Caller is not an approved minter", {"caller": caller})

    def require_sender(self, caller: str) -> None:
        if not self.is_sender(caller):
            raise Unauthorized("Caller is not an approved sender", {"caller": caller})

    # ── Mutations (idempotent set/unset)

    def add_minter(self, account: str) -> None:
        self.approved_minters.add(account)

    def remove_minter(self, account: str) -> None:
        self.approved_minters.discard(account)

    def add_sender(self, account: str) -> None:
        self.approved_senders.add(account)

    def remove_sender(self, account: str) -> None:
        self.approved_senders.discard(account)

    def transfer_ownership(self, new_owner: str) -> None:
        self.owner = new_owner

    # ── Views and journaling

    def minters(self) -> FrozenSet[str]:
        return frozenset(self.approved_minters)

    def senders(self) -> FrozenSet[str]:
        return frozenset(self.approved_senders)

    def snapshot(self) -> Any:
        return (self.owner, frozenset(self.approved_minters), frozenset(self.approved_senders))

    def restore(self, state: Any) -> None:
        owner, minters, senders = state
        self.owner = owner
        self.approved_minters = set(minters)
        self.approved_senders = set(senders)
