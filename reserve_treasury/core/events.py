#!/usr/bin/env python3
"""
Treasury Events

Notification records for external indexers. Events are appended to the
treasury's event log by successful calls only; a failed call rolls its
events back together with every other effect.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict


class EventKind(Enum):
    """Every observable treasury notification"""

    # ── Administration
    REDEMPTION_ACTIVATED   = auto()
    REDEEMABLE_TOKENS_SET  = auto()
    MINTER_ADDED           = auto()
    MINTER_REMOVED         = auto()
    SENDER_ADDED           = auto()
    SENDER_REMOVED         = auto()
    RESERVE_ASSET_UPDATED  = auto()
    OWNERSHIP_TRANSFERRED  = auto()

    # ── Value movement
    MINTED                 = auto()
    REDEEMED               = auto()
    TREASURY_TRANSFER      = auto()


@dataclass(frozen=True)
class TreasuryEvent:
    """A single committed notification"""
    sequence: int
    kind: EventKind
    caller: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "kind": self.kind.name,
            "caller": self.caller,
            "payload": dict(self.payload),
        }
