#!/usr/bin/env python3
"""
Core simulation primitives for treasury simulations.

Defines the actions a simulated participant can submit to the treasury and
the execution record produced for each one, following the Action-Event
pattern.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class ActionKind(Enum):
    """Enumeration of all treasury actions"""

    # ── Value movement
    MINT                    = auto()
    BURN_AND_REDEEM         = auto()
    TRANSFER_FROM_TREASURY  = auto()
    FUND_TREASURY           = auto()  # External inflow into a treasury balance

    # ── Administration
    SET_REDEMPTION_ACTIVE   = auto()
    SET_REDEEMABLE_TOKENS   = auto()
    UPDATE_RESERVE_ASSET    = auto()
    ADD_MINTER              = auto()
    REMOVE_MINTER           = auto()
    ADD_SENDER              = auto()
    REMOVE_SENDER           = auto()
    TRANSFER_OWNERSHIP      = auto()

    # ── Hold (no action)
    HOLD                    = auto()


@dataclass
class Action:
    """Participant intention to call the treasury"""
    kind: ActionKind
    caller: str
    params: Dict[str, Any] = field(default_factory=dict)  # amount, asset, to, ...


@dataclass
class ActionEvent:
    """Execution result of an action"""
    step: int
    action_kind: ActionKind
    caller: str
    params: Dict[str, Any]
    success: bool = True
    result: Dict[str, Any] = field(default_factory=dict)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "action": self.action_kind.name,
            "caller": self.caller,
            "params": dict(self.params),
            "success": self.success,
            "result": dict(self.result),
            "error_type": self.error_type,
            "error_message": self.error_message,
        }
