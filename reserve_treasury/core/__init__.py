"""Core reserve treasury components"""

from .assets import AssetLedger, ManagedTokenLedger, InMemoryAsset, InMemoryManagedToken
from .environment import ExecutionEnvironment
from .events import EventKind, TreasuryEvent
from .fixed_point import FixedPoint, mul_div
from .redemption import Payout, RedemptionResult
from .treasury import Treasury

__all__ = [
    "AssetLedger", "ManagedTokenLedger", "InMemoryAsset", "InMemoryManagedToken",
    "ExecutionEnvironment", "EventKind", "TreasuryEvent",
    "FixedPoint", "mul_div", "Payout", "RedemptionResult",
    "Treasury"
]
