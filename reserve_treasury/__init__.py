"""
Reserve Treasury

A reserve-backed accounting engine: mint ceilings derived from a single
reserve asset, and proportional burn-and-redeem payouts across a basket of
held assets, with exact integer arithmetic and atomic calls. Ships with a
scenario simulation and stress-testing toolkit.
"""

__version__ = "1.0.0"

# Core components
from .config import TreasuryConfig, SCALE, DEFAULT_BACKING_RATIO
from .core.assets import AssetLedger, ManagedTokenLedger, InMemoryAsset, InMemoryManagedToken
from .core.environment import ExecutionEnvironment
from .core.events import EventKind, TreasuryEvent
from .core.exceptions import (
    TreasuryError, Unauthorized, InvalidPercentage, InvalidAmount, InsufficientBacking,
    RedemptionInactive, DivideByZero, InsufficientTokenBalance, InsufficientBalance,
    ReentrantCall, ConfigurationError
)
from .core.fixed_point import FixedPoint
from .core.redemption import Payout, RedemptionResult
from .core.treasury import Treasury

# Simulation
from .simulation.config import SimulationConfig, AssetSpec, HolderSpec
from .simulation.engine import TreasurySimulationEngine

# Stress Testing
from .stress_testing.runner import StressTestRunner
from .stress_testing.scenarios import TreasuryStressTestSuite

# Analysis
from .analysis.metrics import TreasuryMetricsCalculator

__all__ = [
    # Core
    "Treasury", "TreasuryConfig", "SCALE", "DEFAULT_BACKING_RATIO",
    "AssetLedger", "ManagedTokenLedger", "InMemoryAsset", "InMemoryManagedToken",
    "ExecutionEnvironment", "EventKind", "TreasuryEvent",
    "FixedPoint", "Payout", "RedemptionResult",

    # Errors
    "TreasuryError", "Unauthorized", "InvalidPercentage", "InvalidAmount",
    "InsufficientBacking", "RedemptionInactive", "DivideByZero",
    "InsufficientTokenBalance", "InsufficientBalance", "ReentrantCall",
    "ConfigurationError",

    # Simulation
    "SimulationConfig", "AssetSpec", "HolderSpec", "TreasurySimulationEngine",

    # Stress Testing
    "StressTestRunner", "TreasuryStressTestSuite",

    # Analysis
    "TreasuryMetricsCalculator"
]
