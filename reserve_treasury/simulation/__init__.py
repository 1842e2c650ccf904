"""Simulation engine and configuration"""

from .engine import TreasurySimulationEngine
from .config import SimulationConfig, AssetSpec, HolderSpec
from .primitives import Action, ActionEvent, ActionKind

__all__ = ["TreasurySimulationEngine", "SimulationConfig", "AssetSpec", "HolderSpec",
           "Action", "ActionEvent", "ActionKind"]
