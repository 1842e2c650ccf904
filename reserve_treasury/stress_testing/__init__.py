"""Stress testing framework"""

from .runner import StressTestRunner
from .scenarios import TreasuryStressTestSuite, StressTestScenario
from .analyzer import StressTestAnalyzer

__all__ = ["StressTestRunner", "TreasuryStressTestSuite", "StressTestScenario", "StressTestAnalyzer"]
