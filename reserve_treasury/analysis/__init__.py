"""Metrics, results storage and charts"""

from .metrics import TreasuryMetricsCalculator
from .results_manager import ResultsManager, RunMetadata
from .scenario_charts import ScenarioChartGenerator

__all__ = ["TreasuryMetricsCalculator", "ResultsManager", "RunMetadata", "ScenarioChartGenerator"]
