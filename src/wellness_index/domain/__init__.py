"""Domain modules for the wellness index."""

from .scoring import WellnessIndexResult, calculate_wellness_index, evaluate_wellness_index
from .tables import MetricRule, ScoringTables, build_scoring_tables

__all__ = [
    "MetricRule",
    "ScoringTables",
    "WellnessIndexResult",
    "build_scoring_tables",
    "calculate_wellness_index",
    "evaluate_wellness_index",
]
