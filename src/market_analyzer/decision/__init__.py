"""Decision layer exports."""

from market_analyzer.decision.engine import DEFAULT_WEIGHTS, DecisionEngine
from market_analyzer.decision.models import DecisionResult, WeightedSignal
from market_analyzer.decision.pipeline import (
    MarketAnalysis,
    calculate_market_metrics,
    compute,
)

__all__ = [
    "DEFAULT_WEIGHTS",
    "DecisionEngine",
    "DecisionResult",
    "MarketAnalysis",
    "WeightedSignal",
    "calculate_market_metrics",
    "compute",
]
