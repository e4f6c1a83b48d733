"""Analyzer exports."""

from market_analyzer.analysis.absorption import analyze_absorption
from market_analyzer.analysis.exchange_priority import analyze_exchange_priority
from market_analyzer.analysis.funding import analyze_funding
from market_analyzer.analysis.oi_rotation import analyze_oi_rotation
from market_analyzer.analysis.open_interest import analyze_open_interest
from market_analyzer.analysis.regime import detect_regime
from market_analyzer.analysis.signals import Bias, SignalResult
from market_analyzer.analysis.technical import analyze_technical
from market_analyzer.analysis.thresholds import (
    AdaptiveThresholds,
    compute_adaptive_thresholds,
)
from market_analyzer.analysis.trap import detect_trap

__all__ = [
    "AdaptiveThresholds",
    "Bias",
    "SignalResult",
    "analyze_absorption",
    "analyze_exchange_priority",
    "analyze_funding",
    "analyze_oi_rotation",
    "analyze_open_interest",
    "analyze_technical",
    "compute_adaptive_thresholds",
    "detect_regime",
    "detect_trap",
]
