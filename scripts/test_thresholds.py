"""Adaptive threshold tests."""

from __future__ import annotations

from market_analyzer.analysis.thresholds import (
    compute_adaptive_thresholds,
    thresholds_for_atr,
)
from market_analyzer.data.models import Candle


def _bars(count: int, half_range: float, close: float = 100.0):
    return [
        Candle(i, close, close + half_range, close - half_range, close)
        for i in range(count)
    ]


def test_short_history_falls_back_to_unknown():
    result = compute_adaptive_thresholds(_bars(19, 4.0))
    assert result.volatility_regime == "unknown"
    assert result.price_significant_pct == 0.5
    assert result.oi_significant_pct == 0.5
    assert result.atr_pct is None


def test_high_volatility_band():
    result = compute_adaptive_thresholds(_bars(30, 4.0))
    assert result.volatility_regime == "high"
    assert (result.price_significant_pct, result.oi_significant_pct) == (1.5, 1.0)


def test_medium_and_low_bands():
    medium = compute_adaptive_thresholds(_bars(30, 1.0))
    low = compute_adaptive_thresholds(_bars(30, 0.5))
    assert medium.volatility_regime == "medium"
    assert (medium.price_significant_pct, medium.oi_significant_pct) == (0.8, 0.6)
    assert low.volatility_regime == "low"
    assert (low.price_significant_pct, low.oi_significant_pct) == (0.3, 0.3)


def test_band_edges_are_exclusive():
    assert thresholds_for_atr(3.0).volatility_regime == "medium"
    assert thresholds_for_atr(1.5).volatility_regime == "low"
    assert thresholds_for_atr(3.01).volatility_regime == "high"


def test_to_dict_shape():
    payload = thresholds_for_atr(2.0).to_dict()
    assert set(payload) == {
        "priceSignificantPct",
        "oiSignificantPct",
        "volatilityRegime",
        "atrPct",
    }
