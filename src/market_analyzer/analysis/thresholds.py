"""Volatility-relative significance cutoffs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from market_analyzer.analysis.signals import rounded
from market_analyzer.analysis.stats import atr
from market_analyzer.data.models import Candle

MIN_HISTORY = 20
ATR_PERIOD = 14

# (atr_pct lower bound, regime, price cutoff, oi cutoff), checked top-down.
VOLATILITY_BANDS = (
    (3.0, "high", 1.5, 1.0),
    (1.5, "medium", 0.8, 0.6),
)
LOW_BAND = ("low", 0.3, 0.3)
FALLBACK = ("unknown", 0.5, 0.5)


@dataclass(frozen=True)
class AdaptiveThresholds:
    price_significant_pct: float
    oi_significant_pct: float
    volatility_regime: str
    atr_pct: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priceSignificantPct": self.price_significant_pct,
            "oiSignificantPct": self.oi_significant_pct,
            "volatilityRegime": self.volatility_regime,
            "atrPct": rounded(self.atr_pct, 3),
        }


DEFAULT_THRESHOLDS = AdaptiveThresholds(FALLBACK[1], FALLBACK[2], FALLBACK[0], None)


def thresholds_for_atr(atr_pct: float) -> AdaptiveThresholds:
    for lower, regime, price_cut, oi_cut in VOLATILITY_BANDS:
        if atr_pct > lower:
            return AdaptiveThresholds(price_cut, oi_cut, regime, atr_pct)
    regime, price_cut, oi_cut = LOW_BAND
    return AdaptiveThresholds(price_cut, oi_cut, regime, atr_pct)


def compute_adaptive_thresholds(price_history: Sequence[Candle]) -> AdaptiveThresholds:
    if len(price_history) < MIN_HISTORY:
        return DEFAULT_THRESHOLDS
    highs = [c.high for c in price_history]
    lows = [c.low for c in price_history]
    closes = [c.close for c in price_history]
    atr_value = atr(highs, lows, closes, ATR_PERIOD)
    last_close = closes[-1]
    if atr_value is None or last_close <= 0:
        return DEFAULT_THRESHOLDS
    return thresholds_for_atr(atr_value / last_close * 100.0)
