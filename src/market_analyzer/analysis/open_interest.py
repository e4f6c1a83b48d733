"""Open-interest trend and its divergence from price."""

from __future__ import annotations

from typing import Sequence

from market_analyzer.analysis.signals import Bias, SignalResult, neutral, rounded
from market_analyzer.analysis.stats import pct_change, slope
from market_analyzer.data.models import Candle

MIN_HISTORY = 20
CHANGE_BARS = 24
SLOPE_WINDOW = 20


def _trend(value) -> str:
    if value is None or value == 0:
        return "flat"
    return "increasing" if value > 0 else "decreasing"


def analyze_open_interest(
    oi_history: Sequence[Candle], price_history: Sequence[Candle]
) -> SignalResult:
    oi_values = [c.close for c in oi_history]
    if len(oi_values) < MIN_HISTORY:
        return neutral(
            "unknown",
            f"OI history too short ({len(oi_values)} points)",
            current=oi_values[-1] if oi_values else None,
            change24=None,
            trend=None,
            price_divergence="unknown",
        )

    current = oi_values[-1]
    change = None
    if len(oi_values) > CHANGE_BARS:
        change = pct_change(oi_values[-CHANGE_BARS - 1], current)
    oi_slope = slope(oi_values[-SLOPE_WINDOW:])

    divergence = "aligned"
    price_slope = None
    if len(price_history) >= MIN_HISTORY:
        price_slope = slope([c.close for c in price_history][-SLOPE_WINDOW:])
    if price_slope is not None and oi_slope is not None:
        if price_slope > 0 and oi_slope < 0:
            divergence = "bearish_divergence"
        elif price_slope < 0 and oi_slope > 0:
            divergence = "bullish_divergence"

    details = {
        "current": rounded(current),
        "change24": rounded(change),
        "trend": _trend(oi_slope),
        "price_divergence": divergence,
    }
    if divergence == "bearish_divergence":
        return SignalResult(
            type=divergence,
            grade=4.0,
            bias=Bias.SHORT,
            confidence=4.0,
            interpretation="Price trending up while OI bleeds out",
            details=details,
        )
    if divergence == "bullish_divergence":
        return SignalResult(
            type=divergence,
            grade=4.0,
            bias=Bias.LONG,
            confidence=4.0,
            interpretation="Price trending down while OI builds",
            details=details,
        )
    return SignalResult(
        type=divergence,
        grade=0.0,
        bias=Bias.WAIT,
        confidence=0.0,
        interpretation="OI trend consistent with price",
        details=details,
    )
