"""Trend, momentum and volatility from price history alone."""

from __future__ import annotations

import math
from typing import Sequence

from market_analyzer.analysis.signals import Bias, SignalResult, neutral, rounded
from market_analyzer.analysis.stats import ema, log_returns, max_drawdown_pct, pct_change, std
from market_analyzer.data.models import Candle

MIN_HISTORY = 20
VOLATILITY_HISTORY = 30
MOMENTUM_BARS = 24
SPREAD_CUTOFF = 0.5
CONFIDENCE_SCALE = 2.0


def analyze_technical(price_history: Sequence[Candle]) -> SignalResult:
    closes = [c.close for c in price_history]
    if len(closes) < MIN_HISTORY:
        return neutral(
            "unknown",
            f"Price history too short ({len(closes)} points)",
            direction="unknown",
            strength=None,
            ema20=None,
            ema50=None,
            momentum24=None,
            realized_volatility=None,
            max_drawdown=None,
            technical_bias=Bias.WAIT.value,
        )

    last = closes[-1]
    ema20 = ema(closes, 20)
    ema50 = ema(closes, 50)
    spread = None
    if ema20 is not None and ema50 is not None and ema50 != 0:
        spread = 100.0 * (ema20 - ema50) / ema50

    momentum = None
    if len(closes) > MOMENTUM_BARS:
        momentum = pct_change(closes[-MOMENTUM_BARS - 1], last)

    volatility = None
    if len(closes) >= VOLATILITY_HISTORY:
        returns = log_returns(closes)
        dev = std(returns)
        if dev is not None:
            volatility = dev * math.sqrt(len(returns)) * 100.0

    if spread is None:
        direction, bias = "unknown", Bias.WAIT
        text = "EMA50 unavailable; trend undetermined"
    elif spread > SPREAD_CUTOFF:
        direction, bias = "up", Bias.LONG
        text = f"EMA20 {spread:+.2f}% above EMA50"
    elif spread < -SPREAD_CUTOFF:
        direction, bias = "down", Bias.SHORT
        text = f"EMA20 {spread:+.2f}% below EMA50"
    else:
        direction, bias = "sideways", Bias.WAIT
        text = f"EMA spread {spread:+.2f}% is inside the neutral band"

    confidence = abs(spread) * CONFIDENCE_SCALE if spread is not None else 0.0
    return SignalResult(
        type=direction,
        grade=confidence,
        bias=bias,
        confidence=confidence,
        interpretation=text,
        details={
            "direction": direction,
            "strength": rounded(spread, 3),
            "ema20": rounded(ema20),
            "ema50": rounded(ema50),
            "momentum24": rounded(momentum),
            "realized_volatility": rounded(volatility),
            "max_drawdown": rounded(max_drawdown_pct(closes)),
            "technical_bias": bias.value,
        },
    )
